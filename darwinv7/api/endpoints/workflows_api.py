import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from darwinv7.api.base_api import ApiConfig, EntityBaseApi
from darwinv7.api.transport import TransportExecutor
from darwinv7.entities import Dataset, StageBuilder, Workflow, WorkflowBuilder, WorkflowStage
from darwinv7.exceptions import EncodeError

_LOGGER = logging.getLogger(__name__)


class WorkflowsApi(EntityBaseApi[Workflow]):
    """API handler for v2 workflows of the configured team."""

    def __init__(self, config: ApiConfig, transport: TransportExecutor | None = None) -> None:
        super().__init__(config, Workflow, 'v2/teams/{team}/workflows', transport)

    async def get_list(self, name_contains: str | None = None) -> list[Workflow]:
        """Get the workflows of the team.

        Args:
            name_contains: Only return workflows whose name contains this text.
        """
        return await self._get_list(params={'name_contains': name_contains})

    async def get_for_dataset(self, dataset: 'int | Dataset') -> Workflow | None:
        """Get the workflow connected to a dataset, if any.

        The server has no lookup by dataset; the team's workflows are listed and
        matched locally.
        """
        dataset_id = dataset.id if isinstance(dataset, Dataset) else dataset
        for workflow in await self.get_list():
            if workflow.dataset is not None and workflow.dataset.id == dataset_id:
                return workflow
        return None

    async def create(self, workflow: WorkflowBuilder) -> Workflow:
        """Create a workflow with an ordered sequence of stages.

        Args:
            workflow: Name and stages. A builder without stages creates a draft.

        Returns:
            The created workflow.

        Raises:
            EncodeError: If the stage graph is invalid. Nothing is sent.
        """
        _LOGGER.info(f"Creating workflow '{workflow.name}' with {len(workflow.stages)} stages")
        return await self._create(workflow)

    async def update_stages(self,
                            workflow: 'str | Workflow',
                            stages: 'WorkflowBuilder | Sequence[StageBuilder | WorkflowStage | Mapping[str, Any]]'
                            ) -> Workflow:
        """Replace the stages of an existing workflow.

        Stages of a fetched workflow can be passed as they are::

            workflow.stages[0].config['instructions'] = 'Draw tight boxes'
            await api.workflows.update_stages(workflow, workflow.stages)

        Args:
            workflow: Workflow id or Workflow.
            stages: New stages, in order: builders, fetched stages or plain dicts.
                A :class:`WorkflowBuilder` may also carry a new name.

        Returns:
            The updated workflow.

        Raises:
            EncodeError: If a stage is invalid or the stage graph is inconsistent. Nothing is sent.
        """
        if not isinstance(stages, WorkflowBuilder):
            name = workflow.name if isinstance(workflow, Workflow) else None
            try:
                stages = WorkflowBuilder(name=name,
                                         stages=[s.to_builder() if isinstance(s, WorkflowStage) else s
                                                 for s in stages])
            except (ValidationError, ValueError) as e:
                raise EncodeError(f"Invalid workflow stages: {e}") from e
        workflow_id = workflow.id if isinstance(workflow, Workflow) else workflow
        return await self._update(workflow_id, stages)
