"""Workflow entities for the V7 API (v2 workflows).

A workflow is an ordered list of stages joined by edges. The order of
``Workflow.stages`` is significant: it is preserved on read and on create, and
each stage's ``position`` is its index in that list.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .base_entity import BaseEntity, BasePayload
from .enums import StageType

_LOGGER = logging.getLogger(__name__)

DEFAULT_EDGE_NAME = 'default'


class StageEdge(BaseModel):
    """Directed edge from one stage to another.

    Fields the client does not know are kept and sent back unchanged.

    Attributes:
        name: Outcome the edge belongs to (``default``, ``approve``, ``reject``, ...).
        source_stage_id: Stage the edge leaves from.
        target_stage_id: Stage the edge points to.
    """

    model_config = ConfigDict(extra='allow')

    id: str | None = None
    name: str = DEFAULT_EDGE_NAME
    source_stage_id: str
    target_stage_id: str


class StageAssignee(BaseModel):
    model_config = ConfigDict(extra='allow')

    stage_id: str
    user_id: int


class WorkflowStage(BaseEntity):
    """A stage of a fetched workflow.

    ``config`` is kept as a loose document: which keys are meaningful depends on
    the stage type and on the API version.
    """

    id: str
    name: str | None = None
    stage_type: StageType | None = Field(default=None, alias='type')
    position: int | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    edges: list[StageEdge] = Field(default_factory=list)
    assignable_users: list[StageAssignee] = Field(default_factory=list)

    def to_builder(self) -> 'StageBuilder':
        """Editable copy of this stage, unknown server fields included.

        Raises:
            ValueError: If the server did not report the stage type.
        """
        if self.stage_type is None:
            raise ValueError(f"stage {self.id} has no type and cannot be sent back")
        # position is left unset: a builder's list order is its stage order
        return StageBuilder(**dict(self.__pydantic_extra__ or {}),
                            id=self.id,
                            name=self.name,
                            stage_type=self.stage_type,
                            config=dict(self.config),
                            edges=[edge.model_copy() for edge in self.edges],
                            assignable_users=[user.model_copy() for user in self.assignable_users])


class WorkflowDataset(BaseEntity):
    """Dataset a workflow is connected to."""

    id: int
    name: str | None = None
    instructions: str | None = None
    annotators_can_instantiate_workflows: bool | None = None


class WorkflowProgress(BaseModel):
    complete: int = 0
    idle: int = 0
    in_progress: int = 0
    total: int = 0


class Workflow(BaseEntity):
    """Pydantic Model representing a V7 workflow.

    Attributes:
        id: Workflow identifier (UUID string).
        name: Workflow name.
        team_id: Owning team.
        dataset: Dataset the workflow is connected to, if any.
        stages: Stages in order. Empty for a draft workflow.
        progress: Item counters per state.
    """

    id: str
    name: str | None = None
    team_id: int | None = None
    dataset: WorkflowDataset | None = None
    stages: list[WorkflowStage] = Field(default_factory=list)
    progress: WorkflowProgress | None = None
    thumbnails: list[str] = Field(default_factory=list)
    inserted_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode='after')
    def _assign_positions(self) -> 'Workflow':
        positions = [stage.position for stage in self.stages]
        if all(p is None for p in positions):
            for index, stage in enumerate(self.stages):
                stage.position = index
        elif any(p is None for p in positions) or sorted(positions) != list(range(len(self.stages))):
            raise ValueError(f"stage positions must be unique and contiguous from 0, got {positions}")
        else:
            self.stages.sort(key=lambda stage: stage.position)
        return self

    @property
    def is_draft(self) -> bool:
        """A workflow without stages is a draft and cannot be activated."""
        return len(self.stages) == 0

    @property
    def stage_types(self) -> list[StageType | None]:
        return [stage.stage_type for stage in self.stages]

    def get_stage(self, stage_id: str) -> WorkflowStage | None:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def to_builder(self) -> 'WorkflowBuilder':
        """Editable copy of this workflow's stage graph."""
        return WorkflowBuilder(name=self.name, stages=[stage.to_builder() for stage in self.stages])

    def to_payload(self) -> dict[str, Any]:
        return self.to_builder().to_payload()


class StageBuilder(BasePayload):
    """A stage to be sent on workflow create/update.

    ``id`` is a client-assigned key that edges refer to; a UUID4 is generated when
    omitted. ``position`` is optional: when every stage omits it the list order is used.
    Extra keyword arguments are sent as additional stage fields.
    """

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str | None = None
    stage_type: StageType = Field(alias='type')
    position: int | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    edges: list[StageEdge] = Field(default_factory=list)
    assignable_users: list[StageAssignee] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode='json', by_alias=True, exclude={'position'})
        payload['edges'] = [{k: v for k, v in edge.items() if v is not None} for edge in payload['edges']]
        if payload['name'] is None:
            payload['name'] = str(self.stage_type).capitalize()
        return payload


class WorkflowBuilder(BasePayload):
    """Body of a workflow create/update request.

    The stage graph is checked when the payload is built: stage ids must be
    unique, positions contiguous from 0 (or all omitted), and every edge must
    join two stages of this workflow.
    """

    name: str | None = None
    stages: list[StageBuilder] = Field(default_factory=list)

    @classmethod
    def linear(cls,
               name: str,
               stage_types: Sequence[StageType | str],
               dataset_id: int | None = None) -> 'WorkflowBuilder':
        """Build a chain of stages where each stage flows into the next one.

        Args:
            name: Workflow name.
            stage_types: Stage types in order, e.g. ``['annotate', 'review', 'complete']``.
            dataset_id: Dataset the first stage feeds from, if any.
        """
        stages = [StageBuilder(stage_type=StageType(t), position=i) for i, t in enumerate(stage_types)]
        for i, stage in enumerate(stages):
            stage.config = {'x': 0, 'y': 200 * i, 'initial': i == 0}
            if dataset_id is not None:
                stage.config['dataset_id'] = dataset_id
            if i + 1 < len(stages):
                stage.edges.append(StageEdge(source_stage_id=stage.id, target_stage_id=stages[i + 1].id))
        return cls(name=name, stages=stages)

    def ordered_stages(self) -> list[StageBuilder]:
        positions = [stage.position for stage in self.stages]
        if all(p is None for p in positions):
            return list(self.stages)
        if any(p is None for p in positions):
            raise ValueError("either every stage has a position or none has")
        if sorted(positions) != list(range(len(self.stages))):
            raise ValueError(f"stage positions must be unique and contiguous from 0, got {positions}")
        return sorted(self.stages, key=lambda stage: stage.position)

    def validate_graph(self) -> None:
        ids = [stage.id for stage in self.stages]
        duplicated = {i for i in ids if ids.count(i) > 1}
        if duplicated:
            raise ValueError(f"duplicated stage ids: {sorted(duplicated)}")
        known = set(ids)
        for stage in self.stages:
            for edge in stage.edges:
                if edge.source_stage_id not in known or edge.target_stage_id not in known:
                    raise ValueError(f"edge '{edge.name}' of stage {stage.id} references an unknown stage "
                                     f"({edge.source_stage_id} -> {edge.target_stage_id})")
            for assignee in stage.assignable_users:
                if assignee.stage_id not in known:
                    raise ValueError(f"assignee {assignee.user_id} references unknown stage {assignee.stage_id}")

    def to_payload(self) -> dict[str, Any]:
        self.validate_graph()
        stages = self.ordered_stages()
        if not stages:
            _LOGGER.debug("Building a workflow without stages (draft)")
        payload: dict[str, Any] = {'stages': [stage.to_payload() for stage in stages]}
        if self.name is not None:
            payload['name'] = self.name
        return payload
