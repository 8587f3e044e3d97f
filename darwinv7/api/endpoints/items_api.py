import logging
from collections.abc import Sequence

from darwinv7.api.base_api import ApiConfig, EntityBaseApi
from darwinv7.api.transport import TransportExecutor
from darwinv7.entities import (ArchiveItemsResponse, AssignItemResponse, Dataset, Item, Page, PageRequest,
                                SetStageResponse)

_LOGGER = logging.getLogger(__name__)


def _dataset_id(dataset: 'int | Dataset') -> int:
    return dataset.id if isinstance(dataset, Dataset) else dataset


def _item_filters(datasets: 'Sequence[int | Dataset]', item_ids: Sequence[str] | None) -> dict:
    # without item ids the operation applies to every item of the datasets
    filters: dict = {'dataset_ids': [_dataset_id(d) for d in datasets], 'select_all': item_ids is None}
    if item_ids is not None:
        filters['item_ids'] = list(item_ids)
    return filters


class ItemsApi(EntityBaseApi[Item]):
    """API handler for dataset items (v2, team-scoped)."""

    def __init__(self, config: ApiConfig, transport: TransportExecutor | None = None) -> None:
        super().__init__(config, Item, 'v2/teams/{team}/items', transport)

    async def get_page(self,
                       dataset: 'int | Dataset',
                       page_size: int | None = None,
                       cursor: str | None = None) -> Page[Item]:
        """Get one page of the items of a dataset.

        Only one request is made. To walk the listing, pass ``page.next`` back
        as ``cursor`` until it is ``None``::

            page = await api.items.get_page(dataset_id, page_size=100)
            while True:
                ...
                if not page.has_next:
                    break
                page = await api.items.get_page(dataset_id, page_size=100, cursor=page.next)

        Args:
            dataset: Dataset id or Dataset.
            page_size: Maximum number of items in the page.
            cursor: Opaque ``next`` token of the previous page.

        Returns:
            The page of items and the cursor of the following page.
        """
        return await self._make_page_request(self._endpoint(),
                                             Item,
                                             PageRequest(size=page_size, cursor=cursor),
                                             params=[('dataset_ids', _dataset_id(dataset))])

    async def set_stage(self,
                        workflow_id: str,
                        stage_id: str,
                        datasets: 'Sequence[int | Dataset]') -> SetStageResponse:
        """Move the items of the given datasets to a workflow stage."""
        body = {
            'filters': {'dataset_ids': [_dataset_id(d) for d in datasets], 'select_all': True},
            'stage_id': stage_id,
            'workflow_id': workflow_id,
        }
        return await self._make_request('POST', self._endpoint('stage'), response_type=SetStageResponse, body=body)

    async def assign(self,
                     workflow_id: str,
                     assignee_email: str,
                     datasets: 'Sequence[int | Dataset]',
                     item_ids: Sequence[str] | None = None) -> AssignItemResponse:
        """Assign items to a team member.

        Args:
            workflow_id: Workflow the items are in.
            assignee_email: Email of the member receiving the items.
            datasets: Datasets the items belong to.
            item_ids: Restrict the assignment to these items. All items of the datasets otherwise.
        """
        filters = _item_filters(datasets, item_ids)
        body = {
            'assignee_email': assignee_email,
            'filters': filters,
            'workflow_id': workflow_id,
        }
        return await self._make_request('POST', self._endpoint('assign'), response_type=AssignItemResponse,
                                        body=body)

    async def archive(self,
                      datasets: 'Sequence[int | Dataset]',
                      item_ids: Sequence[str] | None = None) -> ArchiveItemsResponse:
        """Archive items. Archived items leave their workflow and are hidden from listings.

        Args:
            datasets: Datasets the items belong to.
            item_ids: Items to archive. Every item of the datasets otherwise.

        Returns:
            The number of archived items.
        """
        filters = _item_filters(datasets, item_ids)
        _LOGGER.info(f"Archiving items of datasets {filters['dataset_ids']}")
        return await self._make_request('POST', self._endpoint('archive'), response_type=ArchiveItemsResponse,
                                        body={'filters': filters})
