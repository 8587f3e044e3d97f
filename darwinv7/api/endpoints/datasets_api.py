import logging
from collections.abc import Sequence
from typing import Any, Optional
from urllib.parse import quote

from darwinv7.api.base_api import ApiConfig, EntityBaseApi
from darwinv7.api.transport import TransportExecutor
from darwinv7.entities import Dataset, Export, ExportFormat
from darwinv7.exceptions import ConfigError, EncodeError

_LOGGER = logging.getLogger(__name__)


class DatasetsApi(EntityBaseApi[Dataset]):
    """API handler for dataset-related endpoints.

    Datasets are not team-scoped in the URL: the server lists the datasets of
    the team the API key belongs to. Exports are the exception, they live under
    ``v2/teams/{team}/datasets/{dataset_slug}/exports``.
    """

    def __init__(self, config: ApiConfig, transport: TransportExecutor | None = None) -> None:
        super().__init__(config, Dataset, 'datasets', transport)

    async def get_list(self) -> list[Dataset]:
        """Get the datasets of the API key's team."""
        return await self._get_list()

    async def create(self, name: str) -> Dataset:
        """Create an empty dataset.

        Args:
            name: Name of the new dataset.

        Returns:
            The created dataset.
        """
        return await self._create({'name': name})

    async def update(self, dataset: Dataset, **changes: Any) -> Dataset:
        """Update writable fields of a dataset.

        The server expects every writable field on update, so the values of
        ``dataset`` are sent for the fields not listed in ``changes``.

        Args:
            dataset: The dataset as currently known, usually fetched with :meth:`get_by_id`.
            **changes: New values, keyed by field name.

        Returns:
            The dataset as stored by the server.

        Raises:
            EncodeError: If a change targets a read-only or unknown field.
        """
        not_writable = set(changes) - Dataset.writable_fields
        if not_writable:
            raise EncodeError(f"Dataset fields are not writable: {sorted(not_writable)}")

        payload = dataset.model_dump(mode='json', include=set(Dataset.writable_fields))
        payload.update(changes)
        return await self._update(dataset.id, payload)

    async def update_instructions(self, dataset: Dataset, instructions: str) -> Dataset:
        """Replace the annotation instructions of a dataset.

        All other writable fields keep the values of ``dataset``.
        """
        return await self.update(dataset, instructions=instructions)

    async def update_batch_size(self, dataset: Dataset, size: int) -> Dataset:
        """Set how many items an annotator receives at once."""
        return await self.update(dataset, work_size=size)

    async def update_annotation_hotkeys(self, dataset: Dataset, hotkeys: dict[str, str]) -> Dataset:
        """Replace the hotkey to annotation class mapping of a dataset.

        Args:
            dataset: The dataset as currently known.
            hotkeys: Mapping such as ``{'key_1': 'select_class:42'}``. Replaces the current mapping.
        """
        return await self.update(dataset, annotation_hotkeys=dict(hotkeys))

    async def archive(self, dataset: 'int | Dataset') -> Dataset:
        """Archive a dataset. Archived datasets are hidden but not deleted."""
        dataset_id = dataset.id if isinstance(dataset, Dataset) else dataset
        return await self._make_request('PUT', self._endpoint(dataset_id, 'archive'), response_type=Dataset)

    async def reset_to_new(self,
                           dataset: 'int | Dataset',
                           item_ids: Sequence[str] | None = None) -> None:
        """Move items back to the *new* status, outside of any workflow stage.

        Args:
            dataset: Dataset id or Dataset.
            item_ids: Items to reset. Every item of the dataset otherwise.
        """
        dataset_id = dataset.id if isinstance(dataset, Dataset) else dataset
        item_filter: dict[str, Any] = {'select_all': item_ids is None}
        if item_ids is not None:
            item_filter['item_ids'] = list(item_ids)
        _LOGGER.info(f"Resetting {len(item_ids) if item_ids is not None else 'all'} items "
                     f"of dataset {dataset_id} to new")
        await self._make_request('PUT', self._endpoint(dataset_id, 'items', 'move_to_new'),
                                 body={'filter': item_filter})

    def _exports_endpoint(self, dataset: 'str | Dataset') -> str:
        if isinstance(dataset, Dataset):
            if not dataset.slug:
                raise ConfigError(f"Dataset {dataset.id} has no slug, which exports are addressed by")
            team_slug = dataset.team_slug or self.team_slug
            dataset_slug = dataset.slug
        else:
            team_slug = self.team_slug
            dataset_slug = dataset
        return f"v2/teams/{quote(team_slug, safe='')}/datasets/{quote(dataset_slug, safe='')}/exports"

    async def generate_export(self,
                              dataset: 'str | Dataset',
                              name: str,
                              format: ExportFormat | str = ExportFormat.DARWIN_JSON_2,
                              include_authorship: bool = False,
                              include_export_token: bool = False) -> None:
        """Start generating an export of a dataset's annotations.

        Generation runs on the server; poll :meth:`list_exports` until the
        export has a ``download_url``.

        Args:
            dataset: Dataset slug or Dataset.
            name: Name of the export, unique within the dataset.
            format: Annotation format.
            include_authorship: Include annotator and reviewer information.
            include_export_token: Include a token in the item URLs of the export.

        Raises:
            ConfigError: If ``dataset`` is a Dataset without a slug. Nothing is sent.
        """
        body = {
            'name': name,
            'format': str(ExportFormat(format)),
            'include_authorship': include_authorship,
            'include_export_token': include_export_token,
        }
        await self._make_request('POST', self._exports_endpoint(dataset), body=body)

    async def list_exports(self, dataset: 'str | Dataset') -> list[Export]:
        """Get the exports of a dataset, finished or not."""
        exports = await self._make_list_request(self._exports_endpoint(dataset), Optional[Export])
        return [e for e in exports if e is not None]
