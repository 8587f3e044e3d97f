import logging
from urllib.parse import quote

from darwinv7.api.base_api import ApiConfig, EntityBaseApi
from darwinv7.api.transport import TransportExecutor
from darwinv7.entities import AnnotationClass, Dataset, NewAnnotationClass

_LOGGER = logging.getLogger(__name__)


class AnnotationClassesApi(EntityBaseApi[AnnotationClass]):
    """API handler for annotation classes.

    Classes are listed and created through the team
    (``teams/{slug}/annotation_classes``) but fetched and updated by id
    (``annotation_classes/{id}``).
    """

    def __init__(self, config: ApiConfig, transport: TransportExecutor | None = None) -> None:
        super().__init__(config, AnnotationClass, 'annotation_classes', transport)

    def _team_endpoint(self) -> str:
        return f"teams/{quote(self.team_slug, safe='')}/annotation_classes"

    async def get_list(self, dataset: 'int | Dataset | None' = None) -> list[AnnotationClass]:
        """Get the annotation classes of the configured team.

        Args:
            dataset: If given, only the classes linked to this dataset are returned.
                The server returns every class of the team; the filter is applied locally.
        """
        classes = await self._make_list_request(self._team_endpoint(), AnnotationClass,
                                                return_field='annotation_classes')
        if dataset is None:
            return classes
        dataset_id = dataset.id if isinstance(dataset, Dataset) else dataset
        return [c for c in classes if dataset_id in c.dataset_ids]

    async def create(self, annotation_class: NewAnnotationClass) -> AnnotationClass:
        """Create an annotation class in the configured team."""
        _LOGGER.info(f"Creating annotation class '{annotation_class.name}'")
        return await self._make_request('POST', self._team_endpoint(), response_type=AnnotationClass,
                                        body=annotation_class)

    async def update(self, annotation_class: AnnotationClass) -> AnnotationClass:
        """Send the writable fields of ``annotation_class`` to the server.

        Returns:
            The class as stored by the server.
        """
        return await self._update(annotation_class.id, annotation_class)

    async def delete(self, annotation_class: 'int | AnnotationClass') -> None:
        """Delete an annotation class.

        Args:
            annotation_class: Class id or AnnotationClass.
        """
        class_id = annotation_class.id if isinstance(annotation_class, AnnotationClass) else annotation_class
        _LOGGER.info(f"Deleting annotation class {class_id}")
        await self._make_request('DELETE', self._endpoint(class_id))
