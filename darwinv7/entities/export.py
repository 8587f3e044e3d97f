"""Dataset export entity module for the V7 API."""

from .base_entity import BaseEntity
from .enums import ExportFormat


class Export(BaseEntity):
    """A generated (or generating) export of a dataset's annotations.

    Exports have no numeric id; ``name`` identifies them within a dataset.

    Attributes:
        name: Export name, unique within the dataset.
        format: Annotation format of the export.
        status: Generation status reported by the server (``pending``, ``complete``, ...).
        download_url: Archive URL, once the export is complete.
        latest: Whether this is the most recent export of the dataset.
    """

    name: str
    format: ExportFormat | None = None
    status: str | None = None
    download_url: str | None = None
    inserted_at: str | None = None
    latest: bool | None = None
    version: int | None = None

    @property
    def is_ready(self) -> bool:
        return self.download_url is not None
