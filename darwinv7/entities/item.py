from typing import Any
from pydantic import Field
from .base_entity import BaseEntity
from .enums import ItemStatus, ItemType, StageType


class ItemSlot(BaseEntity):
    """A media slot of a dataset item (one file of a possibly multi-file item)."""

    slot_name: str | None = None
    file_name: str | None = None
    type: ItemType | None = None
    fps: float | None = None
    id: str | None = None
    is_external: bool | None = None
    size_bytes: int | None = None
    streamable: bool | None = None
    total_sections: int | None = None
    upload_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Item(BaseEntity):
    """A media asset tracked within a dataset.

    Attributes:
        id: Item identifier (UUID string).
        dataset_id: Id of the dataset holding the item.
        name: File name of the item.
        path: Folder path inside the dataset.
        status: Workflow status of the item.
        processing_status: Upload processing status.
        workflow_status: Type of the stage the item currently sits in.
    """

    id: str
    dataset_id: int | None = None
    name: str | None = None
    path: str | None = None
    status: ItemStatus | None = None
    processing_status: ItemStatus | None = None
    workflow_status: StageType | None = None
    archived: bool | None = None
    cursor: str | None = None
    priority: int | None = None
    tags: list[str] = Field(default_factory=list)
    slot_types: list[ItemType] = Field(default_factory=list)
    slots: list[ItemSlot] = Field(default_factory=list)
    layout: dict[str, Any] | None = None
    inserted_at: str | None = None
    updated_at: str | None = None

    @property
    def filename(self) -> str | None:
        return self.name

    @property
    def full_path(self) -> str | None:
        if self.name is None:
            return None
        folder = (self.path or '/').rstrip('/')
        return f"{folder}/{self.name}"

    def __str__(self) -> str:
        return f"{{id-{self.id}}}:{self.name}/{self.status}[{', '.join(str(t) for t in self.slot_types)}]"


class SetStageResponse(BaseEntity):
    """Result of moving items to a workflow stage."""

    created_commands: int | None = None


class AssignItemResponse(BaseEntity):
    """Result of assigning items to a user."""

    created_commands: int | None = None


class ArchiveItemsResponse(BaseEntity):
    """Result of archiving items."""

    affected_item_count: int | None = None
