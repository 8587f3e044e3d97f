"""Dataset entity module for the V7 API."""

from typing import Any
from pydantic import Field, model_validator
from .base_entity import BaseEntity


class Dataset(BaseEntity):
    """Pydantic Model representing a V7 dataset.

    Attributes:
        id: Numeric dataset identifier.
        name: Dataset name.
        slug: URL-safe dataset name.
        team_id: Identifier of the owning team.
        team_slug: Slug of the owning team. A lookup key, not an embedded team.
        instructions: Free-text annotation instructions shown to annotators.
        annotation_class_ids: Ids of the annotation classes linked to the dataset.
        annotation_hotkeys: Mapping of hotkey to annotation class.
        annotators_can_create_tags: Whether annotators may create tag classes.
        annotators_can_instantiate_workflows: Whether annotators may start workflows.
        anyone_can_double_assign: Whether items may be assigned twice.
        reviewers_can_annotate: Whether reviewers may edit annotations.
        public: Whether the dataset is public.
        work_size: Batch size handed to annotators.
        work_prioritization: Ordering used when handing out work.
        num_items: Number of items in the dataset.
        progress: Completion ratio reported by the server.
    """

    id: int
    name: str | None = None
    slug: str | None = None
    team_id: int | None = None
    team_slug: str | None = None
    instructions: str | None = None
    annotation_class_ids: list[int] = Field(default_factory=list)
    annotation_hotkeys: dict[str, str] | None = None
    annotators_can_create_tags: bool | None = None
    annotators_can_instantiate_workflows: bool | None = None
    anyone_can_double_assign: bool | None = None
    reviewers_can_annotate: bool | None = None
    public: bool | None = None
    work_size: int | None = None
    work_prioritization: str | None = None
    active: bool | None = None
    archived: bool | None = None
    archived_at: str | None = None
    default_workflow_template_id: int | None = None
    inserted_at: str | None = None
    updated_at: str | None = None
    num_classes: int | None = None
    num_complete_files: int | None = None
    num_images: int | None = None
    num_items: int | None = None
    num_videos: int | None = None
    owner_id: int | None = None
    parent_id: int | None = None
    progress: float | None = None
    version: int | None = None

    writable_fields = frozenset({
        'annotation_hotkeys',
        'annotators_can_create_tags',
        'annotators_can_instantiate_workflows',
        'anyone_can_double_assign',
        'instructions',
        'name',
        'public',
        'reviewers_can_annotate',
        'work_size',
        'work_prioritization',
    })

    @model_validator(mode='before')
    @classmethod
    def _collect_annotation_class_ids(cls, data: Any) -> Any:
        # older payloads embed the classes instead of listing their ids
        if isinstance(data, dict) and 'annotation_class_ids' not in data:
            classes = data.get('annotation_classes')
            if isinstance(classes, list):
                ids = [c.get('id') if isinstance(c, dict) else c for c in classes]
                data = {**data, 'annotation_class_ids': [i for i in ids if i is not None]}
        return data
