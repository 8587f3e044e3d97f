"""Annotation class entity module for the V7 API."""

from typing import Any
from pydantic import Field
from .base_entity import BaseEntity
from .enums import AnnotationType


class AnnotationClassDataset(BaseEntity):
    """Link between an annotation class and a dataset."""

    id: int


class AnnotationClass(BaseEntity):
    """Pydantic Model representing a V7 annotation class.

    Attributes:
        id: Numeric class identifier.
        name: Class name, unique within the team.
        annotation_types: Type tags of the class (main type plus sub-annotations).
        description: Optional description.
        datasets: Datasets the class is linked to.
        team_id: Owning team.
        metadata: Free-form metadata (colour, polygon options, ...).
    """

    id: int
    name: str | None = None
    annotation_types: list[AnnotationType] = Field(default_factory=list)
    description: str | None = None
    datasets: list[AnnotationClassDataset] = Field(default_factory=list)
    team_id: int | None = None
    annotation_class_image_url: str | None = None
    images: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    inserted_at: str | None = None
    updated_at: str | None = None

    writable_fields = frozenset({
        'name',
        'annotation_types',
        'description',
        'datasets',
        'metadata',
    })

    @property
    def main_type(self) -> AnnotationType | None:
        return self.annotation_types[0] if self.annotation_types else None

    @property
    def dataset_ids(self) -> list[int]:
        return [d.id for d in self.datasets]

    @property
    def color(self) -> str | None:
        return self.metadata.get('_color')


class NewAnnotationClass(BaseEntity):
    """An annotation class that does not exist on the server yet."""

    name: str
    annotation_types: list[AnnotationType]
    description: str | None = None
    datasets: list[AnnotationClassDataset] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    writable_fields = frozenset({
        'name',
        'annotation_types',
        'description',
        'datasets',
        'metadata',
    })
