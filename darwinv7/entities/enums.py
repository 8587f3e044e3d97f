"""Enumerated server vocabularies.

The V7 API keeps adding values to these vocabularies, so each enum is open:
known values map to their member (case-insensitively), anything else becomes
an *unrecognized* member that keeps the raw server string. Decoding never
fails because of a new value.
"""
from enum import Enum
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

_UNRECOGNIZED = 'UNRECOGNIZED'


class OpenEnum(str, Enum):
    """String enum that accepts values it does not know about."""

    @classmethod
    def _missing_(cls, value: object) -> 'OpenEnum | None':
        if not isinstance(value, str):
            return None
        lowered = value.lower()
        for member in cls:
            if member.value == lowered:
                return member
        pseudo_member = str.__new__(cls, value)
        pseudo_member._name_ = _UNRECOGNIZED
        pseudo_member._value_ = value
        return pseudo_member

    @property
    def is_unrecognized(self) -> bool:
        return self._name_ == _UNRECOGNIZED

    @property
    def raw(self) -> str:
        """The string as sent by the server."""
        return self._value_

    def __str__(self) -> str:
        return self._value_

    @classmethod
    def _validate(cls, value: Any) -> 'OpenEnum':
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{cls.__name__} must be a string, got {type(value).__name__}")
        return cls(value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda member: member.value,
                                                                           return_schema=core_schema.str_schema()),
        )


class ItemStatus(OpenEnum):
    """Processing / workflow status of a dataset item."""
    ANNOTATE = 'annotate'
    ARCHIVED = 'archived'
    COMPLETE = 'complete'
    ERROR = 'error'
    NEW = 'new'
    PROCESSING = 'processing'
    REVIEW = 'review'
    UPLOADING = 'uploading'


class StageType(OpenEnum):
    """Type of a workflow stage."""
    ANNOTATE = 'annotate'
    COMPLETE = 'complete'
    CONSENSUS = 'consensus'
    DATASET = 'dataset'
    MODEL = 'model'
    NEW = 'new'
    REVIEW = 'review'


class AnnotationType(OpenEnum):
    """Annotation type tag of an annotation class."""
    ATTRIBUTES = 'attributes'
    AUTO_ANNOTATE = 'auto_annotate'
    BOUNDING_BOX = 'bounding_box'
    CUBOID = 'cuboid'
    DIRECTIONAL_VECTOR = 'directional_vector'
    ELLIPSE = 'ellipse'
    INFERENCE = 'inference'
    INSTANCE_ID = 'instance_id'
    KEYPOINT = 'keypoint'
    LINE = 'line'
    MEASURES = 'measures'
    POLYGON = 'polygon'
    RASTER_LAYER = 'raster_layer'
    SKELETON = 'skeleton'
    TAG = 'tag'
    TEXT = 'text'


class ItemType(OpenEnum):
    """Media type of an item slot."""
    IMAGE = 'image'
    VIDEO = 'video'
    PDF = 'pdf'
    DICOM = 'dicom'


class ExportFormat(OpenEnum):
    """Annotation format of a dataset export."""
    DARWIN_JSON_2 = 'darwin_json_2'
    JSON = 'json'
    XML = 'xml'
    COCO = 'coco'
    CVAT = 'cvat'
    PASCAL_VOC = 'pascal_voc'
    SEMANTIC_MASK = 'semantic-mask'
    INSTANCE_MASK = 'instance-mask'
