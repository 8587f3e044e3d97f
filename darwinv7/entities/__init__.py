"""darwinv7 entities package."""

from .annotation_class import AnnotationClass, AnnotationClassDataset, NewAnnotationClass
from .base_entity import BaseEntity, BasePayload
from .dataset import Dataset
from .enums import AnnotationType, ExportFormat, ItemStatus, ItemType, OpenEnum, StageType
from .export import Export
from .item import ArchiveItemsResponse, AssignItemResponse, Item, ItemSlot, SetStageResponse
from .page import Page, PageRequest
from .team import Team, TeamMember
from .workflow import (StageAssignee, StageBuilder, StageEdge, Workflow, WorkflowBuilder, WorkflowDataset,
                       WorkflowProgress, WorkflowStage)

__all__ = [
    'AnnotationClass',
    'AnnotationClassDataset',
    'AnnotationType',
    'ArchiveItemsResponse',
    'AssignItemResponse',
    'BaseEntity',
    'BasePayload',
    'Dataset',
    'Export',
    'ExportFormat',
    'Item',
    'ItemSlot',
    'ItemStatus',
    'ItemType',
    'NewAnnotationClass',
    'OpenEnum',
    'Page',
    'PageRequest',
    'SetStageResponse',
    'StageAssignee',
    'StageBuilder',
    'StageEdge',
    'StageType',
    'Team',
    'TeamMember',
    'Workflow',
    'WorkflowBuilder',
    'WorkflowDataset',
    'WorkflowProgress',
    'WorkflowStage',
]
