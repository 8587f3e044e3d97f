"""API endpoint handlers."""

from .annotation_classes_api import AnnotationClassesApi
from .datasets_api import DatasetsApi
from .items_api import ItemsApi
from .teams_api import TeamsApi
from .workflows_api import WorkflowsApi

__all__ = [
    'AnnotationClassesApi',
    'DatasetsApi',
    'ItemsApi',
    'TeamsApi',
    'WorkflowsApi',
]
