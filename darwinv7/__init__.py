"""
Typed async client for the V7 Darwin REST API.
"""

import importlib.metadata
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .api.client import Api
    from .api.base_api import ApiConfig
    from .configs import load_darwin_config
    from .exceptions import (ConfigError, DarwinV7Exception, DecodeError, EncodeError, HttpStatusError,
                             TransportCancelledError, TransportError)
    from .entities import StageType, Workflow, WorkflowBuilder

else:
    import lazy_loader as lazy

    __getattr__, __dir__, __all__ = lazy.attach(
        __name__,
        submodules=['api', 'entities', 'configs', 'exceptions'],
        submod_attrs={
            "api.client": ["Api"],
            "api.base_api": ["ApiConfig"],
            "configs": ["load_darwin_config"],
            "exceptions": ["ConfigError", "DarwinV7Exception", "DecodeError", "EncodeError",
                           "HttpStatusError", "TransportCancelledError", "TransportError"],
            "entities": ["StageType", "Workflow", "WorkflowBuilder"],
        },
    )

__name__ = "darwinv7"
__version__ = importlib.metadata.version(__name__)
