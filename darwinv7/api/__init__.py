"""Request pipeline, transports and endpoint handlers."""

from .base_api import ApiConfig, BaseApi, EntityBaseApi
from .client import Api
from .transport import AiohttpTransport, HttpxTransport, RawResponse, TransportExecutor, create_transport

__all__ = [
    'AiohttpTransport',
    'Api',
    'ApiConfig',
    'BaseApi',
    'EntityBaseApi',
    'HttpxTransport',
    'RawResponse',
    'TransportExecutor',
    'create_transport',
]
