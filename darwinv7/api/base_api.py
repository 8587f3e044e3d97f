import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar, Type
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from darwinv7.api.transport import TRANSPORT_BACKENDS, RawResponse, TransportExecutor, create_transport
from darwinv7.entities.base_entity import BaseEntity, BasePayload
from darwinv7.entities.page import Page, PageRequest
from darwinv7.exceptions import (ConfigError, DarwinV7Exception, DecodeError, EncodeError, HttpStatusError,
                                 TransportCancelledError, TransportError)

_LOGGER = logging.getLogger(__name__)

# Generic type for entities
T = TypeVar('T', bound=BaseEntity)
R = TypeVar('R')

QueryParams = Mapping[str, Any] | Sequence[tuple[str, Any]]

_SNIPPET_LENGTH = 500


@dataclass(frozen=True)
class ApiConfig:
    """Configuration for API client.

    Read once when the client is built; never re-read per call.

    Attributes:
        server_url: Base URL of the API, e.g. ``https://darwin.v7labs.com/api``.
        api_key: API key sent with every request.
        team_slug: Team used by team-scoped endpoints.
        timeout: Request timeout in seconds.
        transport: Network backend, ``'httpx'`` or ``'aiohttp'``.
        verify_ssl: Whether TLS certificates are verified.
    """
    server_url: str
    api_key: str | None = None
    team_slug: str | None = None
    timeout: float = 30.0
    transport: str = 'httpx'
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        try:
            url = httpx.URL(self.server_url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigError(f"Invalid server URL {self.server_url!r}: {e}") from e
        if url.scheme not in ('http', 'https') or not url.host:
            raise ConfigError(f"Invalid server URL {self.server_url!r}: expected an absolute http(s) URL")
        if self.transport not in TRANSPORT_BACKENDS:
            raise ConfigError(f"Unsupported transport '{self.transport}'. "
                              f"Choose one of: {', '.join(TRANSPORT_BACKENDS)}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        object.__setattr__(self, 'server_url', self.server_url.rstrip('/'))


@lru_cache(maxsize=None)
def _type_adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def format_error_path(loc: Sequence[str | int]) -> str:
    """Render a validation location as a wire path, e.g. ``('stages', 1, 'id')`` -> ``stages[1].id``."""
    path = ''
    for part in loc:
        if isinstance(part, int):
            path += f'[{part}]'
        elif path:
            path += f'.{part}'
        else:
            path = str(part)
    return path or '.'


def encode_query_params(params: QueryParams | None) -> str:
    """URL-encode query parameters.

    Insertion order and duplicate keys are kept. ``None`` values are skipped,
    booleans become ``true``/``false`` and list values repeat the key.
    """
    if not params:
        return ''
    pairs = params.items() if isinstance(params, Mapping) else params
    encoded: list[tuple[str, Any]] = []
    for key, value in pairs:
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if v is None:
                continue
            if isinstance(v, bool):
                v = 'true' if v else 'false'
            encoded.append((key, v))
    return urlencode(encoded)


class BaseApi:
    """Base class for all API endpoint handlers.

    This is the request pipeline: it builds the URL, injects authentication,
    serializes the body, drives the transport, and turns every failure into one
    of the :mod:`darwinv7.exceptions` types.
    """

    def __init__(self,
                 config: ApiConfig,
                 transport: TransportExecutor | None = None) -> None:
        """Initialize the base API handler.

        Args:
            config: API configuration containing base URL, API key, etc.
            transport: Optional transport executor. If None, one is created from ``config.transport``.
        """
        self.config = config
        self.transport = transport or self._create_transport()

    def _create_transport(self) -> TransportExecutor:
        return create_transport(self.config.transport,
                                timeout=self.config.timeout,
                                verify_ssl=self.config.verify_ssl)

    def _ensure_api_key(self) -> str:
        if not self.config.api_key:
            raise ConfigError("API key not configured.")
        return self.config.api_key

    @property
    def team_slug(self) -> str:
        """Slug of the configured team.

        Raises:
            ConfigError: If no team is configured.
        """
        if not self.config.team_slug:
            raise ConfigError("Team slug required for this endpoint. Pass `team_slug` or set a default team.")
        return self.config.team_slug

    def _build_url(self, endpoint: str, params: QueryParams | None = None) -> str:
        url = f"{self.config.server_url}/{endpoint.lstrip('/')}"
        query = encode_query_params(params)
        if query:
            separator = '&' if '?' in url else '?'
            url = f"{url}{separator}{query}"
        return url

    def _build_headers(self) -> dict[str, str]:
        return {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'Authorization': f'ApiKey {self._ensure_api_key()}',
        }

    @staticmethod
    def _encode_body(body: Any) -> bytes | None:
        """Serialize a request body to JSON bytes.

        Raises:
            EncodeError: If the body cannot be represented as JSON.
        """
        if body is None:
            return None
        try:
            if isinstance(body, BasePayload):
                document = body.to_payload()
            elif isinstance(body, BaseModel):
                document = body.model_dump(mode='json', by_alias=True, exclude_none=True)
            else:
                document = body
            return json.dumps(document, allow_nan=False).encode('utf-8')
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise EncodeError(f"Unable to serialize {type(body).__name__}: {e}") from e

    def _generate_curl_command(self, method: str, url: str, headers: Mapping[str, str],
                               content: bytes | None = None) -> str:
        """
        Generate a curl command for debugging purposes.

        Args:
            method: HTTP method.
            url: Full request URL.
            headers: Request headers.
            content: Serialized request body.

        Returns:
            str: Equivalent curl command
        """
        curl_command = ['curl']

        # Add method if not GET
        if method.upper() != 'GET':
            curl_command.extend(['-X', method.upper()])

        # Add headers
        for key, value in headers.items():
            if key.lower() == 'authorization':
                value = 'ApiKey <YOUR-API-KEY>'  # Mask API key for security
            curl_command.extend(['-H', f"'{key}: {value}'"])

        curl_command.append(f"'{url}'")

        if content:
            curl_command.extend(['-d', f"'{content.decode('utf-8')}'"])

        return ' '.join(curl_command)

    async def _send(self,
                    method: str,
                    endpoint: str,
                    params: QueryParams | None = None,
                    body: Any = None) -> RawResponse:
        """Issue one request and return the raw 2xx response.

        Raises:
            ConfigError: If no API key is configured.
            EncodeError: If the body cannot be serialized. Nothing is sent.
            TransportError: If no HTTP response was received (including cancellation).
            HttpStatusError: If the status is not 2xx.
        """
        url = self._build_url(endpoint, params)
        headers = self._build_headers()
        content = self._encode_body(body)

        _LOGGER.debug(f'Equivalent curl command: "{self._generate_curl_command(method, url, headers, content)}"')
        try:
            response = await self.transport.send(method, url, headers, content)
        except asyncio.CancelledError as e:
            if isinstance(e, TransportError):
                raise
            _LOGGER.info(f"Request cancelled for {method} {endpoint}")
            raise TransportCancelledError(f"Request cancelled for {method} {url}") from e
        except TransportError as e:
            _LOGGER.error(f"Request error for {method} {endpoint}: {e}")
            raise
        except DarwinV7Exception:
            raise
        except Exception as e:
            _LOGGER.error(f"Request error for {method} {endpoint}: {e}")
            raise TransportError(f"Request error for {method} {url}", cause=e) from e

        if not 200 <= response.status < 300:
            _LOGGER.error(f"HTTP error {response.status} for {method} {endpoint}: {response.text}")
            raise HttpStatusError(response.status, response.text, method=method, url=url, raw=response.body)
        return response

    @staticmethod
    def _snippet(response: RawResponse) -> str:
        return response.text[:_SNIPPET_LENGTH]

    def _parse_json(self, response: RawResponse) -> Any:
        if not response.body.strip():
            return None
        try:
            return json.loads(response.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            _LOGGER.error(f"Invalid JSON response: {e}")
            raise DecodeError('.', f"invalid JSON: {e}", snippet=self._snippet(response)) from e

    def _validate(self,
                  data: Any,
                  response_type: Type[R] | Any,
                  response: RawResponse,
                  prefix: tuple[str | int, ...] = ()) -> R:
        try:
            return _type_adapter(response_type).validate_python(data)
        except ValidationError as e:
            errors = e.errors(include_url=False)
            first = errors[0] if errors else {'loc': (), 'msg': str(e)}
            path = format_error_path(prefix + tuple(first['loc']))
            _LOGGER.error(f"Unable to decode response as {getattr(response_type, '__name__', response_type)} "
                          f"at '{path}': {first['msg']}")
            raise DecodeError(path, first['msg'], snippet=self._snippet(response), errors=errors) from e

    async def _make_request(self,
                            method: str,
                            endpoint: str,
                            response_type: Type[R] | Any = None,
                            params: QueryParams | None = None,
                            body: Any = None) -> R:
        """Make an HTTP request and decode the response.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint path, relative to the server URL.
            response_type: Type the 2xx body is decoded into. ``None`` skips decoding.
            params: Query parameters, in order. Duplicate keys are allowed.
            body: Request body (payload model, pydantic model or JSON-ready data).

        Returns:
            The decoded response, or ``None`` when ``response_type`` is ``None``.

        Raises:
            DarwinV7Exception: One of its subclasses on any failure.
        """
        response = await self._send(method, endpoint, params=params, body=body)
        if response_type is None:
            return None  # type: ignore[return-value]
        return self._validate(self._parse_json(response), response_type, response)

    async def _make_list_request(self,
                                 endpoint: str,
                                 item_type: Type[R],
                                 params: QueryParams | None = None,
                                 return_field: str | None = None) -> list[R]:
        """GET a listing, whatever envelope the server wraps it in."""
        response = await self._send('GET', endpoint, params=params)
        data = self._parse_json(response)
        items, prefix = self._convert_array_response(data, return_field=return_field)
        if not isinstance(items, list):
            raise DecodeError(format_error_path(prefix),
                              f"expected a list, got {type(items).__name__}",
                              snippet=self._snippet(response))
        return self._validate(items, list[item_type], response, prefix=prefix)

    async def _make_page_request(self,
                                 endpoint: str,
                                 item_type: Type[R],
                                 page: PageRequest | None = None,
                                 params: QueryParams | None = None) -> Page[R]:
        """Fetch exactly one page of a cursor-paginated listing.

        Following pages are never fetched automatically; use ``Page.next_request()``.
        """
        page = page or PageRequest()
        all_params: list[tuple[str, Any]] = []
        if params:
            all_params.extend(params.items() if isinstance(params, Mapping) else params)
        all_params.extend(page.as_params())
        return await self._make_request('GET', endpoint, response_type=Page[item_type], params=all_params)

    def _convert_array_response(self,
                                data: Any,
                                return_field: str | None = None) -> tuple[Any, tuple[str, ...]]:
        """Normalize array-like responses into a list when possible.

        Args:
            data: Parsed JSON response.
            return_field: Preferred top-level field to extract when present.

        Returns:
            The items and the path they were found at.
        """
        if isinstance(data, list) or not isinstance(data, dict):
            return data, ()
        for key in (return_field, 'data', 'items'):
            if key is not None and key in data:
                return data[key], (key,)
        return data, ()


class EntityBaseApi(BaseApi, Generic[T]):
    """Base API handler for entity-related endpoints.

    ``endpoint_base`` may contain a ``{team}`` placeholder, filled with the
    configured team slug on each call.

    Type Parameters:
        T: The entity type this API handler manages (must extend BaseEntity)
    """

    def __init__(self, config: ApiConfig,
                 entity_class: Type[T],
                 endpoint_base: str,
                 transport: TransportExecutor | None = None) -> None:
        """Initialize the entity API handler.

        Args:
            config: API configuration containing base URL, API key, etc.
            entity_class: The entity class this handler manages
            endpoint_base: Base endpoint path (e.g., 'datasets', 'v2/teams/{team}/items')
            transport: Optional transport executor shared with other handlers.
        """
        super().__init__(config, transport)
        self.entity_class = entity_class
        self.endpoint_base = endpoint_base.strip('/')

    def _endpoint(self, *parts: str | int, team_slug: str | None = None) -> str:
        base = self.endpoint_base
        if '{team}' in base:
            base = base.format(team=quote(team_slug or self.team_slug, safe=''))
        return '/'.join([base, *(quote(str(p), safe='') for p in parts)])

    async def get_by_id(self, entity_id: str | int) -> T:
        """Get a specific entity by its ID.

        Args:
            entity_id: Unique identifier for the entity.

        Returns:
            Entity instance.

        Raises:
            HttpStatusError: If the entity is not found (404) or the request fails.
        """
        return await self._make_request('GET', self._endpoint(entity_id), response_type=self.entity_class)

    async def _get_list(self,
                        params: QueryParams | None = None,
                        return_field: str | None = None) -> list[T]:
        return await self._make_list_request(self._endpoint(), self.entity_class,
                                             params=params, return_field=return_field)

    async def _create(self, payload: Any) -> T:
        return await self._make_request('POST', self._endpoint(), response_type=self.entity_class, body=payload)

    async def _update(self, entity_id: str | int, payload: Any) -> T:
        return await self._make_request('PUT', self._endpoint(entity_id), response_type=self.entity_class,
                                        body=payload)
