"""Transport executors: the only code that talks to the network.

An executor sends one request and hands back the raw status and body. It does
not retry and does not look at status codes; that is the job of
:class:`darwinv7.api.base_api.BaseApi`.
"""
import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

import aiohttp
import httpx

from darwinv7.exceptions import ConfigError, TransportError

_LOGGER = logging.getLogger(__name__)

TransportBackend = Literal['httpx', 'aiohttp']
TRANSPORT_BACKENDS: tuple[str, ...] = ('httpx', 'aiohttp')


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and undecoded body of an HTTP exchange."""
    status: int
    body: bytes = b''
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')


@runtime_checkable
class TransportExecutor(Protocol):
    """Minimal interface the request pipeline needs from a network stack."""

    async def send(self,
                   method: str,
                   url: str,
                   headers: Mapping[str, str],
                   body: bytes | None = None) -> RawResponse:
        """Send one request.

        Raises:
            TransportError: If no HTTP response was received.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying connections."""
        ...


class HttpxTransport:
    """Executor backed by :class:`httpx.AsyncClient`."""

    def __init__(self,
                 timeout: float = 30.0,
                 verify_ssl: bool = True,
                 client: httpx.AsyncClient | None = None) -> None:
        self.client = client or httpx.AsyncClient(timeout=timeout, verify=verify_ssl)

    async def send(self,
                   method: str,
                   url: str,
                   headers: Mapping[str, str],
                   body: bytes | None = None) -> RawResponse:
        try:
            response = await self.client.request(method, url, headers=dict(headers), content=body)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out for {method} {url}", cause=e, timeout=True) from e
        except httpx.RequestError as e:
            raise TransportError(f"Request error for {method} {url}", cause=e) from e
        return RawResponse(status=response.status_code,
                           body=response.content,
                           headers=dict(response.headers))

    async def aclose(self) -> None:
        await self.client.aclose()


class AiohttpTransport:
    """Executor backed by :class:`aiohttp.ClientSession`.

    The session is opened on the first request, since aiohttp needs a running loop.
    """

    def __init__(self,
                 timeout: float = 30.0,
                 verify_ssl: bool = True,
                 session: aiohttp.ClientSession | None = None) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_ssl = verify_ssl
        self.session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
            self.session = aiohttp.ClientSession(timeout=self.timeout, connector=connector)
        return self.session

    async def send(self,
                   method: str,
                   url: str,
                   headers: Mapping[str, str],
                   body: bytes | None = None) -> RawResponse:
        session = self._get_session()
        try:
            async with session.request(method, url, headers=dict(headers), data=body) as response:
                content = await response.read()
                return RawResponse(status=response.status,
                                   body=content,
                                   headers=dict(response.headers))
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timed out for {method} {url}", cause=e, timeout=True) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request error for {method} {url}", cause=e) from e

    async def aclose(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()


def create_transport(backend: str = 'httpx',
                     timeout: float = 30.0,
                     verify_ssl: bool = True) -> TransportExecutor:
    """Build the executor for a backend name.

    Args:
        backend: One of ``'httpx'`` or ``'aiohttp'``.
        timeout: Total request timeout in seconds.
        verify_ssl: Whether TLS certificates are verified.

    Raises:
        ConfigError: If the backend is not supported.
    """
    _LOGGER.debug(f"Creating '{backend}' transport (timeout={timeout}, verify_ssl={verify_ssl})")
    if backend == 'httpx':
        return HttpxTransport(timeout=timeout, verify_ssl=verify_ssl)
    if backend == 'aiohttp':
        return AiohttpTransport(timeout=timeout, verify_ssl=verify_ssl)
    raise ConfigError(f"Unsupported transport '{backend}'. Choose one of: {', '.join(TRANSPORT_BACKENDS)}")
