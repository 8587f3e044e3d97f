"""Exceptions raised by the darwinv7 client.

Every public operation either returns a model value or raises one of the
exceptions below. They all derive from :class:`DarwinV7Exception`, so
``except DarwinV7Exception`` handles any client failure.
"""
import asyncio
from typing import Any


class DarwinV7Exception(Exception):
    """
    Base class for exceptions in this package.
    """
    pass


class TransportError(DarwinV7Exception):
    """The request never produced an HTTP response (connection, TLS, timeout, cancellation).

    Attributes:
        cause: Description of the underlying failure.
        timeout: Whether the failure was a timeout.
    """

    cancelled = False

    def __init__(self, message: str, cause: BaseException | str | None = None, timeout: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.cause = str(cause) if cause is not None else None
        self.timeout = timeout

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class TransportCancelledError(TransportError, asyncio.CancelledError):
    """The in-flight network wait was cancelled by the caller.

    It is also an :class:`asyncio.CancelledError`, so task cancellation keeps working.
    """

    cancelled = True


class HttpStatusError(DarwinV7Exception):
    """The server answered with a non-2xx status.

    Attributes:
        status: HTTP status code.
        body: Response body decoded as UTF-8 text (undecodable bytes replaced).
        raw: Response body exactly as received.
        method: HTTP method of the request.
        url: Requested URL.
    """

    def __init__(self, status: int, body: str, method: str = '', url: str = '',
                 raw: bytes | None = None) -> None:
        self.status = status
        self.body = body
        self.raw = raw if raw is not None else body.encode('utf-8')
        self.method = method
        self.url = url
        super().__init__(f"HTTP Error: {status} - {body}")

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429


class DecodeError(DarwinV7Exception):
    """A 2xx response body did not match the expected model.

    Attributes:
        path: Wire path of the first failing field, e.g. ``stages[1].id``. ``.`` is the document root.
        snippet: Beginning of the raw response body.
        errors: Every validation error reported for the body.
    """

    def __init__(self, path: str, message: str, snippet: str = '', errors: list[dict[str, Any]] | None = None) -> None:
        self.path = path
        self.snippet = snippet
        self.errors = errors or []
        super().__init__(f"Unable to decode response at '{path}': {message}")


class EncodeError(DarwinV7Exception):
    """A request body could not be serialized."""


class ConfigError(DarwinV7Exception):
    """Invalid client configuration (base URL, API key, team, transport)."""
