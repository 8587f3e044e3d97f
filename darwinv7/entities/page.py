from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, model_validator

T = TypeVar('T')


@dataclass(frozen=True)
class PageRequest:
    """Which page to fetch from a cursor-paginated endpoint.

    Attributes:
        size: Maximum number of entries in the page. ``None`` lets the server decide.
        cursor: Opaque ``next`` token of the previous page. ``None`` requests the first page.
    """
    size: int | None = None
    cursor: str | None = None

    def as_params(self) -> list[tuple[str, Any]]:
        params: list[tuple[str, Any]] = []
        if self.size is not None:
            params.append(('page[size]', self.size))
        if self.cursor is not None:
            params.append(('page[from]', self.cursor))
        return params


class Page(BaseModel, Generic[T]):
    """One page of a listing.

    The server nests the cursor under ``page`` (``{"items": [...], "page": {"next": ...}}``);
    a top-level ``next`` is accepted too. ``next`` is ``None`` on the last page and
    must be treated as an opaque string.
    """

    items: list[T] = []
    next: str | None = None
    previous: str | None = None
    count: int | None = None

    @model_validator(mode='before')
    @classmethod
    def _flatten_page_info(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get('page'), dict):
            data = dict(data)
            page_info = data.pop('page')
            for key in ('next', 'previous', 'count'):
                data.setdefault(key, page_info.get(key))
        if isinstance(data, dict) and data.get('items') is None:
            data = {**data, 'items': []}
        return data

    @property
    def has_next(self) -> bool:
        return self.next is not None

    def next_request(self, size: int | None = None) -> PageRequest | None:
        """The request for the following page, or ``None`` when this is the last one."""
        if self.next is None:
            return None
        return PageRequest(size=size, cursor=self.next)

    def __len__(self) -> int:
        return len(self.items)
