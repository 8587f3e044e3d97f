import logging
from typing import Any, ClassVar
from pydantic import ConfigDict, BaseModel, model_validator

_LOGGER = logging.getLogger(__name__)


class BasePayload(BaseModel):
    """
    Base class for anything sent as a request body.

    ``to_payload`` returns the JSON-ready document the server expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire document.

        Raises:
            ValueError: If the object cannot be represented on the wire.
        """
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class BaseEntity(BasePayload):
    """
    Base class for all entities returned by the V7 API.

    Every field except the identity field must declare a default, so payloads from
    older or newer API versions that omit a field still decode. Explicit ``null``
    values are treated as absent. Unknown fields are kept on the instance.

    Subclasses list the fields the server accepts on create/update in
    ``writable_fields``; only those are serialized by :meth:`to_payload`.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    writable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode='before')
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode='json',
                               by_alias=True,
                               exclude_none=True,
                               include=set(self.writable_fields))

    def asdict(self) -> dict[str, Any]:
        """Convert the entity to a dictionary, including unknown fields."""
        return self.model_dump(mode='json', by_alias=True)

    def asjson(self) -> str:
        """Convert the entity to a JSON string, including unknown fields."""
        return self.model_dump_json(by_alias=True)

    def model_post_init(self, __context: Any) -> None:
        if self.__pydantic_extra__:
            _LOGGER.debug(f"Unknown fields found in {self.__class__.__name__} "
                          f"fields: {list(self.__pydantic_extra__.keys())}")
