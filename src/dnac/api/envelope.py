"""Decoding of the controller's `{"response": ...}` envelope.

Most controller endpoints wrap their payload as `{"response": <value>}`,
where `<value>` is either one object or an array of objects, with nothing
on the wire saying which. The decode is explicit and structural: try the
array shape first, then the single-object shape.

    >>> decode_envelope({"response": [{"id": 1}, {"id": 2}]}).items
    [{'id': 1}, {'id': 2}]
    >>> decode_envelope({"response": {"id": 1}}).items
    [{'id': 1}]
"""
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from .exceptions import ResponseDecodeError

T = TypeVar("T")


@dataclass(frozen=True)
class Single(Generic[T]):
    """Envelope held exactly one object."""
    item: T

    @property
    def items(self) -> list[T]:
        return [self.item]


@dataclass(frozen=True)
class Many(Generic[T]):
    """Envelope held an array (possibly empty)."""
    values: list[T]

    @property
    def items(self) -> list[T]:
        return list(self.values)


OneOrMany = Union[Single[T], Many[T]]


def decode_envelope(
    payload: Any,
    parser: Optional[Callable[[Any], T]] = None,
) -> OneOrMany:
    """Decode `{"response": <value>}` into Single or Many.

    Args:
        payload: Parsed JSON body
        parser: Optional function applied to every raw item

    Returns:
        Many if the value is an array, Single if it is an object

    Raises:
        ResponseDecodeError: If there is no "response" field, the value is
            neither an array nor an object, or the parser rejects an item
    """
    if not isinstance(payload, Mapping) or "response" not in payload:
        raise ResponseDecodeError("Response body has no 'response' field")

    value = payload["response"]
    convert = parser or (lambda raw: raw)

    try:
        if isinstance(value, list):
            return Many([convert(raw) for raw in value])
        if isinstance(value, Mapping):
            return Single(convert(value))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ResponseDecodeError(f"Cannot decode response item: {e}", cause=e)

    raise ResponseDecodeError(
        f"'response' is neither an object nor an array: {type(value).__name__}"
    )


__all__ = ["Many", "OneOrMany", "Single", "decode_envelope"]
