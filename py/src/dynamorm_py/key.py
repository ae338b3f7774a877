from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from decimal import Decimal, DecimalException
from typing import Any

from boto3.dynamodb.conditions import Attr
from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .condition import Condition, all_of
from .errors import DecodeError, MissingKeyError, SerializationError, ValidationError
from .validation import SecurityValidationError, validate_attribute_name

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _check_scalar(name: str, value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal, bytes, bytearray)):
        raise ValidationError(f"key attribute {name} must be a string, number or binary value")
    if isinstance(value, (str, bytes, bytearray)) and len(value) == 0:
        raise ValidationError(f"key attribute {name} cannot be empty")
    if isinstance(value, bytearray):
        return bytes(value)
    return value


class Key(Mapping[str, Any]):
    """The attributes that uniquely identify one item.

    Keys keep the order their attributes were given in; that order is the
    order predicates appear in derived guards. Equality ignores order.
    """

    __slots__ = ("_attrs",)

    def __init__(self, attributes: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        attrs: dict[str, Any] = {}
        for name, value in [*(attributes or {}).items(), *kwargs.items()]:
            try:
                validate_attribute_name(name)
            except SecurityValidationError as err:
                raise ValidationError(f"invalid key attribute name {name!r}: {err.detail}") from err
            attrs[name] = _check_scalar(name, value)
        self._attrs = attrs

    def __getitem__(self, name: str) -> Any:
        return self._attrs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attrs)

    def __len__(self) -> int:
        return len(self._attrs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return self._attrs == dict(other.items())

    def __hash__(self) -> int:
        return hash(frozenset(self._attrs.items()))

    def __repr__(self) -> str:
        return f"Key({self._attrs!r})"

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._attrs)

    def require(self) -> Key:
        if not self._attrs:
            raise MissingKeyError("key is required")
        return self

    def guard_for_create(self) -> Condition:
        self.require()
        return Condition.build(all_of([Attr(name).not_exists() for name in self._attrs]))

    def guard_for_update(self) -> Condition:
        self.require()
        return Condition.build(all_of([Attr(name).exists() for name in self._attrs]))

    def to_attribute_map(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name, value in self._attrs.items():
            try:
                out[name] = _serializer.serialize(value)
            except (TypeError, ValueError, DecimalException) as err:
                raise SerializationError(f"key attribute {name} cannot be serialized: {err!r}") from err
        return out

    @classmethod
    def from_attribute_map(cls, item: Mapping[str, Any], names: Sequence[str]) -> Key:
        attrs: dict[str, Any] = {}
        for name in names:
            if name not in item:
                raise DecodeError(f"item is missing key attribute: {name}")
            try:
                value = _deserializer.deserialize(item[name])
            except (TypeError, ValueError) as err:
                raise DecodeError(f"key attribute {name} cannot be decoded: {err}") from err
            if isinstance(value, Binary):
                value = value.value
            attrs[name] = value
        return cls(attrs)
