from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from decimal import Decimal, DecimalException
from typing import Any, cast, get_args, get_origin, get_type_hints

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .errors import DecodeError, SerializationError
from .model import AttributeDefinition, RecordDefinition, RecordDefinitionError


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if value is False:
        return True
    if value == 0:
        return True
    if isinstance(value, (str, bytes, bytearray)) and len(value) == 0:
        return True
    if isinstance(value, (list, dict, set, tuple)) and len(value) == 0:
        return True
    return False


def _coerce_value(value: Any, annotation: Any) -> Any:
    if value is None:
        return None

    if isinstance(value, Binary):
        value = value.value

    if annotation is int and isinstance(value, Decimal):
        return int(value)
    if annotation is float and isinstance(value, Decimal):
        return float(value)

    origin = get_origin(annotation)
    if origin is set and isinstance(value, set):
        (elem_type,) = get_args(annotation) or (Any,)
        return {_coerce_value(v, elem_type) for v in value}
    if origin is list and isinstance(value, list):
        (elem_type,) = get_args(annotation) or (Any,)
        return [_coerce_value(v, elem_type) for v in value]

    return value


def _type_hints(record_type: type[Any]) -> dict[str, Any]:
    try:
        return get_type_hints(record_type)
    except Exception:
        return dict(getattr(record_type, "__annotations__", {}))


class AttributeCodec:
    """Converts records to DynamoDB attribute maps and back.

    Records are either dataclasses (fields described with ``dynamorm_field``)
    or plain mappings of attribute name to Python value.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()
        self._definitions: dict[type[Any], RecordDefinition[Any]] = {}

    @property
    def serializer(self) -> TypeSerializer:
        return self._serializer

    def definition[T](self, record_type: type[T]) -> RecordDefinition[T]:
        existing = self._definitions.get(record_type)
        if existing is None:
            existing = RecordDefinition.from_dataclass(record_type)
            self._definitions[record_type] = existing
        return cast(RecordDefinition[T], existing)

    def encode(self, record: Any) -> dict[str, Any]:
        if record is None:
            raise SerializationError("record is required")

        try:
            if is_dataclass(record) and not isinstance(record, type):
                return self._encode_dataclass(record)
            if isinstance(record, Mapping):
                return {str(name): self._serializer.serialize(value) for name, value in record.items()}
        # Numbers beyond DynamoDB's 38 digits trip the serializer's decimal traps.
        except (TypeError, ValueError, DecimalException) as err:
            raise SerializationError(f"{type(record).__name__} cannot be serialized: {err!r}") from err

        raise SerializationError(f"unsupported record type: {type(record).__name__}")

    def decode[T](self, item: Mapping[str, Any], record_type: type[T]) -> T:
        try:
            definition = self.definition(record_type)
        except RecordDefinitionError as err:
            raise DecodeError(str(err)) from err

        hints = _type_hints(record_type)
        kwargs: dict[str, Any] = {}
        for dc_field in fields(cast(Any, record_type)):
            attr_def = definition.attributes.get(dc_field.name)
            if attr_def is None or attr_def.attribute_name not in item:
                continue

            try:
                raw = self._deserializer.deserialize(item[attr_def.attribute_name])
                if attr_def.json and isinstance(raw, str):
                    raw = json.loads(raw)
                if attr_def.converter is not None and raw is not None:
                    raw = attr_def.converter.from_dynamodb(raw)
            except (TypeError, ValueError) as err:
                raise DecodeError(f"{attr_def.attribute_name} cannot be decoded: {err}") from err

            kwargs[dc_field.name] = _coerce_value(raw, hints.get(dc_field.name, Any))

        try:
            return record_type(**kwargs)
        except TypeError as err:
            raise DecodeError(str(err)) from err

    def _encode_dataclass(self, record: Any) -> dict[str, Any]:
        definition = self.definition(type(record))
        out: dict[str, Any] = {}
        for field_name, attr_def in definition.attributes.items():
            value = getattr(record, field_name)
            if attr_def.omitempty and _is_empty(value):
                continue
            out[attr_def.attribute_name] = self._serialize_attr_value(attr_def, value)
        return out

    def _serialize_attr_value(self, attr_def: AttributeDefinition, value: Any) -> Any:
        if attr_def.converter is not None and value is not None:
            value = attr_def.converter.to_dynamodb(value)

        if attr_def.set and isinstance(value, set) and len(value) == 0:
            return self._serializer.serialize(None)

        if attr_def.json and value is not None:
            value = json.dumps(value, separators=(",", ":"), sort_keys=True)

        return self._serializer.serialize(value)
