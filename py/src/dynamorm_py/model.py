from __future__ import annotations

from collections.abc import Mapping
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, Protocol

_METADATA_KEY = "dynamorm"


class RecordDefinitionError(ValueError):
    pass


class AttributeConverter(Protocol):
    def to_dynamodb(self, value: Any) -> Any: ...

    def from_dynamodb(self, value: Any) -> Any: ...


@dataclass(frozen=True)
class FieldOptions:
    name: str | None = None
    omitempty: bool = False
    set: bool = False
    json: bool = False
    converter: AttributeConverter | None = None
    ignore: bool = False


@dataclass(frozen=True)
class AttributeDefinition:
    python_name: str
    attribute_name: str
    omitempty: bool
    set: bool
    json: bool
    converter: AttributeConverter | None = None


def dynamorm_field(
    *,
    name: str | None = None,
    omitempty: bool = False,
    set_: bool = False,
    json: bool = False,
    converter: AttributeConverter | None = None,
    ignore: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    """Declare how a dataclass field maps onto a stored attribute.

    ``name`` renames the attribute on the wire (``dynamorm_field(name="PK")``),
    ``omitempty`` drops empty values instead of writing them, ``set_`` stores
    a Python set as a DynamoDB set, ``json`` stores the value as a JSON string
    and ``ignore`` keeps the field out of the item entirely.
    """
    if default is not MISSING and default_factory is not MISSING:
        raise ValueError("dynamorm_field: cannot set both default and default_factory")

    options = FieldOptions(
        name=name,
        omitempty=omitempty,
        set=set_,
        json=json,
        converter=converter,
        ignore=ignore,
    )
    return field(default=default, default_factory=default_factory, metadata={_METADATA_KEY: options})


@dataclass(frozen=True)
class RecordDefinition[T]:
    """Attribute layout of a record dataclass, keyed by Python field name.

    Fields declared without ``dynamorm_field`` are stored under their own
    name with default options.
    """

    record_type: type[T]
    attributes: Mapping[str, AttributeDefinition]

    @classmethod
    def from_dataclass(cls, record_type: type[T]) -> RecordDefinition[T]:
        if not is_dataclass(record_type):
            raise RecordDefinitionError("record_type must be a dataclass")

        attributes: dict[str, AttributeDefinition] = {}
        owners: dict[str, str] = {}
        for dc_field in fields(record_type):
            options = dc_field.metadata.get(_METADATA_KEY) or FieldOptions()
            if options.ignore:
                continue

            attribute_name = dc_field.name if options.name is None else options.name
            if not attribute_name:
                raise RecordDefinitionError(f"empty attribute name for field: {dc_field.name}")
            if attribute_name in owners:
                raise RecordDefinitionError(
                    f"duplicate attribute name: {attribute_name} ({owners[attribute_name]}, {dc_field.name})"
                )
            owners[attribute_name] = dc_field.name

            attributes[dc_field.name] = AttributeDefinition(
                python_name=dc_field.name,
                attribute_name=attribute_name,
                omitempty=options.omitempty,
                set=options.set,
                json=options.json,
                converter=options.converter,
            )

        return cls(record_type=record_type, attributes=attributes)

    def attribute_name(self, python_name: str) -> str:
        definition = self.attributes.get(python_name)
        if definition is None:
            raise RecordDefinitionError(f"unknown field: {python_name}")
        return definition.attribute_name
