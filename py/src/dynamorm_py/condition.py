from __future__ import annotations

import functools
import operator
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import DecimalException
from typing import Any

from boto3.dynamodb.conditions import ConditionBase, ConditionExpressionBuilder
from boto3.dynamodb.types import TypeSerializer

from .errors import SerializationError, ValidationError
from .validation import SecurityValidationError, validate_expression


@dataclass(frozen=True)
class Condition:
    """A guard evaluated by DynamoDB against the stored item before a write.

    ``values`` holds plain Python values; they are serialized to the wire
    shape only when a request is built, so one ``Condition`` can be attached
    to any number of requests.
    """

    expression: str
    names: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            validate_expression(self.expression)
        except SecurityValidationError as err:
            raise ValidationError(f"invalid condition expression: {err.detail}") from err

        for ref in self.names:
            if not ref.startswith("#"):
                raise ValidationError(f"expression attribute name must start with '#': {ref}")
        for ref in self.values:
            if not ref.startswith(":"):
                raise ValidationError(f"expression attribute value must start with ':': {ref}")

    @classmethod
    def build(cls, condition: ConditionBase) -> Condition:
        # A fresh builder per condition keeps placeholders numbered from zero.
        built = ConditionExpressionBuilder().build_expression(condition)
        return cls(
            expression=built.condition_expression,
            names=dict(built.attribute_name_placeholders),
            values=dict(built.attribute_value_placeholders),
        )

    def request_fields(self, serializer: TypeSerializer) -> dict[str, Any]:
        req: dict[str, Any] = {"ConditionExpression": self.expression}
        if self.names:
            req["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            try:
                req["ExpressionAttributeValues"] = {k: serializer.serialize(v) for k, v in self.values.items()}
            except (TypeError, ValueError, DecimalException) as err:
                raise SerializationError(f"condition value cannot be serialized: {err!r}") from err
        return req


def all_of(conditions: Sequence[ConditionBase]) -> ConditionBase:
    if not conditions:
        raise ValueError("at least one condition is required")
    if len(conditions) == 1:
        return conditions[0]
    return functools.reduce(operator.and_, conditions)
