"""Name and expression checks applied before anything reaches DynamoDB.

Failures raise ``SecurityValidationError`` whose message only carries the
failure type; the offending input stays in ``detail`` so it is never echoed
into logs by accident.
"""

from __future__ import annotations

import re

MaxAttributeNameLength = 255
MaxExpressionLength = 4096
MinTableNameLength = 3
MaxTableNameLength = 255


class SecurityValidationError(Exception):
    def __init__(self, *, type: str, detail: str) -> None:
        super().__init__(f"security validation failed: {type}")
        self.type = type
        self.detail = detail


_DANGEROUS = re.compile(
    r"""['";]|--|/\*|\*/|</?script|(?:eval|expression|import|require)\(""",
    re.IGNORECASE,
)
_STATEMENT_INJECTION = re.compile(
    r"union select|insert into|update set|delete from|drop table|alter table|exec(?:ute)? ",
    re.IGNORECASE,
)
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")

_ATTRIBUTE_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_-]*$")
_TABLE_NAME = re.compile(r"^[a-zA-Z0-9_.-]+$")


def validate_attribute_name(name: str) -> None:
    """Key and condition attribute names: top-level names only, no paths."""
    if not isinstance(name, str) or not name:
        raise SecurityValidationError(type="InvalidField", detail="attribute name cannot be empty")
    if len(name) > MaxAttributeNameLength:
        raise SecurityValidationError(type="InvalidField", detail="attribute name exceeds maximum length")
    if _DANGEROUS.search(name):
        raise SecurityValidationError(type="InjectionAttempt", detail="attribute name contains dangerous pattern")
    if _CONTROL_CHARACTERS.search(name):
        raise SecurityValidationError(type="InvalidField", detail="attribute name contains control characters")
    if _ATTRIBUTE_NAME.match(name) is None:
        raise SecurityValidationError(
            type="InvalidField",
            detail="attribute name must start with a letter or underscore and contain no path separators",
        )


def validate_expression(expression: str) -> None:
    if not expression:
        raise SecurityValidationError(type="InvalidExpression", detail="expression cannot be empty")
    if len(expression) > MaxExpressionLength:
        raise SecurityValidationError(type="InvalidExpression", detail="expression exceeds maximum length")
    if _DANGEROUS.search(expression) or _STATEMENT_INJECTION.search(expression):
        raise SecurityValidationError(type="InjectionAttempt", detail="expression contains dangerous pattern")


def validate_table_name(name: str) -> None:
    if not isinstance(name, str) or not MinTableNameLength <= len(name) <= MaxTableNameLength:
        raise SecurityValidationError(type="InvalidTableName", detail="table name length invalid")
    if _TABLE_NAME.match(name) is None:
        raise SecurityValidationError(type="InvalidTableName", detail="table name contains invalid characters")
    if _DANGEROUS.search(name):
        raise SecurityValidationError(type="InjectionAttempt", detail="table name contains dangerous pattern")
