from __future__ import annotations

from typing import Any


class DynamormPyError(Exception):
    pass


class MissingKeyError(DynamormPyError):
    pass


class IncompatibleRecordError(DynamormPyError):
    def __init__(self, *, expected: str, actual: Any) -> None:
        super().__init__(f"modeler does not support this item (expected {expected!r}, got {actual!r})")
        self.expected = expected
        self.actual = actual


class SerializationError(DynamormPyError):
    pass


class DecodeError(SerializationError):
    pass


class ImmutableFieldChangedError(DynamormPyError):
    def __init__(self, *, field: str, loaded: Any, saving: Any) -> None:
        super().__init__(f"{field} cannot be changed once set")
        self.field = field
        self.loaded = loaded
        self.saving = saving


class ConditionFailedError(DynamormPyError):
    def __init__(self, message: str = "condition failed", *, reason_codes: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.reason_codes = reason_codes


class NotFoundError(DynamormPyError):
    pass


class ValidationError(DynamormPyError):
    pass


class TransactionCanceledError(DynamormPyError):
    def __init__(self, *, message: str, reason_codes: tuple[str, ...]) -> None:
        super().__init__(message)
        self.reason_codes = reason_codes


class OperationCanceledError(DynamormPyError):
    pass


class DeadlineExceededError(OperationCanceledError):
    pass


class AwsError(DynamormPyError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
