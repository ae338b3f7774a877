from __future__ import annotations

from collections.abc import Callable

from botocore.exceptions import ClientError

from .errors import (
    AwsError,
    ConditionFailedError,
    DynamormPyError,
    NotFoundError,
    TransactionCanceledError,
    ValidationError,
)

_BY_CODE: dict[str, Callable[[str], DynamormPyError]] = {
    "ConditionalCheckFailedException": lambda message: ConditionFailedError(message or "conditional check failed"),
    "ValidationException": ValidationError,
    "ResourceNotFoundException": NotFoundError,
}


def error_code(err: ClientError) -> str:
    return str(err.response.get("Error", {}).get("Code", ""))


def _message(err: ClientError) -> str:
    return str(err.response.get("Error", {}).get("Message", ""))


def map_client_error(err: ClientError) -> DynamormPyError:
    code, message = error_code(err), _message(err)
    build = _BY_CODE.get(code)
    if build is not None:
        return build(message)
    return AwsError(code=code or "UnknownError", message=message or str(err))


def cancellation_reasons(err: ClientError) -> tuple[str, ...]:
    """One reason code per transaction member, "None" where the member passed."""
    return tuple(
        str(reason.get("Code") or "None")
        for reason in err.response.get("CancellationReasons") or []
        if isinstance(reason, dict)
    )


def map_transaction_error(err: ClientError) -> DynamormPyError:
    if error_code(err) != "TransactionCanceledException":
        return map_client_error(err)

    message = _message(err)
    reason_codes = cancellation_reasons(err)
    if "ConditionalCheckFailed" in reason_codes or "ConditionalCheckFailed" in message:
        return ConditionFailedError(
            message or "transaction canceled: ConditionalCheckFailed",
            reason_codes=reason_codes,
        )
    return TransactionCanceledError(message=message or "transaction canceled", reason_codes=reason_codes)


def failed_members(reason_codes: tuple[str, ...]) -> tuple[int, ...]:
    return tuple(i for i, rc in enumerate(reason_codes) if rc not in {"None", ""})
