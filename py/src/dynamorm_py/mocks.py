"""Scripted stand-ins for the low-level DynamoDB client.

``FakeDynamoDBClient`` replays expectations in order: each call must name the
expected operation, and its request must contain (at least) the expected
fields. Mappings match as subsets, sequences match element by element and
``ANY`` matches anything.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

from botocore.exceptions import ClientError


class _AnySentinel:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _AnySentinel()

type RequestCheck = Mapping[str, Any] | Callable[[Mapping[str, Any]], None]


def assert_request_matches(expected: Any, actual: Any, *, path: str = "request") -> None:
    if expected is ANY:
        return
    if isinstance(expected, Mapping):
        _match_mapping(expected, actual, path)
    elif isinstance(expected, list):
        _match_sequence(expected, actual, path)
    elif expected != actual:
        raise AssertionError(f"{path}: expected {expected!r}, got {actual!r}")


def _match_mapping(expected: Mapping[str, Any], actual: Any, path: str) -> None:
    if not isinstance(actual, Mapping):
        raise AssertionError(f"{path}: expected dict, got {type(actual).__name__}")
    for name, value in expected.items():
        if name not in actual:
            raise AssertionError(f"{path}: missing key {name!r}")
        assert_request_matches(value, actual[name], path=f"{path}.{name}")


def _match_sequence(expected: list[Any], actual: Any, path: str) -> None:
    if not isinstance(actual, list):
        raise AssertionError(f"{path}: expected list, got {type(actual).__name__}")
    if len(expected) != len(actual):
        raise AssertionError(f"{path}: expected {len(expected)} items, got {len(actual)}")
    for i, (want, got) in enumerate(zip(expected, actual, strict=True)):
        assert_request_matches(want, got, path=f"{path}[{i}]")


def client_error(
    code: str,
    message: str = "",
    *,
    operation: str = "PutItem",
    cancellation_reasons: Sequence[str] | None = None,
) -> ClientError:
    """A ``ClientError`` shaped like the one botocore raises for ``code``.

    ``cancellation_reasons`` lists one code per transaction member ("None"
    for members that passed), as DynamoDB reports them for
    ``TransactionCanceledException``.
    """
    response: dict[str, Any] = {"Error": {"Code": code, "Message": message}}
    if cancellation_reasons is not None:
        response["CancellationReasons"] = [{"Code": rc} for rc in cancellation_reasons]
    return ClientError(response, operation)  # type: ignore[arg-type]


class RecordedCall(NamedTuple):
    method: str
    request: dict[str, Any]


@dataclass(frozen=True)
class ExpectedCall:
    method: str
    expected: RequestCheck | None = None
    response: Mapping[str, Any] | None = None
    error: Exception | None = None

    def answer(self, method: str, request: Mapping[str, Any]) -> dict[str, Any]:
        if method != self.method:
            raise AssertionError(f"expected {self.method}, got {method}")

        if callable(self.expected):
            self.expected(request)
        elif self.expected is not None:
            assert_request_matches(self.expected, request, path=method)

        if self.error is not None:
            raise self.error
        return dict(self.response or {})


class FakeDynamoDBClient:
    def __init__(self) -> None:
        self._pending: list[ExpectedCall] = []
        self.calls: list[RecordedCall] = []

    def expect(
        self,
        method: str,
        expected: RequestCheck | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._pending.append(ExpectedCall(method=method, expected=expected, response=response, error=error))

    def assert_no_pending(self) -> None:
        if self._pending:
            raise AssertionError(f"pending expected calls: {self._pending!r}")

    def methods_called(self) -> list[str]:
        return [call.method for call in self.calls]

    def requests(self, method: str) -> list[dict[str, Any]]:
        return [call.request for call in self.calls if call.method == method]

    def _dispatch(self, method: str, request: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(RecordedCall(method, dict(request)))
        if not self._pending:
            raise AssertionError(f"unexpected call: {method}")
        return self._pending.pop(0).answer(method, request)

    def get_item(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("get_item", kwargs)

    def put_item(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("put_item", kwargs)

    def transact_write_items(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("transact_write_items", kwargs)

    def create_table(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("create_table", kwargs)

    def describe_table(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("describe_table", kwargs)

    def delete_table(self, **kwargs: Any) -> dict[str, Any]:
        return self._dispatch("delete_table", kwargs)
