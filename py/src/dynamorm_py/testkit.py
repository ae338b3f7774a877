from __future__ import annotations

from collections.abc import Callable

from .mocks import ANY, FakeDynamoDBClient, client_error


def manual_clock(start: float = 0.0) -> tuple[Callable[[], float], Callable[[float], None]]:
    """A monotonic clock for ``OperationContext`` tests: ``(now, advance)``."""
    current = [start]

    def now() -> float:
        return current[0]

    def advance(seconds: float) -> None:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        current[0] += seconds

    return now, advance


def no_sleep(_: float) -> None:
    return None


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "client_error",
    "manual_clock",
    "no_sleep",
]
