from __future__ import annotations

import threading
import time
from collections.abc import Callable

from .errors import DeadlineExceededError, OperationCanceledError


class OperationContext:
    """Caller-owned cancellation and deadline token for repository calls.

    The repository checks the context right before it calls DynamoDB. A
    call that is already in flight is bounded by the client's own timeouts
    (see ``runtime.create_boto3_config``), not by the context.
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        self._now = now or time.monotonic
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float, *, now: Callable[[], float] | None = None) -> OperationContext:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        clock = now or time.monotonic
        return cls(deadline=clock() + seconds, now=clock)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._now())

    def check(self, operation: str) -> None:
        if self._cancelled.is_set():
            raise OperationCanceledError(f"{operation}: canceled")
        if self._deadline is not None and self._now() >= self._deadline:
            raise DeadlineExceededError(f"{operation}: deadline exceeded")
