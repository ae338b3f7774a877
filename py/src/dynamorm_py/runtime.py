from __future__ import annotations

import functools
import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .aws_errors import error_code
from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwsCallMetric:
    service: str
    operation: str
    seconds: float
    ok: bool
    error_code: str | None = None


def create_boto3_config(
    *,
    connect_timeout: float = 1.0,
    read_timeout: float = 3.0,
    max_attempts: int = 3,
) -> Config:
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
    )


@dataclass(frozen=True)
class ClientSettings:
    """Where the DynamoDB client connects and how long it waits.

    ``from_env`` reads ``AWS_REGION`` (falling back to ``AWS_DEFAULT_REGION``),
    ``DYNAMODB_ENDPOINT`` for DynamoDB Local, and the optional
    ``DYNAMORM_CONNECT_TIMEOUT``, ``DYNAMORM_READ_TIMEOUT`` and
    ``DYNAMORM_MAX_ATTEMPTS`` overrides.
    """

    region: str | None = None
    endpoint_url: str | None = None
    connect_timeout: float = 1.0
    read_timeout: float = 3.0
    max_attempts: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> ClientSettings:
        defaults = cls()
        return cls(
            region=environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION") or None,
            endpoint_url=environ.get("DYNAMODB_ENDPOINT") or None,
            connect_timeout=_env_number(environ, "DYNAMORM_CONNECT_TIMEOUT", float, defaults.connect_timeout),
            read_timeout=_env_number(environ, "DYNAMORM_READ_TIMEOUT", float, defaults.read_timeout),
            max_attempts=_env_number(environ, "DYNAMORM_MAX_ATTEMPTS", int, defaults.max_attempts),
        )

    def boto3_config(self) -> Config:
        return create_boto3_config(
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            max_attempts=self.max_attempts,
        )


def _env_number[N: (int, float)](
    environ: Mapping[str, str], name: str, parse: Callable[[str], N], default: N
) -> N:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = parse(raw)
    except ValueError as err:
        raise ValidationError(f"{name} must be a number: {raw!r}") from err
    if value <= 0:
        raise ValidationError(f"{name} must be > 0: {raw!r}")
    return value


def _error_code(err: Exception) -> str:
    if isinstance(err, ClientError):
        return error_code(err) or "UnknownError"
    return type(err).__name__


class _InstrumentedClient:
    def __init__(self, client: Any, service: str, on_call: Callable[[AwsCallMetric], None]) -> None:
        self._client = client
        self._service = service
        self._on_call = on_call

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or not callable(attr):
            return attr
        return functools.partial(self._timed, name, attr)

    def _timed(self, operation: str, call: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any:
        start = time.monotonic()
        failure: str | None = None
        try:
            return call(*args, **kwargs)
        except Exception as err:
            failure = _error_code(err)
            raise
        finally:
            self._on_call(
                AwsCallMetric(
                    service=self._service,
                    operation=operation,
                    seconds=time.monotonic() - start,
                    ok=failure is None,
                    error_code=failure,
                )
            )


def instrument_boto3_client(
    client: Any,
    *,
    service: str,
    on_call: Callable[[AwsCallMetric], None],
) -> Any:
    return _InstrumentedClient(client, service, on_call)


type _ClientCacheKey = tuple[ClientSettings, Any, Callable[[AwsCallMetric], None] | None]

_clients: dict[_ClientCacheKey, Any] = {}


def get_dynamodb_client(
    settings: ClientSettings | None = None,
    *,
    session: Any | None = None,
    metrics: Callable[[AwsCallMetric], None] | None = None,
) -> Any:
    """Return a low-level DynamoDB client, cached per ``settings``.

    ``session`` and ``metrics`` are part of the cache key: asking for the
    same settings with a different session or metrics callback builds a
    separate client, so a callback is never dropped in favour of an earlier
    uninstrumented one.
    """
    resolved = settings or ClientSettings()
    cache_key: _ClientCacheKey = (resolved, session, metrics)
    existing = _clients.get(cache_key)
    if existing is not None:
        return existing

    sess = session or boto3.session.Session(region_name=resolved.region)
    client = cast(Any, sess).client(
        "dynamodb",
        region_name=resolved.region,
        endpoint_url=resolved.endpoint_url,
        config=resolved.boto3_config(),
    )
    if metrics is not None:
        client = instrument_boto3_client(client, service="dynamodb", on_call=metrics)

    logger.debug("created dynamodb client (region=%s, endpoint=%s)", resolved.region, resolved.endpoint_url)
    _clients[cache_key] = client
    return client


def dynamodb_client_from_env(
    environ: Mapping[str, str] = os.environ,
    *,
    session: Any | None = None,
    metrics: Callable[[AwsCallMetric], None] | None = None,
) -> Any:
    return get_dynamodb_client(ClientSettings.from_env(environ), session=session, metrics=metrics)


def _reset_clients_for_tests() -> None:
    _clients.clear()
