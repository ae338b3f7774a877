from __future__ import annotations

import json
import logging
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .codec import AttributeCodec
from .condition import Condition, all_of
from .context import OperationContext
from .entity import ConditionHolder, Entity, HasRelated, Modeler, record_modeler
from .errors import (
    AwsError,
    ConditionFailedError,
    DeadlineExceededError,
    DecodeError,
    DynamormPyError,
    ImmutableFieldChangedError,
    IncompatibleRecordError,
    MissingKeyError,
    NotFoundError,
    OperationCanceledError,
    SerializationError,
    TransactionCanceledError,
    ValidationError,
)
from .key import Key
from .model import AttributeConverter, RecordDefinition, RecordDefinitionError, dynamorm_field
from .orchestrator import Intent, WriteOrchestrator
from .relations import DependentState, classify_dependent, dependent_guard, guard_owned_by, guard_unclaimed
from .repository import Repository, RepositoryBuilder
from .writes import WriteGroup, WriteRequest, assemble_put

if TYPE_CHECKING:
    from .runtime import (
        AwsCallMetric,
        ClientSettings,
        create_boto3_config,
        dynamodb_client_from_env,
        get_dynamodb_client,
        instrument_boto3_client,
    )
    from .schema import TableSpec, build_create_table_request, delete_table, ensure_table

logging.getLogger(__name__).addHandler(logging.NullHandler())


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except Exception:
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name in {
        "AwsCallMetric",
        "ClientSettings",
        "create_boto3_config",
        "dynamodb_client_from_env",
        "get_dynamodb_client",
        "instrument_boto3_client",
    }:
        from . import runtime

        return getattr(runtime, name)
    if name in {"TableSpec", "build_create_table_request", "delete_table", "ensure_table"}:
        from . import schema

        return getattr(schema, name)
    raise AttributeError(name)


__all__ = [
    "all_of",
    "assemble_put",
    "AttributeCodec",
    "AttributeConverter",
    "AwsCallMetric",
    "AwsError",
    "build_create_table_request",
    "classify_dependent",
    "ClientSettings",
    "Condition",
    "ConditionFailedError",
    "ConditionHolder",
    "create_boto3_config",
    "DeadlineExceededError",
    "DecodeError",
    "delete_table",
    "dependent_guard",
    "DependentState",
    "dynamodb_client_from_env",
    "dynamorm_field",
    "DynamormPyError",
    "ensure_table",
    "Entity",
    "get_dynamodb_client",
    "guard_owned_by",
    "guard_unclaimed",
    "HasRelated",
    "ImmutableFieldChangedError",
    "IncompatibleRecordError",
    "instrument_boto3_client",
    "Intent",
    "Key",
    "MissingKeyError",
    "Modeler",
    "NotFoundError",
    "OperationCanceledError",
    "OperationContext",
    "record_modeler",
    "RecordDefinition",
    "RecordDefinitionError",
    "Repository",
    "RepositoryBuilder",
    "SerializationError",
    "TableSpec",
    "TransactionCanceledError",
    "ValidationError",
    "WriteGroup",
    "WriteOrchestrator",
    "WriteRequest",
    "__repo_version__",
    "__version__",
]
