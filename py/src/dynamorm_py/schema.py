"""Table setup for examples and DynamoDB Local tests.

Repositories never create or describe tables; this module only exists so a
test or a script can stand one up with the key layout a repository expects.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from botocore.exceptions import ClientError

from .aws_errors import error_code, map_client_error
from .errors import ValidationError
from .validation import SecurityValidationError, validate_attribute_name, validate_table_name

logger = logging.getLogger(__name__)

type BillingMode = Literal["PAY_PER_REQUEST", "PROVISIONED"]

_KEY_TYPES = ("HASH", "RANGE")


@dataclass(frozen=True)
class TableSpec:
    """A table keyed by a partition key and an optional sort key.

    ``key_schema`` maps attribute names to their scalar type (S, N or B), in
    order: partition key first.
    """

    table_name: str
    key_schema: Mapping[str, str]
    billing_mode: BillingMode = "PAY_PER_REQUEST"
    provisioned_throughput: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ValidationError("table_name is required")
        try:
            validate_table_name(self.table_name)
            for name in self.key_schema:
                validate_attribute_name(name)
        except SecurityValidationError as err:
            raise ValidationError(err.detail) from err

        if not 1 <= len(self.key_schema) <= len(_KEY_TYPES):
            raise ValidationError("key_schema must define a partition key and at most one sort key")
        for name, scalar_type in self.key_schema.items():
            if scalar_type not in {"S", "N", "B"}:
                raise ValidationError(f"key attribute must be S/N/B: {name} (got {scalar_type})")
        if self.billing_mode == "PROVISIONED" and not self.provisioned_throughput:
            raise ValidationError("provisioned_throughput is required for PROVISIONED billing")

    def create_request(self) -> dict[str, Any]:
        req: dict[str, Any] = {
            "TableName": self.table_name,
            "KeySchema": [
                {"AttributeName": name, "KeyType": key_type}
                for name, key_type in zip(self.key_schema, _KEY_TYPES, strict=False)
            ],
            "AttributeDefinitions": [
                {"AttributeName": name, "AttributeType": scalar_type}
                for name, scalar_type in self.key_schema.items()
            ],
            "BillingMode": self.billing_mode,
        }
        if self.billing_mode == "PROVISIONED":
            req["ProvisionedThroughput"] = {
                "ReadCapacityUnits": int(self.provisioned_throughput["ReadCapacityUnits"]),
                "WriteCapacityUnits": int(self.provisioned_throughput["WriteCapacityUnits"]),
            }
        return req


def build_create_table_request(
    table_name: str,
    key_schema: Mapping[str, str],
    *,
    billing_mode: BillingMode = "PAY_PER_REQUEST",
    provisioned_throughput: Mapping[str, int] | None = None,
) -> dict[str, Any]:
    return TableSpec(table_name, key_schema, billing_mode, provisioned_throughput or {}).create_request()


def ensure_table(
    client: Any,
    table_name: str,
    key_schema: Mapping[str, str],
    *,
    billing_mode: BillingMode = "PAY_PER_REQUEST",
    provisioned_throughput: Mapping[str, int] | None = None,
    wait_timeout_seconds: float = 300.0,
    poll_interval_seconds: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
    now: Callable[[], float] = time.monotonic,
) -> None:
    """Create the table unless it already exists, then wait for ACTIVE."""
    spec = TableSpec(table_name, key_schema, billing_mode, provisioned_throughput or {})

    try:
        client.create_table(**spec.create_request())
    except ClientError as err:
        if error_code(err) != "ResourceInUseException":
            raise map_client_error(err) from err
        logger.debug("table %s already exists", table_name)

    deadline = now() + wait_timeout_seconds
    while now() < deadline:
        if _table_status(client, table_name) == "ACTIVE":
            return
        sleep(poll_interval_seconds)

    raise ValidationError(f"timed out waiting for table ACTIVE: {table_name}")


def delete_table(client: Any, table_name: str, *, ignore_missing: bool = False) -> None:
    try:
        client.delete_table(TableName=table_name)
    except ClientError as err:
        if ignore_missing and error_code(err) == "ResourceNotFoundException":
            return
        raise map_client_error(err) from err


def _table_status(client: Any, table_name: str) -> str:
    try:
        resp = client.describe_table(TableName=table_name)
    except ClientError as err:
        # Freshly created tables can briefly be invisible to DescribeTable.
        if error_code(err) == "ResourceNotFoundException":
            return ""
        raise map_client_error(err) from err
    return str(resp.get("Table", {}).get("TableStatus", ""))
