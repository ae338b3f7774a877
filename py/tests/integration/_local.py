from __future__ import annotations

import os
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import boto3
import pytest

from dynamorm_py.schema import delete_table, ensure_table

requires_dynamodb_local = pytest.mark.skipif(
    not os.environ.get("DYNAMODB_ENDPOINT"),
    reason="set DYNAMODB_ENDPOINT to run against DynamoDB Local",
)


def client() -> Any:
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


@contextmanager
def temporary_table(ddb: Any, prefix: str, key_schema: Mapping[str, str]) -> Iterator[str]:
    table_name = f"{prefix}_{uuid.uuid4().hex[:12]}"
    ensure_table(ddb, table_name, key_schema)
    try:
        yield table_name
    finally:
        delete_table(ddb, table_name, ignore_missing=True)
