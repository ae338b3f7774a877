from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from botocore.exceptions import ClientError

from .aws_errors import map_client_error
from .codec import AttributeCodec
from .context import OperationContext
from .entity import Entity, Modeler
from .errors import NotFoundError, ValidationError
from .key import Key
from .orchestrator import Intent, WriteOrchestrator
from .validation import SecurityValidationError, validate_table_name

logger = logging.getLogger(__name__)


class Repository[T: Entity]:
    """Typed get / create / update for one entity type in one table.

    ``create`` guards the root item with "key attributes do not exist",
    ``update`` with "key attributes exist", unless the entity brings its own
    guard. Entities exposing ``related_entities()`` are written together with
    their related items in a single transaction.
    """

    def __init__(
        self,
        *,
        client: Any,
        table_name: str,
        modeler: Modeler[T],
        codec: AttributeCodec | None = None,
    ) -> None:
        if client is None:
            raise ValueError("client is required")
        if modeler is None:
            raise ValueError("modeler is required")
        try:
            validate_table_name(table_name)
        except SecurityValidationError as err:
            raise ValidationError(f"invalid table name: {err.detail}") from err

        self._client = client
        self._table_name = table_name
        self._modeler = modeler
        self._writer = WriteOrchestrator(client=client, table_name=table_name, codec=codec)

    @property
    def table_name(self) -> str:
        return self._table_name

    def get(
        self,
        key: Key | Mapping[str, Any],
        *,
        consistent_read: bool = False,
        ctx: OperationContext | None = None,
    ) -> T:
        if not isinstance(key, Key):
            key = Key(key)
        key.require()

        req: dict[str, Any] = {
            "TableName": self._table_name,
            "Key": key.to_attribute_map(),
            "ConsistentRead": consistent_read,
        }
        if ctx is not None:
            ctx.check("GetItem")
        try:
            resp = self._client.get_item(**req)
        except ClientError as err:
            raise map_client_error(err) from err

        item = resp.get("Item")
        if not item:
            logger.debug("no item in %s for key attributes %s", self._table_name, list(key.names))
            raise NotFoundError("item not found")
        return self._modeler(item)

    def create(self, entity: T, *, ctx: OperationContext | None = None) -> None:
        self._writer.write(entity, Intent.CREATE, ctx=ctx)

    def update(self, entity: T, *, ctx: OperationContext | None = None) -> None:
        self._writer.write(entity, Intent.UPDATE, ctx=ctx)


class RepositoryBuilder[T: Entity]:
    def __init__(self) -> None:
        self._client: Any | None = None
        self._table_name: str | None = None
        self._modeler: Modeler[T] | None = None
        self._codec: AttributeCodec | None = None

    def with_client(self, client: Any) -> RepositoryBuilder[T]:
        self._client = client
        return self

    def with_table_name(self, table_name: str) -> RepositoryBuilder[T]:
        self._table_name = table_name
        return self

    def with_modeler(self, modeler: Modeler[T]) -> RepositoryBuilder[T]:
        self._modeler = modeler
        return self

    def with_codec(self, codec: AttributeCodec) -> RepositoryBuilder[T]:
        self._codec = codec
        return self

    def build(self) -> Repository[T]:
        if not self._table_name:
            raise ValidationError("table_name is required")
        if self._modeler is None:
            raise ValidationError("modeler is required")

        client = self._client
        if client is None:
            from .runtime import dynamodb_client_from_env

            client = dynamodb_client_from_env()

        return Repository(
            client=client,
            table_name=self._table_name,
            modeler=self._modeler,
            codec=self._codec,
        )
