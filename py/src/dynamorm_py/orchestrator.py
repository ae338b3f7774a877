from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from botocore.exceptions import ClientError

from .aws_errors import failed_members, map_client_error, map_transaction_error
from .codec import AttributeCodec
from .context import OperationContext
from .entity import Entity, HasRelated
from .errors import ConditionFailedError, ValidationError
from .writes import MaxTransactionMembers, WriteGroup, WriteRequest, assemble_put, entity_key

logger = logging.getLogger(__name__)


class Intent(StrEnum):
    CREATE = "create"
    UPDATE = "update"


class WriteOrchestrator:
    """Turns one root entity into a guarded write group and applies it.

    The root gets a guard derived from its key unless it brings its own.
    Related entities are written exactly as they describe themselves, in the
    order they are returned, in the same transaction as the root.
    """

    def __init__(self, *, client: Any, table_name: str, codec: AttributeCodec | None = None) -> None:
        if client is None:
            raise ValueError("client is required")
        if not table_name:
            raise ValueError("table_name is required")

        self._client = client
        self._table_name = table_name
        self._codec = codec or AttributeCodec()

    def plan(self, entity: Entity, intent: Intent) -> WriteGroup:
        key = entity_key(entity)

        root = assemble_put(entity, table_name=self._table_name, codec=self._codec)
        if root.condition is None:
            guard = key.guard_for_create() if intent is Intent.CREATE else key.guard_for_update()
            root = root.with_condition(guard)

        requests: list[WriteRequest] = [root]
        if isinstance(entity, HasRelated):
            # Only one hop: related entities are never asked for their own relations.
            for related in entity.related_entities() or ():
                requests.append(assemble_put(related, table_name=self._table_name, codec=self._codec))

        if len(requests) > MaxTransactionMembers:
            raise ValidationError(f"a transaction supports at most {MaxTransactionMembers} items")

        seen: set[tuple[str, Any]] = set()
        for req in requests:
            ident = (req.table_name, req.key)
            if ident in seen:
                raise ValidationError(f"write group touches the same item twice: {dict(req.key)!r}")
            seen.add(ident)

        group = WriteGroup(requests=tuple(requests))
        logger.debug(
            "planned %s on %s: %d write(s), key attributes %s",
            intent.value,
            self._table_name,
            len(group),
            list(key.names),
        )
        return group

    def execute(self, group: WriteGroup, *, ctx: OperationContext | None = None) -> None:
        serializer = self._codec.serializer

        if not group.is_transactional:
            req = group.root.to_put_item(serializer)
            if ctx is not None:
                ctx.check("PutItem")
            try:
                self._client.put_item(**req)
            except ClientError as err:
                mapped = map_client_error(err)
                if isinstance(mapped, ConditionFailedError):
                    logger.warning("conditional put rejected on %s", self._table_name)
                raise mapped from err
            return

        transact_items = [req.to_transact_item(serializer) for req in group]
        if ctx is not None:
            ctx.check("TransactWriteItems")
        try:
            self._client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            mapped = map_transaction_error(err)
            reason_codes = getattr(mapped, "reason_codes", ())
            logger.warning(
                "transaction of %d write(s) rejected on %s: failed members %s",
                len(group),
                self._table_name,
                list(failed_members(reason_codes)),
            )
            raise mapped from err

    def write(self, entity: Entity, intent: Intent, *, ctx: OperationContext | None = None) -> None:
        self.execute(self.plan(entity, intent), ctx=ctx)
