from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

from boto3.dynamodb.types import TypeSerializer

from .codec import AttributeCodec
from .condition import Condition
from .entity import Entity
from .errors import MissingKeyError
from .key import Key

MaxTransactionMembers = 100


@dataclass(frozen=True)
class WriteRequest:
    table_name: str
    key: Key
    item: Mapping[str, Any]
    condition: Condition | None = None

    def with_condition(self, condition: Condition) -> WriteRequest:
        return replace(self, condition=condition)

    def _request(self, serializer: TypeSerializer) -> dict[str, Any]:
        req: dict[str, Any] = {"TableName": self.table_name, "Item": dict(self.item)}
        if self.condition is not None:
            req.update(self.condition.request_fields(serializer))
        return req

    def to_put_item(self, serializer: TypeSerializer) -> dict[str, Any]:
        return self._request(serializer)

    def to_transact_item(self, serializer: TypeSerializer) -> dict[str, Any]:
        return {"Put": self._request(serializer)}


@dataclass(frozen=True)
class WriteGroup:
    requests: tuple[WriteRequest, ...]

    def __post_init__(self) -> None:
        if not self.requests:
            raise ValueError("a write group needs at least one request")

    def __iter__(self) -> Iterator[WriteRequest]:
        return iter(self.requests)

    def __len__(self) -> int:
        return len(self.requests)

    @property
    def root(self) -> WriteRequest:
        return self.requests[0]

    @property
    def related(self) -> tuple[WriteRequest, ...]:
        return self.requests[1:]

    @property
    def is_transactional(self) -> bool:
        return len(self.requests) > 1


def entity_key(entity: Entity) -> Key:
    key = entity.key()
    if not key:
        raise MissingKeyError(f"{type(entity).__name__}: key is required")
    return key if isinstance(key, Key) else Key(key)


def assemble_put(entity: Entity, *, table_name: str, codec: AttributeCodec) -> WriteRequest:
    key = entity_key(entity)
    item = codec.encode(entity.item())
    # Key attributes always win over whatever the record carries.
    item.update(key.to_attribute_map())
    return WriteRequest(
        table_name=table_name,
        key=key,
        item=item,
        condition=entity.condition_expression(),
    )
