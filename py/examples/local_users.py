from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, replace

from dynamorm_py import (
    Condition,
    ConditionFailedError,
    ConditionHolder,
    Entity,
    Key,
    RepositoryBuilder,
    classify_dependent,
    delete_table,
    dependent_guard,
    dynamodb_client_from_env,
    dynamorm_field,
    ensure_table,
    record_modeler,
)


@dataclass(frozen=True)
class UserRecord:
    id: str = dynamorm_field(name="PK")
    name: str = dynamorm_field(name="Name", omitempty=True, default="")
    username: str = dynamorm_field(name="Username", omitempty=True, default="")
    type: str = dynamorm_field(name="Type", default="User")


@dataclass(frozen=True)
class UsernameRecord:
    username: str = dynamorm_field(name="PK")
    user_id: str = dynamorm_field(name="UserId")
    type: str = dynamorm_field(name="Type", default="Username")


class Username(ConditionHolder):
    def __init__(self, record: UsernameRecord, condition: Condition | None) -> None:
        super().__init__(condition)
        self.record = record

    def item(self) -> UsernameRecord:
        return self.record

    def key(self) -> Key:
        return Key(PK=self.record.username)


class User(ConditionHolder):
    def __init__(self, record: UserRecord, *, loaded: UserRecord | None = None) -> None:
        super().__init__()
        self.record = record
        self.loaded = loaded

    def item(self) -> UserRecord:
        return self.record

    def key(self) -> Key:
        return Key(PK=self.record.id)

    def related_entities(self) -> Sequence[Entity]:
        loaded = self.loaded.username if self.loaded is not None else None
        state = classify_dependent("Username", loaded, self.record.username)
        guard = dependent_guard(state, key_attributes=["PK"], owner_attribute="UserId", owner=self.record.id)
        if guard is None:
            return []
        return [Username(UsernameRecord(username=self.record.username, user_id=self.record.id), guard)]


def main() -> None:
    logging.basicConfig(level=logging.DEBUG if os.environ.get("DEBUG") else logging.INFO)
    os.environ.setdefault("DYNAMODB_ENDPOINT", "http://localhost:8000")
    os.environ.setdefault("AWS_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "dummy")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "dummy")

    client = dynamodb_client_from_env()
    table_name = f"dynamorm_py_example_{uuid.uuid4().hex[:12]}"
    ensure_table(client, table_name, {"PK": "S"})

    try:
        users = (
            RepositoryBuilder[User]()
            .with_client(client)
            .with_table_name(table_name)
            .with_modeler(
                record_modeler(UserRecord, lambda r: User(r, loaded=r), discriminant=("Type", "User"))
            )
            .build()
        )

        users.create(User(UserRecord(id="001", name="John", username="jappleseed")))
        print("created:", users.get(Key(PK="001")).record)

        try:
            users.create(User(UserRecord(id="002", username="jappleseed")))
        except ConditionFailedError as err:
            print("username already taken:", err.reason_codes)

        user = users.get(Key(PK="001"), consistent_read=True)
        user.record = replace(user.record, name="John Appleseed")
        users.update(user)
        print("updated:", users.get(Key(PK="001"), consistent_read=True).record)
    finally:
        delete_table(client, table_name)


if __name__ == "__main__":
    main()
