from __future__ import annotations

from collections.abc import Sequence

import pytest
from sample_entities import Person, PersonRecord, User, UserRecord

from dynamorm_py import (
    Condition,
    ConditionFailedError,
    Entity,
    ImmutableFieldChangedError,
    Intent,
    Key,
    MissingKeyError,
    OperationCanceledError,
    OperationContext,
    TransactionCanceledError,
    ValidationError,
    WriteOrchestrator,
)
from dynamorm_py.errors import AwsError
from dynamorm_py.mocks import ANY, FakeDynamoDBClient, client_error


class Tagged:
    def __init__(self, pk: str, guard: Condition | None = None) -> None:
        self._pk = pk
        self._guard = guard

    def item(self) -> dict:
        return {"Kind": "tag"}

    def key(self) -> Key:
        return Key(PK=self._pk)

    def condition_expression(self) -> Condition | None:
        return self._guard


class Root(Tagged):
    def __init__(self, pk: str, related: Sequence[Entity] = (), error: Exception | None = None) -> None:
        super().__init__(pk)
        self._related = related
        self._error = error
        self.related_calls = 0

    def related_entities(self) -> Sequence[Entity]:
        self.related_calls += 1
        if self._error is not None:
            raise self._error
        return self._related


class _Keyless(Tagged):
    def __init__(self) -> None:
        super().__init__("unused")

    def key(self) -> Key:
        return Key()


def _person(pk: str = "A") -> Person:
    return Person(PersonRecord(pk=pk, sk="1", name="n", age=1))


def test_plan_create_derives_not_exists_guard_for_root() -> None:
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="people")
    group = writer.plan(_person(), Intent.CREATE)

    assert len(group) == 1
    assert group.root.condition == Condition(
        expression="(attribute_not_exists(#n0) AND attribute_not_exists(#n1))",
        names={"#n0": "PK", "#n1": "SK"},
    )


def test_plan_update_derives_exists_guard_for_root() -> None:
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="people")
    group = writer.plan(_person(), Intent.UPDATE)
    assert group.root.condition is not None
    assert group.root.condition.expression == "(attribute_exists(#n0) AND attribute_exists(#n1))"


def test_plan_uses_entity_guard_instead_of_derived_one() -> None:
    guard = Condition(expression="#v = :v", names={"#v": "Version"}, values={":v": 3})
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="tags")

    for intent in (Intent.CREATE, Intent.UPDATE):
        group = writer.plan(Tagged("A", guard), intent)
        assert group.root.condition is guard


def test_plan_orders_root_then_related_and_keeps_related_guards() -> None:
    seeded = Condition(expression="attribute_not_exists(#k)", names={"#k": "PK"})
    related = [Tagged("B", seeded), Tagged("C")]
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="tags")

    group = writer.plan(Root("A", related), Intent.CREATE)

    assert [req.key for req in group] == [Key(PK="A"), Key(PK="B"), Key(PK="C")]
    assert group.related[0].condition is seeded
    # Related entities are never given a derived guard.
    assert group.related[1].condition is None


def test_plan_fails_before_io_for_missing_key_and_relation_errors() -> None:
    client = FakeDynamoDBClient()
    writer = WriteOrchestrator(client=client, table_name="tags")

    with pytest.raises(MissingKeyError):
        writer.write(_Keyless(), Intent.CREATE)

    boom = ImmutableFieldChangedError(field="Username", loaded="a", saving="b")
    root = Root("A", error=boom)
    with pytest.raises(ImmutableFieldChangedError) as exc:
        writer.write(root, Intent.UPDATE)
    assert exc.value is boom

    with pytest.raises(MissingKeyError):
        writer.write(Root("A", [_Keyless()]), Intent.CREATE)

    assert client.calls == []


def test_plan_rejects_oversized_and_duplicate_groups() -> None:
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="tags")

    too_many = Root("root", [Tagged(f"r{i}") for i in range(100)])
    with pytest.raises(ValidationError, match="at most 100"):
        writer.plan(too_many, Intent.CREATE)

    with pytest.raises(ValidationError, match="same item twice"):
        writer.plan(Root("A", [Tagged("A")]), Intent.CREATE)


def test_execute_single_member_uses_put_item() -> None:
    client = FakeDynamoDBClient()
    client.expect(
        "put_item",
        {
            "TableName": "people",
            "Item": {"PK": {"S": "A"}, "SK": {"S": "1"}, "Name": {"S": "n"}, "Age": {"N": "1"}},
            "ConditionExpression": "(attribute_not_exists(#n0) AND attribute_not_exists(#n1))",
            "ExpressionAttributeNames": {"#n0": "PK", "#n1": "SK"},
        },
    )
    writer = WriteOrchestrator(client=client, table_name="people")

    writer.write(_person(), Intent.CREATE)

    client.assert_no_pending()
    assert client.methods_called() == ["put_item"]
    assert "ExpressionAttributeValues" not in client.calls[0][1]


def test_execute_related_members_use_one_transaction_in_order() -> None:
    client = FakeDynamoDBClient()
    client.expect(
        "transact_write_items",
        {
            "TransactItems": [
                {"Put": {"TableName": "tags", "Item": {"PK": {"S": "A"}, "Kind": {"S": "tag"}}}},
                {"Put": {"TableName": "tags", "Item": {"PK": {"S": "B"}}}},
                {"Put": {"TableName": "tags", "Item": {"PK": {"S": "C"}}}},
            ]
        },
    )
    writer = WriteOrchestrator(client=client, table_name="tags")

    writer.write(Root("A", [Tagged("B"), Tagged("C")]), Intent.UPDATE)

    client.assert_no_pending()
    assert client.methods_called() == ["transact_write_items"]
    items = client.calls[0][1]["TransactItems"]
    assert items[0]["Put"]["ConditionExpression"] == "attribute_exists(#n0)"
    assert "ConditionExpression" not in items[1]["Put"]


def test_execute_empty_relation_list_falls_back_to_put_item() -> None:
    client = FakeDynamoDBClient()
    client.expect("put_item", {"TableName": "tags", "Item": ANY})
    writer = WriteOrchestrator(client=client, table_name="tags")

    root = Root("A", [])
    writer.write(root, Intent.CREATE)

    client.assert_no_pending()
    assert root.related_calls == 1


def test_execute_maps_conditional_failures() -> None:
    client = FakeDynamoDBClient()
    client.expect("put_item", error=client_error("ConditionalCheckFailedException", "nope"))
    writer = WriteOrchestrator(client=client, table_name="people")
    with pytest.raises(ConditionFailedError, match="nope"):
        writer.write(_person(), Intent.CREATE)

    client.expect(
        "transact_write_items",
        error=client_error(
            "TransactionCanceledException",
            "Transaction cancelled",
            operation="TransactWriteItems",
            cancellation_reasons=["None", "ConditionalCheckFailed"],
        ),
    )
    with pytest.raises(ConditionFailedError) as exc:
        writer.write(Root("A", [Tagged("B")]), Intent.CREATE)
    assert exc.value.reason_codes == ("None", "ConditionalCheckFailed")


def test_execute_maps_aborted_transactions_and_other_errors() -> None:
    client = FakeDynamoDBClient()
    client.expect(
        "transact_write_items",
        error=client_error(
            "TransactionCanceledException",
            "Transaction cancelled",
            operation="TransactWriteItems",
            cancellation_reasons=["TransactionConflict", "None"],
        ),
    )
    client.expect("put_item", error=client_error("ProvisionedThroughputExceededException", "slow down"))
    client.expect("put_item", error=RuntimeError("socket closed"))
    writer = WriteOrchestrator(client=client, table_name="tags")

    with pytest.raises(TransactionCanceledError) as exc:
        writer.write(Root("A", [Tagged("B")]), Intent.CREATE)
    assert exc.value.reason_codes == ("TransactionConflict", "None")

    with pytest.raises(AwsError) as aws:
        writer.write(Tagged("A"), Intent.CREATE)
    assert aws.value.code == "ProvisionedThroughputExceededException"

    with pytest.raises(RuntimeError, match="socket closed"):
        writer.write(Tagged("A"), Intent.CREATE)


def test_execute_honours_cancelled_context() -> None:
    client = FakeDynamoDBClient()
    writer = WriteOrchestrator(client=client, table_name="tags")
    ctx = OperationContext()
    ctx.cancel()

    with pytest.raises(OperationCanceledError, match="PutItem"):
        writer.write(Tagged("A"), Intent.CREATE, ctx=ctx)
    with pytest.raises(OperationCanceledError, match="TransactWriteItems"):
        writer.write(Root("A", [Tagged("B")]), Intent.CREATE, ctx=ctx)
    assert client.calls == []


def test_user_relation_scenarios_plan_expected_guards() -> None:
    writer = WriteOrchestrator(client=FakeDynamoDBClient(), table_name="users")

    group = writer.plan(User.new("002", username="fherbert"), Intent.CREATE)
    assert [req.condition.expression for req in group if req.condition] == [
        "attribute_not_exists(#n0)",
        "attribute_not_exists(#n0)",
    ]

    loaded = UserRecord(id="001", username="jappleseed")
    user = User(loaded, loaded=loaded)
    user.set_username("other")
    with pytest.raises(ImmutableFieldChangedError):
        writer.plan(user, Intent.UPDATE)


def test_orchestrator_requires_client_and_table() -> None:
    with pytest.raises(ValueError):
        WriteOrchestrator(client=None, table_name="t")
    with pytest.raises(ValueError):
        WriteOrchestrator(client=object(), table_name="")
