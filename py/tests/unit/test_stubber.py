from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import boto3
import pytest
from botocore.stub import Stubber
from sample_entities import Person, PersonRecord, User, person_modeler, user_modeler

from dynamorm_py import ConditionFailedError, Key, Repository, RepositoryBuilder


@pytest.fixture()
def stubbed() -> Iterator[tuple[Any, Stubber]]:
    client = boto3.client(
        "dynamodb",
        region_name="us-east-1",
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _people(client: Any) -> Repository[Person]:
    return RepositoryBuilder[Person]().with_client(client).with_table_name("people").with_modeler(person_modeler).build()


def _users(client: Any) -> Repository[User]:
    return RepositoryBuilder[User]().with_client(client).with_table_name("users").with_modeler(user_modeler).build()


def test_get_sends_a_valid_request(stubbed: tuple[Any, Stubber]) -> None:
    client, stubber = stubbed
    stubber.add_response(
        "get_item",
        {"Item": {"PK": {"S": "ABC"}, "SK": {"S": "123"}, "Name": {"S": "John Appleseed"}, "Age": {"N": "30"}}},
        {"TableName": "people", "Key": {"PK": {"S": "ABC"}, "SK": {"S": "123"}}, "ConsistentRead": True},
    )

    person = _people(client).get(Key(PK="ABC", SK="123"), consistent_read=True)

    assert person.record == PersonRecord(pk="ABC", sk="123", name="John Appleseed", age=30)


def test_create_sends_a_valid_put(stubbed: tuple[Any, Stubber]) -> None:
    client, stubber = stubbed
    stubber.add_response(
        "put_item",
        {},
        {
            "TableName": "people",
            "Item": {"PK": {"S": "ABC"}, "SK": {"S": "123"}, "Name": {"S": "John Appleseed"}, "Age": {"N": "30"}},
            "ConditionExpression": "(attribute_not_exists(#n0) AND attribute_not_exists(#n1))",
            "ExpressionAttributeNames": {"#n0": "PK", "#n1": "SK"},
        },
    )

    _people(client).create(Person(PersonRecord(pk="ABC", sk="123", name="John Appleseed", age=30)))


def test_update_condition_failure_is_mapped(stubbed: tuple[Any, Stubber]) -> None:
    client, stubber = stubbed
    stubber.add_client_error(
        "put_item",
        service_error_code="ConditionalCheckFailedException",
        service_message="The conditional request failed",
        http_status_code=400,
    )

    with pytest.raises(ConditionFailedError):
        _people(client).update(Person(PersonRecord(pk="ABC", sk="123", name="John Appleseed", age=30)))


def test_create_related_sends_a_valid_transaction(stubbed: tuple[Any, Stubber]) -> None:
    client, stubber = stubbed
    stubber.add_response(
        "transact_write_items",
        {},
        {
            "TransactItems": [
                {
                    "Put": {
                        "TableName": "users",
                        "Item": {"PK": {"S": "002"}, "Username": {"S": "fherbert"}, "Type": {"S": "User"}},
                        "ConditionExpression": "attribute_not_exists(#n0)",
                        "ExpressionAttributeNames": {"#n0": "PK"},
                    }
                },
                {
                    "Put": {
                        "TableName": "users",
                        "Item": {"PK": {"S": "fherbert"}, "UserId": {"S": "002"}, "Type": {"S": "Username"}},
                        "ConditionExpression": "attribute_not_exists(#n0)",
                        "ExpressionAttributeNames": {"#n0": "PK"},
                    }
                },
            ]
        },
    )

    _users(client).create(User.new("002", username="fherbert"))
