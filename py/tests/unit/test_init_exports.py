from __future__ import annotations

import pytest

import dynamorm_py


def test_init_exposes_lazy_exports_via_getattr() -> None:
    assert callable(dynamorm_py.ensure_table)
    assert callable(dynamorm_py.delete_table)
    assert callable(dynamorm_py.build_create_table_request)
    assert callable(dynamorm_py.get_dynamodb_client)
    assert callable(dynamorm_py.dynamodb_client_from_env)
    assert callable(dynamorm_py.create_boto3_config)
    assert callable(dynamorm_py.instrument_boto3_client)
    assert dynamorm_py.AwsCallMetric.__name__ == "AwsCallMetric"


def test_init_unknown_attribute_raises() -> None:
    with pytest.raises(AttributeError):
        _ = dynamorm_py.does_not_exist


def test_all_names_resolve() -> None:
    for name in dynamorm_py.__all__:
        assert getattr(dynamorm_py, name) is not None
