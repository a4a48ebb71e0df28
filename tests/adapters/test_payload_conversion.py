"""Tests for payload value conversion."""

import math

import pytest
from qdrant_client import grpc as pb

from qdrant_wire.adapters.payload import (
    format_value,
    payload_from_grpc,
    payload_to_grpc,
    value_from_grpc,
    value_to_grpc,
)
from qdrant_wire.core.exceptions import ConversionError


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (None, "null_value"),
        (True, "bool_value"),
        (7, "integer_value"),
        (1.5, "double_value"),
        ("shoes", "string_value"),
        ([1, "a"], "list_value"),
        ({"a": 1}, "struct_value"),
    ],
)
def test_value_kinds(value, kind):
    assert value_to_grpc(value).WhichOneof("kind") == kind


def test_bool_is_not_an_integer():
    assert value_to_grpc(False).WhichOneof("kind") == "bool_value"
    assert value_from_grpc(value_to_grpc(False)) is False


def test_nested_payload_round_trip():
    payload = {
        "category": "shoes",
        "price": 39.99,
        "stock": 12,
        "tags": ["leather", "brown", None],
        "dimensions": {"width": 10, "sizes": [40, 41, 42], "meta": {"in_stock": True}},
    }
    assert payload_from_grpc(payload_to_grpc(payload)) == payload


def test_unset_kind_reads_as_null():
    assert value_from_grpc(pb.Value()) is None
    assert format_value(pb.Value()) == "null"


def test_nan_survives():
    decoded = value_from_grpc(value_to_grpc(float("nan")))
    assert math.isnan(decoded)


def test_non_string_key_is_rejected():
    with pytest.raises(ConversionError) as exc_info:
        payload_to_grpc({"meta": {1: "x"}})
    assert exc_info.value.path == "payload.meta"


def test_integer_overflow_is_rejected():
    with pytest.raises(ConversionError) as exc_info:
        payload_to_grpc({"big": [1, 2**63]})
    assert exc_info.value.path == "payload.big[1]"


def test_unsupported_type_is_rejected():
    with pytest.raises(ConversionError):
        value_to_grpc({1, 2})


@pytest.mark.parametrize(
    ("value", "text"),
    [
        (True, "true"),
        (42, "42"),
        (0.5, "0.5"),
        ('say "hi"', '"say \\"hi\\""'),
        (None, "null"),
        ([1, "a", [False]], '[1,"a",[false]]'),
        ({"k": [1, 2]}, '{"k":[1,2]}'),
    ],
)
def test_format_value(value, text):
    assert format_value(value_to_grpc(value)) == text
