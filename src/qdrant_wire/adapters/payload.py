"""Translate payload values between Python objects and ``Value`` messages."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from qdrant_client import grpc as pb

from qdrant_wire.adapters.common import check_int64, which_oneof
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.points import Payload


def value_to_grpc(value: Any, path: str = "payload") -> pb.Value:
    """Convert a JSON-like Python value into a ``Value``."""
    if value is None:
        return pb.Value(null_value=pb.NullValue.NULL_VALUE)
    if isinstance(value, bool):
        return pb.Value(bool_value=value)
    if isinstance(value, int):
        return pb.Value(integer_value=check_int64(value, path))
    if isinstance(value, float):
        return pb.Value(double_value=value)
    if isinstance(value, str):
        return pb.Value(string_value=value)
    if isinstance(value, Mapping):
        return pb.Value(struct_value=pb.Struct(fields=_fields_to_grpc(value, path)))  # pyright: ignore[reportUnknownArgumentType]
    if isinstance(value, (list, tuple)):
        return pb.Value(
            list_value=pb.ListValue(
                values=[value_to_grpc(item, f"{path}[{i}]") for i, item in enumerate(value)]  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]
            )
        )
    raise ConversionError(path, f"unsupported payload type {type(value).__name__}")


def _fields_to_grpc(mapping: Mapping[Any, Any], path: str) -> dict[str, pb.Value]:
    fields: dict[str, pb.Value] = {}
    for key, item in mapping.items():
        if not isinstance(key, str):
            raise ConversionError(path, f"payload keys must be strings, got {type(key).__name__}")
        fields[key] = value_to_grpc(item, f"{path}.{key}")
    return fields


def value_from_grpc(value: pb.Value, path: str = "payload") -> Any:
    """Convert a ``Value`` into a JSON-like Python value. An unset kind reads as null."""
    kind = which_oneof(value, "kind")
    if kind is None or kind == "null_value":
        return None
    if kind == "bool_value":
        return value.bool_value
    if kind == "integer_value":
        return value.integer_value
    if kind == "double_value":
        return value.double_value
    if kind == "string_value":
        return value.string_value
    if kind == "list_value":
        return [
            value_from_grpc(item, f"{path}[{i}]") for i, item in enumerate(value.list_value.values)
        ]
    if kind == "struct_value":
        return payload_from_grpc(value.struct_value.fields, path)
    raise ConversionError(path, f"unknown Value kind '{kind}'")


def payload_to_grpc(payload: Mapping[str, Any], path: str = "payload") -> dict[str, pb.Value]:
    """Convert a payload mapping into the ``map<string, Value>`` wire form."""
    return _fields_to_grpc(payload, path)


def payload_from_grpc(fields: Mapping[str, pb.Value], path: str = "payload") -> Payload:
    return {key: value_from_grpc(item, f"{path}.{key}") for key, item in fields.items()}


def format_value(value: pb.Value) -> str:
    """Render a ``Value`` as compact JSON-like text.

    Strings are quoted, lists and structs have no spaces, an unset kind prints ``null``.
    """
    kind = which_oneof(value, "kind")
    if kind == "bool_value":
        return "true" if value.bool_value else "false"
    if kind == "integer_value":
        return str(value.integer_value)
    if kind == "double_value":
        return repr(value.double_value)
    if kind == "string_value":
        return json.dumps(value.string_value, ensure_ascii=False)
    if kind == "list_value":
        return "[" + ",".join(format_value(item) for item in value.list_value.values) + "]"
    if kind == "struct_value":
        items = (
            f"{json.dumps(key, ensure_ascii=False)}:{format_value(item)}"
            for key, item in value.struct_value.fields.items()
        )
        return "{" + ",".join(items) + "}"
    return "null"


__all__ = [
    "format_value",
    "payload_from_grpc",
    "payload_to_grpc",
    "value_from_grpc",
    "value_to_grpc",
]
