"""Presence helpers shared by the converters."""

from __future__ import annotations

from typing import Any

from google.protobuf.message import Message

from qdrant_wire.core.exceptions import ConversionError


def has_field(message: Message, name: str) -> bool:
    """True when ``name`` exists in this schema version and carries a value."""
    return name in message.DESCRIPTOR.fields_by_name and message.HasField(name)


def supports_oneof(message: Message, group: str) -> bool:
    return group in message.DESCRIPTOR.oneofs_by_name


def which_oneof(message: Message, group: str) -> str | None:
    """Name of the populated arm of ``group``, ``None`` when unset or unknown to the schema."""
    if not supports_oneof(message, group):
        return None
    return message.WhichOneof(group)


def require_oneof(message: Message, group: str, path: str) -> str:
    arm = which_oneof(message, group)
    if arm is None:
        raise ConversionError(path, f"{message.DESCRIPTOR.name}.{group} is not set")
    return arm


def optional(message: Message, name: str) -> object | None:
    """Value of an optional field, or ``None`` when absent."""
    return getattr(message, name) if has_field(message, name) else None


def check_int64(value: int, path: str) -> int:
    if not -(2**63) <= value < 2**63:
        raise ConversionError(path, f"integer {value} does not fit in int64")
    return value


def check_uint64(value: int, path: str) -> int:
    if not 0 <= value < 2**64:
        raise ConversionError(path, f"integer {value} does not fit in uint64")
    return value


def enum_name(enum_type: Any, value: int, path: str) -> str:
    """Name of an enum value; values unknown to this schema version are a ``ConversionError``."""
    try:
        return enum_type.Name(value)
    except ValueError as e:
        raise ConversionError(path, f"unknown {enum_type.DESCRIPTOR.name} value {value}") from e
