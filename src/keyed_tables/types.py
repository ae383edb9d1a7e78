"""Declared column types and the value encoding used at the backend boundary."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from keyed_tables.config import DEFAULT_NULL_SENTINEL
from keyed_tables.errors import ValidationError


class ColumnType(Enum):
    """Column types accepted by CREATE TABLE."""

    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    TIMESTAMP = "TIMESTAMP"
    BOOLEAN = "BOOLEAN"
    DOUBLE = "DOUBLE"

    @classmethod
    def from_name(cls, name: str) -> ColumnType:
        """Look up a type by its declared name (case-insensitive)."""
        try:
            return cls(name.upper())
        except ValueError:
            supported = ", ".join(t.value for t in cls)
            raise ValidationError(f"Unsupported column type '{name}' (expected one of {supported})") from None

    @property
    def is_integral(self) -> bool:
        return self in (ColumnType.INTEGER, ColumnType.BIGINT)

    def coerce(self, text: str | None) -> Any:
        """Convert stored text to the Python value for this type.

        Args:
            text: The stored field text, or None for SQL NULL.

        Returns:
            None for NULL, otherwise an int, float, bool, datetime or str.

        Raises:
            ValidationError: If the text is not a valid value of this type.
        """
        if text is None:
            return None
        try:
            if self.is_integral:
                return int(text)
            if self is ColumnType.DOUBLE:
                return float(text)
            if self is ColumnType.BOOLEAN:
                return parse_bool(text)
            if self is ColumnType.TIMESTAMP:
                return datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Cannot read {text!r} as {self.value}") from None
        return text


_TRUE_TEXT = frozenset({"true", "1"})
_FALSE_TEXT = frozenset({"false", "0"})


def parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE_TEXT:
        return True
    if lowered in _FALSE_TEXT:
        return False
    raise ValueError(f"not a boolean: {text!r}")


def encode_value(value: str | None, null_sentinel: str = DEFAULT_NULL_SENTINEL) -> str:
    """Encode an in-memory field value for storage in a backend hash."""
    if value is None:
        return null_sentinel
    return value


def decode_value(raw: str, null_sentinel: str = DEFAULT_NULL_SENTINEL) -> str | None:
    """Decode a stored hash field; the NULL sentinel becomes None."""
    if raw == null_sentinel:
        return None
    return raw


def encode_record(record: dict[str, str | None], null_sentinel: str = DEFAULT_NULL_SENTINEL) -> dict[str, str]:
    return {name: encode_value(value, null_sentinel) for name, value in record.items()}


def decode_record(raw: dict[str, str], null_sentinel: str = DEFAULT_NULL_SENTINEL) -> dict[str, str | None]:
    return {name: decode_value(value, null_sentinel) for name, value in raw.items()}
