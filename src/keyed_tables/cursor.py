"""Forward-only cursor over the rows produced by a SELECT."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterator

from keyed_tables.errors import CursorStateError, ValidationError
from keyed_tables.types import ColumnType, parse_bool


class RowCursor:
    """Single-pass iterator over already materialized rows.

    The cursor starts before the first row. ``next()`` moves it to the
    following row and returns False once the rows are exhausted; it never
    moves backwards. Column access is only valid while positioned on a row.
    Rows are plain dicts of column name to text, with None for SQL NULL.
    """

    def __init__(
        self,
        columns: list[str],
        rows: list[dict[str, str | None]],
        column_types: dict[str, ColumnType] | None = None,
    ) -> None:
        self._columns = list(columns)
        self._rows = [dict(row) for row in rows]
        self._column_types = dict(column_types or {})
        self._position = -1
        self._closed = False

    def __repr__(self) -> str:
        return f"RowCursor(columns={self._columns!r}, rows={len(self._rows)}, position={self._position})"

    def __enter__(self) -> RowCursor:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[dict[str, str | None]]:
        while self.next():
            yield self.current_row()

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def column_types(self) -> dict[str, ColumnType]:
        return dict(self._column_types)

    @property
    def rowcount(self) -> int:
        """Total number of rows the cursor was created with."""
        return len(self._rows)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def before_first(self) -> bool:
        return self._position < 0

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._rows)

    def next(self) -> bool:
        """Advance to the next row. Returns False when no rows remain."""
        self._check_open()
        if not self.exhausted:
            self._position += 1
        return not self.exhausted

    def close(self) -> None:
        """Release the rows. Nothing is held on the backend."""
        self._closed = True
        self._rows = []

    def current_row(self) -> dict[str, str | None]:
        """Return a copy of the current row."""
        return dict(self._current())

    def get(self, column: int | str) -> Any:
        """Return a column of the current row converted by its declared type."""
        name = self._resolve(column)
        text = self._current().get(name)
        column_type = self._column_types.get(name)
        if column_type is None:
            return text
        return column_type.coerce(text)

    def get_string(self, column: int | str) -> str | None:
        return self._current().get(self._resolve(column))

    def get_int(self, column: int | str) -> int | None:
        return self._convert(column, int, "an integer")

    def get_float(self, column: int | str) -> float | None:
        return self._convert(column, float, "a number")

    def get_bool(self, column: int | str) -> bool | None:
        return self._convert(column, parse_bool, "a boolean")

    def get_timestamp(self, column: int | str) -> datetime | None:
        return self._convert(column, datetime.fromisoformat, "a timestamp")

    def _convert(self, column: int | str, convert: Any, description: str) -> Any:
        text = self.get_string(column)
        if text is None:
            return None
        try:
            return convert(text)
        except ValueError:
            raise ValidationError(f"Column '{self._resolve(column)}' value {text!r} is not {description}") from None

    def _check_open(self) -> None:
        if self._closed:
            raise CursorStateError("Cursor is closed")

    def _current(self) -> dict[str, str | None]:
        self._check_open()
        if self.before_first:
            raise CursorStateError("Cursor is before the first row; call next() first")
        if self.exhausted:
            raise CursorStateError("Cursor is past the last row")
        return self._rows[self._position]

    def _resolve(self, column: int | str) -> str:
        """Map a 0-based ordinal or a column name to a column name."""
        if isinstance(column, bool) or not isinstance(column, (int, str)):
            raise ValidationError(f"Column must be an ordinal or a name, got {column!r}")
        if isinstance(column, int):
            if not 0 <= column < len(self._columns):
                raise ValidationError(f"Column ordinal {column} out of range (0..{len(self._columns) - 1})")
            return self._columns[column]
        return column
