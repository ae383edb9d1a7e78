"""Tests for RowCursor."""

from datetime import datetime

import pytest

from keyed_tables.cursor import RowCursor
from keyed_tables.errors import CursorStateError, ValidationError
from keyed_tables.types import ColumnType


def make_cursor():
    return RowCursor(
        columns=["id", "name", "joined", "active"],
        rows=[
            {"id": "1", "name": "Ann", "joined": "2024-01-02T03:04:05", "active": "true"},
            {"id": "2", "name": None, "joined": None, "active": "0"},
        ],
        column_types={
            "id": ColumnType.INTEGER,
            "name": ColumnType.VARCHAR,
            "joined": ColumnType.TIMESTAMP,
            "active": ColumnType.BOOLEAN,
        },
    )


class TestCursorMovement:
    """Tests for positioning."""

    def test_starts_before_first_row(self):
        cursor = make_cursor()
        assert cursor.before_first
        with pytest.raises(CursorStateError, match="before the first row"):
            cursor.get("id")

    def test_next_walks_rows(self):
        cursor = make_cursor()
        assert cursor.next() is True
        assert cursor.get_string("name") == "Ann"
        assert cursor.next() is True
        assert cursor.get_string("name") is None
        assert cursor.next() is False
        assert cursor.exhausted

    def test_next_after_exhaustion_stays_false(self):
        cursor = make_cursor()
        while cursor.next():
            pass
        assert cursor.next() is False
        with pytest.raises(CursorStateError, match="past the last row"):
            cursor.current_row()

    def test_empty_cursor(self):
        cursor = RowCursor(columns=["a"], rows=[])
        assert cursor.rowcount == 0
        assert cursor.next() is False
        assert list(cursor) == []

    def test_iteration_consumes(self):
        cursor = make_cursor()
        assert [row["id"] for row in cursor] == ["1", "2"]
        assert list(cursor) == []

    def test_close(self):
        cursor = make_cursor()
        cursor.next()
        cursor.close()

        assert cursor.closed
        with pytest.raises(CursorStateError, match="closed"):
            cursor.next()
        with pytest.raises(CursorStateError, match="closed"):
            cursor.get("id")

    def test_context_manager_closes(self):
        with make_cursor() as cursor:
            assert cursor.next()
        assert cursor.closed

    def test_current_row_is_a_copy(self):
        cursor = make_cursor()
        cursor.next()
        cursor.current_row()["name"] = "changed"
        assert cursor.get_string("name") == "Ann"


class TestCursorAccess:
    """Tests for reading column values."""

    def setup_method(self):
        self.cursor = make_cursor()
        self.cursor.next()

    def test_get_by_name_uses_declared_type(self):
        assert self.cursor.get("id") == 1
        assert self.cursor.get("name") == "Ann"
        assert self.cursor.get("joined") == datetime(2024, 1, 2, 3, 4, 5)
        assert self.cursor.get("active") is True

    def test_get_by_ordinal(self):
        """Ordinals count from zero in projection order."""
        assert self.cursor.get(0) == 1
        assert self.cursor.get_string(1) == "Ann"

    def test_ordinal_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            self.cursor.get(4)
        with pytest.raises(ValidationError, match="out of range"):
            self.cursor.get(-1)

    def test_unknown_name_is_null(self):
        assert self.cursor.get("nickname") is None

    def test_invalid_column_reference(self):
        with pytest.raises(ValidationError, match="ordinal or a name"):
            self.cursor.get(1.5)
        with pytest.raises(ValidationError, match="ordinal or a name"):
            self.cursor.get(True)

    def test_typed_getters(self):
        assert self.cursor.get_int("id") == 1
        assert self.cursor.get_float("id") == 1.0
        assert self.cursor.get_bool("active") is True
        assert self.cursor.get_timestamp("joined") == datetime(2024, 1, 2, 3, 4, 5)

    def test_typed_getter_conversion_error(self):
        with pytest.raises(ValidationError, match="is not an integer"):
            self.cursor.get_int("name")
        with pytest.raises(ValidationError, match="is not a boolean"):
            self.cursor.get_bool("name")

    def test_null_values(self):
        self.cursor.next()
        assert self.cursor.get("name") is None
        assert self.cursor.get_int("joined") is None
        assert self.cursor.get_timestamp("joined") is None
        assert self.cursor.get("active") is False

    def test_untyped_column_returns_text(self):
        cursor = RowCursor(columns=["a"], rows=[{"a": "5"}])
        cursor.next()
        assert cursor.get("a") == "5"
        assert cursor.column_types == {}
