"""Executes parsed SQL statements against a key-value backend."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from keyed_tables.backend import KeyValueBackend
from keyed_tables.config import Settings
from keyed_tables.cursor import RowCursor
from keyed_tables.errors import ValidationError, backend_errors
from keyed_tables.parsing.query_parser import (
    Condition,
    CreateTableQuery,
    DeleteQuery,
    DropTableQuery,
    InsertQuery,
    Literal,
    NullValue,
    Parameter,
    Query,
    SelectQuery,
    UpdateQuery,
    Value,
    count_parameters,
)
from keyed_tables.schema_store import SchemaStore, TableSchema, keys_key, record_key
from keyed_tables.types import ColumnType, decode_record, encode_record, encode_value

LOGGER = logging.getLogger(__name__)

COUNT_COLUMN = "count"


def bind_parameter(value: Any) -> Literal | NullValue:
    """Convert a Python value bound to a ``?`` placeholder into a literal."""
    if value is None:
        return NullValue()
    if isinstance(value, bool):
        return Literal(text="true" if value else "false")
    if isinstance(value, str):
        return Literal(text=value, quoted=True)
    if isinstance(value, (int, float)):
        return Literal(text=repr(value) if isinstance(value, float) else str(value))
    raise ValidationError(f"Unsupported parameter type: {type(value).__name__}")


def value_text(value: Literal | NullValue) -> str | None:
    """Return the stored form of a literal: its text, or None for NULL."""
    if isinstance(value, NullValue):
        return None
    return value.text


class QueryExecutor:
    """Executes statements against a backend.

    INSERT and DROP TABLE write through atomic batches. UPDATE and DELETE
    walk the table's membership set and change one record at a time, so a
    backend failure part way through leaves the records already processed
    changed and the rest untouched.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        schema: SchemaStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.backend = backend
        self.settings = settings or (schema.settings if schema is not None else Settings())
        self.schema = schema or SchemaStore(backend, self.settings)
        # Id generated by the most recent INSERT
        self.last_insert_id: str | None = None

    def execute(self, query: Query, params: Sequence[Any] = ()) -> int | RowCursor:
        """Execute a statement.

        Args:
            query: A parsed statement.
            params: Values for the ``?`` placeholders, in order.

        Returns:
            A RowCursor for SELECT, otherwise the number of affected rows.
        """
        LOGGER.debug("Executing %s on table %s", type(query).__name__, query.table)
        self._check_parameter_count(query, params)

        if isinstance(query, SelectQuery):
            return self._execute_select(query, params)
        elif isinstance(query, InsertQuery):
            return self._execute_insert(query, params)
        elif isinstance(query, UpdateQuery):
            return self._execute_update(query, params)
        elif isinstance(query, DeleteQuery):
            return self._execute_delete(query, params)
        elif isinstance(query, CreateTableQuery):
            return self._execute_create_table(query)
        elif isinstance(query, DropTableQuery):
            return self._execute_drop_table(query)
        else:
            raise ValueError(f"Unknown query type: {type(query)}")

    # --- Parameters and values ---

    @staticmethod
    def _check_parameter_count(query: Query, params: Sequence[Any]) -> None:
        expected = count_parameters(query)
        if len(params) < expected:
            raise ValidationError(f"Parameter {len(params) + 1} is not set ({expected} expected)")
        if len(params) > expected:
            raise ValidationError(f"Too many parameters: {len(params)} given, {expected} expected")

    def _value_text(self, value: Value, params: Sequence[Any]) -> str | None:
        """Resolve a value to its stored text, None for NULL."""
        if isinstance(value, Parameter):
            value = bind_parameter(params[value.index - 1])
        text = value_text(value)
        if text == self.settings.null_sentinel:
            raise ValidationError("Unsupported literal: value is reserved for NULL storage")
        return text

    def _resolve_condition(self, condition: Condition | None, params: Sequence[Any]) -> tuple[str, str | None] | None:
        if condition is None:
            return None
        return condition.column, self._value_text(condition.value, params)

    @staticmethod
    def _matches(record: dict[str, str | None], condition: tuple[str, str | None] | None) -> bool:
        """String equality test; NULL only matches a NULL field, a missing field never matches."""
        if condition is None:
            return True
        column, expected = condition
        if column not in record:
            return False
        return record[column] == expected

    @staticmethod
    def _check_not_null(table: TableSchema, column: str, text: str | None) -> None:
        if text is None and table.columns[column].not_null:
            raise ValidationError(f"Column '{column}' of table '{table.name}' may not be NULL")

    def _scan(self, table: TableSchema, action: str) -> list[tuple[str, dict[str, str | None]]]:
        """Load every record of a table in key order.

        Membership entries whose record has disappeared are skipped.
        """
        null = self.settings.null_sentinel
        with backend_errors(f"{action} {table.name}"):
            keys = sorted(self.backend.smembers(keys_key(table.name)))
            records = []
            for key in keys:
                raw = self.backend.hgetall(key)
                if raw:
                    records.append((key, decode_record(raw, null)))
        LOGGER.debug("Scanned %d of %d keys in %s", len(records), len(keys), table.name)
        return records

    # --- DDL ---

    def _execute_create_table(self, query: CreateTableQuery) -> int:
        self.schema.create_table(
            query.table,
            query.columns,
            if_not_exists=query.if_not_exists,
            raw_columns=query.raw_columns,
        )
        return 0

    def _execute_drop_table(self, query: DropTableQuery) -> int:
        self.schema.drop_table(query.table, if_exists=query.if_exists)
        return 0

    # --- DML ---

    def _execute_insert(self, query: InsertQuery, params: Sequence[Any]) -> int:
        """Execute INSERT. Returns 1."""
        if len(query.columns) != len(query.values):
            raise ValidationError(
                f"Column count ({len(query.columns)}) doesn't match value count ({len(query.values)})"
            )
        if len(set(query.columns)) != len(query.columns):
            raise ValidationError("Duplicate column in INSERT column list")
        values = [self._value_text(v, params) for v in query.values]

        table = self.schema.require_table(query.table)
        record: dict[str, str | None] = {}
        for column, text in zip(query.columns, values):
            table.require_column(column)
            self._check_not_null(table, column, text)
            record[column] = text

        auto_column = table.auto_increment_column
        for name, spec in table.columns.items():
            if spec.not_null and name not in record and name != auto_column:
                raise ValidationError(f"Column '{name}' of table '{table.name}' may not be NULL")

        record_id, generated = self.schema.next_record_id(table)
        if generated and auto_column not in record:
            record[auto_column] = record_id

        key = record_key(table.name, record_id)
        with backend_errors(f"INSERT INTO {table.name}"):
            pipe = self.backend.pipeline(transaction=True)
            pipe.hset(key, mapping=encode_record(record, self.settings.null_sentinel))
            pipe.sadd(keys_key(table.name), key)
            pipe.execute()

        self.last_insert_id = record_id
        LOGGER.debug("Inserted %s", key)
        return 1

    def _execute_select(self, query: SelectQuery, params: Sequence[Any]) -> RowCursor:
        """Execute SELECT and return the matching rows in key order."""
        condition = self._resolve_condition(query.where, params)
        table = self.schema.require_table(query.table)
        if query.where is not None:
            table.require_column(query.where.column)

        if query.count:
            columns = []
        elif query.select_all:
            columns = table.column_names
        else:
            columns = list(query.columns)
            for column in columns:
                table.require_column(column)

        matches = [record for _, record in self._scan(table, "SELECT FROM") if self._matches(record, condition)]

        if query.count:
            return RowCursor(
                columns=[COUNT_COLUMN],
                rows=[{COUNT_COLUMN: str(len(matches))}],
                column_types={COUNT_COLUMN: ColumnType.BIGINT},
            )

        rows = [{column: record.get(column) for column in columns} for record in matches]
        column_types = table.column_types
        return RowCursor(columns=columns, rows=rows, column_types={c: column_types[c] for c in columns})

    def _execute_update(self, query: UpdateQuery, params: Sequence[Any]) -> int:
        """Execute UPDATE. Returns the number of records changed."""
        text = self._value_text(query.value, params)
        condition = self._resolve_condition(query.where, params)

        table = self.schema.require_table(query.table)
        table.require_column(query.column)
        if query.where is not None:
            table.require_column(query.where.column)
        self._check_not_null(table, query.column, text)

        stored = encode_value(text, self.settings.null_sentinel)
        updated = 0
        for key, record in self._scan(table, "UPDATE"):
            if not self._matches(record, condition):
                continue
            with backend_errors(f"UPDATE {key}"):
                self.backend.hset(key, query.column, stored)
            updated += 1

        LOGGER.debug("Updated %d record(s) in %s", updated, table.name)
        return updated

    def _execute_delete(self, query: DeleteQuery, params: Sequence[Any]) -> int:
        """Execute DELETE. Returns the number of records removed."""
        condition = self._resolve_condition(query.where, params)

        table = self.schema.require_table(query.table)
        if query.where is not None:
            table.require_column(query.where.column)

        deleted = 0
        for key, record in self._scan(table, "DELETE FROM"):
            if not self._matches(record, condition):
                continue
            with backend_errors(f"DELETE {key}"):
                pipe = self.backend.pipeline(transaction=True)
                pipe.delete(key)
                pipe.srem(keys_key(table.name), key)
                pipe.execute()
            deleted += 1

        LOGGER.debug("Deleted %d record(s) from %s", deleted, table.name)
        return deleted


def execute(query: Query, backend: KeyValueBackend, params: Sequence[Any] = ()) -> int | RowCursor:
    """Execute a parsed statement against *backend*."""
    return QueryExecutor(backend).execute(query, params)


def has_result_set(query: Query) -> bool:
    """True for statements that produce rows (SELECT only)."""
    return isinstance(query, SelectQuery)

