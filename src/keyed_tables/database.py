"""Statement-level API: run SQL text against a backend."""

from __future__ import annotations

from typing import Any, Sequence

from keyed_tables.backend import KeyValueBackend
from keyed_tables.config import Settings
from keyed_tables.cursor import RowCursor
from keyed_tables.errors import ValidationError
from keyed_tables.parsing.query_parser import Query, QueryParser, count_parameters
from keyed_tables.query_executor import QueryExecutor, bind_parameter, has_result_set
from keyed_tables.schema_store import SchemaStore


class Database:
    """SQL statements over one key-value backend."""

    def __init__(self, backend: KeyValueBackend, settings: Settings | None = None) -> None:
        """Initialize a database.

        Args:
            backend: Live key-value backend handle.
            settings: Engine settings; defaults are used when omitted.
        """
        self.backend = backend
        self.settings = settings or Settings()
        self.schema = SchemaStore(backend, self.settings)
        self.executor = QueryExecutor(backend, self.schema, self.settings)
        self.parser = QueryParser()
        self.max_rows = self.settings.max_rows

    @property
    def last_insert_id(self) -> str | None:
        """Record id generated by the most recent INSERT."""
        return self.executor.last_insert_id

    def parse(self, sql: str) -> Query:
        return self.parser.parse(sql)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> int | RowCursor:
        """Execute one statement.

        Returns:
            A RowCursor for SELECT, otherwise the number of affected rows.
        """
        return self.run(self.parse(sql), params)

    def query(self, sql: str, params: Sequence[Any] | None = None) -> RowCursor:
        """Execute a SELECT and return its cursor."""
        parsed = self.parse(sql)
        if not has_result_set(parsed):
            raise ValidationError("query() requires a SELECT statement")
        result = self.run(parsed, params)
        assert isinstance(result, RowCursor)
        return result

    def update(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Execute a statement that does not return rows and return the affected-row count."""
        parsed = self.parse(sql)
        if has_result_set(parsed):
            raise ValidationError("update() cannot execute a SELECT statement")
        result = self.run(parsed, params)
        assert isinstance(result, int)
        return result

    def prepare(self, sql: str) -> PreparedStatement:
        """Parse *sql* once for repeated execution with bound parameters."""
        return PreparedStatement(self, self.parse(sql))

    def table_exists(self, name: str) -> bool:
        return self.schema.table(name) is not None

    def run(self, query: Query, params: Sequence[Any] | None = None) -> int | RowCursor:
        """Execute an already parsed statement."""
        result = self.executor.execute(query, tuple(params or ()))
        if isinstance(result, RowCursor) and self.max_rows and result.rowcount > self.max_rows:
            rows = []
            while len(rows) < self.max_rows and result.next():
                rows.append(result.current_row())
            result = RowCursor(result.columns, rows, result.column_types)
        return result


class PreparedStatement:
    """A parsed statement with positional ``?`` parameters.

    Parameters are numbered from 1. Values stay bound across executions
    until ``clear_parameters()`` is called.
    """

    def __init__(self, database: Database, query: Query) -> None:
        self.database = database
        self.statement = query
        self.parameter_count = count_parameters(query)
        self._values: dict[int, Any] = {}

    def bind(self, index: int, value: Any) -> None:
        """Bind *value* to placeholder *index* (1-based)."""
        if not 1 <= index <= self.parameter_count:
            raise ValidationError(f"Parameter index {index} out of range (1..{self.parameter_count})")
        # Reject unsupported types at bind time rather than at execution
        bind_parameter(value)
        self._values[index] = value

    def clear_parameters(self) -> None:
        self._values.clear()

    def parameters(self) -> tuple[Any, ...]:
        """Return the bound values in order."""
        for index in range(1, self.parameter_count + 1):
            if index not in self._values:
                raise ValidationError(f"Parameter {index} is not set")
        return tuple(self._values[i] for i in range(1, self.parameter_count + 1))

    @property
    def has_result_set(self) -> bool:
        return has_result_set(self.statement)

    def execute(self) -> int | RowCursor:
        return self.database.run(self.statement, self.parameters())

    def query(self) -> RowCursor:
        if not self.has_result_set:
            raise ValidationError("query() requires a SELECT statement")
        result = self.execute()
        assert isinstance(result, RowCursor)
        return result

    def update(self) -> int:
        if self.has_result_set:
            raise ValidationError("update() cannot execute a SELECT statement")
        result = self.execute()
        assert isinstance(result, int)
        return result
