"""Per-table schema bookkeeping kept in the key-value backend."""

from __future__ import annotations

import logging
import uuid as uuid_module
from dataclasses import dataclass, field

from keyed_tables.backend import KeyValueBackend
from keyed_tables.config import Settings
from keyed_tables.errors import SchemaError, ValidationError, backend_errors
from keyed_tables.parsing.query_parser import ColumnDef
from keyed_tables.types import ColumnType

LOGGER = logging.getLogger(__name__)

SCHEMA_KEY_PREFIX = "schema:"


def columns_key(table: str) -> str:
    return f"{table}:columns"


def counter_key(table: str) -> str:
    return f"{table}:counter"


def keys_key(table: str) -> str:
    return f"{table}:keys"


def record_key(table: str, record_id: str) -> str:
    return f"{table}:{record_id}"


def schema_key(table: str) -> str:
    return f"{SCHEMA_KEY_PREFIX}{table}"


@dataclass
class ColumnSpec:
    """A declared column as persisted in the table's column map."""

    name: str
    type: ColumnType
    primary_key: bool = False
    auto_increment: bool = False
    not_null: bool = False

    def encode(self) -> str:
        """Return the column map value, e.g. ``INTEGER PRIMARY KEY AUTO_INCREMENT``."""
        parts = [self.type.value]
        if self.primary_key:
            parts.append("PRIMARY KEY")
        if self.auto_increment:
            parts.append("AUTO_INCREMENT")
        if self.not_null:
            parts.append("NOT NULL")
        return " ".join(parts)

    @classmethod
    def decode(cls, name: str, text: str) -> ColumnSpec:
        words = text.upper().split()
        if not words:
            raise SchemaError(f"Corrupt column definition for '{name}': {text!r}")
        rest = " ".join(words[1:])
        return cls(
            name=name,
            type=ColumnType.from_name(words[0]),
            primary_key="PRIMARY KEY" in rest,
            auto_increment="AUTO_INCREMENT" in rest,
            not_null="NOT NULL" in rest,
        )


@dataclass
class TableSchema:
    """Shape of one table: its columns in declared order."""

    name: str
    columns: dict[str, ColumnSpec] = field(default_factory=dict)

    @property
    def column_names(self) -> list[str]:
        return list(self.columns)

    @property
    def column_types(self) -> dict[str, ColumnType]:
        return {name: spec.type for name, spec in self.columns.items()}

    @property
    def auto_increment_column(self) -> str | None:
        for name, spec in self.columns.items():
            if spec.auto_increment:
                return name
        return None

    @property
    def primary_key(self) -> str | None:
        for name, spec in self.columns.items():
            if spec.primary_key:
                return name
        return None

    def require_column(self, column: str) -> ColumnSpec:
        spec = self.columns.get(column)
        if spec is None:
            raise SchemaError(f"Unknown column '{column}' in table '{self.name}'")
        return spec


def _build_columns(table: str, column_defs: list[ColumnDef]) -> dict[str, ColumnSpec]:
    """Validate CREATE TABLE column definitions and convert them to specs."""
    columns: dict[str, ColumnSpec] = {}
    for col in column_defs:
        if col.name in columns:
            raise ValidationError(f"Duplicate column '{col.name}' in table '{table}'")
        spec = ColumnSpec(
            name=col.name,
            type=ColumnType.from_name(col.type_name),
            primary_key=col.primary_key,
            auto_increment=col.auto_increment,
            not_null=col.not_null,
        )
        if spec.auto_increment and not spec.type.is_integral:
            raise ValidationError(f"AUTO_INCREMENT column '{col.name}' must be INTEGER or BIGINT")
        columns[col.name] = spec

    if sum(1 for s in columns.values() if s.primary_key) > 1:
        raise ValidationError(f"Table '{table}' declares more than one PRIMARY KEY column")
    if sum(1 for s in columns.values() if s.auto_increment) > 1:
        raise ValidationError(f"Table '{table}' declares more than one AUTO_INCREMENT column")
    return columns


class SchemaStore:
    """Reads and writes table definitions through the backend.

    A table exists exactly when its column map (``{table}:columns``) is
    non-empty. Tables with an AUTO_INCREMENT column also own a counter
    (``{table}:counter``) that supplies record ids.
    """

    def __init__(self, backend: KeyValueBackend, settings: Settings | None = None) -> None:
        """Initialize the schema store.

        Args:
            backend: Key-value backend holding the schema and the records.
            settings: Engine settings; defaults are used when omitted.
        """
        self.backend = backend
        self.settings = settings or Settings()

    def create_table(
        self,
        name: str,
        column_defs: list[ColumnDef],
        if_not_exists: bool = False,
        raw_columns: str = "",
    ) -> bool:
        """Create a table.

        The column map, the counter and the diagnostic schema text are
        written in one atomic batch.

        Args:
            name: Table name.
            column_defs: Parsed column definitions.
            if_not_exists: Accept an existing table instead of failing. The
                existing definition is not compared with the new one.
            raw_columns: Declared column text, stored under ``schema:{name}``.

        Returns:
            True if the table was created, False if it already existed.

        Raises:
            ValidationError: If the definitions are invalid.
            SchemaError: If the table exists and if_not_exists is False.
        """
        if ":" in name:
            raise ValidationError(f"Table name may not contain ':': {name!r}")
        if name == SCHEMA_KEY_PREFIX.rstrip(":"):
            raise ValidationError(f"Table name '{name}' is reserved")
        if not column_defs:
            raise ValidationError(f"Table '{name}' must declare at least one column")
        columns = _build_columns(name, column_defs)

        if self.table(name) is not None:
            if if_not_exists:
                LOGGER.debug("Table %s already exists; skipping create", name)
                return False
            raise SchemaError(f"Table already exists: {name}")

        with backend_errors(f"CREATE TABLE {name}"):
            pipe = self.backend.pipeline(transaction=True)
            pipe.hset(columns_key(name), mapping={c.name: c.encode() for c in columns.values()})
            if any(c.auto_increment for c in columns.values()):
                pipe.set(counter_key(name), 0)
            pipe.set(schema_key(name), raw_columns or ", ".join(f"{c.name} {c.encode()}" for c in columns.values()))
            pipe.execute()

        LOGGER.info("Created table %s with columns %s", name, ", ".join(columns))
        return True

    def drop_table(self, name: str, if_exists: bool = False) -> int:
        """Drop a table together with all of its records.

        Returns:
            The number of records removed.

        Raises:
            SchemaError: If the table does not exist and if_exists is False.
        """
        if self.table(name) is None:
            if if_exists:
                LOGGER.debug("Table %s does not exist; skipping drop", name)
                return 0
            raise SchemaError(f"Unknown table: {name}")

        with backend_errors(f"DROP TABLE {name}"):
            members = sorted(self.backend.smembers(keys_key(name)))
            pipe = self.backend.pipeline(transaction=True)
            pipe.delete(*members, columns_key(name), counter_key(name), keys_key(name), schema_key(name))
            pipe.execute()

        LOGGER.info("Dropped table %s (%d records)", name, len(members))
        return len(members)

    def columns_of(self, name: str) -> dict[str, ColumnType]:
        """Return the column to type map; empty when the table does not exist."""
        table = self.table(name)
        return table.column_types if table is not None else {}

    def table(self, name: str) -> TableSchema | None:
        """Load a table's schema, or None if the table does not exist."""
        with backend_errors(f"reading schema of {name}"):
            raw = self.backend.hgetall(columns_key(name))
        if not raw:
            return None
        return TableSchema(
            name=name,
            columns={col: ColumnSpec.decode(col, text) for col, text in raw.items()},
        )

    def require_table(self, name: str) -> TableSchema:
        table = self.table(name)
        if table is None:
            raise SchemaError(f"Unknown table: {name}")
        return table

    def next_record_id(self, table: TableSchema) -> tuple[str, bool]:
        """Allocate an identifier for a new record.

        Returns:
            ``(record_id, generated_by_counter)``. Tables without an
            AUTO_INCREMENT column get a random UUID instead.
        """
        if table.auto_increment_column is None:
            return uuid_module.uuid4().hex, False
        with backend_errors(f"incrementing counter of {table.name}"):
            return str(self.backend.incr(counter_key(table.name))), True
