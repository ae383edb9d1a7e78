"""Keyed Tables - SQL statements over a key-value store."""

from keyed_tables.backend import KeyValueBackend, connect
from keyed_tables.config import Settings, load_settings
from keyed_tables.cursor import RowCursor
from keyed_tables.database import Database, PreparedStatement
from keyed_tables.errors import (
    CursorStateError,
    ExecutionError,
    KeyedTablesError,
    ParseError,
    SchemaError,
    ValidationError,
)
from keyed_tables.parsing import Query, QueryParser, parse
from keyed_tables.query_executor import QueryExecutor, execute
from keyed_tables.schema_store import SchemaStore, TableSchema
from keyed_tables.types import ColumnType

__all__ = [
    # Main API
    "parse",
    "execute",
    "Database",
    "PreparedStatement",
    "RowCursor",
    # Engine pieces
    "Query",
    "QueryParser",
    "QueryExecutor",
    "SchemaStore",
    "TableSchema",
    "ColumnType",
    # Backends
    "KeyValueBackend",
    "connect",
    # Configuration
    "Settings",
    "load_settings",
    # Errors
    "KeyedTablesError",
    "ParseError",
    "SchemaError",
    "ValidationError",
    "ExecutionError",
    "CursorStateError",
]

__version__ = "0.1.0"
