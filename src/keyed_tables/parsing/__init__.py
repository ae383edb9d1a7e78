"""Parsing module for the SQL statement subset."""

from keyed_tables.parsing.query_parser import (
    ColumnDef,
    Condition,
    CreateTableQuery,
    DeleteQuery,
    DropTableQuery,
    InsertQuery,
    Literal,
    NullValue,
    Parameter,
    Query,
    QueryParser,
    SelectQuery,
    UpdateQuery,
    parse,
)

__all__ = [
    "ColumnDef",
    "Condition",
    "CreateTableQuery",
    "DeleteQuery",
    "DropTableQuery",
    "InsertQuery",
    "Literal",
    "NullValue",
    "Parameter",
    "Query",
    "QueryParser",
    "SelectQuery",
    "UpdateQuery",
    "parse",
]
