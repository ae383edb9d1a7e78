"""Exception types raised by keyed_tables."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


class KeyedTablesError(Exception):
    """Base class for every error raised by this package."""


class ParseError(KeyedTablesError):
    """Statement text matches no recognized statement shape."""


class SchemaError(KeyedTablesError):
    """A referenced table or column does not exist, or a table already exists."""


class ValidationError(KeyedTablesError):
    """Arity mismatch, unbound parameter or unsupported literal."""


class ExecutionError(KeyedTablesError):
    """A call against the key-value backend failed."""


class CursorStateError(KeyedTablesError):
    """A row cursor was read while not positioned on a row."""


@contextmanager
def backend_errors(action: str) -> Iterator[None]:
    """Convert failures raised by backend calls into ExecutionError.

    Errors raised by this package pass through untouched. The original
    exception is chained so callers can inspect it.
    """
    try:
        yield
    except KeyedTablesError:
        raise
    except Exception as e:
        raise ExecutionError(f"{action} failed: {e}") from e
