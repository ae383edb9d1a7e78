"""Interactive SQL shell over an in-process key-value store."""

from __future__ import annotations

import argparse
import logging
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

import redis

from keyed_tables.backend import connect, list_keys
from keyed_tables.config import Settings, load_settings
from keyed_tables.cursor import RowCursor
from keyed_tables.database import Database
from keyed_tables.errors import KeyedTablesError
from keyed_tables.parsing.query_parser import CreateTableQuery, DropTableQuery, Query

LOGGER = logging.getLogger(__name__)


def split_statements(content: str) -> list[str]:
    """Split content into statements on semicolons outside quotes.

    Single-quoted strings (with ``''`` escapes), quoted identifiers and
    ``--`` comments are skipped over so their contents never split a
    statement.
    """
    statements = []
    current: list[str] = []
    quote: str | None = None
    i = 0

    while i < len(content):
        ch = content[i]

        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in ("'", '"', "`"):
            quote = ch
            current.append(ch)
            i += 1
            continue

        if content.startswith("--", i):
            end = content.find("\n", i)
            i = len(content) if end == -1 else end
            continue

        if ch == ";":
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
            i += 1
            continue

        current.append(ch)
        i += 1

    stmt = "".join(current).strip()
    if stmt:
        statements.append(stmt)

    return statements


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display."""
    if value is None:
        return "NULL"
    s = str(value)
    if len(s) > max_width:
        return s[: max_width - 3] + "..."
    return s


def print_cursor(cursor: RowCursor) -> None:
    """Print a cursor's rows as an aligned table."""
    rows = list(cursor)
    columns = cursor.columns
    if not rows:
        print("(no results)")
        return

    col_widths = {col: len(col) for col in columns}
    for row in rows:
        for col in columns:
            col_widths[col] = max(col_widths[col], len(format_value(row.get(col))))

    header = " | ".join(col.ljust(col_widths[col]) for col in columns)
    print(header)
    print("-" * len(header))
    for row in rows:
        print(" | ".join(format_value(row.get(col)).ljust(col_widths[col]) for col in columns))

    print(f"\n({len(rows)} row{'s' if len(rows) != 1 else ''})")


def print_result(query: Query, result: int | RowCursor) -> None:
    """Print the outcome of one statement."""
    if isinstance(result, RowCursor):
        with result:
            print_cursor(result)
    elif isinstance(query, CreateTableQuery):
        print(f"Table {query.table} ready")
    elif isinstance(query, DropTableQuery):
        print(f"Table {query.table} dropped")
    else:
        print(f"{result} row{'s' if result != 1 else ''} affected")


def run_statements(database: Database, content: str, verbose: bool = False) -> int:
    """Execute every statement in *content*, stopping at the first error.

    Returns:
        0 on success, 1 on error
    """
    for sql in split_statements(content):
        if verbose:
            print(f"> {sql}")
        try:
            query = database.parse(sql)
            print_result(query, database.run(query))
        except KeyedTablesError as e:
            LOGGER.debug("Statement failed: %s", sql, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


def dump_keys(client: redis.Redis) -> None:
    keys = list_keys(client)
    if not keys:
        print("(no keys)")
        return
    for key in keys:
        print(key.replace("\x00", "\\0"))


def print_help() -> None:
    print("""Statements (end with ';'):
  CREATE TABLE [IF NOT EXISTS] name (col TYPE [PRIMARY KEY] [AUTO_INCREMENT] [NOT NULL], ...)
  DROP TABLE [IF EXISTS] name
  INSERT INTO name (col, ...) VALUES (value, ...)
  SELECT * | col, ... | COUNT(*) FROM name [WHERE col = value]
  UPDATE name SET col = value [WHERE col = value]
  DELETE FROM name [WHERE col = value]

Types: INTEGER, BIGINT, VARCHAR, TEXT, TIMESTAMP, BOOLEAN, DOUBLE

Names that are keywords (set, table, values, ...) must be quoted with
back-ticks or double quotes, e.g. `set`. Columns may be named key or count.

Shell commands:
  help        Show this help
  keys        List the keys held by the backend
  exit, quit  Leave the shell
""")


def run_repl(database: Database, client: redis.Redis, settings: Settings) -> int:
    """Run the interactive shell."""
    target = settings.redis_url or "in-process fakeredis"
    print(f"ksql - SQL over a key-value store ({target})")
    print("Type 'help' for commands, 'exit' to quit.\n")

    history_file = settings.history_path()
    try:
        readline.read_history_file(history_file)
    except (FileNotFoundError, OSError):
        pass

    buffer: list[str] = []
    try:
        while True:
            try:
                line = input("...> " if buffer else "ksql> ")
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                buffer = []
                continue

            stripped = line.strip()
            if not buffer:
                command = stripped.rstrip(";").lower()
                if command in ("exit", "quit"):
                    break
                if command == "help":
                    print_help()
                    continue
                if command == "keys":
                    dump_keys(client)
                    continue
                if not stripped:
                    continue

            buffer.append(line)
            text = "\n".join(buffer)
            if not text.rstrip().endswith(";"):
                continue
            buffer = []
            run_statements(database, text)
    finally:
        try:
            readline.set_history_length(1000)
            readline.write_history_file(history_file)
        except OSError:
            pass

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Interactive SQL shell over a Redis key-value store"
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute statements and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute statements from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print each statement before executing",
    )
    arg_parser.add_argument(
        "--url",
        type=str,
        help="Redis URL, e.g. redis://localhost:6379/0 (default: in-process fakeredis)",
    )
    arg_parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file",
    )
    arg_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config) if args.config else Settings()
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    if args.url:
        settings.redis_url = args.url
    client = connect(settings.redis_url)
    LOGGER.debug("Using backend %s", settings.redis_url or "fakeredis")
    database = Database(client, settings)

    if args.file:
        try:
            content = args.file.read_text()
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            return 1
        status = run_statements(database, content, args.verbose)
        if status or not args.command:
            return status

    if args.command:
        return run_statements(database, args.command, args.verbose)

    return run_repl(database, client, settings)


if __name__ == "__main__":
    sys.exit(main())
