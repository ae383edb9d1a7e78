"""Parser for the SQL subset understood by keyed_tables."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from keyed_tables.errors import ParseError
from keyed_tables.parsing.query_lexer import QueryLexer


@dataclass
class NullValue:
    """The SQL NULL literal."""

    pass


@dataclass
class Literal:
    """A literal value kept as its source text (string quotes already stripped)."""

    text: str
    quoted: bool = False


@dataclass
class Parameter:
    """A positional ``?`` placeholder, numbered from 1 in textual order."""

    index: int


Value = Literal | NullValue | Parameter


@dataclass
class Condition:
    """A WHERE clause: a single ``column = value`` test."""

    column: str
    value: Value


@dataclass
class ColumnDef:
    """A column definition inside CREATE TABLE."""

    name: str
    type_name: str
    primary_key: bool = False
    auto_increment: bool = False
    not_null: bool = False


@dataclass
class CreateTableQuery:
    """A CREATE TABLE statement."""

    table: str
    columns: list[ColumnDef] = field(default_factory=list)
    if_not_exists: bool = False
    raw_columns: str = ""  # Text between the outer parentheses


@dataclass
class DropTableQuery:
    """A DROP TABLE statement."""

    table: str
    if_exists: bool = False


@dataclass
class InsertQuery:
    """An INSERT statement."""

    table: str
    columns: list[str] = field(default_factory=list)
    values: list[Value] = field(default_factory=list)


@dataclass
class SelectQuery:
    """A SELECT statement.

    ``columns`` is ``["*"]`` for ``SELECT *``; ``count`` is set for
    ``SELECT COUNT(*)`` and leaves ``columns`` empty.
    """

    table: str
    columns: list[str] = field(default_factory=list)
    count: bool = False
    where: Condition | None = None

    @property
    def select_all(self) -> bool:
        return self.columns == ["*"]


@dataclass
class UpdateQuery:
    """An UPDATE statement with a single SET assignment."""

    table: str
    column: str
    value: Value
    where: Condition | None = None


@dataclass
class DeleteQuery:
    """A DELETE statement."""

    table: str
    where: Condition | None = None


Query = CreateTableQuery | DropTableQuery | InsertQuery | SelectQuery | UpdateQuery | DeleteQuery


# Words that start constructs outside the supported grammar
_UNSUPPORTED_WORDS = {
    "and": "compound WHERE predicates (AND) are not supported",
    "or": "compound WHERE predicates (OR) are not supported",
    "like": "LIKE predicates are not supported",
    "in": "IN predicates are not supported",
    "between": "BETWEEN predicates are not supported",
    "is": "IS [NOT] NULL is not supported; use column = NULL",
    "join": "joins are not supported",
}


class QueryParser:
    """Parser for SQL statements."""

    tokens = QueryLexer.tokens

    def __init__(self) -> None:
        self.lexer = QueryLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._parameter_count = 0
        # PLY keeps lexer and parser state on the instance
        self._lock = threading.Lock()

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : query SEMICOLON
                     | query"""
        p[0] = p[1]

    def p_query(self, p: yacc.YaccProduction) -> None:
        """query : create_table
                 | drop_table
                 | insert
                 | select
                 | update
                 | delete"""
        p[0] = p[1]

    # --- CREATE TABLE ---

    def p_create_table(self, p: yacc.YaccProduction) -> None:
        """create_table : CREATE TABLE if_not_exists IDENTIFIER LPAREN column_def_list RPAREN"""
        raw = p.lexer.lexdata[p.lexpos(5) + 1 : p.lexpos(7)].strip()
        p[0] = CreateTableQuery(table=p[4], columns=p[6], if_not_exists=p[3], raw_columns=raw)

    def p_if_not_exists(self, p: yacc.YaccProduction) -> None:
        """if_not_exists : IF NOT EXISTS"""
        p[0] = True

    def p_if_not_exists_empty(self, p: yacc.YaccProduction) -> None:
        """if_not_exists : """
        p[0] = False

    def p_column_def_list_single(self, p: yacc.YaccProduction) -> None:
        """column_def_list : column_def"""
        p[0] = [p[1]]

    def p_column_def_list_multiple(self, p: yacc.YaccProduction) -> None:
        """column_def_list : column_def_list COMMA column_def"""
        p[0] = p[1] + [p[3]]

    def p_column_def(self, p: yacc.YaccProduction) -> None:
        """column_def : name type_spec constraint_list"""
        column = ColumnDef(name=p[1], type_name=p[2])
        for constraint in p[3]:
            setattr(column, constraint, True)
        p[0] = column

    def p_type_spec(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER
                     | IDENTIFIER LPAREN NUMBER RPAREN
                     | IDENTIFIER LPAREN NUMBER COMMA NUMBER RPAREN"""
        # Length and precision are accepted but not recorded
        p[0] = p[1].upper()

    def p_constraint_list_empty(self, p: yacc.YaccProduction) -> None:
        """constraint_list : """
        p[0] = []

    def p_constraint_list(self, p: yacc.YaccProduction) -> None:
        """constraint_list : constraint_list constraint"""
        p[0] = p[1] + [p[2]] if p[2] else p[1]

    def p_constraint_primary_key(self, p: yacc.YaccProduction) -> None:
        """constraint : PRIMARY KEY"""
        p[0] = "primary_key"

    def p_constraint_auto_increment(self, p: yacc.YaccProduction) -> None:
        """constraint : AUTO_INCREMENT"""
        p[0] = "auto_increment"

    def p_constraint_not_null(self, p: yacc.YaccProduction) -> None:
        """constraint : NOT NULL"""
        p[0] = "not_null"

    def p_constraint_null(self, p: yacc.YaccProduction) -> None:
        """constraint : NULL"""
        p[0] = None

    # --- DROP TABLE ---

    def p_drop_table(self, p: yacc.YaccProduction) -> None:
        """drop_table : DROP TABLE if_exists IDENTIFIER"""
        p[0] = DropTableQuery(table=p[4], if_exists=p[3])

    def p_if_exists(self, p: yacc.YaccProduction) -> None:
        """if_exists : IF EXISTS"""
        p[0] = True

    def p_if_exists_empty(self, p: yacc.YaccProduction) -> None:
        """if_exists : """
        p[0] = False

    # --- INSERT ---

    def p_insert(self, p: yacc.YaccProduction) -> None:
        """insert : INSERT INTO IDENTIFIER LPAREN identifier_list RPAREN VALUES LPAREN value_list RPAREN"""
        p[0] = InsertQuery(table=p[3], columns=p[5], values=p[9])

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    # --- SELECT ---

    def p_select(self, p: yacc.YaccProduction) -> None:
        """select : SELECT projection FROM IDENTIFIER where_clause"""
        columns, count = p[2]
        p[0] = SelectQuery(table=p[4], columns=columns, count=count, where=p[5])

    def p_projection_star(self, p: yacc.YaccProduction) -> None:
        """projection : STAR"""
        p[0] = (["*"], False)

    def p_projection_columns(self, p: yacc.YaccProduction) -> None:
        """projection : identifier_list"""
        p[0] = (p[1], False)

    def p_projection_count(self, p: yacc.YaccProduction) -> None:
        """projection : COUNT LPAREN STAR RPAREN"""
        p[0] = ([], True)

    # --- UPDATE ---

    def p_update(self, p: yacc.YaccProduction) -> None:
        """update : UPDATE IDENTIFIER SET name EQ value where_clause"""
        p[0] = UpdateQuery(table=p[2], column=p[4], value=p[6], where=p[7])

    # --- DELETE ---

    def p_delete(self, p: yacc.YaccProduction) -> None:
        """delete : DELETE FROM IDENTIFIER where_clause"""
        p[0] = DeleteQuery(table=p[3], where=p[4])

    # --- Shared pieces ---

    def p_where_clause_empty(self, p: yacc.YaccProduction) -> None:
        """where_clause : """
        p[0] = None

    def p_where_clause(self, p: yacc.YaccProduction) -> None:
        """where_clause : WHERE name EQ value"""
        p[0] = Condition(column=p[2], value=p[4])

    def p_identifier_list_single(self, p: yacc.YaccProduction) -> None:
        """identifier_list : name"""
        p[0] = [p[1]]

    def p_identifier_list_multiple(self, p: yacc.YaccProduction) -> None:
        """identifier_list : identifier_list COMMA name"""
        p[0] = p[1] + [p[3]]

    def p_name(self, p: yacc.YaccProduction) -> None:
        """name : IDENTIFIER"""
        p[0] = p[1]

    def p_name_keyword(self, p: yacc.YaccProduction) -> None:
        """name : KEY
                | COUNT"""
        # Keywords that never start a clause may name a column
        p[0] = p[1].lower()

    def p_value_string(self, p: yacc.YaccProduction) -> None:
        """value : STRING"""
        p[0] = Literal(text=p[1], quoted=True)

    def p_value_number(self, p: yacc.YaccProduction) -> None:
        """value : NUMBER"""
        p[0] = Literal(text=p[1])

    def p_value_boolean(self, p: yacc.YaccProduction) -> None:
        """value : TRUE
                 | FALSE"""
        p[0] = Literal(text=p[1].lower())

    def p_value_null(self, p: yacc.YaccProduction) -> None:
        """value : NULL"""
        p[0] = NullValue()

    def p_value_placeholder(self, p: yacc.YaccProduction) -> None:
        """value : PLACEHOLDER"""
        self._parameter_count += 1
        p[0] = Parameter(index=self._parameter_count)

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            if p.type == "IDENTIFIER" and p.value in _UNSUPPORTED_WORDS:
                raise ParseError(f"Unsupported syntax at '{p.value}' (position {p.lexpos}): {_UNSUPPORTED_WORDS[p.value]}")
            raise ParseError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise ParseError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="statement", **kwargs)

    def parse(self, data: str) -> Query:
        """Parse a single statement.

        Raises:
            ParseError: If the text is not one of the supported statements.
        """
        with self._lock:
            if self.parser is None:
                self.build(debug=False, write_tables=False)

            self._parameter_count = 0
            self.lexer.lexer.lineno = 1
            return self.parser.parse(data, lexer=self.lexer.lexer)


_local = threading.local()


def parse(text: str) -> Query:
    """Parse *text* with a lazily built parser owned by the calling thread."""
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = _local.parser = QueryParser()
    return parser.parse(text)


def count_parameters(query: Query) -> int:
    """Return the number of ``?`` placeholders in a parsed statement."""
    values: list[Any] = []
    if isinstance(query, InsertQuery):
        values.extend(query.values)
    elif isinstance(query, UpdateQuery):
        values.append(query.value)
    where = getattr(query, "where", None)
    if where is not None:
        values.append(where.value)
    return sum(1 for v in values if isinstance(v, Parameter))
