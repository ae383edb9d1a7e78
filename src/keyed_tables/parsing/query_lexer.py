"""Lexer for the SQL subset understood by keyed_tables."""

import ply.lex as lex

from keyed_tables.errors import ParseError


class QueryLexer:
    """Lexer for tokenizing SQL statements."""

    # Reserved keywords
    reserved = {
        "create": "CREATE",
        "table": "TABLE",
        "if": "IF",
        "not": "NOT",
        "exists": "EXISTS",
        "drop": "DROP",
        "insert": "INSERT",
        "into": "INTO",
        "values": "VALUES",
        "select": "SELECT",
        "from": "FROM",
        "where": "WHERE",
        "update": "UPDATE",
        "set": "SET",
        "delete": "DELETE",
        "count": "COUNT",
        "null": "NULL",
        "true": "TRUE",
        "false": "FALSE",
        "primary": "PRIMARY",
        "key": "KEY",
        "auto_increment": "AUTO_INCREMENT",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "NUMBER",
        "STRING",
        "PLACEHOLDER",
        "STAR",
        "COMMA",
        "LPAREN",
        "RPAREN",
        "EQ",
        "SEMICOLON",
    ] + list(reserved.values())

    # Simple tokens
    t_STAR = r"\*"
    t_COMMA = r","
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_EQ = r"="
    t_SEMICOLON = r";"
    t_PLACEHOLDER = r"\?"

    t_ignore = " \t\r"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"--[^\n]*"
        pass  # Ignore comments

    def t_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        r"[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?"
        # Kept as source text; values are stored verbatim
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"'(?:[^']|'')*'"
        t.value = t.value[1:-1].replace("''", "'")
        return t

    def t_QUOTED_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r'`[^`]+`|"[^"]+"'
        # Quoted names keep their case and bypass keyword lookup
        t.value = t.value[1:-1]
        t.type = "IDENTIFIER"
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value.lower(), "IDENTIFIER")
        if t.type == "IDENTIFIER":
            t.value = t.value.lower()
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise ParseError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
