"""Tests for the ksql shell."""

from pathlib import Path

from keyed_tables.backend import connect, list_keys
from keyed_tables.database import Database
from keyed_tables import repl
from keyed_tables.repl import dump_keys, format_value, main, print_help, run_statements, split_statements

CREATE = "CREATE TABLE t (id INTEGER PRIMARY KEY AUTO_INCREMENT, name TEXT)"


class TestHelperFunctions:
    """Tests for shell helper functions."""

    def test_split_statements(self):
        assert split_statements("SELECT * FROM a; SELECT * FROM b ;") == [
            "SELECT * FROM a",
            "SELECT * FROM b",
        ]

    def test_split_keeps_quoted_semicolons(self):
        """Semicolons inside strings and quoted names do not split."""
        content = "INSERT INTO t (name) VALUES ('a;b'); SELECT `x;y` FROM t"
        assert split_statements(content) == [
            "INSERT INTO t (name) VALUES ('a;b')",
            "SELECT `x;y` FROM t",
        ]

    def test_split_skips_comments(self):
        content = "-- setup; ignored\nDELETE FROM t; -- trailing\n"
        assert split_statements(content) == ["DELETE FROM t"]

    def test_split_escaped_quote(self):
        assert split_statements("INSERT INTO t (n) VALUES ('it''s; fine')") == [
            "INSERT INTO t (n) VALUES ('it''s; fine')"
        ]

    def test_format_value(self):
        assert format_value(None) == "NULL"
        assert format_value("abc") == "abc"
        assert format_value("x" * 50, max_width=10) == "xxxxxxx..."

    def test_dump_keys(self, capsys):
        backend = connect()
        dump_keys(backend)
        assert capsys.readouterr().out == "(no keys)\n"

        backend.set("b", 1)
        backend.set("a", 2)
        dump_keys(backend)
        assert capsys.readouterr().out == "a\nb\n"

    def test_help_mentions_quoting_keywords(self, capsys):
        print_help()
        out = capsys.readouterr().out
        assert "`set`" in out
        assert "key or count" in out


class TestRunStatements:
    """Tests for executing statement text."""

    def test_prints_results(self, capsys):
        database = Database(connect())
        status = run_statements(database, f"{CREATE}; INSERT INTO t (name) VALUES ('Ann'); SELECT * FROM t")

        out = capsys.readouterr().out
        assert status == 0
        assert "Table t ready" in out
        assert "1 row affected" in out
        assert "id | name" in out
        assert "1  | Ann" in out
        assert "(1 row)" in out

    def test_null_and_empty_results(self, capsys):
        database = Database(connect())
        run_statements(database, f"{CREATE}; SELECT * FROM t; INSERT INTO t (name) VALUES (NULL); SELECT name FROM t")

        out = capsys.readouterr().out
        assert "(no results)" in out
        assert "NULL" in out

    def test_stops_at_first_error(self, capsys):
        database = Database(connect())
        status = run_statements(database, f"{CREATE}; SELECT * FROM missing; DROP TABLE t")

        captured = capsys.readouterr()
        assert status == 1
        assert "Error: Unknown table: missing" in captured.err
        assert database.table_exists("t")

    def test_verbose_echoes_statements(self, capsys):
        database = Database(connect())
        run_statements(database, CREATE, verbose=True)
        assert f"> {CREATE}" in capsys.readouterr().out


class TestMain:
    """Tests for the command line entry point."""

    def test_command(self, capsys):
        status = main(["-c", f"{CREATE}; INSERT INTO t (name) VALUES ('Ann'); SELECT COUNT(*) FROM t"])

        out = capsys.readouterr().out
        assert status == 0
        assert "count" in out
        assert "(1 row)" in out

    def test_command_error(self, capsys):
        assert main(["-c", "SELECT * FROM t WHERE a = 1 OR a = 2"]) == 1
        assert "compound WHERE predicates" in capsys.readouterr().err

    def test_file(self, tmp_path: Path, capsys):
        script = tmp_path / "setup.sql"
        script.write_text(f"""
-- Create and fill a table
{CREATE};
INSERT INTO t (name) VALUES ('Ann');
INSERT INTO t (name) VALUES ('Bob');
""")

        status = main(["-f", str(script), "-c", "SELECT name FROM t WHERE name = 'Bob'"])

        out = capsys.readouterr().out
        assert status == 0
        assert "Bob" in out
        assert "(1 row)" in out

    def test_missing_file(self, tmp_path: Path, capsys):
        assert main(["-f", str(tmp_path / "absent.sql")]) == 1
        assert "Error reading file" in capsys.readouterr().err

    def test_config_max_rows(self, tmp_path: Path, capsys):
        config = tmp_path / "ksql.yaml"
        config.write_text("max_rows: 1\n")

        status = main([
            "--config", str(config),
            "-c", f"{CREATE}; INSERT INTO t (name) VALUES ('a'); INSERT INTO t (name) VALUES ('b'); SELECT * FROM t",
        ])

        assert status == 0
        assert "(1 row)" in capsys.readouterr().out

    def test_bad_config(self, tmp_path: Path, capsys):
        config = tmp_path / "ksql.yaml"
        config.write_text("colour: blue\n")

        assert main(["--config", str(config), "-c", "SELECT * FROM t"]) == 1
        assert "Error loading settings" in capsys.readouterr().err

    def test_url_option(self, monkeypatch, capsys):
        """--url picks the server; without it a private in-process one is used."""
        urls = []

        def fake_connect(url=None):
            urls.append(url)
            return connect()

        monkeypatch.setattr(repl, "connect", fake_connect)

        assert main(["--url", "redis://cache:6380/2", "-c", CREATE]) == 0
        assert main(["-c", "SELECT * FROM t"]) == 1
        assert urls == ["redis://cache:6380/2", None]
        assert "Unknown table: t" in capsys.readouterr().err
