"""Tests for loading settings from YAML."""

from pathlib import Path

import pytest

from keyed_tables.config import DEFAULT_NULL_SENTINEL, Settings, load_settings


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.null_sentinel == DEFAULT_NULL_SENTINEL
        assert settings.max_rows == 0
        assert settings.history_path() == Path("~/.ksql_history").expanduser()

    def test_load_values(self, tmp_path: Path):
        path = tmp_path / "ksql.yaml"
        path.write_text("max_rows: 25\nnull_sentinel: '<nil>'\nhistory_file: /tmp/ksql_history\n")

        settings = load_settings(path)

        assert settings == Settings(null_sentinel="<nil>", max_rows=25, history_file="/tmp/ksql_history")

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_unknown_key(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_rows: 1\nhost: localhost\n")
        with pytest.raises(ValueError, match="Unknown settings: host"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(str(path))

    def test_negative_max_rows(self, tmp_path: Path):
        path = tmp_path / "neg.yaml"
        path.write_text("max_rows: -1\n")
        with pytest.raises(ValueError, match="max_rows"):
            load_settings(path)

    def test_empty_null_sentinel(self, tmp_path: Path):
        path = tmp_path / "null.yaml"
        path.write_text("null_sentinel: ''\n")
        with pytest.raises(ValueError, match="null_sentinel"):
            load_settings(path)

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("max_rows: [1\n")
        with pytest.raises(ValueError, match="Invalid settings file"):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_redis_url(self, tmp_path: Path):
        path = tmp_path / "ksql.yaml"
        path.write_text("redis_url: redis://localhost:6379/1\n")
        assert load_settings(path).redis_url == "redis://localhost:6379/1"
        assert Settings().redis_url is None

    def test_redis_url_not_a_string(self, tmp_path: Path):
        path = tmp_path / "ksql.yaml"
        path.write_text("redis_url: 6379\n")
        with pytest.raises(ValueError, match="redis_url"):
            load_settings(path)
