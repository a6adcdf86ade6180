"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest

from kindle_vocab import ConfigError, VocabConfig, load_config
from kindle_vocab.config import CONFIG_ENV, DB_ENV, DEFAULT_DB_PATH


class TestDefaults:
    """Tests for configuration defaults."""

    def test_no_config_anywhere(self):
        """Test defaults when no config file exists."""
        config = load_config()
        assert config == VocabConfig()
        assert config.db_path == DEFAULT_DB_PATH
        assert config.export_filename == "vocab.tsv"
        assert config.emphasis_tag == "strong"
        assert config.log_level == "WARNING"

    def test_default_file_is_used(self, tmp_path):
        """Test that the default config location is read."""
        # the autouse fixture points the default location here
        (tmp_path / "no-config.yaml").write_text("emphasis_tag: b\n")
        assert load_config().emphasis_tag == "b"

    def test_empty_document(self):
        assert load_config("") == VocabConfig()


class TestSources:
    """Tests for the accepted config sources."""

    def test_from_file(self, tmp_path):
        """Test loading config from a file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            f"db_path: {tmp_path / 'store.db'}\n"
            "export_filename: anki.tsv\n"
            "log_level: info\n"
        )
        config = load_config(path)
        assert config.db_path == tmp_path / "store.db"
        assert config.export_filename == "anki.tsv"
        assert config.log_level == "INFO"

    def test_from_path_string(self, tmp_path):
        """Test loading config from a path given as a string."""
        path = tmp_path / "config.yml"
        path.write_text("emphasis_tag: em\n")
        assert load_config(str(path)).emphasis_tag == "em"

    def test_from_yaml_string(self):
        """Test loading config from a YAML string."""
        config = load_config("emphasis_tag: b\nlog_level: debug")
        assert config.emphasis_tag == "b"
        assert config.log_level == "DEBUG"

    def test_from_dict(self):
        """Test loading config from a dictionary."""
        assert load_config({"export_filename": "x.tsv"}).export_filename == "x.tsv"

    def test_env_config_path(self, tmp_path, monkeypatch):
        """Test that KINDLE_VOCAB_CONFIG points at the config file."""
        path = tmp_path / "elsewhere.yaml"
        path.write_text("export_filename: env.tsv\n")
        monkeypatch.setenv(CONFIG_ENV, str(path))
        assert load_config().export_filename == "env.tsv"

    def test_missing_file(self, tmp_path):
        """Test that a named config file must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
        with pytest.raises(FileNotFoundError):
            load_config("missing.yaml")


class TestOverrides:
    """Tests for values that override the config file."""

    def test_db_env_wins(self, tmp_path, monkeypatch):
        """Test that KINDLE_VOCAB_DB overrides db_path."""
        monkeypatch.setenv(DB_ENV, str(tmp_path / "env.db"))
        config = load_config({"db_path": "/somewhere/else.db"})
        assert config.db_path == tmp_path / "env.db"

    def test_tilde_expanded(self, tmp_path, monkeypatch):
        """Test that ~ in db_path is expanded."""
        monkeypatch.setenv("HOME", str(tmp_path))
        config = load_config({"db_path": "~/vocab/store.db"})
        assert config.db_path == Path(tmp_path) / "vocab" / "store.db"


class TestErrors:
    """Tests for config errors."""

    def test_invalid_yaml(self):
        """Test that malformed YAML raises ConfigError."""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config("emphasis_tag: [unclosed\nlog_level: info")

    def test_root_not_a_mapping(self):
        """Test that a YAML list is rejected."""
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config("- one\n- two\n")

    def test_unknown_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ConfigError, match="Unknown config key"):
            load_config({"colour": "blue"})

    def test_unknown_log_level(self):
        """Test that an unknown log level is rejected."""
        with pytest.raises(ConfigError, match="Unknown log level: LOUD"):
            load_config({"log_level": "loud"})
