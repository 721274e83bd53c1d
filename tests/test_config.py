# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================
# Tests for MlogConfig defaults, environment overrides and validation.
# =============================================================================

import logging

import pytest
from mlog_tools.config import MlogConfig
from mlog_tools.errors import ConfigError, MlogError
from mlog_tools.formatter import FormatOptions


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        config = MlogConfig()
        assert config.tab_size == 4
        assert config.insert_spaces is True
        assert config.insert_final_newline is True
        assert config.max_instructions == 1000
        assert config.max_labels == 500
        assert config.max_tokens_per_line == 16

    def test_format_options(self):
        config = MlogConfig(tab_size=2, insert_spaces=False)
        assert config.format_options() == FormatOptions(
            tab_size=2, insert_spaces=False, insert_final_newline=True,
        )


class TestFromEnv:
    """Test reading configuration from environment variables."""

    def test_empty_environment(self):
        assert MlogConfig.from_env({}) == MlogConfig()

    def test_integer_values(self):
        config = MlogConfig.from_env({
            "MLOG_TAB_SIZE": "2",
            "MLOG_MAX_INSTRUCTIONS": "50",
            "MLOG_MAX_LABELS": "10",
        })
        assert config.tab_size == 2
        assert config.max_instructions == 50
        assert config.max_labels == 10

    @pytest.mark.parametrize("raw,expected", [
        ("1", True), ("true", True), ("YES", True), ("on", True),
        ("0", False), ("false", False), ("No", False), ("off", False),
    ])
    def test_boolean_values(self, raw, expected):
        config = MlogConfig.from_env({"MLOG_INSERT_SPACES": raw, "MLOG_FINAL_NEWLINE": raw})
        assert config.insert_spaces is expected
        assert config.insert_final_newline is expected

    def test_invalid_integer_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = MlogConfig.from_env({"MLOG_TAB_SIZE": "wide"})
        assert config.tab_size == 4
        assert "MLOG_TAB_SIZE" in caplog.text

    def test_invalid_boolean_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = MlogConfig.from_env({"MLOG_INSERT_SPACES": "maybe"})
        assert config.insert_spaces is True
        assert "MLOG_INSERT_SPACES" in caplog.text

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("MLOG_TAB_SIZE", "8")
        assert MlogConfig.from_env().tab_size == 8


class TestValidate:
    """Test configuration validation."""

    def test_valid_config_returns_self(self):
        config = MlogConfig()
        assert config.validate() is config

    @pytest.mark.parametrize("field,value", [
        ("tab_size", 0),
        ("max_instructions", 0),
        ("max_labels", -1),
        ("max_tokens_per_line", 0),
    ])
    def test_invalid_values(self, field, value):
        config = MlogConfig(**{field: value})
        with pytest.raises(ConfigError):
            config.validate()

    def test_zero_labels_allowed(self):
        MlogConfig(max_labels=0).validate()

    def test_error_message_and_hint(self):
        with pytest.raises(MlogError) as excinfo:
            MlogConfig(tab_size=0).validate()
        message = str(excinfo.value)
        assert message.startswith("error: tab size must be at least 1 (got 0)")
        assert "hint:" in message
        assert excinfo.value.option == "tab size"
