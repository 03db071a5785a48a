"""Tests for hook runtime configuration."""

import logging

import pytest

from cloudhooks.config import HookConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CLOUDHOOKS_CONFIG",
        "CLOUDHOOKS_STRICT_REGISTRATION",
        "CLOUDHOOKS_LOG_BEFORE_SUCCESS",
        "CLOUDHOOKS_LOG_BEFORE_ERROR",
        "CLOUDHOOKS_LOG_AFTER",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = HookConfig()
        assert config.strict_registration is False
        assert config.before_success_log_level == logging.INFO
        assert config.before_error_log_level == logging.ERROR
        assert config.after_log_level == logging.INFO

    def test_from_env_without_variables(self):
        assert HookConfig.from_env() == HookConfig()


class TestFromDict:
    def test_snake_case_keys(self):
        config = HookConfig.from_dict(
            {"strict_registration": True, "after_log_level": "debug"}
        )
        assert config.strict_registration is True
        assert config.after_log_level == logging.DEBUG

    def test_log_levels_block(self):
        config = HookConfig.from_dict(
            {
                "logLevels": {
                    "triggerBeforeSuccess": "warning",
                    "triggerBeforeError": "critical",
                    "triggerAfter": 5,
                }
            }
        )
        assert config.before_success_log_level == logging.WARNING
        assert config.before_error_log_level == logging.CRITICAL
        assert config.after_log_level == 5

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            HookConfig.from_dict({"after_log_level": "loud"})


class TestFromFile:
    def test_top_level_mapping(self, tmp_path):
        path = tmp_path / "hooks.yaml"
        path.write_text("strict_registration: true\nbefore_error_log_level: warning\n")
        config = HookConfig.from_file(path)
        assert config.strict_registration is True
        assert config.before_error_log_level == logging.WARNING

    def test_nested_under_cloudhooks(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            "cloudhooks:\n"
            "  logLevels:\n"
            "    triggerAfter: error\n"
            "database: sqlite\n"
        )
        config = HookConfig.from_file(path)
        assert config.after_log_level == logging.ERROR
        assert config.strict_registration is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert HookConfig.from_file(path) == HookConfig()

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            HookConfig.from_file(path)


class TestFromEnv:
    @pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("off", False)])
    def test_strict_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv("CLOUDHOOKS_STRICT_REGISTRATION", value)
        assert HookConfig.from_env().strict_registration is expected

    def test_levels(self, monkeypatch):
        monkeypatch.setenv("CLOUDHOOKS_LOG_BEFORE_SUCCESS", "debug")
        monkeypatch.setenv("CLOUDHOOKS_LOG_AFTER", "WARNING")
        config = HookConfig.from_env()
        assert config.before_success_log_level == logging.DEBUG
        assert config.after_log_level == logging.WARNING

    def test_env_overrides_file(self, monkeypatch, tmp_path):
        path = tmp_path / "hooks.yaml"
        path.write_text("strict_registration: true\nafter_log_level: error\n")
        monkeypatch.setenv("CLOUDHOOKS_CONFIG", str(path))
        monkeypatch.setenv("CLOUDHOOKS_STRICT_REGISTRATION", "false")
        config = HookConfig.from_env()
        assert config.strict_registration is False
        assert config.after_log_level == logging.ERROR
