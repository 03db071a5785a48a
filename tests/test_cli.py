"""Tests for cloudhooks CLI commands."""

import importlib
import textwrap

import pytest
from click.testing import CliRunner

from cloudhooks.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cloud_code_dir(tmp_path, monkeypatch):
    """A working directory holding an importable cloud code module."""
    (tmp_path / "cli_cloud.py").write_text(
        textwrap.dedent(
            """
            class Score:
                class_name = "Score"


            def register(cloud):
                cloud.before_save(Score, lambda r: None, validator=lambda r: True)
                cloud.after_find("Score", lambda r: None)
                cloud.before_login(lambda r: None)
                cloud.before_connect(lambda r: None)
                cloud.on_live_query_event(lambda e: None)
                cloud.define("hello", lambda r: "Hello world!")
                cloud.job("cleanup", lambda r: None)
            """
        )
    )
    (tmp_path / "broken_cloud.py").write_text("VALUE = 1\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    importlib.invalidate_caches()
    return tmp_path


class TestHooksKinds:
    def test_lists_every_kind(self, runner):
        result = runner.invoke(cli, ["hooks", "kinds"])
        assert result.exit_code == 0
        assert "beforeSave" in result.output
        assert "beforeConnect" in result.output
        assert "afterDeleteFile" in result.output

    def test_shows_default_classes(self, runner):
        result = runner.invoke(cli, ["hooks", "kinds"])
        assert "default class: _User" in result.output
        assert "default class: _Session" in result.output


class TestHooksList:
    def test_lists_registrations(self, runner, cloud_code_dir):
        result = runner.invoke(cli, ["hooks", "list", "cli_cloud", "--tenant", "app1"])
        assert result.exit_code == 0, result.output
        assert "Tenant app1:" in result.output
        assert "Triggers (4):" in result.output
        assert "beforeSave" in result.output
        assert "Score [validator]" in result.output
        assert "_User" in result.output
        assert "Functions (1):" in result.output
        assert "hello" in result.output
        assert "Jobs (1):" in result.output
        assert "cleanup" in result.output
        assert "Live query event handler registered." in result.output
        assert "7 hook(s) registered." in result.output

    def test_missing_entry_point_fails(self, runner, cloud_code_dir):
        result = runner.invoke(cli, ["hooks", "list", "broken_cloud"])
        assert result.exit_code == 1
        assert "Failed to load cloud code" in result.output

    def test_unknown_module_fails(self, runner, cloud_code_dir):
        result = runner.invoke(cli, ["hooks", "list", "does_not_exist_cloud"])
        assert result.exit_code == 1

    def test_config_file(self, runner, cloud_code_dir):
        config = cloud_code_dir / "hooks.yaml"
        config.write_text("strict_registration: true\n")
        result = runner.invoke(
            cli, ["hooks", "list", "cli_cloud", "--config", str(config)]
        )
        assert result.exit_code == 0, result.output
        assert "Tenant default:" in result.output
