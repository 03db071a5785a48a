"""Hook runtime configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_level(value: str | int) -> int:
    """Convert a level name ("info", "WARNING") or number to a logging level."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


@dataclass
class HookConfig:
    """Configuration for the registry and dispatcher.

    Attributes:
        strict_registration: Reject re-registration of an occupied key instead
            of replacing the existing handler
        before_success_log_level: Level for successful before* triggers
        before_error_log_level: Level for failed before* triggers, functions and jobs
        after_log_level: Level for successful after* triggers. Failed after*
            triggers always log at ERROR since the operation already happened
    """

    strict_registration: bool = False
    before_success_log_level: int = logging.INFO
    before_error_log_level: int = logging.ERROR
    after_log_level: int = logging.INFO

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HookConfig:
        """Create HookConfig from a YAML/JSON dict.

        Accepts snake_case keys, or a ``logLevels`` block with
        ``triggerBeforeSuccess`` / ``triggerBeforeError`` / ``triggerAfter``.
        """
        levels = data.get("logLevels") or {}
        config = cls(strict_registration=bool(data.get("strict_registration", False)))

        before_success = data.get(
            "before_success_log_level", levels.get("triggerBeforeSuccess")
        )
        before_error = data.get(
            "before_error_log_level", levels.get("triggerBeforeError")
        )
        after = data.get("after_log_level", levels.get("triggerAfter"))

        if before_success is not None:
            config.before_success_log_level = _parse_level(before_success)
        if before_error is not None:
            config.before_error_log_level = _parse_level(before_error)
        if after is not None:
            config.after_log_level = _parse_level(after)
        return config

    @classmethod
    def from_file(cls, path: Path | str) -> HookConfig:
        """Load configuration from a YAML file.

        The settings may sit at the top level or under a ``cloudhooks`` key.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data.get("cloudhooks", data))

    @classmethod
    def from_env(cls) -> HookConfig:
        """Create config from environment variables.

        Resolution order:
        1. CLOUDHOOKS_CONFIG env var pointing at a YAML file
        2. Individual CLOUDHOOKS_* variables, overriding the file values
        3. Defaults
        """
        config_path = os.environ.get("CLOUDHOOKS_CONFIG")
        config = cls.from_file(config_path) if config_path else cls()

        strict = os.environ.get("CLOUDHOOKS_STRICT_REGISTRATION")
        if strict is not None:
            config.strict_registration = strict.strip().lower() in _TRUE_VALUES

        env_levels = {
            "CLOUDHOOKS_LOG_BEFORE_SUCCESS": "before_success_log_level",
            "CLOUDHOOKS_LOG_BEFORE_ERROR": "before_error_log_level",
            "CLOUDHOOKS_LOG_AFTER": "after_log_level",
        }
        for env_name, attr in env_levels.items():
            value = os.environ.get(env_name)
            if value:
                setattr(config, attr, _parse_level(value))

        return config
