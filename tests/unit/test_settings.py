from __future__ import annotations

import logging
from pathlib import Path

import pytest

from planka_doctor.config.constants import DEFAULT_CONFIG_FILENAME
from planka_doctor.config.settings import (
    BACKOFF_CONSTANT,
    BACKOFF_EXPONENTIAL,
    LOG_FORMAT_JSON,
    LoggingInputs,
    RuntimeInputs,
    RuntimeSettings,
    apply_cli_overrides,
    is_logfile_disabled_value,
    load_settings,
    logging_from_settings,
    resolve_runtime_settings,
    runtime_from_settings,
)


def _write_base_config(path: Path) -> None:
    path.write_text(
        "\n".join(
            [
                "[target]",
                'base_url = "http://file.local:3333"',
                "",
                "[agent]",
                'email = "file@example.com"',
                'password = "file-secret"',
                "",
                "[runtime]",
                "container_override = false",
                "dev_mode = false",
                "health_timeout_ms = 2500",
                "",
                "[retry]",
                "max_attempts = 4",
                "delay = 0.5",
                'backoff = "exponential"',
                "",
                "[logging]",
                'level = "WARNING"',
                'format = "json"',
                'file = ""',
                "max_bytes = 2048",
                "backup_count = 2",
            ]
        )
        + "\n",
        encoding="utf-8",
    )


def test_runtime_defaults_from_config(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    settings_obj = load_settings(str(config_path), environ={})
    runtime = runtime_from_settings(settings_obj)

    assert isinstance(runtime, RuntimeSettings)
    assert runtime.target_base_url == "http://file.local:3333"
    assert runtime.agent_email == "file@example.com"
    assert runtime.agent_password == "file-secret"
    assert runtime.health_timeout_ms == 2500
    assert runtime.max_attempts == 4
    assert runtime.retry_delay == 0.5
    assert runtime.backoff == BACKOFF_EXPONENTIAL
    assert runtime.container_override is False
    assert runtime.warnings == ()


def test_environment_overrides_config(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    runtime = resolve_runtime_settings(
        config_path=str(config_path),
        environ={
            "TARGET_BASE_URL": "http://env.local:3333",
            "CONTAINER_OVERRIDE": "1",
            "PLANKA_DOCTOR_MAX_ATTEMPTS": "7",
        },
    )

    assert runtime.target_base_url == "http://env.local:3333"
    assert runtime.container_override is True
    assert runtime.max_attempts == 7
    assert runtime.agent_email == "file@example.com"


def test_cli_overrides_beat_environment(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    runtime = resolve_runtime_settings(
        config_path=str(config_path),
        environ={"TARGET_BASE_URL": "http://env.local:3333"},
        runtime_inputs=RuntimeInputs(
            target_base_url="http://cli.local:3333",
            max_attempts=1,
            backoff="constant",
        ),
    )

    assert runtime.target_base_url == "http://cli.local:3333"
    assert runtime.max_attempts == 1
    assert runtime.backoff == BACKOFF_CONSTANT


def test_invalid_numbers_fall_back_with_warnings(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    runtime = resolve_runtime_settings(
        config_path=str(config_path),
        environ={
            "PLANKA_DOCTOR_HEALTH_TIMEOUT_MS": "soon",
            "PLANKA_DOCTOR_MAX_ATTEMPTS": "0",
            "PLANKA_DOCTOR_RETRY_DELAY": "-1",
            "PLANKA_DOCTOR_BACKOFF": "fibonacci",
        },
    )

    assert runtime.health_timeout_ms == 5000
    assert runtime.max_attempts == 3
    assert runtime.retry_delay == 2.0
    assert runtime.backoff == BACKOFF_CONSTANT
    assert len(runtime.warnings) == 4
    assert any("fibonacci" in warning for warning in runtime.warnings)


def test_logging_settings_from_config_and_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    settings_obj = load_settings(str(config_path), environ={})
    logging_settings = logging_from_settings(settings_obj)
    assert logging_settings.level == logging.WARNING
    assert logging_settings.format == LOG_FORMAT_JSON
    assert logging_settings.file_path is None
    assert logging_settings.max_bytes == 2048
    assert logging_settings.backup_count == 2

    apply_cli_overrides(
        settings_obj,
        logging_inputs=LoggingInputs(level="DEBUG", format="text", file_path="doctor.log"),
    )
    overridden = logging_from_settings(settings_obj)
    assert overridden.level == logging.DEBUG
    assert overridden.format == "text"
    assert overridden.file_path == "doctor.log"
    assert overridden.level_name == "DEBUG"


def test_unsupported_log_format_raises(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    settings_obj = load_settings(str(config_path), environ={"PLANKA_DOCTOR_LOG_FORMAT": "xml"})

    with pytest.raises(ValueError, match="Unsupported log format"):
        logging_from_settings(settings_obj)


@pytest.mark.parametrize("value", ["-", "none", "STDERR", " off "])
def test_logfile_disabled_markers(value: str) -> None:
    assert is_logfile_disabled_value(value) is True


def test_logfile_regular_path_is_not_disabled() -> None:
    assert is_logfile_disabled_value("planka-doctor.log") is False
    assert is_logfile_disabled_value(None) is False
