"""Dynaconf-backed configuration helpers for planka-doctor."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from dotenv import dotenv_values
from dynaconf import Dynaconf

from planka_doctor.config.constants import (
    AGENT_EMAIL_VAR,
    AGENT_PASSWORD_VAR,
    CONTAINER_OVERRIDE_VAR,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_HEALTH_TIMEOUT_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEV_MODE_VAR,
    DOTENV_FILENAME,
    LOCAL_CONFIG_FILENAME,
    TARGET_BASE_URL_VAR,
    coerce_bool,
)

_REPO_ROOT = Path(__file__).resolve().parents[3]

LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"
DEFAULT_LOG_FORMAT = LOG_FORMAT_TEXT
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_BYTES = 10_000_000
DEFAULT_BACKUP_COUNT = 5

BACKOFF_CONSTANT: Final = "constant"
BACKOFF_EXPONENTIAL: Final = "exponential"
BACKOFF_CHOICES: Final[frozenset[str]] = frozenset({BACKOFF_CONSTANT, BACKOFF_EXPONENTIAL})

# Dynaconf keys used throughout the module. Using constants keeps environment
# and configuration lookups consistent.
TARGET_BASE_URL_KEY = "target.base_url"
AGENT_EMAIL_KEY = "agent.email"
AGENT_PASSWORD_KEY = "agent.password"

RUNTIME_CONTAINER_OVERRIDE_KEY = "runtime.container_override"
RUNTIME_DEV_MODE_KEY = "runtime.dev_mode"
RUNTIME_HEALTH_TIMEOUT_MS_KEY = "runtime.health_timeout_ms"

RETRY_MAX_ATTEMPTS_KEY = "retry.max_attempts"
RETRY_DELAY_KEY = "retry.delay"
RETRY_BACKOFF_KEY = "retry.backoff"

LOGGING_LEVEL_KEY = "logging.level"
LOGGING_FORMAT_KEY = "logging.format"
LOGGING_FILE_KEY = "logging.file"
LOGGING_MAX_BYTES_KEY = "logging.max_bytes"
LOGGING_BACKUP_COUNT_KEY = "logging.backup_count"

# Legacy names come first so the canonical variables win when both are set.
_LEGACY_ENVIRONMENT_MAP = {
    "PLANKA_BASE_URL": TARGET_BASE_URL_KEY,
    "PLANKA_AGENT_EMAIL": AGENT_EMAIL_KEY,
    "PLANKA_AGENT_PASSWORD": AGENT_PASSWORD_KEY,
    "DOCKER_CONTAINER": RUNTIME_CONTAINER_OVERRIDE_KEY,
}

_ENVIRONMENT_MAP = {
    TARGET_BASE_URL_VAR: TARGET_BASE_URL_KEY,
    AGENT_EMAIL_VAR: AGENT_EMAIL_KEY,
    AGENT_PASSWORD_VAR: AGENT_PASSWORD_KEY,
    CONTAINER_OVERRIDE_VAR: RUNTIME_CONTAINER_OVERRIDE_KEY,
    DEV_MODE_VAR: RUNTIME_DEV_MODE_KEY,
    "PLANKA_DOCTOR_HEALTH_TIMEOUT_MS": RUNTIME_HEALTH_TIMEOUT_MS_KEY,
    "PLANKA_DOCTOR_MAX_ATTEMPTS": RETRY_MAX_ATTEMPTS_KEY,
    "PLANKA_DOCTOR_RETRY_DELAY": RETRY_DELAY_KEY,
    "PLANKA_DOCTOR_BACKOFF": RETRY_BACKOFF_KEY,
    "PLANKA_DOCTOR_LOG_LEVEL": LOGGING_LEVEL_KEY,
    "PLANKA_DOCTOR_LOG_FORMAT": LOGGING_FORMAT_KEY,
    "PLANKA_DOCTOR_LOG_FILE": LOGGING_FILE_KEY,
    "PLANKA_DOCTOR_LOG_MAX_BYTES": LOGGING_MAX_BYTES_KEY,
    "PLANKA_DOCTOR_LOG_BACKUP_COUNT": LOGGING_BACKUP_COUNT_KEY,
}

_CREDENTIAL_KEYS = frozenset({AGENT_EMAIL_KEY, AGENT_PASSWORD_KEY})

_LOGFILE_DISABLED_VALUES = {"-", "none", "stderr", "off"}


@dataclass(frozen=True)
class RuntimeInputs:
    target_base_url: str | None = None
    container_override: bool | None = None
    dev_mode: bool | None = None
    health_timeout_ms: int | None = None
    max_attempts: int | None = None
    retry_delay: float | None = None
    backoff: str | None = None


@dataclass(frozen=True)
class LoggingInputs:
    level: str | None = None
    format: str | None = None
    file_path: str | None = None
    max_bytes: int | None = None
    backup_count: int | None = None


@dataclass(frozen=True)
class RuntimeSettings:
    target_base_url: str | None
    agent_email: str | None
    agent_password: str | None
    container_override: bool
    dev_mode: bool
    health_timeout_ms: int
    max_attempts: int
    retry_delay: float
    backoff: str
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoggingSettings:
    level: int
    format: str
    file_path: str | None
    max_bytes: int
    backup_count: int

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


def is_logfile_disabled_value(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _LOGFILE_DISABLED_VALUES


def _default_settings_files(config_path: str | None) -> tuple[list[str], str | None]:
    if config_path:
        config_file = Path(config_path)
        local_file = config_file.with_name(f"{config_file.stem}.local{config_file.suffix}")
        files: list[str] = []
        if config_file.exists():
            files.append(str(config_file))
        if local_file.exists():
            files.append(str(local_file))
        return files or [str(config_file)], None
    return [DEFAULT_CONFIG_FILENAME, LOCAL_CONFIG_FILENAME], str(_REPO_ROOT)


def _coerce_str(value: Any | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        candidate = value.strip()
        return candidate or None
    return str(value)


def _coerce_int(value: Any | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_float(value: Any | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_credential(value: Any | None) -> str | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def _dotenv_path(root_path: str | None) -> Path | None:
    candidates = [Path.cwd() / DOTENV_FILENAME]
    if root_path is not None:
        candidates.append(Path(root_path) / DOTENV_FILENAME)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _read_dotenv(root_path: str | None) -> dict[str, str]:
    path = _dotenv_path(root_path)
    if path is None:
        return {}
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def _apply_environment_overrides(settings: Dynaconf, environ: Mapping[str, str]) -> None:
    for mapping in (_LEGACY_ENVIRONMENT_MAP, _ENVIRONMENT_MAP):
        for env_var, key in mapping.items():
            raw = environ.get(env_var)
            if raw is None or raw == "":
                continue
            # Blank credentials are kept as written; other blank values are skipped.
            if key not in _CREDENTIAL_KEYS and isinstance(raw, str) and not raw.strip():
                continue
            settings.set(key, raw)


def _build_dynaconf(config_path: str | None, environ: Mapping[str, str] | None) -> Dynaconf:
    files, root_path = _default_settings_files(config_path)
    settings = Dynaconf(
        settings_files=list(files),
        envvar_prefix="PLANKA_DOCTOR",
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
        root_path=root_path,
    )
    if environ is None:
        # ``.env`` sits below the real process environment and is never
        # written back into it.
        environ = {**_read_dotenv(root_path), **os.environ}
    _apply_environment_overrides(settings, environ)
    return settings


def load_settings(
    config_path: str | None = None, *, environ: Mapping[str, str] | None = None
) -> Dynaconf:
    """Create a Dynaconf instance for ``config_path``.

    ``environ`` replaces :data:`os.environ` as the source of the recognised
    environment variables, which keeps resolution testable without touching
    the process environment. Without it, a ``.env`` file in the working
    directory (or next to the default config) fills in variables the process
    environment lacks; the file is read, never exported.
    """

    return _build_dynaconf(config_path, environ)


def _apply_runtime_inputs(settings: Dynaconf, runtime_inputs: RuntimeInputs | None) -> None:
    if runtime_inputs is None:
        return

    if runtime_inputs.target_base_url is not None:
        settings.set(TARGET_BASE_URL_KEY, runtime_inputs.target_base_url.strip())
    if runtime_inputs.container_override is not None:
        settings.set(RUNTIME_CONTAINER_OVERRIDE_KEY, runtime_inputs.container_override)
    if runtime_inputs.dev_mode is not None:
        settings.set(RUNTIME_DEV_MODE_KEY, runtime_inputs.dev_mode)
    if runtime_inputs.health_timeout_ms is not None:
        settings.set(RUNTIME_HEALTH_TIMEOUT_MS_KEY, runtime_inputs.health_timeout_ms)
    if runtime_inputs.max_attempts is not None:
        settings.set(RETRY_MAX_ATTEMPTS_KEY, runtime_inputs.max_attempts)
    if runtime_inputs.retry_delay is not None:
        settings.set(RETRY_DELAY_KEY, runtime_inputs.retry_delay)
    if runtime_inputs.backoff is not None:
        settings.set(RETRY_BACKOFF_KEY, runtime_inputs.backoff.strip())


def _apply_logging_inputs(settings: Dynaconf, logging_inputs: LoggingInputs | None) -> None:
    if logging_inputs is None:
        return

    if logging_inputs.level is not None:
        settings.set(LOGGING_LEVEL_KEY, logging_inputs.level.strip())
    if logging_inputs.format is not None:
        settings.set(LOGGING_FORMAT_KEY, logging_inputs.format.strip())
    if logging_inputs.file_path is not None:
        settings.set(LOGGING_FILE_KEY, logging_inputs.file_path.strip())
    if logging_inputs.max_bytes is not None:
        settings.set(LOGGING_MAX_BYTES_KEY, logging_inputs.max_bytes)
    if logging_inputs.backup_count is not None:
        settings.set(LOGGING_BACKUP_COUNT_KEY, logging_inputs.backup_count)


def apply_cli_overrides(
    settings: Dynaconf,
    *,
    runtime_inputs: RuntimeInputs | None = None,
    logging_inputs: LoggingInputs | None = None,
) -> None:
    """Apply CLI overrides to the provided settings instance."""

    _apply_runtime_inputs(settings, runtime_inputs)
    _apply_logging_inputs(settings, logging_inputs)


def _resolve_positive_int(
    settings: Dynaconf, key: str, *, default: int, label: str, warnings: list[str]
) -> int:
    raw = settings.get(key)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    value = _coerce_int(raw)
    if value is None or value <= 0:
        warnings.append(f"Invalid {label} value {raw!r}; using default {default}")
        return default
    return value


def _resolve_retry_delay(settings: Dynaconf, warnings: list[str]) -> float:
    raw = settings.get(RETRY_DELAY_KEY)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return DEFAULT_RETRY_DELAY_SECONDS
    value = _coerce_float(raw)
    if value is None or value < 0:
        warnings.append(
            f"Invalid retry delay {raw!r}; using default {DEFAULT_RETRY_DELAY_SECONDS}"
        )
        return DEFAULT_RETRY_DELAY_SECONDS
    return value


def _resolve_backoff(settings: Dynaconf, warnings: list[str]) -> str:
    raw = _coerce_str(settings.get(RETRY_BACKOFF_KEY))
    if raw is None:
        return BACKOFF_CONSTANT
    normalized = raw.lower()
    if normalized not in BACKOFF_CHOICES:
        warnings.append(f"Unknown backoff '{raw}' requested; defaulting to '{BACKOFF_CONSTANT}'")
        return BACKOFF_CONSTANT
    return normalized


def _resolve_bool(settings: Dynaconf, key: str, *, default: bool = False) -> bool:
    return coerce_bool(settings.get(key), default=default)


def runtime_from_settings(settings: Dynaconf) -> RuntimeSettings:
    """Extract runtime settings and validation warnings from Dynaconf.

    Credentials are passed through untouched; deciding whether they are
    sufficient belongs to the environment resolver.
    """

    warnings: list[str] = []

    return RuntimeSettings(
        target_base_url=_coerce_str(settings.get(TARGET_BASE_URL_KEY)),
        agent_email=_coerce_credential(settings.get(AGENT_EMAIL_KEY)),
        agent_password=_coerce_credential(settings.get(AGENT_PASSWORD_KEY)),
        container_override=_resolve_bool(settings, RUNTIME_CONTAINER_OVERRIDE_KEY),
        dev_mode=_resolve_bool(settings, RUNTIME_DEV_MODE_KEY),
        health_timeout_ms=_resolve_positive_int(
            settings,
            RUNTIME_HEALTH_TIMEOUT_MS_KEY,
            default=DEFAULT_HEALTH_TIMEOUT_MS,
            label="health timeout",
            warnings=warnings,
        ),
        max_attempts=_resolve_positive_int(
            settings,
            RETRY_MAX_ATTEMPTS_KEY,
            default=DEFAULT_MAX_ATTEMPTS,
            label="max attempts",
            warnings=warnings,
        ),
        retry_delay=_resolve_retry_delay(settings, warnings),
        backoff=_resolve_backoff(settings, warnings),
        warnings=tuple(warnings),
    )


def logging_from_settings(settings: Dynaconf) -> LoggingSettings:
    """Extract logging configuration from Dynaconf."""

    level_value = _coerce_str(settings.get(LOGGING_LEVEL_KEY)) or DEFAULT_LOG_LEVEL
    format_value = (_coerce_str(settings.get(LOGGING_FORMAT_KEY)) or DEFAULT_LOG_FORMAT).lower()
    if format_value not in {LOG_FORMAT_TEXT, LOG_FORMAT_JSON}:
        raise ValueError(f"Unsupported log format: {format_value}")

    file_path = _coerce_str(settings.get(LOGGING_FILE_KEY))
    if is_logfile_disabled_value(file_path):
        file_path = None

    max_bytes_value = _coerce_int(settings.get(LOGGING_MAX_BYTES_KEY))
    if max_bytes_value is None or max_bytes_value <= 0:
        max_bytes_value = DEFAULT_MAX_BYTES

    backup_count_value = _coerce_int(settings.get(LOGGING_BACKUP_COUNT_KEY))
    if backup_count_value is None or backup_count_value <= 0:
        backup_count_value = DEFAULT_BACKUP_COUNT

    mapping = logging.getLevelNamesMapping()
    level_upper = level_value.upper()
    if level_upper.isdigit():
        resolved_level = int(level_upper)
    else:
        resolved_level = mapping.get(level_upper, logging.INFO)

    return LoggingSettings(
        level=resolved_level,
        format=format_value,
        file_path=file_path,
        max_bytes=max_bytes_value,
        backup_count=backup_count_value,
    )


def resolve_runtime_settings(
    *,
    config_path: str | None = None,
    environ: Mapping[str, str] | None = None,
    runtime_inputs: RuntimeInputs | None = None,
) -> RuntimeSettings:
    settings = load_settings(config_path, environ=environ)
    apply_cli_overrides(settings, runtime_inputs=runtime_inputs)
    return runtime_from_settings(settings)


__all__ = [
    "AGENT_EMAIL_KEY",
    "AGENT_PASSWORD_KEY",
    "BACKOFF_CHOICES",
    "BACKOFF_CONSTANT",
    "BACKOFF_EXPONENTIAL",
    "DEFAULT_BACKUP_COUNT",
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_LOG_FORMAT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_BYTES",
    "LOG_FORMAT_JSON",
    "LOG_FORMAT_TEXT",
    "LOGGING_BACKUP_COUNT_KEY",
    "LOGGING_FILE_KEY",
    "LOGGING_FORMAT_KEY",
    "LOGGING_LEVEL_KEY",
    "LOGGING_MAX_BYTES_KEY",
    "LoggingInputs",
    "LoggingSettings",
    "RETRY_BACKOFF_KEY",
    "RETRY_DELAY_KEY",
    "RETRY_MAX_ATTEMPTS_KEY",
    "RUNTIME_CONTAINER_OVERRIDE_KEY",
    "RUNTIME_DEV_MODE_KEY",
    "RUNTIME_HEALTH_TIMEOUT_MS_KEY",
    "RuntimeInputs",
    "RuntimeSettings",
    "TARGET_BASE_URL_KEY",
    "apply_cli_overrides",
    "is_logfile_disabled_value",
    "load_settings",
    "logging_from_settings",
    "resolve_runtime_settings",
    "runtime_from_settings",
]
