"""Typer option declarations and normalization helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Final

import typer

from planka_doctor.config.settings import BACKOFF_CHOICES

LOG_FORMAT_CHOICES: Final[set[str]] = {"text", "json"}
LOG_LEVEL_CHOICES: Final[list[str]] = sorted(
    name
    for name, value in logging.getLevelNamesMapping().items()
    if isinstance(name, str) and not name.isdigit()
)
LOG_LEVEL_SET: Final[set[str]] = {choice.upper() for choice in LOG_LEVEL_CHOICES}

ConfigPathOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        help="Path to a planka-doctor configuration TOML file to load",
        envvar="PLANKA_DOCTOR_CONFIG",
        show_envvar=True,
        rich_help_panel="Configuration",
    ),
]

TargetBaseUrlOption = Annotated[
    str | None,
    typer.Option(
        "--target-base-url",
        help="Planka base URL (overrides TARGET_BASE_URL and auto-detection)",
        rich_help_panel="Target",
    ),
]

ContainerOption = Annotated[
    bool | None,
    typer.Option(
        "--container/--no-container",
        help="Force container detection on (off falls back to marker-file detection)",
        rich_help_panel="Target",
    ),
]

DevModeOption = Annotated[
    bool | None,
    typer.Option(
        "--dev/--no-dev",
        help="Development mode: print environment details with results",
        rich_help_panel="Target",
    ),
]

TimeoutMsOption = Annotated[
    int | None,
    typer.Option(
        "--timeout-ms",
        min=1,
        help="Health check timeout in milliseconds",
        rich_help_panel="Health check",
    ),
]

MaxAttemptsOption = Annotated[
    int | None,
    typer.Option(
        "--max-attempts",
        min=1,
        help="Number of health check attempts before giving up",
        rich_help_panel="Health check",
    ),
]

RetryDelayOption = Annotated[
    float | None,
    typer.Option(
        "--retry-delay",
        min=0.0,
        help="Base delay in seconds between health check attempts",
        rich_help_panel="Health check",
    ),
]

BackoffOption = Annotated[
    str | None,
    typer.Option(
        "--backoff",
        help="Delay growth between attempts (constant or exponential)",
        rich_help_panel="Health check",
    ),
]

WebhookOption = Annotated[
    list[str] | None,
    typer.Option(
        "--webhook",
        help="Webhook URL notified about health check outcomes (repeatable)",
        rich_help_panel="Health check",
    ),
]

JsonOutputOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print the result as JSON instead of a formatted report",
        rich_help_panel="Output",
    ),
]

ReportPathOption = Annotated[
    Path,
    typer.Option(
        "--report",
        help="Where to write the JSON diagnostic report",
        rich_help_panel="Output",
    ),
]

NoReportOption = Annotated[
    bool,
    typer.Option(
        "--no-report",
        help="Do not write the JSON diagnostic report",
        rich_help_panel="Output",
    ),
]

PortListOption = Annotated[
    list[int] | None,
    typer.Option(
        "--port",
        min=1,
        max=65535,
        help="Local port to inspect (repeatable; replaces the default list)",
        rich_help_panel="Checks",
    ),
]

UrlListOption = Annotated[
    list[str] | None,
    typer.Option(
        "--url",
        help="URL to test for connectivity (repeatable; replaces the default list)",
        rich_help_panel="Checks",
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Logging level (e.g. INFO, DEBUG)",
        envvar="PLANKA_DOCTOR_LOG_LEVEL",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]

LogFormatOption = Annotated[
    str | None,
    typer.Option(
        "--log-format",
        help="Logging format (text or json)",
        envvar="PLANKA_DOCTOR_LOG_FORMAT",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]

LogFileOption = Annotated[
    str | None,
    typer.Option(
        "--log-file",
        help="Path to a log file (use '-', none, stderr to disable)",
        envvar="PLANKA_DOCTOR_LOG_FILE",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]


def clean_string(value: str | None) -> str | None:
    """Normalize optional string input."""

    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def normalize_log_format(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip().lower()
    if not candidate:
        return None
    if candidate not in LOG_FORMAT_CHOICES:
        raise typer.BadParameter(
            "Log format must be either 'text' or 'json'",
            param_hint="--log-format",
        )
    return candidate


def normalize_log_level(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip().upper()
    if not candidate:
        return None
    if candidate not in LOG_LEVEL_SET:
        raise typer.BadParameter(
            f"Log level must be one of: {', '.join(LOG_LEVEL_CHOICES)}",
            param_hint="--log-level",
        )
    return candidate


def normalize_backoff(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip().lower()
    if not candidate:
        return None
    if candidate not in BACKOFF_CHOICES:
        raise typer.BadParameter(
            f"Backoff must be one of: {', '.join(sorted(BACKOFF_CHOICES))}",
            param_hint="--backoff",
        )
    return candidate


__all__ = [
    "BackoffOption",
    "ConfigPathOption",
    "ContainerOption",
    "DevModeOption",
    "JsonOutputOption",
    "LOG_FORMAT_CHOICES",
    "LOG_LEVEL_CHOICES",
    "LogFileOption",
    "LogFormatOption",
    "LogLevelOption",
    "MaxAttemptsOption",
    "NoReportOption",
    "PortListOption",
    "ReportPathOption",
    "RetryDelayOption",
    "TargetBaseUrlOption",
    "TimeoutMsOption",
    "UrlListOption",
    "WebhookOption",
    "clean_string",
    "normalize_backoff",
    "normalize_log_format",
    "normalize_log_level",
]
