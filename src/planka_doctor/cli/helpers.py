"""Reusable helper utilities for the planka-doctor CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from dynaconf import Dynaconf
from rich.console import Console

from planka_doctor.application.environment import context_from_runtime
from planka_doctor.cli import options as cli_options
from planka_doctor.cli.models import CliInvocation, LoggingOverrides, RuntimeOverrides
from planka_doctor.config.settings import (
    LoggingInputs,
    LoggingSettings,
    RuntimeInputs,
    RuntimeSettings,
    apply_cli_overrides,
    is_logfile_disabled_value,
    load_settings,
    logging_from_settings,
    runtime_from_settings,
)
from planka_doctor.domain.models import EnvironmentContext
from planka_doctor.infrastructure.errors import ConfigurationError
from planka_doctor.infrastructure.logging import (
    BoundLogger,
    attach_run_context,
    configure_logging,
    get_logger,
)


def build_invocation(
    *,
    config_path: Path | str | None,
    target_base_url: str | None = None,
    container: bool | None = None,
    dev_mode: bool | None = None,
    timeout_ms: int | None = None,
    max_attempts: int | None = None,
    retry_delay: float | None = None,
    backoff: str | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    log_file: str | None = None,
) -> CliInvocation:
    """Construct a :class:`CliInvocation` with normalized CLI parameters."""

    return CliInvocation(
        config_path=str(config_path) if config_path is not None else None,
        runtime=RuntimeOverrides(
            target_base_url=cli_options.clean_string(target_base_url),
            container_override=container,
            dev_mode=dev_mode,
            health_timeout_ms=timeout_ms,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            backoff=cli_options.normalize_backoff(backoff),
        ),
        logging=LoggingOverrides(
            level=cli_options.normalize_log_level(log_level),
            format=cli_options.normalize_log_format(log_format),
            file_path=cli_options.clean_string(log_file),
        ),
    )


def runtime_inputs(overrides: RuntimeOverrides) -> RuntimeInputs | None:
    if overrides == RuntimeOverrides():
        return None
    return RuntimeInputs(
        target_base_url=overrides.target_base_url,
        container_override=overrides.container_override,
        dev_mode=overrides.dev_mode,
        health_timeout_ms=overrides.health_timeout_ms,
        max_attempts=overrides.max_attempts,
        retry_delay=overrides.retry_delay,
        backoff=overrides.backoff,
    )


def logging_inputs(overrides: LoggingOverrides) -> LoggingInputs | None:
    if overrides == LoggingOverrides():
        return None

    file_override: str | None
    if overrides.file_path is None:
        file_override = None
    elif is_logfile_disabled_value(overrides.file_path):
        file_override = ""
    else:
        file_override = overrides.file_path

    return LoggingInputs(
        level=overrides.level,
        format=overrides.format,
        file_path=file_override,
    )


def load_settings_from_invocation(invocation: CliInvocation) -> Dynaconf:
    settings = load_settings(invocation.config_path)
    apply_cli_overrides(
        settings,
        runtime_inputs=runtime_inputs(invocation.runtime),
        logging_inputs=logging_inputs(invocation.logging),
    )
    return settings


def resolve_runtime_and_logging(
    invocation: CliInvocation,
) -> tuple[RuntimeSettings, LoggingSettings]:
    settings = load_settings_from_invocation(invocation)
    return runtime_from_settings(settings), logging_from_settings(settings)


def initialize_logging(
    runtime_settings: RuntimeSettings, logging_settings: LoggingSettings
) -> BoundLogger:
    """Configure logging and emit configuration warnings."""

    configure_logging(logging_settings)
    logger = get_logger()
    for message in runtime_settings.warnings:
        logger.warning(message)
    return logger


def report_configuration_error(console: Console, error: ConfigurationError) -> None:
    console.print(f"[red]{error.user_message}[/red]")
    for hint in error.hints:
        console.print(f"  {hint}")


def prepare_command(
    invocation: CliInvocation, *, stderr_console: Console
) -> tuple[EnvironmentContext, RuntimeSettings, BoundLogger]:
    """Resolve settings, configure logging and build the environment context.

    Configuration problems are printed to ``stderr_console`` and end the
    command with exit code 1.
    """

    runtime_settings, logging_settings = resolve_runtime_and_logging(invocation)
    logger = initialize_logging(runtime_settings, logging_settings)
    try:
        ctx = context_from_runtime(runtime_settings)
    except ConfigurationError as exc:
        report_configuration_error(stderr_console, exc)
        raise typer.Exit(code=1) from exc
    return ctx, runtime_settings, attach_run_context(logger, environment=ctx.environment_label)


__all__ = [
    "build_invocation",
    "initialize_logging",
    "prepare_command",
    "report_configuration_error",
    "load_settings_from_invocation",
    "logging_inputs",
    "resolve_runtime_and_logging",
    "runtime_inputs",
]
