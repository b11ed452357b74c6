"""Normalized CLI invocation data passed between commands and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RuntimeOverrides:
    target_base_url: str | None = None
    container_override: bool | None = None
    dev_mode: bool | None = None
    health_timeout_ms: int | None = None
    max_attempts: int | None = None
    retry_delay: float | None = None
    backoff: str | None = None


@dataclass(frozen=True)
class LoggingOverrides:
    level: str | None = None
    format: str | None = None
    file_path: str | None = None


@dataclass(frozen=True)
class CliInvocation:
    config_path: str | None
    runtime: RuntimeOverrides = field(default_factory=RuntimeOverrides)
    logging: LoggingOverrides = field(default_factory=LoggingOverrides)


__all__ = ["CliInvocation", "LoggingOverrides", "RuntimeOverrides"]
