"""Docker-aware environment resolution.

Decides whether the process runs inside a container and which base URL and
credentials the diagnostics should use.
"""

from __future__ import annotations

import platform
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from planka_doctor.config.constants import (
    AGENT_EMAIL_VAR,
    AGENT_PASSWORD_VAR,
    CONTAINER_BASE_URL,
    DOCKER_MARKER_PATH,
    LOCAL_BASE_URL,
    TARGET_BASE_URL_VAR,
)
from planka_doctor.config.settings import RuntimeSettings, resolve_runtime_settings
from planka_doctor.domain.models import Credentials, EnvironmentContext
from planka_doctor.infrastructure.errors import ConfigurationError


def detect_container(override: bool, *, marker_path: str | Path = DOCKER_MARKER_PATH) -> bool:
    if override:
        return True
    return Path(marker_path).exists()


def derive_base_url(override: str | None, *, containerized: bool) -> str:
    if override:
        return override
    if containerized:
        return CONTAINER_BASE_URL
    return LOCAL_BASE_URL


def _normalize_base_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.hostname:
        raise ConfigurationError(
            f"{TARGET_BASE_URL_VAR} must be an absolute http(s) URL, got {url!r}",
            invalid=(TARGET_BASE_URL_VAR,),
        )
    try:
        parts.port
    except ValueError as exc:
        raise ConfigurationError(
            f"{TARGET_BASE_URL_VAR} has an invalid port: {url!r}",
            invalid=(TARGET_BASE_URL_VAR,),
        ) from exc
    return url.rstrip("/")


def context_from_runtime(
    runtime: RuntimeSettings, *, marker_path: str | Path = DOCKER_MARKER_PATH
) -> EnvironmentContext:
    """Build an :class:`EnvironmentContext` from resolved runtime settings.

    Raises :class:`ConfigurationError` listing every missing credential, or
    naming ``TARGET_BASE_URL`` when the override is not an absolute URL.
    """

    missing = [
        name
        for name, value in (
            (AGENT_EMAIL_VAR, runtime.agent_email),
            (AGENT_PASSWORD_VAR, runtime.agent_password),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError.for_missing(missing)

    containerized = detect_container(runtime.container_override, marker_path=marker_path)
    base_url = _normalize_base_url(
        derive_base_url(runtime.target_base_url, containerized=containerized)
    )

    return EnvironmentContext(
        target_base_url=base_url,
        is_containerized=containerized,
        credentials=Credentials(
            email=runtime.agent_email or "", password=runtime.agent_password or ""
        ),
        is_development_mode=runtime.dev_mode,
    )


def resolve_environment(
    process_env: Mapping[str, str] | None = None,
    *,
    config_path: str | None = None,
    marker_path: str | Path = DOCKER_MARKER_PATH,
) -> EnvironmentContext:
    """Resolve the diagnostics environment from ``process_env``.

    ``None`` reads :data:`os.environ`. Configuration files are consulted first
    and environment variables override them.
    """

    runtime = resolve_runtime_settings(config_path=config_path, environ=process_env)
    return context_from_runtime(runtime, marker_path=marker_path)


def environment_info(ctx: EnvironmentContext) -> dict[str, Any]:
    return {
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower() or sys.platform,
        "is_containerized": ctx.is_containerized,
        "environment": ctx.environment_label,
        "target_base_url": ctx.target_base_url,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


__all__ = [
    "context_from_runtime",
    "derive_base_url",
    "detect_container",
    "environment_info",
    "resolve_environment",
]
