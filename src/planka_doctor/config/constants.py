"""Shared constants and boolean coercion helpers."""

from __future__ import annotations

from typing import Final

TRUTHY_STRINGS = {"1", "true", "yes", "on"}
FALSY_STRINGS = {"0", "false", "no", "off"}


CONFIG_BASENAME = "config"
DEFAULT_CONFIG_FILENAME = f"{CONFIG_BASENAME}.toml"
LOCAL_CONFIG_FILENAME = f"{CONFIG_BASENAME}.local.toml"
DOTENV_FILENAME = ".env"

DOCKER_MARKER_PATH: Final = "/.dockerenv"
DOCKER_HOST_GATEWAY: Final = "host.docker.internal"
PLANKA_DEFAULT_PORT: Final = 3333
CONTAINER_BASE_URL: Final = f"http://{DOCKER_HOST_GATEWAY}:{PLANKA_DEFAULT_PORT}"
LOCAL_BASE_URL: Final = f"http://localhost:{PLANKA_DEFAULT_PORT}"
HEALTH_ENDPOINT_PATH: Final = "/api/health"

DEFAULT_HEALTH_TIMEOUT_MS: Final = 5000
DEFAULT_TCP_TIMEOUT_SECONDS: Final = 3.0
DEFAULT_HTTP_TIMEOUT_SECONDS: Final = 5.0

DEFAULT_MAX_ATTEMPTS: Final = 3
DEFAULT_RETRY_DELAY_SECONDS: Final = 2.0

TARGET_BASE_URL_VAR: Final = "TARGET_BASE_URL"
AGENT_EMAIL_VAR: Final = "AGENT_EMAIL"
AGENT_PASSWORD_VAR: Final = "AGENT_PASSWORD"
CONTAINER_OVERRIDE_VAR: Final = "CONTAINER_OVERRIDE"
DEV_MODE_VAR: Final = "DEV_MODE"


def coerce_bool(value: object | None, *, default: bool = False) -> bool:
    """Convert common truthy/falsey string markers into booleans.

    Falls back to ``default`` when the value is ``None`` or ambiguous.
    """

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return default
        if normalized in TRUTHY_STRINGS:
            return True
        if normalized in FALSY_STRINGS:
            return False
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    return default


__all__ = [
    "AGENT_EMAIL_VAR",
    "AGENT_PASSWORD_VAR",
    "CONFIG_BASENAME",
    "CONTAINER_BASE_URL",
    "CONTAINER_OVERRIDE_VAR",
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_HEALTH_TIMEOUT_MS",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TCP_TIMEOUT_SECONDS",
    "DEV_MODE_VAR",
    "DOCKER_HOST_GATEWAY",
    "DOCKER_MARKER_PATH",
    "DOTENV_FILENAME",
    "FALSY_STRINGS",
    "HEALTH_ENDPOINT_PATH",
    "LOCAL_BASE_URL",
    "LOCAL_CONFIG_FILENAME",
    "PLANKA_DEFAULT_PORT",
    "TARGET_BASE_URL_VAR",
    "TRUTHY_STRINGS",
    "coerce_bool",
]
