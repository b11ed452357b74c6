"""Single-request health check against the Planka health endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from importlib import metadata

import httpx

from planka_doctor.config.constants import DEFAULT_HEALTH_TIMEOUT_MS, HEALTH_ENDPOINT_PATH
from planka_doctor.domain.models import (
    EnvironmentContext,
    FailureKind,
    HealthCheckDetails,
    HealthCheckResult,
)
from planka_doctor.infrastructure.logging import BoundLogger, get_logger, log_event


def _user_agent() -> str:
    try:
        version = metadata.version("planka-doctor")
    except metadata.PackageNotFoundError:
        version = "dev"
    return f"planka-doctor-health-check/{version}"


USER_AGENT = _user_agent()


def describe_exception(exc: BaseException, *, timeout_ms: int | None = None) -> str:
    """Return a non-empty, human readable description of a transport failure."""

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        if timeout_ms is not None:
            return f"Request timed out after {timeout_ms}ms"
        return str(exc) or "Request timed out"
    message = str(exc).strip()
    return message or type(exc).__name__


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


async def _get_health(
    client: httpx.AsyncClient, url: str, timeout_seconds: float
) -> httpx.Response:
    return await asyncio.wait_for(
        client.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout_seconds),
        timeout=timeout_seconds,
    )


async def check_connection(
    ctx: EnvironmentContext,
    timeout_ms: int = DEFAULT_HEALTH_TIMEOUT_MS,
    *,
    client: httpx.AsyncClient | None = None,
    logger: BoundLogger | None = None,
) -> HealthCheckResult:
    """Issue one ``GET {base}/api/health`` and classify the outcome.

    Never raises: timeouts, refused connections, TLS problems and any other
    transport failure are captured into the returned result.
    """

    log = logger or get_logger("planka_doctor.health")
    base_url = ctx.target_base_url
    health_url = f"{base_url}{HEALTH_ENDPOINT_PATH}"
    timeout_seconds = timeout_ms / 1000

    started = time.perf_counter()
    try:
        if client is None:
            async with httpx.AsyncClient() as owned_client:
                response = await _get_health(owned_client, health_url, timeout_seconds)
        else:
            response = await _get_health(client, health_url, timeout_seconds)
    except Exception as exc:
        elapsed = _elapsed_ms(started)
        error_message = describe_exception(exc, timeout_ms=timeout_ms)
        log_event(
            log,
            "health.check.transport_error",
            level=logging.WARNING,
            url=health_url,
            error=error_message,
            response_time_ms=elapsed,
        )
        return HealthCheckResult(
            success=False,
            message=f"Failed to connect to Planka at {base_url}: {error_message}",
            details=HealthCheckDetails(
                url=base_url, error=error_message, response_time_ms=elapsed
            ),
            failure_kind=FailureKind.TRANSPORT_ERROR,
        )

    elapsed = _elapsed_ms(started)
    details = HealthCheckDetails(
        url=base_url, status=response.status_code, response_time_ms=elapsed
    )
    if response.is_success:
        log_event(
            log,
            "health.check.succeeded",
            url=health_url,
            status=response.status_code,
            response_time_ms=elapsed,
        )
        return HealthCheckResult(
            success=True,
            message=f"Successfully connected to Planka at {base_url}",
            details=details,
        )

    log_event(
        log,
        "health.check.bad_status",
        level=logging.WARNING,
        url=health_url,
        status=response.status_code,
        response_time_ms=elapsed,
    )
    return HealthCheckResult(
        success=False,
        message=f"Planka returned HTTP {response.status_code} at {base_url}",
        details=details,
        failure_kind=FailureKind.HTTP_ERROR,
    )


__all__ = ["USER_AGENT", "check_connection", "describe_exception"]
