"""Layered DNS → TCP → HTTP connectivity probing.

Each layer only runs when the previous one succeeded, so the resulting
:class:`NetworkDiagnostics` attributes a failure to the most specific cause.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from contextlib import suppress
from dataclasses import replace
from urllib.parse import urlsplit

import httpx

from planka_doctor.config.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_TCP_TIMEOUT_SECONDS,
)
from planka_doctor.domain.models import EnvironmentContext, FailureKind, NetworkDiagnostics
from planka_doctor.application.health import USER_AGENT, describe_exception
from planka_doctor.infrastructure.logging import BoundLogger, get_logger, log_event

DEFAULT_DNS_TIMEOUT_SECONDS = 5.0

_DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_target(url: str) -> tuple[str, int | None]:
    """Split ``url`` into hostname and port, applying the scheme default."""

    parts = urlsplit(url)
    hostname = parts.hostname or ""
    try:
        port = parts.port
    except ValueError:
        return hostname, None
    if port is None:
        port = _DEFAULT_PORTS.get(parts.scheme.lower(), 80)
    return hostname, port


async def resolve_host(hostname: str, port: int, *, timeout: float) -> None:
    loop = asyncio.get_running_loop()
    infos = await asyncio.wait_for(
        loop.getaddrinfo(hostname, port, type=socket.SOCK_STREAM), timeout=timeout
    )
    if not infos:
        raise socket.gaierror(f"no addresses for {hostname}")


async def open_port(hostname: str, port: int, *, timeout: float) -> None:
    _, writer = await asyncio.wait_for(asyncio.open_connection(hostname, port), timeout=timeout)
    writer.close()
    with suppress(OSError):
        await writer.wait_closed()


async def _head(client: httpx.AsyncClient, url: str, timeout: float) -> httpx.Response:
    return await asyncio.wait_for(
        client.head(url, headers={"User-Agent": USER_AGENT}, timeout=timeout),
        timeout=timeout,
    )


async def probe_url(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    dns_timeout: float = DEFAULT_DNS_TIMEOUT_SECONDS,
    tcp_timeout: float = DEFAULT_TCP_TIMEOUT_SECONDS,
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    logger: BoundLogger | None = None,
) -> NetworkDiagnostics:
    """Probe ``url`` layer by layer. Never raises."""

    log = (logger or get_logger("planka_doctor.probe")).bind(url=url)
    hostname, port = parse_target(url)
    diagnostics = NetworkDiagnostics(url=url, hostname=hostname, port=port)

    if not hostname or port is None:
        log_event(log, "probe.target.invalid", level=logging.WARNING)
        return replace(
            diagnostics,
            error=f"DNS resolution failed for {hostname or url}",
            failure_kind=FailureKind.DNS_FAILURE,
        )

    try:
        await resolve_host(hostname, port, timeout=dns_timeout)
    except Exception as exc:
        log_event(
            log,
            "probe.dns.failed",
            level=logging.WARNING,
            hostname=hostname,
            error=describe_exception(exc),
        )
        return replace(
            diagnostics,
            error=f"DNS resolution failed for {hostname}",
            failure_kind=FailureKind.DNS_FAILURE,
        )
    diagnostics = replace(diagnostics, dns_resolved=True)
    log_event(log, "probe.dns.resolved", level=logging.DEBUG, hostname=hostname)

    try:
        await open_port(hostname, port, timeout=tcp_timeout)
    except Exception as exc:
        log_event(
            log,
            "probe.tcp.failed",
            level=logging.WARNING,
            hostname=hostname,
            port=port,
            error=describe_exception(exc),
        )
        return replace(
            diagnostics,
            error=f"Port {port} is not accessible on {hostname}",
            failure_kind=FailureKind.PORT_CLOSED,
        )
    diagnostics = replace(diagnostics, port_open=True)
    log_event(log, "probe.tcp.open", level=logging.DEBUG, hostname=hostname, port=port)

    started = time.perf_counter()
    try:
        if client is None:
            async with httpx.AsyncClient() as owned_client:
                response = await _head(owned_client, url, http_timeout)
        else:
            response = await _head(client, url, http_timeout)
    except Exception as exc:
        elapsed = max(0, int((time.perf_counter() - started) * 1000))
        message = describe_exception(exc, timeout_ms=int(http_timeout * 1000))
        log_event(log, "probe.http.failed", level=logging.WARNING, error=message)
        return replace(
            diagnostics,
            response_time_ms=elapsed,
            error=f"Final connectivity test failed: {message}",
            failure_kind=FailureKind.TRANSPORT_ERROR,
        )

    elapsed = max(0, int((time.perf_counter() - started) * 1000))
    if response.is_success:
        log_event(
            log, "probe.http.reachable", status=response.status_code, response_time_ms=elapsed
        )
        return replace(diagnostics, reachable=True, response_time_ms=elapsed)

    log_event(
        log,
        "probe.http.bad_status",
        level=logging.WARNING,
        status=response.status_code,
        response_time_ms=elapsed,
    )
    return replace(
        diagnostics,
        response_time_ms=elapsed,
        error=f"Final connectivity test failed: HTTP {response.status_code}",
        failure_kind=FailureKind.HTTP_ERROR,
    )


async def probe(
    ctx: EnvironmentContext,
    *,
    client: httpx.AsyncClient | None = None,
    tcp_timeout: float = DEFAULT_TCP_TIMEOUT_SECONDS,
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    logger: BoundLogger | None = None,
) -> NetworkDiagnostics:
    return await probe_url(
        ctx.target_base_url,
        client=client,
        tcp_timeout=tcp_timeout,
        http_timeout=http_timeout,
        logger=logger,
    )


__all__ = ["open_port", "parse_target", "probe", "probe_url", "resolve_host"]
