"""Troubleshooting advice derived from diagnostics results."""

from __future__ import annotations

from typing import Final

from planka_doctor.config.constants import (
    CONTAINER_BASE_URL,
    DOCKER_HOST_GATEWAY,
    PLANKA_DEFAULT_PORT,
)
from planka_doctor.domain.models import EnvironmentContext, NetworkDiagnostics
from planka_doctor.application.probe import parse_target

DNS_FAILED: Final = "DNS resolution failed - check hostname spelling and network connectivity"
DNS_HOST_GATEWAY: Final = (
    f"For Docker on Linux, ensure you use --add-host={DOCKER_HOST_GATEWAY}:host-gateway"
)
PORT_FIREWALL: Final = "Verify firewall settings are not blocking the connection"
PORT_CONFLICT: Final = "Check if another service is using the same port"
SERVICE_NOT_RESPONDING: Final = (
    "Service is reachable but not responding correctly - check Planka logs"
)
SERVICE_NOT_STARTED: Final = "Verify Planka is fully started and not in an error state"


def _port_inaccessible(port: int | str) -> str:
    return (
        f"Port {port} is not accessible - check if Planka is running and listening on this port"
    )


def advise_from(diagnostics: NetworkDiagnostics) -> list[str]:
    """Map a diagnostics result to ordered remediation suggestions.

    Every rule is evaluated; DNS advice precedes port advice, which precedes
    service-level advice. A fully healthy result yields an empty list.
    """

    advice: list[str] = []

    if not diagnostics.dns_resolved:
        advice.append(DNS_FAILED)
        if DOCKER_HOST_GATEWAY in diagnostics.hostname.lower():
            advice.append(DNS_HOST_GATEWAY)

    if not diagnostics.port_open:
        port = diagnostics.port
        if port is None:
            port = parse_target(diagnostics.url)[1]
        advice.append(_port_inaccessible(port if port is not None else "(unknown)"))
        advice.append(PORT_FIREWALL)
        advice.append(PORT_CONFLICT)

    if diagnostics.dns_resolved and diagnostics.port_open and not diagnostics.reachable:
        advice.append(SERVICE_NOT_RESPONDING)
        advice.append(SERVICE_NOT_STARTED)

    return advice


def advise_for_environment(ctx: EnvironmentContext) -> list[str]:
    if not ctx.is_containerized:
        return []
    return [
        f"Ensure TARGET_BASE_URL uses {CONTAINER_BASE_URL}",
        f"Check if the Planka container is running on port {PLANKA_DEFAULT_PORT}",
        "Verify Docker network configuration",
    ]


__all__ = [
    "DNS_FAILED",
    "DNS_HOST_GATEWAY",
    "PORT_CONFLICT",
    "PORT_FIREWALL",
    "SERVICE_NOT_RESPONDING",
    "SERVICE_NOT_STARTED",
    "advise_for_environment",
    "advise_from",
]
