from __future__ import annotations

import pytest

from planka_doctor.application.advice import (
    DNS_FAILED,
    DNS_HOST_GATEWAY,
    PORT_CONFLICT,
    PORT_FIREWALL,
    SERVICE_NOT_RESPONDING,
    SERVICE_NOT_STARTED,
    advise_for_environment,
    advise_from,
)
from planka_doctor.domain.models import FailureKind, NetworkDiagnostics


def _diagnostics(url: str, hostname: str, port: int | None, **flags) -> NetworkDiagnostics:  # noqa: ANN003
    return NetworkDiagnostics(url=url, hostname=hostname, port=port, **flags)


def test_healthy_diagnostics_yield_no_advice() -> None:
    healthy = _diagnostics(
        "http://localhost:3333",
        "localhost",
        3333,
        dns_resolved=True,
        port_open=True,
        reachable=True,
    )

    assert advise_from(healthy) == []


def test_dns_failure_on_host_gateway_includes_linux_hint() -> None:
    failed = _diagnostics(
        "http://host.docker.internal:3333",
        "host.docker.internal",
        3333,
        error="DNS resolution failed for host.docker.internal",
        failure_kind=FailureKind.DNS_FAILURE,
    )

    advice = advise_from(failed)

    assert advice[:2] == [DNS_FAILED, DNS_HOST_GATEWAY]
    assert advice[2].startswith("Port 3333 is not accessible")
    assert advice[3:] == [PORT_FIREWALL, PORT_CONFLICT]


@pytest.mark.parametrize("hostname", ["host.docker.internal.", "HOST.DOCKER.INTERNAL"])
def test_gateway_hint_matches_hostname_variants(hostname: str) -> None:
    failed = _diagnostics(f"http://{hostname}:3333", hostname, 3333)

    advice = advise_from(failed)

    assert advice[:2] == [DNS_FAILED, DNS_HOST_GATEWAY]


def test_dns_failure_elsewhere_has_no_gateway_hint() -> None:
    failed = _diagnostics("http://planka.lan:3333", "planka.lan", 3333)

    advice = advise_from(failed)

    assert DNS_FAILED in advice
    assert DNS_HOST_GATEWAY not in advice


def test_closed_port_advice_names_parsed_port() -> None:
    closed = _diagnostics(
        "http://localhost:3333",
        "localhost",
        3333,
        dns_resolved=True,
        failure_kind=FailureKind.PORT_CLOSED,
    )

    assert advise_from(closed) == [
        "Port 3333 is not accessible - check if Planka is running and listening on this port",
        PORT_FIREWALL,
        PORT_CONFLICT,
    ]


def test_https_default_port_is_named() -> None:
    closed = _diagnostics("https://planka.example.com", "planka.example.com", 443, dns_resolved=True)

    assert advise_from(closed)[0].startswith("Port 443 is not accessible")


def test_service_level_advice_when_http_fails() -> None:
    unhealthy = _diagnostics(
        "http://localhost:3333",
        "localhost",
        3333,
        dns_resolved=True,
        port_open=True,
        error="Final connectivity test failed: HTTP 500",
        failure_kind=FailureKind.HTTP_ERROR,
    )

    assert advise_from(unhealthy) == [SERVICE_NOT_RESPONDING, SERVICE_NOT_STARTED]


def test_advice_is_deterministic() -> None:
    failed = _diagnostics("http://host.docker.internal:3333", "host.docker.internal", 3333)

    assert advise_from(failed) == advise_from(failed)


def test_environment_advice_only_for_containers(make_context) -> None:  # noqa: ANN001
    assert advise_for_environment(make_context(containerized=False)) == []

    lines = advise_for_environment(make_context(containerized=True))
    assert len(lines) == 3
    assert "http://host.docker.internal:3333" in lines[0]
