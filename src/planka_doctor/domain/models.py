"""Value objects produced by a diagnostics run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Which layer a captured failure belongs to."""

    DNS_FAILURE = "dns_failure"
    PORT_CLOSED = "port_closed"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.email or not self.password:
            raise ValueError("credentials must be non-empty")


@dataclass(frozen=True)
class EnvironmentContext:
    target_base_url: str
    is_containerized: bool
    credentials: Credentials
    is_development_mode: bool = False

    @property
    def environment_label(self) -> str:
        return "development" if self.is_development_mode else "production"


@dataclass(frozen=True)
class HealthCheckDetails:
    url: str
    status: int | None = None
    error: str | None = None
    response_time_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"url": self.url}
        if self.status is not None:
            payload["status"] = self.status
        if self.error is not None:
            payload["error"] = self.error
        if self.response_time_ms is not None:
            payload["response_time_ms"] = self.response_time_ms
        return payload


@dataclass(frozen=True)
class HealthCheckResult:
    success: bool
    message: str
    details: HealthCheckDetails
    failure_kind: FailureKind | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "details": self.details.to_dict(),
        }
        if self.failure_kind is not None:
            payload["failure_kind"] = self.failure_kind.value
        return payload


@dataclass(frozen=True)
class NetworkDiagnostics:
    url: str
    hostname: str
    port: int | None
    reachable: bool = False
    dns_resolved: bool = False
    port_open: bool = False
    response_time_ms: int | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None

    def __post_init__(self) -> None:
        if self.reachable and not (self.dns_resolved and self.port_open):
            raise ValueError("reachable diagnostics require resolved DNS and an open port")
        if self.port_open and not self.dns_resolved:
            raise ValueError("an open port requires resolved DNS")

    @property
    def healthy(self) -> bool:
        return self.reachable and self.error is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "url": self.url,
            "hostname": self.hostname,
            "port": self.port,
            "reachable": self.reachable,
            "dns_resolved": self.dns_resolved,
            "port_open": self.port_open,
        }
        if self.response_time_ms is not None:
            payload["response_time_ms"] = self.response_time_ms
        if self.error is not None:
            payload["error"] = self.error
        if self.failure_kind is not None:
            payload["failure_kind"] = self.failure_kind.value
        return payload


__all__ = [
    "Credentials",
    "EnvironmentContext",
    "FailureKind",
    "HealthCheckDetails",
    "HealthCheckResult",
    "NetworkDiagnostics",
]
