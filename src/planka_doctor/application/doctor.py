"""Host environment doctor.

Collects Docker daemon status, running containers, local port usage,
configuration variables and connectivity to the usual Planka URLs, then
derives recommendations. The report can be persisted as JSON.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final

import httpx

from planka_doctor.application.health import describe_exception
from planka_doctor.application.probe import open_port
from planka_doctor.config.constants import (
    AGENT_EMAIL_VAR,
    AGENT_PASSWORD_VAR,
    CONTAINER_BASE_URL,
    LOCAL_BASE_URL,
    PLANKA_DEFAULT_PORT,
    TARGET_BASE_URL_VAR,
)
from planka_doctor.infrastructure.logging import BoundLogger, get_logger, log_event

CommandRunner = Callable[[Sequence[str]], str]

DEFAULT_PORTS: Final[tuple[int, ...]] = (PLANKA_DEFAULT_PORT, 3008, 5174, 5432)
DEFAULT_URLS: Final[tuple[str, ...]] = (
    LOCAL_BASE_URL,
    CONTAINER_BASE_URL,
    "http://localhost:3008",
    "http://localhost:5174",
)
DEFAULT_VARIABLES: Final[tuple[str, ...]] = (
    TARGET_BASE_URL_VAR,
    AGENT_EMAIL_VAR,
    AGENT_PASSWORD_VAR,
)
DEFAULT_REPORT_FILENAME: Final = "diagnostic-report.json"
REDACTED: Final = "[REDACTED]"

PORT_CHECK_HOST: Final = "127.0.0.1"
PORT_CHECK_TIMEOUT_SECONDS: Final = 1.0
URL_CHECK_TIMEOUT_SECONDS: Final = 5.0
COMMAND_TIMEOUT_SECONDS: Final = 10.0


def run_command(args: Sequence[str]) -> str:
    completed = subprocess.run(
        list(args),
        check=True,
        capture_output=True,
        text=True,
        timeout=COMMAND_TIMEOUT_SECONDS,
    )
    return completed.stdout


@dataclass
class DockerStatus:
    running: bool
    server_version: str | None = None
    operating_system: str | None = None
    error: str | None = None
    containers: list[dict[str, str]] = field(default_factory=list)


@dataclass
class PortStatus:
    port: int
    in_use: bool
    details: str = ""


@dataclass
class VariableStatus:
    name: str
    is_set: bool
    value: str | None = None


@dataclass
class UrlStatus:
    url: str
    reachable: bool
    status_code: int | str
    error: str | None = None


@dataclass
class DoctorReport:
    timestamp: str
    docker: DockerStatus
    ports: list[PortStatus]
    variables: list[VariableStatus]
    connectivity: list[UrlStatus]
    recommendations: list[str] = field(default_factory=list)

    @property
    def missing_variables(self) -> list[str]:
        return [status.name for status in self.variables if not status.is_set]

    def url_status(self, url: str) -> UrlStatus | None:
        for status in self.connectivity:
            if status.url == url:
                return status
        return None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["environment"] = {
            "variables": payload.pop("variables"),
            "missing": self.missing_variables,
        }
        return payload


def _command_error(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        stderr = (exc.stderr or "").strip()
        return stderr or f"command exited with status {exc.returncode}"
    return describe_exception(exc)


def check_docker_status(runner: CommandRunner = run_command) -> DockerStatus:
    try:
        raw = runner(["docker", "info", "--format", "{{json .}}"])
    except (OSError, subprocess.SubprocessError) as exc:
        return DockerStatus(running=False, error=_command_error(exc))

    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        return DockerStatus(running=False, error=f"Unreadable docker info output: {exc}")
    if not isinstance(info, dict):
        return DockerStatus(running=False, error="Unexpected docker info payload")

    server_errors = info.get("ServerErrors")
    if server_errors:
        return DockerStatus(running=False, error="; ".join(str(item) for item in server_errors))

    return DockerStatus(
        running=True,
        server_version=info.get("ServerVersion"),
        operating_system=info.get("OperatingSystem"),
    )


def list_docker_containers(runner: CommandRunner = run_command) -> list[dict[str, str]]:
    try:
        raw = runner(["docker", "ps", "--format", "{{.Names}}\t{{.Status}}\t{{.Ports}}"])
    except (OSError, subprocess.SubprocessError):
        return []

    containers: list[dict[str, str]] = []
    for line in raw.splitlines():
        if not line.strip():
            continue
        name, status, ports = (line.split("\t") + ["", "", ""])[:3]
        containers.append({"name": name, "status": status, "ports": ports})
    return containers


async def check_port(port: int, *, host: str = PORT_CHECK_HOST) -> PortStatus:
    try:
        await open_port(host, port, timeout=PORT_CHECK_TIMEOUT_SECONDS)
    except Exception as exc:
        return PortStatus(port=port, in_use=False, details=describe_exception(exc))
    return PortStatus(port=port, in_use=True, details=f"listening on {host}:{port}")


def check_environment_variables(
    environ: Mapping[str, str], names: Sequence[str] = DEFAULT_VARIABLES
) -> list[VariableStatus]:
    statuses: list[VariableStatus] = []
    for name in names:
        value = environ.get(name)
        is_set = bool(value and value.strip())
        statuses.append(VariableStatus(name=name, is_set=is_set, value=REDACTED if is_set else None))
    return statuses


async def check_url(client: httpx.AsyncClient, url: str) -> UrlStatus:
    try:
        response = await asyncio.wait_for(
            client.get(url, timeout=URL_CHECK_TIMEOUT_SECONDS),
            timeout=URL_CHECK_TIMEOUT_SECONDS,
        )
    except Exception as exc:
        return UrlStatus(url=url, reachable=False, status_code="ERROR", error=describe_exception(exc))
    return UrlStatus(url=url, reachable=response.is_success, status_code=response.status_code)


def build_recommendations(report: DoctorReport) -> list[str]:
    recommendations: list[str] = []

    if not report.docker.running:
        recommendations.append("Start Docker Desktop or the Docker service")

    if report.missing_variables:
        recommendations.append(
            "Set missing environment variables in your .env file or startup script"
        )

    if any(status.port == PLANKA_DEFAULT_PORT and status.in_use for status in report.ports):
        recommendations.append(
            f"Port {PLANKA_DEFAULT_PORT} is in use - ensure Planka is running "
            "or change port configuration"
        )

    local = report.url_status(LOCAL_BASE_URL)
    gateway = report.url_status(CONTAINER_BASE_URL)
    local_reachable = bool(local and local.reachable)
    gateway_reachable = bool(gateway and gateway.reachable)

    if local is not None or gateway is not None:
        if not local_reachable and not gateway_reachable:
            recommendations.append("Neither localhost nor host.docker.internal are reachable")
            recommendations.append("Check if Planka is running and accessible")
        elif gateway is not None and not gateway_reachable and report.docker.running:
            recommendations.append(
                "host.docker.internal is not reachable - this is needed for Docker containers"
            )
            recommendations.append(
                "On Linux, use: docker run --add-host=host.docker.internal:host-gateway ..."
            )

    return recommendations


class EnvironmentDoctor:
    """Run every host check and assemble a :class:`DoctorReport`."""

    def __init__(
        self,
        *,
        ports: Sequence[int] = DEFAULT_PORTS,
        urls: Sequence[str] = DEFAULT_URLS,
        variables: Sequence[str] = DEFAULT_VARIABLES,
        environ: Mapping[str, str] | None = None,
        runner: CommandRunner = run_command,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._ports = tuple(ports)
        self._urls = tuple(urls)
        self._variables = tuple(variables)
        self._environ = os.environ if environ is None else environ
        self._runner = runner
        self._client = client
        self._logger = logger or get_logger("planka_doctor.doctor")

    async def _check_urls(self) -> list[UrlStatus]:
        if self._client is not None:
            return list(await asyncio.gather(*(check_url(self._client, url) for url in self._urls)))
        async with httpx.AsyncClient() as client:
            return list(await asyncio.gather(*(check_url(client, url) for url in self._urls)))

    async def run(self) -> DoctorReport:
        log_event(self._logger, "doctor.run.started", ports=list(self._ports), urls=list(self._urls))

        docker = await asyncio.to_thread(check_docker_status, self._runner)
        if docker.running:
            docker.containers = await asyncio.to_thread(list_docker_containers, self._runner)
        else:
            log_event(
                self._logger, "doctor.docker.unavailable", level=logging.WARNING, error=docker.error
            )

        ports = list(await asyncio.gather(*(check_port(port) for port in self._ports)))
        variables = check_environment_variables(self._environ, self._variables)
        connectivity = await self._check_urls()

        report = DoctorReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            docker=docker,
            ports=ports,
            variables=variables,
            connectivity=connectivity,
        )
        report.recommendations = build_recommendations(report)
        log_event(
            self._logger,
            "doctor.run.finished",
            missing_variables=report.missing_variables or None,
            recommendations=len(report.recommendations),
        )
        return report


def save_report(report: DoctorReport, path: str | Path) -> Path:
    target = Path(path)
    target.write_text(json.dumps(report.to_dict(), indent=2) + "\n", encoding="utf-8")
    return target


__all__ = [
    "DEFAULT_PORTS",
    "DEFAULT_REPORT_FILENAME",
    "DEFAULT_URLS",
    "DEFAULT_VARIABLES",
    "DockerStatus",
    "DoctorReport",
    "EnvironmentDoctor",
    "PortStatus",
    "UrlStatus",
    "VariableStatus",
    "build_recommendations",
    "check_docker_status",
    "check_environment_variables",
    "check_port",
    "check_url",
    "list_docker_containers",
    "run_command",
    "save_report",
]
