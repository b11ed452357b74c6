"""Rich renderers for CLI reports."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

from rich import box
from rich.console import Console
from rich.table import Table

from planka_doctor.application.doctor import DoctorReport
from planka_doctor.domain.models import HealthCheckResult, NetworkDiagnostics

ICON_OK: Final = "✅"
ICON_FAIL: Final = "❌"
ICON_WARN: Final = "⚠️"
ICON_IN_USE: Final = "🔴"
ICON_FREE: Final = "🟢"


class RichStyles:
    ACCENT = "bold cyan"
    SUCCESS = "green"
    FAILURE = "red"
    WARNING = "yellow"
    DETAIL = "dim"


def _flag(value: bool) -> str:
    return ICON_OK if value else ICON_FAIL


def render_environment(console: Console, info: dict[str, Any]) -> None:
    table = Table(title="Environment", box=box.SIMPLE, show_header=False)
    table.add_column("Key", style=RichStyles.ACCENT)
    table.add_column("Value")
    for key, value in info.items():
        table.add_row(key, str(value))
    console.print(table)


def render_health_result(console: Console, result: HealthCheckResult) -> None:
    style = RichStyles.SUCCESS if result.success else RichStyles.FAILURE
    console.print(f"{_flag(result.success)} [{style}]{result.message}[/{style}]")
    details = result.details
    if details.status is not None:
        console.print(f"   Status: {details.status}", style=RichStyles.DETAIL)
    if details.error is not None:
        console.print(f"   Error: {details.error}", style=RichStyles.DETAIL)
    if details.response_time_ms is not None:
        console.print(f"   Response time: {details.response_time_ms}ms", style=RichStyles.DETAIL)


def render_advice(console: Console, advice: Sequence[str], *, title: str = "Troubleshooting") -> None:
    if not advice:
        return
    console.print(f"\n💡 [bold]{title}:[/bold]")
    for line in advice:
        console.print(f"   • {line}")


def render_diagnostics(console: Console, diagnostics: NetworkDiagnostics) -> None:
    table = Table(title=f"Layered diagnostics for {diagnostics.url}", box=box.SIMPLE)
    table.add_column("Layer", style=RichStyles.ACCENT)
    table.add_column("Result")
    table.add_row("DNS", f"{_flag(diagnostics.dns_resolved)} {diagnostics.hostname}")
    table.add_row("TCP", f"{_flag(diagnostics.port_open)} port {diagnostics.port}")
    http_cell = _flag(diagnostics.reachable)
    if diagnostics.response_time_ms is not None:
        http_cell += f" {diagnostics.response_time_ms}ms"
    table.add_row("HTTP", http_cell)
    console.print(table)
    if diagnostics.error:
        console.print(f"{ICON_WARN} {diagnostics.error}", style=RichStyles.WARNING)


def render_doctor_report(console: Console, report: DoctorReport) -> None:
    console.print("🔍 [bold]Environment Diagnostic Report[/bold]")
    console.print(f"Generated: {report.timestamp}\n")

    console.print("🐳 [bold]Docker Status:[/bold]")
    docker = report.docker
    if docker.running:
        console.print(f"{ICON_OK} Docker is running")
        console.print(f"   Server Version: {docker.server_version}")
        console.print(f"   OS: {docker.operating_system}")
    else:
        console.print(f"{ICON_FAIL} Docker is not running or not accessible")
        console.print(f"   Error: {docker.error}")
    console.print()

    if docker.containers:
        console.print("📦 [bold]Running Containers:[/bold]")
        for container in docker.containers:
            console.print(
                f"   {container['name']}: {container['status']} ({container['ports']})"
            )
    else:
        console.print("📦 No containers running")
    console.print()

    console.print("🔌 [bold]Port Status:[/bold]")
    for port in report.ports:
        icon = ICON_IN_USE if port.in_use else ICON_FREE
        console.print(f"   {icon} Port {port.port}: {'In use' if port.in_use else 'Available'}")
    console.print()

    console.print("🔧 [bold]Environment Variables:[/bold]")
    for variable in report.variables:
        console.print(
            f"   {_flag(variable.is_set)} {variable.name}: "
            f"{'Set' if variable.is_set else 'Missing'}"
        )
    if report.missing_variables:
        console.print(f"\n{ICON_WARN} Missing required environment variables:")
        for name in report.missing_variables:
            console.print(f"   - {name}")
    console.print()

    console.print("🌐 [bold]Network Connectivity:[/bold]")
    for status in report.connectivity:
        label = "Reachable" if status.reachable else "Not reachable"
        console.print(f"   {_flag(status.reachable)} {status.url}: {label}")

    render_advice(console, report.recommendations, title="Recommendations")


__all__ = [
    "RichStyles",
    "render_advice",
    "render_diagnostics",
    "render_doctor_report",
    "render_environment",
    "render_health_result",
]
