from __future__ import annotations

import importlib
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from planka_doctor.application.doctor import (
    DockerStatus,
    DoctorReport,
    PortStatus,
    UrlStatus,
    VariableStatus,
)
from planka_doctor.domain.models import (
    FailureKind,
    HealthCheckDetails,
    HealthCheckResult,
    NetworkDiagnostics,
)
from planka_doctor.infrastructure.errors import HealthCheckFailedError

app_mod = importlib.import_module("planka_doctor.cli.app")
check_mod = importlib.import_module("planka_doctor.cli.commands.check")
probe_mod = importlib.import_module("planka_doctor.cli.commands.probe")
diagnose_mod = importlib.import_module("planka_doctor.cli.commands.diagnose")

TARGET = "http://planka.test:3333"
QUIET = ["--log-level", "CRITICAL"]


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_EMAIL", "agent@example.com")
    monkeypatch.setenv("AGENT_PASSWORD", "secret")


def _healthy(ctx, timeout_ms: int = 5000, **kwargs) -> HealthCheckResult:  # noqa: ANN001, ANN003
    return HealthCheckResult(
        success=True,
        message=f"Successfully connected to Planka at {ctx.target_base_url}",
        details=HealthCheckDetails(url=ctx.target_base_url, status=200, response_time_ms=4),
    )


def _refused(ctx, timeout_ms: int = 5000, **kwargs) -> HealthCheckResult:  # noqa: ANN001, ANN003
    return HealthCheckResult(
        success=False,
        message=f"Failed to connect to Planka at {ctx.target_base_url}: Connection refused",
        details=HealthCheckDetails(url=ctx.target_base_url, error="Connection refused"),
        failure_kind=FailureKind.TRANSPORT_ERROR,
    )


def _async(fn):  # noqa: ANN001, ANN202
    async def wrapper(*args, **kwargs):  # noqa: ANN002, ANN003, ANN202
        return fn(*args, **kwargs)

    return wrapper


def _closed_port(ctx, **kwargs) -> NetworkDiagnostics:  # noqa: ANN001, ANN003
    return NetworkDiagnostics(
        url=ctx.target_base_url,
        hostname="planka.test",
        port=3333,
        dns_resolved=True,
        error="Port 3333 is not accessible on planka.test",
        failure_kind=FailureKind.PORT_CLOSED,
    )


def _reachable(ctx, **kwargs) -> NetworkDiagnostics:  # noqa: ANN001, ANN003
    return NetworkDiagnostics(
        url=ctx.target_base_url,
        hostname="planka.test",
        port=3333,
        dns_resolved=True,
        port_open=True,
        reachable=True,
        response_time_ms=2,
    )


def test_check_reports_missing_credentials() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["check", "--target-base-url", TARGET, *QUIET], color=False
    )

    assert result.exit_code == 1
    assert "Missing required environment variables: AGENT_EMAIL, AGENT_PASSWORD" in result.output


def test_check_rejects_relative_target(credentials: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["check", "--target-base-url", "planka.test", *QUIET], color=False
    )

    assert result.exit_code == 1
    assert "TARGET_BASE_URL" in result.output


def test_check_success(credentials: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(check_mod, "check_connection", _async(_healthy))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["check", "--target-base-url", TARGET, *QUIET], color=False
    )

    assert result.exit_code == 0
    assert "Successfully connected" in result.stdout


def test_check_failure_runs_layered_probe(
    credentials: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    attempts: list[int] = []

    async def failing(ctx, timeout_ms: int = 5000, **kwargs) -> HealthCheckResult:  # noqa: ANN001, ANN003
        attempts.append(timeout_ms)
        return _refused(ctx)

    monkeypatch.setattr(check_mod, "check_connection", failing)
    monkeypatch.setattr(check_mod, "probe", _async(_closed_port))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app,
        [
            "check",
            "--target-base-url",
            TARGET,
            "--max-attempts",
            "2",
            "--retry-delay",
            "0",
            "--timeout-ms",
            "750",
            *QUIET,
        ],
        color=False,
    )

    assert result.exit_code == 1
    assert attempts == [750, 750]
    assert "Port 3333 is not accessible" in result.output


def test_check_json_output(credentials: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(check_mod, "check_connection", _async(_refused))
    monkeypatch.setattr(check_mod, "probe", _async(_closed_port))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app,
        ["check", "--target-base-url", TARGET, "--max-attempts", "1", "--json", *QUIET],
        color=False,
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["success"] is False
    assert payload["attempts"] == 1
    assert payload["diagnostics"]["failure_kind"] == "port_closed"
    assert payload["advice"][0].startswith("Port 3333 is not accessible")


def test_check_json_output_on_success(
    credentials: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(check_mod, "check_connection", _async(_healthy))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["check", "--target-base-url", TARGET, "--json", *QUIET], color=False
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["success"] is True
    assert payload["attempts"] == 1
    assert payload["connection"]["status"] == "connected"
    assert "advice" not in payload


def test_failed_outcome_without_diagnostics_omits_advice(make_context) -> None:  # noqa: ANN001
    failure = HealthCheckFailedError(_refused(make_context()), attempts=3)

    outcome = check_mod.CheckFailed(failure=failure)

    assert outcome.succeeded is False
    assert outcome.to_dict() == {
        "success": False,
        "attempts": 3,
        "result": failure.result.to_dict(),
    }


def test_check_rejects_unknown_backoff(credentials: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app_mod.app,
        ["check", "--target-base-url", TARGET, "--backoff", "linear", *QUIET],
        color=False,
    )

    assert result.exit_code != 0


def test_probe_json_healthy(credentials: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(probe_mod, "check_connection", _async(_healthy))
    monkeypatch.setattr(probe_mod, "probe_target", _async(_reachable))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["probe", "--target-base-url", TARGET, "--json", *QUIET], color=False
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["healthy"] is True
    assert payload["advice"] == []
    assert payload["environment"]["target_base_url"] == TARGET
    assert payload["diagnostics"]["reachable"] is True


def test_probe_unhealthy_prints_advice(credentials: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(probe_mod, "check_connection", _async(_refused))
    monkeypatch.setattr(probe_mod, "probe_target", _async(_closed_port))

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app, ["probe", "--target-base-url", TARGET, *QUIET], color=False
    )

    assert result.exit_code == 1
    assert "Troubleshooting" in result.stdout
    assert "firewall" in result.stdout


def _doctor_report() -> DoctorReport:
    return DoctorReport(
        timestamp="2024-01-01T00:00:00+00:00",
        docker=DockerStatus(running=False, error="Cannot connect to the Docker daemon"),
        ports=[PortStatus(port=3333, in_use=False)],
        variables=[VariableStatus(name="AGENT_EMAIL", is_set=False)],
        connectivity=[UrlStatus(url="http://localhost:3333", reachable=False, status_code="ERROR")],
        recommendations=["Start Docker Desktop or the Docker service"],
    )


class FakeDoctor:
    created: list[dict] = []

    def __init__(self, **kwargs) -> None:  # noqa: ANN003
        FakeDoctor.created.append(kwargs)

    async def run(self) -> DoctorReport:
        return _doctor_report()


def test_diagnose_writes_report(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    FakeDoctor.created.clear()
    monkeypatch.setattr(diagnose_mod, "EnvironmentDoctor", FakeDoctor)
    report_path = tmp_path / "report.json"

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app,
        ["diagnose", "--report", str(report_path), "--port", "3333", *QUIET],
        color=False,
    )

    assert result.exit_code == 0
    assert "Docker is not running" in result.stdout
    assert "Start Docker Desktop" in result.stdout
    assert FakeDoctor.created[0]["ports"] == [3333]
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    assert payload["environment"]["missing"] == ["AGENT_EMAIL"]


def test_diagnose_no_report(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(diagnose_mod, "EnvironmentDoctor", FakeDoctor)
    report_path = tmp_path / "report.json"

    runner = CliRunner()
    result = runner.invoke(
        app_mod.app,
        ["diagnose", "--report", str(report_path), "--no-report", "--json", *QUIET],
        color=False,
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout)["docker"]["running"] is False
    assert not report_path.exists()
