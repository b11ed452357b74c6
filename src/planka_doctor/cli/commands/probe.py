"""Single-shot health check plus layered connectivity diagnostics."""

from __future__ import annotations

import json
from typing import Any

import httpx
import typer
from rich.console import Console

from planka_doctor.application.advice import advise_from
from planka_doctor.application.environment import environment_info
from planka_doctor.application.health import check_connection
from planka_doctor.application.probe import probe as probe_target
from planka_doctor.cli import options as cli_options
from planka_doctor.cli.formatting import (
    render_advice,
    render_diagnostics,
    render_environment,
    render_health_result,
)
from planka_doctor.cli.helpers import build_invocation, prepare_command
from planka_doctor.cli.sync_bridge import await_sync
from planka_doctor.domain.models import EnvironmentContext, HealthCheckResult, NetworkDiagnostics
from planka_doctor.infrastructure.logging import BoundLogger


async def _run_probe(
    ctx: EnvironmentContext, *, timeout_ms: int, logger: BoundLogger
) -> tuple[HealthCheckResult, NetworkDiagnostics]:
    async with httpx.AsyncClient() as client:
        result = await check_connection(ctx, timeout_ms, client=client, logger=logger)
        diagnostics = await probe_target(ctx, client=client, logger=logger)
    return result, diagnostics


def build_payload(
    ctx: EnvironmentContext, result: HealthCheckResult, diagnostics: NetworkDiagnostics
) -> dict[str, Any]:
    return {
        "healthy": result.success and diagnostics.reachable,
        "environment": environment_info(ctx),
        "health": result.to_dict(),
        "diagnostics": diagnostics.to_dict(),
        "advice": advise_from(diagnostics),
    }


def register(
    app: typer.Typer,
    *,
    stdout_console: Console,
    stderr_console: Console,
) -> None:
    @app.command(help="Check Planka health and probe DNS, TCP and HTTP layer by layer.")
    def probe(
        config: cli_options.ConfigPathOption = None,
        target_base_url: cli_options.TargetBaseUrlOption = None,
        container: cli_options.ContainerOption = None,
        dev_mode: cli_options.DevModeOption = None,
        timeout_ms: cli_options.TimeoutMsOption = None,
        json_output: cli_options.JsonOutputOption = False,
        log_level: cli_options.LogLevelOption = None,
        log_format: cli_options.LogFormatOption = None,
        log_file: cli_options.LogFileOption = None,
    ) -> None:
        invocation = build_invocation(
            config_path=config,
            target_base_url=target_base_url,
            container=container,
            dev_mode=dev_mode,
            timeout_ms=timeout_ms,
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )
        ctx, runtime, logger = prepare_command(invocation, stderr_console=stderr_console)

        result, diagnostics = await_sync(
            _run_probe(ctx, timeout_ms=runtime.health_timeout_ms, logger=logger)
        )
        payload = build_payload(ctx, result, diagnostics)

        if json_output:
            stdout_console.print_json(json.dumps(payload))
        else:
            if ctx.is_development_mode:
                render_environment(stdout_console, payload["environment"])
            render_health_result(stdout_console, result)
            render_diagnostics(stdout_console, diagnostics)
            render_advice(stdout_console, payload["advice"])

        if not payload["healthy"]:
            raise typer.Exit(code=1)


__all__ = ["build_payload", "register"]
