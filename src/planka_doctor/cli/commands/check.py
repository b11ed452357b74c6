"""Connection preflight command."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
import typer
from rich.console import Console

from planka_doctor.application.advice import advise_from
from planka_doctor.application.health import check_connection
from planka_doctor.application.preflight import ConnectionPreflight, PreflightReport
from planka_doctor.application.probe import probe
from planka_doctor.application.retry import RetryPolicy
from planka_doctor.cli import options as cli_options
from planka_doctor.cli.formatting import (
    render_advice,
    render_diagnostics,
    render_environment,
    render_health_result,
)
from planka_doctor.cli.helpers import build_invocation, prepare_command
from planka_doctor.cli.sync_bridge import await_sync
from planka_doctor.config.settings import RuntimeSettings
from planka_doctor.domain.models import EnvironmentContext, NetworkDiagnostics
from planka_doctor.infrastructure.errors import HealthCheckFailedError
from planka_doctor.infrastructure.logging import BoundLogger
from planka_doctor.integrations.webhooks import WebhookRegistry


@dataclass(frozen=True)
class CheckPassed:
    report: PreflightReport

    @property
    def succeeded(self) -> bool:
        return True

    def to_dict(self) -> dict[str, object]:
        return {"success": True, **self.report.to_dict()}


@dataclass(frozen=True)
class CheckFailed:
    failure: HealthCheckFailedError
    diagnostics: NetworkDiagnostics | None = None

    @property
    def succeeded(self) -> bool:
        return False

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "success": False,
            "attempts": self.failure.attempts,
            "result": self.failure.result.to_dict(),
        }
        if self.diagnostics is not None:
            payload["diagnostics"] = self.diagnostics.to_dict()
            payload["advice"] = advise_from(self.diagnostics)
        return payload


CheckOutcome = CheckPassed | CheckFailed


async def _run_check(
    ctx: EnvironmentContext,
    runtime: RuntimeSettings,
    *,
    webhook_urls: Sequence[str],
    logger: BoundLogger,
) -> CheckOutcome:
    async with httpx.AsyncClient() as client:
        registry = WebhookRegistry(client=client, logger=logger)
        for url in webhook_urls:
            registry.register(url)
        preflight = ConnectionPreflight(
            ctx,
            policy=RetryPolicy.from_runtime(runtime),
            logger=logger,
            webhooks=registry,
            timeout_ms=runtime.health_timeout_ms,
            check=check_connection,
        )
        try:
            report = await preflight.run()
        except HealthCheckFailedError as exc:
            diagnostics = await probe(ctx, client=client, logger=logger)
            return CheckFailed(failure=exc, diagnostics=diagnostics)
        return CheckPassed(report=report)


def _render_outcome(console: Console, outcome: CheckOutcome, *, dev_mode: bool) -> None:
    if isinstance(outcome, CheckPassed):
        render_health_result(console, outcome.report.result)
        console.print(f"   Attempts: {outcome.report.attempts}")
        if dev_mode:
            render_environment(console, outcome.report.environment)
        return

    render_health_result(console, outcome.failure.result)
    console.print(f"   Attempts: {outcome.failure.attempts}")
    if outcome.diagnostics is not None:
        render_diagnostics(console, outcome.diagnostics)
        render_advice(console, advise_from(outcome.diagnostics))


def register(
    app: typer.Typer,
    *,
    stdout_console: Console,
    stderr_console: Console,
) -> None:
    @app.command(help="Run the connection preflight against the Planka health endpoint.")
    def check(
        config: cli_options.ConfigPathOption = None,
        target_base_url: cli_options.TargetBaseUrlOption = None,
        container: cli_options.ContainerOption = None,
        dev_mode: cli_options.DevModeOption = None,
        timeout_ms: cli_options.TimeoutMsOption = None,
        max_attempts: cli_options.MaxAttemptsOption = None,
        retry_delay: cli_options.RetryDelayOption = None,
        backoff: cli_options.BackoffOption = None,
        webhook: cli_options.WebhookOption = None,
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
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            backoff=backoff,
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )
        ctx, runtime, logger = prepare_command(invocation, stderr_console=stderr_console)

        outcome = await_sync(
            _run_check(ctx, runtime, webhook_urls=webhook or [], logger=logger)
        )

        if json_output:
            stdout_console.print_json(json.dumps(outcome.to_dict()))
        else:
            _render_outcome(stdout_console, outcome, dev_mode=ctx.is_development_mode)

        if not outcome.succeeded:
            raise typer.Exit(code=1)


__all__ = ["CheckFailed", "CheckOutcome", "CheckPassed", "register"]
