"""Host environment doctor command."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console

from planka_doctor.application.doctor import (
    DEFAULT_PORTS,
    DEFAULT_REPORT_FILENAME,
    DEFAULT_URLS,
    EnvironmentDoctor,
    save_report,
)
from planka_doctor.cli import options as cli_options
from planka_doctor.cli.formatting import render_doctor_report
from planka_doctor.cli.helpers import (
    build_invocation,
    initialize_logging,
    resolve_runtime_and_logging,
)
from planka_doctor.cli.sync_bridge import await_sync
from planka_doctor.infrastructure.logging import log_event


def register(
    app: typer.Typer,
    *,
    stdout_console: Console,
    stderr_console: Console,
) -> None:
    @app.command(help="Inspect Docker, local ports, configuration and Planka reachability.")
    def diagnose(
        config: cli_options.ConfigPathOption = None,
        port: cli_options.PortListOption = None,
        url: cli_options.UrlListOption = None,
        report: cli_options.ReportPathOption = Path(DEFAULT_REPORT_FILENAME),
        no_report: cli_options.NoReportOption = False,
        json_output: cli_options.JsonOutputOption = False,
        log_level: cli_options.LogLevelOption = None,
        log_format: cli_options.LogFormatOption = None,
        log_file: cli_options.LogFileOption = None,
    ) -> None:
        invocation = build_invocation(
            config_path=config,
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )
        runtime_settings, logging_settings = resolve_runtime_and_logging(invocation)
        logger = initialize_logging(runtime_settings, logging_settings)

        doctor = EnvironmentDoctor(
            ports=port or DEFAULT_PORTS,
            urls=url or DEFAULT_URLS,
            logger=logger,
        )
        result = await_sync(doctor.run())

        if json_output:
            stdout_console.print_json(json.dumps(result.to_dict()))
        else:
            render_doctor_report(stdout_console, result)

        if no_report:
            return
        try:
            written = save_report(result, report)
        except OSError as exc:
            log_event(
                logger,
                "doctor.report.write_failed",
                level=logging.ERROR,
                path=str(report),
                error=str(exc),
            )
            stderr_console.print(f"[red]Could not write report to {report}: {exc}[/red]")
            raise typer.Exit(code=1) from exc
        log_event(logger, "doctor.report.saved", path=str(written))
        if not json_output:
            stdout_console.print(f"\n📄 Full report saved to: {written}")


__all__ = ["register"]
