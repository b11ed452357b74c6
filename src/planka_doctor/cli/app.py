"""planka-doctor Typer CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from planka_doctor.cli.commands import check as check_command
from planka_doctor.cli.commands import diagnose as diagnose_command
from planka_doctor.cli.commands import probe as probe_command

PROJECT_ROOT = Path(__file__).resolve().parents[3]

stderr_console = Console(stderr=True)
stdout_console = Console(stderr=False)

app = typer.Typer(
    help="Connectivity diagnostics for Planka-backed agents",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


# Register extracted command modules (after dependencies are defined)
diagnose_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)
check_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)
probe_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)


@app.command(help="Show the installed planka-doctor package version.")
def version() -> None:
    """Print the version discovered from the package metadata."""
    from importlib import metadata

    try:
        resolved_version = metadata.version("planka-doctor")
    except metadata.PackageNotFoundError:
        pyproject = PROJECT_ROOT / "pyproject.toml"
        if not pyproject.exists():
            stdout_console.print("Version information unavailable")
            return
        import tomllib

        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        resolved_version = data.get("project", {}).get("version", "unknown")
    stdout_console.print(resolved_version)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``planka-doctor`` console script."""

    app(args=argv, prog_name="planka-doctor")


__all__ = ["app", "main"]
