from __future__ import annotations

import importlib
from pathlib import Path

from typer.testing import CliRunner

app_mod = importlib.import_module("planka_doctor.cli.app")


def test_version_uses_pyproject(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    (tmp_path / "pyproject.toml").write_text("[project]\nversion='9.9.9'\n", encoding="utf-8")
    monkeypatch.setattr(app_mod, "PROJECT_ROOT", tmp_path)

    runner = CliRunner()
    result = runner.invoke(app_mod.app, ["version"], color=False)
    assert result.exit_code == 0
    assert result.stdout.strip()  # prints discovered package version


def test_version_handles_missing_pyproject(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(app_mod, "PROJECT_ROOT", tmp_path)
    runner = CliRunner()
    result = runner.invoke(app_mod.app, ["version"], color=False)
    assert result.exit_code == 0
    assert result.stdout.strip()  # still prints installed package version


def test_version_uses_metadata(monkeypatch) -> None:  # noqa: ANN001
    class _Meta:
        class PackageNotFoundError(Exception):
            pass

        @staticmethod
        def version(name: str) -> str:
            return "9.9.9"

    monkeypatch.setattr(app_mod, "PROJECT_ROOT", Path("/__does_not_exist__"))
    monkeypatch.setattr(importlib, "metadata", _Meta, raising=True)

    runner = CliRunner()
    result = runner.invoke(app_mod.app, ["version"], color=False)
    assert result.exit_code == 0 and result.stdout.strip() == "9.9.9"


def test_version_pyproject_unknown(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    class _Meta:
        class PackageNotFoundError(Exception):
            pass

        @staticmethod
        def version(name: str) -> str:
            raise _Meta.PackageNotFoundError(name)

    (tmp_path / "pyproject.toml").write_text("[project]\nname='x'\n", encoding="utf-8")
    monkeypatch.setattr(app_mod, "PROJECT_ROOT", tmp_path)
    monkeypatch.setattr(importlib, "metadata", _Meta, raising=True)

    runner = CliRunner()
    result = runner.invoke(app_mod.app, ["version"], color=False)
    assert result.exit_code == 0 and result.stdout.strip() == "unknown"


def test_help_lists_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(app_mod.app, ["--help"], color=False)
    assert result.exit_code == 0
    for command in ("diagnose", "check", "probe", "version"):
        assert command in result.stdout
