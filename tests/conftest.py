from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from planka_doctor.config.settings import LOG_FORMAT_TEXT, LoggingSettings
from planka_doctor.domain.models import Credentials, EnvironmentContext
from planka_doctor.infrastructure.logging import configure_logging

# Variables read by the settings layer; cleared so the developer's shell does
# not leak into resolution tests.
_RESOLUTION_VARIABLES = (
    "TARGET_BASE_URL",
    "AGENT_EMAIL",
    "AGENT_PASSWORD",
    "CONTAINER_OVERRIDE",
    "DEV_MODE",
    "PLANKA_BASE_URL",
    "PLANKA_AGENT_EMAIL",
    "PLANKA_AGENT_PASSWORD",
    "DOCKER_CONTAINER",
    "PLANKA_DOCTOR_CONFIG",
    "PLANKA_DOCTOR_HEALTH_TIMEOUT_MS",
    "PLANKA_DOCTOR_MAX_ATTEMPTS",
    "PLANKA_DOCTOR_RETRY_DELAY",
    "PLANKA_DOCTOR_BACKOFF",
    "PLANKA_DOCTOR_LOG_LEVEL",
    "PLANKA_DOCTOR_LOG_FORMAT",
    "PLANKA_DOCTOR_LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _RESOLUTION_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def text_logging() -> None:
    configure_logging(
        LoggingSettings(
            level=logging.DEBUG,
            format=LOG_FORMAT_TEXT,
            file_path=None,
            max_bytes=1024,
            backup_count=1,
        )
    )


@pytest.fixture
def make_context() -> Callable[..., EnvironmentContext]:
    def _factory(
        base_url: str = "http://planka.test:3333",
        *,
        containerized: bool = False,
        dev_mode: bool = False,
    ) -> EnvironmentContext:
        return EnvironmentContext(
            target_base_url=base_url,
            is_containerized=containerized,
            credentials=Credentials(email="agent@example.com", password="secret"),
            is_development_mode=dev_mode,
        )

    return _factory


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("planka_doctor")
    group.addoption(
        "--offline",
        action="store_true",
        dest="planka_offline",
        help="Run offline tests only (deselect tests marked 'online').",
    )
    group.addoption(
        "--online-only",
        action="store_true",
        dest="planka_online_only",
        help="Run only tests marked 'online' (deselect offline).",
    )


def _is_integration_path(s: str) -> bool:
    s = s.replace("\\", "/")
    return s.startswith("tests/integration/") or "/tests/integration/" in s


def _mark_by_path(items: list[pytest.Item]) -> None:
    for item in items:
        node_str = str(getattr(item, "fspath", item.nodeid))
        marker = (
            pytest.mark.online
            if _is_integration_path(node_str)
            else pytest.mark.offline
        )
        item.add_marker(marker)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    _mark_by_path(items)

    offline_only = bool(config.getoption("planka_offline"))
    online_only = bool(config.getoption("planka_online_only"))

    if offline_only and online_only:
        raise pytest.UsageError("--offline and --online-only are mutually exclusive")

    deselect: list[pytest.Item] = []
    if online_only:
        deselect = [i for i in items if "online" not in i.keywords]
    elif offline_only:
        deselect = [i for i in items if "online" in i.keywords]

    if not deselect:
        return

    config.hook.pytest_deselected(items=deselect)
    items[:] = [i for i in items if i not in deselect]
