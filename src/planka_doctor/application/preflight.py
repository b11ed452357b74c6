"""Connection preflight run before pipeline work starts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from planka_doctor.application.advice import advise_for_environment
from planka_doctor.application.environment import environment_info
from planka_doctor.application.health import check_connection
from planka_doctor.application.retry import RetryPolicy
from planka_doctor.config.constants import DEFAULT_HEALTH_TIMEOUT_MS
from planka_doctor.domain.models import EnvironmentContext, HealthCheckResult
from planka_doctor.infrastructure.errors import HealthCheckFailedError
from planka_doctor.infrastructure.logging import BoundLogger, get_logger, log_event
from planka_doctor.integrations.webhooks import WebhookRegistry

HealthCheck = Callable[..., Awaitable[HealthCheckResult]]
Sleeper = Callable[[float], Awaitable[Any]]

EVENT_HEALTH_PASSED = "health_check.passed"
EVENT_HEALTH_FAILED = "health_check.failed"


@dataclass(frozen=True)
class PreflightReport:
    environment: dict[str, Any]
    connection: dict[str, Any]
    result: HealthCheckResult
    attempts: int
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "connection": self.connection,
            "result": self.result.to_dict(),
            "attempts": self.attempts,
            "timestamp": self.timestamp,
        }


class ConnectionPreflight:
    """Gate that repeats the health check according to a :class:`RetryPolicy`."""

    def __init__(
        self,
        ctx: EnvironmentContext,
        *,
        policy: RetryPolicy | None = None,
        logger: BoundLogger | None = None,
        webhooks: WebhookRegistry | None = None,
        timeout_ms: int = DEFAULT_HEALTH_TIMEOUT_MS,
        check: HealthCheck = check_connection,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._ctx = ctx
        self._policy = policy or RetryPolicy()
        self._logger = logger or get_logger("planka_doctor.preflight")
        self._webhooks = webhooks
        self._timeout_ms = timeout_ms
        self._check = check
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def _notify(self, event: str, result: HealthCheckResult, attempt: int) -> None:
        if self._webhooks is None:
            return
        await self._webhooks.emit(
            event,
            {"attempt": attempt, **result.to_dict()},
        )

    def _log_failure(self, result: HealthCheckResult, attempt: int) -> None:
        log_event(
            self._logger,
            "preflight.health_check.failed",
            level=logging.ERROR,
            message=result.message,
            attempt=attempt,
            max_attempts=self._policy.max_attempts,
            details=result.details.to_dict(),
        )
        for line in advise_for_environment(self._ctx):
            log_event(
                self._logger,
                "preflight.docker_hint",
                level=logging.ERROR,
                message=line,
            )

    async def run(self) -> PreflightReport:
        """Run the health check until it passes or attempts are exhausted.

        Raises :class:`HealthCheckFailedError` with the last result when every
        attempt failed.
        """

        max_attempts = self._policy.max_attempts
        attempt = 1
        while True:
            result = await self._check(self._ctx, self._timeout_ms)
            if result.success:
                log_event(
                    self._logger,
                    "preflight.health_check.passed",
                    message=result.message,
                    attempt=attempt,
                )
                await self._notify(EVENT_HEALTH_PASSED, result, attempt)
                return PreflightReport(
                    environment=environment_info(self._ctx),
                    connection={
                        "status": "connected",
                        "url": self._ctx.target_base_url,
                        "attempts": attempt,
                    },
                    result=result,
                    attempts=attempt,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                )

            self._log_failure(result, attempt)
            await self._notify(EVENT_HEALTH_FAILED, result, attempt)
            if attempt >= max_attempts:
                raise HealthCheckFailedError(result, attempts=attempt)

            delay = self._policy.delay_for(attempt)
            log_event(
                self._logger,
                "preflight.retry_scheduled",
                level=logging.WARNING,
                attempt=attempt,
                delay_seconds=delay,
            )
            await self._sleep(delay)
            attempt += 1

    def diagnostic_info(self) -> dict[str, Any]:
        return {
            "environment": environment_info(self._ctx),
            "policy": self._policy.describe(),
            "timeout_ms": self._timeout_ms,
            "webhooks": list(self._webhooks.registered) if self._webhooks else [],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


__all__ = [
    "ConnectionPreflight",
    "EVENT_HEALTH_FAILED",
    "EVENT_HEALTH_PASSED",
    "PreflightReport",
]
