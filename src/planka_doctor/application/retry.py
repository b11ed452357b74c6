"""Retry policy injected into callers that repeat health checks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from planka_doctor.config.constants import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY_SECONDS
from planka_doctor.config.settings import BACKOFF_EXPONENTIAL, RuntimeSettings

BackoffFunction = Callable[[int, float], float]


def constant_backoff(attempt: int, base_delay: float) -> float:
    return base_delay


def exponential_backoff(attempt: int, base_delay: float) -> float:
    return base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make and how long to wait between them."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    backoff: BackoffFunction = field(default=constant_backoff, compare=False)
    max_delay: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-based)."""

        delay = max(0.0, float(self.backoff(attempt, self.base_delay)))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def describe(self) -> dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "base_delay": self.base_delay,
            "backoff": getattr(self.backoff, "__name__", repr(self.backoff)),
            "max_delay": self.max_delay,
        }

    @classmethod
    def from_runtime(cls, runtime: RuntimeSettings) -> RetryPolicy:
        backoff = exponential_backoff if runtime.backoff == BACKOFF_EXPONENTIAL else constant_backoff
        return cls(
            max_attempts=runtime.max_attempts,
            base_delay=runtime.retry_delay,
            backoff=backoff,
        )


__all__ = ["BackoffFunction", "RetryPolicy", "constant_backoff", "exponential_backoff"]
