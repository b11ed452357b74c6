"""Error types raised by planka-doctor.

Only configuration problems and an exhausted connection preflight surface as
exceptions. Network and service failures are captured into result objects
and tagged with :class:`planka_doctor.domain.models.FailureKind` instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from planka_doctor.domain.models import HealthCheckResult


class ErrorCode(str, Enum):
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"
    HEALTH_CHECK_FAILED = "HEALTH_CHECK_FAILED"


@dataclass(frozen=True)
class ErrorContext:
    code: str
    details: dict[str, Any] = field(default_factory=dict)


class DoctorError(Exception):
    """Base class for errors carrying a user-facing message and hints."""

    def __init__(
        self,
        user_message: str,
        *,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
        hints: Sequence[str] = (),
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.context = ErrorContext(code=code.value, details=dict(details or {}))
        self.hints: tuple[str, ...] = tuple(hints)

    @property
    def code(self) -> str:
        return self.context.code


class ConfigurationError(DoctorError):
    def __init__(
        self,
        user_message: str,
        *,
        missing: Sequence[str] = (),
        invalid: Sequence[str] = (),
        hints: Sequence[str] = (),
    ) -> None:
        code = ErrorCode.CONFIG_MISSING if missing else ErrorCode.CONFIG_INVALID
        super().__init__(
            user_message,
            code=code,
            details={"missing": list(missing), "invalid": list(invalid)},
            hints=hints,
        )
        self.missing: tuple[str, ...] = tuple(missing)
        self.invalid: tuple[str, ...] = tuple(invalid)

    @classmethod
    def for_missing(cls, names: Sequence[str]) -> ConfigurationError:
        return cls(
            f"Missing required environment variables: {', '.join(names)}",
            missing=names,
            hints=("Set the missing variables in your .env file or startup script",),
        )


class HealthCheckFailedError(DoctorError):
    def __init__(self, result: HealthCheckResult, *, attempts: int) -> None:
        super().__init__(
            f"Health check failed: {result.message}",
            code=ErrorCode.HEALTH_CHECK_FAILED,
            details={"attempts": attempts, **result.to_dict()},
        )
        self.result = result
        self.attempts = attempts


__all__ = [
    "ConfigurationError",
    "DoctorError",
    "ErrorCode",
    "ErrorContext",
    "HealthCheckFailedError",
]
