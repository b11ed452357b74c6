"""Environment and connectivity diagnostics for Planka-integrated agents."""

from planka_doctor.application.advice import advise_from
from planka_doctor.application.environment import resolve_environment
from planka_doctor.application.health import check_connection
from planka_doctor.application.probe import probe

__all__ = [
    "advise_from",
    "check_connection",
    "probe",
    "resolve_environment",
]
