"""Public API for the process runner package."""

from __future__ import annotations

from services.process.models import ProcessError, ProcessErrorKind, ProcessOutcome
from services.process.runner import LineCallback, run_process

__all__ = [
    "LineCallback",
    "ProcessError",
    "ProcessErrorKind",
    "ProcessOutcome",
    "run_process",
]
