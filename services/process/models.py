"""Outcome and error types produced by the process runner."""

from __future__ import annotations

import signal
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple


class ProcessErrorKind(str, Enum):
    SPAWN_FAILED = "spawn_failed"
    STREAM_READ_ERROR = "stream_read_error"
    WAIT_FAILED = "wait_failed"


class ProcessError(RuntimeError):
    """Raised when a child process cannot be launched, read or reaped."""

    def __init__(
        self,
        kind: ProcessErrorKind,
        message: str,
        *,
        command: Sequence[str] = (),
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.command = tuple(command)
        self.returncode = returncode


@dataclass(frozen=True)
class ProcessOutcome:
    """Exit status and merged output of one finished child process."""

    returncode: int
    transcript: Tuple[str, ...]

    @property
    def exit_success(self) -> bool:
        return self.returncode == 0

    @property
    def exit_status(self) -> str:
        if self.returncode < 0:
            number = -self.returncode
            try:
                name = signal.Signals(number).name
            except ValueError:
                name = str(number)
            return f"terminated by signal {name}"
        return f"exit code {self.returncode}"

    def tail(self, count: int = 20) -> str:
        """Return the last ``count`` transcript lines for error messages."""

        return "\n".join(self.transcript[-count:])


__all__ = ["ProcessError", "ProcessErrorKind", "ProcessOutcome"]
