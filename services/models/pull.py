"""Download models by running ``ollama pull`` through the process runner."""

from __future__ import annotations

import logging
import re
from enum import Enum

from services.process import LineCallback, ProcessOutcome, run_process

_LOGGER = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "ollama"

# Registry names such as ``llama3``, ``library/mistral:7b`` or
# ``hf.co/org/model:Q4_K_M``.  A leading ``-`` would be read as a flag.
_MODEL_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._:/@+-]*")


class ModelPullErrorKind(str, Enum):
    INVALID_NAME = "invalid_name"
    PULL_FAILED = "pull_failed"


class ModelPullError(RuntimeError):
    """Raised when a model name is rejected or the pull command fails."""

    def __init__(
        self,
        kind: ModelPullErrorKind,
        message: str,
        *,
        model: str,
        outcome: ProcessOutcome | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.model = model
        self.outcome = outcome


def validate_model_name(name: str) -> str:
    if not isinstance(name, str) or not _MODEL_NAME_PATTERN.fullmatch(name):
        raise ModelPullError(
            ModelPullErrorKind.INVALID_NAME,
            f"Invalid model name: {name!r}",
            model=str(name),
        )
    return name


async def pull_model(
    name: str,
    *,
    executable: str = DEFAULT_EXECUTABLE,
    on_line: LineCallback | None = None,
) -> ProcessOutcome:
    """Run ``<executable> pull <name>`` and return its merged transcript.

    Each output line is forwarded to ``on_line`` as soon as it is read so a
    caller can stream progress.  Overlapping pulls are independent.
    """

    model = validate_model_name(name)
    _LOGGER.info("Pulling model %s", model)
    outcome = await run_process(executable, ("pull", model), on_line=on_line)
    if not outcome.exit_success:
        _LOGGER.warning("Pull of %s failed with %s", model, outcome.exit_status)
        raise ModelPullError(
            ModelPullErrorKind.PULL_FAILED,
            f"Failed to pull model {model} ({outcome.exit_status}): {outcome.tail()}",
            model=model,
            outcome=outcome,
        )
    _LOGGER.info("Pulled model %s", model)
    return outcome


__all__ = [
    "ModelPullError",
    "ModelPullErrorKind",
    "pull_model",
    "validate_model_name",
]
