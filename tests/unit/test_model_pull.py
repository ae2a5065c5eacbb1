from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

from services.models import ModelPullError, ModelPullErrorKind, pull_model, validate_model_name
from services.process import ProcessError, ProcessErrorKind


def _fake_ollama(directory: Path, body: str) -> Path:
    """Write an executable ``ollama`` wrapper around a Python stand-in."""

    implementation = directory / "fake_ollama.py"
    implementation.write_text(f"import sys\n{body}\n", encoding="utf-8")
    script = directory / "ollama"
    script.write_text(
        f"#!/bin/sh\nexec '{sys.executable}' '{implementation}' \"$@\"\n", encoding="utf-8"
    )
    script.chmod(0o755)
    return script


@pytest.mark.parametrize(
    "name", ["llama3", "mistral:7b", "library/llama3:latest", "hf.co/org/model:Q4_K_M"]
)
def test_valid_model_names_are_accepted(name: str) -> None:
    assert validate_model_name(name) == name


@pytest.mark.parametrize("name", ["", "-rf", "--help", "llama 3", "model;rm", "llama3\n"])
def test_invalid_model_names_are_rejected(name: str) -> None:
    with pytest.raises(ModelPullError) as excinfo:
        validate_model_name(name)

    assert excinfo.value.kind is ModelPullErrorKind.INVALID_NAME


def test_invalid_name_never_spawns(tmp_path: Path) -> None:
    with pytest.raises(ModelPullError):
        asyncio.run(pull_model("--insecure", executable=str(tmp_path / "absent")))


@pytest.mark.skipif(os.name != "posix", reason="shebang scripts")
def test_pull_streams_progress_and_returns_transcript(tmp_path: Path) -> None:
    executable = _fake_ollama(
        tmp_path,
        "print('pulling manifest', flush=True)\n"
        "print('pulling 6a0746a1ec1a... 100%', file=sys.stderr, flush=True)\n"
        "print('success ' + ' '.join(sys.argv[1:]))",
    )
    lines: list[str] = []

    outcome = asyncio.run(
        pull_model("llama3", executable=str(executable), on_line=lambda stream, line: lines.append(line))
    )

    assert outcome.exit_success is True
    assert "success pull llama3" in outcome.transcript
    assert sorted(lines) == sorted(outcome.transcript)
    assert len(outcome.transcript) == 3


@pytest.mark.skipif(os.name != "posix", reason="shebang scripts")
def test_failed_pull_reports_transcript(tmp_path: Path) -> None:
    executable = _fake_ollama(
        tmp_path, "print('Error: pull model manifest: file does not exist', file=sys.stderr)\nsys.exit(1)"
    )

    with pytest.raises(ModelPullError) as excinfo:
        asyncio.run(pull_model("nonexistent", executable=str(executable)))

    assert excinfo.value.kind is ModelPullErrorKind.PULL_FAILED
    assert excinfo.value.outcome is not None
    assert excinfo.value.outcome.returncode == 1
    assert "file does not exist" in str(excinfo.value)


def test_missing_executable_reports_spawn_failure(tmp_path: Path) -> None:
    with pytest.raises(ProcessError) as excinfo:
        asyncio.run(pull_model("llama3", executable=str(tmp_path / "ollama")))

    assert excinfo.value.kind is ProcessErrorKind.SPAWN_FAILED


@pytest.mark.skipif(os.name != "posix", reason="shebang scripts")
def test_overlapping_pulls_are_independent(tmp_path: Path) -> None:
    executable = _fake_ollama(tmp_path, "print('done ' + sys.argv[2])")

    async def scenario():
        return await asyncio.gather(
            pull_model("llama3", executable=str(executable)),
            pull_model("mistral", executable=str(executable)),
        )

    first, second = asyncio.run(scenario())

    assert first.transcript == ("done llama3",)
    assert second.transcript == ("done mistral",)
