"""Pytest configuration applied to the entire test suite."""

from __future__ import annotations

# Step definition modules must load before feature parsing so pytest-bdd can
# match scenario text to the registered steps.
pytest_plugins = [
    "tests.e2e.steps.update_steps",
]
