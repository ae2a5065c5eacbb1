"""Public API for local model management."""

from __future__ import annotations

from services.models.pull import ModelPullError, ModelPullErrorKind, pull_model, validate_model_name

__all__ = ["ModelPullError", "ModelPullErrorKind", "pull_model", "validate_model_name"]
