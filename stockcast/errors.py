# file: stockcast/errors.py
"""
Pipeline exceptions.

- DataUnavailable: provider returned nothing usable, or a history with
  month gaps or duplicates (fatal, before modeling)
- ModelFitFailure: one model could not be fitted (local, model is skipped)
- SplitInvariantViolation: train/test split lost or duplicated rows (fatal)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StockcastError(Exception):
    """Base exception carrying a message and a small context dict."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class DataUnavailable(StockcastError):
    """Provider returned no usable rows, or an incomplete monthly history."""


class ModelFitFailure(StockcastError):
    """A single model failed to fit; the caller drops it from the comparison."""

    def __init__(
        self,
        model_name: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"{model_name}: {reason}", context)
        self.model_name = model_name
        self.reason = reason


class SplitInvariantViolation(StockcastError):
    """len(train) + len(test) != n. Indicates a split-parameter bug."""
