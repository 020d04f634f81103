"""
Error taxonomy for the risk engine.

Only the ML client raises ``ValidationError`` / ``AuthenticationError`` as hard failures, and only
on a direct call. The hybrid combiner absorbs every ``PredictionError`` and ``AdvisoryServiceError``
and downgrades to the rule-based path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FieldIssue:
    field: str
    reason: str


class RiskEngineError(Exception):
    """Base class for all engine errors."""


class PredictionError(RiskEngineError):
    """Base class for ML prediction client failures."""


class ValidationError(PredictionError):
    """The mapped input does not satisfy the 38-field model schema."""

    def __init__(self, missing_fields: list[str], invalid_fields: list[FieldIssue]) -> None:
        self.missing_fields = list(missing_fields)
        self.invalid_fields = list(invalid_fields)
        parts = []
        if self.missing_fields:
            parts.append(f"missing: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append("invalid: " + ", ".join(f"{i.field} ({i.reason})" for i in self.invalid_fields))
        super().__init__("Invalid ML model input — " + "; ".join(parts))


class AuthenticationError(PredictionError):
    """No valid session is available for the authenticated prediction proxy."""


class PredictionServiceError(PredictionError):
    """The prediction endpoint was unreachable or kept failing after all retries."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AdvisoryServiceError(RiskEngineError):
    """The generative advisory call failed or returned content that could not be parsed."""
