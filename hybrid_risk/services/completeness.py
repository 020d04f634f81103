"""
Completeness evaluator — how much of the 38-field model input a mapping pass produced.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from hybrid_risk.schemas.analysis import CompletionStatus
from hybrid_risk.schemas.ml_input import REQUIRED_FIELDS


def completion_percentage(filled: int, total: int = len(REQUIRED_FIELDS)) -> int:
    """Share of ``total`` that is filled, as a whole percentage (half rounds up)."""
    if total <= 0:
        return 0
    return int(filled * 100 / total + 0.5)


def evaluate_completeness(
    ml_input: Mapping[str, Any],
    required_fields: Sequence[str] = REQUIRED_FIELDS,
) -> CompletionStatus:
    """A field counts as filled when present and not ``None``; order follows ``required_fields``."""
    filled = [name for name in required_fields if ml_input.get(name) is not None]
    missing = [name for name in required_fields if ml_input.get(name) is None]

    return CompletionStatus(
        completion_percentage=completion_percentage(len(filled), len(required_fields)),
        filled_fields=filled,
        missing_fields=missing,
    )
