"""Hybrid insurance risk engine: questionnaire mapping, rule-based fallback and ML risk scoring."""

__version__ = "1.0.0"
