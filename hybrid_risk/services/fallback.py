"""
Fallback risk estimator — deterministic rule-based scoring used whenever the hosted model
cannot run (incomplete input, ML disabled, or the service failed).

Scoring (additive, from a base of 30):
  - age:        <25 → +5,  >65 → +20,  >50 → +10  (single band, highest applicable)
  - conditions: +8 per listed medical condition
  - smoking:    current → +25, former → +10
  - exercise:   <2 days/week → +8, ≥4 days/week → −5
  - stress:     >7 → +6, <4 → −3
The score is clamped to [5, 95]. Every input has a default, so estimation never fails.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from hybrid_risk.schemas.analysis import RiskAssessment, RiskProbabilities
from hybrid_risk.schemas.questionnaire import QuestionnaireData
from hybrid_risk.services.field_mapper import (
    MAPPING_DEFAULTS,
    age_from_birth_date,
    convert_height_to_cm,
    convert_weight_to_kg,
    has_condition,
    map_smoking_status,
    parse_blood_pressure,
)

logger = logging.getLogger(__name__)

BASE_RISK = 30
MIN_SCORE, MAX_SCORE = 5, 95
POINTS_PER_CONDITION = 8

DEFAULT_AGE = 30
DEFAULT_HEIGHT_CM = 170.0
DEFAULT_WEIGHT_KG = 70.0
DEFAULT_ANNUAL_INCOME = 750_000
# One canonical "no coverage specified" amount, shared with the mapper.
DEFAULT_COVERAGE_AMOUNT = MAPPING_DEFAULTS["coverage_amount_requested"]

FALLBACK_CONFIDENCE = 0.75

DIABETES_FASTING_SUGAR = 126
HYPERTENSION_SYSTOLIC = 140
HYPERTENSION_DIASTOLIC = 90

DIABETES_KEYWORDS = ("diabet",)
HYPERTENSION_KEYWORDS = ("hypertension", "high blood pressure")

# Class probabilities reported for each fallback category (Low, Medium, High).
CATEGORY_PROBABILITIES: dict[str, tuple[float, float, float]] = {
    "Low": (0.7, 0.2, 0.1),
    "Medium": (0.2, 0.7, 0.1),
    "High": (0.1, 0.2, 0.7),
}


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def risk_category_for_score(score: float) -> str:
    if score < 40:
        return "Low"
    if score > 70:
        return "High"
    return "Medium"


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def monthly_premium_estimate(risk_score: int, coverage_amount: float) -> int:
    return round_half_up((risk_score * 0.8 + coverage_amount / 10_000) * 1.2)


def score_risk(questionnaire: QuestionnaireData, today: Optional[date] = None) -> int:
    """The clamped additive risk score on its own."""
    health = questionnaire.health
    life = questionnaire.lifestyle

    risk = BASE_RISK

    age = age_from_birth_date(questionnaire.demographics.date_of_birth, today)
    if age is None:
        age = DEFAULT_AGE
    if age < 25:
        risk += 5
    elif age > 65:
        risk += 20
    elif age > 50:
        risk += 10

    conditions = [c for c in health.medical_conditions if isinstance(c, str) and c.strip()]
    risk += POINTS_PER_CONDITION * len(conditions)

    if health.smoking_status and health.smoking_status.strip():
        smoking = map_smoking_status(health.smoking_status)
        if smoking == "Current":
            risk += 25
        elif smoking == "Former":
            risk += 10

    exercise = life.exercise_frequency or 0
    if exercise < 2:
        risk += 8
    elif exercise >= 4:
        risk -= 5

    stress = life.stress_level if life.stress_level is not None else MAPPING_DEFAULTS["stress_level"]
    if stress > 7:
        risk += 6
    elif stress < 4:
        risk -= 3

    return min(max(risk, MIN_SCORE), MAX_SCORE)


def estimate_risk(questionnaire: QuestionnaireData, today: Optional[date] = None) -> RiskAssessment:
    """
    Rule-based risk score, category and monthly premium plus the derived health figures.

    Args:
        questionnaire: Raw wizard answers; any subset may be missing.
        today:         Reference date for the age calculation (defaults to today).
    """
    health = questionnaire.health
    fin = questionnaire.financial

    risk_score = score_risk(questionnaire, today)
    category = risk_category_for_score(risk_score)

    coverage = fin.coverage_amount or DEFAULT_COVERAGE_AMOUNT
    premium = monthly_premium_estimate(risk_score, coverage)
    lifetime_value = (risk_score * 1000 + coverage / 50) * 1.5

    height_cm = convert_height_to_cm(health.height, clamp=False) or DEFAULT_HEIGHT_CM
    weight_kg = convert_weight_to_kg(health.weight, clamp=False) or DEFAULT_WEIGHT_KG
    bmi = weight_kg / (height_cm / 100) ** 2

    fasting_sugar = health.blood_sugar_fasting or MAPPING_DEFAULTS["blood_sugar_fasting"]
    has_diabetes = fasting_sugar >= DIABETES_FASTING_SUGAR or has_condition(
        health.medical_conditions, DIABETES_KEYWORDS
    )

    systolic, diastolic = parse_blood_pressure(health.blood_pressure) or (120, 80)
    has_hypertension = (
        systolic >= HYPERTENSION_SYSTOLIC
        or diastolic >= HYPERTENSION_DIASTOLIC
        or has_condition(health.medical_conditions, HYPERTENSION_KEYWORDS)
    )

    has_savings = fin.has_savings if fin.has_savings is not None else (fin.monthly_savings or 0) > 0
    financial_risk = (0.3 if fin.has_debt else 0.0) + (0.0 if has_savings else 0.2)

    low, medium, high = CATEGORY_PROBABILITIES[category]

    logger.debug("Fallback estimate — score=%d category=%s premium=%d", risk_score, category, premium)

    return RiskAssessment(
        risk_score=risk_score,
        risk_category=category,
        monthly_premium=premium,
        risk_confidence=FALLBACK_CONFIDENCE,
        risk_probabilities=RiskProbabilities(low=low, medium=medium, high=high),
        customer_lifetime_value=round(lifetime_value, 2),
        bmi=round(bmi, 1),
        bmi_category=bmi_category(bmi),
        has_diabetes=has_diabetes,
        has_hypertension=has_hypertension,
        overall_health_risk_score=round(risk_score / 100 * 0.7, 2),
        financial_risk_score=round(financial_risk, 2),
        annual_income_midpoint=fin.annual_income or DEFAULT_ANNUAL_INCOME,
    )
