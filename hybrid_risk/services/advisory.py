"""
Advisory enhancement — policy suggestions and narrative advice for a computed risk profile.

``GeminiAdvisor`` asks the generative model for a JSON analysis; ``rule_based_enhancement``
produces the minimal deterministic version used when the advisor is disabled, unconfigured,
or fails (``AdvisoryServiceError``).
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Optional

import google.generativeai as genai
import pydantic

from hybrid_risk.core.exceptions import AdvisoryServiceError
from hybrid_risk.schemas.analysis import (
    AdvisoryEnhancement,
    AdvisoryRiskAssessment,
    PolicySuggestion,
    PremiumOptimization,
)
from hybrid_risk.schemas.questionnaire import QuestionnaireData
from hybrid_risk.services.field_mapper import age_from_birth_date

logger = logging.getLogger(__name__)

RULE_BASED_SAVINGS_RATE = 0.15

_JSON_BLOCK_RE = re.compile(r"\{.*\}", re.DOTALL)


def rule_based_enhancement(
    risk_category: str, monthly_premium: int, coverage_amount: float
) -> AdvisoryEnhancement:
    """One term-life suggestion at the current premium with a flat 15% savings estimate."""
    return AdvisoryEnhancement(
        source="rule_based",
        eligible_policies=[
            PolicySuggestion(
                policy_type="Term Life Insurance",
                coverage=coverage_amount,
                monthly_premium=monthly_premium,
                benefits=["Death benefit", "Affordable premiums", "Flexible terms"],
                eligibility="Eligible",
                priority="high",
                reasoning="Best value for comprehensive coverage",
            )
        ],
        personalized_advice=(
            f"Based on your {risk_category.lower()} risk profile, we recommend term life "
            f"insurance with {coverage_amount:,.0f} coverage."
        ),
        risk_assessment=AdvisoryRiskAssessment(
            overall=risk_category,
            factors=["Age", "Health Status", "Lifestyle Choices"],
            improvements=["Regular health checkups", "Maintain active lifestyle", "Stress management"],
        ),
        premium_optimization=PremiumOptimization(
            current_estimate=monthly_premium,
            potential_savings=int(monthly_premium * RULE_BASED_SAVINGS_RATE + 0.5),
            recommendations=["Bundle policies", "Annual payment discount", "Wellness program participation"],
        ),
    )


def build_analysis_prompt(
    questionnaire: QuestionnaireData,
    risk_score: int,
    premium_estimate: int,
    today: Optional[date] = None,
) -> str:
    demo = questionnaire.demographics
    health = questionnaire.health
    life = questionnaire.lifestyle
    fin = questionnaire.financial
    age = age_from_birth_date(demo.date_of_birth, today)
    conditions = ", ".join(health.medical_conditions) or "None"
    medications = ", ".join(health.current_medications) or "None"
    existing = "Yes" if fin.existing_coverage else "No"
    age_text = age if age is not None else "unknown"

    return f"""Analyze this insurance applicant's profile and recommend suitable policies.

DEMOGRAPHICS:
- Age: {age_text}
- Gender: {demo.gender}
- Occupation: {demo.occupation}
- Location: {demo.location or demo.city}
- Marital status: {demo.marital_status}
- Dependents: {demo.dependents}

HEALTH:
- Height: {health.height}, Weight: {health.weight}
- Smoking status: {health.smoking_status}
- Medical conditions: {conditions}
- Medications: {medications}
- Alcohol: {health.alcohol_consumption or life.alcohol_consumption}

LIFESTYLE:
- Exercise: {life.exercise_frequency} days/week
- Sleep: {life.sleep_hours} hours/night
- Stress level: {life.stress_level}/10
- Diet: {json.dumps(life.diet_assessment)}

FINANCIAL:
- Annual income: {fin.annual_income}
- Desired coverage: {fin.coverage_amount}
- Budget: {fin.monthly_budget}/month
- Existing coverage: {existing}

CALCULATED METRICS:
- Risk score: {risk_score}/100
- Estimated premium: {premium_estimate}/month

Respond with a single JSON object with these keys:
1. eligible_policies: list of up to 5 policies, each with policy_type, coverage, monthly_premium,
   benefits (list), eligibility, priority (high/medium/low) and reasoning
2. risk_assessment: object with overall, factors (list) and improvements (list)
3. premium_optimization: object with current_estimate, potential_savings and recommendations (list)
4. personalized_advice: short paragraph
5. confidence_score: 0-100
"""


def parse_advisory_response(text: str, defaults: AdvisoryEnhancement) -> AdvisoryEnhancement:
    """
    Parse the first ``{...}`` block of a model reply. Keys the reply leaves out are taken
    from ``defaults``; unreadable replies raise ``AdvisoryServiceError``.
    """
    match = _JSON_BLOCK_RE.search(text or "")
    if not match:
        raise AdvisoryServiceError("Advisory reply contained no JSON object")
    try:
        parsed = json.loads(match.group())
    except ValueError as exc:
        raise AdvisoryServiceError(f"Advisory reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise AdvisoryServiceError("Advisory reply JSON is not an object")

    merged: dict[str, Any] = defaults.model_dump()
    merged["source"] = "gemini"
    for key in ("eligible_policies", "personalized_advice", "confidence_score"):
        if parsed.get(key):
            merged[key] = parsed[key]
    for key in ("risk_assessment", "premium_optimization"):
        if isinstance(parsed.get(key), dict):
            merged[key] = {**merged[key], **parsed[key]}

    try:
        return AdvisoryEnhancement.model_validate(merged)
    except pydantic.ValidationError as exc:
        raise AdvisoryServiceError(f"Advisory reply does not match the expected shape: {exc}") from exc


class GeminiAdvisor:
    """Generative advisory collaborator backed by Google Gemini."""

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-flash", model: Any = None) -> None:
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
        self._model = model

    async def analyze(
        self,
        questionnaire: QuestionnaireData,
        risk_score: int,
        premium_estimate: int,
        defaults: AdvisoryEnhancement,
    ) -> AdvisoryEnhancement:
        prompt = build_analysis_prompt(questionnaire, risk_score, premium_estimate)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as exc:
            raise AdvisoryServiceError(f"Gemini request failed: {exc}") from exc

        enhancement = parse_advisory_response(text, defaults)
        logger.info("Advisory analysis received — %d policies suggested", len(enhancement.eligible_policies))
        return enhancement
