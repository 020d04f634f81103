"""
Hybrid analysis service — merges the hosted model's prediction (when it can run) with the
rule-based fallback and an advisory enhancement into one assessment.

Flow for ``analyze``:
  1. Map questionnaire → model input, evaluate completeness
  2. Always compute the fallback estimate
  3. ML path only when enabled and completeness ≥ threshold; any prediction failure is
     absorbed and the fallback estimate is used instead
  4. Advisory enhancement from the generative advisor (when enabled and configured),
     else the rule-based enhancement; advisor failures are absorbed the same way
  5. Combined insights and recommendation text from the final risk figures
"""

from __future__ import annotations

import logging
from typing import Optional

from hybrid_risk.core.exceptions import AdvisoryServiceError, PredictionError
from hybrid_risk.schemas.analysis import (
    AdvisoryEnhancement,
    AnalysisOptions,
    CombinedInsights,
    DataCompleteness,
    DerivedFeaturesSummary,
    HybridInsuranceAnalysis,
    MLPredictionResponse,
    MLPredictionSummary,
    PremiumRange,
    ProgressivePrediction,
    RiskAssessment,
)
from hybrid_risk.schemas.questionnaire import QuestionnaireData
from hybrid_risk.services.advisory import GeminiAdvisor, rule_based_enhancement
from hybrid_risk.services.completeness import evaluate_completeness
from hybrid_risk.services.fallback import DEFAULT_COVERAGE_AMOUNT, estimate_risk, round_half_up
from hybrid_risk.services.field_mapper import map_questionnaire
from hybrid_risk.services.prediction_client import (
    PredictionClient,
    monthly_premium_from_clv,
    risk_score_from_category,
)

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE_SCORE = 75
# Display constants, not a statistical comparison of the two models.
ML_MODEL_AGREEMENT = 94
FALLBACK_MODEL_AGREEMENT = 80

PREMIUM_RANGE_BAND = 0.2

# Missing-field hints for the progressive wizard, highest value first.
CRITICAL_FIELDS: tuple[str, ...] = (
    "age",
    "smoking_status",
    "coverage_amount_requested",
    "blood_pressure_systolic",
    "exercise_frequency_weekly",
)


def _summary_from_ml(response: MLPredictionResponse, policy_years: int) -> MLPredictionSummary:
    features = response.derived_features
    return MLPredictionSummary(
        source="ml_model",
        risk_category=response.risk_category,
        risk_score=risk_score_from_category(response.risk_category),
        risk_confidence=response.risk_confidence,
        risk_probabilities=response.risk_probabilities,
        customer_lifetime_value=response.customer_lifetime_value,
        monthly_premium=monthly_premium_from_clv(response.customer_lifetime_value, policy_years),
        derived_features=DerivedFeaturesSummary(**features.model_dump()),
    )


def _summary_from_fallback(assessment: RiskAssessment, reason: str) -> MLPredictionSummary:
    return MLPredictionSummary(
        source="fallback",
        fallback_reason=reason,
        risk_category=assessment.risk_category,
        risk_score=assessment.risk_score,
        risk_confidence=assessment.risk_confidence,
        risk_probabilities=assessment.risk_probabilities,
        customer_lifetime_value=assessment.customer_lifetime_value,
        monthly_premium=assessment.monthly_premium,
        derived_features=DerivedFeaturesSummary(
            bmi=assessment.bmi,
            bmi_category=assessment.bmi_category,
            has_diabetes=assessment.has_diabetes,
            has_hypertension=assessment.has_hypertension,
            overall_health_risk_score=assessment.overall_health_risk_score,
            financial_risk_score=assessment.financial_risk_score,
            annual_income_midpoint=assessment.annual_income_midpoint,
        ),
    )


def build_recommendation(
    risk_level: str,
    confidence_score: int,
    enhancement: AdvisoryEnhancement,
    premium_estimate: int,
) -> str:
    """Narrative for the final risk level (Low / Medium / anything else is treated as High)."""
    level = risk_level.strip().lower()
    if level == "low":
        return (
            "Excellent! Your low risk profile qualifies you for preferred rates. "
            f"This assessment carries {confidence_score}% confidence. "
            "Consider maximizing coverage while rates are favorable."
        )
    if level == "medium":
        savings = enhancement.premium_optimization.potential_savings
        savings_pct = round_half_up(savings / premium_estimate * 100) if premium_estimate > 0 else 0
        improvements = len(enhancement.risk_assessment.improvements)
        return (
            "Your medium risk profile is standard for your demographic. "
            f"We identified {improvements} improvement opportunities that could lower "
            f"your premiums by up to {savings_pct}%."
        )
    return (
        "Your current risk profile suggests higher premiums. However, specific lifestyle "
        "modifications could significantly improve your insurability. Our AI advisor can "
        "create a personalized improvement plan."
    )


class HybridInsuranceService:
    def __init__(
        self,
        prediction_client: Optional[PredictionClient],
        advisor: Optional[GeminiAdvisor] = None,
        *,
        ml_completeness_threshold: int = 85,
        preliminary_completeness_threshold: int = 60,
        default_policy_years: int = 20,
    ) -> None:
        self.prediction_client = prediction_client
        self.advisor = advisor
        self.ml_completeness_threshold = ml_completeness_threshold
        self.preliminary_completeness_threshold = preliminary_completeness_threshold
        self.default_policy_years = default_policy_years

    async def analyze(
        self, questionnaire: QuestionnaireData, options: Optional[AnalysisOptions] = None
    ) -> HybridInsuranceAnalysis:
        options = options or AnalysisOptions()
        policy_years = options.policy_years or self.default_policy_years

        ml_input = map_questionnaire(questionnaire)
        completion = evaluate_completeness(ml_input)
        percentage = completion.completion_percentage
        can_run_ml = options.use_ml_model and percentage >= self.ml_completeness_threshold

        fallback = estimate_risk(questionnaire)

        # ── Risk figures ──────────────────────────────────────────────────────
        response: Optional[MLPredictionResponse] = None
        if not options.use_ml_model:
            reason = "ML model disabled for this request"
        elif not can_run_ml:
            reason = f"Questionnaire {percentage}% complete; {self.ml_completeness_threshold}% needed for the ML model"
        elif self.prediction_client is None:
            reason = "ML prediction endpoint is not configured"
        else:
            reason = ""
            try:
                response = await self.prediction_client.predict(ml_input)
            except PredictionError as exc:
                reason = f"ML prediction failed: {exc}"
                logger.warning("ML prediction failed, using rule-based estimate: %s", exc)

        if response is not None:
            prediction = _summary_from_ml(response, policy_years)
        else:
            prediction = _summary_from_fallback(fallback, reason)
        ml_used = response is not None
        logger.info(
            "Risk path=%s completeness=%d%% category=%s",
            prediction.source, percentage, prediction.risk_category,
        )

        # ── Advisory enhancement ──────────────────────────────────────────────
        coverage = questionnaire.financial.coverage_amount or DEFAULT_COVERAGE_AMOUNT
        enhancement = rule_based_enhancement(prediction.risk_category, prediction.monthly_premium, coverage)
        if options.use_gemini and self.advisor is not None:
            try:
                enhancement = await self.advisor.analyze(
                    questionnaire, prediction.risk_score, prediction.monthly_premium, enhancement
                )
            except AdvisoryServiceError as exc:
                logger.warning("Advisory enhancement failed, using rule-based advice: %s", exc)

        # ── Combined insights ─────────────────────────────────────────────────
        confidence = round_half_up(prediction.risk_confidence * 100) if ml_used else FALLBACK_CONFIDENCE_SCORE
        insights = CombinedInsights(
            final_risk_score=prediction.risk_score,
            final_risk_level=prediction.risk_category,
            final_premium_estimate=prediction.monthly_premium,
            confidence_score=confidence,
            model_agreement=ML_MODEL_AGREEMENT if ml_used else FALLBACK_MODEL_AGREEMENT,
            recommendation=build_recommendation(
                prediction.risk_category, confidence, enhancement, prediction.monthly_premium
            ),
        )

        return HybridInsuranceAnalysis(
            ml_prediction=prediction,
            gemini_enhancement=enhancement,
            combined_insights=insights,
            data_completeness=DataCompleteness(
                percentage=percentage,
                missing_fields=completion.missing_fields,
                can_run_ml_model=can_run_ml,
            ),
        )

    def progressive_prediction(self, partial: QuestionnaireData) -> ProgressivePrediction:
        """
        Cheap, local preview while the wizard is still being filled in: whether the ML model
        could run yet, and from the preliminary threshold on, a fallback category with a
        ±20% premium range.
        """
        completion = evaluate_completeness(map_questionnaire(partial))
        percentage = completion.completion_percentage
        next_fields = [name for name in CRITICAL_FIELDS if name in completion.missing_fields]

        if percentage < self.preliminary_completeness_threshold:
            return ProgressivePrediction(
                can_predict=False,
                completion_percentage=percentage,
                next_critical_fields=next_fields,
            )

        fallback = estimate_risk(partial)
        premium = fallback.monthly_premium
        return ProgressivePrediction(
            can_predict=percentage >= self.ml_completeness_threshold,
            completion_percentage=percentage,
            preliminary_risk=fallback.risk_category,
            estimated_premium_range=PremiumRange(
                min=round_half_up(premium * (1 - PREMIUM_RANGE_BAND)),
                max=round_half_up(premium * (1 + PREMIUM_RANGE_BAND)),
            ),
            next_critical_fields=next_fields,
        )

    async def aclose(self) -> None:
        if self.prediction_client is not None:
            await self.prediction_client.aclose()


# Module-level singleton (created at startup)
_service: HybridInsuranceService | None = None


def create_hybrid_service(
    prediction_client: Optional[PredictionClient],
    advisor: Optional[GeminiAdvisor] = None,
    **thresholds: int,
) -> HybridInsuranceService:
    global _service
    _service = HybridInsuranceService(prediction_client, advisor, **thresholds)
    return _service


def get_hybrid_service() -> HybridInsuranceService:
    if _service is None:
        raise RuntimeError("HybridInsuranceService has not been initialised. Call create_hybrid_service() at startup.")
    return _service
