"""
Questionnaire routes:
  POST /map          — questionnaire → partial model input + completeness
  POST /estimate     — rule-based risk estimate only
  POST /analyze      — full hybrid analysis (never fails for remote-service errors)
  POST /progressive  — live preview while the wizard is being filled in
"""

import logging
import time

from fastapi import APIRouter

from hybrid_risk.schemas.analysis import (
    AnalysisRequest,
    HybridInsuranceAnalysis,
    MappingResponse,
    ProgressivePrediction,
    RiskAssessment,
)
from hybrid_risk.schemas.questionnaire import QuestionnaireData
from hybrid_risk.services.completeness import evaluate_completeness
from hybrid_risk.services.fallback import estimate_risk
from hybrid_risk.services.field_mapper import map_questionnaire
from hybrid_risk.services.hybrid import get_hybrid_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])


@router.post("/map", response_model=MappingResponse, summary="Map a questionnaire onto the model schema")
async def map_fields(questionnaire: QuestionnaireData) -> MappingResponse:
    ml_input = map_questionnaire(questionnaire)
    return MappingResponse(ml_input=ml_input, completion=evaluate_completeness(ml_input))


@router.post("/estimate", response_model=RiskAssessment, summary="Rule-based risk and premium estimate")
async def estimate(questionnaire: QuestionnaireData) -> RiskAssessment:
    return estimate_risk(questionnaire)


@router.post(
    "/analyze",
    response_model=HybridInsuranceAnalysis,
    summary="Hybrid ML + rule-based insurance analysis",
    description=(
        "Maps the questionnaire, runs the hosted risk model when the input is complete enough, "
        "falls back to the rule-based estimator otherwise, and adds advisory recommendations."
    ),
)
async def analyze(request: AnalysisRequest) -> HybridInsuranceAnalysis:
    t0 = time.perf_counter()
    result = await get_hybrid_service().analyze(request.questionnaire, request.options)

    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info(
        "Analysis: source=%s level=%s confidence=%d latency=%.1fms",
        result.ml_prediction.source,
        result.combined_insights.final_risk_level,
        result.combined_insights.confidence_score,
        elapsed_ms,
    )
    return result


@router.post("/progressive", response_model=ProgressivePrediction, summary="Progressive prediction preview")
async def progressive(questionnaire: QuestionnaireData) -> ProgressivePrediction:
    return get_hybrid_service().progressive_prediction(questionnaire)
