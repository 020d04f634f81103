"""
POST /ml/predict — Call the hosted risk model directly with a mapped input.

Unlike /analyze, failures are not absorbed here: schema violations, missing sessions and
service outages surface as HTTP errors.
"""

import logging
import time
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from hybrid_risk.core.exceptions import AuthenticationError, PredictionServiceError, ValidationError
from hybrid_risk.schemas.analysis import MLPredictionResponse, ValidationResult
from hybrid_risk.services.hybrid import get_hybrid_service
from hybrid_risk.services.prediction_client import PredictionClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ml", tags=["Inference"])


def _client() -> PredictionClient:
    client = get_hybrid_service().prediction_client
    if client is None:
        raise HTTPException(status_code=503, detail="ML prediction endpoint is not configured")
    return client


@router.post(
    "/validate",
    response_model=ValidationResult,
    summary="Check a model input against the 38-field schema",
)
async def validate(ml_input: dict[str, Any] = Body(...)) -> ValidationResult:
    return _client().validate(ml_input)


@router.post(
    "/predict",
    response_model=MLPredictionResponse,
    summary="Predict insurance risk with the hosted model",
    description=(
        "Submit a complete 38-field model input and receive the model's risk category, "
        "class probabilities, customer lifetime value and derived health features."
    ),
)
async def predict(ml_input: dict[str, Any] = Body(...)) -> MLPredictionResponse:
    """
    Run the hosted model on the submitted input.

    - 422 when fields are missing or out of range (field-level detail in the body)
    - 401 when no session is available or the proxy rejects it
    - 502 when the endpoint keeps failing after all retries
    """
    t0 = time.perf_counter()
    client = _client()

    try:
        result = await client.predict(ml_input)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Invalid ML model input",
                "missingFields": exc.missing_fields,
                "invalidFields": [{"field": i.field, "reason": i.reason} for i in exc.invalid_fields],
            },
        ) from exc
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except PredictionServiceError as exc:
        logger.error("Prediction service failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info(
        "Prediction: category=%s confidence=%.3f latency=%.1fms",
        result.risk_category,
        result.risk_confidence,
        elapsed_ms,
    )
    return result
