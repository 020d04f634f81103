"""
GET /health — Liveness and readiness check.
"""

from fastapi import APIRouter, Request

from hybrid_risk.schemas.analysis import HealthResponse
from hybrid_risk.services.hybrid import get_hybrid_service

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="API health check",
    description="Returns the API status and which remote collaborators are wired up.",
    tags=["Health"],
)
async def health(request: Request) -> HealthResponse:
    """Liveness + readiness check — status is "ok" once the analysis service exists."""
    try:
        service = get_hybrid_service()
        status = "ok"
        ml_configured = service.prediction_client is not None
        advisory_configured = service.advisor is not None
    except RuntimeError:
        status = "starting"
        ml_configured = False
        advisory_configured = False

    return HealthResponse(
        status=status,
        ml_endpoint_configured=ml_configured,
        advisory_configured=advisory_configured,
        api_version=request.app.state.settings.app_version,
    )
