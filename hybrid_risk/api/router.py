"""Router aggregator — collects all route modules into a single APIRouter."""

from fastapi import APIRouter

from hybrid_risk.api.routes import analysis, health, predict

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(analysis.router)
api_router.include_router(predict.router)
