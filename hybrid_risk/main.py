"""
FastAPI application entry point.

Startup sequence:
  1. Configure logging
  2. Build the prediction client (cache + retry policy) and the optional Gemini advisor
  3. Create the hybrid analysis service singleton
  4. Mount API router

Run locally:
    uvicorn hybrid_risk.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from hybrid_risk.api.router import api_router
from hybrid_risk.core.config import Settings, settings
from hybrid_risk.core.logging_config import configure_logging
from hybrid_risk.services.advisory import GeminiAdvisor
from hybrid_risk.services.cache import PredictionCache
from hybrid_risk.services.hybrid import HybridInsuranceService, create_hybrid_service
from hybrid_risk.services.prediction_client import PredictionClient
from hybrid_risk.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


def build_service(config: Settings) -> HybridInsuranceService:
    """Wire the prediction client, advisor and thresholds from configuration."""
    cache = PredictionCache(ttl_seconds=config.ml_cache_ttl_seconds) if config.ml_cache_enabled else None
    client = PredictionClient(
        config.ml_api_url,
        session_provider=lambda: config.ml_session_token,
        cache=cache,
        retry_policy=RetryPolicy(
            max_retries=config.ml_max_retries,
            base_delay=config.ml_backoff_base_seconds,
        ),
        timeout=config.ml_request_timeout,
    )

    advisor = None
    if config.gemini_api_key:
        advisor = GeminiAdvisor(config.gemini_api_key, config.gemini_model)
    else:
        logger.warning("GEMINI_API_KEY not set — advisory enhancement will be rule-based only.")

    return create_hybrid_service(
        client,
        advisor,
        ml_completeness_threshold=config.ml_completeness_threshold,
        preliminary_completeness_threshold=config.preliminary_completeness_threshold,
        default_policy_years=config.default_policy_years,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Wire services from the app's settings on startup; close HTTP clients on shutdown."""
    config: Settings = app.state.settings
    configure_logging(config.log_level)
    logger.info("Starting %s v%s", config.app_title, config.app_version)

    service = build_service(config)

    logger.info(
        "Application ready — ML endpoint %s, advisor %s",
        config.ml_api_url,
        "enabled" if service.advisor is not None else "rule-based",
    )
    yield
    await service.aclose()
    logger.info("Shutting down application.")


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(
        title=config.app_title,
        version=config.app_version,
        description=config.app_description,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = config

    # ── Middleware ─────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # ── Routes ─────────────────────────────────────────────────────────────
    app.include_router(api_router)

    return app


app = create_app()
