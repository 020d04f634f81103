"""
Application configuration — driven by environment variables or .env file.
All settings can be overridden at runtime without changing source code.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),  # Silence ml_* namespace warning
    )

    # ── API metadata ────────────────────────────────────────────────────────
    app_title: str = "Hybrid Insurance Risk API"
    app_version: str = "1.0.0"
    app_description: str = (
        "Maps insurance questionnaires onto the hosted ML risk model's 38-field schema, "
        "with a rule-based fallback and a hybrid ML + advisory assessment."
    )

    # ── Server ───────────────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # ── CORS ─────────────────────────────────────────────────────────────────
    cors_origins: list[str] = ["*"]

    # ── Hosted ML risk model ─────────────────────────────────────────────────
    ml_api_url: str = "https://huggingface.co/spaces/darsahran/insurance-ml-api"
    ml_session_token: Optional[str] = None   # bearer token for the authenticated proxy
    ml_request_timeout: float = 10.0         # seconds, per attempt
    ml_max_retries: int = 3                  # retries after the first attempt
    ml_backoff_base_seconds: float = 1.0     # doubles on each retry

    # ── Caching ──────────────────────────────────────────────────────────────
    ml_cache_enabled: bool = True
    ml_cache_ttl_seconds: float = 3600.0

    # ── Generative advisory ──────────────────────────────────────────────────
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"

    # ── Hybrid analysis ──────────────────────────────────────────────────────
    ml_completeness_threshold: int = 85
    preliminary_completeness_threshold: int = 60
    default_policy_years: int = 20


# Module-level singleton — imported everywhere
settings = Settings()
