"""
Prediction client for the hosted ML risk model.

A call goes through:
  1. Schema check — all 38 fields present and inside their ranges, else ``ValidationError``
  2. Session check — a bearer token must be available, else ``AuthenticationError``
  3. Cache lookup — keyed by the serialised input, fresh for one hour by default
  4. Remote call — retried with exponential backoff; ``PredictionServiceError`` once exhausted
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Callable, Mapping, Optional, Union

import httpx
import pydantic

from hybrid_risk.core.exceptions import (
    AuthenticationError,
    FieldIssue,
    PredictionServiceError,
    ValidationError,
)
from hybrid_risk.schemas.analysis import FieldIssueModel, MLPredictionResponse, ValidationResult
from hybrid_risk.schemas.ml_input import REQUIRED_FIELDS, MLModelInput
from hybrid_risk.services.cache import PredictionCache
from hybrid_risk.services.completeness import completion_percentage
from hybrid_risk.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], Optional[str]]

CATEGORY_RISK_SCORES: dict[str, int] = {"low": 25, "medium": 55, "high": 85}
UNKNOWN_CATEGORY_RISK_SCORE = 50


def risk_score_from_category(category: str) -> int:
    """Representative 0–100 score for a model risk category."""
    return CATEGORY_RISK_SCORES.get(category.strip().lower(), UNKNOWN_CATEGORY_RISK_SCORE)


def monthly_premium_from_clv(customer_lifetime_value: float, policy_years: int = 20) -> int:
    """Spread the customer lifetime value evenly over the policy term."""
    months = max(policy_years, 1) * 12
    return int(customer_lifetime_value / months + 0.5)


def _input_cache_key(model_input: MLModelInput) -> str:
    """Deterministic cache key derived from the serialised input."""
    return hashlib.sha256(model_input.model_dump_json().encode()).hexdigest()


class PredictionClient:
    """
    Async client for the authenticated prediction proxy.

    The cache, retry policy and HTTP client are injected so each instance owns its state;
    nothing is shared at module level.
    """

    def __init__(
        self,
        base_url: str,
        session_provider: SessionProvider,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[PredictionCache[MLPredictionResponse]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 10.0,
    ) -> None:
        self.predict_url = f"{base_url.rstrip('/')}/api/predict"
        self._session_provider = session_provider
        self._http = http_client or httpx.AsyncClient()
        self._owns_http = http_client is None
        self._cache = cache
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout

    # ── Validation ──────────────────────────────────────────────────────────

    def _check(
        self, candidate: Mapping[str, Any]
    ) -> tuple[ValidationResult, Optional[MLModelInput]]:
        present = {k: v for k, v in candidate.items() if v is not None}
        missing = [name for name in REQUIRED_FIELDS if name not in present]

        issues: dict[str, str] = {}
        model_input: Optional[MLModelInput] = None
        try:
            model_input = MLModelInput.model_validate(present)
        except pydantic.ValidationError as exc:
            for error in exc.errors():
                name = str(error["loc"][0]) if error["loc"] else "<input>"
                if error["type"] != "missing":
                    issues.setdefault(name, error["msg"])

        invalid = [FieldIssueModel(field=name, reason=issues[name]) for name in REQUIRED_FIELDS if name in issues]
        result = ValidationResult(
            is_valid=not missing and not invalid,
            missing_fields=missing,
            invalid_fields=invalid,
            completion_percentage=completion_percentage(len(REQUIRED_FIELDS) - len(missing)),
        )
        return result, model_input if result.is_valid else None

    def validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        """Report missing and out-of-range fields without raising."""
        result, _ = self._check(candidate)
        return result

    # ── Prediction ──────────────────────────────────────────────────────────

    async def predict(self, candidate: Union[MLModelInput, Mapping[str, Any]]) -> MLPredictionResponse:
        """
        Run the hosted model on a fully mapped input.

        Raises:
            ValidationError:        input misses or violates any of the 38 fields.
            AuthenticationError:    no session token, or the proxy rejected it.
            PredictionServiceError: endpoint unreachable / non-2xx after all retries,
                                    or a response that breaks the response contract.
        """
        if isinstance(candidate, MLModelInput):
            candidate = candidate.model_dump()

        result, model_input = self._check(candidate)
        if model_input is None:
            raise ValidationError(
                result.missing_fields,
                [FieldIssue(issue.field, issue.reason) for issue in result.invalid_fields],
            )

        token = self._session_provider()
        if not token:
            raise AuthenticationError("No active session — sign in again to run the risk model.")

        cache_key = _input_cache_key(model_input)
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache HIT for key %.8s…", cache_key)
                return cached

        payload = model_input.model_dump(mode="json")
        body = await self._retry.run(
            lambda: self._post(payload, token),
            retry_on=(PredictionServiceError,),
        )
        prediction = self._parse(body)

        if self._cache is not None:
            self._cache.set(cache_key, prediction)
            logger.debug("Cache MISS — stored key %.8s… (size=%d)", cache_key, len(self._cache))

        return prediction

    async def _post(self, payload: dict[str, Any], token: str) -> Any:
        try:
            response = await self._http.post(
                self.predict_url,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise PredictionServiceError(f"Prediction endpoint unreachable: {exc!r}") from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Prediction proxy rejected the session (HTTP {response.status_code})."
            )
        if not response.is_success:
            raise PredictionServiceError(
                f"Prediction endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise PredictionServiceError("Prediction endpoint returned a non-JSON body") from exc

    @staticmethod
    def _parse(body: Any) -> MLPredictionResponse:
        # Gradio-style proxies wrap the result as {"data": [result]}.
        if isinstance(body, dict) and isinstance(body.get("data"), list) and body["data"]:
            body = body["data"][0]
        try:
            return MLPredictionResponse.model_validate(body)
        except pydantic.ValidationError as exc:
            raise PredictionServiceError(f"Unexpected prediction response: {exc}") from exc

    # ── Housekeeping ────────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
