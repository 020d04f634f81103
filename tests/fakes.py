"""
Deterministic stand-ins for time, sleep and the remote services used across the test suite.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import httpx

from hybrid_risk.schemas.analysis import MLPredictionResponse
from hybrid_risk.services.cache import PredictionCache
from hybrid_risk.services.prediction_client import PredictionClient
from hybrid_risk.services.retry import RetryPolicy

ML_BASE_URL = "https://ml.test"


def birth_date_for_age(age: int) -> str:
    """ISO date of birth giving exactly ``age`` today (1 January never lies ahead)."""
    return date(date.today().year - age, 1, 1).isoformat()


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingHandler:
    """MockTransport handler replaying ``responses`` in order (the last one repeats).

    An int is answered with that status code, an exception is raised, anything else is
    returned as a 200 JSON body.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        outcome = self.responses[index]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome, json={"error": "upstream failure"})
        return httpx.Response(200, json=outcome)


def make_prediction_client(
    handler: RecordingHandler,
    *,
    token: Optional[str] = "session-token",
    cache: Optional[PredictionCache] = None,
    sleep: Optional[RecordingSleep] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> PredictionClient:
    if retry_policy is None:
        retry_policy = RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleep or RecordingSleep())
    return PredictionClient(
        ML_BASE_URL,
        session_provider=lambda: token,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        cache=cache,
        retry_policy=retry_policy,
    )


class StubPredictionClient:
    """Stands in for PredictionClient inside the hybrid service."""

    def __init__(self, response: Optional[MLPredictionResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def predict(self, ml_input: dict[str, Any]) -> MLPredictionResponse:
        self.calls.append(ml_input)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def aclose(self) -> None:
        pass


class _FakeGeminiReply:
    def __init__(self, text: str) -> None:
        self.text = text


class FakeGeminiModel:
    """Mimics ``genai.GenerativeModel`` — replies with ``text`` or raises ``error``."""

    def __init__(self, text: str = "", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt: str) -> _FakeGeminiReply:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return _FakeGeminiReply(self.text)
