import asyncio
import json

import httpx
import pytest

from hybrid_risk.core.exceptions import AuthenticationError, PredictionServiceError, ValidationError
from hybrid_risk.schemas.ml_input import MLModelInput
from hybrid_risk.services.cache import PredictionCache
from hybrid_risk.services.prediction_client import monthly_premium_from_clv, risk_score_from_category
from hybrid_risk.services.retry import RetryPolicy

from fakes import FakeClock, RecordingHandler, RecordingSleep, make_prediction_client


# ── Successful calls ────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_predict_posts_input_with_bearer_token(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler)

    result = await client.predict(valid_ml_input)

    assert result.risk_category == "Medium"
    assert result.risk_confidence == 0.88
    assert result.risk_probabilities.medium == 0.88
    assert result.derived_features.bmi_category == "Normal"

    (request,) = handler.requests
    assert str(request.url) == "https://ml.test/api/predict"
    assert request.headers["Authorization"] == "Bearer session-token"
    assert json.loads(request.content)["smoking_status"] == "Never"


@pytest.mark.anyio
async def test_predict_accepts_model_instance(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler)

    result = await client.predict(MLModelInput.model_validate(valid_ml_input))

    assert result.customer_lifetime_value == 264_000


@pytest.mark.anyio
async def test_wrapped_response_is_unwrapped(valid_ml_input, ml_response_body):
    client = make_prediction_client(RecordingHandler({"data": [ml_response_body]}))
    result = await client.predict(valid_ml_input)
    assert result.risk_category == "Medium"


# ── Validation & authentication ─────────────────────────────────────────────────


@pytest.mark.anyio
async def test_incomplete_input_raises_validation_error_without_calling(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler)
    del valid_ml_input["gender"]
    valid_ml_input["smoking_status"] = None
    valid_ml_input["age"] = 90
    valid_ml_input["city"] = "Springfield"

    with pytest.raises(ValidationError) as exc_info:
        await client.predict(valid_ml_input)

    assert exc_info.value.missing_fields == ["gender", "smoking_status"]
    assert [issue.field for issue in exc_info.value.invalid_fields] == ["age", "city"]
    assert handler.requests == []


def test_validate_reports_without_raising(valid_ml_input):
    client = make_prediction_client(RecordingHandler({}))
    valid_ml_input["has_debt"] = "yes"
    valid_ml_input["stress_level"] = 0

    result = client.validate(valid_ml_input)

    assert not result.is_valid
    assert result.missing_fields == []
    assert {issue.field for issue in result.invalid_fields} == {"has_debt", "stress_level"}
    assert result.completion_percentage == 100


def test_validate_accepts_rare_investment_capacity(valid_ml_input):
    client = make_prediction_client(RecordingHandler({}))
    valid_ml_input["investment_capacity"] = "RARE"
    assert client.validate(valid_ml_input).is_valid


@pytest.mark.anyio
async def test_missing_session_raises_authentication_error(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler, token=None)

    with pytest.raises(AuthenticationError):
        await client.predict(valid_ml_input)
    assert handler.requests == []


@pytest.mark.anyio
async def test_rejected_session_is_not_retried(valid_ml_input):
    handler = RecordingHandler(401)
    sleep = RecordingSleep()
    client = make_prediction_client(handler, sleep=sleep)

    with pytest.raises(AuthenticationError):
        await client.predict(valid_ml_input)
    assert len(handler.requests) == 1
    assert sleep.delays == []


# ── Retries ─────────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_persistent_failure_retries_with_exponential_backoff(valid_ml_input):
    handler = RecordingHandler(500)
    sleep = RecordingSleep()
    client = make_prediction_client(handler, sleep=sleep)

    with pytest.raises(PredictionServiceError) as exc_info:
        await client.predict(valid_ml_input)

    assert exc_info.value.status_code == 500
    assert len(handler.requests) == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


@pytest.mark.anyio
async def test_transient_failure_recovers(valid_ml_input, ml_response_body):
    handler = RecordingHandler(503, 503, ml_response_body)
    sleep = RecordingSleep()
    client = make_prediction_client(handler, sleep=sleep)

    result = await client.predict(valid_ml_input)

    assert result.risk_category == "Medium"
    assert len(handler.requests) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.anyio
async def test_network_errors_are_retried(valid_ml_input, ml_response_body):
    handler = RecordingHandler(httpx.ConnectError("connection refused"), ml_response_body)
    client = make_prediction_client(handler)

    result = await client.predict(valid_ml_input)

    assert result.risk_category == "Medium"
    assert len(handler.requests) == 2


@pytest.mark.anyio
async def test_malformed_response_is_a_service_error(valid_ml_input):
    client = make_prediction_client(RecordingHandler({"unexpected": True}))
    with pytest.raises(PredictionServiceError):
        await client.predict(valid_ml_input)


@pytest.mark.anyio
async def test_cancellation_interrupts_backoff(valid_ml_input):
    handler = RecordingHandler(500)
    client = make_prediction_client(handler, retry_policy=RetryPolicy(max_retries=3, base_delay=30.0))

    task = asyncio.create_task(client.predict(valid_ml_input))
    for _ in range(100):
        if handler.requests:
            break
        await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(handler.requests) == 1


def test_backoff_doubles():
    policy = RetryPolicy(base_delay=0.5)
    assert [policy.backoff(n) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]


# ── Caching ─────────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_identical_inputs_hit_the_cache(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler, cache=PredictionCache())

    first = await client.predict(valid_ml_input)
    second = await client.predict(dict(valid_ml_input))

    assert first == second
    assert len(handler.requests) == 1


@pytest.mark.anyio
async def test_cache_entries_expire(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    clock = FakeClock()
    client = make_prediction_client(handler, cache=PredictionCache(ttl_seconds=3600, clock=clock))

    await client.predict(valid_ml_input)
    clock.advance(3599)
    await client.predict(valid_ml_input)
    assert len(handler.requests) == 1

    clock.advance(1)
    await client.predict(valid_ml_input)
    assert len(handler.requests) == 2


@pytest.mark.anyio
async def test_different_inputs_are_cached_separately(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler, cache=PredictionCache())

    await client.predict(valid_ml_input)
    valid_ml_input["age"] = 39
    await client.predict(valid_ml_input)

    assert len(handler.requests) == 2


@pytest.mark.anyio
async def test_clear_cache(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler, cache=PredictionCache())

    await client.predict(valid_ml_input)
    client.clear_cache()
    await client.predict(valid_ml_input)

    assert len(handler.requests) == 2


@pytest.mark.anyio
async def test_without_cache_every_call_goes_out(valid_ml_input, ml_response_body):
    handler = RecordingHandler(ml_response_body)
    client = make_prediction_client(handler)

    await client.predict(valid_ml_input)
    await client.predict(valid_ml_input)

    assert len(handler.requests) == 2


@pytest.mark.anyio
async def test_failures_are_not_cached(valid_ml_input, ml_response_body):
    handler = RecordingHandler(500, 500, 500, 500, ml_response_body)
    client = make_prediction_client(handler, cache=PredictionCache())

    with pytest.raises(PredictionServiceError):
        await client.predict(valid_ml_input)
    result = await client.predict(valid_ml_input)

    assert result.risk_category == "Medium"
    assert len(handler.requests) == 5


# ── Conversions ─────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "category, expected",
    [("Low", 25), ("medium", 55), ("HIGH", 85), ("Extreme", 50)],
)
def test_risk_score_from_category(category, expected):
    assert risk_score_from_category(category) == expected


def test_monthly_premium_from_lifetime_value():
    assert monthly_premium_from_clv(240_000) == 1000
    assert monthly_premium_from_clv(264_000, policy_years=20) == 1100
    assert monthly_premium_from_clv(120_000, policy_years=10) == 1000
