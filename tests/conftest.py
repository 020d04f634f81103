"""
Shared fixtures: questionnaires, a valid model input and a canned model response.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from fakes import birth_date_for_age
from hybrid_risk.schemas.analysis import MLPredictionResponse
from hybrid_risk.schemas.questionnaire import QuestionnaireData


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ── Questionnaires ──────────────────────────────────────────────────────────────

FULL_QUESTIONNAIRE: dict[str, Any] = {
    "demographics": {
        "dateOfBirth": birth_date_for_age(38),
        "gender": "F",
        "maritalStatus": "married",
        "education": "University degree",
        "city": "Pune",
        "occupation": "Software engineer",
        "dependents": 3,
        "dependentChildren": 2,
        "dependentParents": 1,
    },
    "health": {
        "height": 165,
        "weight": 62,
        "bloodPressure": "118/76",
        "restingHeartRate": 68,
        "bloodSugarFasting": 92,
        "smokingStatus": "never",
        "yearsSmoking": 0,
        "alcoholConsumption": "socially",
        "medicalConditions": ["Asthma"],
    },
    "lifestyle": {"exerciseFrequency": 4, "sleepHours": 7, "stressLevel": 4},
    "financial": {
        "annualIncome": 1_200_000,
        "coverageAmount": 5_000_000,
        "monthlyBudget": 3000,
        "policyTerm": 25,
        "existingCoverage": False,
        "hasDebt": False,
        "hasSavings": True,
        "investmentCapacity": "moderate",
        "insuranceType": "Term life",
    },
}

# 22 defaulted fields + 5 answered = 27 of 38 → 71% complete.
PARTIAL_QUESTIONNAIRE: dict[str, Any] = {
    "demographics": {"dateOfBirth": birth_date_for_age(40), "gender": "female", "maritalStatus": "single"},
    "health": {"height": 170, "weight": 70},
}


@pytest.fixture
def full_questionnaire_payload() -> dict[str, Any]:
    return copy.deepcopy(FULL_QUESTIONNAIRE)


@pytest.fixture
def partial_questionnaire_payload() -> dict[str, Any]:
    return copy.deepcopy(PARTIAL_QUESTIONNAIRE)


@pytest.fixture
def full_questionnaire() -> QuestionnaireData:
    return QuestionnaireData.model_validate(FULL_QUESTIONNAIRE)


@pytest.fixture
def partial_questionnaire() -> QuestionnaireData:
    return QuestionnaireData.model_validate(PARTIAL_QUESTIONNAIRE)


# ── Model input / output ────────────────────────────────────────────────────────


@pytest.fixture
def valid_ml_input() -> dict[str, Any]:
    return {
        "age": 38,
        "gender": "Female",
        "marital_status": "Married",
        "education_level": "College Graduate and above",
        "city": "Pune",
        "region_type": "Tier-1",
        "annual_income_range": "10L-25L",
        "has_debt": False,
        "is_sole_provider": True,
        "has_savings": True,
        "investment_capacity": "Medium",
        "height_cm": 165,
        "weight_kg": 62,
        "blood_pressure_systolic": 118,
        "blood_pressure_diastolic": 76,
        "resting_heart_rate": 68,
        "blood_sugar_fasting": 92,
        "condition_heart_disease": False,
        "condition_asthma": True,
        "condition_thyroid": False,
        "condition_cancer_history": False,
        "condition_kidney_disease": False,
        "smoking_status": "Never",
        "years_smoking": 0,
        "alcohol_consumption": "Occasionally",
        "exercise_frequency_weekly": 4,
        "sleep_hours_avg": 7,
        "stress_level": 4,
        "dependent_children_count": 2,
        "dependent_parents_count": 1,
        "occupation_type": "Professional",
        "insurance_type_requested": "term-life",
        "coverage_amount_requested": 5_000_000,
        "policy_period_years": 25,
        "monthly_premium_budget": 3000,
        "has_existing_policies": False,
        "num_assessments_started": 1,
        "num_assessments_completed": 0,
    }


ML_RESPONSE_BODY: dict[str, Any] = {
    "risk_category": "Medium",
    "risk_confidence": 0.88,
    "risk_probabilities": {"Low": 0.07, "Medium": 0.88, "High": 0.05},
    "customer_lifetime_value": 264_000,
    "derived_features": {
        "bmi": 22.8,
        "bmi_category": "Normal",
        "has_diabetes": False,
        "has_hypertension": False,
        "overall_health_risk_score": 0.31,
        "financial_risk_score": 0.12,
        "annual_income_midpoint": 1_750_000,
    },
}


@pytest.fixture
def ml_response_body() -> dict[str, Any]:
    return copy.deepcopy(ML_RESPONSE_BODY)


@pytest.fixture
def ml_response() -> MLPredictionResponse:
    return MLPredictionResponse.model_validate(ML_RESPONSE_BODY)

