"""
The hosted risk model's fixed 38-attribute input schema.

Field names are the model's wire names and are sent as-is. Every attribute is required and
carries either an enumerated value set or a numeric range; a record is usable by the prediction
client only when all 38 are present and valid.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, StrictBool

Gender = Literal["Male", "Female", "Other"]
MaritalStatus = Literal["Single", "Married", "Divorced", "Widowed"]
EducationLevel = Literal["10th Pass", "12th Pass", "College Graduate and above"]
City = Literal["Mumbai", "Delhi", "Bangalore", "Chennai", "Kolkata", "Hyderabad", "Pune", "Patna"]
RegionType = Literal["Metro", "Tier-1", "Tier-2"]
IncomeRange = Literal["Below 5L", "5L-10L", "10L-25L"]
# "RARE" is the literal the hosted model was trained on for the top bucket.
InvestmentCapacity = Literal["Low", "Medium", "RARE"]
SmokingStatus = Literal["Never", "Former", "Current"]
AlcoholConsumption = Literal["None", "Occasionally", "Regularly", "Heavily"]
OccupationType = Literal["Housewife", "Professional", "Retired", "Salaried", "Self Employed"]
InsuranceType = Literal[
    "car", "family_health", "health", "investment", "retirement", "term-life", "two-wheeler"
]


class MLModelInput(BaseModel):
    """Request body of the hosted risk model."""

    # ── Demographics ─────────────────────────────────────────────────────────
    age: int = Field(..., ge=18, le=70)
    gender: Gender
    marital_status: MaritalStatus
    education_level: EducationLevel
    city: City
    region_type: RegionType

    # ── Financial profile ────────────────────────────────────────────────────
    annual_income_range: IncomeRange
    has_debt: StrictBool
    is_sole_provider: StrictBool
    has_savings: StrictBool
    investment_capacity: InvestmentCapacity

    # ── Vitals ───────────────────────────────────────────────────────────────
    height_cm: float = Field(..., ge=140, le=220)
    weight_kg: float = Field(..., ge=40, le=150)
    blood_pressure_systolic: float = Field(..., ge=80, le=220)
    blood_pressure_diastolic: float = Field(..., ge=50, le=130)
    resting_heart_rate: float = Field(..., ge=40, le=120)
    blood_sugar_fasting: float = Field(..., ge=60, le=300)

    # ── Medical history ──────────────────────────────────────────────────────
    condition_heart_disease: StrictBool
    condition_asthma: StrictBool
    condition_thyroid: StrictBool
    condition_cancer_history: StrictBool
    condition_kidney_disease: StrictBool

    # ── Lifestyle ────────────────────────────────────────────────────────────
    smoking_status: SmokingStatus
    years_smoking: float = Field(..., ge=0, le=50)
    alcohol_consumption: AlcoholConsumption
    exercise_frequency_weekly: int = Field(..., ge=0, le=7)
    sleep_hours_avg: float = Field(..., ge=3, le=12)
    stress_level: int = Field(..., ge=1, le=10)

    # ── Household & policy request ───────────────────────────────────────────
    dependent_children_count: int = Field(..., ge=0, le=5)
    dependent_parents_count: int = Field(..., ge=0, le=4)
    occupation_type: OccupationType
    insurance_type_requested: InsuranceType
    coverage_amount_requested: float = Field(..., ge=100_000, le=10_000_000)
    policy_period_years: int = Field(..., ge=1, le=30)
    monthly_premium_budget: float = Field(..., ge=500, le=50_000)
    has_existing_policies: StrictBool
    num_assessments_started: int = Field(..., ge=1, le=20)
    num_assessments_completed: int = Field(..., ge=0, le=20)


# Declaration order is the canonical field order used for completeness reporting.
REQUIRED_FIELDS: tuple[str, ...] = tuple(MLModelInput.model_fields)
