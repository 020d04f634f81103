"""
Pydantic schemas for the raw questionnaire submitted by the UI wizard.

The wizard posts camelCase keys (``dateOfBirth``, ``medicalConditions`` ...); every field is
optional and loosely typed because sections are saved part-way through the wizard. Unknown keys
are kept so newer wizard steps never break older API versions.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class BloodPressure(_Section):
    systolic: float
    diastolic: float


class Demographics(_Section):
    date_of_birth: Optional[Union[date, str]] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    education: Optional[str] = None
    city: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    dependents: Optional[int] = None
    dependent_children: Optional[int] = None
    dependent_parents: Optional[int] = None
    is_sole_provider: Optional[bool] = None


class Health(_Section):
    height: Optional[Union[float, str]] = Field(None, description="cm, or a string such as '5.9 ft'")
    weight: Optional[Union[float, str]] = Field(None, description="kg, or a string such as '160 lbs'")
    blood_pressure: Optional[Union[BloodPressure, str, dict]] = Field(
        None, description="'120/80' or {systolic, diastolic}; unreadable readings map to 120/80"
    )
    resting_heart_rate: Optional[float] = None
    blood_sugar_fasting: Optional[float] = None
    smoking_status: Optional[str] = None
    years_smoking: Optional[float] = None
    alcohol_consumption: Optional[str] = None
    medical_conditions: list[str] = Field(default_factory=list)
    current_medications: list[str] = Field(default_factory=list)

    @field_validator("medical_conditions", "current_medications", mode="before")
    @classmethod
    def _as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


class Lifestyle(_Section):
    exercise_frequency: Optional[float] = Field(None, description="Days per week")
    sleep_hours: Optional[float] = None
    stress_level: Optional[float] = Field(None, description="1 (calm) to 10 (severe)")
    alcohol_consumption: Optional[str] = None
    diet_assessment: dict[str, str] = Field(default_factory=dict)


class Financial(_Section):
    annual_income: Optional[float] = None
    coverage_amount: Optional[float] = None
    monthly_budget: Optional[float] = None
    policy_term: Optional[Union[int, str]] = Field(None, description="Years, or 'whole' for whole life")
    existing_coverage: Optional[bool] = None
    has_debt: Optional[bool] = None
    has_savings: Optional[bool] = None
    monthly_savings: Optional[float] = None
    investment_capacity: Optional[str] = None
    risk_tolerance: Optional[str] = None
    insurance_type: Optional[str] = None


class QuestionnaireData(_Section):
    """All four wizard sections; any of them may be empty."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        json_schema_extra={"example": {
            "demographics": {
                "dateOfBirth": "1985-04-12",
                "gender": "F",
                "maritalStatus": "married",
                "education": "University degree",
                "city": "Pune",
                "occupation": "Software engineer",
                "dependentChildren": 2,
                "dependentParents": 1,
            },
            "health": {
                "height": 165,
                "weight": 62,
                "bloodPressure": "118/76",
                "smokingStatus": "never",
                "medicalConditions": ["Asthma"],
            },
            "lifestyle": {"exerciseFrequency": 4, "sleepHours": 7, "stressLevel": 4},
            "financial": {
                "annualIncome": 1200000,
                "coverageAmount": 5000000,
                "monthlyBudget": 3000,
                "policyTerm": 25,
                "investmentCapacity": "moderate",
                "insuranceType": "Term life",
            },
        }},
    )

    demographics: Demographics = Field(default_factory=Demographics)
    health: Health = Field(default_factory=Health)
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    financial: Financial = Field(default_factory=Financial)
