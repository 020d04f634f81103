"""
Pydantic schemas for engine outputs and API request/response bodies.

Engine outputs serialise with the camelCase names the UI consumes (``mlPrediction``,
``completionPercentage`` ...). ``MLPredictionResponse`` is the hosted model's own wire format and
keeps its snake_case keys.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hybrid_risk.schemas.questionnaire import QuestionnaireData

RiskCategory = Literal["Low", "Medium", "High"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Completeness & validation ───────────────────────────────────────────────────


class CompletionStatus(CamelModel):
    completion_percentage: int = Field(..., ge=0, le=100)
    filled_fields: list[str]
    missing_fields: list[str]


class FieldIssueModel(CamelModel):
    field: str
    reason: str


class ValidationResult(CamelModel):
    is_valid: bool
    missing_fields: list[str]
    invalid_fields: list[FieldIssueModel]
    completion_percentage: int


class MappingResponse(CamelModel):
    """Result of ``POST /map`` — the partial model input and how complete it is."""

    ml_input: dict[str, Any]
    completion: CompletionStatus


# ── Hosted model response (wire format) ─────────────────────────────────────────


class RiskProbabilities(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    low: Optional[float] = Field(None, alias="Low", ge=0.0, le=1.0)
    medium: Optional[float] = Field(None, alias="Medium", ge=0.0, le=1.0)
    high: Optional[float] = Field(None, alias="High", ge=0.0, le=1.0)


class DerivedFeatures(BaseModel):
    bmi: float
    bmi_category: str
    has_diabetes: bool
    has_hypertension: bool
    overall_health_risk_score: float = Field(..., ge=0.0, le=1.0)
    financial_risk_score: float = Field(..., ge=0.0, le=1.0)
    annual_income_midpoint: float


class MLPredictionResponse(BaseModel):
    risk_category: str
    risk_confidence: float = Field(..., ge=0.0, le=1.0)
    risk_probabilities: RiskProbabilities
    customer_lifetime_value: float
    derived_features: DerivedFeatures


# ── Fallback estimator ──────────────────────────────────────────────────────────


class RiskAssessment(CamelModel):
    """Rule-based risk result, computed fresh on every call."""

    risk_score: int = Field(..., ge=5, le=95)
    risk_category: RiskCategory
    monthly_premium: int
    risk_confidence: float
    risk_probabilities: RiskProbabilities
    customer_lifetime_value: float
    bmi: float
    bmi_category: str
    has_diabetes: bool
    has_hypertension: bool
    overall_health_risk_score: float
    financial_risk_score: float
    annual_income_midpoint: float


# ── Hybrid analysis ─────────────────────────────────────────────────────────────


class DerivedFeaturesSummary(CamelModel):
    bmi: float
    bmi_category: str
    has_diabetes: bool
    has_hypertension: bool
    overall_health_risk_score: float
    financial_risk_score: float
    annual_income_midpoint: float


class MLPredictionSummary(CamelModel):
    """Risk figures from whichever path produced them (hosted model or fallback)."""

    source: Literal["ml_model", "fallback"]
    fallback_reason: Optional[str] = None
    risk_category: str
    risk_score: int
    risk_confidence: float
    risk_probabilities: RiskProbabilities
    customer_lifetime_value: float
    monthly_premium: int
    derived_features: DerivedFeaturesSummary


class PolicySuggestion(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    policy_type: str = "Term Life Insurance"
    coverage: float = 0
    monthly_premium: float = 0
    benefits: list[str] = Field(default_factory=list)
    eligibility: str = "Eligible"
    priority: Literal["high", "medium", "low"] = "medium"
    reasoning: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def _lower_priority(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class AdvisoryRiskAssessment(CamelModel):
    overall: str
    factors: list[str]
    improvements: list[str]


class PremiumOptimization(CamelModel):
    current_estimate: float
    potential_savings: float
    recommendations: list[str]


class AdvisoryEnhancement(CamelModel):
    """Policy suggestions and narrative, from the generative advisor or the rule-based stand-in."""

    source: Literal["gemini", "rule_based"]
    eligible_policies: list[PolicySuggestion]
    personalized_advice: str
    risk_assessment: AdvisoryRiskAssessment
    premium_optimization: PremiumOptimization
    confidence_score: Optional[float] = None


class CombinedInsights(CamelModel):
    final_risk_score: int
    final_risk_level: str
    final_premium_estimate: int
    confidence_score: int
    model_agreement: int
    recommendation: str


class DataCompleteness(CamelModel):
    percentage: int
    missing_fields: list[str]
    can_run_ml_model: bool = Field(..., alias="canRunMLModel")


class HybridInsuranceAnalysis(CamelModel):
    ml_prediction: MLPredictionSummary
    gemini_enhancement: AdvisoryEnhancement
    combined_insights: CombinedInsights
    data_completeness: DataCompleteness


class AnalysisOptions(CamelModel):
    use_ml_model: bool = Field(True, alias="useMLModel")
    use_gemini: bool = True
    policy_years: Optional[int] = Field(None, ge=1, le=30)


class AnalysisRequest(CamelModel):
    questionnaire: QuestionnaireData
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class PremiumRange(CamelModel):
    min: int
    max: int


class ProgressivePrediction(CamelModel):
    can_predict: bool
    completion_percentage: int
    preliminary_risk: Optional[RiskCategory] = None
    estimated_premium_range: Optional[PremiumRange] = None
    next_critical_fields: list[str]


class HealthResponse(CamelModel):
    status: str
    ml_endpoint_configured: bool
    advisory_configured: bool
    api_version: str
