"""
Field mapper — translates free-form questionnaire answers into the hosted risk model's
38-attribute input schema.

Pipeline steps:
  1. Demographics (age from date of birth, gender, marital status, education, city, region)
  2. Financial profile (income band, debt/savings/sole-provider flags, investment capacity)
  3. Vitals (unit-aware height/weight, blood pressure, heart rate, fasting sugar)
  4. Medical-condition flags (keyword search over the free-text condition list)
  5. Lifestyle (smoking, alcohol, exercise, sleep, stress)
  6. Household & policy request (dependents, occupation, insurance type, coverage, term, budget)

The mapper never raises. Text answers that match nothing fall back to each table's default
bucket, numeric answers that are absent take the value in ``MAPPING_DEFAULTS``, and answers that
cannot be interpreted at all are left out so the completeness evaluator reports them.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, NamedTuple, Optional, Sequence, Union

from hybrid_risk.schemas.questionnaire import BloodPressure, QuestionnaireData

logger = logging.getLogger(__name__)


class KeywordRule(NamedTuple):
    """Maps to ``value`` when the text contains any of ``any_of`` and all of ``all_of``."""

    value: str
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()


# ── Defaults for absent answers ─────────────────────────────────────────────────
MAPPING_DEFAULTS: dict[str, Any] = {
    "has_debt": False,
    "has_existing_policies": False,
    "resting_heart_rate": 72,
    "blood_sugar_fasting": 95,
    "years_smoking": 0,
    "exercise_frequency_weekly": 0,
    "sleep_hours_avg": 7,
    "stress_level": 5,
    "dependent_children_count": 0,
    "dependent_parents_count": 0,
    "coverage_amount_requested": 500_000,
    "policy_period_years": 20,
    "monthly_premium_budget": 5_000,
    "num_assessments_started": 1,
    "num_assessments_completed": 0,
}

# Fallback buckets for text answers that are present but match no rule.
UNMATCHED_DEFAULTS: dict[str, str] = {
    "gender": "Other",
    "marital_status": "Single",
    "education_level": "10th Pass",
    "city": "Mumbai",
    "region_type": "Tier-2",
    "investment_capacity": "Low",
    "smoking_status": "Current",
    "alcohol_consumption": "Heavily",
    "occupation_type": "Self Employed",
    "insurance_type_requested": "term-life",
}

DEFAULT_BLOOD_PRESSURE = (120, 80)
WHOLE_LIFE_POLICY_YEARS = 30

AGE_BOUNDS = (18, 70)
HEIGHT_CM_BOUNDS = (140, 220)
WEIGHT_KG_BOUNDS = (40, 150)
SYSTOLIC_BOUNDS = (80, 220)
DIASTOLIC_BOUNDS = (50, 130)

CM_PER_FOOT = 30.48
KG_PER_POUND = 0.453592

# ── Lookup tables ───────────────────────────────────────────────────────────────
GENDER_MAP: dict[str, str] = {
    "male": "Male",
    "female": "Female",
    "other": "Other",
    "m": "Male",
    "f": "Female",
}

MARITAL_STATUS_MAP: dict[str, str] = {
    "single": "Single",
    "married": "Married",
    "divorced": "Divorced",
    "widowed": "Widowed",
    "separated": "Divorced",
}

EDUCATION_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("College Graduate and above", any_of=("college", "university", "graduate", "degree")),
    KeywordRule("12th Pass", any_of=("12", "high school")),
)

VALID_CITIES: tuple[str, ...] = (
    "Mumbai", "Delhi", "Bangalore", "Chennai", "Kolkata", "Hyderabad", "Pune", "Patna",
)

# Historic / local names resolved before the allow-list match.
CITY_ALIASES: dict[str, str] = {
    "bombay": "Mumbai",
    "bengaluru": "Bangalore",
    "calcutta": "Kolkata",
    "madras": "Chennai",
    "poona": "Pune",
}

REGION_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("Metro", any_of=(
        "mumbai", "delhi", "bangalore", "bengaluru", "chennai", "kolkata", "hyderabad",
    )),
    KeywordRule("Tier-1", any_of=(
        "pune", "ahmedabad", "surat", "jaipur", "lucknow", "kanpur", "nagpur", "indore",
    )),
)

INVESTMENT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("RARE", any_of=("high", "aggressive")),
    KeywordRule("Medium", any_of=("medium", "moderate")),
)

CONDITION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "condition_heart_disease": ("heart disease", "cardiac", "cardiovascular"),
    "condition_asthma": ("asthma", "respiratory"),
    "condition_thyroid": ("thyroid", "hypothyroid", "hyperthyroid"),
    "condition_cancer_history": ("cancer", "tumor", "malignancy"),
    "condition_kidney_disease": ("kidney", "renal"),
}

SMOKING_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("Never", any_of=("never", "non")),
    KeywordRule("Former", any_of=("former", "quit", "ex-", "ex smoker", "stopped")),
)

ALCOHOL_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("None", any_of=("never", "none")),
    KeywordRule("Occasionally", any_of=("occasional", "social")),
    KeywordRule("Regularly", any_of=("regular", "moderate")),
)

OCCUPATION_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("Housewife", any_of=("housewife", "homemaker")),
    KeywordRule("Professional", any_of=("professional", "doctor", "engineer", "lawyer")),
    KeywordRule("Retired", any_of=("retired",)),
    KeywordRule("Salaried", any_of=("salaried", "employee")),
)

INSURANCE_TYPE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("car", any_of=("car", "auto")),
    KeywordRule("family_health", all_of=("family", "health")),
    KeywordRule("health", any_of=("health",)),
    KeywordRule("investment", any_of=("investment",)),
    KeywordRule("retirement", any_of=("retirement", "pension")),
    KeywordRule("term-life", any_of=("term", "life")),
    KeywordRule("two-wheeler", any_of=("two", "bike", "motorcycle")),
)

_NUMBER_RE = re.compile(r"[-+]?\d*\.?\d+")
_BLOOD_PRESSURE_RE = re.compile(r"(\d+)\s*/\s*(\d+)")


# ── Pure lookup helpers ─────────────────────────────────────────────────────────


def match_keywords(text: str, rules: Sequence[KeywordRule], default: str) -> str:
    """Return the value of the first rule whose keywords occur in ``text`` (case-insensitive)."""
    lowered = text.lower()
    for rule in rules:
        if rule.all_of and not all(k in lowered for k in rule.all_of):
            continue
        if rule.any_of and not any(k in lowered for k in rule.any_of):
            continue
        if rule.any_of or rule.all_of:
            return rule.value
    return default


def has_condition(conditions: Sequence[str], keywords: Sequence[str]) -> bool:
    """True when any condition string contains any of the keywords."""
    return any(
        keyword in condition.lower()
        for condition in conditions
        if isinstance(condition, str)
        for keyword in keywords
    )


def map_city(city: str, valid_cities: Sequence[str] = VALID_CITIES) -> str:
    lowered = city.strip().lower()
    if not lowered:
        return UNMATCHED_DEFAULTS["city"]
    for alias, canonical in CITY_ALIASES.items():
        if alias in lowered:
            return canonical
    for candidate in valid_cities:
        candidate_lower = candidate.lower()
        if candidate_lower in lowered or lowered in candidate_lower:
            return candidate
    return UNMATCHED_DEFAULTS["city"]


def map_income_range(income: float) -> str:
    if income < 500_000:
        return "Below 5L"
    if income <= 1_000_000:
        return "5L-10L"
    return "10L-25L"


def map_smoking_status(status: str) -> str:
    return match_keywords(status, SMOKING_RULES, UNMATCHED_DEFAULTS["smoking_status"])


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(max(value, low), high)


def _leading_number(text: str) -> Optional[float]:
    match = _NUMBER_RE.search(text)
    return float(match.group()) if match else None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _whole(value: float) -> int:
    return int(round(value))


def _as_number(value: Any) -> Union[int, float]:
    """Keep integral floats as ints so the payload (and its cache key) stays stable."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ── Unit conversion & parsing ───────────────────────────────────────────────────


def age_from_birth_date(birth: Union[date, str, None], today: Optional[date] = None) -> Optional[int]:
    """Whole years between ``birth`` and ``today``; ``None`` when the date cannot be read."""
    if birth is None:
        return None
    if isinstance(birth, datetime):
        birth = birth.date()
    if isinstance(birth, str):
        raw = birth.strip()
        try:
            birth = date.fromisoformat(raw)
        except ValueError:
            try:
                birth = datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
            except ValueError:
                logger.debug("Unreadable date of birth %r — age left unset", raw)
                return None

    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def convert_height_to_cm(height: Union[float, str, None], clamp: bool = True) -> Optional[float]:
    """
    Centimetres; strings mentioning ``ft`` are read as feet.

    Clamped to the model's bounds unless ``clamp`` is False (raw figure for BMI).
    """
    if height is None:
        return None
    if isinstance(height, str):
        number = _leading_number(height)
        if number is None:
            return None
        if "ft" in height.lower() or "feet" in height.lower():
            number = round(number * CM_PER_FOOT)
        height = number
    return _clamp(float(height), HEIGHT_CM_BOUNDS) if clamp else float(height)


def convert_weight_to_kg(weight: Union[float, str, None], clamp: bool = True) -> Optional[float]:
    """Kilograms; strings mentioning ``lb`` are read as pounds. ``clamp`` as for height."""
    if weight is None:
        return None
    if isinstance(weight, str):
        number = _leading_number(weight)
        if number is None:
            return None
        if "lb" in weight.lower():
            number = round(number * KG_PER_POUND)
        weight = number
    return _clamp(float(weight), WEIGHT_KG_BOUNDS) if clamp else float(weight)


def parse_policy_term(term: Union[int, str, None]) -> Optional[int]:
    """Policy length in years: ``20``, ``"20"``, ``"20 years"``, or ``"whole"`` for whole life."""
    if term is None or isinstance(term, int):
        return term
    if "whole" in term.lower():
        return WHOLE_LIFE_POLICY_YEARS
    number = _leading_number(term)
    if number is None:
        logger.debug("Unreadable policy term %r — default used", term)
        return None
    return _whole(number)


def parse_blood_pressure(reading: Union[BloodPressure, str, dict, None]) -> Optional[tuple[float, float]]:
    """``(systolic, diastolic)`` from ``"120/80"`` or a pre-split reading; default when unreadable."""
    if reading is None:
        return None
    if isinstance(reading, dict):
        try:
            reading = BloodPressure.model_validate(reading)
        except ValueError:
            return DEFAULT_BLOOD_PRESSURE
    if isinstance(reading, BloodPressure):
        systolic, diastolic = reading.systolic, reading.diastolic
    else:
        match = _BLOOD_PRESSURE_RE.search(str(reading))
        if not match:
            return DEFAULT_BLOOD_PRESSURE
        systolic, diastolic = float(match.group(1)), float(match.group(2))
    return _clamp(systolic, SYSTOLIC_BOUNDS), _clamp(diastolic, DIASTOLIC_BOUNDS)


# ── Mapper ──────────────────────────────────────────────────────────────────────


def map_questionnaire(questionnaire: QuestionnaireData, today: Optional[date] = None) -> dict[str, Any]:
    """
    Map a (possibly partial) questionnaire onto the model's input fields.

    Args:
        questionnaire: Raw wizard answers.
        today:         Reference date for the age calculation (defaults to today).

    Returns:
        dict holding a subset of the 38 model fields; fields that could not be derived are absent.
    """
    demo = questionnaire.demographics
    health = questionnaire.health
    life = questionnaire.lifestyle
    fin = questionnaire.financial
    mapped: dict[str, Any] = {}

    # ── 1. Demographics ───────────────────────────────────────────────────────
    age = age_from_birth_date(demo.date_of_birth, today)
    if age is not None:
        mapped["age"] = int(_clamp(age, AGE_BOUNDS))

    gender = _text(demo.gender)
    if gender:
        mapped["gender"] = GENDER_MAP.get(gender.lower(), UNMATCHED_DEFAULTS["gender"])

    marital = _text(demo.marital_status)
    if marital:
        mapped["marital_status"] = MARITAL_STATUS_MAP.get(marital.lower(), UNMATCHED_DEFAULTS["marital_status"])

    education = _text(demo.education)
    if education:
        mapped["education_level"] = match_keywords(education, EDUCATION_RULES, UNMATCHED_DEFAULTS["education_level"])

    city = _text(demo.city)
    if city:
        mapped["city"] = map_city(city)

    place = _text(demo.location) or city
    if place:
        mapped["region_type"] = match_keywords(place, REGION_RULES, UNMATCHED_DEFAULTS["region_type"])

    # ── 2. Financial profile ──────────────────────────────────────────────────
    if fin.annual_income is not None:
        mapped["annual_income_range"] = map_income_range(fin.annual_income)

    mapped["has_debt"] = fin.has_debt if fin.has_debt is not None else MAPPING_DEFAULTS["has_debt"]
    mapped["is_sole_provider"] = (
        demo.is_sole_provider if demo.is_sole_provider is not None else (demo.dependents or 0) > 0
    )
    mapped["has_savings"] = (
        fin.has_savings if fin.has_savings is not None else (fin.monthly_savings or 0) > 0
    )

    capacity = _text(fin.investment_capacity) or _text(fin.risk_tolerance)
    if capacity:
        mapped["investment_capacity"] = match_keywords(
            capacity, INVESTMENT_RULES, UNMATCHED_DEFAULTS["investment_capacity"]
        )

    # ── 3. Vitals ─────────────────────────────────────────────────────────────
    height_cm = convert_height_to_cm(health.height)
    if height_cm is not None:
        mapped["height_cm"] = _as_number(height_cm)

    weight_kg = convert_weight_to_kg(health.weight)
    if weight_kg is not None:
        mapped["weight_kg"] = _as_number(weight_kg)

    blood_pressure = parse_blood_pressure(health.blood_pressure)
    if blood_pressure is not None:
        mapped["blood_pressure_systolic"] = _as_number(blood_pressure[0])
        mapped["blood_pressure_diastolic"] = _as_number(blood_pressure[1])

    mapped["resting_heart_rate"] = _as_number(_or_default(health.resting_heart_rate, "resting_heart_rate"))
    mapped["blood_sugar_fasting"] = _as_number(_or_default(health.blood_sugar_fasting, "blood_sugar_fasting"))

    # ── 4. Medical-condition flags ────────────────────────────────────────────
    for field_name, keywords in CONDITION_KEYWORDS.items():
        mapped[field_name] = has_condition(health.medical_conditions, keywords)

    # ── 5. Lifestyle ──────────────────────────────────────────────────────────
    smoking = _text(health.smoking_status)
    if smoking:
        mapped["smoking_status"] = map_smoking_status(smoking)

    mapped["years_smoking"] = _as_number(_or_default(health.years_smoking, "years_smoking"))

    alcohol = _text(health.alcohol_consumption) or _text(life.alcohol_consumption)
    if alcohol:
        mapped["alcohol_consumption"] = match_keywords(
            alcohol, ALCOHOL_RULES, UNMATCHED_DEFAULTS["alcohol_consumption"]
        )

    mapped["exercise_frequency_weekly"] = _whole(_or_default(life.exercise_frequency, "exercise_frequency_weekly"))
    mapped["sleep_hours_avg"] = _as_number(_or_default(life.sleep_hours, "sleep_hours_avg"))
    mapped["stress_level"] = _whole(_or_default(life.stress_level, "stress_level"))

    # ── 6. Household & policy request ─────────────────────────────────────────
    mapped["dependent_children_count"] = _or_default(demo.dependent_children, "dependent_children_count")
    mapped["dependent_parents_count"] = _or_default(demo.dependent_parents, "dependent_parents_count")

    occupation = _text(demo.occupation)
    if occupation:
        mapped["occupation_type"] = match_keywords(
            occupation, OCCUPATION_RULES, UNMATCHED_DEFAULTS["occupation_type"]
        )

    insurance_type = _text(fin.insurance_type)
    if insurance_type:
        mapped["insurance_type_requested"] = match_keywords(
            insurance_type, INSURANCE_TYPE_RULES, UNMATCHED_DEFAULTS["insurance_type_requested"]
        )

    mapped["coverage_amount_requested"] = _as_number(_or_default(fin.coverage_amount, "coverage_amount_requested"))
    mapped["policy_period_years"] = _or_default(parse_policy_term(fin.policy_term), "policy_period_years")
    mapped["monthly_premium_budget"] = _as_number(_or_default(fin.monthly_budget, "monthly_premium_budget"))
    mapped["has_existing_policies"] = _or_default(fin.existing_coverage, "has_existing_policies")
    mapped["num_assessments_started"] = MAPPING_DEFAULTS["num_assessments_started"]
    mapped["num_assessments_completed"] = MAPPING_DEFAULTS["num_assessments_completed"]

    logger.debug("Mapped questionnaire — %d model fields derived", len(mapped))
    return mapped


def _or_default(value: Any, field_name: str) -> Any:
    return MAPPING_DEFAULTS[field_name] if value is None else value
