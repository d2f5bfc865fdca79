from __future__ import annotations

"""
Project a raw patient bundle into a normalized risk factor profile.

Design intent:
- Fail only when the patient itself is unknown (no demographics).
- Degrade every other gap to a documented default or "absent".
- Keep free-text interpretation inside the keyword dictionary.
"""

import logging
import re
from dataclasses import fields
from datetime import date, datetime, timezone
from typing import Sequence

from glycorisk.internal_core.contracts import (
    LabResult,
    PatientBundle,
    PatientDemographics,
    VitalSignsRecord,
)
from glycorisk.internal_core.record_store import PatientNotFoundError
from glycorisk.profile.keywords import (
    KeywordDictionary,
    default_keyword_dictionary,
    extract_sleep_hours,
    normalize_text,
)
from glycorisk.profile.models import (
    DEFAULT_DIASTOLIC_BP,
    DEFAULT_SYSTOLIC_BP,
    RiskFactorProfile,
)

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")

FASTING_GLUCOSE_TEST_ALIASES: tuple[str, ...] = ("glucose",)
HBA1C_TEST_ALIASES: tuple[str, ...] = ("hba1c", "a1c")

_INTENSITY_ALIASES = {
    "low": "low",
    "light": "low",
    "ต่ำ": "low",
    "เบา": "low",
    "moderate": "moderate",
    "medium": "moderate",
    "ปานกลาง": "moderate",
    "high": "high",
    "vigorous": "high",
    "สูง": "high",
    "หนัก": "high",
}

_CRITICAL_LAB_FIELDS = (
    "fasting_insulin",
    "c_peptide",
    "total_cholesterol",
    "hdl_cholesterol",
    "ldl_cholesterol",
    "triglycerides",
    "bun",
    "creatinine",
    "egfr",
    "alt",
    "ast",
    "alp",
    "bilirubin",
    "tsh",
    "t3",
    "t4",
    "crp",
    "esr",
    "vitamin_d",
    "b12",
    "folate",
    "iron",
    "ferritin",
    "uric_acid",
)

_VITAL_PASSTHROUGH_FIELDS = (
    "waist_circumference",
    "body_fat_percentage",
    "muscle_mass",
    "bone_density",
    "skin_fold_thickness",
    "hydration_status",
    "sleep_quality",
    "stress_level",
    "depression_score",
    "anxiety_level",
    "quality_of_life_score",
)

_NUTRITION_FIELDS = {
    "daily_calorie_intake": "daily_calorie_intake",
    "carbohydrate_intake": "carbohydrate_intake",
    "protein_intake": "protein_intake",
    "fat_intake": "fat_intake",
    "fiber_intake": "fiber_intake",
    "sugar_intake": "sugar_intake",
    "sodium_intake": "sodium_intake",
    "water_intake": "water_intake",
    "meal_frequency": "meal_frequency",
    "alcohol_consumption": "alcohol_intake",
    "caffeine_consumption": "caffeine_consumption",
}

_EXERCISE_PASSTHROUGH_FIELDS = (
    "exercise_type",
    "exercise_duration",
    "exercise_frequency",
    "mets",
    "vo2_max",
    "walking_steps",
)


def project_risk_factor_profile(
    bundle: PatientBundle,
    *,
    today: date | None = None,
    keywords: KeywordDictionary | None = None,
) -> RiskFactorProfile:
    demographics = bundle.demographics
    if demographics is None:
        raise PatientNotFoundError()

    resolved_today = today or datetime.now(timezone.utc).date()
    dictionary = keywords or default_keyword_dictionary()
    vitals = bundle.latest_vital_signs or VitalSignsRecord()
    history = bundle.latest_history_text
    critical = bundle.latest_critical_labs
    nutrition = bundle.latest_nutrition_assessment
    exercise = bundle.latest_exercise_assessment

    family_text = history.family_history if history else None
    social_text = history.social_history if history else None
    lifestyle_text = history.lifestyle_factors if history else None
    pregnancy_text = history.pregnancy_history if history else None
    dietary_text = history.dietary_history if history else None

    values: dict[str, object] = {
        "age": calculate_age(demographics.date_of_birth, resolved_today),
        "gender": dictionary.classify("gender", demographics.gender),
        "bmi": compute_bmi(demographics, vitals),
        "systolic_bp": vitals.systolic_bp or DEFAULT_SYSTOLIC_BP,
        "diastolic_bp": vitals.diastolic_bp or DEFAULT_DIASTOLIC_BP,
        "family_history_diabetes": dictionary.flag("family_history_diabetes", family_text),
        "family_history_hypertension": dictionary.flag("family_history_hypertension", family_text),
        "fasting_glucose": extract_lab_value(bundle.recent_glucose_like_labs, FASTING_GLUCOSE_TEST_ALIASES),
        "hba1c": extract_lab_value(bundle.recent_glucose_like_labs, HBA1C_TEST_ALIASES),
        "physical_activity": dictionary.classify("physical_activity", social_text),
        "smoking": dictionary.flag("smoking", social_text),
        "alcohol_consumption": dictionary.classify("alcohol_consumption", social_text),
        "gestational_diabetes": (
            dictionary.flag("gestational_diabetes", pregnancy_text) if _has_text(pregnancy_text) else None
        ),
        "pcos": dictionary.flag("pcos", pregnancy_text) if _has_text(pregnancy_text) else None,
        "hypertension": dictionary.flag("chronic_hypertension", demographics.chronic_diseases),
        "dyslipidemia": dictionary.flag("chronic_dyslipidemia", demographics.chronic_diseases),
        "cardiovascular_disease": dictionary.flag("chronic_cardiovascular", demographics.chronic_diseases),
        "sleep_duration": extract_sleep_hours(lifestyle_text),
        "stress_category": dictionary.classify("stress", lifestyle_text) if _has_text(lifestyle_text) else None,
        "diet_quality": dictionary.classify("diet_quality", dietary_text) if _has_text(dietary_text) else None,
    }

    for name in _VITAL_PASSTHROUGH_FIELDS:
        values[name] = getattr(vitals, name)

    if critical is not None:
        for name in _CRITICAL_LAB_FIELDS:
            values[name] = getattr(critical, name)
        # Critical labs are read after lab results; a present value wins.
        if critical.hba1c is not None:
            values["hba1c"] = critical.hba1c

    if nutrition is not None:
        for source_name, target_name in _NUTRITION_FIELDS.items():
            values[target_name] = getattr(nutrition, source_name)

    if exercise is not None:
        for name in _EXERCISE_PASSTHROUGH_FIELDS:
            values[name] = getattr(exercise, name)
        values["exercise_intensity"] = normalize_exercise_intensity(exercise.exercise_intensity)

    profile = RiskFactorProfile(**values)  # type: ignore[arg-type]
    logger.debug(
        "profile_projected patient_id=%s optional_fields_present=%s",
        demographics.patient_id,
        count_present_optional_fields(profile),
    )
    return profile


def calculate_age(birth_date: date, today: date) -> int:
    age = today.year - birth_date.year - ((today.month, today.day) < (birth_date.month, birth_date.day))
    return max(0, age)


def compute_bmi(demographics: PatientDemographics, vitals: VitalSignsRecord) -> float:
    weight = demographics.weight_kg
    height = demographics.height_cm
    if weight and height and height > 0:
        return float(weight) / ((float(height) / 100.0) ** 2)
    if vitals.bmi:
        return float(vitals.bmi)
    return 0.0


def extract_lab_value(labs: Sequence[LabResult], aliases: Sequence[str]) -> float | None:
    for item in labs:
        name = normalize_text(item.test_name)
        if not any(alias in name for alias in aliases):
            continue
        value = _lab_numeric(item)
        if value is not None:
            return value
    return None


def normalize_exercise_intensity(raw: str | None) -> str | None:
    return _INTENSITY_ALIASES.get(normalize_text(raw))


def count_present_optional_fields(profile: RiskFactorProfile) -> int:
    return sum(
        1
        for item in fields(profile)
        if item.default is None and getattr(profile, item.name) is not None
    )


def _lab_numeric(item: LabResult) -> float | None:
    if item.result_numeric is not None:
        return float(item.result_numeric)
    match = _NUMBER_RE.search(str(item.result_value or ""))
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _has_text(text: str | None) -> bool:
    return bool(normalize_text(text))
