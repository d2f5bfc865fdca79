from datetime import date, datetime

import pytest

from glycorisk.internal_core.contracts import (
    CriticalLabValues,
    ExerciseAssessment,
    HistoryText,
    LabResult,
    NutritionAssessment,
    PatientBundle,
    PatientDemographics,
    VitalSignsRecord,
)
from glycorisk.internal_core.record_store import PatientNotFoundError
from glycorisk.profile.keywords import default_keyword_dictionary
from glycorisk.profile.projector import (
    calculate_age,
    count_present_optional_fields,
    extract_lab_value,
    project_risk_factor_profile,
)

TODAY = date(2025, 6, 1)


def _demographics(**overrides) -> PatientDemographics:
    payload = {
        "patient_id": "pt_001",
        "date_of_birth": date(1980, 1, 15),
        "gender": "female",
        "weight_kg": 80.0,
        "height_cm": 160.0,
    }
    payload.update(overrides)
    return PatientDemographics(**payload)


def test_calculate_age_respects_birthday_not_yet_reached() -> None:
    assert calculate_age(date(1960, 6, 2), TODAY) == 64
    assert calculate_age(date(1960, 6, 1), TODAY) == 65
    assert calculate_age(date(2030, 1, 1), TODAY) == 0


def test_projection_requires_demographics() -> None:
    with pytest.raises(PatientNotFoundError):
        project_risk_factor_profile(PatientBundle(), today=TODAY)


def test_projection_computes_bmi_from_weight_and_height() -> None:
    profile = project_risk_factor_profile(PatientBundle(demographics=_demographics()), today=TODAY)
    assert profile.age == 45
    assert profile.gender == "female"
    assert profile.bmi == pytest.approx(31.25)


def test_projection_falls_back_to_recorded_bmi_then_zero() -> None:
    bundle = PatientBundle(
        demographics=_demographics(weight_kg=None),
        latest_vital_signs=VitalSignsRecord(bmi=27.5),
    )
    assert project_risk_factor_profile(bundle, today=TODAY).bmi == 27.5

    bare = PatientBundle(demographics=_demographics(weight_kg=None, height_cm=None))
    assert project_risk_factor_profile(bare, today=TODAY).bmi == 0.0


def test_projection_defaults_blood_pressure_per_field() -> None:
    no_vitals = project_risk_factor_profile(PatientBundle(demographics=_demographics()), today=TODAY)
    assert (no_vitals.systolic_bp, no_vitals.diastolic_bp) == (120, 80)

    partial = project_risk_factor_profile(
        PatientBundle(
            demographics=_demographics(),
            latest_vital_signs=VitalSignsRecord(systolic_bp=0, diastolic_bp=92),
        ),
        today=TODAY,
    )
    assert (partial.systolic_bp, partial.diastolic_bp) == (120, 92)


def test_family_history_keyword_sets_flag_in_either_language() -> None:
    for text in ("Father has type 2 diabetes", "แม่เป็นเบาหวาน"):
        bundle = PatientBundle(
            demographics=_demographics(),
            latest_history_text=HistoryText(family_history=text),
        )
        assert project_risk_factor_profile(bundle, today=TODAY).family_history_diabetes is True


def test_projection_reads_social_and_lifestyle_text() -> None:
    bundle = PatientBundle(
        demographics=_demographics(),
        latest_history_text=HistoryText(
            social_history="Smoker, exercise 2 times a week, heavy alcohol on weekends",
            lifestyle_factors="High stress job, sleeps 5 hours",
            dietary_history="poor diet",
        ),
    )
    profile = project_risk_factor_profile(bundle, today=TODAY)
    assert profile.smoking is True
    assert profile.physical_activity == "moderate"
    assert profile.alcohol_consumption == "heavy"
    assert profile.stress_category == "high"
    assert profile.sleep_duration == 5.0
    assert profile.diet_quality == "poor"


def test_absent_text_leaves_text_derived_fields_unevaluated() -> None:
    profile = project_risk_factor_profile(PatientBundle(demographics=_demographics()), today=TODAY)
    assert profile.gestational_diabetes is None
    assert profile.pcos is None
    assert profile.stress_category is None
    assert profile.diet_quality is None
    assert profile.sleep_duration is None
    assert profile.physical_activity == "low"
    assert profile.alcohol_consumption == "none"
    assert profile.smoking is False


def test_pregnancy_text_sets_gestational_and_pcos_flags() -> None:
    bundle = PatientBundle(
        demographics=_demographics(),
        latest_history_text=HistoryText(pregnancy_history="Gestational diabetes 2018; PCOS"),
    )
    profile = project_risk_factor_profile(bundle, today=TODAY)
    assert profile.gestational_diabetes is True
    assert profile.pcos is True


def test_chronic_disease_text_sets_comorbidity_flags() -> None:
    bundle = PatientBundle(demographics=_demographics(chronic_diseases="Hypertension, Dyslipidemia"))
    profile = project_risk_factor_profile(bundle, today=TODAY)
    assert profile.hypertension is True
    assert profile.dyslipidemia is True
    assert profile.cardiovascular_disease is False


def test_extract_lab_value_parses_text_and_skips_non_numeric_rows() -> None:
    labs = [
        LabResult(test_name="Fasting Glucose", result_value="pending"),
        LabResult(test_name="Fasting Glucose", result_value="110 mg/dL"),
        LabResult(test_name="HbA1c", result_numeric=6.1),
    ]
    assert extract_lab_value(labs, ("glucose",)) == 110.0
    assert extract_lab_value(labs, ("hba1c", "a1c")) == 6.1
    assert extract_lab_value(labs, ("insulin",)) is None


def test_critical_labs_hba1c_overrides_lab_result_value() -> None:
    labs = [LabResult(test_name="HbA1c", result_numeric=5.9)]
    without_critical = project_risk_factor_profile(
        PatientBundle(demographics=_demographics(), recent_glucose_like_labs=labs),
        today=TODAY,
    )
    assert without_critical.hba1c == 5.9

    with_critical = project_risk_factor_profile(
        PatientBundle(
            demographics=_demographics(),
            recent_glucose_like_labs=labs,
            latest_critical_labs=CriticalLabValues(hba1c=6.8, triglycerides=220.0),
        ),
        today=TODAY,
    )
    assert with_critical.hba1c == 6.8
    assert with_critical.triglycerides == 220.0

    critical_without_hba1c = project_risk_factor_profile(
        PatientBundle(
            demographics=_demographics(),
            recent_glucose_like_labs=labs,
            latest_critical_labs=CriticalLabValues(crp=4.0),
        ),
        today=TODAY,
    )
    assert critical_without_hba1c.hba1c == 5.9


def test_nutrition_and_exercise_records_are_projected() -> None:
    bundle = PatientBundle(
        demographics=_demographics(),
        latest_nutrition_assessment=NutritionAssessment(
            daily_calorie_intake=2700.0,
            alcohol_consumption=2.0,
            assessment_date=datetime(2025, 5, 1, 9, 0, 0),
        ),
        latest_exercise_assessment=ExerciseAssessment(
            exercise_intensity="Vigorous",
            exercise_frequency=4,
            walking_steps=8000,
        ),
    )
    profile = project_risk_factor_profile(bundle, today=TODAY)
    assert profile.daily_calorie_intake == 2700.0
    assert profile.alcohol_intake == 2.0
    assert profile.alcohol_consumption == "none"
    assert profile.exercise_intensity == "high"
    assert profile.exercise_frequency == 4
    assert profile.walking_steps == 8000


def test_unknown_exercise_intensity_degrades_to_absent() -> None:
    bundle = PatientBundle(
        demographics=_demographics(),
        latest_exercise_assessment=ExerciseAssessment(exercise_intensity="sometimes"),
    )
    assert project_risk_factor_profile(bundle, today=TODAY).exercise_intensity is None


def test_custom_keyword_dictionary_is_used() -> None:
    dictionary = default_keyword_dictionary().extended({"smoking": {"present": ["vape"]}})
    bundle = PatientBundle(
        demographics=_demographics(),
        latest_history_text=HistoryText(social_history="vapes daily"),
    )
    assert project_risk_factor_profile(bundle, today=TODAY).smoking is False
    assert project_risk_factor_profile(bundle, today=TODAY, keywords=dictionary).smoking is True


def test_count_present_optional_fields_ignores_always_set_fields() -> None:
    bare = project_risk_factor_profile(PatientBundle(demographics=_demographics()), today=TODAY)
    assert count_present_optional_fields(bare) == 0

    richer = project_risk_factor_profile(
        PatientBundle(
            demographics=_demographics(),
            latest_vital_signs=VitalSignsRecord(sleep_quality=6.0, stress_level=4.0),
        ),
        today=TODAY,
    )
    assert count_present_optional_fields(richer) == 2
