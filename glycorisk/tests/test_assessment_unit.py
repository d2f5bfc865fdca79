from datetime import date, timedelta

import pytest

from glycorisk.assessment.service import (
    BulkAssessmentItem,
    assess_patient,
    assess_patients,
    assess_profile,
    summarize_cohort,
)
from glycorisk.internal_core.contracts import (
    HistoryText,
    LabResult,
    PatientBundle,
    PatientDemographics,
    VitalSignsRecord,
)
from glycorisk.internal_core.record_store import InMemoryPatientRecordStore, PatientNotFoundError
from glycorisk.profile.models import RiskFactorProfile

TODAY = date(2025, 6, 1)


def _seeded_store() -> InMemoryPatientRecordStore:
    store = InMemoryPatientRecordStore()
    store.load_bundle(
        PatientBundle(
            demographics=PatientDemographics(
                patient_id="pt_high",
                date_of_birth=date(1955, 1, 1),
                gender="male",
                weight_kg=95.0,
                height_cm=170.0,
                chronic_diseases="hypertension, dyslipidemia",
            ),
            latest_vital_signs=VitalSignsRecord(systolic_bp=150, diastolic_bp=95),
            recent_glucose_like_labs=[
                LabResult(test_name="Fasting Glucose", result_numeric=130),
                LabResult(test_name="HbA1c", result_value="7.0 %"),
            ],
            latest_history_text=HistoryText(
                family_history="mother diabetic",
                social_history="smoker, no exercise",
            ),
        )
    )
    store.load_bundle(
        PatientBundle(
            demographics=PatientDemographics(
                patient_id="pt_low",
                date_of_birth=date(2000, 1, 1),
                gender="female",
                weight_kg=55.0,
                height_cm=165.0,
            ),
            latest_vital_signs=VitalSignsRecord(systolic_bp=110, diastolic_bp=70),
            latest_history_text=HistoryText(social_history="exercise daily"),
        )
    )
    return store


def _profile(**overrides) -> RiskFactorProfile:
    values = {
        "age": 25,
        "gender": "male",
        "bmi": 22.0,
        "systolic_bp": 110,
        "diastolic_bp": 70,
        "physical_activity": "high",
    }
    values.update(overrides)
    return RiskFactorProfile(**values)


class _FlakySource:
    def __init__(self, inner: InMemoryPatientRecordStore):
        self._inner = inner

    def fetch_patient_bundle(self, patient_id: str) -> PatientBundle:
        if patient_id == "pt_broken":
            raise RuntimeError("record source unavailable")
        return self._inner.fetch_patient_bundle(patient_id)


def test_assess_profile_low_risk_baseline() -> None:
    result = assess_profile(_profile(), today=TODAY)
    assert result.risk_score == 0
    assert result.risk_level == "low"
    assert result.risk_percentage == 2
    assert result.urgency_level == "routine"
    assert result.next_screening_date == TODAY + timedelta(days=1080)
    assert result.contributing_factors == ()
    assert result.recommendations[0].startswith("Low risk")


def test_assess_profile_reports_raw_score_and_fired_rules() -> None:
    result = assess_profile(_profile(age=50, smoking=True), today=TODAY)
    assert result.raw_score == 20
    assert result.risk_score == 20
    assert result.fired_rule_ids == ("age_45_64", "smoking")
    assert result.contributing_factors == ("Age 45-64", "Smoking")


def test_assess_patient_end_to_end_high_risk() -> None:
    result = assess_patient(_seeded_store(), "pt_high", today=TODAY)
    assert result.raw_score == 155
    assert result.risk_score == 100
    assert result.risk_level == "very_high"
    assert result.risk_percentage == 50
    assert result.urgency_level == "immediate"
    assert result.next_screening_date == TODAY + timedelta(days=90)
    assert "Family history of diabetes" in result.contributing_factors
    assert "Stop smoking." in result.recommendations


def test_assess_patient_end_to_end_low_risk() -> None:
    result = assess_patient(_seeded_store(), "pt_low", today=TODAY)
    assert result.risk_score == 0
    assert result.risk_level == "low"


def test_assess_patient_unknown_id_raises() -> None:
    with pytest.raises(PatientNotFoundError):
        assess_patient(_seeded_store(), "pt_missing", today=TODAY)


def test_assessment_is_deterministic() -> None:
    store = _seeded_store()
    assert assess_patient(store, "pt_high", today=TODAY) == assess_patient(store, "pt_high", today=TODAY)


def test_bulk_assessment_isolates_failures_and_keeps_order() -> None:
    source = _FlakySource(_seeded_store())
    report = assess_patients(
        source,
        ["pt_low", "pt_missing", "pt_broken", "pt_high", "pt_low"],
        max_workers=3,
        today=TODAY,
    )
    assert [item.patient_id for item in report.items] == [
        "pt_low",
        "pt_missing",
        "pt_broken",
        "pt_high",
        "pt_low",
    ]
    assert [item.status for item in report.items] == ["success", "not_found", "error", "success", "success"]
    assert (report.total, report.successful, report.not_found, report.failed) == (5, 3, 1, 1)
    assert report.items[2].error == "record source unavailable"
    assert report.items[3].result.risk_level == "very_high"


def test_bulk_assessment_of_nothing_is_empty() -> None:
    report = assess_patients(_seeded_store(), [], today=TODAY)
    assert report.items == []
    assert report.total == 0


def test_summarize_cohort_counts_levels_and_ranks_high_risk() -> None:
    very_high = assess_profile(
        _profile(
            age=70,
            bmi=32.0,
            systolic_bp=150,
            diastolic_bp=95,
            family_history_diabetes=True,
            physical_activity="low",
            smoking=True,
            hypertension=True,
            dyslipidemia=True,
            fasting_glucose=130.0,
            hba1c=7.0,
        ),
        today=TODAY,
    )
    high = assess_profile(_profile(age=65, bmi=30.0, family_history_diabetes=True), today=TODAY)
    low = assess_profile(_profile(), today=TODAY)
    items = [
        BulkAssessmentItem(patient_id="pt_b", status="success", result=high),
        BulkAssessmentItem(patient_id="pt_c", status="success", result=low),
        BulkAssessmentItem(patient_id="pt_a", status="success", result=very_high),
        BulkAssessmentItem(patient_id="pt_x", status="not_found", error="Patient not found: pt_x"),
    ]

    overview = summarize_cohort(items)
    assert high.risk_score == 60
    assert overview.total_patients == 4
    assert overview.risk_stats == {"low": 1, "moderate": 0, "high": 1, "very_high": 1, "no_data": 1}
    assert overview.high_risk_count == 2
    assert overview.average_risk_score == 53.3
    assert overview.urgent_cases == 1
    assert overview.needs_follow_up == 1
    assert [item.patient_id for item in overview.high_risk_patients] == ["pt_a", "pt_b"]


def test_summarize_empty_cohort() -> None:
    overview = summarize_cohort([])
    assert overview.total_patients == 0
    assert overview.average_risk_score == 0.0
    assert overview.high_risk_patients == []


def test_assessment_result_sequences_are_immutable() -> None:
    result = assess_profile(_profile(age=50, smoking=True), today=TODAY)
    assert isinstance(result.contributing_factors, tuple)
    assert isinstance(result.recommendations, tuple)
    assert isinstance(result.fired_rule_ids, tuple)
    with pytest.raises(AttributeError):
        result.contributing_factors.append("Edited")  # type: ignore[attr-defined]
