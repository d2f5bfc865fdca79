from __future__ import annotations

"""
HTTP surface for the glycorisk engine.

Design intent:
- Keep API orchestration thin and typed.
- Delegate projection/scoring/planning to domain modules.
- Return explainable payloads: every point maps to a fired rule id.
"""

import logging
from datetime import date
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from glycorisk.assessment.service import (
    BulkAssessmentItem,
    RiskAssessmentResult,
    assess_patient,
    assess_patients,
    assess_profile,
    summarize_cohort,
)
from glycorisk.internal_core.config import EngineConfig, load_config
from glycorisk.internal_core.record_store import (
    PatientNotFoundError,
    PatientRecordSource,
    build_seeded_store,
)
from glycorisk.profile.keywords import KeywordDictionary, load_keyword_dictionary
from glycorisk.profile.models import RiskFactorProfile


class RiskProfileInput(BaseModel):
    age: int = Field(ge=0, le=150)
    gender: Literal["male", "female"]
    bmi: float = Field(ge=0.0)
    systolic_bp: int = Field(default=120, ge=0)
    diastolic_bp: int = Field(default=80, ge=0)

    waist_circumference: float | None = None
    body_fat_percentage: float | None = None

    family_history_diabetes: bool = False
    family_history_hypertension: bool = False

    fasting_glucose: float | None = None
    hba1c: float | None = None
    fasting_insulin: float | None = None
    c_peptide: float | None = None
    total_cholesterol: float | None = None
    hdl_cholesterol: float | None = None
    ldl_cholesterol: float | None = None
    triglycerides: float | None = None
    crp: float | None = None
    vitamin_d: float | None = None

    physical_activity: Literal["low", "moderate", "high"] = "low"
    smoking: bool = False
    alcohol_consumption: Literal["none", "light", "moderate", "heavy"] = "none"

    gestational_diabetes: bool | None = None
    pcos: bool | None = None

    hypertension: bool = False
    dyslipidemia: bool = False
    cardiovascular_disease: bool = False

    sleep_duration: float | None = None
    sleep_quality: float | None = None
    stress_level: float | None = None
    depression_score: float | None = None
    quality_of_life_score: float | None = None

    daily_calorie_intake: float | None = None
    sugar_intake: float | None = None
    sodium_intake: float | None = None
    fiber_intake: float | None = None

    exercise_frequency: float | None = None
    exercise_intensity: Literal["low", "moderate", "high"] | None = None
    walking_steps: int | None = None


class RiskScoreRequest(BaseModel):
    profile: RiskProfileInput
    today: date | None = None


class RiskAssessmentResponse(BaseModel):
    risk_score: int = Field(ge=0, le=100)
    risk_level: Literal["low", "moderate", "high", "very_high"]
    risk_percentage: int
    contributing_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    next_screening_date: date
    urgency_level: Literal["routine", "urgent", "immediate"]
    debug: dict[str, Any] = Field(default_factory=dict)


class PatientRiskResponse(BaseModel):
    patient_id: str
    assessment: RiskAssessmentResponse


class BulkAssessRequest(BaseModel):
    patient_ids: list[str] = Field(min_length=1)


class BulkAssessItemResponse(BaseModel):
    patient_id: str
    status: Literal["success", "not_found", "error"]
    assessment: RiskAssessmentResponse | None = None
    error: str = ""


class BulkAssessSummary(BaseModel):
    total: int
    successful: int
    not_found: int
    failed: int


class BulkAssessResponse(BaseModel):
    summary: BulkAssessSummary
    results: list[BulkAssessItemResponse] = Field(default_factory=list)


class HighRiskPatientItem(BaseModel):
    patient_id: str
    risk_score: int
    risk_level: Literal["high", "very_high"]
    urgency_level: Literal["routine", "urgent", "immediate"]


class CohortOverviewResponse(BaseModel):
    total_patients: int
    risk_stats: dict[str, int]
    high_risk_count: int
    average_risk_score: float
    urgent_cases: int
    needs_follow_up: int
    high_risk_patients: list[HighRiskPatientItem] = Field(default_factory=list)


app = FastAPI(title="glycorisk risk assessment service")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_config() -> EngineConfig:
    existing = getattr(app.state, "engine_config", None)
    if isinstance(existing, EngineConfig):
        return existing
    created = load_config()
    _apply_log_level(created.GLYCORISK_LOG_LEVEL)
    setattr(app.state, "engine_config", created)
    return created


def _apply_log_level(raw_level: str) -> None:
    level = getattr(logging, str(raw_level or "").upper(), None)
    if not isinstance(level, int):
        logger.warning("invalid_log_level value=%s fallback=INFO", raw_level)
        level = logging.INFO
    logging.getLogger("glycorisk").setLevel(level)


def _get_record_source() -> PatientRecordSource:
    existing = getattr(app.state, "patient_record_source", None)
    if existing is not None:
        return existing
    config = _get_config()
    created = build_seeded_store(config.seed_path(), fetch_max_workers=config.GLYCORISK_FETCH_MAX_WORKERS)
    setattr(app.state, "patient_record_source", created)
    return created


def _get_keyword_dictionary() -> KeywordDictionary:
    existing = getattr(app.state, "keyword_dictionary", None)
    if isinstance(existing, KeywordDictionary):
        return existing
    created = load_keyword_dictionary(_get_config().keywords_path())
    setattr(app.state, "keyword_dictionary", created)
    return created


def _resolve_today() -> date | None:
    raw = _get_config().GLYCORISK_TODAY_OVERRIDE
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        logger.warning("invalid_today_override value=%s", raw)
        return None


def _to_assessment_response(result: RiskAssessmentResult) -> RiskAssessmentResponse:
    return RiskAssessmentResponse(
        risk_score=result.risk_score,
        risk_level=result.risk_level,
        risk_percentage=result.risk_percentage,
        contributing_factors=list(result.contributing_factors),
        recommendations=list(result.recommendations),
        next_screening_date=result.next_screening_date,
        urgency_level=result.urgency_level,
        debug={
            "raw_score": result.raw_score,
            "fired_rule_ids": list(result.fired_rule_ids),
            "clamped": result.raw_score != result.risk_score,
        },
    )


def _to_bulk_item_response(item: BulkAssessmentItem) -> BulkAssessItemResponse:
    return BulkAssessItemResponse(
        patient_id=item.patient_id,
        status=item.status,
        assessment=_to_assessment_response(item.result) if item.result is not None else None,
        error=item.error,
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/patients/{patient_id}/diabetes-risk", response_model=PatientRiskResponse)
def patient_diabetes_risk(patient_id: str) -> PatientRiskResponse:
    normalized_id = str(patient_id or "").strip()
    if not normalized_id:
        raise HTTPException(status_code=400, detail="patient_id is required.")
    try:
        result = assess_patient(
            _get_record_source(),
            normalized_id,
            today=_resolve_today(),
            keywords=_get_keyword_dictionary(),
        )
    except PatientNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return PatientRiskResponse(patient_id=normalized_id, assessment=_to_assessment_response(result))


@app.post("/risk/score", response_model=RiskAssessmentResponse)
def risk_score(payload: RiskScoreRequest) -> RiskAssessmentResponse:
    profile = RiskFactorProfile(**payload.profile.model_dump())
    result = assess_profile(profile, today=payload.today or _resolve_today())
    return _to_assessment_response(result)


@app.post("/risk/assess/bulk", response_model=BulkAssessResponse)
def risk_assess_bulk(payload: BulkAssessRequest) -> BulkAssessResponse:
    config = _get_config()
    if len(payload.patient_ids) > config.GLYCORISK_BULK_MAX_PATIENTS:
        raise HTTPException(
            status_code=400,
            detail=f"At most {config.GLYCORISK_BULK_MAX_PATIENTS} patient_ids per request.",
        )
    logger.info("bulk_assessment_requested patient_count=%s", len(payload.patient_ids))
    report = assess_patients(
        _get_record_source(),
        payload.patient_ids,
        max_workers=config.GLYCORISK_BULK_MAX_WORKERS,
        today=_resolve_today(),
        keywords=_get_keyword_dictionary(),
    )
    return BulkAssessResponse(
        summary=BulkAssessSummary(
            total=report.total,
            successful=report.successful,
            not_found=report.not_found,
            failed=report.failed,
        ),
        results=[_to_bulk_item_response(item) for item in report.items],
    )


@app.get("/risk/overview", response_model=CohortOverviewResponse)
def risk_overview(limit: int | None = Query(default=None, ge=1, le=10000)) -> CohortOverviewResponse:
    config = _get_config()
    source = _get_record_source()
    list_ids = getattr(source, "list_patient_ids", None)
    if not callable(list_ids):
        raise HTTPException(status_code=501, detail="Record source cannot enumerate patients.")
    patient_ids = list_ids(limit=limit or config.GLYCORISK_OVERVIEW_LIMIT)
    report = assess_patients(
        source,
        patient_ids,
        max_workers=config.GLYCORISK_BULK_MAX_WORKERS,
        today=_resolve_today(),
        keywords=_get_keyword_dictionary(),
    )
    overview = summarize_cohort(report.items)
    return CohortOverviewResponse(
        total_patients=overview.total_patients,
        risk_stats=overview.risk_stats,
        high_risk_count=overview.high_risk_count,
        average_risk_score=overview.average_risk_score,
        urgent_cases=overview.urgent_cases,
        needs_follow_up=overview.needs_follow_up,
        high_risk_patients=[
            HighRiskPatientItem(
                patient_id=item.patient_id,
                risk_score=item.result.risk_score,  # type: ignore[union-attr]
                risk_level=item.result.risk_level,  # type: ignore[union-attr, arg-type]
                urgency_level=item.result.urgency_level,  # type: ignore[union-attr]
            )
            for item in overview.high_risk_patients
        ],
    )
