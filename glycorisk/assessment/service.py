from __future__ import annotations

"""
Compose projection, scoring, classification and planning into one assessment.

Design intent:
- One synchronous, stateless pipeline per patient.
- Unknown patient is the only fatal outcome; everything else degrades.
- Bulk runs isolate failures per patient so one bad record never aborts a batch.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Sequence

from glycorisk.internal_core.record_store import PatientNotFoundError, PatientRecordSource
from glycorisk.plan.recommendations import plan_recommendations
from glycorisk.profile.keywords import KeywordDictionary
from glycorisk.profile.models import RiskFactorProfile
from glycorisk.profile.projector import project_risk_factor_profile
from glycorisk.scoring.classifier import RiskLevel, UrgencyLevel, classify_score
from glycorisk.scoring.scorer import score_profile

logger = logging.getLogger(__name__)

BulkStatus = Literal["success", "not_found", "error"]

_HIGH_RISK_LEVELS = ("high", "very_high")
_HIGH_RISK_PREVIEW_LIMIT = 10


@dataclass(frozen=True)
class RiskAssessmentResult:
    risk_score: int
    risk_level: RiskLevel
    risk_percentage: int
    contributing_factors: tuple[str, ...]
    recommendations: tuple[str, ...]
    next_screening_date: date
    urgency_level: UrgencyLevel
    raw_score: int
    fired_rule_ids: tuple[str, ...]


@dataclass(frozen=True)
class BulkAssessmentItem:
    patient_id: str
    status: BulkStatus
    result: RiskAssessmentResult | None = None
    error: str = ""


@dataclass(frozen=True)
class BulkAssessmentReport:
    items: list[BulkAssessmentItem]
    total: int
    successful: int
    not_found: int
    failed: int


@dataclass(frozen=True)
class CohortOverview:
    total_patients: int
    risk_stats: dict[str, int]
    high_risk_count: int
    average_risk_score: float
    urgent_cases: int
    needs_follow_up: int
    high_risk_patients: list[BulkAssessmentItem] = field(default_factory=list)


def assess_profile(profile: RiskFactorProfile, *, today: date | None = None) -> RiskAssessmentResult:
    breakdown = score_profile(profile)
    classification = classify_score(breakdown.risk_score)
    plan = plan_recommendations(
        classification.risk_level,
        breakdown.contributing_factors,
        profile,
        today=today,
    )
    return RiskAssessmentResult(
        risk_score=breakdown.risk_score,
        risk_level=classification.risk_level,
        risk_percentage=classification.risk_percentage,
        contributing_factors=breakdown.contributing_factors,
        recommendations=plan.recommendations,
        next_screening_date=plan.next_screening_date,
        urgency_level=classification.urgency_level,
        raw_score=breakdown.raw_score,
        fired_rule_ids=breakdown.fired_rule_ids,
    )


def assess_patient(
    source: PatientRecordSource,
    patient_id: str,
    *,
    today: date | None = None,
    keywords: KeywordDictionary | None = None,
) -> RiskAssessmentResult:
    logger.info("risk_assessment_started patient_id=%s", patient_id)
    bundle = source.fetch_patient_bundle(patient_id)
    if bundle.demographics is None:
        raise PatientNotFoundError(patient_id)
    profile = project_risk_factor_profile(bundle, today=today, keywords=keywords)
    result = assess_profile(profile, today=today)
    logger.info(
        "risk_assessment_completed patient_id=%s level=%s score=%s raw=%s rules=%s",
        patient_id,
        result.risk_level,
        result.risk_score,
        result.raw_score,
        len(result.fired_rule_ids),
    )
    return result


def assess_patients(
    source: PatientRecordSource,
    patient_ids: Sequence[str],
    *,
    max_workers: int = 8,
    today: date | None = None,
    keywords: KeywordDictionary | None = None,
) -> BulkAssessmentReport:
    ids = [str(item) for item in patient_ids]
    if not ids:
        return BulkAssessmentReport(items=[], total=0, successful=0, not_found=0, failed=0)

    def _assess_one(patient_id: str) -> BulkAssessmentItem:
        try:
            result = assess_patient(source, patient_id, today=today, keywords=keywords)
        except PatientNotFoundError as exc:
            logger.warning("bulk_assessment_not_found patient_id=%s", patient_id)
            return BulkAssessmentItem(patient_id=patient_id, status="not_found", error=str(exc))
        except Exception as exc:
            # Per-patient isolation; the batch keeps going.
            logger.warning(
                "bulk_assessment_failed patient_id=%s error=%s",
                patient_id,
                type(exc).__name__,
                exc_info=True,
            )
            return BulkAssessmentItem(patient_id=patient_id, status="error", error=str(exc))
        return BulkAssessmentItem(patient_id=patient_id, status="success", result=result)

    with ThreadPoolExecutor(max_workers=max(1, min(int(max_workers), len(ids)))) as pool:
        items = list(pool.map(_assess_one, ids))

    return BulkAssessmentReport(
        items=items,
        total=len(items),
        successful=sum(1 for item in items if item.status == "success"),
        not_found=sum(1 for item in items if item.status == "not_found"),
        failed=sum(1 for item in items if item.status == "error"),
    )


def summarize_cohort(items: Sequence[BulkAssessmentItem]) -> CohortOverview:
    stats = {"low": 0, "moderate": 0, "high": 0, "very_high": 0, "no_data": 0}
    scored: list[BulkAssessmentItem] = []
    for item in items:
        if item.result is None:
            stats["no_data"] += 1
            continue
        stats[item.result.risk_level] += 1
        scored.append(item)

    average = 0.0
    if scored:
        average = round(sum(item.result.risk_score for item in scored) / len(scored), 1)  # type: ignore[union-attr]

    high_risk = sorted(
        (item for item in scored if item.result.risk_level in _HIGH_RISK_LEVELS),  # type: ignore[union-attr]
        key=lambda item: (-item.result.risk_score, item.patient_id),  # type: ignore[union-attr]
    )
    return CohortOverview(
        total_patients=len(items),
        risk_stats=stats,
        high_risk_count=stats["high"] + stats["very_high"],
        average_risk_score=average,
        urgent_cases=sum(1 for item in scored if item.result.urgency_level == "immediate"),  # type: ignore[union-attr]
        needs_follow_up=sum(1 for item in scored if item.result.urgency_level == "urgent"),  # type: ignore[union-attr]
        high_risk_patients=high_risk[:_HIGH_RISK_PREVIEW_LIMIT],
    )
