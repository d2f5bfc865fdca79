from __future__ import annotations

"""
Recommendation and follow-up planning for a classified risk level.

Design intent:
- Start from a fixed per-level template; urgency rises with level.
- Append factor-specific guidance in a fixed order, independent of level.
- Keep output stable: the same (level, profile) pair yields the same list.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Sequence

from glycorisk.profile.models import RiskFactorProfile
from glycorisk.scoring.classifier import RiskLevel

DAYS_PER_SCREENING_MONTH = 30

SCREENING_INTERVAL_MONTHS: dict[str, int] = {
    "very_high": 3,
    "high": 6,
    "moderate": 12,
    "low": 36,
}
_DEFAULT_INTERVAL_MONTHS = 12

_LEVEL_TEMPLATES: dict[str, tuple[str, ...]] = {
    "very_high": (
        "Very high risk: consult a physician immediately.",
        "Confirm the diagnosis with HbA1c and an oral glucose tolerance test (OGTT).",
        "Consider starting glucose-lowering medication.",
        "Schedule follow-up every 3 months.",
    ),
    "high": (
        "High risk: consult a physician within 1 week.",
        "Check HbA1c and fasting glucose.",
        "Schedule follow-up every 6 months.",
    ),
    "moderate": (
        "Moderate risk: adopt lifestyle changes.",
        "Check fasting glucose or HbA1c.",
        "Schedule follow-up every year.",
    ),
    "low": (
        "Low risk: keep up a healthy lifestyle.",
        "Repeat diabetes screening every 3 years.",
    ),
}


@dataclass(frozen=True)
class ConditionalRecommendation:
    key: str
    predicate: Callable[[RiskFactorProfile], bool]
    recommendations: tuple[str, ...]


CONDITIONAL_RECOMMENDATIONS: tuple[ConditionalRecommendation, ...] = (
    ConditionalRecommendation(
        "weight",
        lambda p: p.bmi >= 25,
        (
            "Aim to lose 5-10% of body weight.",
            "Control diet: reduce refined starch and sugar.",
        ),
    ),
    ConditionalRecommendation(
        "activity",
        lambda p: p.physical_activity == "low",
        (
            "Exercise at least 150 minutes per week.",
            "Add more physical activity to daily routines.",
        ),
    ),
    ConditionalRecommendation(
        "blood_pressure",
        lambda p: p.systolic_bp >= 130,
        (
            "Keep blood pressure below 130/80 mmHg.",
            "Reduce salt intake.",
        ),
    ),
    ConditionalRecommendation(
        "smoking",
        lambda p: p.smoking is True,
        (
            "Stop smoking.",
            "Seek smoking cessation counseling.",
        ),
    ),
    ConditionalRecommendation(
        "family_history",
        lambda p: p.family_history_diabetes is True,
        (
            "Encourage diabetes screening for family members.",
            "Learn about diabetes prevention and warning signs.",
        ),
    ),
)


@dataclass(frozen=True)
class RecommendationPlan:
    recommendations: tuple[str, ...]
    next_screening_date: date


def plan_recommendations(
    risk_level: RiskLevel,
    contributing_factors: Sequence[str],
    profile: RiskFactorProfile,
    *,
    today: date | None = None,
) -> RecommendationPlan:
    recommendations = list(_LEVEL_TEMPLATES.get(risk_level, ()))
    for item in CONDITIONAL_RECOMMENDATIONS:
        if item.predicate(profile):
            recommendations.extend(item.recommendations)
    return RecommendationPlan(
        recommendations=tuple(recommendations),
        next_screening_date=next_screening_date(risk_level, today=today),
    )


def next_screening_date(risk_level: str, *, today: date | None = None) -> date:
    """Offset by 30-day months, not calendar months."""
    start = today or datetime.now(timezone.utc).date()
    months = SCREENING_INTERVAL_MONTHS.get(risk_level, _DEFAULT_INTERVAL_MONTHS)
    return start + timedelta(days=months * DAYS_PER_SCREENING_MONTH)
