from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

RiskLevel = Literal["low", "moderate", "high", "very_high"]
UrgencyLevel = Literal["routine", "urgent", "immediate"]


@dataclass(frozen=True)
class RiskClassification:
    risk_level: RiskLevel
    risk_percentage: int
    urgency_level: UrgencyLevel


# Highest threshold first; lower bounds are inclusive.
_RISK_BANDS: tuple[tuple[int, RiskClassification], ...] = (
    (70, RiskClassification("very_high", 50, "immediate")),
    (50, RiskClassification("high", 25, "urgent")),
    (30, RiskClassification("moderate", 10, "routine")),
)
_LOW_RISK = RiskClassification("low", 2, "routine")


def classify_score(score: int) -> RiskClassification:
    for threshold, classification in _RISK_BANDS:
        if score >= threshold:
            return classification
    return _LOW_RISK
