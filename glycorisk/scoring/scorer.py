from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from glycorisk.profile.models import RiskFactorProfile
from glycorisk.scoring.rules import RULE_CATALOGUE, ScoringRule

MIN_RISK_SCORE = 0
MAX_RISK_SCORE = 100


@dataclass(frozen=True)
class ScoreBreakdown:
    raw_score: int
    risk_score: int
    contributing_factors: tuple[str, ...]
    fired_rule_ids: tuple[str, ...]


def score_profile(
    profile: RiskFactorProfile,
    rules: Sequence[ScoringRule] = RULE_CATALOGUE,
) -> ScoreBreakdown:
    raw_score = 0
    factors: list[str] = []
    fired: list[str] = []
    fired_groups: set[str] = set()

    for rule in rules:
        if rule.group is not None and rule.group in fired_groups:
            continue
        if not rule.applies(profile):
            continue
        raw_score += int(rule.points)
        factors.append(rule.label)
        fired.append(rule.rule_id)
        if rule.group is not None:
            fired_groups.add(rule.group)

    return ScoreBreakdown(
        raw_score=raw_score,
        risk_score=clamp_score(raw_score),
        contributing_factors=tuple(factors),
        fired_rule_ids=tuple(fired),
    )


def clamp_score(raw_score: int) -> int:
    return max(MIN_RISK_SCORE, min(MAX_RISK_SCORE, int(raw_score)))
