from __future__ import annotations

"""
Declarative scoring rule catalogue.

Design intent:
- One record per rule: predicate, points, human-readable label.
- Catalogue order is display order for contributing factors.
- Tiered thresholds share a group; only the first matching rule in a group fires.
"""

from dataclasses import dataclass
from typing import Callable

from glycorisk.profile.models import RiskFactorProfile

Predicate = Callable[[RiskFactorProfile], bool]


@dataclass(frozen=True)
class ScoringRule:
    rule_id: str
    predicate: Predicate
    points: int
    label: str
    group: str | None = None

    def applies(self, profile: RiskFactorProfile) -> bool:
        return bool(self.predicate(profile))


def _above(field: str, threshold: float) -> Predicate:
    def predicate(profile: RiskFactorProfile) -> bool:
        value = getattr(profile, field)
        return value is not None and value > threshold

    return predicate


def _below(field: str, threshold: float) -> Predicate:
    def predicate(profile: RiskFactorProfile) -> bool:
        value = getattr(profile, field)
        return value is not None and value < threshold

    return predicate


def _at_least(field: str, threshold: float) -> Predicate:
    def predicate(profile: RiskFactorProfile) -> bool:
        value = getattr(profile, field)
        return value is not None and value >= threshold

    return predicate


def _is_true(field: str) -> Predicate:
    return lambda profile: getattr(profile, field) is True


def _female_and(field: str) -> Predicate:
    return lambda profile: profile.gender == "female" and getattr(profile, field) is True


RULE_CATALOGUE: tuple[ScoringRule, ...] = (
    ScoringRule("age_65_plus", _at_least("age", 65), 25, "Age 65 or older", group="age"),
    ScoringRule("age_45_64", _at_least("age", 45), 15, "Age 45-64", group="age"),
    ScoringRule("age_35_44", _at_least("age", 35), 10, "Age 35-44", group="age"),
    ScoringRule("bmi_obese", _at_least("bmi", 30), 20, "Obesity (BMI >= 30)", group="bmi"),
    ScoringRule("bmi_overweight", _at_least("bmi", 25), 10, "Overweight (BMI 25-29.9)", group="bmi"),
    ScoringRule(
        "bp_high",
        lambda p: p.systolic_bp >= 140 or p.diastolic_bp >= 90,
        15,
        "High blood pressure",
        group="blood_pressure",
    ),
    ScoringRule(
        "bp_elevated",
        lambda p: p.systolic_bp >= 130 or p.diastolic_bp >= 85,
        8,
        "Slightly elevated blood pressure",
        group="blood_pressure",
    ),
    ScoringRule("family_history_diabetes", _is_true("family_history_diabetes"), 15, "Family history of diabetes"),
    ScoringRule(
        "activity_low",
        lambda p: p.physical_activity == "low",
        10,
        "Low physical activity",
        group="physical_activity",
    ),
    ScoringRule(
        "activity_moderate",
        lambda p: p.physical_activity == "moderate",
        5,
        "Moderate physical activity",
        group="physical_activity",
    ),
    ScoringRule("smoking", _is_true("smoking"), 5, "Smoking"),
    ScoringRule("hypertension", _is_true("hypertension"), 10, "Hypertension"),
    ScoringRule("dyslipidemia", _is_true("dyslipidemia"), 10, "Dyslipidemia"),
    ScoringRule(
        "fasting_glucose_diabetic",
        _at_least("fasting_glucose", 126),
        25,
        "Very high fasting glucose (>= 126 mg/dL)",
        group="fasting_glucose",
    ),
    ScoringRule(
        "fasting_glucose_impaired",
        _at_least("fasting_glucose", 100),
        15,
        "Elevated fasting glucose (100-125 mg/dL)",
        group="fasting_glucose",
    ),
    ScoringRule("hba1c_diabetic", _at_least("hba1c", 6.5), 20, "Very high HbA1c (>= 6.5%)", group="hba1c"),
    ScoringRule("hba1c_prediabetic", _at_least("hba1c", 5.7), 10, "Elevated HbA1c (5.7-6.4%)", group="hba1c"),
    ScoringRule(
        "gestational_diabetes",
        _female_and("gestational_diabetes"),
        10,
        "History of gestational diabetes",
    ),
    ScoringRule("pcos", _female_and("pcos"), 5, "Polycystic ovary syndrome"),
    ScoringRule("body_fat_high", _above("body_fat_percentage", 30), 8, "High body fat percentage"),
    ScoringRule("sleep_quality_poor", _below("sleep_quality", 5), 5, "Poor sleep quality"),
    ScoringRule("stress_high", _above("stress_level", 7), 5, "High stress level"),
    ScoringRule("depression", _above("depression_score", 10), 4, "Depressive symptoms"),
    ScoringRule("quality_of_life_low", _below("quality_of_life_score", 50), 3, "Low quality of life"),
    ScoringRule(
        "fasting_insulin_high",
        _above("fasting_insulin", 25),
        8,
        "High fasting insulin (insulin resistance)",
    ),
    ScoringRule(
        "c_peptide_low",
        _below("c_peptide", 1.0),
        5,
        "Low C-peptide (reduced pancreatic function)",
    ),
    ScoringRule("triglycerides_high", _above("triglycerides", 200), 4, "High triglycerides"),
    ScoringRule("hdl_low", _below("hdl_cholesterol", 40), 3, "Low HDL cholesterol"),
    ScoringRule("crp_high", _above("crp", 3.0), 3, "High CRP (inflammation)"),
    ScoringRule("vitamin_d_low", _below("vitamin_d", 20), 2, "Low vitamin D"),
    ScoringRule("calories_high", _above("daily_calorie_intake", 2500), 5, "Excessive calorie intake"),
    ScoringRule("sugar_high", _above("sugar_intake", 50), 4, "High sugar intake"),
    ScoringRule("sodium_high", _above("sodium_intake", 2300), 3, "High sodium intake"),
    ScoringRule("fiber_low", _below("fiber_intake", 25), 3, "Low fiber intake"),
    ScoringRule("exercise_infrequent", _below("exercise_frequency", 3), 5, "Infrequent exercise"),
    ScoringRule("steps_low", _below("walking_steps", 5000), 3, "Low daily step count"),
    ScoringRule(
        "exercise_intensity_low",
        lambda p: p.exercise_intensity == "low",
        2,
        "Low exercise intensity",
    ),
)


def rule_by_id(rule_id: str) -> ScoringRule:
    for rule in RULE_CATALOGUE:
        if rule.rule_id == rule_id:
            return rule
    raise KeyError(f"Unknown scoring rule: {rule_id}")
