from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Gender = Literal["male", "female"]
ActivityLevel = Literal["low", "moderate", "high"]
AlcoholLevel = Literal["none", "light", "moderate", "heavy"]
StressCategory = Literal["low", "moderate", "high"]
DietQuality = Literal["poor", "fair", "good", "excellent"]
ExerciseIntensity = Literal["low", "moderate", "high"]

DEFAULT_SYSTOLIC_BP = 120
DEFAULT_DIASTOLIC_BP = 80


@dataclass(frozen=True)
class RiskFactorProfile:
    """
    Normalized scoring input for one patient.

    Optional fields left as None are "not evaluated"; only demographics, bmi
    and blood pressure always carry a value.
    """

    age: int
    gender: Gender
    bmi: float
    systolic_bp: int = DEFAULT_SYSTOLIC_BP
    diastolic_bp: int = DEFAULT_DIASTOLIC_BP

    waist_circumference: float | None = None
    body_fat_percentage: float | None = None
    muscle_mass: float | None = None
    bone_density: str | None = None
    skin_fold_thickness: float | None = None
    hydration_status: str | None = None

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
    bun: float | None = None
    creatinine: float | None = None
    egfr: float | None = None
    alt: float | None = None
    ast: float | None = None
    alp: float | None = None
    bilirubin: float | None = None
    tsh: float | None = None
    t3: float | None = None
    t4: float | None = None
    crp: float | None = None
    esr: float | None = None
    vitamin_d: float | None = None
    b12: float | None = None
    folate: float | None = None
    iron: float | None = None
    ferritin: float | None = None
    uric_acid: float | None = None

    physical_activity: ActivityLevel = "low"
    smoking: bool = False
    alcohol_consumption: AlcoholLevel = "none"

    gestational_diabetes: bool | None = None
    pcos: bool | None = None

    hypertension: bool = False
    dyslipidemia: bool = False
    cardiovascular_disease: bool = False

    sleep_duration: float | None = None
    sleep_quality: float | None = None
    stress_level: float | None = None
    stress_category: StressCategory | None = None
    depression_score: float | None = None
    anxiety_level: float | None = None
    quality_of_life_score: float | None = None
    diet_quality: DietQuality | None = None

    daily_calorie_intake: float | None = None
    carbohydrate_intake: float | None = None
    protein_intake: float | None = None
    fat_intake: float | None = None
    fiber_intake: float | None = None
    sugar_intake: float | None = None
    sodium_intake: float | None = None
    water_intake: float | None = None
    meal_frequency: float | None = None
    alcohol_intake: float | None = None
    caffeine_consumption: float | None = None

    exercise_type: str | None = None
    exercise_duration: float | None = None
    exercise_frequency: float | None = None
    exercise_intensity: ExerciseIntensity | None = None
    mets: float | None = None
    vo2_max: float | None = None
    walking_steps: int | None = None
