from __future__ import annotations

"""
Raw patient record contracts consumed by the risk engine.

Design intent:
- Mirror the latest-record reads the surrounding application already serves.
- Keep every clinical field optional except the demographic anchor.
- Demographics stay strict; clinical rows degrade bad values to absent.
- Leave free text untouched; interpretation happens in the projector.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)


class PatientDemographics(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patient_id: str = Field(min_length=1, max_length=128)
    date_of_birth: date
    gender: str = ""
    weight_kg: Optional[float] = Field(default=None, ge=0.0)
    height_cm: Optional[float] = Field(default=None, ge=0.0)
    chronic_diseases: Optional[str] = None


class _ClinicalRecord(BaseModel):
    """
    Base for per-encounter clinical rows.

    Source rows may carry bookkeeping columns (id, patient_id, created_at);
    those are ignored. An optional value that fails to parse becomes None.
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="wrap")
    @classmethod
    def _absent_when_unparseable(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields.get(info.field_name or "")
            if field is None or field.is_required():
                raise
            return None


class VitalSignsRecord(_ClinicalRecord):
    systolic_bp: Optional[int] = None
    diastolic_bp: Optional[int] = None
    bmi: Optional[float] = None
    waist_circumference: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    muscle_mass: Optional[float] = None
    bone_density: Optional[str] = None
    skin_fold_thickness: Optional[float] = None
    hydration_status: Optional[str] = None
    sleep_quality: Optional[float] = None
    stress_level: Optional[float] = None
    depression_score: Optional[float] = None
    anxiety_level: Optional[float] = None
    quality_of_life_score: Optional[float] = None
    measured_at: Optional[datetime] = None


class LabResult(_ClinicalRecord):
    test_name: str
    result_value: Optional[str] = None
    result_numeric: Optional[float] = None
    result_unit: Optional[str] = None
    result_date: Optional[datetime] = None


class HistoryText(_ClinicalRecord):
    family_history: Optional[str] = None
    social_history: Optional[str] = None
    lifestyle_factors: Optional[str] = None
    pregnancy_history: Optional[str] = None
    dietary_history: Optional[str] = None


class CriticalLabValues(_ClinicalRecord):
    hba1c: Optional[float] = None
    fasting_insulin: Optional[float] = None
    c_peptide: Optional[float] = None
    total_cholesterol: Optional[float] = None
    hdl_cholesterol: Optional[float] = None
    ldl_cholesterol: Optional[float] = None
    triglycerides: Optional[float] = None
    bun: Optional[float] = None
    creatinine: Optional[float] = None
    egfr: Optional[float] = None
    alt: Optional[float] = None
    ast: Optional[float] = None
    alp: Optional[float] = None
    bilirubin: Optional[float] = None
    tsh: Optional[float] = None
    t3: Optional[float] = None
    t4: Optional[float] = None
    crp: Optional[float] = None
    esr: Optional[float] = None
    vitamin_d: Optional[float] = None
    b12: Optional[float] = None
    folate: Optional[float] = None
    iron: Optional[float] = None
    ferritin: Optional[float] = None
    uric_acid: Optional[float] = None
    test_date: Optional[datetime] = None


class NutritionAssessment(_ClinicalRecord):
    daily_calorie_intake: Optional[float] = None
    carbohydrate_intake: Optional[float] = None
    protein_intake: Optional[float] = None
    fat_intake: Optional[float] = None
    fiber_intake: Optional[float] = None
    sugar_intake: Optional[float] = None
    sodium_intake: Optional[float] = None
    water_intake: Optional[float] = None
    meal_frequency: Optional[float] = None
    alcohol_consumption: Optional[float] = None
    caffeine_consumption: Optional[float] = None
    assessment_date: Optional[datetime] = None


class ExerciseAssessment(_ClinicalRecord):
    exercise_type: Optional[str] = None
    exercise_duration: Optional[float] = None
    exercise_frequency: Optional[float] = None
    exercise_intensity: Optional[str] = None
    mets: Optional[float] = None
    vo2_max: Optional[float] = None
    walking_steps: Optional[int] = None
    assessment_date: Optional[datetime] = None


class PatientBundle(BaseModel):
    model_config = ConfigDict(extra="forbid")

    demographics: Optional[PatientDemographics] = None
    latest_vital_signs: Optional[VitalSignsRecord] = None
    recent_glucose_like_labs: List[LabResult] = Field(default_factory=list)
    latest_history_text: Optional[HistoryText] = None
    latest_critical_labs: Optional[CriticalLabValues] = None
    latest_nutrition_assessment: Optional[NutritionAssessment] = None
    latest_exercise_assessment: Optional[ExerciseAssessment] = None
