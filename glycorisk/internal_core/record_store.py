from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, TypeVar

from .contracts import (
    CriticalLabValues,
    ExerciseAssessment,
    HistoryText,
    LabResult,
    NutritionAssessment,
    PatientBundle,
    PatientDemographics,
    VitalSignsRecord,
)

logger = logging.getLogger(__name__)

_GLUCOSE_LIKE_TEST_PATTERNS = ("glucose", "hba1c", "a1c", "sugar")
_RECENT_LAB_LIMIT = 5

T = TypeVar("T")


class PatientNotFoundError(LookupError):
    """Raised when a patient has no demographic record."""

    def __init__(self, patient_id: Optional[str] = None):
        super().__init__(f"Patient not found: {patient_id}" if patient_id else "Patient not found")
        self.patient_id = patient_id


class PatientRecordSource(Protocol):
    def fetch_patient_bundle(self, patient_id: str) -> PatientBundle:
        ...


def _comparable(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def _latest(items: Sequence[T], key: Callable[[T], Optional[datetime]]) -> Optional[T]:
    # Undated records sort oldest; among equal stamps the last one added wins.
    best: Optional[T] = None
    best_ts: Optional[datetime] = None
    for item in items:
        ts = _comparable(key(item))
        if best is None:
            best, best_ts = item, ts
            continue
        if ts is None:
            if best_ts is None:
                best = item
            continue
        if best_ts is None or ts >= best_ts:
            best, best_ts = item, ts
    return best


class InMemoryPatientRecordStore:
    """Read-mostly patient record store serving risk-engine bundles."""

    def __init__(self, fetch_max_workers: int = 7):
        self._fetch_max_workers = max(1, int(fetch_max_workers))
        self._lock = RLock()
        self._patients: Dict[str, Dict[str, Any]] = {}

    def _record(self, patient_id: str) -> Dict[str, Any]:
        record = self._patients.get(patient_id)
        if record is None:
            record = {
                "demographics": None,
                "vital_signs": [],
                "lab_results": [],
                "history_text": [],
                "critical_labs": [],
                "nutrition": [],
                "exercise": [],
                "history_recorded_at": [],
            }
            self._patients[patient_id] = record
        return record

    def put_demographics(self, demographics: PatientDemographics) -> None:
        with self._lock:
            self._record(demographics.patient_id)["demographics"] = demographics

    def add_vital_signs(self, patient_id: str, record: VitalSignsRecord) -> None:
        with self._lock:
            self._record(patient_id)["vital_signs"].append(record)

    def add_lab_result(self, patient_id: str, result: LabResult) -> None:
        with self._lock:
            self._record(patient_id)["lab_results"].append(result)

    def add_history_text(
        self,
        patient_id: str,
        history: HistoryText,
        recorded_at: Optional[datetime] = None,
    ) -> None:
        with self._lock:
            record = self._record(patient_id)
            record["history_text"].append(history)
            record["history_recorded_at"].append(recorded_at)

    def add_critical_labs(self, patient_id: str, labs: CriticalLabValues) -> None:
        with self._lock:
            self._record(patient_id)["critical_labs"].append(labs)

    def add_nutrition_assessment(self, patient_id: str, assessment: NutritionAssessment) -> None:
        with self._lock:
            self._record(patient_id)["nutrition"].append(assessment)

    def add_exercise_assessment(self, patient_id: str, assessment: ExerciseAssessment) -> None:
        with self._lock:
            self._record(patient_id)["exercise"].append(assessment)

    def load_bundle(self, bundle: PatientBundle) -> str:
        if bundle.demographics is None:
            raise ValueError("Seed bundle requires demographics.")
        patient_id = bundle.demographics.patient_id
        with self._lock:
            self.put_demographics(bundle.demographics)
            if bundle.latest_vital_signs is not None:
                self.add_vital_signs(patient_id, bundle.latest_vital_signs)
            for lab in bundle.recent_glucose_like_labs:
                self.add_lab_result(patient_id, lab)
            if bundle.latest_history_text is not None:
                self.add_history_text(patient_id, bundle.latest_history_text)
            if bundle.latest_critical_labs is not None:
                self.add_critical_labs(patient_id, bundle.latest_critical_labs)
            if bundle.latest_nutrition_assessment is not None:
                self.add_nutrition_assessment(patient_id, bundle.latest_nutrition_assessment)
            if bundle.latest_exercise_assessment is not None:
                self.add_exercise_assessment(patient_id, bundle.latest_exercise_assessment)
        return patient_id

    def list_patient_ids(self, limit: Optional[int] = None) -> List[str]:
        with self._lock:
            ids = sorted(
                patient_id
                for patient_id, record in self._patients.items()
                if record["demographics"] is not None
            )
        if limit is not None:
            return ids[: max(0, int(limit))]
        return ids

    def get_demographics(self, patient_id: str) -> Optional[PatientDemographics]:
        with self._lock:
            record = self._patients.get(patient_id)
            return None if record is None else record["demographics"]

    def get_latest_vital_signs(self, patient_id: str) -> Optional[VitalSignsRecord]:
        with self._lock:
            items = list(self._patients.get(patient_id, {}).get("vital_signs", []))
        return _latest(items, key=lambda item: item.measured_at)

    def get_recent_glucose_like_labs(self, patient_id: str) -> List[LabResult]:
        with self._lock:
            items = list(self._patients.get(patient_id, {}).get("lab_results", []))
        matching = [
            item
            for item in items
            if any(pattern in item.test_name.lower() for pattern in _GLUCOSE_LIKE_TEST_PATTERNS)
        ]
        # Newest first, undated rows last; later insertions lead on ties.
        indexed = list(enumerate(matching))
        indexed.sort(
            key=lambda pair: (
                pair[1].result_date is not None,
                _comparable(pair[1].result_date) or datetime.min,
                pair[0],
            ),
            reverse=True,
        )
        return [item for _, item in indexed[:_RECENT_LAB_LIMIT]]

    def get_latest_history_text(self, patient_id: str) -> Optional[HistoryText]:
        with self._lock:
            record = self._patients.get(patient_id, {})
            pairs = list(zip(record.get("history_text", []), record.get("history_recorded_at", [])))
        latest = _latest(pairs, key=lambda pair: pair[1])
        return None if latest is None else latest[0]

    def get_latest_critical_labs(self, patient_id: str) -> Optional[CriticalLabValues]:
        with self._lock:
            items = list(self._patients.get(patient_id, {}).get("critical_labs", []))
        return _latest(items, key=lambda item: item.test_date)

    def get_latest_nutrition_assessment(self, patient_id: str) -> Optional[NutritionAssessment]:
        with self._lock:
            items = list(self._patients.get(patient_id, {}).get("nutrition", []))
        return _latest(items, key=lambda item: item.assessment_date)

    def get_latest_exercise_assessment(self, patient_id: str) -> Optional[ExerciseAssessment]:
        with self._lock:
            items = list(self._patients.get(patient_id, {}).get("exercise", []))
        return _latest(items, key=lambda item: item.assessment_date)

    def fetch_patient_bundle(self, patient_id: str) -> PatientBundle:
        readers: Dict[str, Callable[[str], Any]] = {
            "demographics": self.get_demographics,
            "latest_vital_signs": self.get_latest_vital_signs,
            "recent_glucose_like_labs": self.get_recent_glucose_like_labs,
            "latest_history_text": self.get_latest_history_text,
            "latest_critical_labs": self.get_latest_critical_labs,
            "latest_nutrition_assessment": self.get_latest_nutrition_assessment,
            "latest_exercise_assessment": self.get_latest_exercise_assessment,
        }
        with ThreadPoolExecutor(max_workers=self._fetch_max_workers) as pool:
            futures = {name: pool.submit(reader, patient_id) for name, reader in readers.items()}
            # All reads settle before the bundle is assembled.
            fetched = {name: future.result() for name, future in futures.items()}

        if fetched["demographics"] is None:
            raise PatientNotFoundError(patient_id)
        return PatientBundle(**fetched)


def load_seed_bundles(path: Path) -> List[PatientBundle]:
    raw = path.read_text(encoding="utf-8")
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("patients", [])
    if not isinstance(data, list):
        raise ValueError(f"Seed file must hold a list of patient bundles: {path}")
    return [PatientBundle.model_validate(item) for item in data]


def build_seeded_store(seed_path: Optional[Path], fetch_max_workers: int = 7) -> InMemoryPatientRecordStore:
    store = InMemoryPatientRecordStore(fetch_max_workers=fetch_max_workers)
    if seed_path is None:
        return store
    if not seed_path.exists():
        logger.warning("seed_file_missing path=%s", str(seed_path))
        return store
    bundles = load_seed_bundles(seed_path)
    for bundle in bundles:
        store.load_bundle(bundle)
    logger.info("seed_loaded path=%s patients=%s", str(seed_path), len(bundles))
    return store
