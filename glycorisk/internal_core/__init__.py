from .config import EngineConfig, load_config
from .record_store import InMemoryPatientRecordStore, PatientNotFoundError, PatientRecordSource

__all__ = [
    "EngineConfig",
    "load_config",
    "InMemoryPatientRecordStore",
    "PatientNotFoundError",
    "PatientRecordSource",
]
