from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _project_root() -> Path:
    # glycorisk/internal_core/config.py -> glycorisk -> project
    return Path(__file__).resolve().parents[2]


def _resolve_optional_path(raw: str) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = _project_root() / candidate
    try:
        return str(candidate.resolve())
    except Exception:
        return str(candidate)


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bounded_int(name: str, default: int, *, min_value: int, max_value: int) -> int:
    return max(min_value, min(max_value, _getenv_int(name, default)))


@dataclass(frozen=True)
class EngineConfig:
    GLYCORISK_LOG_LEVEL: str
    GLYCORISK_KEYWORDS_PATH: str
    GLYCORISK_SEED_PATH: str
    GLYCORISK_FETCH_MAX_WORKERS: int
    GLYCORISK_BULK_MAX_WORKERS: int
    GLYCORISK_BULK_MAX_PATIENTS: int
    GLYCORISK_OVERVIEW_LIMIT: int
    GLYCORISK_TODAY_OVERRIDE: Optional[str]

    def keywords_path(self) -> Optional[Path]:
        return Path(self.GLYCORISK_KEYWORDS_PATH) if self.GLYCORISK_KEYWORDS_PATH else None

    def seed_path(self) -> Optional[Path]:
        return Path(self.GLYCORISK_SEED_PATH) if self.GLYCORISK_SEED_PATH else None


# Each bulk worker opens its own fetch pool; bulk x fetch stays under this.
MAX_TOTAL_WORKER_THREADS = 256


def load_config() -> EngineConfig:
    today_override = _getenv_str("GLYCORISK_TODAY_OVERRIDE", "").strip() or None
    bulk_workers = _getenv_bounded_int("GLYCORISK_BULK_MAX_WORKERS", 8, min_value=1, max_value=64)
    fetch_workers = _getenv_bounded_int("GLYCORISK_FETCH_MAX_WORKERS", 7, min_value=1, max_value=32)
    fetch_workers = max(1, min(fetch_workers, MAX_TOTAL_WORKER_THREADS // bulk_workers))
    return EngineConfig(
        GLYCORISK_LOG_LEVEL=_getenv_str("GLYCORISK_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        GLYCORISK_KEYWORDS_PATH=_resolve_optional_path(_getenv_str("GLYCORISK_KEYWORDS_PATH", "")),
        GLYCORISK_SEED_PATH=_resolve_optional_path(_getenv_str("GLYCORISK_SEED_PATH", "")),
        GLYCORISK_FETCH_MAX_WORKERS=fetch_workers,
        GLYCORISK_BULK_MAX_WORKERS=bulk_workers,
        GLYCORISK_BULK_MAX_PATIENTS=_getenv_bounded_int(
            "GLYCORISK_BULK_MAX_PATIENTS", 500, min_value=1, max_value=10000
        ),
        GLYCORISK_OVERVIEW_LIMIT=_getenv_bounded_int(
            "GLYCORISK_OVERVIEW_LIMIT", 50, min_value=1, max_value=10000
        ),
        GLYCORISK_TODAY_OVERRIDE=today_override,
    )
