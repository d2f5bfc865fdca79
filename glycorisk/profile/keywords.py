from __future__ import annotations

"""
Keyword-dictionary classifier for free-text history blocks.

Design intent:
- Map each outcome to an ordered trigger set so dictionaries stay auditable.
- Match case-insensitive substrings on normalized text (English and Thai triggers).
- Never fail on odd text: no match falls back to the category default.
"""

import json
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Sequence, Union

Pattern = Union[str, tuple[str, ...]]

_WS_RE = re.compile(r"\s+")
_SLEEP_HOURS_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|ชั่วโมง)",
    re.IGNORECASE,
)


def normalize_text(text: str | None) -> str:
    return _WS_RE.sub(" ", str(text or "").lower()).strip()


def _normalize_pattern(pattern: Pattern) -> Pattern:
    if isinstance(pattern, str):
        return normalize_text(pattern)
    return tuple(normalize_text(part) for part in pattern)


def _pattern_matches(pattern: Pattern, text: str, *, exact: bool) -> bool:
    if isinstance(pattern, str):
        if not pattern:
            return False
        return text == pattern if exact else pattern in text
    parts = [part for part in pattern if part]
    return bool(parts) and all(part in text for part in parts)


@dataclass(frozen=True)
class KeywordCategory:
    name: str
    buckets: tuple[tuple[str, tuple[Pattern, ...]], ...]
    default: str
    gate: tuple[str, ...] = ()
    gated_default: str | None = None
    exact: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "buckets",
            tuple(
                (outcome, tuple(_normalize_pattern(p) for p in patterns))
                for outcome, patterns in self.buckets
            ),
        )
        object.__setattr__(self, "gate", tuple(normalize_text(item) for item in self.gate))

    @property
    def outcomes(self) -> list[str]:
        return [outcome for outcome, _ in self.buckets]

    def classify(self, text: str | None) -> str:
        normalized = normalize_text(text)
        if not normalized:
            return self.default
        if self.gate and not any(trigger and trigger in normalized for trigger in self.gate):
            return self.default
        for outcome, patterns in self.buckets:
            if any(_pattern_matches(p, normalized, exact=self.exact) for p in patterns):
                return outcome
        if self.gate and self.gated_default is not None:
            return self.gated_default
        return self.default

    def extended(self, additions: Mapping[str, Sequence[Any]]) -> "KeywordCategory":
        known = set(self.outcomes)
        extra_gate: list[str] = []
        extra_by_outcome: dict[str, list[Pattern]] = {}
        for key, values in additions.items():
            if not isinstance(values, (list, tuple)):
                raise ValueError(f"Triggers for '{self.name}.{key}' must be a list.")
            if key == "gate":
                if not self.gate:
                    raise ValueError(f"Category '{self.name}' has no gate to extend.")
                extra_gate.extend(str(item) for item in values)
                continue
            if key not in known:
                raise ValueError(f"Unknown outcome '{key}' for keyword category '{self.name}'.")
            extra_by_outcome[key] = [_coerce_pattern(item) for item in values]

        buckets = tuple(
            (outcome, tuple(patterns) + tuple(extra_by_outcome.get(outcome, [])))
            for outcome, patterns in self.buckets
        )
        return replace(self, buckets=buckets, gate=self.gate + tuple(extra_gate))


def _coerce_pattern(item: Any) -> Pattern:
    if isinstance(item, (list, tuple)):
        return tuple(str(part) for part in item)
    return str(item)


class KeywordDictionary:
    def __init__(self, categories: Sequence[KeywordCategory]):
        self._categories: dict[str, KeywordCategory] = {}
        for category in categories:
            if category.name in self._categories:
                raise ValueError(f"Duplicate keyword category: {category.name}")
            self._categories[category.name] = category

    def __contains__(self, name: object) -> bool:
        return name in self._categories

    def category(self, name: str) -> KeywordCategory:
        try:
            return self._categories[name]
        except KeyError as exc:
            raise KeyError(f"Unknown keyword category: {name}") from exc

    def names(self) -> list[str]:
        return list(self._categories)

    def classify(self, name: str, text: str | None) -> str:
        return self.category(name).classify(text)

    def flag(self, name: str, text: str | None) -> bool:
        return self.classify(name, text) == "present"

    def extended(self, additions: Mapping[str, Mapping[str, Sequence[Any]]]) -> "KeywordDictionary":
        for name in additions:
            if name not in self._categories:
                raise ValueError(f"Unknown keyword category: {name}")
        return KeywordDictionary(
            [
                category.extended(additions[name]) if name in additions else category
                for name, category in self._categories.items()
            ]
        )


def extract_sleep_hours(text: str | None) -> float | None:
    match = _SLEEP_HOURS_RE.search(str(text or ""))
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def _flag(name: str, *triggers: Pattern) -> KeywordCategory:
    return KeywordCategory(
        name=name,
        buckets=(("present", tuple(triggers)),),
        default="absent",
    )


DEFAULT_CATEGORIES: tuple[KeywordCategory, ...] = (
    _flag("family_history_diabetes", "เบาหวาน", "diabetes", "diabetic", "น้ำตาล"),
    _flag("family_history_hypertension", "ความดัน", "hypertension", "high blood pressure", "bp"),
    _flag("smoking", "สูบ", "smoke", "smoking", "smoker", "cigarette"),
    KeywordCategory(
        name="physical_activity",
        gate=("ออกกำลังกาย", "exercise"),
        buckets=(
            ("high", ("ทุกวัน", "daily")),
            ("moderate", ("สัปดาห์", "week")),
        ),
        default="low",
        gated_default="low",
    ),
    KeywordCategory(
        name="alcohol_consumption",
        gate=("ดื่ม", "alcohol"),
        buckets=(
            ("heavy", ("มาก", "heavy")),
            ("moderate", ("ปานกลาง", "moderate")),
        ),
        default="none",
        gated_default="light",
    ),
    _flag(
        "gestational_diabetes",
        ("เบาหวาน", "ตั้งครรภ์"),
        "gestational diabetes",
        ("diabetes", "pregnan"),
    ),
    _flag("pcos", "pcos", "ถุงน้ำ", "polycystic ovar"),
    _flag("chronic_hypertension", "hypertension", "ความดันโลหิตสูง"),
    _flag("chronic_dyslipidemia", "dyslipidemia", "ไขมันในเลือดสูง"),
    _flag("chronic_cardiovascular", "cardiovascular", "โรคหัวใจ"),
    KeywordCategory(
        name="stress",
        buckets=(
            ("high", ("เครียดมาก", "high stress")),
            ("low", ("เครียดน้อย", "low stress")),
        ),
        default="moderate",
    ),
    KeywordCategory(
        name="diet_quality",
        # Longest phrase first: "อาหารดีมาก" contains "อาหารดี".
        buckets=(
            ("excellent", ("อาหารดีมาก", "excellent diet")),
            ("poor", ("อาหารไม่ดี", "poor diet")),
            ("good", ("อาหารดี", "healthy diet", "good diet")),
        ),
        default="fair",
    ),
    KeywordCategory(
        name="gender",
        buckets=(
            ("female", ("female", "f", "woman", "หญิง", "ผู้หญิง", "เพศหญิง")),
            ("male", ("male", "m", "man", "ชาย", "ผู้ชาย", "เพศชาย")),
        ),
        default="male",
        exact=True,
    ),
)


def default_keyword_dictionary() -> KeywordDictionary:
    return KeywordDictionary(DEFAULT_CATEGORIES)


def load_keyword_dictionary(path: Path | None) -> KeywordDictionary:
    """
    Build the default dictionary extended with triggers from a JSON file.

    File shape: {"category": {"outcome": ["trigger", ["all", "of"]], "gate": [...]}}
    """
    base = default_keyword_dictionary()
    if path is None:
        return base
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Keyword file must hold a JSON object: {path}")
    unknown = sorted(name for name in data if name not in base)
    if unknown:
        raise ValueError(
            f"Unknown keyword categories in {path}: {', '.join(unknown)}; "
            f"known: {', '.join(base.names())}"
        )
    for name, additions in data.items():
        if not isinstance(additions, dict):
            raise ValueError(f"Keyword additions for '{name}' must be an object.")
    return base.extended(data)
