from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from glycorisk.assessment.service import assess_profile
from glycorisk.internal_core.contracts import PatientBundle
from glycorisk.internal_core.record_store import PatientNotFoundError
from glycorisk.profile.keywords import load_keyword_dictionary
from glycorisk.profile.projector import project_risk_factor_profile


def assess_bundle_file(
    bundle_path: Path,
    *,
    today: date | None = None,
    keywords_path: Path | None = None,
) -> dict[str, Any]:
    bundle = PatientBundle.model_validate_json(bundle_path.read_text(encoding="utf-8"))
    profile = project_risk_factor_profile(
        bundle,
        today=today,
        keywords=load_keyword_dictionary(keywords_path),
    )
    result = asdict(assess_profile(profile, today=today))
    result["next_screening_date"] = result["next_screening_date"].isoformat()
    result["patient_id"] = bundle.demographics.patient_id if bundle.demographics else None
    return result


def _parse_today(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise SystemExit(f"invalid --today value (expected YYYY-MM-DD): {raw}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Assess diabetes risk for one patient bundle stored as JSON"
    )
    parser.add_argument(
        "--bundle",
        required=True,
        help="Path to a patient bundle JSON file (demographics, vitals, labs, history, ...).",
    )
    parser.add_argument(
        "--today",
        default=None,
        help="Reference date for age and screening date (default: current UTC date).",
    )
    parser.add_argument(
        "--keywords",
        default=None,
        help="Optional keyword dictionary extension JSON.",
    )
    args = parser.parse_args(argv)

    bundle_path = Path(args.bundle).expanduser()
    if not bundle_path.exists():
        raise SystemExit(f"bundle file not found: {bundle_path}")
    keywords_path = Path(args.keywords).expanduser() if args.keywords else None
    if keywords_path is not None and not keywords_path.exists():
        raise SystemExit(f"keywords file not found: {keywords_path}")

    try:
        result = assess_bundle_file(
            bundle_path,
            today=_parse_today(args.today),
            keywords_path=keywords_path,
        )
    except PatientNotFoundError as exc:
        raise SystemExit(f"bundle has no demographics: {exc}") from exc
    except ValidationError as exc:
        raise SystemExit(f"invalid bundle {bundle_path}: {exc.error_count()} validation error(s)\n{exc}") from exc

    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
