"""
Reporting and export utilities for build runs.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .models import BuildReport, Outcome


logger = logging.getLogger(__name__)


def report_frame(report: BuildReport) -> pd.DataFrame:
    """One row per plan entry, in build order."""
    rows = [
        {
            "position": index,
            "package": result.name,
            "outcome": result.outcome.value,
            "reason": result.reason or "",
        }
        for index, result in enumerate(report.results, start=1)
    ]
    return pd.DataFrame(rows, columns=["position", "package", "outcome", "reason"])


def outcome_counts(report: BuildReport) -> Dict[str, int]:
    frame = report_frame(report)
    counts = frame["outcome"].value_counts() if not frame.empty else pd.Series(dtype=int)
    return {outcome.value: int(counts.get(outcome.value, 0)) for outcome in Outcome}


def print_summary(report: BuildReport) -> None:
    counts = outcome_counts(report)
    logger.info("=" * 60)
    logger.info("BUILD SUMMARY")
    logger.info("=" * 60)
    for result in report.results:
        line = f"{result.name:<40} {result.outcome.value}"
        if result.reason and result.outcome in (Outcome.FAILED, Outcome.SKIPPED):
            line += f" ({result.reason})"
        logger.info(line)
    logger.info("-" * 60)
    logger.info(
        "Built: %d  Already satisfied: %d  Failed: %d  Skipped: %d",
        counts["built"],
        counts["already_satisfied"],
        counts["failed"],
        counts["skipped"],
    )
    logger.info("=" * 60)


def save_report_json(report: BuildReport, output_dir: Path, label: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_file = output_dir / f"{label}_build_report.json"
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "succeeded": report.succeeded,
        "counts": outcome_counts(report),
        "results": report_frame(report).to_dict(orient="records"),
    }
    with open(report_file, "w") as f:
        json.dump(payload, f, indent=2, default=str)
    return report_file


def export_report_csv(report: BuildReport, output_dir: Path, label: str) -> Optional[Path]:
    if not report.results:
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / f"{label}_build_report.csv"
    report_frame(report).to_csv(csv_file, index=False)
    return csv_file
