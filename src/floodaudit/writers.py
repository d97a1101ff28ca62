"""CSV/JSON writers and console previews for generated reports."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Sequence, Type

import pandas as pd

from .models import (
    ContractorRankingRow,
    RegionSummaryRow,
    ReportBundle,
    SummaryStats,
    TypeTrendRow,
)
from .stats import format_number

logger = logging.getLogger(__name__)

REPORT1_FILENAME = "report1_regional_summary.csv"
REPORT2_FILENAME = "report2_contractor_ranking.csv"
REPORT3_FILENAME = "report3_annual_trends.csv"
SUMMARY_FILENAME = "summary.json"

# Two-decimal columns rendered with thousands separators in previews.
_AMOUNT_COLUMNS = {
    "TotalBudget",
    "MedianSavings",
    "AvgDelay",
    "HighDelayPct",
    "EfficiencyScore",
    "TotalCost",
    "TotalSavings",
    "ReliabilityIndex",
    "AvgSavings",
    "OverrunRate",
    "YoYChange",
}


def rows_to_frame(rows: Sequence[object], row_type: Type) -> pd.DataFrame:
    """Build a DataFrame with ``row_type``'s headers, even when ``rows`` is empty."""

    if not rows:
        return pd.DataFrame(columns=row_type.headers())
    return pd.DataFrame([row.to_record() for row in rows], columns=row_type.headers())


def _pretty(value: object) -> object:
    try:
        numeric = float(str(value).replace(",", ""))
    except ValueError:
        return value
    return format_number(numeric, 2)


def preview_table(rows: Sequence[object], row_type: Type, max_rows: int) -> str:
    """Render the first ``max_rows`` rows with thousands separators."""

    frame = rows_to_frame(rows, row_type).head(max_rows).copy()
    if frame.empty:
        return "(no rows)"
    for column in frame.columns:
        if column in _AMOUNT_COLUMNS:
            frame[column] = frame[column].map(_pretty)
    return frame.to_string(index=False)


def write_report_csv(path: Path, rows: Sequence[object], row_type: Type) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows_to_frame(rows, row_type).to_csv(path, index=False)
    return path


def write_summary_json(path: Path, summary: SummaryStats) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
    return path


def write_outputs(bundle: ReportBundle, output_dir: Path) -> Dict[str, Path]:
    """
    Write every report artifact under ``output_dir`` and return their paths.

    A failed write is logged and left out of the returned mapping; the
    remaining artifacts are still attempted.
    """

    output_dir = Path(output_dir)
    jobs = [
        ("report1", output_dir / REPORT1_FILENAME, bundle.regional, RegionSummaryRow),
        ("report2", output_dir / REPORT2_FILENAME, bundle.contractors, ContractorRankingRow),
        ("report3", output_dir / REPORT3_FILENAME, bundle.trends, TypeTrendRow),
    ]
    paths: Dict[str, Path] = {}
    for key, path, rows, row_type in jobs:
        try:
            paths[key] = write_report_csv(path, rows, row_type)
        except OSError as exc:
            logger.error("Write error: %s", exc)
    if bundle.summary is not None:
        try:
            paths["summary"] = write_summary_json(output_dir / SUMMARY_FILENAME, bundle.summary)
        except OSError as exc:
            logger.error("Write error: %s", exc)
    return paths
