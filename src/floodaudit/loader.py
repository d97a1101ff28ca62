"""
Load and clean DPWH flood control project exports.

The loader reads the raw CSV, validates each row, derives cost savings and
completion delay, and fills missing coordinates from three sources in turn:
the project's own latitude/longitude, the provincial capital, and finally the
mean position of other projects in the same province.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import REQUIRED_COLUMNS, CleanRecord, LoadReport, RawFields
from .parsing import clean_text, days_between, parse_date_safe, parse_float_safe, parse_int_safe

logger = logging.getLogger(__name__)

MIN_FUNDING_YEAR = 2021
MAX_FUNDING_YEAR = 2023

DEFAULT_REGION = "Unknown"
DEFAULT_ISLAND = "Unknown"
DEFAULT_PROVINCE = "Unknown"
DEFAULT_TYPE_OF_WORK = "Unspecified"
DEFAULT_CONTRACTOR = "Unknown Contractor"

# DictReader fills these for rows shorter/longer than the header.
_EXTRA_FIELDS = "__extra__"
# Undecodable bytes are read as U+FFFD so one bad row cannot abort the file.
_REPLACEMENT_CHAR = "\ufffd"


class DatasetSchemaError(ValueError):
    """Raised when the input header lacks one or more required columns."""


class _RowRejected(Exception):
    """Internal signal for a row that fails validation."""


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


def _resolve_coordinates(raw: RawFields) -> Tuple[Optional[float], Optional[float]]:
    lat = parse_float_safe(raw.project_latitude)
    lon = parse_float_safe(raw.project_longitude)
    if lat is None:
        lat = parse_float_safe(raw.capital_latitude)
    if lon is None:
        lon = parse_float_safe(raw.capital_longitude)
    return lat, lon


def clean_row(raw: RawFields) -> Optional[CleanRecord]:
    """
    Validate a single raw row.

    Returns ``None`` when the funding year falls outside 2021-2023 (a filter,
    not an error) and raises ``_RowRejected`` when a required budget, cost,
    or start date is missing or invalid.  Province-level coordinate
    imputation happens later in :func:`impute_province_coordinates`.
    """

    funding_year = parse_int_safe(raw.funding_year)
    if funding_year is None or not MIN_FUNDING_YEAR <= funding_year <= MAX_FUNDING_YEAR:
        return None

    approved_budget = _positive(parse_float_safe(raw.approved_budget))
    if approved_budget is None:
        raise _RowRejected(f"invalid ApprovedBudgetForContract {raw.approved_budget!r}")
    contract_cost = _positive(parse_float_safe(raw.contract_cost))
    if contract_cost is None:
        raise _RowRejected(f"invalid ContractCost {raw.contract_cost!r}")

    start_date = parse_date_safe(raw.start_date)
    if start_date is None:
        raise _RowRejected(f"invalid StartDate {raw.start_date!r}")
    completion_date = parse_date_safe(raw.actual_completion_date) or start_date

    lat, lon = _resolve_coordinates(raw)

    return CleanRecord(
        funding_year=funding_year,
        region=clean_text(raw.region, DEFAULT_REGION),
        main_island=clean_text(raw.main_island, DEFAULT_ISLAND),
        province=clean_text(raw.province, DEFAULT_PROVINCE),
        type_of_work=clean_text(raw.type_of_work, DEFAULT_TYPE_OF_WORK),
        contractor=clean_text(raw.contractor, DEFAULT_CONTRACTOR),
        approved_budget=approved_budget,
        contract_cost=contract_cost,
        cost_savings=approved_budget - contract_cost,
        completion_delay_days=days_between(start_date, completion_date),
        lat=lat,
        lon=lon,
    )


def province_centroids(records: Iterable[CleanRecord]) -> Dict[str, Tuple[float, float]]:
    """Mean (lat, lon) per province over records carrying both coordinates."""

    sums: Dict[str, List[float]] = {}
    for record in records:
        if not record.has_coordinates:
            continue
        acc = sums.setdefault(record.province, [0.0, 0.0, 0.0])
        acc[0] += record.lat  # type: ignore[operator]
        acc[1] += record.lon  # type: ignore[operator]
        acc[2] += 1
    return {province: (lat / count, lon / count) for province, (lat, lon, count) in sums.items()}


def impute_province_coordinates(records: Sequence[CleanRecord]) -> Tuple[List[CleanRecord], int]:
    """Fill missing coordinate components from province means.

    Returns the updated records and the number of records that received a
    value.  Records in provinces without any fully-coordinated project are
    returned unchanged.
    """

    centroids = province_centroids(records)
    out: List[CleanRecord] = []
    imputed = 0
    for record in records:
        centroid = centroids.get(record.province)
        if record.has_coordinates or centroid is None:
            out.append(record)
            continue
        out.append(
            replace(
                record,
                lat=record.lat if record.lat is not None else centroid[0],
                lon=record.lon if record.lon is not None else centroid[1],
            )
        )
        imputed += 1
    return out, imputed


def clean_records(raw_rows: Iterable[RawFields]) -> Tuple[List[CleanRecord], LoadReport]:
    """Clean ``raw_rows`` and impute coordinates; see :func:`clean_row`."""

    total_rows = 0
    parse_errors = 0
    skipped_rows = 0
    prelim: List[CleanRecord] = []

    for raw in raw_rows:
        total_rows += 1
        try:
            record = clean_row(raw)
        except _RowRejected as exc:
            parse_errors += 1
            logger.debug("Row %s rejected: %s", total_rows, exc)
            continue
        if record is None:
            skipped_rows += 1
            continue
        prelim.append(record)

    records, imputed = impute_province_coordinates(prelim)
    report = LoadReport(
        total_rows=total_rows,
        filtered_rows=len(records),
        parse_errors=parse_errors,
        imputed_coords=imputed,
        skipped_rows=skipped_rows,
    )
    return records, report


def read_raw_rows(path: Path) -> Tuple[List[RawFields], int]:
    """
    Read the CSV at ``path`` into :class:`RawFields`.

    Returns the well-formed rows and the count of malformed rows: rows whose
    field count does not match the header, rows with bytes that are not
    valid UTF-8, and rows the csv module cannot tokenize (e.g. a cell over
    ``csv.field_size_limit()``).  Raises :class:`DatasetSchemaError` when
    required columns are missing and ``OSError`` when the file cannot be read.
    """

    rows: List[RawFields] = []
    malformed = 0
    with Path(path).open(newline="", encoding="utf-8-sig", errors="replace") as handle:
        reader = csv.DictReader(handle, restkey=_EXTRA_FIELDS)
        header = reader.fieldnames or []
        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise DatasetSchemaError(f"{path}: missing required columns: {', '.join(missing)}")
        while True:
            try:
                line = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                # The reader has consumed the offending line; keep going.
                malformed += 1
                logger.debug("Line %s unreadable: %s", reader.line_num, exc)
                continue
            if _has_undecodable(line):
                malformed += 1
                logger.debug("Line %s is not valid UTF-8", reader.line_num)
                continue
            if _EXTRA_FIELDS in line or any(value is None for value in line.values()):
                malformed += 1
                logger.debug("Line %s has %s fields; expected %s", reader.line_num, _field_count(line), len(header))
                continue
            rows.append(RawFields.from_mapping(line))
    return rows, malformed


def _has_undecodable(line: Dict[str, object]) -> bool:
    for value in line.values():
        cells = value if isinstance(value, list) else [value]
        if any(isinstance(cell, str) and _REPLACEMENT_CHAR in cell for cell in cells):
            return True
    return False


def _field_count(line: Dict[str, object]) -> int:
    present = sum(1 for key, value in line.items() if key != _EXTRA_FIELDS and value is not None)
    extra = line.get(_EXTRA_FIELDS) or []
    return present + len(extra)  # type: ignore[arg-type]


def load_and_clean(path: Path) -> Tuple[List[CleanRecord], LoadReport]:
    """Read, validate, and enrich the project CSV at ``path``."""

    raw_rows, malformed = read_raw_rows(path)
    records, report = clean_records(raw_rows)
    report = replace(
        report,
        total_rows=report.total_rows + malformed,
        parse_errors=report.parse_errors + malformed,
    )
    logger.debug(
        "Loaded %s: %s rows, %s kept, %s errors, %s outside %s-%s",
        path,
        report.total_rows,
        report.filtered_rows,
        report.parse_errors,
        report.skipped_rows,
        MIN_FUNDING_YEAR,
        MAX_FUNDING_YEAR,
    )
    return records, report
