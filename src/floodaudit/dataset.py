"""Caller-owned handle to the cleaned dataset for a session."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from .loader import load_and_clean
from .models import CleanRecord, LoadReport

logger = logging.getLogger(__name__)


class DatasetNotLoadedError(RuntimeError):
    """Raised when reports are requested before any dataset was loaded."""


class DatasetHandle:
    """Holds the cleaned records so a session can load once and report many times.

    A load replaces the held records only after it completes; a failing load
    propagates its error and leaves the previous dataset in place.
    """

    def __init__(self) -> None:
        self._records: Optional[Tuple[CleanRecord, ...]] = None
        self.source: Optional[Path] = None
        self.last_report: Optional[LoadReport] = None

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> Tuple[CleanRecord, ...]:
        if self._records is None:
            raise DatasetNotLoadedError("No data loaded. Please load the CSV file first (option 1).")
        return self._records

    def load(self, path: Path) -> LoadReport:
        records, report = load_and_clean(path)
        self._records = tuple(records)
        self.source = Path(path)
        self.last_report = report
        logger.debug("Dataset replaced from %s (%s records)", path, len(records))
        return report
