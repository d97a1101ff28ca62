"""Forgiving converters for the text cells found in DPWH project exports."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"


def _strip(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_float_safe(value: object | None) -> Optional[float]:
    """Parse ``value`` as a float, tolerating thousands separators and padding.

    Returns ``None`` for blanks, anything containing letters (``"12abc"``,
    ``"nan"``, ``"1e5"``) or digit-group underscores (``"1_000"``), and
    anything else ``float`` rejects.
    """

    text = _strip(value)
    if text is None:
        return None
    if "_" in text or any(ch.isascii() and ch.isalpha() for ch in text):
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def parse_int_safe(value: object | None) -> Optional[int]:
    text = _strip(value)
    if text is None:
        return None
    if "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_date_safe(value: object | None) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` date; anything else yields ``None``."""

    text = _strip(value)
    if text is None:
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def days_between(start: date, end: date) -> float:
    return float((end - start).days)


def clean_text(value: object | None, default: str) -> str:
    return _strip(value) or default
