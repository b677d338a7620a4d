"""Heuristic date parsing for ticket exports.

Real-world exports mix regional conventions and raw spreadsheet serials. Each
format is handled by a named strategy, tried in order:

  1. ``iso8601``            - ISO-8601 / RFC 3339 strings (via pandas)
  2. ``day_first_numeric``  - DD/MM/YYYY, DD-MM-YYYY, DD.MM.YYYY (+ time, AM/PM)
     ``month_first_numeric`` - the same text read as MM/DD/YYYY, used only when
                              the day-first reading is not a real calendar date
                              (second component > 12)
  3. ``year_first_numeric`` - YYYY-MM-DD, YYYY/MM/DD (+ time)
  4. ``named_month``        - "15 Jan 2025", "15-Jan-2025", "Jan 15, 2025"
  5. ``spreadsheet_serial`` - days since 1899-12-30, accepted in (0, 100000)

Numeric dates with both components <= 12 are always read day-first. The
writer's locale cannot be recovered from the text, so no further guessing is
attempted. Naive date-times are treated as UTC.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional, Tuple

import pandas as pd


EXCEL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
SERIAL_BOUNDS = (0.0, 100000.0)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_ALT = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
_TIME = r"(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?"

DAY_MONTH_YEAR_RX = re.compile(
    r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*(AM|PM))?)?$",
    re.IGNORECASE,
)
YEAR_MONTH_DAY_RX = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})" + _TIME + "$")
DAY_NAMED_MONTH_RX = re.compile(
    r"^(\d{1,2})[\s\-](" + _MONTH_ALT + r")[a-z]*[\s\-](\d{4})" + _TIME + "$",
    re.IGNORECASE,
)
NAMED_MONTH_DAY_RX = re.compile(
    r"^(" + _MONTH_ALT + r")[a-z]*\s+(\d{1,2}),?\s+(\d{4})" + _TIME + "$",
    re.IGNORECASE,
)
NUMERIC_RX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")


def to_iso(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _build(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> Optional[datetime]:
    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except ValueError:
        return None


def _time_parts(groups: Tuple[Optional[str], ...]) -> Tuple[int, int, int]:
    hour, minute, second = (int(g) if g else 0 for g in groups)
    return hour, minute, second


def _parse_iso8601(text: str) -> Optional[Tuple[datetime, str]]:
    if NUMERIC_RX.match(text):
        # bare numbers are spreadsheet serials, not years
        return None
    try:
        ts = pd.to_datetime(text, format="ISO8601", utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime(), "iso8601"


def _parse_day_month_year(text: str) -> Optional[Tuple[datetime, str]]:
    m = DAY_MONTH_YEAR_RX.match(text)
    if not m:
        return None
    first, second, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    hour, minute, sec = _time_parts(m.group(4, 5, 6))
    meridiem = (m.group(7) or "").upper()
    if meridiem == "PM" and hour < 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0

    parsed = _build(year, second, first, hour, minute, sec)
    if parsed is not None:
        return parsed, "day_first_numeric"
    if second > 12 and first <= 12:
        parsed = _build(year, first, second, hour, minute, sec)
        if parsed is not None:
            return parsed, "month_first_numeric"
    return None


def _parse_year_month_day(text: str) -> Optional[Tuple[datetime, str]]:
    m = YEAR_MONTH_DAY_RX.match(text)
    if not m:
        return None
    hour, minute, sec = _time_parts(m.group(4, 5, 6))
    parsed = _build(int(m.group(1)), int(m.group(2)), int(m.group(3)), hour, minute, sec)
    return (parsed, "year_first_numeric") if parsed else None


def _parse_named_month(text: str) -> Optional[Tuple[datetime, str]]:
    m = DAY_NAMED_MONTH_RX.match(text)
    if m:
        day, month_name, year = int(m.group(1)), m.group(2), int(m.group(3))
    else:
        m = NAMED_MONTH_DAY_RX.match(text)
        if not m:
            return None
        month_name, day, year = m.group(1), int(m.group(2)), int(m.group(3))
    hour, minute, sec = _time_parts(m.group(4, 5, 6))
    parsed = _build(year, MONTHS[month_name[:3].lower()], day, hour, minute, sec)
    return (parsed, "named_month") if parsed else None


def _parse_serial(text: str) -> Optional[Tuple[datetime, str]]:
    if not NUMERIC_RX.match(text):
        return None
    serial = float(text)
    low, high = SERIAL_BOUNDS
    if not (low < serial < high) or math.isnan(serial):
        return None
    return EXCEL_EPOCH + timedelta(milliseconds=round(serial * 86400000)), "spreadsheet_serial"


DATE_STRATEGIES: Tuple[Callable[[str], Optional[Tuple[datetime, str]]], ...] = (
    _parse_iso8601,
    _parse_day_month_year,
    _parse_year_month_day,
    _parse_named_month,
    _parse_serial,
)


def parse_date_with_strategy(raw: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(iso_string, strategy_name)``; ``(None, None)`` when unparseable."""

    if raw is None:
        return None, None
    if isinstance(raw, float) and math.isnan(raw):
        return None, None
    if isinstance(raw, datetime):
        return to_iso(raw), "native"
    if isinstance(raw, date):
        return to_iso(datetime(raw.year, raw.month, raw.day)), "native"
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        raw = repr(raw)

    text = str(raw).strip()
    if not text:
        return None, None
    for strategy in DATE_STRATEGIES:
        result = strategy(text)
        if result is not None:
            parsed, name = result
            return to_iso(parsed), name
    return None, None


def parse_date(raw: Any) -> Optional[str]:
    """Parse a heterogeneous date value into an ISO-8601 UTC string, or None."""
    return parse_date_with_strategy(raw)[0]
