"""Date/time parsing and normalization helpers."""

from __future__ import annotations

import datetime
import re
from typing import Any

from dateutil import parser as date_parser

# Sunday-first, matching the stored day_of_week convention (0=Sunday).
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_HHMM_PATTERN = re.compile(r"([01]?\d|2[0-3])\s*:\s*([0-5]\d)(?::[0-5]\d(?:\.\d+)?)?")


def sunday_weekday(value: datetime.date) -> int:
    """Weekday of ``value`` with Sunday=0 ... Saturday=6."""
    return (value.weekday() + 1) % 7


def parse_local_date(value: Any) -> datetime.date:
    """Return the calendar date of ``value`` without any timezone shift.

    ``"2025-03-01"`` is March 1 everywhere. Datetimes (aware or naive) keep
    their own wall-clock date; they are never converted to UTC first.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            pass
        try:
            return date_parser.isoparse(text).date()
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Invalid date: {value!r}") from exc
    raise ValueError(f"Invalid date: {value!r}")


def try_parse_date(value: Any) -> datetime.date | None:
    try:
        return parse_local_date(value)
    except ValueError:
        return None


def normalize_hhmm(value: Any) -> str | None:
    """Normalize ``"8:05"``, ``"08:05:00"`` or a ``time`` to ``"08:05"``."""
    if isinstance(value, datetime.time):
        return f"{value.hour:02d}:{value.minute:02d}"
    if not isinstance(value, str):
        return None
    match = _HHMM_PATTERN.fullmatch(value.strip())
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{int(match.group(2)):02d}"


def hhmm_to_time(value: str) -> datetime.time:
    hours, minutes = value.split(":")[:2]
    return datetime.time(int(hours), int(minutes))
