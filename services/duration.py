"""Duration text parsing and walltime arithmetic for bookings.

Durations arrive as free text ("1 hour 30 minutes", "45 mins"). A booking is
never rejected for an unreadable duration: the parser falls back to a minimal
30 minute block and tells the caller it did so.
"""
from __future__ import annotations

import re
from typing import NamedTuple

DEFAULT_MINUTES = 30
MINUTES_PER_DAY = 24 * 60

_LEADING_INT = re.compile(r"^[+-]?\d+")
_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


class DurationResult(NamedTuple):
    minutes: int
    defaulted: bool


def _leading_int(token: str) -> int | None:
    match = _LEADING_INT.match(token)
    return int(match.group(0)) if match else None


def parse_duration(text: str | None) -> DurationResult:
    """Parse "<int> hour[s] [<int> minute[s]]" or "<int> minute[s]".

    Tokens are consumed pairwise (value, unit). Units are matched by prefix,
    case-insensitively. Anything unreadable, or a total that is not positive,
    yields ``DurationResult(30, defaulted=True)``.
    """
    if not text or not isinstance(text, str):
        return DurationResult(DEFAULT_MINUTES, True)

    parts = text.split()
    total = 0
    for i in range(0, len(parts), 2):
        value = _leading_int(parts[i]) or 0
        unit = parts[i + 1].lower() if i + 1 < len(parts) else ""
        if unit.startswith("hour"):
            total += value * 60
        elif unit.startswith("min"):
            total += value

    if total <= 0:
        return DurationResult(DEFAULT_MINUTES, True)
    return DurationResult(total, False)


def duration_to_minutes(text: str | None) -> int:
    return parse_duration(text).minutes


def time_to_minutes(hhmm: str) -> int:
    match = _HHMM.match(hhmm.strip()) if isinstance(hhmm, str) else None
    if not match:
        raise ValueError(f"Invalid time {hhmm!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59:
        raise ValueError(f"Invalid time {hhmm!r}, expected HH:MM")
    return hours * 60 + minutes


def minutes_to_time(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def compute_end_time(start_time: str, minutes: int) -> str:
    """Add ``minutes`` to an "HH:MM" start. The result may pass 23:59."""
    return minutes_to_time(time_to_minutes(start_time) + minutes)


def is_valid_time(hhmm: str) -> bool:
    try:
        return time_to_minutes(hhmm) < MINUTES_PER_DAY
    except ValueError:
        return False


def crosses_midnight(start_time: str, end_time: str) -> bool:
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    return end >= MINUTES_PER_DAY or end <= start
