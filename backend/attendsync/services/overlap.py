"""Time-window primitives shared by the conflict scanner and the schedule store.

Times are zero-padded ``HH:MM`` strings, so lexicographic order equals
chronological order within a day. Callers normalise input through
:func:`validate_time_range` before comparing.
"""

from __future__ import annotations

from datetime import date

from attendsync.core.exceptions import InvalidInputError
from attendsync.models.timetable import Weekday
from attendsync.schemas.timetable import normalize_time

# Indexed by date.weekday(); strftime("%A") would follow the process locale.
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open overlap test: touching windows such as 09:00-10:00 and 10:00-11:00 do not overlap."""
    return not (a_end <= b_start or a_start >= b_end)


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def weekday_for_date(value: date) -> Weekday | None:
    """Scheduled weekday for a calendar date; ``None`` on Sunday, which never has classes."""
    name = weekday_name(value)
    if name == "Sunday":
        return None
    return Weekday(name)


def validate_time_range(start_time: str, end_time: str) -> tuple[str, str]:
    try:
        start = normalize_time(start_time)
        end = normalize_time(end_time)
    except ValueError as exc:
        raise InvalidInputError(str(exc), details={"start_time": start_time, "end_time": end_time}) from exc
    if end <= start:
        raise InvalidInputError(
            "End time must be after start time",
            details={"start_time": start, "end_time": end},
        )
    return start, end
