"""Time and text normalization shared by all source adapters.

Sources hand back times as "1:00 PM", ranges as "12:30 PM - 1:55 PM",
weekdays as abbreviation strings and dates as packed "YYYYMMDD" digits.
Everything here degrades leniently: unparseable input is passed through
or mapped to an empty/Unknown value, never raised.
"""

import re
from datetime import date, datetime

from src.collector.models import DayOfWeek

_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE)
_RANGE_RE = re.compile(
    r"(\d{1,2}:\d{2}\s*[AP]M)\s*-\s*(\d{1,2}:\d{2}\s*[AP]M)", re.IGNORECASE
)
_WHITESPACE_RE = re.compile(r"\s+")

# Search order matters: first abbreviation found wins
_WEEKDAY_ABBREVIATIONS: tuple[tuple[str, DayOfWeek], ...] = (
    ("mon", DayOfWeek.monday),
    ("tue", DayOfWeek.tuesday),
    ("wed", DayOfWeek.wednesday),
    ("thu", DayOfWeek.thursday),
    ("fri", DayOfWeek.friday),
    ("sat", DayOfWeek.saturday),
    ("sun", DayOfWeek.sunday),
)

_WEEKDAYS_BY_INDEX: tuple[DayOfWeek, ...] = tuple(day for _, day in _WEEKDAY_ABBREVIATIONS)


def parse_clock_time(text: str) -> str:
    """Convert a 12-hour clock string to 24-hour "HH:MM".

    "12:00 AM" becomes "00:00" and "12:00 PM" stays "12:00". Input that does
    not look like a 12-hour time is returned unchanged.

    Args:
        text: Time such as "1:00 PM", "9:15am" or "12:30 AM".

    Returns:
        Canonical "HH:MM" string, or ``text`` itself if it did not match.
    """
    match = _CLOCK_RE.search(text)
    if not match:
        return text

    hours = int(match.group(1))
    minutes = match.group(2)
    period = match.group(3).upper()

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0

    return f"{hours:02d}:{minutes}"


def parse_time_range(text: str) -> tuple[str, str]:
    """Split "<time> - <time>" into canonical (start, end).

    Returns ("", "") when the text is not a recognizable range.
    """
    match = _RANGE_RE.search(text or "")
    if not match:
        return "", ""
    return parse_clock_time(match.group(1)), parse_clock_time(match.group(2))


def weekday_from_abbreviation_string(text: str) -> DayOfWeek:
    """Find the first weekday abbreviation (Mon..Sun order) within ``text``."""
    lowered = (text or "").lower()
    for abbreviation, day in _WEEKDAY_ABBREVIATIONS:
        if abbreviation in lowered:
            return day
    return DayOfWeek.unknown


def parse_occurrence_date(text: str) -> date | None:
    """Parse a packed "YYYYMMDD" occurrence date; None if malformed."""
    candidate = (text or "").strip()
    if len(candidate) < 8:
        return None
    try:
        return datetime.strptime(candidate[:8], "%Y%m%d").date()
    except ValueError:
        return None


def weekday_from_date(value: date | None) -> DayOfWeek:
    if value is None:
        return DayOfWeek.unknown
    return _WEEKDAYS_BY_INDEX[value.weekday()]


def pool_id(municipality: str, facility_label: str) -> str:
    """Build the stable pool slug, e.g. ("Oakville", "Lions Pool") -> "oakville-lions-pool"."""
    return _WHITESPACE_RE.sub("-", f"{municipality}-{facility_label}".lower())
