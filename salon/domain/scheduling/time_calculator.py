"""Time parsing and interval helpers used by availability checks"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EMBEDDED_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")
HHMMSS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")
HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_date_field(raw: Union[str, date, None]) -> Optional[date]:
    """
    Accept 'YYYY-MM-DD' or an ISO timestamp (the date part is used).
    Returns None when nothing usable is found.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    text = str(raw).strip()
    match = text if ISO_DATE.match(text) else None
    if match is None and len(text) >= 10:
        embedded = EMBEDDED_DATE.search(text)
        match = embedded.group(1) if embedded else None
    if match is None:
        return None
    try:
        return datetime.strptime(match, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_time_field(raw: Union[str, time, None]) -> Optional[time]:
    """Accept 'HH:MM' or 'HH:MM:SS'. Returns None for anything else."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, time):
        return raw.replace(microsecond=0)

    text = str(raw).strip()
    full = HHMMSS.match(text)
    short = HHMM.match(text)
    try:
        if full:
            return time(int(full.group(1)), int(full.group(2)), int(full.group(3)))
        if short:
            return time(int(short.group(1)), int(short.group(2)))
    except ValueError:
        return None
    return None


def time_to_minutes(value: Union[str, time, timedelta, None]) -> int:
    """Minutes since midnight; seconds are truncated. Empty values count as 0."""
    if value is None or value == "":
        return 0
    if isinstance(value, timedelta):
        return int(value.total_seconds() // 60)
    if isinstance(value, time):
        return value.hour * 60 + value.minute + value.second // 60

    parts = [int(p) for p in str(value).split(":")]
    hours, minutes, seconds = (parts + [0, 0, 0])[:3]
    return hours * 60 + minutes + seconds // 60


def minutes_to_time(total: int) -> str:
    """Render minutes as HH:MM:00. Hours may exceed 23 for long totals."""
    hours, minutes = divmod(int(total), 60)
    return f"{hours:02d}:{minutes:02d}:00"


def add_minutes_to_time(start: Union[str, time], minutes: int) -> str:
    return minutes_to_time(time_to_minutes(start) + minutes)


def intervals_conflict(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open intervals [start, end) overlap. Touching endpoints do not."""
    return a_start < b_end and b_start < a_end


def combine(day: date, start: time) -> datetime:
    return datetime.combine(day, start)
