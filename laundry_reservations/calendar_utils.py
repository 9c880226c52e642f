from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]

MINUTES_PER_DAY = 24 * 60

SPANISH_MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

# datetime.weekday() numbering: lunes == 0
SPANISH_WEEKDAYS = {
    "lunes": 0,
    "martes": 1,
    "miercoles": 2,
    "jueves": 3,
    "viernes": 4,
    "sabado": 5,
    "domingo": 6,
}

_HHMM_RE = re.compile(r"^\s*(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*$")


def system_clock(timezone_name: str | None = None) -> Clock:
    """Return a wall-clock provider for the given IANA zone (naive local time)."""
    if not timezone_name:
        return datetime.now

    zone = ZoneInfo(timezone_name)

    def _now() -> datetime:
        return datetime.now(zone).replace(tzinfo=None)

    return _now


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if unicodedata.category(char) != "Mn")


def parse_hhmm(text: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight."""
    match = _HHMM_RE.match(text or "")
    if not match:
        raise ValueError(f"Invalid time format (expected HH:MM): {text!r}")

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day: {text!r}")
    return hour * 60 + minute


def format_minutes(minutes: int) -> str:
    hour, minute = divmod(minutes, 60)
    return f"{hour:02d}:{minute:02d}"


def to_minutes(value: str | int | time | datetime) -> int:
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, int):
        if not 0 <= value < MINUTES_PER_DAY:
            raise ValueError(f"minutes of day out of range: {value}")
        return value
    return parse_hhmm(value)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def at_time(day: date, clock_time: time) -> datetime:
    return datetime(day.year, day.month, day.day, clock_time.hour, clock_time.minute)


def next_weekday(now: datetime, weekday: int) -> date:
    """Step forward one day at a time until ``weekday`` falls on a day that starts after ``now``."""
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be in 0..6, got {weekday}")

    candidate = start_of_day(now)
    while candidate.weekday() != weekday or candidate <= now:
        candidate += timedelta(days=1)
    return candidate.date()


def add_months(year: int, month: int, months: int) -> tuple[int, int]:
    index = (year * 12 + (month - 1)) + months
    return index // 12, index % 12 + 1


def safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_time_only(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_date_iso(value: datetime | date) -> str:
    return value.strftime("%Y-%m-%d")


def format_date_only(value: datetime | date) -> str:
    return f"{value.day}/{value.month}/{value.year}"


def format_date_spanish(value: datetime) -> str:
    month_name = SPANISH_MONTHS[value.month - 1]
    return f"{value.day} de {month_name} de {value.year}, {format_time_only(value)}"


def format_day_spanish(value: date) -> str:
    month_name = SPANISH_MONTHS[value.month - 1]
    return f"{value.day} de {month_name} de {value.year}"
