from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Callable

from dateutil import parser as date_parser

from .calendar_utils import (
    SPANISH_MONTHS,
    SPANISH_WEEKDAYS,
    add_months,
    at_time,
    format_date_iso,
    format_date_only,
    format_date_spanish,
    format_time_only,
    next_weekday,
    safe_date,
    start_of_day,
    strip_accents,
)

logger = logging.getLogger(__name__)

DEFAULT_MENTION = "@bot"

_WEEKDAY_RE = re.compile(
    r"^(?:pr[óo]xim[ao]\s+)?(?P<weekday>lunes|martes|mi[ée]rcoles|jueves|viernes|s[áa]bado|domingo)\s+(?P<time>.+)$",
    re.IGNORECASE,
)
_MONTH_DAY_RE = re.compile(
    r"^(?P<month>enero|febrero|marzo|abril|mayo|junio|julio|agosto|septiembre|octubre|noviembre|diciembre"
    r"|ene|feb|mar|abr|may|jun|jul|ago|sep|oct|nov|dic)\s+(?P<day>\d{1,2})\s+(?P<time>.+)$",
    re.IGNORECASE,
)
_RELATIVE_DAY_RE = re.compile(
    r"^(?P<day>hoy|pasado\s+mañana|pasado\s+manana|pasadomañana|pasadomanana|mañana|manana)\s+(?P<time>.+)$",
    re.IGNORECASE,
)
_ISO_EXACT_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})$")
_DAY_OF_MONTH_RE = re.compile(r"^(?P<day>\d{1,2})\s+(?P<time>.+)$")

_FILLER_RE = re.compile(r"^a\s+las?\s+", re.IGNORECASE)
_HOURS_SHORTHAND_RE = re.compile(r"^(?P<hour>\d{1,2})\s+horas?$", re.IGNORECASE)
_DOTTED_CLOCK_RE = re.compile(r"\b(?P<hour>\d{1,2})\.(?P<minute>\d{2})\b")
_MIDNIGHT_RE = re.compile(r"\b12(?::(?P<minute>\d{2}))?\s+de\s+la\s+noche\b", re.IGNORECASE)
_PERIOD_PHRASES = (
    (re.compile(r"\bde\s+la\s+(?:mañana|manana|madrugada)\b", re.IGNORECASE), "am"),
    (re.compile(r"\bde\s+la\s+(?:tarde|noche)\b", re.IGNORECASE), "pm"),
    (re.compile(r"\ba\.\s?m\.?", re.IGNORECASE), "am"),
    (re.compile(r"\bp\.\s?m\.?", re.IGNORECASE), "pm"),
)
_CLOCK_TOKEN_RE = re.compile(r"(?<![\d.])\d{1,2}\s*(?::\d{2}|(?:am|pm)\b)", re.IGNORECASE)

_MONTH_NUMBERS = {name: index for index, name in enumerate(SPANISH_MONTHS, start=1)}
_MONTH_NUMBERS.update({name[:3]: index for name, index in list(_MONTH_NUMBERS.items())})

_RELATIVE_OFFSETS = {"hoy": 0, "manana": 1, "pasado": 2}


class SourceFormat(str, Enum):
    WEEKDAY = "weekday"
    MONTH_DAY = "month_day"
    RELATIVE_DAY = "relative_day"
    ISO_EXACT = "iso_exact"
    DAY_OF_MONTH = "day_of_month"


@dataclass(frozen=True)
class ParsedDateTime:
    instant: datetime
    source_format: SourceFormat

    @property
    def time_string(self) -> str:
        return format_time_only(self.instant)

    @property
    def date_string(self) -> str:
        return format_date_spanish(self.instant)

    @property
    def iso_date(self) -> str:
        return format_date_iso(self.instant)

    @property
    def date_only_string(self) -> str:
        return format_date_only(self.instant)

    @property
    def minutes_of_day(self) -> int:
        return self.instant.hour * 60 + self.instant.minute

    def to_dict(self) -> dict[str, str]:
        return {
            "instant": self.instant.isoformat(timespec="minutes"),
            "source_format": self.source_format.value,
            "time_string": self.time_string,
            "date_string": self.date_string,
            "iso_date": self.iso_date,
            "date_only_string": self.date_only_string,
        }


class _SpanishParserInfo(date_parser.parserinfo):
    JUMP = date_parser.parserinfo.JUMP + ["la", "las", "de", "del", "hrs", "hs", "horas", "hora"]


_PARSER_INFO = _SpanishParserInfo()


def clean_message(text: str, mention_token: str = DEFAULT_MENTION) -> str:
    if mention_token:
        text = re.sub(re.escape(mention_token), "", text, flags=re.IGNORECASE)
    return text.strip()


def normalize_hour_format(fragment: str) -> str:
    """Turn a bare ``"<N> horas"`` fragment into zero-padded ``"HH:00"``."""
    match = _HOURS_SHORTHAND_RE.match(fragment)
    if match:
        return f"{int(match.group('hour')):02d}:00"
    return fragment


def parse_time_fragment(fragment: str) -> time | None:
    candidate = _FILLER_RE.sub("", fragment.strip()).strip()
    candidate = normalize_hour_format(candidate)
    candidate = _DOTTED_CLOCK_RE.sub(r"\g<hour>:\g<minute>", candidate)
    candidate = _MIDNIGHT_RE.sub(lambda match: f"00:{match.group('minute') or '00'}", candidate)
    for pattern, replacement in _PERIOD_PHRASES:
        candidate = pattern.sub(replacement, candidate)

    if not _CLOCK_TOKEN_RE.search(candidate):
        return None

    try:
        parsed = date_parser.parse(candidate, parserinfo=_PARSER_INFO, fuzzy=True, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError):
        return None
    return time(parsed.hour, parsed.minute)


def _parse_weekday(text: str, now: datetime) -> datetime | None:
    match = _WEEKDAY_RE.match(text)
    if not match:
        return None

    clock_time = parse_time_fragment(match.group("time"))
    if clock_time is None:
        return None

    weekday = SPANISH_WEEKDAYS[strip_accents(match.group("weekday").lower())]
    return at_time(next_weekday(now, weekday), clock_time)


def _parse_month_day(text: str, now: datetime) -> datetime | None:
    match = _MONTH_DAY_RE.match(text)
    if not match:
        return None

    clock_time = parse_time_fragment(match.group("time"))
    if clock_time is None:
        return None

    month = _MONTH_NUMBERS[match.group("month").lower()]
    day = int(match.group("day"))

    target = safe_date(now.year, month, day)
    if target is None or datetime(target.year, target.month, target.day) < now:
        target = safe_date(now.year + 1, month, day)
    if target is None:
        return None
    return at_time(target, clock_time)


def _parse_relative_day(text: str, now: datetime) -> datetime | None:
    match = _RELATIVE_DAY_RE.match(text)
    if not match:
        return None

    clock_time = parse_time_fragment(match.group("time"))
    if clock_time is None:
        return None

    keyword = strip_accents(match.group("day").lower())
    offset = _RELATIVE_OFFSETS["pasado" if keyword.startswith("pasado") else keyword]
    target = start_of_day(now) + timedelta(days=offset)
    resolved = at_time(target.date(), clock_time)
    if resolved <= now:
        return None
    return resolved


def _parse_iso_exact(text: str, now: datetime) -> datetime | None:
    match = _ISO_EXACT_RE.match(text)
    if not match:
        return None

    try:
        return datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
        )
    except ValueError:
        return None


def _parse_day_of_month(text: str, now: datetime) -> datetime | None:
    match = _DAY_OF_MONTH_RE.match(text)
    if not match:
        return None

    day = int(match.group("day"))
    if day < 1 or day > 31:
        return None

    clock_time = parse_time_fragment(match.group("time"))
    if clock_time is None:
        return None

    target = safe_date(now.year, now.month, day)
    if target is not None and at_time(target, clock_time) > now:
        return at_time(target, clock_time)

    next_year, next_month = add_months(now.year, now.month, 1)
    target = safe_date(next_year, next_month, day)
    if target is None:
        return None
    return at_time(target, clock_time)


@dataclass(frozen=True)
class Grammar:
    kind: SourceFormat
    try_parse: Callable[[str, datetime], datetime | None]


GRAMMARS: tuple[Grammar, ...] = (
    Grammar(SourceFormat.WEEKDAY, _parse_weekday),
    Grammar(SourceFormat.MONTH_DAY, _parse_month_day),
    Grammar(SourceFormat.RELATIVE_DAY, _parse_relative_day),
    Grammar(SourceFormat.ISO_EXACT, _parse_iso_exact),
    Grammar(SourceFormat.DAY_OF_MONTH, _parse_day_of_month),
)

ACCEPTED_FORMATS = (
    "lunes 3pm",
    "mañana 15:00",
    "22 3pm",
    "nov 22 3pm",
    "2025-11-22 15:00",
)


def resolve(
    text: str,
    mention_token: str = DEFAULT_MENTION,
    now: datetime | None = None,
) -> ParsedDateTime | None:
    if not text or not text.strip():
        return None

    effective_now = now or datetime.now()
    cleaned = clean_message(text, mention_token)
    logger.debug("Cleaned text: %r", cleaned)

    for grammar in GRAMMARS:
        instant = grammar.try_parse(cleaned, effective_now)
        if instant is not None:
            parsed = ParsedDateTime(instant=instant.replace(second=0, microsecond=0), source_format=grammar.kind)
            logger.info("Resolved %r with %s grammar: %s", cleaned, grammar.kind.value, parsed.date_string)
            return parsed

    logger.info("No grammar recognized %r", cleaned)
    return None
