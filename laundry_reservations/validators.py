"""Input checks applied to incoming chat messages before they reach the resolver."""

from __future__ import annotations

import re
from datetime import date, datetime

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MIN_MESSAGE_LENGTH = 3
MAX_MESSAGE_LENGTH = 200


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def is_valid_mexican_phone(phone: str | None) -> bool:
    """Accept 10 local digits or 12 digits carrying the ``52`` country code."""
    if not phone or not isinstance(phone, str):
        return False

    cleaned = _digits(phone)
    return len(cleaned) == 10 or (len(cleaned) == 12 and cleaned.startswith("52"))


def normalize_phone_number(phone: str | None) -> str | None:
    """Normalize to ``52XXXXXXXXXX``; returns None when the number is not valid.

    Examples:
        >>> normalize_phone_number("55 1234 5678")
        '525512345678'
        >>> normalize_phone_number("+52 55 1234 5678")
        '525512345678'
    """
    if not is_valid_mexican_phone(phone):
        return None

    cleaned = _digits(phone or "")
    if len(cleaned) == 10:
        cleaned = "52" + cleaned
    return cleaned


def is_valid_time_format(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(_TIME_RE.match(value))


def is_valid_date_iso(value: str | None, today: date | None = None) -> bool:
    """True for an existing ``YYYY-MM-DD`` date that is today or later."""
    if not value or not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False

    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return False
    return parsed >= (today or date.today())


def is_valid_message(message: str | None) -> bool:
    if not message or not isinstance(message, str):
        return False

    trimmed = message.strip()
    return MIN_MESSAGE_LENGTH <= len(trimmed) <= MAX_MESSAGE_LENGTH


def has_bot_mention(message: str | None, mention_token: str) -> bool:
    if not message or not isinstance(message, str):
        return False
    return mention_token.lower() in message.lower()


def is_allowed_group(group_name: str | None, allowed_group_name: str | None) -> bool:
    if not allowed_group_name:
        return True
    return allowed_group_name.lower() in (group_name or "").lower()
