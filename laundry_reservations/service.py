from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from . import responses
from .booking import (
    DEFAULT_WINDOW,
    AvailabilityResult,
    BookingError,
    DaySchedule,
    NotRecognized,
    OperationalCheck,
    OperationalWindow,
    OutOfOperationalHours,
    SlotOccupied,
    check_availability,
    check_operational,
    schedule_for_day,
)
from .calendar_utils import Clock, format_minutes, parse_hhmm
from .natural_language import DEFAULT_MENTION, ParsedDateTime, resolve
from .validators import has_bot_mention, is_allowed_group, is_valid_message, normalize_phone_number
from .yaml_store import ReservationRecord, ReservationStorageError, ReservationYamlRepository

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 14


@dataclass(frozen=True)
class BookingConfirmation:
    parsed: ParsedDateTime
    reservation: ReservationRecord


class ReservationService:
    """Booking flow: resolve text, check the window, check conflicts, append."""

    def __init__(
        self,
        repository: ReservationYamlRepository,
        clock: Clock | None = None,
        mention_token: str = DEFAULT_MENTION,
        window: OperationalWindow = DEFAULT_WINDOW,
        allowed_group_name: str | None = None,
    ) -> None:
        self.repository = repository
        self.clock: Clock = clock or datetime.now
        self.mention_token = mention_token
        self.window = window
        self.allowed_group_name = allowed_group_name

    def resolve(self, text: str) -> ParsedDateTime | None:
        return resolve(text, self.mention_token, now=self.clock())

    def check_operational(self, time_of_day: str | int | time) -> OperationalCheck:
        return check_operational(time_of_day, self.window)

    def check_availability(self, date_key: str, time_of_day: str | int | time) -> AvailabilityResult:
        reservations = self.repository.list_reservations_for_day(date_key)
        return check_availability(date_key, time_of_day, reservations)

    def schedule_for_day(self, date_key: str) -> DaySchedule:
        reservations = self.repository.list_reservations_for_day(date_key)
        return schedule_for_day(date_key, reservations, self.window)

    def book(self, text: str, user_name: str | None, user_phone: str | None) -> BookingConfirmation:
        parsed = self.resolve(text)
        if parsed is None:
            raise NotRecognized(responses.format_help(self.mention_token))

        operational = self.check_operational(parsed.time_string)
        if not operational.valid:
            logger.info("Requested time outside operational hours: %s", parsed.time_string)
            raise OutOfOperationalHours(responses.format_out_of_hours(self.window))

        availability = self.check_availability(parsed.iso_date, parsed.time_string)
        if not availability.available:
            logger.info("Slot not available: %s %s", parsed.iso_date, parsed.time_string)
            raise SlotOccupied(responses.format_slot_occupied(availability.next_available), availability.next_available)

        phone = normalize_phone_number(user_phone) or (user_phone or "").strip()
        reservation = self.repository.append(
            date_key=parsed.iso_date,
            start=parsed.time_string,
            user_name=user_name,
            user_phone=phone,
            date_label=parsed.date_only_string,
            request_text=text,
            now=self.clock(),
        )
        return BookingConfirmation(parsed=parsed, reservation=reservation)

    def handle_message(
        self,
        text: str,
        user_name: str | None = None,
        user_phone: str | None = None,
        group_name: str | None = None,
    ) -> str | None:
        """Return the reply for an incoming chat message, or None when it must be ignored."""
        if not has_bot_mention(text, self.mention_token):
            logger.debug("Ignoring message without mention")
            return None
        if group_name is not None and not is_allowed_group(group_name, self.allowed_group_name):
            logger.debug("Ignoring message from group %r", group_name)
            return None
        if not is_valid_message(text):
            return responses.format_invalid_message()

        try:
            confirmation = self.book(text, user_name, user_phone)
        except BookingError as error:
            return str(error)
        except ReservationStorageError:
            logger.exception("Failed to store reservation for %r", text)
            return responses.format_store_error()

        return responses.format_success(confirmation.parsed.date_string)

    def cancel(self, date_key: str, time_of_day: str, user_phone: str) -> bool:
        start = format_minutes(parse_hhmm(time_of_day))
        phone = normalize_phone_number(user_phone) or user_phone.strip()
        return self.repository.cancel_reservation(date_key, start, phone, now=self.clock())

    def reservations_for_phone(self, user_phone: str) -> list[ReservationRecord]:
        phone = normalize_phone_number(user_phone) or user_phone.strip()
        records = self.repository.list_reservations_for_phone(phone)
        return sorted(records, key=lambda record: (record.date_key, record.start))

    def clean_old_reservations(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        if retention_days < 1:
            raise ValueError("retention_days must be greater than zero")

        now = self.clock()
        return self.repository.delete_older_than(now - timedelta(days=retention_days), now=now)
