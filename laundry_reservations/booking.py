from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time
from typing import Iterable, Protocol

from .calendar_utils import MINUTES_PER_DAY, format_minutes, parse_hhmm, to_minutes

logger = logging.getLogger(__name__)

SLOT_DURATION_MINUTES = 60


class BookingError(Exception):
    """Terminal failure of a booking request that the user can act on."""


class NotRecognized(BookingError):
    pass


class OutOfOperationalHours(BookingError):
    pass


class SlotOccupied(BookingError):
    def __init__(self, message: str, next_available: str | None = None) -> None:
        super().__init__(message)
        self.next_available = next_available


@dataclass(frozen=True)
class TimeInterval:
    start: int
    duration: int = SLOT_DURATION_MINUTES

    def __post_init__(self) -> None:
        if not 0 <= self.start < MINUTES_PER_DAY:
            raise ValueError("Interval start must be within the day (0 <= start < 1440).")
        if self.duration <= 0:
            raise ValueError("Interval duration must be greater than zero.")

    @property
    def end(self) -> int:
        return self.start + self.duration

    def to_dict(self) -> dict[str, str]:
        # An end past midnight is shown as the next day's clock time.
        return {"start": format_minutes(self.start), "end": format_minutes(self.end % MINUTES_PER_DAY)}


@dataclass(frozen=True)
class OperationalWindow:
    open_minutes: int = 9 * 60
    close_minutes: int = 20 * 60

    def __post_init__(self) -> None:
        if self.open_minutes >= self.close_minutes:
            raise ValueError("Operational window must open before it closes.")

    def contains(self, minutes: int) -> bool:
        return self.open_minutes <= minutes < self.close_minutes

    def describe(self) -> str:
        return f"{format_minutes(self.open_minutes)} - {format_minutes(self.close_minutes)}"


DEFAULT_WINDOW = OperationalWindow()


@dataclass(frozen=True)
class OperationalCheck:
    valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class ConflictInfo:
    user_name: str
    user_phone: str
    time: str
    end_time: str

    def to_dict(self) -> dict[str, str]:
        return {
            "user_name": self.user_name,
            "user_phone": self.user_phone,
            "time": self.time,
            "end_time": self.end_time,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflict: ConflictInfo | None = None
    next_available: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "available": self.available,
            "conflict": self.conflict.to_dict() if self.conflict else None,
            "next_available": self.next_available,
        }


@dataclass(frozen=True)
class DaySchedule:
    available: tuple[TimeInterval, ...] = ()
    occupied: tuple[TimeInterval, ...] = ()

    @property
    def is_entirely_free(self) -> bool:
        # an empty schedule means no reservations, i.e. the whole window is open
        return not self.available and not self.occupied

    def to_dict(self) -> dict[str, object]:
        return {
            "available": [interval.to_dict() for interval in self.available],
            "occupied": [interval.to_dict() for interval in self.occupied],
            "entirely_free": self.is_entirely_free,
        }


class ReservationLike(Protocol):
    date_key: str
    start: str
    user_name: str
    user_phone: str


def has_time_overlap(new_start: int, new_end: int, exist_start: int, exist_end: int) -> bool:
    """Return True when two time intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 15:00-16:00 and 16:00-17:00) do not overlap.
    """
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise ValueError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and new_end > exist_start


def check_operational(
    time_of_day: str | int | time,
    window: OperationalWindow = DEFAULT_WINDOW,
) -> OperationalCheck:
    minutes = to_minutes(time_of_day)
    if not window.contains(minutes):
        return OperationalCheck(valid=False, reason=f"Horario fuera de operación ({window.describe()})")
    return OperationalCheck(valid=True)


def check_availability(
    date_key: str,
    time_of_day: str | int | time,
    reservations: Iterable[ReservationLike],
    duration: int = SLOT_DURATION_MINUTES,
) -> AvailabilityResult:
    """Scan reservations of ``date_key`` in store order and stop at the first overlap.

    ``next_available`` is the end of that first conflicting reservation only;
    it is not guaranteed to be free of the remaining reservations.
    """
    requested_start = to_minutes(time_of_day)
    requested_end = requested_start + duration

    for reservation in reservations:
        if reservation.date_key != date_key:
            continue

        existing_start = _reservation_start_minutes(reservation)
        if existing_start is None:
            continue
        existing_end = existing_start + SLOT_DURATION_MINUTES

        if has_time_overlap(requested_start, requested_end, existing_start, existing_end):
            end_time = format_minutes(existing_end % MINUTES_PER_DAY)
            logger.info(
                "Slot %s %s conflicts with reservation at %s",
                date_key,
                format_minutes(requested_start),
                reservation.start,
            )
            return AvailabilityResult(
                available=False,
                conflict=ConflictInfo(
                    user_name=reservation.user_name,
                    user_phone=reservation.user_phone,
                    time=reservation.start,
                    end_time=end_time,
                ),
                next_available=end_time,
            )

    return AvailabilityResult(available=True)


def schedule_for_day(
    date_key: str,
    reservations: Iterable[ReservationLike],
    window: OperationalWindow = DEFAULT_WINDOW,
) -> DaySchedule:
    starts = []
    for reservation in reservations:
        if reservation.date_key != date_key:
            continue
        minutes = _reservation_start_minutes(reservation)
        if minutes is not None:
            starts.append(minutes)

    if not starts:
        return DaySchedule()

    occupied = tuple(TimeInterval(start) for start in sorted(starts))

    available: list[TimeInterval] = []
    cursor = window.open_minutes
    for interval in occupied:
        gap_end = min(interval.start, window.close_minutes)
        if gap_end > cursor:
            available.append(TimeInterval(cursor, gap_end - cursor))
        cursor = max(cursor, interval.end)
    if cursor < window.close_minutes:
        available.append(TimeInterval(cursor, window.close_minutes - cursor))

    return DaySchedule(available=tuple(available), occupied=occupied)


def operational_grid(window: OperationalWindow = DEFAULT_WINDOW) -> list[TimeInterval]:
    return [TimeInterval(start) for start in range(window.open_minutes, window.close_minutes, SLOT_DURATION_MINUTES)]


def _reservation_start_minutes(reservation: ReservationLike) -> int | None:
    try:
        return parse_hhmm(reservation.start)
    except ValueError:
        logger.warning("Skipping reservation with unreadable start %r on %s", reservation.start, reservation.date_key)
        return None
