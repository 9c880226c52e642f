from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from laundry_reservations import ReservationService, ReservationStorageError, ReservationYamlRepository
from laundry_reservations import responses
from laundry_reservations.booking import BookingError
from laundry_reservations.calendar_utils import system_clock
from laundry_reservations.config import load_config
from laundry_reservations.validators import is_valid_date_iso

logger = logging.getLogger(__name__)

SETTINGS = load_config()

mcp = FastMCP(
    "Laundry Reservation MCP Server",
    instructions="Resolve Spanish date expressions and book one-hour laundry slots.",
    json_response=True,
)

DATA_DIR = Path(__file__).parent / SETTINGS.data_dir
SERVICE = ReservationService(
    ReservationYamlRepository(DATA_DIR),
    clock=system_clock(SETTINGS.timezone),
    mention_token=SETTINGS.bot_mention,
)


def _date_error(date: str) -> dict[str, Any] | None:
    if not is_valid_date_iso(date, today=SERVICE.clock().date()):
        return {"ok": False, "message": "Usa una fecha YYYY-MM-DD de hoy en adelante."}
    return None


@mcp.tool()
def resolve_datetime(text: str) -> dict[str, Any]:
    """Resolve a Spanish date/time expression such as 'lunes 3pm' or 'mañana 15:00'."""
    parsed = SERVICE.resolve(text)
    if parsed is None:
        return {"ok": False, "message": "Formato no reconocido"}
    return {"ok": True, **parsed.to_dict()}


@mcp.tool()
def check_slot(date: str, time: str) -> dict[str, Any]:
    """Check operational hours and conflicts for a YYYY-MM-DD date and HH:MM time."""
    error = _date_error(date)
    if error is not None:
        return {**error, "available": False}

    try:
        operational = SERVICE.check_operational(time)
    except ValueError as error:
        return {"ok": False, "available": False, "message": str(error)}
    if not operational.valid:
        return {"ok": False, "available": False, "message": operational.reason}

    try:
        result = SERVICE.check_availability(date, time)
    except ReservationStorageError:
        logger.exception("Failed to read reservations for %s", date)
        return {"ok": False, "available": False, "message": responses.format_generic_error()}
    return {"ok": True, **result.to_dict()}


@mcp.tool()
def day_schedule(date: str) -> dict[str, Any]:
    """Return available and occupied intervals for a YYYY-MM-DD date."""
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        return {"ok": False, "message": "Usa date=YYYY-MM-DD."}

    try:
        schedule = SERVICE.schedule_for_day(date)
    except ReservationStorageError:
        logger.exception("Failed to read reservations for %s", date)
        return {"ok": False, "message": responses.format_generic_error()}
    return {"ok": True, **schedule.to_dict()}


@mcp.tool()
def book_slot(text: str, user_name: str = "MCP", user_phone: str = "") -> dict[str, Any]:
    """Book the slot described by a Spanish date/time expression."""
    try:
        confirmation = SERVICE.book(text, user_name, user_phone)
    except BookingError as error:
        return {"ok": False, "message": str(error)}
    except ReservationStorageError:
        logger.exception("Failed to store reservation for %r", text)
        return {"ok": False, "message": responses.format_store_error()}
    return {"ok": True, "reservation": confirmation.reservation.to_dict()}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
