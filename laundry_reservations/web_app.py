from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from . import ReservationService, ReservationYamlRepository
from . import responses
from .booking import BookingError, SlotOccupied
from .calendar_utils import format_day_spanish, format_minutes, system_clock
from .config import Settings
from .natural_language import ACCEPTED_FORMATS
from .validators import is_valid_date_iso, is_valid_time_format
from .yaml_store import ReservationStorageError

logger = logging.getLogger(__name__)


def create_app(
    data_dir: str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    settings: Settings | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or Settings()
    repository = ReservationYamlRepository(data_dir or settings.data_dir)
    service = ReservationService(
        repository,
        clock=now_provider or system_clock(settings.timezone),
        mention_token=settings.bot_mention,
        allowed_group_name=settings.allowed_group_name,
    )
    app.extensions["reservation_service"] = service

    def _parse_date_key(raw: Any) -> datetime | None:
        try:
            return datetime.strptime(str(raw or "").strip(), "%Y-%m-%d")
        except ValueError:
            return None

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.post("/api/messages")
    def handle_message() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", ""))
        group_name = payload.get("group_name")

        try:
            reply = service.handle_message(
                text,
                user_name=payload.get("user_name"),
                user_phone=payload.get("user_phone"),
                group_name=str(group_name) if group_name is not None else None,
            )
        except Exception:
            logger.exception("Unexpected error handling message")
            return jsonify({"ok": False, "reply": responses.format_generic_error()}), 500

        if reply is None:
            return jsonify({"ok": True, "ignored": True, "reply": None})
        return jsonify({"ok": True, "ignored": False, "reply": reply})

    @app.post("/api/reserve")
    def reserve() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", "")).strip()
        if not text:
            return jsonify({"ok": False, "message": "Escribe el día y la hora que quieres reservar."}), 400

        try:
            confirmation = service.book(text, payload.get("user_name"), payload.get("user_phone"))
        except SlotOccupied as error:
            return jsonify({"ok": False, "message": str(error), "next_available": error.next_available}), 409
        except BookingError as error:
            return jsonify({"ok": False, "message": str(error)}), 400
        except ReservationStorageError:
            logger.exception("Failed to store reservation for %r", text)
            return jsonify({"ok": False, "message": responses.format_store_error()}), 503

        return jsonify(
            {
                "ok": True,
                "message": responses.format_success(confirmation.parsed.date_string),
                "parsed": confirmation.parsed.to_dict(),
                "reservation": confirmation.reservation.to_dict(),
            }
        )

    @app.post("/api/resolve")
    def resolve_text() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", ""))
        parsed = service.resolve(text)
        if parsed is None:
            return jsonify({"ok": False, "message": responses.format_help(settings.bot_mention), "formats": list(ACCEPTED_FORMATS)}), 400

        operational = service.check_operational(parsed.time_string)
        return jsonify({"ok": True, "parsed": parsed.to_dict(), "operational": {"valid": operational.valid, "reason": operational.reason}})

    @app.get("/api/availability")
    def get_availability() -> Any:
        date_key = str(request.args.get("date", "")).strip()
        time_of_day = str(request.args.get("time", "")).strip()
        if not is_valid_date_iso(date_key, today=service.clock().date()) or not is_valid_time_format(time_of_day):
            return jsonify({"ok": False, "message": "Usa date=YYYY-MM-DD (de hoy en adelante) y time=HH:MM."}), 400

        try:
            result = service.check_availability(date_key, time_of_day)
        except ReservationStorageError:
            logger.exception("Failed to read reservations")
            return jsonify({"ok": False, "message": responses.format_generic_error()}), 503
        return jsonify({"ok": True, **result.to_dict()})

    @app.get("/api/schedule")
    def get_schedule() -> Any:
        raw_date = request.args.get("date")
        day = _parse_date_key(raw_date) if raw_date else service.clock()
        if day is None:
            return jsonify({"ok": False, "message": "Usa date=YYYY-MM-DD."}), 400

        date_key = day.strftime("%Y-%m-%d")
        try:
            schedule = service.schedule_for_day(date_key)
        except ReservationStorageError:
            logger.exception("Failed to read reservations")
            return jsonify({"ok": False, "message": responses.format_generic_error()}), 503

        return jsonify(
            {
                "ok": True,
                "date": date_key,
                "window": {"open": format_minutes(service.window.open_minutes), "close": format_minutes(service.window.close_minutes)},
                **schedule.to_dict(),
                "summary": responses.format_day_schedule(format_day_spanish(day.date()), schedule, service.window),
            }
        )

    @app.get("/api/reservations")
    def get_reservations() -> Any:
        phone = str(request.args.get("phone", "")).strip()
        if not phone:
            return jsonify({"ok": False, "message": "phone es obligatorio."}), 400

        try:
            records = service.reservations_for_phone(phone)
        except ReservationStorageError:
            logger.exception("Failed to read reservations")
            return jsonify({"ok": False, "message": responses.format_generic_error()}), 503

        return jsonify(
            {
                "ok": True,
                "reservations": [record.to_dict() for record in records],
                "summary": responses.format_reservation_list(records),
            }
        )

    @app.post("/api/reservations/cancel")
    def cancel_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        day = _parse_date_key(payload.get("date"))
        time_of_day = str(payload.get("time", "")).strip()
        phone = str(payload.get("user_phone", "")).strip()
        if day is None or not is_valid_time_format(time_of_day) or not phone:
            return jsonify({"ok": False, "message": "date, time y user_phone son obligatorios."}), 400

        try:
            cancelled = service.cancel(day.strftime("%Y-%m-%d"), time_of_day, phone)
        except ReservationStorageError:
            logger.exception("Failed to cancel reservation")
            return jsonify({"ok": False, "message": responses.format_store_error()}), 503

        if not cancelled:
            return jsonify({"ok": False, "message": responses.format_cancellation_not_found()}), 404

        label = f"{format_day_spanish(day.date())}, {time_of_day}"
        return jsonify({"ok": True, "message": responses.format_cancellation(label)})

    @app.post("/api/maintenance/cleanup")
    def cleanup() -> Any:
        try:
            deleted = service.clean_old_reservations(settings.retention_days)
        except ReservationStorageError:
            logger.exception("Failed to clean old reservations")
            return jsonify({"ok": False, "message": responses.format_generic_error()}), 503
        return jsonify({"ok": True, "deleted": deleted})

    return app


if __name__ == "__main__":
    from .config import load_config

    loaded = load_config()
    app = create_app(settings=loaded)
    app.run(host="127.0.0.1", port=5000, debug=False)
