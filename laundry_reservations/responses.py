from __future__ import annotations

from typing import Iterable

from .booking import DaySchedule, OperationalWindow, operational_grid
from .natural_language import ACCEPTED_FORMATS
from .yaml_store import ReservationRecord


def format_success(date_string: str) -> str:
    return f"✅ ¡Reserva confirmada!\n\n{date_string}\n\n¡Nos vemos en la lavandería!"


def format_help(mention_token: str) -> str:
    lines = "\n".join(f"• {mention_token} {example}" for example in ACCEPTED_FORMATS)
    return f"🤔 No entendí ese formato.\n\nUsa alguno de estos:\n\n{lines}"


def format_invalid_message() -> str:
    return "❌ Mensaje no válido.\n\nPor favor, escribe tu solicitud de forma clara."


def format_out_of_hours(window: OperationalWindow) -> str:
    return f"⏰ Horario fuera de operación ({window.describe()})"


def format_slot_occupied(next_available: str | None) -> str:
    message = "⏰ Ese horario está ocupado.\n\n"
    if next_available:
        return message + f"Próximo disponible: {next_available}"
    return message + "Intenta con otra hora o fecha."


def format_store_error() -> str:
    return "❌ Error al guardar. Intenta de nuevo."


def format_generic_error() -> str:
    return "❌ Algo salió mal. Intenta de nuevo."


def format_cancellation(date_string: str) -> str:
    return f"✅ Reserva cancelada.\n\n📅 {date_string}\n\nLamentamos que no puedas venir."


def format_cancellation_not_found() -> str:
    return "❌ No encontramos esa reserva.\n\nPor favor, verifica la fecha y hora."


def format_reservation_list(records: Iterable[ReservationRecord]) -> str:
    items = [f"{index}. {record.date_label or record.date_key} a las {record.start}" for index, record in enumerate(records, start=1)]
    if not items:
        return "📭 No tienes reservas programadas.\n\n¿Quieres hacer una nueva?"
    return "📋 *Tus reservas:*\n" + "\n".join(items)


def format_day_schedule(day_label: str, schedule: DaySchedule, window: OperationalWindow) -> str:
    if schedule.is_entirely_free:
        slots = ", ".join(interval.to_dict()["start"] for interval in operational_grid(window))
        return f"📅 {day_label}\n\nTodo el día disponible ({window.describe()}).\nHorarios: {slots}"

    available = "\n".join(f"• {item.to_dict()['start']} - {item.to_dict()['end']}" for item in schedule.available) or "• Ninguno"
    occupied = "\n".join(f"• {item.to_dict()['start']} - {item.to_dict()['end']}" for item in schedule.occupied)
    return f"📅 {day_label}\n\n✅ Disponible:\n{available}\n\n⛔ Ocupado:\n{occupied}"
