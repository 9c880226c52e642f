from __future__ import annotations

import logging
import shutil
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import yaml

from .calendar_utils import format_date_only, format_minutes, parse_hhmm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: str
    date_key: str
    start: str
    user_name: str
    user_phone: str
    created_at: datetime
    date_label: str | None = None
    request_text: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {
            "reservation_id": self.reservation_id,
            "date_key": self.date_key,
            "start": self.start,
            "user_name": self.user_name,
            "user_phone": self.user_phone,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
        if self.date_label is not None:
            payload["date_label"] = self.date_label
        if self.request_text is not None:
            payload["request_text"] = self.request_text
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservationRecord":
        return ReservationRecord(
            reservation_id=str(data["reservation_id"]),
            date_key=str(data["date_key"]),
            start=str(data["start"]),
            user_name=str(data.get("user_name") or "Anónimo"),
            user_phone=str(data.get("user_phone") or "N/A"),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            date_label=(str(data.get("date_label")) if data.get("date_label") is not None else None),
            request_text=(str(data.get("request_text")) if data.get("request_text") is not None else None),
        )


class ReservationStorageError(RuntimeError):
    pass


class ReservationYamlRepository:
    """Append-only reservation table kept in a YAML file.

    Every read-modify-write cycle on the files holds one lock, so concurrent
    appends are never lost. Checking a slot and appending to it are separate
    calls, so two requests for the same slot can both be appended. The event log
    is written after the reservation rows are saved and a failure there is only
    logged.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = threading.RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.reservations_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise ReservationStorageError(f"Failed to prepare data directory: {self.base_dir}") from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []
        except OSError as error:
            raise ReservationStorageError(f"Failed to read YAML file: {path}") from error

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self._record_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted file %s", path)

        logger.error("Recovered corrupted YAML %s: %s", path.name, error)
        path.write_text("[]\n", encoding="utf-8")
        if path != self.log_file:
            self._record_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        with self._lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def _record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        # Event log failures are logged, never raised to the caller.
        try:
            self._log_event(event_type, payload, event_time)
        except ReservationStorageError:
            logger.exception("Failed to record %s event", event_type)

    def _load_records(self) -> list[ReservationRecord]:
        records: list[ReservationRecord] = []
        for row in self._read_yaml_list(self.reservations_file):
            try:
                records.append(ReservationRecord.from_dict(row))
            except (KeyError, ValueError) as error:
                logger.warning("Skipping malformed reservation row %r: %s", row, error)
        return records

    def get_all_reservations(self) -> list[ReservationRecord]:
        with self._lock:
            return self._load_records()

    def list_reservations_for_day(self, date_key: str) -> list[ReservationRecord]:
        return [record for record in self.get_all_reservations() if record.date_key == date_key]

    def list_reservations_for_phone(self, user_phone: str) -> list[ReservationRecord]:
        return [record for record in self.get_all_reservations() if record.user_phone == user_phone]

    def append(
        self,
        date_key: str,
        start: str,
        user_name: str | None,
        user_phone: str | None,
        date_label: str | None = None,
        request_text: str | None = None,
        now: datetime | None = None,
    ) -> ReservationRecord:
        effective_now = now or datetime.now()
        try:
            day = datetime.strptime(date_key, "%Y-%m-%d")
            normalized_start = format_minutes(parse_hhmm(start))
        except ValueError as error:
            raise ValueError(f"Invalid reservation slot {date_key} {start}") from error

        record = ReservationRecord(
            reservation_id=str(uuid4()),
            date_key=date_key,
            start=normalized_start,
            user_name=(user_name or "").strip() or "Anónimo",
            user_phone=(user_phone or "").strip() or "N/A",
            created_at=effective_now,
            date_label=date_label or format_date_only(day),
            request_text=request_text,
        )

        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
            rows.append(record.to_dict())
            self._write_yaml_list(self.reservations_file, rows)

        self._record_event(
            "RESERVATION_CREATED",
            {
                "reservation_id": record.reservation_id,
                "date_key": record.date_key,
                "start": record.start,
                "user_phone": record.user_phone,
                "request_text": request_text,
            },
            effective_now,
        )
        logger.info("Reservation added: %s %s - %s (%s)", record.date_key, record.start, record.user_name, record.user_phone)
        return record

    def cancel_reservation(
        self,
        date_key: str,
        start: str,
        user_phone: str,
        now: datetime | None = None,
    ) -> bool:
        normalized_start = format_minutes(parse_hhmm(start))

        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
            found_index = -1
            for index, row in enumerate(rows):
                if (
                    str(row.get("date_key")) == date_key
                    and str(row.get("start")) == normalized_start
                    and str(row.get("user_phone")) == user_phone
                ):
                    found_index = index
                    break

            if found_index < 0:
                return False

            removed = rows.pop(found_index)
            self._write_yaml_list(self.reservations_file, rows)

        self._record_event(
            "RESERVATION_CANCELLED",
            {
                "reservation_id": removed.get("reservation_id"),
                "date_key": date_key,
                "start": normalized_start,
                "user_phone": user_phone,
            },
            now,
        )
        logger.info("Reservation cancelled: %s %s (%s)", date_key, normalized_start, user_phone)
        return True

    def delete_older_than(self, cutoff: datetime, now: datetime | None = None) -> int:
        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
            remaining: list[dict[str, Any]] = []
            deleted = 0
            for row in rows:
                try:
                    created_at = datetime.fromisoformat(str(row["created_at"]))
                except (KeyError, ValueError):
                    remaining.append(row)
                    continue

                if created_at < cutoff:
                    deleted += 1
                else:
                    remaining.append(row)

            if not deleted:
                return 0
            self._write_yaml_list(self.reservations_file, remaining)

        self._record_event(
            "RESERVATIONS_PURGED",
            {"count": deleted, "cutoff": cutoff.isoformat(timespec="seconds")},
            now,
        )
        logger.info("Deleted %d reservations created before %s", deleted, cutoff.isoformat(timespec="seconds"))
        return deleted
