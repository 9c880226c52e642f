from __future__ import annotations

from datetime import datetime
from pathlib import Path
import tempfile
import traceback

from laundry_reservations import ReservationService, ReservationYamlRepository, SlotOccupied


def main() -> int:
    print("[INFO] Laundry Reservations Quick Check")

    with tempfile.TemporaryDirectory() as temp_dir:
        repo = ReservationYamlRepository(Path(temp_dir) / "data")
        now = datetime(2025, 11, 20, 10, 0)
        service = ReservationService(repo, clock=lambda: now)

        for text in ("@bot lunes 3pm", "@bot nov 22 a las 15 horas", "@bot mañana 15:00", "@bot 2025-11-22 15:00", "@bot 22 3pm"):
            parsed = service.resolve(text)
            if parsed is None:
                print(f"[ERROR] Not recognized: {text!r}")
                return 1
            print(f"[OK] {text!r} -> {parsed.date_string} ({parsed.source_format.value})")

        confirmation = service.book("@bot 2025-11-22 15:00", "Quick Check", "5512345678")
        print(f"[OK] Reserved slot: {confirmation.reservation.date_key} {confirmation.reservation.start}")

        try:
            service.book("@bot 2025-11-22 15:30", "Quick Check", "5512345678")
        except SlotOccupied as error:
            print(f"[OK] Conflict detected, next available: {error.next_available}")
        else:
            print("[ERROR] Expected a conflict at 15:30")
            return 1

        schedule = service.schedule_for_day("2025-11-22")
        print(f"[OK] Schedule: {schedule.to_dict()}")
        print(f"[OK] Reservations YAML: {repo.reservations_file.resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
