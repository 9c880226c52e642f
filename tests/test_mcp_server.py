import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest import mock

import laundry_mcp_server
from laundry_reservations import ReservationService, ReservationYamlRepository

NOW = datetime(2025, 11, 20, 10, 0)


class TestMcpTools(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.repo = ReservationYamlRepository(Path(self._temp_dir.name) / "data")
        service = ReservationService(self.repo, clock=lambda: NOW, mention_token="@bot")
        patcher = mock.patch.object(laundry_mcp_server, "SERVICE", service)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_resolve_datetime(self) -> None:
        result = laundry_mcp_server.resolve_datetime("@bot mañana 15:00")
        self.assertTrue(result["ok"])
        self.assertEqual(result["iso_date"], "2025-11-21")

        self.assertFalse(laundry_mcp_server.resolve_datetime("cuando sea")["ok"])

    def test_book_and_check_slot(self) -> None:
        booked = laundry_mcp_server.book_slot("mañana 15:00", "Ana", "5512345678")
        self.assertTrue(booked["ok"])
        self.assertEqual(booked["reservation"]["start"], "15:00")

        conflict = laundry_mcp_server.check_slot("2025-11-21", "15:30")
        self.assertFalse(conflict["available"])
        self.assertEqual(conflict["next_available"], "16:00")

        again = laundry_mcp_server.book_slot("mañana 15:30")
        self.assertFalse(again["ok"])
        self.assertIn("Próximo disponible: 16:00", again["message"])

    def test_check_slot_rejects_bad_input(self) -> None:
        self.assertFalse(laundry_mcp_server.check_slot("2025-11-19", "15:00")["ok"])
        self.assertFalse(laundry_mcp_server.check_slot("2025-11-21", "3pm")["ok"])
        self.assertIn("09:00 - 20:00", laundry_mcp_server.check_slot("2025-11-21", "21:00")["message"])

    def test_day_schedule(self) -> None:
        self.repo.append("2025-11-22", "15:00", "Ana", "1")

        schedule = laundry_mcp_server.day_schedule("2025-11-22")
        self.assertTrue(schedule["ok"])
        self.assertEqual(schedule["occupied"], [{"start": "15:00", "end": "16:00"}])
        self.assertFalse(laundry_mcp_server.day_schedule("22/11/2025")["ok"])

    def test_store_errors_are_not_leaked(self) -> None:
        self.repo.reservations_file.unlink()
        self.repo.reservations_file.mkdir()

        with self.assertLogs("laundry_mcp_server", level="ERROR"):
            results = [
                laundry_mcp_server.book_slot("mañana 15:00", "Ana", "5512345678"),
                laundry_mcp_server.check_slot("2025-11-21", "15:00"),
                laundry_mcp_server.day_schedule("2025-11-21"),
            ]

        for result in results:
            self.assertFalse(result["ok"])
            self.assertNotIn("reservations.yaml", result["message"])
        self.assertEqual(results[0]["message"], "❌ Error al guardar. Intenta de nuevo.")


if __name__ == "__main__":
    unittest.main()
