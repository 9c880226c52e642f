import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from laundry_reservations import ReservationYamlRepository
from laundry_reservations.config import Settings
from laundry_reservations.web_app import create_app

NOW = datetime(2025, 11, 20, 10, 0)


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.repo = ReservationYamlRepository(self.data_dir)
        settings = Settings(bot_mention="@bot", allowed_group_name="botTest", timezone="UTC")
        self.client = create_app(self.data_dir, now_provider=lambda: NOW, settings=settings).test_client()

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_message_flow_books_and_reports_conflict(self) -> None:
        first = self.client.post(
            "/api/messages",
            json={"text": "@bot mañana 15:00", "user_name": "Ana", "user_phone": "5512345678", "group_name": "botTest"},
        )
        self.assertEqual(first.status_code, 200)
        self.assertIn("¡Reserva confirmada!", first.get_json()["reply"])

        second = self.client.post("/api/messages", json={"text": "@bot mañana 15:30", "group_name": "botTest"})
        payload = second.get_json()
        self.assertFalse(payload["ignored"])
        self.assertIn("Próximo disponible: 16:00", payload["reply"])

        self.assertEqual(len(self.repo.list_reservations_for_day("2025-11-21")), 1)

    def test_message_without_mention_is_ignored(self) -> None:
        response = self.client.post("/api/messages", json={"text": "mañana 15:00"})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["ignored"])
        self.assertIsNone(response.get_json()["reply"])

    def test_reserve_endpoint_status_codes(self) -> None:
        created = self.client.post("/api/reserve", json={"text": "2025-11-22 15:00", "user_name": "Ana", "user_phone": "5512345678"})
        self.assertEqual(created.status_code, 200)
        self.assertEqual(created.get_json()["reservation"]["start"], "15:00")
        self.assertEqual(created.get_json()["parsed"]["source_format"], "iso_exact")

        conflict = self.client.post("/api/reserve", json={"text": "2025-11-22 15:30"})
        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.get_json()["next_available"], "16:00")

        closed = self.client.post("/api/reserve", json={"text": "2025-11-22 21:00"})
        self.assertEqual(closed.status_code, 400)

        empty = self.client.post("/api/reserve", json={})
        self.assertEqual(empty.status_code, 400)

    def test_resolve_endpoint(self) -> None:
        response = self.client.post("/api/resolve", json={"text": "@bot lunes a las 15 horas"})
        payload = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(payload["parsed"]["iso_date"], "2025-11-24")
        self.assertEqual(payload["parsed"]["time_string"], "15:00")
        self.assertTrue(payload["operational"]["valid"])

        unknown = self.client.post("/api/resolve", json={"text": "@bot algún día"})
        self.assertEqual(unknown.status_code, 400)
        self.assertEqual(len(unknown.get_json()["formats"]), 5)

    def test_availability_endpoint(self) -> None:
        self.repo.append("2025-11-22", "15:00", "Ana", "1")

        busy = self.client.get("/api/availability?date=2025-11-22&time=15:30").get_json()
        self.assertFalse(busy["available"])
        self.assertEqual(busy["next_available"], "16:00")
        self.assertEqual(busy["conflict"]["time"], "15:00")

        free = self.client.get("/api/availability?date=2025-11-22&time=16:00").get_json()
        self.assertTrue(free["available"])

        bad = self.client.get("/api/availability?date=22-11-2025&time=16:00")
        self.assertEqual(bad.status_code, 400)

        past = self.client.get("/api/availability?date=2025-11-19&time=16:00")
        self.assertEqual(past.status_code, 400)

    def test_schedule_endpoint(self) -> None:
        empty = self.client.get("/api/schedule?date=2025-11-22").get_json()
        self.assertEqual(empty["available"], [])
        self.assertEqual(empty["occupied"], [])
        self.assertTrue(empty["entirely_free"])
        self.assertEqual(empty["window"], {"open": "09:00", "close": "20:00"})

        self.repo.append("2025-11-22", "15:00", "Ana", "1")
        busy = self.client.get("/api/schedule?date=2025-11-22").get_json()
        self.assertEqual(busy["occupied"], [{"start": "15:00", "end": "16:00"}])
        self.assertEqual(busy["available"], [{"start": "09:00", "end": "15:00"}, {"start": "16:00", "end": "20:00"}])

        today = self.client.get("/api/schedule").get_json()
        self.assertEqual(today["date"], "2025-11-20")

    def test_cancel_and_list_reservations(self) -> None:
        self.client.post("/api/reserve", json={"text": "2025-11-22 15:00", "user_name": "Ana", "user_phone": "5512345678"})

        listed = self.client.get("/api/reservations?phone=5512345678").get_json()
        self.assertEqual(len(listed["reservations"]), 1)
        self.assertIn("22/11/2025 a las 15:00", listed["summary"])

        cancelled = self.client.post(
            "/api/reservations/cancel",
            json={"date": "2025-11-22", "time": "15:00", "user_phone": "5512345678"},
        )
        self.assertEqual(cancelled.status_code, 200)
        self.assertIn("Reserva cancelada", cancelled.get_json()["message"])

        missing = self.client.post(
            "/api/reservations/cancel",
            json={"date": "2025-11-22", "time": "15:00", "user_phone": "5512345678"},
        )
        self.assertEqual(missing.status_code, 404)

    def test_cleanup_endpoint(self) -> None:
        self.repo.append("2025-11-01", "10:00", "Ana", "1", now=datetime(2025, 11, 1, 9, 0))

        response = self.client.post("/api/maintenance/cleanup")

        self.assertEqual(response.get_json(), {"ok": True, "deleted": 1})

    def test_store_failures_return_503_without_details(self) -> None:
        self.repo.reservations_file.unlink()
        self.repo.reservations_file.mkdir()

        with self.assertLogs("laundry_reservations.web_app", level="ERROR"):
            responses = [
                self.client.get("/api/reservations?phone=5512345678"),
                self.client.post(
                    "/api/reservations/cancel",
                    json={"date": "2025-11-22", "time": "15:00", "user_phone": "5512345678"},
                ),
                self.client.post("/api/maintenance/cleanup"),
                self.client.post("/api/reserve", json={"text": "2025-11-22 15:00"}),
            ]

        for response in responses:
            with self.subTest(path=response.request.path):
                self.assertEqual(response.status_code, 503)
                self.assertFalse(response.get_json()["ok"])
                self.assertNotIn("reservations.yaml", response.get_json()["message"])

    def test_cors_headers(self) -> None:
        response = self.client.get("/api/schedule?date=2025-11-22")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")


if __name__ == "__main__":
    unittest.main()
