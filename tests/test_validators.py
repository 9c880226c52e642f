import unittest
from datetime import date

from laundry_reservations.validators import (
    has_bot_mention,
    is_allowed_group,
    is_valid_date_iso,
    is_valid_message,
    is_valid_mexican_phone,
    is_valid_time_format,
    normalize_phone_number,
)


class TestPhoneValidation(unittest.TestCase):
    def test_accepts_local_and_country_code_numbers(self) -> None:
        self.assertTrue(is_valid_mexican_phone("55 1234 5678"))
        self.assertTrue(is_valid_mexican_phone("+52 (55) 1234-5678"))
        self.assertFalse(is_valid_mexican_phone("+54 11 1234 5678"))
        self.assertFalse(is_valid_mexican_phone("12345"))
        self.assertFalse(is_valid_mexican_phone(None))

    def test_normalizes_to_country_code(self) -> None:
        self.assertEqual(normalize_phone_number("5512345678"), "525512345678")
        self.assertEqual(normalize_phone_number("+52 55 1234 5678"), "525512345678")
        self.assertIsNone(normalize_phone_number("12345"))


class TestFormatValidation(unittest.TestCase):
    def test_time_format(self) -> None:
        self.assertTrue(is_valid_time_format("09:00"))
        self.assertTrue(is_valid_time_format("23:59"))
        self.assertFalse(is_valid_time_format("9:00"))
        self.assertFalse(is_valid_time_format("24:00"))

    def test_iso_date_must_be_today_or_later(self) -> None:
        today = date(2025, 11, 20)

        self.assertTrue(is_valid_date_iso("2025-11-20", today=today))
        self.assertTrue(is_valid_date_iso("2025-12-01", today=today))
        self.assertFalse(is_valid_date_iso("2025-11-19", today=today))
        self.assertFalse(is_valid_date_iso("2025-02-30", today=today))
        self.assertFalse(is_valid_date_iso("20/11/2025", today=today))


class TestMessageGate(unittest.TestCase):
    def test_message_length(self) -> None:
        self.assertTrue(is_valid_message("@bot lunes 3pm"))
        self.assertFalse(is_valid_message("  hi  "))
        self.assertFalse(is_valid_message("x" * 201))
        self.assertFalse(is_valid_message(None))

    def test_mention_is_case_insensitive(self) -> None:
        self.assertTrue(has_bot_mention("@BOT lunes 3pm", "@bot"))
        self.assertFalse(has_bot_mention("lunes 3pm", "@bot"))

    def test_allowed_group(self) -> None:
        self.assertTrue(is_allowed_group("Lavandería botTest", "bottest"))
        self.assertFalse(is_allowed_group("Familia", "botTest"))
        self.assertTrue(is_allowed_group("Familia", ""))


if __name__ == "__main__":
    unittest.main()
