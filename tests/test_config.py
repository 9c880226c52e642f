import os
import unittest
from unittest import mock

from laundry_reservations.config import Settings, load_config


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        self.assertEqual(settings.bot_mention, "@bot")
        self.assertEqual(settings.data_dir, "data")
        self.assertEqual(settings.retention_days, 14)
        self.assertEqual(settings.cleanup_interval_hours, 2)
        self.assertEqual(settings.timezone, "America/Argentina/Buenos_Aires")

    def test_environment_overrides(self) -> None:
        env = {"BOT_MENTION": "@lavanderia", "RETENTION_DAYS": "7", "ALLOWED_GROUP_NAME": "Edificio"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = load_config()

        self.assertEqual(settings.bot_mention, "@lavanderia")
        self.assertEqual(settings.retention_days, 7)
        self.assertEqual(settings.allowed_group_name, "Edificio")

    def test_invalid_integer_raises(self) -> None:
        with mock.patch.dict(os.environ, {"RETENTION_DAYS": "dos"}, clear=True):
            with self.assertRaises(ValueError):
                Settings()

    def test_out_of_range_values_raise(self) -> None:
        with mock.patch.dict(os.environ, {"RETENTION_DAYS": "0"}, clear=True):
            with self.assertRaises(ValueError):
                load_config()

        with mock.patch.dict(os.environ, {"TIMEZONE": "Mars/Olympus"}, clear=True):
            with self.assertRaises(ValueError):
                load_config()


if __name__ == "__main__":
    unittest.main()
