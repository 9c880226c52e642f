"""
Runtime settings with environment variable overrides.

Values are read from the process environment (and a local ``.env`` file
when present). The operational window and slot length are fixed by the
booking rules and are not configurable here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    bot_mention: str = field(default_factory=lambda: os.getenv("BOT_MENTION", "@bot"))
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "data"))
    timezone: str = field(default_factory=lambda: os.getenv("TIMEZONE", "America/Argentina/Buenos_Aires"))
    retention_days: int = field(default_factory=lambda: _safe_int("RETENTION_DAYS", "14"))
    cleanup_interval_hours: int = field(default_factory=lambda: _safe_int("CLEANUP_INTERVAL_HOURS", "2"))
    allowed_group_name: str = field(default_factory=lambda: os.getenv("ALLOWED_GROUP_NAME", "botTest"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def _validate_settings(settings: Settings) -> None:
    if not settings.bot_mention.strip():
        raise ValueError("BOT_MENTION must not be empty")
    if settings.retention_days < 1:
        raise ValueError(f"RETENTION_DAYS must be >= 1, got {settings.retention_days}")
    if settings.cleanup_interval_hours < 1:
        raise ValueError(f"CLEANUP_INTERVAL_HOURS must be >= 1, got {settings.cleanup_interval_hours}")
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown TIMEZONE: {settings.timezone!r}") from None


def load_config() -> Settings:
    """Load, validate and apply logging for the runtime settings."""
    settings = Settings()
    _validate_settings(settings)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded (mention=%s, data_dir=%s)", settings.bot_mention, settings.data_dir)
    return settings
