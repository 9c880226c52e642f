from __future__ import annotations

import argparse
import logging
import time

from laundry_reservations import ReservationService, ReservationYamlRepository
from laundry_reservations.calendar_utils import system_clock
from laundry_reservations.config import load_config
from laundry_reservations.yaml_store import ReservationStorageError

logger = logging.getLogger("clean_old_reservations")


def main() -> int:
    settings = load_config()

    arg_parser = argparse.ArgumentParser(description="Delete reservations older than the retention window.")
    arg_parser.add_argument("--data-dir", default=settings.data_dir)
    arg_parser.add_argument("--retention-days", type=int, default=settings.retention_days)
    arg_parser.add_argument(
        "--loop",
        action="store_true",
        help=f"Keep running and clean every {settings.cleanup_interval_hours} hours.",
    )
    args = arg_parser.parse_args()

    service = ReservationService(ReservationYamlRepository(args.data_dir), clock=system_clock(settings.timezone))

    while True:
        try:
            deleted = service.clean_old_reservations(args.retention_days)
            logger.info("Cleanup finished: %d reservations deleted", deleted)
        except ReservationStorageError:
            logger.exception("Cleanup failed")
            if not args.loop:
                return 1

        if not args.loop:
            return 0
        time.sleep(settings.cleanup_interval_hours * 60 * 60)


if __name__ == "__main__":
    raise SystemExit(main())
