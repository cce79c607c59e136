#!/usr/bin/env python3
"""Run a single price alert check and print the summary as JSON.

Useful from an external cron (instead of the in-process scheduler) or to
check configuration by hand.

Usage:
    python scripts/check_alerts_once.py
    python scripts/check_alerts_once.py --no-email   # evaluate + report only
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from price_alerts.config import settings
from price_alerts.errors import PriceAlertError
from price_alerts.pipeline import check_price_alerts
from price_alerts.utils.logging import setup_logging

logger = logging.getLogger("check_alerts_once")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--no-email",
        action="store_true",
        help="Run with email disabled: triggered alerts are reported but stay active",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    setup_logging(args.log_level)

    cfg = settings.model_copy(update={"resend_api_key": ""}) if args.no_email else settings
    try:
        summary = asyncio.run(check_price_alerts(cfg))
    except PriceAlertError as exc:
        logger.error("Price alert check failed: %s", exc)
        print(json.dumps({"error": "Failed to check price alerts", "message": str(exc)}))
        return 1

    print(json.dumps(summary.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
