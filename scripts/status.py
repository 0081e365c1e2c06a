#!/usr/bin/env python3
"""Print the effective monitoring configuration; optionally send a test alert.

Usage::

    python scripts/status.py
    python scripts/status.py --config config/config.example.yaml --test
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from serverhealth.core.config import Settings, load_settings
from serverhealth.core.logging import setup_logging
from serverhealth.notify.factory import create_notification_manager
from serverhealth.sources.host import get_server_info
from serverhealth.status import render_status, send_test_notification


async def run_test(settings: Settings) -> int:
    manager = create_notification_manager(settings.notifications)
    try:
        sent = await send_test_notification(manager, get_server_info())
    finally:
        await manager.close()
    if not sent:
        print("No valid notification providers; nothing to test.", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Show serverhealth configuration.")
    parser.add_argument("--config", default=None, help="Path to config YAML")
    parser.add_argument(
        "--test",
        action="store_true",
        help="Send an info-level test notification to every provider",
    )
    args = parser.parse_args()

    settings = load_settings(args.config)
    setup_logging()
    print(render_status(settings))

    if args.test:
        sys.exit(asyncio.run(run_test(settings)))


if __name__ == "__main__":
    main()
