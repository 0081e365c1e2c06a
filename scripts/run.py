#!/usr/bin/env python3
"""Monitor entrypoint — wires sources, evaluators and notifiers, runs until stopped.

Usage::

    # Run with the default config (~/.config/serverhealth/config.yaml)
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/config.example.yaml

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog

from serverhealth.alerting.scheduler import MonitorScheduler, build_evaluators
from serverhealth.core.config import load_settings
from serverhealth.core.logging import bind_host, setup_logging
from serverhealth.notify.factory import create_notification_manager
from serverhealth.sources.host import get_server_info
from serverhealth.sources.metrics import default_sources

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start monitoring and run until interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    host = get_server_info()
    bind_host(host)
    logger.info("monitor_starting")

    # ── Notifications ────────────────────────────────────────────
    manager = create_notification_manager(settings.notifications)
    if not manager.providers:
        logger.warning("no_notification_providers_configured")

    # ── Evaluators + scheduler ───────────────────────────────────
    evaluators = build_evaluators(
        settings,
        manager=manager,
        host=host,
        sources=default_sources(args.disk_path),
    )
    if not evaluators:
        logger.error("no_metrics_enabled")
        print(
            "No metrics enabled. Enable at least one of disk, cpu or memory "
            "in the configuration file.",
            file=sys.stderr,
        )
        await manager.close()
        return 1

    scheduler = MonitorScheduler(evaluators)

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await scheduler.run_until_stopped(stop_event)
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
    finally:
        await manager.close()

    logger.info(
        "monitor_stopped",
        sent_today={str(ev.metric): ev.state.sent_count for ev in evaluators},
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Monitor disk, CPU and memory usage and send chat alerts.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config YAML (default: ~/.config/serverhealth/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--disk-path",
        default="/",
        help="Mount point whose filesystem usage is monitored (default: /)",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
