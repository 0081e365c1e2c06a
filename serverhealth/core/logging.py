"""structlog wiring for the monitor process.

Every record carries ``service``; once the host is resolved, ``hostname``
and ``ip`` are bound too, so log lines from several monitored machines can
share one sink.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from serverhealth.core.config import get_settings
from serverhealth.core.types import HostInfo

# Third-party loggers kept at WARNING or above, whatever the app level.
_QUIET_LOGGERS = ("aiohttp", "asyncio")


def _renderer(fmt: str) -> list[structlog.types.Processor]:
    if fmt == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=False)]


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog through a single stdlib handler.

    Args:
        level: Level name such as "DEBUG"; falls back to ``logging.level``.
        fmt: "json" or "console"; falls back to ``logging.format``.
        stream: Destination; stdout when omitted.
    """
    settings = get_settings()
    log_level = logging.getLevelName((level or settings.logging.level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=settings.service_name)

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderer(fmt or settings.logging.format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def bind_host(host: HostInfo) -> None:
    """Attach the monitored host's identity to every later log line."""
    structlog.contextvars.bind_contextvars(hostname=host.hostname, ip=host.ip)
