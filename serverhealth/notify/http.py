"""Shared HTTP session and the POST-with-retry helper used by every provider."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import structlog

from serverhealth.notify.exceptions import DeliveryError

logger = structlog.get_logger(__name__)

USER_AGENT = "ServerHealth/1.0"

MAX_ATTEMPTS = 3
RETRY_DELAY_SECS = 5.0
REQUEST_TIMEOUT_SECS = 30.0


class SharedSession:
    """Lazily created, connection-pooled ``aiohttp.ClientSession``.

    One instance is shared by all providers; aiohttp sessions are safe for
    concurrent use from tasks on the same event loop.
    """

    def __init__(
        self,
        limit: int = 10,
        limit_per_host: int = 5,
        keepalive_timeout: float = 90.0,
    ) -> None:
        self._limit = limit
        self._limit_per_host = limit_per_host
        self._keepalive_timeout = keepalive_timeout
        self._session: aiohttp.ClientSession | None = None

    def get(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self._limit,
                limit_per_host=self._limit_per_host,
                keepalive_timeout=self._keepalive_timeout,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={
                    "User-Agent": USER_AGENT,
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None


async def post_json(
    session: aiohttp.ClientSession,
    url: str,
    payload: dict[str, Any],
    *,
    max_attempts: int = MAX_ATTEMPTS,
    retry_delay: float = RETRY_DELAY_SECS,
    timeout: float = REQUEST_TIMEOUT_SECS,
    log_url: str | None = None,
) -> None:
    """POST *payload* as JSON, retrying until a 2xx response.

    Attempts are sequential with *retry_delay* seconds between them. Task
    cancellation aborts the in-flight request and skips remaining attempts.

    Raises:
        DeliveryError: every attempt failed.
    """
    request_timeout = aiohttp.ClientTimeout(total=timeout)
    last_status: int | None = None
    last_exc: BaseException | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            async with session.post(url, json=payload, timeout=request_timeout) as resp:
                if 200 <= resp.status < 300:
                    return
                last_status = resp.status
                body = await resp.text()
                logger.warning(
                    "notification_http_error",
                    url=log_url or url,
                    status=resp.status,
                    attempt=attempt,
                    body=body[:200],
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            last_exc = exc
            logger.warning(
                "notification_request_error",
                url=log_url or url,
                attempt=attempt,
                error=repr(exc),
            )

        if attempt < max_attempts:
            await asyncio.sleep(retry_delay)

    error = DeliveryError(
        f"failed to send notification after {max_attempts} attempts",
        attempts=max_attempts,
        status=last_status,
    )
    raise error from last_exc
