"""Notification manager — validated provider set with fire-and-forget fan-out."""

from __future__ import annotations

import asyncio

import structlog

from serverhealth.notify.exceptions import DeliveryError, ProviderValidationError
from serverhealth.notify.http import SharedSession
from serverhealth.notify.providers import NotificationProvider
from serverhealth.notify.types import NotificationMessage

logger = structlog.get_logger(__name__)


class NotificationManager:
    """Owns the active providers and fans each message out to all of them.

    - ``add_provider`` validates first; a provider that fails is never kept.
    - ``send`` schedules one task per provider and returns immediately, so a
      slow or hanging provider never blocks the caller or its siblings.
    - Delivery failures are logged here and go no further.
    """

    def __init__(self, session: SharedSession | None = None) -> None:
        self._providers: list[NotificationProvider] = []
        self._session = session
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def providers(self) -> tuple[NotificationProvider, ...]:
        return tuple(self._providers)

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._tasks)

    def add_provider(self, provider: NotificationProvider) -> None:
        """Validate and register *provider*.

        Raises:
            ProviderValidationError: the provider was rejected.
        """
        try:
            provider.validate()
        except ProviderValidationError as exc:
            raise ProviderValidationError(
                f"invalid provider {provider.kind}: {exc}"
            ) from exc
        self._providers.append(provider)
        logger.info("provider_registered", provider=str(provider.kind))

    def send(self, msg: NotificationMessage) -> None:
        """Dispatch *msg* to every provider without waiting for delivery.

        Must be called from within a running event loop.
        """
        if not self._providers:
            logger.info("no_notification_providers", title=msg.title)
            return

        for provider in self._providers:
            task = asyncio.create_task(
                self._deliver(provider, msg),
                name=f"notify-{provider.kind}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _deliver(self, provider: NotificationProvider, msg: NotificationMessage) -> None:
        kind = str(provider.kind)
        try:
            await provider.send(msg)
        except DeliveryError as exc:
            logger.warning(
                "notification_failed",
                provider=kind,
                error=str(exc),
                attempts=exc.attempts,
                status=exc.status,
                title=msg.title,
            )
        except Exception:
            logger.exception("notification_error", provider=kind, title=msg.title)
        else:
            logger.info("notification_sent", provider=kind, title=msg.title)

    async def wait_idle(self) -> None:
        """Wait until every in-flight delivery has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        """Abandon in-flight deliveries and release the HTTP session."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("notifications_abandoned", count=len(tasks))
        self._tasks.clear()

        for provider in self._providers:
            await provider.close()
        if self._session is not None:
            await self._session.close()
