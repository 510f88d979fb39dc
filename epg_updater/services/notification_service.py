"""
Import notifications

After a listing has been merged, subscribers receive the raw listing so they
can handle the data on their own. Delivery is fire-and-forget.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from epg_updater.config import settings
from epg_updater.schemas import IncomingListing


logger = logging.getLogger(__name__)

ImportSubscriber = Callable[[IncomingListing], Awaitable[None]]


class ImportNotifier:
    """Fans an imported listing out to registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[ImportSubscriber] = []
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, subscriber: ImportSubscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: ImportSubscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def notify(self, listing: IncomingListing) -> None:
        """Schedule delivery to every subscriber without waiting for it."""
        for subscriber in self._subscribers:
            task = asyncio.create_task(self._deliver(subscriber, listing))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for deliveries still in flight (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _deliver(self, subscriber: ImportSubscriber, listing: IncomingListing) -> None:
        try:
            await subscriber(listing)
        except Exception as exc:
            logger.error(
                "Import subscriber %s failed: %s",
                getattr(subscriber, "__name__", type(subscriber).__name__),
                exc,
                exc_info=True,
            )


class WebhookSubscriber:
    """POSTs each imported listing as JSON to a configured URL."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def __call__(self, listing: IncomingListing) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=listing.model_dump(mode="json"))
            response.raise_for_status()
        logger.debug("Delivered listing with %s programs to webhook", len(listing.programs))


_notifier: ImportNotifier | None = None


def get_import_notifier() -> ImportNotifier:
    """
    Get or create the global notifier.

    The webhook subscriber is registered on first use when configured.
    """
    global _notifier
    if _notifier is None:
        _notifier = ImportNotifier()
        if settings.epg_import_webhook_url:
            _notifier.subscribe(
                WebhookSubscriber(
                    settings.epg_import_webhook_url,
                    timeout=settings.epg_import_webhook_timeout_sec,
                )
            )
    return _notifier


def reset_import_notifier() -> None:
    """
    Reset the notifier singleton (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _notifier
    _notifier = None
