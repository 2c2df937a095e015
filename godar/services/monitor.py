"""Poll loop driving periodic fetch, tracking and history cleanup."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from godar.config import Settings
from godar.ingestors.feed import AuthMethod, FeedClient, FeedError
from godar.models.aircraft import AircraftList
from godar.notification import AppriseNotifier
from godar.services.tracking import BatchResult, TrackingEngine, TrackingPolicy

logger = logging.getLogger("godar.monitor")

DEFAULT_CLEANUP_INTERVAL = 600.0


class Fetcher(Protocol):
    async def fetch(self) -> AircraftList: ...


class Monitor:
    """Run the poll and cleanup cycles on one background task."""

    def __init__(
        self,
        *,
        fetcher: Fetcher,
        engine: TrackingEngine,
        poll_interval: float,
        cleanup_interval: float = 0.0,
        server_url: str = "",
    ) -> None:
        self.fetcher = fetcher
        self.engine = engine
        self.poll_interval = poll_interval
        self.cleanup_interval = cleanup_interval or DEFAULT_CLEANUP_INTERVAL
        self.server_url = server_url

        self.last_poll_at: datetime | None = None
        self.last_error: str | None = None
        self.polls_completed = 0

        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def auth_method(self) -> Optional[AuthMethod]:
        return getattr(self.fetcher, "auth_method", None)

    def start(self) -> asyncio.Task[None]:
        """Schedule the monitor loop and return without waiting for the first poll."""

        if self._task is not None:
            raise RuntimeError("monitor already started")

        logger.info(
            "Starting aircraft monitoring: server=%s poll_interval=%ss cleanup_interval=%ss",
            self.server_url,
            self.poll_interval,
            self.cleanup_interval,
        )
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="godar-monitor")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to halt and wait for any in-flight cycle to finish."""

        if self._task is None or self._stop_event.is_set():
            return

        logger.info("Stopping aircraft monitoring")
        self._stop_event.set()
        await self._task
        logger.info("Aircraft monitoring stopped")

    async def poll_once(self) -> BatchResult | None:
        """Fetch one aircraft list and feed it through the tracking engine.

        A fetch failure is logged and leaves tracker state untouched.
        """

        try:
            aircraft_list = await self.fetcher.fetch()
        except FeedError as exc:
            logger.error("Failed to fetch aircraft data: %s", exc)
            self.last_error = str(exc)
            return None

        logger.debug(
            "Fetched aircraft data: total=%s filtered=%s",
            aircraft_list.total_aircraft,
            len(aircraft_list.aircraft),
        )
        result = await self.engine.process_batch(aircraft_list.aircraft)

        self.last_poll_at = datetime.now(tz=timezone.utc)
        self.last_error = None
        self.polls_completed += 1
        if result.failures:
            logger.warning(
                "Poll completed with %s aircraft failures", len(result.failures)
            )
        return result

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()

        await self._poll_safely()

        next_poll = loop.time() + self.poll_interval
        next_cleanup = loop.time() + self.cleanup_interval

        while not self._stop_event.is_set():
            timeout = max(min(next_poll, next_cleanup) - loop.time(), 0)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break

            now = loop.time()
            if now >= next_poll:
                await self._poll_safely()
                next_poll = loop.time() + self.poll_interval
            if now >= next_cleanup:
                self.engine.cleanup()
                next_cleanup = loop.time() + self.cleanup_interval

    async def _poll_safely(self) -> None:
        try:
            await self.poll_once()
        except Exception as exc:  # pragma: no cover - keep the loop alive
            logger.exception("Unexpected failure in poll cycle")
            self.last_error = str(exc)


def build_monitor(config: Settings) -> Monitor:
    """Wire the default feed client, notifier and engine from settings."""

    notifier = AppriseNotifier(
        enabled=config.notification_enabled, urls=config.notify_urls
    )
    engine = TrackingEngine(TrackingPolicy.from_settings(config), notifier)
    return Monitor(
        fetcher=FeedClient.from_settings(config),
        engine=engine,
        poll_interval=config.poll_interval,
        cleanup_interval=config.cleanup_interval,
        server_url=config.server_url,
    )


__all__ = ["DEFAULT_CLEANUP_INTERVAL", "Fetcher", "Monitor", "build_monitor"]
