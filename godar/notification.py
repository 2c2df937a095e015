"""Aircraft alert delivery using Apprise."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Protocol

import apprise

logger = logging.getLogger("godar.notification")


class NotificationError(RuntimeError):
    """Raised when an alert could not be delivered."""


class Notifier(Protocol):
    async def send(
        self,
        callsign: str,
        aircraft_type: str,
        altitude: int,
        speed: float,
        distance: float,
        direction: str,
        previous_distance: Optional[float] = None,
    ) -> None: ...


def format_notification(
    callsign: str,
    aircraft_type: str,
    altitude: int,
    speed: float,
    distance: float,
    direction: str,
    previous_distance: Optional[float] = None,
) -> tuple[str, str]:
    """Return the ``(title, body)`` pair for an aircraft alert."""

    title = f"Aircraft Detected: {callsign}"
    body = (
        f"Type: {aircraft_type}\n"
        f"Altitude: {altitude} ft\n"
        f"Speed: {speed:.1f} knots\n"
        f"Distance: {distance:.2f} km\n"
        f"Direction: {direction}"
    )

    if previous_distance is not None and previous_distance > 0:
        change = previous_distance - distance
        trend = "closer"
        if change < 0:
            trend = "farther"
            change = -change
        body += f"\nPrevious: {previous_distance:.2f} km ({trend} by {change:.2f} km)"

    return title, body


def _split_urls(urls: str | Iterable[str]) -> list[str]:
    if isinstance(urls, str):
        urls = urls.split(",")
    return [url.strip() for url in urls if url and url.strip()]


class AppriseNotifier:
    """Send aircraft alerts to every configured Apprise URL.

    The default target is ``dbus://`` (a desktop notification); any service
    Apprise understands can be added through configuration.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        urls: str | Iterable[str] = "dbus://",
        client: apprise.Apprise | None = None,
    ) -> None:
        self.enabled = enabled
        self._apprise = client if client is not None else apprise.Apprise()
        for url in _split_urls(urls):
            if not self._apprise.add(url):
                logger.warning("Ignoring unsupported notification URL: %s", url)

    @property
    def target_count(self) -> int:
        return len(self._apprise)

    async def send(
        self,
        callsign: str,
        aircraft_type: str,
        altitude: int,
        speed: float,
        distance: float,
        direction: str,
        previous_distance: Optional[float] = None,
    ) -> None:
        if not self.enabled:
            return

        title, body = format_notification(
            callsign, aircraft_type, altitude, speed, distance, direction, previous_distance
        )

        if not self.target_count:
            raise NotificationError("no notification targets configured")

        # Apprise delivery is blocking I/O
        delivered = await asyncio.to_thread(self._apprise.notify, title=title, body=body)
        if not delivered:
            logger.error("Failed to send notification for %s", callsign)
            raise NotificationError(f"failed to send notification for {callsign}")

        logger.debug("Notification sent for %s (%s)", callsign, aircraft_type)


__all__ = [
    "AppriseNotifier",
    "NotificationError",
    "Notifier",
    "format_notification",
]
