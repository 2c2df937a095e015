"""Per-aircraft proximity tracking and notification decisions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, MutableMapping, Optional

from godar import geo
from godar.config import Settings
from godar.models.aircraft import Aircraft
from godar.notification import Notifier
from godar.services.locking import ReadWriteLock

logger = logging.getLogger("godar.tracking")

# Trackers not seen for this long are dropped by the cleanup sweep
STALE_AFTER = timedelta(minutes=15)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class AircraftTracker:
    """Distance history for one aircraft identifier."""

    last_distance: float
    last_seen: datetime
    notified: bool = False


@dataclass
class TrackingPolicy:
    """The parts of the configuration the tracking engine reads."""

    latitude: float = 0.0
    longitude: float = 0.0
    notifications_enabled: bool = False
    notify_on_closer_only: bool = True
    re_notify_after: timedelta = timedelta(0)

    @property
    def has_location(self) -> bool:
        return not (self.latitude == 0.0 and self.longitude == 0.0)

    @classmethod
    def from_settings(cls, config: Settings) -> "TrackingPolicy":
        return cls(
            latitude=config.latitude,
            longitude=config.longitude,
            notifications_enabled=config.notification_enabled,
            notify_on_closer_only=config.notify_on_closer_only,
            re_notify_after=timedelta(seconds=config.re_notify_after),
        )


@dataclass
class TrackingDecision:
    """Outcome of processing a single observation."""

    identifier: str
    callsign: str
    distance: float
    bearing: float
    direction: str
    previous_distance: float
    first_sighting: bool
    notify: bool


@dataclass
class BatchResult:
    decisions: list[TrackingDecision] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def notified(self) -> int:
        return sum(1 for decision in self.decisions if decision.notify)


def resolve_identifier(aircraft: Aircraft) -> str:
    """Return the history key for an observation.

    ICAO code first, then callsign, then ``<type>_<altitude>``. The last form
    can collide between distinct aircraft of the same type and altitude.
    """

    if aircraft.icao:
        return aircraft.icao
    if aircraft.callsign:
        return aircraft.callsign
    return f"{aircraft.aircraft_type}_{aircraft.altitude}"


class TrackingEngine:
    """Decide, per aircraft and across polls, when an alert should fire."""

    def __init__(
        self,
        policy: TrackingPolicy,
        notifier: Notifier,
        *,
        history: MutableMapping[str, AircraftTracker] | None = None,
        lock: ReadWriteLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.policy = policy
        self.notifier = notifier
        self._history: MutableMapping[str, AircraftTracker] = history if history is not None else {}
        self._lock = lock or ReadWriteLock()
        self._clock = clock or _utcnow

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._history)

    def previous_distance(self, identifier: str) -> float:
        with self._lock.read_locked():
            tracker = self._history.get(identifier)
            return tracker.last_distance if tracker else 0.0

    def snapshot(self) -> dict[str, AircraftTracker]:
        with self._lock.read_locked():
            return {key: replace(tracker) for key, tracker in self._history.items()}

    def geometry(self, aircraft: Aircraft) -> tuple[float, float]:
        """Distance (km) and bearing from the observer; both 0 without a location."""

        if not self.policy.has_location:
            return 0.0, 0.0
        origin = (self.policy.latitude, self.policy.longitude)
        return (
            geo.distance(*origin, aircraft.lat, aircraft.lon),
            geo.bearing(*origin, aircraft.lat, aircraft.lon),
        )

    def should_notify(self, identifier: str, current_distance: float) -> tuple[bool, bool]:
        """Apply the notify policy and update history in one critical section.

        Returns ``(notify, first_sighting)``.
        """

        with self._lock.write_locked():
            now = self._clock()
            tracker = self._history.get(identifier)

            if tracker is None:
                self._history[identifier] = AircraftTracker(
                    last_distance=current_distance, last_seen=now, notified=True
                )
                return True, True

            closer = current_distance < tracker.last_distance
            renotify = self.policy.re_notify_after > timedelta(0)
            due = renotify and (now - tracker.last_seen) > self.policy.re_notify_after

            tracker.last_distance = current_distance
            tracker.last_seen = max(tracker.last_seen, now)

            if self.policy.notify_on_closer_only and not (closer or due):
                return False, False

            tracker.notified = True
            return True, False

    async def process_aircraft(self, aircraft: Aircraft) -> TrackingDecision:
        """Track one observation and notify if the policy says so.

        Notifier failures propagate to the caller.
        """

        distance, bearing = self.geometry(aircraft)
        direction = geo.bearing_to_compass_direction(bearing)
        identifier = resolve_identifier(aircraft)

        previous = self.previous_distance(identifier)
        notify, first = self.should_notify(identifier, distance)

        logger.info(
            "Aircraft detected: id=%s callsign=%s type=%s alt=%s distance=%.2fkm "
            "bearing=%.0f (%s) previous=%.2fkm military=%s notifying=%s",
            identifier,
            aircraft.callsign,
            aircraft.aircraft_type,
            aircraft.altitude,
            distance,
            bearing,
            direction,
            previous,
            aircraft.military,
            notify,
        )

        if notify and self.policy.notifications_enabled:
            await self.notifier.send(
                aircraft.callsign,
                aircraft.aircraft_type,
                aircraft.altitude,
                aircraft.speed,
                distance,
                direction,
                previous,
            )

        return TrackingDecision(
            identifier=identifier,
            callsign=aircraft.callsign,
            distance=distance,
            bearing=bearing,
            direction=direction,
            previous_distance=previous,
            first_sighting=first,
            notify=notify,
        )

    async def process_batch(self, aircraft: Iterable[Aircraft]) -> BatchResult:
        """Process every observation from one poll; one failure never stops the rest."""

        result = BatchResult()
        for entry in aircraft:
            try:
                result.decisions.append(await self.process_aircraft(entry))
            except Exception as exc:
                logger.exception("Failed to process aircraft %s", entry.callsign or entry.icao)
                result.failures[resolve_identifier(entry)] = exc
        return result

    def cleanup(self, now: Optional[datetime] = None) -> int:
        """Drop trackers not seen within :data:`STALE_AFTER`; returns the count removed."""

        cutoff = (now or self._clock()) - STALE_AFTER
        with self._lock.write_locked():
            stale = [key for key, tracker in self._history.items() if tracker.last_seen < cutoff]
            for key in stale:
                del self._history[key]
            remaining = len(self._history)

        if stale:
            logger.debug("Cleaned up aircraft history: removed=%s remaining=%s", len(stale), remaining)
        return len(stale)


__all__ = [
    "AircraftTracker",
    "BatchResult",
    "STALE_AFTER",
    "TrackingDecision",
    "TrackingEngine",
    "TrackingPolicy",
    "resolve_identifier",
]
