"""Service-layer components for godar."""

from .locking import ReadWriteLock
from .monitor import DEFAULT_CLEANUP_INTERVAL, Fetcher, Monitor, build_monitor
from .tracking import (
    STALE_AFTER,
    AircraftTracker,
    BatchResult,
    TrackingDecision,
    TrackingEngine,
    TrackingPolicy,
    resolve_identifier,
)

__all__ = [
    "AircraftTracker",
    "BatchResult",
    "DEFAULT_CLEANUP_INTERVAL",
    "Fetcher",
    "Monitor",
    "ReadWriteLock",
    "STALE_AFTER",
    "TrackingDecision",
    "TrackingEngine",
    "TrackingPolicy",
    "build_monitor",
    "resolve_identifier",
]
