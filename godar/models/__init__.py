"""Pydantic models for the godar monitor."""

from .aircraft import Aircraft, AircraftList, Feed
from .tracking import MonitorStatus, TrackedAircraft

__all__ = [
    "Aircraft",
    "AircraftList",
    "Feed",
    "MonitorStatus",
    "TrackedAircraft",
]
