"""Response models describing tracker and monitor state."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TrackedAircraft(BaseModel):
    """One entry from the tracking engine's history."""

    id: str = Field(..., description="Canonical aircraft identifier (ICAO, callsign or type_alt)")
    last_distance_km: float = Field(..., description="Distance from the observer at last sighting")
    last_seen: datetime = Field(..., description="Timestamp of the last sighting (UTC)")
    notified: bool = Field(..., description="Whether a notification has been sent")


class MonitorStatus(BaseModel):
    """Snapshot of the poll loop for operators."""

    running: bool = Field(..., description="Whether the poll loop is active")
    auth_method: Optional[str] = Field(
        default=None, description="Authentication method negotiated with the feed server"
    )
    last_poll_at: Optional[datetime] = Field(
        default=None, description="When the last successful poll completed"
    )
    last_error: Optional[str] = Field(
        default=None, description="Most recent poll failure, if any"
    )
    polls_completed: int = Field(default=0, description="Successful polls since start")
    tracked_aircraft: int = Field(default=0, description="Aircraft currently held in history")


__all__ = ["MonitorStatus", "TrackedAircraft"]
