"""Read-only views of the tracking engine and poll loop."""

from __future__ import annotations

from fastapi import APIRouter, Request

from godar.models import MonitorStatus, TrackedAircraft
from godar.services import Monitor

router = APIRouter(prefix="/api/v1", tags=["aircraft"])


def _get_monitor(request: Request) -> Monitor | None:
    return getattr(request.app.state, "monitor", None)


@router.get(
    "/aircraft",
    response_model=list[TrackedAircraft],
    summary="List tracked aircraft",
)
def list_tracked_aircraft(request: Request) -> list[TrackedAircraft]:
    """Return every aircraft currently held in tracking history, closest first."""

    monitor = _get_monitor(request)
    if monitor is None:
        return []

    tracked = [
        TrackedAircraft(
            id=identifier,
            last_distance_km=tracker.last_distance,
            last_seen=tracker.last_seen,
            notified=tracker.notified,
        )
        for identifier, tracker in monitor.engine.snapshot().items()
    ]
    tracked.sort(key=lambda entry: entry.last_distance_km)
    return tracked


@router.get("/status", response_model=MonitorStatus, summary="Poll loop status")
def monitor_status(request: Request) -> MonitorStatus:
    """Report whether the poll loop is running and how the last poll went."""

    monitor = _get_monitor(request)
    if monitor is None:
        return MonitorStatus(running=False)

    auth_method = monitor.auth_method
    return MonitorStatus(
        running=monitor.running,
        auth_method=auth_method.value if auth_method else None,
        last_poll_at=monitor.last_poll_at,
        last_error=monitor.last_error,
        polls_completed=monitor.polls_completed,
        tracked_aircraft=len(monitor.engine),
    )
