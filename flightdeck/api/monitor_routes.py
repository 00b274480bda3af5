"""
Monitor Routes — Directory Size Monitor Control

- GET  /api/monitor  — status
- POST /api/monitor  — {action: start|stop|restart|collect, intervalSeconds?}

start on a running monitor and stop on a stopped one are rejected with
400 so the dashboard can tell a no-op from a state change.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from flightdeck.monitor import DirectorySizeMonitor

from .deps import get_monitor
from .schemas import MonitorAction, MonitorRequest, MonitorResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Monitor"])


def _status_response(monitor: DirectorySizeMonitor, message: Optional[str] = None) -> MonitorResponse:
    current = monitor.status()
    return MonitorResponse(
        monitoring=current.monitoring,
        instanceId=current.instance_id,
        startTime=current.start_time,
        intervalSeconds=current.interval_seconds,
        message=message,
    )


@router.get("/monitor", response_model=MonitorResponse)
def monitor_status(monitor: DirectorySizeMonitor = Depends(get_monitor)):
    return _status_response(monitor)


@router.post("/monitor", response_model=MonitorResponse)
def control_monitor(
    request: MonitorRequest,
    monitor: DirectorySizeMonitor = Depends(get_monitor),
):
    try:
        action = MonitorAction(request.action)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid action: '{request.action}'",
        )

    if action is MonitorAction.START:
        if not monitor.start(request.intervalSeconds):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Monitoring is already active",
            )
        return _status_response(monitor, "Monitoring started")

    if action is MonitorAction.STOP:
        if not monitor.stop():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Monitoring is not active",
            )
        return _status_response(monitor, "Monitoring stopped")

    if action is MonitorAction.RESTART:
        instance_id = monitor.restart(request.intervalSeconds)
        return _status_response(monitor, f"Monitoring restarted as {instance_id}")

    line = monitor.collect_once()
    if line is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Collection skipped; check dataPath, activeBucket and credentials",
        )
    return _status_response(monitor, line)
