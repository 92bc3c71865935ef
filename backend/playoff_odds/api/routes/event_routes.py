"""
Live event intake API routes.
"""

import asyncio
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from ..dependencies import get_updater
from ..schemas import EventAcceptedResponse, ValidationErrorResponse
from ...realtime import parse_event
from ...realtime.updater import RealTimeUpdater


router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=EventAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={422: {"model": ValidationErrorResponse}}
)
async def submit_event(
    payload: Dict[str, Any] = Body(...),
    updater: RealTimeUpdater = Depends(get_updater)
) -> EventAcceptedResponse:
    """
    Queue a live event (score update, injury, weather change, game start or end).

    Events are applied in arrival order; injuries and final scores trigger an
    immediate recompute, everything else is batched.
    """
    try:
        event = parse_event(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Invalid live event",
                "violations": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            }
        )

    try:
        updater.submit(event)
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
    except asyncio.QueueFull:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event queue is full, retry shortly"
        )

    return EventAcceptedResponse(
        kind=event.kind,
        team_id=event.team_id,
        queued=updater.status()["queued_events"],
    )
