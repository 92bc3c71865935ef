"""
Probability update history, streaming and updater status API routes.
"""

import asyncio
import json
from typing import AsyncIterator, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..dependencies import get_updater
from ..schemas import ProbabilityUpdateResponse, UpdateHistoryResponse, UpdaterStatusResponse
from ...realtime import ProbabilityUpdate
from ...realtime.updater import RealTimeUpdater


router = APIRouter(tags=["updates"])

KEEPALIVE_SECONDS = 15.0


def update_payload(update: ProbabilityUpdate) -> dict:
    return {**update.to_dict(), "message": update.message()}


async def update_event_stream(
    updater: RealTimeUpdater,
    queue: asyncio.Queue,
    max_events: Optional[int] = None,
    keepalive: float = KEEPALIVE_SECONDS
) -> AsyncIterator[str]:
    """
    Server-sent events for significant probability updates.

    Sends a comment line when nothing happens for ``keepalive`` seconds.
    Unsubscribes when the client goes away or ``max_events`` have been sent.
    """
    sent = 0
    try:
        while max_events is None or sent < max_events:
            try:
                update = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {json.dumps(update_payload(update))}\n\n"
            sent += 1
    finally:
        updater.unsubscribe(queue)


@router.get("/updates", response_model=UpdateHistoryResponse)
async def get_updates(
    limit: int = Query(default=100, ge=1, le=1000),
    significant_only: bool = False,
    updater: RealTimeUpdater = Depends(get_updater)
) -> UpdateHistoryResponse:
    """
    Get recent probability updates, oldest first.
    """
    updates = updater.history()
    if significant_only:
        updates = [u for u in updates if u.significant]
    return UpdateHistoryResponse(
        updates=[ProbabilityUpdateResponse(**update_payload(u)) for u in updates[-limit:]]
    )


@router.get("/updates/stream")
async def stream_updates(
    max_events: Optional[int] = Query(default=None, ge=1),
    updater: RealTimeUpdater = Depends(get_updater)
):
    """
    Stream significant probability updates via Server-Sent Events (SSE).
    """
    queue = updater.subscribe()
    return StreamingResponse(
        update_event_stream(updater, queue, max_events),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


@router.get("/updater/status", response_model=UpdaterStatusResponse)
async def get_updater_status(
    updater: RealTimeUpdater = Depends(get_updater)
) -> UpdaterStatusResponse:
    """
    Get the real-time updater's state, connection and counters.
    """
    return UpdaterStatusResponse(**updater.status())
