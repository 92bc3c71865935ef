"""
League snapshot API routes.
"""

import asyncio
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..dependencies import get_service, get_updater
from ..schemas import LeagueLoadResponse, ValidationErrorResponse
from ...realtime.updater import RealTimeUpdater
from ...service import ChampionshipService
from ...simulator import LeagueValidationError


router = APIRouter(prefix="/league", tags=["league"])


@router.post(
    "",
    response_model=LeagueLoadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ValidationErrorResponse}}
)
async def load_league_snapshot(
    payload: Dict[str, Any] = Body(...),
    service: ChampionshipService = Depends(get_service),
    updater: RealTimeUpdater = Depends(get_updater)
) -> LeagueLoadResponse:
    """
    Load a full league snapshot and compute probabilities for every team.

    The snapshot replaces the current league. Every violation in the payload
    is reported together; on failure the current league is left untouched.
    """
    try:
        team_ids = service.load(payload)
    except LeagueValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invalid league snapshot", "violations": e.violations}
        )
    updater.reset()

    # Copy state on the loop; simulation is CPU-bound and runs off it
    snapshot = service.snapshot()
    loop = asyncio.get_running_loop()
    changes = await loop.run_in_executor(updater.executor, service.recompute, snapshot)

    return LeagueLoadResponse(
        teams=team_ids,
        current_week=service.settings.current_week,
        regular_season_weeks=service.settings.regular_season_weeks,
        playoff_spots=service.settings.playoff_spots,
        computed=len(changes),
    )
