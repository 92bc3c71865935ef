"""
Championship probability and optimization API routes.
"""

import asyncio
from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_service, get_updater
from ..schemas import OptimizationResponse, ProbabilityListResponse, ProbabilityResponse
from ...realtime.updater import RealTimeUpdater
from ...service import ChampionshipService, UnknownReferenceError


router = APIRouter(tags=["probabilities"])


@router.get("/probabilities", response_model=ProbabilityListResponse)
async def list_probabilities(
    service: ChampionshipService = Depends(get_service)
) -> ProbabilityListResponse:
    """
    Get the latest championship odds for every team, best odds first.
    """
    return ProbabilityListResponse(
        current_week=service.settings.current_week,
        teams=[ProbabilityResponse(**record.to_dict()) for record in service.probabilities()],
    )


@router.get("/probabilities/{team_id}", response_model=ProbabilityResponse)
async def get_probability(
    team_id: str,
    service: ChampionshipService = Depends(get_service)
) -> ProbabilityResponse:
    """
    Get the latest championship odds for one team.
    """
    try:
        record = service.probability(team_id)
    except UnknownReferenceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team {team_id} not found"
        )

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No probabilities computed yet for team {team_id}"
        )
    return ProbabilityResponse(**record.to_dict())


@router.get("/optimization/{team_id}", response_model=OptimizationResponse)
async def get_optimization(
    team_id: str,
    service: ChampionshipService = Depends(get_service),
    updater: RealTimeUpdater = Depends(get_updater)
) -> OptimizationResponse:
    """
    Get strategies, scenarios and a week-by-week plan for one team.
    """
    if team_id not in service.teams:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team {team_id} not found"
        )

    snapshot = service.snapshot()
    loop = asyncio.get_running_loop()
    try:
        report = await loop.run_in_executor(
            updater.executor, service.optimization_report, team_id, snapshot
        )
    except UnknownReferenceError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return OptimizationResponse(**report.to_dict())
