"""
FastAPI dependencies for the objects created in the application lifespan.
"""

from fastapi import HTTPException, Request, status

from ..realtime.updater import RealTimeUpdater
from ..service import ChampionshipService


def get_service(request: Request) -> ChampionshipService:
    """FastAPI dependency for the league service."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready"
        )
    return service


def get_updater(request: Request) -> RealTimeUpdater:
    """FastAPI dependency for the real-time updater."""
    updater = getattr(request.app.state, "updater", None)
    if updater is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Real-time updater is not ready"
        )
    return updater
