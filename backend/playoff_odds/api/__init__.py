"""
API module.
"""

from .routes import league_router, probability_router, event_router, update_router
from .dependencies import get_service, get_updater

__all__ = [
    "league_router",
    "probability_router",
    "event_router",
    "update_router",
    "get_service",
    "get_updater",
]
