"""
API route modules.
"""

from .league_routes import router as league_router
from .probability_routes import router as probability_router
from .event_routes import router as event_router
from .update_routes import router as update_router

__all__ = ["league_router", "probability_router", "event_router", "update_router"]
