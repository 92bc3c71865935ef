"""
Fantasy Football Championship Probability Engine - FastAPI Application

Main entry point for the web API.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.routes import league_router, probability_router, event_router, update_router
from .core.config import EngineConfig
from .realtime import QueueEventChannel, StreamingEventChannel
from .realtime.updater import RealTimeUpdater
from .service import ChampionshipService
from .simulator import ChampionshipEngine


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("playoff_odds")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    config = EngineConfig.from_env()
    trial_pool = ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix="trials")
    recompute_pool = ThreadPoolExecutor(max_workers=config.max_concurrency, thread_name_prefix="recompute")

    service = ChampionshipService(config=config, engine=ChampionshipEngine(config=config, executor=trial_pool))
    if config.live_feed_url:
        channel = StreamingEventChannel(config.live_feed_url)
    else:
        channel = QueueEventChannel(maxsize=config.event_queue_size)
    updater = RealTimeUpdater(service, channel, config, executor=recompute_pool)

    app.state.service = service
    app.state.updater = updater
    await updater.start()
    logger.info(f"Championship engine ready ({config.trial_count} trials per calculation)")

    yield

    # Shutdown
    await updater.stop()
    recompute_pool.shutdown(wait=False, cancel_futures=True)
    trial_pool.shutdown(wait=False, cancel_futures=True)


# Create FastAPI app
app = FastAPI(
    title="Fantasy Football Championship Probability Engine",
    description="Monte Carlo championship, playoff and division odds for fantasy football leagues, updated live.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# CORS configuration
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(league_router, prefix="/api")
app.include_router(probability_router, prefix="/api")
app.include_router(event_router, prefix="/api")
app.include_router(update_router, prefix="/api")


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Fantasy Football Championship Probability Engine API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/api/health"
    }
