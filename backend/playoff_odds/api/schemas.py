"""
Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ============== League Schemas ==============

class LeagueLoadResponse(BaseModel):
    """Result of loading a league snapshot."""
    teams: List[str]
    current_week: int
    regular_season_weeks: int
    playoff_spots: int
    computed: int = 0


class ValidationErrorResponse(BaseModel):
    """Every violation found in a rejected payload."""
    message: str
    violations: List[str]


# ============== Probability Schemas ==============

class KeyFactorResponse(BaseModel):
    factor: str
    impact: float
    description: str
    confidence: float = Field(..., ge=0, le=1)


class PathRoundResponse(BaseModel):
    round: str
    opponent: str
    win_probability: float = Field(..., ge=0, le=1)


class PlayoffPathResponse(BaseModel):
    seed: int
    rounds: List[PathRoundResponse] = []
    total_probability: float = Field(..., ge=0, le=1)


class ProbabilityResponse(BaseModel):
    """Championship odds for one team."""
    team_id: str
    playoff_probability: float = Field(..., ge=0, le=1)
    division_probability: float = Field(..., ge=0, le=1)
    championship_probability: float = Field(..., ge=0, le=1)
    expected_seed: float
    strength_of_schedule: float
    momentum: float
    key_factors: List[KeyFactorResponse] = []
    optimal_path: Optional[PlayoffPathResponse] = None
    computed_at: float
    generated_at: datetime


class ProbabilityListResponse(BaseModel):
    current_week: int
    teams: List[ProbabilityResponse]


# ============== Optimization Schemas ==============

class OptimizationResponse(BaseModel):
    """Optimization report for one team."""
    team_id: str
    current_probability: float
    optimized_probability: float
    strategies: List[Dict[str, Any]]
    scenarios: List[Dict[str, Any]]
    recommendations: List[Dict[str, Any]]
    timeline: List[Dict[str, Any]]
    competitive_analysis: List[Dict[str, Any]]


# ============== Live Update Schemas ==============

class EventAcceptedResponse(BaseModel):
    accepted: bool = True
    kind: str
    team_id: str
    queued: int


class ProbabilityUpdateResponse(BaseModel):
    team_id: str
    previous_probability: float
    new_probability: float
    change: float
    reasons: List[str]
    confidence: float
    timestamp: float
    significant: bool
    message: str


class UpdateHistoryResponse(BaseModel):
    updates: List[ProbabilityUpdateResponse]


class UpdaterStatusResponse(BaseModel):
    state: str
    connection: str
    active_games: List[str]
    live_scores: Dict[str, Dict[str, Any]]
    pending_teams: List[str]
    queued_events: int
    recompute_count: int
    dropped_events: int
    last_update: Optional[float] = None
    history_size: int
    subscribers: int
