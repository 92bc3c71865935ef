"""
Live game events and probability change notifications.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..models import InjuryStatus
from ..simulator.validation import WeatherIn


class UpdaterState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    ACTIVE = "active"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class LiveEventBase(BaseModel):
    """Fields shared by every live event."""
    team_id: str = Field(..., min_length=1)
    game_id: str = ""
    week: Optional[int] = Field(default=None, ge=1)  # defaults to the league's current week
    timestamp: float = Field(default_factory=time.time)


class ScoreUpdate(LiveEventBase):
    kind: Literal["score_update"] = "score_update"
    current_score: float = Field(..., ge=0)
    projected_score: Optional[float] = Field(default=None, ge=0)
    opponent_score: Optional[float] = Field(default=None, ge=0)
    minutes_remaining: Optional[float] = Field(default=None, ge=0, le=240)
    players_active: List[str] = Field(default_factory=list)
    players_inactive: List[str] = Field(default_factory=list)


class PlayerInjury(LiveEventBase):
    kind: Literal["player_injury"] = "player_injury"
    player_id: str = Field(..., min_length=1)
    status: InjuryStatus = InjuryStatus.OUT
    injury_type: Optional[str] = None


class WeatherChange(LiveEventBase):
    kind: Literal["weather_change"] = "weather_change"
    weather: WeatherIn
    affected_teams: List[str] = Field(default_factory=list)


class GameStart(LiveEventBase):
    kind: Literal["game_start"] = "game_start"


class GameEnd(LiveEventBase):
    kind: Literal["game_end"] = "game_end"
    final_score: float = Field(..., ge=0)
    opponent_score: float = Field(..., ge=0)


LiveEvent = Annotated[
    Union[ScoreUpdate, PlayerInjury, WeatherChange, GameStart, GameEnd],
    Field(discriminator="kind"),
]

_event_adapter = TypeAdapter(LiveEvent)


def parse_event(data: Any) -> LiveEvent:
    """
    Parse a live event from JSON text or a dict.

    Raises:
        pydantic.ValidationError: if the payload is not a known event
    """
    if isinstance(data, (str, bytes)):
        return _event_adapter.validate_json(data)
    return _event_adapter.validate_python(data)


def is_critical(event: LiveEvent) -> bool:
    """Injuries and final scores skip the debounce window."""
    return isinstance(event, (PlayerInjury, GameEnd))


@dataclass
class LiveScore:
    team_id: str
    current_score: float
    projected_score: float
    minutes_remaining: Optional[float] = None
    players_active: List[str] = field(default_factory=list)
    players_inactive: List[str] = field(default_factory=list)

    @property
    def score_diff(self) -> float:
        return self.current_score - self.projected_score

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "current_score": self.current_score,
            "projected_score": self.projected_score,
            "minutes_remaining": self.minutes_remaining,
            "players_active": list(self.players_active),
            "players_inactive": list(self.players_inactive),
        }


@dataclass
class ProbabilityUpdate:
    """A change in one team's championship probability."""

    team_id: str
    previous_probability: float
    new_probability: float
    change: float
    reasons: List[str]
    confidence: float
    timestamp: float
    significant: bool = False

    def message(self) -> str:
        direction = "increased" if self.change > 0 else "decreased"
        text = (
            f"Team {self.team_id} championship probability {direction} by "
            f"{abs(self.change) * 100:.1f}% to {self.new_probability * 100:.1f}%"
        )
        if self.reasons:
            text += f". Reason: {self.reasons[0]}"
        return text

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "previous_probability": self.previous_probability,
            "new_probability": self.new_probability,
            "change": self.change,
            "reasons": list(self.reasons),
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "significant": self.significant,
        }
