"""
Data models for the championship probability engine.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set


# Rolling window of recent actual scores kept per player
PERFORMANCE_WINDOW = 8

# Score a played matchup is compared against when neither side's final is known
DEFAULT_PROJECTED_SCORE = 100.0


class Position(str, Enum):
    """Roster positions."""
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DEF = "DEF"


class InjuryStatus(str, Enum):
    """Player availability designations."""
    HEALTHY = "healthy"
    QUESTIONABLE = "questionable"
    DOUBTFUL = "doubtful"
    OUT = "out"
    IR = "IR"


# Starting lineup slots per position
STARTER_COUNTS: Dict[Position, int] = {
    Position.QB: 1,
    Position.RB: 2,
    Position.WR: 3,
    Position.TE: 1,
    Position.K: 1,
    Position.DEF: 1,
}


class MatchupLockedError(Exception):
    """Raised when trying to change a matchup whose result is already recorded."""
    pass


@dataclass(frozen=True)
class WeatherSnapshot:
    """Game-time conditions for an outdoor (or dome) venue."""

    temperature: float = 65.0
    wind_speed: float = 0.0
    precipitation: float = 0.0
    dome: bool = False

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "wind_speed": self.wind_speed,
            "precipitation": self.precipitation,
            "dome": self.dome,
        }


@dataclass
class Player:
    """A rostered player and the signals the analyzers read from them."""

    id: str
    name: str
    position: Position
    projected_points: float = 0.0
    recent_performances: List[float] = field(default_factory=list)
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    consistency: float = 0.5
    injury_type: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.injury_status == InjuryStatus.HEALTHY

    @property
    def is_active(self) -> bool:
        """Healthy or questionable players are expected to suit up."""
        return self.injury_status in (InjuryStatus.HEALTHY, InjuryStatus.QUESTIONABLE)

    @property
    def average_recent(self) -> float:
        if not self.recent_performances:
            return self.projected_points
        return sum(self.recent_performances) / len(self.recent_performances)

    def record_performance(self, points: float) -> None:
        """Append an actual score, keeping only the rolling window."""
        self.recent_performances.append(points)
        if len(self.recent_performances) > PERFORMANCE_WINDOW:
            del self.recent_performances[:-PERFORMANCE_WINDOW]

    def copy(self) -> 'Player':
        return replace(self, recent_performances=list(self.recent_performances))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.value,
            "projected_points": self.projected_points,
            "recent_performances": list(self.recent_performances),
            "injury_status": self.injury_status.value,
            "consistency": self.consistency,
            "injury_type": self.injury_type,
        }


@dataclass(frozen=True)
class Matchup:
    """
    One scheduled game from a team's point of view.

    Once ``actual_score`` is set the matchup is locked; the ``with_*``
    helpers return updated copies and refuse to touch a played game.
    """

    week: int
    opponent_id: str
    is_home: bool = False
    projected_score: Optional[float] = None
    actual_score: Optional[float] = None
    opponent_score: Optional[float] = None
    weather: Optional[WeatherSnapshot] = None
    live_score: Optional[float] = None
    opponent_live_score: Optional[float] = None
    minutes_remaining: Optional[float] = None

    @property
    def is_played(self) -> bool:
        return self.actual_score is not None

    @property
    def is_live(self) -> bool:
        return not self.is_played and self.live_score is not None

    @property
    def won(self) -> Optional[bool]:
        """Result of a played game, or None if it hasn't happened yet."""
        if self.actual_score is None:
            return None
        if self.opponent_score is not None:
            return self.actual_score > self.opponent_score
        baseline = self.projected_score or DEFAULT_PROJECTED_SCORE
        return self.actual_score > baseline

    @property
    def tied(self) -> bool:
        return (
            self.actual_score is not None
            and self.opponent_score is not None
            and self.actual_score == self.opponent_score
        )

    def _ensure_open(self) -> None:
        if self.is_played:
            raise MatchupLockedError(
                f"Week {self.week} matchup vs {self.opponent_id} already has a final score"
            )

    def record_result(self, actual_score: float, opponent_score: Optional[float] = None) -> 'Matchup':
        self._ensure_open()
        return replace(
            self,
            actual_score=actual_score,
            opponent_score=opponent_score,
            live_score=None,
            opponent_live_score=None,
            minutes_remaining=None,
        )

    def with_live_score(
        self,
        live_score: float,
        opponent_live_score: Optional[float] = None,
        minutes_remaining: Optional[float] = None
    ) -> 'Matchup':
        self._ensure_open()
        return replace(
            self,
            live_score=live_score,
            opponent_live_score=opponent_live_score,
            minutes_remaining=minutes_remaining,
        )

    def with_weather(self, weather: WeatherSnapshot) -> 'Matchup':
        self._ensure_open()
        return replace(self, weather=weather)

    def with_projection(self, projected_score: float) -> 'Matchup':
        self._ensure_open()
        return replace(self, projected_score=projected_score)

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "opponent_id": self.opponent_id,
            "is_home": self.is_home,
            "projected_score": self.projected_score,
            "actual_score": self.actual_score,
            "opponent_score": self.opponent_score,
            "weather": self.weather.to_dict() if self.weather else None,
            "live_score": self.live_score,
            "opponent_live_score": self.opponent_live_score,
            "minutes_remaining": self.minutes_remaining,
        }


def starter_ids(roster: List[Player]) -> Set[str]:
    """The top projected players filling each lineup slot."""
    starters = set()
    for position, count in STARTER_COUNTS.items():
        ranked = sorted(
            (p for p in roster if p.position == position),
            key=lambda p: (-p.projected_points, p.id)
        )
        starters.update(p.id for p in ranked[:count])
    return starters


@dataclass
class Team:
    """A fantasy team with its record, roster and full-season schedule."""

    id: str
    name: str
    division_id: str = ""
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    roster: List[Player] = field(default_factory=list)
    schedule: List[Matchup] = field(default_factory=list)
    rank: int = 0

    @property
    def record_str(self) -> str:
        return f"{self.wins}-{self.losses}-{self.ties}"

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def win_pct(self) -> float:
        total = self.games_played
        if total == 0:
            return 0.5
        return (self.wins + 0.5 * self.ties) / total

    @property
    def points_per_game(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.points_for / self.games_played

    @property
    def point_differential_per_game(self) -> float:
        if self.games_played == 0:
            return 0.0
        return (self.points_for - self.points_against) / self.games_played

    @property
    def average_projection(self) -> float:
        if not self.roster:
            return 0.0
        return sum(p.projected_points for p in self.roster) / len(self.roster)

    def remaining_schedule(self) -> List[Matchup]:
        """Matchups without a final score, in week order."""
        return sorted((m for m in self.schedule if not m.is_played), key=lambda m: m.week)

    def played_schedule(self) -> List[Matchup]:
        return sorted((m for m in self.schedule if m.is_played), key=lambda m: m.week)

    def matchup_for_week(self, week: int) -> Optional[Matchup]:
        for matchup in self.schedule:
            if matchup.week == week:
                return matchup
        return None

    def replace_matchup(self, updated: Matchup) -> None:
        for idx, matchup in enumerate(self.schedule):
            if matchup.week == updated.week:
                self.schedule[idx] = updated
                return
        raise KeyError(f"Team {self.id} has no matchup in week {updated.week}")

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.roster:
            if player.id == player_id:
                return player
        return None

    def players_at(self, position: Position) -> List[Player]:
        """Players at a position, best projection first."""
        return sorted(
            (p for p in self.roster if p.position == position),
            key=lambda p: (-p.projected_points, p.id)
        )

    def starter_ids(self) -> Set[str]:
        return starter_ids(self.roster)

    def copy(self) -> 'Team':
        """Create a value copy so simulations never touch canonical state."""
        return replace(
            self,
            roster=[p.copy() for p in self.roster],
            schedule=list(self.schedule),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "division_id": self.division_id,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "record": self.record_str,
            "win_pct": self.win_pct,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "rank": self.rank,
            "roster": [p.to_dict() for p in self.roster],
            "schedule": [m.to_dict() for m in self.schedule],
        }


@dataclass
class LeagueSettings:
    """League configuration settings."""

    current_week: int = 1
    regular_season_weeks: int = 14
    playoff_spots: int = 6
    playoff_start_week: Optional[int] = None

    @property
    def first_playoff_week(self) -> int:
        if self.playoff_start_week is not None:
            return self.playoff_start_week
        return self.regular_season_weeks + 1

    @property
    def playoff_rounds(self) -> int:
        rounds = 0
        size = 1
        while size < self.playoff_spots:
            size *= 2
            rounds += 1
        return rounds

    @property
    def championship_week(self) -> int:
        return self.first_playoff_week + max(self.playoff_rounds, 1) - 1

    def to_dict(self) -> dict:
        return {
            "current_week": self.current_week,
            "regular_season_weeks": self.regular_season_weeks,
            "playoff_spots": self.playoff_spots,
            "playoff_start_week": self.first_playoff_week,
            "championship_week": self.championship_week,
        }


@dataclass
class TeamRecord:
    """Mutable standings line cloned per trial."""

    team_id: str
    division_id: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0

    @classmethod
    def from_team(cls, team: Team) -> 'TeamRecord':
        return cls(
            team_id=team.id,
            division_id=team.division_id,
            wins=team.wins,
            losses=team.losses,
            ties=team.ties,
            points_for=team.points_for,
            points_against=team.points_against,
        )

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def win_pct(self) -> float:
        total = self.games_played
        if total == 0:
            return 0.5
        return (self.wins + 0.5 * self.ties) / total

    @property
    def point_differential_per_game(self) -> float:
        if self.games_played == 0:
            return 0.0
        return (self.points_for - self.points_against) / self.games_played

    def copy(self) -> 'TeamRecord':
        return replace(self)


@dataclass
class SimulationResult:
    """One trial's outcome for one team."""

    team_id: str
    seed: int = 0
    made_playoffs: bool = False
    won_division: bool = False
    playoff_wins: int = 0
    won_championship: bool = False
    final_rank: int = 0
    path: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "seed": self.seed,
            "made_playoffs": self.made_playoffs,
            "won_division": self.won_division,
            "playoff_wins": self.playoff_wins,
            "won_championship": self.won_championship,
            "final_rank": self.final_rank,
            "path": list(self.path),
        }


@dataclass
class KeyFactor:
    """A named, bounded driver behind a team's odds."""

    factor: str
    impact: float
    description: str
    confidence: float

    def to_dict(self) -> dict:
        return {
            "factor": self.factor,
            "impact": self.impact,
            "description": self.description,
            "confidence": self.confidence,
        }


@dataclass
class PathRound:
    round: str
    opponent: str
    win_probability: float

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "opponent": self.opponent,
            "win_probability": self.win_probability,
        }


@dataclass
class PlayoffPath:
    """Most likely seed and the games standing between it and the title."""

    seed: int
    rounds: List[PathRound] = field(default_factory=list)
    total_probability: float = 0.0

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "rounds": [r.to_dict() for r in self.rounds],
            "total_probability": self.total_probability,
        }


@dataclass
class ChampionshipProbability:
    """Aggregated outcome of one probability calculation for one team."""

    team_id: str
    playoff_probability: float
    division_probability: float
    championship_probability: float
    expected_seed: float
    strength_of_schedule: float
    momentum: float
    key_factors: List[KeyFactor] = field(default_factory=list)
    optimal_path: Optional[PlayoffPath] = None
    simulations: List[SimulationResult] = field(default_factory=list)
    computed_at: float = 0.0
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "playoff_probability": self.playoff_probability,
            "division_probability": self.division_probability,
            "championship_probability": self.championship_probability,
            "expected_seed": self.expected_seed,
            "strength_of_schedule": self.strength_of_schedule,
            "momentum": self.momentum,
            "key_factors": [f.to_dict() for f in self.key_factors],
            "optimal_path": self.optimal_path.to_dict() if self.optimal_path else None,
            "simulations": [s.to_dict() for s in self.simulations],
            "computed_at": self.computed_at,
            "generated_at": self.generated_at.isoformat(),
        }


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
