"""
Boundary validation for league snapshots.

Field-level rules live on the pydantic models; cross-record rules (unique
ids, reciprocal schedules) run afterwards. Every violation found is
reported together and nothing is built unless the snapshot is clean.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from ..models import (
    ChampionshipProbability,
    InjuryStatus,
    LeagueSettings,
    Matchup,
    PERFORMANCE_WINDOW,
    Player,
    Position,
    Team,
    WeatherSnapshot,
)


class LeagueValidationError(Exception):
    """Raised when a league snapshot fails validation."""

    def __init__(self, violations: List[str]):
        self.violations = violations
        super().__init__(f"{len(violations)} validation error(s): " + "; ".join(violations))


class PlayerIn(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    position: Position
    projected_points: float = Field(default=0.0, ge=0)
    recent_performances: List[float] = Field(default_factory=list)
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    consistency: float = Field(default=0.5, ge=0, le=1)
    injury_type: Optional[str] = None


class WeatherIn(BaseModel):
    temperature: float = 65.0
    wind_speed: float = Field(default=0.0, ge=0)
    precipitation: float = Field(default=0.0, ge=0)
    dome: bool = False


class MatchupIn(BaseModel):
    week: int = Field(..., ge=1)
    opponent_id: str = Field(..., min_length=1)
    is_home: bool = False
    projected_score: Optional[float] = Field(default=None, ge=0)
    actual_score: Optional[float] = Field(default=None, ge=0)
    opponent_score: Optional[float] = Field(default=None, ge=0)
    weather: Optional[WeatherIn] = None


class TeamIn(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    division_id: str = ""
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    ties: int = Field(default=0, ge=0)
    points_for: float = Field(default=0.0, ge=0)
    points_against: float = Field(default=0.0, ge=0)
    rank: int = Field(default=0, ge=0)
    roster: List[PlayerIn] = Field(default_factory=list)
    schedule: List[MatchupIn] = Field(default_factory=list)


class LeagueSettingsIn(BaseModel):
    current_week: int = Field(default=1, ge=1)
    regular_season_weeks: int = Field(default=14, ge=1)
    playoff_spots: int = Field(default=6, ge=1)
    playoff_start_week: Optional[int] = Field(default=None, ge=1)


class LeagueSnapshotIn(BaseModel):
    """A full league: teams plus settings."""
    teams: List[TeamIn] = Field(..., min_length=1)
    settings: LeagueSettingsIn = Field(default_factory=LeagueSettingsIn)


def _format_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}"


def _cross_record_violations(snapshot: LeagueSnapshotIn) -> List[str]:
    violations = []
    teams = {t.id: t for t in snapshot.teams}

    for team_id, count in Counter(t.id for t in snapshot.teams).items():
        if count > 1:
            violations.append(f"Duplicate team id '{team_id}'")

    for team in snapshot.teams:
        for player_id, count in Counter(p.id for p in team.roster).items():
            if count > 1:
                violations.append(f"Team '{team.id}': duplicate player id '{player_id}'")

        for week, count in Counter(m.week for m in team.schedule).items():
            if count > 1:
                violations.append(f"Team '{team.id}': {count} matchups in week {week}")

        for matchup in team.schedule:
            where = f"Team '{team.id}' week {matchup.week}"
            if matchup.opponent_id == team.id:
                violations.append(f"{where}: team is scheduled against itself")
                continue
            opponent = teams.get(matchup.opponent_id)
            if opponent is None:
                violations.append(f"{where}: unknown opponent '{matchup.opponent_id}'")
                continue

            other = next((m for m in opponent.schedule if m.week == matchup.week), None)
            if other is None or other.opponent_id != team.id:
                violations.append(
                    f"{where}: opponent '{opponent.id}' does not list '{team.id}' that week"
                )
                continue
            # Each pair is checked once, from the lower id
            if team.id > opponent.id:
                continue
            if matchup.is_home and other.is_home:
                violations.append(f"{where}: both '{team.id}' and '{opponent.id}' are home")
            if (matchup.actual_score is None) != (other.actual_score is None):
                violations.append(f"{where}: final score recorded on only one side")
            if matchup.opponent_score is not None and other.actual_score is not None \
                    and matchup.opponent_score != other.actual_score:
                violations.append(f"{where}: opponent score disagrees with '{opponent.id}' schedule")
            if other.opponent_score is not None and matchup.actual_score is not None \
                    and other.opponent_score != matchup.actual_score:
                violations.append(f"{where}: score disagrees with '{opponent.id}' schedule")

    settings = snapshot.settings
    if settings.playoff_start_week is not None and settings.playoff_start_week <= settings.regular_season_weeks:
        violations.append("settings: playoff_start_week must come after the regular season")

    return violations


def _build_player(player: PlayerIn) -> Player:
    data = player.model_dump()
    data["recent_performances"] = data["recent_performances"][-PERFORMANCE_WINDOW:]
    return Player(**data)


def _build_team(team: TeamIn, scores: Dict[Tuple[str, int], Optional[float]]) -> Team:
    schedule = []
    for m in sorted(team.schedule, key=lambda m: m.week):
        opponent_score = m.opponent_score
        if opponent_score is None and m.actual_score is not None:
            opponent_score = scores.get((m.opponent_id, m.week))
        schedule.append(Matchup(
            week=m.week,
            opponent_id=m.opponent_id,
            is_home=m.is_home,
            projected_score=m.projected_score,
            actual_score=m.actual_score,
            opponent_score=opponent_score,
            weather=WeatherSnapshot(**m.weather.model_dump()) if m.weather else None,
        ))

    return Team(
        id=team.id,
        name=team.name,
        division_id=team.division_id,
        wins=team.wins,
        losses=team.losses,
        ties=team.ties,
        points_for=team.points_for,
        points_against=team.points_against,
        rank=team.rank,
        roster=[_build_player(p) for p in team.roster],
        schedule=schedule,
    )


def load_league(
    payload: Any,
    default_playoff_spots: Optional[int] = None
) -> Tuple[Dict[str, Team], LeagueSettings]:
    """
    Validate a league snapshot and build fresh model objects.

    Args:
        payload: Parsed JSON dict or an already-validated LeagueSnapshotIn
        default_playoff_spots: Bracket size used when the snapshot's settings omit one

    Returns:
        Tuple of (teams keyed by id, league settings)

    Raises:
        LeagueValidationError: listing every violation found
    """
    if isinstance(payload, LeagueSnapshotIn):
        snapshot = payload
    else:
        try:
            snapshot = LeagueSnapshotIn.model_validate(payload)
        except ValidationError as e:
            raise LeagueValidationError([_format_error(err) for err in e.errors()])

    violations = _cross_record_violations(snapshot)
    if violations:
        raise LeagueValidationError(violations)

    scores = {
        (t.id, m.week): m.actual_score
        for t in snapshot.teams for m in t.schedule
    }
    teams = {t.id: _build_team(t, scores) for t in snapshot.teams}
    data = snapshot.settings.model_dump()
    if default_playoff_spots is not None and "playoff_spots" not in snapshot.settings.model_fields_set:
        data["playoff_spots"] = default_playoff_spots
    settings = LeagueSettings(**data)
    return teams, settings


def validate_probability_record(record: ChampionshipProbability) -> None:
    """
    Reject a probability record with any value outside [0, 1].

    Raises:
        LeagueValidationError: listing the offending fields
    """
    violations = []
    for name in ("playoff_probability", "division_probability", "championship_probability"):
        value = getattr(record, name)
        if not 0.0 <= value <= 1.0:
            violations.append(f"{record.team_id}.{name}: {value} outside [0, 1]")
    if record.championship_probability > record.playoff_probability:
        violations.append(f"{record.team_id}: championship probability exceeds playoff probability")
    for factor in record.key_factors:
        if not 0.0 <= factor.confidence <= 1.0:
            violations.append(f"{record.team_id}.key_factors[{factor.factor}]: confidence outside [0, 1]")
    if violations:
        raise LeagueValidationError(violations)
