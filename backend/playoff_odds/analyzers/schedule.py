"""
Strength-of-schedule analyzer.

Rates every matchup's difficulty from opponent strength, venue, division
rivalry and head-to-head history, then aggregates past, remaining and
playoff-window scores.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import Matchup, Team, clamp
from .base import HistoricalDataProvider, InMemoryHistoryProvider


TOP_TEAM_THRESHOLD = 0.3
HOME_ADVANTAGE = 0.03
DIVISION_FACTOR = 1.1
STRETCH_LENGTH = 3


@dataclass
class WeekStrength:
    week: int
    opponent_id: str
    opponent_rank: int
    difficulty: float
    is_home: bool
    is_division: bool
    rest_days: int
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "opponent_id": self.opponent_id,
            "opponent_rank": self.opponent_rank,
            "difficulty": self.difficulty,
            "is_home": self.is_home,
            "is_division": self.is_division,
            "rest_days": self.rest_days,
            "factors": list(self.factors),
        }


@dataclass
class ScheduleStretch:
    start_week: int
    end_week: int
    avg_difficulty: float
    opponents: List[str]
    description: str

    def to_dict(self) -> dict:
        return {
            "start_week": self.start_week,
            "end_week": self.end_week,
            "avg_difficulty": self.avg_difficulty,
            "opponents": list(self.opponents),
            "description": self.description,
        }


@dataclass
class BackToBack:
    tough_games: int = 0
    easy_games: int = 0
    road_trips: int = 0
    division_stretches: int = 0

    def to_dict(self) -> dict:
        return {
            "tough_games": self.tough_games,
            "easy_games": self.easy_games,
            "road_trips": self.road_trips,
            "division_stretches": self.division_stretches,
        }


@dataclass
class ScheduleStrength:
    overall: float
    past: float
    remaining: float
    playoff_schedule: float
    week_by_week: List[WeekStrength]
    toughest_stretch: Optional[ScheduleStretch]
    easiest_stretch: Optional[ScheduleStretch]
    division_games: int
    home_games: int
    back_to_back: BackToBack

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "past": self.past,
            "remaining": self.remaining,
            "playoff_schedule": self.playoff_schedule,
            "week_by_week": [w.to_dict() for w in self.week_by_week],
            "toughest_stretch": self.toughest_stretch.to_dict() if self.toughest_stretch else None,
            "easiest_stretch": self.easiest_stretch.to_dict() if self.easiest_stretch else None,
            "division_games": self.division_games,
            "home_games": self.home_games,
            "back_to_back": self.back_to_back.to_dict(),
        }


def league_ranks(teams: Dict[str, Team]) -> Dict[str, int]:
    """Standings rank by win%, then points-for, then id."""
    ordered = sorted(teams.values(), key=lambda t: (-t.win_pct, -t.points_for, t.id))
    return {team.id: idx + 1 for idx, team in enumerate(ordered)}


class StrengthOfScheduleAnalyzer:
    """Scores schedule difficulty in [-1, 1]; higher is harder."""

    def __init__(self, provider: Optional[HistoricalDataProvider] = None):
        self.provider = provider or InMemoryHistoryProvider()

    def analyze(self, team: Team, teams: Dict[str, Team], current_week: int) -> float:
        return self.full_strength(team, teams, current_week).overall

    def full_strength(
        self,
        team: Team,
        teams: Dict[str, Team],
        current_week: int,
        playoff_start_week: Optional[int] = None
    ) -> ScheduleStrength:
        ranks = league_ranks(teams)
        week_by_week = self.week_by_week(team, teams, ranks)

        past_weeks = [w for w in week_by_week if w.week < current_week]
        future_weeks = [w for w in week_by_week if w.week >= current_week]
        past = _average([w.difficulty for w in past_weeks])
        remaining = self._remaining_strength(future_weeks)

        if playoff_start_week is None:
            playoff = 0.0
        else:
            playoff = _average([w.difficulty for w in future_weeks if w.week >= playoff_start_week])

        total = len(past_weeks) + len(future_weeks)
        if total:
            overall = (past * len(past_weeks) + remaining * len(future_weeks)) / total
        else:
            overall = 0.0

        toughest, easiest = self._stretches(week_by_week)

        return ScheduleStrength(
            overall=overall,
            past=past,
            remaining=remaining,
            playoff_schedule=playoff,
            week_by_week=week_by_week,
            toughest_stretch=toughest,
            easiest_stretch=easiest,
            division_games=sum(1 for w in week_by_week if w.is_division),
            home_games=sum(1 for w in week_by_week if w.is_home),
            back_to_back=self._back_to_back(week_by_week),
        )

    def remaining_difficulty(self, team: Team, teams: Dict[str, Team], current_week: int) -> float:
        """Weighted difficulty of unplayed weeks only."""
        ranks = league_ranks(teams)
        weeks = [w for w in self.week_by_week(team, teams, ranks) if w.week >= current_week]
        return self._remaining_strength(weeks)

    def week_by_week(self, team: Team, teams: Dict[str, Team], ranks: Dict[str, int]) -> List[WeekStrength]:
        schedule = sorted(team.schedule, key=lambda m: m.week)
        weeks = []
        previous_week = None
        for matchup in schedule:
            rest_days = 7 if previous_week is None else (matchup.week - previous_week) * 7
            previous_week = matchup.week

            opponent = teams.get(matchup.opponent_id)
            if opponent is None:
                weeks.append(WeekStrength(
                    week=matchup.week,
                    opponent_id=matchup.opponent_id,
                    opponent_rank=max(1, len(teams) // 2),
                    difficulty=0.0,
                    is_home=matchup.is_home,
                    is_division=False,
                    rest_days=rest_days,
                    factors=["Unknown opponent"],
                ))
                continue

            is_division = bool(team.division_id) and opponent.division_id == team.division_id
            weeks.append(WeekStrength(
                week=matchup.week,
                opponent_id=opponent.id,
                opponent_rank=ranks[opponent.id],
                difficulty=self.matchup_difficulty(team, opponent, matchup, teams, ranks),
                is_home=matchup.is_home,
                is_division=is_division,
                rest_days=rest_days,
                factors=self._factors(opponent, matchup, is_division, ranks, len(teams)),
            ))
        return weeks

    def matchup_difficulty(
        self,
        team: Team,
        opponent: Team,
        matchup: Matchup,
        teams: Dict[str, Team],
        ranks: Dict[str, int]
    ) -> float:
        difficulty = self.team_strength(opponent, ranks, len(teams))
        if not matchup.is_home:
            difficulty += HOME_ADVANTAGE
        if team.division_id and opponent.division_id == team.division_id:
            difficulty *= DIVISION_FACTOR

        history = self.provider.matchup_history(team.id, opponent.id)
        if history is not None:
            difficulty += (0.5 - history.win_rate) * 0.2

        # Deeper projected rosters are harder to beat
        difficulty += clamp((opponent.average_projection - team.average_projection) / 100, -0.1, 0.1)
        return clamp(difficulty, -1.0, 1.0)

    def team_strength(self, team: Team, ranks: Dict[str, int], total_teams: int) -> float:
        if total_teams <= 1:
            base = 1.0
        else:
            base = 1 - (ranks[team.id] - 1) / (total_teams - 1)
        return clamp(base + team.point_differential_per_game / 100, 0.0, 1.0)

    def _remaining_strength(self, future_weeks: List[WeekStrength]) -> float:
        if not future_weeks:
            return 0.0
        # Later weeks carry playoff implications
        weights = [1 + (idx / len(future_weeks)) * 0.5 for idx in range(len(future_weeks))]
        weighted = sum(w.difficulty * weight for w, weight in zip(future_weeks, weights))
        return weighted / sum(weights)

    def _stretches(self, weeks: List[WeekStrength]):
        if len(weeks) < STRETCH_LENGTH:
            return None, None

        toughest = None
        easiest = None
        for idx in range(len(weeks) - STRETCH_LENGTH + 1):
            stretch = weeks[idx:idx + STRETCH_LENGTH]
            avg = _average([w.difficulty for w in stretch])
            if toughest is None or avg > toughest.avg_difficulty:
                toughest = self._stretch(stretch, avg, "tough")
            if easiest is None or avg < easiest.avg_difficulty:
                easiest = self._stretch(stretch, avg, "easy")
        return toughest, easiest

    def _stretch(self, stretch: List[WeekStrength], avg: float, kind: str) -> ScheduleStretch:
        avg_rank = _average([w.opponent_rank for w in stretch])
        road = sum(1 for w in stretch if not w.is_home)
        division = sum(1 for w in stretch if w.is_division)

        description = f"{'Difficult' if kind == 'tough' else 'Favorable'} stretch: Avg opponent rank {avg_rank:.1f}"
        if road > 1:
            description += f", {road} road games"
        if division > 1:
            description += f", {division} division games"

        return ScheduleStretch(
            start_week=stretch[0].week,
            end_week=stretch[-1].week,
            avg_difficulty=avg,
            opponents=[f"Rank {w.opponent_rank}" for w in stretch],
            description=description,
        )

    def _back_to_back(self, weeks: List[WeekStrength]) -> BackToBack:
        result = BackToBack()
        tough = easy = road = division = 0
        for week in weeks:
            tough = tough + 1 if week.difficulty > 0.5 else 0
            easy = easy + 1 if week.difficulty < -0.5 else 0
            road = road + 1 if not week.is_home else 0
            division = division + 1 if week.is_division else 0
            result.tough_games = max(result.tough_games, tough)
            result.easy_games = max(result.easy_games, easy)
            result.road_trips = max(result.road_trips, road)
            result.division_stretches = max(result.division_stretches, division)
        return result

    def _factors(
        self,
        opponent: Team,
        matchup: Matchup,
        is_division: bool,
        ranks: Dict[str, int],
        total_teams: int
    ) -> List[str]:
        factors = []
        if ranks[opponent.id] <= total_teams * TOP_TEAM_THRESHOLD:
            factors.append("Elite opponent")
        if not matchup.is_home:
            factors.append("Away game")
        if is_division:
            factors.append("Division rival")
        weather = matchup.weather
        if weather is not None and not weather.dome:
            if weather.temperature < 32:
                factors.append("Cold weather")
            if weather.wind_speed > 20:
                factors.append("High winds")
        return factors


def _average(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0
