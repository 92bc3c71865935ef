"""
Win probability model.

Combines a team-strength differential with the factor analyzers into a
single per-matchup probability. Every probability is a sum of named,
weighted contributions so it can always be decomposed for explanation.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..analyzers import (
    HistoricalPatternAnalyzer,
    InjuryAnalysis,
    InjuryImpactModel,
    TeamMomentumTracker,
    WeatherFactorCalculator,
)
from ..models import Matchup, Team, TeamRecord, clamp


BASE_PROBABILITY = 0.5
STRENGTH_WEIGHT = 0.3
HOME_BONUS = 0.03
INJURY_WEIGHT = 0.2
WEATHER_WEIGHT = 0.1
MOMENTUM_WEIGHT = 0.15
HISTORY_WEIGHT = 0.1

# Live scoring contribution
GAME_MINUTES = 240.0
LIVE_CAP = 0.3

Standing = Union[Team, TeamRecord]


@dataclass
class Contribution:
    """One named term of a win probability."""

    label: str
    value: float
    weight: float

    @property
    def weighted(self) -> float:
        return self.value * self.weight

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": self.value,
            "weight": self.weight,
            "weighted": self.weighted,
        }


@dataclass
class TeamFactors:
    """Record-independent inputs cached per team for one calculation."""

    team_id: str
    injuries: InjuryAnalysis
    momentum: float
    average_projection: float


def team_strength(standing: Standing, average_projection: float) -> float:
    """
    Composite team strength.

    Args:
        standing: Anything exposing win_pct and point_differential_per_game
        average_projection: Mean roster projection

    Returns:
        0.4 * win rate + 0.3 * point differential / 100 + 0.3 * projection / 20
    """
    return (
        0.4 * standing.win_pct
        + 0.3 * standing.point_differential_per_game / 100
        + 0.3 * average_projection / 20
    )


def live_edge(matchup: Matchup) -> float:
    """Live margin scaled by how much of the game has been played."""
    if not matchup.is_live:
        return 0.0

    if matchup.opponent_live_score is not None:
        margin = matchup.live_score - matchup.opponent_live_score
    else:
        margin = matchup.live_score - (matchup.projected_score or 0.0)

    if matchup.minutes_remaining is None:
        progress = 0.5
    else:
        progress = clamp(1 - matchup.minutes_remaining / GAME_MINUTES, 0.0, 1.0)

    return clamp(margin / 100 * progress, -LIVE_CAP, LIVE_CAP)


class WinProbabilityModel:
    """Weighted-sum matchup model over injected factor analyzers."""

    def __init__(
        self,
        injury_model: Optional[InjuryImpactModel] = None,
        weather_calculator: Optional[WeatherFactorCalculator] = None,
        momentum_tracker: Optional[TeamMomentumTracker] = None,
        historical_analyzer: Optional[HistoricalPatternAnalyzer] = None
    ):
        self.injury_model = injury_model or InjuryImpactModel()
        self.weather_calculator = weather_calculator or WeatherFactorCalculator()
        self.momentum_tracker = momentum_tracker or TeamMomentumTracker()
        self.historical_analyzer = historical_analyzer or HistoricalPatternAnalyzer()

        self._factors: Dict[str, TeamFactors] = {}
        self._edges: Dict[Tuple[str, str, Matchup], float] = {}

    def prepare(
        self,
        teams: Dict[str, Team],
        current_week: Optional[int] = None,
        playoff_weeks: Iterable[int] = ()
    ) -> None:
        """
        Cache team factors and the record-independent part of every
        regular-season pairing and every possible playoff game.

        Called once per calculation, before trials are dispatched, so the
        worker threads only ever read the caches. Playoff games are keyed
        the way the bracket builds them: higher seed at home, no weather.
        """
        self._factors = {}
        self._edges = {}
        for team in teams.values():
            self._factors[team.id] = self._team_factors(team, teams, current_week)

        for team in teams.values():
            for matchup in team.remaining_schedule():
                opponent = teams.get(matchup.opponent_id)
                if opponent is not None:
                    self.static_edge(team, opponent, matchup)

        for week in playoff_weeks:
            for high in teams.values():
                for low in teams.values():
                    if high.id != low.id:
                        self.static_edge(high, low, Matchup(week=week, opponent_id=low.id, is_home=True))

    def prepared(
        self,
        teams: Dict[str, Team],
        current_week: Optional[int] = None,
        playoff_weeks: Iterable[int] = ()
    ) -> 'WinProbabilityModel':
        """A new model sharing these analyzers, with its own prepared caches."""
        model = WinProbabilityModel(
            self.injury_model,
            self.weather_calculator,
            self.momentum_tracker,
            self.historical_analyzer,
        )
        model.prepare(teams, current_week, playoff_weeks)
        return model

    def is_cached(self, team: Team, opponent: Team, matchup: Matchup) -> bool:
        return (team.id, opponent.id, matchup) in self._edges

    def factors_for(self, team: Team) -> TeamFactors:
        factors = self._factors.get(team.id)
        if factors is None:
            factors = self._team_factors(team, None, None)
            self._factors[team.id] = factors
        return factors

    def explain(
        self,
        team: Team,
        opponent: Team,
        matchup: Matchup,
        team_record: Optional[Standing] = None,
        opponent_record: Optional[Standing] = None
    ) -> List[Contribution]:
        """
        Decompose a win probability into named contributions.

        The weighted values sum to the probability before clamping.
        """
        ours = self.factors_for(team)
        theirs = self.factors_for(opponent)

        strength = (
            team_strength(team_record or team, ours.average_projection)
            - team_strength(opponent_record or opponent, theirs.average_projection)
        )

        weather = 0.0
        if matchup.weather is not None and not matchup.weather.dome:
            weather = (
                self.weather_calculator.calculate_impact(team, matchup.weather, matchup.is_home)
                - self.weather_calculator.calculate_impact(opponent, matchup.weather, not matchup.is_home)
            )

        return [
            Contribution("Base", BASE_PROBABILITY, 1.0),
            Contribution("Team Strength", strength, STRENGTH_WEIGHT),
            Contribution("Home Field", 1.0 if matchup.is_home else 0.0, HOME_BONUS),
            Contribution("Injuries", self.injury_model.net_impact(ours.injuries, theirs.injuries), INJURY_WEIGHT),
            Contribution("Weather", weather, WEATHER_WEIGHT),
            Contribution("Momentum", ours.momentum - theirs.momentum, MOMENTUM_WEIGHT),
            Contribution("Head to Head", self.historical_analyzer.get_matchup_edge(team, opponent), HISTORY_WEIGHT),
            Contribution("Live Scoring", live_edge(matchup), 1.0),
        ]

    def win_probability(
        self,
        team: Team,
        opponent: Team,
        matchup: Matchup,
        team_record: Optional[Standing] = None,
        opponent_record: Optional[Standing] = None
    ) -> float:
        """
        Probability that ``team`` wins ``matchup`` against ``opponent``.

        Args:
            team: The side the probability is reported for
            opponent: The other side
            matchup: The game from ``team``'s point of view
            team_record: Simulated standings overriding the team's record
            opponent_record: Simulated standings overriding the opponent's record

        Returns:
            Probability in [0, 1]
        """
        ours = self.factors_for(team)
        theirs = self.factors_for(opponent)
        strength = (
            team_strength(team_record or team, ours.average_projection)
            - team_strength(opponent_record or opponent, theirs.average_projection)
        )
        total = self.static_edge(team, opponent, matchup) + strength * STRENGTH_WEIGHT
        return clamp(total, 0.0, 1.0)

    def static_edge(self, team: Team, opponent: Team, matchup: Matchup) -> float:
        """Sum of every contribution except team strength."""
        key = (team.id, opponent.id, matchup)
        edge = self._edges.get(key)
        if edge is None:
            edge = sum(
                c.weighted for c in self.explain(team, opponent, matchup)
                if c.label != "Team Strength"
            )
            self._edges[key] = edge
        return edge

    def _team_factors(
        self,
        team: Team,
        teams: Optional[Dict[str, Team]],
        current_week: Optional[int]
    ) -> TeamFactors:
        return TeamFactors(
            team_id=team.id,
            injuries=self.injury_model.analyze_team_injuries(team.roster),
            momentum=self.momentum_tracker.calculate_momentum(team, teams, current_week),
            average_projection=team.average_projection,
        )
