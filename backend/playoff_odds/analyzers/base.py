"""
Historical data provider interface.

Head-to-head history and past playoff results come from outside the engine.
Analyzers read them through a HistoricalDataProvider so a real data source
can be plugged in without touching the probability model.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class MatchupHistory:
    """Past meetings between two teams, from the first team's point of view."""

    games: int
    wins: int
    average_point_diff: float = 0.0
    recent_trend: str = "stable"  # improving, declining, stable

    @property
    def win_rate(self) -> float:
        if self.games == 0:
            return 0.5
        return self.wins / self.games

    def reversed(self) -> 'MatchupHistory':
        """The same history seen from the opponent's side."""
        trend = {"improving": "declining", "declining": "improving"}.get(
            self.recent_trend, self.recent_trend
        )
        return MatchupHistory(
            games=self.games,
            wins=self.games - self.wins,
            average_point_diff=-self.average_point_diff,
            recent_trend=trend,
        )


@dataclass(frozen=True)
class PlayoffHistory:
    """A franchise's past postseason results."""

    appearances: int = 0
    championships: int = 0
    win_rate: float = 0.0


class HistoricalDataProvider(ABC):
    """Abstract source of historical league data."""

    @abstractmethod
    def matchup_history(self, team_id: str, opponent_id: str) -> Optional[MatchupHistory]:
        """
        Look up past meetings between two teams.

        Args:
            team_id: The team whose perspective the record is reported from
            opponent_id: The opposing team

        Returns:
            MatchupHistory, or None when the teams have never met
        """
        pass

    @abstractmethod
    def playoff_history(self, team_id: str) -> PlayoffHistory:
        """Return the team's postseason record (empty record when unknown)."""
        pass


class InMemoryHistoryProvider(HistoricalDataProvider):
    """Provider backed by records registered at runtime."""

    def __init__(self):
        self._matchups: Dict[Tuple[str, str], MatchupHistory] = {}
        self._playoffs: Dict[str, PlayoffHistory] = {}

    def add_matchup(self, team_id: str, opponent_id: str, history: MatchupHistory) -> None:
        self._matchups[(team_id, opponent_id)] = history
        self._matchups[(opponent_id, team_id)] = history.reversed()

    def add_playoff_history(self, team_id: str, history: PlayoffHistory) -> None:
        self._playoffs[team_id] = history

    def matchup_history(self, team_id: str, opponent_id: str) -> Optional[MatchupHistory]:
        history = self._matchups.get((team_id, opponent_id))
        if history is None or history.games == 0:
            return None
        return history

    def playoff_history(self, team_id: str) -> PlayoffHistory:
        return self._playoffs.get(team_id, PlayoffHistory())
