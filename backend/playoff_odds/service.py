"""
League service.

Owns the canonical league state, applies live events to it and runs the
engine against point-in-time snapshots. Event application and snapshots
happen on the event loop; ``recompute`` only ever touches the snapshot it is
given, so it is safe to run on a worker thread.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from .core.config import EngineConfig
from .models import ChampionshipProbability, LeagueSettings, Matchup, Team, WeatherSnapshot
from .optimizer import ChampionshipPathOptimizer, OptimizationReport
from .realtime.events import GameEnd, GameStart, LiveEvent, PlayerInjury, ScoreUpdate, WeatherChange
from .realtime.store import ProbabilityStore, StoreChange
from .simulator import ChampionshipEngine, load_league, validate_probability_record


logger = logging.getLogger(__name__)


class UnknownReferenceError(Exception):
    """Raised when an event names a team, player or matchup the league doesn't have."""
    pass


@dataclass
class LeagueSnapshot:
    """Value copy of the league taken at a monotonic instant."""

    teams: Dict[str, Team]
    settings: LeagueSettings
    taken_at: float


def _copy_settings(settings: LeagueSettings) -> LeagueSettings:
    return LeagueSettings(
        current_week=settings.current_week,
        regular_season_weeks=settings.regular_season_weeks,
        playoff_spots=settings.playoff_spots,
        playoff_start_week=settings.playoff_start_week,
    )


class ChampionshipService:
    """Canonical league state plus the engine, optimizer and probability store."""

    def __init__(
        self,
        teams: Optional[Dict[str, Team]] = None,
        settings: Optional[LeagueSettings] = None,
        config: Optional[EngineConfig] = None,
        engine: Optional[ChampionshipEngine] = None,
        optimizer: Optional[ChampionshipPathOptimizer] = None,
        store: Optional[ProbabilityStore] = None
    ):
        self.config = config or EngineConfig()
        self.teams: Dict[str, Team] = teams or {}
        self.settings = settings or LeagueSettings(playoff_spots=self.config.playoff_spots)
        self.engine = engine or ChampionshipEngine(config=self.config)
        self.optimizer = optimizer or ChampionshipPathOptimizer(
            momentum_tracker=self.engine.model.momentum_tracker,
            injury_model=self.engine.model.injury_model,
        )
        self.store = store or ProbabilityStore()
        self.loaded_at = time.monotonic()

    # =========================================================================
    # League state
    # =========================================================================

    def load(self, payload: Any) -> List[str]:
        """
        Replace the league with a validated snapshot.

        Raises:
            LeagueValidationError: if the snapshot is invalid (state is unchanged)
        """
        teams, settings = load_league(payload, default_playoff_spots=self.config.playoff_spots)
        self.teams = teams
        self.settings = settings
        self.loaded_at = time.monotonic()
        self.store.clear()
        logger.info(f"Loaded league with {len(teams)} teams at week {settings.current_week}")
        return sorted(teams)

    def snapshot(self) -> LeagueSnapshot:
        return LeagueSnapshot(
            teams={team_id: team.copy() for team_id, team in self.teams.items()},
            settings=_copy_settings(self.settings),
            taken_at=time.monotonic(),
        )

    def team(self, team_id: str) -> Team:
        team = self.teams.get(team_id)
        if team is None:
            raise UnknownReferenceError(f"Unknown team: {team_id}")
        return team

    # =========================================================================
    # Live events
    # =========================================================================

    def apply_event(self, event: LiveEvent) -> Set[str]:
        """
        Apply a live event to the canonical league state.

        Args:
            event: A parsed live event

        Returns:
            Ids of the teams whose odds the event affects

        Raises:
            UnknownReferenceError: if the event names an unknown team, player or matchup
            MatchupLockedError: if the event would change a game with a final score
        """
        week = event.week or self.settings.current_week

        if isinstance(event, ScoreUpdate):
            return self._apply_score(event, week)
        if isinstance(event, PlayerInjury):
            return self._apply_injury(event, week)
        if isinstance(event, WeatherChange):
            return self._apply_weather(event, week)
        if isinstance(event, GameStart):
            return self._apply_game_start(event, week)
        if isinstance(event, GameEnd):
            return self._apply_game_end(event, week)
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def _matchup(self, team: Team, week: int) -> Matchup:
        matchup = team.matchup_for_week(week)
        if matchup is None:
            raise UnknownReferenceError(f"Team {team.id} has no matchup in week {week}")
        return matchup

    def _opponent(self, matchup: Matchup) -> Team:
        return self.team(matchup.opponent_id)

    def _apply_score(self, event: ScoreUpdate, week: int) -> Set[str]:
        team = self.team(event.team_id)
        matchup = self._matchup(team, week)
        opponent = self._opponent(matchup)
        opponent_matchup = self._matchup(opponent, week)

        updated = matchup.with_live_score(event.current_score, event.opponent_score, event.minutes_remaining)
        if event.projected_score is not None:
            updated = updated.with_projection(event.projected_score)

        if event.opponent_score is not None:
            mirrored = opponent_matchup.with_live_score(
                event.opponent_score, event.current_score, event.minutes_remaining
            )
        elif opponent_matchup.live_score is not None:
            mirrored = opponent_matchup.with_live_score(
                opponent_matchup.live_score, event.current_score, event.minutes_remaining
            )
            updated = updated.with_live_score(
                event.current_score, opponent_matchup.live_score, event.minutes_remaining
            )
        else:
            mirrored = opponent_matchup

        team.replace_matchup(updated)
        opponent.replace_matchup(mirrored)
        return {team.id, opponent.id}

    def _apply_injury(self, event: PlayerInjury, week: int) -> Set[str]:
        team = self.team(event.team_id)
        player = team.find_player(event.player_id)
        if player is None:
            raise UnknownReferenceError(f"Team {team.id} has no player {event.player_id}")

        player.injury_status = event.status
        player.injury_type = event.injury_type
        logger.info(f"{player.name} ({team.id}) marked {event.status.value}")

        affected = {team.id}
        matchup = team.matchup_for_week(week)
        if matchup is not None and matchup.opponent_id in self.teams:
            affected.add(matchup.opponent_id)
        return affected

    def _apply_weather(self, event: WeatherChange, week: int) -> Set[str]:
        weather = WeatherSnapshot(**event.weather.model_dump())
        team_ids = [event.team_id] + [t for t in event.affected_teams if t != event.team_id]

        # Resolve every matchup first so a bad reference leaves state untouched
        updates = []
        for team_id in team_ids:
            team = self.team(team_id)
            updates.append((team, self._matchup(team, week).with_weather(weather)))

        for team, matchup in updates:
            team.replace_matchup(matchup)
        return set(team_ids)

    def _apply_game_start(self, event: GameStart, week: int) -> Set[str]:
        team = self.team(event.team_id)
        matchup = self._matchup(team, week)
        opponent = self._opponent(matchup)
        opponent_matchup = self._matchup(opponent, week)

        if not matchup.is_live:
            team.replace_matchup(matchup.with_live_score(0.0, 0.0, 240.0))
        if not opponent_matchup.is_live:
            opponent.replace_matchup(opponent_matchup.with_live_score(0.0, 0.0, 240.0))
        return {team.id, opponent.id}

    def _apply_game_end(self, event: GameEnd, week: int) -> Set[str]:
        team = self.team(event.team_id)
        matchup = self._matchup(team, week)
        opponent = self._opponent(matchup)
        opponent_matchup = self._matchup(opponent, week)

        final = matchup.record_result(event.final_score, event.opponent_score)
        opponent_final = opponent_matchup.record_result(event.opponent_score, event.final_score)
        team.replace_matchup(final)
        opponent.replace_matchup(opponent_final)

        if week < self.settings.first_playoff_week:
            self._record_game(team, event.final_score, event.opponent_score)
            self._record_game(opponent, event.opponent_score, event.final_score)
        logger.info(
            f"Final week {week}: {team.id} {event.final_score} - {event.opponent_score} {opponent.id}"
        )

        if week == self.settings.current_week:
            self._advance_week()
        return {team.id, opponent.id}

    @staticmethod
    def _record_game(team: Team, scored: float, allowed: float) -> None:
        if scored > allowed:
            team.wins += 1
        elif scored < allowed:
            team.losses += 1
        else:
            team.ties += 1
        team.points_for += scored
        team.points_against += allowed

    def _advance_week(self) -> None:
        """Move to the next week once every game of the current one is final."""
        week = self.settings.current_week
        if week >= self.settings.championship_week:
            return
        for team in self.teams.values():
            matchup = team.matchup_for_week(week)
            if matchup is not None and not matchup.is_played:
                return
        self.settings.current_week = week + 1
        logger.info(f"All week {week} games final; advancing to week {week + 1}")

    # =========================================================================
    # Probabilities
    # =========================================================================

    def recompute(
        self,
        snapshot: Optional[LeagueSnapshot] = None,
        team_ids: Optional[Iterable[str]] = None
    ) -> List[StoreChange]:
        """
        Run the engine on a snapshot and store the results.

        Every record is validated before any is stored. Records computed from a
        snapshot older than the currently loaded league are discarded.

        Args:
            snapshot: League snapshot (taken now when omitted)
            team_ids: Teams to recompute; the whole league when omitted

        Returns:
            The store changes that were applied
        """
        snapshot = snapshot or self.snapshot()
        targets = None
        if team_ids is not None:
            targets = sorted(t for t in set(team_ids) if t in snapshot.teams)
            unknown = set(team_ids) - set(targets)
            if unknown:
                logger.warning(f"Skipping unknown teams in recompute: {sorted(unknown)}")

        records = self.engine.calculate_championship_probabilities(
            snapshot.teams,
            snapshot.settings,
            team_ids=targets,
            computed_at=snapshot.taken_at,
        )
        for record in records:
            validate_probability_record(record)

        if snapshot.taken_at < self.loaded_at:
            logger.info("Discarding results computed against a replaced league")
            return []
        return self.store.put_many(records)

    def probability(self, team_id: str) -> Optional[ChampionshipProbability]:
        self.team(team_id)
        return self.store.get(team_id)

    def probabilities(self) -> List[ChampionshipProbability]:
        return self.store.all()

    def optimization_report(
        self,
        team_id: str,
        snapshot: Optional[LeagueSnapshot] = None
    ) -> OptimizationReport:
        """
        Build an optimization report for one team.

        Computes the team's probability first if the store has none yet.

        Raises:
            UnknownReferenceError: if the team is not in the league
        """
        snapshot = snapshot or self.snapshot()
        team = snapshot.teams.get(team_id)
        if team is None:
            raise UnknownReferenceError(f"Unknown team: {team_id}")

        probability = self.store.get(team_id)
        if probability is None:
            changes = self.recompute(snapshot, [team_id])
            probability = changes[0].current if changes else self.store.get(team_id)
        if probability is None:
            raise UnknownReferenceError(f"No probability available for team {team_id}")

        return self.optimizer.generate_report(
            team,
            snapshot.teams,
            probability,
            settings=snapshot.settings,
        )
