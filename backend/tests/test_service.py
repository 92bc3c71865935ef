"""
Tests for the league service: event application and recomputation.
"""

import pytest

from playoff_odds.core.config import EngineConfig
from playoff_odds.models import InjuryStatus, MatchupLockedError
from playoff_odds.realtime import GameEnd, GameStart, PlayerInjury, ScoreUpdate, WeatherChange
from playoff_odds.service import ChampionshipService, UnknownReferenceError
from playoff_odds.simulator import LeagueValidationError
from playoff_odds.simulator.validation import WeatherIn


@pytest.fixture
def service(fast_config, league_payload):
    service = ChampionshipService(config=fast_config)
    service.load(league_payload())
    return service


class TestLeagueState:
    """Tests for loading and snapshots."""

    def test_load_returns_team_ids(self, fast_config, league_payload):
        service = ChampionshipService(config=fast_config)
        assert service.load(league_payload()) == ["A", "B", "C", "D"]
        assert service.settings.current_week == 1

    def test_configured_bracket_size_fills_missing_setting(self, league_payload):
        """Test that a snapshot without playoff_spots uses the configured bracket size."""
        service = ChampionshipService(config=EngineConfig(trial_count=400, playoff_spots=4, seed=7))
        payload = league_payload()
        del payload["settings"]["playoff_spots"]

        service.load(payload)
        assert service.settings.playoff_spots == 4

        service.load(league_payload())
        assert service.settings.playoff_spots == 2

    def test_invalid_load_keeps_previous_league(self, service, league_payload):
        """Test that a rejected snapshot leaves the loaded league in place."""
        payload = league_payload(n_teams=6)
        payload["teams"][0]["id"] = "B"

        with pytest.raises(LeagueValidationError):
            service.load(payload)
        assert sorted(service.teams) == ["A", "B", "C", "D"]

    def test_snapshot_is_a_copy(self, service):
        snapshot = service.snapshot()
        snapshot.teams["A"].wins = 9
        snapshot.settings.current_week = 5

        assert service.teams["A"].wins == 0
        assert service.settings.current_week == 1

    def test_unknown_team(self, service):
        with pytest.raises(UnknownReferenceError):
            service.team("Z")


class TestApplyEvent:
    """Tests for ChampionshipService.apply_event."""

    def test_score_update_mirrors_opponent(self, service):
        """Test that a live score lands on both sides of the game."""
        opponent_id = service.team("A").matchup_for_week(1).opponent_id

        affected = service.apply_event(ScoreUpdate(
            team_id="A", current_score=62.0, opponent_score=48.0, minutes_remaining=100
        ))

        assert affected == {"A", opponent_id}
        ours = service.team("A").matchup_for_week(1)
        theirs = service.team(opponent_id).matchup_for_week(1)
        assert (ours.live_score, ours.opponent_live_score) == (62.0, 48.0)
        assert (theirs.live_score, theirs.opponent_live_score) == (48.0, 62.0)
        assert theirs.minutes_remaining == 100

    def test_score_update_sets_projection(self, service):
        service.apply_event(ScoreUpdate(team_id="B", current_score=30.0, projected_score=118.0))
        matchup = service.team("B").matchup_for_week(1)
        assert matchup.projected_score == 118.0
        assert matchup.is_live

    def test_injury_marks_player(self, service):
        """Test that an injury updates the roster and affects both teams in the game."""
        affected = service.apply_event(PlayerInjury(
            team_id="A", player_id="A-qb1", status=InjuryStatus.DOUBTFUL, injury_type="ankle"
        ))

        player = service.team("A").find_player("A-qb1")
        assert player.injury_status == InjuryStatus.DOUBTFUL
        assert player.injury_type == "ankle"
        assert affected == {"A", service.team("A").matchup_for_week(1).opponent_id}

    def test_injury_unknown_player(self, service):
        with pytest.raises(UnknownReferenceError):
            service.apply_event(PlayerInjury(team_id="A", player_id="B-qb1"))

    def test_weather_change(self, service):
        opponent_id = service.team("A").matchup_for_week(1).opponent_id
        affected = service.apply_event(WeatherChange(
            team_id="A", weather=WeatherIn(temperature=15, wind_speed=28), affected_teams=[opponent_id]
        ))

        assert affected == {"A", opponent_id}
        assert service.team("A").matchup_for_week(1).weather.wind_speed == 28
        assert service.team(opponent_id).matchup_for_week(1).weather.temperature == 15

    def test_weather_with_unknown_team_changes_nothing(self, service):
        """Test that a bad reference leaves every matchup untouched."""
        with pytest.raises(UnknownReferenceError):
            service.apply_event(WeatherChange(
                team_id="A", weather=WeatherIn(wind_speed=28), affected_teams=["Z"]
            ))
        assert service.team("A").matchup_for_week(1).weather is None

    def test_game_start(self, service):
        opponent_id = service.team("C").matchup_for_week(1).opponent_id
        affected = service.apply_event(GameStart(team_id="C"))

        assert affected == {"C", opponent_id}
        for team_id in affected:
            matchup = service.team(team_id).matchup_for_week(1)
            assert matchup.live_score == 0.0
            assert matchup.minutes_remaining == 240.0

    def test_game_start_keeps_live_score(self, service):
        service.apply_event(ScoreUpdate(team_id="A", current_score=20.0))
        service.apply_event(GameStart(team_id="A"))
        assert service.team("A").matchup_for_week(1).live_score == 20.0

    def test_game_end_updates_records(self, service):
        """Test that a final score updates both standings lines."""
        opponent_id = service.team("A").matchup_for_week(1).opponent_id
        service.apply_event(GameEnd(team_id="A", final_score=121.5, opponent_score=99.0))

        team, opponent = service.team("A"), service.team(opponent_id)
        assert (team.wins, team.losses) == (1, 0)
        assert (opponent.wins, opponent.losses) == (0, 1)
        assert team.points_for == 121.5
        assert opponent.points_against == 121.5
        assert team.matchup_for_week(1).won is True
        assert opponent.matchup_for_week(1).won is False

    def test_tie_recorded(self, service):
        service.apply_event(GameEnd(team_id="A", final_score=100.0, opponent_score=100.0))
        assert service.team("A").ties == 1

    def test_finished_game_is_locked(self, service):
        """Test that events against a final score are rejected."""
        service.apply_event(GameEnd(team_id="A", final_score=110.0, opponent_score=90.0))

        with pytest.raises(MatchupLockedError):
            service.apply_event(GameEnd(team_id="A", final_score=90.0, opponent_score=110.0))
        with pytest.raises(MatchupLockedError):
            service.apply_event(ScoreUpdate(team_id="A", current_score=1.0))
        assert service.team("A").wins == 1

    def test_week_advances_after_last_final(self, service):
        """Test that the league moves on once every game of the week is final."""
        opponent_id = service.team("A").matchup_for_week(1).opponent_id
        others = sorted(set(service.teams) - {"A", opponent_id})

        service.apply_event(GameEnd(team_id="A", final_score=110.0, opponent_score=90.0))
        assert service.settings.current_week == 1

        service.apply_event(GameEnd(team_id=others[0], final_score=95.0, opponent_score=101.0))
        assert service.settings.current_week == 2

    def test_explicit_week(self, service):
        service.apply_event(ScoreUpdate(team_id="A", week=3, current_score=15.0))
        assert service.team("A").matchup_for_week(3).live_score == 15.0
        assert not service.team("A").matchup_for_week(1).is_live

    def test_week_without_matchup(self, service):
        with pytest.raises(UnknownReferenceError):
            service.apply_event(ScoreUpdate(team_id="A", week=12, current_score=15.0))


class TestRecompute:
    """Tests for recomputation and the probability store."""

    def test_recompute_stores_every_team(self, service):
        changes = service.recompute()

        assert sorted(c.current.team_id for c in changes) == ["A", "B", "C", "D"]
        assert len(service.store) == 4
        assert [r.team_id for r in service.probabilities()] == [r.team_id for r in service.store.all()]

    def test_targeted_recompute(self, service):
        """Test that only the requested teams are recomputed; unknown ids are skipped."""
        changes = service.recompute(team_ids=["B", "Z"])
        assert [c.current.team_id for c in changes] == ["B"]
        assert service.probability("A") is None
        assert service.probability("B") is not None

    def test_records_stamped_with_snapshot_time(self, service):
        snapshot = service.snapshot()
        service.recompute(snapshot)
        assert {r.computed_at for r in service.probabilities()} == {snapshot.taken_at}

    def test_results_for_replaced_league_discarded(self, service, league_payload):
        """Test that a run against a superseded league never reaches the store."""
        snapshot = service.snapshot()
        service.load(league_payload(current_week=2))

        assert service.recompute(snapshot) == []
        assert len(service.store) == 0

    def test_older_snapshot_cannot_overwrite(self, service):
        """Test that a slow run started earlier loses to a newer result."""
        old = service.snapshot()
        service.recompute(service.snapshot())

        assert service.recompute(old) == []
        assert service.store.discarded == 4

    def test_probability_unknown_team(self, service):
        with pytest.raises(UnknownReferenceError):
            service.probability("Z")

    def test_optimization_report_computes_missing_probability(self, service):
        report = service.optimization_report("C")

        assert report.team_id == "C"
        assert service.probability("C") is not None
        assert report.current_probability == service.probability("C").championship_probability

    def test_optimization_report_unknown_team(self, service):
        with pytest.raises(UnknownReferenceError):
            service.optimization_report("Z")
