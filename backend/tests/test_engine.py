"""
Tests for the Monte Carlo championship engine.
"""

import pytest

from playoff_odds.core.config import EngineConfig
from playoff_odds.models import LeagueSettings, Matchup, Team, TeamRecord
from playoff_odds.simulator import (
    ChampionshipEngine,
    WinProbabilityModel,
    load_league,
    play_bracket,
    run_trials,
    schedule_pairings,
)
from playoff_odds.simulator.engine import bracket_rounds, playoff_weeks, round_label
from playoff_odds.simulator.tiebreakers import determine_playoffs, rank_records


class CacheWatchingModel(WinProbabilityModel):
    """Records edge lookups that miss the prepared cache."""

    def __init__(self):
        super().__init__()
        self.watching = False
        self.misses = []

    def static_edge(self, team, opponent, matchup):
        if self.watching and not self.is_cached(team, opponent, matchup):
            self.misses.append((team.id, opponent.id, matchup.week))
        return super().static_edge(team, opponent, matchup)


@pytest.fixture
def engine(fast_config):
    return ChampionshipEngine(config=fast_config)


@pytest.fixture
def clinched_league(league_payload):
    """Twelve teams at week 13 of 14; A is 10-2 with the most points."""
    records = {chr(ord("A") + i): {"wins": 6, "losses": 6, "points_for": 1300.0} for i in range(1, 12)}
    records["A"] = {"wins": 10, "losses": 2, "points_for": 1500.0}
    return load_league(league_payload(
        n_teams=12,
        regular_season_weeks=14,
        current_week=13,
        playoff_spots=6,
        records=records,
    ))


class TestPlayBracket:
    """Tests for the single-elimination bracket."""

    def test_six_team_bracket_with_byes(self):
        """Test that the top two seeds get byes and later rounds are reseeded."""
        seeds = ["s1", "s2", "s3", "s4", "s5", "s6"]
        result = play_bracket(seeds, lambda high, low, round_idx: high)

        assert result.rounds == 3
        assert result.champion == "s1"
        assert [(r, h, l) for r, h, l, _ in result.games] == [
            (0, "s3", "s6"),
            (0, "s4", "s5"),
            (1, "s1", "s4"),
            (1, "s2", "s3"),
            (2, "s1", "s2"),
        ]
        assert result.eliminated == {"s6": 0, "s5": 0, "s4": 1, "s3": 1, "s2": 2}

    def test_upset_is_reseeded(self):
        """Test that a low seed that advances meets the top seed."""
        seeds = ["s1", "s2", "s3", "s4"]
        result = play_bracket(seeds, lambda high, low, round_idx: low if round_idx == 0 else high)

        assert result.games[-1][1:3] == ("s3", "s4")
        assert result.champion == "s3"

    def test_single_team_field(self):
        """Test that a one-team field crowns that team without games."""
        result = play_bracket(["only"], lambda high, low, round_idx: high)
        assert result.champion == "only"
        assert result.games == []

    def test_round_labels(self):
        """Test round names counted back from the final."""
        assert bracket_rounds(6) == 3
        assert [round_label(i, 3) for i in range(3)] == ["Quarterfinals", "Semifinals", "Championship"]
        assert round_label(0, 4) == "Round 1"


class TestSchedulePairings:
    """Tests for schedule_pairings."""

    def test_each_game_once(self, small_league):
        """Test that a game listed by both teams is only played once."""
        teams, settings = small_league
        pairings = schedule_pairings(teams, settings.first_playoff_week)

        assert len(pairings) == 12
        keys = {(p.matchup.week, frozenset((p.home_id, p.away_id))) for p in pairings}
        assert len(keys) == 12

    def test_decided_from_home_side(self, small_league):
        """Test that the deciding side is the home team."""
        teams, settings = small_league
        for pairing in schedule_pairings(teams, settings.first_playoff_week):
            assert pairing.matchup.is_home

    def test_played_games_skipped(self, midseason_league):
        """Test that only unplayed weeks are paired."""
        teams, settings = midseason_league
        pairings = schedule_pairings(teams, settings.first_playoff_week)
        assert {p.matchup.week for p in pairings} == {4, 5, 6}


class TestTiebreakers:
    """Tests for standings tiebreakers."""

    def test_points_for_breaks_ties(self):
        """Test that equal records are split by points scored, then id."""
        records = {
            "A": TeamRecord("A", "", wins=5, losses=3, points_for=900.0),
            "B": TeamRecord("B", "", wins=5, losses=3, points_for=950.0),
            "C": TeamRecord("C", "", wins=5, losses=3, points_for=950.0),
            "D": TeamRecord("D", "", wins=6, losses=2, points_for=800.0),
        }
        assert rank_records(records) == ["D", "B", "C", "A"]

    def test_division_winners(self):
        """Test that each division's best record is reported."""
        records = {
            "A": TeamRecord("A", "east", wins=2, losses=6),
            "B": TeamRecord("B", "east", wins=4, losses=4),
            "C": TeamRecord("C", "west", wins=7, losses=1),
        }
        seeds, winners = determine_playoffs(records, 2)
        assert seeds == ["C", "B"]
        assert winners == {"east": "B", "west": "C"}


class TestRunTrials:
    """Tests for run_trials."""

    def test_same_seed_same_result_any_worker_count(self, midseason_league):
        """Test that a fixed seed is reproducible regardless of parallelism."""
        teams, settings = midseason_league
        serial = run_trials(teams, settings, n_trials=600, seed=11, chunk_size=100, max_workers=1)
        parallel = run_trials(teams, settings, n_trials=600, seed=11, chunk_size=100, max_workers=4)

        assert serial.trials == parallel.trials == 600
        assert serial.playoffs == parallel.playoffs
        assert serial.championships == parallel.championships
        assert serial.seed_totals == parallel.seed_totals

    def test_canonical_teams_untouched(self, midseason_league):
        """Test that trials never mutate the input teams."""
        teams, settings = midseason_league
        before = {team_id: team.to_dict() for team_id, team in teams.items()}

        run_trials(teams, settings, n_trials=200, seed=3, chunk_size=50)
        assert {team_id: team.to_dict() for team_id, team in teams.items()} == before

    def test_one_champion_per_trial(self, small_league):
        """Test that every trial crowns exactly one champion and fills every spot."""
        teams, settings = small_league
        tally = run_trials(teams, settings, n_trials=300, seed=5, chunk_size=100)

        assert sum(tally.championships.values()) == 300
        assert sum(tally.playoffs.values()) == 300 * settings.playoff_spots

    def test_trials_only_read_prepared_edges(self, small_league):
        """Test that worker threads never add to the model's edge cache."""
        teams, settings = small_league
        model = CacheWatchingModel()
        model.prepare(teams, settings.current_week, playoff_weeks(settings, len(teams)))
        model.watching = True

        run_trials(teams, settings, n_trials=200, seed=4, chunk_size=50, model=model)
        assert model.misses == []

    def test_single_team_league(self):
        """Test that a lone team always wins the title."""
        teams = {"A": Team(id="A", name="Solo")}
        settings = LeagueSettings(regular_season_weeks=1, playoff_spots=1)

        tally = run_trials(teams, settings, n_trials=50, seed=1, chunk_size=10)
        assert tally.championship_probability("A") == 1.0
        assert tally.playoff_probability("A") == 1.0


class TestChampionshipEngine:
    """Tests for ChampionshipEngine."""

    def test_probability_bounds(self, engine, midseason_league):
        """Test that every record is internally consistent."""
        teams, settings = midseason_league
        records = engine.calculate_championship_probabilities(teams, settings)

        assert len(records) == 4
        for record in records:
            assert 0.0 <= record.championship_probability <= record.playoff_probability <= 1.0
            assert 0.0 <= record.division_probability <= 1.0
            assert len(record.simulations) == 5
        assert sum(r.championship_probability for r in records) == pytest.approx(1.0)
        assert sum(r.playoff_probability for r in records) == pytest.approx(2.0)

    def test_sorted_best_first(self, engine, midseason_league):
        teams, settings = midseason_league
        records = engine.calculate_championship_probabilities(teams, settings)
        chances = [r.championship_probability for r in records]
        assert chances == sorted(chances, reverse=True)
        assert records[0].team_id == "A"

    def test_clinched_team(self, engine, clinched_league):
        """Test that a team out of reach of the field is locked into the top seed."""
        teams, settings = clinched_league
        records = engine.calculate_championship_probabilities(teams, settings, team_ids=["A"])

        assert len(records) == 1
        record = records[0]
        assert record.playoff_probability == 1.0
        assert record.division_probability == 1.0
        assert record.expected_seed == 1.0

        path = record.optimal_path
        assert path.seed == 1
        assert [r.round for r in path.rounds] == ["Quarterfinals", "Semifinals", "Championship"]
        assert path.rounds[0].opponent == "BYE"
        assert path.rounds[0].win_probability == 1.0
        assert 0.0 < path.total_probability <= 1.0

    def test_injured_quarterback_lowers_title_odds(self, league_payload):
        """Test that losing a star QB costs championship probability."""
        star_qb = {t: {"qb1": {"projected_points": 25.0}} for t in "ABCD"}
        healthy_teams, settings = load_league(league_payload(roster_overrides=star_qb))

        injured_overrides = dict(star_qb)
        injured_overrides["A"] = {"qb1": {"projected_points": 25.0, "injury_status": "out"}}
        injured_teams, _ = load_league(league_payload(roster_overrides=injured_overrides))

        config = EngineConfig(trial_count=2000, chunk_size=250, sample_size=0, seed=21)
        engine = ChampionshipEngine(config=config)
        healthy = {r.team_id: r for r in engine.calculate_championship_probabilities(healthy_teams, settings)}
        injured = {r.team_id: r for r in engine.calculate_championship_probabilities(injured_teams, settings)}

        assert injured["A"].championship_probability < healthy["A"].championship_probability
        assert injured["A"].playoff_probability < healthy["A"].playoff_probability

    def test_single_team(self, engine):
        teams = {"A": Team(id="A", name="Solo")}
        settings = LeagueSettings(regular_season_weeks=1, playoff_spots=1)

        record = engine.calculate_championship_probabilities(teams, settings)[0]
        assert record.championship_probability == 1.0
        assert record.optimal_path.rounds == []
        assert record.optimal_path.total_probability == 1.0

    def test_unknown_team_rejected(self, engine, small_league):
        teams, settings = small_league
        with pytest.raises(ValueError):
            engine.calculate_championship_probabilities(teams, settings, team_ids=["Z"])

    def test_key_factors(self, engine, midseason_league):
        """Test that key factors are bounded and ordered by impact."""
        teams, settings = midseason_league
        record = engine.calculate_championship_probabilities(teams, settings, team_ids=["A"])[0]

        names = [f.factor for f in record.key_factors]
        assert "Current Standing" in names
        assert "Team Momentum" in names
        impacts = [abs(f.impact) for f in record.key_factors]
        assert impacts == sorted(impacts, reverse=True)
        assert all(0.0 <= f.confidence <= 1.0 for f in record.key_factors)

    def test_computed_at_stamped(self, engine, small_league):
        teams, settings = small_league
        records = engine.calculate_championship_probabilities(teams, settings, computed_at=42.0)
        assert {r.computed_at for r in records} == {42.0}

    def test_live_lead_raises_odds(self, engine, small_league):
        """Test that a big live lead in the current week improves a team's chances."""
        teams, settings = small_league
        week = teams["D"].matchup_for_week(settings.current_week)
        assert isinstance(week, Matchup)

        before = {r.team_id: r for r in engine.calculate_championship_probabilities(teams, settings)}
        after = {
            r.team_id: r
            for r in engine.update_live_probabilities(teams, settings, {"D": 90.0, week.opponent_id: 10.0})
        }
        assert after["D"].playoff_probability > before["D"].playoff_probability
        assert not teams["D"].matchup_for_week(settings.current_week).is_live
