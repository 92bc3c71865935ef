"""
Tests for the win probability model.
"""

import pytest

from playoff_odds.models import InjuryStatus, Matchup, TeamRecord, WeatherSnapshot
from playoff_odds.simulator import WinProbabilityModel, team_strength
from playoff_odds.simulator.probability import live_edge


def _labels(contributions):
    return {c.label: c for c in contributions}


class TestWinProbabilityModel:
    """Tests for WinProbabilityModel."""

    def test_evenly_matched_teams(self, small_league):
        """Test that identical teams on a neutral field are a coin flip."""
        teams, settings = small_league
        model = WinProbabilityModel()
        model.prepare(teams, settings.current_week)

        neutral = Matchup(week=1, opponent_id="B", is_home=False)
        assert model.win_probability(teams["A"], teams["B"], neutral) == pytest.approx(0.5)

    def test_home_field_bonus(self, small_league):
        """Test that hosting adds the home bonus."""
        teams, _ = small_league
        model = WinProbabilityModel()

        home = model.win_probability(teams["A"], teams["B"], Matchup(week=1, opponent_id="B", is_home=True))
        away = model.win_probability(teams["A"], teams["B"], Matchup(week=1, opponent_id="B", is_home=False))
        assert home - away == pytest.approx(0.03)

    def test_explain_sums_to_probability(self, midseason_league):
        """Test that the weighted contributions add up to the probability."""
        teams, settings = midseason_league
        model = WinProbabilityModel()
        model.prepare(teams, settings.current_week)
        matchup = teams["B"].remaining_schedule()[0]
        opponent = teams[matchup.opponent_id]

        contributions = model.explain(teams["B"], opponent, matchup)
        total = sum(c.weighted for c in contributions)
        assert 0.0 < total < 1.0
        assert model.win_probability(teams["B"], opponent, matchup) == pytest.approx(total)

    def test_dome_weather_contributes_nothing(self, small_league):
        """Test that a dome game has a zero weather term."""
        teams, _ = small_league
        model = WinProbabilityModel()
        matchup = Matchup(week=1, opponent_id="B", weather=WeatherSnapshot(wind_speed=45, dome=True))

        weather = _labels(model.explain(teams["A"], teams["B"], matchup))["Weather"]
        assert weather.value == 0.0

    def test_injured_starter_lowers_probability(self, small_league):
        """Test that losing the starting QB lowers the win probability."""
        teams, settings = small_league
        matchup = Matchup(week=1, opponent_id="B")
        healthy = WinProbabilityModel().prepared(teams, settings.current_week)
        before = healthy.win_probability(teams["A"], teams["B"], matchup)

        teams["A"].roster[0].injury_status = InjuryStatus.OUT
        injured = WinProbabilityModel().prepared(teams, settings.current_week)
        after = injured.win_probability(teams["A"], teams["B"], matchup)
        assert after < before

    def test_simulated_record_overrides_team_record(self, small_league):
        """Test that simulated standings feed the strength term."""
        teams, _ = small_league
        model = WinProbabilityModel()
        matchup = Matchup(week=1, opponent_id="B")
        hot = TeamRecord(team_id="A", division_id="", wins=5, losses=0, points_for=600, points_against=450)

        assert model.win_probability(teams["A"], teams["B"], matchup, team_record=hot) > \
            model.win_probability(teams["A"], teams["B"], matchup)

    def test_probability_is_clamped(self, small_league):
        """Test that an overwhelming live lead stays within [0, 1]."""
        teams, _ = small_league
        model = WinProbabilityModel()
        hot = teams["A"]
        hot.wins, hot.points_for, hot.points_against = 10, 3000.0, 800.0
        matchup = Matchup(week=1, opponent_id="B", is_home=True).with_live_score(150.0, 20.0, 0.0)

        assert model.win_probability(hot, teams["B"], matchup) == 1.0


class TestLiveEdge:
    """Tests for live_edge."""

    def test_not_live(self):
        assert live_edge(Matchup(week=1, opponent_id="B")) == 0.0

    def test_scaled_by_game_progress(self):
        """Test that the margin is weighted by minutes played."""
        matchup = Matchup(week=1, opponent_id="B").with_live_score(60.0, 40.0, 120.0)
        assert live_edge(matchup) == pytest.approx(0.1)

    def test_capped(self):
        """Test that the live edge never exceeds the cap."""
        matchup = Matchup(week=1, opponent_id="B").with_live_score(0.0, 90.0, 0.0)
        assert live_edge(matchup) == pytest.approx(-0.3)


def test_team_strength_formula(small_league):
    """Test the composite strength formula."""
    teams, _ = small_league
    team = teams["A"]
    team.wins, team.losses = 3, 1
    team.points_for, team.points_against = 460.0, 400.0

    expected = 0.4 * 0.75 + 0.3 * 15.0 / 100 + 0.3 * 10.0 / 20
    assert team_strength(team, 10.0) == pytest.approx(expected)
