"""
Tests for live event parsing and update messages.
"""

import json

import pytest
from pydantic import ValidationError

from playoff_odds.models import InjuryStatus
from playoff_odds.realtime import (
    GameEnd,
    GameStart,
    LiveScore,
    PlayerInjury,
    ProbabilityUpdate,
    ScoreUpdate,
    WeatherChange,
    is_critical,
    parse_event,
)


class TestParseEvent:
    """Tests for parse_event."""

    def test_score_update(self):
        event = parse_event({
            "kind": "score_update",
            "team_id": "A",
            "current_score": 54.5,
            "projected_score": 110.0,
            "minutes_remaining": 120,
        })
        assert isinstance(event, ScoreUpdate)
        assert event.current_score == 54.5
        assert event.week is None
        assert event.timestamp > 0

    def test_player_injury_defaults_to_out(self):
        event = parse_event({"kind": "player_injury", "team_id": "A", "player_id": "A-qb1"})
        assert isinstance(event, PlayerInjury)
        assert event.status == InjuryStatus.OUT

    def test_weather_change(self):
        event = parse_event({
            "kind": "weather_change",
            "team_id": "A",
            "weather": {"temperature": 20, "wind_speed": 30},
            "affected_teams": ["B"],
        })
        assert isinstance(event, WeatherChange)
        assert event.weather.wind_speed == 30
        assert not event.weather.dome

    def test_game_start_and_end(self):
        assert isinstance(parse_event({"kind": "game_start", "team_id": "A"}), GameStart)
        end = parse_event({"kind": "game_end", "team_id": "A", "final_score": 120, "opponent_score": 99})
        assert isinstance(end, GameEnd)
        assert end.final_score == 120

    def test_parses_json_text(self):
        text = json.dumps({"kind": "game_start", "team_id": "B", "week": 3})
        event = parse_event(text)
        assert event.team_id == "B"
        assert event.week == 3

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({"kind": "trade", "team_id": "A"})

    def test_missing_fields_rejected(self):
        """Test that a game end needs both final scores."""
        with pytest.raises(ValidationError):
            parse_event({"kind": "game_end", "team_id": "A", "final_score": 100})

    def test_out_of_range_values_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({"kind": "score_update", "team_id": "A", "current_score": -1})
        with pytest.raises(ValidationError):
            parse_event({"kind": "score_update", "team_id": "A", "current_score": 10, "minutes_remaining": 300})
        with pytest.raises(ValidationError):
            parse_event({"kind": "game_start", "team_id": ""})


class TestCriticalEvents:
    """Tests for is_critical."""

    def test_injury_and_final_are_critical(self):
        assert is_critical(PlayerInjury(team_id="A", player_id="p"))
        assert is_critical(GameEnd(team_id="A", final_score=100, opponent_score=90))

    def test_scores_are_not_critical(self):
        assert not is_critical(ScoreUpdate(team_id="A", current_score=10))
        assert not is_critical(GameStart(team_id="A"))


class TestProbabilityUpdate:
    """Tests for ProbabilityUpdate."""

    def test_message_increase(self):
        update = ProbabilityUpdate(
            team_id="A",
            previous_probability=0.25,
            new_probability=0.30,
            change=0.05,
            reasons=["Strong live performance", "General positive trends"],
            confidence=0.9,
            timestamp=1.0,
            significant=True,
        )
        assert update.message() == (
            "Team A championship probability increased by 5.0% to 30.0%. "
            "Reason: Strong live performance"
        )

    def test_message_decrease_without_reasons(self):
        update = ProbabilityUpdate(
            team_id="B",
            previous_probability=0.4,
            new_probability=0.1,
            change=-0.3,
            reasons=[],
            confidence=0.9,
            timestamp=1.0,
        )
        assert update.message() == "Team B championship probability decreased by 30.0% to 10.0%"
        assert update.to_dict()["significant"] is False


def test_live_score_diff():
    score = LiveScore(team_id="A", current_score=80.0, projected_score=70.0, minutes_remaining=30.0)
    assert score.score_diff == 10.0
    assert score.to_dict()["minutes_remaining"] == 30.0
