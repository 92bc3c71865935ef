"""
Tests for the championship path optimizer.
"""

import pytest

from playoff_odds.models import ChampionshipProbability, InjuryStatus, LeagueSettings, Position
from playoff_odds.optimizer import (
    ChampionshipPathOptimizer,
    OptimizationStrategy,
    build_scenarios,
    weak_positions,
)
from playoff_odds.optimizer.path_optimizer import optimized_probability
from playoff_odds.optimizer.scenarios import season_events


def _probability(team_id="A", championship=0.1, playoff=0.5):
    return ChampionshipProbability(
        team_id=team_id,
        playoff_probability=playoff,
        division_probability=0.2,
        championship_probability=championship,
        expected_seed=2.0,
        strength_of_schedule=0.0,
        momentum=0.0,
    )


@pytest.fixture
def optimizer():
    return ChampionshipPathOptimizer()


class TestOptimizationReport:
    """Tests for ChampionshipPathOptimizer.generate_report."""

    def test_report_structure(self, optimizer, small_league):
        """Test that a report carries every section."""
        teams, settings = small_league
        report = optimizer.generate_report(teams["A"], teams, _probability(), settings=settings)

        assert report.team_id == "A"
        assert report.current_probability == 0.1
        assert report.current_probability <= report.optimized_probability <= 1.0
        assert report.strategies
        assert report.recommendations[0].priority == 1
        assert [r.priority for r in report.recommendations] == list(range(1, len(report.recommendations) + 1))

        data = report.to_dict()
        assert set(data) == {
            "team_id", "current_probability", "optimized_probability", "strategies",
            "scenarios", "recommendations", "timeline", "competitive_analysis",
        }

    def test_strategies_ranked_by_impact(self, optimizer, small_league):
        teams, settings = small_league
        report = optimizer.generate_report(teams["A"], teams, _probability(), settings=settings)
        impacts = [s.expected_impact for s in report.strategies]
        assert impacts == sorted(impacts, reverse=True)
        assert "build-depth" in [s.id for s in report.strategies]

    def test_longshot_gets_high_risk_strategy(self, optimizer, small_league):
        """Test that a low title chance suggests swinging for upside."""
        teams, settings = small_league
        report = optimizer.generate_report(teams["A"], teams, _probability(championship=0.05), settings=settings)
        assert "high-risk-high-reward" in [s.id for s in report.strategies]

    def test_favorite_protects_lead(self, optimizer, small_league):
        teams, settings = small_league
        report = optimizer.generate_report(
            teams["A"], teams, _probability(championship=0.6, playoff=0.9), settings=settings
        )
        ids = [s.id for s in report.strategies]
        assert "protect-lead" in ids
        assert "high-risk-high-reward" not in ids

    def test_injured_starter_needs_replacement(self, optimizer, small_league):
        """Test that a key injury produces a critical replacement strategy."""
        teams, settings = small_league
        teams["A"].roster[0].injury_status = InjuryStatus.OUT

        report = optimizer.generate_report(teams["A"], teams, _probability(), settings=settings)
        replacement = next(s for s in report.strategies if s.id == "injury-replacement")
        assert replacement.priority == "critical"
        assert replacement.actions[0].target == "A-qb1"

    def test_timeline_runs_through_championship(self, optimizer, small_league):
        """Test the week range and phases of the plan."""
        teams, settings = small_league
        report = optimizer.generate_report(teams["A"], teams, _probability(), settings=settings)

        weeks = [entry.week for entry in report.timeline]
        assert weeks == list(range(settings.current_week + 1, settings.championship_week + 1))
        assert report.timeline[-1].phase == "Championship"
        assert report.timeline[0].phase == "Regular Season"
        by_week = {entry.week: entry for entry in report.timeline}
        assert "Trade deadline" in by_week[4].key_events
        assert "Playoff seeding finalizes" in by_week[6].key_events
        for entry in report.timeline:
            assert report.current_probability <= entry.expected_probability <= 1.0

    def test_current_week_override(self, optimizer, small_league):
        teams, settings = small_league
        report = optimizer.generate_report(
            teams["A"], teams, _probability(), current_week=5, settings=settings
        )
        assert report.timeline[0].week == 6

    def test_competitive_analysis(self, optimizer, midseason_league):
        """Test that rivals exclude the team and are ordered by threat."""
        teams, settings = midseason_league
        report = optimizer.generate_report(teams["C"], teams, _probability("C"), settings=settings)

        rivals = [c.opponent_id for c in report.competitive_analysis]
        assert "C" not in rivals
        assert sorted(rivals) == ["A", "B", "D"]
        threats = [c.threat for c in report.competitive_analysis]
        assert threats == sorted(threats, reverse=True)


class TestScenarios:
    """Tests for scenario generation."""

    def test_three_scenarios_sum_to_one(self, optimizer, small_league):
        teams, settings = small_league
        report = optimizer.generate_report(teams["A"], teams, _probability(), settings=settings)

        assert [s.scenario for s in report.scenarios] == ["Best Case", "Most Likely", "Worst Case"]
        assert sum(s.probability for s in report.scenarios) == pytest.approx(1.0)

    def test_events_follow_league_calendar(self):
        """Test that playoff events land on the league's own playoff weeks."""
        settings = LeagueSettings(current_week=10, regular_season_weeks=14, playoff_spots=6)
        events = season_events(settings)

        assert [(e.week, e.event) for e in events] == [
            (12, "Trade deadline moves"),
            (14, "Playoff race intensifies"),
            (15, "Playoff quarterfinals"),
            (16, "Playoff semifinals"),
            (17, "Championship game"),
        ]

    def test_past_events_dropped(self):
        """Test that scenario timelines only include events still ahead."""
        settings = LeagueSettings(current_week=14, regular_season_weeks=14, playoff_spots=4)
        best, likely, worst = build_scenarios([], settings)

        assert [e.week for e in likely.timeline] == [14, 15, 16]
        assert best.timeline[0].impact > likely.timeline[0].impact > worst.timeline[0].impact
        assert worst.required_actions == ["Emergency measures"]


def test_optimized_probability_capped():
    """Test that the projection never exceeds certainty."""
    strategy = OptimizationStrategy(
        id="x", name="x", category="roster", description="", actions=[],
        expected_impact=0.5, confidence=1.0, timeframe="immediate", cost=0.1, priority="high",
    )
    assert optimized_probability(0.9, [strategy]) == 1.0
    assert optimized_probability(0.2, []) == 0.2


def test_weak_positions(small_league):
    """Test that positions below the league average are flagged."""
    teams, _ = small_league
    # QB average 14 against a league average of 18
    assert weak_positions(teams["A"]) == [Position.QB]

    teams["A"].roster = [p for p in teams["A"].roster if p.position != Position.TE]
    assert weak_positions(teams["A"]) == [Position.QB, Position.TE]
