"""
Championship path optimizer.

Turns a team's current odds and factor analysis into ranked strategies,
scenarios, a week-by-week plan and a read on the top rivals.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..analyzers import InjuryAnalysis, InjuryImpactModel, MomentumAnalysis, TeamMomentumTracker
from ..analyzers.schedule import league_ranks
from ..models import ChampionshipProbability, LeagueSettings, Team
from .scenarios import ScenarioAnalysis, build_scenarios, trade_deadline_week
from .strategies import OptimizationStrategy, generate_strategies, weak_positions


TOP_STRATEGIES = 3
RECOMMENDED_STRATEGIES = 5
RECOMMENDED_RISKS = 2
TIMELINE_DISCOUNT = 0.7
RIVAL_COUNT = 5


@dataclass
class Recommendation:
    priority: int
    action: str
    reasoning: str
    impact: float
    difficulty: float
    deadline: str

    def to_dict(self) -> dict:
        return {
            "priority": self.priority,
            "action": self.action,
            "reasoning": self.reasoning,
            "impact": self.impact,
            "difficulty": self.difficulty,
            "deadline": self.deadline,
        }


@dataclass
class TimelineEntry:
    week: int
    phase: str
    actions: List[str]
    expected_probability: float
    key_events: List[str]

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "phase": self.phase,
            "actions": list(self.actions),
            "expected_probability": self.expected_probability,
            "key_events": list(self.key_events),
        }


@dataclass
class CompetitiveInsight:
    opponent_id: str
    threat: float
    advantages: List[str] = field(default_factory=list)
    vulnerabilities: List[str] = field(default_factory=list)
    counter_strategies: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "opponent_id": self.opponent_id,
            "threat": self.threat,
            "advantages": list(self.advantages),
            "vulnerabilities": list(self.vulnerabilities),
            "counter_strategies": list(self.counter_strategies),
        }


@dataclass
class OptimizationReport:
    """Everything the optimizer has to say about one team."""

    team_id: str
    current_probability: float
    optimized_probability: float
    strategies: List[OptimizationStrategy]
    scenarios: List[ScenarioAnalysis]
    recommendations: List[Recommendation]
    timeline: List[TimelineEntry]
    competitive_analysis: List[CompetitiveInsight]

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "current_probability": self.current_probability,
            "optimized_probability": self.optimized_probability,
            "strategies": [s.to_dict() for s in self.strategies],
            "scenarios": [s.to_dict() for s in self.scenarios],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "timeline": [t.to_dict() for t in self.timeline],
            "competitive_analysis": [c.to_dict() for c in self.competitive_analysis],
        }


def optimized_probability(current: float, strategies: List[OptimizationStrategy]) -> float:
    """Upper-bound projection from the top strategies, weighted by confidence."""
    gain = sum(s.expected_impact * s.confidence for s in strategies[:TOP_STRATEGIES])
    return min(1.0, current + gain)


def relevant_for_week(strategy: OptimizationStrategy, week: int, current_week: int) -> bool:
    weeks_out = week - current_week
    timeframe = strategy.timeframe
    if "immediate" in timeframe:
        return weeks_out <= 1
    if "1-2" in timeframe:
        return weeks_out <= 2
    if "1-3" in timeframe or "2-3" in timeframe:
        return weeks_out <= 3
    if "2-4" in timeframe or "3-4" in timeframe:
        return weeks_out <= 4
    return True


def threat_level(competitor: Team, team: Team, ranks: Dict[str, int]) -> float:
    rank_gap = ranks[team.id] - ranks[competitor.id]
    points_gap = competitor.points_for - team.points_for
    rank_threat = max(0.0, 1 - rank_gap / 10)
    points_threat = max(0.0, points_gap / 200)
    return min(1.0, (rank_threat + points_threat) / 2)


class ChampionshipPathOptimizer:
    """Builds OptimizationReports from engine output."""

    def __init__(
        self,
        momentum_tracker: Optional[TeamMomentumTracker] = None,
        injury_model: Optional[InjuryImpactModel] = None
    ):
        self.momentum_tracker = momentum_tracker or TeamMomentumTracker()
        self.injury_model = injury_model or InjuryImpactModel()

    def generate_report(
        self,
        team: Team,
        teams: Dict[str, Team],
        probability: ChampionshipProbability,
        momentum: Optional[MomentumAnalysis] = None,
        injuries: Optional[InjuryAnalysis] = None,
        current_week: Optional[int] = None,
        settings: Optional[LeagueSettings] = None
    ) -> OptimizationReport:
        """
        Generate a full optimization report for one team.

        Args:
            team: The team being optimized
            teams: Every team in the league
            probability: The team's current ChampionshipProbability
            momentum: Momentum analysis (computed when omitted)
            injuries: Injury analysis (computed when omitted)
            current_week: Overrides settings.current_week
            settings: League calendar

        Returns:
            OptimizationReport
        """
        settings = settings or LeagueSettings()
        if current_week is not None and current_week != settings.current_week:
            settings = LeagueSettings(
                current_week=current_week,
                regular_season_weeks=settings.regular_season_weeks,
                playoff_spots=settings.playoff_spots,
                playoff_start_week=settings.playoff_start_week,
            )

        if momentum is None:
            momentum = self.momentum_tracker.analyze(team, teams, settings.current_week)
        if injuries is None:
            weeks_left = max(0, settings.first_playoff_week - settings.current_week)
            injuries = self.injury_model.analyze_team_injuries(team.roster, weeks_left)

        strategies = generate_strategies(team, teams, probability, momentum, injuries, settings)
        scenarios = build_scenarios(strategies, settings)
        current = probability.championship_probability

        return OptimizationReport(
            team_id=team.id,
            current_probability=current,
            optimized_probability=optimized_probability(current, strategies),
            strategies=strategies,
            scenarios=scenarios,
            recommendations=self.recommendations(strategies, scenarios),
            timeline=self.timeline(strategies, current, settings),
            competitive_analysis=self.competitive_analysis(team, teams),
        )

    def recommendations(
        self,
        strategies: List[OptimizationStrategy],
        scenarios: List[ScenarioAnalysis]
    ) -> List[Recommendation]:
        recommendations = [
            Recommendation(
                priority=idx + 1,
                action=strategy.name,
                reasoning=strategy.description,
                impact=strategy.expected_impact,
                difficulty=strategy.cost,
                deadline=strategy.timeframe,
            )
            for idx, strategy in enumerate(strategies[:RECOMMENDED_STRATEGIES])
        ]

        risks = sorted(
            (risk for scenario in scenarios for risk in scenario.risks),
            key=lambda r: -r.exposure
        )
        for risk in risks[:RECOMMENDED_RISKS]:
            recommendations.append(Recommendation(
                priority=len(recommendations) + 1,
                action=f"Mitigate {risk.type}",
                reasoning=risk.description,
                impact=abs(risk.impact),
                difficulty=0.5,
                deadline="2-3 weeks",
            ))
        return recommendations

    def timeline(
        self,
        strategies: List[OptimizationStrategy],
        current: float,
        settings: LeagueSettings
    ) -> List[TimelineEntry]:
        """Week-by-week plan from next week through the championship."""
        entries = []
        championship_week = settings.championship_week
        for week in range(settings.current_week + 1, championship_week + 1):
            if week <= settings.regular_season_weeks:
                phase = "Regular Season"
            elif week < championship_week:
                phase = "Playoffs"
            else:
                phase = "Championship"

            relevant = [s for s in strategies if relevant_for_week(s, week, settings.current_week)]
            actions = [a.action for s in relevant for a in s.actions][:3]
            gain = sum(s.expected_impact * TIMELINE_DISCOUNT for s in relevant)

            entries.append(TimelineEntry(
                week=week,
                phase=phase,
                actions=actions,
                expected_probability=min(1.0, current + gain),
                key_events=self._key_events(week, settings),
            ))
        return entries

    def competitive_analysis(self, team: Team, teams: Dict[str, Team]) -> List[CompetitiveInsight]:
        """Top rivals by standings, most threatening first."""
        ranks = league_ranks(teams)
        rivals = sorted(
            (t for t in teams.values() if t.id != team.id),
            key=lambda t: ranks[t.id]
        )[:RIVAL_COUNT]

        insights = [
            CompetitiveInsight(
                opponent_id=rival.id,
                threat=threat_level(rival, team, ranks),
                advantages=self._advantages(team, rival),
                vulnerabilities=self._vulnerabilities(rival),
                counter_strategies=self._counter_strategies(rival),
            )
            for rival in rivals
        ]
        return sorted(insights, key=lambda i: -i.threat)

    def _key_events(self, week: int, settings: LeagueSettings) -> List[str]:
        events = []
        if week == trade_deadline_week(settings):
            events.append("Trade deadline")
        if week == settings.regular_season_weeks:
            events.append("Playoff seeding finalizes")
        if settings.first_playoff_week <= week < settings.championship_week:
            events.append(f"Playoff round {week - settings.first_playoff_week + 1}")
        if week == settings.championship_week:
            events.append("Championship week")
        return events

    def _advantages(self, team: Team, rival: Team) -> List[str]:
        advantages = []
        if team.points_for > rival.points_for:
            advantages.append("Higher scoring potential")
        if team.points_against < rival.points_against:
            advantages.append("Fewer points allowed")
        if team.average_projection > rival.average_projection:
            advantages.append("Stronger projected roster")
        healthy = sum(1 for p in team.roster if p.is_healthy)
        rival_healthy = sum(1 for p in rival.roster if p.is_healthy)
        if healthy > rival_healthy:
            advantages.append("Healthier roster")
        return advantages

    def _vulnerabilities(self, rival: Team) -> List[str]:
        vulnerabilities = []
        injured = [p for p in rival.roster if not p.is_healthy]
        if len(injured) > 2:
            vulnerabilities.append("Multiple injury concerns")
        for position in weak_positions(rival):
            vulnerabilities.append(f"Thin at {position.value}")
        return vulnerabilities

    def _counter_strategies(self, rival: Team) -> List[str]:
        counters = ["Monitor their weak positions", "Target players they might want"]
        weak = weak_positions(rival)
        if weak:
            counters.append(f"Block waiver targets at {', '.join(p.value for p in weak)}")
        counters.append("Exploit their schedule disadvantages")
        return counters
