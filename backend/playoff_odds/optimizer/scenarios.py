"""
Best, likely and worst case scenario generation.

Event timelines are placed on the league's own calendar: the trade deadline
two weeks before the regular season ends, the final regular-season week,
then one event per playoff round.
"""

from dataclasses import dataclass, field
from typing import List

from ..models import LeagueSettings
from ..simulator.engine import round_label
from .strategies import OptimizationStrategy


SCENARIO_MULTIPLIERS = {
    "optimistic": 1.3,
    "realistic": 1.0,
    "pessimistic": 0.7,
}

# (impact, probability) per playoff round, counted back from the title game
ROUND_STAKES = [(0.25, 0.15), (0.20, 0.3), (0.15, 0.5)]
EARLY_ROUND_STAKES = (0.10, 0.6)

TRADE_DEADLINE_OFFSET = 2


@dataclass
class ScenarioEvent:
    week: int
    event: str
    impact: float
    probability: float

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "event": self.event,
            "impact": self.impact,
            "probability": self.probability,
        }


@dataclass
class Risk:
    type: str
    description: str
    probability: float
    impact: float
    mitigation: List[str] = field(default_factory=list)

    @property
    def exposure(self) -> float:
        return self.probability * abs(self.impact)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "probability": self.probability,
            "impact": self.impact,
            "mitigation": list(self.mitigation),
        }


@dataclass
class Opportunity:
    type: str
    description: str
    probability: float
    impact: float
    requirements: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "probability": self.probability,
            "impact": self.impact,
            "requirements": list(self.requirements),
        }


@dataclass
class ScenarioAnalysis:
    scenario: str
    probability: float
    required_actions: List[str]
    timeline: List[ScenarioEvent]
    risks: List[Risk]
    opportunities: List[Opportunity]

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario,
            "probability": self.probability,
            "required_actions": list(self.required_actions),
            "timeline": [e.to_dict() for e in self.timeline],
            "risks": [r.to_dict() for r in self.risks],
            "opportunities": [o.to_dict() for o in self.opportunities],
        }


def trade_deadline_week(settings: LeagueSettings) -> int:
    return max(1, settings.regular_season_weeks - TRADE_DEADLINE_OFFSET)


def season_events(settings: LeagueSettings) -> List[ScenarioEvent]:
    """Baseline calendar of events that swing championship odds."""
    events = [
        ScenarioEvent(trade_deadline_week(settings), "Trade deadline moves", 0.05, 0.6),
        ScenarioEvent(settings.regular_season_weeks, "Playoff race intensifies", 0.03, 0.9),
    ]

    rounds = settings.playoff_rounds
    for round_idx in range(rounds):
        back = rounds - round_idx - 1
        impact, probability = ROUND_STAKES[back] if back < len(ROUND_STAKES) else EARLY_ROUND_STAKES
        label = round_label(round_idx, rounds)
        name = "Championship game" if label == "Championship" else f"Playoff {label.lower()}"
        events.append(ScenarioEvent(settings.first_playoff_week + round_idx, name, impact, probability))
    return events


def scenario_timeline(kind: str, settings: LeagueSettings) -> List[ScenarioEvent]:
    """Season events still ahead of the current week, scaled for the scenario."""
    multiplier = SCENARIO_MULTIPLIERS[kind]
    return [
        ScenarioEvent(
            week=event.week,
            event=event.event,
            impact=event.impact * multiplier,
            probability=min(1.0, event.probability * multiplier),
        )
        for event in season_events(settings)
        if event.week >= settings.current_week
    ]


def build_scenarios(
    strategies: List[OptimizationStrategy],
    settings: LeagueSettings
) -> List[ScenarioAnalysis]:
    """
    Build the three labeled scenarios.

    Args:
        strategies: Strategies ranked by expected impact
        settings: League calendar the timelines are placed on

    Returns:
        Best Case, Most Likely and Worst Case scenarios (probabilities sum to 1)
    """
    best = ScenarioAnalysis(
        scenario="Best Case",
        probability=0.15,
        required_actions=[s.name for s in strategies[:2]],
        timeline=scenario_timeline("optimistic", settings),
        risks=[Risk(
            type="Overconfidence",
            description="May lead to complacency",
            probability=0.3,
            impact=-0.05,
            mitigation=["Stay focused", "Continue optimizing"],
        )],
        opportunities=[Opportunity(
            type="Momentum Build",
            description="Success breeds more success",
            probability=0.6,
            impact=0.08,
            requirements=["Maintain current strategy"],
        )],
    )

    likely = ScenarioAnalysis(
        scenario="Most Likely",
        probability=0.6,
        required_actions=[s.name for s in strategies[:3]],
        timeline=scenario_timeline("realistic", settings),
        risks=[
            Risk(
                type="Injury to Key Player",
                description="Could derail championship hopes",
                probability=0.25,
                impact=-0.15,
                mitigation=["Build depth", "Target handcuffs"],
            ),
            Risk(
                type="Competitor Improvement",
                description="Other teams may optimize too",
                probability=0.7,
                impact=-0.08,
                mitigation=["Stay ahead of curve", "Monitor competition"],
            ),
        ],
        opportunities=[Opportunity(
            type="Trade Deadline Moves",
            description="Others may make mistakes",
            probability=0.4,
            impact=0.06,
            requirements=["Stay alert to opportunities"],
        )],
    )

    worst = ScenarioAnalysis(
        scenario="Worst Case",
        probability=0.25,
        required_actions=[s.name for s in strategies] + ["Emergency measures"],
        timeline=scenario_timeline("pessimistic", settings),
        risks=[Risk(
            type="Multiple Injuries",
            description="Season-ending injury crisis",
            probability=0.1,
            impact=-0.25,
            mitigation=["Insurance policies", "Deep bench"],
        )],
        opportunities=[Opportunity(
            type="Chaos Theory",
            description="Random events could help",
            probability=0.2,
            impact=0.10,
            requirements=["Stay flexible", "React quickly"],
        )],
    )

    return [best, likely, worst]
