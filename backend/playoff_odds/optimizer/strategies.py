"""
Improvement strategies for a team's championship run.

Each generator inspects one aspect of the team (roster, schedule, momentum,
health, matchups, risk posture) and returns zero or more strategies with an
expected probability impact.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..analyzers import InjuryAnalysis, MomentumAnalysis
from ..analyzers.injury import LEAGUE_AVERAGE_POINTS
from ..analyzers.schedule import league_ranks
from ..models import ChampionshipProbability, LeagueSettings, Position, Team


PRIORITIES = ("low", "medium", "high", "critical")

HIGH_RISK_THRESHOLD = 0.15
PROTECT_LEAD_THRESHOLD = 0.4
WEAK_POSITION_RATIO = 0.85
ELITE_SHARE = 0.3
WEAK_OPPONENT_SHARE = 0.6
MATCHUP_WINDOW = 4


@dataclass
class OptimizationAction:
    type: str  # roster, lineup, trade, waiver, strategic
    action: str
    reason: str
    impact: float
    urgency: float
    requirements: List[str] = field(default_factory=list)
    alternatives: List[str] = field(default_factory=list)
    target: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "action": self.action,
            "target": self.target,
            "reason": self.reason,
            "impact": self.impact,
            "urgency": self.urgency,
            "requirements": list(self.requirements),
            "alternatives": list(self.alternatives),
        }


@dataclass
class OptimizationStrategy:
    """A ranked way to raise championship odds."""

    id: str
    name: str
    category: str
    description: str
    actions: List[OptimizationAction]
    expected_impact: float
    confidence: float
    timeframe: str
    cost: float
    priority: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "actions": [a.to_dict() for a in self.actions],
            "expected_impact": self.expected_impact,
            "confidence": self.confidence,
            "timeframe": self.timeframe,
            "cost": self.cost,
            "priority": self.priority,
        }


def weak_positions(team: Team) -> List[Position]:
    """Positions whose average projection trails the league average by 15% or more."""
    weak = []
    for position in Position:
        players = [p for p in team.roster if p.position == position]
        if not players:
            weak.append(position)
            continue
        average = sum(p.projected_points for p in players) / len(players)
        if average < LEAGUE_AVERAGE_POINTS[position] * WEAK_POSITION_RATIO:
            weak.append(position)
    return weak


def roster_strategies(team: Team, injuries: InjuryAnalysis) -> List[OptimizationStrategy]:
    strategies = []

    weak = weak_positions(team)
    if weak:
        names = [p.value for p in weak]
        strategies.append(OptimizationStrategy(
            id="roster-strengthen",
            name="Strengthen Weak Positions",
            category="roster",
            description=f"Target upgrades at {', '.join(names)} to maximize scoring potential",
            actions=[
                OptimizationAction(
                    type="roster",
                    action=f"Upgrade {name} position",
                    reason="Below league average at this position",
                    impact=0.08,
                    urgency=0.7,
                    requirements=[f"Available {name} on waivers or trade market"],
                    alternatives=[f"Stream {name} based on matchups"],
                )
                for name in names
            ],
            expected_impact=0.12,
            confidence=0.8,
            timeframe="1-2 weeks",
            cost=0.6,
            priority="high",
        ))

    if injuries.key_injuries:
        strategies.append(OptimizationStrategy(
            id="injury-replacement",
            name="Injury Replacement Strategy",
            category="roster",
            description="Secure replacements for injured key players",
            actions=[
                OptimizationAction(
                    type="waiver",
                    action=f"Add handcuff for {injury.player.name}",
                    target=injury.player.id,
                    reason="Mitigate injury risk to key player",
                    impact=abs(injury.impact) * 0.5,
                    urgency=0.9,
                    requirements=["Roster space available"],
                    alternatives=["Stream position weekly"],
                )
                for injury in injuries.key_injuries
            ],
            expected_impact=0.15,
            confidence=0.85,
            timeframe="immediate",
            cost=0.3,
            priority="critical",
        ))

    strategies.append(OptimizationStrategy(
        id="build-depth",
        name="Build Championship Depth",
        category="roster",
        description="Add quality depth players for playoff run",
        actions=[OptimizationAction(
            type="waiver",
            action="Target playoff schedules",
            reason="Players with favorable playoff matchups",
            impact=0.06,
            urgency=0.5,
            requirements=["Research playoff schedules"],
            alternatives=["Focus on immediate needs"],
        )],
        expected_impact=0.08,
        confidence=0.7,
        timeframe="2-3 weeks",
        cost=0.4,
        priority="medium",
    ))
    return strategies


def schedule_strategies(
    team: Team,
    teams: Dict[str, Team],
    settings: LeagueSettings
) -> List[OptimizationStrategy]:
    strategies = []

    playoff_weeks = range(settings.first_playoff_week, settings.championship_week + 1)
    if any(m.week in playoff_weeks for m in team.schedule):
        first, last = playoff_weeks[0], playoff_weeks[-1]
        strategies.append(OptimizationStrategy(
            id="playoff-schedule",
            name="Playoff Schedule Optimization",
            category="schedule",
            description="Optimize roster for specific playoff matchups",
            actions=[OptimizationAction(
                type="strategic",
                action="Target players with favorable playoff schedules",
                reason="Maximize points during playoff weeks",
                impact=0.10,
                urgency=0.6,
                requirements=[f"Analyze opponent lineups for weeks {first}-{last}"],
                alternatives=["Stick with best overall players"],
            )],
            expected_impact=0.12,
            confidence=0.75,
            timeframe="3-4 weeks",
            cost=0.5,
            priority="high",
        ))

    ranks = league_ranks(teams)
    strong = [
        m for m in team.remaining_schedule()
        if m.opponent_id in ranks and ranks[m.opponent_id] <= len(teams) * ELITE_SHARE
    ]
    if len(strong) >= 2:
        strategies.append(OptimizationStrategy(
            id="schedule-mitigation",
            name="Difficult Schedule Mitigation",
            category="schedule",
            description="Prepare for challenging upcoming matchups",
            actions=[OptimizationAction(
                type="strategic",
                action="Focus on high-floor players",
                reason="Reduce risk in difficult matchups",
                impact=0.08,
                urgency=0.7,
                requirements=["Identify consistent performers"],
                alternatives=["Go high-ceiling to match elite teams"],
            )],
            expected_impact=0.09,
            confidence=0.7,
            timeframe="1-3 weeks",
            cost=0.4,
            priority="medium",
        ))
    return strategies


def momentum_strategies(team: Team, momentum: MomentumAnalysis) -> List[OptimizationStrategy]:
    strategies = []

    if momentum.overall < -0.3:
        strategies.append(OptimizationStrategy(
            id="momentum-reversal",
            name="Momentum Reversal Strategy",
            category="momentum",
            description="Break negative trends and rebuild confidence",
            actions=[
                OptimizationAction(
                    type="roster",
                    action="Make impactful roster move",
                    reason="Shake up struggling lineup",
                    impact=0.10,
                    urgency=0.8,
                    requirements=["Available upgrades"],
                    alternatives=["Change lineup strategy"],
                ),
                OptimizationAction(
                    type="strategic",
                    action="Target high-upside plays",
                    reason="Need ceiling to break trends",
                    impact=0.06,
                    urgency=0.6,
                    requirements=["Risk tolerance"],
                    alternatives=["Play it safe"],
                ),
            ],
            expected_impact=0.14,
            confidence=0.6,
            timeframe="1-2 weeks",
            cost=0.7,
            priority="high",
        ))
    elif momentum.overall > 0.3:
        strategies.append(OptimizationStrategy(
            id="momentum-maintenance",
            name="Maintain Hot Streak",
            category="momentum",
            description="Ride positive momentum while preparing for regression",
            actions=[OptimizationAction(
                type="strategic",
                action="Stay the course with hot players",
                reason="Momentum players often continue streaks",
                impact=0.05,
                urgency=0.4,
                requirements=["Monitor for regression signs"],
                alternatives=["Sell high on hot players"],
            )],
            expected_impact=0.07,
            confidence=0.8,
            timeframe="2-3 weeks",
            cost=0.2,
            priority="medium",
        ))

    hot = [team.find_player(pid) for pid in momentum.player_momentum.get("hot", [])]
    cold = [team.find_player(pid) for pid in momentum.player_momentum.get("cold", [])]
    hot = [p for p in hot if p is not None]
    cold = [p for p in cold if p is not None]
    if hot or cold:
        actions = [
            OptimizationAction(
                type="strategic",
                action=f"Increase {player.name} usage",
                target=player.id,
                reason="Player showing positive momentum",
                impact=0.03,
                urgency=0.5,
                requirements=["Monitor snap counts and targets"],
                alternatives=["Maintain current usage"],
            )
            for player in hot
        ]
        actions.extend(
            OptimizationAction(
                type="roster",
                action=f"Consider replacing {player.name}",
                target=player.id,
                reason="Player showing negative momentum",
                impact=0.04,
                urgency=0.6,
                requirements=["Available replacements"],
                alternatives=["Give player more time"],
            )
            for player in cold
        )
        strategies.append(OptimizationStrategy(
            id="player-momentum",
            name="Player Momentum Management",
            category="momentum",
            description="Optimize based on individual player trends",
            actions=actions,
            expected_impact=0.08,
            confidence=0.7,
            timeframe="1-2 weeks",
            cost=0.5,
            priority="medium",
        ))
    return strategies


def health_strategies(team: Team, injuries: InjuryAnalysis) -> List[OptimizationStrategy]:
    strategies = []

    if injuries.risk_score > 0.7:
        strategies.append(OptimizationStrategy(
            id="injury-prevention",
            name="Injury Risk Mitigation",
            category="health",
            description="Reduce dependency on injury-prone players",
            actions=[OptimizationAction(
                type="roster",
                action="Diversify at high-risk positions",
                reason="Reduce single points of failure",
                impact=0.09,
                urgency=0.7,
                requirements=["Available alternatives"],
                alternatives=["Accept the risk"],
            )],
            expected_impact=0.11,
            confidence=0.75,
            timeframe="1-3 weeks",
            cost=0.6,
            priority="high",
        ))

    returning = [r for r in injuries.recovery if any(p > 0.6 for p in r.return_probabilities)]
    if returning:
        strategies.append(OptimizationStrategy(
            id="recovery-timing",
            name="Injury Recovery Optimization",
            category="health",
            description="Time roster moves around player returns",
            actions=[
                OptimizationAction(
                    type="strategic",
                    action=f"Plan for {recovery.player.name} return",
                    target=recovery.player.id,
                    reason="Optimize roster for player return timing",
                    impact=0.06,
                    urgency=0.5,
                    requirements=["Monitor injury reports closely"],
                    alternatives=["Plan without expecting return"],
                )
                for recovery in returning
            ],
            expected_impact=0.10,
            confidence=0.65,
            timeframe="2-4 weeks",
            cost=0.3,
            priority="medium",
        ))
    return strategies


def matchup_strategies(
    team: Team,
    teams: Dict[str, Team],
    current_week: int
) -> List[OptimizationStrategy]:
    ranks = league_ranks(teams)
    upcoming = [
        m for m in team.remaining_schedule()
        if current_week <= m.week < current_week + MATCHUP_WINDOW
    ]
    favorable = [
        m for m in upcoming
        if m.opponent_id in ranks and ranks[m.opponent_id] > len(teams) * WEAK_OPPONENT_SHARE
    ]
    if len(favorable) < 2:
        return []

    weeks = ", ".join(str(m.week) for m in favorable)
    return [OptimizationStrategy(
        id="exploit-matchups",
        name="Exploit Favorable Matchups",
        category="matchup",
        description=f"Maximize scoring in winnable games (weeks {weeks})",
        actions=[OptimizationAction(
            type="strategic",
            action="Target ceiling plays for favorable weeks",
            reason="Maximize points in winnable matchups",
            impact=0.08,
            urgency=0.6,
            requirements=["Identify high-ceiling players"],
            alternatives=["Play conservative"],
        )],
        expected_impact=0.10,
        confidence=0.7,
        timeframe="2-4 weeks",
        cost=0.4,
        priority="medium",
    )]


def risk_strategies(probability: ChampionshipProbability) -> List[OptimizationStrategy]:
    strategies = []

    if probability.championship_probability < HIGH_RISK_THRESHOLD:
        strategies.append(OptimizationStrategy(
            id="high-risk-high-reward",
            name="High-Risk, High-Reward Strategy",
            category="risk",
            description="Take calculated risks to maximize upside",
            actions=[OptimizationAction(
                type="roster",
                action="Target boom-or-bust players",
                reason="Need ceiling to compete with better teams",
                impact=0.12,
                urgency=0.8,
                requirements=["Risk tolerance"],
                alternatives=["Accept lower ceiling"],
            )],
            expected_impact=0.15,
            confidence=0.5,
            timeframe="1-2 weeks",
            cost=0.8,
            priority="high",
        ))

    if probability.championship_probability > PROTECT_LEAD_THRESHOLD:
        strategies.append(OptimizationStrategy(
            id="protect-lead",
            name="Protect Championship Position",
            category="risk",
            description="Focus on consistency and injury prevention",
            actions=[OptimizationAction(
                type="strategic",
                action="Prioritize high-floor players",
                reason="Maintain advantage with consistent scoring",
                impact=0.05,
                urgency=0.4,
                requirements=["Current roster depth"],
                alternatives=["Continue aggressive approach"],
            )],
            expected_impact=0.08,
            confidence=0.85,
            timeframe="remainder of season",
            cost=0.3,
            priority="medium",
        ))
    return strategies


def generate_strategies(
    team: Team,
    teams: Dict[str, Team],
    probability: ChampionshipProbability,
    momentum: MomentumAnalysis,
    injuries: InjuryAnalysis,
    settings: LeagueSettings
) -> List[OptimizationStrategy]:
    """Every applicable strategy, highest expected impact first."""
    strategies = []
    strategies.extend(roster_strategies(team, injuries))
    strategies.extend(schedule_strategies(team, teams, settings))
    strategies.extend(momentum_strategies(team, momentum))
    strategies.extend(health_strategies(team, injuries))
    strategies.extend(matchup_strategies(team, teams, settings.current_week))
    strategies.extend(risk_strategies(probability))
    return sorted(strategies, key=lambda s: -s.expected_impact)
