"""
Injury impact model.

Scores how a roster's injuries hurt its chances using position importance,
starter status, replacement drop-off and position scarcity.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List

from ..models import (
    InjuryStatus, Player, Position, STARTER_COUNTS, clamp, starter_ids
)


# Position importance weights
POSITION_WEIGHTS: Dict[Position, float] = {
    Position.QB: 1.0,
    Position.RB: 0.9,
    Position.WR: 0.7,
    Position.TE: 0.6,
    Position.K: 0.3,
    Position.DEF: 0.4,
}

# Status -> (impact, expected weeks out, confidence)
INJURY_SEVERITIES: Dict[InjuryStatus, tuple] = {
    InjuryStatus.HEALTHY: (0.0, 0.0, 1.0),
    InjuryStatus.QUESTIONABLE: (-0.15, 0.5, 0.7),
    InjuryStatus.DOUBTFUL: (-0.35, 1.5, 0.6),
    InjuryStatus.OUT: (-0.7, 2.5, 0.8),
    InjuryStatus.IR: (-1.0, 6.0, 0.9),
}

# Injury type -> (typical weeks, reinjury risk)
INJURY_TYPES: Dict[str, tuple] = {
    "hamstring": (2.5, 0.35),
    "ankle": (2.0, 0.25),
    "knee": (4.0, 0.30),
    "shoulder": (3.0, 0.20),
    "concussion": (1.5, 0.40),
    "back": (2.5, 0.45),
    "groin": (2.0, 0.35),
    "calf": (2.0, 0.30),
    "quad": (1.5, 0.25),
    "ribs": (2.0, 0.15),
    "illness": (0.5, 0.05),
}
UNSPECIFIED_INJURY = (2.0, 0.25)

# Weekly fantasy points of an average starter
LEAGUE_AVERAGE_POINTS: Dict[Position, float] = {
    Position.QB: 18.0,
    Position.RB: 12.0,
    Position.WR: 10.0,
    Position.TE: 8.0,
    Position.K: 8.0,
    Position.DEF: 8.0,
}

KEY_INJURY_THRESHOLD = 0.1
RECOVERY_HORIZON_WEEKS = 8


@dataclass
class InjuryTimeline:
    injury_type: str
    status: InjuryStatus
    estimated_return: float
    reinjury_risk: float
    historical_recovery: float

    def to_dict(self) -> dict:
        return {
            "injury_type": self.injury_type,
            "status": self.status.value,
            "estimated_return": self.estimated_return,
            "reinjury_risk": self.reinjury_risk,
            "historical_recovery": self.historical_recovery,
        }


@dataclass
class PlayerInjuryImpact:
    player: Player
    impact: float
    replacement_drop: float
    position_scarcity: float
    is_starter: bool
    timeline: InjuryTimeline
    confidence: float

    def to_dict(self) -> dict:
        return {
            "player_id": self.player.id,
            "player_name": self.player.name,
            "position": self.player.position.value,
            "impact": self.impact,
            "replacement_drop": self.replacement_drop,
            "position_scarcity": self.position_scarcity,
            "is_starter": self.is_starter,
            "timeline": self.timeline.to_dict(),
            "confidence": self.confidence,
        }


@dataclass
class DepthAnalysis:
    position: Position
    healthy_starters: int
    total_depth: int
    quality_score: float
    vulnerability: float

    def to_dict(self) -> dict:
        return {
            "position": self.position.value,
            "healthy_starters": self.healthy_starters,
            "total_depth": self.total_depth,
            "quality_score": self.quality_score,
            "vulnerability": self.vulnerability,
        }


@dataclass
class RecoveryProjection:
    player: Player
    weeks: List[int]
    return_probabilities: List[float]
    performance: List[float]

    def to_dict(self) -> dict:
        return {
            "player_id": self.player.id,
            "weeks": list(self.weeks),
            "return_probabilities": list(self.return_probabilities),
            "performance": list(self.performance),
        }


@dataclass
class InjuryAnalysis:
    """Team-level injury picture."""

    team_impact: float
    key_injuries: List[PlayerInjuryImpact] = field(default_factory=list)
    position_depth: Dict[Position, DepthAnalysis] = field(default_factory=dict)
    replacement_quality: float = 0.5
    recovery: List[RecoveryProjection] = field(default_factory=list)
    risk_score: float = 0.0
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "team_impact": self.team_impact,
            "key_injuries": [i.to_dict() for i in self.key_injuries],
            "position_depth": {p.value: d.to_dict() for p, d in self.position_depth.items()},
            "replacement_quality": self.replacement_quality,
            "recovery": [r.to_dict() for r in self.recovery],
            "risk_score": self.risk_score,
            "recommendations": list(self.recommendations),
        }


class InjuryImpactModel:
    """Scores roster injuries on a [-1, 0] scale."""

    def calculate_impact(self, team_roster: List[Player], opponent_roster: List[Player]) -> float:
        """
        Net injury edge for a matchup.

        Positive when the opponent is the more injured side.

        Returns:
            Value in [-0.3, 0.3]
        """
        return self.net_impact(
            self.analyze_team_injuries(team_roster),
            self.analyze_team_injuries(opponent_roster),
        )

    @staticmethod
    def net_impact(team: InjuryAnalysis, opponent: InjuryAnalysis) -> float:
        return clamp((team.team_impact - opponent.team_impact) * 0.3, -0.3, 0.3)

    def analyze_team_injuries(self, roster: List[Player], weeks_until_playoffs: int = 3) -> InjuryAnalysis:
        starters = starter_ids(roster)
        key_injuries = self.identify_key_injuries(roster, starters)
        depth = self.analyze_position_depth(roster)
        replacement_quality = self.calculate_replacement_quality(roster)
        recovery = self.project_recovery(key_injuries)

        return InjuryAnalysis(
            team_impact=self._team_impact(key_injuries, depth, replacement_quality),
            key_injuries=key_injuries,
            position_depth=depth,
            replacement_quality=replacement_quality,
            recovery=recovery,
            risk_score=self.calculate_risk_score(roster),
            recommendations=self._recommendations(key_injuries, depth, recovery, weeks_until_playoffs),
        )

    def identify_key_injuries(self, roster: List[Player], starters: set) -> List[PlayerInjuryImpact]:
        injuries = []
        for player in roster:
            if player.is_healthy:
                continue
            impact = self.player_impact(player, roster, player.id in starters)
            if abs(impact.impact) > KEY_INJURY_THRESHOLD:
                injuries.append(impact)
        # Most damaging first
        return sorted(injuries, key=lambda i: (i.impact, i.player.id))

    def player_impact(self, player: Player, roster: List[Player], is_starter: bool) -> PlayerInjuryImpact:
        severity, _, confidence = INJURY_SEVERITIES[player.injury_status]
        weight = POSITION_WEIGHTS[player.position]
        starter_multiplier = 1.5 if is_starter else 0.7

        replacement = self._best_replacement(player, roster)
        replacement_points = replacement.projected_points if replacement else 0.0
        replacement_drop = max(0.0, player.projected_points - replacement_points)
        scarcity = self._position_scarcity(player.position, roster)

        impact = severity * weight * starter_multiplier * (1 + scarcity) * (replacement_drop / 20)

        return PlayerInjuryImpact(
            player=player,
            impact=max(-1.0, impact),
            replacement_drop=replacement_drop,
            position_scarcity=scarcity,
            is_starter=is_starter,
            timeline=self._timeline(player),
            confidence=confidence,
        )

    def analyze_position_depth(self, roster: List[Player]) -> Dict[Position, DepthAnalysis]:
        depth = {}
        for position, starter_count in STARTER_COUNTS.items():
            at_position = [p for p in roster if p.position == position]
            healthy = [p for p in at_position if p.is_healthy]
            healthy_starters = min(len(healthy), starter_count)

            avg_projected = (
                sum(p.projected_points for p in healthy) / len(healthy) if healthy else 0.0
            )
            quality = min(1.0, avg_projected / LEAGUE_AVERAGE_POINTS[position])
            vulnerability = 1 - (healthy_starters / starter_count) * quality

            depth[position] = DepthAnalysis(
                position=position,
                healthy_starters=healthy_starters,
                total_depth=len(at_position),
                quality_score=quality,
                vulnerability=vulnerability,
            )
        return depth

    def calculate_replacement_quality(self, roster: List[Player]) -> float:
        """Backup-to-starter projection ratio over the skill positions."""
        ratios = []
        for position in (Position.QB, Position.RB, Position.WR, Position.TE):
            ranked = sorted(
                (p for p in roster if p.position == position),
                key=lambda p: -p.projected_points
            )
            count = STARTER_COUNTS[position]
            backups = ranked[count:]
            if not backups:
                continue
            backup_avg = sum(p.projected_points for p in backups) / len(backups)
            starter_avg = sum(p.projected_points for p in ranked[:count]) / count
            ratios.append(backup_avg / (starter_avg or 1))

        if not ratios:
            return 0.5
        return min(1.0, sum(ratios) / len(ratios))

    def calculate_risk_score(self, roster: List[Player]) -> float:
        """Roster-wide exposure to further injuries in [0, 1]."""
        risk = 0.0
        weight_sum = 0.0
        for player in roster:
            weight = POSITION_WEIGHTS[player.position]
            history_factor = 1.0 if player.is_healthy else 1.5
            variance_factor = 1 + _performance_variance(player) * 0.5
            risk += history_factor * variance_factor * weight
            weight_sum += weight

        if weight_sum == 0:
            return 0.0
        return min(1.0, risk / (weight_sum * 2))

    def project_recovery(self, injuries: List[PlayerInjuryImpact]) -> List[RecoveryProjection]:
        projections = []
        weeks = list(range(1, RECOVERY_HORIZON_WEEKS + 1))
        for injury in injuries:
            eta = injury.timeline.estimated_return
            probabilities = []
            performance = []
            for week in weeks:
                if week < eta:
                    probabilities.append(0.1 * (week / eta))
                elif week == math.ceil(eta):
                    probabilities.append(0.7)
                else:
                    probabilities.append(min(0.95, 0.7 + 0.1 * (week - eta)))

                if week < eta:
                    performance.append(0.0)
                else:
                    performance.append(min(1.0, 0.7 + 0.1 * (week - eta)))

            projections.append(RecoveryProjection(
                player=injury.player,
                weeks=weeks,
                return_probabilities=probabilities,
                performance=performance,
            ))
        return projections

    def _team_impact(
        self,
        injuries: List[PlayerInjuryImpact],
        depth: Dict[Position, DepthAnalysis],
        replacement_quality: float
    ) -> float:
        direct = sum(i.impact for i in injuries)
        avg_vulnerability = sum(d.vulnerability for d in depth.values()) / len(depth)
        total = direct * (1 + avg_vulnerability) * (1 + (1 - replacement_quality))
        return clamp(total, -1.0, 0.0)

    def _recommendations(
        self,
        injuries: List[PlayerInjuryImpact],
        depth: Dict[Position, DepthAnalysis],
        recovery: List[RecoveryProjection],
        weeks_until_playoffs: int
    ) -> List[str]:
        recommendations = []

        critical = [i for i in injuries if i.impact < -0.5]
        if critical:
            recommendations.append(
                f"Critical: {critical[0].player.name} injury severely impacts championship odds"
            )

        thin = [p.value for p, d in depth.items() if d.vulnerability > 0.7]
        if thin:
            recommendations.append(f"Strengthen depth at: {', '.join(thin)}")

        playoff_idx = min(max(weeks_until_playoffs, 1), RECOVERY_HORIZON_WEEKS) - 1
        for projection in recovery:
            if projection.return_probabilities[playoff_idx] > 0.6:
                recommendations.append(f"{projection.player.name} expected back for playoffs")
                break

        injured_rbs = [i for i in injuries if i.player.position == Position.RB and i.impact < -0.3]
        if injured_rbs:
            recommendations.append(f"Consider handcuffing {injured_rbs[0].player.name}")

        high_risk = [i for i in injuries if i.timeline.reinjury_risk > 0.4]
        if high_risk:
            recommendations.append(f"Monitor {high_risk[0].player.name} - high reinjury risk")

        return recommendations

    def _best_replacement(self, player: Player, roster: List[Player]):
        candidates = [
            p for p in roster
            if p.position == player.position and p.id != player.id and p.is_healthy
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.projected_points)

    def _position_scarcity(self, position: Position, roster: List[Player]) -> float:
        healthy = sum(1 for p in roster if p.position == position and p.is_healthy)
        needed = STARTER_COUNTS[position]
        return clamp(1 - healthy / (needed * 2), 0.0, 1.0)

    def _timeline(self, player: Player) -> InjuryTimeline:
        injury_type = (player.injury_type or "unspecified").lower()
        typical_weeks, reinjury_risk = INJURY_TYPES.get(injury_type, UNSPECIFIED_INJURY)
        _, weeks_out, _ = INJURY_SEVERITIES[player.injury_status]
        return InjuryTimeline(
            injury_type=injury_type,
            status=player.injury_status,
            estimated_return=weeks_out,
            reinjury_risk=reinjury_risk,
            historical_recovery=typical_weeks,
        )


def _performance_variance(player: Player) -> float:
    """Coefficient of variation of recent scores, capped at 1."""
    scores = player.recent_performances
    if len(scores) < 3:
        return 0.5
    mean = sum(scores) / len(scores)
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)
    return min(1.0, math.sqrt(variance) / (mean or 1))
