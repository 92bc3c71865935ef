"""
Team momentum tracker.

Blends recent results, scoring trend, player form, consistency, health and
upcoming schedule into a single momentum score in [-1, 1].
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import InjuryStatus, Matchup, Player, Position, Team, clamp


MOMENTUM_WEIGHTS = {
    "recent_record": 0.25,
    "scoring_trend": 0.20,
    "player_performance": 0.20,
    "consistency": 0.15,
    "injuries": 0.10,
    "schedule": 0.10,
}

# Streak length threshold -> multiplier, longest first
WIN_STREAK_MULTIPLIERS = [(10, 2.0), (7, 1.8), (5, 1.5), (3, 1.2)]
LOSS_STREAK_MULTIPLIERS = [(10, 0.2), (7, 0.3), (5, 0.5), (3, 0.8)]

PLAYER_POSITION_WEIGHTS = {
    Position.QB: 1.0,
    Position.RB: 0.9,
    Position.WR: 0.7,
    Position.TE: 0.6,
    Position.K: 0.3,
    Position.DEF: 0.4,
}

RECENT_GAMES = 5
FORECAST_WEEKS = 4
PLAYOFF_PUSH_WEEK = 12


@dataclass
class MomentumComponent:
    factor: str
    value: float
    weight: float
    description: str
    trend: str = "stable"  # increasing, decreasing, stable
    has_data: bool = True

    def to_dict(self) -> dict:
        return {
            "factor": self.factor,
            "value": self.value,
            "weight": self.weight,
            "description": self.description,
            "trend": self.trend,
        }


@dataclass
class Streak:
    kind: str  # win, loss, none
    length: int = 0
    strength: float = 0.0

    def to_dict(self) -> dict:
        return {"type": self.kind, "length": self.length, "strength": self.strength}


@dataclass
class StreakAnalysis:
    current: Streak
    recent_wins: int
    recent_losses: int
    scoring_trend: str  # up, down, flat
    scoring_change: float
    scoring_consistency: float

    def to_dict(self) -> dict:
        return {
            "current": self.current.to_dict(),
            "recent": {
                "wins": self.recent_wins,
                "losses": self.recent_losses,
                "period": self.recent_wins + self.recent_losses,
            },
            "scoring": {
                "trend": self.scoring_trend,
                "change": self.scoring_change,
                "consistency": self.scoring_consistency,
            },
        }


@dataclass
class MomentumPrediction:
    week: int
    predicted_momentum: float
    confidence: float
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "predicted_momentum": self.predicted_momentum,
            "confidence": self.confidence,
            "factors": list(self.factors),
        }


@dataclass
class MomentumTrigger:
    event: str
    impact: float
    probability: float
    timing: str

    def to_dict(self) -> dict:
        return {
            "event": self.event,
            "impact": self.impact,
            "probability": self.probability,
            "timing": self.timing,
        }


@dataclass
class MomentumAnalysis:
    overall: float
    trend: str  # hot, cold, neutral, volatile
    confidence: float
    components: List[MomentumComponent]
    streaks: StreakAnalysis
    player_momentum: Dict[str, List[str]]
    predictions: List[MomentumPrediction]
    triggers: List[MomentumTrigger]

    def component(self, factor: str) -> Optional[MomentumComponent]:
        for component in self.components:
            if component.factor == factor:
                return component
        return None

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "trend": self.trend,
            "confidence": self.confidence,
            "components": [c.to_dict() for c in self.components],
            "streaks": self.streaks.to_dict(),
            "player_momentum": {k: list(v) for k, v in self.player_momentum.items()},
            "predictions": [p.to_dict() for p in self.predictions],
            "triggers": [t.to_dict() for t in self.triggers],
        }


def linear_trend(values: List[float]) -> float:
    """Least-squares slope of values against their index."""
    n = len(values)
    if n < 2:
        return 0.0
    x_sum = n * (n - 1) / 2
    y_sum = sum(values)
    xy_sum = sum(x * y for x, y in enumerate(values))
    xx_sum = n * (n - 1) * (2 * n - 1) / 6
    denominator = n * xx_sum - x_sum * x_sum
    if denominator == 0:
        return 0.0
    return (n * xy_sum - x_sum * y_sum) / denominator


def coefficient_of_variation(values: List[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    if mean == 0:
        return 0.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / abs(mean)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _stdev(values: List[float]) -> float:
    if not values:
        return 0.0
    mean = _mean(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def _margin(matchup: Matchup) -> float:
    if matchup.opponent_score is not None:
        return matchup.actual_score - matchup.opponent_score
    return matchup.actual_score - (matchup.projected_score or 100.0)


def _streak_multiplier(streak: Streak) -> float:
    table = WIN_STREAK_MULTIPLIERS if streak.kind == "win" else LOSS_STREAK_MULTIPLIERS
    if streak.kind == "none":
        return 1.0
    for threshold, multiplier in table:
        if streak.length >= threshold:
            return multiplier
    return 1.0


def current_streak(games: List[Matchup]) -> Streak:
    if not games:
        return Streak("none")
    last_won = bool(games[-1].won)
    length = 0
    total_margin = 0.0
    for game in reversed(games):
        if bool(game.won) != last_won:
            break
        length += 1
        total_margin += abs(_margin(game))
    return Streak(
        kind="win" if last_won else "loss",
        length=length,
        strength=min(1.0, total_margin / length / 20),
    )


def player_momentum(player: Player) -> float:
    """Hot/cold signal for one player in [-1, 1]."""
    scores = player.recent_performances
    if len(scores) < 3:
        return 0.0
    trend = linear_trend(scores)
    earlier = scores[:-3]
    if not earlier:
        return clamp(trend / 5, -1.0, 1.0)
    recent_avg = _mean(scores[-3:])
    earlier_avg = _mean(earlier)
    improvement = (recent_avg - earlier_avg) / (earlier_avg or 1)
    return clamp((trend / 5 + improvement) / 2, -1.0, 1.0)


def _is_breakout(player: Player) -> bool:
    scores = player.recent_performances
    if len(scores) < 4:
        return False
    recent_avg = _mean(scores[-2:])
    earlier_avg = _mean(scores[:-2])
    return recent_avg > earlier_avg * 1.5 and recent_avg > player.projected_points * 1.2


def _is_declining(player: Player) -> bool:
    scores = player.recent_performances
    if len(scores) < 4:
        return False
    recent_avg = _mean(scores[-3:])
    earlier_avg = _mean(scores[:-3])
    return recent_avg < earlier_avg * 0.7 and recent_avg < player.projected_points * 0.8


class TeamMomentumTracker:
    """Computes momentum from a team's results and roster form."""

    def calculate_momentum(
        self,
        team: Team,
        teams: Optional[Dict[str, Team]] = None,
        current_week: Optional[int] = None
    ) -> float:
        return self.analyze(team, teams, current_week).overall

    def analyze(
        self,
        team: Team,
        teams: Optional[Dict[str, Team]] = None,
        current_week: Optional[int] = None
    ) -> MomentumAnalysis:
        if current_week is None:
            remaining = team.remaining_schedule()
            current_week = remaining[0].week if remaining else len(team.schedule) + 1

        played = team.played_schedule()
        components = [
            self._record_component(played),
            self._scoring_component(team, played),
            self._player_component(team),
            self._consistency_component(played),
            self._injury_component(team),
            self._schedule_component(team, teams),
        ]

        overall = self._overall(components)
        values = [c.value for c in components]
        volatility = _stdev(values)
        if volatility > 0.5:
            trend = "volatile"
        elif overall > 0.3:
            trend = "hot"
        elif overall < -0.3:
            trend = "cold"
        else:
            trend = "neutral"

        data_quality = sum(1 for c in components if c.has_data) / len(components)
        confidence = clamp(0.7 * (1 - min(1.0, volatility)) + 0.3 * data_quality, 0.0, 1.0)

        return MomentumAnalysis(
            overall=overall,
            trend=trend,
            confidence=confidence,
            components=components,
            streaks=self._streaks(played),
            player_momentum=self._player_map(team),
            predictions=self._predictions(overall),
            triggers=self._triggers(team, current_week),
        )

    def _overall(self, components: List[MomentumComponent]) -> float:
        total_weight = sum(c.weight for c in components)
        if total_weight == 0:
            return 0.0
        return clamp(sum(c.value * c.weight for c in components) / total_weight, -1.0, 1.0)

    def _record_component(self, played: List[Matchup]) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["recent_record"]
        recent = played[-RECENT_GAMES:]
        if not recent:
            return MomentumComponent("Recent Record", 0.0, weight, "No recent games", has_data=False)

        wins = sum(1 for m in recent if m.won)
        momentum = (wins / len(recent) - 0.5) * 2
        momentum *= _streak_multiplier(current_streak(recent))

        first = recent[:3]
        last = recent[-2:]
        first_rate = sum(1 for m in first if m.won) / len(first)
        last_rate = sum(1 for m in last if m.won) / len(last)
        trend = "stable"
        if last_rate > first_rate + 0.3:
            trend = "increasing"
        elif last_rate < first_rate - 0.3:
            trend = "decreasing"

        return MomentumComponent(
            "Recent Record",
            clamp(momentum, -1.0, 1.0),
            weight,
            f"{wins}W-{len(recent) - wins}L in last {len(recent)} games",
            trend,
        )

    def _scoring_component(self, team: Team, played: List[Matchup]) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["scoring_trend"]
        scores = [m.actual_score for m in played][-RECENT_GAMES:]
        if len(scores) < 3:
            return MomentumComponent("Scoring Trend", 0.0, weight, "Insufficient scoring data", has_data=False)

        slope = linear_trend(scores)
        average = _mean(scores)
        expected = team.points_per_game or average
        vs_expected = (average - expected) / expected if expected else 0.0

        trend = "stable"
        if slope > 2:
            trend = "increasing"
        elif slope < -2:
            trend = "decreasing"

        return MomentumComponent(
            "Scoring Trend",
            clamp((slope / 5 + vs_expected) / 2, -1.0, 1.0),
            weight,
            f"Avg {average:.1f} PPG, {slope:+.1f} trend",
            trend,
        )

    def _player_component(self, team: Team) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["player_performance"]
        total = 0.0
        weight_sum = 0.0
        improving = 0
        declining = 0
        for player in team.roster:
            if len(player.recent_performances) < 3:
                continue
            value = player_momentum(player)
            player_weight = PLAYER_POSITION_WEIGHTS[player.position] * min(1.0, player.projected_points / 20)
            total += value * player_weight
            weight_sum += player_weight
            if value > 0.2:
                improving += 1
            elif value < -0.2:
                declining += 1

        trend = "stable"
        if improving > declining + 1:
            trend = "increasing"
        elif declining > improving + 1:
            trend = "decreasing"

        return MomentumComponent(
            "Player Performance",
            total / weight_sum if weight_sum > 0 else 0.0,
            weight,
            f"{improving} hot, {declining} cold players",
            trend,
            has_data=weight_sum > 0,
        )

    def _consistency_component(self, played: List[Matchup]) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["consistency"]
        all_scores = [m.actual_score for m in played]
        scores = all_scores[-RECENT_GAMES:]
        if len(scores) < 3:
            return MomentumComponent("Consistency", 0.0, weight, "Insufficient data", has_data=False)

        cv = coefficient_of_variation(scores)
        momentum = (max(0.0, 1 - cv) - 0.5) * 2

        early_cv = coefficient_of_variation(all_scores[:max(3, len(all_scores) - RECENT_GAMES)])
        trend = "stable"
        if cv < early_cv * 0.8:
            trend = "increasing"
        elif cv > early_cv * 1.2:
            trend = "decreasing"

        if cv < 0.15:
            label = "Very"
        elif cv < 0.25:
            label = "Fairly"
        else:
            label = "Not"
        return MomentumComponent("Consistency", clamp(momentum, -1.0, 1.0), weight, f"{label} consistent", trend)

    def _injury_component(self, team: Team) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["injuries"]
        starters = [p for p in team.roster if p.projected_points > 10]
        injured = [p for p in starters if not p.is_healthy]
        returning = [
            p for p in team.roster
            if p.injury_status == InjuryStatus.QUESTIONABLE and p.projected_points > 12
        ]

        injury_rate = len(injured) / len(starters) if starters else 0.0
        momentum = -injury_rate * 2 + 0.3 * len(returning)

        if len(returning) > len(injured):
            trend = "increasing"
        elif len(injured) > 2:
            trend = "decreasing"
        else:
            trend = "stable"

        return MomentumComponent(
            "Team Health",
            clamp(momentum, -1.0, 1.0),
            weight,
            f"{len(injured)} key injuries, {len(returning)} returning",
            trend,
        )

    def _schedule_component(self, team: Team, teams: Optional[Dict[str, Team]]) -> MomentumComponent:
        weight = MOMENTUM_WEIGHTS["schedule"]
        remaining = team.remaining_schedule()
        if not remaining:
            return MomentumComponent("Schedule Strength", 0.0, weight, "Season complete", has_data=False)

        difficulty = 0.0
        for game in remaining:
            venue = 0.3 if game.is_home else 0.7
            opponent = teams.get(game.opponent_id) if teams else None
            if opponent is not None:
                difficulty += (venue + opponent.win_pct) / 2
            else:
                difficulty += venue
        difficulty /= len(remaining)

        home_games = sum(1 for g in remaining if g.is_home)
        home_bonus = (home_games / len(remaining) - 0.5) * 0.5
        momentum = (0.5 - difficulty) * 2 + home_bonus

        return MomentumComponent(
            "Schedule Strength",
            clamp(momentum, -1.0, 1.0),
            weight,
            f"{home_games}/{len(remaining)} home games remaining",
        )

    def _streaks(self, played: List[Matchup]) -> StreakAnalysis:
        recent = played[-8:]
        last_five = recent[-RECENT_GAMES:]
        wins = sum(1 for m in last_five if m.won)
        scores = [m.actual_score for m in recent]
        slope = linear_trend(scores)

        if slope > 1:
            direction = "up"
        elif slope < -1:
            direction = "down"
        else:
            direction = "flat"

        return StreakAnalysis(
            current=current_streak(recent),
            recent_wins=wins,
            recent_losses=len(last_five) - wins,
            scoring_trend=direction,
            scoring_change=slope,
            scoring_consistency=clamp(1 - coefficient_of_variation(scores), 0.0, 1.0),
        )

    def _player_map(self, team: Team) -> Dict[str, List[str]]:
        groups = {"hot": [], "cold": [], "breakout": [], "declining": [], "injury_return": []}
        for player in team.roster:
            value = player_momentum(player)
            if value > 0.5:
                groups["hot"].append(player.id)
            elif value < -0.5:
                groups["cold"].append(player.id)
            if _is_breakout(player):
                groups["breakout"].append(player.id)
            if _is_declining(player):
                groups["declining"].append(player.id)
            if player.injury_status == InjuryStatus.QUESTIONABLE and player.projected_points > 10:
                groups["injury_return"].append(player.id)
        return groups

    def _predictions(self, overall: float) -> List[MomentumPrediction]:
        predictions = []
        for week in range(1, FORECAST_WEEKS + 1):
            if week == 1:
                factors = ["Current trends continue"]
            elif week == 2:
                factors = ["Slight regression expected"]
            else:
                factors = ["Momentum typically fades"]
            predictions.append(MomentumPrediction(
                week=week,
                predicted_momentum=overall * 0.8 ** week,
                confidence=max(0.3, 0.9 - week * 0.15),
                factors=factors,
            ))
        return predictions

    def _triggers(self, team: Team, current_week: int) -> List[MomentumTrigger]:
        triggers = []
        injured_stars = sorted(
            (p for p in team.roster if p.projected_points > 15 and not p.is_healthy),
            key=lambda p: -p.projected_points
        )
        if injured_stars:
            triggers.append(MomentumTrigger(
                f"{injured_stars[0].name} returns from injury", 0.3, 0.7, "Next 2-3 weeks"
            ))

        next_game = team.matchup_for_week(current_week + 1)
        if next_game is not None and next_game.is_home and not next_game.is_played:
            triggers.append(MomentumTrigger("Home game advantage", 0.15, 0.8, "Next week"))

        if current_week >= PLAYOFF_PUSH_WEEK:
            triggers.append(MomentumTrigger("Playoff desperation mode", 0.25, 0.6, "Remaining season"))

        return triggers
