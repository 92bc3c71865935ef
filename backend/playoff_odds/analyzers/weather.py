"""
Weather factor calculator.

Classifies game-time conditions into severity bands and converts them into
a team-specific impact weighted by offensive style.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import Player, Position, Team, WeatherSnapshot, clamp


# Band thresholds (deg F, mph, inches/hour)
FREEZING_TEMP = 32
COLD_TEMP = 45
HOT_TEMP = 85
EXTREME_TEMP = 95

MODERATE_WIND = 15
STRONG_WIND = 25
SEVERE_WIND = 35

LIGHT_PRECIP = 0.1
MODERATE_PRECIP = 0.5
HEAVY_PRECIP = 1.0

# Per-position sensitivity to each condition family
POSITION_SENSITIVITY: Dict[Position, Dict[str, float]] = {
    Position.QB: {"cold": -0.15, "wind": -0.25, "rain": -0.20, "snow": -0.30, "heat": -0.05},
    Position.RB: {"cold": -0.05, "wind": 0.05, "rain": -0.10, "snow": -0.15, "heat": -0.10},
    Position.WR: {"cold": -0.10, "wind": -0.30, "rain": -0.25, "snow": -0.35, "heat": -0.05},
    Position.TE: {"cold": -0.05, "wind": -0.15, "rain": -0.15, "snow": -0.20, "heat": -0.05},
    Position.K: {"cold": -0.10, "wind": -0.40, "rain": -0.15, "snow": -0.25, "heat": 0.0},
    Position.DEF: {"cold": 0.10, "wind": 0.15, "rain": 0.10, "snow": 0.15, "heat": -0.05, "extreme": 1.0},
}

STYLE_WEIGHTS: Dict[str, Dict[str, float]] = {
    "balanced": {"passing": 0.35, "rushing": 0.35, "kicking": 0.1, "defense": 0.2},
    "pass-heavy": {"passing": 0.5, "rushing": 0.2, "kicking": 0.1, "defense": 0.2},
    "run-heavy": {"passing": 0.2, "rushing": 0.5, "kicking": 0.1, "defense": 0.2},
    "defensive": {"passing": 0.2, "rushing": 0.2, "kicking": 0.1, "defense": 0.5},
}

# Home teams are used to their own climate
HOME_ADAPTATION = 0.15


@dataclass
class WeatherFactor:
    condition: str
    family: str
    impact: float
    affected: List[Position]
    severity: str  # low, medium, high
    description: str

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "impact": self.impact,
            "affected": [p.value for p in self.affected],
            "severity": self.severity,
            "description": self.description,
        }


@dataclass
class WeatherImpact:
    overall: float
    passing: float = 0.0
    rushing: float = 0.0
    kicking: float = 0.0
    defense: float = 0.0
    factors: List[WeatherFactor] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "passing": self.passing,
            "rushing": self.rushing,
            "kicking": self.kicking,
            "defense": self.defense,
            "factors": [f.to_dict() for f in self.factors],
            "recommendations": list(self.recommendations),
        }


@dataclass
class TeamWeatherProfile:
    style: str
    adaptability: float
    vulnerabilities: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "style": self.style,
            "adaptability": self.adaptability,
            "vulnerabilities": list(self.vulnerabilities),
            "strengths": list(self.strengths),
        }


QB_WR = (Position.QB, Position.WR)
PASS_AND_KICK = (Position.QB, Position.WR, Position.K)


def _temperature_factor(temperature: float) -> Optional[WeatherFactor]:
    if temperature <= FREEZING_TEMP:
        return WeatherFactor("Freezing", "cold", -0.25, list(PASS_AND_KICK), "high",
                             f"{temperature}°F - Severe cold affects passing and kicking")
    if temperature <= COLD_TEMP:
        return WeatherFactor("Cold", "cold", -0.15, list(PASS_AND_KICK), "medium",
                             f"{temperature}°F - Cold weather impacts ball handling")
    if temperature >= EXTREME_TEMP:
        return WeatherFactor("Extreme Heat", "heat", -0.20, [Position.RB, Position.DEF], "high",
                             f"{temperature}°F - Extreme heat causes fatigue")
    if temperature >= HOT_TEMP:
        return WeatherFactor("Hot", "heat", -0.10, [Position.RB, Position.DEF], "medium",
                             f"{temperature}°F - Heat affects stamina")
    return None


def _wind_factor(wind_speed: float) -> Optional[WeatherFactor]:
    if wind_speed >= SEVERE_WIND:
        return WeatherFactor("Severe Wind", "wind", -0.40, list(PASS_AND_KICK), "high",
                             f"{wind_speed} mph winds - Extreme passing/kicking difficulty")
    if wind_speed >= STRONG_WIND:
        return WeatherFactor("Strong Wind", "wind", -0.25, list(PASS_AND_KICK), "high",
                             f"{wind_speed} mph winds - Significant passing game impact")
    if wind_speed >= MODERATE_WIND:
        return WeatherFactor("Moderate Wind", "wind", -0.10, [Position.QB, Position.K], "medium",
                             f"{wind_speed} mph winds - Some passing/kicking difficulty")
    return None


def _precipitation_factor(precipitation: float, temperature: float) -> Optional[WeatherFactor]:
    snow = temperature <= FREEZING_TEMP
    family = "snow" if snow else "rain"
    kind = "Snow" if snow else "Rain"

    if precipitation >= HEAVY_PRECIP:
        return WeatherFactor(f"Heavy {kind}", family, -0.35 if snow else -0.25,
                             [Position.QB, Position.WR, Position.RB], "high",
                             "Heavy snow - Major impact on all aspects" if snow
                             else "Heavy rain - Significant ball handling issues")
    if precipitation >= MODERATE_PRECIP:
        return WeatherFactor(f"Moderate {kind}", family, -0.25 if snow else -0.15,
                             list(QB_WR), "medium",
                             "Moderate snow - Passing game affected" if snow
                             else "Moderate rain - Some ball handling difficulty")
    if precipitation >= LIGHT_PRECIP:
        return WeatherFactor(f"Light {kind}", family, -0.15 if snow else -0.05,
                             list(QB_WR), "low", "Light precipitation - Minor impact")
    return None


def _combined_factors(weather: WeatherSnapshot) -> List[WeatherFactor]:
    factors = []
    if weather.wind_speed > 20 and weather.temperature < 40:
        factors.append(WeatherFactor("Wind Chill", "cold", -0.15, list(PASS_AND_KICK), "high",
                                     "Wind chill makes conditions feel much colder"))
    if weather.precipitation > MODERATE_PRECIP and weather.wind_speed > MODERATE_WIND:
        factors.append(WeatherFactor("Driving Rain", "rain", -0.20,
                                     [Position.QB, Position.WR, Position.RB], "high",
                                     "Wind-driven rain severely impacts ball control"))

    extremes = sum([
        weather.temperature < FREEZING_TEMP or weather.temperature > 90,
        weather.wind_speed > STRONG_WIND,
        weather.precipitation > MODERATE_PRECIP,
    ])
    if extremes >= 2:
        factors.append(WeatherFactor("Extreme Conditions", "extreme", 0.15, [Position.DEF], "medium",
                                     "Defense benefits from extreme weather"))
    return factors


def _position_points(roster: List[Player], *positions: Position) -> float:
    return sum(p.projected_points for p in roster if p.position in positions)


class WeatherFactorCalculator:
    """Turns a weather snapshot into a bounded team impact."""

    def calculate_impact(self, team: Team, weather: Optional[WeatherSnapshot], is_home: bool = False) -> float:
        """
        Weather impact for one side of a matchup.

        Returns:
            0.0 for dome games or missing weather, else a value in [-1, 1]
        """
        if weather is None or weather.dome:
            return 0.0

        impact = self.analyze(team, weather)
        profile = self.team_profile(team)
        adjusted = impact.overall * (1 - profile.adaptability * 0.5)
        home_bonus = HOME_ADAPTATION * 0.1 if is_home else 0.0
        return clamp(adjusted + home_bonus, -1.0, 1.0)

    def classify(self, weather: WeatherSnapshot) -> List[WeatherFactor]:
        """All weather factors present, individual bands then combined conditions."""
        factors = [
            f for f in (
                _temperature_factor(weather.temperature),
                _wind_factor(weather.wind_speed),
                _precipitation_factor(weather.precipitation, weather.temperature),
            )
            if f is not None
        ]
        factors.extend(_combined_factors(weather))
        return factors

    def analyze(self, team: Team, weather: WeatherSnapshot) -> WeatherImpact:
        if weather.dome:
            return WeatherImpact(overall=0.0, recommendations=["Playing in dome - no weather concerns"])

        factors = self.classify(weather)
        profile = self.team_profile(team)

        passing = self._passing_impact(factors, team.roster)
        rushing = self._rushing_impact(factors, profile.style)
        kicking = self._sensitivity_sum(factors, Position.K)
        defense = self._sensitivity_sum(factors, Position.DEF)
        if any(f.severity == "high" for f in factors):
            defense += 0.1

        weights = STYLE_WEIGHTS[profile.style]
        overall = clamp(
            passing * weights["passing"]
            + rushing * weights["rushing"]
            + kicking * weights["kicking"]
            + defense * weights["defense"],
            -1.0, 1.0
        )

        return WeatherImpact(
            overall=overall,
            passing=passing,
            rushing=rushing,
            kicking=kicking,
            defense=defense,
            factors=factors,
            recommendations=self._recommendations(factors, weather),
        )

    def team_profile(self, team: Team) -> TeamWeatherProfile:
        qb_points = _position_points(team.roster, Position.QB)
        rb_points = _position_points(team.roster, Position.RB)
        style = determine_style(qb_points, rb_points)

        # Steadier rosters ride out bad conditions better
        if team.roster:
            avg_consistency = sum(p.consistency for p in team.roster) / len(team.roster)
        else:
            avg_consistency = 0.5
        adaptability = 0.5 + 0.3 * clamp(avg_consistency, 0.0, 1.0)

        vulnerabilities = []
        strengths = []
        if style == "pass-heavy":
            vulnerabilities.extend(["High winds", "Heavy precipitation"])
        if style == "defensive":
            vulnerabilities.append("Perfect weather (limits advantage)")
            strengths.extend(["Extreme conditions", "Low-scoring affairs"])
        if style == "run-heavy":
            strengths.extend(["Bad weather games", "Cold conditions"])
        if any(p.position == Position.QB and p.consistency < 0.5 for p in team.roster):
            vulnerabilities.extend(["Cold weather", "Wind"])

        return TeamWeatherProfile(
            style=style,
            adaptability=adaptability,
            vulnerabilities=vulnerabilities,
            strengths=strengths,
        )

    def _passing_impact(self, factors: List[WeatherFactor], roster: List[Player]) -> float:
        total = 0.0
        for factor in factors:
            if Position.QB in factor.affected or Position.WR in factor.affected:
                qb = POSITION_SENSITIVITY[Position.QB].get(factor.family, 0.0)
                wr = POSITION_SENSITIVITY[Position.WR].get(factor.family, 0.0)
                total += (qb + wr) / 2 * abs(factor.impact)

        offense = _position_points(roster, Position.QB, Position.RB, Position.WR, Position.TE)
        passing_volume = _position_points(roster, Position.QB) / (offense or 1)
        return total * passing_volume

    def _rushing_impact(self, factors: List[WeatherFactor], style: str) -> float:
        total = self._sensitivity_sum(factors, Position.RB)
        if style == "run-heavy" and total < 0:
            total *= 0.5
        return total

    def _sensitivity_sum(self, factors: List[WeatherFactor], position: Position) -> float:
        total = 0.0
        for factor in factors:
            if position in factor.affected:
                total += POSITION_SENSITIVITY[position].get(factor.family, 0.0) * abs(factor.impact)
        return total

    def _recommendations(self, factors: List[WeatherFactor], weather: WeatherSnapshot) -> List[str]:
        recommendations = []
        severe = [f for f in factors if f.severity == "high"]
        if severe:
            recommendations.append(f"Severe weather: {severe[0].description}")
        if any(Position.QB in f.affected and f.impact < -0.2 for f in factors):
            recommendations.append("Consider QB with strong arm and weather experience")
        if any(Position.K in f.affected and f.impact < -0.3 for f in factors):
            recommendations.append("Avoid kickers in these conditions if possible")
        if weather.wind_speed > STRONG_WIND or weather.precipitation > MODERATE_PRECIP:
            recommendations.append("Expect run-heavy game script, favor RBs")
        if any(Position.DEF in f.affected and f.impact > 0.1 for f in factors):
            recommendations.append("Defense likely to outperform in these conditions")
        return recommendations


def determine_style(qb_points: float, rb_points: float) -> str:
    ratio = qb_points / (rb_points or 1)
    if ratio > 1.5:
        return "pass-heavy"
    if ratio < 0.7:
        return "run-heavy"
    if qb_points < 15 and rb_points < 20:
        return "defensive"
    return "balanced"
