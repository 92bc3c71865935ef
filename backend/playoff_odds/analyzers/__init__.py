"""
Factor analyzers feeding the win probability model.
"""

from .base import HistoricalDataProvider, InMemoryHistoryProvider, MatchupHistory, PlayoffHistory
from .injury import InjuryImpactModel, InjuryAnalysis
from .weather import WeatherFactorCalculator, WeatherImpact
from .momentum import TeamMomentumTracker, MomentumAnalysis
from .historical import HistoricalPatternAnalyzer, HistoricalPattern, PATTERN_CATALOG
from .schedule import StrengthOfScheduleAnalyzer, ScheduleStrength

__all__ = [
    # Data providers
    "HistoricalDataProvider",
    "InMemoryHistoryProvider",
    "MatchupHistory",
    "PlayoffHistory",
    # Analyzers
    "InjuryImpactModel",
    "InjuryAnalysis",
    "WeatherFactorCalculator",
    "WeatherImpact",
    "TeamMomentumTracker",
    "MomentumAnalysis",
    "HistoricalPatternAnalyzer",
    "HistoricalPattern",
    "PATTERN_CATALOG",
    "StrengthOfScheduleAnalyzer",
    "ScheduleStrength",
]
