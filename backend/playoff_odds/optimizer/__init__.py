"""
Championship path optimizer: strategies, scenarios and action plans.
"""

from .strategies import OptimizationAction, OptimizationStrategy, generate_strategies, weak_positions
from .scenarios import ScenarioAnalysis, ScenarioEvent, Risk, Opportunity, build_scenarios
from .path_optimizer import (
    ChampionshipPathOptimizer,
    CompetitiveInsight,
    OptimizationReport,
    Recommendation,
    TimelineEntry,
)

__all__ = [
    # Strategies
    "OptimizationAction",
    "OptimizationStrategy",
    "generate_strategies",
    "weak_positions",
    # Scenarios
    "ScenarioAnalysis",
    "ScenarioEvent",
    "Risk",
    "Opportunity",
    "build_scenarios",
    # Reports
    "ChampionshipPathOptimizer",
    "CompetitiveInsight",
    "OptimizationReport",
    "Recommendation",
    "TimelineEntry",
]
