"""
Fantasy Football Championship Simulator

Monte Carlo simulation of the remaining season and playoff bracket.
"""

from .probability import WinProbabilityModel, Contribution, team_strength
from .engine import (
    ChampionshipEngine,
    TrialTally,
    run_trials,
    play_bracket,
    schedule_pairings,
    simulate_trial,
)
from .tiebreakers import determine_playoffs, division_winners, rank_records
from .validation import (
    LeagueValidationError,
    LeagueSnapshotIn,
    load_league,
    validate_probability_record,
)

__all__ = [
    # Win probability
    "WinProbabilityModel",
    "Contribution",
    "team_strength",
    # Engine
    "ChampionshipEngine",
    "TrialTally",
    "run_trials",
    "play_bracket",
    "schedule_pairings",
    "simulate_trial",
    # Tiebreakers
    "determine_playoffs",
    "division_winners",
    "rank_records",
    # Validation
    "LeagueValidationError",
    "LeagueSnapshotIn",
    "load_league",
    "validate_probability_record",
]
