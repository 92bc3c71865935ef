"""
Standings ordering for the simulated season.

Tiebreaker order:
1. Win percentage
2. Points for
3. Team id (keeps ordering fully deterministic, never a coin flip)
"""

from collections import defaultdict
from typing import Dict, List, Tuple

from ..models import TeamRecord


def standings_key(record: TeamRecord) -> Tuple[float, float, str]:
    """Sort key placing the best record first."""
    return (-record.win_pct, -record.points_for, record.team_id)


def rank_records(records: Dict[str, TeamRecord]) -> List[str]:
    """
    Order every team by the standings tiebreakers.

    Args:
        records: Simulated records keyed by team id

    Returns:
        Team ids, best first
    """
    return [r.team_id for r in sorted(records.values(), key=standings_key)]


def division_winners(records: Dict[str, TeamRecord]) -> Dict[str, str]:
    """Map each division id to the team leading it under the same ordering."""
    divisions: Dict[str, List[TeamRecord]] = defaultdict(list)
    for record in records.values():
        divisions[record.division_id].append(record)

    return {
        div_id: min(div_records, key=standings_key).team_id
        for div_id, div_records in sorted(divisions.items())
    }


def determine_playoffs(
    records: Dict[str, TeamRecord],
    playoff_spots: int
) -> Tuple[List[str], Dict[str, str]]:
    """
    Determine the playoff field and division winners.

    Args:
        records: Team standings
        playoff_spots: Size of the playoff field

    Returns:
        Tuple of (playoff team ids in seeding order, division winners by division id)
    """
    ordered = rank_records(records)
    return ordered[:playoff_spots], division_winners(records)
