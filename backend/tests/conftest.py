"""
Shared fixtures: league payload builders and small ready-made leagues.
"""

import pytest

from playoff_odds.core.config import EngineConfig
from playoff_odds.models import InjuryStatus, Player, Position
from playoff_odds.simulator import load_league


# (suffix, position, projected points) for a full starting lineup plus bench
ROSTER_TEMPLATE = [
    ("qb1", Position.QB, 18.0),
    ("qb2", Position.QB, 10.0),
    ("rb1", Position.RB, 14.0),
    ("rb2", Position.RB, 12.0),
    ("rb3", Position.RB, 7.0),
    ("wr1", Position.WR, 13.0),
    ("wr2", Position.WR, 11.0),
    ("wr3", Position.WR, 10.0),
    ("wr4", Position.WR, 6.0),
    ("te1", Position.TE, 9.0),
    ("k1", Position.K, 8.0),
    ("def1", Position.DEF, 8.0),
]


def roster_payload(team_id, overrides=None):
    """Standard roster; ``overrides`` maps a suffix to extra player fields."""
    overrides = overrides or {}
    roster = []
    for suffix, position, points in ROSTER_TEMPLATE:
        player = {
            "id": f"{team_id}-{suffix}",
            "name": f"{team_id} {suffix.upper()}",
            "position": position.value,
            "projected_points": points,
        }
        player.update(overrides.get(suffix, {}))
        roster.append(player)
    return roster


def round_robin(team_ids, weeks):
    """Circle-method schedule: {team_id: [(week, opponent_id, is_home), ...]}."""
    n = len(team_ids)
    games = {t: [] for t in team_ids}
    rest = list(team_ids[1:])
    for week_idx in range(weeks):
        shift = week_idx % (n - 1)
        rotated = rest[-shift:] + rest[:-shift] if shift else list(rest)
        order = [team_ids[0]] + rotated
        for i in range(n // 2):
            a, b = order[i], order[n - 1 - i]
            a_home = (week_idx + i) % 2 == 0
            games[a].append((week_idx + 1, b, a_home))
            games[b].append((week_idx + 1, a, not a_home))
    return games


def build_league_payload(
    n_teams=4,
    regular_season_weeks=6,
    current_week=1,
    playoff_spots=2,
    records=None,
    roster_overrides=None,
    divisions=None
):
    """
    Build a valid league snapshot payload.

    Team ids are single letters starting at "A". Weeks before
    ``current_week`` are played; the lower-lettered team always wins them.
    ``records`` maps a team id to explicit standings fields.
    """
    team_ids = [chr(ord("A") + i) for i in range(n_teams)]
    schedule = round_robin(team_ids, regular_season_weeks)
    records = records or {}
    roster_overrides = roster_overrides or {}
    divisions = divisions or {}

    teams = []
    for idx, team_id in enumerate(team_ids):
        matchups = []
        wins = losses = 0
        points_for = points_against = 0.0
        for week, opponent_id, is_home in schedule[team_id]:
            matchup = {"week": week, "opponent_id": opponent_id, "is_home": is_home}
            if week < current_week:
                won = team_id < opponent_id
                scored, allowed = (110.0, 95.0) if won else (95.0, 110.0)
                matchup["actual_score"] = scored
                matchup["opponent_score"] = allowed
                wins += won
                losses += not won
                points_for += scored
                points_against += allowed
            matchups.append(matchup)

        team = {
            "id": team_id,
            "name": f"Team {team_id}",
            "division_id": divisions.get(team_id, ""),
            "wins": wins,
            "losses": losses,
            "points_for": points_for,
            "points_against": points_against,
            "roster": roster_payload(team_id, roster_overrides.get(team_id)),
            "schedule": matchups,
        }
        team.update(records.get(team_id, {}))
        teams.append(team)

    return {
        "teams": teams,
        "settings": {
            "current_week": current_week,
            "regular_season_weeks": regular_season_weeks,
            "playoff_spots": playoff_spots,
        },
    }


@pytest.fixture
def league_payload():
    """Factory fixture returning a league snapshot payload builder."""
    return build_league_payload


@pytest.fixture
def small_league():
    """Four teams, six regular-season weeks, nothing played yet."""
    return load_league(build_league_payload())


@pytest.fixture
def midseason_league():
    """Four teams at week 4 of 6 with three weeks already played."""
    return load_league(build_league_payload(current_week=4))


@pytest.fixture
def fast_config():
    """Small, seeded trial runs for quick deterministic tests."""
    return EngineConfig(trial_count=400, chunk_size=100, sample_size=5, max_workers=2, seed=7)


@pytest.fixture
def make_player():
    def _make(player_id="p1", position=Position.WR, projected=10.0,
              status=InjuryStatus.HEALTHY, recent=None, injury_type=None):
        return Player(
            id=player_id,
            name=player_id.upper(),
            position=position,
            projected_points=projected,
            recent_performances=list(recent or []),
            injury_status=status,
            injury_type=injury_type,
        )
    return _make
