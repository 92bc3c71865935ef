"""
Monte Carlo simulation engine for championship probability calculations.
"""

import logging
import random
import time
from collections import Counter, defaultdict
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import repeat
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..analyzers import HistoricalPatternAnalyzer, StrengthOfScheduleAnalyzer
from ..analyzers.schedule import league_ranks
from ..core.config import EngineConfig
from ..models import (
    ChampionshipProbability,
    KeyFactor,
    LeagueSettings,
    Matchup,
    PathRound,
    PlayoffPath,
    SimulationResult,
    Team,
    TeamRecord,
    clamp,
)
from .probability import WinProbabilityModel
from .tiebreakers import determine_playoffs, rank_records


logger = logging.getLogger(__name__)

PLAYOFF_SPOTS = 6
DEFAULT_TRIALS = 10000
DEFAULT_CHUNK_SIZE = 500
DEFAULT_SAMPLE_SIZE = 100

TeamsInput = Union[Dict[str, Team], Iterable[Team]]


@dataclass(frozen=True)
class Pairing:
    """A remaining regular-season game, seen from the side that decides it."""

    home_id: str
    away_id: str
    matchup: Matchup


@dataclass
class BracketResult:
    champion: Optional[str]
    rounds: int
    games: List[Tuple[int, str, str, str]] = field(default_factory=list)
    eliminated: Dict[str, int] = field(default_factory=dict)


@dataclass
class SeasonContext:
    """Read-only inputs shared by every trial of one calculation."""

    teams: Dict[str, Team]
    pairings: List[Pairing]
    playoff_spots: int
    first_playoff_week: int
    model: WinProbabilityModel
    tracked: Tuple[str, ...]
    sample_size: int


@dataclass
class TrialTally:
    """Outcome counts from a batch of trials, merged at the join point."""

    trials: int = 0
    playoffs: Counter = field(default_factory=Counter)
    divisions: Counter = field(default_factory=Counter)
    championships: Counter = field(default_factory=Counter)
    seed_totals: Counter = field(default_factory=Counter)
    champion_seeds: Dict[str, Counter] = field(default_factory=lambda: defaultdict(Counter))
    samples: Dict[str, List[SimulationResult]] = field(default_factory=lambda: defaultdict(list))

    def merge(self, other: 'TrialTally', sample_size: int) -> None:
        self.trials += other.trials
        self.playoffs.update(other.playoffs)
        self.divisions.update(other.divisions)
        self.championships.update(other.championships)
        self.seed_totals.update(other.seed_totals)
        for team_id, seeds in other.champion_seeds.items():
            self.champion_seeds[team_id].update(seeds)
        for team_id, results in other.samples.items():
            room = sample_size - len(self.samples[team_id])
            if room > 0:
                self.samples[team_id].extend(results[:room])

    def playoff_probability(self, team_id: str) -> float:
        return self.playoffs[team_id] / self.trials if self.trials else 0.0

    def division_probability(self, team_id: str) -> float:
        return self.divisions[team_id] / self.trials if self.trials else 0.0

    def championship_probability(self, team_id: str) -> float:
        return self.championships[team_id] / self.trials if self.trials else 0.0

    def expected_seed(self, team_id: str) -> float:
        appearances = self.playoffs[team_id]
        return self.seed_totals[team_id] / max(appearances, 1)


def as_team_dict(teams: TeamsInput) -> Dict[str, Team]:
    if isinstance(teams, dict):
        return teams
    return {team.id: team for team in teams}


def bracket_rounds(field_size: int) -> int:
    """Rounds needed for a single-elimination bracket of ``field_size`` teams."""
    rounds = 0
    size = 1
    while size < field_size:
        size *= 2
        rounds += 1
    return rounds


def playoff_weeks(settings: LeagueSettings, team_count: int) -> range:
    """Weeks the bracket is played in."""
    rounds = bracket_rounds(min(settings.playoff_spots, team_count))
    return range(settings.first_playoff_week, settings.first_playoff_week + rounds)


def round_label(round_idx: int, rounds: int) -> str:
    remaining = rounds - round_idx
    if remaining == 1:
        return "Championship"
    if remaining == 2:
        return "Semifinals"
    if remaining == 3:
        return "Quarterfinals"
    return f"Round {round_idx + 1}"


def play_bracket(seeds: List[str], decide: Callable[[str, str, int], str]) -> BracketResult:
    """
    Play a single-elimination bracket.

    Top seeds receive byes so the first round fills a power-of-two bracket;
    every later round is reseeded so the highest remaining seed meets the
    lowest.

    Args:
        seeds: Team ids in seeding order (index 0 is the 1 seed)
        decide: Callback(higher_seed_id, lower_seed_id, round_idx) -> winner id

    Returns:
        BracketResult with the champion, every game and elimination rounds
    """
    rounds = bracket_rounds(len(seeds))
    seed_of = {team_id: idx for idx, team_id in enumerate(seeds)}
    byes = (1 << rounds) - len(seeds)
    result = BracketResult(champion=None, rounds=rounds)

    alive = list(seeds)
    for round_idx in range(rounds):
        if round_idx == 0:
            advancing, playing = alive[:byes], alive[byes:]
        else:
            advancing, playing = [], alive

        winners = []
        for idx in range(len(playing) // 2):
            high, low = playing[idx], playing[-1 - idx]
            winner = decide(high, low, round_idx)
            loser = low if winner == high else high
            result.eliminated[loser] = round_idx
            result.games.append((round_idx, high, low, winner))
            winners.append(winner)

        alive = sorted(advancing + winners, key=seed_of.get)

    result.champion = alive[0] if alive else None
    return result


def schedule_pairings(teams: Dict[str, Team], first_playoff_week: int) -> List[Pairing]:
    """
    Collect each remaining regular-season game once.

    A game appears in both teams' schedules; it is decided from the home
    side, or from the lower team id at a neutral site.
    """
    seen = set()
    pairings = []
    for team in teams.values():
        for matchup in team.remaining_schedule():
            if matchup.week >= first_playoff_week:
                continue
            if matchup.opponent_id not in teams:
                logger.warning(
                    f"Skipping week {matchup.week} game for {team.id}: unknown opponent {matchup.opponent_id}"
                )
                continue

            key = (matchup.week, frozenset((team.id, matchup.opponent_id)))
            if key in seen:
                continue

            opponent_side = teams[matchup.opponent_id].matchup_for_week(matchup.week)
            reciprocal = opponent_side is not None and opponent_side.opponent_id == team.id
            if reciprocal and not matchup.is_home:
                if opponent_side.is_home or matchup.opponent_id < team.id:
                    continue

            seen.add(key)
            pairings.append(Pairing(team.id, matchup.opponent_id, matchup))

    pairings.sort(key=lambda p: (p.matchup.week, p.home_id, p.away_id))
    return pairings


def simulate_regular_season(context: SeasonContext, rng: random.Random) -> Dict[str, TeamRecord]:
    """Roll every remaining pairing forward on cloned records."""
    records = {team_id: TeamRecord.from_team(team) for team_id, team in context.teams.items()}

    for pairing in context.pairings:
        home = context.teams[pairing.home_id]
        away = context.teams[pairing.away_id]
        p_home = context.model.win_probability(
            home, away, pairing.matchup, records[home.id], records[away.id]
        )
        if rng.random() < p_home:
            records[home.id].wins += 1
            records[away.id].losses += 1
        else:
            records[away.id].wins += 1
            records[home.id].losses += 1

    return records


def simulate_playoffs(
    context: SeasonContext,
    seeds: List[str],
    records: Dict[str, TeamRecord],
    rng: random.Random
) -> BracketResult:
    """Play the bracket with the higher seed at home in every game."""

    def decide(high_id: str, low_id: str, round_idx: int) -> str:
        matchup = Matchup(
            week=context.first_playoff_week + round_idx,
            opponent_id=low_id,
            is_home=True,
        )
        p_high = context.model.win_probability(
            context.teams[high_id], context.teams[low_id], matchup, records[high_id], records[low_id]
        )
        return high_id if rng.random() < p_high else low_id

    return play_bracket(seeds, decide)


def final_ranks(
    seeds: List[str],
    bracket: BracketResult,
    records: Dict[str, TeamRecord]
) -> Dict[str, int]:
    """Champion first, then playoff teams by round reached and seed, then everyone else."""
    seed_of = {team_id: idx for idx, team_id in enumerate(seeds)}
    survived = {team_id: bracket.eliminated.get(team_id, bracket.rounds) for team_id in seeds}
    playoff_order = sorted(seeds, key=lambda t: (-survived[t], seed_of[t]))
    rest = [team_id for team_id in rank_records(records) if team_id not in seed_of]
    return {team_id: idx + 1 for idx, team_id in enumerate(playoff_order + rest)}


def simulate_trial(context: SeasonContext, rng: random.Random, keep: bool = False):
    """
    Run one full trial.

    Returns:
        Tuple of (seeds, division winners, bracket, results) where results is
        a dict of SimulationResult per tracked team when ``keep`` is set
    """
    records = simulate_regular_season(context, rng)
    seeds, winners = determine_playoffs(records, context.playoff_spots)
    bracket = simulate_playoffs(context, seeds, records, rng)

    results = None
    if keep:
        ranks = final_ranks(seeds, bracket, records)
        seed_of = {team_id: idx + 1 for idx, team_id in enumerate(seeds)}
        division_ids = set(winners.values())
        results = {}
        for team_id in context.tracked:
            path = [
                f"Defeated {context.teams[high if winner != high else low].name}"
                for _, high, low, winner in bracket.games
                if winner == team_id
            ]
            results[team_id] = SimulationResult(
                team_id=team_id,
                seed=seed_of.get(team_id, 0),
                made_playoffs=team_id in seed_of,
                won_division=team_id in division_ids,
                playoff_wins=len(path),
                won_championship=bracket.champion == team_id,
                final_rank=ranks[team_id],
                path=path,
            )
    return seeds, winners, bracket, results


def _run_chunk(context: SeasonContext, chunk_seed: int, n_trials: int) -> TrialTally:
    rng = random.Random(chunk_seed)
    tally = TrialTally()
    tracked = set(context.tracked)

    for trial_idx in range(n_trials):
        keep = trial_idx < context.sample_size
        seeds, winners, bracket, results = simulate_trial(context, rng, keep)

        tally.trials += 1
        for idx, team_id in enumerate(seeds):
            if team_id in tracked:
                tally.playoffs[team_id] += 1
                tally.seed_totals[team_id] += idx + 1
        for team_id in winners.values():
            if team_id in tracked:
                tally.divisions[team_id] += 1
        if bracket.champion in tracked:
            tally.championships[bracket.champion] += 1
            tally.champion_seeds[bracket.champion][seeds.index(bracket.champion) + 1] += 1
        if results:
            for team_id, result in results.items():
                tally.samples[team_id].append(result)

    return tally


def run_trials(
    teams: TeamsInput,
    settings: LeagueSettings,
    n_trials: int = DEFAULT_TRIALS,
    seed: Optional[int] = None,
    executor: Optional[Executor] = None,
    model: Optional[WinProbabilityModel] = None,
    team_ids: Optional[Iterable[str]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    max_workers: int = 4
) -> TrialTally:
    """
    Run Monte Carlo trials of the remaining season and playoffs.

    Trials are split into fixed-size chunks whose seeds are drawn in order
    from a master generator, so a fixed seed gives identical tallies no
    matter how many workers run the chunks.

    Args:
        teams: Canonical teams (never mutated)
        settings: League settings
        n_trials: Number of trials to run
        seed: Master seed, or None for a fresh random run
        executor: Pool to run chunks on; a ThreadPoolExecutor is created if omitted
        model: Win probability model, already prepared for ``teams``
        team_ids: Teams to tally; all teams when omitted
        chunk_size: Trials per chunk
        sample_size: Trials kept per team for inspection
        max_workers: Worker count for the pool created when ``executor`` is omitted

    Returns:
        Merged TrialTally
    """
    teams = as_team_dict(teams)
    if model is None:
        model = WinProbabilityModel().prepared(
            teams, settings.current_week, playoff_weeks(settings, len(teams))
        )

    context = SeasonContext(
        teams=teams,
        pairings=schedule_pairings(teams, settings.first_playoff_week),
        playoff_spots=min(settings.playoff_spots, len(teams)),
        first_playoff_week=settings.first_playoff_week,
        model=model,
        tracked=tuple(team_ids) if team_ids is not None else tuple(teams),
        sample_size=sample_size,
    )

    master = random.Random(seed)
    sizes = [min(chunk_size, n_trials - start) for start in range(0, n_trials, chunk_size)]
    chunk_seeds = [master.getrandbits(64) for _ in sizes]

    if executor is None:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            tallies = list(pool.map(_run_chunk, repeat(context), chunk_seeds, sizes))
    else:
        tallies = list(executor.map(_run_chunk, repeat(context), chunk_seeds, sizes))

    merged = TrialTally()
    for tally in tallies:
        merged.merge(tally, sample_size)
    return merged


class ChampionshipEngine:
    """Turns a league snapshot into per-team championship probabilities."""

    def __init__(
        self,
        model: Optional[WinProbabilityModel] = None,
        schedule_analyzer: Optional[StrengthOfScheduleAnalyzer] = None,
        config: Optional[EngineConfig] = None,
        executor: Optional[Executor] = None
    ):
        self.model = model or WinProbabilityModel()
        self.historical_analyzer: HistoricalPatternAnalyzer = self.model.historical_analyzer
        self.schedule_analyzer = schedule_analyzer or StrengthOfScheduleAnalyzer(
            self.historical_analyzer.provider
        )
        self.config = config or EngineConfig()
        self.executor = executor

    def calculate_championship_probabilities(
        self,
        teams: TeamsInput,
        settings: LeagueSettings,
        team_ids: Optional[Iterable[str]] = None,
        seed: Optional[int] = None,
        computed_at: Optional[float] = None
    ) -> List[ChampionshipProbability]:
        """
        Calculate playoff, division and championship odds.

        Args:
            teams: League teams
            settings: League settings
            team_ids: Restrict analysis to these teams (all teams when omitted)
            seed: Master seed; falls back to the configured seed
            computed_at: Monotonic timestamp stamped on every record

        Returns:
            One ChampionshipProbability per targeted team, best odds first
        """
        teams = as_team_dict(teams)
        targets = list(team_ids) if team_ids is not None else list(teams)
        for team_id in targets:
            if team_id not in teams:
                raise ValueError(f"Unknown team id: {team_id}")
        if not targets:
            return []

        started = time.perf_counter()
        model = self.model.prepared(teams, settings.current_week, playoff_weeks(settings, len(teams)))
        tally = run_trials(
            teams,
            settings,
            n_trials=self.config.trial_count,
            seed=seed if seed is not None else self.config.seed,
            executor=self.executor,
            model=model,
            team_ids=targets,
            chunk_size=self.config.chunk_size,
            sample_size=self.config.sample_size,
            max_workers=self.config.max_workers,
        )

        stamp = computed_at if computed_at is not None else time.monotonic()
        ranks = league_ranks(teams)
        probabilities = []
        for team_id in targets:
            team = teams[team_id]
            momentum = model.factors_for(team).momentum
            probabilities.append(ChampionshipProbability(
                team_id=team_id,
                playoff_probability=tally.playoff_probability(team_id),
                division_probability=tally.division_probability(team_id),
                championship_probability=tally.championship_probability(team_id),
                expected_seed=tally.expected_seed(team_id),
                strength_of_schedule=self.schedule_analyzer.analyze(team, teams, settings.current_week),
                momentum=momentum,
                key_factors=self.key_factors(team, teams, settings, momentum, ranks),
                optimal_path=self.optimal_path(team, teams, settings, tally, model, ranks),
                simulations=list(tally.samples.get(team_id, [])),
                computed_at=stamp,
            ))

        logger.info(
            f"Simulated {tally.trials} trials for {len(targets)} teams in "
            f"{time.perf_counter() - started:.2f}s"
        )
        probabilities.sort(key=lambda p: (-p.championship_probability, p.team_id))
        return probabilities

    def update_live_probabilities(
        self,
        teams: TeamsInput,
        settings: LeagueSettings,
        live_scores: Dict[str, float],
        seed: Optional[int] = None
    ) -> List[ChampionshipProbability]:
        """Recalculate with live scores copied into the current week's matchups."""
        updated = {}
        for team_id, team in as_team_dict(teams).items():
            copy = team.copy()
            matchup = copy.matchup_for_week(settings.current_week)
            if team_id in live_scores and matchup is not None and not matchup.is_played:
                copy.replace_matchup(matchup.with_live_score(
                    live_scores[team_id],
                    live_scores.get(matchup.opponent_id),
                    matchup.minutes_remaining,
                ))
            updated[team_id] = copy

        return self.calculate_championship_probabilities(updated, settings, seed=seed)

    def key_factors(
        self,
        team: Team,
        teams: Dict[str, Team],
        settings: LeagueSettings,
        momentum: float,
        ranks: Optional[Dict[str, int]] = None
    ) -> List[KeyFactor]:
        """Named drivers behind a team's odds, largest impact first."""
        ranks = ranks or league_ranks(teams)
        total = len(teams)
        rank = team.rank or ranks[team.id]
        factors = [KeyFactor(
            factor="Current Standing",
            impact=1 - rank / total,
            description=f"Rank {rank} of {total}",
            confidence=0.9,
        )]

        injured = sum(1 for p in team.roster if not p.is_healthy)
        factors.append(KeyFactor(
            factor="Team Health",
            impact=max(-1.0, -injured * 0.1),
            description=f"{injured} injured players",
            confidence=0.8,
        ))

        remaining = [
            m for m in team.remaining_schedule()
            if m.week >= settings.current_week and m.week < settings.first_playoff_week
        ]
        schedule_impact = self._schedule_impact(remaining, ranks, total)
        if not remaining:
            description = "No regular-season games remaining"
        else:
            description = f"{'Easier' if schedule_impact > 0 else 'Harder'} than average"
        factors.append(KeyFactor(
            factor="Remaining Schedule",
            impact=schedule_impact,
            description=description,
            confidence=0.7,
        ))

        strengths = {t.id: sum(p.projected_points for p in t.roster) for t in teams.values()}
        roster_rank = sum(1 for s in strengths.values() if s > strengths[team.id]) + 1
        factors.append(KeyFactor(
            factor="Roster Strength",
            impact=1 - (roster_rank - 1) / total,
            description=f"Top {round(roster_rank / total * 100)}% roster",
            confidence=0.85,
        ))

        if momentum > 0:
            trend = "Trending upward"
        elif momentum < 0:
            trend = "Trending downward"
        else:
            trend = "Holding steady"
        factors.append(KeyFactor(
            factor="Team Momentum",
            impact=momentum,
            description=trend,
            confidence=0.75,
        ))

        for pattern in self.historical_analyzer.analyze_team_patterns(team, teams):
            factors.append(KeyFactor(
                factor=pattern.pattern,
                impact=pattern.success_rate - 0.5,
                description=pattern.description,
                confidence=pattern.confidence,
            ))

        return sorted(factors, key=lambda f: -abs(f.impact))

    def optimal_path(
        self,
        team: Team,
        teams: Dict[str, Team],
        settings: LeagueSettings,
        tally: TrialTally,
        model: WinProbabilityModel,
        ranks: Optional[Dict[str, int]] = None
    ) -> PlayoffPath:
        """
        Most likely championship seed and the games on the way to the title.

        Opponents are the teams currently holding each seed, with higher
        seeds assumed to win every game the team is not part of.
        """
        ranks = ranks or league_ranks(teams)
        field_size = min(settings.playoff_spots, len(teams))
        seed_counts = tally.champion_seeds.get(team.id)
        if seed_counts:
            seed = min(seed_counts, key=lambda s: (-seed_counts[s], s))
        else:
            seed = min(field_size, max(1, team.rank or ranks[team.id]))

        standings = [t for t in sorted(ranks, key=ranks.get) if t != team.id]
        seeds = standings[:field_size - 1]
        seeds.insert(seed - 1, team.id)
        seed_of = {team_id: idx + 1 for idx, team_id in enumerate(seeds)}

        def decide(high_id: str, low_id: str, round_idx: int) -> str:
            if team.id in (high_id, low_id):
                return team.id
            return high_id

        bracket = play_bracket(seeds, decide)
        rounds = []
        total_probability = 1.0
        for round_idx in range(bracket.rounds):
            game = next((g for g in bracket.games if g[0] == round_idx and team.id in g[1:3]), None)
            label = round_label(round_idx, bracket.rounds)
            if game is None:
                rounds.append(PathRound(round=label, opponent="BYE", win_probability=1.0))
                continue

            _, high, low, _ = game
            opponent = teams[low if high == team.id else high]
            matchup = Matchup(
                week=settings.first_playoff_week + round_idx,
                opponent_id=opponent.id,
                is_home=high == team.id,
            )
            probability = model.win_probability(team, opponent, matchup)
            total_probability *= probability
            rounds.append(PathRound(
                round=label,
                opponent=f"{opponent.name} ({seed_of[opponent.id]} seed)",
                win_probability=probability,
            ))

        return PlayoffPath(seed=seed, rounds=rounds, total_probability=total_probability)

    @staticmethod
    def _schedule_impact(remaining: List[Matchup], ranks: Dict[str, int], total: int) -> float:
        if not remaining:
            return 0.0
        league_avg = total / 2
        avg_rank = sum(ranks.get(m.opponent_id, league_avg) for m in remaining) / len(remaining)
        return clamp((avg_rank - league_avg) / league_avg, -1.0, 1.0)
