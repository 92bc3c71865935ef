"""
Engine configuration loaded from the environment.
"""

import os
from dataclasses import dataclass, asdict
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass
class EngineConfig:
    """Tunable knobs for simulation and live recomputation."""

    trial_count: int = 10000
    playoff_spots: int = 6
    debounce_seconds: float = 5.0
    significant_change: float = 0.05
    full_update_interval: float = 30.0
    max_concurrency: int = 4
    max_workers: int = 4
    chunk_size: int = 500
    sample_size: int = 100
    event_queue_size: int = 1000
    reconnect_base_delay: float = 1.0
    reconnect_max_delay: float = 30.0
    history_length: int = 1000
    seed: Optional[int] = None
    live_feed_url: Optional[str] = None

    def __post_init__(self):
        if self.trial_count < 1:
            raise ValueError("trial_count must be at least 1")
        if self.playoff_spots < 1:
            raise ValueError("playoff_spots must be at least 1")
        if not 0.0 <= self.significant_change <= 1.0:
            raise ValueError("significant_change must be within [0, 1]")
        if self.max_concurrency < 1 or self.max_workers < 1:
            raise ValueError("concurrency limits must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Build a config from PLAYOFF_ODDS_* environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        seed = os.getenv("PLAYOFF_ODDS_SEED")
        return cls(
            trial_count=_env_int("PLAYOFF_ODDS_TRIALS", cls.trial_count),
            playoff_spots=_env_int("PLAYOFF_ODDS_PLAYOFF_SPOTS", cls.playoff_spots),
            debounce_seconds=_env_float("PLAYOFF_ODDS_DEBOUNCE_SECONDS", cls.debounce_seconds),
            significant_change=_env_float("PLAYOFF_ODDS_SIGNIFICANT_CHANGE", cls.significant_change),
            full_update_interval=_env_float("PLAYOFF_ODDS_FULL_UPDATE_INTERVAL", cls.full_update_interval),
            max_concurrency=_env_int("PLAYOFF_ODDS_MAX_CONCURRENCY", cls.max_concurrency),
            max_workers=_env_int("PLAYOFF_ODDS_MAX_WORKERS", cls.max_workers),
            chunk_size=_env_int("PLAYOFF_ODDS_CHUNK_SIZE", cls.chunk_size),
            sample_size=_env_int("PLAYOFF_ODDS_SAMPLE_SIZE", cls.sample_size),
            event_queue_size=_env_int("PLAYOFF_ODDS_EVENT_QUEUE_SIZE", cls.event_queue_size),
            reconnect_base_delay=_env_float("PLAYOFF_ODDS_RECONNECT_BASE", cls.reconnect_base_delay),
            reconnect_max_delay=_env_float("PLAYOFF_ODDS_RECONNECT_MAX", cls.reconnect_max_delay),
            history_length=_env_int("PLAYOFF_ODDS_HISTORY_LENGTH", cls.history_length),
            seed=int(seed) if seed else None,
            live_feed_url=os.getenv("PLAYOFF_ODDS_LIVE_FEED_URL") or None,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
