"""
Live events, channels and the probability store.

The updater itself lives in ``realtime.updater``; it depends on the league
service, which in turn depends on this package.
"""

from .events import (
    LiveEvent,
    ScoreUpdate,
    PlayerInjury,
    WeatherChange,
    GameStart,
    GameEnd,
    LiveScore,
    ProbabilityUpdate,
    UpdaterState,
    ConnectionStatus,
    parse_event,
    is_critical,
)
from .store import ProbabilityStore, StoreChange
from .channel import (
    ChannelError,
    FatalChannelError,
    LiveEventChannel,
    QueueEventChannel,
    StreamingEventChannel,
)

__all__ = [
    # Events
    "LiveEvent",
    "ScoreUpdate",
    "PlayerInjury",
    "WeatherChange",
    "GameStart",
    "GameEnd",
    "LiveScore",
    "ProbabilityUpdate",
    "UpdaterState",
    "ConnectionStatus",
    "parse_event",
    "is_critical",
    # Store
    "ProbabilityStore",
    "StoreChange",
    # Channels
    "ChannelError",
    "FatalChannelError",
    "LiveEventChannel",
    "QueueEventChannel",
    "StreamingEventChannel",
]
