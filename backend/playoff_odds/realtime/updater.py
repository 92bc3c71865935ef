"""
Real-time probability updater.

Reads live events from a channel, applies them to the league service and
schedules recomputation: injuries and final scores immediately, everything
else batched behind a debounce window, plus a periodic full-league refresh.
"""

import asyncio
import logging
import math
import time
from collections import deque
from concurrent.futures import Executor
from typing import Deque, Dict, Iterable, List, Optional, Set

from ..core.config import EngineConfig
from ..models import MatchupLockedError, clamp
from ..service import ChampionshipService, UnknownReferenceError
from ..simulator.validation import LeagueValidationError
from .store import StoreChange
from .channel import ChannelError, FatalChannelError, LiveEventChannel, QueueEventChannel
from .events import (
    ConnectionStatus,
    GameEnd,
    GameStart,
    LiveEvent,
    LiveScore,
    ProbabilityUpdate,
    ScoreUpdate,
    UpdaterState,
    is_critical,
)


logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 100


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Capped exponential backoff: base, 2*base, 4*base, ... up to cap."""
    return min(base * (2 ** attempt), cap)


class RealTimeUpdater:
    """
    Keeps championship probabilities current while games are in progress.

    Args:
        service: League service holding canonical state and the store
        channel: Source of live events
        config: Engine configuration (defaults to the service's)
        executor: Pool recomputations run on (the loop's default when omitted)
    """

    def __init__(
        self,
        service: ChampionshipService,
        channel: LiveEventChannel,
        config: Optional[EngineConfig] = None,
        executor: Optional[Executor] = None
    ):
        self.service = service
        self.channel = channel
        self.config = config or service.config
        self.executor = executor

        self.state = UpdaterState.STOPPED
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.live_scores: Dict[str, LiveScore] = {}
        self.active_games: Set[str] = set()
        self.pending: Set[str] = set()
        self.recompute_count = 0
        self.dropped_events = 0
        self.last_update: Optional[float] = None

        self._history: Deque[ProbabilityUpdate] = deque(maxlen=self.config.history_length)
        self._subscribers: List[asyncio.Queue] = []
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.event_queue_size)
        self._semaphore = asyncio.Semaphore(self.config.max_concurrency)
        self._tasks: List[asyncio.Task] = []
        self._debounce_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Open the channel and start the reader, consumer and refresh tasks."""
        if self.state != UpdaterState.STOPPED:
            return

        self.state = UpdaterState.STARTING
        self.connection_status = ConnectionStatus.CONNECTING
        connected = False
        try:
            await self.channel.connect()
            connected = True
            self.connection_status = ConnectionStatus.CONNECTED
        except FatalChannelError as e:
            logger.error(f"Live channel unavailable, updater not started: {e}")
            self.state = UpdaterState.STOPPED
            self.connection_status = ConnectionStatus.DISCONNECTED
            return
        except ChannelError as e:
            logger.warning(f"Live channel not ready, will retry: {e}")
            self.connection_status = ConnectionStatus.RECONNECTING

        self.state = UpdaterState.ACTIVE
        self._tasks = [
            asyncio.create_task(self._read_events(connected)),
            asyncio.create_task(self._consume()),
            asyncio.create_task(self._periodic_updates()),
        ]
        logger.info("Real-time updater active")

    async def stop(self) -> None:
        """Cancel every task (except the caller's own) and close the channel."""
        if self.state == UpdaterState.STOPPED:
            return
        self.state = UpdaterState.STOPPED

        current = asyncio.current_task()
        tasks = [t for t in self._tasks + [self._debounce_task] if t is not None and t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._debounce_task = None

        await self.channel.close()
        self.connection_status = ConnectionStatus.DISCONNECTED
        logger.info("Real-time updater stopped")

    # =========================================================================
    # Event intake
    # =========================================================================

    async def _read_events(self, connected: bool) -> None:
        attempt = 0
        while self.state == UpdaterState.ACTIVE:
            try:
                if not connected:
                    self.connection_status = ConnectionStatus.RECONNECTING
                    await self.channel.connect()
                    connected = True
                    self.connection_status = ConnectionStatus.CONNECTED
                    logger.info("Live channel reconnected")

                async for event in self.channel.events():
                    attempt = 0
                    await self._queue.put(event)
                if self.state != UpdaterState.ACTIVE:
                    self.connection_status = ConnectionStatus.DISCONNECTED
                    return
                raise ChannelError("Live channel closed while the updater is active")
            except FatalChannelError as e:
                logger.error(f"Live channel failed permanently: {e}")
                await self.stop()
                return
            except ChannelError as e:
                connected = False
                self.connection_status = ConnectionStatus.RECONNECTING
                delay = backoff_delay(
                    attempt, self.config.reconnect_base_delay, self.config.reconnect_max_delay
                )
                attempt += 1
                logger.warning(f"Live channel error: {e}; reconnecting in {delay:.1f}s")
                await asyncio.sleep(delay)

    def submit(self, event: LiveEvent) -> None:
        """
        Hand an event to the updater without waiting.

        In-process channels receive it so ordering with other published
        events is preserved; otherwise it goes straight onto the event queue.

        Raises:
            RuntimeError: if the updater is not active
            asyncio.QueueFull: if the intake queue is at capacity
        """
        if self.state != UpdaterState.ACTIVE:
            raise RuntimeError("Real-time updater is not active")
        if isinstance(self.channel, QueueEventChannel):
            self.channel.publish_nowait(event)
        else:
            self._queue.put_nowait(event)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.handle_event(event)
            finally:
                self._queue.task_done()

    async def handle_event(self, event: LiveEvent) -> None:
        """
        Apply one event and schedule the recomputation it calls for.

        Events naming unknown teams or players, or touching a finished game,
        are logged and dropped.
        """
        try:
            affected = self.service.apply_event(event)
        except (UnknownReferenceError, MatchupLockedError) as e:
            self.dropped_events += 1
            logger.warning(f"Dropping {event.kind} event for {event.team_id}: {e}")
            return

        self._track(event, affected)

        if is_critical(event):
            if self._debounce_task is not None:
                self._debounce_task.cancel()
                self._debounce_task = None
            team_ids = self.pending | affected
            self.pending.clear()
            await self._recompute(team_ids, event.kind)
        else:
            self.pending.update(affected)
            if self._debounce_task is None:
                self._debounce_task = asyncio.create_task(self._debounced_flush())

    def _track(self, event: LiveEvent, affected: Set[str]) -> None:
        game = event.game_id or event.team_id
        if isinstance(event, ScoreUpdate):
            previous = self.live_scores.get(event.team_id)
            projected = event.projected_score
            if projected is None:
                projected = previous.projected_score if previous else event.current_score
            self.live_scores[event.team_id] = LiveScore(
                team_id=event.team_id,
                current_score=event.current_score,
                projected_score=projected,
                minutes_remaining=event.minutes_remaining,
                players_active=list(event.players_active),
                players_inactive=list(event.players_inactive),
            )
            self.active_games.add(game)
        elif isinstance(event, GameStart):
            self.active_games.add(game)
        elif isinstance(event, GameEnd):
            self.active_games.discard(game)
            for team_id in affected:
                self.live_scores.pop(team_id, None)

    async def _debounced_flush(self) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        self._debounce_task = None
        await self.flush()

    async def flush(self) -> List[ProbabilityUpdate]:
        """Recompute every team with pending changes."""
        team_ids = set(self.pending)
        self.pending.clear()
        if not team_ids:
            return []
        return await self._recompute(team_ids, "batched live updates")

    async def _periodic_updates(self) -> None:
        while self.state == UpdaterState.ACTIVE:
            await asyncio.sleep(self.config.full_update_interval)
            await self._recompute(None, "scheduled refresh")

    # =========================================================================
    # Recomputation
    # =========================================================================

    async def _recompute(self, team_ids: Optional[Iterable[str]], reason: str) -> List[ProbabilityUpdate]:
        snapshot = self.service.snapshot()
        targets = sorted(team_ids) if team_ids is not None else None
        loop = asyncio.get_running_loop()

        async with self._semaphore:
            try:
                changes = await loop.run_in_executor(
                    self.executor, self.service.recompute, snapshot, targets
                )
            except LeagueValidationError as e:
                logger.error(f"Recompute ({reason}) produced invalid results: {e}")
                return []
            except Exception as e:
                logger.exception(f"Recompute ({reason}) failed: {e}")
                return []

        self.recompute_count += 1
        self.last_update = time.time()
        logger.debug(f"Recomputed {len(changes)} teams ({reason})")

        updates = [self._to_update(change) for change in changes]
        for update in updates:
            self._history.append(update)
            if update.significant:
                logger.info(update.message())
                self._publish(update)
        return updates

    def _to_update(self, change: StoreChange) -> ProbabilityUpdate:
        current = change.current
        new = current.championship_probability
        previous = change.previous.championship_probability if change.previous else new
        delta = new - previous
        return ProbabilityUpdate(
            team_id=current.team_id,
            previous_probability=previous,
            new_probability=new,
            change=delta,
            reasons=self.change_reasons(current.team_id, delta),
            confidence=self.confidence(new),
            timestamp=time.time(),
            significant=abs(delta) > self.config.significant_change,
        )

    def change_reasons(self, team_id: str, change: float) -> List[str]:
        """Explain a probability move from the team's live scoring."""
        reasons = []
        live = self.live_scores.get(team_id)
        if live is not None:
            diff = live.score_diff
            if change > 0:
                if diff > 10:
                    reasons.append("Outperforming projections significantly")
                if diff > 5:
                    reasons.append("Scoring above expectations")
                if len(live.players_active) > 8:
                    reasons.append("Full roster active")
            elif change < 0:
                if diff < -10:
                    reasons.append("Major underperformance vs projections")
                if diff < -5:
                    reasons.append("Scoring below expectations")
                if len(live.players_inactive) > 2:
                    reasons.append("Key players inactive")

        if not reasons:
            if change > 0:
                reasons.append("General positive trends")
            elif change < 0:
                reasons.append("General negative trends")
            else:
                reasons.append("No material change")
        return reasons

    def confidence(self, probability: float) -> float:
        """One minus the 95% margin of error of a Monte Carlo estimate."""
        margin = 1.96 * math.sqrt(probability * (1 - probability) / self.config.trial_count)
        return clamp(1.0 - margin, 0.0, 1.0)

    async def force_update(self, team_id: Optional[str] = None) -> List[ProbabilityUpdate]:
        """
        Recompute now, for one team or the whole league.

        Raises:
            UnknownReferenceError: if team_id is not in the league
        """
        if team_id is None:
            return await self._recompute(None, "forced refresh")
        self.service.team(team_id)
        return await self._recompute([team_id], "forced refresh")

    def reset(self) -> None:
        """Forget live state after the league is replaced."""
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None
        self.pending.clear()
        self.live_scores.clear()
        self.active_games.clear()

    async def wait_idle(self) -> None:
        """Wait until queued events are handled and any pending batch has flushed."""
        if isinstance(self.channel, QueueEventChannel):
            while self.channel.qsize():
                await asyncio.sleep(0)
        await self._queue.join()
        while self._debounce_task is not None:
            await asyncio.gather(self._debounce_task, return_exceptions=True)

    # =========================================================================
    # Subscribers and status
    # =========================================================================

    def subscribe(self, maxsize: int = SUBSCRIBER_QUEUE_SIZE) -> asyncio.Queue:
        """Queue that receives every significant ProbabilityUpdate."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, update: ProbabilityUpdate) -> None:
        for queue in self._subscribers:
            if queue.full():
                # Slow subscriber: keep the newest updates
                queue.get_nowait()
                logger.warning("Subscriber queue full; dropped oldest update")
            queue.put_nowait(update)

    def history(self, limit: Optional[int] = None) -> List[ProbabilityUpdate]:
        updates = list(self._history)
        if limit is not None:
            updates = updates[-limit:] if limit > 0 else []
        return updates

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "connection": self.connection_status.value,
            "active_games": sorted(self.active_games),
            "live_scores": {t: s.to_dict() for t, s in sorted(self.live_scores.items())},
            "pending_teams": sorted(self.pending),
            "queued_events": self._queue.qsize(),
            "recompute_count": self.recompute_count,
            "dropped_events": self.dropped_events,
            "last_update": self.last_update,
            "history_size": len(self._history),
            "subscribers": len(self._subscribers),
        }
