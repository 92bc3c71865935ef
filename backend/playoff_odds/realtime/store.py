"""
Per-team probability record store.

Writers stamp every record with the monotonic time of the league snapshot
it was computed from. A record older than the one already stored is
discarded, so a slow full-league run can never overwrite a newer targeted
result.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..models import ChampionshipProbability


logger = logging.getLogger(__name__)


@dataclass
class StoreChange:
    """A record that was applied and the one it replaced."""

    previous: Optional[ChampionshipProbability]
    current: ChampionshipProbability


class ProbabilityStore:
    """Thread-safe map of team id to its latest ChampionshipProbability."""

    def __init__(self):
        self._records: Dict[str, ChampionshipProbability] = {}
        self._lock = threading.Lock()
        self.discarded = 0

    def put(self, record: ChampionshipProbability) -> Optional[StoreChange]:
        """
        Store a record unless a newer one is already present.

        Returns:
            StoreChange when applied, None when discarded as stale
        """
        with self._lock:
            return self._put(record)

    def put_many(self, records: Iterable[ChampionshipProbability]) -> List[StoreChange]:
        """Apply each record under the timestamp guard; returns the applied changes."""
        with self._lock:
            changes = [self._put(record) for record in records]
        return [c for c in changes if c is not None]

    def get(self, team_id: str) -> Optional[ChampionshipProbability]:
        with self._lock:
            return self._records.get(team_id)

    def all(self) -> List[ChampionshipProbability]:
        """Every stored record, best championship odds first."""
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: (-r.championship_probability, r.team_id))

    def timestamp(self, team_id: str) -> Optional[float]:
        record = self.get(team_id)
        return record.computed_at if record else None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __contains__(self, team_id: str) -> bool:
        with self._lock:
            return team_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _put(self, record: ChampionshipProbability) -> Optional[StoreChange]:
        current = self._records.get(record.team_id)
        if current is not None and record.computed_at < current.computed_at:
            self.discarded += 1
            logger.info(
                f"Discarding stale result for {record.team_id} "
                f"({record.computed_at:.3f} < {current.computed_at:.3f})"
            )
            return None
        self._records[record.team_id] = record
        return StoreChange(previous=current, current=record)
