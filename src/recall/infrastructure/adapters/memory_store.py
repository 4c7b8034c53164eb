"""
In-memory Progress Store — Infrastructure adapter without durability.

Implements ProgressStore with plain dicts and lists. Used for tests, dry runs
and as the base for file-backed stores, which override `_commit`.
"""

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from ulid import ULID

from recall.domain.constants import MAX_HISTORY_ENTRIES
from recall.domain.models import CardProgress, ReviewHistoryEntry
from recall.domain.ports import ProgressStore, merge_progress, progress_id

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_entry_id() -> str:
    """Time-ordered unique id for a history entry."""
    return str(ULID())


class InMemoryProgressStore(ProgressStore):
    def __init__(self, max_history: int = MAX_HISTORY_ENTRIES, clock: Clock | None = None):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        self._clock = clock or utc_now
        self._progress: dict[str, CardProgress] = {}
        self._history: list[ReviewHistoryEntry] = []

    def get(self, card_id: str) -> CardProgress:
        record = self._progress.get(card_id)
        if record is None:
            return CardProgress.default(card_id)
        return copy.copy(record)

    def get_all(self) -> dict[str, CardProgress]:
        return {card_id: copy.copy(record) for card_id, record in self._progress.items()}

    def put(self, progress: CardProgress | Mapping[str, Any]) -> CardProgress:
        card_id = progress_id(progress)
        existing = self._progress.get(card_id) or CardProgress.default(card_id)
        merged = merge_progress(existing, progress)
        merged.last_updated = self._clock()

        updated = dict(self._progress)
        updated[card_id] = merged
        self._commit(progress=updated)
        return copy.copy(merged)

    def append_history(
        self,
        card_id: str,
        card_title: str,
        quality: int,
        interval: int,
        ease_factor: float,
    ) -> ReviewHistoryEntry:
        entry = ReviewHistoryEntry(
            id=generate_entry_id(),
            card_id=card_id,
            card_title=card_title,
            quality=quality,
            interval=interval,
            ease_factor=ease_factor,
            timestamp=self._clock(),
        )
        history = [entry, *self._history[: self.max_history - 1]]
        self._commit(history=history)
        return entry

    def get_history(self, limit: int | None = None) -> list[ReviewHistoryEntry]:
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        if limit is None:
            return list(self._history)
        return self._history[:limit]

    def reset(self, card_id: str | None = None) -> None:
        if card_id is None:
            logger.info("Clearing all progress and review history")
            self._commit(progress={}, history=[])
            return
        if card_id not in self._progress:
            return
        updated = dict(self._progress)
        del updated[card_id]
        self._commit(progress=updated)

    def _commit(
        self,
        progress: dict[str, CardProgress] | None = None,
        history: list[ReviewHistoryEntry] | None = None,
    ) -> None:
        """Swap in new state. Subclasses persist first and raise on failure."""
        if progress is not None:
            self._progress = progress
        if history is not None:
            self._history = history
