"""
Ports (interfaces) for progress persistence.

These define the contract that infrastructure adapters must implement.
The queue builder and review session depend on this abstraction, not on a
concrete storage technology.
"""

import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .models import CardProgress, ReviewHistoryEntry

PROGRESS_FIELDS = frozenset(f.name for f in dataclasses.fields(CardProgress))


class ProgressStore(ABC):
    """
    Port for reading and writing per-card progress and the review log.

    Implementations:
        - InMemoryProgressStore: Process-local, used by tests and dry runs.
        - JsonFileProgressStore: JSON documents in a data directory.

    All operations are synchronous and assume a single writer.
    """

    @abstractmethod
    def get(self, card_id: str) -> CardProgress:
        """
        Fetch progress for a card.

        Returns CardProgress.default(card_id) when nothing has been stored yet.
        The returned record is a copy; mutating it does not affect the store.
        """

    @abstractmethod
    def get_all(self) -> dict[str, CardProgress]:
        """Return every stored record keyed by card id."""

    @abstractmethod
    def put(self, progress: CardProgress | Mapping[str, Any]) -> CardProgress:
        """
        Upsert a progress record.

        Fields are merged over the existing record (or the default record) and
        `last_updated` is stamped. Invariants are the caller's responsibility.

        Returns:
            The record as stored.
        """

    @abstractmethod
    def append_history(
        self,
        card_id: str,
        card_title: str,
        quality: int,
        interval: int,
        ease_factor: float,
    ) -> ReviewHistoryEntry:
        """
        Prepend an entry to the review log, assigning its id and timestamp.

        The log is truncated to the store's maximum size by dropping the oldest
        entries.
        """

    @abstractmethod
    def get_history(self, limit: int | None = None) -> list[ReviewHistoryEntry]:
        """Return review log entries, newest first. A negative limit raises ValueError."""

    @abstractmethod
    def reset(self, card_id: str | None = None) -> None:
        """
        Delete one card's progress, or all progress and history when no id is given.
        """


def merge_progress(
    existing: CardProgress, update: CardProgress | Mapping[str, Any]
) -> CardProgress:
    """Overlay `update` onto `existing` field by field."""
    if isinstance(update, CardProgress):
        changes = {name: getattr(update, name) for name in PROGRESS_FIELDS}
    else:
        unknown = set(update) - PROGRESS_FIELDS
        if unknown:
            raise TypeError(f"Unknown progress fields: {sorted(unknown)}")
        changes = dict(update)
    changes.pop("id", None)
    return dataclasses.replace(existing, **changes)


def progress_id(update: CardProgress | Mapping[str, Any]) -> str:
    if isinstance(update, CardProgress):
        return update.id
    try:
        return update["id"]
    except KeyError:
        raise TypeError("Progress update must include an 'id'") from None
