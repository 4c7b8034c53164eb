"""
Domain models for cards, scheduling progress and review history.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .constants import DEFAULT_EASE_FACTOR


class CardState(str, Enum):
    """Classification label shown next to a card and used for queue counts."""

    NEW = "new"
    LEARNING = "learning"
    DUE = "due"


class StudyMode(str, Enum):
    """Which subset of the card set a study pass draws from."""

    DUE = "due"
    NEW = "new"
    ALL = "all"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Card:
    """
    A flashcard as produced by the import collaborator.

    The engine only reads `id`, `title` and `content`. Everything else is
    carried along for display.
    """

    id: str
    title: str = ""
    content: str = ""
    tags: tuple[str, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class CardProgress:
    """
    Scheduling state for a single card.

    Attributes:
        id: Matches Card.id.
        interval: Days until the next review. 0 means never successfully reviewed.
        ease_factor: Interval growth multiplier (>= 1.3).
        review_count: Total ratings applied.
        correct_count: Ratings with quality >= 3.
        next_review_date: None only before the first rating.
        created_at: Time of the first rating.
        last_reviewed_at: Time of the most recent rating.
        last_updated: Stamped by the store on every put.
    """

    id: str
    interval: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    correct_count: int = 0
    next_review_date: datetime | None = None
    created_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    last_updated: datetime | None = field(default=None, compare=False)

    @classmethod
    def default(cls, card_id: str) -> "CardProgress":
        """The zero-valued record used for cards that have never been rated."""
        return cls(id=card_id)

    @property
    def is_new(self) -> bool:
        return self.review_count == 0


@dataclass(frozen=True)
class ReviewHistoryEntry:
    """
    One rating, as appended to the review log.

    `card_title` is denormalized so the log can be displayed without the card set.
    """

    id: str
    card_id: str
    card_title: str
    quality: int
    interval: int
    ease_factor: float
    timestamp: datetime


@dataclass(frozen=True)
class SessionStats:
    completed: int = 0
    total: int = 0
    correct: int = 0

    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @property
    def accuracy(self) -> float:
        if self.completed == 0:
            return 0.0
        return self.correct / self.completed


@dataclass(frozen=True)
class QueueCounts:
    """Number of cards in each classification across the whole card set."""

    new: int = 0
    learning: int = 0
    due: int = 0

    @property
    def total(self) -> int:
        return self.new + self.learning + self.due
