# Domain Package
from .errors import (
    EmptyQueueError,
    InvalidRatingError,
    InvalidTransitionError,
    RecallError,
    StoreError,
)
from .models import (
    Card,
    CardProgress,
    CardState,
    QueueCounts,
    ReviewHistoryEntry,
    SessionStats,
    StudyMode,
)
from .ports import ProgressStore

__all__ = [
    "Card",
    "CardProgress",
    "CardState",
    "QueueCounts",
    "ReviewHistoryEntry",
    "SessionStats",
    "StudyMode",
    "ProgressStore",
    "RecallError",
    "EmptyQueueError",
    "InvalidTransitionError",
    "InvalidRatingError",
    "StoreError",
]
