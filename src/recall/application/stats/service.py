"""
Study stats service — Application layer orchestrator.

Combines card classification counts with the review log to produce the
dashboard summary.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from recall.application.classifier import count_states
from recall.domain.constants import LEARNING_INTERVAL_DAYS
from recall.domain.models import Card
from recall.domain.ports import ProgressStore

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudySummary:
    total_cards: int
    new_cards: int
    learning_cards: int
    due_cards: int
    reviewed_today: int
    average_accuracy: int  # percent of today's ratings that were correct


class StudyStatsService:
    """
    Application service for the study dashboard.

    Depends on the ProgressStore abstraction, not a concrete adapter.
    """

    def __init__(
        self,
        store: ProgressStore,
        calculator: MetricsCalculator | None = None,
        learning_interval_days: int = LEARNING_INTERVAL_DAYS,
    ):
        """
        Args:
            store: The progress store (port) to read from.
            calculator: Optional custom calculator; uses default if not provided.
            learning_interval_days: Interval below which cards count as learning.
        """
        self._store = store
        self._calc = calculator or MetricsCalculator()
        self._learning_interval_days = learning_interval_days

    def summary(self, cards: Sequence[Card], now: datetime) -> StudySummary:
        """
        Build the dashboard summary for a card set.

        "Today" is the calendar date of `now`, in the timezone of `now`.
        """
        counts = count_states(cards, self._store, now, self._learning_interval_days)
        activity = self._calc.daily_activity(
            self._store.get_history(), now.date(), tz=now.tzinfo
        )
        logger.debug(f"Summary for {len(cards)} cards: {counts}")

        return StudySummary(
            total_cards=len(cards),
            new_cards=counts.new,
            learning_cards=counts.learning,
            due_cards=counts.due,
            reviewed_today=activity.reviewed,
            average_accuracy=activity.accuracy_percent,
        )

    def card_accuracy(self, card_id: str) -> float | None:
        return self._calc.card_accuracy(self._store.get(card_id))
