"""
Metrics calculator for deriving study insights from progress and history.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from recall.application.scheduler import is_correct
from recall.domain.models import CardProgress, ReviewHistoryEntry


@dataclass(frozen=True)
class DailyActivity:
    """Ratings recorded on a single calendar day."""

    day: date
    reviewed: int
    correct: int

    @property
    def accuracy_percent(self) -> int:
        """Share of correct ratings, rounded to a whole percentage."""
        if self.reviewed == 0:
            return 0
        return int(self.correct * 100 / self.reviewed + 0.5)


class MetricsCalculator:
    """
    Computes derived metrics from progress records and the review log.

    Stateless and side-effect free.
    """

    def card_accuracy(self, progress: CardProgress) -> float | None:
        """correct / total ratings, or None for cards never rated."""
        if progress.review_count == 0:
            return None
        return progress.correct_count / progress.review_count

    def daily_activity(
        self,
        history: Iterable[ReviewHistoryEntry],
        day: date,
        tz: tzinfo | None = None,
    ) -> DailyActivity:
        """
        Count the ratings made on `day`.

        Aware timestamps are converted to `tz` before taking their date.
        """
        reviewed = 0
        correct = 0
        for entry in history:
            if self._day_of(entry.timestamp, tz) != day:
                continue
            reviewed += 1
            if is_correct(entry.quality):
                correct += 1
        return DailyActivity(day=day, reviewed=reviewed, correct=correct)

    def _day_of(self, moment: datetime, tz: tzinfo | None) -> date:
        if tz is not None and moment.tzinfo is not None:
            moment = moment.astimezone(tz)
        return moment.date()
