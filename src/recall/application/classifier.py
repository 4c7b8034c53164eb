"""Card state classification: new, learning or due."""

from collections.abc import Iterable
from datetime import datetime

from recall.domain.constants import LEARNING_INTERVAL_DAYS
from recall.domain.models import Card, CardProgress, CardState, QueueCounts
from recall.domain.ports import ProgressStore


def is_due(review_date: datetime, now: datetime) -> bool:
    return now >= review_date


def classify(
    progress: CardProgress | None,
    now: datetime,
    learning_interval_days: int = LEARNING_INTERVAL_DAYS,
) -> CardState:
    """
    Classify a card from its progress record.

    Cards with short intervals stay LEARNING even when their review date has
    passed; only cards at or beyond `learning_interval_days` become DUE.
    """
    if progress is None or progress.review_count == 0:
        return CardState.NEW
    if progress.interval < learning_interval_days:
        return CardState.LEARNING
    if progress.next_review_date is not None and is_due(progress.next_review_date, now):
        return CardState.DUE
    return CardState.LEARNING


def count_states(
    cards: Iterable[Card],
    store: ProgressStore,
    now: datetime,
    learning_interval_days: int = LEARNING_INTERVAL_DAYS,
) -> QueueCounts:
    """Count cards per classification across the whole card set."""
    counts = {state: 0 for state in CardState}
    for card in cards:
        counts[classify(store.get(card.id), now, learning_interval_days)] += 1
    return QueueCounts(
        new=counts[CardState.NEW],
        learning=counts[CardState.LEARNING],
        due=counts[CardState.DUE],
    )
