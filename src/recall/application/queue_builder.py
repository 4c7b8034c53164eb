"""
Queue builder for study sessions.

Builds the ordered list of cards for one study pass by:
1. Selecting cards whose classification matches the study mode
2. Shuffling the selection so presentation order varies between passes

Custom selections are passed through untouched.
"""

import logging
import random
from collections.abc import Sequence
from datetime import datetime

from recall.application.classifier import classify
from recall.domain.constants import LEARNING_INTERVAL_DAYS
from recall.domain.errors import EmptyQueueError
from recall.domain.models import Card, CardState, StudyMode
from recall.domain.ports import ProgressStore

logger = logging.getLogger(__name__)

_MODE_STATES = {
    StudyMode.NEW: CardState.NEW,
    StudyMode.DUE: CardState.DUE,
}


def compose_queue(
    mode: StudyMode | str,
    cards: Sequence[Card],
    store: ProgressStore,
    now: datetime,
    custom_selection: Sequence[Card] | None = None,
    rng: random.Random | None = None,
    learning_interval_days: int = LEARNING_INTERVAL_DAYS,
) -> list[Card]:
    """
    Select and order the cards to study for a mode.

    Args:
        mode: due, new, all or custom.
        cards: The full loaded card set.
        store: Progress store used to classify each card.
        now: Reference time for due checks.
        custom_selection: Cards chosen by the caller (custom mode only).
        rng: Random source for shuffling; a fresh one is used if not given.
        learning_interval_days: Interval below which cards count as learning.

    Returns:
        The queue, in presentation order.

    Raises:
        EmptyQueueError: If no card matches the mode.
    """
    mode = StudyMode(mode)

    if mode is StudyMode.CUSTOM:
        queue = list(custom_selection or [])
    else:
        if mode is StudyMode.ALL:
            queue = list(cards)
        else:
            wanted = _MODE_STATES[mode]
            queue = [
                card
                for card in cards
                if classify(store.get(card.id), now, learning_interval_days) is wanted
            ]
        (rng or random.Random()).shuffle(queue)

    if not queue:
        logger.info(f"No cards matched mode '{mode.value}' out of {len(cards)}")
        raise EmptyQueueError(mode.value)

    logger.debug(f"Composed {mode.value} queue with {len(queue)} cards")
    return queue
