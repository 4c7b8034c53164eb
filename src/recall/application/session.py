"""
Review session state machine.

A session drives one study pass over a composed queue:

    IDLE --start--> ACTIVE --rate--> ACTIVE ... --rate--> COMPLETE --finish--> IDLE
                      |
                      +--cancel / finish--> IDLE

Every rating is persisted as it happens, so cancelling a session only stops
further progression.
"""

import logging
import random
from collections.abc import Sequence
from datetime import datetime
from enum import Enum

from recall.application.queue_builder import compose_queue
from recall.application.scheduler import is_correct, next_review_date, next_state, validate_quality
from recall.domain.constants import LEARNING_INTERVAL_DAYS
from recall.domain.errors import InvalidTransitionError
from recall.domain.models import Card, CardProgress, SessionStats, StudyMode
from recall.domain.ports import ProgressStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


class ReviewSession:
    """
    Drives a single study pass and accumulates its statistics.

    Depends on the ProgressStore abstraction; the store and the random source
    are passed in so several isolated sessions can coexist in tests.
    """

    def __init__(
        self,
        store: ProgressStore,
        cards: Sequence[Card],
        rng: random.Random | None = None,
        learning_interval_days: int = LEARNING_INTERVAL_DAYS,
    ):
        """
        Args:
            store: Progress store that ratings are written to.
            cards: The full loaded card set queues are composed from.
            rng: Random source for queue shuffling.
            learning_interval_days: Interval below which cards count as learning.
        """
        self._store = store
        self._cards = list(cards)
        self._rng = rng or random.Random()
        self._learning_interval_days = learning_interval_days
        self._reset()

    def _reset(self) -> None:
        self._state = SessionState.IDLE
        self._mode: StudyMode | None = None
        self._queue: list[Card] = []
        self._cursor = 0
        self._stats = SessionStats()

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def mode(self) -> StudyMode | None:
        return self._mode

    @property
    def queue(self) -> tuple[Card, ...]:
        return tuple(self._queue)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def current_card(self) -> Card | None:
        if self._state is not SessionState.ACTIVE or self._cursor >= len(self._queue):
            return None
        return self._queue[self._cursor]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        mode: StudyMode | str,
        now: datetime,
        custom_selection: Sequence[Card] | None = None,
    ) -> Card:
        """
        Compose the queue and begin the pass.

        Returns:
            The first card to show.

        Raises:
            EmptyQueueError: If the mode selects no cards. The session stays IDLE.
            InvalidTransitionError: If a pass is already active.
        """
        if self._state is SessionState.ACTIVE:
            raise InvalidTransitionError("start", self._state.value, "finish or cancel first")
        if self._state is SessionState.COMPLETE:
            self._reset()

        mode = StudyMode(mode)
        queue = compose_queue(
            mode,
            self._cards,
            self._store,
            now,
            custom_selection=custom_selection,
            rng=self._rng,
            learning_interval_days=self._learning_interval_days,
        )

        self._mode = mode
        self._queue = queue
        self._cursor = 0
        self._stats = SessionStats(completed=0, total=len(queue), correct=0)
        self._state = SessionState.ACTIVE
        logger.info(f"Started {mode.value} session with {len(queue)} cards")
        return queue[0]

    def rate(self, quality: int, now: datetime) -> CardProgress:
        """
        Apply a rating to the current card, persist it and advance.

        Either the progress record and the history entry are both written, or
        the store is left as it was and the session does not advance.

        Returns:
            The updated progress record.

        Raises:
            InvalidTransitionError: If there is no active session or current card.
            InvalidRatingError: If quality is not an integer in 0-5.
            StoreError: If persisting fails. Any error from the history append
                rolls the progress record back before it propagates.
        """
        card = self.current_card
        if card is None:
            raise InvalidTransitionError("rate", self._state.value, "no current card")
        validate_quality(quality)

        previous = self._store.get(card.id)
        result = next_state(previous.interval, previous.ease_factor, quality)
        correct = is_correct(quality)

        updated = CardProgress(
            id=card.id,
            interval=result.new_interval,
            ease_factor=result.ease_factor,
            review_count=previous.review_count + 1,
            correct_count=previous.correct_count + (1 if correct else 0),
            next_review_date=next_review_date(result.new_interval, now),
            created_at=previous.created_at or now,
            last_reviewed_at=now,
        )

        stored = self._store.put(updated)
        try:
            self._store.append_history(
                card_id=card.id,
                card_title=card.title,
                quality=quality,
                interval=result.new_interval,
                ease_factor=result.ease_factor,
            )
        except Exception:
            logger.error(f"History append failed for {card.id}; restoring previous progress")
            self._restore(previous)
            raise

        self._stats = SessionStats(
            completed=self._stats.completed + 1,
            total=self._stats.total,
            correct=self._stats.correct + (1 if correct else 0),
        )
        logger.debug(
            f"Rated {card.id} q={quality}: interval={result.new_interval}d "
            f"ease={result.ease_factor:.2f}"
        )

        if self._cursor < len(self._queue) - 1:
            self._cursor += 1
        else:
            self._state = SessionState.COMPLETE
            logger.info(
                f"Session complete: {self._stats.correct}/{self._stats.completed} correct"
            )
        return stored

    def cancel(self) -> SessionStats:
        """
        Abandon the active pass. Ratings already applied stay persisted.

        Callers should confirm with the user before cancelling.
        """
        if self._state is not SessionState.ACTIVE:
            raise InvalidTransitionError("cancel", self._state.value)
        stats = self._stats
        logger.info(f"Cancelled session after {stats.completed}/{stats.total} cards")
        self._reset()
        return stats

    def finish(self) -> SessionStats:
        """End a complete pass, or terminate an active one early."""
        if self._state is SessionState.IDLE:
            raise InvalidTransitionError("finish", self._state.value)
        stats = self._stats
        self._reset()
        return stats

    def _restore(self, previous: CardProgress) -> None:
        if previous.is_new:
            self._store.reset(previous.id)
        else:
            self._store.put(previous)
