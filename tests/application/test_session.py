import random
from datetime import timedelta

import pytest

from recall.application.classifier import classify
from recall.application.session import ReviewSession, SessionState
from recall.domain.errors import (
    EmptyQueueError,
    InvalidRatingError,
    InvalidTransitionError,
    StoreError,
)
from recall.domain.models import CardState, SessionStats, StudyMode
from recall.infrastructure.adapters import InMemoryProgressStore


class FailingPutStore(InMemoryProgressStore):
    def put(self, progress):
        raise StoreError("disk full")


class FailingHistoryStore(InMemoryProgressStore):
    def append_history(self, *args, **kwargs):
        raise StoreError("disk full")


class BrokenHistoryStore(InMemoryProgressStore):
    def append_history(self, *args, **kwargs):
        raise RuntimeError("adapter bug")


@pytest.fixture
def cards(make_cards):
    return make_cards(3)


@pytest.fixture
def session(store, cards):
    return ReviewSession(store, cards, rng=random.Random(7))


# --- Start ---


def test_new_session_is_idle(session):
    assert session.state is SessionState.IDLE
    assert session.current_card is None
    assert session.mode is None
    assert session.stats == SessionStats()


def test_start_initializes_pass(session, cards, now):
    first = session.start(StudyMode.ALL, now)

    assert session.state is SessionState.ACTIVE
    assert session.is_active
    assert session.mode is StudyMode.ALL
    assert session.cursor == 0
    assert session.current_card == first == session.queue[0]
    assert sorted(c.id for c in session.queue) == sorted(c.id for c in cards)
    assert session.stats == SessionStats(completed=0, total=3, correct=0)


def test_start_with_empty_queue_stays_idle(store, cards, now):
    session = ReviewSession(store, cards)
    with pytest.raises(EmptyQueueError):
        session.start(StudyMode.DUE, now)
    assert session.state is SessionState.IDLE
    assert session.queue == ()


def test_start_while_active_is_rejected(session, now):
    session.start(StudyMode.ALL, now)
    with pytest.raises(InvalidTransitionError):
        session.start(StudyMode.NEW, now)
    assert session.mode is StudyMode.ALL


def test_custom_session_keeps_caller_order(session, cards, now):
    selection = [cards[2], cards[0]]
    session.start("custom", now, custom_selection=selection)
    assert list(session.queue) == selection
    assert session.current_card == cards[2]


# --- Rate ---


def test_three_correct_ratings_complete_the_session(session, now):
    session.start(StudyMode.ALL, now)
    for _ in range(3):
        session.rate(4, now)

    assert session.state is SessionState.COMPLETE
    assert session.stats == SessionStats(completed=3, total=3, correct=3)
    assert session.current_card is None


def test_rate_persists_progress_and_history(session, store, now):
    card = session.start(StudyMode.ALL, now)

    progress = session.rate(5, now)

    assert progress == store.get(card.id)
    assert progress.interval == 1
    assert progress.ease_factor == pytest.approx(2.6)
    assert progress.review_count == 1
    assert progress.correct_count == 1
    assert progress.next_review_date == now + timedelta(days=1)
    assert progress.created_at == now
    assert progress.last_reviewed_at == now

    [entry] = store.get_history()
    assert entry.card_id == card.id
    assert entry.card_title == card.title
    assert entry.quality == 5
    assert entry.interval == 1
    assert entry.ease_factor == pytest.approx(2.6)


def test_rate_builds_on_previous_progress(store, cards, reviewed, now):
    earlier = now - timedelta(days=10)
    store.put(reviewed(cards[0].id, interval=6, next_review_date=now, review_count=2,
                       correct_count=2))
    store.put({"id": cards[0].id, "created_at": earlier})
    session = ReviewSession(store, cards)
    session.start(StudyMode.CUSTOM, now, custom_selection=[cards[0]])

    progress = session.rate(3, now)

    assert progress.interval == 15
    assert progress.ease_factor == pytest.approx(2.36)
    assert progress.review_count == 3
    assert progress.correct_count == 3
    assert progress.created_at == earlier
    assert progress.next_review_date == now + timedelta(days=15)


def test_incorrect_rating_counts_review_but_not_correct(session, store, now):
    card = session.start(StudyMode.ALL, now)

    progress = session.rate(1, now)

    assert progress.review_count == 1
    assert progress.correct_count == 0
    assert progress.ease_factor == 2.5
    assert session.stats == SessionStats(completed=1, total=3, correct=0)
    assert session.cursor == 1
    assert store.get(card.id).correct_count == 0


def test_queue_membership_fixed_during_session(store, cards, now):
    session = ReviewSession(store, cards, rng=random.Random(1))
    session.start(StudyMode.NEW, now)
    queue_before = session.queue

    session.rate(4, now)

    # The rated card is no longer NEW but stays in this pass.
    assert session.queue == queue_before
    assert len(session.queue) == 3
    assert session.current_card == queue_before[1]


def test_invalid_quality_does_not_advance(session, store, now):
    card = session.start(StudyMode.ALL, now)

    with pytest.raises(InvalidRatingError):
        session.rate(7, now)

    assert session.cursor == 0
    assert session.current_card == card
    assert store.get_all() == {}


def test_rate_while_idle_is_rejected(session, now):
    with pytest.raises(InvalidTransitionError):
        session.rate(4, now)


def test_rate_after_complete_is_rejected(session, now):
    session.start(StudyMode.ALL, now)
    for _ in range(3):
        session.rate(3, now)
    with pytest.raises(InvalidTransitionError):
        session.rate(3, now)


# --- Store failures ---


def test_put_failure_leaves_session_untouched(cards, now):
    session = ReviewSession(FailingPutStore(), cards)
    card = session.start(StudyMode.ALL, now)

    with pytest.raises(StoreError):
        session.rate(4, now)

    assert session.cursor == 0
    assert session.current_card == card
    assert session.stats.completed == 0


def test_history_failure_rolls_back_new_card(cards, now):
    store = FailingHistoryStore()
    session = ReviewSession(store, cards)
    session.start(StudyMode.ALL, now)

    with pytest.raises(StoreError):
        session.rate(4, now)

    assert store.get_all() == {}
    assert session.cursor == 0
    assert session.stats.completed == 0


def test_history_failure_restores_previous_record(cards, reviewed, now):
    store = FailingHistoryStore()
    previous = store.put(reviewed(cards[0].id, interval=30, next_review_date=now))
    session = ReviewSession(store, cards)
    session.start(StudyMode.CUSTOM, now, custom_selection=[cards[0]])

    with pytest.raises(StoreError):
        session.rate(5, now)

    assert store.get(cards[0].id) == previous
    assert session.state is SessionState.ACTIVE


def test_unexpected_history_error_also_rolls_back(cards, reviewed, now):
    store = BrokenHistoryStore()
    previous = store.put(reviewed(cards[0].id, interval=30, next_review_date=now))
    session = ReviewSession(store, cards)
    session.start(StudyMode.CUSTOM, now, custom_selection=[cards[0], cards[1]])

    with pytest.raises(RuntimeError):
        session.rate(4, now)

    assert store.get(cards[0].id) == previous
    assert session.cursor == 0
    assert session.stats.completed == 0


# --- Cancel / finish ---


def test_cancel_keeps_persisted_ratings(session, store, now):
    card = session.start(StudyMode.ALL, now)
    session.rate(4, now)

    stats = session.cancel()

    assert stats == SessionStats(completed=1, total=3, correct=1)
    assert session.state is SessionState.IDLE
    assert session.current_card is None
    assert session.queue == ()
    assert store.get(card.id).review_count == 1
    assert len(store.get_history()) == 1


def test_cancel_outside_active_is_rejected(session, now):
    with pytest.raises(InvalidTransitionError):
        session.cancel()

    session.start(StudyMode.ALL, now)
    for _ in range(3):
        session.rate(4, now)
    with pytest.raises(InvalidTransitionError):
        session.cancel()


def test_finish_after_complete_returns_to_idle(session, now):
    session.start(StudyMode.ALL, now)
    for quality in (5, 2, 3):
        session.rate(quality, now)

    stats = session.finish()

    assert stats == SessionStats(completed=3, total=3, correct=2)
    assert stats.accuracy == pytest.approx(2 / 3)
    assert session.state is SessionState.IDLE
    assert session.stats == SessionStats()


def test_finish_early_terminates_active_session(session, now):
    session.start(StudyMode.ALL, now)
    session.rate(4, now)

    stats = session.finish()

    assert stats.completed == 1
    assert stats.remaining == 2
    assert session.state is SessionState.IDLE


def test_finish_while_idle_is_rejected(session):
    with pytest.raises(InvalidTransitionError):
        session.finish()


def test_restart_after_complete_recomposes(store, cards, now):
    session = ReviewSession(store, cards, rng=random.Random(2))
    session.start(StudyMode.NEW, now)
    for _ in range(3):
        session.rate(4, now)
    assert session.state is SessionState.COMPLETE

    # Every card has now been rated once, so nothing is NEW any more.
    with pytest.raises(EmptyQueueError):
        session.start(StudyMode.NEW, now)
    assert session.state is SessionState.IDLE

    session.start(StudyMode.ALL, now)
    assert session.stats.total == 3


def test_isolated_sessions_do_not_share_state(cards, now):
    first_store, second_store = InMemoryProgressStore(), InMemoryProgressStore()
    first = ReviewSession(first_store, cards)
    second = ReviewSession(second_store, cards)

    first.start(StudyMode.ALL, now)
    first.rate(4, now)

    assert second_store.get_all() == {}
    assert classify(second_store.get(cards[0].id), now) is CardState.NEW
