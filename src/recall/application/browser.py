"""Card browser: search, filter and sort the loaded card set with its progress."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from recall.application.classifier import classify
from recall.application.scheduler import days_until_review
from recall.domain.constants import LEARNING_INTERVAL_DAYS
from recall.domain.models import Card, CardProgress, CardState
from recall.domain.ports import ProgressStore

SortKey = Literal["title", "interval", "next_review", "reviews"]


@dataclass(frozen=True)
class CardRow:
    card: Card
    progress: CardProgress
    state: CardState
    next_review_label: str


def format_next_review(progress: CardProgress, now: datetime) -> str:
    """Short label for when a card is next shown ("Due", "Tomorrow", "3w", ...)."""
    if progress.next_review_date is None:
        return "Never"
    days = days_until_review(progress.next_review_date, now)
    if days < 0:
        return "Due"
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{days // 7}w"
    return f"{days // 30}mo"


def _matches_query(card: Card, query: str) -> bool:
    q = query.lower()
    return (
        q in card.title.lower()
        or q in card.content.lower()
        or any(q in tag.lower() for tag in card.tags)
    )


def _sort_key(sort_by: SortKey, now: datetime):
    if sort_by == "title":
        return lambda row: row.card.title.lower()
    if sort_by == "interval":
        return lambda row: -row.progress.interval
    if sort_by == "next_review":
        # Unscheduled cards sort first; `now` matches the caller's tz awareness.
        return lambda row: (
            row.progress.next_review_date is not None,
            row.progress.next_review_date or now,
        )
    if sort_by == "reviews":
        return lambda row: -row.progress.review_count
    raise ValueError(f"Unknown sort key: {sort_by}")


def browse_cards(
    cards: Sequence[Card],
    store: ProgressStore,
    now: datetime,
    query: str | None = None,
    state: CardState | None = None,
    tag: str | None = None,
    sort_by: SortKey = "title",
    learning_interval_days: int = LEARNING_INTERVAL_DAYS,
) -> list[CardRow]:
    """
    List cards with their progress, filtered and sorted for display.

    Args:
        cards: The loaded card set.
        store: Progress store to read each card's record from.
        now: Reference time for classification and labels.
        query: Case-insensitive substring matched against title, content and tags.
        state: Keep only cards in this classification.
        tag: Keep only cards carrying this exact tag.
        sort_by: title (A-Z), interval (longest first), next_review (soonest
            first, never-reviewed before all others) or reviews (most first).
    """
    key = _sort_key(sort_by, now)
    rows: list[CardRow] = []

    for card in cards:
        if query and not _matches_query(card, query):
            continue
        if tag and tag not in card.tags:
            continue

        progress = store.get(card.id)
        card_state = classify(progress, now, learning_interval_days)
        if state is not None and card_state is not state:
            continue

        rows.append(
            CardRow(
                card=card,
                progress=progress,
                state=card_state,
                next_review_label=format_next_review(progress, now),
            )
        )

    rows.sort(key=key)
    return rows
