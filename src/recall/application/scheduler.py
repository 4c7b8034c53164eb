"""
SM-2 interval calculator.

Pure computation module with no I/O: given the previous interval, the ease
factor and a 0-5 quality rating, produce the next interval and ease factor.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum

from recall.domain.constants import (
    CORRECT_QUALITY,
    DEFAULT_EASE_FACTOR,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
)
from recall.domain.errors import InvalidRatingError


class Rating(IntEnum):
    """Quality presets offered as answer buttons."""

    AGAIN = 0  # Complete blackout
    HARD = 1  # Incorrect response; correct one remembered
    GOOD = 3  # Correct response after a hesitation
    EASY = 4  # Perfect response


_RATING_DESCRIPTIONS = {
    Rating.AGAIN: "Again - Complete blackout",
    Rating.HARD: "Hard - Incorrect response",
    Rating.GOOD: "Good - Correct response",
    Rating.EASY: "Easy - Perfect response",
}


@dataclass(frozen=True)
class IntervalResult:
    new_interval: int
    ease_factor: float


def validate_quality(quality: int) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidRatingError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidRatingError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def is_correct(quality: int) -> bool:
    return quality >= CORRECT_QUALITY


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def next_state(
    previous_interval: int = 0,
    ease_factor: float = DEFAULT_EASE_FACTOR,
    quality: int = Rating.GOOD,
) -> IntervalResult:
    """
    Apply one rating to a card's scheduling parameters.

    Correct answers (quality >= 3) step the interval 0 -> 1 -> 6 and then
    multiply it by the ease factor; the ease factor moves by the SM-2 delta and
    never drops below 1.3. Incorrect answers restart the card at one day with
    the default ease factor.

    Args:
        previous_interval: Current interval in days (0 if never reviewed).
        ease_factor: Current ease factor.
        quality: Recall rating, 0 (blackout) to 5 (perfect).

    Returns:
        IntervalResult with the new interval (>= 1 day) and ease factor.
    """
    validate_quality(quality)
    if previous_interval < 0:
        raise ValueError(f"Interval must be >= 0, got {previous_interval}")

    if is_correct(quality):
        if previous_interval == 0:
            new_interval = 1
        elif previous_interval == 1:
            new_interval = 6
        else:
            new_interval = _round_half_up(previous_interval * ease_factor)

        miss = MAX_QUALITY - quality
        new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
        new_ease = max(new_ease, MIN_EASE_FACTOR)
    else:
        # Full reset, independent of the prior ease factor.
        new_interval = 1
        new_ease = DEFAULT_EASE_FACTOR

    return IntervalResult(new_interval=max(1, new_interval), ease_factor=new_ease)


def next_review_date(interval: int, now: datetime) -> datetime:
    return now + timedelta(days=interval)


def days_until_review(review_date: datetime, now: datetime) -> int:
    """Whole days until `review_date`, rounded up. Negative once overdue."""
    return math.ceil((review_date - now) / timedelta(days=1))


def describe_rating(quality: int) -> str:
    try:
        return _RATING_DESCRIPTIONS[Rating(quality)]
    except ValueError:
        return "Unknown rating"
