# Application Package
from .classifier import classify, count_states, is_due
from .queue_builder import compose_queue
from .scheduler import IntervalResult, Rating, next_state
from .session import ReviewSession, SessionState

__all__ = [
    "IntervalResult",
    "Rating",
    "next_state",
    "classify",
    "count_states",
    "is_due",
    "compose_queue",
    "ReviewSession",
    "SessionState",
]
