"""Exceptions raised by the scheduling engine."""


class RecallError(Exception):
    """Base class for all engine errors."""


class EmptyQueueError(RecallError):
    """Composing a queue for a study mode produced no cards."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"No {mode} cards available for review.")


class InvalidTransitionError(RecallError):
    """A session operation was invoked in a state that does not allow it."""

    def __init__(self, action: str, state: str, detail: str | None = None):
        self.action = action
        self.state = state
        message = f"Cannot {action} while session is {state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidRatingError(RecallError, ValueError):
    """Quality rating outside the 0-5 range."""


class StoreError(RecallError):
    """The progress store's backing mechanism failed."""
