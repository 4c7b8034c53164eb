from datetime import datetime, timedelta, timezone

import pytest

from recall.domain.models import Card, CardProgress
from recall.infrastructure.adapters import InMemoryProgressStore

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock for store timestamps. Advances one second per call."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryProgressStore(clock=clock)


@pytest.fixture
def make_cards():
    def _make(n: int, prefix: str = "card") -> list[Card]:
        return [
            Card(id=f"{prefix}-{i}", title=f"Title {i}", content=f"Answer {i}")
            for i in range(n)
        ]

    return _make


@pytest.fixture
def reviewed():
    """Build a progress record that has been rated at least once."""

    def _make(
        card_id: str,
        interval: int,
        next_review_date: datetime,
        review_count: int = 1,
        correct_count: int = 1,
        ease_factor: float = 2.5,
    ) -> CardProgress:
        return CardProgress(
            id=card_id,
            interval=interval,
            ease_factor=ease_factor,
            review_count=review_count,
            correct_count=correct_count,
            next_review_date=next_review_date,
            created_at=next_review_date - timedelta(days=interval),
            last_reviewed_at=next_review_date - timedelta(days=interval),
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data
    monkeypatch.setenv("HOME", str(home))
    for var in ("RECALL_DATA_DIR", "RECALL_BACKEND", "RECALL_MAX_HISTORY"):
        monkeypatch.delenv(var, raising=False)
    return home
