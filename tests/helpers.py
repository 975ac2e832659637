"""
Shared constants and test doubles.
"""

from datetime import datetime, timedelta, timezone

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
GATEWAY_SECRET = "test_secret"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
