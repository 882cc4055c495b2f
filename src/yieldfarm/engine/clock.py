"""External clock read at call boundaries."""

from ..errors import InvalidInputError


class ManualClock:
    """Monotonically non-decreasing clock advanced explicitly by the caller."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise InvalidInputError("Clock start must be non-negative", field="start")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise InvalidInputError("Clock cannot move backwards", field="seconds")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise InvalidInputError(
                f"Clock cannot move backwards ({timestamp} < {self._now})", field="timestamp"
            )
        self._now = int(timestamp)
        return self._now
