from __future__ import annotations

import threading
from typing import final

from ._errors import ConfigurationError


@final
class CardinalityTracker:
    """Counts accepted matches of one interaction against ``[minimum, maximum]``.

    ``maximum=None`` means unbounded. Once the maximum is reached the tracker
    is exhausted for good and every further ``accept`` is refused.
    """

    __slots__ = ("_count", "_lock", "maximum", "minimum")

    def __init__(self, minimum: int = 1, maximum: int | None = 1) -> None:
        if minimum < 0:
            raise ConfigurationError(f"minimum must not be negative, got {minimum}")
        if maximum is not None and maximum < minimum:
            raise ConfigurationError(
                f"maximum ({maximum}) must not be lower than minimum ({minimum})"
            )
        self.minimum = minimum
        self.maximum = maximum
        self._count = 0
        self._lock = threading.Lock()

    @classmethod
    def exactly(cls, n: int) -> CardinalityTracker:
        return cls(n, n)

    @classmethod
    def at_least(cls, n: int) -> CardinalityTracker:
        return cls(n, None)

    @classmethod
    def at_most(cls, n: int) -> CardinalityTracker:
        return cls(0, n)

    @classmethod
    def between(cls, minimum: int, maximum: int) -> CardinalityTracker:
        return cls(minimum, maximum)

    @classmethod
    def any_number(cls) -> CardinalityTracker:
        return cls(0, None)

    @property
    def count(self) -> int:
        return self._count

    @property
    def exhausted(self) -> bool:
        return self.maximum is not None and self._count >= self.maximum

    def accept(self) -> bool:
        with self._lock:
            if self.maximum is not None and self._count >= self.maximum:
                return False
            self._count += 1
            return True

    def is_satisfied(self) -> bool:
        count = self._count
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def describe(self) -> str:
        if self.maximum is None:
            return "any number of times" if self.minimum == 0 else f"at least {self.minimum}"
        if self.minimum == self.maximum:
            return f"exactly {self.minimum}"
        if self.minimum == 0:
            return f"at most {self.maximum}"
        return f"between {self.minimum} and {self.maximum}"

    def __repr__(self) -> str:
        return f"CardinalityTracker({self.describe()}, count={self._count})"
