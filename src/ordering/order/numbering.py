"""Human-readable order numbers.

Format: ``<prefix><epoch milliseconds><4-digit sequence>``, for example
``WJ17292710000000042``. The sequence wraps at 10 000 and is shared by every
order issued through one sequence instance.
"""

import itertools
import threading
from datetime import UTC, datetime


class OrderNumberSequence:
    width = 4

    def __init__(self, prefix: str = "WJ", clock=None):
        self.prefix = prefix
        self._clock = clock or (lambda: datetime.now(UTC))
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_number(self) -> str:
        with self._lock:
            sequence = next(self._counter) % 10**self.width
        millis = int(self._clock().timestamp() * 1000)
        return f"{self.prefix}{millis}{sequence:0{self.width}d}"
