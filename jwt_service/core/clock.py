"""Injectable wall clock."""

import time
from collections.abc import Callable

Clock = Callable[[], float]


def system_clock() -> float:
    """Seconds since the epoch from the system clock."""
    return time.time()
