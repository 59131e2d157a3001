import time


def now() -> float:
    return time.perf_counter()


def to_millis(seconds: float) -> int:
    """Whole milliseconds, truncated.

    Rounds to nanoseconds first so float noise (0.57 * 1000 == 569.99...)
    does not drop a millisecond.
    """
    return int(round(seconds * 1000, 6))
