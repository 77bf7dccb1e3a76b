"""
Retry backoff schedule.

Delays follow the Fibonacci sequence seeded with 1, 1, in minutes:
attempt 0 -> 1, 1 -> 1, 2 -> 2, 3 -> 3, 4 -> 5, 5 -> 8, ...
"""
from datetime import timedelta
from itertools import islice
from typing import Iterator


def fibonacci() -> Iterator[int]:
    """Yield the infinite sequence 1, 1, 2, 3, 5, 8, ..."""
    previous, current = 1, 1
    while True:
        yield previous
        previous, current = current, previous + current


def delay_minutes(attempt_index: int) -> int:
    """
    Minutes to wait before the given retry attempt.

    Args:
        attempt_index: Non-negative attempt number

    Returns:
        Positive delay in minutes
    """
    if attempt_index < 0:
        raise ValueError(f"attempt_index must be non-negative, got {attempt_index}")
    return next(islice(fibonacci(), attempt_index, None))


def retry_delay(attempt_index: int) -> timedelta:
    """Delay before the given retry attempt as a timedelta."""
    return timedelta(minutes=delay_minutes(attempt_index))
