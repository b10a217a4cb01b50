"""Ordered-pass matching shared by the classifiers.

Each pass is a lazy iterable of candidate matches (None for a miss), ordered
from most to least authoritative: coded vocabulary first, free text second.
A later pass is only consumed when every earlier pass came up empty.
"""

from collections.abc import Iterable
from typing import TypeVar

T = TypeVar("T")


def first_match(*passes: Iterable[T | None]) -> T | None:
    """Return the first non-None candidate across the passes, in order."""
    for candidates in passes:
        for candidate in candidates:
            if candidate is not None:
                return candidate
    return None
