"""Descending confidence thresholds used by every peak search.

Thresholds are derived from an integer rank rather than by repeated
subtraction, so ``0.95 - 0.05`` is always ``0.9`` and never
``0.8999999999999999``. Every component that walks thresholds goes through
:func:`descending_over_thresholds` so they all see the same values.
"""

from __future__ import annotations

from typing import Callable

START_THRESHOLD = 0.95
MIN_VALID_THRESHOLD = 0.2
THRESHOLD_STEP = 0.05


def _threshold_at(rank: int, start_threshold: float, threshold_step: float) -> float:
    return round(start_threshold - threshold_step * (rank + 1), 2)


def descending_over_thresholds(
    on_threshold: Callable[[float], bool],
    min_valid_threshold: float = MIN_VALID_THRESHOLD,
    start_threshold: float = START_THRESHOLD,
    threshold_step: float = THRESHOLD_STEP,
) -> None:
    """Call *on_threshold* once per threshold, highest first.

    The threshold is decremented before the first call, so the first value
    seen is ``start_threshold - threshold_step``. Iteration stops when
    *on_threshold* returns True or once the floor has been reached.
    """
    if threshold_step <= 0:
        raise ValueError(f"threshold_step must be positive, got {threshold_step}")

    floor = round(min_valid_threshold, 2)
    rank = 0
    while True:
        threshold = _threshold_at(rank, start_threshold, threshold_step)
        if on_threshold(threshold):
            return
        if threshold <= floor:
            return
        rank += 1


def threshold_ladder(
    min_valid_threshold: float = MIN_VALID_THRESHOLD,
    start_threshold: float = START_THRESHOLD,
    threshold_step: float = THRESHOLD_STEP,
) -> tuple[float, ...]:
    """Return every threshold :func:`descending_over_thresholds` would visit."""
    thresholds: list[float] = []

    def collect(threshold: float) -> bool:
        thresholds.append(threshold)
        return False

    descending_over_thresholds(collect, min_valid_threshold, start_threshold, threshold_step)
    return tuple(thresholds)


def threshold_rank(
    threshold: float,
    start_threshold: float = START_THRESHOLD,
    threshold_step: float = THRESHOLD_STEP,
) -> int:
    """Position of *threshold* in the ladder (0 is the highest threshold)."""
    rank = round((start_threshold - threshold) / threshold_step) - 1
    if rank < 0 or _threshold_at(rank, start_threshold, threshold_step) != round(threshold, 2):
        raise ValueError(f"{threshold} is not a threshold of the ladder")
    return rank


THRESHOLDS = threshold_ladder()
