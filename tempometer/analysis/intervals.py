"""Histogram of distances between nearby peaks."""

from __future__ import annotations

from typing import Sequence

from tempometer.analysis.models import Interval

# Each peak is compared with itself and the peaks that follow it, up to this
# many comparisons. Short intervals carry the tempo; long ones mostly noise.
MAX_INTERVAL_COMPARISONS = 10


def identify_intervals(
    peaks: Sequence[int],
    max_comparisons: int = MAX_INTERVAL_COMPARISONS,
) -> list[Interval]:
    """Tally the distances between each peak and the peaks right after it.

    The first comparison of every peak is against itself and is recorded
    with a distance of 0; :func:`~tempometer.analysis.tempo.group_by_tempo`
    drops it. Comparisons that would run past the last peak are skipped.
    Intervals are returned in the order they were first seen.
    """
    counts: dict[int, Interval] = {}
    n_peaks = len(peaks)

    for n in range(n_peaks):
        peak = peaks[n]
        for i in range(max_comparisons):
            if n + i >= n_peaks:
                break
            distance = int(peaks[n + i] - peak)
            found = counts.get(distance)
            if found is None:
                counts[distance] = Interval(interval=distance, count=1)
            else:
                found.count += 1

    return list(counts.values())
