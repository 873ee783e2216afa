"""Tempo normalization, grouping and ranking of peak intervals."""

from __future__ import annotations

import logging
import math
from typing import Mapping, Sequence

from tempometer.analysis.intervals import identify_intervals
from tempometer.analysis.models import BpmCandidates, Interval, Tempo
from tempometer.analysis.peaks import MIN_PEAKS, validate_sample_rate
from tempometer.analysis.thresholds import MIN_VALID_THRESHOLD, descending_over_thresholds

logger = logging.getLogger(__name__)

# Tempos outside this band are assumed to be half/double-time readings.
MIN_BPM_RANGE = 90
MAX_BPM_RANGE = 180

TOP_CANDIDATES = 5


class NoCandidatesError(ValueError):
    """Raised when a top candidate is requested from an empty list."""


def normalize_tempo(bpm: float, min_bpm: float = MIN_BPM_RANGE, max_bpm: float = MAX_BPM_RANGE) -> float:
    """Fold *bpm* into ``[min_bpm, max_bpm]`` by doubling or halving."""
    if not bpm > 0:
        raise ValueError(f"Tempo must be positive, got {bpm}")
    while bpm < min_bpm:
        bpm *= 2
    while bpm > max_bpm:
        bpm /= 2
    return bpm


def group_by_tempo(sample_rate: float, intervals: Sequence[Interval]) -> list[Tempo]:
    """Convert intervals to tempos and merge the ones that round alike."""
    validate_sample_rate(sample_rate)

    tempos: dict[int, Tempo] = {}
    for interval in intervals:
        if interval.interval == 0:
            continue

        theoretical = 60 / (abs(interval.interval) / sample_rate)
        tempo = int(math.floor(normalize_tempo(theoretical) + 0.5))

        found = tempos.get(tempo)
        if found is None:
            tempos[tempo] = Tempo(tempo=tempo, count=interval.count)
        else:
            found.count += interval.count

    total = sum(t.count for t in tempos.values())
    for t in tempos.values():
        t.confidence = t.count / total if total else 0.0

    return list(tempos.values())


def get_top_candidates(candidates: Sequence[Tempo], length: int = TOP_CANDIDATES) -> list[Tempo]:
    """Return the *length* candidates with the highest counts."""
    return sorted(candidates, key=lambda c: c.count, reverse=True)[:length]


def get_top_candidate(candidates: Sequence[Tempo]) -> int:
    """Return the tempo of the best supported candidate."""
    if not candidates:
        raise NoCandidatesError("Could not find enough samples for a reliable detection.")
    return get_top_candidates(candidates, 1)[0].tempo


def compute_bpm(
    valid_peaks: Mapping[float, Sequence[int]],
    sample_rate: float,
    min_valid_threshold: float = MIN_VALID_THRESHOLD,
) -> BpmCandidates:
    """Rank tempos from the highest threshold holding enough peaks.

    *valid_peaks* maps canonical thresholds to accumulated peak indices.
    Thresholds absent from the mapping are skipped. When no threshold has
    more than ``MIN_PEAKS`` peaks, the candidates are empty and the
    threshold is the floor.
    """
    found: list[float] = []

    def on_threshold(threshold: float) -> bool:
        peaks = valid_peaks.get(threshold)
        if peaks is not None and len(peaks) > MIN_PEAKS:
            found.append(threshold)
            return True
        return False

    descending_over_thresholds(on_threshold)

    if not found:
        return BpmCandidates(bpm=[], threshold=min_valid_threshold)

    threshold = found[0]
    intervals = identify_intervals(valid_peaks[threshold])
    tempos = group_by_tempo(sample_rate, intervals)
    return BpmCandidates(bpm=get_top_candidates(tempos), threshold=threshold)
