"""Threshold-crossing peak detection on low-passed PCM data."""

from __future__ import annotations

import logging
import math

import numpy as np

from tempometer.analysis.models import PeaksAndThreshold
from tempometer.analysis.thresholds import descending_over_thresholds

logger = logging.getLogger(__name__)

# Time skipped after a peak so its decay is not counted again. 0.25s is
# roughly the shortest gap between two distinct beats at high tempos.
PEAK_SKIP_DURATION = 0.25

# A threshold needs strictly more peaks than this to be trusted.
MIN_PEAKS = 15


def compute_indexes_to_skip(duration_seconds: float, sample_rate: float) -> int:
    """Number of samples covering *duration_seconds* (rounded half up)."""
    return int(math.floor(duration_seconds * sample_rate + 0.5))


def validate_sample_rate(sample_rate: float) -> None:
    if not sample_rate > 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")


def validate_threshold(threshold: float) -> None:
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"Threshold must be within [0, 1], got {threshold}")


def find_peaks_at_threshold(
    data: np.ndarray,
    threshold: float,
    sample_rate: float,
    offset: int = 0,
) -> PeaksAndThreshold:
    """Find samples greater than *threshold*, starting at *offset*.

    After each peak the scan jumps ``PEAK_SKIP_DURATION`` seconds ahead to
    pass over the descending phase of the same transient.

    Parameters
    ----------
    data:
        Mono PCM samples.
    threshold:
        Amplitude a sample must exceed, within [0, 1].
    sample_rate:
        Sample rate in Hz.
    offset:
        Index the scan starts from.
    """
    validate_threshold(threshold)
    validate_sample_rate(sample_rate)
    if offset < 0:
        raise ValueError(f"Offset must not be negative, got {offset}")

    data = np.asarray(data)
    skip = compute_indexes_to_skip(PEAK_SKIP_DURATION, sample_rate)

    above = np.flatnonzero(data[offset:] > threshold) + offset
    peaks: list[int] = []
    pos = 0
    while pos < len(above):
        index = int(above[pos])
        peaks.append(index)
        # The next sample examined is the one right after the skipped span.
        pos = int(np.searchsorted(above, index + skip + 1))

    return PeaksAndThreshold(peaks=peaks, threshold=threshold)


def find_peaks(channel_data: np.ndarray, sample_rate: float) -> PeaksAndThreshold:
    """Find peaks at the highest threshold that yields enough of them.

    Returns empty peaks and a threshold of 0 when no threshold qualifies.
    """
    validate_sample_rate(sample_rate)
    channel_data = np.asarray(channel_data)
    best = PeaksAndThreshold(peaks=[], threshold=0.0)

    def on_threshold(threshold: float) -> bool:
        found = find_peaks_at_threshold(channel_data, threshold, sample_rate)
        if len(found.peaks) <= MIN_PEAKS:
            return False
        best.peaks = found.peaks
        best.threshold = threshold
        return True

    descending_over_thresholds(on_threshold)

    if best.peaks:
        logger.debug(f"{len(best.peaks)} peaks at threshold {best.threshold}")
    else:
        logger.debug("No threshold yielded enough peaks")
    return best
