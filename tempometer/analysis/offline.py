"""Tempo detection over a complete, pre-decoded buffer."""

from __future__ import annotations

import logging

import numpy as np

from tempometer.analysis.intervals import identify_intervals
from tempometer.analysis.models import BpmCandidates, Tempo
from tempometer.analysis.peaks import find_peaks, validate_sample_rate
from tempometer.analysis.tempo import get_top_candidates, group_by_tempo

logger = logging.getLogger(__name__)


def analyze_full_buffer(channel_data: np.ndarray, sample_rate: float) -> BpmCandidates:
    """Detect the tempo of a mono, low-passed buffer.

    Peaks are taken once, at the highest threshold yielding enough of them,
    then turned into interval counts and ranked tempos. A buffer without
    enough peaks gives empty candidates and a threshold of 0.
    """
    validate_sample_rate(sample_rate)
    if channel_data is None:
        raise ValueError("Channel data is required")
    channel_data = np.asarray(channel_data, dtype=np.float32)
    if channel_data.ndim != 1:
        raise ValueError(f"Expected mono channel data, got shape {channel_data.shape}")
    if len(channel_data) == 0:
        raise ValueError("Channel data is empty")

    duration = len(channel_data) / sample_rate
    logger.info(f"Analyzing {duration:.1f}s of audio at {sample_rate}Hz")

    found = find_peaks(channel_data, sample_rate)
    intervals = identify_intervals(found.peaks)
    tempos = group_by_tempo(sample_rate, intervals)
    candidates = get_top_candidates(tempos)

    if candidates:
        logger.info(f"Top tempo {candidates[0].tempo} BPM ({candidates[0].count} intervals) "
                    f"at threshold {found.threshold}")
    else:
        logger.info("No tempo detected")

    return BpmCandidates(bpm=candidates, threshold=found.threshold)


def analyze(channel_data: np.ndarray, sample_rate: float) -> list[Tempo]:
    """Return the ranked tempo candidates of a complete buffer."""
    return analyze_full_buffer(channel_data, sample_rate).bpm
