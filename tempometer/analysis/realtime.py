"""Streaming tempo detection over a sequence of fixed-size chunks."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import numpy as np

from tempometer.analysis.models import AnalyzerMessage, BpmCandidates, MessageType
from tempometer.analysis.peaks import find_peaks_at_threshold, validate_sample_rate
from tempometer.analysis.tempo import compute_bpm
from tempometer.analysis.thresholds import (
    MIN_VALID_THRESHOLD,
    THRESHOLDS,
    descending_over_thresholds,
    threshold_rank,
)
from tempometer.config import settings

logger = logging.getLogger(__name__)


class AnalyzerState(str, Enum):
    FRESH = "fresh"
    ACCUMULATING = "accumulating"
    STABILIZED = "stabilized"
    STOPPED = "stopped"


class RealtimeBpmAnalyzer:
    """Accumulates peaks across chunks and periodically recomputes the tempo.

    Each call to :meth:`push_chunk` runs to completion synchronously and
    returns the messages it emitted: a ``bpm`` message every time, a
    ``bpmStable`` message when a higher threshold than the current floor
    holds enough peaks (lower thresholds are then pruned), and in continuous
    mode an ``analyzerReset`` message once the stabilization time has been
    buffered. Chunks must be pushed in order, exactly once.

    Parameters
    ----------
    continuous_analysis:
        Reset the session after *stabilization_time* so that unbounded
        streams are analyzed with bounded memory.
    stabilization_time:
        Milliseconds of buffered audio before a continuous session resets.
    mute_time_in_indexes:
        Samples ignored after a recorded peak at the same threshold.
    debug:
        Also emit ``analyzeChunk`` and ``validPeak`` messages.
    chunk_size:
        Number of samples per chunk.
    on_message:
        Optional sink called synchronously with every emitted message.
    """

    def __init__(
        self,
        continuous_analysis: bool | None = None,
        stabilization_time: int | None = None,
        mute_time_in_indexes: int | None = None,
        debug: bool | None = None,
        chunk_size: int | None = None,
        on_message: Callable[[AnalyzerMessage], None] | None = None,
    ) -> None:
        self.continuous_analysis = (
            settings.continuous_analysis if continuous_analysis is None else continuous_analysis
        )
        self.stabilization_time = (
            settings.stabilization_time if stabilization_time is None else stabilization_time
        )
        self.mute_time_in_indexes = (
            settings.mute_time_in_indexes if mute_time_in_indexes is None else mute_time_in_indexes
        )
        self.debug = settings.debug if debug is None else debug
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        self.on_message = on_message

        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")
        if self.mute_time_in_indexes < 0:
            raise ValueError(f"Mute time must not be negative, got {self.mute_time_in_indexes}")
        if self.stabilization_time < 0:
            raise ValueError(f"Stabilization time must not be negative, got {self.stabilization_time}")

        self.reset()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to a fresh session, also undoing :meth:`stop`."""
        self.min_valid_threshold = MIN_VALID_THRESHOLD
        # Indexed by threshold rank; a pruned rank is None in both lists.
        self._valid_peaks: list[list[int] | None] = [[] for _ in THRESHOLDS]
        self._next_index_peaks: list[int | None] = [0 for _ in THRESHOLDS]
        self.chunk_index = 1
        self.effective_buffer_time = 0
        self._stopped = False

    def stop(self) -> None:
        """Ignore further chunks until :meth:`reset` is called."""
        self._stopped = True

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def state(self) -> AnalyzerState:
        if self._stopped:
            return AnalyzerState.STOPPED
        if self.min_valid_threshold > MIN_VALID_THRESHOLD:
            return AnalyzerState.STABILIZED
        if self.chunk_index == 1:
            return AnalyzerState.FRESH
        return AnalyzerState.ACCUMULATING

    @property
    def stabilization_time_seconds(self) -> float:
        return self.stabilization_time / 1000

    @property
    def valid_peaks(self) -> dict[float, list[int]]:
        """Accumulated peak indices per retained threshold."""
        return {t: list(peaks) for t, peaks in self._live_valid_peaks().items()}

    @property
    def next_index_peaks(self) -> dict[float, int]:
        """Index each retained threshold resumes scanning from."""
        return {
            threshold: next_index
            for threshold, next_index in zip(THRESHOLDS, self._next_index_peaks)
            if next_index is not None
        }

    def _live_valid_peaks(self) -> dict[float, list[int]]:
        return {
            threshold: peaks
            for threshold, peaks in zip(THRESHOLDS, self._valid_peaks)
            if peaks is not None
        }

    def clear_valid_peaks(self, min_threshold: float) -> None:
        """Raise the floor to *min_threshold* and forget every lower threshold."""
        min_threshold = round(min_threshold, 2)
        self.min_valid_threshold = min_threshold

        def prune(threshold: float) -> bool:
            if threshold < min_threshold:
                rank = threshold_rank(threshold)
                self._valid_peaks[rank] = None
                self._next_index_peaks[rank] = None
            return False

        descending_over_thresholds(prune)
        logger.debug(f"Pruned peaks below threshold {min_threshold}")

    # ------------------------------------------------------------------
    # Chunk processing
    # ------------------------------------------------------------------

    def push_chunk(
        self,
        channel_data: np.ndarray,
        sample_rate: float,
        chunk_size: int | None = None,
    ) -> list[AnalyzerMessage]:
        """Analyze the next chunk and return the messages it produced.

        Errors are reported as an ``error`` message rather than raised; the
        session stays usable for the following chunks.
        """
        if self._stopped:
            return []

        messages: list[AnalyzerMessage] = []
        try:
            self._analyze_chunk(
                channel_data,
                sample_rate,
                self.chunk_size if chunk_size is None else chunk_size,
                messages,
            )
        except Exception as e:
            logger.exception("Chunk analysis failed")
            self._emit(messages, MessageType.ERROR, {"message": str(e)})
        return messages

    def _emit(self, messages: list[AnalyzerMessage], type_: MessageType, data: object = None) -> None:
        message = AnalyzerMessage(type=type_, data=data)
        messages.append(message)
        if self.on_message is not None:
            self.on_message(message)

    def _analyze_chunk(
        self,
        channel_data: np.ndarray,
        sample_rate: float,
        chunk_size: int,
        messages: list[AnalyzerMessage],
    ) -> None:
        validate_sample_rate(sample_rate)
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        channel_data = np.asarray(channel_data, dtype=np.float32)
        if channel_data.ndim != 1:
            raise ValueError(f"Expected mono channel data, got shape {channel_data.shape}")
        if len(channel_data) > chunk_size:
            raise ValueError(f"Chunk holds {len(channel_data)} samples, more than chunk size {chunk_size}")

        if self.debug:
            self._emit(messages, MessageType.ANALYZE_CHUNK, channel_data)

        current_max_index = chunk_size * self.chunk_index
        current_min_index = current_max_index - chunk_size

        self._find_peaks(channel_data, sample_rate, current_min_index, current_max_index, messages)

        self.chunk_index += 1
        self.effective_buffer_time += chunk_size

        data = compute_bpm(self._live_valid_peaks(), sample_rate)
        self._emit(messages, MessageType.BPM, data)

        if self.min_valid_threshold < data.threshold:
            self._stabilize(data, messages)

        if (self.continuous_analysis
                and self.effective_buffer_time / sample_rate > self.stabilization_time_seconds):
            logger.debug(f"Resetting after {self.effective_buffer_time / sample_rate:.1f}s")
            self.reset()
            self._emit(messages, MessageType.ANALYZER_RESET)

    def _stabilize(self, data: BpmCandidates, messages: list[AnalyzerMessage]) -> None:
        if data.bpm:
            logger.debug(f"Stable at {data.bpm[0].tempo} BPM, threshold {data.threshold}")
        self._emit(messages, MessageType.BPM_STABLE, data)
        self.clear_valid_peaks(data.threshold)

    def _find_peaks(
        self,
        channel_data: np.ndarray,
        sample_rate: float,
        current_min_index: int,
        current_max_index: int,
        messages: list[AnalyzerMessage],
    ) -> None:
        """Record the chunk's peaks for every threshold down to the floor."""

        def on_threshold(threshold: float) -> bool:
            rank = threshold_rank(threshold)
            next_index = self._next_index_peaks[rank]
            if next_index is None or next_index >= current_max_index:
                return False

            offset = max(next_index - current_min_index, 0)
            found = find_peaks_at_threshold(channel_data, threshold, sample_rate, offset)

            for relative_peak in found.peaks:
                index = current_min_index + relative_peak
                if index < self._next_index_peaks[rank]:
                    continue
                self._next_index_peaks[rank] = index + self.mute_time_in_indexes
                self._valid_peaks[rank].append(index)

                if self.debug:
                    self._emit(messages, MessageType.VALID_PEAK, {"threshold": threshold, "index": index})
            return False

        descending_over_thresholds(on_threshold, self.min_valid_threshold)
