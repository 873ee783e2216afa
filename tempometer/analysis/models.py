"""Core data models for tempo detection."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class PeaksAndThreshold:
    """Peak sample indices found at a given threshold."""
    peaks: list[int]
    threshold: float


@dataclass
class Interval:
    """Distance between two peaks, in samples, and how often it occurred."""
    interval: int
    count: int = 1


@dataclass
class Tempo:
    """A tempo candidate."""
    tempo: int  # BPM, normalized to 90-180
    count: int  # supporting intervals
    confidence: float = 0.0  # share of all grouped intervals, 0.0-1.0


@dataclass
class BpmCandidates:
    """Ranked tempo candidates and the threshold they were found at."""
    bpm: list[Tempo] = field(default_factory=list)
    threshold: float = 0.0


class MessageType(str, Enum):
    """Tags carried by messages emitted from a streaming session."""
    BPM = "bpm"
    BPM_STABLE = "bpmStable"
    ANALYZER_RESET = "analyzerReset"
    ERROR = "error"
    # Debug only
    ANALYZE_CHUNK = "analyzeChunk"
    VALID_PEAK = "validPeak"


@dataclass
class AnalyzerMessage:
    """A single message emitted by :class:`RealtimeBpmAnalyzer`."""
    type: MessageType
    data: object = None
