"""Pydantic response models for API."""

from pydantic import BaseModel


class TempoResponse(BaseModel):
    tempo: int
    count: int
    confidence: float = 0.0


class BpmCandidatesResponse(BaseModel):
    bpm: list[TempoResponse] = []
    threshold: float


# WebSocket message types

class BpmMessage(BaseModel):
    type: str = "bpm"
    data: BpmCandidatesResponse


class BpmStableMessage(BaseModel):
    type: str = "bpmStable"
    data: BpmCandidatesResponse


class AnalyzerResetMessage(BaseModel):
    type: str = "analyzerReset"


class ErrorData(BaseModel):
    message: str


class ErrorMessage(BaseModel):
    type: str = "error"
    data: ErrorData


class ValidPeakData(BaseModel):
    threshold: float
    index: int


class ValidPeakMessage(BaseModel):
    type: str = "validPeak"
    data: ValidPeakData


class AnalyzeChunkMessage(BaseModel):
    type: str = "analyzeChunk"
    data: list[float]


def candidates_to_response(candidates) -> BpmCandidatesResponse:
    """Convert BpmCandidates to its response model."""
    return BpmCandidatesResponse(
        bpm=[
            TempoResponse(tempo=t.tempo, count=t.count, confidence=t.confidence)
            for t in candidates.bpm
        ],
        threshold=candidates.threshold,
    )
