"""WebSocket endpoint for live tempo detection."""

import json
import logging

import numpy as np
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tempometer.analysis.models import AnalyzerMessage, MessageType
from tempometer.analysis.realtime import RealtimeBpmAnalyzer
from tempometer.api.schemas import (
    AnalyzeChunkMessage,
    AnalyzerResetMessage,
    BpmMessage,
    BpmStableMessage,
    ErrorData,
    ErrorMessage,
    ValidPeakData,
    ValidPeakMessage,
    candidates_to_response,
)
from tempometer.audio.stream import ChunkAggregator
from tempometer.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

_SAMPLE_BYTES = 4


def message_to_json(message: AnalyzerMessage) -> dict:
    """Convert an analyzer message to a dict for JSON serialization."""
    if message.type == MessageType.BPM:
        model = BpmMessage(data=candidates_to_response(message.data))
    elif message.type == MessageType.BPM_STABLE:
        model = BpmStableMessage(data=candidates_to_response(message.data))
    elif message.type == MessageType.ANALYZER_RESET:
        model = AnalyzerResetMessage()
    elif message.type == MessageType.ERROR:
        model = ErrorMessage(data=ErrorData(**message.data))
    elif message.type == MessageType.VALID_PEAK:
        model = ValidPeakMessage(data=ValidPeakData(**message.data))
    elif message.type == MessageType.ANALYZE_CHUNK:
        model = AnalyzeChunkMessage(data=np.asarray(message.data).tolist())
    else:
        raise ValueError(f"Unknown message type: {message.type}")
    return model.model_dump()


def _error(text: str) -> dict:
    return ErrorMessage(data=ErrorData(message=text)).model_dump()


@router.websocket("/ws/live")
async def live_analysis(
    websocket: WebSocket,
    sample_rate: int | None = None,
    continuous_analysis: bool | None = None,
    stabilization_time: int | None = None,
    debug: bool | None = None,
):
    """Live tempo detection via WebSocket.

    Protocol:
    - Client sends binary little-endian Float32 PCM frames of any length
      (mono, low-pass filtered)
    - Client may send text control frames: {"type": "reset"} or {"type": "stop"}
    - Server sends JSON messages:
      - {"type": "bpm", "data": {"bpm": [...], "threshold": T}}
      - {"type": "bpmStable", "data": {...}}
      - {"type": "analyzerReset"}
      - {"type": "error", "data": {"message": "..."}}
    """
    await websocket.accept()

    if sample_rate is None:
        sample_rate = settings.sample_rate
    try:
        analyzer = RealtimeBpmAnalyzer(
            continuous_analysis=continuous_analysis,
            stabilization_time=stabilization_time,
            debug=debug,
        )
    except ValueError as e:
        await websocket.send_json(_error(str(e)))
        await websocket.close()
        return
    aggregator = ChunkAggregator(chunk_size=analyzer.chunk_size)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break

            data = frame.get("bytes")
            if data is not None:
                # Decode Float32 PCM, ignoring a trailing partial sample
                n_samples = len(data) // _SAMPLE_BYTES
                if n_samples == 0:
                    continue
                pcm = np.frombuffer(data[:n_samples * _SAMPLE_BYTES], dtype="<f4")
                for chunk in aggregator.push(pcm):
                    for message in analyzer.push_chunk(chunk, sample_rate):
                        await websocket.send_json(message_to_json(message))
                continue

            text = frame.get("text")
            if text is None:
                continue
            try:
                control = json.loads(text)
            except json.JSONDecodeError:
                await websocket.send_json(_error("Control frames must be JSON"))
                continue

            command = control.get("type") if isinstance(control, dict) else None
            if command == "reset":
                analyzer.reset()
                aggregator.clear()
            elif command == "stop":
                analyzer.stop()
                aggregator.clear()
            else:
                await websocket.send_json(_error(f"Unknown control message: {command}"))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Live analysis failed")
        try:
            await websocket.send_json(_error(str(e)))
        except Exception:
            pass
