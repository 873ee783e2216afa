"""Upload endpoint for offline tempo detection."""

import logging

import numpy as np
from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from tempometer.analysis.offline import analyze_full_buffer
from tempometer.api.schemas import BpmCandidatesResponse, candidates_to_response
from tempometer.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

_SAMPLE_BYTES = 4  # little-endian float32


@router.post("/analyze", response_model=BpmCandidatesResponse)
async def analyze_file(
    file: UploadFile = File(...),
    sample_rate: int | None = Query(default=None),
):
    """Detect the tempo of an uploaded buffer of raw float32 mono PCM.

    The samples are expected to be low-pass filtered already.
    """
    if sample_rate is None:
        sample_rate = settings.sample_rate
    if sample_rate <= 0:
        raise HTTPException(400, "Sample rate must be positive")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")
    if not content:
        raise HTTPException(400, "Empty upload")
    if len(content) % _SAMPLE_BYTES:
        raise HTTPException(400, "Upload is not a whole number of float32 samples")

    try:
        channel_data = np.frombuffer(content, dtype="<f4")
        result = analyze_full_buffer(channel_data, sample_rate)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception:
        logger.exception("Analysis failed")
        raise HTTPException(500, "Analysis failed")

    return candidates_to_response(result)
