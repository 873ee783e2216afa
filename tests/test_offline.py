"""Integration tests for offline tempo detection."""

import numpy as np
import pytest

from tempometer.analysis.models import BpmCandidates
from tempometer.analysis.offline import analyze, analyze_full_buffer
from tempometer.analysis.tempo import MAX_BPM_RANGE, MIN_BPM_RANGE, get_top_candidate
from tests.conftest import SR, generate_click_track, generate_kick_track


def test_click_track_is_120_bpm(click_120):
    candidates = analyze(click_120, SR)
    assert candidates[0].tempo == 120
    assert get_top_candidate(candidates) == 120
    assert len(candidates) <= 5


def test_full_buffer_reports_threshold(click_120):
    result = analyze_full_buffer(click_120, SR)
    assert isinstance(result, BpmCandidates)
    assert result.threshold == 0.85
    assert result.bpm[0].count == 65


def test_low_passed_kicks_are_120_bpm():
    audio = generate_kick_track(bpm=120, duration_seconds=10)
    assert analyze(audio, SR)[0].tempo == 120


@pytest.mark.parametrize("bpm", [100, 125, 150])
def test_other_tempos_in_band(bpm):
    audio = generate_click_track(bpm=bpm, duration_seconds=15)
    assert abs(analyze(audio, SR)[0].tempo - bpm) <= 1


def test_analysis_is_idempotent(click_120):
    assert analyze(click_120, SR) == analyze(click_120, SR)


def test_white_noise_does_not_raise(white_noise):
    candidates = analyze(white_noise, SR)
    for candidate in candidates:
        assert MIN_BPM_RANGE <= candidate.tempo <= MAX_BPM_RANGE


def test_silence_gives_no_candidates():
    result = analyze_full_buffer(np.zeros(SR * 2, dtype=np.float32), SR)
    assert result.bpm == []
    assert result.threshold == 0


@pytest.mark.parametrize("sample_rate", [0, -1])
def test_invalid_sample_rate_is_rejected(click_120, sample_rate):
    with pytest.raises(ValueError, match="Sample rate"):
        analyze(click_120, sample_rate)


def test_empty_buffer_is_rejected():
    with pytest.raises(ValueError, match="empty"):
        analyze(np.zeros(0, dtype=np.float32), SR)
    with pytest.raises(ValueError, match="required"):
        analyze(None, SR)


def test_multichannel_buffer_is_rejected():
    with pytest.raises(ValueError, match="mono"):
        analyze(np.zeros((2, SR), dtype=np.float32), SR)
