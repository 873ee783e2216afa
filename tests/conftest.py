"""Shared test fixtures for tempo detection tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient
from scipy.signal import butter, sosfilt

from tempometer.main import app

SR = 44100


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_click_track(
    bpm: float = 120,
    duration_seconds: float = 10.0,
    sr: int = SR,
    amplitude: float = 0.9,
) -> np.ndarray:
    """Generate single-sample clicks at a fixed tempo, starting at sample 0."""
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)
    step = sr * 60.0 / bpm
    positions = np.arange(0, n_samples, step).astype(int)
    audio[positions] = amplitude
    return audio


def generate_clicks(n_clicks: int, spacing: int = SR // 2, amplitude: float = 0.9) -> np.ndarray:
    """Generate exactly *n_clicks* clicks, *spacing* samples apart."""
    audio = np.zeros(n_clicks * spacing, dtype=np.float32)
    audio[np.arange(n_clicks) * spacing] = amplitude
    return audio


def generate_white_noise(duration_seconds: float = 10.0, sr: int = SR, seed: int = 0) -> np.ndarray:
    """Uniform white noise in [-0.5, 0.5]."""
    rng = np.random.default_rng(seed)
    return rng.uniform(-0.5, 0.5, int(duration_seconds * sr)).astype(np.float32)


def generate_kick_track(
    bpm: float = 120,
    duration_seconds: float = 10.0,
    sr: int = SR,
    peak: float = 0.9,
) -> np.ndarray:
    """Generate decaying 60 Hz kicks passed through a 200 Hz low-pass.

    This stands in for the filtering stage that runs before detection.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples)

    kick_samples = int(0.2 * sr)
    t_kick = np.arange(kick_samples) / sr
    kick = np.sin(2 * np.pi * 60 * t_kick) * np.exp(-t_kick * 30)

    step = sr * 60.0 / bpm
    for pos in np.arange(0, n_samples, step).astype(int):
        end = min(pos + kick_samples, n_samples)
        audio[pos:end] += kick[:end - pos]

    sos = butter(N=2, Wn=200, btype="low", fs=sr, output="sos")
    audio = sosfilt(sos, audio)
    audio = audio / np.max(np.abs(audio)) * peak
    return audio.astype(np.float32)


def iter_chunks(audio: np.ndarray, chunk_size: int = 4096):
    """Yield the complete chunks of *audio*."""
    for start in range(0, len(audio) - chunk_size + 1, chunk_size):
        yield audio[start:start + chunk_size]


@pytest.fixture
def click_120():
    """Click track at 120 BPM."""
    return generate_click_track(bpm=120, duration_seconds=10)


@pytest.fixture
def white_noise():
    """Ten seconds of white noise."""
    return generate_white_noise(duration_seconds=10)
