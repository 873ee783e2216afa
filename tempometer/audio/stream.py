"""Chunk assembly for live audio streaming."""

from __future__ import annotations

import numpy as np

_DEFAULT_CHUNK_SIZE = 4096


class ChunkAggregator:
    """Collects PCM blocks of any length into fixed-size chunks.

    Audio hosts deliver small blocks (e.g. 128-sample render quanta, or
    whatever a network client sends); the streaming analyzer wants chunks of
    exactly ``chunk_size`` samples.

    Parameters
    ----------
    chunk_size:
        Samples per emitted chunk. Defaults to 4096.
    """

    def __init__(self, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self._chunk_size = chunk_size
        self._buffer = np.zeros(chunk_size, dtype=np.float32)
        self._length = 0  # how many samples of the current chunk are filled

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def push(self, pcm: np.ndarray) -> list[np.ndarray]:
        """Append *pcm* and return every chunk it completed, oldest first.

        Leftover samples are kept for the next call.
        """
        pcm = np.asarray(pcm, dtype=np.float32).ravel()
        chunks: list[np.ndarray] = []

        pos = 0
        n = len(pcm)
        while pos < n:
            take = min(self._chunk_size - self._length, n - pos)
            self._buffer[self._length:self._length + take] = pcm[pos:pos + take]
            self._length += take
            pos += take

            if self._length == self._chunk_size:
                chunks.append(self._buffer.copy())
                self._length = 0

        return chunks

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def pending(self) -> int:
        """Samples buffered towards the next chunk."""
        return self._length

    def clear(self) -> None:
        """Drop any partially filled chunk."""
        self._buffer[:] = 0
        self._length = 0
