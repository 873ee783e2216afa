"""Tests for fixed-size chunk assembly."""

import numpy as np
import pytest

from tempometer.audio.stream import ChunkAggregator


def test_chunks_are_emitted_when_full():
    aggregator = ChunkAggregator(chunk_size=4096)
    assert aggregator.push(np.ones(3000, dtype=np.float32)) == []
    assert aggregator.pending == 3000

    chunks = aggregator.push(np.full(3000, 2.0, dtype=np.float32))
    assert len(chunks) == 1
    assert len(chunks[0]) == 4096
    assert np.all(chunks[0][:3000] == 1.0)
    assert np.all(chunks[0][3000:] == 2.0)
    assert aggregator.pending == 1904


def test_large_block_yields_several_chunks_in_order():
    aggregator = ChunkAggregator(chunk_size=128)
    block = np.arange(300, dtype=np.float32)
    chunks = aggregator.push(block)
    assert len(chunks) == 2
    np.testing.assert_array_equal(chunks[0], block[:128])
    np.testing.assert_array_equal(chunks[1], block[128:256])
    assert aggregator.pending == 44


def test_emitted_chunks_are_independent_copies():
    aggregator = ChunkAggregator(chunk_size=4)
    first = aggregator.push(np.ones(4, dtype=np.float32))[0]
    aggregator.push(np.zeros(4, dtype=np.float32))
    assert np.all(first == 1.0)


def test_clear_drops_partial_chunk():
    aggregator = ChunkAggregator(chunk_size=4)
    aggregator.push(np.ones(3, dtype=np.float32))
    aggregator.clear()
    assert aggregator.pending == 0
    chunks = aggregator.push(np.zeros(4, dtype=np.float32))
    assert np.all(chunks[0] == 0.0)


def test_invalid_chunk_size():
    with pytest.raises(ValueError):
        ChunkAggregator(chunk_size=0)
