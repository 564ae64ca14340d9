"""Tests for background spectrogram computation (requires PyQt6)."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

pytest.importorskip("PyQt6.QtCore")

from otoscope.audio.loader import AudioBuffer
from otoscope.visualization.cache import SpectrogramCache
from otoscope.visualization.spectrogram import compute_spectrogram
from otoscope.visualization.worker import SpectrogramComputeThread, SpectrogramLoader


def test_thread_emits_result():
    samples = np.zeros(2000)
    thread = SpectrogramComputeThread('a.wav', 3, samples, 16000, 512, 256)
    results, errors = [], []
    thread.computed.connect(results.append)
    thread.error.connect(errors.append)

    # Run synchronously in this thread
    thread.run()

    assert errors == []
    assert len(results) == 1
    key, generation, grid = results[0]
    assert (key, generation) == ('a.wav', 3)
    assert grid.num_frames == (2000 - 512) // 256 + 1


def test_thread_forwards_errors():
    thread = SpectrogramComputeThread('a.wav', 0, np.zeros(100), 0, 512, 256)
    errors = []
    thread.error.connect(errors.append)
    thread.run()
    assert len(errors) == 1
    assert 'Sample rate must be positive' in errors[0]
    assert 'Traceback' in errors[0]


def test_loader_stores_current_results():
    cache = SpectrogramCache()
    loader = SpectrogramLoader(cache)
    ready = []
    loader.ready.connect(ready.append)

    grid = compute_spectrogram(np.zeros(1000), 16000)
    loader._on_computed(('a.wav', cache.generation('a.wav'), grid))
    assert ready == ['a.wav']
    assert cache.get('a.wav') is grid

    # Cached grids are returned without starting a worker
    buffer = AudioBuffer(samples=np.zeros(1000, dtype=np.float32), sample_rate=16000)
    assert loader.request('a.wav', buffer) is grid
    assert not loader.is_computing('a.wav')


def test_loader_drops_stale_results():
    cache = SpectrogramCache()
    loader = SpectrogramLoader(cache)
    ready = []
    loader.ready.connect(ready.append)

    generation = cache.generation('a.wav')
    cache.invalidate('a.wav')
    loader._on_computed(('a.wav', generation, compute_spectrogram(np.zeros(1000), 16000)))

    assert ready == []
    assert 'a.wav' not in cache
