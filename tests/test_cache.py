"""Tests for the spectrogram cache and its generation tokens."""

import os
import sys

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from otoscope.audio.loader import AudioBuffer
from otoscope.visualization import cache as cache_module
from otoscope.visualization.cache import SpectrogramCache
from otoscope.visualization.spectrogram import compute_spectrogram


def make_buffer(n=4000, sample_rate=16000):
    return AudioBuffer(samples=np.zeros(n, dtype=np.float32), sample_rate=sample_rate)


def test_get_or_compute_computes_once(monkeypatch):
    calls = []

    def counting(samples, sample_rate, window_size, hop_size):
        calls.append((len(samples), sample_rate, window_size, hop_size))
        return compute_spectrogram(samples, sample_rate, window_size, hop_size)

    monkeypatch.setattr(cache_module, 'compute_spectrogram', counting)

    cache = SpectrogramCache()
    buffer = make_buffer()
    first = cache.get_or_compute('a.wav', buffer)
    second = cache.get_or_compute('a.wav', buffer)

    assert first is second
    assert calls == [(4000, 16000, 512, 256)]
    assert 'a.wav' in cache
    assert len(cache) == 1


def test_invalidate_forces_recompute():
    cache = SpectrogramCache()
    first = cache.get_or_compute('a.wav', make_buffer())
    cache.invalidate('a.wav')
    assert 'a.wav' not in cache
    assert cache.get('a.wav') is None

    second = cache.get_or_compute('a.wav', make_buffer(8000))
    assert second is not first
    assert second.num_frames > first.num_frames


def test_stale_store_discarded():
    """A result computed before an invalidation is never stored."""
    cache = SpectrogramCache()
    grid = compute_spectrogram(np.zeros(1000), 16000)

    generation = cache.generation('a.wav')
    cache.invalidate('a.wav')
    assert cache.generation('a.wav') == generation + 1

    assert not cache.store('a.wav', grid, generation)
    assert 'a.wav' not in cache

    assert cache.store('a.wav', grid, cache.generation('a.wav'))
    assert cache.get('a.wav') is grid


def test_store_without_generation_replaces():
    cache = SpectrogramCache()
    a = compute_spectrogram(np.zeros(1000), 16000)
    b = compute_spectrogram(np.ones(1000), 16000)
    assert cache.store('k', a)
    assert cache.store('k', b)
    assert cache.get('k') is b


def test_clear_bumps_every_generation():
    cache = SpectrogramCache()
    cache.get_or_compute('a.wav', make_buffer())
    cache.invalidate('b.wav')
    gen_a, gen_b = cache.generation('a.wav'), cache.generation('b.wav')

    cache.clear()
    assert len(cache) == 0
    assert cache.generation('a.wav') == gen_a + 1
    assert cache.generation('b.wav') == gen_b + 1


def test_window_settings_passed_through():
    cache = SpectrogramCache(window_size=256, hop_size=128)
    grid = cache.get_or_compute('a.wav', make_buffer(1024))
    assert grid.num_bins == 128
    assert grid.num_frames == (1024 - 256) // 128 + 1
