"""Tests for the min/max waveform envelope."""

import os
import sys

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from otoscope.visualization.waveform import compute_envelope, overview_envelope


def test_envelope_full_view():
    samples = np.arange(1000, dtype=float)
    mins, maxs = compute_envelope(samples, 1000, 0, 1000, 10)
    assert len(mins) == len(maxs) == 10
    assert mins[0] == 0 and maxs[0] == 99
    assert mins[-1] == 900 and maxs[-1] == 999


def test_envelope_partial_view():
    samples = np.arange(1000, dtype=float)
    mins, maxs = compute_envelope(samples, 1000, 500, 100, 10)
    assert len(mins) == 10
    assert mins[0] == 500
    assert maxs[-1] == 599


def test_envelope_one_column_per_sample_when_zoomed_in():
    samples = np.sin(np.arange(200))
    mins, maxs = compute_envelope(samples, 200, 0, 20, 800)
    assert len(mins) == 20
    assert np.array_equal(mins, maxs)
    assert np.array_equal(mins, samples[:20])


def test_envelope_degenerate():
    samples = np.arange(100, dtype=float)
    assert len(compute_envelope(samples, 0, 0, 0, 10)[0]) == 0
    assert len(compute_envelope(samples, 100, 0, 100, 0)[0]) == 0
    assert len(compute_envelope(np.zeros(0), 100, 0, 100, 10)[0]) == 0
    assert len(compute_envelope(samples, 100, 200, 50, 10)[0]) == 0


def test_overview_envelope():
    samples = np.linspace(-1, 1, 4000)
    mins, maxs = overview_envelope(samples, 100)
    assert len(mins) == 100
    assert mins.min() == -1
    assert maxs.max() == 1
