"""Min/max waveform envelope for drawing a sample at pixel resolution."""

from __future__ import annotations

import math

import numpy as np


def compute_envelope(samples: np.ndarray, total_ms: float, view_start_ms: float,
                     visible_window_ms: float, width: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Per-column minimum and maximum of the samples in a time window.

    The window is split into chunks of ``max(1, samples_in_view // width)``
    samples; each chunk becomes one vertical line from its minimum to its
    maximum. Long windows therefore produce about ``width`` columns and
    short ones one column per sample.

    Args:
        samples: Mono samples
        total_ms: Duration of the whole buffer in ms
        view_start_ms: Start of the window
        visible_window_ms: Length of the window
        width: Target number of columns

    Returns:
        (mins, maxs) arrays of equal length (empty if nothing is visible)
    """
    samples = np.asarray(samples)
    total_samples = len(samples)
    if total_samples == 0 or total_ms <= 0 or width <= 0:
        return np.zeros(0), np.zeros(0)

    end_ms = view_start_ms + visible_window_ms
    start = max(0, math.floor(view_start_ms / total_ms * total_samples))
    end = min(total_samples, math.ceil(end_ms / total_ms * total_samples))
    if end <= start:
        return np.zeros(0), np.zeros(0)

    step = max(1, (end - start) // int(width))
    segment = samples[start:end]
    offsets = np.arange(0, len(segment), step)
    return np.minimum.reduceat(segment, offsets), np.maximum.reduceat(segment, offsets)


def overview_envelope(samples: np.ndarray, width: int) -> tuple[np.ndarray, np.ndarray]:
    """Envelope of the whole buffer (for the overview strip)."""
    return compute_envelope(samples, 1.0, 0.0, 1.0, width)
