"""
Spectrogram computation and rendering.

This module turns a mono sample buffer into a magnitude spectrogram in
decibels and maps a visible time window of it to an RGBA image.

Computation:
    - Fixed analysis window (512 samples, symmetric Hann) and hop (256)
    - Frames start at multiples of the hop; samples past the end of the
      buffer read as zero, so even an empty buffer yields one frame
    - Magnitude over window_size / 2 bins via a direct-form DFT against
      a cosine/sine basis computed once per window size
    - dB = 20 * log10(magnitude + 1e-8), with global min/max tracked

Rendering:
    - Each output column picks the nearest spectrogram frame in the
      visible window, each output row a frequency bin (low frequencies
      at the bottom), no interpolation
    - Values are normalized with the grid's min/max and passed through
      a fixed color ramp whose red channel rises monotonically with level

The grid is computed once per buffer and cached (see cache.py); rendering
is cheap and runs on every redraw.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from scipy.signal import windows

WINDOW_SIZE = 512
HOP_SIZE = 256
DB_EPSILON = 1e-8
RANGE_EPSILON = 1e-6


@dataclass(frozen=True)
class SpectrogramGrid:
    """Magnitude spectrogram of one sample buffer.

    Attributes:
        data: dB values, shape (num_frames, window_size // 2), read-only
        min_db: Smallest value in data
        max_db: Largest value in data
        hop: Hop size in samples
        window_size: Analysis window length in samples
        sample_rate: Sample rate of the source buffer (Hz)
    """
    data: np.ndarray
    min_db: float
    max_db: float
    hop: int
    window_size: int
    sample_rate: int

    @property
    def num_frames(self) -> int:
        return self.data.shape[0]

    @property
    def num_bins(self) -> int:
        return self.data.shape[1]

    @property
    def ms_per_hop(self) -> float:
        return 1000.0 * self.hop / self.sample_rate

    def bin_frequency(self, bin_index: int) -> float:
        """Center frequency of a bin in Hz."""
        return bin_index * self.sample_rate / self.window_size


@lru_cache(maxsize=8)
def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window: 0.5 * (1 - cos(2*pi*n / (size - 1)))."""
    window = windows.hann(size, sym=True)
    window.flags.writeable = False
    return window


@lru_cache(maxsize=8)
def _dft_basis(size: int) -> tuple[np.ndarray, np.ndarray]:
    """Cosine and sine rows for bins 0 .. size/2 - 1, shape (size // 2, size)."""
    n = np.arange(size)
    k = np.arange(size // 2)
    angle = 2.0 * np.pi * np.outer(k, n) / size
    cos_basis = np.cos(angle)
    sin_basis = np.sin(angle)
    cos_basis.flags.writeable = False
    sin_basis.flags.writeable = False
    return cos_basis, sin_basis


def compute_spectrogram(
    samples: np.ndarray,
    sample_rate: int,
    window_size: int = WINDOW_SIZE,
    hop_size: int = HOP_SIZE,
) -> SpectrogramGrid:
    """
    Compute a dB magnitude spectrogram.

    Args:
        samples: Mono float samples in [-1, 1] (multi-channel input is averaged)
        sample_rate: Sample rate in Hz
        window_size: Analysis window length in samples
        hop_size: Distance between frame starts in samples

    Returns:
        SpectrogramGrid with max(1, (len - window_size) // hop_size + 1) frames

    Raises:
        ValueError: If sample_rate, window_size or hop_size is not positive
    """
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    if window_size < 2 or hop_size <= 0:
        raise ValueError(f"Invalid window/hop size: {window_size}/{hop_size}")

    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim > 1:
        samples = np.mean(samples, axis=1)

    num_frames = max(1, (len(samples) - window_size) // hop_size + 1)

    # Zero-pad so every frame has window_size samples
    needed = (num_frames - 1) * hop_size + window_size
    if len(samples) < needed:
        samples = np.concatenate([samples, np.zeros(needed - len(samples))])

    frames = np.lib.stride_tricks.sliding_window_view(samples, window_size)[::hop_size][:num_frames]
    windowed = frames * hann_window(window_size)

    cos_basis, sin_basis = _dft_basis(window_size)
    re = windowed @ cos_basis.T
    im = -(windowed @ sin_basis.T)
    magnitude = np.sqrt(re * re + im * im)
    db = 20.0 * np.log10(magnitude + DB_EPSILON)
    db.flags.writeable = False

    return SpectrogramGrid(
        data=db,
        min_db=float(db.min()),
        max_db=float(db.max()),
        hop=hop_size,
        window_size=window_size,
        sample_rate=int(sample_rate),
    )


def color_map(t) -> np.ndarray:
    """
    Map normalized levels in [0, 1] to RGBA bytes.

    Red rises linearly (saturating at t = 2/3), green follows t**1.5 and
    blue falls from each end of two half ranges. Values outside [0, 1]
    are clamped.

    Returns:
        uint8 array with a trailing axis of length 4
    """
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    r = np.floor(255 * (1.5 * t))
    g = np.floor(255 * np.power(t, 1.5))
    b = np.floor(255 * np.where(t < 0.5, 0.5 - t, 1.0 - t) * 1.6)
    a = np.full_like(t, 255)
    rgba = np.stack([r, g, b, a], axis=-1)
    return np.clip(rgba, 0, 255).astype(np.uint8)


def visible_columns(grid: SpectrogramGrid, view_start_ms: float,
                    visible_window_ms: float) -> tuple[int, int]:
    """First and last frame index (inclusive) covering the visible window."""
    ms_per_hop = grid.ms_per_hop
    col_start = max(0, math.floor(view_start_ms / ms_per_hop))
    col_end = min(grid.num_frames - 1, math.ceil((view_start_ms + visible_window_ms) / ms_per_hop))
    return col_start, col_end


def render_spectrogram(
    grid: SpectrogramGrid,
    view_start_ms: float,
    visible_window_ms: float,
    width: int,
    height: int,
) -> np.ndarray:
    """
    Render the visible part of a spectrogram as an RGBA image.

    Args:
        grid: Computed spectrogram
        view_start_ms: Time at the left edge
        visible_window_ms: Duration shown across the image
        width: Output width in pixels
        height: Output height in pixels

    Returns:
        uint8 array of shape (height, width, 4), row 0 at the top
        (highest frequency)
    """
    width = max(0, int(width))
    height = max(0, int(height))
    if width == 0 or height == 0:
        return np.zeros((height, width, 4), dtype=np.uint8)

    col_start, col_end = visible_columns(grid, view_start_ms, visible_window_ms)
    view_cols = max(1, col_end - col_start + 1)

    xs = np.arange(width)
    cols = col_start + np.floor(xs / width * view_cols).astype(int)
    cols = np.clip(cols, 0, grid.num_frames - 1)

    ys = np.arange(height)
    bins = np.floor((1.0 - ys / height) * (grid.num_bins - 1)).astype(int)
    bins = np.clip(bins, 0, grid.num_bins - 1)

    # (height, width) block of dB values
    values = grid.data[np.ix_(cols, bins)].T
    t = (values - grid.min_db) / max(RANGE_EPSILON, grid.max_db - grid.min_db)
    return color_map(t)
