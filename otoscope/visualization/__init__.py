"""View transform, spectrogram and waveform data for sample display."""

from .view import ViewTransform
from .spectrogram import SpectrogramGrid, compute_spectrogram, render_spectrogram, color_map
from .cache import SpectrogramCache
from .waveform import compute_envelope, overview_envelope

__all__ = [
    'ViewTransform',
    'SpectrogramGrid',
    'compute_spectrogram',
    'render_spectrogram',
    'color_map',
    'SpectrogramCache',
    'compute_envelope',
    'overview_envelope',
]
