"""Audio file loading utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf

from ..oto.record import round_ms

logger = logging.getLogger(__name__)


@dataclass
class AudioBuffer:
    """Decoded PCM samples of one voice sample."""

    samples: np.ndarray  # Audio samples (mono, or frames x channels)
    sample_rate: int
    channels: int = 1
    file_path: Path | None = None

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000.0

    @property
    def total_ms(self) -> int:
        """Duration rounded to whole milliseconds, as used by marker math."""
        return round_ms(self.duration_ms)

    def get_mono(self) -> np.ndarray:
        """Return mono version of audio (average if stereo)."""
        if self.samples.ndim == 1:
            return self.samples
        return np.mean(self.samples, axis=1)


def load_audio(file_path: str | Path) -> AudioBuffer:
    """
    Load an audio file and return an AudioBuffer.

    Supports formats: WAV, FLAC, OGG, etc. (via soundfile/libsndfile)
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")

    samples, sample_rate = sf.read(file_path, dtype='float32')

    channels = 1 if samples.ndim == 1 else samples.shape[1]
    logger.debug(f"Loaded {file_path} ({sample_rate} Hz, {channels} ch, {len(samples)} frames)")

    return AudioBuffer(
        samples=samples,
        sample_rate=sample_rate,
        channels=channels,
        file_path=file_path,
    )


def sample_duration_ms(file_path: str | Path) -> int:
    """Duration of an audio file in whole ms, read from its header only."""
    info = sf.info(str(file_path))
    return round_ms(info.frames / info.samplerate * 1000.0) if info.samplerate else 0
