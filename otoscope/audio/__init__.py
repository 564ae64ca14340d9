"""Audio loading and playback modules.

The player needs PortAudio at import time and is imported from
``otoscope.audio.player`` directly.
"""

from .loader import AudioBuffer, load_audio, sample_duration_ms

__all__ = ['AudioBuffer', 'load_audio', 'sample_duration_ms']
