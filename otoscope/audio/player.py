"""
Region playback using sounddevice.

Plays the part of a sample selected by a timing record (offset to
cutoff) or any other ms range. Audio is streamed from a callback on
the PortAudio thread, so the shared position is guarded by a lock.
"""

from __future__ import annotations

import threading
from typing import Callable

import sounddevice as sd

from .loader import AudioBuffer


class AudioPlayer:
    """
    Audio playback controller for one buffer at a time.

    Attributes:
        is_playing: True if audio is currently playing
        current_ms: Current playback position in ms
    """

    def __init__(self):
        self._buffer: AudioBuffer | None = None
        self._is_playing: bool = False
        self._current_frame: int = 0
        self._start_frame: int = 0
        self._end_frame: int = 0
        self._stream: sd.OutputStream | None = None
        self._lock = threading.Lock()
        self._on_playback_finished: Callable[[], None] | None = None

    def set_buffer(self, buffer: AudioBuffer):
        """Set the audio buffer to play."""
        self.stop()
        self._buffer = buffer
        self._current_frame = 0
        self._start_frame = 0
        self._end_frame = len(buffer.samples)

    def set_finished_callback(self, callback: Callable[[], None]):
        """Set callback for when playback finishes."""
        self._on_playback_finished = callback

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def current_ms(self) -> float:
        if self._buffer is None:
            return 0.0
        return self._current_frame * 1000.0 / self._buffer.sample_rate

    def play_region(self, start_ms: float | None = None, end_ms: float | None = None):
        """
        Start playback of a region.

        Args:
            start_ms: Start in ms (None = current position)
            end_ms: End in ms (None = end of buffer)
        """
        if self._buffer is None:
            return

        self.stop()

        sr = self._buffer.sample_rate
        total_frames = len(self._buffer.samples)

        if start_ms is not None:
            self._start_frame = int(start_ms * sr / 1000.0)
        else:
            self._start_frame = self._current_frame

        if end_ms is not None:
            self._end_frame = int(end_ms * sr / 1000.0)
        else:
            self._end_frame = total_frames

        self._start_frame = max(0, min(self._start_frame, total_frames))
        self._end_frame = max(self._start_frame, min(self._end_frame, total_frames))

        self._current_frame = self._start_frame
        self._is_playing = True

        mono = self._buffer.get_mono()

        def callback(outdata, frames, time_info, status):
            with self._lock:
                if not self._is_playing:
                    outdata.fill(0)
                    raise sd.CallbackStop()

                remaining = self._end_frame - self._current_frame
                if remaining <= 0:
                    outdata.fill(0)
                    self._is_playing = False
                    raise sd.CallbackStop()

                chunk_size = min(frames, remaining)
                outdata[:chunk_size, 0] = mono[self._current_frame:self._current_frame + chunk_size]
                if chunk_size < frames:
                    outdata[chunk_size:].fill(0)

                self._current_frame += chunk_size

        def finished_callback():
            self._is_playing = False
            if self._on_playback_finished:
                self._on_playback_finished()

        self._stream = sd.OutputStream(
            samplerate=sr,
            channels=1,
            callback=callback,
            finished_callback=finished_callback,
        )
        self._stream.start()

    def pause(self):
        """Pause playback."""
        if self._stream is not None and self._is_playing:
            self._is_playing = False
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def stop(self):
        """Stop playback and rewind to the region start."""
        self.pause()
        self._current_frame = self._start_frame

    def wait(self):
        """Block until the current region has finished playing."""
        sd.sleep(10)
        while self._is_playing:
            sd.sleep(20)
