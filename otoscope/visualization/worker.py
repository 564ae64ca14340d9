"""
Background spectrogram computation.

Computing a spectrogram costs O(frames * N * N/2) and would stall marker
dragging and zooming if done on the interaction thread, so it runs in a
QThread. Results carry the cache generation they were started against;
the cache drops them if the sample's buffer was replaced or unloaded in
the meantime.
"""

from __future__ import annotations

import logging
import traceback
from typing import Hashable

import numpy as np
from PyQt6.QtCore import QObject, QThread, pyqtSignal

from .cache import SpectrogramCache
from .spectrogram import SpectrogramGrid, compute_spectrogram

logger = logging.getLogger(__name__)


class SpectrogramComputeThread(QThread):
    """
    Background thread for spectrogram computation.

    Signals:
        computed(tuple): (key, generation, SpectrogramGrid)
        error(str): Error message with traceback if computation fails
    """

    computed = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, key: Hashable, generation: int, samples: np.ndarray,
                 sample_rate: int, window_size: int, hop_size: int):
        super().__init__()
        self.key = key
        self.generation = generation
        self.samples = samples
        self.sample_rate = sample_rate
        self.window_size = window_size
        self.hop_size = hop_size

    def run(self):
        try:
            grid = compute_spectrogram(self.samples, self.sample_rate,
                                       self.window_size, self.hop_size)
            self.computed.emit((self.key, self.generation, grid))
        except Exception as e:
            self.error.emit(f"{e}\n{traceback.format_exc()}")


class SpectrogramLoader(QObject):
    """
    Serves spectrograms from a cache, computing misses in the background.

    Signals:
        ready(object): key whose grid has just been stored in the cache
        error(str): Forwarded worker error
    """

    ready = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, cache: SpectrogramCache, parent=None):
        super().__init__(parent)
        self._cache = cache
        # Running threads are referenced here until they finish
        self._threads: list[SpectrogramComputeThread] = []

    @property
    def cache(self) -> SpectrogramCache:
        return self._cache

    def is_computing(self, key: Hashable) -> bool:
        return any(t.key == key and t.isRunning() for t in self._threads)

    def request(self, key: Hashable, buffer) -> SpectrogramGrid | None:
        """
        Return the cached grid, or start computing it and return None.

        ``ready`` is emitted with the key once the grid is available.
        """
        grid = self._cache.get(key)
        if grid is not None:
            return grid

        generation = self._cache.generation(key)
        for thread in self._threads:
            if thread.key == key and thread.generation == generation and thread.isRunning():
                return None

        thread = SpectrogramComputeThread(
            key, generation, buffer.get_mono(), buffer.sample_rate,
            self._cache.window_size, self._cache.hop_size,
        )
        thread.computed.connect(self._on_computed)
        thread.error.connect(self._on_error)
        thread.finished.connect(lambda: self._forget(thread))
        self._threads.append(thread)
        logger.debug(f"Started spectrogram worker for {key!r} (generation {generation})")
        thread.start()
        return None

    def wait(self):
        """Block until every running worker has finished."""
        for thread in list(self._threads):
            thread.wait()

    def _forget(self, thread: SpectrogramComputeThread):
        if thread in self._threads:
            self._threads.remove(thread)

    def _on_computed(self, result: tuple):
        key, generation, grid = result
        if self._cache.store(key, grid, generation):
            self.ready.emit(key)

    def _on_error(self, error_msg: str):
        logger.error(f"Spectrogram error: {error_msg}")
        self.error.emit(error_msg)
