"""In-memory spectrogram cache keyed by sample identity."""

from __future__ import annotations

import logging
import threading
from typing import Hashable

from .spectrogram import HOP_SIZE, WINDOW_SIZE, SpectrogramGrid, compute_spectrogram

logger = logging.getLogger(__name__)


class SpectrogramCache:
    """
    Computed spectrograms, one per sample.

    Entries are replaced, never updated. Every key has a generation
    counter that ``invalidate`` bumps; a result computed against an
    older generation (for a buffer that has since been replaced or
    unloaded) is dropped by ``store``.

    Worker threads may call ``store``, so the dictionaries are guarded
    by a lock.
    """

    def __init__(self, window_size: int = WINDOW_SIZE, hop_size: int = HOP_SIZE):
        self.window_size = window_size
        self.hop_size = hop_size
        self._entries: dict[Hashable, SpectrogramGrid] = {}
        self._generations: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: Hashable) -> SpectrogramGrid | None:
        with self._lock:
            return self._entries.get(key)

    def generation(self, key: Hashable) -> int:
        """Current generation token for a key; pass it back to ``store``."""
        with self._lock:
            return self._generations.get(key, 0)

    def store(self, key: Hashable, grid: SpectrogramGrid, generation: int | None = None) -> bool:
        """Insert a grid, replacing any previous entry.

        Returns False (and stores nothing) if ``generation`` is given and
        no longer current.
        """
        with self._lock:
            current = self._generations.get(key, 0)
            if generation is not None and generation != current:
                logger.debug(f"Discarding stale spectrogram for {key!r} "
                             f"(generation {generation}, current {current})")
                return False
            self._entries[key] = grid
            return True

    def invalidate(self, key: Hashable):
        """Forget a key's grid; in-flight results for it become stale."""
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def clear(self):
        """Invalidate every key."""
        with self._lock:
            for key in set(self._entries) | set(self._generations):
                self._generations[key] = self._generations.get(key, 0) + 1
            self._entries.clear()

    def get_or_compute(self, key: Hashable, buffer) -> SpectrogramGrid:
        """Return the cached grid for ``key``, computing it from ``buffer`` on a miss."""
        grid = self.get(key)
        if grid is not None:
            return grid

        generation = self.generation(key)
        logger.debug(f"Computing spectrogram for {key!r}")
        grid = compute_spectrogram(buffer.get_mono(), buffer.sample_rate,
                                   self.window_size, self.hop_size)
        self.store(key, grid, generation)
        return grid
