"""
Time <-> pixel mapping for the waveform and spectrogram views.

The view shows a window of ``visible_window_ms`` starting at
``view_start_ms`` across ``viewport_width`` pixels. ``zoom`` is the
horizontal magnification relative to fit-to-width (zoom 1 shows the
whole sample).

    ms_to_x(ms) = (ms - view_start_ms) / visible_window_ms * viewport_width
    x_to_ms(x)  = view_start_ms + x / viewport_width * visible_window_ms

The two are exact inverses. Zooming keeps the time under the anchor
pixel fixed; panning and zooming keep the window inside the sample.
With no duration or no width every position maps to 0.
"""

from __future__ import annotations

from ..units import clamp

MIN_ZOOM = 1.0
MAX_ZOOM = 128.0
MIN_VERTICAL_ZOOM = 0.25
MAX_VERTICAL_ZOOM = 4.0


class ViewTransform:
    """Horizontal zoom/scroll state of a sample view."""

    def __init__(self, total_ms: float = 0.0, viewport_width: float = 800,
                 zoom: float = 1.0, view_start_ms: float = 0.0,
                 min_zoom: float = MIN_ZOOM, max_zoom: float = MAX_ZOOM):
        self.total_ms = max(0.0, float(total_ms))
        self.viewport_width = max(0.0, float(viewport_width))
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.zoom = clamp(float(zoom), min_zoom, max_zoom)
        self.vertical_zoom = 1.0
        self.view_start_ms = 0.0
        self.set_view_start(view_start_ms)

    def __repr__(self):
        return (f"ViewTransform(total_ms={self.total_ms}, viewport_width={self.viewport_width}, "
                f"zoom={self.zoom}, view_start_ms={self.view_start_ms})")

    # -------------------------------------------------------------------------
    # Derived quantities
    # -------------------------------------------------------------------------

    @property
    def visible_window_ms(self) -> float:
        """Duration shown across the viewport (at least 1 ms once a duration is known)."""
        if not self.total_ms:
            return 0.0
        return max(1.0, self.total_ms / max(1.0, self.zoom))

    @property
    def max_view_start_ms(self) -> float:
        return max(0.0, self.total_ms - self.visible_window_ms)

    @property
    def visible_range(self) -> tuple[float, float]:
        """(start_ms, end_ms) of the visible window."""
        return self.view_start_ms, self.view_start_ms + self.visible_window_ms

    def _is_degenerate(self) -> bool:
        return not self.total_ms or not self.viewport_width

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def ms_to_x(self, ms: float) -> float:
        """Pixel column of a time."""
        if self._is_degenerate():
            return 0.0
        return (ms - self.view_start_ms) / self.visible_window_ms * self.viewport_width

    def x_to_ms(self, x: float) -> float:
        """Time under a pixel column."""
        if self._is_degenerate():
            return 0.0
        return self.view_start_ms + x / self.viewport_width * self.visible_window_ms

    # -------------------------------------------------------------------------
    # State changes
    # -------------------------------------------------------------------------

    def set_view_start(self, ms: float):
        """Scroll so that ``ms`` is at pixel 0 (clamped)."""
        self.view_start_ms = clamp(float(ms), 0.0, self.max_view_start_ms)

    def set_duration(self, total_ms: float):
        """Change the sample duration, keeping zoom and re-clamping the scroll."""
        self.total_ms = max(0.0, float(total_ms))
        self.set_view_start(self.view_start_ms)

    def resize(self, viewport_width: float):
        self.viewport_width = max(0.0, float(viewport_width))

    def zoom_at(self, x: float, zoom: float):
        """Set the zoom level keeping the time under pixel ``x`` in place."""
        anchor_ms = self.x_to_ms(x)
        self.zoom = clamp(float(zoom), self.min_zoom, self.max_zoom)
        if self._is_degenerate():
            self.view_start_ms = 0.0
            return
        fraction = x / self.viewport_width
        self.set_view_start(anchor_ms - fraction * self.visible_window_ms)

    def zoom_by(self, factor: float, x: float | None = None):
        """Multiply the zoom level, anchored at ``x`` (viewport center by default)."""
        if x is None:
            x = self.viewport_width / 2
        self.zoom_at(x, self.zoom * factor)

    def pan(self, direction: float, fraction: float = 0.1):
        """Scroll by ``fraction`` of the visible window; direction > 0 moves right."""
        delta = self.visible_window_ms * fraction * direction
        self.set_view_start(self.view_start_ms + delta)

    def center_on(self, ms: float):
        """Scroll so that ``ms`` is in the middle of the viewport (clamped)."""
        self.set_view_start(ms - self.visible_window_ms / 2)

    def fit(self):
        """Show the whole sample."""
        self.zoom = max(1.0, self.min_zoom)
        self.view_start_ms = 0.0

    def zoom_vertical(self, factor: float):
        """Scale the waveform amplitude display."""
        self.vertical_zoom = clamp(self.vertical_zoom * factor,
                                   MIN_VERTICAL_ZOOM, MAX_VERTICAL_ZOOM)
