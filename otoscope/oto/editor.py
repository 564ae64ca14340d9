"""
Edit session for a project of timing records.

This module holds the transient editing state that sits between user
input and the project data:

    - Which record is selected, which marker is highlighted, where the
      cursor is
    - The view transform (zoom / scroll) of the selected sample
    - The set of loaded sample buffers and their spectrogram cache
    - Marker drags, undo and redo

Consistency model:
    A marker drag updates a preview copy of the selected record on every
    pointer move, so derived positions (and anything drawn from them)
    follow the pointer immediately. The canonical record is written
    once, at end_drag(), which also records a single undo step and fires
    the change callback. Non-drag edits (set_marker, set_field, row
    operations) commit immediately.

Undo entries are (action_type, record_index, data) tuples:
    'edit':   data = (before, after) record snapshots
    'insert': data = the inserted record
    'remove': data = the removed record
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping

from ..config import config
from ..visualization.cache import SpectrogramCache
from ..visualization.spectrogram import SpectrogramGrid, render_spectrogram
from ..visualization.view import ViewTransform
from ..visualization.waveform import compute_envelope
from .markers import Marker, apply_preset, derive_markers, play_region, set_marker
from .record import NUMERIC_FIELDS, Project, TimingRecord, clamp, resolve_sample, round_ms

if TYPE_CHECKING:
    from ..audio.loader import AudioBuffer


@dataclass
class _Drag:
    """A marker drag in progress."""
    marker: Marker
    index: int
    preview: TimingRecord


class EditSession:
    """Selection, view, drag and undo state for editing one project."""

    def __init__(self, project: Project, samples: Mapping[str, AudioBuffer] | None = None,
                 viewport_width: float | None = None, max_undo: int | None = None,
                 show_spectrogram: bool | None = None):
        view_cfg = config['view']
        spec_cfg = config['spectrogram']

        self.project = project
        self.samples: dict[str, AudioBuffer] = dict(samples or {})
        self.view = ViewTransform(
            viewport_width=viewport_width if viewport_width is not None else view_cfg['viewport_width'],
            min_zoom=view_cfg['min_zoom'],
            max_zoom=view_cfg['max_zoom'],
        )
        self.cache = SpectrogramCache(spec_cfg['window_size'], spec_cfg['hop_size'])
        self.show_spectrogram = (show_spectrogram if show_spectrogram is not None
                                 else spec_cfg['show_by_default'])

        self.selected_index: int = -1
        self.selected_marker: Marker | None = None
        self.cursor_ms: float = 0.0

        self._drag: _Drag | None = None
        self._undo_stack: list[tuple] = []
        self._redo_stack: list[tuple] = []
        self._max_undo = max_undo if max_undo is not None else config['editor']['max_undo']
        self._on_changed: Callable[[], None] | None = None

        if len(self.project):
            self.select(0)

    def set_changed_callback(self, callback: Callable[[], None]):
        """Set callback fired after every committed change to the project."""
        self._on_changed = callback

    def _notify(self):
        if self._on_changed:
            self._on_changed()

    # -------------------------------------------------------------------------
    # Samples
    # -------------------------------------------------------------------------

    def sample_name_for(self, record: TimingRecord | None) -> str | None:
        """Loaded sample name a record refers to, or None if not loaded."""
        if record is None:
            return None
        return resolve_sample(record.filename, self.samples.keys())

    def buffer_for(self, record: TimingRecord | None) -> AudioBuffer | None:
        name = self.sample_name_for(record)
        return self.samples.get(name) if name is not None else None

    @property
    def buffer(self) -> AudioBuffer | None:
        """Buffer of the selected record's sample."""
        return self.buffer_for(self.selected_record)

    @property
    def total_ms(self) -> int:
        """Duration of the selected sample in whole ms (0 if not loaded)."""
        buffer = self.buffer
        return buffer.total_ms if buffer is not None else 0

    def set_sample(self, name: str, buffer: AudioBuffer):
        """Load or replace a sample buffer.

        The sample's cached spectrogram is invalidated and a default
        record is added if the project has no line for it.
        """
        self.samples[name] = buffer
        self.cache.invalidate(name)
        created = self.project.merge_samples([name])
        if self.selected_index < 0 and len(self.project):
            self.select(0)
        elif self.sample_name_for(self.selected_record) == name:
            self.view.set_duration(self.total_ms)
        if created:
            self._notify()

    def remove_sample(self, name: str):
        """Unload a sample buffer. Records referring to it are kept."""
        self.samples.pop(name, None)
        self.cache.invalidate(name)
        if self.selected_index >= 0:
            self.view.set_duration(self.total_ms)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    @property
    def selected_record(self) -> TimingRecord | None:
        """The selected record, or its drag preview while a drag is active."""
        if self._drag is not None:
            return self._drag.preview
        if 0 <= self.selected_index < len(self.project):
            return self.project[self.selected_index]
        return None

    def select(self, index: int):
        """Select a record (clamped) and center the view on its offset."""
        self.cancel_drag()
        if not len(self.project):
            self.selected_index = -1
            return
        self.selected_index = clamp(index, 0, len(self.project) - 1)
        record = self.project[self.selected_index]
        self.view.set_duration(self.total_ms)
        self.view.center_on(record.offset)
        self.cursor_ms = record.offset

    def select_next(self):
        if self.selected_index < len(self.project) - 1:
            self.select(self.selected_index + 1)

    def select_previous(self):
        if self.selected_index > 0:
            self.select(self.selected_index - 1)

    def select_marker(self, marker: Marker | None):
        self.selected_marker = marker

    def move_cursor(self, x: float):
        """Put the cursor under a pixel column."""
        self.cursor_ms = self.view.x_to_ms(clamp(x, 0, self.view.viewport_width))

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def zoom_wheel(self, x: float, notches: float):
        """Zoom by one wheel step per notch, keeping the time under ``x`` fixed."""
        self.view.zoom_by(config['view']['zoom_step'] ** notches, x)

    def pan(self, direction: float):
        self.view.pan(direction, config['view']['pan_fraction'])

    # -------------------------------------------------------------------------
    # Markers
    # -------------------------------------------------------------------------

    def markers(self) -> dict[Marker, int]:
        """Absolute marker positions of the selected record (empty if none)."""
        record = self.selected_record
        if record is None:
            return {}
        return derive_markers(record, self.total_ms)

    def marker_x(self) -> dict[Marker, float]:
        """Pixel columns of the selected record's markers."""
        return {m: self.view.ms_to_x(ms) for m, ms in self.markers().items()}

    def _commit(self, index: int, before: TimingRecord) -> bool:
        """Record an undo step if project[index] differs from ``before``."""
        after = self.project[index]
        if after == before:
            return False
        self._push_undo('edit', index, (before, after.copy()))
        self._notify()
        return True

    def set_marker(self, marker: Marker, absolute_ms: float) -> bool:
        """Move a marker of the selected record and commit immediately."""
        if self._drag is not None or self.selected_record is None:
            return False
        record = self.project[self.selected_index]
        before = record.copy()
        set_marker(record, marker, absolute_ms, self.total_ms)
        return self._commit(self.selected_index, before)

    def set_marker_at_cursor(self, marker: Marker) -> bool:
        return self.set_marker(marker, self.cursor_ms)

    def set_field(self, name: str, value) -> bool:
        """Assign a record field directly (alias, filename or a numeric field).

        Numeric values are rounded but not clamped; this is the only path
        that can store a positive (end-anchored) cutoff.
        """
        if self._drag is not None or self.selected_record is None:
            return False
        record = self.project[self.selected_index]
        before = record.copy()
        if name in NUMERIC_FIELDS:
            setattr(record, name, round_ms(value))
        elif name in ('alias', 'filename'):
            setattr(record, name, str(value))
        else:
            raise ValueError(f"Unknown record field: {name!r}")
        if name == 'filename':
            self.view.set_duration(self.total_ms)
        return self._commit(self.selected_index, before)

    def rename_selected(self, alias: str) -> bool:
        return self.set_field('alias', alias)

    def apply_preset(self, presets: Mapping[str, float] | None = None) -> bool:
        """Overwrite the selected record's relative fields with preset values."""
        if self._drag is not None or self.selected_record is None:
            return False
        record = self.project[self.selected_index]
        before = record.copy()
        apply_preset(record, presets if presets is not None else config['presets'])
        return self._commit(self.selected_index, before)

    # -------------------------------------------------------------------------
    # Dragging
    # -------------------------------------------------------------------------

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def begin_drag(self, marker: Marker):
        """Start dragging a marker of the selected record."""
        if self._drag is not None:
            raise RuntimeError(f"Already dragging {self._drag.marker.value}")
        if self.selected_record is None:
            raise RuntimeError("No record selected")
        self.selected_marker = marker
        self._drag = _Drag(marker, self.selected_index, self.project[self.selected_index].copy())

    def drag_to(self, x: float) -> dict[Marker, int]:
        """Move the dragged marker to a pixel column. Returns the preview positions."""
        if self._drag is None:
            return self.markers()
        self.move_cursor(x)
        return self.drag_to_ms(self.cursor_ms)

    def drag_to_ms(self, absolute_ms: float) -> dict[Marker, int]:
        if self._drag is None:
            return self.markers()
        set_marker(self._drag.preview, self._drag.marker, absolute_ms, self.total_ms)
        return self.markers()

    def end_drag(self) -> bool:
        """Commit the drag preview into the project. Returns True if anything changed."""
        if self._drag is None:
            return False
        drag = self._drag
        self._drag = None
        record = self.project[drag.index]
        before = record.copy()
        record.assign(drag.preview)
        return self._commit(drag.index, before)

    def cancel_drag(self):
        """Drop the drag preview without touching the project."""
        self._drag = None

    # -------------------------------------------------------------------------
    # Row operations
    # -------------------------------------------------------------------------

    def duplicate_selected(self) -> int | None:
        """Insert a copy of the selected record after it and select the copy."""
        self.cancel_drag()
        if self.selected_record is None:
            return None
        index = self.project.duplicate(self.selected_index)
        self._push_undo('insert', index, self.project[index])
        self.select(index)
        self._notify()
        return index

    def delete_selected(self) -> TimingRecord | None:
        """Remove the selected record; the selection moves to its neighbour."""
        self.cancel_drag()
        if self.selected_record is None:
            return None
        index = self.selected_index
        record = self.project.remove(index)
        self._push_undo('remove', index, record)
        self.select(min(index, len(self.project) - 1))
        self._notify()
        return record

    # -------------------------------------------------------------------------
    # Undo / redo
    # -------------------------------------------------------------------------

    def _push_undo(self, action_type: str, index: int, data):
        self._undo_stack.append((action_type, index, data))
        if len(self._undo_stack) > self._max_undo:
            self._undo_stack.pop(0)
        self._redo_stack.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        """Revert the most recent committed change."""
        self.cancel_drag()
        if not self._undo_stack:
            return False

        entry = self._undo_stack.pop()
        action_type, index, data = entry
        if action_type == 'edit':
            self.project[index].assign(data[0])
            self._reselect(index)
        elif action_type == 'insert':
            self.project.remove(index)
            self.select(min(index, len(self.project) - 1))
        elif action_type == 'remove':
            self.project.insert(index, data)
            self.select(index)

        self._redo_stack.append(entry)
        self._notify()
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone change."""
        self.cancel_drag()
        if not self._redo_stack:
            return False

        entry = self._redo_stack.pop()
        action_type, index, data = entry
        if action_type == 'edit':
            self.project[index].assign(data[1])
            self._reselect(index)
        elif action_type == 'insert':
            self.project.insert(index, data)
            self.select(index)
        elif action_type == 'remove':
            self.project.remove(index)
            self.select(min(index, len(self.project) - 1))

        self._undo_stack.append(entry)
        self._notify()
        return True

    def _reselect(self, index: int):
        """Select the record an edit was undone on; a filename edit may change the sample."""
        if index != self.selected_index:
            self.select(index)
        else:
            self.view.set_duration(self.total_ms)

    # -------------------------------------------------------------------------
    # Display data
    # -------------------------------------------------------------------------

    def spectrogram(self) -> SpectrogramGrid | None:
        """Spectrogram of the selected sample, computed on first request.

        None while the spectrogram view is off or the sample is not loaded.
        """
        if not self.show_spectrogram:
            return None
        name = self.sample_name_for(self.selected_record)
        if name is None:
            return None
        return self.cache.get_or_compute(name, self.samples[name])

    def render_spectrogram(self, height: int):
        """RGBA image of the visible part of the spectrogram, or None."""
        grid = self.spectrogram()
        if grid is None:
            return None
        return render_spectrogram(grid, self.view.view_start_ms, self.view.visible_window_ms,
                                  int(self.view.viewport_width), height)

    def waveform_envelope(self):
        """(mins, maxs) columns of the visible waveform, or None."""
        buffer = self.buffer
        if buffer is None:
            return None
        return compute_envelope(buffer.get_mono(), buffer.duration_ms, self.view.view_start_ms,
                                self.view.visible_window_ms, int(self.view.viewport_width))

    def play_region(self) -> tuple[float, float] | None:
        """(start_ms, end_ms) of the selected record's audible region, or None."""
        record = self.selected_record
        if record is None or self.buffer is None:
            return None
        return play_region(record, self.total_ms)
