"""
Absolute marker positions for timing records.

A record stores its boundaries relative to ``offset`` (and, for a
positive cutoff, relative to the end of the sample). Displaying and
dragging them needs absolute positions in milliseconds from the start
of the sample. This module converts in both directions:

    derive_markers / marker_position: record + duration -> absolute ms
    set_marker: absolute ms -> record fields (clamped, rounded)

Cutoff convention:
    cutoff <= 0: the cutoff marker sits |cutoff| ms after offset
    cutoff > 0:  the cutoff marker sits cutoff ms before the end

Interactive edits always write the first form. A positive cutoff only
appears through direct field assignment.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from .record import TimingRecord, clamp, round_ms


class Marker(Enum):
    """The five boundary markers of a record, in display order."""
    OFFSET = 'offset'
    OVERLAP = 'overlap'
    PREUTTER = 'preutter'
    CONSONANT = 'consonant'
    CUTOFF = 'cutoff'

    @property
    def field(self) -> str:
        """Name of the record field this marker edits."""
        return self.value


# Markers whose field is a plain distance from offset
RELATIVE_MARKERS = (Marker.OVERLAP, Marker.PREUTTER, Marker.CONSONANT)


def marker_position(record: TimingRecord, marker: Marker, total_ms: float = 0):
    """Absolute position of one marker in ms.

    Args:
        record: The timing record
        marker: Which marker
        total_ms: Sample duration in ms (0 if unknown)
    """
    offset = record.offset or 0

    if marker is Marker.OFFSET:
        return offset
    if marker is Marker.OVERLAP:
        return offset + (record.overlap or 0)
    if marker is Marker.PREUTTER:
        return offset + (record.preutter or 0)
    if marker is Marker.CONSONANT:
        return offset + (record.consonant or 0)
    if marker is Marker.CUTOFF:
        c = round_ms(record.cutoff)
        if c <= 0:
            return clamp(offset + abs(c), 0, total_ms)
        return clamp(total_ms - c, 0, total_ms)

    raise ValueError(f"Unknown marker: {marker!r}")


def derive_markers(record: TimingRecord, total_ms: float = 0) -> dict[Marker, int]:
    """Absolute positions of all five markers, keyed by Marker."""
    return {marker: marker_position(record, marker, total_ms) for marker in Marker}


def set_marker(record: TimingRecord, marker: Marker, absolute_ms: float, total_ms: float = 0):
    """Move a marker to an absolute position, updating the record in place.

    Moving the offset does not shift the other markers: their relative
    values are re-clamped against the new offset, which may truncate
    them. Every other marker is clamped into [offset, total_ms].
    """
    if marker is Marker.OFFSET:
        record.offset = round_ms(clamp(absolute_ms, 0, total_ms))
        limit = max(0, total_ms - record.offset)
        for m in RELATIVE_MARKERS:
            value = getattr(record, m.field) or 0
            setattr(record, m.field, round_ms(clamp(value, 0, limit)))
        return

    offset = record.offset or 0
    relative = clamp(absolute_ms - offset, 0, max(0, total_ms - offset))

    if marker in RELATIVE_MARKERS:
        setattr(record, marker.field, round_ms(relative))
    elif marker is Marker.CUTOFF:
        record.cutoff = -round_ms(relative)
    else:
        raise ValueError(f"Unknown marker: {marker!r}")


def play_region(record: TimingRecord, total_ms: float) -> tuple[float, float]:
    """Region (start_ms, end_ms) to audition for a record.

    Runs from the offset to the cutoff marker, or to the end of the
    sample when the cutoff does not lie after the offset.
    """
    start = clamp(round_ms(record.offset), 0, total_ms)
    end = marker_position(record, Marker.CUTOFF, total_ms)
    if end <= start:
        end = total_ms
    return start, end


def apply_preset(record: TimingRecord, presets: Mapping[str, float]):
    """Overwrite the relative fields of a record with preset values.

    Only keys present in ``presets`` are applied; the cutoff is stored
    in the forward (non-positive) form.
    """
    for m in RELATIVE_MARKERS:
        if m.field in presets:
            setattr(record, m.field, round_ms(presets[m.field]))
    if 'cutoff' in presets:
        record.cutoff = -abs(round_ms(presets['cutoff']))
