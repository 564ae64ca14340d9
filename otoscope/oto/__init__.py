"""Timing records, oto.ini I/O, marker math and the edit session."""

from .record import TimingRecord, Project, round_ms, infer_alias, same_file, resolve_sample
from .markers import Marker, derive_markers, marker_position, set_marker, play_region, apply_preset
from .otoini import (
    parse,
    serialize,
    key_for,
    decode_oto,
    read_oto,
    write_oto
)
from .editor import EditSession

__all__ = [
    'TimingRecord',
    'Project',
    'round_ms',
    'infer_alias',
    'same_file',
    'resolve_sample',
    'Marker',
    'derive_markers',
    'marker_position',
    'set_marker',
    'play_region',
    'apply_preset',
    'parse',
    'serialize',
    'key_for',
    'decode_oto',
    'read_oto',
    'write_oto',
    'EditSession',
]
