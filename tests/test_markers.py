"""Tests for absolute marker derivation and marker moves."""

import os
import random
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from otoscope.oto.markers import (
    Marker, apply_preset, derive_markers, marker_position, play_region, set_marker
)
from otoscope.oto.record import TimingRecord


def make_record(**kwargs):
    return TimingRecord('a.wav', 'A', **kwargs)


def test_forward_cutoff():
    """A non-positive cutoff is measured from the offset."""
    record = make_record(offset=100, cutoff=-200)
    assert marker_position(record, Marker.CUTOFF, 1000) == 300
    print("test_forward_cutoff PASSED")


def test_backward_cutoff():
    """A positive cutoff is measured back from the end of the sample."""
    record = make_record(offset=100, cutoff=200)
    assert marker_position(record, Marker.CUTOFF, 1000) == 800
    print("test_backward_cutoff PASSED")


def test_cutoff_clamped():
    assert marker_position(make_record(offset=900, cutoff=-500), Marker.CUTOFF, 1000) == 1000
    assert marker_position(make_record(cutoff=2000), Marker.CUTOFF, 1000) == 0
    assert marker_position(make_record(offset=100, cutoff=-200), Marker.CUTOFF, 0) == 0
    # Offset at the very end of the sample
    assert marker_position(make_record(offset=1000, cutoff=-50), Marker.CUTOFF, 1000) == 1000
    assert marker_position(make_record(offset=1000, cutoff=50), Marker.CUTOFF, 1000) == 950
    record = make_record(offset=1000, cutoff=-50)
    set_marker(record, Marker.CUTOFF, 1200, 1000)
    assert record.cutoff == 0


def test_relative_markers():
    record = make_record(offset=50, consonant=100, preutter=70, overlap=30)
    markers = derive_markers(record, 1000)
    assert markers[Marker.OFFSET] == 50
    assert markers[Marker.OVERLAP] == 80
    assert markers[Marker.PREUTTER] == 120
    assert markers[Marker.CONSONANT] == 150
    assert list(markers) == list(Marker)


def test_marker_field_names():
    assert Marker.OFFSET.field == 'offset'
    assert Marker.CUTOFF.field == 'cutoff'
    assert [m.value for m in Marker] == ['offset', 'overlap', 'preutter', 'consonant', 'cutoff']


def test_offset_cascade():
    """Moving the offset re-clamps the relative fields against the new offset."""
    record = make_record(offset=0, consonant=500, preutter=50, overlap=200)
    set_marker(record, Marker.OFFSET, 900, 1000)

    assert record.offset == 900
    assert record.consonant == 100
    assert record.preutter == 50
    assert record.overlap == 100
    print("test_offset_cascade PASSED")


def test_offset_clamped_to_duration():
    record = make_record()
    set_marker(record, Marker.OFFSET, 1500, 1000)
    assert record.offset == 1000
    set_marker(record, Marker.OFFSET, -20, 1000)
    assert record.offset == 0


def test_set_cutoff_writes_forward_form():
    record = make_record(offset=100, cutoff=200)
    set_marker(record, Marker.CUTOFF, 700, 1000)
    assert record.cutoff == -600
    assert marker_position(record, Marker.CUTOFF, 1000) == 700


def test_set_relative_marker_clamped_and_rounded():
    record = make_record(offset=100)

    set_marker(record, Marker.PREUTTER, 50, 1000)
    assert record.preutter == 0

    set_marker(record, Marker.OVERLAP, 5000, 1000)
    assert record.overlap == 900

    set_marker(record, Marker.CONSONANT, 250.5, 1000)
    assert record.consonant == 151


def test_set_marker_unknown_duration():
    """With no known duration every move collapses to 0."""
    record = make_record(offset=100, consonant=50)
    set_marker(record, Marker.CONSONANT, 400, 0)
    assert record.consonant == 0
    set_marker(record, Marker.OFFSET, 400, 0)
    assert record.offset == 0


def test_moves_stay_in_bounds():
    rng = random.Random(1234)
    for _ in range(500):
        total = rng.randint(1, 5000)
        record = make_record()
        for _ in range(5):
            marker = rng.choice(list(Marker))
            set_marker(record, marker, rng.uniform(-1000, total + 1000), total)
            for position in derive_markers(record, total).values():
                assert 0 <= position <= total


def test_set_marker_rejects_non_marker():
    with pytest.raises(ValueError):
        set_marker(make_record(), 'consonant', 10, 100)
    with pytest.raises(ValueError):
        marker_position(make_record(), 'consonant', 100)


def test_play_region():
    assert play_region(make_record(offset=100, cutoff=-200), 1000) == (100, 300)
    assert play_region(make_record(offset=100, cutoff=300), 1000) == (100, 700)
    # Cutoff at the offset plays to the end
    assert play_region(make_record(offset=100, cutoff=0), 1000) == (100, 1000)


def test_apply_preset():
    record = make_record(offset=40, consonant=1, cutoff=5, preutter=2, overlap=3)
    apply_preset(record, {'overlap': 120, 'preutter': 300, 'consonant': 430, 'cutoff': 580})
    assert (record.overlap, record.preutter, record.consonant, record.cutoff) == (120, 300, 430, -580)
    assert record.offset == 40

    apply_preset(record, {'overlap': 10})
    assert record.overlap == 10
    assert record.preutter == 300


if __name__ == "__main__":
    test_forward_cutoff()
    test_backward_cutoff()
    test_cutoff_clamped()
    test_relative_markers()
    test_offset_cascade()
    test_set_cutoff_writes_forward_form()
    test_moves_stay_in_bounds()
    test_play_region()
    test_apply_preset()
    print("\nAll tests passed!")
