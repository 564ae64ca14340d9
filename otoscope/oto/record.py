"""Timing record and project data model."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from pathlib import Path

from ..units import clamp, round_ms

__all__ = [
    'NUMERIC_FIELDS',
    'round_ms',
    'clamp',
    'TimingRecord',
    'basename',
    'infer_alias',
    'same_file',
    'resolve_sample',
    'Project',
]

NUMERIC_FIELDS = ('offset', 'consonant', 'cutoff', 'preutter', 'overlap')


@dataclass
class TimingRecord:
    """One alias line: a labelled region of a sample file.

    All numeric fields are milliseconds. ``offset`` is measured from the
    start of the sample; ``consonant``, ``preutter`` and ``overlap`` are
    measured from ``offset``. ``cutoff`` is signed: zero or negative
    means "|cutoff| ms after offset", positive means "cutoff ms before
    the end of the sample".
    """
    filename: str
    alias: str = ""
    offset: int = 0
    consonant: int = 0
    cutoff: int = 0
    preutter: int = 0
    overlap: int = 0

    def __post_init__(self):
        for name in NUMERIC_FIELDS:
            setattr(self, name, round_ms(getattr(self, name)))

    @property
    def key(self) -> str:
        """Identity key independent of position in the project."""
        return f"{self.filename or ''}|{self.alias or ''}"

    def copy(self) -> TimingRecord:
        return replace(self)

    def assign(self, other: TimingRecord):
        """Copy every field of ``other`` into this record in place."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))


def basename(path: str) -> str:
    """Last component of a path using either separator."""
    return re.split(r'[\\/]', path or '')[-1]


def infer_alias(filename: str) -> str:
    """Alias for a sample without an oto line: its base name without extension."""
    return re.sub(r'\.[^.]+$', '', basename(filename))


def same_file(a: str, b: str) -> bool:
    """True if two sample names refer to the same file.

    Names match exactly, or by case-insensitive base name so that
    ``A.wav`` in an oto line finds ``voice/a.wav`` on disk.
    """
    if not a or not b:
        return False
    if a == b:
        return True
    return basename(a).lower() == basename(b).lower()


def resolve_sample(filename: str, names) -> str | None:
    """Find the sample name a record filename refers to.

    Exact matches win over base-name matches. Returns None when the
    sample is not loaded (yet).
    """
    names = list(names)
    if filename in names:
        return filename
    for name in names:
        if same_file(filename, name):
            return name
    return None


class Project:
    """An ordered sequence of timing records (the contents of one oto.ini)."""

    def __init__(self, records=None, encoding: str = 'utf-8', path: Path | None = None):
        self._records: list[TimingRecord] = list(records or [])
        self.encoding = encoding
        self.path = path

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __getitem__(self, index: int) -> TimingRecord:
        return self._records[index]

    @property
    def records(self) -> list[TimingRecord]:
        """Get list of records (read-only copy)."""
        return self._records.copy()

    def _check_index(self, index: int):
        if index < 0 or index >= len(self._records):
            raise IndexError(f"Record index {index} out of range (0-{len(self._records) - 1})")

    def add(self, record: TimingRecord) -> int:
        """Append a record. Returns its index."""
        self._records.append(record)
        return len(self._records) - 1

    def insert(self, index: int, record: TimingRecord):
        self._records.insert(index, record)

    def remove(self, index: int) -> TimingRecord:
        """Remove record by index. Returns the removed record."""
        self._check_index(index)
        return self._records.pop(index)

    def duplicate(self, index: int) -> int:
        """Insert a copy of a record right after it. Returns the copy's index."""
        self._check_index(index)
        self._records.insert(index + 1, self._records[index].copy())
        return index + 1

    def index_for_sample(self, name: str) -> int | None:
        """Index of the first record referring to a sample, or None."""
        for i, record in enumerate(self._records):
            if same_file(record.filename, name):
                return i
        return None

    def merge_samples(self, names) -> list[TimingRecord]:
        """Add a default record for every sample that has no line yet.

        Returns the newly created records.
        """
        created = []
        for name in names:
            if self.index_for_sample(name) is None:
                record = TimingRecord(filename=name, alias=infer_alias(name))
                self._records.append(record)
                created.append(record)
        return created
