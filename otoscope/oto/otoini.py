"""oto.ini import/export for timing records.

Each non-blank line has the form::

    filename=alias,offset,consonant,cutoff,preutter,overlap

Parsing is best-effort because oto files are hand-edited and produced by
many third-party tools: lines without ``=`` are skipped, missing or
non-numeric fields read as 0, and the cutoff is always stored as a
non-positive value.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path

from ..config import config
from .record import Project, TimingRecord, infer_alias, round_ms

__all__ = [
    'parse',
    'serialize',
    'infer_alias',
    'key_for',
    'decode_oto',
    'read_oto',
    'write_oto',
]

logger = logging.getLogger(__name__)

# Candidate encodings tried, in order, when auto-detecting
AUTO_ENCODINGS = ('utf-8', 'shift_jis', 'cp1252')


def parse(text: str) -> list[TimingRecord]:
    """Parse oto.ini text into timing records."""
    lines = str(text).replace('\r\n', '\n').replace('\r', '\n').split('\n')

    records = []
    for raw in lines:
        if not raw.strip():
            continue

        filename, sep, rest = raw.partition('=')
        if not sep:
            continue

        parts = rest.split(',')

        def field(index: int) -> int:
            return round_ms(parts[index]) if index < len(parts) else 0

        records.append(TimingRecord(
            filename=filename.strip(),
            alias=parts[0].strip(),
            offset=field(1),
            consonant=field(2),
            cutoff=-abs(field(3)),
            preutter=field(4),
            overlap=field(5),
        ))

    return records


def serialize(records) -> str:
    """Serialize timing records to oto.ini text (no trailing newline)."""
    lines = []
    for r in records:
        values = [
            r.alias or '',
            round_ms(r.offset),
            round_ms(r.consonant),
            round_ms(r.cutoff),
            round_ms(r.preutter),
            round_ms(r.overlap),
        ]
        lines.append(f"{r.filename}=" + ','.join(str(v) for v in values))
    return '\n'.join(lines)


def key_for(record: TimingRecord) -> str:
    """Stable identity key ``filename|alias`` for a record."""
    return record.key


def _count_japanese_chars(text: str) -> int:
    """Count hiragana, katakana, CJK ideographs and half-width katakana."""
    n = 0
    for ch in text:
        code = ord(ch)
        if (0x3040 <= code <= 0x30FF or
                0x4E00 <= code <= 0x9FFF or
                0xFF66 <= code <= 0xFF9D):
            n += 1
    return n


def decode_oto(data: bytes, encoding: str | None = None) -> tuple[str, str]:
    """Decode raw oto.ini bytes.

    Args:
        data: File contents
        encoding: Codec name, or None to detect

    Returns:
        (text, encoding) tuple with the encoding actually used
    """
    if encoding:
        try:
            codecs.lookup(encoding)
        except LookupError:
            logger.warning(f"Unknown encoding {encoding!r}, decoding as utf-8")
            return data.decode('utf-8', errors='replace'), 'utf-8'
        return data.decode(encoding, errors='replace'), encoding

    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode('utf-8', errors='replace'), 'utf-8'
    if data.startswith(codecs.BOM_UTF16_LE):
        return data[len(codecs.BOM_UTF16_LE):].decode('utf-16-le', errors='replace'), 'utf-16-le'

    candidates = []
    for enc in AUTO_ENCODINGS:
        try:
            text = data.decode(enc)
        except UnicodeDecodeError:
            continue
        candidates.append((enc, text, _count_japanese_chars(text)))

    if not candidates:
        return data.decode('utf-8', errors='replace'), 'utf-8'

    # Most Japanese characters wins; utf-8 wins ties
    candidates.sort(key=lambda c: (-c[2], c[0] != 'utf-8'))
    enc, text, _ = candidates[0]
    return text, enc


def read_oto(file_path: str | Path, encoding: str | None = None) -> Project:
    """Read an oto.ini file into a Project."""
    file_path = Path(file_path)
    data = file_path.read_bytes()
    text, used = decode_oto(data, encoding)
    project = Project(parse(text), encoding=used, path=file_path)
    logger.info(f"Read {len(project)} records from {file_path} ({used})")
    return project


def write_oto(project, file_path: str | Path, encoding: str | None = None):
    """Write a Project (or any iterable of records) to an oto.ini file.

    Args:
        project: Project or list of TimingRecord
        file_path: Output file path
        encoding: Codec name; defaults to the project's source encoding
    """
    file_path = Path(file_path)
    if encoding is None:
        encoding = getattr(project, 'encoding', None) or config['io']['default_encoding']

    text = serialize(project)
    try:
        data = text.encode(encoding)
    except (UnicodeEncodeError, LookupError) as e:
        logger.warning(f"Cannot write {file_path} as {encoding} ({e}), using utf-8")
        data = text.encode('utf-8')

    file_path.write_bytes(data)
