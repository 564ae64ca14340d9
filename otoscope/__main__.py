"""
Entry point for Otoscope.

This module provides the command-line interface: it reads an oto.ini,
merges in the samples found next to it, prints every alias with its
absolute marker positions and optionally writes the normalized file
back out or plays one alias' region.

Usage:
    python -m otoscope OTO_FILE [options]

Options:
    --samples, -s         Directory with the voice samples (default: the oto file's)
    --encoding, -e        Encoding of OTO_FILE (default: detect)
    --output, -o          Write the normalized oto.ini here
    --output-encoding     Encoding for --output (default: the source encoding)
    --play, -p            Play the region of this alias
    --config, -c          Path to custom config file (YAML or JSON)
    --verbose, -v         Debug logging

Examples:
    # List the markers of a voice bank
    python -m otoscope voice/oto.ini

    # Convert a Shift_JIS oto.ini to UTF-8
    python -m otoscope voice/oto.ini -o oto_utf8.ini --output-encoding utf-8

    # Listen to one alias
    python -m otoscope voice/oto.ini --play "- a"
"""

import sys
import argparse
import logging
from pathlib import Path

from . import config as config_module
from .audio.loader import load_audio, sample_duration_ms
from .oto.markers import Marker, derive_markers, play_region
from .oto.otoini import read_oto, write_oto
from .oto.record import resolve_sample

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace with:
            - oto_file: Path to the oto.ini file
            - samples: Sample directory (optional)
            - encoding / output_encoding: Codec names (optional)
            - output: Output path (optional)
            - play: Alias to play (optional)
            - config: Path to custom config file (optional)
            - verbose: Debug logging flag
    """
    parser = argparse.ArgumentParser(
        prog="python -m otoscope",
        description="Otoscope - oto.ini timing marker tool"
    )
    parser.add_argument(
        "oto_file",
        help="oto.ini file to open"
    )
    parser.add_argument(
        "--samples", "-s",
        help="Directory containing the samples (default: the oto file's directory)"
    )
    parser.add_argument(
        "--encoding", "-e",
        help="Encoding of the oto file (default: detect utf-8 / shift_jis / cp1252)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Write the normalized oto.ini to this path"
    )
    parser.add_argument(
        "--output-encoding",
        help="Encoding for --output (default: the source encoding)"
    )
    parser.add_argument(
        "--play", "-p",
        help="Play the offset-to-cutoff region of this alias"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to custom config file (YAML or JSON)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def find_samples(directory: Path) -> dict[str, Path]:
    """Map sample file names in a directory to their paths."""
    extensions = {ext.lower() for ext in config_module.config['io']['sample_extensions']}
    return {
        path.name: path
        for path in sorted(directory.iterdir())
        if path.is_file() and path.suffix.lower() in extensions
    }


def format_table(project, durations: dict[str, int]) -> str:
    """Alias table with absolute marker positions (ms)."""
    header = ["filename", "alias"] + [m.value for m in Marker]
    rows = [header]
    for record in project:
        name = resolve_sample(record.filename, durations.keys())
        total_ms = durations.get(name, 0) if name is not None else 0
        positions = derive_markers(record, total_ms)
        rows.append([record.filename, record.alias] + [str(positions[m]) for m in Marker])

    widths = [max(len(row[i]) for row in rows) for i in range(len(header))]
    return '\n'.join(
        '  '.join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        for row in rows
    )


def play_alias(project, alias: str, samples: dict[str, Path]) -> bool:
    """Play the region of the first record with the given alias."""
    record = next((r for r in project if r.alias == alias), None)
    if record is None:
        print(f"Error: alias not found: {alias}", file=sys.stderr)
        return False

    name = resolve_sample(record.filename, samples.keys())
    if name is None:
        print(f"Error: sample not found for {alias}: {record.filename}", file=sys.stderr)
        return False

    # PortAudio is only needed here
    from .audio.player import AudioPlayer

    buffer = load_audio(samples[name])
    start_ms, end_ms = play_region(record, buffer.total_ms)
    logger.info(f"Playing {alias} ({start_ms}-{end_ms} ms of {name})")

    player = AudioPlayer()
    player.set_buffer(buffer)
    player.play_region(start_ms, end_ms)
    player.wait()
    return True


def main(argv=None) -> int:
    """
    Main entry point for the Otoscope command line.

    Returns:
        Exit code (0 for success)
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s %(levelname)s: %(message)s",
    )

    if args.config:
        config_module.reload_config(args.config)

    oto_path = Path(args.oto_file)
    try:
        project = read_oto(oto_path, args.encoding)
    except FileNotFoundError:
        print(f"Error: oto file not found: {oto_path}", file=sys.stderr)
        return 1

    sample_dir = Path(args.samples) if args.samples else oto_path.parent
    samples = find_samples(sample_dir) if sample_dir.is_dir() else {}
    created = project.merge_samples(samples.keys())
    if created:
        logger.info(f"Added {len(created)} records for samples without a line")

    durations = {name: sample_duration_ms(path) for name, path in samples.items()}
    print(format_table(project, durations))

    if args.output:
        write_oto(project, args.output, args.output_encoding)
        logger.info(f"Wrote {len(project)} records to {args.output}")

    if args.play and not play_alias(project, args.play, samples):
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
