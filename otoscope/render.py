"""Offline spectrogram renderer with timing-marker overlays.

Renders the spectrogram of a voice sample for a time window, with the
five markers of one oto.ini record drawn as vertical lines, without
requiring a GUI. The image is the same one the editor shows (same
analysis window, color ramp and column/row mapping). Supports PNG, PDF
and SVG output.

Usage:
    python -m otoscope.render SAMPLE -o OUTPUT [options]

Example:
    python -m otoscope.render voice/_ka.wav -o ka.png
    python -m otoscope.render voice/_ka.wav -o ka.png --oto voice/oto.ini --alias "- ka"
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
from matplotlib.lines import Line2D

from .audio.loader import load_audio
from .config import config, reload_config
from .oto.markers import Marker, derive_markers
from .oto.otoini import read_oto
from .oto.record import TimingRecord, same_file
from .visualization.spectrogram import compute_spectrogram, render_spectrogram

logger = logging.getLogger(__name__)


def find_record(records, sample_name: str, alias: Optional[str] = None) -> TimingRecord | None:
    """First record for a sample (and alias, if given)."""
    for record in records:
        if not same_file(record.filename, sample_name):
            continue
        if alias is None or record.alias == alias:
            return record
    return None


def _draw_markers(ax, record: TimingRecord, total_ms: float, start_ms: float, end_ms: float):
    """Draw the record's markers that fall inside the window; returns legend handles."""
    colors = config['colors']
    positions = derive_markers(record, total_ms)
    handles = []
    for marker in Marker:
        position = positions[marker]
        color = colors.get(marker.value, 'white')
        if start_ms <= position <= end_ms:
            ax.axvline(position, color=color, linewidth=1.5, zorder=5)
        handles.append(Line2D([0], [0], color=color, linewidth=1.5,
                              label=f'{marker.value} {position}'))
    return handles


def render_markers(
    sample_path: str | Path,
    output_path: str | Path,
    oto_path: Optional[str | Path] = None,
    alias: Optional[str] = None,
    start_ms: float = 0.0,
    end_ms: Optional[float] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    dpi: Optional[int] = None,
    title: Optional[str] = None,
    config_path: Optional[str | Path] = None,
) -> Path:
    """Render a spectrogram image with marker lines.

    This is the public API, importable from scripts:
        from otoscope.render import render_markers
        render_markers('voice/_ka.wav', 'ka.png', oto_path='voice/oto.ini')

    Args:
        sample_path: Path to the sample audio file.
        output_path: Output image path (.png, .pdf, .svg).
        oto_path: oto.ini whose record for this sample is drawn.
        alias: Alias of the record to draw (default: the sample's first record).
        start_ms: Window start in ms.
        end_ms: Window end in ms (None = end of the sample).
        width: Image width in pixels (default from config).
        height: Spectrogram height in pixels (default from config).
        dpi: Output resolution (default from config).
        title: Optional figure title (default: the alias).
        config_path: Path to otoscope config YAML.

    Returns:
        The output path

    Raises:
        ValueError: If the window is empty or the alias is not found
    """
    sample_path = Path(sample_path)
    output_path = Path(output_path)

    if config_path:
        reload_config(config_path)

    render_cfg = config['render']
    width = int(width or render_cfg['width'])
    height = int(height or render_cfg['height'])
    dpi = int(dpi or render_cfg['dpi'])

    buffer = load_audio(sample_path)
    total_ms = buffer.total_ms

    if end_ms is None or end_ms > total_ms:
        end_ms = total_ms
    start_ms = max(0.0, start_ms)
    if start_ms >= end_ms:
        raise ValueError(f"start ({start_ms}) must be less than end ({end_ms})")

    record = None
    if oto_path:
        record = find_record(read_oto(oto_path), sample_path.name, alias)
        if record is None:
            raise ValueError(f"No record for {sample_path.name}"
                             + (f" with alias {alias!r}" if alias else "")
                             + f" in {oto_path}")

    spec_cfg = config['spectrogram']
    grid = compute_spectrogram(buffer.get_mono(), buffer.sample_rate,
                               spec_cfg['window_size'], spec_cfg['hop_size'])
    image = render_spectrogram(grid, start_ms, end_ms - start_ms, width, height)

    fig = plt.figure(figsize=(width / dpi, height / dpi * 1.25))
    ax = fig.add_subplot(1, 1, 1)
    ax.imshow(
        image,
        aspect='auto',
        origin='upper',
        extent=[start_ms, end_ms, 0, buffer.sample_rate / 2],
        interpolation='nearest',
    )
    ax.set_xlim(start_ms, end_ms)
    ax.set_xlabel('Time (ms)')
    ax.set_ylabel('Frequency (Hz)')

    if record is not None:
        handles = _draw_markers(ax, record, total_ms, start_ms, end_ms)
        ax.legend(handles=handles, loc='upper right', fontsize=7,
                  framealpha=0.85, edgecolor='gray', fancybox=False)
        title = title or f'{record.alias} ({record.filename})'

    if title:
        fig.suptitle(title, fontsize=12)

    fig.savefig(str(output_path), dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Saved: {output_path}")
    return output_path


# ---- CLI ----

def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='python -m otoscope.render',
        description='Render a sample spectrogram with oto.ini timing markers.',
    )
    parser.add_argument('sample_file', help='Path to sample audio file')
    parser.add_argument('-o', '--output', required=True, help='Output image path (.png, .pdf, .svg)')
    parser.add_argument('--oto', default=None, help='oto.ini file with the record to draw')
    parser.add_argument('--alias', default=None, help='Alias to draw (default: first record of the sample)')
    parser.add_argument('--start', type=float, default=0.0, help='Start time in ms (default: 0)')
    parser.add_argument('--end', type=float, default=None, help='End time in ms (default: full duration)')
    parser.add_argument('--width', type=int, default=None, help='Image width in pixels')
    parser.add_argument('--height', type=int, default=None, help='Spectrogram height in pixels')
    parser.add_argument('--dpi', type=int, default=None, help='Output resolution')
    parser.add_argument('--title', default=None, help='Figure title')
    parser.add_argument('-c', '--config', default=None, help='Path to otoscope config YAML')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s %(levelname)s: %(message)s",
    )

    if not Path(args.sample_file).exists():
        print(f"Error: sample not found: {args.sample_file}", file=sys.stderr)
        return 1
    if args.alias and not args.oto:
        print("Error: --alias requires --oto", file=sys.stderr)
        return 1

    try:
        render_markers(
            args.sample_file,
            args.output,
            oto_path=args.oto,
            alias=args.alias,
            start_ms=args.start,
            end_ms=args.end,
            width=args.width,
            height=args.height,
            dpi=args.dpi,
            title=args.title,
            config_path=args.config,
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
