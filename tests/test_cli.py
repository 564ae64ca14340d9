"""Smoke tests for the command line and the offline renderer."""

import os
import sys

import numpy as np
import pytest
import soundfile as sf

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from otoscope.__main__ import find_samples, main
from otoscope.render import find_record, main as render_main, render_markers
from otoscope.oto.otoini import parse


@pytest.fixture
def voicebank(tmp_path):
    """oto.ini with one line plus two 1-second samples, one without a line."""
    rng = np.random.default_rng(0)
    sf.write(str(tmp_path / 'a.wav'), rng.uniform(-0.5, 0.5, 16000), 16000)
    sf.write(str(tmp_path / 'b.wav'), rng.uniform(-0.5, 0.5, 16000), 16000)
    (tmp_path / 'notes.txt').write_text('not a sample', encoding='utf-8')
    (tmp_path / 'oto.ini').write_text("a.wav=A,10,20,-30,5,3\n", encoding='utf-8')
    return tmp_path


def test_find_samples(voicebank):
    assert list(find_samples(voicebank)) == ['a.wav', 'b.wav']


def test_prints_marker_table(voicebank, capsys):
    assert main([str(voicebank / 'oto.ini')]) == 0
    lines = capsys.readouterr().out.splitlines()

    assert lines[0].split() == ['filename', 'alias', 'offset', 'overlap', 'preutter',
                                'consonant', 'cutoff']
    assert lines[1].split() == ['a.wav', 'A', '10', '13', '15', '30', '40']
    assert lines[2].split() == ['b.wav', 'b', '0', '0', '0', '0', '0']


def test_writes_normalized_output(voicebank, tmp_path):
    out = tmp_path / 'out.ini'
    assert main([str(voicebank / 'oto.ini'), '--output', str(out),
                 '--output-encoding', 'shift_jis']) == 0
    assert out.read_bytes().decode('shift_jis') == "a.wav=A,10,20,-30,5,3\nb.wav=b,0,0,0,0,0"


def test_missing_oto_file(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.ini')]) == 1
    assert 'not found' in capsys.readouterr().err


def test_play_unknown_alias(voicebank, capsys):
    assert main([str(voicebank / 'oto.ini'), '--play', 'nope']) == 1
    assert 'alias not found' in capsys.readouterr().err


def test_find_record():
    records = parse("x.wav=X,0\nA.wav=first,0\na.wav=second,0")
    assert find_record(records, 'a.wav').alias == 'first'
    assert find_record(records, 'a.wav', 'second').alias == 'second'
    assert find_record(records, 'a.wav', 'third') is None


def test_render_markers(voicebank, tmp_path):
    out = tmp_path / 'a.png'
    result = render_markers(voicebank / 'a.wav', out, oto_path=voicebank / 'oto.ini',
                            width=400, height=120, dpi=50)
    assert result == out
    assert out.exists()
    assert out.stat().st_size > 0


def test_render_rejects_empty_window(voicebank, tmp_path):
    with pytest.raises(ValueError):
        render_markers(voicebank / 'a.wav', tmp_path / 'x.png', start_ms=800, end_ms=500)
    with pytest.raises(ValueError):
        render_markers(voicebank / 'a.wav', tmp_path / 'x.png',
                       oto_path=voicebank / 'oto.ini', alias='nope')


def test_render_cli(voicebank, tmp_path, capsys):
    out = tmp_path / 'b.png'
    assert render_main([str(voicebank / 'b.wav'), '-o', str(out), '--start', '100',
                        '--end', '600', '--width', '300', '--height', '100']) == 0
    assert out.exists()

    assert render_main([str(voicebank / 'a.wav'), '-o', str(out), '--alias', 'A']) == 1
    assert render_main([str(voicebank / 'missing.wav'), '-o', str(out)]) == 1
    assert render_main([str(voicebank / 'a.wav'), '-o', str(out),
                        '--oto', str(voicebank / 'oto.ini'), '--alias', 'nope']) == 1
