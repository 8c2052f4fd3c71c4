import json
import typing

import pytest

import miditempo.__main__


def test_summary_output (tmp_path: typing.Any, two_track_file: bytes, capsys: pytest.CaptureFixture) -> None:

	path = tmp_path / "song.mid"
	path.write_bytes(two_track_file)

	assert miditempo.__main__.main([str(path)]) == 0

	out = capsys.readouterr().out

	assert "Time signature:  3/4" in out
	assert "Duration:        0.750s" in out
	assert "240.00 BPM" in out


def test_json_output (tmp_path: typing.Any, two_track_file: bytes, capsys: pytest.CaptureFixture) -> None:

	path = tmp_path / "song.mid"
	path.write_bytes(two_track_file)

	assert miditempo.__main__.main([str(path), "--json"]) == 0

	data = json.loads(capsys.readouterr().out)

	assert data["ticks_per_quarter"] == 480
	assert data["trimmed_ticks"] == 480


def test_unreadable_file (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	path = tmp_path / "broken.mid"
	path.write_bytes(b"RIFF0000")

	assert miditempo.__main__.main([str(path)]) == 1
	assert "Unreadable MIDI file" in capsys.readouterr().err


def test_missing_file (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	assert miditempo.__main__.main([str(tmp_path / "missing.mid")]) == 1
	assert "Unreadable MIDI file" in capsys.readouterr().err


def test_invalid_config (tmp_path: typing.Any, single_note_file: bytes) -> None:

	midi_path = tmp_path / "note.mid"
	midi_path.write_bytes(single_note_file)
	config_path = tmp_path / "bad.yaml"
	config_path.write_text("parser:\n  default_tempo: -1\n")

	assert miditempo.__main__.main([str(midi_path), "--config", str(config_path)]) == 2
