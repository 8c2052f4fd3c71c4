import logging
import typing

import mido
import pytest

import miditempo
import miditempo.config
import miditempo.events
import miditempo.exceptions
import miditempo.parser


def _text_meta (subtype: int, text: str) -> miditempo.events.Meta:

	return miditempo.events.Meta(tick=0, subtype=subtype, payload=text.encode("latin-1"))


def test_parse_two_track_file (two_track_file: bytes) -> None:

	"""The full pipeline: trim, tempo map, time signature and reported tempo."""

	timeline = miditempo.parse_midi(two_track_file)

	assert timeline.ticks_per_quarter == 480
	assert timeline.duration_seconds == pytest.approx(0.75)
	assert timeline.tempo == 250_000
	assert timeline.bpm == pytest.approx(240.0)
	assert str(timeline.time_signature) == "3/4"
	assert len(timeline.segments) == 2
	assert timeline.converter.beats_per_bar == 3


def test_parse_single_note (single_note_file: bytes) -> None:

	timeline = miditempo.parse_midi(single_note_file)

	assert len(timeline.events) == 2
	assert timeline.duration_seconds == pytest.approx(0.1667, abs=1e-4)
	assert timeline.tempo == 500_000


def test_garbage_is_format_error () -> None:

	with pytest.raises(miditempo.FormatError):
		miditempo.parse_midi(b"not a midi file at all")


def test_repeated_parses_are_equal (two_track_file: bytes) -> None:

	"""Parsing holds no state between calls."""

	assert miditempo.parse_midi(two_track_file) == miditempo.parse_midi(two_track_file)


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------

def test_zero_tempo_falls_back_to_default (smf: typing.Callable[..., bytes], caplog: pytest.LogCaptureFixture) -> None:

	"""An unusable tempo map is replaced by 120 BPM, with a warning."""

	body = bytes([
		0x00, 0xFF, 0x51, 0x03, 0x00, 0x00, 0x00,
		0x00, 0x90, 0x3C, 0x40,
		0x60, 0x80, 0x3C, 0x40,
	])

	with caplog.at_level(logging.WARNING):
		timeline = miditempo.parse_midi(smf([body], ticks_per_quarter=96))

	assert timeline.duration_seconds == pytest.approx(0.5)
	assert timeline.tempo == 500_000
	assert len(timeline.segments) == 1
	assert "Unusable timing" in caplog.text


def test_zero_division_uses_default_resolution (smf: typing.Callable[..., bytes]) -> None:

	"""A header division of 0 is read at the configured default resolution."""

	body = bytes([0x00, 0x90, 0x3C, 0x40, 0x83, 0x60, 0x80, 0x3C, 0x40])

	timeline = miditempo.parse_midi(smf([body], ticks_per_quarter=0))

	assert timeline.ticks_per_quarter == 480
	assert timeline.duration_seconds == pytest.approx(0.5)


def test_smpte_file_parses (smf: typing.Callable[..., bytes]) -> None:

	"""SMPTE files are timed at 24 ticks per quarter note."""

	body = bytes([0x00, 0x90, 0x3C, 0x40, 0x18, 0x80, 0x3C, 0x40])

	timeline = miditempo.parse_midi(smf([body], division=0xE728))

	assert timeline.ticks_per_quarter == 24
	assert timeline.duration_seconds == pytest.approx(0.5)


def test_custom_default_tempo (single_note_file: bytes) -> None:

	config = miditempo.config.ParserConfig(default_tempo=mido.bpm2tempo(60))

	timeline = miditempo.parse_midi(single_note_file, config)

	assert timeline.duration_seconds == pytest.approx(2 * 32 * 0.5 / 96)
	assert timeline.bpm == pytest.approx(60.0)


# ---------------------------------------------------------------------------
# Tempo hints in text
# ---------------------------------------------------------------------------

def test_find_text_bpm_searches_hint_types () -> None:

	events = [
		_text_meta(0x05, "sing 90 bpm"),
		_text_meta(0x03, "Drums 128 BPM"),
		_text_meta(0x06, "Chorus 132bpm"),
	]

	assert miditempo.parser.find_text_bpm(events) == 132
	assert miditempo.parser.find_text_bpm(events[:2]) == 128
	assert miditempo.parser.find_text_bpm(events[:1]) is None


def test_text_bpm_sets_reported_tempo_only (smf: typing.Callable[..., bytes]) -> None:

	"""A text hint is reported as the tempo but does not change timing."""

	body = b"\x00\xFF\x03\x0DDrums 128 BPM" + bytes([0x00, 0x90, 0x3C, 0x40, 0x60, 0x80, 0x3C, 0x40])

	timeline = miditempo.parse_midi(smf([body], ticks_per_quarter=96))

	assert timeline.tempo == mido.bpm2tempo(128)
	assert timeline.bpm == pytest.approx(128.0)
	assert timeline.duration_seconds == pytest.approx(0.5)


def test_tempo_event_beats_text_hint (smf: typing.Callable[..., bytes]) -> None:

	body = b"\x00\xFF\x03\x0DDrums 128 BPM" + bytes([0x00, 0xFF, 0x51, 0x03, 0x0F, 0x42, 0x40])

	timeline = miditempo.parse_midi(smf([body]))

	assert timeline.tempo == 1_000_000


def test_text_hint_can_be_disabled (smf: typing.Callable[..., bytes]) -> None:

	body = b"\x00\xFF\x03\x0DDrums 128 BPM"
	config = miditempo.config.ParserConfig(detect_text_bpm=False)

	timeline = miditempo.parse_midi(smf([body]), config)

	assert timeline.tempo == 500_000


# ---------------------------------------------------------------------------
# Files on disk
# ---------------------------------------------------------------------------

def test_parse_midi_file (tmp_path: typing.Any, single_note_file: bytes) -> None:

	path = tmp_path / "note.mid"
	path.write_bytes(single_note_file)

	timeline = miditempo.parse_midi_file(str(path))

	assert timeline.duration_seconds == pytest.approx(1 / 6)


def test_parse_missing_file (tmp_path: typing.Any) -> None:

	with pytest.raises(OSError):
		miditempo.parse_midi_file(str(tmp_path / "missing.mid"))


def test_truncated_meta_does_not_stretch_duration (smf: typing.Callable[..., bytes]) -> None:

	"""A cut-off event at the end of a track leaves the timing of earlier notes alone."""

	body = bytes([
		0x00, 0x90, 0x3C, 0x40,
		0x20, 0x3C, 0x00,
		0x00, 0xFF, 0x01, 0x05, 0x41, 0x42,
	])

	timeline = miditempo.parse_midi(smf([body], ticks_per_quarter=96))

	assert len(timeline.events) == 2
	assert len(timeline.notes) == 1
	assert timeline.duration_seconds == pytest.approx(1 / 6)
