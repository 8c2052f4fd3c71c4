import io
import typing

import mido
import pytest


def _chunk (magic: bytes, body: bytes, length: typing.Optional[int] = None) -> bytes:

	"""Frame a chunk body with its magic and (optionally overridden) length."""

	if length is None:
		length = len(body)

	return magic + length.to_bytes(4, "big") + body


def build_smf (
	tracks: typing.Sequence[bytes],
	ticks_per_quarter: int = 96,
	file_format: int = 1,
	track_count: typing.Optional[int] = None,
	division: typing.Optional[int] = None
) -> bytes:

	"""
	Assemble a Standard MIDI File from raw track bodies (delta/event bytes).

	``track_count`` and ``division`` override the header fields for malformed-file tests.
	"""

	if track_count is None:
		track_count = len(tracks)

	if division is None:
		division = ticks_per_quarter

	header_body = file_format.to_bytes(2, "big") + track_count.to_bytes(2, "big") + division.to_bytes(2, "big")
	data = _chunk(b"MThd", header_body)

	for body in tracks:
		data += _chunk(b"MTrk", body)

	return data


def mido_bytes (midi_file: mido.MidiFile) -> bytes:

	"""Serialize a mido file to bytes without touching the disk."""

	buffer = io.BytesIO()
	midi_file.save(file=buffer)
	return buffer.getvalue()


@pytest.fixture
def smf () -> typing.Callable[..., bytes]:

	"""Return the raw file builder."""

	return build_smf


@pytest.fixture
def chunk () -> typing.Callable[..., bytes]:

	"""Return the raw chunk framer."""

	return _chunk


@pytest.fixture
def single_note_file () -> bytes:

	"""96 PPQ, 120 BPM, one note from tick 0 to tick 32."""

	body = bytes([
		0x00, 0x90, 0x3C, 0x40,
		0x20, 0x80, 0x3C, 0x40,
		0x00, 0xFF, 0x2F, 0x00,
	])

	return build_smf([body], ticks_per_quarter=96, file_format=0)


@pytest.fixture
def two_track_file () -> bytes:

	"""
	A type 1 file written by mido: a conductor track with a tempo change and
	time signature, and a note track whose first note starts on beat 2.
	"""

	midi_file = mido.MidiFile(type=1, ticks_per_beat=480)

	conductor = mido.MidiTrack()
	conductor.append(mido.MetaMessage("track_name", name="Conductor", time=0))
	conductor.append(mido.MetaMessage("time_signature", numerator=3, denominator=4, time=0))
	conductor.append(mido.MetaMessage("set_tempo", tempo=500_000, time=0))
	conductor.append(mido.MetaMessage("set_tempo", tempo=250_000, time=960))
	midi_file.tracks.append(conductor)

	notes = mido.MidiTrack()
	notes.append(mido.MetaMessage("track_name", name="Piano", time=0))
	notes.append(mido.Message("program_change", channel=1, program=5, time=0))
	notes.append(mido.Message("note_on", channel=1, note=60, velocity=90, time=480))
	notes.append(mido.Message("note_on", channel=1, note=64, velocity=80, time=0))
	notes.append(mido.Message("note_off", channel=1, note=60, velocity=0, time=480))
	notes.append(mido.Message("note_on", channel=1, note=64, velocity=0, time=480))
	midi_file.tracks.append(notes)

	return mido_bytes(midi_file)
