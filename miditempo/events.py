"""Decoded MIDI events and the small timing records found alongside them.

Every event variant carries:

- ``tick`` - absolute position in ticks from the start of its track (or, after
  trimming, from the first sounding note).
- ``time`` - absolute position in seconds, ``None`` until the timeline has
  been converted.
- ``track`` - index of the track chunk the event came from.

Events are frozen. Retiming goes through :func:`retime`, which returns a new
event.
"""

import dataclasses
import typing

import mido

import miditempo.constants.meta
import miditempo.constants.timing


@dataclasses.dataclass (frozen=True)
class NoteOn:

	"""A note-on with non-zero velocity."""

	tick: int
	channel: int
	note: int
	velocity: int
	time: typing.Optional[float] = None
	track: int = 0


@dataclasses.dataclass (frozen=True)
class NoteOff:

	"""
	A note release. Note-on messages with velocity 0 decode to this too.
	"""

	tick: int
	channel: int
	note: int
	velocity: int = 0
	time: typing.Optional[float] = None
	track: int = 0


@dataclasses.dataclass (frozen=True)
class ControlChange:

	"""A controller (CC) value change."""

	tick: int
	channel: int
	controller: int
	value: int
	time: typing.Optional[float] = None
	track: int = 0


@dataclasses.dataclass (frozen=True)
class ProgramChange:

	"""A program (patch) change."""

	tick: int
	channel: int
	program: int
	time: typing.Optional[float] = None
	track: int = 0


@dataclasses.dataclass (frozen=True)
class Meta:

	"""
	A meta event: ``subtype`` is the byte after 0xFF, ``payload`` the raw data.
	"""

	tick: int
	subtype: int
	payload: bytes = b""
	time: typing.Optional[float] = None
	track: int = 0

	@property
	def text (self) -> typing.Optional[str]:

		"""
		Payload of a text-bearing event (track name, lyric, marker ...) as raw
		8-bit characters, or ``None`` for other subtypes.
		"""

		if self.subtype not in miditempo.constants.meta.TEXT_TYPES:
			return None

		return self.payload.decode("latin-1")

	@property
	def is_end_of_track (self) -> bool:

		return self.subtype == miditempo.constants.meta.END_OF_TRACK


MidiEvent = typing.Union[NoteOn, NoteOff, ControlChange, ProgramChange, Meta]

NoteEvent = typing.Union[NoteOn, NoteOff]


def is_note_event (event: MidiEvent) -> bool:

	"""Return True for events that belong on the playable timeline."""

	return isinstance(event, (NoteOn, NoteOff))


def retime (event: MidiEvent, tick: int, time: typing.Optional[float]) -> MidiEvent:

	"""Return a copy of ``event`` at a new tick and time."""

	return dataclasses.replace(event, tick=tick, time=time)


@dataclasses.dataclass (frozen=True)
class MidiHeader:

	"""
	Fields of the ``MThd`` chunk.

	``division`` is the raw 16-bit value. When its high bit is set the file uses
	SMPTE frame timing, which is not decoded (see ``is_smpte``).
	"""

	format: int
	track_count: int
	division: int

	@property
	def is_smpte (self) -> bool:

		return bool(self.division & 0x8000)


@dataclasses.dataclass (frozen=True)
class TempoChange:

	"""A tempo taking effect at ``tick``, in microseconds per quarter note."""

	tick: int
	microseconds_per_quarter: int

	@property
	def bpm (self) -> float:

		return mido.tempo2bpm(self.microseconds_per_quarter)


@dataclasses.dataclass (frozen=True)
class TimeSignature:

	"""
	A time signature as stored in the 0x58 meta event.

	The denominator is stored in the file as a power of two; this class holds
	the reconstructed value (``2 ** raw``).

	Attributes:
		numerator: Beats per bar. Bars are counted in quarter-note beats of this length.
		denominator: Note value of one beat (4 = quarter, 8 = eighth).
		clocks_per_click: MIDI clocks per metronome click.
		thirtysecond_notes_per_beat: Notated 32nd notes per MIDI quarter note.
	"""

	numerator: int = 4
	denominator: int = 4
	clocks_per_click: int = 24
	thirtysecond_notes_per_beat: int = 8

	@classmethod
	def from_payload (cls, payload: bytes) -> "TimeSignature":

		"""Build from the 4-byte meta payload."""

		if len(payload) != miditempo.constants.meta.TIME_SIGNATURE_LENGTH:
			raise ValueError(f"Time signature payload must be 4 bytes, got {len(payload)}")

		return cls(
			numerator = payload[0],
			denominator = 2 ** payload[1],
			clocks_per_click = payload[2],
			thirtysecond_notes_per_beat = payload[3],
		)

	@property
	def beats_per_bar (self) -> int:

		"""Beats in one bar, never less than 1."""

		return max(1, self.numerator)

	def __str__ (self) -> str:

		return f"{self.numerator}/{self.denominator}"


@dataclasses.dataclass (frozen=True)
class TimeSignatureChange:

	"""A time signature taking effect at ``tick``."""

	tick: int
	time_signature: TimeSignature


def tempo_from_payload (payload: bytes) -> int:

	"""Decode the 3-byte big-endian microseconds-per-quarter tempo payload."""

	if len(payload) != miditempo.constants.meta.SET_TEMPO_LENGTH:
		raise ValueError(f"Tempo payload must be 3 bytes, got {len(payload)}")

	return int.from_bytes(payload, "big")


def default_tempo_change (microseconds_per_quarter: int = miditempo.constants.timing.DEFAULT_TEMPO) -> TempoChange:

	"""The implicit tempo every file starts with at tick 0 (120 BPM unless told otherwise)."""

	return TempoChange(tick=0, microseconds_per_quarter=microseconds_per_quarter)
