"""Standard MIDI File decoding.

:func:`decode` turns a raw buffer into per-track event lists stamped with
absolute ticks, and collects the tempo and time-signature changes seen on the
way. It does no time conversion; that happens in :mod:`miditempo.timeline`.

Each track is decoded as a fold: a frozen :class:`_TrackState` (cursor,
absolute tick, running status) goes into :func:`_decode_event` and a new state
comes out with at most one event. Nothing is shared between tracks or between
calls, so decoding is re-entrant.

Error policy:

- Structural problems (bad magic, short header, a track chunk longer than the
  file) raise :class:`~miditempo.exceptions.FormatError` and abort the parse.
- A single event that runs past its track chunk raises
  :class:`~miditempo.exceptions.BoundsError` internally. Reads stop at the
  chunk end, so that event is the last one in its track: it is dropped with
  a warning and decoding moves on to the next track.
"""

import dataclasses
import logging
import typing

import mido

import miditempo.constants.meta
import miditempo.constants.status
import miditempo.constants.timing
import miditempo.cursor
import miditempo.events
import miditempo.exceptions


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class TrackData:

	"""
	Everything decoded from one ``MTrk`` chunk.

	Attributes:
		index: Position of the chunk in the file (0-based).
		events: Events in file order, ticks absolute from the track start.
		tempo_changes: Well-formed 0x51 events, in file order.
		time_signature_changes: Well-formed 0x58 events, in file order.
		dropped_events: Events abandoned because their data ran out.
	"""

	index: int
	events: typing.Tuple[miditempo.events.MidiEvent, ...]
	tempo_changes: typing.Tuple[miditempo.events.TempoChange, ...] = ()
	time_signature_changes: typing.Tuple[miditempo.events.TimeSignatureChange, ...] = ()
	dropped_events: int = 0


@dataclasses.dataclass (frozen=True)
class DecodedFile:

	"""
	The result of :func:`decode`.

	``ticks_per_quarter`` is the effective resolution: the header division, or
	the SMPTE fallback when the division is frame-based.
	"""

	header: miditempo.events.MidiHeader
	ticks_per_quarter: int
	tracks: typing.Tuple[TrackData, ...]

	@property
	def events (self) -> typing.List[miditempo.events.MidiEvent]:

		"""All events, track by track, each track in file order."""

		return [event for track in self.tracks for event in track.events]

	@property
	def tempo_changes (self) -> typing.List[miditempo.events.TempoChange]:

		"""Tempo changes from every track, in decode order."""

		return [change for track in self.tracks for change in track.tempo_changes]

	@property
	def time_signature_changes (self) -> typing.List[miditempo.events.TimeSignatureChange]:

		"""Time signature changes from every track, in decode order."""

		return [change for track in self.tracks for change in track.time_signature_changes]

	@property
	def tempo (self) -> typing.Optional[int]:

		"""The last tempo seen while decoding, or ``None`` when the file has none."""

		changes = self.tempo_changes
		return changes[-1].microseconds_per_quarter if changes else None

	@property
	def time_signature (self) -> miditempo.events.TimeSignature:

		"""The last time signature seen while decoding, defaulting to 4/4."""

		changes = self.time_signature_changes
		return changes[-1].time_signature if changes else miditempo.events.TimeSignature()

	@property
	def dropped_events (self) -> int:

		return sum(track.dropped_events for track in self.tracks)


@dataclasses.dataclass (frozen=True)
class _TrackState:

	"""Per-track decoding state threaded through the event loop."""

	cursor: miditempo.cursor.ByteCursor
	tick: int = 0
	running_status: typing.Optional[int] = None
	ended: bool = False


def decode (
	data: typing.Union[bytes, bytearray, memoryview],
	smpte_ticks_per_quarter: int = miditempo.constants.timing.SMPTE_FALLBACK_TICKS_PER_QUARTER
) -> DecodedFile:

	"""
	Decode a Standard MIDI File held in memory.

	Parameters:
		data: The complete file contents. Only read, never kept.
		smpte_ticks_per_quarter: Resolution substituted when the header uses
			SMPTE frame division.

	Raises:
		FormatError: The header or a track chunk is missing, garbled or truncated.
	"""

	cursor = miditempo.cursor.ByteCursor(bytes(data))
	header, ticks_per_quarter, cursor = decode_header(cursor, smpte_ticks_per_quarter)

	tracks: typing.List[TrackData] = []

	for index in range(header.track_count):
		track, cursor = decode_track(cursor, index)
		tracks.append(track)

	decoded = DecodedFile(header=header, ticks_per_quarter=ticks_per_quarter, tracks=tuple(tracks))

	logger.info(
		f"Decoded MIDI file: format {header.format}, {header.track_count} track(s), "
		f"division {header.division}, {len(decoded.events)} event(s)"
	)

	if decoded.dropped_events:
		logger.warning(f"{decoded.dropped_events} truncated event(s) were skipped")

	return decoded


def decode_header (
	cursor: miditempo.cursor.ByteCursor,
	smpte_ticks_per_quarter: int = miditempo.constants.timing.SMPTE_FALLBACK_TICKS_PER_QUARTER
) -> typing.Tuple[miditempo.events.MidiHeader, int, miditempo.cursor.ByteCursor]:

	"""
	Read the ``MThd`` chunk.

	Returns the header, the effective ticks per quarter note, and a cursor at
	the first track chunk.
	"""

	if cursor.remaining < miditempo.constants.timing.HEADER_CHUNK_SIZE:
		raise miditempo.exceptions.FormatError(
			f"File too small for a MIDI header ({cursor.remaining} bytes, need {miditempo.constants.timing.HEADER_CHUNK_SIZE})"
		)

	magic, cursor = cursor.read_bytes(4)

	if magic != miditempo.constants.timing.HEADER_MAGIC:
		raise miditempo.exceptions.FormatError(f"Missing MThd header (found {magic!r})")

	length, cursor = cursor.read_u32()

	if length < miditempo.constants.timing.MIN_HEADER_LENGTH:
		raise miditempo.exceptions.FormatError(f"Header chunk length {length} is shorter than 6")

	body_end = cursor.offset + length

	if body_end > len(cursor.data):
		raise miditempo.exceptions.FormatError(f"Header chunk length {length} exceeds file size")

	file_format, body = cursor.read_u16()
	track_count, body = body.read_u16()
	division, body = body.read_u16()

	if file_format > 2:
		raise miditempo.exceptions.FormatError(f"Unknown MIDI file format {file_format}")

	header = miditempo.events.MidiHeader(format=file_format, track_count=track_count, division=division)

	if header.is_smpte:
		ticks_per_quarter = smpte_ticks_per_quarter
		logger.warning(
			f"SMPTE time division {division:#06x} is not supported; "
			f"using {ticks_per_quarter} ticks per quarter note, so timing may be inaccurate"
		)
	else:
		ticks_per_quarter = division

	return header, ticks_per_quarter, cursor.seek(body_end)


def decode_track (
	cursor: miditempo.cursor.ByteCursor,
	index: int = 0
) -> typing.Tuple[TrackData, miditempo.cursor.ByteCursor]:

	"""
	Read one ``MTrk`` chunk starting at ``cursor``.

	Returns the decoded track and a cursor at the next chunk.
	"""

	if cursor.remaining < miditempo.constants.timing.CHUNK_HEADER_SIZE:
		raise miditempo.exceptions.FormatError(f"Track {index}: insufficient data for track header")

	magic, cursor = cursor.read_bytes(4)

	if magic != miditempo.constants.timing.TRACK_MAGIC:
		raise miditempo.exceptions.FormatError(f"Track {index}: missing MTrk header (found {magic!r})")

	length, cursor = cursor.read_u32()
	end = cursor.offset + length

	if end > len(cursor.data):
		raise miditempo.exceptions.FormatError(
			f"Track {index}: length {length} exceeds file size ({len(cursor.data) - cursor.offset} bytes left)"
		)

	state = _TrackState(cursor=cursor.bounded(end))

	events: typing.List[miditempo.events.MidiEvent] = []
	tempo_changes: typing.List[miditempo.events.TempoChange] = []
	time_signature_changes: typing.List[miditempo.events.TimeSignatureChange] = []
	dropped = 0

	while not state.ended and not state.cursor.at_end():

		try:
			state, event = _decode_event(state, index)

		except miditempo.exceptions.BoundsError as exc:
			dropped += 1
			logger.warning(f"Track {index}: skipped truncated event at offset {state.cursor.offset}, ignoring the rest of the track: {exc}")
			break

		if event is None:
			continue

		events.append(event)

		if isinstance(event, miditempo.events.Meta):

			if event.subtype == miditempo.constants.meta.SET_TEMPO:
				change = _tempo_change(event)
				if change is not None:
					tempo_changes.append(change)

			elif event.subtype == miditempo.constants.meta.TIME_SIGNATURE:
				signature_change = _time_signature_change(event)
				if signature_change is not None:
					time_signature_changes.append(signature_change)

			elif event.text is not None:
				logger.debug(f"Track {index}: text meta {event.subtype:#04x} at tick {event.tick}: {event.text!r}")

	track = TrackData(
		index = index,
		events = tuple(events),
		tempo_changes = tuple(tempo_changes),
		time_signature_changes = tuple(time_signature_changes),
		dropped_events = dropped,
	)

	return track, cursor.seek(end)


def _decode_event (
	state: _TrackState,
	track: int
) -> typing.Tuple[_TrackState, typing.Optional[miditempo.events.MidiEvent]]:

	"""
	Decode one delta-time/event pair.

	Returns the next state and the decoded event, or ``None`` for data that is
	consumed but not represented (SysEx, aftertouch, pitch bend, stray bytes).
	"""

	delta, cursor = state.cursor.read_vlq()
	tick = state.tick + delta
	running_status = state.running_status

	status = cursor.peek_u8()

	if status & miditempo.constants.status.STATUS_BIT:
		cursor = cursor.advance(1)

	else:
		# Running status: this byte is the first data byte, so it stays unread.
		if running_status is None:
			logger.debug(f"Track {track}: data byte {status:#04x} at offset {cursor.offset} with no running status")
			return _TrackState(cursor.advance(1), tick, running_status), None

		status = running_status

	if status == miditempo.constants.status.META:
		return _decode_meta(cursor, tick, running_status, track)

	if status in (miditempo.constants.status.SYSEX, miditempo.constants.status.SYSEX_ESCAPE):
		length, cursor = cursor.read_vlq()
		cursor = cursor.advance(length)
		return _TrackState(cursor, tick, None), None

	if status > miditempo.constants.status.SYSEX:
		logger.debug(f"Track {track}: ignored system status {status:#04x} at tick {tick}")
		return _TrackState(cursor, tick, None), None

	kind = status & 0xF0
	channel = status & 0x0F
	data, cursor = cursor.read_bytes(miditempo.constants.status.CHANNEL_EVENT_DATA_BYTES[kind])

	return _TrackState(cursor, tick, status), _channel_event(kind, channel, data, tick, track)


def _decode_meta (
	cursor: miditempo.cursor.ByteCursor,
	tick: int,
	running_status: typing.Optional[int],
	track: int
) -> typing.Tuple[_TrackState, miditempo.events.Meta]:

	"""Decode a meta event body (type byte, length, payload). Running status is left as it was."""

	subtype, cursor = cursor.read_u8()
	length, cursor = cursor.read_vlq()
	payload, cursor = cursor.read_bytes(length)

	event = miditempo.events.Meta(tick=tick, subtype=subtype, payload=payload, track=track)

	return _TrackState(cursor, tick, running_status, ended=event.is_end_of_track), event


def _channel_event (
	kind: int,
	channel: int,
	data: bytes,
	tick: int,
	track: int
) -> typing.Optional[miditempo.events.MidiEvent]:

	"""Build the event for a channel status nibble and its data bytes."""

	if kind == miditempo.constants.status.NOTE_ON:
		if data[1] == 0:
			return miditempo.events.NoteOff(tick=tick, channel=channel, note=data[0], velocity=0, track=track)
		return miditempo.events.NoteOn(tick=tick, channel=channel, note=data[0], velocity=data[1], track=track)

	if kind == miditempo.constants.status.NOTE_OFF:
		return miditempo.events.NoteOff(tick=tick, channel=channel, note=data[0], velocity=data[1], track=track)

	if kind == miditempo.constants.status.CONTROL_CHANGE:
		return miditempo.events.ControlChange(tick=tick, channel=channel, controller=data[0], value=data[1], track=track)

	if kind == miditempo.constants.status.PROGRAM_CHANGE:
		return miditempo.events.ProgramChange(tick=tick, channel=channel, program=data[0], track=track)

	# Aftertouch and pitch bend are consumed but not kept.
	return None


def _tempo_change (event: miditempo.events.Meta) -> typing.Optional[miditempo.events.TempoChange]:

	try:
		tempo = miditempo.events.tempo_from_payload(event.payload)
	except ValueError as exc:
		logger.warning(f"Track {event.track}: malformed tempo event at tick {event.tick}: {exc}")
		return None

	if tempo > 0:
		logger.debug(f"Track {event.track}: tempo {tempo} us/quarter ({mido.tempo2bpm(tempo):.2f} BPM) at tick {event.tick}")
	else:
		logger.debug(f"Track {event.track}: tempo {tempo} us/quarter at tick {event.tick}")

	return miditempo.events.TempoChange(tick=event.tick, microseconds_per_quarter=tempo)


def _time_signature_change (event: miditempo.events.Meta) -> typing.Optional[miditempo.events.TimeSignatureChange]:

	try:
		signature = miditempo.events.TimeSignature.from_payload(event.payload)
	except ValueError as exc:
		logger.warning(f"Track {event.track}: malformed time signature at tick {event.tick}: {exc}")
		return None

	logger.debug(f"Track {event.track}: time signature {signature} at tick {event.tick}")

	return miditempo.events.TimeSignatureChange(tick=event.tick, time_signature=signature)
