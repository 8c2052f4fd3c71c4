"""The playable timeline: merged, trimmed, seconds-stamped note events.

:func:`build_timeline` takes the decoded tracks and a
:class:`~miditempo.converter.TimeConverter` and:

1. merges every track into one tick-ordered sequence (ties keep track order),
2. keeps only note-on and note-off events,
3. shifts everything so the first note sits at tick 0 and time 0, converting
   ticks to seconds through the tempo map *before* the shift so tempo changes
   in the leading silence are accounted for,
4. pairs note-ons with note-offs by ``(channel, note)`` to find where sound
   ends, giving unmatched note-ons a fixed fallback length,
5. re-expresses the tempo map in trimmed seconds for display.
"""

import dataclasses
import logging
import typing

import mido

import miditempo.constants.timing
import miditempo.converter
import miditempo.events
import miditempo.tempo_segments


logger = logging.getLogger(__name__)

NoteKey = typing.Tuple[int, int]


@dataclasses.dataclass (frozen=True)
class Note:

	"""
	A sounding note built from a note-on and its note-off.

	``end_tick`` is ``None`` when no note-off was found; ``end_time`` then
	holds the fallback end.
	"""

	channel: int
	note: int
	velocity: int
	start_tick: int
	start_time: float
	end_time: float
	end_tick: typing.Optional[int] = None
	track: int = 0

	@property
	def duration (self) -> float:

		return max(0.0, self.end_time - self.start_time)

	@property
	def matched (self) -> bool:

		"""True when the note ended with a real note-off."""

		return self.end_tick is not None


@dataclasses.dataclass (frozen=True)
class TempoMapEntry:

	"""A tempo starting at ``time`` seconds on the trimmed timeline."""

	time: float
	microseconds_per_quarter: int

	@property
	def bpm (self) -> float:

		return mido.tempo2bpm(self.microseconds_per_quarter)


@dataclasses.dataclass (frozen=True)
class Timeline:

	"""
	The parsed, trimmed timeline handed to rendering and transport.

	Attributes:
		events: Note-on/note-off events, time-ascending, ``tick`` and ``time``
			relative to the first note.
		duration_seconds: End of the last sounding note.
		ticks_per_quarter: Effective file resolution.
		time_signature: The time signature used for bar arithmetic.
		tempo_map_seconds: Tempo changes on the trimmed timeline, first at 0.
		trimmed_ticks: Ticks of leading silence removed.
		notes: Paired notes, ordered by start.
		tempo: Reported tempo in microseconds per quarter note.
		header: The file header.
		tracks: Every decoded event per track, untrimmed, including meta events.
		converter: Conversions for the *untrimmed* tick axis.
	"""

	events: typing.Tuple[miditempo.events.NoteEvent, ...]
	duration_seconds: float
	ticks_per_quarter: int
	time_signature: miditempo.events.TimeSignature
	tempo_map_seconds: typing.Tuple[TempoMapEntry, ...]
	trimmed_ticks: int = 0
	notes: typing.Tuple[Note, ...] = ()
	tempo: int = miditempo.constants.timing.DEFAULT_TEMPO
	header: typing.Optional[miditempo.events.MidiHeader] = None
	tracks: typing.Tuple[typing.Tuple[miditempo.events.MidiEvent, ...], ...] = ()
	converter: typing.Optional[miditempo.converter.TimeConverter] = dataclasses.field(default=None, compare=False, repr=False)

	@property
	def bpm (self) -> float:

		return mido.tempo2bpm(self.tempo)

	@property
	def segments (self) -> typing.Tuple[miditempo.tempo_segments.TempoSegment, ...]:

		return self.converter.segments if self.converter is not None else ()

	@property
	def trimmed_seconds (self) -> float:

		"""Seconds of leading silence removed."""

		if self.converter is None:
			return 0.0

		return self.converter.ticks_to_seconds(self.trimmed_ticks)

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Plain data (lists, dicts, numbers) suitable for JSON or scene files."""

		return {
			"events": [_event_to_dict(event) for event in self.events],
			"notes": [dataclasses.asdict(note) for note in self.notes],
			"duration_seconds": self.duration_seconds,
			"ticks_per_quarter": self.ticks_per_quarter,
			"time_signature": dataclasses.asdict(self.time_signature),
			"tempo_map_seconds": [dataclasses.asdict(entry) for entry in self.tempo_map_seconds],
			"trimmed_ticks": self.trimmed_ticks,
			"tempo": self.tempo,
		}


_EVENT_TYPE_NAMES = {
	miditempo.events.NoteOn: "note_on",
	miditempo.events.NoteOff: "note_off",
	miditempo.events.ControlChange: "control_change",
	miditempo.events.ProgramChange: "program_change",
	miditempo.events.Meta: "meta",
}


def _event_to_dict (event: miditempo.events.MidiEvent) -> typing.Dict[str, typing.Any]:

	data = dataclasses.asdict(event)
	data["type"] = _EVENT_TYPE_NAMES[type(event)]

	if isinstance(event, miditempo.events.Meta):
		data["payload"] = event.payload.hex()

	return data


def merge_tracks (
	tracks: typing.Iterable[typing.Iterable[miditempo.events.MidiEvent]]
) -> typing.List[miditempo.events.MidiEvent]:

	"""All events in tick order. The sort is stable, so ties keep track then file order."""

	merged = [event for track in tracks for event in track]
	return sorted(merged, key=lambda event: event.tick)


def trim_events (
	events: typing.Sequence[miditempo.events.NoteEvent],
	converter: miditempo.converter.TimeConverter,
	base_tick: int = 0
) -> typing.Tuple[typing.Tuple[miditempo.events.NoteEvent, ...], int]:

	"""
	Shift note events so the earliest one lands on tick 0 and time 0.

	``events`` carry ticks relative to ``base_tick`` on the converter's tick
	axis (0 for freshly decoded events). Times are computed on that absolute
	axis and the offset subtracted afterwards.

	Returns the retimed events and the number of ticks removed (0 when there
	are no events).
	"""

	if not events:
		return (), 0

	earliest = min(event.tick for event in events)
	offset_seconds = converter.ticks_to_seconds(base_tick + earliest)

	trimmed = tuple(
		miditempo.events.retime(
			event,
			tick = event.tick - earliest,
			time = max(0.0, converter.ticks_to_seconds(base_tick + event.tick) - offset_seconds),
		)
		for event in events
	)

	return trimmed, earliest


def pair_notes (
	events: typing.Iterable[miditempo.events.NoteEvent],
	unmatched_note_seconds: float = miditempo.constants.timing.UNMATCHED_NOTE_SECONDS
) -> typing.Tuple[Note, ...]:

	"""
	Pair each note-on with the next note-off on the same channel and note.

	At most one note is open per ``(channel, note)``. A second note-on for an
	open key ends the first one at that moment. Note-offs with nothing open
	are ignored. Note-ons still open at the end get ``unmatched_note_seconds``
	of sound.

	Events must already carry times.
	"""

	open_notes: typing.Dict[NoteKey, miditempo.events.NoteOn] = {}
	notes: typing.List[Note] = []

	for event in events:

		key = (event.channel, event.note)

		if isinstance(event, miditempo.events.NoteOn) and event.velocity > 0:

			retriggered = open_notes.pop(key, None)
			if retriggered is not None:
				notes.append(_close_note(retriggered, event.tick, event.time))

			open_notes[key] = event

		else:

			started = open_notes.pop(key, None)
			if started is not None:
				notes.append(_close_note(started, event.tick, event.time))

	if open_notes:
		logger.debug(f"{len(open_notes)} note(s) have no note-off; giving each {unmatched_note_seconds}s")

	for started in open_notes.values():
		notes.append(_close_note(started, None, _time_of(started) + unmatched_note_seconds))

	return tuple(sorted(notes, key=lambda note: (note.start_time, note.start_tick)))


def _time_of (event: miditempo.events.NoteEvent) -> float:

	if event.time is None:
		raise ValueError(f"Event at tick {event.tick} has not been converted to seconds")

	return event.time


def _close_note (started: miditempo.events.NoteOn, end_tick: typing.Optional[int], end_time: typing.Optional[float]) -> Note:

	if end_time is None:
		raise ValueError(f"Event at tick {end_tick} has not been converted to seconds")

	return Note(
		channel = started.channel,
		note = started.note,
		velocity = started.velocity,
		start_tick = started.tick,
		start_time = _time_of(started),
		end_time = end_time,
		end_tick = end_tick,
		track = started.track,
	)


def duration_of (notes: typing.Iterable[Note]) -> float:

	"""Latest end time over ``notes``, 0.0 when there are none."""

	return max((note.end_time for note in notes), default=0.0)


def tempo_map_in_seconds (
	segments: typing.Sequence[miditempo.tempo_segments.TempoSegment],
	offset_seconds: float = 0.0
) -> typing.Tuple[TempoMapEntry, ...]:

	"""
	The tempo table on the trimmed timeline.

	Entries before the trim point clamp to 0, and the first entry is always at
	0 so the map covers the whole timeline.
	"""

	entries = [
		TempoMapEntry(
			time = 0.0 if index == 0 else max(0.0, segment.cumulative_seconds - offset_seconds),
			microseconds_per_quarter = segment.microseconds_per_quarter,
		)
		for index, segment in enumerate(segments)
	]

	return tuple(entries)


def build_timeline (
	tracks: typing.Iterable[typing.Iterable[miditempo.events.MidiEvent]],
	converter: miditempo.converter.TimeConverter,
	header: typing.Optional[miditempo.events.MidiHeader] = None,
	tempo: typing.Optional[int] = None,
	unmatched_note_seconds: float = miditempo.constants.timing.UNMATCHED_NOTE_SECONDS
) -> Timeline:

	"""
	Assemble the trimmed :class:`Timeline` from decoded tracks.

	Parameters:
		tracks: Per-track event sequences with absolute ticks.
		converter: Conversions for the file's tempo map.
		header: Kept on the timeline for reference.
		tempo: Reported tempo; defaults to the first segment's tempo.
		unmatched_note_seconds: Length given to note-ons that never end.
	"""

	track_events = tuple(tuple(track) for track in tracks)

	playable = [event for event in merge_tracks(track_events) if miditempo.events.is_note_event(event)]
	events, trimmed_ticks = trim_events(playable, converter)

	notes = pair_notes(events, unmatched_note_seconds)
	offset_seconds = converter.ticks_to_seconds(trimmed_ticks)

	if tempo is None:
		tempo = converter.segments[0].microseconds_per_quarter

	return Timeline(
		events = events,
		duration_seconds = duration_of(notes),
		ticks_per_quarter = converter.ticks_per_quarter,
		time_signature = converter.time_signature,
		tempo_map_seconds = tempo_map_in_seconds(converter.segments, offset_seconds),
		trimmed_ticks = trimmed_ticks,
		notes = notes,
		tempo = tempo,
		header = header,
		tracks = track_events,
		converter = converter,
	)


def retrim (
	timeline: Timeline,
	unmatched_note_seconds: float = miditempo.constants.timing.UNMATCHED_NOTE_SECONDS
) -> Timeline:

	"""
	Apply the leading-silence trim to ``timeline`` again.

	A timeline whose first event is already at tick 0 (every timeline from
	:func:`build_timeline`) is returned unchanged.
	"""

	if not timeline.events or min(event.tick for event in timeline.events) == 0:
		return timeline

	if timeline.converter is None:
		raise ValueError("Cannot retrim a timeline without a converter")

	events, removed = trim_events(timeline.events, timeline.converter, base_tick=timeline.trimmed_ticks)
	trimmed_ticks = timeline.trimmed_ticks + removed
	notes = pair_notes(events, unmatched_note_seconds)

	return dataclasses.replace(
		timeline,
		events = events,
		notes = notes,
		duration_seconds = duration_of(notes),
		trimmed_ticks = trimmed_ticks,
		tempo_map_seconds = tempo_map_in_seconds(timeline.converter.segments, timeline.converter.ticks_to_seconds(trimmed_ticks)),
	)


def notes_in_window (timeline: Timeline, start_seconds: float, end_seconds: float) -> typing.List[Note]:

	"""Notes sounding at any point from ``start_seconds`` to ``end_seconds``, edges included."""

	if not end_seconds > start_seconds:
		return []

	return [
		note for note in timeline.notes
		if note.end_time >= start_seconds and note.start_time <= end_seconds
	]
