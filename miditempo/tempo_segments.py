"""Piecewise-constant tempo tables.

A MIDI file's tempo changes split the tick axis into segments of constant
tempo. :func:`build_tempo_segments` turns the raw changes into a sorted table
in which each segment also stores where it starts in seconds and in beats, so
any tick, beat or second can be converted with one binary search (see
:class:`miditempo.converter.TimeConverter`).
"""

import dataclasses
import typing

import mido

import miditempo.constants.timing
import miditempo.events
import miditempo.exceptions


@dataclasses.dataclass (frozen=True)
class TempoSegment:

	"""
	A stretch of constant tempo beginning at ``start_tick``.

	Attributes:
		start_tick: First tick governed by this tempo.
		microseconds_per_quarter: The tempo, as stored in the file.
		seconds_per_tick: Duration of one tick at this tempo.
		cumulative_seconds: Time from tick 0 to ``start_tick``.
		cumulative_beats: Quarter-note beats from tick 0 to ``start_tick``.
	"""

	start_tick: int
	microseconds_per_quarter: int
	seconds_per_tick: float
	cumulative_seconds: float
	cumulative_beats: float = 0.0

	@property
	def seconds_per_beat (self) -> float:

		return self.microseconds_per_quarter / miditempo.constants.timing.MICROSECONDS_PER_SECOND

	@property
	def bpm (self) -> float:

		return mido.tempo2bpm(self.microseconds_per_quarter)


def build_tempo_segments (
	changes: typing.Iterable[miditempo.events.TempoChange],
	ticks_per_quarter: int,
	default_tempo: int = miditempo.constants.timing.DEFAULT_TEMPO
) -> typing.Tuple[TempoSegment, ...]:

	"""
	Build the segment table for a list of tempo changes.

	The table always starts with an implicit ``default_tempo`` change at tick 0,
	which any explicit change at tick 0 replaces. Changes are sorted by tick
	(stably, so file order breaks ties) and only the last change at each tick
	is kept.

	Raises:
		DegenerateTempoError: ``ticks_per_quarter`` or any tempo is not positive.
	"""

	if ticks_per_quarter <= 0:
		raise miditempo.exceptions.DegenerateTempoError(f"Ticks per quarter note must be positive, got {ticks_per_quarter}")

	seeded = [miditempo.events.default_tempo_change(default_tempo)]
	seeded.extend(changes)

	for change in seeded:
		if change.tick < 0:
			raise ValueError(f"Tempo change tick must not be negative, got {change.tick}")

	ordered = sorted(seeded, key=lambda change: change.tick)

	deduplicated: typing.List[miditempo.events.TempoChange] = []

	for change in ordered:
		if deduplicated and deduplicated[-1].tick == change.tick:
			deduplicated[-1] = change
		else:
			deduplicated.append(change)

	segments: typing.List[TempoSegment] = []

	for change in deduplicated:

		if change.microseconds_per_quarter <= 0:
			raise miditempo.exceptions.DegenerateTempoError(
				f"Tempo must be positive, got {change.microseconds_per_quarter} at tick {change.tick}"
			)

		seconds_per_tick = change.microseconds_per_quarter / miditempo.constants.timing.MICROSECONDS_PER_SECOND / ticks_per_quarter

		if segments:
			previous = segments[-1]
			tick_delta = change.tick - previous.start_tick
			cumulative_seconds = previous.cumulative_seconds + tick_delta * previous.seconds_per_tick
			cumulative_beats = previous.cumulative_beats + tick_delta / ticks_per_quarter
		else:
			cumulative_seconds = 0.0
			cumulative_beats = 0.0

		segments.append(TempoSegment(
			start_tick = change.tick,
			microseconds_per_quarter = change.microseconds_per_quarter,
			seconds_per_tick = seconds_per_tick,
			cumulative_seconds = cumulative_seconds,
			cumulative_beats = cumulative_beats,
		))

	return tuple(segments)


def default_tempo_segments (
	ticks_per_quarter: int = miditempo.constants.timing.DEFAULT_TICKS_PER_QUARTER,
	default_tempo: int = miditempo.constants.timing.DEFAULT_TEMPO
) -> typing.Tuple[TempoSegment, ...]:

	"""A single-segment table at ``default_tempo`` (120 BPM unless told otherwise)."""

	return build_tempo_segments([], ticks_per_quarter, default_tempo)
