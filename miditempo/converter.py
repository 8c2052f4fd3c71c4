"""Tick, second, beat and bar conversion over a tempo segment table.

A :class:`TimeConverter` is built once per parsed file from its
:class:`~miditempo.tempo_segments.TempoSegment` table, its resolution and its
time signature. It holds no other state and never changes, so the same
instance can serve the playback clock, the timeline ruler and the export frame
sampler at once.

Every lookup is a binary search over the segment start positions in the
relevant unit (ticks, seconds or beats), followed by a linear step inside the
segment. Two boundary rules apply throughout:

- A position before the first segment uses the first segment's rate.
- A position exactly on a segment boundary belongs to the later segment: a
  tempo change takes effect at its own tick.
"""

import bisect
import dataclasses
import math
import typing

import miditempo.bbt
import miditempo.constants.timing
import miditempo.events
import miditempo.exceptions
import miditempo.tempo_segments


@dataclasses.dataclass (frozen=True)
class BeatMarker:

	"""
	One beat line on a ruler.

	Attributes:
		time: Position in seconds.
		beat_index: Beats since tick 0 (0-based).
		bar_number: 1-based bar containing the beat.
		beat_number: 1-based beat within the bar.
		is_bar_start: True on the first beat of a bar.
	"""

	time: float
	beat_index: int
	bar_number: int
	beat_number: int
	is_bar_start: bool


def _require_finite (value: float, name: str) -> None:

	if not math.isfinite(value):
		raise ValueError(f"{name} must be finite, got {value}")


class TimeConverter:

	"""
	Stateless conversions between ticks, seconds, beats and bars.

	Example::

		converter = TimeConverter(segments, ticks_per_quarter=480)

		converter.ticks_to_seconds(960)        # 1.0 at 120 BPM
		converter.seconds_to_bbt(2.0)          # BarBeatTick(bar=2, beat=1, tick=0)
	"""

	def __init__ (
		self,
		segments: typing.Sequence[miditempo.tempo_segments.TempoSegment],
		ticks_per_quarter: int,
		time_signature: typing.Optional[miditempo.events.TimeSignature] = None
	) -> None:

		"""
		Parameters:
			segments: A table from :func:`~miditempo.tempo_segments.build_tempo_segments`.
			ticks_per_quarter: The resolution the table was built with.
			time_signature: Used for bar arithmetic; 4/4 when omitted.
		"""

		if ticks_per_quarter <= 0:
			raise miditempo.exceptions.DegenerateTempoError(f"Ticks per quarter note must be positive, got {ticks_per_quarter}")

		if not segments:
			raise ValueError("A TimeConverter needs at least one tempo segment")

		self.segments: typing.Tuple[miditempo.tempo_segments.TempoSegment, ...] = tuple(segments)
		self.ticks_per_quarter = ticks_per_quarter
		self.time_signature = time_signature if time_signature is not None else miditempo.events.TimeSignature()

		self._start_ticks = [segment.start_tick for segment in self.segments]
		self._start_seconds = [segment.cumulative_seconds for segment in self.segments]
		self._start_beats = [segment.cumulative_beats for segment in self.segments]

	@classmethod
	def from_tempo_changes (
		cls,
		changes: typing.Iterable[miditempo.events.TempoChange],
		ticks_per_quarter: int,
		time_signature: typing.Optional[miditempo.events.TimeSignature] = None,
		default_tempo: int = miditempo.constants.timing.DEFAULT_TEMPO
	) -> "TimeConverter":

		"""Build the segment table and the converter in one step."""

		segments = miditempo.tempo_segments.build_tempo_segments(changes, ticks_per_quarter, default_tempo)
		return cls(segments, ticks_per_quarter, time_signature)

	@property
	def beats_per_bar (self) -> int:

		return self.time_signature.beats_per_bar

	def _segment_at (self, starts: typing.List[float], position: float) -> miditempo.tempo_segments.TempoSegment:

		"""Last segment whose start is at or before ``position``, clamped to the first."""

		index = bisect.bisect_right(starts, position) - 1
		return self.segments[max(0, index)]

	# ── Ticks and seconds ────────────────────────────────────────────────

	def ticks_to_seconds (self, tick: float) -> float:

		_require_finite(tick, "tick")
		segment = self._segment_at(self._start_ticks, tick)
		return segment.cumulative_seconds + (tick - segment.start_tick) * segment.seconds_per_tick

	def seconds_to_ticks (self, seconds: float) -> float:

		"""
		Inverse of :meth:`ticks_to_seconds`. The result is fractional; round it
		when a whole tick is needed.
		"""

		_require_finite(seconds, "seconds")
		segment = self._segment_at(self._start_seconds, seconds)
		return segment.start_tick + (seconds - segment.cumulative_seconds) / segment.seconds_per_tick

	def ticks_to_seconds_many (self, ticks: typing.Iterable[float]) -> typing.List[float]:

		return [self.ticks_to_seconds(tick) for tick in ticks]

	def seconds_to_ticks_many (self, seconds: typing.Iterable[float]) -> typing.List[float]:

		return [self.seconds_to_ticks(value) for value in seconds]

	# ── Beats ────────────────────────────────────────────────────────────

	def ticks_to_beats (self, tick: float) -> float:

		return tick / self.ticks_per_quarter

	def beats_to_ticks (self, beats: float) -> float:

		return beats * self.ticks_per_quarter

	def beats_to_seconds (self, beats: float) -> float:

		"""
		Seconds at a quarter-note beat position.

		Searches the beats prefix sum directly, since beats per second change
		from segment to segment while ticks per beat do not.
		"""

		_require_finite(beats, "beats")
		segment = self._segment_at(self._start_beats, beats)
		return segment.cumulative_seconds + (beats - segment.cumulative_beats) * segment.seconds_per_beat

	def seconds_to_beats (self, seconds: float) -> float:

		_require_finite(seconds, "seconds")
		segment = self._segment_at(self._start_seconds, seconds)
		return segment.cumulative_beats + (seconds - segment.cumulative_seconds) / segment.seconds_per_beat

	# ── Bars ─────────────────────────────────────────────────────────────

	def seconds_to_bars (self, seconds: float) -> float:

		"""Bars elapsed at ``seconds`` (0.0 at the start, fractional inside a bar)."""

		return self.seconds_to_beats(seconds) / self.beats_per_bar

	def bars_to_seconds (self, bars: float) -> float:

		return self.beats_to_seconds(bars * self.beats_per_bar)

	def seconds_to_bbt (self, seconds: float) -> miditempo.bbt.BarBeatTick:

		"""Transport position at ``seconds``; times before 0 read as ``1.1.0``."""

		ticks = self.beats_to_ticks(self.seconds_to_beats(seconds))
		return miditempo.bbt.ticks_to_bbt(ticks, self.ticks_per_quarter, self.beats_per_bar)

	def bbt_to_seconds (self, position: miditempo.bbt.BarBeatTick) -> float:

		return self.ticks_to_seconds(position.to_ticks(self.ticks_per_quarter, self.beats_per_bar))

	def format_seconds (self, seconds: float) -> str:

		"""Format a time as ``bar.beat.tick``."""

		return str(self.seconds_to_bbt(seconds))

	# ── Tempo lookups ────────────────────────────────────────────────────

	def tempo_at_tick (self, tick: float) -> int:

		"""Microseconds per quarter note in effect at ``tick``."""

		_require_finite(tick, "tick")
		return self._segment_at(self._start_ticks, tick).microseconds_per_quarter

	def tempo_at_seconds (self, seconds: float) -> int:

		_require_finite(seconds, "seconds")
		return self._segment_at(self._start_seconds, seconds).microseconds_per_quarter

	# ── Ruler helpers ────────────────────────────────────────────────────

	def bar_window (self, seconds: float, bars: int = 1) -> typing.Tuple[float, float]:

		"""
		The ``[start, end)`` seconds of the bar-aligned window containing ``seconds``.

		Windows are ``bars`` bars long and aligned to multiples of ``bars`` from
		the first bar, so ``bar_window(t, 4)`` always starts on bar 1, 5, 9 ...
		"""

		if bars < 1:
			raise ValueError(f"bars must be at least 1, got {bars}")

		bar_index = math.floor(self.seconds_to_beats(seconds) / self.beats_per_bar)
		window_start_bar = (bar_index // bars) * bars

		start_beats = window_start_bar * self.beats_per_bar
		end_beats = start_beats + bars * self.beats_per_bar

		return self.beats_to_seconds(start_beats), self.beats_to_seconds(end_beats)

	def beat_grid (self, start_seconds: float, end_seconds: float) -> typing.List[BeatMarker]:

		"""Every beat from ``start_seconds`` to ``end_seconds`` inclusive, never before beat 0."""

		if end_seconds < start_seconds:
			return []

		start_beats = self.seconds_to_beats(start_seconds)
		end_beats = self.seconds_to_beats(end_seconds)

		# Tolerance so a beat sitting exactly on either edge is not lost to rounding.
		first = max(0, math.ceil(start_beats - 1e-9))
		last = math.floor(end_beats + 1e-9)

		markers: typing.List[BeatMarker] = []

		for beat_index in range(first, last + 1):
			bar_index, beat_in_bar = divmod(beat_index, self.beats_per_bar)
			markers.append(BeatMarker(
				time = self.beats_to_seconds(beat_index),
				beat_index = beat_index,
				bar_number = bar_index + 1,
				beat_number = beat_in_bar + 1,
				is_bar_start = beat_in_bar == 0,
			))

		return markers
