"""Bar.Beat.Tick positions for transport displays and ruler input.

Bars and beats are 1-based, ticks within a beat are 0-based, so tick 0 is
``1.1.0``. A beat here is one quarter note and a bar holds ``beats_per_bar``
of them (the time signature numerator).

These helpers are tempo-independent; to go from seconds use
:meth:`miditempo.converter.TimeConverter.seconds_to_bbt`.
"""

import dataclasses
import math
import re
import typing


_NON_BBT_CHARACTERS = re.compile(r"[^0-9.:\s]")
_BBT_SEPARATORS = re.compile(r"[.:\s]+")


@dataclasses.dataclass (frozen=True)
class BarBeatTick:

	"""A musical position: ``bar`` and ``beat`` from 1, ``tick`` from 0."""

	bar: int = 1
	beat: int = 1
	tick: int = 0

	def to_ticks (self, ticks_per_quarter: int, beats_per_bar: int) -> int:

		"""Absolute tick of this position."""

		return bbt_to_ticks(self.bar, self.beat, self.tick, ticks_per_quarter, beats_per_bar)

	def __str__ (self) -> str:

		return f"{self.bar}.{self.beat}.{self.tick}"


def _check_grid (ticks_per_quarter: int, beats_per_bar: int) -> None:

	if ticks_per_quarter <= 0:
		raise ValueError(f"ticks_per_quarter must be positive, got {ticks_per_quarter}")
	if beats_per_bar <= 0:
		raise ValueError(f"beats_per_bar must be positive, got {beats_per_bar}")


def ticks_to_bbt (ticks: float, ticks_per_quarter: int, beats_per_bar: int) -> BarBeatTick:

	"""
	Split an absolute tick into bar, beat and tick.

	Negative or non-finite input is treated as 0. Fractional ticks round to the
	nearest whole tick first.
	"""

	_check_grid(ticks_per_quarter, beats_per_bar)

	if not math.isfinite(ticks) or ticks < 0:
		ticks = 0

	bar_index, within_bar = divmod(int(round(ticks)), ticks_per_quarter * beats_per_bar)
	beat_index, tick = divmod(within_bar, ticks_per_quarter)

	return BarBeatTick(bar=bar_index + 1, beat=beat_index + 1, tick=tick)


def bbt_to_ticks (bar: int, beat: int, tick: int, ticks_per_quarter: int, beats_per_bar: int) -> int:

	"""Absolute tick for a 1-based bar and beat and a 0-based tick."""

	_check_grid(ticks_per_quarter, beats_per_bar)

	total_beats = (bar - 1) * beats_per_bar + (beat - 1)
	return total_beats * ticks_per_quarter + tick


def format_bbt (ticks: float, ticks_per_quarter: int, beats_per_bar: int, width: int = 0) -> str:

	"""
	Format a tick as ``bar.beat.tick`` (e.g. ``5.1.0``).

	``width`` zero-pads every field, e.g. ``width=3`` gives ``005.001.000``.
	"""

	position = ticks_to_bbt(ticks, ticks_per_quarter, beats_per_bar)
	return f"{position.bar:0{width}d}.{position.beat:0{width}d}.{position.tick:0{width}d}" if width else str(position)


def parse_bbt (text: str, ticks_per_quarter: int, beats_per_bar: int) -> typing.Optional[BarBeatTick]:

	"""
	Parse a typed position into a normalized :class:`BarBeatTick`.

	Accepts ``"5.2.120"``, ``"5:2:120"``, ``"5 2 120"``, ``"5.2"`` (tick 0) and
	``"5"`` (beat 1, tick 0). Other characters are ignored. Bar and beat below 1
	are raised to 1, and ticks or beats that overflow carry into the next beat
	or bar. Returns ``None`` when nothing numeric is left.
	"""

	_check_grid(ticks_per_quarter, beats_per_bar)

	if not text:
		return None

	cleaned = _NON_BBT_CHARACTERS.sub("", text.strip())
	parts = [part for part in _BBT_SEPARATORS.split(cleaned) if part]

	if not parts:
		return None

	numbers = [int(part) for part in parts]

	bar = max(1, numbers[0])
	beat = max(1, numbers[1]) if len(numbers) > 1 else 1
	tick = numbers[2] if len(numbers) > 2 else 0

	extra_beats, tick = divmod(tick, ticks_per_quarter)
	beat += extra_beats

	extra_bars, beat_index = divmod(beat - 1, beats_per_bar)

	return BarBeatTick(bar=bar + extra_bars, beat=beat_index + 1, tick=tick)
