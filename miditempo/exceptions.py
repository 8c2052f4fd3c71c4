"""Errors raised while reading MIDI data.

All errors derive from :class:`MidiError`, which is a ``ValueError`` so callers
that already guard against bad input with ``except ValueError`` keep working.

Only :class:`FormatError` ever reaches the caller of
:func:`miditempo.parser.parse_midi`. The other two are recovered inside the
engine: a :class:`BoundsError` drops a single event, and a
:class:`DegenerateTempoError` falls back to the default 120 BPM tempo map.
"""

import typing


class MidiError (ValueError):

	"""Base class for every error raised by miditempo."""


class FormatError (MidiError):

	"""
	The file structure is unreadable: bad chunk magic, a header shorter than
	14 bytes, or a track chunk whose declared length runs past the buffer.
	"""


class BoundsError (MidiError):

	"""
	A read would run past the end of the readable region.

	Attributes:
		offset: Position of the attempted read.
		needed: Number of bytes the read required.
		available: Number of bytes left at ``offset``.
	"""

	def __init__ (self, offset: int, needed: int, available: int, message: typing.Optional[str] = None) -> None:

		self.offset = offset
		self.needed = needed
		self.available = available

		if message is None:
			message = f"Read of {needed} byte(s) at offset {offset} exceeds data ({available} available)"

		super().__init__(message)


class DegenerateTempoError (MidiError):

	"""A tempo or time resolution is zero or negative, so no tempo map can be built."""
