"""Immutable, bounds-checked reading over a MIDI byte buffer.

A :class:`ByteCursor` never changes. Every read returns the decoded value
together with a *new* cursor positioned after it, so a decoder can thread the
cursor through its loop as plain state::

	length, cursor = cursor.read_u32()
	magic, cursor = cursor.read_bytes(4)

Multi-byte integers are big-endian, as in every Standard MIDI File field.
"""

import dataclasses
import typing

import miditempo.constants.timing
import miditempo.exceptions


@dataclasses.dataclass (frozen=True)
class ByteCursor:

	"""
	A read position over ``data``, optionally limited to ``data[:end]``.

	Parameters:
		data: The buffer. It is never modified or retained beyond the cursor.
		offset: Absolute position of the next read.
		end: Exclusive limit for reads (e.g. the end of a track chunk). Defaults
			to the end of the buffer and is always clamped to it.
	"""

	data: bytes
	offset: int = 0
	end: typing.Optional[int] = None

	@property
	def limit (self) -> int:

		"""Absolute position reads may not reach or pass."""

		if self.end is None:
			return len(self.data)

		return min(self.end, len(self.data))

	@property
	def remaining (self) -> int:

		"""Bytes left before the limit (never negative)."""

		return max(0, self.limit - self.offset)

	def at_end (self) -> bool:

		"""Return True when no bytes are left to read."""

		return self.offset >= self.limit

	def _require (self, count: int) -> None:

		if count < 0 or self.offset < 0 or self.offset + count > self.limit:
			raise miditempo.exceptions.BoundsError(self.offset, count, self.remaining)

	def seek (self, offset: int) -> "ByteCursor":

		"""Return a cursor at an absolute ``offset`` with the same limit."""

		return dataclasses.replace(self, offset=offset)

	def advance (self, count: int) -> "ByteCursor":

		"""Return a cursor ``count`` bytes further on, checking the skipped bytes exist."""

		self._require(count)
		return dataclasses.replace(self, offset=self.offset + count)

	def bounded (self, end: int) -> "ByteCursor":

		"""Return a cursor at the same position whose reads stop at ``end``."""

		return dataclasses.replace(self, end=end)

	def peek_u8 (self) -> int:

		"""Return the next byte without moving."""

		self._require(1)
		return self.data[self.offset]

	def read_u8 (self) -> typing.Tuple[int, "ByteCursor"]:

		"""Read one unsigned byte."""

		self._require(1)
		return self.data[self.offset], dataclasses.replace(self, offset=self.offset + 1)

	def read_u16 (self) -> typing.Tuple[int, "ByteCursor"]:

		"""Read a big-endian unsigned 16-bit integer."""

		raw, cursor = self.read_bytes(2)
		return int.from_bytes(raw, "big"), cursor

	def read_u24 (self) -> typing.Tuple[int, "ByteCursor"]:

		"""Read a big-endian unsigned 24-bit integer (the tempo payload width)."""

		raw, cursor = self.read_bytes(3)
		return int.from_bytes(raw, "big"), cursor

	def read_u32 (self) -> typing.Tuple[int, "ByteCursor"]:

		"""Read a big-endian unsigned 32-bit integer."""

		raw, cursor = self.read_bytes(4)
		return int.from_bytes(raw, "big"), cursor

	def read_bytes (self, count: int) -> typing.Tuple[bytes, "ByteCursor"]:

		"""Read exactly ``count`` raw bytes."""

		self._require(count)
		stop = self.offset + count
		return bytes(self.data[self.offset:stop]), dataclasses.replace(self, offset=stop)

	def read_vlq (self) -> typing.Tuple[int, "ByteCursor"]:

		"""
		Read a variable-length quantity.

		Each byte contributes its low 7 bits, most significant group first. A set
		high bit means another byte follows. A quantity whose last byte still has
		the continuation bit set at the limit, or that runs past four bytes,
		raises ``BoundsError``.
		"""

		value = 0
		offset = self.offset

		while True:

			if offset - self.offset >= miditempo.constants.timing.VLQ_MAX_BYTES:
				raise miditempo.exceptions.BoundsError(
					self.offset,
					miditempo.constants.timing.VLQ_MAX_BYTES + 1,
					miditempo.constants.timing.VLQ_MAX_BYTES,
					f"Variable-length quantity starting at offset {self.offset} is longer than {miditempo.constants.timing.VLQ_MAX_BYTES} bytes"
				)

			if offset >= self.limit:
				raise miditempo.exceptions.BoundsError(
					offset,
					1,
					0,
					f"Variable-length quantity starting at offset {self.offset} is truncated"
				)

			byte = self.data[offset]
			offset += 1
			value = (value << 7) | (byte & 0x7F)

			if not byte & 0x80:
				break

		return value, dataclasses.replace(self, offset=offset)


def encode_vlq (value: int) -> bytes:

	"""
	Encode a non-negative integer as a variable-length quantity.

	Values up to ``0x0FFFFFFF`` fit the four bytes the file format allows.
	"""

	if value < 0 or value > miditempo.constants.timing.VLQ_MAX_VALUE:
		raise ValueError(f"VLQ value must be between 0 and {miditempo.constants.timing.VLQ_MAX_VALUE:#x}, got {value}")

	groups = [value & 0x7F]
	value >>= 7

	while value:
		groups.append((value & 0x7F) | 0x80)
		value >>= 7

	return bytes(reversed(groups))
