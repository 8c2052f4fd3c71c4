"""End-to-end parsing: bytes in, :class:`~miditempo.timeline.Timeline` out.

::

	import miditempo

	timeline = miditempo.parse_midi(data)

	timeline.duration_seconds
	timeline.converter.seconds_to_bbt(12.5)

Each call builds its own decoder state, segment table and converter, so
parses are independent and may run concurrently.
"""

import logging
import re
import typing

import mido

import miditempo.config
import miditempo.constants.meta
import miditempo.converter
import miditempo.decoder
import miditempo.events
import miditempo.exceptions
import miditempo.tempo_segments
import miditempo.timeline


logger = logging.getLogger(__name__)

_BPM_PATTERN = re.compile(r"(\d+)\s*(?:bpm|BPM)")


def find_text_bpm (events: typing.Iterable[miditempo.events.MidiEvent]) -> typing.Optional[int]:

	"""
	Look for a tempo written as text, e.g. a track named ``"Drums 128 BPM"``.

	Only text, track name and marker events are searched. Some DAWs put the
	tempo there instead of writing a tempo event. The last match wins.
	"""

	found: typing.Optional[int] = None

	for event in events:

		if not isinstance(event, miditempo.events.Meta):
			continue
		if event.subtype not in miditempo.constants.meta.TEMPO_HINT_TYPES:
			continue

		match = _BPM_PATTERN.search(event.text or "")

		if match:
			bpm = int(match.group(1))
			if bpm > 0:
				logger.debug(f"Found BPM in metadata: {bpm} ({event.text!r})")
				found = bpm

	return found


def _tempo_segments (
	decoded: miditempo.decoder.DecodedFile,
	config: miditempo.config.ParserConfig
) -> typing.Tuple[typing.Tuple[miditempo.tempo_segments.TempoSegment, ...], int]:

	"""Segment table and resolution for ``decoded``, falling back to defaults if unusable."""

	ticks_per_quarter = decoded.ticks_per_quarter

	try:
		segments = miditempo.tempo_segments.build_tempo_segments(decoded.tempo_changes, ticks_per_quarter, config.default_tempo)
		return segments, ticks_per_quarter

	except miditempo.exceptions.DegenerateTempoError as exc:

		if ticks_per_quarter <= 0:
			ticks_per_quarter = config.default_ticks_per_quarter

		logger.warning(
			f"Unusable timing in file ({exc}); using {mido.tempo2bpm(config.default_tempo):g} BPM "
			f"at {ticks_per_quarter} ticks per quarter note"
		)

		return miditempo.tempo_segments.default_tempo_segments(ticks_per_quarter, config.default_tempo), ticks_per_quarter


def _reported_tempo (decoded: miditempo.decoder.DecodedFile, config: miditempo.config.ParserConfig) -> int:

	"""The single tempo shown for the file: its last tempo event, a text hint, or the default."""

	if decoded.tempo is not None and decoded.tempo > 0:
		return decoded.tempo

	if config.detect_text_bpm:
		bpm = find_text_bpm(decoded.events)
		if bpm is not None:
			return mido.bpm2tempo(bpm)

	return config.default_tempo


def parse_midi (
	data: typing.Union[bytes, bytearray, memoryview],
	config: typing.Optional[miditempo.config.ParserConfig] = None
) -> miditempo.timeline.Timeline:

	"""
	Parse a Standard MIDI File into a trimmed, seconds-stamped timeline.

	Parameters:
		data: The whole file. Read only, not retained.
		config: Parser settings; defaults when omitted.

	Raises:
		FormatError: The file structure is unreadable.
	"""

	if config is None:
		config = miditempo.config.ParserConfig()

	decoded = miditempo.decoder.decode(data, smpte_ticks_per_quarter=config.smpte_ticks_per_quarter)

	segments, ticks_per_quarter = _tempo_segments(decoded, config)
	converter = miditempo.converter.TimeConverter(segments, ticks_per_quarter, decoded.time_signature)

	timeline = miditempo.timeline.build_timeline(
		(track.events for track in decoded.tracks),
		converter,
		header = decoded.header,
		tempo = _reported_tempo(decoded, config),
		unmatched_note_seconds = config.unmatched_note_seconds,
	)

	logger.info(
		f"Parsed MIDI: {len(timeline.events)} note event(s), {timeline.duration_seconds:.3f}s, "
		f"{timeline.bpm:.2f} BPM, {timeline.time_signature}, {len(segments)} tempo segment(s), "
		f"trimmed {timeline.trimmed_ticks} tick(s)"
	)

	return timeline


def parse_midi_file (
	path: str,
	config: typing.Optional[miditempo.config.ParserConfig] = None
) -> miditempo.timeline.Timeline:

	"""Read ``path`` and parse it with :func:`parse_midi`."""

	with open(path, 'rb') as f:
		data = f.read()

	logger.info(f"Read {len(data)} bytes from {path}")

	return parse_midi(data, config)
