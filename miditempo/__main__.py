import argparse
import json
import logging
import sys
import typing

import miditempo.config
import miditempo.exceptions
import miditempo.parser
import miditempo.timeline


logger = logging.getLogger(__name__)


def describe (timeline: miditempo.timeline.Timeline) -> str:

	"""
	A human-readable summary of a parsed timeline.
	"""

	lines: typing.List[str] = []

	if timeline.header is not None:
		lines.append(f"Format:          {timeline.header.format}")
		lines.append(f"Tracks:          {timeline.header.track_count}")

	lines.append(f"Resolution:      {timeline.ticks_per_quarter} ticks per quarter note")
	lines.append(f"Time signature:  {timeline.time_signature}")
	lines.append(f"Tempo:           {timeline.bpm:.2f} BPM ({timeline.tempo} us per quarter)")
	lines.append(f"Duration:        {timeline.duration_seconds:.3f}s")
	lines.append(f"Notes:           {len(timeline.notes)} ({len(timeline.events)} note events)")
	lines.append(f"Trimmed:         {timeline.trimmed_ticks} ticks ({timeline.trimmed_seconds:.3f}s)")
	lines.append("Tempo map:")

	for entry in timeline.tempo_map_seconds:
		position = timeline.converter.format_seconds(entry.time + timeline.trimmed_seconds) if timeline.converter else "-"
		lines.append(f"  {entry.time:10.3f}s  {position:>10}  {entry.bpm:8.2f} BPM")

	return "\n".join(lines)


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point: parse a MIDI file and print its timing summary.
	"""

	parser = argparse.ArgumentParser(prog="miditempo", description="Inspect the timing of a Standard MIDI File.")
	parser.add_argument("path", help="MIDI file to read")
	parser.add_argument("--config", default=None, help="YAML config file (default: none)")
	parser.add_argument("--json", action="store_true", help="print the timeline as JSON")
	parser.add_argument("--verbose", "-v", action="store_true", help="log every tempo and meta event")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

	try:
		config = miditempo.config.load_config(args.config) if args.config else miditempo.config.ParserConfig()
	except ValueError as exc:
		logger.error(f"Invalid config: {exc}")
		return 2

	try:
		timeline = miditempo.parser.parse_midi_file(args.path, config)
	except (miditempo.exceptions.MidiError, OSError) as exc:
		print(f"Unreadable MIDI file: {exc}", file=sys.stderr)
		return 1

	if args.json:
		print(json.dumps(timeline.to_dict(), indent=2))
	else:
		print(describe(timeline))

	return 0


if __name__ == "__main__":
	sys.exit(main())
