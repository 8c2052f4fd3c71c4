import logging
import sys

import miditempo

logging.basicConfig(level=logging.INFO)

# Usage: python examples/ruler.py song.mid [BARS]
#
# Prints a bar/beat ruler for the first BARS bars of a file, the way a
# timeline view draws its grid, then lists the notes sounding in each bar.

path = sys.argv[1]
bars = int(sys.argv[2]) if len(sys.argv) > 2 else 4

timeline = miditempo.parse_midi_file(path)
converter = timeline.converter

# The converter works on the untrimmed file axis; shift by the trim to line up
# with note times, which start at 0.
offset = timeline.trimmed_seconds

start, _ = converter.bar_window(offset)
end = converter.bars_to_seconds(converter.seconds_to_bars(start) + bars)

print(f"{path}: {timeline.time_signature} at {timeline.bpm:.1f} BPM, {timeline.duration_seconds:.2f}s")

for marker in converter.beat_grid(start, end):

	label = f"{marker.bar_number}" if marker.is_bar_start else "."
	print(f"{marker.time - offset:8.3f}s  {label:>4}  {converter.format_seconds(marker.time)}")

	if marker.is_bar_start:
		bar_start, bar_end = converter.bar_window(marker.time)
		notes = miditempo.notes_in_window(timeline, bar_start - offset, bar_end - offset)
		print(f"{'':16}{len(notes)} note(s): {' '.join(str(note.note) for note in notes[:12])}")
