
"""
miditempo - MIDI timing and tempo-map engine for Python.

miditempo reads Standard MIDI Files into a time-accurate timeline and
converts freely between ticks, seconds, beats and bars. It is the timing core
behind a MIDI-driven scene editor: the playback clock, the timeline ruler and
the export frame sampler all ask it where things are in time.

What it does:

- **Decodes the file format.** Header and track chunks, variable-length
  delta times, running status, note/controller/program events and meta
  events (tempo, time signature, track names, lyrics, markers). Unknown meta
  events are kept, never fatal.
- **Builds a tempo map.** Tempo changes become a sorted table of constant-tempo
  segments with precomputed start times, so every conversion is one binary
  search.
- **Converts time.** ``ticks_to_seconds``, ``seconds_to_ticks``,
  ``beats_to_seconds``, ``seconds_to_beats``, bars, ``bar.beat.tick`` positions,
  bar-aligned windows and beat grids for rulers.
- **Trims and measures.** Merges tracks, shifts the timeline so the first note
  plays at 0, pairs note-ons with note-offs and reports the exact duration.
- **Recovers from damage.** A truncated event is skipped, not fatal. An
  unusable tempo map falls back to 120 BPM.

What it does not do: audio, MIDI output or playback, real SMPTE frame timing
(SMPTE files are read at a fixed 24 ticks per quarter note, with a warning),
or merging several files.

Example::

    import miditempo

    with open("song.mid", "rb") as f:
        timeline = miditempo.parse_midi(f.read())

    print(timeline.duration_seconds)
    print(timeline.converter.seconds_to_bbt(10.0))    # e.g. 6.1.0

    for note in miditempo.notes_in_window(timeline, 4.0, 8.0):
        print(note.note, note.start_time, note.end_time)

Inspect a file from the command line::

    python -m miditempo song.mid
    python -m miditempo song.mid --json

Package-level exports: ``parse_midi``, ``parse_midi_file``, ``ParserConfig``,
``TimeConverter``, ``Timeline``, ``notes_in_window``, ``FormatError``.
"""

import miditempo.config
import miditempo.converter
import miditempo.exceptions
import miditempo.parser
import miditempo.timeline


parse_midi = miditempo.parser.parse_midi
parse_midi_file = miditempo.parser.parse_midi_file
ParserConfig = miditempo.config.ParserConfig
TimeConverter = miditempo.converter.TimeConverter
Timeline = miditempo.timeline.Timeline
notes_in_window = miditempo.timeline.notes_in_window
FormatError = miditempo.exceptions.FormatError
