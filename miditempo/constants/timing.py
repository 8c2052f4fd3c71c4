"""Timing defaults and fixed sizes from the Standard MIDI File format.

Tempo is expressed the way the file stores it: **microseconds per quarter note**.
500 000 us per quarter is 120 BPM.
"""

MICROSECONDS_PER_SECOND = 1_000_000

# Tempo and resolution used when the file says nothing (or says something unusable)

DEFAULT_TEMPO = 500_000
DEFAULT_TICKS_PER_QUARTER = 480

# Resolution substituted for SMPTE (frame-based) division. This is a deliberate
# simplification: true ticks-per-frame timing is not computed.

SMPTE_FALLBACK_TICKS_PER_QUARTER = 24

# Sounding length given to a note-on that never receives its note-off

UNMATCHED_NOTE_SECONDS = 1.0

# Chunk layout

CHUNK_HEADER_SIZE = 8           # 4-byte magic + 32-bit length
HEADER_CHUNK_SIZE = 14          # MThd chunk including its 6-byte body
MIN_HEADER_LENGTH = 6
HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"

# Variable-length quantities hold at most 28 bits in 4 bytes

VLQ_MAX_BYTES = 4
VLQ_MAX_VALUE = 0x0FFFFFFF
