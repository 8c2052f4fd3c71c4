"""Meta event type codes (the byte following a 0xFF status in a track chunk)."""

SEQUENCE_NUMBER = 0x00
TEXT = 0x01
COPYRIGHT = 0x02
TRACK_NAME = 0x03
INSTRUMENT_NAME = 0x04
LYRIC = 0x05
MARKER = 0x06
CUE_POINT = 0x07
CHANNEL_PREFIX = 0x20
END_OF_TRACK = 0x2F
SET_TEMPO = 0x51
SMPTE_OFFSET = 0x54
TIME_SIGNATURE = 0x58
KEY_SIGNATURE = 0x59
SEQUENCER_SPECIFIC = 0x7F

# Text-bearing meta events: payload is read as raw 8-bit characters

TEXT_TYPES = frozenset(range(TEXT, CUE_POINT + 1))

# Meta events scanned for a "120 BPM" style tempo hint

TEMPO_HINT_TYPES = frozenset({TEXT, TRACK_NAME, MARKER})

# Fixed payload sizes for the meta events we interpret

SET_TEMPO_LENGTH = 3
TIME_SIGNATURE_LENGTH = 4
