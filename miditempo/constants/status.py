"""Status byte values.

Channel events are identified by the high nibble of the status byte; the low
nibble carries the channel (0-15).
"""

# Channel event high nibbles

NOTE_OFF = 0x80
NOTE_ON = 0x90
POLY_AFTERTOUCH = 0xA0
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_BEND = 0xE0

# Data bytes that follow each channel event

CHANNEL_EVENT_DATA_BYTES = {
	NOTE_OFF: 2,
	NOTE_ON: 2,
	POLY_AFTERTOUCH: 2,
	CONTROL_CHANGE: 2,
	PROGRAM_CHANGE: 1,
	CHANNEL_PRESSURE: 1,
	PITCH_BEND: 2,
}

# System and file-only status bytes

SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7
META = 0xFF

STATUS_BIT = 0x80
