"""Constants for miditempo.

This package contains three sets of constants:

- ``miditempo.constants.timing`` - Default tempo, resolution and header sizes
- ``miditempo.constants.status`` - Channel event status nibbles and system status bytes
- ``miditempo.constants.meta`` - Meta event type codes

Timing defaults are re-exported here, so ``miditempo.constants.DEFAULT_TEMPO``
works without importing the submodule.
"""

# These match the values in miditempo.constants.timing.

DEFAULT_TEMPO = 500_000
DEFAULT_TICKS_PER_QUARTER = 480
SMPTE_FALLBACK_TICKS_PER_QUARTER = 24
UNMATCHED_NOTE_SECONDS = 1.0
