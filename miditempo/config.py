"""Parser settings and their YAML file form.

A config file keeps everything under a ``parser`` key::

	parser:
	  default_bpm: 120              # or default_tempo: 500000 (us per quarter)
	  default_ticks_per_quarter: 480
	  smpte_ticks_per_quarter: 24
	  unmatched_note_seconds: 1.0
	  detect_text_bpm: true
"""

import dataclasses
import logging
import os
import typing

import mido
import yaml

import miditempo.constants


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "miditempo.yaml"


@dataclasses.dataclass (frozen=True)
class ParserConfig:

	"""
	Settings for :func:`miditempo.parser.parse_midi`.

	Parameters:
		default_tempo: Tempo (us per quarter note) in force until the file sets
			one, and the fallback when a file's tempo map is unusable.
		default_ticks_per_quarter: Resolution substituted when the header's
			division is 0.
		smpte_ticks_per_quarter: Resolution substituted for SMPTE division.
		unmatched_note_seconds: Sounding length of a note-on with no note-off.
		detect_text_bpm: When a file has no tempo events, read a "120 BPM"
			style hint from its track name, text or marker events and report
			it as the file's tempo.
	"""

	default_tempo: int = miditempo.constants.DEFAULT_TEMPO
	default_ticks_per_quarter: int = miditempo.constants.DEFAULT_TICKS_PER_QUARTER
	smpte_ticks_per_quarter: int = miditempo.constants.SMPTE_FALLBACK_TICKS_PER_QUARTER
	unmatched_note_seconds: float = miditempo.constants.UNMATCHED_NOTE_SECONDS
	detect_text_bpm: bool = True

	def __post_init__ (self) -> None:
		if self.default_tempo <= 0:
			raise ValueError("default_tempo must be positive")
		if self.default_ticks_per_quarter <= 0:
			raise ValueError("default_ticks_per_quarter must be positive")
		if self.smpte_ticks_per_quarter <= 0:
			raise ValueError("smpte_ticks_per_quarter must be positive")
		if self.unmatched_note_seconds < 0:
			raise ValueError("unmatched_note_seconds must not be negative")

	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "ParserConfig":

		"""
		Build from a mapping of field names.

		``default_bpm`` is accepted in place of ``default_tempo``. Unknown keys
		raise ``ValueError`` so typos do not pass silently.
		"""

		values = dict(data)

		if "default_bpm" in values:
			if "default_tempo" in values:
				raise ValueError("Set either default_bpm or default_tempo, not both")
			bpm = values.pop("default_bpm")
			if bpm is None or bpm <= 0:
				raise ValueError(f"default_bpm must be positive, got {bpm}")
			values["default_tempo"] = mido.bpm2tempo(bpm)

		known = {field.name for field in dataclasses.fields(cls)}
		unknown = sorted(set(values) - known)

		if unknown:
			raise ValueError(f"Unknown parser setting(s): {', '.join(unknown)}. Available: {', '.join(sorted(known))}")

		return cls(**values)


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> ParserConfig:

	"""
	Load parser settings from a YAML file.

	A missing file is not an error: a warning is logged and defaults are used.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return ParserConfig()

	with open(config_path, 'r') as f:
		raw = yaml.safe_load(f) or {}

	if not isinstance(raw, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	section = raw.get("parser") or {}

	if not isinstance(section, dict):
		raise ValueError(f"'parser' in {config_path} must be a mapping")

	config = ParserConfig.from_dict(section)
	logger.info(f"Loaded parser config from {config_path}")

	return config
