import math

import pytest

import miditempo.bbt
import miditempo.converter
import miditempo.events
import miditempo.exceptions


@pytest.fixture
def tempo_change_converter () -> miditempo.converter.TimeConverter:

	"""480 PPQ, 120 BPM then 240 BPM from tick 480, in 4/4."""

	return miditempo.converter.TimeConverter.from_tempo_changes(
		[
			miditempo.events.TempoChange(tick=0, microseconds_per_quarter=500_000),
			miditempo.events.TempoChange(tick=480, microseconds_per_quarter=250_000),
		],
		480
	)


@pytest.fixture
def waltz_converter () -> miditempo.converter.TimeConverter:

	"""96 PPQ, constant 120 BPM, 3/4."""

	return miditempo.converter.TimeConverter.from_tempo_changes(
		[],
		96,
		miditempo.events.TimeSignature(numerator=3, denominator=4)
	)


# ── Ticks and seconds ────────────────────────────────────────────────

def test_tempo_change_scenario (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""Half a second for the first beat at 120 BPM, a quarter for the next at 240."""

	assert tempo_change_converter.ticks_to_seconds(0) == pytest.approx(0.0)
	assert tempo_change_converter.ticks_to_seconds(480) == pytest.approx(0.5)
	assert tempo_change_converter.ticks_to_seconds(960) == pytest.approx(0.75)


def test_constant_tempo_is_linear () -> None:

	"""With one segment, seconds are ticks times the tick length."""

	converter = miditempo.converter.TimeConverter.from_tempo_changes([], 96)

	assert converter.ticks_to_seconds(32) == pytest.approx(32 * 0.5 / 96)
	assert converter.ticks_to_seconds(96 * 10) == pytest.approx(5.0)


def test_seconds_to_ticks_inverts (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""Seconds back to ticks lands within a tick of where it started."""

	for tick in (0, 1, 100, 479, 480, 481, 700, 960, 5000):
		seconds = tempo_change_converter.ticks_to_seconds(tick)
		assert abs(tempo_change_converter.seconds_to_ticks(seconds) - tick) <= 1


def test_ticks_to_seconds_is_monotonic (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	times = tempo_change_converter.ticks_to_seconds_many(range(0, 2000, 37))

	assert times == sorted(times)


def test_boundary_belongs_to_later_segment (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""A tempo change takes effect at its own tick."""

	assert tempo_change_converter.tempo_at_tick(479) == 500_000
	assert tempo_change_converter.tempo_at_tick(480) == 250_000
	assert tempo_change_converter.tempo_at_seconds(0.5) == 250_000


def test_negative_positions_use_first_segment (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""Before the first segment the first tempo is extrapolated backwards."""

	assert tempo_change_converter.ticks_to_seconds(-480) == pytest.approx(-0.5)
	assert tempo_change_converter.seconds_to_ticks(-0.5) == pytest.approx(-480)


def test_batch_conversions_match_single (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	ticks = [0, 240, 480, 720]
	seconds = tempo_change_converter.ticks_to_seconds_many(ticks)

	assert seconds == [tempo_change_converter.ticks_to_seconds(t) for t in ticks]
	assert tempo_change_converter.seconds_to_ticks_many(seconds) == pytest.approx(ticks)


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_input_is_rejected (tempo_change_converter: miditempo.converter.TimeConverter, value: float) -> None:

	with pytest.raises(ValueError):
		tempo_change_converter.ticks_to_seconds(value)

	with pytest.raises(ValueError):
		tempo_change_converter.seconds_to_ticks(value)


def test_invalid_construction () -> None:

	with pytest.raises(miditempo.exceptions.DegenerateTempoError):
		miditempo.converter.TimeConverter.from_tempo_changes([], 0)

	with pytest.raises(ValueError):
		miditempo.converter.TimeConverter([], 480)


# ── Beats and bars ───────────────────────────────────────────────────

def test_beats_and_seconds (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""Beats are quarter notes whatever the tempo."""

	assert tempo_change_converter.ticks_to_beats(960) == pytest.approx(2.0)
	assert tempo_change_converter.beats_to_ticks(1.5) == pytest.approx(720)
	assert tempo_change_converter.beats_to_seconds(2.0) == pytest.approx(0.75)
	assert tempo_change_converter.seconds_to_beats(0.75) == pytest.approx(2.0)
	assert tempo_change_converter.seconds_to_beats(0.25) == pytest.approx(0.5)


def test_bars_follow_time_signature (waltz_converter: miditempo.converter.TimeConverter) -> None:

	"""In 3/4 at 120 BPM a bar lasts 1.5 seconds."""

	assert waltz_converter.beats_per_bar == 3
	assert waltz_converter.bars_to_seconds(2) == pytest.approx(3.0)
	assert waltz_converter.seconds_to_bars(2.25) == pytest.approx(1.5)


def test_seconds_to_bbt (waltz_converter: miditempo.converter.TimeConverter) -> None:

	assert waltz_converter.seconds_to_bbt(0.0) == miditempo.bbt.BarBeatTick(1, 1, 0)
	assert waltz_converter.seconds_to_bbt(1.5) == miditempo.bbt.BarBeatTick(2, 1, 0)
	assert waltz_converter.seconds_to_bbt(1.75) == miditempo.bbt.BarBeatTick(2, 1, 48)
	assert waltz_converter.seconds_to_bbt(-3.0) == miditempo.bbt.BarBeatTick(1, 1, 0)
	assert waltz_converter.format_seconds(2.0) == "2.2.0"


def test_bbt_to_seconds (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	"""Bar 1 beat 3 sits after one slow beat and one fast beat."""

	assert tempo_change_converter.bbt_to_seconds(miditempo.bbt.BarBeatTick(1, 3, 0)) == pytest.approx(0.75)


# ── Ruler helpers ────────────────────────────────────────────────────

def test_bar_window_single_bar (waltz_converter: miditempo.converter.TimeConverter) -> None:

	assert waltz_converter.bar_window(2.0) == pytest.approx((1.5, 3.0))


def test_bar_window_aligns_to_multiples (waltz_converter: miditempo.converter.TimeConverter) -> None:

	"""Four-bar windows start on bars 1, 5, 9 and so on."""

	assert waltz_converter.bar_window(7.0, bars=4) == pytest.approx((6.0, 12.0))
	assert waltz_converter.bar_window(0.0, bars=4) == pytest.approx((0.0, 6.0))


def test_bar_window_rejects_zero_bars (waltz_converter: miditempo.converter.TimeConverter) -> None:

	with pytest.raises(ValueError):
		waltz_converter.bar_window(1.0, bars=0)


def test_beat_grid_marks_bars (waltz_converter: miditempo.converter.TimeConverter) -> None:

	"""Beats on both edges are included and bar starts are flagged."""

	grid = waltz_converter.beat_grid(0.5, 2.0)

	assert [marker.beat_index for marker in grid] == [1, 2, 3, 4]
	assert [marker.time for marker in grid] == pytest.approx([0.5, 1.0, 1.5, 2.0])
	assert [marker.is_bar_start for marker in grid] == [False, False, True, False]
	assert (grid[2].bar_number, grid[2].beat_number) == (2, 1)


def test_beat_grid_follows_tempo_changes (tempo_change_converter: miditempo.converter.TimeConverter) -> None:

	grid = tempo_change_converter.beat_grid(0.0, 1.0)

	assert [marker.time for marker in grid] == pytest.approx([0.0, 0.5, 0.75, 1.0])


def test_beat_grid_edge_cases (waltz_converter: miditempo.converter.TimeConverter) -> None:

	"""An inverted range is empty and nothing precedes beat 0."""

	assert waltz_converter.beat_grid(2.0, 1.0) == []
	assert [marker.beat_index for marker in waltz_converter.beat_grid(-2.0, 0.6)] == [0, 1]
