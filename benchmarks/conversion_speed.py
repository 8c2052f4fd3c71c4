"""Tick/second conversion benchmark.

Builds a tempo map with a configurable number of tempo changes and measures
how long ``ticks_to_seconds`` and ``seconds_to_ticks`` take per call. The
lookups are binary searches, so time per call should grow with the log of the
segment count, not linearly.

Usage:
    python benchmarks/conversion_speed.py [--segments N] [--calls N] [--compare]

Options:
    --segments N    Tempo changes in the map (default: 1000)
    --calls N       Conversions to time per direction (default: 100000)
    --compare       Run 10, 1000 and 100000 segments and print them side by side
"""

import argparse
import logging
import random
import statistics
import time

# Keep conversion logging out of the timings.
logging.basicConfig(level=logging.ERROR)

import mido

import miditempo.converter
import miditempo.events

# ---------------------------------------------------------------------------

TICKS_PER_QUARTER = 480
TICKS_BETWEEN_CHANGES = TICKS_PER_QUARTER * 4
REPEATS = 5


def _build_converter (segments: int, seed: int) -> miditempo.converter.TimeConverter:

	"""A converter with one tempo change per bar, tempos between 60 and 200 BPM."""

	rng = random.Random(seed)

	changes = [
		miditempo.events.TempoChange(
			tick = index * TICKS_BETWEEN_CHANGES,
			microseconds_per_quarter = mido.bpm2tempo(rng.uniform(60.0, 200.0)),
		)
		for index in range(segments)
	]

	return miditempo.converter.TimeConverter.from_tempo_changes(changes, TICKS_PER_QUARTER)


def _run_benchmark (segments: int, calls: int, seed: int = 1) -> dict[str, list[float]]:

	"""Time each direction *REPEATS* times and return the per-call cost in seconds."""

	converter = _build_converter(segments, seed)
	rng = random.Random(seed)

	last_tick = segments * TICKS_BETWEEN_CHANGES
	ticks = [rng.uniform(0, last_tick) for _ in range(calls)]
	seconds = converter.ticks_to_seconds_many(ticks)

	results: dict[str, list[float]] = {"ticks_to_seconds": [], "seconds_to_ticks": []}

	for _ in range(REPEATS):

		start = time.perf_counter()
		for tick in ticks:
			converter.ticks_to_seconds(tick)
		results["ticks_to_seconds"].append((time.perf_counter() - start) / calls)

		start = time.perf_counter()
		for value in seconds:
			converter.seconds_to_ticks(value)
		results["seconds_to_ticks"].append((time.perf_counter() - start) / calls)

	return results


def _print_report (results: dict[str, list[float]], segments: int, calls: int, label: str = "") -> None:

	header = f"  {label}  " if label else " "

	print(f"\nConversion Benchmark{header}({segments} segments, {calls} calls x {REPEATS})")
	print(f"{'─' * 62}")

	for name, samples in results.items():
		us = [sample * 1e6 for sample in samples]
		print(f"  {name:<17}: median {statistics.median(us):>7.3f} us   best {min(us):>7.3f} us")

	print(f"{'─' * 62}")


def main () -> None:

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--segments", type=int, default=1000,   help="Tempo changes in the map (default: 1000)")
	parser.add_argument("--calls",    type=int, default=100000, help="Conversions per direction (default: 100000)")
	parser.add_argument("--compare",  action="store_true",      help="Compare several map sizes")
	args = parser.parse_args()

	if args.compare:
		for segments in (10, 1000, 100000):
			print(f"\nRunning with {segments} segments ...")
			_print_report(_run_benchmark(segments, args.calls), segments, args.calls, label=f"[{segments}]")

	else:
		_print_report(_run_benchmark(args.segments, args.calls), args.segments, args.calls)


if __name__ == "__main__":
	main()
