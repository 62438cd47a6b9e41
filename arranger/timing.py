import bisect
import typing

import arranger.constants.pulses


class TimingProvider:

	"""
	Abstract bar/beat to tick conversion.

	The selection stage only needs these lookups; any meter map can supply them.
	"""

	def beats_per_bar (self, bar: int) -> int:
		raise NotImplementedError

	def bar_start_tick (self, bar: int) -> int:
		raise NotImplementedError

	def ticks_per_beat (self, bar: int) -> int:
		raise NotImplementedError

	def bar_end_tick (self, bar: int) -> int:

		"""Return the first tick after ``bar`` (exclusive end)."""

		return self.bar_start_tick(bar) + self.beats_per_bar(bar) * self.ticks_per_beat(bar)

	def to_tick (self, bar: int, beat: float) -> int:

		"""Convert a 1-based bar and 1-based fractional beat to an absolute tick."""

		return self.bar_start_tick(bar) + int(round((beat - 1.0) * self.ticks_per_beat(bar)))

	def is_valid_beat (self, bar: int, beat: float) -> bool:

		"""Return True if ``beat`` lies inside ``bar`` (1 <= beat < beats_per_bar + 1)."""

		return 1.0 <= beat < self.beats_per_bar(bar) + 1.0


class BarGrid (TimingProvider):

	"""
	A meter map with optional time-signature changes.

	Parameters:
		numerator: Beats per bar from bar 1 onward (default 4).
		denominator: Beat unit from bar 1 onward (default 4 = quarter note).
		changes: Optional ``{bar: (numerator, denominator)}`` meter changes that
			hold until the next change.
		ticks_per_quarter: Tick resolution (default 480).

	Example::

		grid = BarGrid(changes={9: (3, 4)})
		grid.beats_per_bar(9)    # 3
		grid.to_tick(2, 1.0)     # 1920
	"""

	def __init__ (
		self,
		numerator: int = 4,
		denominator: int = 4,
		changes: typing.Optional[typing.Dict[int, typing.Tuple[int, int]]] = None,
		ticks_per_quarter: int = arranger.constants.pulses.TICKS_PER_QUARTER
	) -> None:

		if ticks_per_quarter <= 0:
			raise ValueError("ticks_per_quarter must be positive")

		meters: typing.Dict[int, typing.Tuple[int, int]] = {1: (numerator, denominator)}

		for bar, meter in (changes or {}).items():
			if bar < 1:
				raise ValueError(f"Meter change bar must be >= 1, got {bar}")
			meters[bar] = meter

		for bar, (num, den) in meters.items():
			if num <= 0 or den <= 0 or den & (den - 1):
				raise ValueError(f"Invalid time signature {num}/{den} at bar {bar}")

		self.ticks_per_quarter = ticks_per_quarter
		self._change_bars: typing.List[int] = sorted(meters)
		self._meters: typing.List[typing.Tuple[int, int]] = [meters[b] for b in self._change_bars]

		# Start tick of each change bar, so lookups never walk bar by bar.
		self._change_ticks: typing.List[int] = [0]
		for i in range(1, len(self._change_bars)):
			span = self._change_bars[i] - self._change_bars[i - 1]
			self._change_ticks.append(self._change_ticks[-1] + span * self._bar_ticks(self._meters[i - 1]))

	def _bar_ticks (self, meter: typing.Tuple[int, int]) -> int:
		num, den = meter
		return num * self.ticks_per_quarter * 4 // den

	def _segment (self, bar: int) -> int:
		if bar < 1:
			raise ValueError(f"Bar numbers are 1-based, got {bar}")
		return bisect.bisect_right(self._change_bars, bar) - 1

	def time_signature (self, bar: int) -> typing.Tuple[int, int]:

		"""Return ``(numerator, denominator)`` in force at ``bar``."""

		return self._meters[self._segment(bar)]

	def beats_per_bar (self, bar: int) -> int:
		return self.time_signature(bar)[0]

	def ticks_per_beat (self, bar: int) -> int:
		return self.ticks_per_quarter * 4 // self.time_signature(bar)[1]

	def bar_start_tick (self, bar: int) -> int:
		i = self._segment(bar)
		return self._change_ticks[i] + (bar - self._change_bars[i]) * self._bar_ticks(self._meters[i])
