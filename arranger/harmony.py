import bisect
import typing

import arranger.chords


class HarmonyProvider:

	"""Abstract source of the chord active at a bar and beat."""

	def chord_at (self, bar: int, beat: float = 1.0) -> arranger.chords.Chord:
		raise NotImplementedError


class HarmonyTrack (HarmonyProvider):

	"""
	A list of chord changes, each holding until the next.

	Parameters:
		events: ``(bar, beat, chord)`` triples. Chords may be :class:`Chord`
			objects or symbols such as ``"Am7"``.

	A position before the first change reads the first chord, so a track
	always answers.

	Example::

		harmony = HarmonyTrack([(1, 1.0, "C"), (2, 1.0, "Am"), (3, 1.0, "F"), (4, 1.0, "G")])
		harmony.chord_at(2, 3.5).name()   # "Am"
	"""

	def __init__ (self, events: typing.Iterable[typing.Tuple[int, float, typing.Union[str, arranger.chords.Chord]]]) -> None:

		parsed = []

		for bar, beat, chord in events:
			if isinstance(chord, str):
				chord = arranger.chords.Chord.parse(chord)
			parsed.append(((bar, float(beat)), chord))

		if not parsed:
			raise ValueError("HarmonyTrack needs at least one chord")

		parsed.sort(key=lambda item: item[0])

		self._positions: typing.List[typing.Tuple[int, float]] = [p for p, _ in parsed]
		self._chords: typing.List[arranger.chords.Chord] = [c for _, c in parsed]

	@classmethod
	def looped (cls, symbols: typing.Sequence[str], total_bars: int, bars_per_chord: int = 1) -> "HarmonyTrack":

		"""Repeat a progression of chord symbols over ``total_bars`` bars."""

		if not symbols:
			raise ValueError("looped() needs at least one chord symbol")
		if bars_per_chord <= 0:
			raise ValueError("bars_per_chord must be positive")

		events = []
		for i, bar in enumerate(range(1, max(1, total_bars) + 1, bars_per_chord)):
			events.append((bar, 1.0, symbols[i % len(symbols)]))

		return cls(events)

	def chord_at (self, bar: int, beat: float = 1.0) -> arranger.chords.Chord:

		index = bisect.bisect_right(self._positions, (bar, beat)) - 1

		return self._chords[max(0, index)]

	def next_change (self, bar: int, beat: float) -> typing.Optional[typing.Tuple[int, float]]:

		"""Return the position of the first chord change after ``(bar, beat)``, if any."""

		index = bisect.bisect_right(self._positions, (bar, beat))

		if index >= len(self._positions):
			return None

		return self._positions[index]
