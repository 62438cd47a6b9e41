"""Bar-level shaping inside a section.

Two per-section maps refine the macro profile bar by bar:

- :class:`MicroTensionMap` ramps tension up through each phrase, scaled by
  an adjustable ``ramp_intensity``, and marks phrase and section boundaries.
- :class:`MicroEnergyArc` gives each bar a small signed energy delta
  (bounded to ±0.10) from its :class:`PhrasePosition`: phrases start flat,
  lift through the middle, peak late and ease off at the cadence.

Phrases are four bars long, or two bars in sections of four bars or fewer.
"""

import dataclasses
import enum
import typing

import arranger.random_stream


DEFAULT_PHRASE_LENGTH = 4
SHORT_SECTION_PHRASE_LENGTH = 2
DEFAULT_RAMP_INTENSITY = 0.5

MAX_ENERGY_DELTA = 0.10
PEAK_THRESHOLD = 0.65


class PhrasePosition (enum.Enum):

	"""Where a bar sits within its phrase."""

	START = "Start"
	MIDDLE = "Middle"
	PEAK = "Peak"
	CADENCE = "Cadence"


def clamp01 (value: float) -> float:
	return max(0.0, min(1.0, value))


def phrase_length_for (bar_count: int) -> int:

	"""Return the phrase length used for a section of ``bar_count`` bars."""

	if bar_count <= 4:
		return SHORT_SECTION_PHRASE_LENGTH

	return DEFAULT_PHRASE_LENGTH


def phrase_position (bar_index: int, bar_count: int, phrase_length: int) -> PhrasePosition:

	"""Classify a 0-based bar within a section."""

	bar_in_phrase = bar_index % phrase_length

	if bar_in_phrase == 0:
		return PhrasePosition.START

	if (bar_index + 1) % phrase_length == 0 or bar_index == bar_count - 1:
		return PhrasePosition.CADENCE

	progress = bar_in_phrase / (phrase_length - 1) if phrase_length > 1 else 0.0

	if progress >= PEAK_THRESHOLD:
		return PhrasePosition.PEAK

	return PhrasePosition.MIDDLE


@dataclasses.dataclass(frozen=True)
class MicroTensionMap:

	"""
	Per-bar tension and boundary flags for one section.

	Attributes:
		tension_by_bar: Micro tension per bar, each in [0, 1].
		is_phrase_end: True on the last bar of each phrase (and of the section).
		is_section_start: True on the first bar only.
		is_section_end: True on the last bar only.
		phrase_length: Bars per phrase used to build the map.
	"""

	tension_by_bar: typing.Tuple[float, ...]
	is_phrase_end: typing.Tuple[bool, ...]
	is_section_start: typing.Tuple[bool, ...]
	is_section_end: typing.Tuple[bool, ...]
	phrase_length: int

	@property
	def bar_count (self) -> int:
		return len(self.tension_by_bar)

	@staticmethod
	def build (
		macro_tension: float,
		bar_count: int,
		ramp_intensity: float = DEFAULT_RAMP_INTENSITY,
		phrase_length: typing.Optional[int] = None
	) -> "MicroTensionMap":

		"""
		Ramp the macro tension through each phrase.

		Bar ``i`` reads ``macro * (1 + ramp_intensity * bar_in_phrase / (phrase_length - 1))``,
		clamped to [0, 1]. ``ramp_intensity`` 0 gives a flat map.
		"""

		if bar_count < 1:
			raise ValueError(f"bar_count must be >= 1, got {bar_count}")
		if ramp_intensity < 0:
			raise ValueError(f"ramp_intensity must be >= 0, got {ramp_intensity}")

		length = phrase_length if phrase_length is not None else phrase_length_for(bar_count)

		if length < 1:
			raise ValueError(f"phrase_length must be >= 1, got {length}")

		tensions = []
		phrase_ends = []

		for i in range(bar_count):
			bar_in_phrase = i % length
			factor = bar_in_phrase / (length - 1) if length > 1 else 0.0
			tensions.append(clamp01(macro_tension * (1.0 + ramp_intensity * factor)))
			phrase_ends.append((i + 1) % length == 0 or i == bar_count - 1)

		return MicroTensionMap(
			tension_by_bar = tuple(tensions),
			is_phrase_end = tuple(phrase_ends),
			is_section_start = tuple(i == 0 for i in range(bar_count)),
			is_section_end = tuple(i == bar_count - 1 for i in range(bar_count)),
			phrase_length = length,
		)


@dataclasses.dataclass(frozen=True)
class MicroEnergyArc:

	"""
	Per-bar energy deltas and phrase positions for one section.

	Attributes:
		energy_delta_by_bar: Signed delta per bar, each within ±0.10.
		phrase_positions: Phrase position per bar.
	"""

	energy_delta_by_bar: typing.Tuple[float, ...]
	phrase_positions: typing.Tuple[PhrasePosition, ...]

	@staticmethod
	def build (section_energy: float, bar_count: int, seed: int, section_index: int) -> "MicroEnergyArc":

		"""Shape deltas by phrase position; louder sections move further."""

		if bar_count < 1:
			raise ValueError(f"bar_count must be >= 1, got {bar_count}")

		length = phrase_length_for(bar_count)
		scale = 0.03 + section_energy * 0.07
		weights = {
			PhrasePosition.START: 0.0,
			PhrasePosition.MIDDLE: 0.3,
			PhrasePosition.PEAK: 1.0,
			PhrasePosition.CADENCE: -0.5,
		}

		deltas = []
		positions = []

		for i in range(bar_count):
			position = phrase_position(i, bar_count, length)
			delta = weights[position] * scale
			delta += arranger.random_stream.jitter(seed, 0.01, arranger.random_stream.PURPOSE_MICRO_ENERGY, section_index, i)
			deltas.append(max(-MAX_ENERGY_DELTA, min(MAX_ENERGY_DELTA, delta)))
			positions.append(position)

		return MicroEnergyArc(tuple(deltas), tuple(positions))
