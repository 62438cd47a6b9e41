"""Macro tension, tension drivers and section transition hints.

Tension is derived from energy but is not the same thing: a chorus is loud
yet resolving, a bridge may be quieter yet unsettled. :func:`compute_profiles`
starts each section's tension from its final energy and applies rule-based
adjustments, recording *why* as :class:`TensionDriver` flags (several may be
set at once). Each profile also carries the :class:`TransitionHint` for the
boundary into the next section, which is ``NONE`` only for the last section.
"""

import dataclasses
import enum
import typing

import arranger.random_stream
import arranger.song


ST = arranger.song.SectionType

# Next-section energy rise that triggers Anticipation.
ANTICIPATION_MARGIN = 0.10

# Energy fall after a chorus that counts as a resolution.
POST_CHORUS_RESOLUTION_MARGIN = 0.10

TENSION_JITTER = 0.03


class TensionDriver (enum.Flag):

	"""Reasons a section carries the tension it does."""

	NONE = 0
	OPENING = enum.auto()
	ANTICIPATION = enum.auto()
	PRE_CHORUS_BUILD = enum.auto()
	RESOLUTION = enum.auto()
	BRIDGE_CONTRAST = enum.auto()
	PEAK = enum.auto()


class TransitionHint (enum.Enum):

	"""How a section hands over to the next one."""

	NONE = "None"
	BUILD = "Build"
	RELEASE = "Release"
	SUSTAIN = "Sustain"
	DROP = "Drop"


@dataclasses.dataclass(frozen=True)
class SectionTensionProfile:

	"""
	Macro energy and tension for one section.

	Attributes:
		section_index: 0-based index in the song.
		energy: Final macro energy in [0, 1].
		tension: Macro tension target in [0, 1].
		contrast_bias: Energy distance from the previous section in [0, 1].
		drivers: Why the tension is what it is.
		transition_hint: Boundary into the next section (``NONE`` for the last).
	"""

	section_index: int
	energy: float
	tension: float
	contrast_bias: float
	drivers: TensionDriver
	transition_hint: TransitionHint

	def __post_init__ (self) -> None:
		for name in ("energy", "tension", "contrast_bias"):
			value = getattr(self, name)
			if not 0.0 <= value <= 1.0:
				raise ValueError(f"{name} {value} outside [0, 1] for section {self.section_index}")


def clamp01 (value: float) -> float:
	return max(0.0, min(1.0, value))


def section_tension (
	structure: arranger.song.SongStructure,
	energies: typing.Sequence[float],
	index: int,
	seed: int
) -> typing.Tuple[float, TensionDriver]:

	"""Return ``(tension, drivers)`` for one section."""

	section = structure.section_at(index)
	energy = energies[index]
	previous = structure.sections[index - 1] if index > 0 else None
	following = structure.sections[index + 1] if index + 1 < structure.section_count else None

	tension = energy
	drivers = TensionDriver.NONE

	if index == 0:
		drivers |= TensionDriver.OPENING

	if section.section_type == ST.INTRO:
		tension += 0.05
		drivers |= TensionDriver.OPENING

	elif section.section_type == ST.VERSE:
		tension -= 0.05
		if following is not None and following.section_type == ST.CHORUS:
			tension += 0.06
			drivers |= TensionDriver.PRE_CHORUS_BUILD

	elif section.section_type == ST.CHORUS:
		tension -= 0.08
		drivers |= TensionDriver.RESOLUTION
		if previous is not None and previous.section_type == ST.CHORUS and energy - energies[index - 1] > 0.05:
			tension += 0.03
			drivers |= TensionDriver.PEAK

	elif section.section_type == ST.BRIDGE:
		tension += 0.12
		drivers |= TensionDriver.BRIDGE_CONTRAST

	elif section.section_type == ST.SOLO:
		tension += 0.07
		drivers |= TensionDriver.PEAK

	elif section.section_type == ST.OUTRO:
		tension -= 0.15
		drivers |= TensionDriver.RESOLUTION

	if (
		previous is not None
		and previous.section_type == ST.CHORUS
		and section.section_type != ST.CHORUS
		and energies[index - 1] - energy > POST_CHORUS_RESOLUTION_MARGIN
	):
		tension -= 0.05
		drivers |= TensionDriver.RESOLUTION

	if following is not None:
		rise = energies[index + 1] - energy
		if rise > ANTICIPATION_MARGIN:
			tension += min(0.15, rise * 0.7)
			drivers |= TensionDriver.ANTICIPATION

	tension += arranger.random_stream.jitter(seed, TENSION_JITTER, arranger.random_stream.PURPOSE_TENSION, index)

	return clamp01(tension), drivers


def transition_hint (energy_delta: float, tension_delta: float) -> TransitionHint:

	"""
	Classify a boundary from the energy and tension change into the next section.

	Large falls are drops, moderate tension falls are releases, small changes
	sustain, and rises build.
	"""

	if energy_delta > 0.08 and tension_delta > 0.05:
		return TransitionHint.BUILD
	if energy_delta < -0.12 or tension_delta < -0.15:
		return TransitionHint.DROP
	if tension_delta < -0.08:
		return TransitionHint.RELEASE
	if abs(energy_delta) < 0.08 and abs(tension_delta) < 0.08:
		return TransitionHint.SUSTAIN
	if tension_delta > 0 or energy_delta > 0:
		return TransitionHint.BUILD

	return TransitionHint.SUSTAIN


def compute_profiles (
	structure: arranger.song.SongStructure,
	energies: typing.Sequence[float],
	seed: int
) -> typing.List[SectionTensionProfile]:

	"""Return one tension profile per section, in order."""

	tensions: typing.List[typing.Tuple[float, TensionDriver]] = [
		section_tension(structure, energies, i, seed) for i in range(structure.section_count)
	]

	profiles: typing.List[SectionTensionProfile] = []

	for i, (tension, drivers) in enumerate(tensions):

		if i + 1 < structure.section_count:
			hint = transition_hint(energies[i + 1] - energies[i], tensions[i + 1][0] - tension)
		else:
			hint = TransitionHint.NONE

		contrast = abs(energies[i] - energies[i - 1]) if i > 0 else 0.0

		profiles.append(SectionTensionProfile(
			section_index = i,
			energy = clamp01(energies[i]),
			tension = tension,
			contrast_bias = clamp01(contrast),
			drivers = drivers,
			transition_hint = hint,
		))

	return profiles
