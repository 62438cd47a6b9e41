"""Register and density guardrails.

Guardrails are hard limits applied after profile-driven adjustments:

- :class:`RegisterConstraints` keeps accompaniment under the lead-space
  ceiling, above the bass floor, and the bass line below it. Corrections move notes by **whole
  octaves only**, so a corrected voicing keeps every pitch class (and so its
  scale membership). Corrections are fixed points: applying one twice gives
  the same result as applying it once.
- :class:`RoleDensityCaps` bounds the fraction of a bar's slots a role may
  fill, with Default / High / Low presets and an energy-driven ``"auto"``.

When two guardrails disagree (a ceiling correction would push a voicing
through the floor), the correction stops at the floor and the outcome is
logged as a constraint, not raised as an error.
"""

import dataclasses
import logging
import typing

import arranger.constants.roles


logger = logging.getLogger(__name__)

R = arranger.constants.roles

OCTAVE = 12

# Lowest note a bass line is moved down to (E1).
BASS_LOWEST_NOTE = 28


@dataclasses.dataclass(frozen=True)
class RegisterConstraints:

	"""
	Register limits, as MIDI note numbers.

	Attributes:
		lead_space_ceiling: Highest note accompaniment may reach, leaving room for a lead.
		bass_floor: Split point between bass and accompaniment: chord roles stay at or
			above it, the bass line stays at or below it.
		vocal_band: ``(low, high)`` range where a vocal sits.
	"""

	lead_space_ceiling: int = 72
	bass_floor: int = 52
	vocal_band: typing.Tuple[int, int] = (60, 76)

	def __post_init__ (self) -> None:
		if self.vocal_band[0] > self.vocal_band[1]:
			raise ValueError(f"vocal_band low {self.vocal_band[0]} is above high {self.vocal_band[1]}")


PRESET_DEFAULT = "default"
PRESET_HIGH = "high"
PRESET_LOW = "low"
PRESET_AUTO = "auto"


@dataclasses.dataclass(frozen=True)
class RoleDensityCaps:

	"""Per-role density caps in [0, 1] (fraction of a bar's slots a role may fill)."""

	name: str
	caps: typing.Mapping[str, float]

	def __post_init__ (self) -> None:
		for role, cap in self.caps.items():
			if not 0.0 <= cap <= 1.0:
				raise ValueError(f"Density cap {cap} for {role} outside [0, 1]")

	def cap_for (self, role: str) -> float:

		"""Return the cap for a role (drum sub-roles share the Drums cap)."""

		return self.caps.get(R.parent_role(role), 1.0)


DENSITY_CAP_PRESETS: typing.Dict[str, RoleDensityCaps] = {
	PRESET_DEFAULT: RoleDensityCaps(PRESET_DEFAULT, {R.BASS: 0.85, R.COMP: 0.90, R.KEYS: 0.85, R.PADS: 0.80, R.DRUMS: 0.90}),
	PRESET_HIGH: RoleDensityCaps(PRESET_HIGH, {R.BASS: 1.0, R.COMP: 1.0, R.KEYS: 1.0, R.PADS: 0.95, R.DRUMS: 1.0}),
	PRESET_LOW: RoleDensityCaps(PRESET_LOW, {R.BASS: 0.60, R.COMP: 0.65, R.KEYS: 0.60, R.PADS: 0.50, R.DRUMS: 0.70}),
}


def density_caps_for (preset: str = PRESET_AUTO, energy: float = 0.5) -> RoleDensityCaps:

	"""
	Return the density caps for a preset name.

	``"auto"`` picks Low below energy 0.3, High above 0.7, Default otherwise.
	"""

	if preset == PRESET_AUTO:
		if energy < 0.3:
			preset = PRESET_LOW
		elif energy > 0.7:
			preset = PRESET_HIGH
		else:
			preset = PRESET_DEFAULT

	if preset not in DENSITY_CAP_PRESETS:
		raise ValueError(f"Unknown density cap preset: {preset!r}. Expected one of {sorted(DENSITY_CAP_PRESETS) + [PRESET_AUTO]}")

	return DENSITY_CAP_PRESETS[preset]


def apply_ceiling (notes: typing.Sequence[int], ceiling: int, floor: typing.Optional[int] = None) -> typing.List[int]:

	"""
	Shift a voicing down by whole octaves until its top note is at or under ``ceiling``.

	A shift that would take the lowest note below ``floor`` is not made; the
	voicing is left at the last position that respected the floor.

	Example::

		apply_ceiling([67, 71, 74], ceiling=72)   # [55, 59, 62]
	"""

	shifted = list(notes)

	if not shifted:
		return shifted

	while max(shifted) > ceiling:

		if floor is not None and min(shifted) - OCTAVE < floor:
			logger.debug(f"Ceiling {ceiling} not reachable without crossing floor {floor}; voicing kept at {shifted}")
			break

		shifted = [n - OCTAVE for n in shifted]

	return shifted


def apply_floor (notes: typing.Sequence[int], floor: int, ceiling: typing.Optional[int] = None) -> typing.List[int]:

	"""Shift notes up by whole octaves until the lowest is at or above ``floor`` (never past ``ceiling``)."""

	shifted = list(notes)

	if not shifted:
		return shifted

	while min(shifted) < floor:

		if ceiling is not None and max(shifted) + OCTAVE > ceiling:
			logger.debug(f"Floor {floor} not reachable without crossing ceiling {ceiling}; notes kept at {shifted}")
			break

		shifted = [n + OCTAVE for n in shifted]

	return shifted


def octave_lift (semitones: int) -> int:

	"""Round a requested lift toward zero to whole octaves, in semitones."""

	octaves = abs(semitones) // OCTAVE

	return octaves * OCTAVE if semitones >= 0 else -octaves * OCTAVE


def bass_note (pitch_class: int, octave_up: bool = False) -> int:

	"""
	Return the bass-register note for a pitch class.

	The note is the lowest at or above :data:`BASS_LOWEST_NOTE` (E1 to D#2);
	``octave_up`` gives the octave above it, which still sits under the
	default bass floor.
	"""

	note = BASS_LOWEST_NOTE + (pitch_class - BASS_LOWEST_NOTE) % OCTAVE

	return note + OCTAVE if octave_up else note


def apply_register (
	notes: typing.Sequence[int],
	role: str,
	lift_semitones: int,
	constraints: RegisterConstraints
) -> typing.List[int]:

	"""
	Apply a profile's register lift, then the role's guardrails.

	The lift is applied in whole octaves. The bass line is held at or under
	the bass floor; chord roles are held under the lead-space ceiling without
	crossing down through the bass floor. When the guardrails undo the lift,
	the lift is dropped for this voicing and the original notes are corrected
	instead.
	"""

	lift = octave_lift(lift_semitones)
	lifted = [n + lift for n in notes]

	if role == R.BASS:
		corrected = apply_ceiling(lifted, constraints.bass_floor, BASS_LOWEST_NOTE)
		return apply_floor(corrected, BASS_LOWEST_NOTE, constraints.bass_floor)

	corrected = apply_ceiling(lifted, constraints.lead_space_ceiling, constraints.bass_floor)
	corrected = apply_floor(corrected, constraints.bass_floor, constraints.lead_space_ceiling)

	if lift and max(corrected) > constraints.lead_space_ceiling:
		logger.debug(f"{role}: register lift {lift_semitones} ignored, guardrails conflict")
		corrected = apply_ceiling(list(notes), constraints.lead_space_ceiling, constraints.bass_floor)
		return apply_floor(corrected, constraints.bass_floor, constraints.lead_space_ceiling)

	return corrected
