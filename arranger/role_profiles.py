"""Per-role musical parameters derived from the section plan.

:func:`build_role_profiles` turns a section's energy, tension and variation
plan into one :class:`RoleProfile` per role using linear response curves.
Each role responds differently: drums get busy quickly as energy rises, pads
barely move. :func:`role_presence` decides which roles play at all and how
the drummer should treat the cymbals.
"""

import dataclasses
import typing

import arranger.constants.roles
import arranger.constants.velocity
import arranger.song
import arranger.variation


ST = arranger.song.SectionType
R = arranger.constants.roles

CYMBALS_MINIMAL = "Minimal"
CYMBALS_STANDARD = "Standard"
CYMBALS_INTENSE = "Intense"


def clamp01 (value: float) -> float:
	return max(0.0, min(1.0, value))


def lerp (low: float, high: float, amount: float) -> float:
	return low + (high - low) * clamp01(amount)


@dataclasses.dataclass(frozen=True)
class RoleProfile:

	"""
	Musical parameters for one role in one section.

	Attributes:
		density_multiplier: Scales how many onsets the role aims for (1.0 = baseline).
		velocity_bias: Added to every velocity before clamping to the MIDI range.
		register_lift_semitones: Requested register shift; applied by guardrails
			in whole octaves only.
		busy_probability: Chance in [0, 1] that optional embellishments play.
	"""

	density_multiplier: float = 1.0
	velocity_bias: int = 0
	register_lift_semitones: int = 0
	busy_probability: float = 0.5

	def __post_init__ (self) -> None:
		if self.density_multiplier < 0:
			raise ValueError(f"density_multiplier must be >= 0, got {self.density_multiplier}")
		if not 0.0 <= self.busy_probability <= 1.0:
			raise ValueError(f"busy_probability {self.busy_probability} outside [0, 1]")

	@staticmethod
	def neutral () -> "RoleProfile":

		"""Return the profile used when a role has no planning data."""

		return RoleProfile()

	def apply_velocity (self, velocity: int) -> int:

		"""Return ``velocity`` with the bias applied, clamped to the MIDI range."""

		return arranger.constants.velocity.clamp_velocity(velocity + self.velocity_bias)


@dataclasses.dataclass(frozen=True)
class RoleCurve:

	"""Linear ranges a role's parameters sweep across as energy goes from 0 to 1."""

	density: typing.Tuple[float, float]
	velocity: typing.Tuple[int, int]
	register_lift: typing.Tuple[int, int]
	busy: typing.Tuple[float, float]


ROLE_CURVES: typing.Dict[str, RoleCurve] = {
	R.BASS: RoleCurve(density=(0.8, 1.3), velocity=(-15, 15), register_lift=(0, 0), busy=(0.2, 0.7)),
	R.COMP: RoleCurve(density=(0.6, 1.5), velocity=(-20, 20), register_lift=(0, 12), busy=(0.3, 0.8)),
	R.KEYS: RoleCurve(density=(0.5, 1.6), velocity=(-20, 20), register_lift=(-12, 24), busy=(0.2, 0.7)),
	R.PADS: RoleCurve(density=(0.7, 1.4), velocity=(-15, 15), register_lift=(0, 12), busy=(0.1, 0.5)),
	R.DRUMS: RoleCurve(density=(0.7, 1.6), velocity=(-15, 20), register_lift=(0, 0), busy=(0.2, 0.9)),
}

# Tension target scale per section type.
_TENSION_FACTOR: typing.Dict[arranger.song.SectionType, float] = {
	ST.VERSE: 1.0,
	ST.CHORUS: 0.8,
	ST.BRIDGE: 1.3,
	ST.INTRO: 0.7,
	ST.OUTRO: 0.5,
}


def build_role_profile (
	role: str,
	energy: float,
	tension: float,
	variation: typing.Optional[arranger.variation.VariationPlan] = None
) -> RoleProfile:

	"""Return one role's profile from the section's energy, tension and variation."""

	curve = ROLE_CURVES.get(role)

	if curve is None:
		raise ValueError(f"No role curve for {role!r}. Expected one of {sorted(ROLE_CURVES)}")

	delta = variation.delta_for(role) if variation is not None else arranger.variation.RoleVariationDelta()

	density = lerp(curve.density[0], curve.density[1], energy) + delta.density
	velocity = int(round(lerp(curve.velocity[0], curve.velocity[1], energy))) + delta.velocity
	lift = int(round(lerp(curve.register_lift[0], curve.register_lift[1], energy))) + delta.register
	busy = lerp(curve.busy[0], curve.busy[1], energy) + tension * 0.1 + delta.busy

	return RoleProfile(
		density_multiplier = max(0.0, density),
		velocity_bias = velocity,
		register_lift_semitones = lift,
		busy_probability = clamp01(busy),
	)


def build_role_profiles (
	energy: float,
	tension: float,
	variation: typing.Optional[arranger.variation.VariationPlan] = None
) -> typing.Dict[str, RoleProfile]:

	"""Return a profile for every role."""

	return {role: build_role_profile(role, energy, tension, variation) for role in R.ALL_ROLES}


def role_tension_target (section_type: arranger.song.SectionType, energy: float) -> float:

	"""Return the tension target downstream roles should aim for in a section."""

	return clamp01(energy * 0.5 * _TENSION_FACTOR.get(section_type, 1.0))


@dataclasses.dataclass(frozen=True)
class RolePresence:

	"""
	Which roles play in a section, and how the drummer treats cymbals.

	Attributes:
		active_roles: Roles that should play.
		cymbal_language: ``"Minimal"``, ``"Standard"`` or ``"Intense"``.
		crash_on_section_start: Mark the section's first downbeat with a crash.
		prefer_ride_over_hat: Keep time on the ride instead of the hi-hat.
	"""

	active_roles: typing.FrozenSet[str]
	cymbal_language: str
	crash_on_section_start: bool
	prefer_ride_over_hat: bool

	def is_active (self, role: str) -> bool:
		return role in self.active_roles


def role_presence (section_type: arranger.song.SectionType, occurrence_index: int, energy: float) -> RolePresence:

	"""Return the orchestration hints for a section."""

	active = {R.BASS, R.DRUMS}

	if section_type == ST.INTRO:
		if energy > 0.3:
			active.update((R.COMP, R.PADS))
		if energy > 0.2:
			active.add(R.KEYS)

	elif section_type == ST.VERSE and occurrence_index == 0:
		active.add(R.COMP)
		if energy > 0.4:
			active.add(R.PADS)
		if energy > 0.3:
			active.add(R.KEYS)

	elif section_type == ST.OUTRO:
		active.update((R.COMP, R.KEYS))
		if energy > 0.3:
			active.add(R.PADS)

	else:
		active.update(R.CHORD_ROLES)

	if energy < 0.4:
		cymbals = CYMBALS_MINIMAL
	elif energy < 0.7:
		cymbals = CYMBALS_STANDARD
	else:
		cymbals = CYMBALS_INTENSE

	return RolePresence(
		active_roles = frozenset(active),
		cymbal_language = cymbals,
		crash_on_section_start = section_type == ST.CHORUS and energy > 0.6,
		prefer_ride_over_hat = energy > 0.7,
	)
