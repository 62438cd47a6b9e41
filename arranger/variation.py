"""Variation planning across repeated sections.

A repeated section is rarely identical to its first appearance. The
variation planner decides, per section, whether it restates an earlier
section ("A'"), starts fresh ("A" for the first of its type), or deliberately
contrasts ("B", used for repeated bridges and solos), and how strongly it
should deviate (``intensity`` in [0, 0.6]). Downstream, per-role deltas nudge
density, velocity, register and busyness in a consistent direction.
"""

import dataclasses
import typing

import arranger.constants.roles
import arranger.random_stream
import arranger.song
import arranger.tension


ST = arranger.song.SectionType
TH = arranger.tension.TransitionHint

MAX_INTENSITY = 0.6

TAG_BASE = "A"
TAG_VARIED = "A'"
TAG_CONTRAST = "B"

_TRANSITION_FACTOR: typing.Dict[arranger.tension.TransitionHint, float] = {
	TH.BUILD: 0.2,
	TH.DROP: 0.25,
	TH.RELEASE: 0.15,
	TH.SUSTAIN: 0.05,
	TH.NONE: 0.1,
}

_SECTION_FACTOR: typing.Dict[arranger.song.SectionType, float] = {
	ST.CHORUS: 0.1,
	ST.BRIDGE: 0.15,
	ST.OUTRO: 0.2,
}

_TRANSITION_TAG: typing.Dict[arranger.tension.TransitionHint, str] = {
	TH.BUILD: "Lift",
	TH.DROP: "Thin",
	TH.RELEASE: "Release",
}

# Roles whose register is left alone by variation.
_FIXED_REGISTER_ROLES = (arranger.constants.roles.BASS, arranger.constants.roles.DRUMS)


@dataclasses.dataclass(frozen=True)
class RoleVariationDelta:

	"""Additive nudges for one role in one section."""

	density: float = 0.0
	velocity: int = 0
	register: int = 0
	busy: float = 0.0


@dataclasses.dataclass(frozen=True)
class VariationPlan:

	"""
	How one section varies from an earlier one.

	Attributes:
		section_index: 0-based index of the section this plan is for.
		intensity: Amount of deviation in [0, 0.6]; 0 for base sections.
		base_reference: Index of the earlier section being varied, or None.
		tags: Descriptive tags (``"A"``, ``"A'"``, ``"B"``, ``"Lift"``...).
		role_deltas: Per-role nudges.
	"""

	section_index: int
	intensity: float
	base_reference: typing.Optional[int]
	tags: typing.FrozenSet[str]
	role_deltas: typing.Mapping[str, RoleVariationDelta] = dataclasses.field(default_factory=dict)

	def __post_init__ (self) -> None:

		if self.base_reference is not None and not 0 <= self.base_reference < self.section_index:
			raise RuntimeError(
				f"Variation plan for section {self.section_index} references section "
				f"{self.base_reference}; a base reference must be strictly earlier"
			)

		if not 0.0 <= self.intensity <= 1.0:
			raise ValueError(f"Variation intensity {self.intensity} outside [0, 1]")

	@property
	def primary_tag (self) -> str:

		for tag in (TAG_CONTRAST, TAG_VARIED, TAG_BASE):
			if tag in self.tags:
				return tag

		return TAG_BASE

	def delta_for (self, role: str) -> RoleVariationDelta:

		"""Return a role's nudges (zero when the role has none)."""

		return self.role_deltas.get(role, RoleVariationDelta())


def _base_reference (
	structure: arranger.song.SongStructure,
	index: int,
	seed: int
) -> typing.Tuple[typing.Optional[int], str]:

	section_type = structure.section_at(index).section_type
	earlier = [i for i in range(index) if structure.sections[i].section_type == section_type]

	if not earlier:
		return None, TAG_BASE

	if section_type in (ST.BRIDGE, ST.SOLO):
		threshold = 0.4 if len(earlier) == 1 else 0.6
		if arranger.random_stream.unit_value(seed, arranger.random_stream.PURPOSE_VARIATION, "contrast", index) < threshold:
			return None, TAG_CONTRAST

	return earlier[0], TAG_VARIED


def _intensity (
	index: int,
	base_reference: typing.Optional[int],
	section_type: arranger.song.SectionType,
	profile: arranger.tension.SectionTensionProfile,
	seed: int
) -> float:

	if base_reference is None:
		return 0.0

	intensity = 0.15
	intensity += profile.energy * 0.15
	intensity += _TRANSITION_FACTOR[profile.transition_hint]
	intensity += profile.tension * 0.15
	intensity += _SECTION_FACTOR.get(section_type, 0.0)
	intensity += min((index - base_reference) * 0.05, 0.15)
	intensity += arranger.random_stream.jitter(seed, 0.1, arranger.random_stream.PURPOSE_VARIATION, "intensity", index)

	return max(0.0, min(MAX_INTENSITY, intensity))


def _role_deltas (
	index: int,
	intensity: float,
	hint: arranger.tension.TransitionHint,
	seed: int
) -> typing.Dict[str, RoleVariationDelta]:

	if intensity <= 0:
		return {}

	deltas: typing.Dict[str, RoleVariationDelta] = {}

	for role in arranger.constants.roles.ALL_ROLES:

		if hint == TH.BUILD:
			direction = 1
		elif hint == TH.DROP:
			direction = -1
		else:
			direction = 1 if arranger.random_stream.unit_value(seed, arranger.random_stream.PURPOSE_VARIATION, "direction", index, role) >= 0.5 else -1

		register = 0 if role in _FIXED_REGISTER_ROLES else direction * int(intensity * 6)

		deltas[role] = RoleVariationDelta(
			density = direction * intensity * 0.2,
			velocity = direction * int(intensity * 8),
			register = register,
			busy = direction * intensity * 0.15,
		)

	return deltas


def plan_variations (
	structure: arranger.song.SongStructure,
	profiles: typing.Sequence[arranger.tension.SectionTensionProfile],
	seed: int
) -> typing.List[VariationPlan]:

	"""Return one variation plan per section, in order."""

	plans: typing.List[VariationPlan] = []

	for index, section in enumerate(structure.sections):

		profile = profiles[index]
		base_reference, primary = _base_reference(structure, index, seed)
		intensity = _intensity(index, base_reference, section.section_type, profile, seed)

		tags = {primary, section.section_type.value}

		if intensity >= 0.4:
			tags.add("HighVariation")
		elif intensity >= 0.2:
			tags.add("ModerateVariation")
		elif intensity > 0:
			tags.add("SubtleVariation")

		if profile.transition_hint in _TRANSITION_TAG:
			tags.add(_TRANSITION_TAG[profile.transition_hint])
		if index == structure.section_count - 1:
			tags.add("Final")
		if structure.is_last_of_type(index):
			tags.add("LastOfType")

		plans.append(VariationPlan(
			section_index = index,
			intensity = intensity,
			base_reference = base_reference,
			tags = frozenset(tags),
			role_deltas = _role_deltas(index, intensity, profile.transition_hint, seed),
		))

	return plans
