"""The energy / tension / variation planner.

:func:`plan_song` runs the whole planning pipeline once:

1. pick a style's energy-arc template and propose an energy per section,
2. finalise energies with the style's constraint policy,
3. derive macro tension, drivers and transition hints,
4. build per-bar micro tension and micro energy maps,
5. plan variation (base references, intensity, tags, role deltas),
6. map each section to role profiles.

The result is a :class:`SongPlan`, which is immutable: every field is a
tuple of frozen records, so any number of threads may read it without
locks. :class:`Planner` caches plans per ``(structure, style, seed, policy,
ramp intensity)`` so repeated requests never recompute.

Queries come in two flavours. ``has_data`` / ``try_*`` check and return
``False`` / ``None`` for an unknown index; ``get_*`` treat a missing index
as a configuration error and raise ``ValueError``.
"""

import dataclasses
import logging
import threading
import typing

import arranger.energy_arc
import arranger.energy_constraints
import arranger.phrase_arc
import arranger.role_profiles
import arranger.song
import arranger.tension
import arranger.variation


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SongPlan:

	"""
	Cached planning output for one song, style and seed.

	Attributes:
		structure: The song the plan was computed for.
		style_id: Style the plan was computed for.
		seed: Global seed.
		template_name: Energy-arc template that proposed the energies.
		policy_name: Constraint policy that finalised them.
		profiles: Macro energy / tension profile per section.
		micro_tension: Per-bar tension map per section.
		micro_energy: Per-bar energy arc per section.
		variations: Variation plan per section.
		role_profiles: Role → profile mapping per section.
	"""

	structure: arranger.song.SongStructure
	style_id: str
	seed: int
	template_name: str
	policy_name: str
	profiles: typing.Tuple[arranger.tension.SectionTensionProfile, ...]
	micro_tension: typing.Tuple[arranger.phrase_arc.MicroTensionMap, ...]
	micro_energy: typing.Tuple[arranger.phrase_arc.MicroEnergyArc, ...]
	variations: typing.Tuple[arranger.variation.VariationPlan, ...]
	role_profiles: typing.Tuple[typing.Mapping[str, arranger.role_profiles.RoleProfile], ...]

	@property
	def section_count (self) -> int:
		return len(self.profiles)

	def has_data (self, section_index: int) -> bool:

		"""Return True if the plan covers ``section_index`` (never raises)."""

		return 0 <= section_index < len(self.profiles)

	def _require (self, section_index: int) -> None:
		if not self.has_data(section_index):
			raise ValueError(f"No planning data for section {section_index} (plan has {len(self.profiles)} sections)")

	def try_get_profile (self, section_index: int) -> typing.Optional[arranger.tension.SectionTensionProfile]:

		"""Return the section's profile, or None if the index has no data."""

		return self.profiles[section_index] if self.has_data(section_index) else None

	def get_profile (self, section_index: int) -> arranger.tension.SectionTensionProfile:
		self._require(section_index)
		return self.profiles[section_index]

	def get_energy (self, section_index: int) -> float:
		return self.get_profile(section_index).energy

	def get_tension (self, section_index: int) -> float:
		return self.get_profile(section_index).tension

	def get_transition_hint (self, section_index: int) -> arranger.tension.TransitionHint:
		return self.get_profile(section_index).transition_hint

	def get_micro_tension (self, section_index: int) -> arranger.phrase_arc.MicroTensionMap:
		self._require(section_index)
		return self.micro_tension[section_index]

	def get_micro_energy (self, section_index: int) -> arranger.phrase_arc.MicroEnergyArc:
		self._require(section_index)
		return self.micro_energy[section_index]

	def get_variation (self, section_index: int) -> arranger.variation.VariationPlan:
		self._require(section_index)
		return self.variations[section_index]

	def get_role_profile (self, section_index: int, role: str) -> arranger.role_profiles.RoleProfile:

		"""Return a role's profile, falling back to the neutral profile for unknown roles."""

		self._require(section_index)

		return self.role_profiles[section_index].get(role, arranger.role_profiles.RoleProfile.neutral())


def plan_song (
	structure: arranger.song.SongStructure,
	style_id: str = "PopGroove",
	seed: int = 42,
	policy: typing.Optional[arranger.energy_constraints.EnergyConstraintPolicy] = None,
	ramp_intensity: float = arranger.phrase_arc.DEFAULT_RAMP_INTENSITY
) -> SongPlan:

	"""
	Compute a complete plan.

	Parameters:
		structure: Song sections in order.
		style_id: Style name; selects the arc templates and (when ``policy``
			is None) the constraint policy.
		seed: Global seed for every random decision.
		policy: Explicit constraint policy (``EnergyConstraintPolicy.empty()``
			bypasses constraints).
		ramp_intensity: How steeply micro tension climbs within a phrase.
	"""

	if policy is None:
		policy = arranger.energy_constraints.get_policy(arranger.energy_constraints.policy_name_for_style(style_id))

	template = arranger.energy_arc.select_template(style_id, seed)
	proposed = arranger.energy_arc.proposed_energies(structure, template)
	energies = arranger.energy_constraints.apply_policy(structure, proposed, policy)

	profiles = arranger.tension.compute_profiles(structure, energies, seed)
	variations = arranger.variation.plan_variations(structure, profiles, seed)

	micro_tension = []
	micro_energy = []
	role_profiles = []

	for index, section in enumerate(structure.sections):
		profile = profiles[index]
		micro_tension.append(arranger.phrase_arc.MicroTensionMap.build(profile.tension, section.bar_count, ramp_intensity))
		micro_energy.append(arranger.phrase_arc.MicroEnergyArc.build(profile.energy, section.bar_count, seed, index))
		role_profiles.append(arranger.role_profiles.build_role_profiles(profile.energy, profile.tension, variations[index]))

	logger.info(
		f"Planned {structure.section_count} sections for {style_id!r} (seed {seed}): "
		f"arc {template.name}, policy {policy.name}"
	)

	return SongPlan(
		structure = structure,
		style_id = style_id,
		seed = seed,
		template_name = template.name,
		policy_name = policy.name,
		profiles = tuple(profiles),
		micro_tension = tuple(micro_tension),
		micro_energy = tuple(micro_energy),
		variations = tuple(variations),
		role_profiles = tuple(role_profiles),
	)


class Planner:

	"""
	A cache of plans keyed by ``(structure, style, seed, policy name, ramp intensity)``.

	Only the first request for a key computes; later requests return the
	same :class:`SongPlan` object. The lock guards cache insertion only.
	"""

	def __init__ (self) -> None:

		self._plans: typing.Dict[typing.Tuple[typing.Any, ...], SongPlan] = {}
		self._lock = threading.Lock()

	def plan (
		self,
		structure: arranger.song.SongStructure,
		style_id: str = "PopGroove",
		seed: int = 42,
		policy_name: typing.Optional[str] = None,
		ramp_intensity: float = arranger.phrase_arc.DEFAULT_RAMP_INTENSITY
	) -> SongPlan:

		"""Return the cached plan for a key, computing it on first use."""

		name = policy_name if policy_name is not None else arranger.energy_constraints.policy_name_for_style(style_id)
		key = (structure, style_id, seed, name, ramp_intensity)

		cached = self._plans.get(key)
		if cached is not None:
			return cached

		with self._lock:
			if key not in self._plans:
				self._plans[key] = plan_song(structure, style_id, seed, arranger.energy_constraints.get_policy(name), ramp_intensity)
			return self._plans[key]

	def __len__ (self) -> int:
		return len(self._plans)
