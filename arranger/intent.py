"""Section- and bar-level intent queries for downstream stages.

:class:`SongIntentQuery` wraps a :class:`~arranger.planner.SongPlan` and
answers the two questions renderers ask: "what is this section for?" and
"what is this bar for?". Intents are built once on construction and then
only read.
"""

import dataclasses
import typing

import arranger.guardrails
import arranger.phrase_arc
import arranger.planner
import arranger.role_profiles
import arranger.song
import arranger.tension
import arranger.variation


@dataclasses.dataclass(frozen=True)
class SectionIntent:

	"""
	Everything downstream stages need to know about one section.

	Attributes:
		section_index: 0-based index.
		section: The section itself.
		energy: Macro energy.
		tension: Macro tension.
		drivers: Tension drivers.
		transition_hint: Boundary into the next section.
		variation: Variation plan (intensity, base reference, tags).
		presence: Active roles and cymbal preferences.
		register: Register guardrails.
		density_caps: Per-role density caps in force for the section.
		role_tension_target: Tension downstream roles should aim for.
	"""

	section_index: int
	section: arranger.song.Section
	energy: float
	tension: float
	drivers: arranger.tension.TensionDriver
	transition_hint: arranger.tension.TransitionHint
	variation: arranger.variation.VariationPlan
	presence: arranger.role_profiles.RolePresence
	register: arranger.guardrails.RegisterConstraints
	density_caps: arranger.guardrails.RoleDensityCaps
	role_tension_target: float


@dataclasses.dataclass(frozen=True)
class BarIntent:

	"""
	Section intent refined for one bar.

	Attributes:
		section: The enclosing section's intent.
		bar_in_section: 0-based bar within the section.
		micro_tension: Bar-level tension.
		energy_delta: Bar-level energy delta (within ±0.10).
		phrase_position: Start / Middle / Peak / Cadence.
		is_phrase_end: Last bar of a phrase.
		is_section_start: First bar of the section.
		is_section_end: Last bar of the section.
	"""

	section: SectionIntent
	bar_in_section: int
	micro_tension: float
	energy_delta: float
	phrase_position: arranger.phrase_arc.PhrasePosition
	is_phrase_end: bool
	is_section_start: bool
	is_section_end: bool

	@property
	def effective_energy (self) -> float:

		"""Return section energy plus the bar delta, clamped to [0, 1]."""

		return max(0.0, min(1.0, self.section.energy + self.energy_delta))


class SongIntentQuery:

	"""
	Read-only intent lookups over a plan.

	Parameters:
		plan: The song plan to read.
		density_preset: ``"default"``, ``"high"``, ``"low"`` or ``"auto"``.
		register: Register guardrails shared by every section.
	"""

	def __init__ (
		self,
		plan: arranger.planner.SongPlan,
		density_preset: str = arranger.guardrails.PRESET_AUTO,
		register: typing.Optional[arranger.guardrails.RegisterConstraints] = None
	) -> None:

		self.plan = plan
		self.density_preset = density_preset
		self.register = register if register is not None else arranger.guardrails.RegisterConstraints()

		intents = []

		for index, section in enumerate(plan.structure.sections):
			profile = plan.profiles[index]
			intents.append(SectionIntent(
				section_index = index,
				section = section,
				energy = profile.energy,
				tension = profile.tension,
				drivers = profile.drivers,
				transition_hint = profile.transition_hint,
				variation = plan.variations[index],
				presence = arranger.role_profiles.role_presence(
					section.section_type, plan.structure.occurrence_index(index), profile.energy
				),
				register = self.register,
				density_caps = arranger.guardrails.density_caps_for(density_preset, profile.energy),
				role_tension_target = arranger.role_profiles.role_tension_target(section.section_type, profile.energy),
			))

		self._sections: typing.Tuple[SectionIntent, ...] = tuple(intents)

	def has_intent_data (self, section_index: int) -> bool:

		"""Return True if ``section_index`` has intent data (never raises)."""

		return 0 <= section_index < len(self._sections)

	def get_section_intent (self, section_index: int) -> SectionIntent:

		"""Return a section's intent; raises ``ValueError`` for an unknown index."""

		if not self.has_intent_data(section_index):
			raise ValueError(f"No intent data for section {section_index}")

		return self._sections[section_index]

	def get_bar_intent (self, section_index: int, bar_in_section: int) -> BarIntent:

		"""Return the intent for a 0-based bar within a section."""

		section_intent = self.get_section_intent(section_index)

		if not 0 <= bar_in_section < section_intent.section.bar_count:
			raise ValueError(
				f"Bar {bar_in_section} outside section {section_index} ({section_intent.section.bar_count} bars)"
			)

		tension_map = self.plan.micro_tension[section_index]
		energy_arc = self.plan.micro_energy[section_index]

		return BarIntent(
			section = section_intent,
			bar_in_section = bar_in_section,
			micro_tension = tension_map.tension_by_bar[bar_in_section],
			energy_delta = energy_arc.energy_delta_by_bar[bar_in_section],
			phrase_position = energy_arc.phrase_positions[bar_in_section],
			is_phrase_end = tension_map.is_phrase_end[bar_in_section],
			is_section_start = tension_map.is_section_start[bar_in_section],
			is_section_end = tension_map.is_section_end[bar_in_section],
		)

	def bar_intent_for (self, bar: int) -> BarIntent:

		"""Return the intent for a 1-based song bar."""

		index, section = self.plan.structure.section_for_bar(bar)

		return self.get_bar_intent(index, section.bar_in_section(bar))
