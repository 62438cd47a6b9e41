"""Energy constraint rules and per-style constraint policies.

Arc templates propose an energy per section; a constraint policy turns
those proposals into the final macro energies, one section at a time and
in song order, so each rule sees the values already finalised for earlier
sections.

Rules never set the energy directly. Each rule that has an opinion returns
a target value; the policy blends the targets, weighting each by its rule's
strength::

	(0.70 * 1.0 + 0.85 * 1.5) / (1.0 + 1.5) = 0.79

The same-type monotonic rule ("Verse 2 is never quieter than Verse 1") is
then enforced as a floor unless a rule that documents a permitted drop
(post-chorus drop, bridge contrast) fired for that section.
"""

import dataclasses
import logging
import typing

import arranger.song


logger = logging.getLogger(__name__)

ST = arranger.song.SectionType


def clamp01 (value: float) -> float:
	return max(0.0, min(1.0, value))


@dataclasses.dataclass(frozen=True)
class ConstraintContext:

	"""
	Everything a rule may look at for one section.

	Attributes:
		section_type: Type of the section being finalised.
		occurrence_index: How many earlier sections share its type.
		section_index: Absolute 0-based index in the song.
		proposed_energy: Energy proposed by the arc template.
		previous_same_type_energy: Final energy of the previous section of this type, if any.
		previous_section_energy: Final energy of the immediately preceding section, if any.
		previous_section_type: Type of the immediately preceding section, if any.
		previous_chorus_energy: Final energy of the most recent earlier chorus, if any.
		is_last_of_type: True if no later section shares this type.
		is_last_section: True for the final section.
		total_of_type: Number of sections of this type in the song.
		total_sections: Number of sections in the song.
	"""

	section_type: arranger.song.SectionType
	occurrence_index: int
	section_index: int
	proposed_energy: float
	previous_same_type_energy: typing.Optional[float] = None
	previous_section_energy: typing.Optional[float] = None
	previous_section_type: typing.Optional[arranger.song.SectionType] = None
	previous_chorus_energy: typing.Optional[float] = None
	is_last_of_type: bool = False
	is_last_section: bool = False
	total_of_type: int = 1
	total_sections: int = 1


@dataclasses.dataclass(frozen=True)
class RuleResult:

	"""One rule's opinion: a target energy and why (no target means no opinion)."""

	rule_name: str
	adjusted_energy: typing.Optional[float] = None
	reason: str = ""

	@property
	def has_adjustment (self) -> bool:
		return self.adjusted_energy is not None


class EnergyConstraintRule:

	"""
	Base class for a rule.

	Subclasses implement :meth:`evaluate`. ``permits_drop`` marks rules whose
	adjustments are documented exceptions to the monotonic family rule.
	"""

	name = "Rule"
	permits_drop = False

	def __init__ (self, strength: float = 1.0) -> None:

		if strength <= 0:
			raise ValueError(f"{self.name}: strength must be positive, got {strength}")

		self.strength = strength

	def evaluate (self, context: ConstraintContext) -> RuleResult:
		raise NotImplementedError

	def _none (self) -> RuleResult:
		return RuleResult(self.name)


class SameTypeMonotonicRule (EnergyConstraintRule):

	"""Repeated sections of a type never lose energy (optionally gain ``min_increment``)."""

	name = "SameTypeMonotonic"

	def __init__ (self, strength: float = 1.0, min_increment: float = 0.0) -> None:
		super().__init__(strength)
		self.min_increment = min_increment

	def evaluate (self, context: ConstraintContext) -> RuleResult:

		if context.previous_same_type_energy is None:
			return self._none()

		floor = clamp01(context.previous_same_type_energy + self.min_increment)

		if context.proposed_energy >= floor:
			return self._none()

		return RuleResult(
			self.name, floor,
			f"{context.section_type.value} {context.occurrence_index + 1} raised to {floor:.2f} to follow the previous instance",
		)


class PostChorusDropRule (EnergyConstraintRule):

	"""A non-chorus section straight after a chorus is capped so the song can breathe."""

	name = "PostChorusDrop"
	permits_drop = True

	def __init__ (self, strength: float = 1.0, max_energy_after_chorus: float = 0.55, typical_drop: float = 0.20) -> None:
		super().__init__(strength)
		self.max_energy_after_chorus = max_energy_after_chorus
		self.typical_drop = typical_drop

	def evaluate (self, context: ConstraintContext) -> RuleResult:

		if context.previous_section_type != ST.CHORUS or context.section_type == ST.CHORUS:
			return self._none()

		ceiling = self.max_energy_after_chorus

		if context.previous_section_energy is not None:
			ceiling = min(ceiling, max(0.0, context.previous_section_energy - self.typical_drop))

		if context.proposed_energy <= ceiling:
			return self._none()

		return RuleResult(self.name, ceiling, f"capped at {ceiling:.2f} after a chorus")


class FinalChorusPeakRule (EnergyConstraintRule):

	"""The last chorus reaches at least ``min_peak_energy``."""

	name = "FinalChorusPeak"

	def __init__ (self, strength: float = 1.0, min_peak_energy: float = 0.80, peak_proximity: float = 0.95) -> None:
		super().__init__(strength)
		self.min_peak_energy = min_peak_energy
		self.peak_proximity = peak_proximity

	def evaluate (self, context: ConstraintContext) -> RuleResult:

		if context.section_type != ST.CHORUS or not context.is_last_of_type:
			return self._none()

		target = self.min_peak_energy

		if context.previous_same_type_energy is not None:
			# Stay within reach of the earlier choruses' level without overshooting the ceiling.
			target = max(target, min(self.peak_proximity, context.previous_same_type_energy))

		if context.proposed_energy >= target:
			return self._none()

		return RuleResult(self.name, target, f"final chorus raised to {target:.2f}")


class BridgeContrastRule (EnergyConstraintRule):

	"""A bridge differs from the previous chorus (or previous section) by at least ``min_contrast``."""

	name = "BridgeContrast"
	permits_drop = True

	def __init__ (self, strength: float = 1.0, min_contrast: float = 0.15) -> None:
		super().__init__(strength)
		self.min_contrast = min_contrast

	def evaluate (self, context: ConstraintContext) -> RuleResult:

		if context.section_type != ST.BRIDGE:
			return self._none()

		reference = context.previous_chorus_energy
		if reference is None:
			reference = context.previous_section_energy
		if reference is None:
			return self._none()

		if abs(context.proposed_energy - reference) >= self.min_contrast:
			return self._none()

		# Push away from the reference in whichever direction the proposal already leans.
		if context.proposed_energy >= reference and reference + self.min_contrast <= 1.0:
			target = reference + self.min_contrast
		elif reference - self.min_contrast >= 0.0:
			target = reference - self.min_contrast
		else:
			target = reference + self.min_contrast

		return RuleResult(self.name, clamp01(target), f"bridge moved to {target:.2f} for contrast with {reference:.2f}")


@dataclasses.dataclass
class EnergyConstraintPolicy:

	"""
	A named set of rules applied together.

	Parameters:
		name: Policy name (``"PopRock"``).
		rules: Rules consulted for every section.
		enabled: A disabled policy returns every proposal unchanged.
	"""

	name: str
	rules: typing.List[EnergyConstraintRule] = dataclasses.field(default_factory=list)
	enabled: bool = True

	@staticmethod
	def empty () -> "EnergyConstraintPolicy":

		"""Return the disabled policy used to bypass constraints."""

		return EnergyConstraintPolicy(name="None", rules=[], enabled=False)

	def apply (self, context: ConstraintContext) -> typing.Tuple[float, typing.List[RuleResult]]:

		"""Return ``(final energy, adjusting rule results)`` for one section."""

		if not self.enabled or not self.rules:
			return clamp01(context.proposed_energy), []

		results: typing.List[typing.Tuple[EnergyConstraintRule, RuleResult]] = []

		for rule in self.rules:
			result = rule.evaluate(context)
			if result.has_adjustment:
				results.append((rule, result))

		if not results:
			return clamp01(context.proposed_energy), []

		total_strength = sum(rule.strength for rule, _ in results)
		energy = sum(rule.strength * typing.cast(float, result.adjusted_energy) for rule, result in results) / total_strength

		has_monotonic = any(isinstance(rule, SameTypeMonotonicRule) for rule in self.rules)
		drop_permitted = any(rule.permits_drop for rule, _ in results)

		if has_monotonic and not drop_permitted and context.previous_same_type_energy is not None:
			energy = max(energy, context.previous_same_type_energy)

		for _, result in results:
			logger.debug(f"{self.name}: section {context.section_index} {result.rule_name}: {result.reason}")

		return clamp01(energy), [result for _, result in results]


def pop_rock_policy () -> EnergyConstraintPolicy:
	return EnergyConstraintPolicy("PopRock", [
		SameTypeMonotonicRule(1.0, min_increment=0.02),
		PostChorusDropRule(1.2, max_energy_after_chorus=0.55, typical_drop=0.20),
		FinalChorusPeakRule(1.5, min_peak_energy=0.80, peak_proximity=0.95),
		BridgeContrastRule(0.8, min_contrast=0.15),
	])


def rock_policy () -> EnergyConstraintPolicy:
	return EnergyConstraintPolicy("Rock", [
		SameTypeMonotonicRule(1.3, min_increment=0.05),
		PostChorusDropRule(0.8, max_energy_after_chorus=0.65, typical_drop=0.15),
		FinalChorusPeakRule(1.8, min_peak_energy=0.85, peak_proximity=0.98),
		BridgeContrastRule(0.7, min_contrast=0.12),
	])


def jazz_policy () -> EnergyConstraintPolicy:
	return EnergyConstraintPolicy("Jazz", [
		SameTypeMonotonicRule(0.3, min_increment=0.0),
		FinalChorusPeakRule(0.5, min_peak_energy=0.70, peak_proximity=0.85),
		BridgeContrastRule(0.4, min_contrast=0.10),
	])


def edm_policy () -> EnergyConstraintPolicy:
	return EnergyConstraintPolicy("EDM", [
		SameTypeMonotonicRule(0.8, min_increment=0.03),
		FinalChorusPeakRule(2.0, min_peak_energy=0.90, peak_proximity=1.0),
		BridgeContrastRule(0.9, min_contrast=0.20),
	])


def minimal_policy () -> EnergyConstraintPolicy:
	return EnergyConstraintPolicy("Minimal", [
		FinalChorusPeakRule(1.0, min_peak_energy=0.75, peak_proximity=0.90),
	])


POLICY_FACTORIES: typing.Dict[str, typing.Callable[[], EnergyConstraintPolicy]] = {
	"PopRock": pop_rock_policy,
	"Rock": rock_policy,
	"Jazz": jazz_policy,
	"EDM": edm_policy,
	"Minimal": minimal_policy,
	"None": EnergyConstraintPolicy.empty,
}


def get_policy (name: str) -> EnergyConstraintPolicy:

	"""Return a fresh policy by name."""

	if name not in POLICY_FACTORIES:
		raise ValueError(f"Unknown constraint policy: {name!r}. Expected one of {sorted(POLICY_FACTORIES)}")

	return POLICY_FACTORIES[name]()


def policy_name_for_style (style_id: str) -> str:

	"""Map a style id to a policy name by keyword (PopRock when nothing matches)."""

	lowered = style_id.lower()

	if any(k in lowered for k in ("jazz", "bossa", "latin")):
		return "Jazz"
	if any(k in lowered for k in ("edm", "house", "techno")):
		return "EDM"
	if any(k in lowered for k in ("rock", "punk", "metal")):
		return "Rock"

	return "PopRock"


def apply_policy (
	structure: arranger.song.SongStructure,
	proposed: typing.Sequence[float],
	policy: EnergyConstraintPolicy
) -> typing.List[float]:

	"""
	Finalise energies section by section, in song order.

	Each section's context is built from the energies already finalised for
	earlier sections.
	"""

	if len(proposed) != structure.section_count:
		raise ValueError(f"Expected {structure.section_count} proposed energies, got {len(proposed)}")

	final: typing.List[float] = []
	last_by_type: typing.Dict[arranger.song.SectionType, float] = {}
	last_chorus: typing.Optional[float] = None

	for index, section in enumerate(structure.sections):

		previous = structure.sections[index - 1] if index > 0 else None

		context = ConstraintContext(
			section_type = section.section_type,
			occurrence_index = structure.occurrence_index(index),
			section_index = index,
			proposed_energy = clamp01(proposed[index]),
			previous_same_type_energy = last_by_type.get(section.section_type),
			previous_section_energy = final[-1] if final else None,
			previous_section_type = previous.section_type if previous else None,
			previous_chorus_energy = last_chorus,
			is_last_of_type = structure.is_last_of_type(index),
			is_last_section = index == structure.section_count - 1,
			total_of_type = structure.occurrence_count(section.section_type),
			total_sections = structure.section_count,
		)

		energy, _ = policy.apply(context)

		final.append(energy)
		last_by_type[section.section_type] = energy
		if section.section_type == ST.CHORUS:
			last_chorus = energy

	return final
