"""Style-specific energy arcs.

An energy arc is the starting point for macro energy: a template giving a
default energy per section type, optionally overridden for a particular
occurrence ("the second chorus lifts to 0.85"). Each style category owns a
few templates; one is picked deterministically from the seed, so the same
song, style and seed always start from the same shape. Constraint policies
(:mod:`arranger.energy_constraints`) then refine the proposed values.
"""

import dataclasses
import functools
import logging
import typing

import arranger.random_stream
import arranger.song


logger = logging.getLogger(__name__)

ST = arranger.song.SectionType

CATEGORY_POP = "Pop"
CATEGORY_ROCK = "Rock"
CATEGORY_EDM = "EDM"
CATEGORY_JAZZ = "Jazz"
CATEGORY_COUNTRY = "Country"

# Checked in order; the first keyword found in the lower-cased style id wins.
_CATEGORY_KEYWORDS: typing.List[typing.Tuple[str, typing.Tuple[str, ...]]] = [
	(CATEGORY_EDM, ("edm", "house", "techno", "trance")),
	(CATEGORY_JAZZ, ("jazz", "bossa", "latin", "swing")),
	(CATEGORY_ROCK, ("rock", "punk", "metal")),
	(CATEGORY_COUNTRY, ("country", "folk")),
	(CATEGORY_POP, ("pop", "dance", "funk")),
]


@functools.lru_cache(maxsize=None)
def style_category (style_id: str) -> str:

	"""
	Return the style category for a style id.

	Unknown styles fall back to Pop with a warning.
	"""

	lowered = style_id.lower()

	for category, keywords in _CATEGORY_KEYWORDS:
		if any(k in lowered for k in keywords):
			return category

	logger.warning(f"Unknown style {style_id!r}; using the {CATEGORY_POP} energy arcs")

	return CATEGORY_POP


@dataclasses.dataclass(frozen=True)
class EnergyArcTemplate:

	"""
	A named energy shape for one style category.

	Attributes:
		name: Template name (``"PopBuildAndRelease"``).
		category: Style category the template belongs to.
		defaults: Energy per section type.
		overrides: Energy for a specific ``(section type, occurrence index)``.
	"""

	name: str
	category: str
	defaults: typing.Mapping[arranger.song.SectionType, float]
	overrides: typing.Mapping[typing.Tuple[arranger.song.SectionType, int], float] = dataclasses.field(default_factory=dict)

	def energy_for (self, section_type: arranger.song.SectionType, occurrence: int) -> float:

		"""Return the proposed energy for the nth occurrence of a section type."""

		if (section_type, occurrence) in self.overrides:
			return self.overrides[(section_type, occurrence)]

		return self.defaults.get(section_type, self.defaults.get(ST.CUSTOM, 0.5))


def _defaults (intro: float, verse: float, chorus: float, bridge: float, outro: float, solo: float) -> typing.Dict[arranger.song.SectionType, float]:
	return {
		ST.INTRO: intro, ST.VERSE: verse, ST.CHORUS: chorus, ST.BRIDGE: bridge,
		ST.OUTRO: outro, ST.SOLO: solo, ST.CUSTOM: 0.5,
	}


TEMPLATES: typing.Dict[str, typing.List[EnergyArcTemplate]] = {
	CATEGORY_POP: [
		EnergyArcTemplate(
			"PopStandard", CATEGORY_POP, _defaults(0.3, 0.4, 0.8, 0.6, 0.5, 0.7),
			{(ST.VERSE, 1): 0.5, (ST.CHORUS, 1): 0.85},
		),
		EnergyArcTemplate(
			"PopBuildAndRelease", CATEGORY_POP, _defaults(0.25, 0.4, 0.75, 0.5, 0.3, 0.7),
			{(ST.VERSE, 0): 0.35, (ST.VERSE, 1): 0.45, (ST.CHORUS, 0): 0.75, (ST.CHORUS, 1): 0.8, (ST.CHORUS, 2): 0.9},
		),
		EnergyArcTemplate("PopIntenseChorus", CATEGORY_POP, _defaults(0.3, 0.35, 0.9, 0.6, 0.4, 0.8)),
	],
	CATEGORY_ROCK: [
		EnergyArcTemplate(
			"RockBuild", CATEGORY_ROCK, _defaults(0.4, 0.5, 0.8, 0.75, 0.6, 0.85),
			{(ST.VERSE, 0): 0.5, (ST.VERSE, 1): 0.6, (ST.CHORUS, 0): 0.8, (ST.CHORUS, 1): 0.85, (ST.CHORUS, 2): 0.95},
		),
		EnergyArcTemplate("RockConsistentHigh", CATEGORY_ROCK, _defaults(0.7, 0.75, 0.85, 0.8, 0.75, 0.9)),
		EnergyArcTemplate("RockDynamicShift", CATEGORY_ROCK, _defaults(0.3, 0.4, 0.85, 0.35, 0.5, 0.9)),
	],
	CATEGORY_EDM: [
		EnergyArcTemplate(
			"EDMBuildDrop", CATEGORY_EDM, _defaults(0.2, 0.3, 0.95, 0.25, 0.3, 0.9),
			{(ST.CHORUS, 2): 1.0},
		),
		EnergyArcTemplate("EDMProgressive", CATEGORY_EDM, _defaults(0.4, 0.5, 0.85, 0.7, 0.6, 0.9)),
		EnergyArcTemplate("EDMBreakdownBuild", CATEGORY_EDM, _defaults(0.3, 0.35, 0.9, 0.2, 0.25, 0.85)),
	],
	CATEGORY_JAZZ: [
		EnergyArcTemplate("JazzModerate", CATEGORY_JAZZ, _defaults(0.4, 0.5, 0.6, 0.55, 0.45, 0.7)),
		EnergyArcTemplate("JazzDynamic", CATEGORY_JAZZ, _defaults(0.3, 0.45, 0.7, 0.5, 0.35, 0.75)),
	],
	CATEGORY_COUNTRY: [
		EnergyArcTemplate(
			"CountryTraditional", CATEGORY_COUNTRY, _defaults(0.35, 0.45, 0.7, 0.55, 0.4, 0.65),
			{(ST.CHORUS, 1): 0.75},
		),
		EnergyArcTemplate("CountryAnthem", CATEGORY_COUNTRY, _defaults(0.3, 0.4, 0.8, 0.6, 0.45, 0.75)),
	],
}


def select_template (style_id: str, seed: int) -> EnergyArcTemplate:

	"""Pick one of the category's templates, deterministically from the seed."""

	category = style_category(style_id)
	templates = TEMPLATES[category]
	rng = arranger.random_stream.stream(seed, arranger.random_stream.StreamKey(arranger.random_stream.PURPOSE_ENERGY_ARC, 0, "", category))

	return templates[rng.randrange(len(templates))]


def proposed_energies (structure: arranger.song.SongStructure, template: EnergyArcTemplate) -> typing.List[float]:

	"""Return the template's unconstrained energy for every section, in order."""

	return [
		template.energy_for(section.section_type, structure.occurrence_index(i))
		for i, section in enumerate(structure.sections)
	]
