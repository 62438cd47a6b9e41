"""Song structure: an ordered, typed sequence of sections.

Defines :class:`SectionType`, :class:`Section` (an immutable span of bars)
and :class:`SongStructure` (the song-structure collaborator the planner
reads). Bars are 1-based throughout; section indices are 0-based.
"""

import dataclasses
import enum
import typing


class SectionType (enum.Enum):

	"""The kinds of section the planner knows how to shape."""

	INTRO = "Intro"
	VERSE = "Verse"
	CHORUS = "Chorus"
	BRIDGE = "Bridge"
	SOLO = "Solo"
	OUTRO = "Outro"
	CUSTOM = "Custom"

	@classmethod
	def parse (cls, name: typing.Union[str, "SectionType"]) -> "SectionType":

		"""Return the section type for a case-insensitive name (``"verse"``, ``"Chorus"``)."""

		if isinstance(name, SectionType):
			return name

		for member in cls:
			if member.value.lower() == str(name).strip().lower():
				return member

		raise ValueError(f"Unknown section type: {name!r}. Expected one of {[m.value for m in cls]}")


@dataclasses.dataclass(frozen=True)
class Section:

	"""
	An immutable span of bars with a type.

	Attributes:
		section_type: What kind of section this is.
		start_bar: First bar of the section (1-based, inclusive).
		bar_count: Number of bars in the section (at least 1).
	"""

	section_type: SectionType
	start_bar: int
	bar_count: int

	def __post_init__ (self) -> None:
		if self.start_bar < 1:
			raise ValueError(f"start_bar must be >= 1, got {self.start_bar}")
		if self.bar_count < 1:
			raise ValueError(f"bar_count must be >= 1, got {self.bar_count}")

	@property
	def end_bar (self) -> int:

		"""Return the last bar of the section (inclusive)."""

		return self.start_bar + self.bar_count - 1

	def contains (self, bar: int) -> bool:

		"""Return True if the 1-based bar falls inside this section."""

		return self.start_bar <= bar <= self.end_bar

	def bar_in_section (self, bar: int) -> int:

		"""Return the 0-based position of ``bar`` within this section."""

		if not self.contains(bar):
			raise ValueError(f"Bar {bar} is outside section {self.start_bar}-{self.end_bar}")

		return bar - self.start_bar


SectionSpec = typing.Union[Section, typing.Tuple[typing.Union[str, SectionType], int]]


@dataclasses.dataclass(frozen=True)
class SongStructure:

	"""
	An ordered, immutable list of sections laid end to end.

	Build one from ``(type, bars)`` pairs; start bars are assigned in order::

		song = SongStructure.from_list([("Intro", 4), ("Verse", 8), ("Chorus", 8)])
		song.section_count          # 3
		song.section_for_bar(13)    # (2, Section(CHORUS, 13, 8))

	Instances are hashable, so a structure can key the planner cache.
	"""

	sections: typing.Tuple[Section, ...]

	def __post_init__ (self) -> None:

		expected_start = 1

		for section in self.sections:
			if section.start_bar != expected_start:
				raise ValueError(
					f"Sections must be contiguous: expected start bar {expected_start}, got {section.start_bar}"
				)
			expected_start = section.end_bar + 1

	@classmethod
	def from_list (cls, specs: typing.Iterable[SectionSpec]) -> "SongStructure":

		"""Build a structure from ``(type, bars)`` pairs or ready-made sections."""

		sections: typing.List[Section] = []
		start_bar = 1

		for spec in specs:

			if isinstance(spec, Section):
				section_type, bar_count = spec.section_type, spec.bar_count
			else:
				section_type, bar_count = SectionType.parse(spec[0]), int(spec[1])

			sections.append(Section(section_type, start_bar, bar_count))
			start_bar += bar_count

		return cls(tuple(sections))

	@property
	def section_count (self) -> int:
		return len(self.sections)

	@property
	def total_bars (self) -> int:

		"""Return the number of bars across all sections."""

		if not self.sections:
			return 0

		return self.sections[-1].end_bar

	def section_at (self, index: int) -> Section:

		"""Return the section at a 0-based index."""

		if index < 0 or index >= len(self.sections):
			raise ValueError(f"Section index {index} out of range (0-{len(self.sections) - 1})")

		return self.sections[index]

	def section_for_bar (self, bar: int) -> typing.Tuple[int, Section]:

		"""Return ``(index, section)`` for a 1-based bar number."""

		for index, section in enumerate(self.sections):
			if section.contains(bar):
				return index, section

		raise ValueError(f"Bar {bar} is outside the song (1-{self.total_bars})")

	def occurrence_index (self, index: int) -> int:

		"""Return how many earlier sections share this section's type."""

		section_type = self.section_at(index).section_type

		return sum(1 for s in self.sections[:index] if s.section_type == section_type)

	def occurrence_count (self, section_type: SectionType) -> int:

		"""Return how many sections of a type the song contains."""

		return sum(1 for s in self.sections if s.section_type == section_type)

	def is_last_of_type (self, index: int) -> bool:

		"""Return True if no later section shares this section's type."""

		section_type = self.section_at(index).section_type

		return all(s.section_type != section_type for s in self.sections[index + 1:])
