"""Chord definitions and pitch class utilities.

This module provides chord quality definitions, note-name parsing and the
:class:`Chord` class the harmony collaborator hands to bass operators and
chord voicing.

Module-level constants:
- `NOTE_NAME_TO_PC`: Maps note names (e.g., `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `CHORD_INTERVALS`: Maps chord quality names to interval lists (semitones from root)
- `SUFFIX_TO_QUALITY`: Maps chord-symbol suffixes (`"m7"`, `"maj7"`) to quality names
"""

import dataclasses
import typing


NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0, "C#": 1, "Db": 1, "D": 2, "D#": 3, "Eb": 3,
	"E": 4, "F": 5, "F#": 6, "Gb": 6, "G": 7, "G#": 8,
	"Ab": 8, "A": 9, "A#": 10, "Bb": 10, "B": 11,
}

PC_TO_NOTE_NAME: typing.List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

CHORD_INTERVALS: typing.Dict[str, typing.List[int]] = {
	"major": [0, 4, 7],
	"minor": [0, 3, 7],
	"diminished": [0, 3, 6],
	"augmented": [0, 4, 8],
	"dominant_7th": [0, 4, 7, 10],
	"major_7th": [0, 4, 7, 11],
	"minor_7th": [0, 3, 7, 10],
	"half_diminished_7th": [0, 3, 6, 10],
	"sus2": [0, 2, 7],
	"sus4": [0, 5, 7],
}

SUFFIX_TO_QUALITY: typing.Dict[str, str] = {
	"": "major",
	"m": "minor",
	"dim": "diminished",
	"+": "augmented",
	"7": "dominant_7th",
	"maj7": "major_7th",
	"m7": "minor_7th",
	"m7b5": "half_diminished_7th",
	"sus2": "sus2",
	"sus4": "sus4",
}

# Scale steps used when a bass line walks between chord tones.
MAJOR_SCALE_STEPS: typing.List[int] = [0, 2, 4, 5, 7, 9, 11]
MINOR_SCALE_STEPS: typing.List[int] = [0, 2, 3, 5, 7, 8, 10]


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	Represents a chord as a root pitch class and quality.
	"""

	root_pc: int
	quality: str

	def __post_init__ (self) -> None:
		if self.quality not in CHORD_INTERVALS:
			raise ValueError(f"Unknown chord quality: {self.quality}")

	@classmethod
	def parse (cls, symbol: str) -> "Chord":

		"""
		Parse a chord symbol such as ``"C"``, ``"F#m"``, ``"Bbmaj7"`` or ``"Em7b5"``.

		Raises:
			ValueError: If the root or suffix is not recognised.
		"""

		symbol = symbol.strip()
		root = symbol[:2] if len(symbol) > 1 and symbol[1] in "#b" else symbol[:1]

		if root not in NOTE_NAME_TO_PC:
			raise ValueError(f"Unknown chord root in {symbol!r}. Expected e.g. 'C', 'F#', 'Bb'.")

		suffix = symbol[len(root):]

		if suffix not in SUFFIX_TO_QUALITY:
			raise ValueError(f"Unknown chord suffix {suffix!r} in {symbol!r}")

		return cls(NOTE_NAME_TO_PC[root], SUFFIX_TO_QUALITY[suffix])

	def intervals (self) -> typing.List[int]:
		return CHORD_INTERVALS[self.quality]

	def is_minor (self) -> bool:

		"""Return True if the chord's third is minor."""

		return 3 in self.intervals()

	def tones (self, root: int) -> typing.List[int]:

		"""Return MIDI notes for the chord in root position, built on the root nearest ``root``.

		Example:
			```python
			Chord(root_pc=0, quality="major").tones(62)   # [60, 64, 67]
			```
		"""

		offset = (self.root_pc - root) % 12
		if offset > 6:
			offset -= 12

		effective_root = root + offset

		return [effective_root + interval for interval in self.intervals()]

	def root_note (self, root_midi: int) -> int:

		"""Return the MIDI note for the chord root nearest ``root_midi``."""

		return self.tones(root_midi)[0]

	def scale_steps (self) -> typing.List[int]:

		"""Return a seven-note scale (as root offsets) that fits the chord quality."""

		return MINOR_SCALE_STEPS if self.is_minor() else MAJOR_SCALE_STEPS

	def name (self) -> str:

		"""Return a human-friendly chord name."""

		suffix = next(s for s, q in SUFFIX_TO_QUALITY.items() if q == self.quality)

		return f"{PC_TO_NOTE_NAME[self.root_pc % 12]}{suffix}"
