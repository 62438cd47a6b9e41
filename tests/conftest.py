import typing

import pytest

import arranger.chords
import arranger.constants.roles
import arranger.groove
import arranger.harmony
import arranger.operators.base
import arranger.operators.bass
import arranger.operators.drums
import arranger.operators.registry
import arranger.song


R = arranger.constants.roles

POP_SONG = [
	("Intro", 4), ("Verse", 8), ("Chorus", 8), ("Verse", 8),
	("Chorus", 8), ("Bridge", 4), ("Chorus", 8), ("Outro", 4),
]

SHORT_SONG = [("Intro", 2), ("Verse", 4), ("Chorus", 4), ("Bridge", 2), ("Chorus", 4), ("Outro", 2)]


@pytest.fixture
def pop_song () -> arranger.song.SongStructure:

	"""A full pop form: 52 bars, three choruses."""

	return arranger.song.SongStructure.from_list(POP_SONG)


@pytest.fixture
def short_song () -> arranger.song.SongStructure:

	"""A compact form that still has every boundary the operators care about."""

	return arranger.song.SongStructure.from_list(SHORT_SONG)


@pytest.fixture
def pop_groove () -> arranger.groove.GroovePreset:
	return arranger.groove.BUILTIN_PRESETS["PopGroove"]


@pytest.fixture
def jazz_groove () -> arranger.groove.GroovePreset:
	return arranger.groove.BUILTIN_PRESETS["JazzGroove"]


@pytest.fixture
def harmony () -> arranger.harmony.HarmonyTrack:

	"""I - vi - IV - V in C, one chord per bar, long enough for any test song."""

	return arranger.harmony.HarmonyTrack.looped(["C", "Am", "F", "G"], 64)


@pytest.fixture
def drum_registry () -> arranger.operators.registry.OperatorRegistry:
	return arranger.operators.drums.build_drum_registry()


@pytest.fixture
def bass_registry () -> arranger.operators.registry.OperatorRegistry:
	return arranger.operators.bass.build_bass_registry()


@pytest.fixture
def make_context (pop_groove: arranger.groove.GroovePreset) -> typing.Callable[..., arranger.operators.base.BarContext]:

	"""
	Return a factory for bar contexts.

	Defaults describe the first bar of an 8-bar pop verse at medium energy,
	with every pop drum anchor active. Keyword arguments override any field.
	"""

	def factory (**overrides: typing.Any) -> arranger.operators.base.BarContext:

		fields: typing.Dict[str, typing.Any] = dict(
			bar_number = 1,
			beats_per_bar = 4,
			backbeat_beats = (2, 4),
			section_type = arranger.song.SectionType.VERSE,
			section_index = 0,
			bar_in_section = 0,
			bars_until_section_end = 7,
			is_fill_window = False,
			seed = 42,
			role = R.DRUMS,
			energy = 0.5,
			tension = 0.5,
			style_id = "PopGroove",
			active_roles = frozenset((R.KICK, R.SNARE, R.CLOSED_HAT, R.CRASH, R.RIDE, R.OPEN_HAT, R.TOM_1, R.TOM_2, R.FLOOR_TOM)),
			anchors = {role: pop_groove.onsets(role) for role in (R.KICK, R.SNARE, R.CLOSED_HAT, R.BASS)},
			event_caps = {},
			chord = arranger.chords.Chord.parse("C"),
			next_chord = arranger.chords.Chord.parse("G"),
		)

		fields.update(overrides)

		return arranger.operators.base.BarContext(**fields)

	return factory
