import pytest

import arranger.constants.roles
import arranger.groove
import arranger.onsets


R = arranger.constants.roles
Strength = arranger.onsets.OnsetStrength


# ── GroovePreset ─────────────────────────────────────────────────────

def test_builtin_presets_are_valid () -> None:

	"""Every built-in preset names known roles and in-bar beats."""

	assert set(arranger.groove.BUILTIN_PRESETS) == {"PopGroove", "RockGroove", "EDMGroove", "JazzGroove"}

	for preset in arranger.groove.BUILTIN_PRESETS.values():
		assert preset.onsets(R.BASS)


def test_unknown_role_rejected () -> None:

	"""Anchors keyed by an unknown role are a configuration error."""

	with pytest.raises(ValueError):
		arranger.groove.GroovePreset(name="Bad", anchors={"Cowbell": (1.0,)})


def test_beat_outside_bar_rejected () -> None:

	"""Anchor beats must lie inside the bar."""

	with pytest.raises(ValueError):
		arranger.groove.GroovePreset(name="Bad", anchors={R.KICK: (5.0,)})


def test_max_events_default () -> None:

	"""Without an explicit ceiling a role may fill every grid slot."""

	preset = arranger.groove.GroovePreset(name="Tiny", anchors={R.KICK: (1.0,)}, max_events_per_bar={R.SNARE: 3})

	assert preset.max_events(R.KICK) == 16
	assert preset.max_events(R.SNARE) == 3


def test_from_dict_sorts_and_converts () -> None:

	"""Beats come back sorted floats; other fields take defaults."""

	preset = arranger.groove.GroovePreset.from_dict("Loaded", {"anchors": {"Kick": [3, 1], "Snare": [2, 4]}})

	assert preset.onsets(R.KICK) == (1.0, 3.0)
	assert preset.backbeats == (2, 4)
	assert preset.subdivision == 0.25


def test_from_dict_requires_anchors () -> None:

	"""A preset without anchors cannot be built."""

	with pytest.raises(ValueError):
		arranger.groove.GroovePreset.from_dict("Empty", {"beats_per_bar": 4})


# ── YAML loading ─────────────────────────────────────────────────────

def test_load_presets_from_yaml (tmp_path) -> None:

	"""Presets load from a YAML file keyed by name."""

	path = tmp_path / "grooves.yaml"
	path.write_text(
		"Shuffle:\n"
		"  beats_per_bar: 4\n"
		"  subdivision: 0.5\n"
		"  anchors:\n"
		"    Kick: [1, 3]\n"
		"    Snare: [2, 4]\n"
		"    Bass: [1, 2.5]\n"
		"  max_events_per_bar:\n"
		"    Kick: 4\n"
	)

	presets = arranger.groove.load_presets(str(path))

	assert list(presets) == ["Shuffle"]
	assert presets["Shuffle"].subdivision == 0.5
	assert presets["Shuffle"].onsets(R.BASS) == (1.0, 2.5)
	assert presets["Shuffle"].max_events(R.KICK) == 4


def test_load_presets_missing_file (tmp_path) -> None:

	"""A missing groove file is a configuration error."""

	with pytest.raises(ValueError):
		arranger.groove.load_presets(str(tmp_path / "nope.yaml"))


def test_load_presets_rejects_non_mapping (tmp_path) -> None:

	"""The top level must map names to definitions."""

	path = tmp_path / "list.yaml"
	path.write_text("- Kick\n- Snare\n")

	with pytest.raises(ValueError):
		arranger.groove.load_presets(str(path))


# ── GrooveTrack ──────────────────────────────────────────────────────

def test_groove_track_changes () -> None:

	"""A change holds from its bar until the next one."""

	pop = arranger.groove.BUILTIN_PRESETS["PopGroove"]
	rock = arranger.groove.BUILTIN_PRESETS["RockGroove"]
	track = arranger.groove.GrooveTrack(pop, {9: rock})

	assert track.active_groove(1) is pop
	assert track.active_groove(8) is pop
	assert track.active_groove(9) is rock
	assert track.active_groove(40) is rock
	assert track.anchor_beats(9, R.KICK) == rock.onsets(R.KICK)


# ── Onset strength ───────────────────────────────────────────────────

@pytest.mark.parametrize("beat, expected", [
	(1.0, Strength.DOWNBEAT),
	(2.0, Strength.BACKBEAT),
	(3.0, Strength.STRONG),
	(4.0, Strength.BACKBEAT),
	(2.5, Strength.OFFBEAT),
	(2.25, Strength.GHOST),
	(4.75, Strength.PICKUP),
])
def test_classify_strength (beat: float, expected: arranger.onsets.OnsetStrength) -> None:

	"""Metric weight in a 4/4 bar with backbeats on two and four."""

	assert arranger.groove.classify_strength(beat, 4, (2, 4)) == expected
