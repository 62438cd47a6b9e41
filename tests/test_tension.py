import pytest

import arranger.song
import arranger.tension


TD = arranger.tension.TensionDriver
TH = arranger.tension.TransitionHint


def _song (*specs):
	return arranger.song.SongStructure.from_list(specs)


# ── Transition hints ─────────────────────────────────────────────────

@pytest.mark.parametrize("energy_delta, tension_delta, expected", [
	(0.2, 0.1, TH.BUILD),
	(-0.2, 0.0, TH.DROP),
	(0.0, -0.2, TH.DROP),
	(0.0, -0.1, TH.RELEASE),
	(0.01, 0.01, TH.SUSTAIN),
	(0.1, 0.0, TH.BUILD),
	(-0.1, 0.0, TH.SUSTAIN),
])
def test_transition_hint (energy_delta: float, tension_delta: float, expected: arranger.tension.TransitionHint) -> None:

	"""Boundary classification checks the rules in order."""

	assert arranger.tension.transition_hint(energy_delta, tension_delta) == expected


# ── Section tension ──────────────────────────────────────────────────

def test_verse_before_chorus_builds () -> None:

	"""A verse leading into a chorus carries PreChorusBuild and Anticipation."""

	song = _song(("Verse", 8), ("Chorus", 8))
	tension, drivers = arranger.tension.section_tension(song, [0.4, 0.8], 0, seed=1)

	assert TD.PRE_CHORUS_BUILD in drivers
	assert TD.ANTICIPATION in drivers
	assert TD.OPENING in drivers
	# 0.4 - 0.05 + 0.06 + min(0.15, 0.28), within jitter.
	assert tension == pytest.approx(0.56, abs=0.016)


def test_chorus_resolves_and_peaks () -> None:

	"""A chorus resolves; a louder chorus straight after another also peaks."""

	song = _song(("Chorus", 8), ("Chorus", 8))
	_, first = arranger.tension.section_tension(song, [0.7, 0.8], 0, seed=1)
	_, second = arranger.tension.section_tension(song, [0.7, 0.8], 1, seed=1)

	assert TD.RESOLUTION in first
	assert TD.PEAK not in first
	assert TD.RESOLUTION in second
	assert TD.PEAK in second


def test_drop_after_chorus_resolves () -> None:

	"""A clearly quieter section after a chorus resolves."""

	song = _song(("Chorus", 8), ("Verse", 8))
	tension, drivers = arranger.tension.section_tension(song, [0.8, 0.5], 1, seed=3)

	assert TD.RESOLUTION in drivers
	assert tension == pytest.approx(0.5 - 0.05 - 0.05, abs=0.016)


def test_bridge_contrast_driver () -> None:

	"""Bridges always carry BridgeContrast."""

	song = _song(("Verse", 8), ("Bridge", 8))
	_, drivers = arranger.tension.section_tension(song, [0.4, 0.6], 1, seed=3)

	assert TD.BRIDGE_CONTRAST in drivers


# ── Profiles ─────────────────────────────────────────────────────────

def test_profiles_ranges_and_last_hint (pop_song: arranger.song.SongStructure) -> None:

	"""Every value is in [0, 1] and only the last section has no transition."""

	energies = [0.3, 0.4, 0.8, 0.5, 0.85, 0.6, 0.95, 0.4]
	profiles = arranger.tension.compute_profiles(pop_song, energies, seed=11)

	assert len(profiles) == pop_song.section_count

	for i, profile in enumerate(profiles):
		assert 0.0 <= profile.tension <= 1.0
		assert 0.0 <= profile.contrast_bias <= 1.0
		assert profile.energy == energies[i]
		assert (profile.transition_hint == TH.NONE) == (i == len(profiles) - 1)

	assert profiles[0].contrast_bias == 0.0
	assert profiles[2].contrast_bias == pytest.approx(0.4)


def test_profile_rejects_out_of_range () -> None:

	"""Profiles refuse values outside [0, 1]."""

	with pytest.raises(ValueError):
		arranger.tension.SectionTensionProfile(0, 1.2, 0.5, 0.0, TD.NONE, TH.NONE)
