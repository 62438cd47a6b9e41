import logging

import pytest

import arranger.constants.roles
import arranger.guardrails


R = arranger.constants.roles
G = arranger.guardrails


# ── Ceiling and floor ────────────────────────────────────────────────

def test_ceiling_moves_by_octaves () -> None:

	"""A voicing above the ceiling drops whole octaves."""

	assert G.apply_ceiling([67, 71, 74], 72) == [55, 59, 62]
	assert G.apply_ceiling([76, 79, 83], 72, floor=60) == [64, 67, 71]
	assert G.apply_ceiling([], 72) == []


def test_ceiling_respects_floor (caplog) -> None:

	"""A shift that would cross the floor is not made, and the conflict is logged."""

	with caplog.at_level(logging.DEBUG, logger="arranger.guardrails"):
		assert G.apply_ceiling([50, 80], 72, floor=45) == [50, 80]

	assert "not reachable" in caplog.text


def test_ceiling_is_idempotent () -> None:

	"""Applying a correction twice gives the same voicing."""

	once = G.apply_ceiling([79, 83, 86], 72, floor=52)

	assert G.apply_ceiling(once, 72, floor=52) == once


def test_corrections_keep_pitch_classes () -> None:

	"""Octave-only moves preserve every pitch class."""

	notes = [74, 78, 81, 85]

	assert sorted(n % 12 for n in G.apply_ceiling(notes, 72)) == sorted(n % 12 for n in notes)
	assert sorted(n % 12 for n in G.apply_floor([30, 35], 52)) == [6, 11]


def test_floor_moves_up () -> None:

	"""Notes below the floor rise by octaves, stopping short of the ceiling."""

	assert G.apply_floor([40, 43], 52) == [52, 55]
	assert G.apply_floor([40, 64], 52, ceiling=72) == [40, 64]


# ── Register application ─────────────────────────────────────────────

@pytest.mark.parametrize("semitones, expected", [
	(13, 12), (11, 0), (24, 24), (-13, -12), (-11, 0), (0, 0),
])
def test_octave_lift (semitones: int, expected: int) -> None:

	"""Requested lifts round toward zero to whole octaves."""

	assert G.octave_lift(semitones) == expected


@pytest.mark.parametrize("pitch_class, octave_up, expected", [
	(0, False, 36), (4, False, 28), (3, False, 39), (0, True, 48),
])
def test_bass_note (pitch_class: int, octave_up: bool, expected: int) -> None:

	"""Bass notes sit in the lowest octave from E1."""

	assert G.bass_note(pitch_class, octave_up) == expected


def test_apply_register () -> None:

	"""Lifts are applied, then each role's guardrails."""

	constraints = G.RegisterConstraints()

	assert G.apply_register([60, 64, 67], R.KEYS, 24, constraints) == [60, 64, 67]
	assert G.apply_register([48, 52, 55], R.COMP, 0, constraints) == [60, 64, 67]
	assert G.apply_register([40, 64], R.BASS, 0, constraints) == [28, 52]


def test_register_constraints_validation () -> None:

	"""An inverted vocal band is rejected."""

	with pytest.raises(ValueError):
		G.RegisterConstraints(vocal_band=(80, 60))


# ── Density caps ─────────────────────────────────────────────────────

@pytest.mark.parametrize("energy, expected", [(0.2, "low"), (0.8, "high"), (0.5, "default"), (0.3, "default"), (0.7, "default")])
def test_auto_density_caps (energy: float, expected: str) -> None:

	"""Auto picks a preset from energy."""

	assert G.density_caps_for("auto", energy).name == expected


def test_density_caps_lookup () -> None:

	"""Drum sub-roles share the Drums cap; unknown roles are uncapped."""

	caps = G.density_caps_for("default")

	assert caps.cap_for(R.KICK) == pytest.approx(0.9)
	assert caps.cap_for(R.BASS) == pytest.approx(0.85)
	assert caps.cap_for("Lead") == 1.0

	with pytest.raises(ValueError):
		G.density_caps_for("extreme")

	with pytest.raises(ValueError):
		G.RoleDensityCaps("bad", {R.BASS: 1.5})
