import threading

import pytest

import arranger.energy_constraints
import arranger.planner
import arranger.role_profiles
import arranger.song
import arranger.tension


TD = arranger.tension.TensionDriver
TH = arranger.tension.TransitionHint

STYLES = ["PopGroove", "RockGroove", "EDMGroove", "JazzGroove"]


def _song (*specs):
	return arranger.song.SongStructure.from_list(specs)


# ── Scenarios ────────────────────────────────────────────────────────

@pytest.mark.parametrize("style", STYLES)
def test_single_section_song (style: str) -> None:

	"""A one-section song has one section and no transition out of it."""

	for seed in range(5):
		plan = arranger.planner.plan_song(_song(("Verse", 8)), style, seed)
		assert plan.section_count == 1
		assert plan.get_transition_hint(0) == TH.NONE


def test_verse_then_chorus () -> None:

	"""The chorus is not quieter than the verse, and it resolves or peaks."""

	plan = arranger.planner.plan_song(_song(("Verse", 8), ("Chorus", 8)), "PopGroove", 42)

	assert plan.get_energy(1) >= plan.get_energy(0) - 0.05
	assert plan.get_profile(1).drivers & (TD.RESOLUTION | TD.PEAK)


@pytest.mark.parametrize("seed", range(6))
def test_chorus_then_outro (seed: int) -> None:

	"""The outro is calmer than the chorus and resolves."""

	plan = arranger.planner.plan_song(_song(("Chorus", 8), ("Outro", 4)), "PopGroove", seed)

	assert plan.get_tension(1) < plan.get_tension(0)
	assert TD.RESOLUTION in plan.get_profile(1).drivers


@pytest.mark.parametrize("seed", range(6))
def test_verse_then_bridge (seed: int) -> None:

	"""The bridge contrasts with the verse."""

	plan = arranger.planner.plan_song(_song(("Verse", 8), ("Bridge", 8)), "PopGroove", seed)

	assert TD.BRIDGE_CONTRAST in plan.get_profile(1).drivers
	assert abs(plan.get_energy(1) - plan.get_energy(0)) > 0.05


@pytest.mark.parametrize("count", [1, 2, 5, 9])
def test_last_section_has_no_transition (count: int) -> None:

	"""Only the last of N sections reports no transition."""

	kinds = ["Verse", "Chorus", "Bridge"]
	song = _song(*[(kinds[i % 3], 4) for i in range(count)])
	plan = arranger.planner.plan_song(song, "RockGroove", 3)

	for index in range(count):
		assert (plan.get_transition_hint(index) == TH.NONE) == (index == count - 1)


# ── Invariants ───────────────────────────────────────────────────────

@pytest.mark.parametrize("style", STYLES)
def test_ranges (pop_song: arranger.song.SongStructure, style: str) -> None:

	"""Every planned value sits in [0, 1]."""

	for seed in range(4):

		plan = arranger.planner.plan_song(pop_song, style, seed)

		for index in range(plan.section_count):

			profile = plan.get_profile(index)
			assert 0.0 <= profile.energy <= 1.0
			assert 0.0 <= profile.tension <= 1.0
			assert 0.0 <= profile.contrast_bias <= 1.0
			assert 0.0 <= plan.get_variation(index).intensity <= 1.0
			assert all(0.0 <= t <= 1.0 for t in plan.get_micro_tension(index).tension_by_bar)
			assert all(abs(d) <= 0.10 for d in plan.get_micro_energy(index).energy_delta_by_bar)


def test_choruses_never_lose_energy (pop_song: arranger.song.SongStructure) -> None:

	"""Under an enabled policy, each chorus is at least as loud as the previous one."""

	for style in STYLES:
		for seed in range(5):
			plan = arranger.planner.plan_song(pop_song, style, seed)
			choruses = [plan.get_energy(i) for i, s in enumerate(pop_song.sections) if s.section_type == arranger.song.SectionType.CHORUS]
			assert choruses == sorted(choruses)


def test_plan_is_deterministic (pop_song: arranger.song.SongStructure) -> None:

	"""Planning twice gives identical output."""

	assert arranger.planner.plan_song(pop_song, "PopGroove", 7) == arranger.planner.plan_song(pop_song, "PopGroove", 7)


def test_disabled_policy_keeps_template_energies () -> None:

	"""With constraints bypassed the arc's proposals come through untouched."""

	song = _song(("Verse", 8), ("Verse", 8))
	plan = arranger.planner.plan_song(song, "PopGroove", 1, policy=arranger.energy_constraints.EnergyConstraintPolicy.empty())

	assert plan.policy_name == "None"
	assert plan.template_name


# ── Queries ──────────────────────────────────────────────────────────

def test_missing_data_checks_and_getters (pop_song: arranger.song.SongStructure) -> None:

	"""Checks return False / None; getters raise ValueError."""

	plan = arranger.planner.plan_song(pop_song, "PopGroove", 1)

	assert plan.has_data(0)
	assert not plan.has_data(8)
	assert not plan.has_data(-1)
	assert plan.try_get_profile(8) is None
	assert plan.try_get_profile(0) is plan.profiles[0]

	for getter in (plan.get_profile, plan.get_energy, plan.get_tension, plan.get_micro_tension, plan.get_variation):
		with pytest.raises(ValueError):
			getter(8)


def test_role_profile_falls_back_to_neutral (pop_song: arranger.song.SongStructure) -> None:

	"""Roles without planning data get the neutral profile."""

	plan = arranger.planner.plan_song(pop_song, "PopGroove", 1)

	assert plan.get_role_profile(0, "Lead") == arranger.role_profiles.RoleProfile.neutral()
	assert plan.get_role_profile(2, "Drums") != arranger.role_profiles.RoleProfile.neutral()


# ── Planner cache ────────────────────────────────────────────────────

def test_cache_returns_same_plan (pop_song: arranger.song.SongStructure) -> None:

	"""A repeated request returns the cached object; a new seed computes a new plan."""

	planner = arranger.planner.Planner()

	first = planner.plan(pop_song, "PopGroove", 42)
	again = planner.plan(arranger.song.SongStructure.from_list([(s.section_type, s.bar_count) for s in pop_song.sections]), "PopGroove", 42)

	assert first is again
	assert len(planner) == 1

	planner.plan(pop_song, "PopGroove", 43)
	assert len(planner) == 2


def test_cache_is_safe_under_threads (pop_song: arranger.song.SongStructure) -> None:

	"""Concurrent requests for one key all get the same plan."""

	planner = arranger.planner.Planner()
	results = []

	def worker () -> None:
		results.append(planner.plan(pop_song, "RockGroove", 5))

	threads = [threading.Thread(target=worker) for _ in range(8)]

	for t in threads:
		t.start()
	for t in threads:
		t.join()

	assert len(planner) == 1
	assert all(r is results[0] for r in results)
