import logging

import pytest

import arranger.energy_arc
import arranger.energy_constraints
import arranger.song


ST = arranger.song.SectionType
EC = arranger.energy_constraints


def _context (**overrides) -> arranger.energy_constraints.ConstraintContext:

	fields = dict(section_type=ST.VERSE, occurrence_index=0, section_index=0, proposed_energy=0.5)
	fields.update(overrides)

	return EC.ConstraintContext(**fields)


# ── Style categories and arc templates ───────────────────────────────

@pytest.mark.parametrize("style, category", [
	("PopGroove", "Pop"),
	("FunkyDance", "Pop"),
	("RockGroove", "Rock"),
	("PunkFast", "Rock"),
	("EDMGroove", "EDM"),
	("DeepHouse", "EDM"),
	("JazzGroove", "Jazz"),
	("BossaNova", "Jazz"),
	("CountryTrain", "Country"),
])
def test_style_category (style: str, category: str) -> None:

	"""Style ids map to a category by keyword."""

	assert arranger.energy_arc.style_category(style) == category


def test_unknown_style_falls_back_to_pop (caplog) -> None:

	"""An unrecognised style uses the Pop arcs and says so."""

	with caplog.at_level(logging.WARNING, logger="arranger.energy_arc"):
		assert arranger.energy_arc.style_category("Zydeco Waltz Unique") == "Pop"

	assert "Zydeco Waltz Unique" in caplog.text


def test_template_choice_is_seeded () -> None:

	"""The same style and seed always pick the same template, from the style's category."""

	for seed in range(20):
		template = arranger.energy_arc.select_template("RockGroove", seed)
		assert template.category == "Rock"
		assert template is arranger.energy_arc.select_template("RockGroove", seed)


def test_template_overrides_by_occurrence () -> None:

	"""Per-occurrence overrides win over the section-type default."""

	template = arranger.energy_arc.TEMPLATES["Pop"][0]

	assert template.energy_for(ST.CHORUS, 0) == 0.8
	assert template.energy_for(ST.CHORUS, 1) == 0.85
	assert template.energy_for(ST.CHORUS, 2) == 0.8


# ── Rules ────────────────────────────────────────────────────────────

def test_same_type_monotonic_rule () -> None:

	"""A repeat below its predecessor is raised to it (plus the increment)."""

	rule = EC.SameTypeMonotonicRule(min_increment=0.02)

	assert rule.evaluate(_context(proposed_energy=0.4, previous_same_type_energy=0.5)).adjusted_energy == pytest.approx(0.52)
	assert not rule.evaluate(_context(proposed_energy=0.6, previous_same_type_energy=0.5)).has_adjustment
	assert not rule.evaluate(_context(proposed_energy=0.1)).has_adjustment


def test_post_chorus_drop_rule () -> None:

	"""A section after a chorus is capped at the lower of the ceiling and the typical drop."""

	rule = EC.PostChorusDropRule(max_energy_after_chorus=0.55, typical_drop=0.2)

	capped = rule.evaluate(_context(
		proposed_energy = 0.7,
		previous_section_type = ST.CHORUS,
		previous_section_energy = 0.9,
	))
	assert capped.adjusted_energy == pytest.approx(0.55)

	dropped = rule.evaluate(_context(
		proposed_energy = 0.6,
		previous_section_type = ST.CHORUS,
		previous_section_energy = 0.7,
	))
	assert dropped.adjusted_energy == pytest.approx(0.5)

	assert not rule.evaluate(_context(section_type=ST.CHORUS, proposed_energy=0.9, previous_section_type=ST.CHORUS)).has_adjustment


def test_final_chorus_peak_rule () -> None:

	"""Only the last chorus is lifted."""

	rule = EC.FinalChorusPeakRule(min_peak_energy=0.8)

	assert rule.evaluate(_context(section_type=ST.CHORUS, proposed_energy=0.6, is_last_of_type=True)).adjusted_energy == pytest.approx(0.8)
	assert not rule.evaluate(_context(section_type=ST.CHORUS, proposed_energy=0.6, is_last_of_type=False)).has_adjustment


def test_bridge_contrast_uses_previous_chorus () -> None:

	"""A bridge too close to the last chorus is pushed away from it."""

	rule = EC.BridgeContrastRule(min_contrast=0.15)

	result = rule.evaluate(_context(section_type=ST.BRIDGE, proposed_energy=0.75, previous_chorus_energy=0.8, previous_section_energy=0.3))

	assert result.adjusted_energy == pytest.approx(0.65)


def test_bridge_contrast_falls_back_to_previous_section () -> None:

	"""Without an earlier chorus the bridge contrasts with whatever came before."""

	rule = EC.BridgeContrastRule(min_contrast=0.15)

	result = rule.evaluate(_context(section_type=ST.BRIDGE, proposed_energy=0.55, previous_section_energy=0.5))

	assert result.adjusted_energy == pytest.approx(0.65)
	assert not rule.evaluate(_context(section_type=ST.BRIDGE, proposed_energy=0.55)).has_adjustment


def test_rule_strength_must_be_positive () -> None:

	"""A rule with no weight would break the blend."""

	with pytest.raises(ValueError):
		EC.SameTypeMonotonicRule(strength=0.0)


# ── Policies ─────────────────────────────────────────────────────────

def test_policy_blends_by_strength () -> None:

	"""Adjusting rules are averaged, weighted by strength."""

	policy = EC.EnergyConstraintPolicy("Test", [
		EC.SameTypeMonotonicRule(1.0, min_increment=0.02),
		EC.FinalChorusPeakRule(1.5, min_peak_energy=0.85, peak_proximity=0.95),
	])

	energy, results = policy.apply(_context(
		section_type = ST.CHORUS,
		proposed_energy = 0.5,
		previous_same_type_energy = 0.68,
		is_last_of_type = True,
	))

	assert energy == pytest.approx((0.70 * 1.0 + 0.85 * 1.5) / 2.5)
	assert [r.rule_name for r in results] == ["SameTypeMonotonic", "FinalChorusPeak"]


def test_disabled_policy_passes_through () -> None:

	"""The None policy returns proposals unchanged (clamped)."""

	policy = EC.get_policy("None")

	assert not policy.enabled
	assert policy.apply(_context(proposed_energy=0.33))[0] == pytest.approx(0.33)
	assert policy.apply(_context(proposed_energy=1.4))[0] == 1.0


def test_get_policy_unknown () -> None:

	"""Unknown policy names raise."""

	with pytest.raises(ValueError):
		EC.get_policy("Polka")


@pytest.mark.parametrize("style, policy", [
	("PopGroove", "PopRock"),
	("RockGroove", "Rock"),
	("JazzGroove", "Jazz"),
	("EDMGroove", "EDM"),
	("Anything", "PopRock"),
])
def test_policy_name_for_style (style: str, policy: str) -> None:

	"""Style ids select a policy by keyword."""

	assert EC.policy_name_for_style(style) == policy


def test_apply_policy_monotonic_verses () -> None:

	"""A quieter proposal for the second verse is raised above the first."""

	song = arranger.song.SongStructure.from_list([("Verse", 8), ("Verse", 8)])
	final = EC.apply_policy(song, [0.6, 0.3], EC.pop_rock_policy())

	assert final[0] == pytest.approx(0.6)
	assert final[1] == pytest.approx(0.62)


def test_apply_policy_length_mismatch () -> None:

	"""One proposal per section is required."""

	song = arranger.song.SongStructure.from_list([("Verse", 8)])

	with pytest.raises(ValueError):
		EC.apply_policy(song, [0.5, 0.5], EC.pop_rock_policy())


def test_apply_policy_choruses_never_fall (pop_song: arranger.song.SongStructure) -> None:

	"""Under every enabled policy, each chorus is at least as loud as the one before."""

	for name in ("PopRock", "Rock", "Jazz", "EDM"):
		for template in arranger.energy_arc.TEMPLATES["Pop"]:
			proposed = arranger.energy_arc.proposed_energies(pop_song, template)
			final = EC.apply_policy(pop_song, proposed, EC.get_policy(name))
			choruses = [final[i] for i, s in enumerate(pop_song.sections) if s.section_type == ST.CHORUS]
			assert choruses == sorted(choruses)
