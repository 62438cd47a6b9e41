import pytest

import arranger.chords
import arranger.constants.roles
import arranger.onsets
import arranger.operators.micro_addition
import arranger.operators.punctuation
import arranger.operators.removal
import arranger.operators.style_idiom
import arranger.operators.substitution
import arranger.song
import arranger.tension


R = arranger.constants.roles
ST = arranger.song.SectionType
Strength = arranger.onsets.OnsetStrength


# ── Eligibility gates ────────────────────────────────────────────────

def test_gate_checks_role (make_context) -> None:

	"""Drum operators never run for the bass."""

	ghost = arranger.operators.micro_addition.GhostBeforeBackbeat()

	assert ghost.can_apply(make_context())
	assert not ghost.can_apply(make_context(role=R.BASS))


def test_gate_checks_energy (make_context) -> None:

	"""Minimum and maximum energy bound eligibility."""

	ghost = arranger.operators.micro_addition.GhostBeforeBackbeat()
	thinning = arranger.operators.removal.HatThinning()

	assert not ghost.can_apply(make_context(energy=0.2))
	assert thinning.can_apply(make_context(energy=0.3))
	assert not thinning.can_apply(make_context(energy=0.7))


def test_gate_checks_required_role (make_context) -> None:

	"""A snare operator waits for the snare to be active."""

	ghost = arranger.operators.micro_addition.GhostBeforeBackbeat()

	assert not ghost.can_apply(make_context(active_roles=frozenset((R.KICK, R.CLOSED_HAT))))


def test_gate_checks_fill_window (make_context) -> None:

	"""Fills need the window; fiddly ghost clusters keep out of it."""

	turnaround = arranger.operators.punctuation.TurnaroundFillShort()
	cluster = arranger.operators.micro_addition.GhostCluster()

	assert not turnaround.can_apply(make_context())
	assert turnaround.can_apply(make_context(is_fill_window=True))
	assert cluster.can_apply(make_context(energy=0.7))
	assert not cluster.can_apply(make_context(energy=0.7, is_fill_window=True))


def test_gate_checks_style (make_context) -> None:

	"""Genre idioms only run for their style category."""

	syncopation = arranger.operators.style_idiom.RockKickSyncopation()

	assert not syncopation.can_apply(make_context(energy=0.6))
	assert syncopation.can_apply(make_context(energy=0.6, style_id="RockGroove"))


def test_gate_checks_section_and_meter (make_context) -> None:

	"""Section restrictions and minimum bar length apply."""

	half_time = arranger.operators.substitution.HalfTimeFeel()

	assert not half_time.can_apply(make_context(energy=0.3))
	assert half_time.can_apply(make_context(energy=0.3, section_type=ST.BRIDGE))
	assert not half_time.can_apply(make_context(energy=0.3, section_type=ST.BRIDGE, beats_per_bar=3, backbeat_beats=(2,)))


# ── MicroAddition ────────────────────────────────────────────────────

def test_ghost_before_backbeat (make_context) -> None:

	"""A soft ghost a sixteenth before each backbeat."""

	candidates = arranger.operators.micro_addition.GhostBeforeBackbeat().generate_candidates(make_context())

	assert [c.beat for c in candidates] == [1.75, 3.75]
	assert all(c.role == R.SNARE for c in candidates)
	assert all(c.strength == Strength.GHOST for c in candidates)
	assert all(c.score == pytest.approx(0.6) for c in candidates)
	assert all(30 <= c.velocity_hint <= 45 for c in candidates)


def test_motif_lowers_score (make_context) -> None:

	"""Embellishments back off while a motif is active."""

	candidates = arranger.operators.micro_addition.GhostBeforeBackbeat().generate_candidates(make_context(motif_active=True))

	assert all(c.score == pytest.approx(0.42) for c in candidates)


def test_kick_pickup_leans_into_section_end (make_context) -> None:

	"""The pickup scores higher on the section's last bar."""

	pickup = arranger.operators.micro_addition.KickPickup()

	plain = pickup.generate_candidates(make_context())[0]
	ending = pickup.generate_candidates(make_context(bar_in_section=7, bars_until_section_end=0))[0]

	assert plain.beat == 4.75
	assert plain.strength == Strength.PICKUP
	assert ending.score == pytest.approx(plain.score + 0.3)


def test_bass_approach_targets_next_root (make_context) -> None:

	"""The approach note sits a half step either side of the next root."""

	candidate = arranger.operators.micro_addition.BassApproachNote().generate_candidates(make_context(role=R.BASS))[0]

	# G above the bass root octave.
	assert candidate.pitch_hint in (42, 44)
	assert candidate.beat == 4.5
	assert candidate.score == pytest.approx(0.7)


# ── PhrasePunctuation ────────────────────────────────────────────────

def test_crash_on_one (make_context) -> None:

	"""Only the first bar of a later section gets the crash."""

	crash = arranger.operators.punctuation.CrashOnOne()

	assert not crash.can_apply(make_context())
	assert not crash.can_apply(make_context(section_index=2, bar_in_section=1))
	assert crash.can_apply(make_context(section_index=2))

	candidate = crash.generate_candidates(make_context(section_index=2, crash_on_section_start=True))[0]

	assert candidate.role == R.CRASH
	assert candidate.beat == 1.0
	assert candidate.score == pytest.approx(0.9)
	assert candidate.articulation_hint == arranger.onsets.Articulation.CRASH


@pytest.mark.parametrize("energy, hits", [(1.0, 8), (0.75, 7), (0.5, 6)])
def test_build_fill_density (make_context, energy: float, hits: int) -> None:

	"""Louder bars get more fill hits, always across the last two beats, low tom to high."""

	candidates = arranger.operators.punctuation.BuildFill().generate_candidates(make_context(energy=energy, is_fill_window=True))

	assert len(candidates) == hits
	assert all(3.0 <= c.beat <= 4.75 for c in candidates)
	assert [c.beat for c in candidates] == sorted(c.beat for c in candidates)
	assert candidates[0].role == R.FLOOR_TOM
	assert candidates[-1].role == R.TOM_1


def test_build_fill_scores_builds (make_context) -> None:

	"""A fill before a build is more attractive."""

	fill = arranger.operators.punctuation.BuildFill()
	build = fill.generate_candidates(make_context(is_fill_window=True, transition_hint=arranger.tension.TransitionHint.BUILD))

	assert build[0].score == pytest.approx(0.85)


def test_walk_pitches () -> None:

	"""Scale steps up from the root, ending a half step under the target."""

	pitches = arranger.operators.punctuation._walk_pitches(arranger.chords.Chord.parse("C"), arranger.chords.Chord.parse("G"), 4)

	assert pitches == [38, 40, 41, 42]


# ── Substitution, idioms and removals ────────────────────────────────

def test_backbeat_variant_articulation (make_context) -> None:

	"""Side stick in quiet verses, rimshot when loud, nothing in between."""

	variant = arranger.operators.substitution.BackbeatVariant()

	quiet = variant.generate_candidates(make_context(energy=0.3))
	loud = variant.generate_candidates(make_context(energy=0.8))

	assert {c.articulation_hint for c in quiet} == {arranger.onsets.Articulation.SIDE_STICK}
	assert {c.articulation_hint for c in loud} == {arranger.onsets.Articulation.RIMSHOT}
	assert variant.generate_candidates(make_context(energy=0.55)) == []


def test_backbeat_push_is_early (make_context) -> None:

	"""Chorus backbeats land ahead of the grid."""

	push = arranger.operators.style_idiom.PopRockBackbeatPush()
	context = make_context(section_type=ST.CHORUS, energy=0.8)

	assert push.can_apply(context)
	assert {c.timing_hint for c in push.generate_candidates(context)} == {arranger.operators.style_idiom.PUSH_TICKS}


def test_jazz_walking_bass (make_context) -> None:

	"""Root on one, chord tones in the middle, a half-step approach on four."""

	walk = arranger.operators.style_idiom.JazzWalkingBass()
	context = make_context(
		role = R.BASS,
		style_id = "JazzGroove",
		next_chord = arranger.chords.Chord.parse("F"),
	)

	assert walk.can_apply(context)
	assert not walk.can_apply(make_context(role=R.BASS))

	candidates = walk.generate_candidates(context)

	assert [c.beat for c in candidates] == [1.0, 2.0, 3.0, 4.0]
	assert candidates[0].pitch_hint == 36
	assert {c.pitch_hint for c in candidates[1:3]} <= {40, 43}
	assert candidates[-1].pitch_hint in (40, 42)
	assert all(c.duration_hint == 400 for c in candidates)


def test_hat_thinning (make_context) -> None:

	"""Quiet bars propose removing every hat sixteenth."""

	thinning = arranger.operators.removal.HatThinning()
	removals = thinning.generate_removals(make_context(energy=0.3))

	assert len(removals) == 8
	assert all(r.role == R.CLOSED_HAT for r in removals)
	assert all(r.score == pytest.approx(0.5) for r in removals)
	assert thinning.generate_candidates(make_context(energy=0.3)) == []


# ── Every operator ───────────────────────────────────────────────────

@pytest.mark.parametrize("energy", [0.2, 0.5, 0.9])
@pytest.mark.parametrize("section_type", [ST.VERSE, ST.CHORUS, ST.BRIDGE])
@pytest.mark.parametrize("fill", [False, True])
def test_every_operator_proposes_well_formed_candidates (make_context, drum_registry, bass_registry, energy: float, section_type: arranger.song.SectionType, fill: bool) -> None:

	"""Eligible operators only ever propose usable, repeatable candidates for their bar."""

	for registry, role in ((drum_registry, R.DRUMS), (bass_registry, R.BASS)):
		for style in ("PopGroove", "RockGroove", "JazzGroove"):

			context = make_context(
				role = role,
				energy = energy,
				section_type = section_type,
				section_index = 1,
				is_fill_window = fill,
				style_id = style,
			)

			for operator in registry:

				if not operator.can_apply(context):
					continue

				candidates = operator.generate_candidates(context)

				for candidate in candidates:
					assert candidate.validation_error(context.beats_per_bar) is None, operator.operator_id
					assert candidate.bar == context.bar_number

				assert candidates == operator.generate_candidates(context)
				assert operator.generate_removals(context) == operator.generate_removals(context)
