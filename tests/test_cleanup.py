import arranger.constants.roles
import arranger.onsets
import arranger.operators.cleanup
import arranger.timing
import arranger.working_set


R = arranger.constants.roles
Strength = arranger.onsets.OnsetStrength

GRID = arranger.timing.BarGrid()


# ── SnapToGrid ───────────────────────────────────────────────────────

def test_snap_moves_off_grid_onsets (make_context) -> None:

	"""Stray onsets move to the nearest sixteenth, staying inside the bar."""

	working = arranger.working_set.WorkingSet([
		arranger.onsets.Onset(R.KICK, 1, 1.1, source="Test"),
		arranger.onsets.Onset(R.KICK, 1, 4.9, source="Test"),
	])

	changed = arranger.operators.cleanup.SnapToGrid(R.DRUMS).clean(working, make_context(), GRID)

	assert changed == 2
	assert [o.beat for o in working] == [1.0, 4.75]


def test_snap_never_displaces_anchors (make_context) -> None:

	"""An unprotected onset snapping onto an anchor is dropped."""

	anchor = arranger.onsets.Onset(R.KICK, 1, 1.0, velocity=110, is_must_hit=True)
	working = arranger.working_set.WorkingSet([anchor, arranger.onsets.Onset(R.KICK, 1, 1.1, velocity=50, source="Test")])

	arranger.operators.cleanup.SnapToGrid(R.DRUMS).clean(working, make_context(), GRID)

	assert len(working) == 1
	assert working.get(anchor.key).velocity == 110


def test_snap_leaves_other_roles (make_context) -> None:

	"""A drum pass does not touch the bass."""

	working = arranger.working_set.WorkingSet([arranger.onsets.Onset(R.BASS, 1, 1.1)])

	assert arranger.operators.cleanup.SnapToGrid(R.DRUMS).clean(working, make_context(), GRID) == 0


# ── ResolveOverlaps ──────────────────────────────────────────────────

def test_shared_start_keeps_protected (make_context) -> None:

	"""Of two onsets on one tick, the anchor stays."""

	working = arranger.working_set.WorkingSet([
		arranger.onsets.Onset(R.KICK, 1, 1.0, velocity=80, is_must_hit=True),
		arranger.onsets.Onset(R.KICK, 1, 1.25, velocity=120, timing_offset=-120, source="Test"),
	])

	assert arranger.operators.cleanup.ResolveOverlaps(R.DRUMS).clean(working, make_context(), GRID) == 1
	assert [o.beat for o in working] == [1.0]


def test_monophonic_notes_are_trimmed (make_context) -> None:

	"""A bass note ringing into the next is cut at the next start."""

	working = arranger.working_set.WorkingSet([
		arranger.onsets.Onset(R.BASS, 1, 1.0, duration=600),
		arranger.onsets.Onset(R.BASS, 1, 2.0, duration=240),
	])

	context = make_context(role=R.BASS)
	changed = arranger.operators.cleanup.ResolveOverlaps(R.BASS).clean(working, context, GRID, {R.BASS})

	assert changed == 1
	assert working.get((1, 1.0, R.BASS)).duration == 480
	assert arranger.working_set.validation_error(working, GRID, {R.BASS}) is None


# ── CapDensity ───────────────────────────────────────────────────────

def test_cap_removes_weakest_unprotected (make_context) -> None:

	"""Over-cap bars lose ghosts and offbeats first, never anchors."""

	onsets = [arranger.onsets.Onset(R.CLOSED_HAT, 1, float(b), is_must_hit=True) for b in (1, 2, 3, 4)]
	onsets += [arranger.onsets.Onset(R.CLOSED_HAT, 1, b + 0.5, strength=Strength.OFFBEAT, source="Test") for b in (1, 2, 3)]
	onsets.append(arranger.onsets.Onset(R.CLOSED_HAT, 1, 4.75, strength=Strength.GHOST, source="Test"))

	working = arranger.working_set.WorkingSet(onsets)
	context = make_context(event_caps={R.CLOSED_HAT: 5})

	assert arranger.operators.cleanup.CapDensity(R.DRUMS).clean(working, context, GRID) == 3
	assert [o.beat for o in working] == [1.0, 1.5, 2.0, 3.0, 4.0]


def test_cap_cannot_remove_anchors (make_context) -> None:

	"""A cap below the anchor count leaves the anchors alone."""

	working = arranger.working_set.WorkingSet([arranger.onsets.Onset(R.KICK, 1, float(b), is_must_hit=True) for b in (1, 2, 3, 4)])

	assert arranger.operators.cleanup.CapDensity(R.DRUMS).clean(working, make_context(event_caps={R.KICK: 2}), GRID) == 0
	assert len(working) == 4
