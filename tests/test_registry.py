import pytest

import arranger.operators.base
import arranger.operators.cleanup
import arranger.operators.micro_addition
import arranger.operators.registry


Family = arranger.operators.base.OperatorFamily

DRUM_IDS = [
	"GhostBeforeBackbeat", "GhostAfterBackbeat", "KickPickup", "KickDouble", "HatEmbellishment", "GhostCluster",
	"HatLift", "HatDrop", "RideSwap", "OpenHatAccent",
	"CrashOnOne", "TurnaroundFillShort", "BuildFill", "DropFill", "SetupHit",
	"BackbeatVariant", "HalfTimeFeel", "DoubleTimeFeel",
	"PopRockBackbeatPush", "RockKickSyncopation", "PopChorusCrashPattern", "VerseSimplify", "BridgeBreakdown",
	"HatThinning", "KickPull", "SparseGroove",
	"SnapToGrid", "ResolveOverlaps", "CapDensity",
]

BASS_IDS = [
	"BassApproachNote", "BassOctavePop", "BassPickup", "BassEighthDrive", "BassFillWalk",
	"BassHalfTime", "JazzWalkingBass", "BassThinning",
	"SnapToGrid", "ResolveOverlaps", "CapDensity",
]


# ── Registration ─────────────────────────────────────────────────────

def test_register_and_lookup () -> None:

	"""Registered operators come back by id, in registration order."""

	registry = arranger.operators.registry.OperatorRegistry("test")
	ghost = arranger.operators.micro_addition.GhostBeforeBackbeat()
	pickup = arranger.operators.micro_addition.KickPickup()

	registry.register_all([ghost, pickup])

	assert registry.get("GhostBeforeBackbeat") is ghost
	assert registry.try_get("Missing") is None
	assert registry.ids() == ["GhostBeforeBackbeat", "KickPickup"]
	assert "KickPickup" in registry
	assert len(registry) == 2


def test_duplicate_id_rejected () -> None:

	"""Two operators may not share an id."""

	registry = arranger.operators.registry.OperatorRegistry("test")
	registry.register(arranger.operators.micro_addition.KickPickup())

	with pytest.raises(ValueError):
		registry.register(arranger.operators.micro_addition.KickPickup())


def test_frozen_registry_is_read_only () -> None:

	"""Registering after the freeze is a defect."""

	registry = arranger.operators.registry.OperatorRegistry("test")
	registry.freeze()

	assert registry.is_frozen

	with pytest.raises(RuntimeError):
		registry.register(arranger.operators.micro_addition.KickPickup())


def test_unknown_id_raises () -> None:

	"""get() treats a missing id as a configuration error."""

	registry = arranger.operators.registry.OperatorRegistry("test")

	with pytest.raises(ValueError):
		registry.get("GhostBeforeBackbeat")


def test_by_family () -> None:

	"""Family lookups keep registration order."""

	registry = arranger.operators.registry.OperatorRegistry("test")
	registry.register_all([
		arranger.operators.micro_addition.KickPickup(),
		arranger.operators.micro_addition.GhostBeforeBackbeat(),
	])

	assert [op.operator_id for op in registry.by_family(Family.MICRO_ADDITION)] == ["KickPickup", "GhostBeforeBackbeat"]
	assert registry.by_family(Family.NOTE_REMOVAL) == []


# ── Built-in registries ──────────────────────────────────────────────

def test_drum_registry_contents (drum_registry: arranger.operators.registry.OperatorRegistry) -> None:

	"""Every drum operator, family by family, then the cleanup passes."""

	assert drum_registry.is_frozen
	assert drum_registry.ids() == DRUM_IDS
	assert len(drum_registry) == 29


def test_bass_registry_contents (bass_registry: arranger.operators.registry.OperatorRegistry) -> None:

	"""Bass operators plus cleanup, all for the bass role."""

	assert bass_registry.ids() == BASS_IDS
	assert len(bass_registry) == 11
	assert all(op.role == "Bass" for op in bass_registry)


def test_cleanup_operators_carry_their_role () -> None:

	"""Cleanup passes are built per role, in run order."""

	passes = arranger.operators.cleanup.cleanup_operators("Bass")

	assert [p.operator_id for p in passes] == list(arranger.operators.cleanup.CLEANUP_OPERATOR_IDS)
	assert all(p.role == "Bass" for p in passes)
