import random

import pytest

import arranger.random_stream


def _key (bar: int = 1, role: str = "Kick", sub: str = "") -> arranger.random_stream.StreamKey:
	return arranger.random_stream.StreamKey(arranger.random_stream.PURPOSE_OPERATOR, bar, role, sub)


# ── Streams ──────────────────────────────────────────────────────────

def test_same_key_same_sequence () -> None:

	"""A stream is a pure function of (seed, key)."""

	a = arranger.random_stream.stream(42, _key())
	b = arranger.random_stream.stream(42, _key())

	assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]


def test_scopes_are_independent () -> None:

	"""Changing any part of the key or the seed gives a different stream."""

	base = arranger.random_stream.derive_seed(42, _key())

	assert arranger.random_stream.derive_seed(43, _key()) != base
	assert arranger.random_stream.derive_seed(42, _key(bar=2)) != base
	assert arranger.random_stream.derive_seed(42, _key(role="Snare")) != base
	assert arranger.random_stream.derive_seed(42, _key(sub="GhostCluster")) != base


def test_drawing_from_one_stream_never_disturbs_another () -> None:

	"""Consuming values in one scope leaves every other scope untouched."""

	expected = arranger.random_stream.stream(7, _key(bar=5)).random()

	noisy = arranger.random_stream.stream(7, _key(bar=4))
	for _ in range(100):
		noisy.random()

	assert arranger.random_stream.stream(7, _key(bar=5)).random() == expected


def test_global_random_state_is_not_used () -> None:

	"""Reseeding the module-level generator has no effect on streams."""

	random.seed(1)
	first = arranger.random_stream.stream(42, _key()).random()
	random.seed(999)
	second = arranger.random_stream.stream(42, _key()).random()

	assert first == second


# ── Hash helpers ─────────────────────────────────────────────────────

def test_stable_hash_range_and_repeatability () -> None:

	"""Hashes are non-negative 63-bit integers and repeatable."""

	h = arranger.random_stream.stable_hash(42, 3, "KickPickup", 4.75)

	assert 0 <= h < 2 ** 63
	assert h == arranger.random_stream.stable_hash(42, 3, "KickPickup", 4.75)
	assert h != arranger.random_stream.stable_hash(42, 4, "KickPickup", 4.75)


def test_unit_value_and_jitter_bounds () -> None:

	"""Unit values sit in [0, 1); jitter stays within half the amount either side."""

	for i in range(200):
		u = arranger.random_stream.unit_value(42, "test", i)
		j = arranger.random_stream.jitter(42, 0.1, "test", i)
		assert 0.0 <= u < 1.0
		assert -0.05 <= j < 0.05


# ── weighted_choice ──────────────────────────────────────────────────

def test_weighted_choice_respects_zero_weights () -> None:

	"""An option with zero weight is never picked while another has weight."""

	rng = random.Random(3)
	picks = {arranger.random_stream.weighted_choice(rng, [("a", 0.0), ("b", 1.0)]) for _ in range(50)}

	assert picks == {"b"}


def test_weighted_choice_all_zero_returns_first () -> None:

	"""With no positive weight the first option wins."""

	rng = random.Random(3)

	assert arranger.random_stream.weighted_choice(rng, [("a", 0.0), ("b", -1.0)]) == "a"


def test_weighted_choice_requires_options () -> None:

	"""An empty option list is a caller error."""

	with pytest.raises(ValueError):
		arranger.random_stream.weighted_choice(random.Random(1), [])
