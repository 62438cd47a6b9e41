"""Deterministic, scope-keyed random streams.

Every random decision in the arranger is drawn from a ``random.Random``
seeded by hashing a :class:`StreamKey` together with the global seed. A
stream is a pure function of ``(seed, purpose, bar, role, sub_purpose)``:
there is no process-wide generator, so two bars or two roles never perturb
each other's sequences, whatever order they are generated in and whichever
thread does it.

Example::

	key = StreamKey(purpose=PURPOSE_OPERATOR, bar=5, role="Kick", sub_purpose="GhostCluster")
	rng = stream(42, key)
	rng.random()        # identical on every run and platform

The hash is BLAKE2b over a canonical text encoding of the key, so results
do not depend on ``PYTHONHASHSEED``.
"""

import dataclasses
import hashlib
import random
import typing


T = typing.TypeVar("T")


PURPOSE_ENERGY_ARC = "energy_arc"
PURPOSE_TENSION = "tension"
PURPOSE_MICRO_ENERGY = "micro_energy"
PURPOSE_VARIATION = "variation"
PURPOSE_BAR = "bar"
PURPOSE_OPERATOR = "operator"
PURPOSE_PLANNING = "planning"
PURPOSE_SELECTION = "selection"


@dataclasses.dataclass(frozen=True)
class StreamKey:

	"""
	Typed scope for one independent random stream.

	Attributes:
		purpose: What the randomness is for (one of the ``PURPOSE_*`` constants).
		bar: 1-based bar number, or a section index for section-scoped purposes.
		role: Role or drum sub-role the stream belongs to (may be empty).
		sub_purpose: Further qualifier, typically an operator id.
	"""

	purpose: str
	bar: int = 0
	role: str = ""
	sub_purpose: str = ""

	def encode (self) -> bytes:

		"""Return the canonical byte encoding used for hashing."""

		return f"{self.purpose}\x1f{self.bar}\x1f{self.role}\x1f{self.sub_purpose}".encode("utf-8")


def stable_hash (*parts: typing.Any) -> int:

	"""
	Hash arbitrary values to a non-negative 63-bit integer, stable across runs.

	Parts are joined by their ``str()`` form, so callers should pass plain
	numbers and strings.
	"""

	text = "\x1f".join(str(p) for p in parts)
	digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()

	return int.from_bytes(digest, "big") >> 1


def derive_seed (seed: int, key: StreamKey) -> int:

	"""Mix the global seed with a stream key into a local seed."""

	digest = hashlib.blake2b(key.encode(), digest_size=8, key=str(seed).encode("utf-8")).digest()

	return int.from_bytes(digest, "big")


def stream (seed: int, key: StreamKey) -> random.Random:

	"""Return a fresh generator for one (seed, key) scope."""

	return random.Random(derive_seed(seed, key))


def unit_value (seed: int, *parts: typing.Any) -> float:

	"""Return a single deterministic value in [0, 1) for a tuple of parts."""

	return stable_hash(seed, *parts) / float(2 ** 63)


def jitter (seed: int, amount: float, *parts: typing.Any) -> float:

	"""Return a deterministic offset in [-amount/2, +amount/2)."""

	return (unit_value(seed, *parts) - 0.5) * amount


def weighted_choice (rng: random.Random, options: typing.Sequence[typing.Tuple[T, float]]) -> T:

	"""
	Pick one item from ``(value, weight)`` pairs.

	When every weight is zero or negative the first option is returned, so
	callers never need a separate empty-weight branch.
	"""

	if not options:
		raise ValueError("weighted_choice requires at least one option")

	total = sum(max(0.0, weight) for _, weight in options)

	if total <= 0:
		return options[0][0]

	pick = rng.random() * total
	cumulative = 0.0

	for value, weight in options:
		cumulative += max(0.0, weight)
		if pick < cumulative:
			return value

	return options[-1][0]
