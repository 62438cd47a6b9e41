"""The mutable onset set a single selection run builds up.

A :class:`WorkingSet` is owned by exactly one run. Every change goes
through :meth:`WorkingSet.add` / :meth:`WorkingSet.remove`, which carry the
conflict rules:

- adding at an existing ``(bar, beat, role)`` key updates the onset only if
  the candidate carries a velocity, timing, pitch or duration hint, and is
  otherwise skipped as a duplicate;
- a removal with no matching onset, or aimed at a must-hit or never-remove
  onset, does nothing;
- malformed candidates are dropped (logged at DEBUG), never raised.

:func:`validation_error` checks the playability rules the selection stage
enforces: unique start ticks per role, and non-overlapping ``[start, end)``
intervals for monophonic roles.
"""

import dataclasses
import logging
import typing

import arranger.constants.pulses
import arranger.onsets
import arranger.timing


logger = logging.getLogger(__name__)


class WorkingSet:

	"""
	Onsets keyed by ``(bar, beat, role)``.

	Parameters:
		onsets: Initial onsets, typically the groove anchors.
	"""

	def __init__ (self, onsets: typing.Iterable[arranger.onsets.Onset] = ()) -> None:

		self._onsets: typing.Dict[arranger.onsets.OnsetKey, arranger.onsets.Onset] = {}

		for onset in onsets:
			self._onsets[onset.key] = onset

	def copy (self) -> "WorkingSet":

		"""Return an independent copy (onsets are copied too)."""

		return WorkingSet(dataclasses.replace(onset) for onset in self._onsets.values())

	def __len__ (self) -> int:
		return len(self._onsets)

	def __contains__ (self, key: object) -> bool:
		return key in self._onsets

	def __iter__ (self) -> typing.Iterator[arranger.onsets.Onset]:
		return iter(self.sorted_onsets())

	def get (self, key: arranger.onsets.OnsetKey) -> typing.Optional[arranger.onsets.Onset]:
		return self._onsets.get(key)

	def add (self, candidate: arranger.onsets.Candidate, beats_per_bar: typing.Optional[int] = None) -> bool:

		"""
		Apply an addition candidate.

		Returns:
			True if the set changed (insert or update), False if the
			candidate was skipped as a duplicate or dropped as malformed.
		"""

		error = candidate.validation_error(beats_per_bar)

		if error is not None:
			logger.debug(f"Dropped malformed candidate from {candidate.operator_id}: {error}")
			return False

		key = candidate.key
		existing = self._onsets.get(key)

		if existing is None:
			self._onsets[key] = arranger.onsets.Onset.from_candidate(candidate)
			return True

		if not candidate.has_hints:
			return False

		self._onsets[key] = existing.updated_from(candidate)

		return True

	def remove (self, removal: arranger.onsets.RemovalCandidate) -> bool:

		"""Apply a removal; returns True only if an unprotected onset was deleted."""

		existing = self._onsets.get(removal.key)

		if existing is None or existing.is_protected:
			return False

		del self._onsets[removal.key]

		return True

	def insert (self, onset: arranger.onsets.Onset) -> None:

		"""Place an onset directly, replacing anything at its key."""

		self._onsets[onset.key] = onset

	def discard (self, key: arranger.onsets.OnsetKey) -> typing.Optional[arranger.onsets.Onset]:

		"""Remove and return the onset at ``key`` regardless of protection."""

		return self._onsets.pop(key, None)

	def onsets_in_bar (self, bar: int, role: typing.Optional[str] = None) -> typing.List[arranger.onsets.Onset]:

		"""Return a bar's onsets (optionally one role's), ordered by beat."""

		found = [o for o in self._onsets.values() if o.bar == bar and (role is None or o.role == role)]

		return sorted(found, key=lambda o: (o.beat, o.role))

	def roles (self) -> typing.Set[str]:
		return {o.role for o in self._onsets.values()}

	def sorted_onsets (self) -> typing.List[arranger.onsets.Onset]:

		"""Return every onset ordered by (bar, beat, role)."""

		return sorted(self._onsets.values(), key=lambda o: (o.bar, o.beat, o.role))

	def finalize (self) -> typing.Tuple[arranger.onsets.Onset, ...]:

		"""Return a time-ordered snapshot the caller may keep."""

		return tuple(dataclasses.replace(o) for o in self.sorted_onsets())


def start_tick (onset: arranger.onsets.Onset, timing: arranger.timing.TimingProvider) -> int:

	"""Return an onset's absolute start tick, including its timing offset."""

	return timing.to_tick(onset.bar, onset.beat) + (onset.timing_offset or 0)


def end_tick (onset: arranger.onsets.Onset, timing: arranger.timing.TimingProvider) -> int:

	"""Return the exclusive end tick (default duration when the onset has none)."""

	duration = onset.duration if onset.duration is not None else arranger.constants.pulses.DEFAULT_DURATION_TICKS

	return start_tick(onset, timing) + duration


def validation_error (
	working: WorkingSet,
	timing: arranger.timing.TimingProvider,
	monophonic_roles: typing.Collection[str] = ()
) -> typing.Optional[str]:

	"""
	Return why the set is unplayable, or None if it is valid.

	Every role: no two onsets share a start tick. Monophonic roles: once
	sorted by start tick, no ``[start, end)`` interval overlaps the next.
	"""

	by_role: typing.Dict[str, typing.List[arranger.onsets.Onset]] = {}

	for onset in working.sorted_onsets():
		by_role.setdefault(onset.role, []).append(onset)

	for role, onsets in by_role.items():

		timed = sorted(((start_tick(o, timing), o) for o in onsets), key=lambda item: item[0])

		for (tick_a, a), (tick_b, b) in zip(timed, timed[1:]):

			if tick_a == tick_b:
				return f"{role}: bar {a.bar} beat {a.beat} and bar {b.bar} beat {b.beat} share start tick {tick_a}"

			if role in monophonic_roles and end_tick(a, timing) > tick_b:
				return f"{role}: bar {a.bar} beat {a.beat} overlaps bar {b.bar} beat {b.beat}"

	return None
