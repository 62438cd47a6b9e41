"""Cleanup operators, run once per bar in a fixed order after the random phase.

They are registered like any other operator (so they can be looked up by
id) but never join the shuffled work-list: :data:`CLEANUP_OPERATOR_IDS`
names them, in the order the selection stage runs them. Rather than
proposing candidates they edit the working set directly through
:meth:`CleanupOperator.clean`.
"""

import abc
import dataclasses
import logging
import typing

import arranger.constants.roles
import arranger.onsets
import arranger.operators.base
import arranger.timing
import arranger.working_set


logger = logging.getLogger(__name__)

Family = arranger.operators.base.OperatorFamily
Strength = arranger.onsets.OnsetStrength

SNAP_TO_GRID = "SnapToGrid"
RESOLVE_OVERLAPS = "ResolveOverlaps"
CAP_DENSITY = "CapDensity"

CLEANUP_OPERATOR_IDS: typing.Tuple[str, ...] = (SNAP_TO_GRID, RESOLVE_OVERLAPS, CAP_DENSITY)

# Removed first when a bar is over its cap.
_REMOVAL_PRIORITY: typing.Dict[arranger.onsets.OnsetStrength, int] = {
	Strength.GHOST: 0,
	Strength.PICKUP: 1,
	Strength.OFFBEAT: 2,
	Strength.STRONG: 3,
	Strength.BACKBEAT: 4,
	Strength.DOWNBEAT: 5,
}


class CleanupOperator (arranger.operators.base.Operator):

	"""Base for deterministic cleanup passes."""

	def __init__ (self, role: str = arranger.constants.roles.DRUMS) -> None:
		self.role = role

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:
		return []

	def owned_roles (self, working: arranger.working_set.WorkingSet, context: arranger.operators.base.BarContext) -> typing.List[str]:

		"""Return the onset roles in the set that belong to this bar's top-level role."""

		return sorted(r for r in working.roles() if arranger.constants.roles.parent_role(r) == context.role)

	@abc.abstractmethod
	def clean (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		monophonic_roles: typing.Collection[str] = ()
	) -> int:

		"""Tidy one bar in place and return how many onsets changed."""

		...


class SnapToGrid (CleanupOperator):

	"""Move off-grid onsets to the nearest subdivision."""

	operator_id = SNAP_TO_GRID
	family = Family.SUBDIVISION_TRANSFORM

	def snap (self, beat: float, context: arranger.operators.base.BarContext) -> float:

		grid = context.subdivision
		snapped = round((beat - 1.0) / grid) * grid + 1.0
		last = context.beats_per_bar + 1.0 - grid

		return round(min(max(snapped, 1.0), last), arranger.onsets.BEAT_PRECISION)

	def clean (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		monophonic_roles: typing.Collection[str] = ()
	) -> int:

		changed = 0

		for role in self.owned_roles(working, context):
			for onset in working.onsets_in_bar(context.bar_number, role):

				snapped = self.snap(onset.beat, context)

				if snapped == onset.beat:
					continue

				working.discard(onset.key)
				moved = dataclasses.replace(onset, beat=snapped)
				occupant = working.get(moved.key)

				if occupant is None or (onset.is_protected and not occupant.is_protected):
					working.insert(moved)
				elif onset.is_protected:
					working.insert(onset)
					continue
				else:
					logger.debug(f"{self.operator_id}: dropped {role} bar {onset.bar} beat {onset.beat}, grid slot taken")

				changed += 1

		return changed


class ResolveOverlaps (CleanupOperator):

	"""Drop duplicate start ticks and trim monophonic notes that ring into the next one."""

	operator_id = RESOLVE_OVERLAPS
	family = Family.NOTE_REMOVAL

	def clean (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		monophonic_roles: typing.Collection[str] = ()
	) -> int:

		changed = 0

		for role in self.owned_roles(working, context):

			changed += self._drop_shared_starts(working, context, timing, role)

			if role in monophonic_roles:
				changed += self._trim(working, context, timing, role)

		return changed

	def _drop_shared_starts (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		role: str
	) -> int:

		by_tick: typing.Dict[int, typing.List[arranger.onsets.Onset]] = {}

		for onset in working.onsets_in_bar(context.bar_number, role):
			by_tick.setdefault(arranger.working_set.start_tick(onset, timing), []).append(onset)

		dropped = 0

		for tick, onsets in by_tick.items():

			if len(onsets) < 2:
				continue

			# Keep protected onsets first, then the loudest.
			ranked = sorted(onsets, key=lambda o: (not o.is_protected, -o.velocity, o.beat))

			for loser in ranked[1:]:
				if not loser.is_protected:
					working.discard(loser.key)
					dropped += 1
					logger.debug(f"{self.operator_id}: dropped {role} bar {loser.bar} beat {loser.beat}, start tick {tick} taken")

		return dropped

	def _trim (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		role: str
	) -> int:

		timed = sorted(
			((arranger.working_set.start_tick(o, timing), o) for o in working.sorted_onsets() if o.role == role),
			key = lambda item: item[0],
		)

		trimmed = 0

		for (start, onset), (next_start, _) in zip(timed, timed[1:]):

			if onset.bar != context.bar_number:
				continue

			if arranger.working_set.end_tick(onset, timing) > next_start and next_start > start:
				onset.duration = next_start - start
				trimmed += 1

		return trimmed


class CapDensity (CleanupOperator):

	"""Remove the weakest unprotected onsets from roles over their per-bar cap."""

	operator_id = CAP_DENSITY
	family = Family.NOTE_REMOVAL

	def clean (
		self,
		working: arranger.working_set.WorkingSet,
		context: arranger.operators.base.BarContext,
		timing: arranger.timing.TimingProvider,
		monophonic_roles: typing.Collection[str] = ()
	) -> int:

		removed = 0

		for role in self.owned_roles(working, context):

			cap = context.event_caps.get(role)

			if cap is None:
				continue

			onsets = working.onsets_in_bar(context.bar_number, role)
			excess = len(onsets) - cap

			if excess <= 0:
				continue

			removable = sorted(
				(o for o in onsets if not o.is_protected),
				key = lambda o: (_REMOVAL_PRIORITY[o.strength], o.velocity, -o.beat),
			)

			for onset in removable[:excess]:
				working.discard(onset.key)
				removed += 1

			logger.debug(f"{self.operator_id}: {role} bar {context.bar_number} capped at {cap}, removed {min(excess, len(removable))}")

		return removed


def cleanup_operators (role: str) -> typing.List[CleanupOperator]:

	"""Return the cleanup passes for a role, in run order."""

	return [SnapToGrid(role), ResolveOverlaps(role), CapDensity(role)]
