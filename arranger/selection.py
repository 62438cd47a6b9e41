"""Candidate selection and conflict resolution.

Scoring and greedy selection
----------------------------

:func:`score_candidates` computes each candidate's final score as
``clamp(score * style_weight * (1 - repetition_penalty))`` and sorts by
final score (descending), then operator id, then candidate id, so equal
scores always come out in the same order. :func:`select_until_target` takes
candidates greedily until a density target or a hard cap is reached,
optionally shuffling (deterministically) within groups of equal score.

The selection run
-----------------

:class:`SelectionRun` turns a role's anchors into a finished onset list:

1. **Plan** - pair every non-cleanup operator with every bar, in "add" mode
   and (for removal-capable operators) "remove" mode, and shuffle the list
   with the role's planning stream.
2. **Apply** - walk the list. For each eligible item, apply its candidates
   or removals to a *preview* copy of the working set; keep the preview only
   if it validates, and count it toward the budget. Stop when the budget is
   spent or the list runs out. Scores are weighted by style and by an
   :class:`OperatorMemory` repetition penalty, so an operator accepted in
   nearby bars is less likely to be accepted again.
3. **Clean up** - run SnapToGrid, ResolveOverlaps and CapDensity once per
   bar, in that order.
4. **Finalise** - re-validate (a failure here is a defect and raises
   ``RuntimeError``) and return the onsets ordered by (bar, beat, role).

Each run owns its working set and random streams, so runs for different
roles may execute in parallel without changing each other's output.
"""

import dataclasses
import logging
import random
import typing

import arranger.onsets
import arranger.operators.base
import arranger.operators.candidates
import arranger.operators.cleanup
import arranger.operators.registry
import arranger.random_stream
import arranger.timing
import arranger.working_set


logger = logging.getLogger(__name__)

SCORE_EPSILON = 1e-4

MODE_ADD = "add"
MODE_REMOVE = "remove"

# Operator applications per bar when no budget is given.
DEFAULT_BUDGET_PER_BAR = 2

# Repetition memory: bars either side that still count, and the per-bar decay.
REPETITION_WINDOW = 8
REPETITION_DECAY = 0.7


@dataclasses.dataclass(frozen=True)
class ScoredCandidate:

	"""
	A candidate with the weights that make up its final score.

	Attributes:
		candidate: The underlying candidate.
		style_weight: Multiplier for the candidate's operator (1.0 = neutral).
		repetition_penalty: Fraction in [0, 1] taken off for recent overuse.
		density_contribution: 1.0 for a new onset, 0.0 for an update.
	"""

	candidate: arranger.onsets.Candidate
	style_weight: float = 1.0
	repetition_penalty: float = 0.0
	density_contribution: float = 1.0

	@property
	def final_score (self) -> float:
		return max(0.0, min(1.0, self.candidate.score * self.style_weight * (1.0 - self.repetition_penalty)))

	@property
	def operator_id (self) -> str:
		return self.candidate.operator_id

	@property
	def candidate_id (self) -> str:
		return self.candidate.candidate_id


@dataclasses.dataclass
class SelectionResult:

	"""Outcome of one greedy selection."""

	selected: typing.List[ScoredCandidate]
	total_density: float
	density_target_reached: bool
	hard_cap_reached: bool


def score_candidates (
	candidates: typing.Iterable[arranger.onsets.Candidate],
	style_weights: typing.Optional[typing.Mapping[str, float]] = None,
	repetition_penalties: typing.Optional[typing.Mapping[str, float]] = None,
	existing_keys: typing.Optional[typing.Container[arranger.onsets.OnsetKey]] = None
) -> typing.List[ScoredCandidate]:

	"""
	Score and sort candidates.

	Parameters:
		candidates: Candidates to score.
		style_weights: Operator id → weight (missing ids weigh 1.0).
		repetition_penalties: Operator id → penalty in [0, 1] (missing ids 0.0).
		existing_keys: Keys already in the working set; candidates at these
			keys are updates and add no density.
	"""

	weights = style_weights or {}
	penalties = repetition_penalties or {}
	keys = existing_keys if existing_keys is not None else ()

	scored = [
		ScoredCandidate(
			candidate = c,
			style_weight = weights.get(c.operator_id, 1.0),
			repetition_penalty = penalties.get(c.operator_id, 0.0),
			density_contribution = 0.0 if c.key in keys else 1.0,
		)
		for c in candidates
	]

	scored.sort(key=lambda s: (-s.final_score, s.operator_id, s.candidate_id))

	return scored


def _tie_break (scored: typing.List[ScoredCandidate], rng: random.Random) -> typing.List[ScoredCandidate]:

	"""Shuffle within runs of (sorted) candidates whose scores differ by less than the epsilon."""

	result: typing.List[ScoredCandidate] = []
	group: typing.List[ScoredCandidate] = []

	for item in scored:
		if group and abs(group[0].final_score - item.final_score) >= SCORE_EPSILON:
			rng.shuffle(group)
			result.extend(group)
			group = []
		group.append(item)

	rng.shuffle(group)
	result.extend(group)

	return result


def select_until_target (
	scored: typing.Sequence[ScoredCandidate],
	density_target: float,
	hard_cap: int,
	rng: typing.Optional[random.Random] = None
) -> SelectionResult:

	"""
	Take candidates in order until the density target or the hard cap is reached.

	``scored`` must already be sorted (see :func:`score_candidates`). With
	``rng``, candidates of equal score are shuffled first.
	"""

	if density_target < 0:
		raise ValueError(f"density_target must be >= 0, got {density_target}")
	if hard_cap < 0:
		raise ValueError(f"hard_cap must be >= 0, got {hard_cap}")

	ordered = _tie_break(list(scored), rng) if rng is not None else list(scored)

	selected: typing.List[ScoredCandidate] = []
	density = 0.0

	for item in ordered:
		if len(selected) >= hard_cap or density >= density_target:
			break
		selected.append(item)
		density += item.density_contribution

	return SelectionResult(
		selected = selected,
		total_density = density,
		density_target_reached = density >= density_target,
		hard_cap_reached = len(selected) >= hard_cap,
	)


def density_target (density: float, max_events: int) -> int:

	"""Return ``density * max_events`` rounded half up, clamped to ``[0, max_events]``."""

	if max_events <= 0:
		return 0

	target = int(density * max_events + 0.5)

	return max(0, min(max_events, target))


class OperatorMemory:

	"""
	Record of accepted operator applications, turned into repetition penalties.

	Each use within ``window`` bars of the bar being scored adds
	``decay ** distance``; the sum is divided by ``window`` and capped at 1.0.
	Distance is measured both ways because the work-list visits bars out of
	order.
	"""

	def __init__ (self, window: int = REPETITION_WINDOW, decay: float = REPETITION_DECAY) -> None:

		if window < 1:
			raise ValueError(f"window must be >= 1, got {window}")
		if not 0.0 < decay < 1.0:
			raise ValueError(f"decay must be in (0, 1), got {decay}")

		self.window = window
		self.decay = decay
		self._uses: typing.Dict[str, typing.List[int]] = {}

	def record (self, operator_id: str, bar: int) -> None:
		self._uses.setdefault(operator_id, []).append(bar)

	def use_count (self, operator_id: typing.Optional[str] = None) -> int:

		"""Return how many uses are recorded (for one operator, or in total)."""

		if operator_id is None:
			return sum(len(bars) for bars in self._uses.values())

		return len(self._uses.get(operator_id, ()))

	def penalty (self, operator_id: str, bar: int) -> float:

		total = sum(
			self.decay ** abs(bar - used)
			for used in self._uses.get(operator_id, ())
			if abs(bar - used) < self.window
		)

		return min(1.0, total / self.window)

	def penalties (self, bar: int) -> typing.Dict[str, float]:

		"""Return operator id → penalty at ``bar`` for every operator used so far."""

		return {operator_id: self.penalty(operator_id, bar) for operator_id in sorted(self._uses)}


@dataclasses.dataclass(frozen=True)
class WorkItem:

	"""One planned operator application."""

	operator_id: str
	bar: int
	mode: str


@dataclasses.dataclass
class RunStats:

	"""Counters from one selection run."""

	planned: int = 0
	attempted: int = 0
	accepted: int = 0
	rejected: int = 0
	cleanup_changes: int = 0


class SelectionRun:

	"""
	One role's generation run over a set of bars.

	Parameters:
		registry: Frozen operator registry for the role.
		contexts: Bar number → context for every bar in scope.
		timing: Timing collaborator for tick conversion.
		seed: Global seed.
		role: Top-level role (scopes the run's random streams).
		budget: Operator applications to accept in the random phase
			(default: two per bar).
		monophonic_roles: Onset roles validated for overlap.
		style_weights: Operator id → score weight.

	Attributes:
		stats: Counters from the last :meth:`run`.
		memory: Accepted applications from the last :meth:`run`.
	"""

	def __init__ (
		self,
		registry: arranger.operators.registry.OperatorRegistry,
		contexts: typing.Mapping[int, arranger.operators.base.BarContext],
		timing: arranger.timing.TimingProvider,
		seed: int,
		role: str,
		budget: typing.Optional[int] = None,
		monophonic_roles: typing.Collection[str] = (),
		style_weights: typing.Optional[typing.Mapping[str, float]] = None
	) -> None:

		self.registry = registry
		self.contexts = dict(contexts)
		self.timing = timing
		self.seed = seed
		self.role = role
		self.budget = budget if budget is not None else DEFAULT_BUDGET_PER_BAR * len(self.contexts)
		self.monophonic_roles = frozenset(monophonic_roles)
		self.style_weights = dict(style_weights or {})
		self.stats = RunStats()
		self.memory = OperatorMemory()

	def _stream (self, purpose: str, bar: int = 0, sub_purpose: str = "") -> random.Random:
		return arranger.random_stream.stream(self.seed, arranger.random_stream.StreamKey(purpose, bar, self.role, sub_purpose))

	def plan (self) -> typing.List[WorkItem]:

		"""Return the shuffled work-list (cleanup operators excluded)."""

		items = []

		for operator in self.registry:

			if operator.operator_id in arranger.operators.cleanup.CLEANUP_OPERATOR_IDS:
				continue

			for bar in sorted(self.contexts):
				items.append(WorkItem(operator.operator_id, bar, MODE_ADD))
				if operator.supports_removals:
					items.append(WorkItem(operator.operator_id, bar, MODE_REMOVE))

		self._stream(arranger.random_stream.PURPOSE_PLANNING).shuffle(items)

		return items

	def _apply_additions (
		self,
		working: arranger.working_set.WorkingSet,
		operator: arranger.operators.base.Operator,
		context: arranger.operators.base.BarContext,
		rng: random.Random
	) -> typing.Optional[arranger.working_set.WorkingSet]:

		candidates = arranger.operators.candidates.valid_candidates(operator, context)

		if not candidates:
			return None

		scored = score_candidates(candidates, self.style_weights, self.memory.penalties(context.bar_number), existing_keys=working)

		if rng.random() >= scored[0].final_score:
			return None

		updates = [s for s in scored if s.density_contribution == 0.0]
		inserts = [s for s in scored if s.density_contribution > 0.0]

		room = 0
		for role in {s.candidate.role for s in inserts}:
			cap = context.event_caps.get(role, len(inserts))
			room += max(0, cap - len(working.onsets_in_bar(context.bar_number, role)))

		chosen = updates + select_until_target(inserts, room, len(inserts), rng).selected

		preview = working.copy()
		changed = False

		for item in chosen:
			changed = preview.add(item.candidate, context.beats_per_bar) or changed

		return preview if changed else None

	def _apply_removals (
		self,
		working: arranger.working_set.WorkingSet,
		operator: arranger.operators.base.Operator,
		context: arranger.operators.base.BarContext,
		rng: random.Random
	) -> typing.Optional[arranger.working_set.WorkingSet]:

		removals = sorted(operator.generate_removals(context), key=lambda r: (-r.score, r.key))

		if not removals:
			return None

		weight = self.style_weights.get(operator.operator_id, 1.0) * (1.0 - self.memory.penalty(operator.operator_id, context.bar_number))

		if rng.random() >= max(0.0, min(1.0, removals[0].score * weight)):
			return None

		preview = working.copy()
		changed = False

		for removal in removals:
			changed = preview.remove(removal) or changed

		return preview if changed else None

	def run (self, anchors: typing.Iterable[arranger.onsets.Onset]) -> typing.Tuple[arranger.onsets.Onset, ...]:

		"""Build the finished onset list from the anchors."""

		working = arranger.working_set.WorkingSet(anchors)
		items = self.plan()
		self.stats = RunStats(planned=len(items))
		self.memory = OperatorMemory()

		for item in items:

			if self.stats.accepted >= self.budget:
				break

			operator = self.registry.get(item.operator_id)
			context = self.contexts[item.bar]

			if not operator.can_apply(context):
				continue

			self.stats.attempted += 1
			rng = self._stream(arranger.random_stream.PURPOSE_SELECTION, item.bar, f"{item.operator_id}:{item.mode}")

			if item.mode == MODE_ADD:
				preview = self._apply_additions(working, operator, context, rng)
			else:
				preview = self._apply_removals(working, operator, context, rng)

			if preview is None:
				continue

			error = arranger.working_set.validation_error(preview, self.timing, self.monophonic_roles)

			if error is not None:
				self.stats.rejected += 1
				logger.debug(f"{self.role}: rejected {item.operator_id} ({item.mode}) in bar {item.bar}: {error}")
				continue

			working = preview
			self.stats.accepted += 1
			self.memory.record(item.operator_id, item.bar)

		self._cleanup(working)

		error = arranger.working_set.validation_error(working, self.timing, self.monophonic_roles)

		if error is not None:
			raise RuntimeError(f"{self.role}: onset set invalid after cleanup: {error}")

		logger.debug(
			f"{self.role}: {self.stats.accepted} of {self.stats.attempted} applications accepted "
			f"({self.stats.rejected} rejected, budget {self.budget}), {self.stats.cleanup_changes} cleanup changes"
		)

		return working.finalize()

	def _cleanup (self, working: arranger.working_set.WorkingSet) -> None:

		for bar in sorted(self.contexts):
			context = self.contexts[bar]
			for operator_id in arranger.operators.cleanup.CLEANUP_OPERATOR_IDS:
				operator = self.registry.try_get(operator_id)
				if isinstance(operator, arranger.operators.cleanup.CleanupOperator):
					self.stats.cleanup_changes += operator.clean(working, context, self.timing, self.monophonic_roles)
