"""Collect candidates from a registry for one bar.

Operators run in registry order. Valid candidates are grouped by family
(ordered by family); malformed ones are dropped with a DEBUG log. An
operator that raises is a defect, so its exception propagates to the
caller untouched.
"""

import dataclasses
import logging
import typing

import arranger.onsets
import arranger.operators.base
import arranger.operators.cleanup
import arranger.operators.registry


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class OperatorDiagnostics:

	"""What one operator did for one bar."""

	operator_id: str
	applied: bool = False
	generated: int = 0
	dropped: int = 0
	removals: int = 0


@dataclasses.dataclass
class CandidateCollection:

	"""
	Candidates for one bar, grouped by family.

	Attributes:
		bar_number: The bar the candidates are for.
		by_family: Family → candidates, families in enum order.
		removals: Removal candidates from removal-capable operators.
		diagnostics: Per-operator counts, in registry order.
	"""

	bar_number: int
	by_family: typing.Dict[arranger.operators.base.OperatorFamily, typing.List[arranger.onsets.Candidate]] = dataclasses.field(default_factory=dict)
	removals: typing.List[arranger.onsets.RemovalCandidate] = dataclasses.field(default_factory=list)
	diagnostics: typing.List[OperatorDiagnostics] = dataclasses.field(default_factory=list)

	def all_candidates (self) -> typing.List[arranger.onsets.Candidate]:

		"""Return every candidate, family by family."""

		found: typing.List[arranger.onsets.Candidate] = []

		for family in sorted(self.by_family):
			found.extend(self.by_family[family])

		return found

	def __len__ (self) -> int:
		return sum(len(c) for c in self.by_family.values())


def valid_candidates (
	operator: arranger.operators.base.Operator,
	context: arranger.operators.base.BarContext,
	diagnostics: typing.Optional[OperatorDiagnostics] = None
) -> typing.List[arranger.onsets.Candidate]:

	"""Run one operator and keep only well-formed candidates for this bar."""

	kept = []

	for candidate in operator.generate_candidates(context):

		error = candidate.validation_error(context.beats_per_bar)

		if error is None and candidate.bar != context.bar_number:
			error = f"bar {candidate.bar} is not the context bar {context.bar_number}"

		if error is not None:
			logger.debug(f"{operator.operator_id}: dropped malformed candidate ({error})")
			if diagnostics is not None:
				diagnostics.dropped += 1
			continue

		kept.append(candidate)

	if diagnostics is not None:
		diagnostics.generated += len(kept)

	return kept


def collect_candidates (
	registry: arranger.operators.registry.OperatorRegistry,
	context: arranger.operators.base.BarContext
) -> CandidateCollection:

	"""Ask every eligible, non-cleanup operator for its proposals for one bar."""

	collection = CandidateCollection(bar_number=context.bar_number)

	for operator in registry:

		if operator.operator_id in arranger.operators.cleanup.CLEANUP_OPERATOR_IDS:
			continue

		diagnostics = OperatorDiagnostics(operator.operator_id)
		collection.diagnostics.append(diagnostics)

		if not operator.can_apply(context):
			continue

		diagnostics.applied = True

		candidates = valid_candidates(operator, context, diagnostics)

		if candidates:
			collection.by_family.setdefault(operator.family, []).extend(candidates)

		if operator.supports_removals:
			removals = operator.generate_removals(context)
			diagnostics.removals = len(removals)
			collection.removals.extend(removals)

		logger.debug(
			f"Bar {context.bar_number} {operator.operator_id}: "
			f"{diagnostics.generated} candidates, {diagnostics.dropped} dropped, {diagnostics.removals} removals"
		)

	collection.by_family = {family: collection.by_family[family] for family in sorted(collection.by_family)}

	return collection
