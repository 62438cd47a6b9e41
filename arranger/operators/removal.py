"""NoteRemoval operators: take notes away in quiet passages.

Removals never touch anchor onsets; the selection stage drops any removal
aimed at a must-hit or never-remove onset. Each operator is gated by a
maximum energy, so loud sections keep their density.
"""

import typing

import arranger.constants.roles
import arranger.onsets
import arranger.operators.base
import arranger.song


R = arranger.constants.roles
ST = arranger.song.SectionType
Family = arranger.operators.base.OperatorFamily


class _RemovalOperator (arranger.operators.base.Operator):

	family = Family.NOTE_REMOVAL
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:
		return []

	def removal_score (self, context: arranger.operators.base.BarContext) -> float:

		"""Removals grow more attractive the further energy sits under the ceiling."""

		return self.base_score + 0.4 * (self.max_energy - context.energy) / max(self.max_energy, 1e-6)


class HatThinning (_RemovalOperator):

	"""Drop closed-hat sixteenths."""

	operator_id = "HatThinning"
	required_role = R.CLOSED_HAT
	max_energy = 0.6
	base_score = 0.3

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.removal_score(context)

		return [self.removal(context, R.CLOSED_HAT, beat, score) for beat in arranger.operators.base.sixteenths(context.beats_per_bar)]


class KickPull (_RemovalOperator):

	"""Pull kicks off the "and"s and sixteenths."""

	operator_id = "KickPull"
	required_role = R.KICK
	max_energy = 0.5
	base_score = 0.3

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.removal_score(context)
		beats = arranger.operators.base.offbeats(context.beats_per_bar) + arranger.operators.base.sixteenths(context.beats_per_bar)

		return [self.removal(context, R.KICK, beat, score) for beat in beats]


class SparseGroove (_RemovalOperator):

	"""Strip a quiet section to its skeleton: no off-grid hats, kicks or ghosts."""

	operator_id = "SparseGroove"
	max_energy = 0.3
	allowed_sections = frozenset((ST.INTRO, ST.VERSE, ST.BRIDGE, ST.OUTRO))
	base_score = 0.35

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.removal_score(context)
		off_grid = arranger.operators.base.offbeats(context.beats_per_bar) + arranger.operators.base.sixteenths(context.beats_per_bar)
		removals = []

		for role in (R.CLOSED_HAT, R.KICK, R.SNARE):
			removals.extend(self.removal(context, role, beat, score) for beat in off_grid)

		return removals


class BassThinning (_RemovalOperator):

	"""Leave the bass on the beats only."""

	operator_id = "BassThinning"
	role = R.BASS
	max_energy = 0.4
	base_score = 0.3

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.removal_score(context)
		beats = arranger.operators.base.offbeats(context.beats_per_bar) + arranger.operators.base.sixteenths(context.beats_per_bar)

		return [self.removal(context, R.BASS, beat, score) for beat in beats]
