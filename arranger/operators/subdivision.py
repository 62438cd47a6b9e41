"""SubdivisionTransform operators: change the timekeeping grid.

These lift a part to a finer subdivision, drop it to a coarser one, or move
the timekeeping to another voice (hi-hat to ride).
"""

import typing

import arranger.constants.roles
import arranger.guardrails
import arranger.onsets
import arranger.operators.base
import arranger.song
import arranger.tension


R = arranger.constants.roles
ST = arranger.song.SectionType
Family = arranger.operators.base.OperatorFamily
Articulation = arranger.onsets.Articulation


class HatLift (arranger.operators.base.Operator):

	"""Fill the closed hat out to straight sixteenths."""

	operator_id = "HatLift"
	family = Family.SUBDIVISION_TRANSFORM
	required_role = R.CLOSED_HAT
	min_energy = 0.65
	motif_score_multiplier = 0.7
	base_score = 0.5

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * (context.energy - self.min_energy) / (1.0 - self.min_energy)

		if context.transition_hint == arranger.tension.TransitionHint.BUILD and context.bars_until_section_end <= 1:
			score += 0.1

		return [
			self.candidate(context, R.CLOSED_HAT, beat, score, velocity=self.velocity_hint(context, 50, 70, beat))
			for beat in arranger.operators.base.sixteenths(context.beats_per_bar)
		]


class HatDrop (arranger.operators.base.Operator):

	"""Fall back to quarter-note hats: accent the quarters and drop the "and"s."""

	operator_id = "HatDrop"
	family = Family.SUBDIVISION_TRANSFORM
	required_role = R.CLOSED_HAT
	max_energy = 0.4
	base_score = 0.45
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		hats = context.anchor_beats(R.CLOSED_HAT)

		return [
			self.candidate(context, R.CLOSED_HAT, beat, self.base_score, velocity=self.velocity_hint(context, 80, 95, beat))
			for beat in hats
			if beat == int(beat)
		]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.base_score + 0.3 * (self.max_energy - context.energy)

		return [
			self.removal(context, R.CLOSED_HAT, beat, score)
			for beat in arranger.operators.base.offbeats(context.beats_per_bar) + arranger.operators.base.sixteenths(context.beats_per_bar)
		]


class RideSwap (arranger.operators.base.Operator):

	"""Move the timekeeping from the closed hat to the ride."""

	operator_id = "RideSwap"
	family = Family.SUBDIVISION_TRANSFORM
	required_role = R.CLOSED_HAT
	min_energy = 0.5
	allowed_sections = frozenset((ST.CHORUS, ST.BRIDGE, ST.SOLO, ST.OUTRO))
	base_score = 0.5
	supports_removals = True

	def _score (self, context: arranger.operators.base.BarContext) -> float:
		return self.base_score + (0.3 if context.prefer_ride else 0.0)

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self._score(context)

		return [
			self.candidate(
				context, R.RIDE, beat, score,
				velocity = self.velocity_hint(context, 75, 95, beat),
				articulation = Articulation.RIDE,
			)
			for beat in context.anchor_beats(R.CLOSED_HAT)
		]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self._score(context)

		return [self.removal(context, R.CLOSED_HAT, beat, score) for beat in context.anchor_beats(R.CLOSED_HAT)]


class OpenHatAccent (arranger.operators.base.Operator):

	"""An open hat on the bar's last "and", replacing the closed hat there."""

	operator_id = "OpenHatAccent"
	family = Family.SUBDIVISION_TRANSFORM
	required_role = R.CLOSED_HAT
	min_energy = 0.4
	motif_score_multiplier = 0.7
	base_score = 0.5
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		beat = context.beats_per_bar + 0.5
		score = self.base_score + (0.2 if context.is_section_end else 0.0)

		return [self.candidate(
			context, R.OPEN_HAT, beat, score,
			velocity = self.velocity_hint(context, 80, 100, beat),
			articulation = Articulation.OPEN_HAT,
		)]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:
		return [self.removal(context, R.CLOSED_HAT, context.beats_per_bar + 0.5, self.base_score)]


class BassEighthDrive (arranger.operators.base.Operator):

	"""Driving root eighths under high-energy sections."""

	operator_id = "BassEighthDrive"
	family = Family.SUBDIVISION_TRANSFORM
	role = R.BASS
	min_energy = 0.65
	allowed_sections = frozenset((ST.CHORUS, ST.SOLO, ST.OUTRO))
	base_score = 0.55

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		pitch = arranger.guardrails.bass_note(context.chord.root_pc)
		score = self.base_score + 0.3 * (context.energy - self.min_energy)
		candidates = []

		for step in range(context.beats_per_bar * 2):
			beat = 1.0 + step * 0.5
			candidates.append(self.candidate(
				context, R.BASS, beat, score,
				velocity = self.velocity_hint(context, 85, 100, beat),
				pitch = pitch,
				duration = 200,
			))

		return candidates
