"""MicroAddition operators: single embellishing hits around the groove.

Ghost notes, pickups and doubled kicks add detail without changing the
feel. Most of them back off while a melodic motif is active.
"""

import typing

import arranger.constants.roles
import arranger.guardrails
import arranger.onsets
import arranger.operators.base


R = arranger.constants.roles
Family = arranger.operators.base.OperatorFamily
Strength = arranger.onsets.OnsetStrength


class GhostBeforeBackbeat (arranger.operators.base.Operator):

	"""A soft snare sixteenth just before each backbeat."""

	operator_id = "GhostBeforeBackbeat"
	family = Family.MICRO_ADDITION
	required_role = R.SNARE
	min_energy = 0.3
	min_beats_per_bar = 2
	motif_score_multiplier = 0.7
	base_score = 0.5

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * context.energy
		candidates = []

		for backbeat in context.backbeat_beats:
			beat = backbeat - 0.25
			if self.fits_bar(context, beat):
				candidates.append(self.candidate(
					context, R.SNARE, beat, score,
					strength = Strength.GHOST,
					velocity = self.velocity_hint(context, 30, 45, beat),
				))

		return candidates


class GhostAfterBackbeat (arranger.operators.base.Operator):

	"""A soft snare sixteenth just after each backbeat."""

	operator_id = "GhostAfterBackbeat"
	family = Family.MICRO_ADDITION
	required_role = R.SNARE
	min_energy = 0.4
	min_beats_per_bar = 2
	motif_score_multiplier = 0.7
	base_score = 0.45

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * context.energy
		candidates = []

		for backbeat in context.backbeat_beats:
			beat = backbeat + 0.25
			if self.fits_bar(context, beat):
				candidates.append(self.candidate(
					context, R.SNARE, beat, score,
					strength = Strength.GHOST,
					velocity = self.velocity_hint(context, 28, 42, beat),
				))

		return candidates


class KickPickup (arranger.operators.base.Operator):

	"""A kick on the last sixteenth of the bar, leaning into the next downbeat."""

	operator_id = "KickPickup"
	family = Family.MICRO_ADDITION
	required_role = R.KICK
	min_energy = 0.3
	base_score = 0.5

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		beat = context.beats_per_bar + 0.75
		score = self.base_score + 0.1 * context.energy

		if context.is_section_end:
			score += 0.3

		return [self.candidate(
			context, R.KICK, beat, score,
			strength = Strength.PICKUP,
			velocity = self.velocity_hint(context, 70, 90, beat),
		)]


class KickDouble (arranger.operators.base.Operator):

	"""An extra kick an eighth after one or two of the anchor kicks."""

	operator_id = "KickDouble"
	family = Family.MICRO_ADDITION
	required_role = R.KICK
	min_energy = 0.5
	base_score = 0.5

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		anchors = context.anchor_beats(R.KICK)
		options = [
			b + 0.5 for b in anchors
			if b == int(b) and self.fits_bar(context, b + 0.5) and (b + 0.5) not in anchors
		]

		if not options:
			return []

		rng = self.rng(context)
		picked = sorted(rng.sample(options, min(len(options), 2)))
		score = self.base_score + 0.25 * (context.energy - 0.5)

		return [
			self.candidate(context, R.KICK, beat, score, velocity=self.velocity_hint(context, 75, 95, beat))
			for beat in picked
		]


class HatEmbellishment (arranger.operators.base.Operator):

	"""Scattered closed-hat sixteenths, denser as the bar gets busier."""

	operator_id = "HatEmbellishment"
	family = Family.MICRO_ADDITION
	required_role = R.CLOSED_HAT
	min_energy = 0.5
	motif_score_multiplier = 0.5
	base_score = 0.4

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		rng = self.rng(context)
		score = self.base_score + 0.2 * context.energy
		candidates = []

		for beat in arranger.operators.base.sixteenths(context.beats_per_bar):
			if rng.random() < context.busy_probability:
				candidates.append(self.candidate(
					context, R.CLOSED_HAT, beat, score,
					velocity = self.velocity_hint(context, 45, 65, beat),
				))

		return candidates


class GhostCluster (arranger.operators.base.Operator):

	"""Two or three consecutive snare ghosts leading into the last backbeat."""

	operator_id = "GhostCluster"
	family = Family.MICRO_ADDITION
	required_role = R.SNARE
	min_energy = 0.6
	min_beats_per_bar = 3
	allowed_in_fill_window = False
	motif_score_multiplier = 0.5
	base_score = 0.4

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if not context.backbeat_beats:
			return []

		target = max(context.backbeat_beats)
		count = 2 + self.rng(context).randint(0, 1)
		score = self.base_score + 0.3 * context.tension

		candidates = []

		for step in range(count, 0, -1):
			beat = target - 0.25 * step
			if self.fits_bar(context, beat):
				candidates.append(self.candidate(
					context, R.SNARE, beat, score,
					strength = Strength.GHOST,
					velocity = self.velocity_hint(context, 25, 40, beat),
				))

		return candidates


class BassApproachNote (arranger.operators.base.Operator):

	"""A chromatic approach on the last "and" into the next chord's root."""

	operator_id = "BassApproachNote"
	family = Family.MICRO_ADDITION
	role = R.BASS
	min_energy = 0.3
	motif_score_multiplier = 0.7
	base_score = 0.5

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		target_chord = context.next_chord or context.chord

		if target_chord is None:
			return []

		beat = context.beats_per_bar + 0.5
		target = arranger.guardrails.bass_note(target_chord.root_pc, octave_up=True)
		step = -1 if self.rng(context).random() < 0.5 else 1
		score = self.base_score

		if context.chord is not None and context.next_chord is not None and context.next_chord.root_pc != context.chord.root_pc:
			score += 0.2

		return [self.candidate(
			context, R.BASS, beat, score,
			velocity = self.velocity_hint(context, 70, 90, beat),
			pitch = target + step,
			duration = 200,
		)]


class BassOctavePop (arranger.operators.base.Operator):

	"""The root an octave up on an offbeat."""

	operator_id = "BassOctavePop"
	family = Family.MICRO_ADDITION
	role = R.BASS
	min_energy = 0.45
	motif_score_multiplier = 0.5
	base_score = 0.45

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		options = [b for b in arranger.operators.base.offbeats(context.beats_per_bar) if b not in context.anchor_beats(R.BASS)]

		if not options:
			return []

		beat = self.rng(context).choice(options)

		return [self.candidate(
			context, R.BASS, beat, self.base_score + 0.2 * context.energy,
			velocity = self.velocity_hint(context, 80, 100, beat),
			pitch = arranger.guardrails.bass_note(context.chord.root_pc, octave_up=True),
			duration = 120,
		)]


class BassPickup (arranger.operators.base.Operator):

	"""The chord's fifth on the last sixteenth, leading into the next bar."""

	operator_id = "BassPickup"
	family = Family.MICRO_ADDITION
	role = R.BASS
	min_energy = 0.4
	base_score = 0.4

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		beat = context.beats_per_bar + 0.75
		score = self.base_score + (0.3 if context.is_section_end else 0.0)

		return [self.candidate(
			context, R.BASS, beat, score,
			strength = Strength.PICKUP,
			velocity = self.velocity_hint(context, 70, 85, beat),
			pitch = arranger.guardrails.bass_note((context.chord.root_pc + 7) % 12),
			duration = 100,
		)]
