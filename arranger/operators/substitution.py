"""PatternSubstitution operators: swap one pattern for another for a bar.

Anchor onsets are must-hit, so a substitution can recolour them (velocity,
articulation) but never delete them; removals aimed at anchors are dropped by
the selection stage.
"""

import typing

import arranger.constants.roles
import arranger.guardrails
import arranger.onsets
import arranger.operators.base
import arranger.song


R = arranger.constants.roles
ST = arranger.song.SectionType
Family = arranger.operators.base.OperatorFamily
Strength = arranger.onsets.OnsetStrength
Articulation = arranger.onsets.Articulation


class BackbeatVariant (arranger.operators.base.Operator):

	"""Recolour the backbeat: side stick when quiet, rimshot when loud."""

	operator_id = "BackbeatVariant"
	family = Family.PATTERN_SUBSTITUTION
	required_role = R.SNARE
	min_beats_per_bar = 2
	base_score = 0.4

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.energy < 0.4 and context.section_type in (ST.INTRO, ST.VERSE, ST.BRIDGE, ST.OUTRO):
			articulation = Articulation.SIDE_STICK
			low, high = 55, 70
		elif context.energy > 0.7:
			articulation = Articulation.RIMSHOT
			low, high = 110, 127
		else:
			return []

		score = self.base_score + 0.3 * abs(context.energy - 0.55)

		return [
			self.candidate(
				context, R.SNARE, float(beat), score,
				strength = Strength.BACKBEAT,
				velocity = self.velocity_hint(context, low, high, float(beat)),
				articulation = articulation,
			)
			for beat in context.backbeat_beats
		]


class HalfTimeFeel (arranger.operators.base.Operator):

	"""Snare on beat three, with the "and"s stripped back."""

	operator_id = "HalfTimeFeel"
	family = Family.PATTERN_SUBSTITUTION
	required_role = R.SNARE
	max_energy = 0.55
	min_beats_per_bar = 4
	allowed_sections = frozenset((ST.INTRO, ST.BRIDGE, ST.OUTRO))
	base_score = 0.45
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		return [self.candidate(
			context, R.SNARE, 3.0, self.base_score + 0.1 * (1.0 - context.energy),
			strength = Strength.BACKBEAT,
			velocity = self.velocity_hint(context, 100, 115, 3.0),
		)]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		beats = arranger.operators.base.offbeats(context.beats_per_bar)
		removals = [self.removal(context, R.CLOSED_HAT, beat, self.base_score) for beat in beats]
		removals.extend(self.removal(context, R.KICK, beat, self.base_score) for beat in beats)

		return removals


class DoubleTimeFeel (arranger.operators.base.Operator):

	"""Backbeats on every "and" with kicks on every beat."""

	operator_id = "DoubleTimeFeel"
	family = Family.PATTERN_SUBSTITUTION
	required_role = R.SNARE
	min_energy = 0.7
	min_beats_per_bar = 4
	allowed_sections = frozenset((ST.CHORUS, ST.SOLO, ST.OUTRO))
	allowed_in_fill_window = False
	base_score = 0.45

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * (context.energy - self.min_energy)
		candidates = []

		for beat in range(1, context.beats_per_bar + 1):
			candidates.append(self.candidate(context, R.KICK, float(beat), score, velocity=self.velocity_hint(context, 90, 110, float(beat))))

		for beat in arranger.operators.base.offbeats(context.beats_per_bar):
			candidates.append(self.candidate(
				context, R.SNARE, beat, score,
				strength = Strength.BACKBEAT,
				velocity = self.velocity_hint(context, 95, 115, beat),
			))

		return candidates


class BassHalfTime (arranger.operators.base.Operator):

	"""Long roots on one and three; the "and"s go."""

	operator_id = "BassHalfTime"
	family = Family.PATTERN_SUBSTITUTION
	role = R.BASS
	max_energy = 0.45
	min_beats_per_bar = 4
	allowed_sections = frozenset((ST.INTRO, ST.BRIDGE, ST.OUTRO))
	base_score = 0.5
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		pitch = arranger.guardrails.bass_note(context.chord.root_pc)

		return [
			self.candidate(context, R.BASS, beat, self.base_score, velocity=self.velocity_hint(context, 80, 95, beat), pitch=pitch, duration=240)
			for beat in (1.0, 3.0)
		]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		beats = arranger.operators.base.offbeats(context.beats_per_bar) + arranger.operators.base.sixteenths(context.beats_per_bar)

		return [self.removal(context, R.BASS, beat, self.base_score) for beat in beats]
