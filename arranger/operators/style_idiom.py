"""StyleIdiom operators: gestures that belong to a genre or a section type.

Genre idioms declare the style categories they belong to; the gate compares
them with the style id passed in the bar context.
"""

import typing

import arranger.constants.roles
import arranger.energy_arc
import arranger.guardrails
import arranger.onsets
import arranger.operators.base
import arranger.random_stream
import arranger.song


R = arranger.constants.roles
ST = arranger.song.SectionType
Family = arranger.operators.base.OperatorFamily
Strength = arranger.onsets.OnsetStrength
Articulation = arranger.onsets.Articulation

POP = arranger.energy_arc.CATEGORY_POP
ROCK = arranger.energy_arc.CATEGORY_ROCK
JAZZ = arranger.energy_arc.CATEGORY_JAZZ

# Ticks a pushed backbeat lands ahead of the grid.
PUSH_TICKS = -8

# Walking-line weights by chord-tone position (third, fifth, seventh...).
WALK_TONE_WEIGHTS = (1.0, 1.5, 0.8)


class PopRockBackbeatPush (arranger.operators.base.Operator):

	"""Hit the chorus backbeats harder and a touch early."""

	operator_id = "PopRockBackbeatPush"
	family = Family.STYLE_IDIOM
	required_role = R.SNARE
	min_energy = 0.5
	min_beats_per_bar = 2
	allowed_sections = frozenset((ST.CHORUS,))
	style_categories = frozenset((POP, ROCK))
	base_score = 0.55

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * context.energy

		return [
			self.candidate(
				context, R.SNARE, float(beat), score,
				strength = Strength.BACKBEAT,
				velocity = self.velocity_hint(context, 110, 125, float(beat)),
				timing = PUSH_TICKS,
			)
			for beat in context.backbeat_beats
		]


class RockKickSyncopation (arranger.operators.base.Operator):

	"""Syncopated kicks on the late "and"s."""

	operator_id = "RockKickSyncopation"
	family = Family.STYLE_IDIOM
	required_role = R.KICK
	min_energy = 0.5
	min_beats_per_bar = 4
	style_categories = frozenset((ROCK,))
	base_score = 0.55

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		options = [3.5, float(context.beats_per_bar) + 0.5]
		rng = self.rng(context)
		picked = sorted(set(o for o in options if rng.random() < 0.5 + 0.4 * context.energy))

		if not picked:
			picked = [options[0]]

		return [
			self.candidate(context, R.KICK, beat, self.base_score + 0.2 * context.energy, velocity=self.velocity_hint(context, 85, 105, beat))
			for beat in picked
		]


class PopChorusCrashPattern (arranger.operators.base.Operator):

	"""A crash on the downbeat of every other chorus bar."""

	operator_id = "PopChorusCrashPattern"
	family = Family.STYLE_IDIOM
	min_energy = 0.6
	allowed_sections = frozenset((ST.CHORUS,))
	style_categories = frozenset((POP,))
	base_score = 0.5

	def can_apply (self, context: arranger.operators.base.BarContext) -> bool:
		return super().can_apply(context) and context.bar_in_section % 2 == 0

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		return [self.candidate(
			context, R.CRASH, 1.0, self.base_score + 0.3 * (context.energy - self.min_energy),
			strength = Strength.DOWNBEAT,
			velocity = self.velocity_hint(context, 95, 115, 1.0),
			articulation = Articulation.CRASH,
		)]


class VerseSimplify (arranger.operators.base.Operator):

	"""
	Strip decoration out of verses.

	The score falls as energy rises, ceding priority to busier operators
	in louder verses.
	"""

	operator_id = "VerseSimplify"
	family = Family.STYLE_IDIOM
	allowed_sections = frozenset((ST.VERSE,))
	base_score = 0.7
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:
		return []

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.base_score - 0.5 * context.energy
		removals = [self.removal(context, R.CLOSED_HAT, beat, score) for beat in arranger.operators.base.sixteenths(context.beats_per_bar)]

		for backbeat in context.backbeat_beats:
			removals.append(self.removal(context, R.SNARE, backbeat - 0.25, score))
			removals.append(self.removal(context, R.SNARE, backbeat + 0.25, score))

		return removals


class BridgeBreakdown (arranger.operators.base.Operator):

	"""Thin the bridge down to ride quarters and a bare kick."""

	operator_id = "BridgeBreakdown"
	family = Family.STYLE_IDIOM
	max_energy = 0.7
	allowed_sections = frozenset((ST.BRIDGE,))
	base_score = 0.6
	supports_removals = True

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = self.base_score + 0.2 * (1.0 - context.energy)

		return [
			self.candidate(
				context, R.RIDE, float(beat), score,
				velocity = self.velocity_hint(context, 60, 80, float(beat)),
				articulation = Articulation.RIDE,
			)
			for beat in range(1, context.beats_per_bar + 1)
		]

	def generate_removals (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		score = self.base_score + 0.2 * (1.0 - context.energy)
		removals = [self.removal(context, R.KICK, beat, score) for beat in arranger.operators.base.offbeats(context.beats_per_bar)]
		removals.extend(self.removal(context, R.CLOSED_HAT, beat, score) for beat in arranger.operators.base.sixteenths(context.beats_per_bar))

		return removals


class JazzWalkingBass (arranger.operators.base.Operator):

	"""Quarter-note walking line: root, chord tones, then a half-step approach."""

	operator_id = "JazzWalkingBass"
	family = Family.STYLE_IDIOM
	role = R.BASS
	min_beats_per_bar = 3
	style_categories = frozenset((JAZZ,))
	base_score = 0.7

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		root = arranger.guardrails.bass_note(context.chord.root_pc)
		tones = [root + interval for interval in context.chord.intervals()]
		target = context.next_chord or context.chord
		goal = arranger.guardrails.bass_note(target.root_pc, octave_up=True)
		rng = self.rng(context)

		passing = [
			(tone, WALK_TONE_WEIGHTS[i] if i < len(WALK_TONE_WEIGHTS) else 0.5)
			for i, tone in enumerate(tones[1:] or tones)
		]

		pitches = [root]

		for _ in range(context.beats_per_bar - 2):
			pitches.append(arranger.random_stream.weighted_choice(rng, passing))

		pitches.append(goal + (-1 if rng.random() < 0.6 else 1))

		return [
			self.candidate(
				context, R.BASS, float(beat), self.base_score,
				velocity = self.velocity_hint(context, 80, 96, float(beat)),
				pitch = pitch,
				duration = 400,
			)
			for beat, pitch in zip(range(1, context.beats_per_bar + 1), pitches)
		]
