"""PhrasePunctuation operators: mark phrase and section boundaries.

Crashes land on section downbeats; fills occupy the end of a fill window.
"""

import typing

import arranger.chords
import arranger.constants.roles
import arranger.guardrails
import arranger.onsets
import arranger.operators.base
import arranger.tension


R = arranger.constants.roles
TH = arranger.tension.TransitionHint
Family = arranger.operators.base.OperatorFamily
Strength = arranger.onsets.OnsetStrength
Articulation = arranger.onsets.Articulation

# Low to high.
TOMS_ASCENDING: typing.Tuple[str, ...] = (R.FLOOR_TOM, R.TOM_2, R.TOM_1)


class CrashOnOne (arranger.operators.base.Operator):

	"""A crash on the first downbeat of a section."""

	operator_id = "CrashOnOne"
	family = Family.PHRASE_PUNCTUATION
	min_energy = 0.3
	base_score = 0.6

	def can_apply (self, context: arranger.operators.base.BarContext) -> bool:
		return super().can_apply(context) and context.is_section_start and context.section_index > 0

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		score = 0.9 if context.crash_on_section_start else self.base_score + 0.2 * context.energy

		return [self.candidate(
			context, R.CRASH, 1.0, score,
			strength = Strength.DOWNBEAT,
			velocity = self.velocity_hint(context, 100, 120, 1.0),
			articulation = Articulation.CRASH,
		)]


class TurnaroundFillShort (arranger.operators.base.Operator):

	"""Four snare sixteenths across the last beat, getting louder."""

	operator_id = "TurnaroundFillShort"
	family = Family.PHRASE_PUNCTUATION
	required_role = R.SNARE
	min_energy = 0.3
	fill_window_only = True
	base_score = 0.6

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		start = float(context.beats_per_bar)
		score = self.base_score + 0.2 * context.tension
		candidates = []

		for i in range(4):
			beat = start + 0.25 * i
			low = 65 + i * 10
			candidates.append(self.candidate(
				context, R.SNARE, beat, score,
				velocity = self.velocity_hint(context, low, low + 15, beat),
			))

		return candidates


class BuildFill (arranger.operators.base.Operator):

	"""An ascending tom fill across the last two beats, crescendoing."""

	operator_id = "BuildFill"
	family = Family.PHRASE_PUNCTUATION
	min_energy = 0.5
	min_beats_per_bar = 3
	fill_window_only = True
	base_score = 0.7

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		start = float(max(1, context.beats_per_bar - 1))

		# 6 hits at energy 0.5 up to 8 (every sixteenth of two beats) at 1.0.
		hit_count = min(8, 6 + int((context.energy - 0.5) / 0.5 * 2))
		positions = [start + 0.25 * i for i in range(8)]

		if hit_count < len(positions):
			rng = self.rng(context)
			positions = sorted(rng.sample(positions, hit_count))

		score = self.base_score + (0.15 if context.transition_hint == TH.BUILD else 0.0)
		candidates = []

		for index, beat in enumerate(positions):
			progress = index / max(1, len(positions) - 1)
			tom = TOMS_ASCENDING[min(len(TOMS_ASCENDING) - 1, int(progress * (len(TOMS_ASCENDING) - 1) + 0.5))]
			low = int(60 + 35 * progress)
			high = int(80 + 40 * progress)
			candidates.append(self.candidate(
				context, tom, beat, score,
				strength = Strength.STRONG,
				velocity = self.velocity_hint(context, low, high, beat),
			))

		return candidates


class DropFill (arranger.operators.base.Operator):

	"""A short descending tom figure that hands down into a quieter section."""

	operator_id = "DropFill"
	family = Family.PHRASE_PUNCTUATION
	fill_window_only = True
	base_score = 0.35

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		start = float(context.beats_per_bar)
		score = 0.65 if context.transition_hint in (TH.DROP, TH.RELEASE) else self.base_score
		figure = ((R.TOM_1, 0.0), (R.TOM_2, 0.5), (R.FLOOR_TOM, 0.75))

		return [
			self.candidate(context, tom, start + offset, score, velocity=self.velocity_hint(context, 70, 90, start + offset))
			for tom, offset in figure
		]


class SetupHit (arranger.operators.base.Operator):

	"""Kick and snare together on the last "and" before a new section."""

	operator_id = "SetupHit"
	family = Family.PHRASE_PUNCTUATION
	required_role = R.KICK
	min_energy = 0.4
	fill_window_only = True
	base_score = 0.6

	def can_apply (self, context: arranger.operators.base.BarContext) -> bool:
		return super().can_apply(context) and context.is_section_end and context.transition_hint != TH.NONE

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		beat = context.beats_per_bar + 0.5
		velocity = self.velocity_hint(context, 100, 118, beat)

		return [
			self.candidate(context, R.KICK, beat, self.base_score, velocity=velocity),
			self.candidate(context, R.SNARE, beat, self.base_score, velocity=velocity),
		]


def _walk_pitches (chord: arranger.chords.Chord, target: arranger.chords.Chord, steps: int) -> typing.List[int]:

	"""Walk scale steps from the chord root toward the target root, ending a half step below it."""

	root = arranger.guardrails.bass_note(chord.root_pc)
	goal = arranger.guardrails.bass_note(target.root_pc)

	if goal <= root:
		goal += arranger.guardrails.OCTAVE

	scale = [root + s for s in chord.scale_steps()] + [root + 12 + s for s in chord.scale_steps()]
	below = [p for p in scale if root < p < goal - 1]
	walk = below[-(steps - 1):] if steps > 1 else []

	while len(walk) < steps - 1:
		walk.insert(0, root)

	return walk + [goal - 1]


class BassFillWalk (arranger.operators.base.Operator):

	"""A sixteenth-note scale walk across the last beat into the next chord."""

	operator_id = "BassFillWalk"
	family = Family.PHRASE_PUNCTUATION
	role = R.BASS
	min_energy = 0.35
	fill_window_only = True
	base_score = 0.55

	def generate_candidates (self, context: arranger.operators.base.BarContext) -> typing.List[arranger.onsets.Candidate]:

		if context.chord is None:
			return []

		target = context.next_chord or context.chord
		pitches = _walk_pitches(context.chord, target, 4)
		start = float(context.beats_per_bar)
		score = self.base_score + 0.2 * context.tension
		candidates = []

		for i, pitch in enumerate(pitches):
			beat = start + 0.25 * i
			candidates.append(self.candidate(
				context, R.BASS, beat, score,
				velocity = self.velocity_hint(context, 75, 95, beat),
				pitch = pitch,
				duration = 120,
			))

		return candidates
