"""Operator base class, families and the per-bar context operators read.

An operator is a stateless unit of musical judgement ("add a ghost note
before the backbeat", "thin the hi-hats"). The selection stage asks each
one, bar by bar:

1. ``can_apply(context)`` - a cheap, side-effect-free eligibility gate,
2. ``generate_candidates(context)`` - proposed additions,
3. ``generate_removals(context)`` - proposed deletions (removal-capable
   operators only).

Every random choice an operator makes is drawn from a stream keyed on the
global seed, the bar, the role and the operator id, so the same bar always
yields the same proposals however the run is scheduled.
"""

import abc
import dataclasses
import enum
import random
import typing

import arranger.chords
import arranger.constants.roles
import arranger.energy_arc
import arranger.groove
import arranger.onsets
import arranger.random_stream
import arranger.song
import arranger.tension


class OperatorFamily (enum.IntEnum):

	"""The kind of change an operator makes; candidates are grouped in this order."""

	MICRO_ADDITION = 1
	SUBDIVISION_TRANSFORM = 2
	PHRASE_PUNCTUATION = 3
	PATTERN_SUBSTITUTION = 4
	STYLE_IDIOM = 5
	NOTE_REMOVAL = 6


@dataclasses.dataclass(frozen=True)
class BarContext:

	"""
	Everything an operator may look at for one bar of one role.

	Built fresh per bar by the caller and never stored.

	Attributes:
		bar_number: 1-based bar number.
		beats_per_bar: Beats in this bar.
		backbeat_beats: Whole beats that carry the backbeat.
		section_type: Type of the enclosing section.
		section_index: 0-based index of the enclosing section.
		bar_in_section: 0-based bar within the section.
		bars_until_section_end: 0 on the section's last bar.
		is_fill_window: True where fills are welcome (phrase and section ends).
		seed: Global seed.
		role: Top-level role being generated (``"Drums"``, ``"Bass"``).
		energy: Effective bar energy in [0, 1].
		tension: Bar micro tension in [0, 1].
		style_id: Style name (``"PopGroove"``).
		active_roles: Onset roles that may sound in this bar.
		anchors: Onset role → anchor beats of the active groove.
		event_caps: Onset role → maximum onsets per bar.
		subdivision: Grid, in beats, used for snapping.
		busy_probability: Role profile chance that optional embellishments play.
		motif_active: A melodic motif owns this bar; embellishments back off.
		chord: Chord at the start of the bar, if harmony is known.
		next_chord: Chord at the start of the next bar, if harmony is known.
		transition_hint: Boundary into the next section.
		prefer_ride: Keep time on the ride rather than the hi-hat.
		crash_on_section_start: Mark the section's first downbeat with a crash.
	"""

	bar_number: int
	beats_per_bar: int
	backbeat_beats: typing.Tuple[int, ...]
	section_type: arranger.song.SectionType
	section_index: int
	bar_in_section: int
	bars_until_section_end: int
	is_fill_window: bool
	seed: int
	role: str = arranger.constants.roles.DRUMS
	energy: float = 0.5
	tension: float = 0.5
	style_id: str = "PopGroove"
	active_roles: typing.FrozenSet[str] = frozenset()
	anchors: typing.Mapping[str, typing.Tuple[float, ...]] = dataclasses.field(default_factory=dict)
	event_caps: typing.Mapping[str, int] = dataclasses.field(default_factory=dict)
	subdivision: float = 0.25
	busy_probability: float = 0.5
	motif_active: bool = False
	chord: typing.Optional[arranger.chords.Chord] = None
	next_chord: typing.Optional[arranger.chords.Chord] = None
	transition_hint: arranger.tension.TransitionHint = arranger.tension.TransitionHint.NONE
	prefer_ride: bool = False
	crash_on_section_start: bool = False

	def __post_init__ (self) -> None:
		if self.bar_number < 1:
			raise ValueError(f"bar_number must be >= 1, got {self.bar_number}")
		if self.beats_per_bar < 1:
			raise ValueError(f"beats_per_bar must be >= 1, got {self.beats_per_bar}")

	@property
	def is_section_start (self) -> bool:
		return self.bar_in_section == 0

	@property
	def is_section_end (self) -> bool:
		return self.bars_until_section_end == 0

	@property
	def is_at_section_boundary (self) -> bool:
		return self.is_section_start or self.is_section_end

	@property
	def style_category (self) -> str:
		return arranger.energy_arc.style_category(self.style_id)

	@property
	def bar_seed (self) -> int:

		"""Return the seed derived for this bar and role."""

		key = arranger.random_stream.StreamKey(arranger.random_stream.PURPOSE_BAR, self.bar_number, self.role)

		return arranger.random_stream.derive_seed(self.seed, key)

	def anchor_beats (self, role: str) -> typing.Tuple[float, ...]:
		return tuple(self.anchors.get(role, ()))

	def is_active (self, role: str) -> bool:
		return role in self.active_roles


class Operator (abc.ABC):

	"""
	Abstract base for operators.

	Subclasses set the class attributes below to declare when they apply,
	and implement :meth:`generate_candidates`. Removal-capable operators set
	``supports_removals`` and override :meth:`generate_removals`.
	"""

	operator_id: str = ""
	family: OperatorFamily = OperatorFamily.MICRO_ADDITION
	role: str = arranger.constants.roles.DRUMS

	min_energy: float = 0.0
	max_energy: float = 1.0

	# Onset role that must be active in the bar (e.g. "ClosedHat").
	required_role: typing.Optional[str] = None

	allowed_sections: typing.Optional[typing.FrozenSet[arranger.song.SectionType]] = None
	min_beats_per_bar: int = 1
	allowed_in_fill_window: bool = True
	fill_window_only: bool = False

	# Style categories ("Pop", "Rock"...) the operator belongs to; None = any.
	style_categories: typing.Optional[typing.FrozenSet[str]] = None

	# Score multiplier applied while a melodic motif is active.
	motif_score_multiplier: float = 1.0

	base_score: float = 0.5
	supports_removals: bool = False

	def can_apply (self, context: BarContext) -> bool:

		"""Return True if the operator is eligible for this bar."""

		if context.role != self.role:
			return False
		if not self.min_energy <= context.energy <= self.max_energy:
			return False
		if self.required_role is not None and not context.is_active(self.required_role):
			return False
		if self.allowed_sections is not None and context.section_type not in self.allowed_sections:
			return False
		if context.beats_per_bar < self.min_beats_per_bar:
			return False
		if context.is_fill_window and not self.allowed_in_fill_window:
			return False
		if self.fill_window_only and not context.is_fill_window:
			return False
		if self.style_categories is not None and context.style_category not in self.style_categories:
			return False

		return True

	@abc.abstractmethod
	def generate_candidates (self, context: BarContext) -> typing.List[arranger.onsets.Candidate]:

		"""Return proposed additions for the bar."""

		...

	def generate_removals (self, context: BarContext) -> typing.List[arranger.onsets.RemovalCandidate]:

		"""Return proposed removals for the bar (none by default)."""

		return []

	# ── helpers for subclasses ──

	def rng (self, context: BarContext, sub_purpose: str = "") -> random.Random:

		"""Return this operator's random stream for the bar."""

		key = arranger.random_stream.StreamKey(
			purpose = arranger.random_stream.PURPOSE_OPERATOR,
			bar = context.bar_number,
			role = context.role,
			sub_purpose = f"{self.operator_id}{sub_purpose}",
		)

		return arranger.random_stream.stream(context.seed, key)

	def velocity_hint (self, context: BarContext, low: int, high: int, beat: float) -> int:

		"""Return a deterministic velocity in ``[low, high]`` for a beat."""

		h = arranger.random_stream.stable_hash(context.seed, context.bar_number, self.operator_id, round(beat, arranger.onsets.BEAT_PRECISION))

		return low + h % (high - low + 1)

	def strength_for (self, context: BarContext, beat: float) -> arranger.onsets.OnsetStrength:
		return arranger.groove.classify_strength(beat, context.beats_per_bar, context.backbeat_beats)

	def adjust_for_motif (self, context: BarContext, score: float) -> float:

		"""Scale a score down while a motif is active."""

		if context.motif_active:
			return score * self.motif_score_multiplier

		return score

	def fits_bar (self, context: BarContext, beat: float) -> bool:
		return 1.0 <= beat < context.beats_per_bar + 1.0

	def candidate (
		self,
		context: BarContext,
		role: str,
		beat: float,
		score: float,
		strength: typing.Optional[arranger.onsets.OnsetStrength] = None,
		velocity: typing.Optional[int] = None,
		timing: typing.Optional[int] = None,
		articulation: typing.Optional[arranger.onsets.Articulation] = None,
		pitch: typing.Optional[int] = None,
		duration: typing.Optional[int] = None
	) -> arranger.onsets.Candidate:

		"""Build a candidate with this operator's id and a motif-adjusted, clamped score."""

		return arranger.onsets.Candidate(
			operator_id = self.operator_id,
			role = role,
			bar = context.bar_number,
			beat = beat,
			strength = strength if strength is not None else self.strength_for(context, beat),
			score = max(0.0, min(1.0, self.adjust_for_motif(context, score))),
			velocity_hint = velocity,
			timing_hint = timing,
			articulation_hint = articulation,
			pitch_hint = pitch,
			duration_hint = duration,
		)

	def removal (self, context: BarContext, role: str, beat: float, score: float = 0.5) -> arranger.onsets.RemovalCandidate:
		return arranger.onsets.RemovalCandidate(self.operator_id, role, context.bar_number, beat, max(0.0, min(1.0, score)))

	def __repr__ (self) -> str:
		return f"<{type(self).__name__} {self.operator_id} ({self.family.name})>"


def sixteenths (beats_per_bar: int) -> typing.List[float]:

	"""Return the "e" and "a" sixteenth positions of a bar (x.25 and x.75)."""

	positions = []

	for beat in range(1, beats_per_bar + 1):
		positions.extend((beat + 0.25, beat + 0.75))

	return positions


def offbeats (beats_per_bar: int) -> typing.List[float]:

	"""Return the "and" positions of a bar (x.5)."""

	return [beat + 0.5 for beat in range(1, beats_per_bar + 1)]
