"""Onset and candidate records shared by operators and the selection stage.

:class:`Candidate` and :class:`RemovalCandidate` are ephemeral proposals
produced by operators. :class:`Onset` is the committed record held in a
selection run's working set. Keys are ``(bar, beat, role)`` triples; beats
are rounded to :data:`BEAT_PRECISION` places so that float noise never
splits one grid position into two keys.
"""

import dataclasses
import enum
import typing

import arranger.constants.roles
import arranger.constants.velocity


BEAT_PRECISION = 6

OnsetKey = typing.Tuple[int, float, str]


class OnsetStrength (enum.Enum):

	"""Metric weight of an onset position."""

	DOWNBEAT = "Downbeat"
	STRONG = "Strong"
	BACKBEAT = "Backbeat"
	OFFBEAT = "Offbeat"
	PICKUP = "Pickup"
	GHOST = "Ghost"


class Articulation (enum.Enum):

	"""Playing technique hints carried through to materialisation."""

	NONE = "None"
	SIDE_STICK = "SideStick"
	RIMSHOT = "Rimshot"
	FLAM = "Flam"
	CRASH = "Crash"
	RIDE = "Ride"
	OPEN_HAT = "OpenHat"


def make_key (bar: int, beat: float, role: str) -> OnsetKey:

	"""Return the canonical working-set key for a position and role."""

	return (bar, round(beat, BEAT_PRECISION), role)


@dataclasses.dataclass(frozen=True)
class Candidate:

	"""
	A proposed onset addition.

	Attributes:
		operator_id: The operator that proposed it.
		role: Role or drum sub-role (``"Bass"``, ``"Kick"``...).
		bar: 1-based bar number.
		beat: 1-based fractional beat within the bar.
		strength: Metric weight of the position.
		score: Relative desirability in [0, 1]; only compared within one round.
		velocity_hint: Optional velocity (1-127).
		timing_hint: Optional timing offset in ticks.
		articulation_hint: Optional playing technique.
		pitch_hint: Optional MIDI pitch.
		duration_hint: Optional duration in ticks.
	"""

	operator_id: str
	role: str
	bar: int
	beat: float
	strength: OnsetStrength
	score: float
	velocity_hint: typing.Optional[int] = None
	timing_hint: typing.Optional[int] = None
	articulation_hint: typing.Optional[Articulation] = None
	pitch_hint: typing.Optional[int] = None
	duration_hint: typing.Optional[int] = None

	@property
	def key (self) -> OnsetKey:
		return make_key(self.bar, self.beat, self.role)

	@property
	def candidate_id (self) -> str:

		"""Return a stable identifier used to break ties between equal scores."""

		return f"{self.operator_id}_{self.role}_{self.bar}_{round(self.beat, BEAT_PRECISION)}"

	@property
	def has_hints (self) -> bool:

		"""Return True if the candidate carries anything that can update an existing onset."""

		return any(
			hint is not None
			for hint in (self.velocity_hint, self.timing_hint, self.pitch_hint, self.duration_hint)
		)

	def validation_error (self, beats_per_bar: typing.Optional[int] = None) -> typing.Optional[str]:

		"""Return a description of what is malformed, or None if the candidate is usable."""

		if self.role not in arranger.constants.roles.ONSET_ROLES:
			return f"unknown role {self.role!r}"
		if self.bar < 1:
			return f"bar {self.bar} is not 1-based"
		if self.beat < 1.0:
			return f"beat {self.beat} is before the bar"
		if beats_per_bar is not None and self.beat >= beats_per_bar + 1.0:
			return f"beat {self.beat} is beyond a {beats_per_bar}-beat bar"
		if not 0.0 <= self.score <= 1.0:
			return f"score {self.score} outside [0, 1]"
		if self.velocity_hint is not None and not (
			arranger.constants.velocity.MIN_VELOCITY <= self.velocity_hint <= arranger.constants.velocity.MAX_VELOCITY
		):
			return f"velocity hint {self.velocity_hint} outside MIDI range"
		if self.pitch_hint is not None and not 0 <= self.pitch_hint <= 127:
			return f"pitch hint {self.pitch_hint} outside MIDI range"
		if self.duration_hint is not None and self.duration_hint <= 0:
			return f"duration hint {self.duration_hint} is not positive"

		return None


@dataclasses.dataclass(frozen=True)
class RemovalCandidate:

	"""A request to delete the onset at ``(bar, beat, role)``, subject to protection flags."""

	operator_id: str
	role: str
	bar: int
	beat: float
	score: float = 0.5

	@property
	def key (self) -> OnsetKey:
		return make_key(self.bar, self.beat, self.role)


@dataclasses.dataclass
class Onset:

	"""
	A committed onset in a working set.

	Attributes:
		role: Role or drum sub-role.
		bar: 1-based bar number.
		beat: 1-based fractional beat.
		velocity: MIDI velocity (1-127).
		timing_offset: Optional offset from the grid position, in ticks.
		pitch: Optional MIDI pitch (drums resolve theirs from the role).
		duration: Optional length in ticks.
		articulation: Optional playing technique.
		strength: Metric weight of the position.
		is_must_hit: Anchor onsets that no removal may delete.
		is_never_remove: Onsets an operator marked as untouchable.
		velocity_from_operator: The velocity was set by an operator rather than the groove.
		source: Id of the operator that created the onset (``"anchor"`` for groove anchors).
	"""

	role: str
	bar: int
	beat: float
	velocity: int = arranger.constants.velocity.DEFAULT_VELOCITY
	timing_offset: typing.Optional[int] = None
	pitch: typing.Optional[int] = None
	duration: typing.Optional[int] = None
	articulation: typing.Optional[Articulation] = None
	strength: OnsetStrength = OnsetStrength.STRONG
	is_must_hit: bool = False
	is_never_remove: bool = False
	velocity_from_operator: bool = False
	source: str = "anchor"

	@property
	def key (self) -> OnsetKey:
		return make_key(self.bar, self.beat, self.role)

	@property
	def is_protected (self) -> bool:

		"""Return True if removal operators must leave this onset alone."""

		return self.is_must_hit or self.is_never_remove

	@classmethod
	def from_candidate (cls, candidate: Candidate, default_velocity: int = arranger.constants.velocity.DEFAULT_VELOCITY) -> "Onset":

		"""Create a fresh onset from an accepted candidate."""

		return cls(
			role = candidate.role,
			bar = candidate.bar,
			beat = round(candidate.beat, BEAT_PRECISION),
			velocity = candidate.velocity_hint if candidate.velocity_hint is not None else default_velocity,
			timing_offset = candidate.timing_hint,
			pitch = candidate.pitch_hint,
			duration = candidate.duration_hint,
			articulation = candidate.articulation_hint,
			strength = candidate.strength,
			velocity_from_operator = True,
			source = candidate.operator_id,
		)

	def updated_from (self, candidate: Candidate) -> "Onset":

		"""Return a copy with the candidate's hints overwriting this onset's values."""

		return dataclasses.replace(
			self,
			velocity = candidate.velocity_hint if candidate.velocity_hint is not None else self.velocity,
			timing_offset = candidate.timing_hint if candidate.timing_hint is not None else self.timing_offset,
			pitch = candidate.pitch_hint if candidate.pitch_hint is not None else self.pitch,
			duration = candidate.duration_hint if candidate.duration_hint is not None else self.duration,
			articulation = candidate.articulation_hint if candidate.articulation_hint is not None else self.articulation,
			velocity_from_operator = self.velocity_from_operator or candidate.velocity_hint is not None,
		)
