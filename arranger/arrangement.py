"""The arranger facade: song in, per-role onset lists out.

:class:`Arranger` ties the pieces together for one song, style and seed:

- :attr:`Arranger.plan` - the cached :class:`~arranger.planner.SongPlan`,
- :attr:`Arranger.intent` - section and bar intent queries,
- :meth:`Arranger.bar_context` - the per-bar context operators read,
- :meth:`Arranger.generate_drums` / :meth:`Arranger.generate_bass` - a
  selection run per role, seeded with the groove's anchors,
- :meth:`Arranger.voice_chords` - guardrailed chord voicings for Comp,
  Keys and Pads.

Example::

	song = arranger.song.SongStructure.from_list([("Intro", 4), ("Verse", 8), ("Chorus", 8)])
	arr = arranger.arrangement.Arranger(song, style_id="PopGroove", seed=7)
	parts = arr.generate()
	parts["Drums"][0]   # Onset(role='Kick', bar=1, beat=1.0, ...)
"""

import dataclasses
import logging
import typing

import arranger.constants.pulses
import arranger.constants.roles
import arranger.constants.velocity
import arranger.groove
import arranger.guardrails
import arranger.harmony
import arranger.intent
import arranger.onsets
import arranger.operators.base
import arranger.operators.bass
import arranger.operators.drums
import arranger.operators.registry
import arranger.planner
import arranger.selection
import arranger.song
import arranger.timing


logger = logging.getLogger(__name__)

R = arranger.constants.roles

DEFAULT_STYLE = "PopGroove"

# Anchor velocity per onset role before the role profile's bias.
ANCHOR_VELOCITY: typing.Dict[str, int] = {
	R.KICK: 105,
	R.SNARE: 100,
	R.CLOSED_HAT: 80,
	R.OPEN_HAT: 85,
	R.RIDE: 85,
	R.BASS: 95,
}

# Kit pieces available to operators whenever the drums play.
_KIT_EXTRAS = frozenset((R.CRASH, R.RIDE, R.OPEN_HAT, R.TOM_1, R.TOM_2, R.FLOOR_TOM))

# Register the chord roles are voiced around before guardrails.
CHORD_VOICING_ROOT = 60


@dataclasses.dataclass(frozen=True)
class VoicedChord:

	"""
	A chord struck by a chord role.

	Attributes:
		role: ``"Comp"``, ``"Keys"`` or ``"Pads"``.
		bar: 1-based bar.
		beat: 1-based beat.
		pitches: MIDI notes, after guardrails.
		velocity: MIDI velocity.
		duration: Length in ticks.
		chord_name: Symbol of the chord voiced.
	"""

	role: str
	bar: int
	beat: float
	pitches: typing.Tuple[int, ...]
	velocity: int
	duration: int
	chord_name: str


class Arranger:

	"""
	Plans and generates an arrangement for one song.

	Parameters:
		structure: The song's sections.
		style_id: Style name; also picks the built-in groove when ``groove``
			is not given.
		seed: Global seed.
		groove: Groove collaborator (default: the style's built-in preset).
		harmony: Harmony collaborator (default: a C major chord throughout).
		timing: Timing collaborator (default: 4/4 at 480 ticks per quarter).
		density_preset: ``"default"``, ``"high"``, ``"low"`` or ``"auto"``.
		policy_name: Energy constraint policy (default: the style's).
		ramp_intensity: Micro tension ramp within phrases.
		register: Register guardrails.
		operator_budget: Operator applications per role run (default: two per bar).
		motif_bars: Bars in which a melodic motif is active.
		planner: Shared plan cache (default: a private one).
		style_weights: Operator id → score weight for the selection runs
			(missing ids weigh 1.0; 0.0 switches an operator off).
	"""

	def __init__ (
		self,
		structure: arranger.song.SongStructure,
		style_id: str = DEFAULT_STYLE,
		seed: int = 42,
		groove: typing.Optional[arranger.groove.GrooveProvider] = None,
		harmony: typing.Optional[arranger.harmony.HarmonyProvider] = None,
		timing: typing.Optional[arranger.timing.TimingProvider] = None,
		density_preset: str = arranger.guardrails.PRESET_AUTO,
		policy_name: typing.Optional[str] = None,
		ramp_intensity: float = 0.5,
		register: typing.Optional[arranger.guardrails.RegisterConstraints] = None,
		operator_budget: typing.Optional[int] = None,
		motif_bars: typing.Optional[typing.Iterable[int]] = None,
		planner: typing.Optional[arranger.planner.Planner] = None,
		style_weights: typing.Optional[typing.Mapping[str, float]] = None
	) -> None:

		self.structure = structure
		self.style_id = style_id
		self.seed = seed

		if groove is None:
			preset = arranger.groove.BUILTIN_PRESETS.get(style_id)
			if preset is None:
				logger.warning(f"No built-in groove named {style_id!r}; using {DEFAULT_STYLE}")
				preset = arranger.groove.BUILTIN_PRESETS[DEFAULT_STYLE]
			groove = arranger.groove.GrooveTrack(preset)

		self.groove = groove
		self.harmony = harmony if harmony is not None else arranger.harmony.HarmonyTrack([(1, 1.0, "C")])
		self.timing = timing if timing is not None else arranger.timing.BarGrid()
		self.register = register if register is not None else arranger.guardrails.RegisterConstraints()
		self.operator_budget = operator_budget
		self.motif_bars = frozenset(motif_bars or ())
		self.style_weights = dict(style_weights) if style_weights is not None else {}

		self.planner = planner if planner is not None else arranger.planner.Planner()
		self.plan = self.planner.plan(structure, style_id, seed, policy_name, ramp_intensity)
		self.intent = arranger.intent.SongIntentQuery(self.plan, density_preset, self.register)

		self._drum_registry = arranger.operators.drums.build_drum_registry()
		self._bass_registry = arranger.operators.bass.build_bass_registry()

	# ── contexts ──

	def _onset_roles (self, role: str, groove: arranger.groove.GroovePreset) -> typing.FrozenSet[str]:

		if role == R.DRUMS:
			return frozenset(r for r in groove.anchors if r in R.DRUM_ROLES) | _KIT_EXTRAS

		return frozenset((role,))

	def bar_context (self, bar: int, role: str) -> arranger.operators.base.BarContext:

		"""Return the context operators read for one bar of one role."""

		bar_intent = self.intent.bar_intent_for(bar)
		section = bar_intent.section
		groove = self.groove.active_groove(bar)
		beats_per_bar = self.timing.beats_per_bar(bar)
		profile = self.plan.get_role_profile(section.section_index, role)

		active = self._onset_roles(role, groove) if section.presence.is_active(role) else frozenset()

		anchors = {
			r: tuple(b for b in groove.onsets(r) if self.timing.is_valid_beat(bar, b))
			for r in self._onset_roles(role, groove)
		}

		caps = {}

		for r in self._onset_roles(role, groove):
			max_events = groove.max_events(r)
			target = arranger.selection.density_target(section.density_caps.cap_for(r) * profile.density_multiplier, max_events)
			caps[r] = max(target, len(anchors.get(r, ())))

		next_chord = self.harmony.chord_at(bar + 1, 1.0) if bar < self.structure.total_bars else None

		return arranger.operators.base.BarContext(
			bar_number = bar,
			beats_per_bar = beats_per_bar,
			backbeat_beats = tuple(b for b in groove.backbeats if b <= beats_per_bar),
			section_type = section.section.section_type,
			section_index = section.section_index,
			bar_in_section = bar_intent.bar_in_section,
			bars_until_section_end = section.section.bar_count - 1 - bar_intent.bar_in_section,
			is_fill_window = bar_intent.is_phrase_end,
			seed = self.seed,
			role = role,
			energy = bar_intent.effective_energy,
			tension = bar_intent.micro_tension,
			style_id = self.style_id,
			active_roles = active,
			anchors = anchors,
			event_caps = caps,
			subdivision = groove.subdivision,
			busy_probability = profile.busy_probability,
			motif_active = bar in self.motif_bars,
			chord = self.harmony.chord_at(bar, 1.0),
			next_chord = next_chord,
			transition_hint = section.transition_hint,
			prefer_ride = section.presence.prefer_ride_over_hat,
			crash_on_section_start = section.presence.crash_on_section_start,
		)

	# ── anchors ──

	def anchors (self, role: str) -> typing.List[arranger.onsets.Onset]:

		"""Return the must-hit anchor onsets for a top-level role across the song."""

		onsets = []

		for bar in range(1, self.structure.total_bars + 1):

			section_index, _ = self.structure.section_for_bar(bar)

			if not self.intent.get_section_intent(section_index).presence.is_active(role):
				continue

			groove = self.groove.active_groove(bar)
			profile = self.plan.get_role_profile(section_index, role)
			beats_per_bar = self.timing.beats_per_bar(bar)

			for onset_role in sorted(self._onset_roles(role, groove)):
				for beat in groove.onsets(onset_role):

					if not self.timing.is_valid_beat(bar, beat):
						continue

					pitch = None
					duration = None

					if role == R.BASS:
						root = arranger.guardrails.bass_note(self.harmony.chord_at(bar, beat).root_pc)
						pitch = arranger.guardrails.apply_register([root], R.BASS, 0, self.register)[0]
						duration = arranger.constants.pulses.DEFAULT_DURATION_TICKS

					onsets.append(arranger.onsets.Onset(
						role = onset_role,
						bar = bar,
						beat = beat,
						velocity = profile.apply_velocity(ANCHOR_VELOCITY.get(onset_role, arranger.constants.velocity.DEFAULT_VELOCITY)),
						pitch = pitch,
						duration = duration,
						strength = arranger.groove.classify_strength(beat, beats_per_bar, groove.backbeats),
						is_must_hit = True,
					))

		return onsets

	# ── generation ──

	def _generate (
		self,
		role: str,
		registry: arranger.operators.registry.OperatorRegistry,
		monophonic_roles: typing.Collection[str] = ()
	) -> typing.Tuple[arranger.onsets.Onset, ...]:

		contexts = {bar: self.bar_context(bar, role) for bar in range(1, self.structure.total_bars + 1)}

		run = arranger.selection.SelectionRun(
			registry = registry,
			contexts = contexts,
			timing = self.timing,
			seed = self.seed,
			role = role,
			budget = self.operator_budget,
			monophonic_roles = monophonic_roles,
			style_weights = self.style_weights,
		)

		onsets = tuple(self.shape_onset(onset, role) for onset in run.run(self.anchors(role)))

		logger.info(
			f"{role}: {len(onsets)} onsets over {len(contexts)} bars "
			f"({run.stats.accepted} operator applications, {run.stats.rejected} rejected)"
		)

		return onsets

	def shape_onset (self, onset: arranger.onsets.Onset, role: str) -> arranger.onsets.Onset:

		"""
		Return a finished copy of ``onset`` for ``role``.

		Velocities an operator set get the section's role-profile bias; groove
		velocities are kept. Bass pitches go through the register guardrails.
		"""

		changes: typing.Dict[str, typing.Any] = {}

		if onset.velocity_from_operator:
			section_index, _ = self.structure.section_for_bar(onset.bar)
			changes["velocity"] = self.plan.get_role_profile(section_index, role).apply_velocity(onset.velocity)

		if onset.pitch is not None and role == R.BASS:
			changes["pitch"] = arranger.guardrails.apply_register([onset.pitch], R.BASS, 0, self.register)[0]

		return dataclasses.replace(onset, **changes)

	def generate_drums (self) -> typing.Tuple[arranger.onsets.Onset, ...]:

		"""Return the drum onsets (keyed by kit piece), time-ordered."""

		return self._generate(R.DRUMS, self._drum_registry)

	def generate_bass (self) -> typing.Tuple[arranger.onsets.Onset, ...]:

		"""Return the bass line, time-ordered and non-overlapping."""

		return self._generate(R.BASS, self._bass_registry, arranger.operators.bass.MONOPHONIC_ROLES)

	def voice_chords (self, role: str) -> typing.List[VoicedChord]:

		"""
		Return a chord role's voicings on its groove anchors.

		Each chord is built around middle C, lifted by the section's role
		profile and corrected by the register guardrails (whole octaves only).
		"""

		if role not in R.CHORD_ROLES:
			raise ValueError(f"{role!r} is not a chord role. Expected one of {list(R.CHORD_ROLES)}")

		voicings = []

		for bar in range(1, self.structure.total_bars + 1):

			section_index, _ = self.structure.section_for_bar(bar)

			if not self.intent.get_section_intent(section_index).presence.is_active(role):
				continue

			profile = self.plan.get_role_profile(section_index, role)
			beats = [b for b in self.groove.anchor_beats(bar, role) if self.timing.is_valid_beat(bar, b)]
			bar_end = self.timing.bar_end_tick(bar)

			for i, beat in enumerate(beats):

				chord = self.harmony.chord_at(bar, beat)
				pitches = arranger.guardrails.apply_register(
					chord.tones(CHORD_VOICING_ROOT), role, profile.register_lift_semitones, self.register
				)
				start = self.timing.to_tick(bar, beat)
				end = self.timing.to_tick(bar, beats[i + 1]) if i + 1 < len(beats) else bar_end

				voicings.append(VoicedChord(
					role = role,
					bar = bar,
					beat = beat,
					pitches = tuple(pitches),
					velocity = profile.apply_velocity(arranger.constants.velocity.DEFAULT_CHORD_VELOCITY),
					duration = max(1, end - start),
					chord_name = chord.name(),
				))

		return voicings

	def generate (self) -> typing.Dict[str, typing.Sequence[typing.Any]]:

		"""Return every role's output: onsets for Drums and Bass, voicings for chord roles."""

		parts: typing.Dict[str, typing.Sequence[typing.Any]] = {
			R.DRUMS: self.generate_drums(),
			R.BASS: self.generate_bass(),
		}

		for role in R.CHORD_ROLES:
			parts[role] = self.voice_chords(role)

		return parts
