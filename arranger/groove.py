from __future__ import annotations

import dataclasses
import logging
import os
import typing

import yaml

import arranger.constants.roles
import arranger.onsets


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class GroovePreset:

	"""
	A named baseline ("anchor") rhythm per role.

	Anchor beats are the onsets the arranger always keeps: the selection stage
	seeds each role's working set with them and flags them must-hit. Operators
	decorate around them.

	Parameters:
		name: Preset name (``"PopGroove"``).
		anchors: Role or drum sub-role → 1-based beat positions within the bar.
		beats_per_bar: Beats in the bar the preset was written for.
		backbeats: Beats that carry the backbeat (2 and 4 in 4/4).
		subdivision: Grid, in beats, that cleanup snaps onto (0.25 = 16ths).
		max_events_per_bar: Role → hard ceiling on onsets per bar, used with
			density caps to size each bar's density target.

	Example::

		groove = GroovePreset(
			name="Straight8",
			anchors={"Kick": [1, 3], "Snare": [2, 4], "ClosedHat": [1, 1.5, 2, 2.5, 3, 3.5, 4, 4.5]},
		)
	"""

	name: str
	anchors: typing.Mapping[str, typing.Tuple[float, ...]]
	beats_per_bar: int = 4
	backbeats: typing.Tuple[int, ...] = (2, 4)
	subdivision: float = 0.25
	max_events_per_bar: typing.Mapping[str, int] = dataclasses.field(default_factory=dict)

	def __post_init__ (self) -> None:
		if not self.name:
			raise ValueError("groove name must not be empty")
		if self.beats_per_bar <= 0:
			raise ValueError("beats_per_bar must be positive")
		if self.subdivision <= 0:
			raise ValueError("subdivision must be positive")
		for role, beats in self.anchors.items():
			if role not in arranger.constants.roles.ONSET_ROLES:
				raise ValueError(f"Groove {self.name!r}: unknown role {role!r}")
			for beat in beats:
				if not 1.0 <= beat < self.beats_per_bar + 1.0:
					raise ValueError(f"Groove {self.name!r}: beat {beat} for {role} is outside a {self.beats_per_bar}-beat bar")
		for backbeat in self.backbeats:
			if not 1 <= backbeat <= self.beats_per_bar:
				raise ValueError(f"Groove {self.name!r}: backbeat {backbeat} is outside the bar")

	@staticmethod
	def from_dict (name: str, data: typing.Dict[str, typing.Any]) -> GroovePreset:

		"""
		Build a preset from a plain mapping, as loaded from YAML.

		Expected shape::

			beats_per_bar: 4
			backbeats: [2, 4]
			subdivision: 0.25
			anchors:
			  Kick: [1, 3]
			  Snare: [2, 4]
			max_events_per_bar:
			  Kick: 6
		"""

		anchors = data.get("anchors")
		if not isinstance(anchors, dict) or not anchors:
			raise ValueError(f"Groove {name!r} needs a non-empty 'anchors' mapping")

		return GroovePreset(
			name = name,
			anchors = {role: tuple(sorted(float(b) for b in beats)) for role, beats in anchors.items()},
			beats_per_bar = int(data.get("beats_per_bar", 4)),
			backbeats = tuple(int(b) for b in data.get("backbeats", (2, 4))),
			subdivision = float(data.get("subdivision", 0.25)),
			max_events_per_bar = {role: int(n) for role, n in (data.get("max_events_per_bar") or {}).items()},
		)

	def onsets (self, role: str) -> typing.Tuple[float, ...]:

		"""Return the anchor beats for a role (empty if the groove has none)."""

		return tuple(self.anchors.get(role, ()))

	def max_events (self, role: str) -> int:

		"""Return the per-bar onset ceiling for a role."""

		if role in self.max_events_per_bar:
			return self.max_events_per_bar[role]

		# Default: one event per grid slot.
		return int(round(self.beats_per_bar / self.subdivision))


class GrooveProvider:

	"""Abstract source of the active groove for a bar."""

	def active_groove (self, bar: int) -> GroovePreset:
		raise NotImplementedError

	def anchor_beats (self, bar: int, role: str) -> typing.Tuple[float, ...]:

		"""Return the anchor beats for ``role`` in the groove active at ``bar``."""

		return self.active_groove(bar).onsets(role)


class GrooveTrack (GrooveProvider):

	"""
	A default groove with optional changes from given bars onward.

	Parameters:
		default: Groove active from bar 1.
		changes: Optional ``{bar: preset}`` switches, each holding until the next.
	"""

	def __init__ (self, default: GroovePreset, changes: typing.Optional[typing.Dict[int, GroovePreset]] = None) -> None:

		self._default = default
		self._changes: typing.List[typing.Tuple[int, GroovePreset]] = sorted((changes or {}).items(), key=lambda item: item[0])

	def active_groove (self, bar: int) -> GroovePreset:

		active = self._default

		for start_bar, preset in self._changes:
			if start_bar > bar:
				break
			active = preset

		return active


def classify_strength (beat: float, beats_per_bar: int, backbeats: typing.Sequence[int]) -> arranger.onsets.OnsetStrength:

	"""
	Return the metric strength of a beat position.

	Beat 1 is the downbeat; whole beats listed as backbeats are backbeats;
	other whole beats are strong; "and" positions are offbeats; the last
	sixteenth before the next bar is a pickup; remaining sixteenths are ghosts.
	"""

	fraction = beat - int(beat)

	if abs(fraction) < 1e-6:
		if int(beat) == 1:
			return arranger.onsets.OnsetStrength.DOWNBEAT
		if int(beat) in backbeats:
			return arranger.onsets.OnsetStrength.BACKBEAT
		return arranger.onsets.OnsetStrength.STRONG

	if abs(fraction - 0.5) < 1e-6:
		return arranger.onsets.OnsetStrength.OFFBEAT

	if beat >= beats_per_bar + 0.75 - 1e-6:
		return arranger.onsets.OnsetStrength.PICKUP

	return arranger.onsets.OnsetStrength.GHOST


def load_presets (path: str) -> typing.Dict[str, GroovePreset]:

	"""
	Load groove presets from a YAML file keyed by preset name.

	Raises ``ValueError`` if the file is missing or malformed.
	"""

	if not os.path.exists(path):
		raise ValueError(f"Groove file {path} not found")

	with open(path, "r") as f:
		data = yaml.safe_load(f) or {}

	if not isinstance(data, dict):
		raise ValueError(f"Groove file {path} must map preset names to definitions")

	presets = {name: GroovePreset.from_dict(name, body) for name, body in data.items()}
	logger.info(f"Loaded {len(presets)} groove presets from {path}")

	return presets


_EIGHTHS = (1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5)
_QUARTERS = (1.0, 2.0, 3.0, 4.0)

BUILTIN_PRESETS: typing.Dict[str, GroovePreset] = {
	"PopGroove": GroovePreset(
		name = "PopGroove",
		anchors = {
			arranger.constants.roles.KICK: (1.0, 3.0),
			arranger.constants.roles.SNARE: (2.0, 4.0),
			arranger.constants.roles.CLOSED_HAT: _EIGHTHS,
			arranger.constants.roles.BASS: (1.0, 2.5, 3.0),
			arranger.constants.roles.COMP: (1.0, 3.0),
			arranger.constants.roles.KEYS: (1.0, 2.5, 4.0),
			arranger.constants.roles.PADS: (1.0,),
		},
		max_events_per_bar = {
			arranger.constants.roles.BASS: 8,
			arranger.constants.roles.KICK: 6,
			arranger.constants.roles.SNARE: 6,
			arranger.constants.roles.CLOSED_HAT: 16,
		},
	),
	"RockGroove": GroovePreset(
		name = "RockGroove",
		anchors = {
			arranger.constants.roles.KICK: (1.0, 2.5, 3.0),
			arranger.constants.roles.SNARE: (2.0, 4.0),
			arranger.constants.roles.CLOSED_HAT: _EIGHTHS,
			arranger.constants.roles.BASS: (1.0, 2.0, 2.5, 3.0, 4.0),
			arranger.constants.roles.COMP: _QUARTERS,
			arranger.constants.roles.KEYS: (1.0, 3.0),
			arranger.constants.roles.PADS: (1.0,),
		},
		max_events_per_bar = {
			arranger.constants.roles.BASS: 8,
			arranger.constants.roles.KICK: 8,
			arranger.constants.roles.CLOSED_HAT: 16,
		},
	),
	"EDMGroove": GroovePreset(
		name = "EDMGroove",
		anchors = {
			arranger.constants.roles.KICK: _QUARTERS,
			arranger.constants.roles.SNARE: (2.0, 4.0),
			arranger.constants.roles.OPEN_HAT: (1.5, 2.5, 3.5, 4.5),
			arranger.constants.roles.BASS: (1.5, 2.5, 3.5, 4.5),
			arranger.constants.roles.PADS: (1.0,),
			arranger.constants.roles.KEYS: (1.0, 2.5),
		},
		max_events_per_bar = {
			arranger.constants.roles.BASS: 8,
			arranger.constants.roles.KICK: 4,
		},
	),
	"JazzGroove": GroovePreset(
		name = "JazzGroove",
		anchors = {
			arranger.constants.roles.RIDE: (1.0, 2.0, 2.5, 3.0, 4.0, 4.5),
			arranger.constants.roles.KICK: (1.0,),
			arranger.constants.roles.BASS: _QUARTERS,
			arranger.constants.roles.COMP: (2.5, 4.0),
			arranger.constants.roles.KEYS: (1.0,),
		},
		max_events_per_bar = {
			arranger.constants.roles.BASS: 8,
			arranger.constants.roles.KICK: 4,
		},
	),
}
