"""Role names.

Top-level roles are the instrumental parts the arranger generates. Drum
onsets are further split into sub-roles (one per kit piece) so that the
selection stage can key them independently.
"""

import typing


BASS = "Bass"
COMP = "Comp"
KEYS = "Keys"
PADS = "Pads"
DRUMS = "Drums"

ALL_ROLES: typing.Tuple[str, ...] = (BASS, COMP, KEYS, PADS, DRUMS)

# Roles that carry voiced chords rather than single-line onsets.
CHORD_ROLES: typing.Tuple[str, ...] = (COMP, KEYS, PADS)

KICK = "Kick"
SNARE = "Snare"
CLOSED_HAT = "ClosedHat"
OPEN_HAT = "OpenHat"
CRASH = "Crash"
RIDE = "Ride"
TOM_1 = "Tom1"
TOM_2 = "Tom2"
FLOOR_TOM = "FloorTom"

DRUM_ROLES: typing.Tuple[str, ...] = (
	KICK, SNARE, CLOSED_HAT, OPEN_HAT, CRASH, RIDE, TOM_1, TOM_2, FLOOR_TOM,
)

# Roles that may appear on a committed onset.
ONSET_ROLES: typing.FrozenSet[str] = frozenset((BASS, COMP, KEYS, PADS) + DRUM_ROLES)


def parent_role (role: str) -> str:

	"""Return the top-level role for a drum sub-role (or the role itself)."""

	if role in DRUM_ROLES:
		return DRUMS

	return role
