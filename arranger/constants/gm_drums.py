"""General MIDI Level 1 note numbers for the drum sub-roles.

The arranger keys drum onsets by sub-role name (``"Kick"``, ``"Snare"``...).
``GM_DRUM_MAP`` resolves those names to channel-10 note numbers when an
onset list is materialised::

	import arranger.constants.gm_drums

	note = arranger.constants.gm_drums.GM_DRUM_MAP["Kick"]   # 36
"""

import typing

import arranger.constants.roles


KICK_1 = 36
SIDE_STICK = 37
SNARE_1 = 38
HI_HAT_CLOSED = 42
LOW_TOM = 45
HI_HAT_OPEN = 46
LOW_MID_TOM = 47
CRASH_1 = 49
HIGH_TOM = 50
RIDE_1 = 51


GM_DRUM_MAP: typing.Dict[str, int] = {
	arranger.constants.roles.KICK: KICK_1,
	arranger.constants.roles.SNARE: SNARE_1,
	arranger.constants.roles.CLOSED_HAT: HI_HAT_CLOSED,
	arranger.constants.roles.OPEN_HAT: HI_HAT_OPEN,
	arranger.constants.roles.CRASH: CRASH_1,
	arranger.constants.roles.RIDE: RIDE_1,
	arranger.constants.roles.TOM_1: HIGH_TOM,
	arranger.constants.roles.TOM_2: LOW_MID_TOM,
	arranger.constants.roles.FLOOR_TOM: LOW_TOM,
}

# Side stick replaces the snare note when a backbeat carries that articulation.
SIDE_STICK_NOTE = SIDE_STICK
