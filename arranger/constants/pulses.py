"""Tick-based timing constants.

The arranger places onsets on a **480 ticks per quarter note** grid, the
resolution most DAWs and Standard MIDI Files use. Operators reason in
fractional 1-based beats; the timing collaborator converts those to ticks
with ``TICKS_PER_QUARTER``.
"""

TICKS_PER_QUARTER = 480

THIRTYSECOND_NOTE = 60
SIXTEENTH_NOTE = 120
EIGHTH_NOTE = 240
QUARTER_NOTE = 480
HALF_NOTE = 960
WHOLE_NOTE = 1920

# Length given to an onset that carries no duration hint.
DEFAULT_DURATION_TICKS = SIXTEENTH_NOTE

# Beat grid used by the snap-to-grid cleanup pass (a sixteenth note).
DEFAULT_SNAP_SUBDIVISION = 0.25
