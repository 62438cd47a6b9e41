"""Constants for the arranger.

This package contains four sets of constants:

- ``arranger.constants.pulses`` - Tick-based timing (480 ticks per quarter note)
- ``arranger.constants.velocity`` - MIDI velocity bounds and defaults
- ``arranger.constants.gm_drums`` - General MIDI notes for the drum sub-roles
- ``arranger.constants.roles`` - Role and drum sub-role names

The most common tick constants are re-exported here so
``arranger.constants.TICKS_PER_QUARTER`` works without the submodule.
"""

TICKS_PER_QUARTER = 480
DEFAULT_DURATION_TICKS = 120
