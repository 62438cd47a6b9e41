"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127). Role profiles apply an
additive bias, and every result is clamped back into this range.
"""

# Primary defaults
DEFAULT_VELOCITY = 100          # Anchor onsets without a hint
DEFAULT_GHOST_VELOCITY = 40     # Ghost notes
DEFAULT_CHORD_VELOCITY = 90     # Voiced chords (softer)

# MIDI standard range
MIN_VELOCITY = 1
MAX_VELOCITY = 127


def clamp_velocity (velocity: float) -> int:

	"""Round and force a velocity into the valid MIDI range."""

	return max(MIN_VELOCITY, min(MAX_VELOCITY, int(round(velocity))))
