import arranger.constants.roles
import arranger.operators.cleanup
import arranger.operators.micro_addition
import arranger.operators.punctuation
import arranger.operators.registry
import arranger.operators.removal
import arranger.operators.style_idiom
import arranger.operators.subdivision
import arranger.operators.substitution


# The bass plays one note at a time.
MONOPHONIC_ROLES = frozenset((arranger.constants.roles.BASS,))


def build_bass_registry () -> arranger.operators.registry.OperatorRegistry:

	"""Return a frozen registry holding every bass operator, family by family."""

	registry = arranger.operators.registry.OperatorRegistry("bass")

	registry.register_all([
		arranger.operators.micro_addition.BassApproachNote(),
		arranger.operators.micro_addition.BassOctavePop(),
		arranger.operators.micro_addition.BassPickup(),
		arranger.operators.subdivision.BassEighthDrive(),
		arranger.operators.punctuation.BassFillWalk(),
		arranger.operators.substitution.BassHalfTime(),
		arranger.operators.style_idiom.JazzWalkingBass(),
		arranger.operators.removal.BassThinning(),
	])

	registry.register_all(arranger.operators.cleanup.cleanup_operators(arranger.constants.roles.BASS))
	registry.freeze()

	return registry
