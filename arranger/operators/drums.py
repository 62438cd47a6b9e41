import arranger.constants.roles
import arranger.operators.cleanup
import arranger.operators.micro_addition
import arranger.operators.punctuation
import arranger.operators.registry
import arranger.operators.removal
import arranger.operators.style_idiom
import arranger.operators.subdivision
import arranger.operators.substitution


def build_drum_registry () -> arranger.operators.registry.OperatorRegistry:

	"""Return a frozen registry holding every drum operator, family by family."""

	registry = arranger.operators.registry.OperatorRegistry("drums")

	registry.register_all([
		# MicroAddition
		arranger.operators.micro_addition.GhostBeforeBackbeat(),
		arranger.operators.micro_addition.GhostAfterBackbeat(),
		arranger.operators.micro_addition.KickPickup(),
		arranger.operators.micro_addition.KickDouble(),
		arranger.operators.micro_addition.HatEmbellishment(),
		arranger.operators.micro_addition.GhostCluster(),
		# SubdivisionTransform
		arranger.operators.subdivision.HatLift(),
		arranger.operators.subdivision.HatDrop(),
		arranger.operators.subdivision.RideSwap(),
		arranger.operators.subdivision.OpenHatAccent(),
		# PhrasePunctuation
		arranger.operators.punctuation.CrashOnOne(),
		arranger.operators.punctuation.TurnaroundFillShort(),
		arranger.operators.punctuation.BuildFill(),
		arranger.operators.punctuation.DropFill(),
		arranger.operators.punctuation.SetupHit(),
		# PatternSubstitution
		arranger.operators.substitution.BackbeatVariant(),
		arranger.operators.substitution.HalfTimeFeel(),
		arranger.operators.substitution.DoubleTimeFeel(),
		# StyleIdiom
		arranger.operators.style_idiom.PopRockBackbeatPush(),
		arranger.operators.style_idiom.RockKickSyncopation(),
		arranger.operators.style_idiom.PopChorusCrashPattern(),
		arranger.operators.style_idiom.VerseSimplify(),
		arranger.operators.style_idiom.BridgeBreakdown(),
		# NoteRemoval
		arranger.operators.removal.HatThinning(),
		arranger.operators.removal.KickPull(),
		arranger.operators.removal.SparseGroove(),
	])

	registry.register_all(arranger.operators.cleanup.cleanup_operators(arranger.constants.roles.DRUMS))
	registry.freeze()

	return registry
