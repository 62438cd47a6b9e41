"""
Arranger - a deterministic, seed-driven generative arrangement engine.

Give it a song form, a style and a seed, and it plans how the energy should
move through the song, then decorates a groove bar by bar with small,
stateless musical operators. The same song, style and seed always produce
the same arrangement, whatever order bars or roles are generated in.

What it does:

- **Plans the song's shape.** A style-specific energy arc proposes an energy
  per section; a constraint policy refines it (repeated verses never lose
  energy, the final chorus peaks, a bridge contrasts). Tension, tension
  drivers and transition hints follow, plus per-bar micro tension and micro
  energy within each phrase.
- **Varies repeats on purpose.** Each repeated section references the
  section it varies ("A'"), or deliberately contrasts ("B"), with an
  intensity that feeds per-role density, velocity and register nudges.
- **Keeps every role in its lane.** Role profiles map energy to density,
  velocity and busyness; register guardrails move notes in whole octaves
  only, so a corrected voicing keeps its pitch classes.
- **Decorates with operators.** Ghost notes, fills, ride swaps, walking
  bass and more, grouped into six families, each gated by energy, section,
  meter, fill window and style.
- **Resolves conflicts.** Candidates are scored, selected greedily against
  density targets, previewed and validated (no shared start ticks, no
  overlapping bass notes), then tidied by deterministic cleanup passes.

Minimal example::

	import arranger

	song = arranger.SongStructure.from_list([("Intro", 4), ("Verse", 8), ("Chorus", 8), ("Outro", 4)])
	harmony = arranger.HarmonyTrack.looped(["C", "Am", "F", "G"], song.total_bars)
	arr = arranger.Arranger(song, style_id="PopGroove", seed=7, harmony=harmony)

	drums = arr.generate_drums()
	bass = arr.generate_bass()

Run ``python -m arranger config.yaml`` to arrange a song described in YAML
and, optionally, write it out as a Standard MIDI File.
"""

import arranger.arrangement
import arranger.groove
import arranger.harmony
import arranger.planner
import arranger.song
import arranger.timing


Arranger = arranger.arrangement.Arranger
SongStructure = arranger.song.SongStructure
SectionType = arranger.song.SectionType
HarmonyTrack = arranger.harmony.HarmonyTrack
GroovePreset = arranger.groove.GroovePreset
GrooveTrack = arranger.groove.GrooveTrack
BarGrid = arranger.timing.BarGrid
Planner = arranger.planner.Planner
plan_song = arranger.planner.plan_song

__all__ = [
	"Arranger",
	"BarGrid",
	"GroovePreset",
	"GrooveTrack",
	"HarmonyTrack",
	"Planner",
	"SectionType",
	"SongStructure",
	"plan_song",
]
