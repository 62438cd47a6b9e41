import logging
import os
import sys
import typing

import mido
import yaml

import arranger.arrangement
import arranger.constants.gm_drums
import arranger.constants.pulses
import arranger.constants.roles
import arranger.groove
import arranger.harmony
import arranger.onsets
import arranger.song
import arranger.timing
import arranger.working_set


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

R = arranger.constants.roles

DEFAULT_SECTIONS = [["Intro", 4], ["Verse", 8], ["Chorus", 8], ["Verse", 8], ["Chorus", 8], ["Bridge", 4], ["Chorus", 8], ["Outro", 4]]
DEFAULT_CHORDS = ["C", "Am", "F", "G"]

# MIDI channels (0-based); drums sit on General MIDI channel 10.
DRUM_CHANNEL = 9
ROLE_CHANNELS: typing.Dict[str, int] = {
	R.BASS: 0,
	R.COMP: 1,
	R.KEYS: 2,
	R.PADS: 3,
}


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def build_groove (config: dict, style: str) -> typing.Optional[arranger.groove.GrooveProvider]:

	"""
	Return the groove named in the config, loading presets from ``groove_file`` if given.

	Returns None when the config names no groove, so the arranger picks the
	style's built-in preset.
	"""

	presets = dict(arranger.groove.BUILTIN_PRESETS)

	if config.get('groove_file'):
		presets.update(arranger.groove.load_presets(config['groove_file']))

	name = config.get('groove')

	if name is None:
		return None

	if name not in presets:
		raise ValueError(f"Unknown groove {name!r}. Expected one of {sorted(presets)}")

	return arranger.groove.GrooveTrack(presets[name])


def _note_events (
	onsets: typing.Iterable[arranger.onsets.Onset],
	timing: arranger.timing.TimingProvider,
	channel: int,
	drums: bool
) -> typing.List[typing.Tuple[int, int, mido.Message]]:

	events = []

	for onset in onsets:

		if drums:
			if onset.role == R.SNARE and onset.articulation == arranger.onsets.Articulation.SIDE_STICK:
				note = arranger.constants.gm_drums.SIDE_STICK_NOTE
			else:
				note = arranger.constants.gm_drums.GM_DRUM_MAP[onset.role]
		elif onset.pitch is not None:
			note = onset.pitch
		else:
			continue

		start = max(0, arranger.working_set.start_tick(onset, timing))
		end = max(start + 1, arranger.working_set.end_tick(onset, timing))

		# Note-offs sort before note-ons at the same tick.
		events.append((start, 1, mido.Message('note_on', note=note, velocity=onset.velocity, channel=channel)))
		events.append((end, 0, mido.Message('note_off', note=note, velocity=0, channel=channel)))

	return events


def _chord_events (
	voicings: typing.Iterable[arranger.arrangement.VoicedChord],
	timing: arranger.timing.TimingProvider,
	channel: int
) -> typing.List[typing.Tuple[int, int, mido.Message]]:

	events = []

	for chord in voicings:

		start = timing.to_tick(chord.bar, chord.beat)

		for pitch in chord.pitches:
			events.append((start, 1, mido.Message('note_on', note=pitch, velocity=chord.velocity, channel=channel)))
			events.append((start + chord.duration, 0, mido.Message('note_off', note=pitch, velocity=0, channel=channel)))

	return events


def _track (name: str, events: typing.List[typing.Tuple[int, int, mido.Message]]) -> mido.MidiTrack:

	"""Turn absolute-tick events into a track with delta times."""

	track = mido.MidiTrack()
	track.append(mido.MetaMessage('track_name', name=name, time=0))

	now = 0

	for tick, _, message in sorted(events, key=lambda e: (e[0], e[1])):
		track.append(message.copy(time=tick - now))
		now = tick

	return track


def write_midi (parts: dict, timing: arranger.timing.TimingProvider, path: str, bpm: float = 120.0) -> None:

	"""
	Write the arrangement to a Standard MIDI File (type 1, one track per role).
	"""

	ticks_per_quarter = getattr(timing, 'ticks_per_quarter', arranger.constants.pulses.TICKS_PER_QUARTER)
	midi_file = mido.MidiFile(type=1, ticks_per_beat=ticks_per_quarter)

	tempo_track = mido.MidiTrack()
	tempo_track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))
	midi_file.tracks.append(tempo_track)

	midi_file.tracks.append(_track(R.DRUMS, _note_events(parts[R.DRUMS], timing, DRUM_CHANNEL, drums=True)))
	midi_file.tracks.append(_track(R.BASS, _note_events(parts[R.BASS], timing, ROLE_CHANNELS[R.BASS], drums=False)))

	for role in R.CHORD_ROLES:
		midi_file.tracks.append(_track(role, _chord_events(parts[role], timing, ROLE_CHANNELS[role])))

	midi_file.save(path)
	logger.info(f"Wrote {path}")


def main () -> None:

	"""
	Main entry point: arrange the song described by a YAML config.
	"""

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'
	config = load_config(config_path)

	style = config.get('style', arranger.arrangement.DEFAULT_STYLE)
	seed = int(config.get('seed', 42))

	structure = arranger.song.SongStructure.from_list(
		(name, bars) for name, bars in config.get('sections', DEFAULT_SECTIONS)
	)

	harmony = arranger.harmony.HarmonyTrack.looped(
		config.get('chords', DEFAULT_CHORDS),
		structure.total_bars,
		int(config.get('bars_per_chord', 1)),
	)

	arrangement = arranger.arrangement.Arranger(
		structure,
		style_id = style,
		seed = seed,
		groove = build_groove(config, style),
		harmony = harmony,
		density_preset = config.get('density_preset', 'auto'),
		policy_name = config.get('policy'),
		style_weights = config.get('style_weights'),
	)

	parts = arrangement.generate()

	for role, items in parts.items():
		logger.info(f"{role}: {len(items)} events")

	midi_out = config.get('midi_out')

	if midi_out:
		write_midi(parts, arrangement.timing, midi_out, float(config.get('bpm', 120)))


if __name__ == "__main__":
	main()
