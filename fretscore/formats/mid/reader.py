import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import mido

from ...core.types import ScoreNote, TimeSignature
from ...core.config import DEFAULT_TICKS_PER_WHOLE
from ...rhythm.quantize import quantize_tick

logger = logging.getLogger(__name__)

@dataclass
class MidiImport:
    """Notes of a MIDI file rescaled to the score's tick resolution."""
    notes: List[ScoreNote] = field(default_factory=list)
    time_signature: TimeSignature = field(default_factory=TimeSignature)
    tempo: float = 120.0
    ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE
    track_names: List[str] = field(default_factory=list)

class MidiReader:
    """
    Reads a Standard MIDI File into ScoreNotes.

    MIDI ticks count per quarter note; they are rescaled to ticks per whole
    note and optionally snapped to a grid.
    """

    @staticmethod
    def parse(midi_path: str, track_number_to_select: Optional[int] = None,
              ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE, grid: int = 0) -> MidiImport:
        if ticks_per_whole <= 0:
            raise ValueError(f"ticks_per_whole must be positive, got {ticks_per_whole}")
        try:
            midi_file = mido.MidiFile(midi_path)
        except Exception as e:
            raise IOError(f"Mido could not open or parse the file: {e}") from e
        return MidiReader.from_midi_file(midi_file, track_number_to_select, ticks_per_whole, grid)

    @staticmethod
    def from_midi_file(midi_file: mido.MidiFile, track_number_to_select: Optional[int] = None,
                       ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE, grid: int = 0) -> MidiImport:
        result = MidiImport(ticks_per_whole=ticks_per_whole)
        midi_ticks_per_whole = midi_file.ticks_per_beat * 4

        def rescale(midi_ticks: int) -> int:
            return quantize_tick(round(midi_ticks * ticks_per_whole / midi_ticks_per_whole), grid)

        if midi_file.tracks:
            for event in midi_file.tracks[0]:
                if event.is_meta and event.type == "set_tempo":
                    result.tempo = mido.tempo2bpm(event.tempo)
                elif event.is_meta and event.type == "time_signature":
                    result.time_signature = TimeSignature(event.numerator, event.denominator)

        tracks_to_process = midi_file.tracks
        if track_number_to_select is not None:
            if not (1 <= track_number_to_select <= len(midi_file.tracks)):
                raise ValueError(
                    f"Invalid track number '{track_number_to_select}'. File has {len(midi_file.tracks)} tracks."
                )
            tracks_to_process = [midi_file.tracks[track_number_to_select - 1]]

        note_count = 0
        for track_number, track_data in enumerate(tracks_to_process, start=1):
            active_notes: Dict[int, List[Dict]] = {}
            absolute_time_ticks = 0
            track_name = None

            def close_note(pitch: int, start: Dict, end_ticks: int):
                nonlocal note_count
                note_count += 1
                start_tick = rescale(start["time"])
                duration = rescale(end_ticks) - start_tick
                if duration <= 0:
                    duration = grid if grid > 0 else 1
                result.notes.append(ScoreNote(
                    id=f"n{note_count}",
                    pitch=pitch,
                    start_tick=start_tick,
                    duration_ticks=duration,
                    velocity=start["velocity"],
                ))

            for event in track_data:
                absolute_time_ticks += event.time

                if event.is_meta:
                    if event.type == 'track_name':
                        track_name = event.name
                    elif event.type == "set_tempo":
                        result.tempo = mido.tempo2bpm(event.tempo)

                elif event.type == "note_on" and event.velocity > 0:
                    active_notes.setdefault(event.note, []).append({
                        "time": absolute_time_ticks,
                        "velocity": event.velocity,
                    })
                elif event.type == "note_off" or (
                    event.type == "note_on" and event.velocity == 0
                ):
                    if active_notes.get(event.note):
                        close_note(event.note, active_notes[event.note].pop(0), absolute_time_ticks)

            # Handle any hanging notes at the end of the track
            for pitch, hanging_notes in list(active_notes.items()):
                for start in hanging_notes:
                    logger.debug(f"Closing hanging note {pitch} at end of track {track_number}.")
                    close_note(pitch, start, absolute_time_ticks)

            if track_name:
                result.track_names.append(track_name)

        result.notes.sort(key=lambda n: (n.start_tick, n.pitch))
        logger.info(f"Parsed {len(result.notes)} notes from {len(tracks_to_process)} track(s).")
        return result
