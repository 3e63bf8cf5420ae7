import re
from dataclasses import dataclass
from typing import Optional
from .types import Clef

PITCH_CLASS_MAP = {
    0: 'C', 1: 'C#', 2: 'D', 3: 'D#', 4: 'E', 5: 'F',
    6: 'F#', 7: 'G', 8: 'G#', 9: 'A', 10: 'A#', 11: 'B'
}

NATURAL_SEMITONES = (0, 2, 4, 5, 7, 9, 11)
# Pitch class -> diatonic letter index (C=0 .. B=6). Black keys are spelled as sharps.
DIATONIC_FROM_PC = (0, 0, 1, 1, 2, 3, 3, 4, 4, 5, 5, 6)

TREBLE_BOTTOM_LINE_MIDI = 64  # E4
BASS_BOTTOM_LINE_MIDI = 43  # G2

# Chromatic editing grid: one semitone per step
STAFF_STEP_PX = 12
BOTTOM_LINE_MIDI = TREBLE_BOTTOM_LINE_MIDI

def note_name_to_pitch(name: str) -> int:
    """
    Converts a note name (e.g., "A4", "C#5", "Eb3") to its corresponding MIDI pitch number.
    """
    note_map = {
        'C': 0, 'B#': 0,
        'C#': 1, 'Db': 1,
        'D': 2,
        'D#': 3, 'Eb': 3,
        'E': 4, 'Fb': 4,
        'F': 5, 'E#': 5,
        'F#': 6, 'Gb': 6,
        'G': 7,
        'G#': 8, 'Ab': 8,
        'A': 9,
        'A#': 10, 'Bb': 10,
        'B': 11, 'Cb': 11,
    }

    match = re.fullmatch(r'([A-Ga-g])([#b]?)(-?\d+)', name.strip())
    if not match:
        raise ValueError(f"Invalid note name format: {name}")

    note, accidental, octave = match.groups()
    note_name = note.upper() + accidental
    octave = int(octave)

    pitch_class = note_map[note_name]

    # MIDI pitch formula: pitch = pitch_class + (octave + 1) * 12
    return pitch_class + (octave + 1) * 12

def pitch_to_note_name(pitch: int) -> str:
    """
    Converts a MIDI pitch number to its standard note name (e.g., 60 -> C4).
    """
    if not (0 <= pitch <= 127):
        raise ValueError(f"MIDI pitch out of range: {pitch}")

    octave = (pitch // 12) - 1
    note_class = pitch % 12
    note = PITCH_CLASS_MAP[note_class]

    return f"{note}{octave}"

@dataclass(frozen=True)
class PitchInfo:
    midi: int
    staff_step: int
    accidental: Optional[str]  # '#', 'b' or None

def midi_to_pitch_info(midi: int) -> PitchInfo:
    """Absolute diatonic staff step (octave * 7 + letter index) and accidental of a MIDI pitch."""
    pitch_class = midi % 12
    diatonic = DIATONIC_FROM_PC[pitch_class]
    natural = NATURAL_SEMITONES[diatonic]
    if pitch_class == natural:
        accidental = None
    else:
        accidental = '#' if pitch_class > natural else 'b'
    octave = midi // 12 - 1
    return PitchInfo(midi=midi, staff_step=octave * 7 + diatonic, accidental=accidental)

def staff_step_to_midi(staff_step: int, accidental: Optional[str] = None) -> int:
    octave = staff_step // 7
    diatonic = staff_step % 7
    midi = (octave + 1) * 12 + NATURAL_SEMITONES[diatonic]
    if accidental == '#':
        midi += 1
    elif accidental == 'b':
        midi -= 1
    return midi

def clef_bottom_line(clef: Clef) -> int:
    return TREBLE_BOTTOM_LINE_MIDI if clef == Clef.TREBLE else BASS_BOTTOM_LINE_MIDI

class StaffPositioning:
    """
    Diatonic staff placement relative to a clef's bottom line.

    Step 0 is the bottom line; each step is one line or space. Y grows
    downward, so higher pitches get smaller y values.
    """
    def __init__(self, clef: Clef = Clef.TREBLE, bottom_line_y: float = 0.0, line_spacing: float = 12.0):
        self.clef = clef
        self.bottom_line_y = bottom_line_y
        self.line_spacing = line_spacing
        self.reference_step = midi_to_pitch_info(clef_bottom_line(clef)).staff_step

    def pitch_to_staff_step(self, midi: int) -> int:
        return midi_to_pitch_info(midi).staff_step - self.reference_step

    def staff_step_to_pitch(self, step: int, accidental: Optional[str] = None) -> int:
        return staff_step_to_midi(step + self.reference_step, accidental)

    def pitch_to_y(self, midi: int) -> float:
        return self.bottom_line_y - self.pitch_to_staff_step(midi) * (self.line_spacing / 2)

    def y_to_pitch(self, y: float, accidental: Optional[str] = None) -> int:
        step = round((self.bottom_line_y - y) / (self.line_spacing / 2))
        return self.staff_step_to_pitch(step, accidental)

def pitch_to_y(pitch_midi: int, staff_bottom_y: float) -> float:
    """Chromatic placement used by the insertion caret: one STAFF_STEP_PX per semitone."""
    return staff_bottom_y - (pitch_midi - BOTTOM_LINE_MIDI) * STAFF_STEP_PX

def y_to_pitch(y: float, staff_bottom_y: float) -> int:
    return round(BOTTOM_LINE_MIDI + (staff_bottom_y - y) / STAFF_STEP_PX)
