from enum import Enum
from typing import Dict, List, Optional, Tuple
from ..core.types import Clef, InstrumentDefinition
from ..core.theory import note_name_to_pitch

class Tuning(Enum):
    # Values are tuples of note names from the highest string (index 0) to the lowest
    STANDARD = ("E4", "B3", "G3", "D3", "A2", "E2")
    E_FLAT = ("Eb4", "Bb3", "Gb3", "Db3", "Ab2", "Eb2")
    DROP_D = ("E4", "B3", "G3", "D3", "A2", "D2")
    OPEN_G = ("D4", "B3", "G3", "D3", "G2", "D2")
    DADGAD = ("D4", "A3", "G3", "D3", "A2", "D2")
    SEVEN_STRING_STANDARD = ("E4", "B3", "G3", "D3", "A2", "E2", "B1")
    BASS_STANDARD = ("G2", "D2", "A1", "E1")
    BASS_DROP_D = ("G2", "D2", "A1", "D1")
    UKULELE_STANDARD = ("A4", "E4", "C4", "G4")

def tuning_pitches(tuning: Tuning) -> Tuple[int, ...]:
    return tuple(note_name_to_pitch(n) for n in tuning.value)

def _fretted(id: str, name: str, category: str, clef: Clef, tuning: Tuning) -> InstrumentDefinition:
    return InstrumentDefinition(id=id, name=name, category=category, clef=clef, strings=tuning_pitches(tuning))

GENERIC = InstrumentDefinition(id="generic", name="Generic", category="generic", clef=Clef.TREBLE, strings=None)

INSTRUMENTS: List[InstrumentDefinition] = [
    GENERIC,
    _fretted("guitar-standard", "Guitar (standard)", "guitar", Clef.TREBLE, Tuning.STANDARD),
    _fretted("guitar-e-flat", "Guitar (Eb)", "guitar", Clef.TREBLE, Tuning.E_FLAT),
    _fretted("guitar-drop-d", "Guitar (drop D)", "guitar", Clef.TREBLE, Tuning.DROP_D),
    _fretted("guitar-open-g", "Guitar (open G)", "guitar", Clef.TREBLE, Tuning.OPEN_G),
    _fretted("guitar-dadgad", "Guitar (DADGAD)", "guitar", Clef.TREBLE, Tuning.DADGAD),
    _fretted("guitar-7-string", "7-string guitar", "guitar", Clef.TREBLE, Tuning.SEVEN_STRING_STANDARD),
    _fretted("bass-standard", "Bass (standard)", "bass", Clef.BASS, Tuning.BASS_STANDARD),
    _fretted("bass-drop-d", "Bass (drop D)", "bass", Clef.BASS, Tuning.BASS_DROP_D),
    _fretted("ukulele-standard", "Ukulele (standard)", "ukulele", Clef.TREBLE, Tuning.UKULELE_STANDARD),
]

_BY_ID: Dict[str, InstrumentDefinition] = {instrument.id: instrument for instrument in INSTRUMENTS}

def get_instrument_by_id(instrument_id: Optional[str]) -> InstrumentDefinition:
    """Looks up an instrument. Unknown or missing ids fall back to the generic (fretless) instrument."""
    if instrument_id is None:
        return GENERIC
    return _BY_ID.get(instrument_id, GENERIC)

def instrument_ids() -> List[str]:
    return [instrument.id for instrument in INSTRUMENTS]

def playable_range(instrument: InstrumentDefinition, max_fret: int = 24) -> Optional[Tuple[int, int]]:
    """Lowest and highest MIDI pitch reachable on the instrument, or None without a fretboard."""
    if not instrument.strings:
        return None
    return min(instrument.strings), max(instrument.strings) + max_fret
