from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Optional, Tuple, Union

@dataclass(frozen=True)
class TimeSignature:
    beats: int = 4
    beat_unit: int = 4

    def __post_init__(self):
        if self.beats <= 0 or self.beat_unit <= 0:
            raise ValueError(f"Invalid time signature {self.beats}/{self.beat_unit}")

    @classmethod
    def parse(cls, text: str) -> "TimeSignature":
        """Builds a time signature from a string such as '3/4'."""
        try:
            beats, beat_unit = map(int, text.split('/'))
        except ValueError:
            raise ValueError(f"Invalid time signature format: {text}")
        return cls(beats, beat_unit)

    def __str__(self) -> str:
        """Returns the time signature as a string, e.g., '4/4'."""
        return f"{self.beats}/{self.beat_unit}"

class Clef(Enum):
    TREBLE = "treble"
    BASS = "bass"

class BaseDuration(Enum):
    # Values are the tokens used by the editor's duration palette.
    WHOLE = "1/1"
    HALF = "1/2"
    QUARTER = "1/4"
    EIGHTH = "1/8"
    SIXTEENTH = "1/16"
    THIRTY_SECOND = "1/32"

    @property
    def fraction(self) -> Fraction:
        return _BASE_FRACTIONS[self]

_BASE_FRACTIONS = {
    BaseDuration.WHOLE: Fraction(1, 1),
    BaseDuration.HALF: Fraction(1, 2),
    BaseDuration.QUARTER: Fraction(1, 4),
    BaseDuration.EIGHTH: Fraction(1, 8),
    BaseDuration.SIXTEENTH: Fraction(1, 16),
    BaseDuration.THIRTY_SECOND: Fraction(1, 32),
}

DurationLike = Union[BaseDuration, str]

def as_base_duration(value: DurationLike) -> BaseDuration:
    """Accepts either a BaseDuration or its token ('1/8'). Unknown tokens raise ValueError."""
    if isinstance(value, BaseDuration):
        return value
    return BaseDuration(value)

@dataclass(frozen=True)
class Tuplet:
    """n notes in the time of `in_time_of` notes of the same base value."""
    n: int
    in_time_of: int

    def __post_init__(self):
        if self.n <= 0 or self.in_time_of <= 0:
            raise ValueError(f"Invalid tuplet {self.n}:{self.in_time_of}")

    @property
    def multiplier(self) -> Fraction:
        return Fraction(self.in_time_of, self.n)

    @property
    def label(self) -> str:
        return f"{self.n}:{self.in_time_of}"

    def __str__(self) -> str:
        return self.label

@dataclass(frozen=True)
class NoteEvent:
    """A note in a rhythm sequence. Either `pitch` or `string`/`fret` (or both) is set."""
    id: str
    duration: BaseDuration = BaseDuration.QUARTER
    dotted: bool = False
    tuplet: Optional[Tuplet] = None
    pitch: Optional[int] = None     # MIDI pitch number
    string: Optional[int] = None    # 0 (highest-pitched string) to num_strings-1
    fret: Optional[int] = None

    is_rest = False

@dataclass(frozen=True)
class RestEvent:
    id: str
    duration: BaseDuration = BaseDuration.QUARTER
    dotted: bool = False
    tuplet: Optional[Tuplet] = None

    is_rest = True

RhythmEvent = Union[NoteEvent, RestEvent]

@dataclass(frozen=True)
class ScoreNote:
    """A note already placed in the score model, as consumed by tab mapping."""
    id: str
    pitch: int
    start_tick: int = 0
    duration_ticks: int = 0
    velocity: int = 64

@dataclass(frozen=True)
class InstrumentDefinition:
    id: str
    name: str
    category: str = "generic"
    clef: Clef = Clef.TREBLE
    # Open-string MIDI pitches, index 0 is the highest-pitched string.
    # None means the instrument has no fretboard.
    strings: Optional[Tuple[int, ...]] = None

    @property
    def has_fretboard(self) -> bool:
        return bool(self.strings)

    @property
    def num_strings(self) -> int:
        return len(self.strings) if self.strings else 0

@dataclass(frozen=True)
class TabPosition:
    strings: Tuple[int, ...]
    frets: Tuple[int, ...]

    @classmethod
    def single(cls, string: int, fret: int) -> "TabPosition":
        return cls((string,), (fret,))

    def __str__(self):
        return " ".join(f"S{s}:F{f}" for s, f in zip(self.strings, self.frets))

@dataclass(frozen=True, order=True)
class HandPosition:
    """Where the fretting hand sits. Floats are allowed for chord centroids."""
    string: float
    fret: float

@dataclass
class TabContext:
    """
    Positional memory carried across a sequence of mapping calls.
    Owned by the caller; create one per independent sequence.
    """
    main_position: Optional[HandPosition] = None

    def reset(self):
        self.main_position = None
