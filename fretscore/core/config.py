from dataclasses import dataclass, field
from .types import Clef, TimeSignature

DEFAULT_TICKS_PER_WHOLE = 1024

@dataclass
class MapperConfig:
    """Holds all tunable parameters for the TabMapper's scoring algorithm."""
    # Single-note candidate score
    string_center_penalty: float = 0.35
    string_extreme_penalty: float = 0.4
    continuity_fret_penalty: float = 0.7
    continuity_string_penalty: float = 0.5

    # Sweet spot: frets in this window get a bonus subtracted from their score
    sweet_spot_low: int = 5
    sweet_spot_high: int = 12
    sweet_spot_bonus: float = 4.0

    # Chord search
    chord_candidates_per_note: int = 4
    fret_span_penalty: float = 1.25
    comfortable_fret_span: int = 5
    wide_span_penalty: float = 3.0
    chord_movement_penalty: float = 0.5

    # Instrument properties
    max_fret: int = 24

    def __post_init__(self):
        if self.max_fret < 0:
            raise ValueError(f"max_fret must be >= 0, got {self.max_fret}")
        if self.chord_candidates_per_note < 1:
            raise ValueError("chord_candidates_per_note must be >= 1")

@dataclass
class LayoutOptions:
    """Geometry and timing parameters for compute_layout. Units are arbitrary drawing units."""
    time_signature: TimeSignature = field(default_factory=TimeSignature)
    ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE
    x_start: float = 0.0
    measure_width: float = 240.0
    staff_top: float = 50.0
    staff_line_spacing: float = 12.0
    tab_top: float = 130.0
    tab_line_spacing: float = 10.0
    stem_length: float = 30.0
    clef: Clef = Clef.TREBLE
    string_count: int = 6

    # Beams
    beam_spacing: float = 6.0
    stub_length: float = 10.0
    half_bar_eighths: bool = True

    # Tuplet brackets
    tuplet_padding: float = 8.0
    tuplet_bracket_offset: float = 46.0
    min_tuplet_bracket_size: int = 2

    def __post_init__(self):
        if self.ticks_per_whole <= 0:
            raise ValueError(f"ticks_per_whole must be positive, got {self.ticks_per_whole}")
        if self.string_count <= 0:
            raise ValueError(f"string_count must be positive, got {self.string_count}")

@dataclass
class StaffGeometryConfig:
    """Page geometry for multi-system score views."""
    staff_top: float = 50.0
    staff_line_spacing: float = 12.0
    tab_top: float = 130.0
    tab_line_spacing: float = 10.0
    measure_width: float = 240.0
    margin_left: float = 80.0
    margin_top: float = 20.0
    measures_per_system: int = 3
    system_padding_bottom: float = 40.0
