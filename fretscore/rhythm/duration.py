"""
Duration arithmetic: symbolic durations (base value, dot, tuplet) to exact
tick counts and back.

All intermediate values are exact fractions of a whole note; the only rounding
happens once, at the final conversion to ticks.
"""
import math
import logging
from fractions import Fraction
from typing import Optional, Tuple
from ..core.types import BaseDuration, DurationLike, TimeSignature, Tuplet, as_base_duration
from ..core.config import DEFAULT_TICKS_PER_WHOLE

logger = logging.getLogger(__name__)

DOT_FACTOR = Fraction(3, 2)

_FLAG_COUNTS = {
    BaseDuration.EIGHTH: 1,
    BaseDuration.SIXTEENTH: 2,
    BaseDuration.THIRTY_SECOND: 3,
}

def _check_resolution(ticks_per_whole: int):
    if ticks_per_whole <= 0:
        raise ValueError(f"ticks_per_whole must be positive, got {ticks_per_whole}")

def round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))

def parse_duration(base: DurationLike) -> Fraction:
    """'1/4' -> Fraction(1, 4). Unknown tokens raise ValueError."""
    return as_base_duration(base).fraction

def effective_duration(base: DurationLike, dotted: bool = False, tuplet: Optional[Tuplet] = None) -> Fraction:
    """Base x dot factor x tuplet factor, as a fraction of a whole note in lowest terms."""
    value = parse_duration(base)
    if dotted:
        value *= DOT_FACTOR
    if tuplet is not None:
        value *= tuplet.multiplier
    return value

def duration_to_ticks(base: DurationLike, dotted: bool = False, tuplet: Optional[Tuplet] = None,
                      ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> int:
    _check_resolution(ticks_per_whole)
    return round_half_up(effective_duration(base, dotted, tuplet) * ticks_per_whole)

def ticks_to_fraction(ticks: int, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> Fraction:
    """A tick count back to the canonical fraction of a whole note."""
    _check_resolution(ticks_per_whole)
    return Fraction(ticks, ticks_per_whole)

def format_duration_label(base: DurationLike, dotted: bool = False, tuplet: Optional[Tuplet] = None) -> str:
    parts = [as_base_duration(base).value]
    if dotted:
        parts.append("dot")
    if tuplet is not None:
        parts.append(tuplet.label)
    return " · ".join(parts)

def flag_count(base: DurationLike) -> int:
    """Flags drawn on an unbeamed stem. Depends on the base value only."""
    return _FLAG_COUNTS.get(as_base_duration(base), 0)

def is_beamable(base: DurationLike) -> bool:
    return flag_count(base) > 0

def measure_ticks(time_signature: TimeSignature, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> int:
    _check_resolution(ticks_per_whole)
    return round_half_up(Fraction(ticks_per_whole * time_signature.beats, time_signature.beat_unit))

def ticks_per_beat(time_signature: TimeSignature, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> Fraction:
    _check_resolution(ticks_per_whole)
    return Fraction(ticks_per_whole, time_signature.beat_unit)

def nearest_duration(ticks: int, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> Tuple[BaseDuration, bool]:
    """
    Finds the plain or dotted base value closest to a tick count.
    Ties go to the longer value.
    """
    _check_resolution(ticks_per_whole)
    target = Fraction(ticks, ticks_per_whole)
    candidates = []
    for base in BaseDuration:
        for dotted in (False, True):
            value = effective_duration(base, dotted)
            candidates.append((abs(value - target), -value, base, dotted))
    _, _, base, dotted = min(candidates, key=lambda c: (c[0], c[1]))
    return base, dotted

class DurationCalculator:
    """Duration arithmetic bound to one tick resolution."""

    def __init__(self, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE):
        _check_resolution(ticks_per_whole)
        self.ticks_per_whole = ticks_per_whole

    def to_ticks(self, base: DurationLike, dotted: bool = False, tuplet: Optional[Tuplet] = None) -> int:
        return duration_to_ticks(base, dotted, tuplet, self.ticks_per_whole)

    def to_fraction(self, ticks: int) -> Fraction:
        return ticks_to_fraction(ticks, self.ticks_per_whole)

    def measure_ticks(self, time_signature: TimeSignature) -> int:
        return measure_ticks(time_signature, self.ticks_per_whole)

    def ticks_per_beat(self, time_signature: TimeSignature) -> Fraction:
        return ticks_per_beat(time_signature, self.ticks_per_whole)

    def nearest_duration(self, ticks: int) -> Tuple[BaseDuration, bool]:
        return nearest_duration(ticks, self.ticks_per_whole)
