import math
from enum import Enum
from fractions import Fraction
from typing import Optional
from ..core.types import DurationLike, Tuplet
from ..core.config import DEFAULT_TICKS_PER_WHOLE
from .duration import duration_to_ticks

class RoundingPolicy(Enum):
    HALF_UP = "half-up"      # ties move toward +infinity
    HALF_EVEN = "half-even"  # ties go to the even multiple

ROUNDING_POLICY = RoundingPolicy.HALF_UP

def quantize_tick(tick: int, grid: int, policy: RoundingPolicy = ROUNDING_POLICY) -> int:
    """
    Snaps a tick to the nearest multiple of `grid`.
    A grid of zero or less means no quantization and returns the tick unchanged.
    """
    if grid <= 0:
        return tick
    steps = Fraction(tick) / grid
    if policy == RoundingPolicy.HALF_EVEN:
        return round(steps) * grid
    return math.floor(steps + Fraction(1, 2)) * grid

def grid_for_duration(base: DurationLike, dotted: bool = False, tuplet: Optional[Tuplet] = None,
                      ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> int:
    """The snapping grid matching the currently selected note value."""
    return duration_to_ticks(base, dotted, tuplet, ticks_per_whole)
