"""Unit tests for duration arithmetic."""

from fractions import Fraction

import pytest

from fretscore.core.types import BaseDuration, TimeSignature, Tuplet
from fretscore.rhythm.duration import (
    DurationCalculator,
    duration_to_ticks,
    effective_duration,
    flag_count,
    format_duration_label,
    is_beamable,
    measure_ticks,
    nearest_duration,
    parse_duration,
    ticks_per_beat,
    ticks_to_fraction,
)

TICKS_PER_WHOLE = 1024


def test_quarter_note_ticks() -> None:
    assert duration_to_ticks("1/4", False, None, TICKS_PER_WHOLE) == 256


def test_dotted_eighth_ticks() -> None:
    assert duration_to_ticks("1/8", True, None, TICKS_PER_WHOLE) == 192


def test_enum_and_token_are_interchangeable() -> None:
    assert duration_to_ticks(BaseDuration.SIXTEENTH, ticks_per_whole=TICKS_PER_WHOLE) == 64
    assert parse_duration(BaseDuration.HALF) == parse_duration("1/2") == Fraction(1, 2)


@pytest.mark.parametrize(
    "base, dotted, tuplet, expected",
    [
        ("1/8", False, Tuplet(3, 2), 85),
        ("1/16", False, Tuplet(5, 4), 51),
        ("1/4", True, Tuplet(3, 2), 256),
        ("1/1", False, None, 1024),
        ("1/32", True, None, 48),
    ],
)
def test_tuplet_and_dot_ticks(base, dotted, tuplet, expected) -> None:
    assert duration_to_ticks(base, dotted, tuplet, TICKS_PER_WHOLE) == expected


def test_triplets_are_exact_at_1920() -> None:
    assert duration_to_ticks("1/8", False, Tuplet(3, 2), 1920) == 160


def test_rounding_happens_once_and_half_up() -> None:
    # 1/8 of 100 ticks is 12.5
    assert duration_to_ticks("1/8", False, None, 100) == 13


def test_effective_duration_is_reduced() -> None:
    value = effective_duration("1/4", True, Tuplet(6, 4))
    assert (value.numerator, value.denominator) == (1, 4)
    assert effective_duration("1/8", True, None) == Fraction(3, 16)
    assert effective_duration("1/8", True, Tuplet(3, 2)) == Fraction(1, 8)


def test_unknown_duration_token_fails_fast() -> None:
    with pytest.raises(ValueError):
        duration_to_ticks("1/7", False, None, TICKS_PER_WHOLE)
    with pytest.raises(ValueError):
        flag_count("eighth")


def test_non_positive_resolution_is_rejected() -> None:
    with pytest.raises(ValueError):
        duration_to_ticks("1/4", False, None, 0)
    with pytest.raises(ValueError):
        DurationCalculator(-1024)


def test_invalid_tuplet_is_rejected() -> None:
    with pytest.raises(ValueError):
        Tuplet(0, 2)


def test_flag_counts() -> None:
    assert flag_count("1/1") == 0
    assert flag_count("1/2") == 0
    assert flag_count("1/4") == 0
    assert flag_count("1/8") == 1
    assert flag_count("1/16") == 2
    assert flag_count("1/32") == 3
    assert not is_beamable("1/4")
    assert is_beamable("1/16")


def test_format_duration_label() -> None:
    assert format_duration_label("1/4") == "1/4"
    assert format_duration_label("1/8", True, Tuplet(3, 2)) == "1/8 · dot · 3:2"


def test_measure_and_beat_ticks() -> None:
    assert measure_ticks(TimeSignature(4, 4), TICKS_PER_WHOLE) == 1024
    assert measure_ticks(TimeSignature(3, 4), TICKS_PER_WHOLE) == 768
    assert measure_ticks(TimeSignature(6, 8), TICKS_PER_WHOLE) == 768
    assert ticks_per_beat(TimeSignature(6, 8), TICKS_PER_WHOLE) == 128


def test_ticks_back_to_fraction() -> None:
    assert ticks_to_fraction(192, TICKS_PER_WHOLE) == Fraction(3, 16)
    assert ticks_to_fraction(256, TICKS_PER_WHOLE) == Fraction(1, 4)


def test_nearest_duration() -> None:
    assert nearest_duration(192, TICKS_PER_WHOLE) == (BaseDuration.EIGHTH, True)
    assert nearest_duration(250, TICKS_PER_WHOLE) == (BaseDuration.QUARTER, False)
    # 224 is halfway between a dotted eighth and a quarter; the longer value wins
    assert nearest_duration(224, TICKS_PER_WHOLE) == (BaseDuration.QUARTER, False)


def test_calculator_binds_resolution() -> None:
    calculator = DurationCalculator(1920)
    assert calculator.to_ticks("1/4") == 480
    assert calculator.to_fraction(480) == Fraction(1, 4)
    assert calculator.measure_ticks(TimeSignature(3, 4)) == 1440
