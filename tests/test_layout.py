"""Tests for layout: placement, stems, beams and tuplet brackets."""

from fractions import Fraction

import pytest

from fretscore.core.config import LayoutOptions
from fretscore.core.types import BaseDuration, NoteEvent, RestEvent, TimeSignature, Tuplet
from fretscore.guitar.instruments import get_instrument_by_id
from fretscore.layout.engine import StemDirection, compute_layout

EIGHTH = BaseDuration.EIGHTH
TRIPLET = Tuplet(3, 2)


def make_options(time_signature: TimeSignature = TimeSignature(4, 4)) -> LayoutOptions:
    # Bottom staff line at y=48, middle line at y=24
    return LayoutOptions(
        time_signature=time_signature,
        ticks_per_whole=1024,
        x_start=0.0,
        measure_width=200.0,
        staff_top=0.0,
        staff_line_spacing=12.0,
        tab_top=0.0,
        tab_line_spacing=10.0,
        stem_length=30.0,
    )


def eighths(*ids: str, pitch: int = 64):
    return [NoteEvent(id=i, duration=EIGHTH, pitch=pitch) for i in ids]


def test_start_ticks_are_a_running_sum() -> None:
    events = [
        NoteEvent("a", BaseDuration.QUARTER, pitch=64),
        NoteEvent("b", EIGHTH, dotted=True, pitch=64),
        NoteEvent("c", BaseDuration.SIXTEENTH, pitch=64),
        RestEvent("r", BaseDuration.HALF),
    ]
    result = compute_layout(events, make_options())
    assert [e.start_tick for e in result.events] == [0, 256, 448, 512]
    assert [e.duration_ticks for e in result.events] == [256, 192, 64, 512]
    assert result.total_ticks == 1024
    assert result.measure_ticks == 1024
    assert result.ticks_per_beat == 256.0
    assert [e.x for e in result.events] == [0.0, 50.0, 87.5, 100.0]


def test_empty_sequence() -> None:
    result = compute_layout([], make_options())
    assert result.events == ()
    assert result.beam_groups == ()
    assert result.tuplet_brackets == ()
    assert result.total_ticks == 0


def test_staff_y_and_stem_direction() -> None:
    events = [
        NoteEvent("e4", pitch=64),
        NoteEvent("f4", pitch=65),
        NoteEvent("c5", pitch=72),
        NoteEvent("c4", pitch=60),
        NoteEvent("b4", pitch=71),
    ]
    result = compute_layout(events, make_options())
    assert [e.staff_y for e in result.events] == [48, 42, 18, 60, 24]
    assert result.event("c5").stem_direction == StemDirection.DOWN
    assert result.event("c4").stem_direction == StemDirection.UP
    # The middle line itself takes an up stem
    assert result.event("b4").stem_direction == StemDirection.UP
    assert all(e.stem_length == 30.0 for e in result.events)


def test_sharps_are_reported() -> None:
    result = compute_layout([NoteEvent("cs", pitch=61)], make_options())
    assert result.event("cs").accidental == "#"
    assert result.event("cs").staff_y == compute_layout([NoteEvent("c", pitch=60)], make_options()).event("c").staff_y


def test_rest_sits_on_middle_lines() -> None:
    result = compute_layout([RestEvent("r")], make_options())
    rest = result.event("r")
    assert rest.is_rest
    assert rest.staff_y == 24
    assert rest.tab_y == 25.0


def test_tab_y_is_clamped_to_the_instrument_strings() -> None:
    events = [
        NoteEvent("s2", pitch=60, string=2, fret=5),
        NoteEvent("s9", pitch=60, string=9, fret=0),
        NoteEvent("none", pitch=60),
    ]
    result = compute_layout(events, make_options())
    assert result.event("s2").tab_y == 20
    assert result.event("s9").tab_y == 50
    assert result.event("none").tab_y is None

    bass = compute_layout(events, make_options(), get_instrument_by_id("bass-standard"))
    assert bass.event("s9").tab_y == 30


def test_pitch_is_derived_from_string_and_fret() -> None:
    guitar = get_instrument_by_id("guitar-standard")
    result = compute_layout([NoteEvent("b3", string=1, fret=0)], make_options(), guitar)
    assert result.event("b3").pitch == 59
    assert result.event("b3").staff_y == 66

    unknown = compute_layout([NoteEvent("x", string=1, fret=0)], make_options())
    assert unknown.event("x").pitch is None
    assert unknown.event("x").staff_y == 24


def test_flags() -> None:
    events = [
        NoteEvent("q", BaseDuration.QUARTER, pitch=64),
        NoteEvent("e", EIGHTH, pitch=64),
        NoteEvent("s", BaseDuration.SIXTEENTH, pitch=64),
        NoteEvent("t", BaseDuration.THIRTY_SECOND, pitch=64),
    ]
    result = compute_layout(events, make_options())
    assert [e.flags for e in result.events] == [0, 1, 2, 3]


def test_four_eighths_in_common_time_share_one_beam() -> None:
    result = compute_layout(eighths("n1", "n2", "n3", "n4"), make_options())
    assert len(result.beam_groups) == 1
    group = result.beam_groups[0]
    assert group.id == "beam-n1"
    assert group.event_ids == ("n1", "n2", "n3", "n4")
    assert all(e.beamed for e in result.events)


def test_eighths_beam_per_beat_outside_common_time() -> None:
    result = compute_layout(eighths("n1", "n2", "n3", "n4"), make_options(TimeSignature(3, 4)))
    assert [g.event_ids for g in result.beam_groups] == [("n1", "n2"), ("n3", "n4")]


def test_half_bar_eighth_beaming_can_be_disabled() -> None:
    options = make_options()
    options.half_bar_eighths = False
    result = compute_layout(eighths("n1", "n2", "n3", "n4"), options)
    assert [g.event_ids for g in result.beam_groups] == [("n1", "n2"), ("n3", "n4")]


def test_rest_breaks_a_beam() -> None:
    events = eighths("n1", "n2") + [RestEvent("r1", EIGHTH)] + eighths("n3")
    result = compute_layout(events, make_options())
    assert [g.event_ids for g in result.beam_groups] == [("n1", "n2")]
    assert not result.event("n3").beamed
    assert not result.event("r1").beamed


def test_beams_do_not_cross_the_half_bar() -> None:
    events = eighths("n1", "n2") + [RestEvent("r", EIGHTH)] + eighths("n3", "n4")
    result = compute_layout(events, make_options())
    assert [g.event_ids for g in result.beam_groups] == [("n1", "n2")]


def test_quarter_between_eighths_leaves_them_unbeamed() -> None:
    events = eighths("e1") + [NoteEvent("q", BaseDuration.QUARTER, pitch=64)] + eighths("e2", "e3")
    result = compute_layout(events, make_options())
    assert result.beam_groups == ()
    assert not any(e.beamed for e in result.events)


def test_secondary_beam_stub() -> None:
    events = [
        NoteEvent("d", EIGHTH, dotted=True, pitch=64),
        NoteEvent("s", BaseDuration.SIXTEENTH, pitch=64),
    ]
    result = compute_layout(events, make_options())
    assert len(result.beam_groups) == 1
    primary, secondary = result.beam_groups[0].segments
    assert (primary.level, primary.x_start, primary.x_end, primary.y) == (1, 0.0, 37.5, 18.0)
    assert (secondary.level, secondary.x_start, secondary.x_end, secondary.y) == (2, 37.5, 47.5, 12.0)


def test_down_stem_beams_hang_below() -> None:
    result = compute_layout(eighths("n1", "n2", pitch=72), make_options())
    (segment,) = result.beam_groups[0].segments
    assert segment.y == 18 + 30


def test_triplet_layout_and_bracket() -> None:
    events = [
        NoteEvent("t1", EIGHTH, tuplet=TRIPLET, pitch=64),
        NoteEvent("t2", EIGHTH, tuplet=TRIPLET, pitch=67),
        NoteEvent("t3", EIGHTH, tuplet=TRIPLET, pitch=72),
    ]
    result = compute_layout(events, make_options())
    assert [e.duration_ticks for e in result.events] == [85, 85, 85]
    assert [e.x for e in result.events] == pytest.approx([0.0, 16.6015625, 33.203125])
    assert all(e.tuplet_label == "3:2" for e in result.events)

    (bracket,) = result.tuplet_brackets
    assert bracket.id == "tuplet-3:2-t1"
    assert bracket.label == "3:2"
    assert bracket.start_x == pytest.approx(-8.0)
    assert bracket.end_x == pytest.approx(41.203125)
    assert bracket.y == pytest.approx(-28.0)

    assert [g.event_ids for g in result.beam_groups] == [("t1", "t2", "t3")]


def test_tuplet_boundary_breaks_beam() -> None:
    events = [NoteEvent(f"t{i}", EIGHTH, tuplet=TRIPLET, pitch=64) for i in range(1, 4)]
    events += eighths("p1")
    result = compute_layout(events, make_options())
    assert [g.event_ids for g in result.beam_groups] == [("t1", "t2", "t3")]
    assert not result.event("p1").beamed


def test_single_tuplet_member_gets_no_bracket() -> None:
    events = [NoteEvent("t1", BaseDuration.QUARTER, tuplet=TRIPLET, pitch=64), NoteEvent("q", pitch=64)]
    assert compute_layout(events, make_options()).tuplet_brackets == ()


def test_layout_is_recomputed_from_scratch() -> None:
    events = eighths("n1", "n2", "n3", "n4")
    first = compute_layout(events, make_options())
    second = compute_layout(events, make_options())
    assert first == second


def test_unknown_event_lookup_raises() -> None:
    result = compute_layout(eighths("n1"), make_options())
    with pytest.raises(KeyError):
        result.event("missing")


def test_triplet_beats_follow_exact_onsets() -> None:
    # Rounded triplet ticks put t4 at 255, one tick before the second beat
    events = [NoteEvent(f"t{i}", EIGHTH, tuplet=TRIPLET, pitch=64) for i in range(1, 7)]
    result = compute_layout(events, make_options())
    assert [e.start_tick for e in result.events] == [0, 85, 170, 255, 340, 425]
    assert result.event("t4").onset == Fraction(1, 4)
    assert [g.event_ids for g in result.beam_groups] == [("t1", "t2", "t3"), ("t4", "t5", "t6")]
    assert [b.id for b in result.tuplet_brackets] == ["tuplet-3:2-t1"]
