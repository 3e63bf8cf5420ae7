from fretscore.core.config import LayoutOptions
from fretscore.core.types import BaseDuration, NoteEvent, RestEvent, ScoreNote, TabPosition
from fretscore.layout.engine import compute_layout
from fretscore.rhythm.transcribe import fill_ticks, notes_to_rhythm_events


def test_fill_ticks_uses_longest_values_first() -> None:
    assert fill_ticks(1024) == [(BaseDuration.WHOLE, False)]
    assert fill_ticks(448) == [(BaseDuration.QUARTER, True), (BaseDuration.SIXTEENTH, False)]
    assert fill_ticks(0) == []


def test_gaps_become_rests() -> None:
    notes = [
        ScoreNote(id="a", pitch=60, start_tick=0, duration_ticks=256),
        ScoreNote(id="b", pitch=64, start_tick=512, duration_ticks=256),
    ]
    events = notes_to_rhythm_events(notes, 1024)
    assert events == [
        NoteEvent(id="a", duration=BaseDuration.QUARTER, pitch=60),
        RestEvent(id="rest-1", duration=BaseDuration.QUARTER),
        NoteEvent(id="b", duration=BaseDuration.QUARTER, pitch=64),
    ]


def test_chords_keep_the_top_note_and_tab() -> None:
    notes = [
        ScoreNote(id="low", pitch=60, start_tick=0, duration_ticks=128),
        ScoreNote(id="high", pitch=67, start_tick=0, duration_ticks=128),
    ]
    tab = {"high": TabPosition.single(0, 3), "low": TabPosition.single(2, 5)}
    (event,) = notes_to_rhythm_events(notes, 1024, tab)
    assert event.id == "high"
    assert event.duration == BaseDuration.EIGHTH
    assert (event.string, event.fret) == (0, 3)


def test_overlapping_note_is_cut_at_next_onset() -> None:
    notes = [
        ScoreNote(id="a", pitch=60, start_tick=0, duration_ticks=1024),
        ScoreNote(id="b", pitch=62, start_tick=128, duration_ticks=0),
    ]
    events = notes_to_rhythm_events(notes, 1024)
    assert [e.duration for e in events] == [BaseDuration.EIGHTH, BaseDuration.THIRTY_SECOND]


def test_laid_out_starts_match_onsets() -> None:
    notes = [
        ScoreNote(id="a", pitch=60, start_tick=0, duration_ticks=320),
        ScoreNote(id="b", pitch=62, start_tick=320, duration_ticks=320),
        ScoreNote(id="c", pitch=64, start_tick=640, duration_ticks=256),
    ]
    events = notes_to_rhythm_events(notes, 1024)
    assert events[:2] == [
        NoteEvent(id="a", duration=BaseDuration.QUARTER, pitch=60),
        RestEvent(id="rest-1", duration=BaseDuration.SIXTEENTH),
    ]
    layout = compute_layout(events, LayoutOptions(ticks_per_whole=1024))
    starts = {e.id: e.start_tick for e in layout.events if not e.is_rest}
    assert starts == {"a": 0, "b": 320, "c": 640}
