"""
Layout engine: turns an ordered rhythm sequence into positioned, beamed and
bracketed layout records for the renderer.

The layout is recomputed in full for every call; nothing is cached or
updated incrementally.
"""
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from fractions import Fraction
from typing import List, Optional, Sequence, Tuple
from ..core.types import InstrumentDefinition, NoteEvent, RhythmEvent, TimeSignature
from ..core.config import LayoutOptions
from ..core.theory import StaffPositioning, midi_to_pitch_info
from ..rhythm.duration import duration_to_ticks, effective_duration, flag_count, measure_ticks, ticks_per_beat

logger = logging.getLogger(__name__)

COMMON_TIME = TimeSignature(4, 4)

class StemDirection(Enum):
    UP = "up"
    DOWN = "down"

@dataclass(frozen=True)
class LayoutEvent:
    id: str
    start_tick: int
    duration_ticks: int
    x: float
    staff_y: float
    tab_y: Optional[float]
    stem_direction: StemDirection
    stem_length: float
    flags: int
    is_rest: bool
    beamed: bool = False
    tuplet_label: Optional[str] = None
    pitch: Optional[int] = None
    accidental: Optional[str] = None
    string: Optional[int] = None
    fret: Optional[int] = None
    onset: Fraction = Fraction(0)  # exact start, in whole notes

@dataclass(frozen=True)
class BeamSegment:
    level: int
    x_start: float
    x_end: float
    y: float

@dataclass(frozen=True)
class BeamGroup:
    id: str
    event_ids: Tuple[str, ...]
    segments: Tuple[BeamSegment, ...]

@dataclass(frozen=True)
class TupletBracket:
    id: str
    start_x: float
    end_x: float
    y: float
    label: str

@dataclass(frozen=True)
class LayoutResult:
    events: Tuple[LayoutEvent, ...]
    beam_groups: Tuple[BeamGroup, ...]
    tuplet_brackets: Tuple[TupletBracket, ...]
    measure_ticks: int
    ticks_per_beat: float
    total_ticks: int

    def event(self, event_id: str) -> LayoutEvent:
        for event in self.events:
            if event.id == event_id:
                return event
        raise KeyError(event_id)

def _resolve_pitch(event: NoteEvent, instrument: Optional[InstrumentDefinition]) -> Optional[int]:
    if event.pitch is not None:
        return event.pitch
    if event.string is None or event.fret is None or instrument is None or not instrument.strings:
        return None
    if 0 <= event.string < len(instrument.strings):
        return instrument.strings[event.string] + event.fret
    return None

def _stem_direction(staff_y: float, options: LayoutOptions) -> StemDirection:
    middle_line_y = options.staff_top + options.staff_line_spacing * 2
    return StemDirection.DOWN if staff_y < middle_line_y else StemDirection.UP

def _tab_y(string: int, string_count: int, options: LayoutOptions) -> float:
    clamped = min(max(string, 0), string_count - 1)
    return options.tab_top + clamped * options.tab_line_spacing

def _place_event(event: RhythmEvent, start_tick: int, onset: Fraction, duration_ticks: int, x: float,
                 positioning: StaffPositioning, string_count: int, instrument: Optional[InstrumentDefinition], options: LayoutOptions) -> LayoutEvent:
    middle_line_y = options.staff_top + options.staff_line_spacing * 2
    tuplet_label = event.tuplet.label if event.tuplet is not None else None

    if event.is_rest:
        return LayoutEvent(
            id=event.id,
            start_tick=start_tick,
            duration_ticks=duration_ticks,
            x=x,
            staff_y=middle_line_y,
            tab_y=options.tab_top + options.tab_line_spacing * (string_count - 1) / 2,
            stem_direction=_stem_direction(middle_line_y, options),
            stem_length=options.stem_length,
            flags=flag_count(event.duration),
            is_rest=True,
            tuplet_label=tuplet_label,
            onset=onset,
        )

    pitch = _resolve_pitch(event, instrument)
    if pitch is None:
        staff_y = middle_line_y
        accidental = None
    else:
        staff_y = positioning.pitch_to_y(pitch)
        accidental = midi_to_pitch_info(pitch).accidental
    tab_y = _tab_y(event.string, string_count, options) if event.string is not None else None

    return LayoutEvent(
        id=event.id,
        start_tick=start_tick,
        duration_ticks=duration_ticks,
        x=x,
        staff_y=staff_y,
        tab_y=tab_y,
        stem_direction=_stem_direction(staff_y, options),
        stem_length=options.stem_length,
        flags=flag_count(event.duration),
        is_rest=False,
        tuplet_label=tuplet_label,
        pitch=pitch,
        accidental=accidental,
        string=event.string,
        fret=event.fret,
        onset=onset,
    )

def _span_index(event: LayoutEvent, span_ticks: Fraction, ticks_per_whole: int) -> int:
    # Exact onsets, so rounded tuplet ticks never shift a note into the previous beat
    return math.floor(event.onset * ticks_per_whole / span_ticks)

def _beam_runs(events: Sequence[LayoutEvent], beat_ticks: Fraction, ticks_per_whole: int) -> List[List[int]]:
    """Maximal runs (as event indices) of flagged notes sharing one beat and one tuplet label."""
    runs: List[List[int]] = []
    current: List[int] = []
    current_beat = None
    for index, event in enumerate(events):
        if event.is_rest or event.flags == 0:
            if current:
                runs.append(current)
            current, current_beat = [], None
            continue
        beat = _span_index(event, beat_ticks, ticks_per_whole)
        if current and (beat != current_beat or event.tuplet_label != events[current[-1]].tuplet_label):
            runs.append(current)
            current = []
        current.append(index)
        current_beat = beat
    if current:
        runs.append(current)
    return runs

def _merge_half_bar_eighths(runs: List[List[int]], events: Sequence[LayoutEvent], beat_ticks: Fraction,
                            ticks_per_whole: int) -> List[List[int]]:
    """In 4/4, runs of plain eighths on adjacent beats of the same half bar share one beam."""
    half_bar = beat_ticks * 2
    merged: List[List[int]] = []
    for run in runs:
        if merged:
            previous = merged[-1]
            adjacent = previous[-1] + 1 == run[0]
            plain_eighths = all(events[i].flags == 1 and events[i].tuplet_label is None for i in previous + run)
            same_half = (_span_index(events[previous[0]], half_bar, ticks_per_whole)
                         == _span_index(events[run[-1]], half_bar, ticks_per_whole))
            if adjacent and plain_eighths and same_half:
                previous.extend(run)
                continue
        merged.append(list(run))
    return merged

def _beam_segment(members: Sequence[LayoutEvent], level: int, options: LayoutOptions) -> BeamSegment:
    first, last = members[0], members[-1]
    up = first.stem_direction == StemDirection.UP
    if up:
        stem_y = min(m.staff_y for m in members) - first.stem_length
        y = stem_y - (level - 1) * options.beam_spacing
    else:
        stem_y = max(m.staff_y for m in members) + first.stem_length
        y = stem_y + (level - 1) * options.beam_spacing
    if len(members) == 1:
        # Stub (half beam) for a lone note at this level
        x_end = first.x + (options.stub_length if up else -options.stub_length)
    else:
        x_end = last.x
    return BeamSegment(level=level, x_start=first.x, x_end=x_end, y=y)

def _segments_for_group(group: Sequence[LayoutEvent], options: LayoutOptions) -> List[BeamSegment]:
    segments: List[BeamSegment] = []
    max_flags = max(event.flags for event in group)
    for level in range(1, max_flags + 1):
        sub_run: List[LayoutEvent] = []
        for event in group:
            if event.flags >= level:
                sub_run.append(event)
            elif sub_run:
                segments.append(_beam_segment(sub_run, level, options))
                sub_run = []
        if sub_run:
            segments.append(_beam_segment(sub_run, level, options))
    return segments

def compute_beam_groups(events: Sequence[LayoutEvent], options: LayoutOptions) -> List[BeamGroup]:
    beat_ticks = ticks_per_beat(options.time_signature, options.ticks_per_whole)
    runs = _beam_runs(events, beat_ticks, options.ticks_per_whole)
    if options.half_bar_eighths and options.time_signature == COMMON_TIME:
        runs = _merge_half_bar_eighths(runs, events, beat_ticks, options.ticks_per_whole)

    groups = []
    for run in runs:
        if len(run) < 2:
            continue
        members = [events[i] for i in run]
        groups.append(BeamGroup(
            id=f"beam-{members[0].id}",
            event_ids=tuple(m.id for m in members),
            segments=tuple(_segments_for_group(members, options)),
        ))
    return groups

def build_tuplet_brackets(events: Sequence[LayoutEvent], options: LayoutOptions) -> List[TupletBracket]:
    brackets: List[TupletBracket] = []

    def close(run: List[LayoutEvent]):
        if len(run) < options.min_tuplet_bracket_size:
            return
        notes = [e for e in run if not e.is_rest] or run
        brackets.append(TupletBracket(
            id=f"tuplet-{run[0].tuplet_label}-{run[0].id}",
            start_x=run[0].x - options.tuplet_padding,
            end_x=run[-1].x + options.tuplet_padding,
            y=min(e.staff_y for e in notes) - options.tuplet_bracket_offset,
            label=run[0].tuplet_label,
        ))

    run: List[LayoutEvent] = []
    for event in events:
        if run and event.tuplet_label != run[0].tuplet_label:
            close(run)
            run = []
        if event.tuplet_label is not None:
            run.append(event)
    if run:
        close(run)
    return brackets

def compute_layout(events: Sequence[RhythmEvent], options: Optional[LayoutOptions] = None,
                   instrument: Optional[InstrumentDefinition] = None) -> LayoutResult:
    """
    Lays out a rhythm sequence.

    Start ticks are the running sum of the events' own durations in input
    order. Measures are allowed to overflow; keeping the input aligned to
    bars is the caller's job.

    Args:
        events: Notes and rests in temporal order.
        options: Timing and geometry. Defaults to LayoutOptions().
        instrument: Used to derive pitches of string/fret-only notes and the
            tab string count.
    """
    if options is None:
        options = LayoutOptions()
    bar_ticks = measure_ticks(options.time_signature, options.ticks_per_whole)
    beat_ticks = ticks_per_beat(options.time_signature, options.ticks_per_whole)
    string_count = instrument.num_strings if instrument is not None and instrument.has_fretboard else options.string_count
    positioning = StaffPositioning(
        clef=options.clef,
        bottom_line_y=options.staff_top + options.staff_line_spacing * 4,
        line_spacing=options.staff_line_spacing,
    )

    placed: List[LayoutEvent] = []
    cumulative_ticks = 0
    cumulative_onset = Fraction(0)
    for event in events:
        duration_ticks = duration_to_ticks(event.duration, event.dotted, event.tuplet, options.ticks_per_whole)
        start_tick, onset = cumulative_ticks, cumulative_onset
        cumulative_ticks += duration_ticks
        cumulative_onset += effective_duration(event.duration, event.dotted, event.tuplet)
        x = options.x_start + (start_tick / bar_ticks) * options.measure_width
        placed.append(_place_event(event, start_tick, onset, duration_ticks, x, positioning, string_count, instrument, options))

    beam_groups = compute_beam_groups(placed, options)
    beamed_ids = {event_id for group in beam_groups for event_id in group.event_ids}
    laid_out = [replace(event, beamed=event.id in beamed_ids) for event in placed]
    tuplet_brackets = build_tuplet_brackets(laid_out, options)

    logger.debug(f"Laid out {len(laid_out)} events, {len(beam_groups)} beam groups, "
                 f"{len(tuplet_brackets)} tuplet brackets over {cumulative_ticks} ticks.")

    return LayoutResult(
        events=tuple(laid_out),
        beam_groups=tuple(beam_groups),
        tuplet_brackets=tuple(tuplet_brackets),
        measure_ticks=bar_ticks,
        ticks_per_beat=float(beat_ticks),
        total_ticks=cumulative_ticks,
    )
