from itertools import groupby
from typing import Dict, List, Optional, Sequence, Tuple
from ..core.types import BaseDuration, NoteEvent, RestEvent, RhythmEvent, ScoreNote, TabPosition
from ..core.config import DEFAULT_TICKS_PER_WHOLE
from .duration import duration_to_ticks, nearest_duration

import logging

logger = logging.getLogger(__name__)

def fill_ticks(ticks: int, ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE) -> List[Tuple[BaseDuration, bool]]:
    """
    Splits a span of ticks into the fewest plain or dotted values, longest first.
    A remainder shorter than a thirty-second note is dropped.
    """
    values = sorted(
        ((duration_to_ticks(base, dotted, None, ticks_per_whole), base, dotted)
         for base in BaseDuration for dotted in (False, True)),
        key=lambda v: v[0],
        reverse=True,
    )
    pieces = []
    remaining = ticks
    for value_ticks, base, dotted in values:
        while value_ticks > 0 and remaining >= value_ticks:
            pieces.append((base, dotted))
            remaining -= value_ticks
    if remaining:
        logger.debug(f"Dropped {remaining} ticks that do not fit a notated value.")
    return pieces

def notes_to_rhythm_events(notes: Sequence[ScoreNote], ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE,
                           tab: Optional[Dict[str, TabPosition]] = None) -> List[RhythmEvent]:
    """
    Converts placed score notes into a single-voice rhythm sequence for layout.

    Simultaneous notes are reduced to their highest pitch. Each note takes the
    longest notated value that ends by the next onset, and whatever is left
    before that onset becomes rests, so laid-out start ticks match the onsets.
    The last note takes the value closest to its own length.
    """
    tab = tab or {}
    sorted_notes = sorted(notes, key=lambda n: (n.start_tick, -n.pitch))
    onsets = [list(group) for _, group in groupby(sorted_notes, key=lambda n: n.start_tick)]

    events: List[RhythmEvent] = []
    cursor = 0
    rest_count = 0
    for index, group in enumerate(onsets):
        top = group[0]
        gap = top.start_tick - cursor
        for base, dotted in fill_ticks(gap, ticks_per_whole) if gap > 0 else []:
            rest_count += 1
            events.append(RestEvent(id=f"rest-{rest_count}", duration=base, dotted=dotted))
            cursor += duration_to_ticks(base, dotted, None, ticks_per_whole)

        length = max(n.duration_ticks for n in group)
        fitting = []
        if index + 1 < len(onsets):
            inter_onset = onsets[index + 1][0].start_tick - top.start_tick
            length = min(length, inter_onset) if length > 0 else inter_onset
            # Never run past the next onset; what is left over becomes rests
            fitting = fill_ticks(length, ticks_per_whole)
        if fitting:
            base, dotted = fitting[0]
        else:
            base, dotted = nearest_duration(max(length, 1), ticks_per_whole)

        position = tab.get(top.id)
        events.append(NoteEvent(
            id=top.id,
            duration=base,
            dotted=dotted,
            pitch=top.pitch,
            string=position.strings[0] if position else None,
            fret=position.frets[0] if position else None,
        ))
        cursor = max(cursor, top.start_tick) + duration_to_ticks(base, dotted, None, ticks_per_whole)
    return events
