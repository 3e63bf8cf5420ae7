from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from ..core.types import Clef, NoteEvent, RestEvent, RhythmEvent, ScoreNote, TimeSignature, Tuplet, as_base_duration
from ..core.config import DEFAULT_TICKS_PER_WHOLE
from ..core.theory import note_name_to_pitch
from ..rhythm.duration import duration_to_ticks

import logging

logger = logging.getLogger(__name__)

@dataclass
class EventDocument:
    """A rhythm sequence plus the settings it was written against."""
    events: List[RhythmEvent] = field(default_factory=list)
    notes: List[ScoreNote] = field(default_factory=list)
    time_signature: TimeSignature = field(default_factory=TimeSignature)
    ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE
    clef: Optional[Clef] = None
    instrument_id: Optional[str] = None

def parse_tuplet(raw: Any) -> Optional[Tuplet]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return Tuplet(int(raw["n"]), int(raw["in_time_of"]))
    n, in_time_of = raw
    return Tuplet(int(n), int(in_time_of))

def parse_pitch(raw: Any) -> Optional[int]:
    """A MIDI number or a note name such as "E4". Anything else raises ValueError."""
    if raw is None:
        return None
    if isinstance(raw, str):
        text = raw.strip()
        return int(text) if text.lstrip("-").isdigit() else note_name_to_pitch(text)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or int(raw) != raw:
        raise ValueError(f"Invalid pitch: {raw!r}")
    return int(raw)

def parse_event(raw: Dict[str, Any]) -> RhythmEvent:
    """
    Builds a NoteEvent or RestEvent from a plain dict.

    Raises:
        ValueError: On an unknown event type or duration token.
        KeyError: If the event has no id.
    """
    event_type = raw.get("type", "note")
    duration = as_base_duration(raw.get("duration", "1/4"))
    dotted = bool(raw.get("dotted", False))
    tuplet = parse_tuplet(raw.get("tuplet"))
    if event_type == "rest":
        return RestEvent(id=str(raw["id"]), duration=duration, dotted=dotted, tuplet=tuplet)
    if event_type != "note":
        raise ValueError(f"Unknown event type '{event_type}' for event {raw.get('id')}")
    return NoteEvent(
        id=str(raw["id"]),
        duration=duration,
        dotted=dotted,
        tuplet=tuplet,
        pitch=parse_pitch(raw.get("pitch")),
        string=raw.get("string"),
        fret=raw.get("fret"),
    )

def score_notes_from_events(raw_events: List[Dict[str, Any]], events: List[RhythmEvent],
                            ticks_per_whole: int) -> List[ScoreNote]:
    """Placed notes for tab mapping: explicit start ticks win over the running sum."""
    notes = []
    cursor = 0
    for raw, event in zip(raw_events, events):
        ticks = duration_to_ticks(event.duration, event.dotted, event.tuplet, ticks_per_whole)
        if not event.is_rest and event.pitch is not None:
            start = int(raw.get("start_tick", cursor))
            notes.append(ScoreNote(id=event.id, pitch=event.pitch, start_tick=start, duration_ticks=ticks))
        cursor += ticks
    return notes

def parse_event_document(data: Dict[str, Any]) -> EventDocument:
    ticks_per_whole = int(data.get("ticks_per_whole", DEFAULT_TICKS_PER_WHOLE))
    if ticks_per_whole <= 0:
        raise ValueError(f"ticks_per_whole must be positive, got {ticks_per_whole}")

    raw_events = data.get("events", [])
    events = [parse_event(raw) for raw in raw_events]

    if "notes" in data:
        notes = [
            ScoreNote(
                id=str(raw["id"]),
                pitch=parse_pitch(raw["pitch"]),
                start_tick=int(raw.get("start_tick", 0)),
                duration_ticks=int(raw.get("duration_ticks", 0)),
            )
            for raw in data["notes"]
        ]
    else:
        notes = score_notes_from_events(raw_events, events, ticks_per_whole)

    clef = data.get("clef")
    document = EventDocument(
        events=events,
        notes=notes,
        time_signature=TimeSignature.parse(data.get("time_signature", "4/4")),
        ticks_per_whole=ticks_per_whole,
        clef=Clef(clef) if clef else None,
        instrument_id=data.get("instrument"),
    )
    logger.debug(f"Loaded {len(events)} rhythm events and {len(notes)} notes.")
    return document
