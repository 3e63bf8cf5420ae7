from dataclasses import dataclass
from itertools import groupby
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from ..core.types import HandPosition, InstrumentDefinition, ScoreNote, TabContext, TabPosition
from ..core.config import MapperConfig

import logging

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Candidate:
    string: int
    fret: int
    score: float

Assignment = Tuple[Candidate, ...]

class TabMapper:
    """
    Assigns string/fret positions to pitches on a fretted instrument.

    Candidates are scored on fret height, distance from the middle strings
    and distance from the previous hand position held in a caller-owned
    TabContext. Chords are solved by an exhaustive search over
    string-disjoint assignments of each note's best candidates.
    """
    def __init__(self, config: Optional[MapperConfig] = None):
        self.config = config or MapperConfig()

    def _candidates(self, pitch: int, instrument: InstrumentDefinition, context: TabContext) -> List[Candidate]:
        strings = instrument.strings or ()
        candidates = []
        for string_idx, open_pitch in enumerate(strings):
            fret = pitch - open_pitch
            if 0 <= fret <= self.config.max_fret:
                candidates.append(Candidate(string_idx, fret, self._score(string_idx, fret, len(strings), context)))
        candidates.sort(key=lambda c: (c.score, c.fret))
        return candidates

    def _score(self, string_idx: int, fret: int, num_strings: int, context: TabContext) -> float:
        cfg = self.config
        middle = (num_strings - 1) / 2
        score = float(fret)
        score += abs(string_idx - middle) * cfg.string_center_penalty
        if string_idx == 0 or string_idx == num_strings - 1:
            score += cfg.string_extreme_penalty
        if cfg.sweet_spot_low <= fret <= cfg.sweet_spot_high:
            score -= cfg.sweet_spot_bonus
        position = context.main_position
        if position is not None:
            score += abs(fret - position.fret) * cfg.continuity_fret_penalty
            score += abs(string_idx - position.string) * cfg.continuity_string_penalty
        return score

    def _span_penalty(self, frets: Sequence[int]) -> float:
        cfg = self.config
        span = max(frets) - min(frets)
        if span <= cfg.comfortable_fret_span:
            return span * cfg.fret_span_penalty
        return (span - cfg.comfortable_fret_span) * cfg.wide_span_penalty + cfg.comfortable_fret_span * cfg.fret_span_penalty

    def _assignment_cost(self, assignment: Assignment, context: TabContext) -> float:
        frets = [c.fret for c in assignment]
        cost = sum(c.score for c in assignment) + self._span_penalty(frets)
        if context.main_position is not None:
            avg_fret = sum(frets) / len(frets)
            cost += abs(avg_fret - context.main_position.fret) * self.config.chord_movement_penalty
        return cost

    def map_note_to_tab(self, pitch: int, instrument: InstrumentDefinition, context: TabContext) -> Optional[TabPosition]:
        """Best single position for a pitch, or None if it cannot be played. Updates the context."""
        if not instrument.has_fretboard:
            return None
        candidates = self._candidates(pitch, instrument, context)
        if not candidates:
            logger.debug(f"Pitch {pitch} is unplayable on {instrument.id}.")
            return None
        best = candidates[0]
        context.main_position = HandPosition(best.string, best.fret)
        return TabPosition.single(best.string, best.fret)

    def _search(self, candidate_lists: List[List[Candidate]], context: TabContext) -> Optional[Assignment]:
        best: Optional[Assignment] = None
        best_cost = float('inf')
        chosen: List[Candidate] = []
        used_strings = set()

        def visit(index: int):
            nonlocal best, best_cost
            if index == len(candidate_lists):
                assignment = tuple(chosen)
                cost = self._assignment_cost(assignment, context)
                if cost < best_cost:
                    best, best_cost = assignment, cost
                return
            for candidate in candidate_lists[index]:
                if candidate.string in used_strings:
                    continue
                chosen.append(candidate)
                used_strings.add(candidate.string)
                visit(index + 1)
                used_strings.discard(candidate.string)
                chosen.pop()

        visit(0)
        logger.debug(f"best chord cost: {best_cost} {best}")
        return best

    @staticmethod
    def _greedy(candidate_lists: List[List[Candidate]]) -> List[Optional[Candidate]]:
        used_strings = set()
        picks: List[Optional[Candidate]] = []
        for candidates in candidate_lists:
            pick = next((c for c in candidates if c.string not in used_strings), None)
            if pick is not None:
                used_strings.add(pick.string)
            picks.append(pick)
        return picks

    def map_chord_to_tab(self, notes: Sequence[ScoreNote], instrument: InstrumentDefinition,
                         context: TabContext) -> Dict[str, TabPosition]:
        """
        Maps simultaneous notes to distinct strings.

        If there are more notes than strings only the highest-pitched notes are
        kept. Notes that cannot be played at all are left out of the result.
        """
        if not instrument.has_fretboard or not notes:
            return {}

        kept = list(notes)
        if len(kept) > instrument.num_strings:
            by_pitch = sorted(kept, key=lambda n: n.pitch, reverse=True)[:instrument.num_strings]
            kept_ids = {n.id for n in by_pitch}
            dropped = [n.id for n in kept if n.id not in kept_ids]
            logger.warning(f"Chord has {len(kept)} notes for {instrument.num_strings} strings; dropping {dropped}.")
            kept = [n for n in kept if n.id in kept_ids]

        playable: List[ScoreNote] = []
        candidate_lists: List[List[Candidate]] = []
        for note in kept:
            candidates = self._candidates(note.pitch, instrument, context)[:self.config.chord_candidates_per_note]
            if not candidates:
                logger.debug(f"Pitch {note.pitch} ({note.id}) is unplayable on {instrument.id}.")
                continue
            playable.append(note)
            candidate_lists.append(candidates)

        if not playable:
            return {}

        assignment = self._search(candidate_lists, context)
        if assignment is not None:
            picks: List[Optional[Candidate]] = list(assignment)
        else:
            logger.warning(f"No string-disjoint fingering for chord {[n.id for n in playable]}; using greedy assignment.")
            picks = self._greedy(candidate_lists)

        result: Dict[str, TabPosition] = {}
        placed: List[Candidate] = []
        for note, pick in zip(playable, picks):
            if pick is None:
                continue
            result[note.id] = TabPosition.single(pick.string, pick.fret)
            placed.append(pick)

        if placed:
            context.main_position = HandPosition(
                sum(c.string for c in placed) / len(placed),
                sum(c.fret for c in placed) / len(placed),
            )
        return result

    def map_events_to_tab_positions(self, notes: Iterable[ScoreNote], instrument: InstrumentDefinition,
                                    context: Optional[TabContext] = None) -> Dict[str, TabPosition]:
        """Maps a passage, chord by chord in tick order, through one shared context."""
        if not instrument.has_fretboard:
            return {}
        if context is None:
            context = TabContext()

        positions: Dict[str, TabPosition] = {}
        sorted_notes = sorted(notes, key=lambda n: n.start_tick)
        for tick, group_iter in groupby(sorted_notes, key=lambda n: n.start_tick):
            group = list(group_iter)
            if len(group) == 1:
                position = self.map_note_to_tab(group[0].pitch, instrument, context)
                if position is not None:
                    positions[group[0].id] = position
            else:
                positions.update(self.map_chord_to_tab(group, instrument, context))
        logger.debug(f"Mapped {len(positions)} notes on {instrument.id}.")
        return positions

_default_mapper = TabMapper()

def create_tab_context() -> TabContext:
    return TabContext()

def map_note_to_tab(pitch: int, instrument: InstrumentDefinition, context: TabContext) -> Optional[TabPosition]:
    return _default_mapper.map_note_to_tab(pitch, instrument, context)

def map_chord_to_tab(notes: Sequence[ScoreNote], instrument: InstrumentDefinition,
                     context: TabContext) -> Dict[str, TabPosition]:
    return _default_mapper.map_chord_to_tab(notes, instrument, context)

def map_events_to_tab_positions(notes: Iterable[ScoreNote], instrument: InstrumentDefinition) -> Dict[str, TabPosition]:
    return _default_mapper.map_events_to_tab_positions(notes, instrument)
