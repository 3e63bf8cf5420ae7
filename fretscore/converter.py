from .core.types import Clef, TimeSignature
from .core.config import DEFAULT_TICKS_PER_WHOLE, LayoutOptions, MapperConfig
from .formats.events import EventDocument, parse_event_document
from .formats.mid.reader import MidiReader
from .guitar.instruments import INSTRUMENTS, get_instrument_by_id
from .guitar.mapper import TabMapper
from .layout.engine import compute_layout
from .rhythm.quantize import grid_for_duration
from .rhythm.transcribe import notes_to_rhythm_events
from .utils.io import dump_json, load_json_file, save_text_file
from .arguments import setup_parser
from .utils.logger import setup_logger
from argparse import Namespace
from typing import List, Optional
from pathlib import Path
import logging
import sys

logger = logging.getLogger(__name__)

DEFAULT_INSTRUMENT = "guitar-standard"
MIDI_SUFFIXES = {'.mid', '.midi'}

def parse_grid(token: str, ticks_per_whole: int) -> int:
    """'1/16' -> grid in ticks, a bare integer is taken as ticks, '0' disables snapping."""
    token = token.strip()
    if token.isdigit():
        return int(token)
    return grid_for_duration(token, ticks_per_whole=ticks_per_whole)

def mapper_config_from_args(args: Namespace) -> MapperConfig:
    return MapperConfig(
        max_fret=args.max_fret,
        string_center_penalty=args.string_center_penalty,
        string_extreme_penalty=args.string_extreme_penalty,
        continuity_fret_penalty=args.continuity_fret_penalty,
        continuity_string_penalty=args.continuity_string_penalty,
        sweet_spot_low=args.sweet_spot_low,
        sweet_spot_high=args.sweet_spot_high,
        sweet_spot_bonus=args.sweet_spot_bonus,
        fret_span_penalty=args.fret_span_penalty,
        comfortable_fret_span=args.comfortable_fret_span,
        wide_span_penalty=args.wide_span_penalty,
        chord_movement_penalty=args.chord_movement_penalty,
    )

def load_document(args: Namespace) -> EventDocument:
    input_path = Path(args.input)
    ticks_per_whole = args.ticks_per_whole or DEFAULT_TICKS_PER_WHOLE
    if input_path.suffix.lower() in MIDI_SUFFIXES:
        grid = parse_grid(args.grid, ticks_per_whole)
        logger.info(f"--- Reading MIDI file {input_path} (grid: {grid} ticks) ---")
        imported = MidiReader.parse(str(input_path), args.track, ticks_per_whole=ticks_per_whole, grid=grid)
        # Rhythm events are built after tab mapping so they can carry string/fret
        return EventDocument(
            events=[],
            notes=imported.notes,
            time_signature=imported.time_signature,
            ticks_per_whole=ticks_per_whole,
        )

    logger.info(f"--- Reading event list {input_path} ---")
    document = parse_event_document(load_json_file(str(input_path)))
    if args.ticks_per_whole:
        document.ticks_per_whole = args.ticks_per_whole
    return document

def run(args: Namespace) -> dict:
    """Loads the input, maps tab positions and computes the layout. Returns the output document."""
    document = load_document(args)
    if args.time_signature:
        document.time_signature = TimeSignature.parse(args.time_signature)

    instrument = get_instrument_by_id(args.instrument or document.instrument_id or DEFAULT_INSTRUMENT)
    logger.info(f"Instrument: {instrument.name}")

    tab = {}
    if not args.no_tab:
        if instrument.has_fretboard:
            mapper = TabMapper(config=mapper_config_from_args(args))
            tab = mapper.map_events_to_tab_positions(document.notes, instrument)
            unplayable = len(document.notes) - len(tab)
            logger.info(f"--- Mapped {len(tab)} notes to tab positions ---")
            if unplayable > 0:
                logger.info(f"{unplayable} note(s) have no tab position on {instrument.name}.")
        else:
            logger.info(f"{instrument.name} has no fretboard; skipping tab mapping.")

    if not document.events and document.notes:
        document.events = notes_to_rhythm_events(document.notes, document.ticks_per_whole, tab)

    output = {
        "instrument": instrument.id,
        "time_signature": str(document.time_signature),
        "ticks_per_whole": document.ticks_per_whole,
        "tab": tab,
    }

    if not args.no_layout:
        clef = Clef(args.clef) if args.clef else (document.clef or instrument.clef)
        options = LayoutOptions(
            time_signature=document.time_signature,
            ticks_per_whole=document.ticks_per_whole,
            clef=clef,
        )
        layout = compute_layout(document.events, options, instrument)
        logger.info(f"--- Laid out {len(layout.events)} events over {layout.total_ticks} ticks ---")
        output["layout"] = layout

    return output

def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_parser()
    args = parser.parse_args(argv)

    setup_logger(logging.DEBUG if args.debug else logging.INFO)

    if args.list_instruments:
        for instrument in INSTRUMENTS:
            strings = ", ".join(str(p) for p in instrument.strings) if instrument.strings else "no fretboard"
            print(f"- {instrument.id}: {instrument.name} ({strings})")
        return 0

    if not args.input:
        parser.error("the following arguments are required: -i/--input")

    if args.output and Path(args.output).exists() and not args.yes:
        logger.error(f"Error: Output file '{args.output}' already exists.")
        logger.error("Use the -y or --yes flag to allow overwriting.")
        return 1

    try:
        content = dump_json(run(args))
        if args.output:
            save_text_file(content, args.output)
        else:
            print(content)
    except Exception as e:
        logger.error(f"An error occurred: {e}", exc_info=args.debug)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
