from argparse import ArgumentParser
from .core.config import DEFAULT_TICKS_PER_WHOLE, MapperConfig
from .guitar.instruments import instrument_ids

def setup_parser() -> ArgumentParser:
    """Configures and returns the argument parser for the command-line interface."""
    parser = ArgumentParser(description="Lay out rhythm events and map notes to tablature positions.")

    parser.add_argument('-i', '--input', help='Path to the input file (.json event list or .mid).')
    parser.add_argument('-o', '--output', help='Path to the output .json file. Writes to stdout if omitted.')
    parser.add_argument('-y', '--yes', action='store_true', help='Overwrite the output file if it exists.')
    parser.add_argument('--debug', action='store_true', help='Enable verbose debug logging.')
    parser.add_argument('--list-instruments', action='store_true', help='List the available instruments and exit.')

    score_group = parser.add_argument_group("Score Options")
    score_group.add_argument(
        '--instrument',
        type=str,
        default=None,
        choices=instrument_ids(),
        help='Instrument used for tab mapping. Overrides the "instrument" entry of a JSON input.'
    )
    score_group.add_argument(
        '--time-signature',
        type=str,
        default=None,
        help='Time signature such as 3/4. Overrides the input file.'
    )
    score_group.add_argument(
        '--ticks-per-whole',
        type=int,
        default=None,
        help=f'Tick resolution of a whole note (default: {DEFAULT_TICKS_PER_WHOLE}).'
    )
    score_group.add_argument(
        '--clef',
        type=str,
        default=None,
        choices=['treble', 'bass'],
        help="Clef for staff placement. Defaults to the instrument's clef."
    )
    score_group.add_argument(
        '--grid',
        type=str,
        default='1/16',
        help='Snap MIDI note starts to this note value (e.g. 1/16), or "0" to disable.'
    )
    score_group.add_argument(
        '--track',
        type=int,
        default=None,
        help='MIDI track number to read (1-based). Reads all tracks by default.'
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument('--no-layout', action='store_true', help='Skip the layout computation.')
    output_group.add_argument('--no-tab', action='store_true', help='Skip the tab mapping.')

    defaults = MapperConfig()
    mapper_group = parser.add_argument_group("Fretboard Mapper Tunables")
    mapper_group.add_argument('--max-fret', type=int, default=defaults.max_fret,
                              help=f'Highest fret on the neck (default: {defaults.max_fret}).')
    mapper_group.add_argument('--string-center-penalty', type=float, default=defaults.string_center_penalty,
                              help='Penalty per string of distance from the middle string.')
    mapper_group.add_argument('--string-extreme-penalty', type=float, default=defaults.string_extreme_penalty,
                              help='Extra penalty for the highest and lowest strings.')
    mapper_group.add_argument('--continuity-fret-penalty', type=float, default=defaults.continuity_fret_penalty,
                              help='Penalty per fret of distance from the previous hand position.')
    mapper_group.add_argument('--continuity-string-penalty', type=float, default=defaults.continuity_string_penalty,
                              help='Penalty per string of distance from the previous hand position.')
    mapper_group.add_argument('--sweet-spot-low', type=int, default=defaults.sweet_spot_low,
                              help='Lowest fret of the preferred neck region.')
    mapper_group.add_argument('--sweet-spot-high', type=int, default=defaults.sweet_spot_high,
                              help='Highest fret of the preferred neck region.')
    mapper_group.add_argument('--sweet-spot-bonus', type=float, default=defaults.sweet_spot_bonus,
                              help='Score bonus for frets inside the preferred region.')
    mapper_group.add_argument('--fret-span-penalty', type=float, default=defaults.fret_span_penalty,
                              help='Chord penalty per fret of stretch within the comfortable span.')
    mapper_group.add_argument('--comfortable-fret-span', type=int, default=defaults.comfortable_fret_span,
                              help='Widest chord stretch before the steep penalty applies.')
    mapper_group.add_argument('--wide-span-penalty', type=float, default=defaults.wide_span_penalty,
                              help='Chord penalty per fret beyond the comfortable span.')
    mapper_group.add_argument('--chord-movement-penalty', type=float, default=defaults.chord_movement_penalty,
                              help='Chord penalty per fret of movement from the previous hand position.')

    return parser
