#!/usr/bin/env python3
"""
Chord Counter - command line entry point

Commands:
    count_chords (cc)   Count chord usage across downloaded song files
    get_all (a)         Download all saved tabs from Ultimate Guitar

Examples:
    chord-counter get_all --user me@example.com --output ./out
    chord-counter count_chords --input ./out --output chord_stats.txt
    chord-counter cc --input songs/ --ext .crd .pro --top 20 --format json
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .aggregator import filter_entries
from .config import DEFAULT_OUTPUT, load_config
from .corpus import iter_corpus, scan_corpus
from .extractor import canonicalize
from .fetch import FetchError, fetch_all_tabs, write_tabs
from .report import FORMATS, format_report, write_report

DEFAULT_FETCH_OUTPUT = './out'


def _exclusion_keys(chords: List[str]) -> List[str]:
    """
    Report keys for --exclude chord names.

    A name is normalized only when normalizing keeps every character
    (g/b -> G/B, CMaj7 -> Cmaj7). Anything else, like G6, is matched
    as written so it can't knock out G.
    """
    keys = []
    for chord in chords:
        chord = chord.strip()
        if not chord:
            continue
        key = canonicalize(chord)
        if key and key.lower() == chord.lower():
            keys.append(key)
        else:
            print(f"Warning: {chord!r} is not a recognized chord name; excluding it as written",
                  file=sys.stderr)
            keys.append(chord)
    return keys


def _verbosity(args: argparse.Namespace) -> int:
    if getattr(args, 'debug', False):
        return max(args.verbose, 2)
    return args.verbose


def count_chords_command(args: argparse.Namespace) -> int:
    """Count chords in every song file and write the statistics report"""
    verbose = _verbosity(args)

    try:
        config = load_config(args.config).merged(
            input_dir=args.input,
            output=args.output,
            extensions=args.ext,
            format=args.format,
            top=args.top,
            min_count=args.min_count,
            exclude=args.exclude,
            workers=args.workers,
        )
    except (OSError, ValueError) as e:
        print(f"Error: could not load config: {e}", file=sys.stderr)
        return 1

    if verbose >= 1:
        print(f"Input directory: {config.input_dir}", file=sys.stderr)
        print(f"Extensions: {', '.join(config.extensions)}", file=sys.stderr)
        if config.workers > 1:
            print(f"Using {config.workers} worker threads", file=sys.stderr)

    def print_progress(current: int, total: int, source) -> None:
        print(f"[{current}/{total}] {Path(source).name}", file=sys.stderr)

    try:
        corpus = list(iter_corpus(config.input_dir, config.extensions))
        if verbose >= 1:
            print(f"Found {len(corpus)} song files", file=sys.stderr)
        table = scan_corpus(
            corpus,
            workers=config.workers,
            progress=print_progress if verbose >= 2 else None,
        )
    except OSError as e:
        print(f"Error walking through input directory: {e}", file=sys.stderr)
        return 1

    excluded = _exclusion_keys(config.exclude)
    entries = filter_entries(
        table.ranked(),
        min_count=config.min_count,
        exclude=excluded,
        top=config.top,
    )

    if verbose >= 1:
        print(f"Counted {table.total} chords ({len(table)} distinct)", file=sys.stderr)

    try:
        output_path = write_report(config.output, format_report(entries, config.format))
    except OSError as e:
        print(f"Error writing to output file {config.output}: {e}", file=sys.stderr)
        return 1

    print(f"Chord statistics written to {output_path}")
    return 0


def get_all_command(args: argparse.Namespace) -> int:
    """Log in to Ultimate Guitar and save every saved tab as a .crd file"""
    verbose = _verbosity(args)

    user = args.user
    try:
        if not user:
            user = input("Username: ").strip()
        password = getpass.getpass("Password: ").strip()
    except (EOFError, KeyboardInterrupt) as e:
        print(f"\nError reading credentials: {e!r}", file=sys.stderr)
        return 1

    try:
        tabs = fetch_all_tabs(user, password)
    except FetchError as e:
        print(f"Error fetching tabs: {e}", file=sys.stderr)
        return 1

    if verbose >= 1:
        print(f"Fetched {len(tabs)} tabs", file=sys.stderr)

    output_dir = Path(args.output).resolve()
    try:
        written = write_tabs(output_dir, tabs)
    except (OSError, ValueError) as e:
        print(f"Error writing tabs: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {written} tabs to {output_dir}")
    return 0


def _add_logging_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (use -vv for per-file progress)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug output (same as -vv)'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chord-counter',
        description='Download chord charts and analyze chord usage',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s get_all --user me@example.com          # Download saved tabs to ./out
  %(prog)s count_chords                           # Count chords in ./out/*.crd
  %(prog)s cc --input songs/ --top 10             # Top 10 chords in songs/
  %(prog)s cc --config chords.yaml --format csv   # Settings from a YAML file
        '''
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    count = subparsers.add_parser(
        'count_chords',
        aliases=['cc'],
        help='Counts the appearance and frequency of chords in all songs',
        description='Analyzes all song files in the input directory and '
                    'generates a statistics report of chord usage.',
    )
    count.add_argument(
        '--input',
        metavar='DIR',
        help='Input directory (default: ./out)'
    )
    count.add_argument(
        '--output',
        metavar='FILE',
        help=f'Output file path (default: {DEFAULT_OUTPUT})'
    )
    count.add_argument(
        '-c', '--config',
        metavar='FILE',
        help='YAML file with count settings; flags override it'
    )
    count.add_argument(
        '-f', '--format',
        choices=FORMATS,
        help='Output format (default: text)'
    )
    count.add_argument(
        '-t', '--top',
        type=int,
        metavar='N',
        help='Only report the N most common chords'
    )
    count.add_argument(
        '--min-count',
        type=int,
        metavar='COUNT',
        help='Minimum count threshold to include chord (default: 1)'
    )
    count.add_argument(
        '--exclude',
        nargs='+',
        metavar='CHORD',
        help='Chords to exclude from the report (space-separated)'
    )
    count.add_argument(
        '--ext',
        nargs='+',
        metavar='EXT',
        help='Song file extensions to scan (default: .crd)'
    )
    count.add_argument(
        '-w', '--workers',
        type=int,
        metavar='N',
        help='Scan files with N worker threads (default: 1)'
    )
    _add_logging_flags(count)
    count.set_defaults(func=count_chords_command)

    fetch = subparsers.add_parser(
        'get_all',
        aliases=['a'],
        help='Fetches all saved tabs/songs for Ultimate Guitar. Requires you to login.',
        description='Fetches all saved tabs/songs for Ultimate Guitar. Requires you to login.',
    )
    fetch.add_argument(
        '--user',
        metavar='EMAIL',
        help='Ultimate Guitar username (prompted if omitted)'
    )
    fetch.add_argument(
        '--output',
        default=DEFAULT_FETCH_OUTPUT,
        metavar='DIR',
        help=f'Output directory (default: {DEFAULT_FETCH_OUTPUT})'
    )
    _add_logging_flags(fetch)
    fetch.set_defaults(func=get_all_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'func', None):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
