"""
Chord Counter - Chord usage statistics for chord chart collections

This package finds chord names in plain-text song files, normalizes
them, and reports how often each chord is used.
"""

__version__ = "0.1.0"

from .extractor import (
    ChordToken,
    LineClassifier,
    ChordRecognizer,
    canonicalize,
    extract_chords,
)

from .aggregator import (
    ReportEntry,
    ChordFrequencyTable,
    rank,
    filter_entries,
)

from .report import (
    render_report,
    format_report,
    write_report,
)

from .corpus import (
    find_song_files,
    read_lines,
    iter_corpus,
    scan_lines,
    scan_corpus,
)

from .config import CountConfig, load_config

__all__ = [
    # Data structures
    'ChordToken',
    'ReportEntry',
    'ChordFrequencyTable',
    'CountConfig',
    # Extraction
    'LineClassifier',
    'ChordRecognizer',
    'canonicalize',
    'extract_chords',
    # Aggregation and reporting
    'rank',
    'filter_entries',
    'render_report',
    'format_report',
    'write_report',
    # Corpus scanning
    'find_song_files',
    'read_lines',
    'iter_corpus',
    'scan_lines',
    'scan_corpus',
    'load_config',
]
