"""
Corpus reading and scanning

Finds song files under a directory, streams their lines through the
chord extractor and accumulates the results into a ChordFrequencyTable.
Files can be scanned in a thread pool; the table serializes updates.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from .aggregator import ChordFrequencyTable
from .extractor import Line, extract_chords

# Song file extensions written by the fetcher
DEFAULT_EXTENSIONS = ('.crd',)

ProgressCallback = Callable[[int, int, Path], None]


def normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    """Lowercase extensions and make sure each starts with a dot"""
    normalized = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = '.' + ext
        normalized.append(ext)
    return tuple(normalized)


def find_song_files(input_dir: Union[str, Path],
                    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
                    recursive: bool = True) -> List[Path]:
    """Find song files in input_dir, sorted for a stable scan order"""
    input_dir = Path(input_dir)
    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Input path is not a directory: {input_dir}")

    wanted = normalize_extensions(extensions)
    candidates = input_dir.rglob('*') if recursive else input_dir.glob('*')
    song_files = [
        path for path in candidates
        if path.is_file() and path.suffix.lower() in wanted
    ]
    return sorted(song_files)


def read_lines(path: Union[str, Path]) -> Iterator[Line]:
    """
    Yield the lines of a song file without line endings.

    Lines that are not valid UTF-8 come back as bytes; the line classifier
    skips them.
    """
    with open(path, 'rb') as f:
        for raw in f:
            raw = raw.rstrip(b'\r\n')
            try:
                yield raw.decode('utf-8')
            except UnicodeDecodeError:
                yield raw


def iter_corpus(input_dir: Union[str, Path],
                extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> Iterator[Tuple[Path, Iterator[Line]]]:
    """Yield (path, lines) for every song file under input_dir"""
    for path in find_song_files(input_dir, extensions):
        yield path, read_lines(path)


def scan_lines(lines: Iterable[Line],
               table: Optional[ChordFrequencyTable] = None) -> ChordFrequencyTable:
    """Count the chords in a sequence of lines"""
    if table is None:
        table = ChordFrequencyTable()
    for line in lines:
        table.update(extract_chords(line))
    return table


def scan_corpus(corpus: Iterable[Tuple[object, Iterable[Line]]],
                table: Optional[ChordFrequencyTable] = None,
                workers: int = 1,
                progress: Optional[ProgressCallback] = None) -> ChordFrequencyTable:
    """
    Count chords across every (file, lines) pair in corpus.

    With workers > 1 each file is scanned in a thread pool. The first read
    error is raised after the pool shuts down; counts from files that were
    already scanned stay in the table.
    """
    if table is None:
        table = ChordFrequencyTable()

    files = list(corpus)
    total = len(files)

    if workers <= 1:
        for i, (source, lines) in enumerate(files, 1):
            scan_lines(lines, table)
            if progress:
                progress(i, total, source)
        return table

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_source = {
            executor.submit(scan_lines, lines, table): source
            for source, lines in files
        }

        completed = 0
        for future in as_completed(future_to_source):
            completed += 1
            future.result()
            if progress:
                progress(completed, total, future_to_source[future])

    return table
