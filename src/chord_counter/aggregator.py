"""
Chord frequency table

Counts canonical chord keys across a corpus scan and ranks them for
reporting. A table is created per scan and passed around explicitly so
repeated scans never share counts.
"""

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ReportEntry:
    """One ranked line of the report"""
    chord: str
    count: int


class ChordFrequencyTable:
    """Thread-safe chord -> count mapping"""

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self._counts = Counter()
        self._lock = threading.Lock()
        if counts:
            for chord, count in counts.items():
                if count < 0:
                    raise ValueError(f"Negative count for {chord}: {count}")
                self._counts[chord] += count

    def record(self, key: Optional[str]) -> None:
        """Count one occurrence of key; None (a discarded token) is ignored"""
        if not key:
            return
        with self._lock:
            self._counts[key] += 1

    def update(self, keys: Iterable[Optional[str]]) -> None:
        """Count every key in keys, taking the lock once"""
        batch = Counter(key for key in keys if key)
        if not batch:
            return
        with self._lock:
            self._counts.update(batch)

    def merge(self, other: 'ChordFrequencyTable') -> None:
        """Add another table's counts into this one"""
        self.update_counts(other.snapshot())

    def update_counts(self, counts: Dict[str, int]) -> None:
        with self._lock:
            for chord, count in counts.items():
                if count > 0:
                    self._counts[chord] += count

    def get(self, key: str) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def snapshot(self) -> Dict[str, int]:
        """Copy of the current counts"""
        with self._lock:
            return dict(self._counts)

    @property
    def total(self) -> int:
        """Total number of chord occurrences recorded"""
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._counts

    def ranked(self) -> List[ReportEntry]:
        return rank(self.snapshot())


def rank(counts: Dict[str, int]) -> List[ReportEntry]:
    """
    Order chords by count, most frequent first.

    Equal counts are ordered by chord name so the report is the same on
    every run regardless of the order files were scanned in.
    """
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [ReportEntry(chord=chord, count=count) for chord, count in ordered]


def filter_entries(entries: List[ReportEntry], min_count: int = 1,
                   exclude: Iterable[str] = (), top: int = 0) -> List[ReportEntry]:
    """Drop excluded and rare chords, then keep the top N (0 keeps all)"""
    excluded = set(exclude)
    kept = [e for e in entries if e.count >= min_count and e.chord not in excluded]
    if top > 0:
        kept = kept[:top]
    return kept
