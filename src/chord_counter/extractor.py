"""
Chord extraction - finds chord names in chord chart lines

Lines are classified first (directives and tablature are skipped), then
scanned for chord tokens, and each token is canonicalized into the key
used for counting.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Union

Line = Union[str, bytes]

# Quality/extension suffixes a chord token may carry
SUFFIXES = (
    'm', 'maj', 'maj7', 'add9', 'sus4', 'dim', 'dim7', 'aug', 'aug7',
    '7', '9', '11', '13', 'm7', 'm9', 'm11', 'm13',
)

# Longest first so 'm7' is never cut short to 'm'
_SUFFIXES_LONGEST_FIRST = tuple(sorted(SUFFIXES, key=len, reverse=True))

ACCIDENTALS = '#b'

# String names that open a tab staff line, e.g. "e|--3--"
TAB_STRING_NAMES = 'EADGBegd'


@dataclass
class ChordToken:
    """A chord name as it appeared in a line"""
    text: str
    root: str
    accidental: Optional[str] = None
    suffix: Optional[str] = None
    bass: Optional[str] = None
    position: int = 0

    @property
    def is_inversion(self) -> bool:
        return self.bass is not None


class LineClassifier:
    """Decides whether a line should be scanned for chords"""

    METADATA_PREFIXES = ('{', '[')
    TABLATURE_PATTERN = re.compile(r'^[' + TAB_STRING_NAMES + r']\|')

    @staticmethod
    def decode(line: Line) -> Optional[str]:
        """Return the line as text, or None if it is not clean UTF-8"""
        if isinstance(line, bytes):
            try:
                return line.decode('utf-8')
            except UnicodeDecodeError:
                return None
        return line

    @staticmethod
    def is_metadata_line(line: str) -> bool:
        """ChordPro directives ({title: ...}) and section markers ([Chorus])"""
        return line.startswith(LineClassifier.METADATA_PREFIXES)

    @staticmethod
    def is_tablature_line(line: str) -> bool:
        return LineClassifier.TABLATURE_PATTERN.match(line) is not None

    @staticmethod
    def should_scan(line: Line) -> bool:
        """True if the line may contain chord names"""
        text = LineClassifier.decode(line)
        if not text:
            return False
        if LineClassifier.is_metadata_line(text):
            return False
        if LineClassifier.is_tablature_line(text):
            return False
        return True


class ChordRecognizer:
    """Finds chord tokens in a line of text"""

    # Matches chords like C, Cm, Cmaj7, Cadd9, C#, Db, Bm/D, F#m7/C#.
    # The trailing check is a lookahead rather than \b so a token ending in
    # '#' (C#, G/F#) keeps its accidental.
    CHORD_PATTERN = re.compile(
        r'\b(?P<root>[A-G])'
        r'(?P<accidental>[#b])?'
        r'(?P<suffix>' + '|'.join(re.escape(s) for s in _SUFFIXES_LONGEST_FIRST) + r')?'
        r'(?:/(?P<bass>[A-G][#b]?))?'
        r'(?!\w)'
    )

    @staticmethod
    def find_tokens(line: str) -> List[ChordToken]:
        """Return all chord tokens in the line, left to right"""
        tokens = []
        for match in ChordRecognizer.CHORD_PATTERN.finditer(line):
            tokens.append(ChordToken(
                text=match.group(0),
                root=match.group('root'),
                accidental=match.group('accidental'),
                suffix=match.group('suffix'),
                bass=match.group('bass'),
                position=match.start(),
            ))
        return tokens

    @staticmethod
    def find_chords(line: str) -> List[str]:
        """Return the matched chord strings in the line"""
        return [match.group(0) for match in ChordRecognizer.CHORD_PATTERN.finditer(line)]


def _anchor_suffix(rest: str) -> str:
    """Cut rest down to the longest vocabulary suffix it starts with"""
    for suffix in _SUFFIXES_LONGEST_FIRST:
        if rest.startswith(suffix):
            return suffix
    return ''


def canonicalize_part(part: str) -> str:
    """
    Normalize one side of a slash chord.

    The root letter is upper-cased and any 'M' after it becomes 'm', so CM
    and Cm count together. The remainder is then cut back to a known suffix,
    which drops stray trailing characters (Cm7x -> Cm7).
    """
    if not part:
        return ''

    root = part[0].upper()
    rest = part[1:].replace('M', 'm')

    accidental = ''
    if rest and rest[0] in ACCIDENTALS:
        accidental = rest[0]
        rest = rest[1:]

    return root + accidental + _anchor_suffix(rest)


def canonicalize(chord: str) -> Optional[str]:
    """
    Return the counting key for a chord token, or None if it is blank.

    Bm/D -> Bm/D, cM7 -> Cm7, g/b -> G/B
    """
    chord = chord.strip()
    if not chord:
        return None

    if '/' in chord:
        chord_part, inversion_part = chord.split('/')[:2]
    else:
        chord_part, inversion_part = chord, ''

    chord_part = canonicalize_part(chord_part.strip())
    if not chord_part:
        return None
    inversion_part = canonicalize_part(inversion_part.strip())
    if inversion_part:
        return chord_part + '/' + inversion_part
    return chord_part


def extract_chords(line: Line) -> List[str]:
    """Classify, scan and canonicalize a single line"""
    if not LineClassifier.should_scan(line):
        return []

    text = LineClassifier.decode(line)
    keys = []
    for token in ChordRecognizer.find_tokens(text):
        key = canonicalize(token.text)
        if key:
            keys.append(key)
    return keys
