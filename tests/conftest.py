"""
Pytest configuration and shared fixtures
"""

import sys
from pathlib import Path

import pytest

# Add the source directory to Python path so tests run without installing
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))


@pytest.fixture
def sample_song_lines():
    """A downloaded song file, as written by get_all"""
    return [
        "{artist: Test Artist}",
        "{title: Test Song}",
        "{capo: 2}",
        "[Verse 1]",
        "G               C            D",
        "This is a test lyric line here",
        "G                    D       G",
        "Another line of lyrics too",
        "",
        "[Chorus]",
        "Em      C/G     D7",
        "Sing it out loud now",
        "e|--3--2--0--|",
        "B|--3--3--1--|",
        "G|--0--2--0--|",
    ]


@pytest.fixture
def corpus_dir(tmp_path, sample_song_lines):
    """Input directory with two .crd songs and files that must be ignored"""
    (tmp_path / "Artist-Song One.crd").write_text("\n".join(sample_song_lines), encoding="utf-8")

    nested = tmp_path / "more"
    nested.mkdir()
    (nested / "Artist-Song Two.CRD").write_text("C G Am F\nC C G\n", encoding="utf-8")

    (tmp_path / "notes.txt").write_text("C C C C C C\n", encoding="utf-8")
    (tmp_path / "song.pro").write_text("{title: Pro}\nBb F\n", encoding="utf-8")
    return tmp_path
