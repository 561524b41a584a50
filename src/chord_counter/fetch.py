"""
Fetch saved tabs from Ultimate Guitar and write them as .crd song files.

Uses the UG mobile API (the same one the Pilfer/ultimate-guitar-scraper
project reverse engineered). Each saved tab becomes one file with ChordPro
style directives for artist, title and capo followed by the raw chart:

    {artist: Bill Monroe}
    {title: Blue Moon of Kentucky}
    {capo: 0}
    [Verse 1]
    C               F
    Blue moon of Kentucky...
"""

import hashlib
import re
import secrets
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

import requests

# UG Mobile API configuration
UG_API_BASE = "https://api.ultimate-guitar.com/api/v1"
UG_USER_AGENT = "UGT_ANDROID/4.11.1 (Pixel; 8.1.0)"

SESSION_HEADERS = {
    "Accept": "application/json",
    "Accept-Charset": "utf-8",
    "Connection": "close",
    "User-Agent": UG_USER_AGENT,
}

LOGIN_ENDPOINT = "/auth/login"
SAVED_TABS_ENDPOINT = "/tab/favorites"
TAB_INFO_ENDPOINT = "/tab/info"

# Be polite between tab downloads
REQUEST_DELAY = 0.5

# UG wraps chart content in these markers
CONTENT_MARKUP = re.compile(r'\[(/?tab|/?ch)\]')

# Characters not allowed in file names
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


class FetchError(Exception):
    """The UG API could not be reached or returned something unusable"""


class LoginError(FetchError):
    """UG rejected the username or password"""


@dataclass
class TabResult:
    """A saved tab with its chord chart content"""
    artist_name: str
    song_name: str
    capo: int = 0
    content: str = ''
    tab_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: dict) -> 'TabResult':
        content = data.get("content")
        if not content:
            content = (data.get("wiki_tab") or {}).get("content", "")
        try:
            capo = int(data.get("capo") or 0)
        except (TypeError, ValueError):
            capo = 0
        return cls(
            artist_name=data.get("artist_name", ""),
            song_name=data.get("song_name", ""),
            capo=capo,
            content=content or "",
            tab_id=data.get("id"),
        )


class UGClient:
    """Client for the UG mobile API."""

    def __init__(self, session: Optional[requests.Session] = None, delay: float = REQUEST_DELAY):
        self.session = session or requests.Session()
        self.session.headers.update(SESSION_HEADERS)
        # The API wants a stable 16 hex digit id per "device"
        self.device_id = secrets.token_hex(8)
        self.token: Optional[str] = None
        self.delay = delay

    def _headers(self, now: Optional[datetime] = None) -> dict:
        """
        Auth headers for one request.

        The API key is the MD5 of device id, UTC date and unpadded hour
        ("2024-03-05:7") and the literal "createLog()", so it changes hourly.
        """
        now = now or datetime.now(timezone.utc)
        seed = f"{self.device_id}{now:%Y-%m-%d}:{now.hour}createLog()"
        headers = {
            "X-UG-CLIENT-ID": self.device_id,
            "X-UG-API-KEY": hashlib.md5(seed.encode()).hexdigest(),
        }
        if self.token:
            headers["X-UG-TOKEN"] = self.token
        return headers

    def _request(self, method: str, endpoint: str, params: dict = None, data: dict = None):
        url = f"{UG_API_BASE}{endpoint}"
        try:
            response = self.session.request(
                method, url, params=params, data=data, headers=self._headers(), timeout=30
            )
        except requests.RequestException as e:
            raise FetchError(f"Request to {endpoint} failed: {e}") from e
        return response

    def login(self, username: str, password: str) -> str:
        """Log in and keep the session token for later requests."""
        response = self._request("PUT", LOGIN_ENDPOINT, data={
            "username": username,
            "password": password,
        })
        if response.status_code in (400, 401, 403):
            raise LoginError("login failed: invalid username or password")
        try:
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise FetchError(f"login error: {e}") from e

        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise LoginError("login failed: invalid username or password")
        self.token = token
        return token

    def _get_json(self, endpoint: str, params: dict = None):
        response = self._request("GET", endpoint, params=params)
        try:
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise FetchError(f"error fetching {endpoint}: {e}") from e

    def get_tab(self, tab_id: int) -> TabResult:
        """Get full tab content by ID."""
        data = self._get_json(TAB_INFO_ENDPOINT, {
            "tab_id": tab_id,
            "tab_access_type": "private",
        })
        if not isinstance(data, dict):
            raise FetchError(f"Unexpected response for tab {tab_id}")
        return TabResult.from_api(data)

    def get_saved_tabs(self) -> List[TabResult]:
        """Fetch every tab saved to the logged in user's account."""
        if not self.token:
            raise LoginError("login required before fetching saved tabs")

        saved = self._get_json(SAVED_TABS_ENDPOINT)
        if isinstance(saved, dict):
            saved = saved.get("tabs", [])

        tabs = []
        for i, summary in enumerate(saved):
            if summary.get("content"):
                tabs.append(TabResult.from_api(summary))
                continue
            tab_id = summary.get("id")
            if not tab_id:
                continue
            if i and self.delay:
                time.sleep(self.delay)
            tabs.append(self.get_tab(tab_id))
        return tabs


def fetch_all_tabs(username: str, password: str,
                   client: Optional[UGClient] = None) -> List[TabResult]:
    """Log in and download all saved tabs."""
    client = client or UGClient()
    client.login(username, password)
    return client.get_saved_tabs()


def sanitize_filename(name: str) -> str:
    """Remove characters that are invalid in filenames."""
    return INVALID_FILENAME_CHARS.sub('', name)


def tab_filename(tab: TabResult) -> str:
    return f"{sanitize_filename(tab.artist_name)}-{sanitize_filename(tab.song_name)}.crd"


def format_tab(tab: TabResult) -> str:
    """Song file text: metadata directives followed by the cleaned chart."""
    content = f"{{artist: {tab.artist_name}}}\n{{title: {tab.song_name}}}\n{{capo: {tab.capo}}}\n{tab.content}"
    return CONTENT_MARKUP.sub('', content)


def write_tabs(path: Union[str, Path], tabs: List[TabResult],
               echo: Callable[[str], None] = print) -> int:
    """
    Write each tab to <path>/<artist>-<song>.crd.

    A tab that cannot be written is reported and skipped. Returns the
    number of files written.
    """
    if not str(path):
        raise ValueError("write_tabs: requires path")

    output_dir = Path(path)
    output_dir.mkdir(parents=True, exist_ok=True)
    echo(f"Output directory: {output_dir}")

    written = 0
    for tab in tabs:
        filename = tab_filename(tab)
        try:
            with open(output_dir / filename, 'w', encoding='utf-8') as f:
                f.write(format_tab(tab))
        except OSError as e:
            print(f"Error writing file {filename}: {e}", file=sys.stderr)
            continue
        written += 1
    return written
