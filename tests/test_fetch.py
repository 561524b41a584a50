"""Tests for fetch.py — UG client and .crd file writing (no network)."""

import hashlib
from datetime import datetime, timezone

import pytest
import requests

from chord_counter.fetch import (
    FetchError,
    LoginError,
    TabResult,
    UGClient,
    fetch_all_tabs,
    format_tab,
    sanitize_filename,
    tab_filename,
    write_tabs,
)


class FakeResponse:

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for requests.Session, answering by (method, endpoint)."""

    def __init__(self, routes):
        self.routes = routes
        self.headers = {}
        self.calls = []

    def request(self, method, url, params=None, data=None, headers=None, timeout=None):
        endpoint = url.split('/api/v1', 1)[1]
        self.calls.append((method, endpoint, params, data, headers))
        route = self.routes.get((method, endpoint))
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(params)
        return route or FakeResponse(404)


TAB_ONE = {
    'id': 1,
    'artist_name': 'Bill Monroe',
    'song_name': 'Blue Moon of Kentucky',
    'capo': 0,
    'content': '[tab][ch]C[/ch]  [ch]F[/ch]\nBlue moon[/tab]',
}

TAB_TWO = {
    'id': 2,
    'artist_name': 'Doc Watson',
    'song_name': 'Shady Grove',
    'capo': '2',
    'wiki_tab': {'content': '[ch]Dm[/ch]  [ch]C[/ch]\nShady grove'},
}


def logged_in_routes(**extra):
    routes = {('PUT', '/auth/login'): FakeResponse(200, {'token': 'abc123'})}
    routes.update(extra)
    return routes


class TestUGClient:

    def test_session_headers(self):
        session = FakeSession({})
        UGClient(session=session)
        assert session.headers['Accept'] == 'application/json'
        assert session.headers['User-Agent'].startswith('UGT_ANDROID')

    def test_api_key_is_md5_hex(self):
        key = UGClient(session=FakeSession({}))._headers()['X-UG-API-KEY']
        assert len(key) == 32
        int(key, 16)

    def test_api_key_uses_date_and_unpadded_hour(self):
        client = UGClient(session=FakeSession({}))
        headers = client._headers(now=datetime(2024, 3, 5, 7, 30, tzinfo=timezone.utc))
        seed = f"{client.device_id}2024-03-05:7createLog()"
        assert headers['X-UG-API-KEY'] == hashlib.md5(seed.encode()).hexdigest()
        assert headers['X-UG-CLIENT-ID'] == client.device_id
        assert 'X-UG-TOKEN' not in headers

    def test_token_header_after_login(self):
        client = UGClient(session=FakeSession({}))
        client.token = 'abc'
        assert client._headers()['X-UG-TOKEN'] == 'abc'

    def test_login_stores_token(self):
        session = FakeSession(logged_in_routes())
        client = UGClient(session=session)
        assert client.login('me@example.com', 'secret') == 'abc123'
        method, endpoint, _, data, _ = session.calls[0]
        assert (method, endpoint) == ('PUT', '/auth/login')
        assert data == {'username': 'me@example.com', 'password': 'secret'}

    def test_login_rejected(self):
        session = FakeSession({('PUT', '/auth/login'): FakeResponse(401, {'error': 'nope'})})
        with pytest.raises(LoginError):
            UGClient(session=session).login('me', 'wrong')

    def test_login_without_token_is_rejected(self):
        session = FakeSession({('PUT', '/auth/login'): FakeResponse(200, {})})
        with pytest.raises(LoginError):
            UGClient(session=session).login('me', 'pw')

    def test_network_error(self):
        session = FakeSession({('PUT', '/auth/login'): requests.ConnectionError('down')})
        with pytest.raises(FetchError):
            UGClient(session=session).login('me', 'pw')

    def test_saved_tabs_requires_login(self):
        with pytest.raises(LoginError):
            UGClient(session=FakeSession({})).get_saved_tabs()

    def test_get_saved_tabs(self):
        routes = logged_in_routes(**{})
        routes[('GET', '/tab/favorites')] = FakeResponse(200, [
            TAB_ONE,
            {'id': 2, 'artist_name': 'Doc Watson', 'song_name': 'Shady Grove'},
        ])
        routes[('GET', '/tab/info')] = lambda params: FakeResponse(200, TAB_TWO)
        session = FakeSession(routes)

        client = UGClient(session=session, delay=0)
        client.login('me', 'pw')
        tabs = client.get_saved_tabs()

        assert [t.song_name for t in tabs] == ['Blue Moon of Kentucky', 'Shady Grove']
        assert tabs[1].capo == 2
        assert tabs[1].content.startswith('[ch]Dm')
        # token goes out on every request after login
        assert all(call[4].get('X-UG-TOKEN') == 'abc123' for call in session.calls[1:])

    def test_saved_tabs_server_error(self):
        routes = logged_in_routes()
        routes[('GET', '/tab/favorites')] = FakeResponse(500)
        client = UGClient(session=FakeSession(routes), delay=0)
        client.login('me', 'pw')
        with pytest.raises(FetchError):
            client.get_saved_tabs()

    def test_fetch_all_tabs(self):
        routes = logged_in_routes()
        routes[('GET', '/tab/favorites')] = FakeResponse(200, {'tabs': [TAB_ONE]})
        client = UGClient(session=FakeSession(routes), delay=0)
        tabs = fetch_all_tabs('me', 'pw', client=client)
        assert len(tabs) == 1
        assert tabs[0].artist_name == 'Bill Monroe'


class TestTabResult:

    def test_from_api_bad_capo(self):
        tab = TabResult.from_api({'artist_name': 'A', 'song_name': 'B', 'capo': 'n/a'})
        assert tab.capo == 0
        assert tab.content == ''


class TestFormatting:

    def test_sanitize_filename(self):
        assert sanitize_filename('AC/DC: "Back" <in> Black?*|\\') == 'ACDC Back in Black'

    def test_tab_filename(self):
        tab = TabResult(artist_name='AC/DC', song_name='T.N.T.')
        assert tab_filename(tab) == 'ACDC-T.N.T..crd'

    def test_format_tab(self):
        text = format_tab(TabResult.from_api(TAB_ONE))
        assert text == (
            "{artist: Bill Monroe}\n"
            "{title: Blue Moon of Kentucky}\n"
            "{capo: 0}\n"
            "C  F\nBlue moon"
        )


class TestWriteTabs:

    def test_writes_crd_files(self, tmp_path):
        out = tmp_path / 'out'
        tabs = [TabResult.from_api(TAB_ONE), TabResult.from_api(TAB_TWO)]
        written = write_tabs(out, tabs, echo=lambda msg: None)
        assert written == 2
        assert sorted(p.name for p in out.iterdir()) == [
            'Bill Monroe-Blue Moon of Kentucky.crd',
            'Doc Watson-Shady Grove.crd',
        ]
        content = (out / 'Doc Watson-Shady Grove.crd').read_text(encoding='utf-8')
        assert content.startswith('{artist: Doc Watson}\n{title: Shady Grove}\n{capo: 2}\n')
        assert '[ch]' not in content

    def test_skips_unwritable_file(self, tmp_path, capsys):
        # a directory with the tab's filename makes the open() fail
        (tmp_path / 'Bill Monroe-Blue Moon of Kentucky.crd').mkdir()
        tabs = [TabResult.from_api(TAB_ONE), TabResult.from_api(TAB_TWO)]
        written = write_tabs(tmp_path, tabs, echo=lambda msg: None)
        assert written == 1
        assert 'Error writing file' in capsys.readouterr().err

    def test_requires_path(self):
        with pytest.raises(ValueError):
            write_tabs('', [])

    def test_written_files_feed_the_counter(self, tmp_path):
        from chord_counter.corpus import iter_corpus, scan_corpus

        write_tabs(tmp_path, [TabResult.from_api(TAB_ONE)], echo=lambda msg: None)
        table = scan_corpus(iter_corpus(tmp_path))
        assert table.snapshot() == {'C': 1, 'F': 1}
