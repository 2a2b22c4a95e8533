from __future__ import annotations

import asyncio

import pytest
from aiohttp import RequestInfo
from multidict import CIMultiDict
from yarl import URL

from slotfinder.config import TrackerConfig
from slotfinder.matching.types import ListingState
from slotfinder.trackers import http_client, ptp_client


class _FakeResponseCtx:
    def __init__(
        self,
        *,
        status: int = 200,
        payload: object = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
        url: str = "https://passthepopcorn.me/torrents.php",
    ) -> None:
        self.status = status
        self._payload = payload if payload is not None else {}
        self._text = text
        self.headers = headers or {}
        self.request_info = RequestInfo(URL(url), "GET", CIMultiDict(), URL(url))
        self.history = ()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None) -> object:
        return self._payload

    async def text(self) -> str:
        return self._text if self._text is not None else str(self._payload)


class _SequencedSession:
    def __init__(self, responses: list[_FakeResponseCtx]) -> None:
        self.closed = False
        self._responses = responses
        self.calls: list[dict] = []

    def get(self, url, params=None):
        idx = min(len(self.calls), len(self._responses) - 1)
        self.calls.append({"url": url, "params": dict(params or {})})
        return self._responses[idx]

    async def close(self) -> None:
        self.closed = True


class _FakeLog:
    def __init__(self) -> None:
        self.warnings: list[str] = []

    def api_request(self, *_args, **_kwargs) -> None:
        return None

    def api_response(self, *_args, **_kwargs) -> None:
        return None

    def api_retry(self, *_args, **_kwargs) -> None:
        return None

    def api_failed(self, *_args, **_kwargs) -> None:
        return None

    def debug(self, *_args, **_kwargs) -> None:
        return None

    def warning(self, msg: str) -> None:
        self.warnings.append(msg)


def _movie(title: str, year: str, *sizes: int) -> dict:
    return {
        "Title": title,
        "Year": year,
        "Torrents": [
            {"Id": str(idx), "Codec": "x264", "Resolution": "1080p", "Size": str(size), "ReleaseName": ""}
            for idx, size in enumerate(sizes)
        ],
    }


def _adapter(monkeypatch: pytest.MonkeyPatch, session: _SequencedSession, log: _FakeLog | None = None):
    tracker = TrackerConfig(name="PTP", url="https://passthepopcorn.me/", api_user="user", api_key="key")
    adapter = ptp_client.PtpDestinationAdapter(tracker)

    async def _fake_ensure_session():
        return session

    async def _fake_enforce() -> None:
        return None

    async def _no_sleep(_delay: float) -> None:
        return None

    monkeypatch.setattr(adapter, "_ensure_session", _fake_ensure_session)
    monkeypatch.setattr(adapter, "_enforce_interval", _fake_enforce)
    monkeypatch.setattr(http_client.asyncio, "sleep", _no_sleep)
    fake_log = log or _FakeLog()
    monkeypatch.setattr(ptp_client.logger, "get_logger", lambda: fake_log)
    return adapter


def test_adapter_requires_api_user_and_key() -> None:
    with pytest.raises(ValueError, match="api_user and api_key"):
        ptp_client.PtpDestinationAdapter(TrackerConfig(name="PTP", url="https://ptp.example", api_key="key"))


def test_adapter_headers_carry_api_credentials() -> None:
    tracker = TrackerConfig(name="PTP", url="https://ptp.example", api_user="user", api_key="key")
    headers = ptp_client.PtpDestinationAdapter(tracker)._get_headers()

    assert headers["ApiUser"] == "user"
    assert headers["ApiKey"] == "key"
    assert headers["User-Agent"] == http_client.DEFAULT_USER_AGENT


def test_exact_lookup_returns_first_movie_listing(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession([_FakeResponseCtx(payload={"Movies": [_movie("Movie", "2020", 1024 * 1024 * 100)]})])
    adapter = _adapter(monkeypatch, session)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.FOUND
    assert listing.releases[0].size == pytest.approx(100)
    assert session.calls[0]["url"] == "https://passthepopcorn.me/torrents.php"
    assert session.calls[0]["params"] == {"imdb": "tt0000001", "json": "noredirect"}


def test_exact_lookup_without_movies_checks_requests_page(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession(
        [
            _FakeResponseCtx(payload={"TotalResults": "0", "Movies": []}),
            _FakeResponseCtx(text=f"<div id='no_results_message'>{ptp_client.REQUESTS_MESSAGE}</div>"),
        ]
    )
    adapter = _adapter(monkeypatch, session)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.NOT_FOUND
    assert listing.has_requests is True
    assert session.calls[1]["params"] == {"imdb": "tt0000001"}


def test_exact_lookup_failure_returns_failed_listing(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession([_FakeResponseCtx(status=400, payload={"error": "bad request"})])
    log = _FakeLog()
    adapter = _adapter(monkeypatch, session, log)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.FAILED
    assert len(session.calls) == 1
    assert log.warnings and "tt0000001" in log.warnings[0]


def test_request_retries_http_429_with_retry_after(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession(
        [
            _FakeResponseCtx(status=429, payload={"error": "throttle"}, headers={"Retry-After": "3"}),
            _FakeResponseCtx(payload={"Movies": [_movie("Movie", "2020", 1)]}),
        ]
    )
    adapter = _adapter(monkeypatch, session)
    sleeps: list[float] = []

    async def _record_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr(http_client.asyncio, "sleep", _record_sleep)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.FOUND
    assert len(session.calls) == 2
    assert sleeps == [3]


def test_title_search_with_one_movie_returns_listing(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession([_FakeResponseCtx(payload={"Movies": [_movie("Movie", "2020", 1)]})])
    adapter = _adapter(monkeypatch, session)

    result = asyncio.run(adapter.query_by_title_year("Movie", 2020))

    assert result.is_ambiguous is False
    assert result.listing is not None and result.listing.is_usable
    assert session.calls[0]["params"] == {
        "action": "advanced",
        "searchstr": "Movie",
        "year": 2020,
        "json": "noredirect",
    }


def test_title_search_with_several_movies_is_ambiguous(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession(
        [_FakeResponseCtx(payload={"Movies": [_movie("Movie", "2020", 1), _movie("Movie 2", "2020", 2)]})]
    )
    adapter = _adapter(monkeypatch, session)

    result = asyncio.run(adapter.query_by_title_year("Movie", 2020))

    assert result.is_ambiguous is True
    assert [candidate.title for candidate in result.candidates] == ["Movie", "Movie 2"]


def test_title_search_without_movies_reports_missing_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession(
        [
            _FakeResponseCtx(payload={"Movies": []}),
            _FakeResponseCtx(text="<div id='no_results_message'>Your search did not match anything.</div>"),
        ]
    )
    adapter = _adapter(monkeypatch, session)

    result = asyncio.run(adapter.query_by_title_year("Movie", 2020))

    assert result.listing is not None
    assert result.listing.state is ListingState.NOT_FOUND
    assert result.has_requests is False


def test_title_search_with_malformed_payload_fails_softly(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession([_FakeResponseCtx(payload=["unexpected"])])
    adapter = _adapter(monkeypatch, session)

    result = asyncio.run(adapter.query_by_title_year("Movie", 2020))

    assert result.listing is not None
    assert result.listing.state is ListingState.FAILED


def test_close_closes_open_session() -> None:
    tracker = TrackerConfig(name="PTP", url="https://ptp.example", api_user="user", api_key="key")
    adapter = ptp_client.PtpDestinationAdapter(tracker)
    session = _SequencedSession([_FakeResponseCtx()])
    adapter._session = session

    asyncio.run(adapter.close())

    assert session.closed is True
    assert adapter._session is None


def test_exact_lookup_keeps_not_found_when_request_check_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession(
        [
            _FakeResponseCtx(payload={"Movies": []}),
            _FakeResponseCtx(status=400, text="bad request"),
        ]
    )
    log = _FakeLog()
    adapter = _adapter(monkeypatch, session, log)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.NOT_FOUND
    assert listing.has_requests is False
    assert len(session.calls) == 2
    assert log.warnings == []


def test_http_error_message_renders_request_url(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _SequencedSession([_FakeResponseCtx(status=403, text="forbidden")])
    log = _FakeLog()
    adapter = _adapter(monkeypatch, session, log)

    listing = asyncio.run(adapter.query_by_exact_id("tt0000001"))

    assert listing.state is ListingState.FAILED
    assert "403" in log.warnings[0]
    assert "passthepopcorn.me/torrents.php" in log.warnings[0]
