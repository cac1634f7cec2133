import pytest
import requests

from palmeiras_calendar.errors import FetchError
from palmeiras_calendar.fetch import NOT_PUBLISHED, fetch_html

from conftest import FakeResponse, FakeSession

URL = "https://ptd.verdao.net/brasileirao-2026/"


@pytest.mark.parametrize("status", [404, 410])
def test_missing_page_returns_sentinel(status):
    session = FakeSession({URL: [FakeResponse(status)]})

    assert fetch_html(URL, session=session) is NOT_PUBLISHED
    assert len(session.calls) == 1


def test_retries_server_errors_until_success():
    session = FakeSession({URL: [FakeResponse(503), FakeResponse(200, "<html></html>")]})

    assert fetch_html(URL, session=session, backoff_seconds=0) == "<html></html>"
    assert len(session.calls) == 2


def test_retries_network_errors(connection_error):
    session = FakeSession({URL: [connection_error, FakeResponse(200, "ok")]})

    assert fetch_html(URL, session=session) == "ok"


def test_raises_fetch_error_after_exhausting_retries():
    session = FakeSession({URL: [FakeResponse(500)]})

    with pytest.raises(FetchError) as excinfo:
        fetch_html(URL, session=session, retries=3)

    assert excinfo.value.url == URL
    assert excinfo.value.attempts == 3
    assert len(session.calls) == 3


def test_linear_backoff_between_attempts(monkeypatch):
    delays = []
    monkeypatch.setattr("time.sleep", delays.append)
    session = FakeSession({URL: [requests.Timeout("slow")]})

    with pytest.raises(FetchError):
        fetch_html(URL, session=session, retries=3, backoff_seconds=1.0)

    assert delays == [1.0, 2.0]


def test_sends_browser_like_headers():
    session = FakeSession({URL: [FakeResponse(200, "ok")]})

    fetch_html(URL, session=session)

    headers = session.calls[0]["headers"]
    assert "Mozilla" in headers["User-Agent"]
    assert headers["Referer"] == "https://ptd.verdao.net/"
    assert headers["Accept-Language"].startswith("pt-BR")
