from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
import requests

from palmeiras_calendar.models import Match

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Serves queued responses (or raises queued exceptions) per URL."""

    def __init__(self, routes: Optional[Dict[str, list]] = None) -> None:
        self.routes = {url: list(items) for url, items in (routes or {}).items()}
        self.calls: List[dict] = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        queue = self.routes.get(url)
        if not queue:
            return FakeResponse(404)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        queue = self.routes.get(url) or [FakeResponse(200, "ok")]
        return queue[0]


class _Request:
    def __init__(self, action):
        self._action = action

    def execute(self):
        return self._action()


class FakeEventsResource:
    def __init__(self, service: "FakeCalendarService") -> None:
        self.service = service

    def list(self, **params):
        return _Request(lambda: self.service.handle_list(params))

    def insert(self, calendarId, body):
        return _Request(lambda: self.service.handle_write("insert", None, body))

    def update(self, calendarId, eventId, body):
        return _Request(lambda: self.service.handle_write("update", eventId, body))


class FakeCalendarService:
    """In-memory stand-in for the googleapiclient calendar resource."""

    def __init__(self, page_size: int = 250) -> None:
        self.events_by_id: Dict[str, dict] = {}
        self.page_size = page_size
        self.list_calls: List[dict] = []
        self.write_calls: List[tuple] = []
        self.fail_on_write: Dict[int, Exception] = {}
        self.list_error: Optional[Exception] = None
        self._ids = itertools.count(1)

    def events(self) -> FakeEventsResource:
        return FakeEventsResource(self)

    def handle_list(self, params):
        self.list_calls.append(dict(params))
        if self.list_error is not None:
            raise self.list_error
        items = [dict(event, id=event_id) for event_id, event in self.events_by_id.items()]
        start = int(params.get("pageToken") or 0)
        page = items[start : start + self.page_size]
        payload = {"items": page}
        if start + self.page_size < len(items):
            payload["nextPageToken"] = str(start + self.page_size)
        return payload

    def handle_write(self, kind, event_id, body):
        self.write_calls.append((kind, event_id, body["summary"]))
        failure = self.fail_on_write.get(len(self.write_calls))
        if failure is not None:
            raise failure
        if kind == "insert":
            event_id = f"evt{next(self._ids)}"
        self.events_by_id[event_id] = dict(body)
        return dict(body, id=event_id)


def make_match(
    opponent: str = "Corinthians",
    competition: str = "Brasileirão 2026",
    date: datetime = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc),
    **kwargs,
) -> Match:
    fields = {
        "is_home": True,
        "location": "Allianz Parque",
        "broadcast": "",
        "source": "https://ptd.verdao.net/brasileirao-2026/",
    }
    fields.update(kwargs)
    return Match(date=date, opponent=opponent, competition=competition, **fields)


@pytest.fixture
def calendar_service() -> FakeCalendarService:
    return FakeCalendarService()


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda seconds: None)


@pytest.fixture
def connection_error() -> Exception:
    return requests.ConnectionError("connection reset")
