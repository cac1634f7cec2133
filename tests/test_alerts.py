import requests

from palmeiras_calendar.alerts import post_alert

from conftest import FakeResponse, FakeSession

WEBHOOK = "https://hooks.example.com/T000"


class BrokenSession:
    def post(self, url, json=None, timeout=None):
        raise requests.ConnectionError("no route to host")


def test_alert_is_posted_as_text():
    session = FakeSession()

    assert post_alert(WEBHOOK, "❌ sync failed", session=session) is True
    assert session.calls == [{"url": WEBHOOK, "json": {"text": "❌ sync failed"}, "timeout": 10}]


def test_missing_webhook_is_a_noop():
    session = FakeSession()

    assert post_alert(None, "ignored", session=session) is False
    assert session.calls == []


def test_delivery_failures_are_swallowed():
    assert post_alert(WEBHOOK, "boom", session=BrokenSession()) is False
    rejected = FakeSession({WEBHOOK: [FakeResponse(500, "invalid_payload")]})
    assert post_alert(WEBHOOK, "boom", session=rejected) is False
