"""Post failure notices to a chat webhook."""
from __future__ import annotations

import logging
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def post_alert(webhook_url: Optional[str], text: str, *, session: Optional[requests.Session] = None) -> bool:
    """Send ``text`` to a Slack-compatible webhook; never raises."""

    if not webhook_url:
        LOGGER.debug("No alert webhook configured; skipping message")
        return False

    http = session or requests
    try:
        response = http.post(webhook_url, json={"text": text}, timeout=DEFAULT_TIMEOUT)
    except requests.RequestException:
        LOGGER.exception("Request to alert webhook failed")
        return False

    if response.status_code >= 400:
        LOGGER.error("HTTP %s from alert webhook: %s", response.status_code, response.text)
        return False
    LOGGER.info("Alert delivered (%d chars)", len(text))
    return True
