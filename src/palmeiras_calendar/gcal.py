"""Mirror processed matches into a Google Calendar."""
from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from dateutil import parser as dateparser
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build

from .config import DEFAULT_CALENDAR_ID, DEFAULT_TIMEZONE
from .errors import AuthError, WriteError
from .models import TRACKED_TEAM, Match

LOGGER = logging.getLogger(__name__)

CALENDAR_SCOPES: Sequence[str] = ("https://www.googleapis.com/auth/calendar",)
SYNC_MARKER_KEY = "palmeirasSync"
FIXTURE_ID_KEY = "fixtureId"
EVENT_DURATION = timedelta(hours=2)
REMINDER_MINUTES: Sequence[int] = (60, 15)
WRITE_DELAY_SECONDS = 0.1
LIST_PAGE_SIZE = 2500
REQUIRED_CREDENTIAL_FIELDS: Sequence[str] = ("private_key", "client_email")


@dataclass(frozen=True)
class RemoteEvent:
    id: str
    fixture_id: str
    start: Optional[datetime] = None


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    total: int = 0


def parse_credentials(raw: Optional[str]) -> Dict[str, Any]:
    """Decode service account JSON given either base64-encoded or verbatim."""

    if not raw or not raw.strip():
        raise AuthError("GOOGLE_CREDENTIALS is not set")

    try:
        decoded = base64.b64decode(raw.strip(), validate=True).decode("utf-8")
        info = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError) as base64_error:
        try:
            info = json.loads(raw)
        except ValueError as json_error:
            raise AuthError(
                "Failed to parse GOOGLE_CREDENTIALS: not base64-encoded JSON "
                f"({base64_error}) and not plain JSON ({json_error})"
            ) from json_error

    if not isinstance(info, dict):
        raise AuthError("GOOGLE_CREDENTIALS must contain a JSON object")
    for name in REQUIRED_CREDENTIAL_FIELDS:
        if not info.get(name):
            raise AuthError(f"GOOGLE_CREDENTIALS missing required field: {name}")

    private_key = info["private_key"]
    if isinstance(private_key, str):
        private_key = private_key.replace("\\n", "\n")
        info["private_key"] = private_key
        if "BEGIN PRIVATE KEY" not in private_key:
            LOGGER.warning("Private key in GOOGLE_CREDENTIALS may be missing its PEM markers")
    return info


def build_calendar_service(raw_credentials: Optional[str]):
    info = parse_credentials(raw_credentials)
    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=list(CALENDAR_SCOPES)
        )
    except (ValueError, GoogleAuthError) as exc:
        raise AuthError(
            f"Invalid service account credentials in GOOGLE_CREDENTIALS: {exc}"
        ) from exc
    LOGGER.info("Google Calendar client initialized for %s", info["client_email"])
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


def _format_instant(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def match_to_event(match: Match, timezone_name: str = DEFAULT_TIMEZONE) -> Dict[str, Any]:
    start = match.date
    end = start + EVENT_DURATION
    key = match.unique_key

    summary = f"{match.venue_glyph} {TRACKED_TEAM} vs {match.opponent}"
    if match.broadcast:
        summary += f" 📺 {match.broadcast}"

    local_start = start.astimezone(ZoneInfo(timezone_name))
    description_lines = [
        f"⚽ {match.competition}",
        f"📍 {match.location or 'TBD'}",
        f"📺 {match.broadcast}" if match.broadcast else "",
        f"Source: {match.source}" if match.source else "",
        f"Match Date: {local_start:%d/%m/%Y %H:%M}",
        f"Match ID: {key}",
    ]

    return {
        "summary": summary,
        "description": "\n".join(line for line in description_lines if line),
        "location": match.location,
        "start": {"dateTime": _format_instant(start), "timeZone": timezone_name},
        "end": {"dateTime": _format_instant(end), "timeZone": timezone_name},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": minutes} for minutes in REMINDER_MINUTES],
        },
        "extendedProperties": {
            "private": {
                SYNC_MARKER_KEY: "true",
                FIXTURE_ID_KEY: key,
            }
        },
    }


def _event_start(item: Mapping[str, Any]) -> Optional[datetime]:
    value = (item.get("start") or {}).get("dateTime")
    if not value:
        return None
    try:
        return dateparser.isoparse(value)
    except (TypeError, ValueError):
        LOGGER.debug("Could not parse event start: %s", value)
        return None


def _auth_failure(exc: Exception, statuses: Sequence[int]) -> Optional[AuthError]:
    if isinstance(exc, RefreshError):
        return AuthError(f"Calendar credentials were rejected: {exc}")
    status = getattr(exc, "status_code", None)
    if status in statuses:
        return AuthError(f"Calendar service refused access (HTTP {status}): {exc}")
    return None


class CalendarReconciler:
    """Create or update one calendar event per match, keyed by unique key."""

    def __init__(
        self,
        service,
        calendar_id: str = DEFAULT_CALENDAR_ID,
        *,
        timezone_name: str = DEFAULT_TIMEZONE,
        write_delay: float = WRITE_DELAY_SECONDS,
    ) -> None:
        self.service = service
        self.calendar_id = calendar_id
        self.timezone_name = timezone_name
        self.write_delay = write_delay

    def list_synced_events(self, *, now: Optional[datetime] = None) -> Dict[str, RemoteEvent]:
        reference = now or datetime.now(timezone.utc)
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "timeMin": _format_instant(reference),
            "maxResults": LIST_PAGE_SIZE,
            "singleEvents": True,
            "orderBy": "startTime",
            "privateExtendedProperty": f"{SYNC_MARKER_KEY}=true",
        }
        inventory: Dict[str, RemoteEvent] = {}
        while True:
            try:
                payload = self.service.events().list(**params).execute()
            except Exception as exc:
                auth_error = _auth_failure(exc, (401, 403))
                if auth_error is not None:
                    raise auth_error from exc
                raise
            for item in payload.get("items") or []:
                private = (item.get("extendedProperties") or {}).get("private") or {}
                if private.get(SYNC_MARKER_KEY) != "true":
                    continue
                fixture_id = private.get(FIXTURE_ID_KEY)
                event_id = item.get("id")
                if not fixture_id or not event_id:
                    continue
                inventory[fixture_id] = RemoteEvent(event_id, fixture_id, _event_start(item))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token

        LOGGER.info("Found %d existing %s events in calendar", len(inventory), TRACKED_TEAM)
        return inventory

    def _write(self, event: Dict[str, Any], existing: Optional[RemoteEvent]) -> None:
        events = self.service.events()
        if existing is not None:
            events.update(
                calendarId=self.calendar_id, eventId=existing.id, body=event
            ).execute()
        else:
            events.insert(calendarId=self.calendar_id, body=event).execute()

    def reconcile(
        self, matches: Sequence[Match], *, now: Optional[datetime] = None
    ) -> ReconcileResult:
        LOGGER.info("Starting calendar sync of %d matches", len(matches))
        inventory = self.list_synced_events(now=now)
        result = ReconcileResult(total=len(matches))

        for index, match in enumerate(matches):
            if index and self.write_delay > 0:
                time.sleep(self.write_delay)
            event = match_to_event(match, self.timezone_name)
            existing = inventory.get(match.unique_key)
            try:
                self._write(event, existing)
            except Exception as exc:
                auth_error = _auth_failure(exc, (401,))
                if auth_error is not None:
                    raise auth_error from exc
                failure = WriteError(event["summary"], str(exc))
                LOGGER.error("Failed to sync event: %s", failure)
                result.errors.append({"fixture": failure.fixture, "error": failure.reason})
                result.skipped += 1
                continue

            if existing is None:
                result.created += 1
                LOGGER.info("Created: %s", event["summary"])
                continue
            result.updated += 1
            if existing.start is not None and existing.start != match.date:
                LOGGER.info(
                    "Rescheduled: %s (%s -> %s)",
                    event["summary"],
                    existing.start.isoformat(),
                    match.date.isoformat(),
                )
            LOGGER.info("Updated: %s", event["summary"])

        LOGGER.info(
            "Calendar sync complete: %d created, %d updated, %d errors",
            result.created,
            result.updated,
            result.skipped,
        )
        return result
