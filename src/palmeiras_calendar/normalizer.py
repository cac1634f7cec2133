"""Turn raw fixture fragments into canonical :class:`Match` records."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from .config import DEFAULT_HOME_VENUES, DEFAULT_TIMEZONE
from .models import Match, RawFixture

LOGGER = logging.getLogger(__name__)

SAO_PAULO_TZ = ZoneInfo(DEFAULT_TIMEZONE)

DATE_TIME_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})\s*[–-]\s*(\d{1,2})h(\d{2})")
SEASON_YEAR_PATTERN = re.compile(r"\b(\d{4})\b")
BROADCAST_SPLIT_PATTERN = re.compile(r"[,|]")

# Numeric codes are the legend used by the source's TV column.
CHANNEL_NAMES: Dict[str, str] = {
    "1": "Record",
    "2": "Cazé TV",
    "3": "TNT",
    "4": "HBO Max",
    "globo": "Globo",
    "sportv": "Sportv",
    "premiere": "Premiere",
    "amazon prime": "Amazon Prime",
}
_KNOWN_CHANNELS: Sequence[str] = tuple(dict.fromkeys(CHANNEL_NAMES.values()))

_MAX_OFFSET_PASSES = 3


def resolve_local_instant(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    tz: tzinfo = SAO_PAULO_TZ,
) -> datetime:
    """Return the instant at which the wall clock in ``tz`` shows the given time.

    Starts from the same wall-clock reading in UTC, asks which civil time that
    instant is in ``tz`` and shifts by the difference until both agree, so the
    offset in force on that particular date is used.
    """

    intended = datetime(year, month, day, hour, minute)
    instant = intended.replace(tzinfo=timezone.utc)
    for _ in range(_MAX_OFFSET_PASSES):
        civil = instant.astimezone(tz).replace(tzinfo=None)
        delta = intended - civil
        if delta == timedelta(0):
            break
        instant += delta
    return instant.astimezone(tz)


def season_year(competition: str, default: int) -> int:
    match = SEASON_YEAR_PATTERN.search(competition or "")
    return int(match.group(1)) if match else default


def parse_match_datetime(
    text: str,
    competition: str,
    *,
    tz: tzinfo = SAO_PAULO_TZ,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Parse a ``D/M – HHhMM`` token; ``None`` when the text is not a valid date."""

    match = DATE_TIME_PATTERN.search(text or "")
    if not match:
        LOGGER.warning("Could not parse date-time: %s", text)
        return None
    day, month, hour, minute = (int(part) for part in match.groups())

    reference = now or datetime.now(tz)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=tz)
    year = season_year(competition, reference.astimezone(tz).year)

    try:
        kickoff = resolve_local_instant(year, month, day, hour, minute, tz)
        # Fixtures early next year are listed without a year in December.
        if kickoff < reference and reference.astimezone(tz).month == 12:
            kickoff = resolve_local_instant(year + 1, month, day, hour, minute, tz)
    except ValueError:
        LOGGER.warning("Invalid calendar date in %r", text)
        return None
    return kickoff


def infer_is_home(
    location: str,
    context: str = "",
    home_venues: Sequence[str] = DEFAULT_HOME_VENUES,
) -> bool:
    """True only when a known home venue is mentioned; anything else is away."""

    haystacks = [value.lower() for value in (location, context) if value]
    return any(venue.lower() in haystack for haystack in haystacks for venue in home_venues)


def _normalize_channel(token: str) -> str:
    lowered = token.lower()
    mapped = CHANNEL_NAMES.get(lowered)
    if mapped:
        return mapped
    for name in _KNOWN_CHANNELS:
        if lowered == name.lower() or name.lower() in lowered:
            return name
    if len(lowered) >= 3 and not lowered.isdigit():
        for name in _KNOWN_CHANNELS:
            if name.lower().startswith(lowered):
                return name
    return token


def normalize_broadcast(text: str) -> str:
    if not text or not text.strip():
        return ""
    channels: List[str] = []
    for part in BROADCAST_SPLIT_PATTERN.split(text):
        token = part.strip()
        if token:
            channels.append(_normalize_channel(token))
    return ", ".join(channels)


def build_match(
    fragment: RawFixture,
    competition: Optional[str] = None,
    *,
    tz: tzinfo = SAO_PAULO_TZ,
    home_venues: Sequence[str] = DEFAULT_HOME_VENUES,
    now: Optional[datetime] = None,
) -> Optional[Match]:
    label = competition or fragment.competition
    kickoff = parse_match_datetime(fragment.date_time_text, label, tz=tz, now=now)
    if kickoff is None:
        return None
    try:
        return Match(
            date=kickoff,
            opponent=fragment.opponent_text,
            is_home=infer_is_home(fragment.location_text, fragment.context_text, home_venues),
            competition=label,
            location=fragment.location_text,
            broadcast=normalize_broadcast(fragment.broadcast_text),
            source=fragment.source,
        )
    except ValueError as exc:
        LOGGER.debug("Dropping fixture row from %s: %s", fragment.source, exc)
        return None
