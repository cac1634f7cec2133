"""Filter, deduplicate and order matches before they reach the calendar."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import Match

LOGGER = logging.getLogger(__name__)

PREVIEW_LIMIT = 5


def process_matches(matches: Iterable[Match], *, now: Optional[datetime] = None) -> List[Match]:
    """Keep upcoming matches only, one per unique key (the earliest), by date."""

    reference = now or datetime.now(timezone.utc)
    incoming = list(matches)

    by_key: Dict[str, Match] = {}
    for match in incoming:
        if not match.date > reference:
            continue
        key = match.unique_key
        existing = by_key.get(key)
        if existing is None or match.date < existing.date:
            by_key[key] = match

    unique = sorted(by_key.values(), key=lambda match: match.date)
    LOGGER.info(
        "Processed %d matches: %d unique upcoming fixtures", len(incoming), len(unique)
    )
    for index, match in enumerate(unique[:PREVIEW_LIMIT], start=1):
        days_until = (match.date - reference).days
        LOGGER.info(
            "Match %d: %s vs %s - %s - %s (in %d days)%s",
            index,
            match.venue_glyph,
            match.opponent,
            match.competition,
            match.date.isoformat(),
            days_until,
            f" - TV: {match.broadcast}" if match.broadcast else "",
        )
    return unique
