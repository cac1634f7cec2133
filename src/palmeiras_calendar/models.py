"""Typed records shared across the sync pipeline."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

TRACKED_TEAM = "Palmeiras"

_WHITESPACE_RE = re.compile(r"\s+")
_KEY_STRIP_RE = re.compile(r"[^a-z0-9_]")


@dataclass(frozen=True)
class RawFixture:
    """Unvalidated text fragments of one fixture row."""

    date_time_text: str
    opponent_text: str
    location_text: str = ""
    broadcast_text: str = ""
    context_text: str = ""
    competition: str = ""
    source: str = ""


@dataclass(frozen=True)
class Match:
    date: datetime
    opponent: str
    is_home: bool
    competition: str
    location: str = ""
    broadcast: str = ""
    source: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.date, datetime) or self.date.utcoffset() is None:
            raise ValueError("Match date must be a timezone-aware datetime")
        opponent = (self.opponent or "").strip()
        if not opponent:
            raise ValueError("Match opponent must not be empty")
        object.__setattr__(self, "opponent", opponent)
        object.__setattr__(self, "location", (self.location or "").strip())

    @property
    def unique_key(self) -> str:
        return unique_key(self.opponent, self.competition)

    @property
    def venue_glyph(self) -> str:
        return "🏠" if self.is_home else "✈️"


def _normalize_key_part(value: str) -> str:
    lowered = _WHITESPACE_RE.sub("_", value.lower().strip())
    return _KEY_STRIP_RE.sub("", lowered)


def unique_key(opponent: str, competition: str) -> str:
    """Stable identity of a fixture; deliberately independent of its date."""

    return (
        f"{TRACKED_TEAM.lower()}_vs_{_normalize_key_part(opponent)}"
        f"_{_normalize_key_part(competition)}"
    )


@dataclass
class SyncRunResult:
    run_id: str
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    found: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    message: str = ""

    @property
    def duration(self) -> Optional[int]:
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    def to_json(self) -> Dict[str, object]:
        return {
            "runId": self.run_id,
            "status": self.status,
            "startTime": _isoformat(self.start_time),
            "endTime": _isoformat(self.end_time) if self.end_time else None,
            "duration": self.duration,
            "found": self.found,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": [dict(entry) for entry in self.errors],
            "message": self.message,
        }


def _isoformat(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
