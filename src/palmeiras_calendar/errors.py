"""Exception types raised by the sync pipeline."""
from __future__ import annotations

from typing import Sequence


class SyncError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(SyncError):
    """Required configuration is missing; raised before any network call."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Missing environment variables: {', '.join(self.missing)}")


class FetchError(SyncError):
    """A source page could not be retrieved after all retries."""

    def __init__(self, url: str, attempts: int) -> None:
        self.url = url
        self.attempts = attempts
        super().__init__(f"Failed to fetch {url} after {attempts} attempts")


class AuthError(SyncError):
    """Calendar credentials are invalid or were rejected by the service."""


class WriteError(SyncError):
    """Creating or updating a single calendar event failed."""

    def __init__(self, fixture: str, reason: str) -> None:
        self.fixture = fixture
        self.reason = reason
        super().__init__(f"{fixture} - {reason}")
