"""Configuration helpers for the palmeiras_calendar sync."""
from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

VERDAO_BASE_URL = "https://ptd.verdao.net"
DEFAULT_CALENDAR_ID = "primary"
DEFAULT_CRON_SCHEDULE = "0 2 * * *"
DEFAULT_TIMEZONE = "America/Sao_Paulo"
DEFAULT_STATUS_PATH = Path("/tmp/palmeiras-sync-status.json")
DEFAULT_HOME_VENUES: Sequence[str] = ("allianz", "barueri")

CONFIG_PATH_ENV = "PALMEIRAS_SYNC_CONFIG"


@dataclass(slots=True)
class SourcePage:
    """One fixture page of the source site."""

    url: str
    competition: str
    upcoming_section: bool = False


DEFAULT_SOURCES: Sequence[SourcePage] = (
    SourcePage(f"{VERDAO_BASE_URL}/brasileirao-2026/", "Brasileirão 2026"),
    SourcePage(f"{VERDAO_BASE_URL}/paulista-2026/", "Paulista 2026"),
    SourcePage(f"{VERDAO_BASE_URL}/copa-do-brasil-2025/", "Copa do Brasil 2025"),
    SourcePage(f"{VERDAO_BASE_URL}/libertadores-2025/", "Libertadores 2025"),
    SourcePage(f"{VERDAO_BASE_URL}/", "Próximos Jogos", upcoming_section=True),
)


@dataclass(slots=True)
class AppConfig:
    """Root configuration model, built once at process start."""

    credentials: Optional[str] = None
    calendar_id: str = DEFAULT_CALENDAR_ID
    # Handed to the external scheduler that triggers runs; a run never reads it.
    cron_schedule: str = DEFAULT_CRON_SCHEDULE
    alert_webhook: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    status_path: Path = DEFAULT_STATUS_PATH
    sources: Sequence[SourcePage] = field(default_factory=lambda: tuple(DEFAULT_SOURCES))
    home_venues: Sequence[str] = field(default_factory=lambda: tuple(DEFAULT_HOME_VENUES))
    fetch_retries: int = 3
    fetch_backoff_seconds: float = 1.0
    page_delay_seconds: float = 0.5
    write_delay_seconds: float = 0.1

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "AppConfig":
        config = cls()

        calendar_section = mapping.get("calendar")
        if isinstance(calendar_section, Mapping):
            credentials = str(calendar_section.get("credentials", "") or "").strip()
            config.credentials = credentials or None
            calendar_id = str(calendar_section.get("id", "") or "").strip()
            if calendar_id:
                config.calendar_id = decode_calendar_id(calendar_id)
            timezone = str(calendar_section.get("timezone", "") or "").strip()
            if timezone:
                config.timezone = timezone

        schedule = str(mapping.get("cron_schedule", "") or "").strip()
        if schedule:
            config.cron_schedule = schedule
        webhook = str(mapping.get("alert_webhook", "") or "").strip()
        config.alert_webhook = webhook or None
        status_path = str(mapping.get("status_path", "") or "").strip()
        if status_path:
            config.status_path = Path(status_path)

        raw_sources = mapping.get("sources")
        if isinstance(raw_sources, Sequence) and not isinstance(raw_sources, (str, bytes)):
            sources = _parse_sources(item for item in raw_sources if isinstance(item, Mapping))
            if sources:
                config.sources = tuple(sources)

        venues = mapping.get("home_venues")
        if isinstance(venues, Sequence) and not isinstance(venues, (str, bytes)):
            cleaned = tuple(str(venue).strip().lower() for venue in venues if str(venue).strip())
            if cleaned:
                config.home_venues = cleaned

        fetch_section = mapping.get("fetch")
        if isinstance(fetch_section, Mapping):
            config.fetch_retries = _coerce_int(fetch_section.get("retries"), config.fetch_retries)
            config.fetch_backoff_seconds = _coerce_float(
                fetch_section.get("backoff_seconds"), config.fetch_backoff_seconds
            )
            config.page_delay_seconds = _coerce_float(
                fetch_section.get("page_delay_seconds"), config.page_delay_seconds
            )
        config.write_delay_seconds = _coerce_float(
            mapping.get("write_delay_seconds"), config.write_delay_seconds
        )
        return config

    def with_environment(self, environ: Mapping[str, str]) -> "AppConfig":
        """Return a copy with values from environment variables applied on top."""

        updates: dict = {}
        credentials = environ.get("GOOGLE_CREDENTIALS", "").strip()
        if credentials:
            updates["credentials"] = credentials
        calendar_id = environ.get("GOOGLE_CALENDAR_ID", "").strip()
        if calendar_id:
            updates["calendar_id"] = decode_calendar_id(calendar_id)
        schedule = environ.get("CRON_SCHEDULE", "").strip()
        if schedule:
            updates["cron_schedule"] = schedule
        webhook = environ.get("SLACK_ERROR_WEBHOOK", "").strip()
        if webhook:
            updates["alert_webhook"] = webhook
        status_path = environ.get("PALMEIRAS_SYNC_STATUS_PATH", "").strip()
        if status_path:
            updates["status_path"] = Path(status_path)
        return replace(self, **updates) if updates else self

    def missing_settings(self) -> List[str]:
        missing: List[str] = []
        if not self.credentials:
            missing.append("GOOGLE_CREDENTIALS")
        return missing

    def validate(self) -> None:
        missing = self.missing_settings()
        if missing:
            raise ConfigError(missing)


def _parse_sources(items: Iterable[Mapping[str, object]]) -> List[SourcePage]:
    sources: List[SourcePage] = []
    for item in items:
        url = str(item.get("url", "")).strip()
        competition = str(item.get("competition", "")).strip()
        if not url or not competition:
            continue
        sources.append(
            SourcePage(
                url=url,
                competition=competition,
                upcoming_section=bool(item.get("upcoming_section", False)),
            )
        )
    return sources


def _coerce_int(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_float(value: object, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def decode_calendar_id(raw: Optional[str]) -> str:
    """Accept a plain calendar id or a base64-encoded one."""

    if not raw or raw == DEFAULT_CALENDAR_ID:
        return DEFAULT_CALENDAR_ID
    if "@" in raw:
        return raw
    try:
        decoded = base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return raw
    # Only trust the decoded form when it looks like a calendar address.
    return decoded if "@" in decoded else raw


def load_config(
    path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Load configuration from an optional YAML file plus the environment."""

    env = os.environ if environ is None else environ
    if path is None and env.get(CONFIG_PATH_ENV):
        path = Path(env[CONFIG_PATH_ENV])

    config = AppConfig()
    if path is not None:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, Mapping):
            raise ValueError("Configuration file must contain a mapping at the root.")
        config = AppConfig.from_mapping(data)
    return config.with_environment(env)
