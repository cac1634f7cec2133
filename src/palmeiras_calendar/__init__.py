"""Mirror Palmeiras fixtures from ptd.verdao.net into a Google Calendar."""

from .config import AppConfig, SourcePage, load_config
from .errors import AuthError, ConfigError, FetchError, SyncError, WriteError
from .fetch import NOT_PUBLISHED, fetch_html
from .gcal import CalendarReconciler, build_calendar_service, match_to_event, parse_credentials
from .models import Match, RawFixture, SyncRunResult, unique_key
from .normalizer import build_match, normalize_broadcast, parse_match_datetime
from .parser import parse_fixtures
from .processing import process_matches
from .status import StatusStore
from .pipeline import collect_matches, run_sync, sync

__all__ = [
    "AppConfig",
    "AuthError",
    "CalendarReconciler",
    "ConfigError",
    "FetchError",
    "Match",
    "NOT_PUBLISHED",
    "RawFixture",
    "SourcePage",
    "StatusStore",
    "SyncError",
    "SyncRunResult",
    "WriteError",
    "build_calendar_service",
    "build_match",
    "collect_matches",
    "fetch_html",
    "load_config",
    "match_to_event",
    "normalize_broadcast",
    "parse_credentials",
    "parse_fixtures",
    "parse_match_datetime",
    "process_matches",
    "run_sync",
    "sync",
    "unique_key",
]
