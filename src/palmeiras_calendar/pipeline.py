"""Run the fetch → parse → normalize → process → reconcile pipeline."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

import requests

from .alerts import post_alert
from .config import AppConfig, SourcePage, load_config
from .errors import FetchError
from .fetch import NOT_PUBLISHED, fetch_html
from .gcal import CalendarReconciler, build_calendar_service
from .models import TRACKED_TEAM, Match, SyncRunResult
from .normalizer import build_match
from .parser import parse_fixtures
from .processing import process_matches
from .status import StatusStore

LOGGER = logging.getLogger(__name__)

ServiceFactory = Callable[[Optional[str]], object]


def _collect_page(
    page: SourcePage,
    config: AppConfig,
    *,
    session: Optional[requests.Session],
    now: Optional[datetime],
) -> List[Match]:
    html = fetch_html(
        page.url,
        retries=config.fetch_retries,
        backoff_seconds=config.fetch_backoff_seconds,
        session=session,
    )
    if html is NOT_PUBLISHED:
        LOGGER.info("%s is not published yet; skipping %s", page.competition, page.url)
        return []

    tz = ZoneInfo(config.timezone)
    fragments = parse_fixtures(
        html, page.competition, page.url, upcoming_section=page.upcoming_section
    )
    matches: List[Match] = []
    for fragment in fragments:
        match = build_match(fragment, tz=tz, home_venues=config.home_venues, now=now)
        if match is not None:
            matches.append(match)
    return matches


def collect_matches(
    config: AppConfig,
    *,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
) -> List[Match]:
    """Gather matches from every configured page; a failing page is skipped."""

    matches: List[Match] = []
    for index, page in enumerate(config.sources):
        if index and config.page_delay_seconds > 0:
            time.sleep(config.page_delay_seconds)
        LOGGER.info("Fetching %s from %s", page.competition, page.url)
        try:
            page_matches = _collect_page(page, config, session=session, now=now)
        except FetchError as exc:
            LOGGER.warning("Failed to fetch %s: %s", page.competition, exc)
            continue
        LOGGER.info("Found %d matches from %s", len(page_matches), page.competition)
        matches.extend(page_matches)
    LOGGER.info("Total matches found: %d", len(matches))
    return matches


def run_sync(
    config: AppConfig,
    *,
    session: Optional[requests.Session] = None,
    service_factory: Optional[ServiceFactory] = None,
    status_store: Optional[StatusStore] = None,
    now: Optional[datetime] = None,
) -> SyncRunResult:
    """Execute one sync run and persist its outcome, success or failure."""

    started = datetime.now(timezone.utc)
    store = status_store or StatusStore(config.status_path)
    result = SyncRunResult(
        run_id=f"sync-{int(started.timestamp() * 1000)}",
        status="running",
        start_time=started,
    )
    store.save(result)
    LOGGER.info("⚽ %s calendar sync started (%s)", TRACKED_TEAM, result.run_id)

    try:
        config.validate()
        matches = process_matches(collect_matches(config, session=session, now=now), now=now)
        result.found = len(matches)

        if not matches:
            LOGGER.warning("No upcoming fixtures found")
            result.message = "No upcoming fixtures found"
        else:
            factory = service_factory or build_calendar_service
            reconciler = CalendarReconciler(
                factory(config.credentials),
                config.calendar_id,
                timezone_name=config.timezone,
                write_delay=config.write_delay_seconds,
            )
            outcome = reconciler.reconcile(matches, now=now)
            result.created = outcome.created
            result.updated = outcome.updated
            result.skipped = outcome.skipped
            result.errors = list(outcome.errors)
            result.message = (
                f"Sync complete! {outcome.created} created, "
                f"{outcome.updated} updated, {outcome.skipped} errors"
            )
        result.status = "success"
    except BaseException as exc:
        LOGGER.exception("Sync failed")
        result.status = "error"
        reason = str(exc) or type(exc).__name__
        result.errors = [{"error": reason}]
        result.message = f"Sync failed: {reason}"
        result.end_time = datetime.now(timezone.utc)
        store.save(result)
        raise

    result.end_time = datetime.now(timezone.utc)
    store.save(result)
    LOGGER.info("%s (%d ms)", result.message, result.duration or 0)
    return result


def sync(config: Optional[AppConfig] = None) -> SyncRunResult:
    """Trigger entry point; without arguments the configuration comes from the environment.

    A failed run is reported to the alert webhook before the error propagates.
    """

    if config is None:
        config = load_config()
    try:
        return run_sync(config)
    except Exception as exc:
        post_alert(config.alert_webhook, f"❌ {TRACKED_TEAM} calendar sync failed: {exc}")
        raise

