import json
import sys
from datetime import datetime, timedelta, timezone

from palmeiras_calendar.__main__ import main
from palmeiras_calendar.models import SyncRunResult
from palmeiras_calendar.status import StatusStore

STARTED = datetime(2026, 1, 1, 2, 0, tzinfo=timezone.utc)


def _result(**overrides):
    fields = {
        "run_id": "sync-1767232800000",
        "status": "success",
        "start_time": STARTED,
        "end_time": STARTED + timedelta(seconds=4, milliseconds=250),
        "found": 3,
        "created": 1,
        "updated": 2,
        "message": "Sync complete! 1 created, 2 updated, 0 errors",
    }
    fields.update(overrides)
    return SyncRunResult(**fields)


def test_missing_file_reports_no_runs(tmp_path):
    store = StatusStore(tmp_path / "status.json")

    assert store.load() == {"status": "no_runs", "message": "No sync runs have been executed yet"}


def test_latest_run_overwrites_previous(tmp_path):
    store = StatusStore(tmp_path / "nested" / "status.json")

    assert store.save(_result(status="running", end_time=None))
    assert store.save(_result())

    saved = store.load()
    assert saved["status"] == "success"
    assert saved["startTime"] == "2026-01-01T02:00:00.000Z"
    assert saved["endTime"] == "2026-01-01T02:00:04.250Z"
    assert saved["duration"] == 4250
    assert saved["found"] == 3
    assert not (tmp_path / "nested" / "status.tmp").exists()


def test_corrupt_file_is_reported(tmp_path):
    path = tmp_path / "status.json"
    path.write_text("{not json", encoding="utf-8")

    assert StatusStore(path).load()["status"] == "error"


def test_unwritable_location_does_not_raise(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    assert StatusStore(blocker / "status.json").save(_result()) is False


def test_status_command_prints_last_run(tmp_path, monkeypatch, capsys):
    path = tmp_path / "status.json"
    StatusStore(path).save(_result())
    monkeypatch.setenv("PALMEIRAS_SYNC_STATUS_PATH", str(path))
    monkeypatch.delenv("PALMEIRAS_SYNC_CONFIG", raising=False)
    monkeypatch.setattr(sys, "argv", ["palmeiras-calendar-sync", "--status"])

    assert main() == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["runId"] == "sync-1767232800000"
