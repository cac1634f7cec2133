"""Persistence of the latest run summary in a single JSON slot."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from .config import DEFAULT_STATUS_PATH
from .models import SyncRunResult

LOGGER = logging.getLogger(__name__)


class StatusStore:
    """Last-write-wins store; every run overwrites the previous record."""

    def __init__(self, path: Path = DEFAULT_STATUS_PATH) -> None:
        self.path = Path(path)

    def save(self, result: SyncRunResult) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(result.to_json(), handle, indent=2, ensure_ascii=False)
            tmp.replace(self.path)
        except OSError:
            LOGGER.exception("Failed to save run status to %s", self.path)
            return False
        return True

    def load(self) -> Dict[str, object]:
        if not self.path.exists():
            return {
                "status": "no_runs",
                "message": "No sync runs have been executed yet",
            }
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to read run status from %s: %s", self.path, exc)
            return {
                "status": "error",
                "message": f"Failed to read status: {exc}",
            }
