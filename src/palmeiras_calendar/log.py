import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "PALMEIRAS_SYNC_LOG_LEVEL"
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _resolve_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO")
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[int] = None) -> None:
    resolved = level if level is not None else _resolve_log_level()
    logging.basicConfig(level=resolved, format=DEFAULT_LOG_FORMAT)
