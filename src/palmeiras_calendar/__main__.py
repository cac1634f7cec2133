from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_config
from .log import configure_logging
from .models import TRACKED_TEAM
from .status import StatusStore
from .pipeline import sync


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"Sync upcoming {TRACKED_TEAM} fixtures into Google Calendar"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML configuration file (environment variables take precedence).",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the status of the last run instead of syncing.",
    )
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging()

    config = load_config(args.config)
    if args.status:
        status = StatusStore(config.status_path).load()
        print(json.dumps(status, ensure_ascii=False, indent=2))
        return 0

    try:
        result = sync(config)
    except Exception as exc:
        print(f"Sync failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_json(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
