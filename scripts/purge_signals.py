#!/usr/bin/env python3
"""Delete old signals from the signal table.

Meant to run from an external scheduler (cron, a scheduled function, ...).
The bus itself never deletes anything.

Usage:
    python scripts/purge_signals.py --retention-days 30
    python scripts/purge_signals.py --stats-only
"""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lifebus.config.loader import ConfigLoader
from lifebus.errors import StoreConfigurationError, SystemFailureError
from lifebus.housekeeping import SignalJanitor
from lifebus.logging.config import configure_from_params
from lifebus.models.signal import SignalStatus
from lifebus.persistence import create_store


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge old inter-agent signals")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory containing lifebus.yaml")
    parser.add_argument("--retention-days", type=int, default=None,
                        help="Keep signals that expired less than this many days ago")
    parser.add_argument("--terminal-only", action="store_true",
                        help="Only delete consumed or dismissed signals")
    parser.add_argument("--stats-only", action="store_true",
                        help="Print row counts and exit without deleting")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = ConfigLoader.create(args.config_dir).load()
    except StoreConfigurationError as e:
        print(f"❌ {e}")
        return 1

    configure_from_params(config.logging)

    retention_days = args.retention_days
    if retention_days is None:
        retention_days = config.housekeeping.retention_days

    try:
        store = create_store(config.store)
        janitor = SignalJanitor(store, retention_days=retention_days)
    except (SystemFailureError, ValueError) as e:
        print(f"❌ {e}")
        return 1

    before = janitor.stats()
    print(f"📊 Signals before: {before.get('total', 'unavailable')} {before.get('by_status', {})}")

    if args.stats_only:
        return 0

    statuses = [SignalStatus.CONSUMED, SignalStatus.DISMISSED] if args.terminal_only else None
    deleted = janitor.purge(statuses=statuses)
    print(f"🧹 Deleted {deleted} signals (retention {janitor.retention_days} days)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
