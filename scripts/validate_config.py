#!/usr/bin/env python3
"""Configuration validation script.

Usage:
    python scripts/validate_config.py
    python scripts/validate_config.py --config-dir ./config --check-store
"""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lifebus.config.loader import ConfigLoader
from lifebus.config.validation import ConfigValidator
from lifebus.errors import SystemFailureError
from lifebus.persistence import create_store


def check_store(config) -> bool:
    """Build the configured store and run one counting query against it."""
    print(f"\n🗄️  Connecting to {config.store.backend} store...")

    try:
        store = create_store(config.store)
        counts = store.count_by_status()
    except SystemFailureError as e:
        print(f"❌ Store check failed: {e}")
        return False

    print(f"✅ Store reachable, {sum(counts.values())} signals {counts}")
    return True


def main(argv=None) -> int:
    """Main validation function."""
    parser = argparse.ArgumentParser(description="Validate lifebus configuration")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory containing lifebus.yaml")
    parser.add_argument("--check-store", action="store_true",
                        help="Also open the configured store")
    args = parser.parse_args(argv)

    print("🔍 Validating lifebus configuration...")

    loader = ConfigLoader.create(args.config_dir)
    merged = loader.merge_config()

    print(f"\n📂 Config directory: {loader.config_dir}")
    print(f"🗄️  Store backend: {merged.get('store', {}).get('backend')}")

    errors = ConfigValidator.validate_config(merged)
    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value!r})")
        print("\n❌ Configuration validation failed!")
        return 1

    if args.check_store and not check_store(loader.load()):
        return 1

    print("\n🎉 Configuration is valid!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
