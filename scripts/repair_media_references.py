#!/usr/bin/env python3
"""
Script to rewrite legacy media references to canonical storage keys.
Runs as a dry run unless --apply is given.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import Database
from services.reference_repair import ReferenceRepairService
import config


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--apply", action="store_true", help="write the canonical keys back")
    args = parser.parse_args(argv)

    config.db = Database(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )
    native_hosts = config.storage_config().all_native_hosts()

    print(f"Database: {config.DATABASE_URL.split('@')[1] if '@' in config.DATABASE_URL else 'local'}")
    print("Mode: " + ("APPLY" if args.apply else "dry run"))
    print("=" * 60)

    try:
        with config.db.get_session() as db:
            report = ReferenceRepairService.repair(db, apply=args.apply, native_hosts=native_hosts)
    except Exception as e:
        print(f"\n✗ Repair failed: {e}")
        sys.exit(1)

    for fix in report.fixes:
        print(f"{fix.table}#{fix.record_id}.{fix.column}")
        print(f"    {fix.old_value}")
        print(f"  → {fix.new_value}")

    print("=" * 60)
    print(f"Scanned {report.scanned} records")
    for table, count in sorted(report.by_table().items()):
        print(f"  {table}: {count}")
    if report.fixes and not args.apply:
        print("\nRe-run with --apply to write these changes.")
    elif report.fixes:
        print(f"\n✓ Rewrote {report.fixed} references")
    else:
        print("\n✓ Nothing to repair")


if __name__ == "__main__":
    main()
