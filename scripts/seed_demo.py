#!/usr/bin/env python3
"""
Demo Data Script

Loads the sample tea shop catalogue, customers, staff, orders and reviews.

Usage:
    python scripts/seed_demo.py
    python scripts/seed_demo.py --reset
    python scripts/seed_demo.py --reset --shift-to-today
"""
import sys
import argparse
from pathlib import Path
from datetime import datetime

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from teashop.models.base import SessionLocal, init_db, reset_db
from teashop.services import seed_service
from teashop.utils.logger import log


def main():
    parser = argparse.ArgumentParser(description="Load tea shop demo data")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    parser.add_argument(
        "--shift-to-today",
        action="store_true",
        help="Move all demo timestamps so the latest order falls on today (UTC)",
    )
    args = parser.parse_args()

    if args.reset:
        log.warning("Dropping and recreating all tables")
        reset_db()
    else:
        init_db()

    db = SessionLocal()
    try:
        if not seed_service.is_empty(db):
            log.error("Database already has products or customers; use --reset to replace them")
            return 1
        anchor = datetime.utcnow() if args.shift_to_today else None
        counts = seed_service.seed_demo_data(db, anchor=anchor)
    finally:
        db.close()

    for table, count in counts.items():
        print(f"  {table:<12} {count}")
    print(f"\nStaff login:    admin@deniyaya.com / {seed_service.STAFF_PASSWORD}")
    print(f"Customer login: customer@deniyaya.com / {seed_service.CUSTOMER_PASSWORD}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
