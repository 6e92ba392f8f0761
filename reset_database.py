#!/usr/bin/env python3
"""
Database reset script for the Study Space backend.

Drops and recreates every table, then seeds a demo library with one branch,
a numbered range of seats, matching lockers, a platform admin and an owner.
Use this to get a predictable local database.
"""

import argparse
import os
import sys

# Add backend/src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend', 'src'))

from core.config import DATABASE_URL
from core.constants import ROLE_OWNER, ROLE_PLATFORM_ADMIN
from core.database import create_tables, drop_tables, get_db_context
from models import Branch, Library, ResourceKind, User
from services.resource_service import ResourceService


def reset_database(seat_count: int, force: bool) -> int:
    """Reset the database and seed demo data. Returns a process exit code."""

    print("🔄 Resetting Study Space database...")
    print(f"Database URL: {DATABASE_URL}")

    # Confirm action (in case someone runs this accidentally)
    if not force and not DATABASE_URL.startswith("sqlite") and "_dev" not in DATABASE_URL:
        print("❌ ERROR: Refusing to reset a non-development database without --force")
        return 1

    drop_tables()
    create_tables()
    print("✅ All tables created")

    with get_db_context() as db:
        library = Library(name="Demo Library", max_seats=seat_count * 2)
        db.add(library)
        db.flush()

        branch = Branch(library_id=library.id, name="Main Branch", seat_count=0)
        db.add(branch)
        db.flush()

        db.add_all([
            User(email="admin@platform.com", name="Super Admin", role=ROLE_PLATFORM_ADMIN),
            User(email="owner@demo-library.com", name="Demo Owner", role=ROLE_OWNER, library_id=library.id),
        ])
        db.commit()
        branch_id = branch.id

    with get_db_context() as db:
        seats = ResourceService.create_bulk_seats(db, branch_id, start=1, end=seat_count)
        if not seats.success:
            print(f"❌ ERROR: {seats.error}")
            return 1
        print(f"✅ Created {len(seats.data or [])} seats")

        for number in range(1, seat_count + 1):
            result = ResourceService.create_resource(db, ResourceKind.LOCKER, branch_id, number=str(number))
            if not result.success:
                print(f"❌ ERROR: {result.error}")
                return 1
        print(f"✅ Created {seat_count} lockers")

    print("🎉 Database reset complete")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset and seed the Study Space database")
    parser.add_argument("--seats", type=int, default=80, help="Number of seats and lockers to create")
    parser.add_argument("--force", action="store_true", help="Allow resetting a non-development database")
    args = parser.parse_args()
    sys.exit(reset_database(args.seats, args.force))
