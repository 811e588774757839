#!/usr/bin/env python3
"""
Database seed script that:
1. Drops all existing tables
2. Recreates all tables from schema.sql
3. Inserts a demo volunteer and a demo disabled user
4. Prints bearer tokens for both

Run with: python -m handy.database.seed
"""

import sqlite3
import sys
import traceback
from datetime import timedelta
from typing import Dict

from . import db
from ..infrastructure.auth import create_token
from ..infrastructure.utils import utc_now

EXPECTED_TABLES = ["users", "reports", "redeems", "push_tokens"]

DEMO_USERS = [
    {"id": "demo-volunteer", "email": "volunteer@handy.test", "type": "volunteer",
     "name": "Somchai", "surname": "Demo", "tel": "0800000001", "points": 1000},
    {"id": "demo-disabled", "email": "requester@handy.test", "type": "disabled",
     "name": "Malee", "surname": "Demo", "tel": "0800000002", "points": None},
]


def get_all_tables(conn: sqlite3.Connection) -> list[str]:
    """Get list of all table names from the database."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
    )
    return [row[0] for row in cursor.fetchall()]


def drop_all_tables(conn: sqlite3.Connection) -> None:
    """Drop all tables with foreign keys disabled."""
    print("Dropping all existing tables...")
    conn.execute("PRAGMA foreign_keys=OFF")

    tables = get_all_tables(conn)
    if not tables:
        print("  ✓ No tables to drop")
        return

    for table in tables:
        conn.execute(f"DROP TABLE IF EXISTS {table}")
        print(f"  ✓ Dropped table: {table}")

    conn.execute("PRAGMA foreign_keys=ON")
    print(f"  ✓ Dropped {len(tables)} tables\n")


def insert_demo_users(conn: sqlite3.Connection) -> Dict[str, str]:
    """Insert demo users and return a token per user id."""
    print("Inserting demo users...")
    now = utc_now().isoformat()
    tokens = {}
    for user in DEMO_USERS:
        conn.execute(
            """INSERT INTO users (id, email, type, name, surname, tel, points, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (user["id"], user["email"], user["type"], user["name"], user["surname"],
             user["tel"], user["points"], now, now),
        )
        tokens[user["id"]] = create_token(user["id"], user["email"], ttl=timedelta(days=30))
        print(f"  ✓ Created {user['type']} user: {user['email']} (ID: {user['id']})")
    print()
    return tokens


def verify_schema(conn: sqlite3.Connection) -> bool:
    """Verify that all expected tables exist (must match schema.sql)."""
    print("Verifying database schema...")
    tables = get_all_tables(conn)
    missing = [t for t in EXPECTED_TABLES if t not in tables]
    if missing:
        print(f"  ✗ Missing tables: {missing}")
        return False
    print(f"  ✓ All {len(EXPECTED_TABLES)} expected tables are present\n")
    return True


def main():
    """Main seed script execution."""
    print("=" * 60)
    print("Database Seed Script")
    print("=" * 60)
    print()

    try:
        db.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        with db.get_db() as conn:
            drop_all_tables(conn)
        db.init_db()

        with db.get_db() as conn:
            tokens = insert_demo_users(conn)
            ok = verify_schema(conn)
    except (sqlite3.Error, OSError) as e:
        print(f"\n✗ Seed script failed: {e}")
        traceback.print_exc()
        sys.exit(1)

    if not ok:
        print("⚠ Database seeded with warnings")
        sys.exit(1)

    print("=" * 60)
    print("✓ Database seeded successfully!")
    print("=" * 60)
    print()
    for user_id, token in tokens.items():
        print(f"  {user_id}: Authorization: Bearer {token}")
    print()


if __name__ == "__main__":
    main()
