"""Redeem store."""

import sqlite3
from typing import List, Optional

from ...database.db import get_db
from ...infrastructure.utils import new_id, utc_now
from .models import Redeem, RedeemStatus


def insert_redeem(
    conn: sqlite3.Connection,
    volunteer_id: str,
    reward_name: str,
    reward_description: str,
    points_required: int,
) -> Redeem:
    """Insert on the caller's connection so it commits with the point deduction."""
    redeem_id = new_id()
    now = utc_now().isoformat()
    conn.execute(
        """INSERT INTO redeems (id, volunteer_id, reward_name, reward_description, points_required,
                                status, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (redeem_id, volunteer_id, reward_name, reward_description or "", points_required,
         RedeemStatus.PENDING.value, now, now),
    )
    return fetch(conn, redeem_id)


def fetch(conn: sqlite3.Connection, redeem_id: str) -> Optional[Redeem]:
    row = conn.execute("SELECT * FROM redeems WHERE id = ?", (redeem_id,)).fetchone()
    return Redeem.from_row(row) if row else None


def get_redeem_by_id(redeem_id: str) -> Optional[Redeem]:
    with get_db() as conn:
        return fetch(conn, redeem_id)


def list_by_volunteer(volunteer_id: str) -> List[Redeem]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM redeems WHERE volunteer_id = ? ORDER BY created_at DESC, rowid DESC",
            (volunteer_id,),
        ).fetchall()
    return [Redeem.from_row(r) for r in rows]


def transition_status(
    conn: sqlite3.Connection,
    redeem_id: str,
    expected: RedeemStatus,
    new_status: RedeemStatus,
) -> bool:
    """Compare-and-swap the status on the caller's connection."""
    cursor = conn.execute(
        "UPDATE redeems SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
        (new_status.value, utc_now().isoformat(), redeem_id, expected.value),
    )
    return cursor.rowcount == 1
