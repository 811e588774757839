"""Report store: persistence plus guarded state transitions.

Every transition is a single ``UPDATE ... WHERE status = ?`` so the database,
not the application, decides which of several concurrent callers wins.
"""

import sqlite3
from typing import List, Optional

from ...database.db import get_db
from ...infrastructure.utils import new_id, utc_now
from .models import PRIORITY_BY_TYPE, Report, ReportStatus, ReportType


def insert_report(
    user_id: str,
    report_type: ReportType,
    details: str,
    location: str,
    latitude: float,
    longitude: float,
) -> Report:
    report_id = new_id()
    now = utc_now().isoformat()
    with get_db() as conn:
        conn.execute(
            """INSERT INTO reports (id, user_id, type, details, location, latitude, longitude,
                                    status, priority, assigned_volunteer_id, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, NULL, ?, ?)""",
            (
                report_id, user_id, report_type.value, details, location or "",
                latitude, longitude, ReportStatus.PENDING.value,
                PRIORITY_BY_TYPE[report_type].value, now, now,
            ),
        )
        return _fetch(conn, report_id)


def _fetch(conn: sqlite3.Connection, report_id: str) -> Optional[Report]:
    row = conn.execute("SELECT * FROM reports WHERE id = ?", (report_id,)).fetchone()
    return Report.from_row(row) if row else None


def get_report_by_id(report_id: str) -> Optional[Report]:
    with get_db() as conn:
        return _fetch(conn, report_id)


def list_by_reporter(user_id: str, status: Optional[ReportStatus] = None) -> List[Report]:
    query = "SELECT * FROM reports WHERE user_id = ?"
    params: list = [user_id]
    if status is not None:
        query += " AND status = ?"
        params.append(status.value)
    query += " ORDER BY created_at DESC, rowid DESC"
    with get_db() as conn:
        return [Report.from_row(r) for r in conn.execute(query, params).fetchall()]


def list_by_volunteer(volunteer_id: str) -> List[Report]:
    with get_db() as conn:
        rows = conn.execute(
            """SELECT * FROM reports WHERE assigned_volunteer_id = ?
               ORDER BY created_at DESC, rowid DESC""",
            (volunteer_id,),
        ).fetchall()
    return [Report.from_row(r) for r in rows]


def list_by_status(status: ReportStatus) -> List[Report]:
    # Unpaginated; fine while the number of open reports stays small
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM reports WHERE status = ? ORDER BY created_at DESC, rowid DESC",
            (status.value,),
        ).fetchall()
    return [Report.from_row(r) for r in rows]


def claim_report(report_id: str, volunteer_id: str) -> Optional[Report]:
    """Move a pending report to in_progress and assign it, in one conditional write.

    Returns the updated report, or None when the report was not pending at the
    moment of the write (another volunteer won, it was cancelled, or it does
    not exist).
    """
    with get_db() as conn:
        cursor = conn.execute(
            """UPDATE reports
               SET status = ?, assigned_volunteer_id = ?, updated_at = ?
               WHERE id = ? AND status = ? AND assigned_volunteer_id IS NULL""",
            (
                ReportStatus.IN_PROGRESS.value, volunteer_id, utc_now().isoformat(),
                report_id, ReportStatus.PENDING.value,
            ),
        )
        if cursor.rowcount != 1:
            return None
        return _fetch(conn, report_id)


def transition_status(
    report_id: str,
    expected: ReportStatus,
    new_status: ReportStatus,
    reporter_id: Optional[str] = None,
) -> Optional[Report]:
    """Compare-and-swap the status of a report.

    The write only lands if the stored status still equals ``expected`` (and,
    when given, the report belongs to ``reporter_id``). Returns None otherwise.
    """
    query = "UPDATE reports SET status = ?, updated_at = ? WHERE id = ? AND status = ?"
    params = [new_status.value, utc_now().isoformat(), report_id, expected.value]
    if reporter_id is not None:
        query += " AND user_id = ?"
        params.append(reporter_id)
    with get_db() as conn:
        cursor = conn.execute(query, params)
        if cursor.rowcount != 1:
            return None
        return _fetch(conn, report_id)
