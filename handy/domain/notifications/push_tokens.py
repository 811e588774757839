"""Push token store: device tokens keyed by token, tagged with owner and user type."""

from typing import Any, Dict, Iterable, List

from ...database.db import get_db
from ...infrastructure.utils import utc_now


def save_token(user_id: str, token: str, platform: str = "unknown", user_type: str = "unknown") -> Dict[str, Any]:
    """Upsert a device token. Re-registering moves the token to the new owner."""
    now = utc_now().isoformat()
    with get_db() as conn:
        conn.execute(
            """INSERT INTO push_tokens (token, user_id, user_type, platform, created_at, updated_at, last_active_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(token) DO UPDATE SET
                   user_id = excluded.user_id,
                   user_type = excluded.user_type,
                   platform = excluded.platform,
                   updated_at = excluded.updated_at,
                   last_active_at = excluded.last_active_at""",
            (token, user_id, user_type, platform or "unknown", now, now, now),
        )
        row = conn.execute("SELECT * FROM push_tokens WHERE token = ?", (token,)).fetchone()
    return dict(row)


def remove_token(token: str) -> bool:
    if not token:
        return False
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM push_tokens WHERE token = ?", (token,))
        return cursor.rowcount > 0


def remove_user_token(user_id: str, token: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM push_tokens WHERE token = ? AND user_id = ?", (token, user_id)
        )
        return cursor.rowcount > 0


def get_tokens_by_user_type(user_types: Iterable[str]) -> List[Dict[str, Any]]:
    types = list(user_types)
    if not types:
        return []
    placeholders = ", ".join("?" for _ in types)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM push_tokens WHERE user_type IN ({placeholders})", types
        ).fetchall()
    return [dict(r) for r in rows]


def get_tokens_by_user_ids(user_ids: Iterable[str]) -> List[Dict[str, Any]]:
    ids = list(user_ids)
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM push_tokens WHERE user_id IN ({placeholders})", ids
        ).fetchall()
    return [dict(r) for r in rows]
