"""User ledger: profiles, point balances and the daily login bonus.

Point balances are only ever changed with single conditional ``UPDATE``
statements (``points = points + ?``) so a concurrent writer can never be lost;
sqlite lock contention is retried a bounded number of times.
"""

import sqlite3
import time
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Tuple, TypeVar

from ...database.db import get_db
from ...infrastructure.exceptions import (
    ConcurrencyError,
    InsufficientPointsError,
    NotFoundError,
    ValidationError,
)
from ...infrastructure.logging import get_logger
from ...infrastructure.utils import utc_now
from .models import User, UserType

logger = get_logger(__name__)

T = TypeVar("T")

DAILY_LOGIN_BONUS = 50
# The bonus day starts at 06:00 Thailand time (UTC+7)
BONUS_TIMEZONE = timezone(timedelta(hours=7))
BONUS_RESET_HOUR = 6

POINT_MUTATION_ATTEMPTS = 3
_RETRY_BACKOFF_SECONDS = 0.05


def _is_lock_error(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def with_retry(operation: Callable[[], T], attempts: int = POINT_MUTATION_ATTEMPTS) -> T:
    """Run a point mutation, retrying when the store reports write contention."""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except sqlite3.OperationalError as exc:
            if not _is_lock_error(exc):
                raise
            logger.debug("Point mutation hit contention (attempt %d/%d): %s", attempt, attempts, exc)
            if attempt == attempts:
                raise ConcurrencyError("Point balance update kept conflicting with concurrent writers") from exc
            time.sleep(_RETRY_BACKOFF_SECONDS * attempt)
    raise ConcurrencyError("Point balance update failed")


def create_user(
    uid: str,
    email: Optional[str],
    user_type: str,
    name: Optional[str] = None,
    surname: Optional[str] = None,
    tel: Optional[str] = None,
) -> User:
    """Create the profile for a freshly verified identity."""
    try:
        parsed_type = UserType(user_type)
    except ValueError:
        raise ValidationError('Type must be either "volunteer" or "disabled"', error="Invalid user type")

    now = utc_now().isoformat()
    points = 0 if parsed_type == UserType.VOLUNTEER else None
    try:
        with get_db() as conn:
            conn.execute(
                """INSERT INTO users (id, email, type, name, surname, tel, points, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (uid, email, parsed_type.value, name, surname, tel, points, now, now),
            )
    except sqlite3.IntegrityError:
        raise ValidationError("User already exists", error="User already exists")

    logger.info("Registered %s user %s", parsed_type.value, uid)
    return get_user_by_id(uid)


def get_user_by_id(uid: str) -> Optional[User]:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (uid,)).fetchone()
    return User.from_row(row) if row else None


def require_user(uid: str) -> User:
    user = get_user_by_id(uid)
    if user is None:
        raise NotFoundError("User not found", error="User not found")
    return user


def update_profile(
    uid: str,
    name: Optional[str] = None,
    surname: Optional[str] = None,
    tel: Optional[str] = None,
) -> User:
    """Update editable profile fields. Type, email and points are not editable."""
    update_fields = []
    update_values = []
    for column, value in (("name", name), ("surname", surname), ("tel", tel)):
        if value:
            update_fields.append(f"{column} = ?")
            update_values.append(value)

    if update_fields:
        update_fields.append("updated_at = ?")
        update_values.extend([utc_now().isoformat(), uid])
        with get_db() as conn:
            conn.execute(
                f"UPDATE users SET {', '.join(update_fields)} WHERE id = ?",
                update_values,
            )
    return require_user(uid)


def _apply_delta(conn: sqlite3.Connection, uid: str, delta: int) -> int:
    cursor = conn.execute(
        """UPDATE users
           SET points = points + ?, updated_at = ?
           WHERE id = ? AND type = 'volunteer' AND points + ? >= 0""",
        (delta, utc_now().isoformat(), uid, delta),
    )
    if cursor.rowcount == 1:
        return conn.execute("SELECT points FROM users WHERE id = ?", (uid,)).fetchone()["points"]

    row = conn.execute("SELECT type, points FROM users WHERE id = ?", (uid,)).fetchone()
    if row is None or row["type"] != UserType.VOLUNTEER.value:
        raise NotFoundError("User not found or not a volunteer", error="User not found")
    raise InsufficientPointsError(
        f"Balance {row['points']} is lower than the {-delta} points required"
    )


def apply_points_delta(uid: str, delta: int, conn: Optional[sqlite3.Connection] = None) -> int:
    """Atomically add ``delta`` to a volunteer's balance and return the new balance.

    The balance check happens inside the write itself, so a debit can never
    drive the balance negative even when a stale read said it had enough.
    Pass ``conn`` to make the change part of the caller's transaction.
    """
    if conn is not None:
        return _apply_delta(conn, uid, delta)

    def _run() -> int:
        with get_db() as own_conn:
            return _apply_delta(own_conn, uid, delta)

    return with_retry(_run)


def bonus_day(now: datetime) -> Optional[date]:
    """Return the Thailand calendar day a bonus claimed at ``now`` counts for.

    ``None`` means the bonus window for today has not opened yet.
    """
    local = now.astimezone(BONUS_TIMEZONE)
    if local.hour < BONUS_RESET_HOUR:
        return None
    return local.date()


def grant_daily_login_bonus(uid: str, now: Optional[datetime] = None) -> bool:
    """Grant the daily bonus to a volunteer at most once per Thailand calendar day.

    Returns True when points were added by this call.
    """
    now = now or utc_now()
    today = bonus_day(now)
    if today is None:
        return False

    today_str = today.isoformat()

    def _run() -> bool:
        with get_db() as conn:
            cursor = conn.execute(
                """UPDATE users
                   SET points = points + ?, last_login_date = ?, updated_at = ?
                   WHERE id = ? AND type = 'volunteer'
                     AND (last_login_date IS NULL OR last_login_date <> ?)""",
                (DAILY_LOGIN_BONUS, today_str, now.isoformat(), uid, today_str),
            )
            return cursor.rowcount == 1

    granted = with_retry(_run)
    if granted:
        logger.info("Granted daily login bonus of %d points to %s for %s", DAILY_LOGIN_BONUS, uid, today_str)
    return granted


def fetch_profile(uid: str, now: Optional[datetime] = None) -> Tuple[User, bool]:
    """Read a user's own profile, claiming the daily login bonus for volunteers.

    Returns the profile as stored after the claim and whether a bonus was granted.
    """
    user = require_user(uid)
    granted = False
    if user.is_volunteer:
        try:
            granted = grant_daily_login_bonus(uid, now)
        except ConcurrencyError as exc:
            logger.warning("Daily bonus check for %s skipped: %s", uid, exc)
        if granted:
            user = require_user(uid)
    return user, granted
