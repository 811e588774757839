"""Database module for users, reports, redemptions and push tokens."""

from .db import get_db, init_db, DB_PATH

__all__ = ["get_db", "init_db", "DB_PATH"]
