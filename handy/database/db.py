"""Database connection and initialization."""

import sqlite3
from pathlib import Path
from contextlib import contextmanager
from typing import Generator

from ..infrastructure.config import get_env_var

DEFAULT_DB_FILENAME = "handy.db"


def default_db_path() -> Path:
    """``DATABASE_PATH`` if set, else ``handy.db`` in the working directory."""
    return Path(get_env_var("DATABASE_PATH") or DEFAULT_DB_FILENAME)


DB_PATH = default_db_path()

# Seconds a writer waits on a locked database before sqlite gives up
BUSY_TIMEOUT = 10.0


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Everything executed on the yielded connection commits together when the
    block exits cleanly and rolls back together otherwise.
    """
    conn = sqlite3.connect(str(DB_PATH), timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    """Initialize database with all tables."""
    # Ensure database directory exists
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    schema_path = Path(__file__).parent / "schema.sql"
    with open(schema_path, "r", encoding="utf-8") as f:
        schema_sql = f.read()

    with get_db() as conn:
        # WAL lets readers proceed while a guarded write is in flight
        conn.execute("PRAGMA journal_mode = WAL")
        conn.executescript(schema_sql)
