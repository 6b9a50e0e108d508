"""
SQLite connection factory for the web session store.
"""

import sqlite3
from pathlib import Path
from typing import Union

MEMORY = ":memory:"


def connect(db_path: Union[Path, str]) -> sqlite3.Connection:
    """Open SQLite connection and apply pragmas. ``":memory:"`` is accepted for tests."""
    target = str(db_path)
    if target != MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    # Shared between uvicorn worker threads and the cleanup worker
    conn = sqlite3.connect(
        target,
        timeout=30,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row

    _apply_pragmas(conn, in_memory=(target == MEMORY))
    return conn


def _apply_pragmas(conn: sqlite3.Connection, in_memory: bool = False) -> None:
    if not in_memory:
        conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    conn.execute("PRAGMA temp_store = MEMORY;")
    conn.execute("PRAGMA busy_timeout = 30000;")
