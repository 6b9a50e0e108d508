"""
Web sessions repository.
"""

import json
import sqlite3
from typing import Any, Dict, Optional


def upsert_session(conn: sqlite3.Connection, session_id: str, data: Dict[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO web_sessions (session_id, data_json, updated_at)
        VALUES (?, ?, datetime('now'))
        ON CONFLICT(session_id) DO UPDATE SET
            data_json = excluded.data_json,
            updated_at = datetime('now')
        ;
        """,
        (session_id, json.dumps(data, ensure_ascii=False)),
    )


def get_session(conn: sqlite3.Connection, session_id: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        """
        SELECT session_id, data_json, updated_at
        FROM web_sessions
        WHERE session_id = ?;
        """,
        (session_id,),
    ).fetchone()
    if not row:
        return None
    try:
        data = json.loads(row["data_json"])
    except ValueError:
        # Unreadable row: treat as a fresh visitor
        return None
    if not isinstance(data, dict):
        return None
    return {"data": data, "updated_at": row["updated_at"]}


def delete_session(conn: sqlite3.Connection, session_id: str) -> None:
    conn.execute("DELETE FROM web_sessions WHERE session_id = ?;", (session_id,))


def delete_expired_sessions(conn: sqlite3.Connection, ttl_minutes: int) -> int:
    cur = conn.execute(
        f"DELETE FROM web_sessions WHERE updated_at < datetime('now', '-{int(ttl_minutes)} minutes');"
    )
    return int(cur.rowcount)


def count_sessions(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) AS c FROM web_sessions;").fetchone()
    return int(row["c"]) if row else 0
