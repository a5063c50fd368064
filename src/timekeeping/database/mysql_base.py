from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One connection, one transaction: commit on success, rollback on any error."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def lock_keys(cur, keys: Iterable[str]) -> None:
    """Take exclusive row locks on ``row_locks`` for the current transaction.

    The upsert takes the exclusive lock on both the insert and the
    duplicate-key path. Keys are locked in sorted order; commit or
    rollback in ``db_cursor`` releases them.
    """
    for key in sorted(set(keys)):
        cur.execute(
            "INSERT INTO row_locks(lock_key) VALUES(%s) ON DUPLICATE KEY UPDATE lock_key=lock_key",
            (key,),
        )


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def load_json(value: Any) -> Any:
    """Decode a JSON column; mysql-connector may hand back str, bytes or already-decoded values."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else None
    return value


def to_clock_time(value: Any) -> Optional[time]:
    """Coerce a TIME column (time, timedelta or 'HH:MM[:SS]' string) to ``datetime.time``."""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii")
    if isinstance(value, str):
        return time.fromisoformat(value.strip())
    raise TypeError(f"Unsupported TIME value: {value!r}")
