from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, roll back on error, always close."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(values: Sequence[Any]) -> str:
    """``%s,%s,...`` for an IN (...) clause."""
    return ",".join(["%s"] * len(values))


def dump_json(value: Any) -> str:
    return json.dumps(value if value is not None else [], default=_json_default)


def load_json(value: Any, default: Any = None) -> Any:
    """Decode a JSON column; the connector may hand back str, bytes or an already decoded value."""
    if value is None or value == "":
        return [] if default is None else default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Unsupported JSON value type: {type(value)!r}")


def as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    return bool(value)


def update_clause(changes: Dict[str, Any], allowed: Sequence[str]) -> tuple[str, list]:
    """Build ``col=%s, ...`` from ``changes`` restricted to ``allowed`` columns."""
    cols = [c for c in allowed if c in changes]
    return ", ".join(f"{c}=%s" for c in cols), [changes[c] for c in cols]


def window_clause(column: str, start: Optional[datetime], end: Optional[datetime]) -> tuple[list, list]:
    """Conditions for ``start <= column < end``; a None bound is left open."""
    where, params = [], []
    if start is not None:
        where.append(f"{column} >= %s")
        params.append(start)
    if end is not None:
        where.append(f"{column} < %s")
        params.append(end)
    return where, params
