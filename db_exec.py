# db_exec.py
from __future__ import annotations

from typing import Any, Optional, Sequence

from psycopg2.extensions import connection as Connection
from psycopg2.extras import RealDictCursor

from services.db_errors import raise_for_db_error


def db_fetchone(conn: Connection, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[dict]:
    """
    Execute on the provided connection so the caller owns the transaction.
    """
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params or ())
            row = cur.fetchone()
            return dict(row) if row else None
    except Exception as e:
        raise_for_db_error(e)
        raise


def db_fetchall(conn: Connection, sql: str, params: Optional[Sequence[Any]] = None) -> list[dict]:
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params or ())
            return [dict(r) for r in cur.fetchall()]
    except Exception as e:
        raise_for_db_error(e)
        raise


def db_execute(conn: Connection, sql: str, params: Optional[Sequence[Any]] = None) -> int:
    """
    Returns affected row count.
    """
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params or ())
            return cur.rowcount
    except Exception as e:
        raise_for_db_error(e)
        raise
