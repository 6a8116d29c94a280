from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from db_exec import db_fetchone


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_id(conn, user_id: UUID) -> Optional[dict[str, Any]]:
    return db_fetchone(conn, "SELECT id, email, role FROM users WHERE id = %s", (user_id,))


def get_user_by_email(conn, email: str) -> Optional[dict[str, Any]]:
    return db_fetchone(
        conn,
        "SELECT id, email, role, password_hash FROM users WHERE email = %s LIMIT 1",
        (normalize_email(email),),
    )


def upsert_user(conn, *, email: str, password_hash: str, role: str) -> UUID:
    row = db_fetchone(
        conn,
        """
        INSERT INTO users (email, password_hash, role)
        VALUES (%s, %s, %s)
        ON CONFLICT (email) DO UPDATE
          SET password_hash = EXCLUDED.password_hash,
              role = EXCLUDED.role,
              updated_at = now()
        RETURNING id
        """,
        (normalize_email(email), password_hash, role),
    )
    return row["id"]
