"""
Append-only payout audit trail.

Only the workflow engine writes here, from inside an already-authorized
transition and on the same connection as the status change. There is no
update or delete path; the table also carries a trigger that refuses both.
"""
from __future__ import annotations

from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from db_exec import db_fetchall, db_fetchone


def _to_entry(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "payout_id": row["payout_id"],
        "action": row["action"],
        "performed_by": row["performed_by"],
        "performed_by_email": row["performed_by_email"],
        "metadata": row.get("metadata") or {},
        "created_at": row["created_at"],
    }


def append_audit(
    conn,
    *,
    payout_id: UUID,
    action: str,
    actor,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    row = db_fetchone(
        conn,
        """
        INSERT INTO payout_audits (payout_id, action, performed_by, performed_by_email, metadata)
        VALUES (%s, %s, %s, %s, %s::jsonb)
        RETURNING id, payout_id, action, performed_by, performed_by_email, metadata, created_at
        """,
        (
            payout_id,
            action,
            actor.user_id,
            actor.email,
            Json(metadata or {}),
        ),
    )
    return _to_entry(row)


def history_for(conn, payout_id: UUID) -> list[dict[str, Any]]:
    rows = db_fetchall(
        conn,
        """
        SELECT id, payout_id, action, performed_by, performed_by_email, metadata, created_at
        FROM payout_audits
        WHERE payout_id = %s
        ORDER BY created_at ASC, seq ASC
        """,
        (payout_id,),
    )
    return [_to_entry(r) for r in rows]
