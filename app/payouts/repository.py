# app/payouts/repository.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from db_exec import db_execute, db_fetchall, db_fetchone


_VIEW_SELECT = """
    SELECT
      p.id,
      p.vendor_id,
      p.amount,
      p.mode,
      p.note,
      p.status,
      p.decision_reason,
      p.created_at,
      p.updated_at,
      v.name AS vendor_name,
      v.upi_id AS vendor_upi_id,
      v.bank_account AS vendor_bank_account,
      v.ifsc AS vendor_ifsc
    FROM payouts p
    JOIN vendors v ON v.id = p.vendor_id
"""


def to_view(row: dict[str, Any]) -> dict[str, Any]:
    """
    Shape a joined payout/vendor row for display.
    """
    return {
        "id": row["id"],
        "vendor": {
            "id": row["vendor_id"],
            "name": row["vendor_name"],
            "upi_id": row.get("vendor_upi_id") or "",
            "bank_account": row.get("vendor_bank_account") or "",
            "ifsc": row.get("vendor_ifsc") or "",
        },
        "amount": row["amount"],
        "mode": row["mode"],
        "note": row.get("note") or "",
        "status": row["status"],
        "decision_reason": row.get("decision_reason") or "",
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


# ==========================================================
# Writes
# ==========================================================

def insert_payout(
    conn,
    *,
    vendor_id: UUID,
    amount: Decimal,
    mode: str,
    note: str,
    status: str,
) -> UUID:
    row = db_fetchone(
        conn,
        """
        INSERT INTO payouts (vendor_id, amount, mode, note, status, decision_reason)
        VALUES (%s, %s, %s, %s, %s, '')
        RETURNING id
        """,
        (vendor_id, amount, mode, note, status),
    )
    return row["id"]


def transition_status(
    conn,
    payout_id: UUID,
    *,
    from_status: str,
    to_status: str,
    decision_reason: Optional[str] = None,
) -> bool:
    """
    Compare-and-swap on status. False means the row was not in `from_status`
    (missing, or another transaction moved it first).
    """
    affected = db_execute(
        conn,
        """
        UPDATE payouts
        SET
          status = %s,
          decision_reason = COALESCE(%s, ''),
          updated_at = now()
        WHERE id = %s
          AND status = %s
        """,
        (to_status, decision_reason, payout_id, from_status),
    )
    return affected == 1


# ==========================================================
# Reads
# ==========================================================

def get_payout_status(conn, payout_id: UUID) -> Optional[str]:
    row = db_fetchone(conn, "SELECT status FROM payouts WHERE id = %s", (payout_id,))
    return row["status"] if row else None


def get_payout_view(conn, payout_id: UUID) -> Optional[dict[str, Any]]:
    row = db_fetchone(conn, _VIEW_SELECT + " WHERE p.id = %s", (payout_id,))
    return to_view(row) if row else None


def list_payout_views(
    conn,
    *,
    status: Optional[str] = None,
    vendor_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[dict[str, Any]]:
    where = []
    params: list[Any] = []
    if status:
        where.append("p.status = %s")
        params.append(status)
    if vendor_id:
        where.append("p.vendor_id = %s")
        params.append(vendor_id)

    sql = _VIEW_SELECT
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY p.updated_at DESC, p.created_at DESC"
    if limit is not None:
        sql += " LIMIT %s"
        params.append(limit)
    if offset:
        sql += " OFFSET %s"
        params.append(offset)

    return [to_view(r) for r in db_fetchall(conn, sql, params)]


def count_payouts_for_vendor(conn, vendor_id: UUID) -> int:
    row = db_fetchone(conn, "SELECT COUNT(*) AS n FROM payouts WHERE vendor_id = %s", (vendor_id,))
    return int(row["n"]) if row else 0
