# app/vendors/repository.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from psycopg2 import errors as pg_errors

from app.payouts import repository as payouts_repo
from db_exec import db_execute, db_fetchall, db_fetchone
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger("vendorpay.vendors")

_COLUMNS = "id, name, upi_id, bank_account, ifsc, is_active, created_at, updated_at"

# partial-update allow-list; values are column names
UPDATABLE_FIELDS = ("name", "upi_id", "bank_account", "ifsc", "is_active")


def get_vendor(conn, vendor_id: UUID) -> Optional[dict[str, Any]]:
    return db_fetchone(conn, f"SELECT {_COLUMNS} FROM vendors WHERE id = %s", (vendor_id,))


def list_vendors(conn, *, active_only: bool = False) -> list[dict[str, Any]]:
    sql = f"SELECT {_COLUMNS} FROM vendors"
    if active_only:
        sql += " WHERE is_active"
    sql += " ORDER BY created_at DESC"
    return db_fetchall(conn, sql)


def create_vendor(
    conn,
    *,
    name: str,
    upi_id: str = "",
    bank_account: str = "",
    ifsc: str = "",
    is_active: bool = True,
) -> dict[str, Any]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    return db_fetchone(
        conn,
        f"""
        INSERT INTO vendors (name, upi_id, bank_account, ifsc, is_active)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """,
        (name, (upi_id or "").strip(), (bank_account or "").strip(), (ifsc or "").strip(), is_active),
    )


def _clean(field: str, value: Any) -> Any:
    if field == "is_active":
        if value is None:
            raise ValidationError("is_active cannot be null")
        return bool(value)
    value = ("" if value is None else str(value)).strip()
    if field == "name" and not value:
        raise ValidationError("name cannot be empty")
    return value


def update_vendor(conn, vendor_id: UUID, changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Apply a partial-update descriptor: only keys present in `changes` are
    written, updated_at is always refreshed.
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown vendor fields: {', '.join(sorted(unknown))}")
    if not changes:
        raise ValidationError("No fields to update")

    sets = []
    params: list[Any] = []
    for field in UPDATABLE_FIELDS:
        if field in changes:
            sets.append(f"{field} = %s")
            params.append(_clean(field, changes[field]))
    sets.append("updated_at = now()")
    params.append(vendor_id)

    row = db_fetchone(
        conn,
        f"UPDATE vendors SET {', '.join(sets)} WHERE id = %s RETURNING {_COLUMNS}",
        params,
    )
    if not row:
        raise NotFoundError("Vendor not found")
    return row


def remove_vendor_row(conn, vendor_id: UUID) -> int:
    return db_execute(conn, "DELETE FROM vendors WHERE id = %s", (vendor_id,))


def delete_vendor(conn, vendor_id: UUID) -> None:
    """
    Vendors referenced by any payout are kept; deleting one is a validation
    error and leaves both sides untouched.
    """
    if get_vendor(conn, vendor_id) is None:
        raise NotFoundError("Vendor not found")

    if payouts_repo.count_payouts_for_vendor(conn, vendor_id) > 0:
        raise ValidationError("Vendor has payouts and cannot be deleted")

    try:
        remove_vendor_row(conn, vendor_id)
    except Exception as exc:
        # a payout created after the count check still trips the FK
        if isinstance(exc.__cause__, pg_errors.ForeignKeyViolation):
            raise ValidationError("Vendor has payouts and cannot be deleted") from exc
        raise

    logger.info("vendor deleted vendor_id=%s", vendor_id)
