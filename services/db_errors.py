# services/db_errors.py
from __future__ import annotations

import logging

from services.errors import AppError, StorageError, ValidationError

logger = logging.getLogger("vendorpay.db")

# constraint name -> caller-facing validation message
DB_CONSTRAINT_MAP: dict[str, str] = {
    "payouts_amount_check": "amount must be greater than 0",
    "payouts_mode_check": "mode must be UPI, IMPS, or NEFT",
    "payouts_status_check": "Invalid payout status",
    "users_role_check": "role must be OPS or FINANCE",
    "users_email_key": "Email already registered",
}

# referential constraints that callers translate themselves (vendor delete
# racing a new payout); still StorageError here, but not logged as unexpected
REFERENCE_CONSTRAINTS = frozenset({"payouts_vendor_id_fkey"})


def _constraint_name(exc: Exception) -> str | None:
    diag = getattr(exc, "diag", None)
    if diag is None:
        return None
    name = getattr(diag, "constraint_name", None)
    return name if isinstance(name, str) and name else None


def raise_for_db_error(exc: Exception) -> None:
    """
    Convert psycopg2 errors into domain errors; otherwise fail closed.
    Always raises.
    """
    if isinstance(exc, AppError):
        raise exc

    constraint = _constraint_name(exc)
    if constraint and constraint in DB_CONSTRAINT_MAP:
        raise ValidationError(DB_CONSTRAINT_MAP[constraint]) from exc

    log = logger.info if constraint in REFERENCE_CONSTRAINTS else logger.error
    log(
        "db error pgcode=%s constraint=%s type=%s",
        getattr(exc, "pgcode", None),
        constraint,
        type(exc).__name__,
    )
    raise StorageError(f"{type(exc).__name__}: {exc}") from exc
