"""
Payout workflow engine.

Every operation runs on a caller-supplied connection; `db.get_conn()` owns
commit/rollback, so a status change and its audit entry land together or
not at all. Status changes are compare-and-swap updates conditioned on the
expected prior status, never read-then-write.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from app.payouts import repository as payouts_repo
from app.payouts import state_machine
from app.payouts.model import AMOUNT_MAX, NOTE_MAX_LEN, PAYOUT_MODES, PAYOUT_STATUSES, REASON_MAX_LEN
from app.vendors import repository as vendors_repo
from services import audit_log
from services.errors import NotFoundError, ValidationError
from services.roles import assert_role

logger = logging.getLogger("vendorpay.workflow")

_CENT = Decimal("0.01")


def _parse_amount(amount: Any) -> Decimal:
    try:
        value = Decimal(str(amount))
        if not value.is_finite() or value <= 0:
            raise ValidationError("amount must be greater than 0")
        if value > AMOUNT_MAX:
            raise ValidationError(f"amount must be at most {AMOUNT_MAX}")
        value = value.quantize(_CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("amount must be greater than 0") from None
    if value <= 0:
        raise ValidationError("amount must be greater than 0")
    return value


def _require_payout(conn, payout_id: UUID) -> dict[str, Any]:
    view = payouts_repo.get_payout_view(conn, payout_id)
    if view is None:
        raise NotFoundError("Payout not found")
    return view


def create_payout(
    conn,
    *,
    vendor_id: Optional[UUID],
    amount: Any,
    mode: Optional[str],
    note: Optional[str] = None,
    actor,
) -> dict[str, Any]:
    assert_role(actor, state_machine.CREATE_ROLE)

    if not vendor_id:
        raise ValidationError("vendor_id is required")
    value = _parse_amount(amount)
    if mode not in PAYOUT_MODES:
        raise ValidationError("mode must be UPI, IMPS, or NEFT")
    note = (note or "").strip()
    if len(note) > NOTE_MAX_LEN:
        raise ValidationError(f"note must be at most {NOTE_MAX_LEN} characters")

    if vendors_repo.get_vendor(conn, vendor_id) is None:
        raise ValidationError("Vendor not found")

    payout_id = payouts_repo.insert_payout(
        conn,
        vendor_id=vendor_id,
        amount=value,
        mode=mode,
        note=note,
        status=state_machine.INITIAL_STATUS,
    )
    audit_log.append_audit(conn, payout_id=payout_id, action="CREATED", actor=actor)

    logger.info(
        "payout created payout_id=%s vendor_id=%s amount=%s mode=%s actor=%s",
        payout_id,
        vendor_id,
        value,
        mode,
        actor.user_id,
    )
    return _require_payout(conn, payout_id)


def _apply(
    conn,
    action: str,
    payout_id: UUID,
    *,
    actor,
    decision_reason: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    t = state_machine.transition_for(action)
    assert_role(actor, t.role)

    current = payouts_repo.get_payout_status(conn, payout_id)
    if current is None:
        raise NotFoundError("Payout not found")
    state_machine.assert_can_apply(action, current)

    ok = payouts_repo.transition_status(
        conn,
        payout_id,
        from_status=t.from_status,
        to_status=t.to_status,
        decision_reason=decision_reason,
    )
    if not ok:
        # another transaction moved it between our read and the update
        logger.info("payout transition lost race payout_id=%s action=%s", payout_id, action)
        raise state_machine.InvalidTransition(f"Only {t.from_status} payouts can be {t.past_tense}")

    audit_log.append_audit(
        conn,
        payout_id=payout_id,
        action=t.audit_action,
        actor=actor,
        metadata=metadata,
    )

    logger.info(
        "payout transition payout_id=%s action=%s from=%s to=%s actor=%s",
        payout_id,
        action,
        t.from_status,
        t.to_status,
        actor.user_id,
    )
    return _require_payout(conn, payout_id)


def submit_payout(conn, payout_id: UUID, *, actor) -> dict[str, Any]:
    return _apply(conn, "submit", payout_id, actor=actor)


def approve_payout(conn, payout_id: UUID, *, actor) -> dict[str, Any]:
    return _apply(conn, "approve", payout_id, actor=actor)


def reject_payout(conn, payout_id: UUID, reason: Optional[str], *, actor) -> dict[str, Any]:
    assert_role(actor, state_machine.transition_for("reject").role)

    reason = (reason or "").strip() if isinstance(reason, str) else ""
    if not reason:
        raise ValidationError("decision_reason is required when rejecting")
    if len(reason) > REASON_MAX_LEN:
        raise ValidationError(f"decision_reason must be at most {REASON_MAX_LEN} characters")

    return _apply(
        conn,
        "reject",
        payout_id,
        actor=actor,
        decision_reason=reason,
        metadata={"reason": reason},
    )


def get_payout(conn, payout_id: UUID) -> dict[str, Any]:
    view = _require_payout(conn, payout_id)
    view["audit"] = audit_log.history_for(conn, payout_id)
    return view


def list_payouts(
    conn,
    *,
    status: Optional[str] = None,
    vendor_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[dict[str, Any]]:
    if status and status not in PAYOUT_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(PAYOUT_STATUSES)}")
    return payouts_repo.list_payout_views(
        conn,
        status=status,
        vendor_id=vendor_id,
        limit=limit,
        offset=offset,
    )
