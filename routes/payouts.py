# routes/payouts.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.payouts import workflow
from app.payouts.model import PayoutStatus
from db import get_conn
from deps.auth import CurrentUser
from schemas import (
    PayoutCreateRequest,
    PayoutDetailResponse,
    PayoutItem,
    PayoutListResponse,
    PayoutRejectRequest,
)
from services.roles import require_finance, require_ops, require_staff

router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.get("", response_model=PayoutListResponse)
def list_payouts(
    status: Optional[PayoutStatus] = Query(None),
    vendor_id: Optional[UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(require_staff),
):
    with get_conn() as conn:
        items = workflow.list_payouts(
            conn,
            status=status,
            vendor_id=vendor_id,
            limit=limit,
            offset=offset,
        )
    return PayoutListResponse(items=items, limit=limit, offset=offset)


@router.get("/{payout_id}", response_model=PayoutDetailResponse)
def get_payout(payout_id: UUID, user: CurrentUser = Depends(require_staff)):
    with get_conn() as conn:
        return workflow.get_payout(conn, payout_id)


@router.post("", response_model=PayoutItem, status_code=201)
def create_payout(body: PayoutCreateRequest, user: CurrentUser = Depends(require_ops)):
    with get_conn() as conn:
        return workflow.create_payout(
            conn,
            vendor_id=body.vendor_id,
            amount=body.amount,
            mode=body.mode,
            note=body.note,
            actor=user,
        )


@router.post("/{payout_id}/submit", response_model=PayoutItem)
def submit_payout(payout_id: UUID, user: CurrentUser = Depends(require_ops)):
    with get_conn() as conn:
        return workflow.submit_payout(conn, payout_id, actor=user)


@router.post("/{payout_id}/approve", response_model=PayoutItem)
def approve_payout(payout_id: UUID, user: CurrentUser = Depends(require_finance)):
    with get_conn() as conn:
        return workflow.approve_payout(conn, payout_id, actor=user)


@router.post("/{payout_id}/reject", response_model=PayoutItem)
def reject_payout(
    payout_id: UUID,
    body: PayoutRejectRequest,
    user: CurrentUser = Depends(require_finance),
):
    with get_conn() as conn:
        return workflow.reject_payout(conn, payout_id, body.decision_reason, actor=user)
