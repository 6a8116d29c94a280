# routes/vendors.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.vendors import repository as vendors_repo
from db import get_conn
from deps.auth import CurrentUser
from schemas import VendorCreateRequest, VendorItem, VendorListResponse, VendorUpdateRequest
from services.errors import NotFoundError
from services.roles import require_staff

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("", response_model=VendorListResponse)
def list_vendors(
    active_only: bool = Query(False),
    user: CurrentUser = Depends(require_staff),
):
    with get_conn() as conn:
        rows = vendors_repo.list_vendors(conn, active_only=active_only)
    return VendorListResponse(items=rows)


@router.get("/{vendor_id}", response_model=VendorItem)
def get_vendor(vendor_id: UUID, user: CurrentUser = Depends(require_staff)):
    with get_conn() as conn:
        row = vendors_repo.get_vendor(conn, vendor_id)
    if not row:
        raise NotFoundError("Vendor not found")
    return row


@router.post("", response_model=VendorItem, status_code=201)
def create_vendor(body: VendorCreateRequest, user: CurrentUser = Depends(require_staff)):
    with get_conn() as conn:
        return vendors_repo.create_vendor(
            conn,
            name=body.name,
            upi_id=body.upi_id,
            bank_account=body.bank_account,
            ifsc=body.ifsc,
            is_active=body.is_active,
        )


@router.patch("/{vendor_id}", response_model=VendorItem)
def update_vendor(
    vendor_id: UUID,
    body: VendorUpdateRequest,
    user: CurrentUser = Depends(require_staff),
):
    with get_conn() as conn:
        return vendors_repo.update_vendor(conn, vendor_id, body.model_dump(exclude_unset=True))


@router.delete("/{vendor_id}", status_code=204)
def delete_vendor(vendor_id: UUID, user: CurrentUser = Depends(require_staff)):
    with get_conn() as conn:
        vendors_repo.delete_vendor(conn, vendor_id)
    return Response(status_code=204)
