# schemas.py
from __future__ import annotations

from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, List, Literal

from app.payouts.model import AuditAction, PayoutMode, PayoutStatus

RoleName = Literal["OPS", "FINANCE"]


# -------- ERRORS --------
class ErrorResponse(BaseModel):
    error: str
    message: str


# -------- AUTH --------
class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)


class UserItem(BaseModel):
    id: UUID
    email: str
    role: RoleName


class LoginResponse(BaseModel):
    token: str
    user: UserItem


# -------- VENDORS --------
class VendorCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    upi_id: str = Field(default="", max_length=255)
    bank_account: str = Field(default="", max_length=255)
    ifsc: str = Field(default="", max_length=100)
    is_active: bool = True


class VendorUpdateRequest(BaseModel):
    # partial update: only fields present in the body are applied
    name: Optional[str] = Field(default=None, max_length=255)
    upi_id: Optional[str] = Field(default=None, max_length=255)
    bank_account: Optional[str] = Field(default=None, max_length=255)
    ifsc: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None


class VendorItem(BaseModel):
    id: UUID
    name: str
    upi_id: str
    bank_account: str
    ifsc: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class VendorListResponse(BaseModel):
    items: List[VendorItem]


# -------- PAYOUTS --------
class PayoutCreateRequest(BaseModel):
    vendor_id: UUID
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    mode: PayoutMode
    note: Optional[str] = Field(default=None, max_length=500)


class PayoutRejectRequest(BaseModel):
    decision_reason: Optional[str] = Field(default=None, max_length=500)


class PayoutVendor(BaseModel):
    id: UUID
    name: str
    upi_id: str
    bank_account: str
    ifsc: str


class PayoutItem(BaseModel):
    id: UUID
    vendor: PayoutVendor
    amount: float
    mode: PayoutMode
    note: str
    status: PayoutStatus
    decision_reason: str
    created_at: datetime
    updated_at: datetime


class AuditItem(BaseModel):
    id: UUID
    action: AuditAction
    performed_by_email: str
    created_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PayoutDetailResponse(PayoutItem):
    audit: List[AuditItem]


class PayoutListResponse(BaseModel):
    items: List[PayoutItem]
    limit: Optional[int] = None
    offset: int = 0
