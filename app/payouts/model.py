from __future__ import annotations

from decimal import Decimal
from typing import Literal

PayoutStatus = Literal["Draft", "Submitted", "Approved", "Rejected"]
PayoutMode = Literal["UPI", "IMPS", "NEFT"]
AuditAction = Literal["CREATED", "SUBMITTED", "APPROVED", "REJECTED"]

DRAFT = "Draft"
SUBMITTED = "Submitted"
APPROVED = "Approved"
REJECTED = "Rejected"

PAYOUT_STATUSES = (DRAFT, SUBMITTED, APPROVED, REJECTED)
PAYOUT_MODES = ("UPI", "IMPS", "NEFT")
AUDIT_ACTIONS = ("CREATED", "SUBMITTED", "APPROVED", "REJECTED")

# payouts.amount is NUMERIC(12,2)
AMOUNT_MAX = Decimal("9999999999.99")

NOTE_MAX_LEN = 500
REASON_MAX_LEN = 500
