# app/payouts/state_machine.py
from __future__ import annotations

from dataclasses import dataclass

from app.payouts.model import APPROVED, DRAFT, REJECTED, SUBMITTED
from services.errors import ValidationError
from services.roles import ROLE_FINANCE, ROLE_OPS


class InvalidTransition(ValidationError):
    pass


@dataclass(frozen=True)
class Transition:
    action: str
    from_status: str
    to_status: str
    role: str
    audit_action: str
    past_tense: str


CREATE_ROLE = ROLE_OPS
INITIAL_STATUS = DRAFT

TRANSITIONS: dict[str, Transition] = {
    "submit": Transition("submit", DRAFT, SUBMITTED, ROLE_OPS, "SUBMITTED", "submitted"),
    "approve": Transition("approve", SUBMITTED, APPROVED, ROLE_FINANCE, "APPROVED", "approved"),
    "reject": Transition("reject", SUBMITTED, REJECTED, ROLE_FINANCE, "REJECTED", "rejected"),
}

ALLOWED: dict[str, set[str]] = {
    DRAFT: {SUBMITTED},
    SUBMITTED: {APPROVED, REJECTED},
    APPROVED: set(),  # absorbing
    REJECTED: set(),  # absorbing
}


def assert_transition(old: str, new: str) -> None:
    if new not in ALLOWED.get(old, set()):
        raise InvalidTransition(f"Illegal payout transition: {old} -> {new}")


def transition_for(action: str) -> Transition:
    try:
        return TRANSITIONS[action]
    except KeyError:
        raise ValueError(f"Unknown payout action: {action}") from None


def assert_can_apply(action: str, current_status: str) -> Transition:
    """
    Returns the transition for `action` if `current_status` allows it.
    """
    t = transition_for(action)
    if current_status != t.from_status:
        raise InvalidTransition(f"Only {t.from_status} payouts can be {t.past_tense}")
    assert_transition(current_status, t.to_status)
    return t
