from __future__ import annotations

import threading
import uuid
from decimal import Decimal

import pytest

from app.payouts import workflow
from services.errors import ForbiddenError, NotFoundError, StorageError, ValidationError


def _create(store, vendor, actor, **kw):
    with store.get_conn() as conn:
        return workflow.create_payout(
            conn,
            vendor_id=kw.get("vendor_id", vendor["id"]),
            amount=kw.get("amount", Decimal("1000")),
            mode=kw.get("mode", "UPI"),
            note=kw.get("note"),
            actor=actor,
        )


def _run(store, fn, *args, **kw):
    with store.get_conn() as conn:
        return fn(conn, *args, **kw)


def _actions(store, payout_id):
    return [a["action"] for a in store.history(payout_id)]


# ---------------------------
# create
# ---------------------------

def test_create_then_get_round_trip(store, vendor, ops):
    created = _create(store, vendor, ops, note="  invoice 42  ")
    assert created["status"] == "Draft"
    assert created["decision_reason"] == ""
    assert created["note"] == "invoice 42"
    assert created["vendor"]["name"] == "Vendor Alpha"
    assert created["vendor"]["upi_id"] == "alpha@upi"

    got = _run(store, workflow.get_payout, created["id"])
    assert got["status"] == "Draft"
    assert got["decision_reason"] == ""
    assert [a["action"] for a in got["audit"]] == ["CREATED"]
    assert got["audit"][0]["performed_by_email"] == "ops@demo.com"


@pytest.mark.parametrize("amount", [0, -5, "abc", None, "NaN", "0.001"])
def test_create_rejects_bad_amount(store, vendor, ops, amount):
    with pytest.raises(ValidationError) as exc:
        _create(store, vendor, ops, amount=amount)
    assert exc.value.message == "amount must be greater than 0"
    assert store.payouts == {}
    assert store.audits == []


@pytest.mark.parametrize("amount", [Decimal("1E+30"), "10000000000", Decimal("9999999999.999")])
def test_create_rejects_amount_beyond_column_precision(store, vendor, ops, amount):
    with pytest.raises(ValidationError) as exc:
        _create(store, vendor, ops, amount=amount)
    assert exc.value.message == "amount must be at most 9999999999.99"
    assert store.payouts == {}


def test_create_accepts_largest_amount(store, vendor, ops):
    p = _create(store, vendor, ops, amount="9999999999.99")
    assert p["amount"] == Decimal("9999999999.99")


def test_create_rejects_bad_mode(store, vendor, ops):
    with pytest.raises(ValidationError):
        _create(store, vendor, ops, mode="CASH")
    assert store.payouts == {}


def test_create_rejects_unknown_vendor(store, vendor, ops):
    with pytest.raises(ValidationError) as exc:
        _create(store, vendor, ops, vendor_id=uuid.uuid4())
    assert exc.value.message == "Vendor not found"
    assert store.audits == []


def test_create_requires_ops(store, vendor, finance):
    with pytest.raises(ForbiddenError):
        _create(store, vendor, finance)
    assert store.payouts == {}


def test_create_for_inactive_vendor_is_allowed_and_displayed(store, ops):
    inactive = store.add_vendor("Old Vendor", is_active=False)
    created = _create(store, inactive, ops)
    assert created["vendor"]["name"] == "Old Vendor"


# ---------------------------
# transitions
# ---------------------------

def test_end_to_end_reject_scenario(store, vendor, ops, finance):
    p = _create(store, vendor, ops, amount=1000, mode="UPI")
    assert p["status"] == "Draft"

    p = _run(store, workflow.submit_payout, p["id"], actor=ops)
    assert p["status"] == "Submitted"
    assert len(store.history(p["id"])) == 2

    p = _run(store, workflow.reject_payout, p["id"], "insufficient docs", actor=finance)
    assert p["status"] == "Rejected"
    assert p["decision_reason"] == "insufficient docs"
    history = store.history(p["id"])
    assert [a["action"] for a in history] == ["CREATED", "SUBMITTED", "REJECTED"]
    assert history[-1]["metadata"] == {"reason": "insufficient docs"}
    assert history[-1]["performed_by_email"] == "finance@demo.com"

    with pytest.raises(ValidationError):
        _run(store, workflow.approve_payout, p["id"], actor=finance)
    assert len(store.history(p["id"])) == 3
    assert store.payouts[p["id"]]["status"] == "Rejected"


def test_approve_path(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)
    p = _run(store, workflow.approve_payout, p["id"], actor=finance)
    assert p["status"] == "Approved"
    assert p["decision_reason"] == ""
    assert _actions(store, p["id"]) == ["CREATED", "SUBMITTED", "APPROVED"]


def test_updated_at_refreshed_on_transition(store, vendor, ops):
    p = _create(store, vendor, ops)
    submitted = _run(store, workflow.submit_payout, p["id"], actor=ops)
    assert submitted["updated_at"] > p["updated_at"]
    assert submitted["created_at"] == p["created_at"]


def test_draft_cannot_be_approved_directly(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    with pytest.raises(ValidationError) as exc:
        _run(store, workflow.approve_payout, p["id"], actor=finance)
    assert exc.value.message == "Only Submitted payouts can be approved"
    assert store.payouts[p["id"]]["status"] == "Draft"
    assert _actions(store, p["id"]) == ["CREATED"]


@pytest.mark.parametrize("final", ["submit", "approve", "reject"])
def test_submit_non_draft_fails(store, vendor, ops, finance, final):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)
    if final == "approve":
        _run(store, workflow.approve_payout, p["id"], actor=finance)
    elif final == "reject":
        _run(store, workflow.reject_payout, p["id"], "no", actor=finance)
    count = len(store.history(p["id"]))

    with pytest.raises(ValidationError) as exc:
        _run(store, workflow.submit_payout, p["id"], actor=ops)
    assert exc.value.message == "Only Draft payouts can be submitted"
    assert len(store.history(p["id"])) == count


@pytest.mark.parametrize("reason", [None, "", "   ", "\n\t"])
def test_reject_without_reason_has_no_side_effects(store, vendor, ops, finance, reason):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)

    with pytest.raises(ValidationError) as exc:
        _run(store, workflow.reject_payout, p["id"], reason, actor=finance)
    assert exc.value.message == "decision_reason is required when rejecting"
    assert store.payouts[p["id"]]["status"] == "Submitted"
    assert store.payouts[p["id"]]["decision_reason"] == ""
    assert _actions(store, p["id"]) == ["CREATED", "SUBMITTED"]


def test_reject_trims_reason(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)
    p = _run(store, workflow.reject_payout, p["id"], "  missing PAN  ", actor=finance)
    assert p["decision_reason"] == "missing PAN"
    assert store.history(p["id"])[-1]["metadata"] == {"reason": "missing PAN"}


def test_reject_draft_fails(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    with pytest.raises(ValidationError) as exc:
        _run(store, workflow.reject_payout, p["id"], "nope", actor=finance)
    assert exc.value.message == "Only Submitted payouts can be rejected"


def test_missing_payout_is_not_found(store, ops, finance):
    missing = uuid.uuid4()
    with pytest.raises(NotFoundError):
        _run(store, workflow.submit_payout, missing, actor=ops)
    with pytest.raises(NotFoundError):
        _run(store, workflow.approve_payout, missing, actor=finance)
    with pytest.raises(NotFoundError):
        _run(store, workflow.reject_payout, missing, "reason", actor=finance)
    with pytest.raises(NotFoundError):
        _run(store, workflow.get_payout, missing)


def test_roles_are_segregated(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    with pytest.raises(ForbiddenError):
        _run(store, workflow.submit_payout, p["id"], actor=finance)
    _run(store, workflow.submit_payout, p["id"], actor=ops)
    with pytest.raises(ForbiddenError):
        _run(store, workflow.approve_payout, p["id"], actor=ops)
    with pytest.raises(ForbiddenError):
        _run(store, workflow.reject_payout, p["id"], "x", actor=ops)
    assert _actions(store, p["id"]) == ["CREATED", "SUBMITTED"]


# ---------------------------
# atomicity + concurrency
# ---------------------------

def test_audit_failure_rolls_back_status(store, vendor, ops):
    p = _create(store, vendor, ops)
    store.fail_audit_append = True

    with pytest.raises(StorageError):
        _run(store, workflow.submit_payout, p["id"], actor=ops)

    assert store.payouts[p["id"]]["status"] == "Draft"
    assert store.payouts[p["id"]]["updated_at"] == p["updated_at"]
    assert _actions(store, p["id"]) == ["CREATED"]


def test_audit_failure_rolls_back_create(store, vendor, ops):
    store.fail_audit_append = True
    with pytest.raises(StorageError):
        _create(store, vendor, ops)
    assert store.payouts == {}


def test_lost_race_is_a_validation_error(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)

    # another approver wins between our status read and our update
    def _other_wins(payout_id):
        store.before_transition = None
        _run(store, workflow.reject_payout, payout_id, "duplicate", actor=finance)

    store.before_transition = _other_wins

    with pytest.raises(ValidationError):
        _run(store, workflow.approve_payout, p["id"], actor=finance)

    assert store.payouts[p["id"]]["status"] == "Rejected"
    assert _actions(store, p["id"]) == ["CREATED", "SUBMITTED", "REJECTED"]


def test_concurrent_approvals_have_one_winner(store, vendor, ops, finance):
    p = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, p["id"], actor=ops)

    # both callers read "Submitted" before either updates
    barrier = threading.Barrier(2)
    store.before_transition = lambda _pid: barrier.wait(timeout=5)

    results: list[str] = []

    def _approve():
        try:
            _run(store, workflow.approve_payout, p["id"], actor=finance)
            results.append("ok")
        except ValidationError:
            results.append("stale")

    threads = [threading.Thread(target=_approve) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(results) == ["ok", "stale"]
    assert store.payouts[p["id"]]["status"] == "Approved"
    assert _actions(store, p["id"]) == ["CREATED", "SUBMITTED", "APPROVED"]


# ---------------------------
# list
# ---------------------------

def test_list_filters_and_orders_by_updated_at(store, vendor, ops):
    other = store.add_vendor("Vendor Beta")
    a = _create(store, vendor, ops)
    b = _create(store, other, ops)
    c = _create(store, vendor, ops)
    _run(store, workflow.submit_payout, a["id"], actor=ops)

    ids = [r["id"] for r in _run(store, workflow.list_payouts)]
    assert ids == [a["id"], c["id"], b["id"]]

    drafts = _run(store, workflow.list_payouts, status="Draft")
    assert {r["id"] for r in drafts} == {b["id"], c["id"]}

    for_vendor = _run(store, workflow.list_payouts, vendor_id=vendor["id"])
    assert [r["id"] for r in for_vendor] == [a["id"], c["id"]]

    page = _run(store, workflow.list_payouts, limit=1, offset=1)
    assert [r["id"] for r in page] == [c["id"]]


def test_list_rejects_unknown_status(store):
    with pytest.raises(ValidationError):
        _run(store, workflow.list_payouts, status="Paid")
