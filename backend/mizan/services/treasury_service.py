# Overview: Treasury vouchers and the cash box balance they move.

"""
Treasury

Every voucher type has its own counter (CR, CD, CHR, CHD, CUS, CS, EXP).
The voucher row and its cash box effect are written in one unit of work:

    CASH_RECEIPT          +amount
    CASH_DISBURSEMENT     -amount
    CUSTODY_DISBURSEMENT  -amount
    EXPENSE               -amount
    CUSTODY_SETTLEMENT    +returned_amount, returned = max(0, original - spent)
    CHECK_RECEIPT          0
    CHECK_DISBURSEMENT     0

The balance is moved with UPDATE balance = balance + effect. A voucher that
would leave the cash box below zero is rejected.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, TreasuryBalance, TreasuryVoucher
from ..models.treasury import (
    VOUCHER_CASH_DISBURSEMENT,
    VOUCHER_CASH_RECEIPT,
    VOUCHER_CHECK_DISBURSEMENT,
    VOUCHER_CHECK_RECEIPT,
    VOUCHER_CUSTODY_DISBURSEMENT,
    VOUCHER_CUSTODY_SETTLEMENT,
    VOUCHER_EXPENSE,
    VOUCHER_TYPES,
)
from mizan.money import ZERO, as_amount, round2
from mizan.time_utils import today
from ..validation import ConflictError, get_or_404, require_date
from .concurrency import lock_for_update, run_unit_of_work, unit_of_work
from .numbering_service import assign_number


CASH_BOX_ID = 1

VOUCHER_DOCUMENT_TYPES = {
    VOUCHER_CASH_RECEIPT: "cash_receipt",
    VOUCHER_CASH_DISBURSEMENT: "cash_disbursement",
    VOUCHER_CHECK_RECEIPT: "check_receipt",
    VOUCHER_CHECK_DISBURSEMENT: "check_disbursement",
    VOUCHER_CUSTODY_DISBURSEMENT: "custody_disbursement",
    VOUCHER_CUSTODY_SETTLEMENT: "custody_settlement",
    VOUCHER_EXPENSE: "expense",
}

_OUTFLOWS = {VOUCHER_CASH_DISBURSEMENT, VOUCHER_CUSTODY_DISBURSEMENT, VOUCHER_EXPENSE}
_CHECKS = {VOUCHER_CHECK_RECEIPT, VOUCHER_CHECK_DISBURSEMENT}


class TreasuryError(ValueError):
    """Raised when a voucher violates a treasury rule."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def normalize_voucher_type(value) -> str:
    voucher_type = str(value or "").strip().upper().replace("-", "_")
    if voucher_type not in VOUCHER_TYPES:
        raise TreasuryError(f"Unknown voucher type: {value}", details={"valid_types": list(VOUCHER_TYPES)})
    return voucher_type


def cash_effect(voucher_type: str, amount: Decimal, returned_amount: Decimal | None = None) -> Decimal:
    if voucher_type == VOUCHER_CASH_RECEIPT:
        return amount
    if voucher_type in _OUTFLOWS:
        return -amount
    if voucher_type == VOUCHER_CUSTODY_SETTLEMENT:
        return returned_amount or ZERO
    return ZERO


def settlement_returned_amount(original_amount: Decimal, spent_amount: Decimal) -> Decimal:
    return round2(max(ZERO, original_amount - spent_amount))


def get_balance() -> Decimal:
    balance = db.session.execute(
        select(TreasuryBalance.balance).where(TreasuryBalance.id == CASH_BOX_ID)
    ).scalar_one_or_none()
    return ZERO if balance is None else round2(balance)


def ensure_cash_box() -> TreasuryBalance:
    """Create the cash box row at zero if missing (inside the caller's transaction)."""
    box = db.session.get(TreasuryBalance, CASH_BOX_ID)
    if box is None:
        box = TreasuryBalance(id=CASH_BOX_ID, balance=ZERO)
        db.session.add(box)
        db.session.flush()
    return box


def _apply_cash_effect(effect: Decimal) -> Decimal:
    stmt = (
        update(TreasuryBalance)
        .where(TreasuryBalance.id == CASH_BOX_ID)
        .values(balance=TreasuryBalance.balance + effect)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(TreasuryBalance(id=CASH_BOX_ID, balance=effect))
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    balance = get_balance()
    if balance < ZERO:
        raise TreasuryError(
            "Insufficient cash box balance",
            details={"balance": as_amount(balance - effect), "requested": as_amount(-effect)},
        )
    return balance


def _check_type_fields(voucher_type: str, patch: dict) -> None:
    if voucher_type in _CHECKS:
        missing = [f for f in ("bank_name", "check_number") if not patch.get(f)]
        if missing:
            raise TreasuryError(f"Missing required fields: {', '.join(missing)}")
    if voucher_type == VOUCHER_CUSTODY_DISBURSEMENT and not patch.get("custodian_name"):
        raise TreasuryError("custodian_name is required")
    if voucher_type == VOUCHER_EXPENSE and not patch.get("expense_category"):
        raise TreasuryError("expense_category is required")


def _ensure_unsettled(disbursement: TreasuryVoucher) -> None:
    already = db.session.execute(
        select(TreasuryVoucher.voucher_number).where(
            TreasuryVoucher.voucher_type == VOUCHER_CUSTODY_SETTLEMENT,
            TreasuryVoucher.custody_disbursement_id == disbursement.id,
        )
    ).first()
    if already:
        raise ConflictError(f"Custody {disbursement.voucher_number} is already settled by {already[0]}")


def _prepare_settlement(patch: dict) -> None:
    """Fill original/returned amounts of a custody settlement in place."""
    disbursement_id = patch.get("custody_disbursement_id")
    if disbursement_id is not None:
        disbursement = get_or_404(TreasuryVoucher, disbursement_id, "Custody disbursement")
        if disbursement.voucher_type != VOUCHER_CUSTODY_DISBURSEMENT:
            raise TreasuryError(f"Voucher {disbursement.voucher_number} is not a custody disbursement")
        _ensure_unsettled(disbursement)
        if patch.get("original_amount") is None:
            patch["original_amount"] = disbursement.amount
        patch.setdefault("custodian_name", disbursement.custodian_name)

    original = patch.get("original_amount")
    spent = patch.get("spent_amount")
    if original is None or spent is None:
        raise TreasuryError("original_amount and spent_amount are required for a custody settlement")
    if original <= ZERO:
        raise TreasuryError("original_amount must be > 0")
    if spent < ZERO:
        raise TreasuryError("spent_amount must be >= 0")
    patch["returned_amount"] = settlement_returned_amount(original, spent)
    patch["amount"] = original


def create_voucher(voucher_type: str, *, patch: dict) -> TreasuryVoucher:
    """
    Write a voucher and move the cash box in one unit of work.

    patch holds TreasuryVoucher columns; voucher_number, when present, must
    have been reserved from the voucher type's counter.
    """
    voucher_type = normalize_voucher_type(voucher_type)
    document_type = VOUCHER_DOCUMENT_TYPES[voucher_type]

    patch = dict(patch)
    patch.pop("voucher_type", None)
    patch.pop("cash_effect", None)
    requested_number = patch.pop("voucher_number", None)
    voucher_date = require_date(patch.pop("date", None), "date", default=today())

    if voucher_type == VOUCHER_CUSTODY_SETTLEMENT:
        _prepare_settlement(patch)
    else:
        for field in ("original_amount", "spent_amount", "returned_amount"):
            patch.pop(field, None)

    amount = patch.get("amount")
    if amount is None:
        raise TreasuryError("amount is required")
    if amount <= ZERO:
        raise TreasuryError("amount must be > 0")
    patch["amount"] = round2(amount)

    _check_type_fields(voucher_type, patch)
    if patch.get("customer_id") is not None:
        get_or_404(Customer, patch["customer_id"], "Customer")

    effect = round2(cash_effect(voucher_type, patch["amount"], patch.get("returned_amount")))

    def _op() -> TreasuryVoucher:
        with unit_of_work():
            if voucher_type == VOUCHER_CUSTODY_SETTLEMENT and patch.get("custody_disbursement_id") is not None:
                disbursement = lock_for_update(
                    db.session.query(TreasuryVoucher).filter_by(id=patch["custody_disbursement_id"])
                ).one()
                _ensure_unsettled(disbursement)
            number = assign_number(
                document_type, requested_number, model=TreasuryVoucher, column=TreasuryVoucher.voucher_number
            )
            voucher = TreasuryVoucher(
                voucher_type=voucher_type,
                voucher_number=number,
                date=voucher_date,
                cash_effect=effect,
                **patch,
            )
            db.session.add(voucher)
            db.session.flush()
            if effect != ZERO:
                _apply_cash_effect(effect)
        return voucher

    return run_unit_of_work(_op, conflict_message="The custody or voucher number is already used")


def get_voucher(voucher_id: int) -> TreasuryVoucher:
    return get_or_404(TreasuryVoucher, voucher_id, "Voucher")


def list_vouchers(
    *,
    voucher_type: str | None = None,
    customer_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[TreasuryVoucher]:
    query = db.session.query(TreasuryVoucher)
    if voucher_type:
        query = query.filter(TreasuryVoucher.voucher_type == normalize_voucher_type(voucher_type))
    if customer_id is not None:
        query = query.filter(TreasuryVoucher.customer_id == customer_id)
    if date_from is not None:
        query = query.filter(TreasuryVoucher.date >= date_from)
    if date_to is not None:
        query = query.filter(TreasuryVoucher.date <= date_to)
    return query.order_by(TreasuryVoucher.date.desc(), TreasuryVoucher.id.desc()).all()


def open_custodies() -> list[TreasuryVoucher]:
    """Custody disbursements that have no settlement yet."""
    settled = select(TreasuryVoucher.custody_disbursement_id).where(
        TreasuryVoucher.voucher_type == VOUCHER_CUSTODY_SETTLEMENT,
        TreasuryVoucher.custody_disbursement_id.is_not(None),
    )
    return (
        db.session.query(TreasuryVoucher)
        .filter(
            TreasuryVoucher.voucher_type == VOUCHER_CUSTODY_DISBURSEMENT,
            TreasuryVoucher.id.not_in(settled),
        )
        .order_by(TreasuryVoucher.date, TreasuryVoucher.id)
        .all()
    )


def balance_summary() -> dict:
    box = db.session.get(TreasuryBalance, CASH_BOX_ID)
    if box is None:
        return {"balance": as_amount(ZERO), "last_updated": None}
    return box.to_dict()
