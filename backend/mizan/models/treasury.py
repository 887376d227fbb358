from __future__ import annotations

from ..extensions import db
from mizan.money import as_amount
from mizan.time_utils import to_utc_z, to_iso_date


VOUCHER_CASH_RECEIPT = "CASH_RECEIPT"
VOUCHER_CASH_DISBURSEMENT = "CASH_DISBURSEMENT"
VOUCHER_CHECK_RECEIPT = "CHECK_RECEIPT"
VOUCHER_CHECK_DISBURSEMENT = "CHECK_DISBURSEMENT"
VOUCHER_CUSTODY_DISBURSEMENT = "CUSTODY_DISBURSEMENT"
VOUCHER_CUSTODY_SETTLEMENT = "CUSTODY_SETTLEMENT"
VOUCHER_EXPENSE = "EXPENSE"

VOUCHER_TYPES = (
    VOUCHER_CASH_RECEIPT,
    VOUCHER_CASH_DISBURSEMENT,
    VOUCHER_CHECK_RECEIPT,
    VOUCHER_CHECK_DISBURSEMENT,
    VOUCHER_CUSTODY_DISBURSEMENT,
    VOUCHER_CUSTODY_SETTLEMENT,
    VOUCHER_EXPENSE,
)


class TreasuryVoucher(db.Model):
    """
    Treasury voucher (cash/check receipt or disbursement, custody, expense).

    One table for every voucher type; type-specific columns are nullable.
    cash_effect is the signed amount applied to the cash box when the
    voucher was written (0 for check vouchers).
    """
    __tablename__ = "treasury_vouchers"
    __table_args__ = (
        db.UniqueConstraint("voucher_number", name="uq_treasury_vouchers_number"),
        db.Index("ix_treasury_vouchers_type_date", "voucher_type", "date"),
        # At most one settlement per custody disbursement
        db.Index(
            "uq_treasury_vouchers_settled_custody",
            "custody_disbursement_id",
            unique=True,
            sqlite_where=db.text("voucher_type = 'CUSTODY_SETTLEMENT'"),
            postgresql_where=db.text("voucher_type = 'CUSTODY_SETTLEMENT'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    voucher_type = db.Column(db.String(32), nullable=False)
    voucher_number = db.Column(db.String(32), nullable=False)
    date = db.Column(db.Date, nullable=False)

    amount = db.Column(db.Numeric(14, 2), nullable=False)
    cash_effect = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    # Counterparty: received_from for receipts, paid_to for disbursements
    counterparty = db.Column(db.String(255), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    purpose = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    received_by = db.Column(db.String(255), nullable=True)
    approved_by = db.Column(db.String(255), nullable=True)

    # Checks
    bank_name = db.Column(db.String(255), nullable=True)
    check_number = db.Column(db.String(64), nullable=True)
    check_date = db.Column(db.Date, nullable=True)
    due_date = db.Column(db.Date, nullable=True)

    # Custody
    custodian_name = db.Column(db.String(255), nullable=True)
    expected_return_date = db.Column(db.Date, nullable=True)
    custody_disbursement_id = db.Column(db.Integer, db.ForeignKey("treasury_vouchers.id"), nullable=True)
    original_amount = db.Column(db.Numeric(14, 2), nullable=True)
    spent_amount = db.Column(db.Numeric(14, 2), nullable=True)
    returned_amount = db.Column(db.Numeric(14, 2), nullable=True)

    # Expenses
    expense_category = db.Column(db.String(128), nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)

    created_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    custody_disbursement = db.relationship("TreasuryVoucher", remote_side=[id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_type": self.voucher_type,
            "voucher_number": self.voucher_number,
            "date": to_iso_date(self.date),
            "amount": as_amount(self.amount),
            "cash_effect": as_amount(self.cash_effect),
            "counterparty": self.counterparty,
            "customer_id": self.customer_id,
            "purpose": self.purpose,
            "description": self.description,
            "received_by": self.received_by,
            "approved_by": self.approved_by,
            "bank_name": self.bank_name,
            "check_number": self.check_number,
            "check_date": to_iso_date(self.check_date),
            "due_date": to_iso_date(self.due_date),
            "custodian_name": self.custodian_name,
            "expected_return_date": to_iso_date(self.expected_return_date),
            "custody_disbursement_id": self.custody_disbursement_id,
            "original_amount": as_amount(self.original_amount),
            "spent_amount": as_amount(self.spent_amount),
            "returned_amount": as_amount(self.returned_amount),
            "expense_category": self.expense_category,
            "payment_method": self.payment_method,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class TreasuryBalance(db.Model):
    """Cash box balance (single row, id=1)."""
    __tablename__ = "treasury_balance"

    id = db.Column(db.Integer, primary_key=True)
    balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    last_updated = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "balance": as_amount(self.balance),
            "last_updated": to_utc_z(self.last_updated),
        }
