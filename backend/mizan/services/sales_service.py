# Overview: Quotations, cash and credit sales invoices, due invoices and customer statements.

"""
Sales documents

TOTALS:
Every priced document takes its line totals and document totals from
totals_service.compute_document_totals(). Stored total_price and
document totals are never accepted from the client.

NUMBERING:
The document number is issued (or a reserved one validated) inside the
same unit of work that inserts the document and its items.

CASH SALES:
payment_amount must cover total_amount. The check runs before anything is
written; change_amount = payment_amount - total_amount.

CREDIT SALES:
paid_amount starts at 0 and remaining_amount at total_amount.

Sales invoices do not move stock. available_quantity on invoice items is
a snapshot of the warehouse stock at the time of writing.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import select

from ..extensions import db
from ..models import (
    CashSalesInvoice,
    CashSalesInvoiceItem,
    CreditSalesInvoice,
    CreditSalesInvoiceItem,
    Customer,
    Employee,
    Product,
    Quotation,
    QuotationItem,
    TreasuryVoucher,
    Warehouse,
)
from ..models.treasury import VOUCHER_CASH_RECEIPT, VOUCHER_CHECK_RECEIPT
from mizan.money import ZERO, as_amount, round2
from mizan.time_utils import today, to_iso_date, utcnow
from ..validation import ConflictError, get_or_404, require_date
from .concurrency import run_unit_of_work, unit_of_work
from .numbering_service import assign_number
from .totals_service import compute_document_totals, require_full_payment
from .warehouse_service import get_quantity


QUOTATION_DRAFT = "DRAFT"
QUOTATION_CLOSED = "CLOSED"
QUOTATION_STATUSES = (QUOTATION_DRAFT, QUOTATION_CLOSED)

INVOICE_COMPLETED = "COMPLETED"

DUE_CURRENT = "CURRENT"
DUE_NEAR_DUE = "NEAR_DUE"
DUE_OVERDUE = "OVERDUE"


class SalesError(ValueError):
    """Raised when a sales document violates a business rule."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _check_products(items: list[dict]) -> None:
    if not items:
        raise SalesError("At least one item is required")
    product_ids = {item["product_id"] for item in items}
    found = set(db.session.execute(select(Product.id).where(Product.id.in_(product_ids))).scalars())
    missing = sorted(product_ids - found)
    if missing:
        raise SalesError("Unknown products", details={"missing_product_ids": missing})


def _check_warehouses(items: list[dict]) -> None:
    for warehouse_id in {item["warehouse_id"] for item in items}:
        get_or_404(Warehouse, warehouse_id, "Warehouse")


def _check_parties(customer_id, employee_id=None) -> None:
    if customer_id is not None:
        get_or_404(Customer, customer_id, "Customer")
    if employee_id is not None:
        get_or_404(Employee, employee_id, "Employee")


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------

def _quotation_status(value) -> str:
    status = str(value or QUOTATION_DRAFT).strip().upper()
    if status not in QUOTATION_STATUSES:
        raise SalesError("status must be DRAFT or CLOSED", details={"valid_statuses": list(QUOTATION_STATUSES)})
    return status


def _apply_quotation_totals(quotation: Quotation, items: list[dict], *, discount_percentage, tax_amount) -> None:
    totals = compute_document_totals(items, discount_percentage=discount_percentage, tax_amount=tax_amount)
    quotation.items = [
        QuotationItem(
            product_id=item["product_id"],
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount_percentage=line.discount_percentage,
            total_price=line.total_price,
        )
        for item, line in zip(items, totals.lines)
    ]
    quotation.subtotal = totals.subtotal
    quotation.discount_percentage = totals.discount_percentage
    quotation.discount_amount = totals.discount_amount
    quotation.tax_amount = totals.tax_amount
    quotation.total_amount = totals.total_amount


def create_quotation(*, patch: dict, items: list[dict]) -> Quotation:
    patch = dict(patch)
    requested_number = patch.pop("quotation_number", None)
    status = _quotation_status(patch.pop("status", None))
    discount_percentage = patch.pop("discount_percentage", None) or ZERO
    tax_amount = patch.pop("tax_amount", None) or ZERO
    quotation_date = require_date(patch.pop("quotation_date", None), "quotation_date", default=today())

    _check_products(items)
    _check_parties(patch.get("customer_id"), patch.get("employee_id"))
    # Validate amounts before touching the counter
    compute_document_totals(items, discount_percentage=discount_percentage, tax_amount=tax_amount)

    def _op() -> Quotation:
        with unit_of_work():
            number = assign_number(
                "quotation", requested_number, model=Quotation, column=Quotation.quotation_number
            )
            quotation = Quotation(
                quotation_number=number,
                quotation_date=quotation_date,
                status=status,
                **patch,
            )
            _apply_quotation_totals(
                quotation, items, discount_percentage=discount_percentage, tax_amount=tax_amount
            )
            db.session.add(quotation)
            db.session.flush()
        return quotation

    return run_unit_of_work(_op)


def get_quotation(quotation_id: int) -> Quotation:
    return get_or_404(Quotation, quotation_id, "Quotation")


def update_quotation(
    quotation_id: int,
    *,
    patch: dict,
    items: list[dict] | None = None,
    expected_version: int | None = None,
) -> Quotation:
    """
    Edit a DRAFT quotation. Items, when given, replace the existing ones;
    totals are recomputed either way. The number never changes.
    """
    patch = dict(patch)
    if "quotation_number" in patch:
        raise SalesError("quotation_number cannot be changed")
    if items is not None:
        _check_products(items)
    _check_parties(patch.get("customer_id"), patch.get("employee_id"))

    def _op() -> Quotation:
        with unit_of_work():
            quotation = get_quotation(quotation_id)
            if quotation.status != QUOTATION_DRAFT:
                raise SalesError(
                    f"Quotation {quotation.quotation_number} is {quotation.status} and cannot be edited",
                )
            if expected_version is not None and quotation.version_id != expected_version:
                raise ConflictError(
                    f"Quotation was modified by someone else (current version {quotation.version_id})"
                )

            changes = dict(patch)
            # Exactly one versioned UPDATE per edit
            with db.session.no_autoflush:
                quotation.updated_at = utcnow()
                status = _quotation_status(changes.pop("status", quotation.status))
                discount_percentage = changes.pop("discount_percentage", quotation.discount_percentage)
                tax_amount = changes.pop("tax_amount", quotation.tax_amount)
                if "quotation_date" in changes:
                    changes["quotation_date"] = require_date(changes["quotation_date"], "quotation_date")
                for key, value in changes.items():
                    setattr(quotation, key, value)
                quotation.status = status

                line_source = items
                if line_source is None:
                    line_source = [
                        {
                            "product_id": item.product_id,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                            "discount_percentage": item.discount_percentage,
                        }
                        for item in quotation.items
                    ]
                _apply_quotation_totals(
                    quotation,
                    line_source,
                    discount_percentage=discount_percentage,
                    tax_amount=tax_amount,
                )
            db.session.flush()
        return quotation

    return run_unit_of_work(_op)


def close_quotation(quotation_id: int) -> Quotation:
    def _op() -> Quotation:
        with unit_of_work():
            quotation = get_quotation(quotation_id)
            if quotation.status == QUOTATION_CLOSED:
                raise SalesError(f"Quotation {quotation.quotation_number} is already closed")
            quotation.status = QUOTATION_CLOSED
            db.session.flush()
        return quotation

    return run_unit_of_work(_op)


def list_quotations(
    *,
    customer_id: int | None = None,
    status: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[Quotation]:
    query = db.session.query(Quotation)
    if customer_id is not None:
        query = query.filter(Quotation.customer_id == customer_id)
    if status:
        query = query.filter(Quotation.status == _quotation_status(status))
    if date_from is not None:
        query = query.filter(Quotation.quotation_date >= date_from)
    if date_to is not None:
        query = query.filter(Quotation.quotation_date <= date_to)
    return query.order_by(Quotation.quotation_date.desc(), Quotation.id.desc()).all()


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

def _invoice_items(item_model, items: list[dict], totals) -> list:
    return [
        item_model(
            product_id=item["product_id"],
            warehouse_id=item["warehouse_id"],
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount_percentage=line.discount_percentage,
            total_price=line.total_price,
            available_quantity=get_quantity(item["warehouse_id"], item["product_id"]),
        )
        for item, line in zip(items, totals.lines)
    ]


def create_cash_invoice(*, patch: dict, items: list[dict]) -> CashSalesInvoice:
    """
    Write a cash sale.

    Raises ValidationError when payment_amount is missing or below the
    computed total; nothing is written in that case.
    """
    patch = dict(patch)
    requested_number = patch.pop("invoice_number", None)
    invoice_date = require_date(patch.pop("invoice_date", None), "invoice_date", default=today())
    discount_percentage = patch.pop("discount_percentage", None) or ZERO
    payment_amount = patch.pop("payment_amount", None)

    _check_products(items)
    _check_warehouses(items)
    _check_parties(patch.get("customer_id"))

    totals = compute_document_totals(
        items, discount_percentage=discount_percentage, payment_amount=payment_amount
    )
    require_full_payment(totals)

    def _op() -> CashSalesInvoice:
        with unit_of_work():
            number = assign_number(
                "cash_invoice", requested_number, model=CashSalesInvoice, column=CashSalesInvoice.invoice_number
            )
            invoice = CashSalesInvoice(
                invoice_number=number,
                invoice_date=invoice_date,
                status=INVOICE_COMPLETED,
                subtotal=totals.subtotal,
                discount_percentage=totals.discount_percentage,
                discount_amount=totals.discount_amount,
                total_amount=totals.total_amount,
                payment_amount=totals.payment_amount,
                change_amount=totals.change_amount,
                **patch,
            )
            invoice.items = _invoice_items(CashSalesInvoiceItem, items, totals)
            db.session.add(invoice)
            db.session.flush()
        return invoice

    return run_unit_of_work(_op)


def create_credit_invoice(*, patch: dict, items: list[dict]) -> CreditSalesInvoice:
    patch = dict(patch)
    requested_number = patch.pop("invoice_number", None)
    invoice_date = require_date(patch.pop("invoice_date", None), "invoice_date", default=today())
    discount_percentage = patch.pop("discount_percentage", None) or ZERO

    if patch.get("customer_id") is None:
        raise SalesError("customer_id is required for credit sales")
    _check_products(items)
    _check_warehouses(items)
    _check_parties(patch.get("customer_id"), patch.get("employee_id"))

    totals = compute_document_totals(items, discount_percentage=discount_percentage)

    def _op() -> CreditSalesInvoice:
        with unit_of_work():
            number = assign_number(
                "credit_invoice",
                requested_number,
                model=CreditSalesInvoice,
                column=CreditSalesInvoice.invoice_number,
            )
            invoice = CreditSalesInvoice(
                invoice_number=number,
                invoice_date=invoice_date,
                status=INVOICE_COMPLETED,
                subtotal=totals.subtotal,
                discount_percentage=totals.discount_percentage,
                discount_amount=totals.discount_amount,
                total_amount=totals.total_amount,
                paid_amount=ZERO,
                remaining_amount=totals.total_amount,
                **patch,
            )
            invoice.items = _invoice_items(CreditSalesInvoiceItem, items, totals)
            db.session.add(invoice)
            db.session.flush()
        return invoice

    return run_unit_of_work(_op)


def get_cash_invoice(invoice_id: int) -> CashSalesInvoice:
    return get_or_404(CashSalesInvoice, invoice_id, "Cash invoice")


def get_credit_invoice(invoice_id: int) -> CreditSalesInvoice:
    return get_or_404(CreditSalesInvoice, invoice_id, "Credit invoice")


def delete_credit_invoice(invoice_id: int) -> None:
    """Delete a credit invoice nothing has been collected on yet."""
    def _op() -> None:
        with unit_of_work():
            invoice = get_credit_invoice(invoice_id)
            if (invoice.paid_amount or ZERO) > ZERO:
                raise ConflictError(
                    f"Credit invoice {invoice.invoice_number} has payments and cannot be deleted",
                    details={"paid_amount": as_amount(invoice.paid_amount)},
                )
            db.session.delete(invoice)

    run_unit_of_work(_op)


def list_invoices(
    model,
    *,
    customer_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list:
    query = db.session.query(model)
    if customer_id is not None:
        query = query.filter(model.customer_id == customer_id)
    if date_from is not None:
        query = query.filter(model.invoice_date >= date_from)
    if date_to is not None:
        query = query.filter(model.invoice_date <= date_to)
    return query.order_by(model.invoice_date.desc(), model.id.desc()).all()


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def classify_due(days: int) -> str:
    near_due_days = current_app.config.get("DUE_INVOICE_NEAR_DUE_DAYS", 15)
    overdue_days = current_app.config.get("DUE_INVOICE_OVERDUE_DAYS", 30)
    if days > overdue_days:
        return DUE_OVERDUE
    if days > near_due_days:
        return DUE_NEAR_DUE
    return DUE_CURRENT


def due_invoices(
    *,
    as_of: date | None = None,
    customer_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    min_amount: Decimal | None = None,
    status: str | None = None,
) -> dict:
    """
    Credit invoices with an outstanding remaining_amount.

    status filter: "overdue" keeps invoices older than the overdue
    threshold, "current" keeps the rest; anything else keeps all.
    """
    as_of = as_of or today()
    overdue_days = current_app.config.get("DUE_INVOICE_OVERDUE_DAYS", 30)

    query = db.session.query(CreditSalesInvoice).filter(CreditSalesInvoice.remaining_amount > 0)
    if customer_id is not None:
        query = query.filter(CreditSalesInvoice.customer_id == customer_id)
    if date_from is not None:
        query = query.filter(CreditSalesInvoice.invoice_date >= date_from)
    if date_to is not None:
        query = query.filter(CreditSalesInvoice.invoice_date <= date_to)
    if min_amount is not None:
        query = query.filter(CreditSalesInvoice.remaining_amount >= min_amount)

    status = (status or "all").strip().lower()
    rows = []
    total_outstanding = ZERO
    for invoice in query.order_by(CreditSalesInvoice.invoice_date, CreditSalesInvoice.id).all():
        days = (as_of - invoice.invoice_date).days
        if status == "overdue" and days <= overdue_days:
            continue
        if status == "current" and days > overdue_days:
            continue
        remaining = round2(invoice.remaining_amount)
        total_outstanding += remaining
        rows.append({
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "invoice_date": to_iso_date(invoice.invoice_date),
            "customer_id": invoice.customer_id,
            "customer_name": invoice.customer.display_name if invoice.customer else None,
            "total_amount": as_amount(invoice.total_amount),
            "paid_amount": as_amount(invoice.paid_amount),
            "remaining_amount": as_amount(remaining),
            "days_outstanding": days,
            "classification": classify_due(days),
        })

    return {
        "as_of": to_iso_date(as_of),
        "invoices": rows,
        "count": len(rows),
        "total_outstanding": as_amount(total_outstanding),
    }


def customer_statement(
    customer_id: int,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    """
    Account statement for one customer.

    Debits: cash and credit invoices. Credits: cash and check receipts
    linked to the customer, plus the payment of each cash invoice taken at
    the counter. Entries before date_from are folded into the opening
    balance.
    """
    customer = get_or_404(Customer, customer_id, "Customer")

    entries: list[dict] = []
    for invoice in db.session.query(CashSalesInvoice).filter(CashSalesInvoice.customer_id == customer_id):
        entries.append({
            "date": invoice.invoice_date,
            "type": "invoice_cash",
            "reference_number": invoice.invoice_number,
            "description": "Cash sales invoice",
            "debit": round2(invoice.total_amount),
            "credit": round2(invoice.total_amount),
            "_order": (0, invoice.id),
        })
    for invoice in db.session.query(CreditSalesInvoice).filter(CreditSalesInvoice.customer_id == customer_id):
        entries.append({
            "date": invoice.invoice_date,
            "type": "invoice_credit",
            "reference_number": invoice.invoice_number,
            "description": "Credit sales invoice",
            "debit": round2(invoice.total_amount),
            "credit": ZERO,
            "_order": (1, invoice.id),
        })
    receipts = db.session.query(TreasuryVoucher).filter(
        TreasuryVoucher.customer_id == customer_id,
        TreasuryVoucher.voucher_type.in_((VOUCHER_CASH_RECEIPT, VOUCHER_CHECK_RECEIPT)),
    )
    for voucher in receipts:
        is_cash = voucher.voucher_type == VOUCHER_CASH_RECEIPT
        label = "Cash receipt" if is_cash else "Check receipt"
        entries.append({
            "date": voucher.date,
            "type": "payment_cash" if is_cash else "payment_check",
            "reference_number": voucher.voucher_number,
            "description": f"{label} - {voucher.purpose}" if voucher.purpose else label,
            "debit": ZERO,
            "credit": round2(voucher.amount),
            "_order": (2, voucher.id),
        })

    entries.sort(key=lambda e: (e["date"], e["_order"]))

    opening = round2(customer.opening_balance or ZERO)
    balance = opening
    total_debit = ZERO
    total_credit = ZERO
    rows = []
    for entry in entries:
        if date_to is not None and entry["date"] > date_to:
            break
        balance += entry["debit"] - entry["credit"]
        if date_from is not None and entry["date"] < date_from:
            opening = balance
            continue
        total_debit += entry["debit"]
        total_credit += entry["credit"]
        rows.append({
            "date": to_iso_date(entry["date"]),
            "type": entry["type"],
            "reference_number": entry["reference_number"],
            "description": entry["description"],
            "debit": as_amount(entry["debit"]),
            "credit": as_amount(entry["credit"]),
            "balance": as_amount(balance),
        })

    return {
        "customer": {
            "id": customer.id,
            "customer_code": customer.customer_code,
            "name": customer.display_name,
            "credit_limit": as_amount(customer.credit_limit),
        },
        "date_from": to_iso_date(date_from),
        "date_to": to_iso_date(date_to),
        "opening_balance": as_amount(opening),
        "entries": rows,
        "total_debit": as_amount(total_debit),
        "total_credit": as_amount(total_credit),
        "closing_balance": as_amount(balance),
    }
