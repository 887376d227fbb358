from datetime import date, timedelta
from decimal import Decimal

import pytest

from mizan.models import CashSalesInvoice
from mizan.services import sales_service, treasury_service
from mizan.services.sales_service import SalesError
from mizan.services.warehouse_service import get_quantity
from mizan.validation import ConflictError, NotFoundError, ValidationError


def _priced(product, quantity="3", unit_price="10.00", discount="10", warehouse=None):
    item = {
        "product_id": product.id,
        "quantity": Decimal(quantity),
        "unit_price": Decimal(unit_price),
        "discount_percentage": Decimal(discount),
    }
    if warehouse is not None:
        item["warehouse_id"] = warehouse.id
    return item


# Quotations

def test_create_quotation_computes_totals(customer, product):
    quotation = sales_service.create_quotation(
        patch={"customer_id": customer.id, "discount_percentage": Decimal("10"), "tax_amount": Decimal("2.70")},
        items=[_priced(product)],
    )
    assert quotation.quotation_number == "QT000001"
    assert quotation.status == "DRAFT"
    assert quotation.items[0].total_price == Decimal("27.00")
    assert quotation.subtotal == Decimal("27.00")
    assert quotation.discount_amount == Decimal("2.70")
    assert quotation.total_amount == Decimal("27.00")


def test_update_quotation_replaces_items_and_checks_version(customer, product):
    quotation = sales_service.create_quotation(patch={"customer_id": customer.id}, items=[_priced(product)])
    assert quotation.version_id == 1

    updated = sales_service.update_quotation(
        quotation.id,
        patch={"notes": "Revised"},
        items=[_priced(product, quantity="5", discount="0")],
        expected_version=1,
    )
    assert updated.quotation_number == "QT000001"
    assert len(updated.items) == 1
    assert updated.total_amount == Decimal("50.00")
    assert updated.notes == "Revised"
    assert updated.version_id == 2

    with pytest.raises(ConflictError):
        sales_service.update_quotation(quotation.id, patch={"notes": "stale"}, expected_version=1)


def test_each_quotation_edit_bumps_version_once(customer, product):
    quotation = sales_service.create_quotation(patch={"customer_id": customer.id}, items=[_priced(product)])

    # Header and items together
    updated = sales_service.update_quotation(
        quotation.id,
        patch={"notes": "Second draft", "discount_percentage": Decimal("5")},
        items=[_priced(product, quantity="2", discount="0"), _priced(product, quantity="1", discount="0")],
        expected_version=1,
    )
    assert updated.version_id == 2
    assert len(updated.items) == 2

    # Items only, header fields untouched
    updated = sales_service.update_quotation(
        quotation.id,
        patch={},
        items=[_priced(product, quantity="2", discount="0"), _priced(product, quantity="1", discount="0")],
        expected_version=2,
    )
    assert updated.version_id == 3

    updated = sales_service.update_quotation(quotation.id, patch={"notes": "Final"}, expected_version=3)
    assert updated.version_id == 4
    assert len(updated.items) == 2


def test_quotation_number_cannot_be_changed(customer, product):
    quotation = sales_service.create_quotation(patch={"customer_id": customer.id}, items=[_priced(product)])
    with pytest.raises(SalesError):
        sales_service.update_quotation(quotation.id, patch={"quotation_number": "QT000099"})


def test_closed_quotation_is_final(customer, product):
    quotation = sales_service.create_quotation(patch={"customer_id": customer.id}, items=[_priced(product)])
    closed = sales_service.close_quotation(quotation.id)
    assert closed.status == "CLOSED"

    with pytest.raises(SalesError):
        sales_service.update_quotation(quotation.id, patch={"notes": "late edit"})
    with pytest.raises(SalesError):
        sales_service.close_quotation(quotation.id)

    assert [q.id for q in sales_service.list_quotations(status="closed")] == [quotation.id]
    assert sales_service.list_quotations(status="draft") == []


def test_quotation_validation(customer, product):
    with pytest.raises(SalesError):
        sales_service.create_quotation(patch={}, items=[])
    with pytest.raises(SalesError):
        sales_service.create_quotation(patch={"status": "SENT"}, items=[_priced(product)])
    with pytest.raises(NotFoundError):
        sales_service.create_quotation(patch={"customer_id": 9999}, items=[_priced(product)])
    with pytest.raises(ValidationError):
        sales_service.create_quotation(patch={}, items=[_priced(product, discount="120")])
    with pytest.raises(NotFoundError):
        sales_service.get_quotation(9999)


# Invoices

def test_cash_invoice_records_payment_and_change(warehouse, stocked_product, customer):
    invoice = sales_service.create_cash_invoice(
        patch={"customer_id": customer.id, "payment_amount": Decimal("30")},
        items=[_priced(stocked_product, warehouse=warehouse)],
    )
    assert invoice.invoice_number == "CSH000001"
    assert invoice.status == "COMPLETED"
    assert invoice.total_amount == Decimal("27.00")
    assert invoice.payment_amount == Decimal("30.00")
    assert invoice.change_amount == Decimal("3.00")
    assert invoice.items[0].available_quantity == Decimal("100")
    # Sales invoices do not move stock
    assert get_quantity(warehouse.id, stocked_product.id) == Decimal("100")


def test_cash_invoice_underpayment_writes_nothing(db_session, warehouse, product):
    with pytest.raises(ValidationError):
        sales_service.create_cash_invoice(
            patch={"payment_amount": Decimal("20")},
            items=[_priced(product, warehouse=warehouse)],
        )
    assert db_session.query(CashSalesInvoice).count() == 0

    invoice = sales_service.create_cash_invoice(
        patch={"payment_amount": Decimal("27")},
        items=[_priced(product, warehouse=warehouse)],
    )
    assert invoice.invoice_number == "CSH000001"
    assert invoice.change_amount == Decimal("0.00")


def test_cash_invoice_requires_known_warehouse(product):
    with pytest.raises(NotFoundError):
        sales_service.create_cash_invoice(
            patch={"payment_amount": Decimal("100")},
            items=[{**_priced(product), "warehouse_id": 9999}],
        )


def test_credit_invoice_starts_unpaid(warehouse, product, customer):
    with pytest.raises(SalesError):
        sales_service.create_credit_invoice(patch={}, items=[_priced(product, warehouse=warehouse)])

    invoice = sales_service.create_credit_invoice(
        patch={"customer_id": customer.id, "discount_percentage": Decimal("5")},
        items=[_priced(product, quantity="10", discount="0", warehouse=warehouse)],
    )
    assert invoice.invoice_number == "CRD000001"
    assert invoice.subtotal == Decimal("100.00")
    assert invoice.discount_amount == Decimal("5.00")
    assert invoice.total_amount == Decimal("95.00")
    assert invoice.paid_amount == Decimal("0")
    assert invoice.remaining_amount == Decimal("95.00")


# Reports

def test_due_invoices_classification(warehouse, product, customer):
    as_of = date(2026, 5, 31)
    for days in (40, 20, 5):
        sales_service.create_credit_invoice(
            patch={"customer_id": customer.id, "invoice_date": as_of - timedelta(days=days)},
            items=[_priced(product, quantity="1", discount="0", warehouse=warehouse)],
        )

    report = sales_service.due_invoices(as_of=as_of)
    assert report["count"] == 3
    assert [row["classification"] for row in report["invoices"]] == ["OVERDUE", "NEAR_DUE", "CURRENT"]
    assert [row["days_outstanding"] for row in report["invoices"]] == [40, 20, 5]
    assert report["total_outstanding"] == "30.00"

    overdue = sales_service.due_invoices(as_of=as_of, status="overdue")
    assert overdue["count"] == 1
    assert overdue["invoices"][0]["customer_name"] == "Ali Trading"

    current = sales_service.due_invoices(as_of=as_of, status="current")
    assert current["count"] == 2
    assert sales_service.due_invoices(as_of=as_of, min_amount=Decimal("11"))["count"] == 0


def test_customer_statement_running_balance(warehouse, product, customer):
    sales_service.create_credit_invoice(
        patch={"customer_id": customer.id, "invoice_date": date(2026, 4, 1)},
        items=[_priced(product, quantity="10", discount="0", warehouse=warehouse)],
    )
    sales_service.create_cash_invoice(
        patch={"customer_id": customer.id, "invoice_date": date(2026, 4, 2), "payment_amount": Decimal("27")},
        items=[_priced(product, warehouse=warehouse)],
    )
    treasury_service.create_voucher(
        "cash_receipt",
        patch={"customer_id": customer.id, "amount": Decimal("30"), "date": date(2026, 4, 3), "purpose": "On account"},
    )

    statement = sales_service.customer_statement(customer.id)
    assert statement["opening_balance"] == "50.00"
    assert [e["type"] for e in statement["entries"]] == ["invoice_credit", "invoice_cash", "payment_cash"]
    assert [e["balance"] for e in statement["entries"]] == ["150.00", "150.00", "120.00"]
    assert statement["total_debit"] == "127.00"
    assert statement["total_credit"] == "57.00"
    assert statement["closing_balance"] == "120.00"
    assert statement["entries"][2]["description"] == "Cash receipt - On account"

    windowed = sales_service.customer_statement(customer.id, date_from=date(2026, 4, 2))
    assert windowed["opening_balance"] == "150.00"
    assert len(windowed["entries"]) == 2
    assert windowed["closing_balance"] == "120.00"


def test_unpaid_credit_invoice_can_be_deleted(db_session, warehouse, product, customer):
    invoice = sales_service.create_credit_invoice(
        patch={"customer_id": customer.id},
        items=[_priced(product, quantity="2", discount="0", warehouse=warehouse)],
    )
    sales_service.delete_credit_invoice(invoice.id)
    with pytest.raises(NotFoundError):
        sales_service.get_credit_invoice(invoice.id)

    with pytest.raises(NotFoundError):
        sales_service.delete_credit_invoice(invoice.id)


def test_credit_invoice_with_payments_is_kept(db_session, warehouse, product, customer):
    invoice = sales_service.create_credit_invoice(
        patch={"customer_id": customer.id},
        items=[_priced(product, quantity="2", discount="0", warehouse=warehouse)],
    )
    invoice.paid_amount = Decimal("5.00")
    db_session.commit()

    with pytest.raises(ConflictError) as exc:
        sales_service.delete_credit_invoice(invoice.id)
    assert exc.value.details == {"paid_amount": "5.00"}
    assert sales_service.get_credit_invoice(invoice.id).invoice_number == "CRD000001"
