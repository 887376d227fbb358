# Overview: Flask API routes for sales documents and sales reports.

"""
Sales routes.

Totals are always computed server-side from the submitted items; any
subtotal/total fields in the payload are rejected by the policy.
"""

from flask import Blueprint, jsonify, request

from ..models import CashSalesInvoice, CreditSalesInvoice, Quotation
from ..services import sales_service
from ..validation import ModelValidationPolicy, require_decimal, require_int, validate_payload
from .common import DOMAIN_ERRORS, date_arg, error_response, internal_error, items_arg, json_payload

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


QUOTATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "quotation_number", "quotation_date", "valid_until", "customer_id", "employee_id", "status",
        "discount_percentage", "tax_amount", "notes", "terms_and_conditions", "items",
        "expected_version",
    },
    required_on_create={"items"},
)

CASH_INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={
        "invoice_number", "invoice_date", "customer_id", "customer_phone", "sales_representative",
        "discount_percentage", "payment_amount", "notes", "items",
    },
    required_on_create={"items", "payment_amount"},
)

CREDIT_INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={
        "invoice_number", "invoice_date", "customer_id", "employee_id", "discount_percentage",
        "notes", "items",
    },
    required_on_create={"items", "customer_id"},
)


# Quotations

@sales_bp.post("/quotations")
def create_quotation_route():
    try:
        payload = json_payload()
        patch = validate_payload(model=Quotation, payload=payload, policy=QUOTATION_POLICY, partial=False)
        items = items_arg(patch, priced=True)
        patch.pop("items", None)
        patch.pop("expected_version", None)
        quotation = sales_service.create_quotation(patch=patch, items=items)
        return jsonify({"quotation": quotation.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create quotation")


@sales_bp.get("/quotations")
def list_quotations_route():
    try:
        quotations = sales_service.list_quotations(
            customer_id=request.args.get("customer_id", type=int),
            status=request.args.get("status"),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify({"items": [q.to_dict(include_items=False) for q in quotations], "count": len(quotations)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list quotations")


@sales_bp.get("/quotations/<int:quotation_id>")
def get_quotation_route(quotation_id: int):
    try:
        return jsonify({"quotation": sales_service.get_quotation(quotation_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get quotation")


@sales_bp.put("/quotations/<int:quotation_id>")
def update_quotation_route(quotation_id: int):
    try:
        payload = json_payload()
        patch = validate_payload(model=Quotation, payload=payload, policy=QUOTATION_POLICY, partial=True)
        items = items_arg(patch, priced=True) if "items" in patch else None
        patch.pop("items", None)
        expected_version = require_int(patch.pop("expected_version", None), "expected_version", required=False)
        quotation = sales_service.update_quotation(
            quotation_id, patch=patch, items=items, expected_version=expected_version
        )
        return jsonify({"quotation": quotation.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("update quotation")


@sales_bp.post("/quotations/<int:quotation_id>/close")
def close_quotation_route(quotation_id: int):
    try:
        quotation = sales_service.close_quotation(quotation_id)
        return jsonify({"quotation": quotation.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("close quotation")


# Invoices

@sales_bp.post("/cash-invoices")
def create_cash_invoice_route():
    try:
        patch = validate_payload(
            model=CashSalesInvoice, payload=json_payload(), policy=CASH_INVOICE_POLICY, partial=False
        )
        items = items_arg(patch, priced=True, require_warehouse=True)
        patch.pop("items", None)
        invoice = sales_service.create_cash_invoice(patch=patch, items=items)
        return jsonify({"invoice": invoice.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create cash invoice")


@sales_bp.get("/cash-invoices")
def list_cash_invoices_route():
    try:
        invoices = sales_service.list_invoices(
            CashSalesInvoice,
            customer_id=request.args.get("customer_id", type=int),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify({"items": [i.to_dict(include_items=False) for i in invoices], "count": len(invoices)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list cash invoices")


@sales_bp.get("/cash-invoices/<int:invoice_id>")
def get_cash_invoice_route(invoice_id: int):
    try:
        return jsonify({"invoice": sales_service.get_cash_invoice(invoice_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get cash invoice")


@sales_bp.post("/credit-invoices")
def create_credit_invoice_route():
    try:
        patch = validate_payload(
            model=CreditSalesInvoice, payload=json_payload(), policy=CREDIT_INVOICE_POLICY, partial=False
        )
        items = items_arg(patch, priced=True, require_warehouse=True)
        patch.pop("items", None)
        invoice = sales_service.create_credit_invoice(patch=patch, items=items)
        return jsonify({"invoice": invoice.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create credit invoice")


@sales_bp.get("/credit-invoices")
def list_credit_invoices_route():
    try:
        invoices = sales_service.list_invoices(
            CreditSalesInvoice,
            customer_id=request.args.get("customer_id", type=int),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify({"items": [i.to_dict(include_items=False) for i in invoices], "count": len(invoices)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list credit invoices")


@sales_bp.get("/credit-invoices/<int:invoice_id>")
def get_credit_invoice_route(invoice_id: int):
    try:
        return jsonify({"invoice": sales_service.get_credit_invoice(invoice_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get credit invoice")


@sales_bp.delete("/credit-invoices/<int:invoice_id>")
def delete_credit_invoice_route(invoice_id: int):
    try:
        sales_service.delete_credit_invoice(invoice_id)
        return jsonify({"message": f"Credit invoice {invoice_id} deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("delete credit invoice")


# Reports

@sales_bp.get("/due-invoices")
def due_invoices_route():
    """
    Query params: as_of, customer_id, from, to, min_amount,
    status (all | overdue | current).
    """
    try:
        min_amount = request.args.get("min_amount")
        report = sales_service.due_invoices(
            as_of=date_arg("as_of"),
            customer_id=request.args.get("customer_id", type=int),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
            min_amount=require_decimal(min_amount, "min_amount") if min_amount else None,
            status=request.args.get("status"),
        )
        return jsonify(report), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("build due invoices report")


@sales_bp.get("/customers/<int:customer_id>/statement")
def customer_statement_route(customer_id: int):
    try:
        statement = sales_service.customer_statement(
            customer_id, date_from=date_arg("from"), date_to=date_arg("to")
        )
        return jsonify(statement), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("build customer statement")
