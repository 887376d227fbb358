# Overview: Flask API routes for treasury vouchers and the cash box balance.

from flask import Blueprint, jsonify, request

from ..models import TreasuryVoucher
from ..services import treasury_service
from ..validation import ModelValidationPolicy, validate_payload
from .common import DOMAIN_ERRORS, date_arg, error_response, internal_error, json_payload

treasury_bp = Blueprint("treasury", __name__, url_prefix="/api/treasury")


VOUCHER_POLICY = ModelValidationPolicy(
    writable_fields={
        "voucher_number", "date", "amount", "counterparty", "customer_id", "purpose", "description",
        "received_by", "approved_by", "bank_name", "check_number", "check_date", "due_date",
        "custodian_name", "expected_return_date", "custody_disbursement_id", "original_amount",
        "spent_amount", "expense_category", "payment_method", "created_by",
    },
)


@treasury_bp.post("/vouchers/<voucher_type>")
def create_voucher_route(voucher_type: str):
    """
    voucher_type: cash-receipt, cash-disbursement, check-receipt,
    check-disbursement, custody-disbursement, custody-settlement, expense.
    """
    try:
        patch = validate_payload(
            model=TreasuryVoucher, payload=json_payload(), policy=VOUCHER_POLICY, partial=False
        )
        voucher = treasury_service.create_voucher(voucher_type, patch=patch)
        return jsonify({"voucher": voucher.to_dict(), "balance": treasury_service.balance_summary()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create treasury voucher")


@treasury_bp.get("/vouchers")
def list_vouchers_route():
    try:
        vouchers = treasury_service.list_vouchers(
            voucher_type=request.args.get("type"),
            customer_id=request.args.get("customer_id", type=int),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify({"items": [v.to_dict() for v in vouchers], "count": len(vouchers)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list vouchers")


@treasury_bp.get("/vouchers/<int:voucher_id>")
def get_voucher_route(voucher_id: int):
    try:
        return jsonify({"voucher": treasury_service.get_voucher(voucher_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get voucher")


@treasury_bp.get("/balance")
def balance_route():
    try:
        return jsonify(treasury_service.balance_summary()), 200
    except Exception:
        return internal_error("read cash box balance")


@treasury_bp.get("/custodies/open")
def open_custodies_route():
    try:
        custodies = treasury_service.open_custodies()
        return jsonify({"items": [c.to_dict() for c in custodies], "count": len(custodies)}), 200
    except Exception:
        return internal_error("list open custodies")
