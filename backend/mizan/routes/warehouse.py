# Overview: Flask API routes for warehouse transactions, stock and stock reports.

"""
Warehouse routes.

POST /transactions posts header, items and stock deltas in one unit of
work. Stock is read from the maintained balance; /item-card and
/reconcile replay the transaction history.
"""

from flask import Blueprint, jsonify, request

from ..models import WarehouseTransaction
from ..services import warehouse_service
from ..validation import ModelValidationPolicy, require_int, validate_payload
from .common import DOMAIN_ERRORS, date_arg, error_response, internal_error, items_arg, json_payload

warehouse_bp = Blueprint("warehouse", __name__, url_prefix="/api/warehouse")


TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "transaction_number", "transaction_type", "transaction_date", "warehouse_id",
        "reference_number", "notes", "created_by", "items",
    },
    required_on_create={"transaction_type", "warehouse_id", "items"},
)


@warehouse_bp.post("/transactions")
def post_transaction_route():
    """
    Body: {"transaction_type": "INCOMING"|"OUTGOING", "warehouse_id": int,
           "transaction_date"?: "YYYY-MM-DD", "transaction_number"?: reserved WT number,
           "items": [{"product_id", "quantity", "unit_price"?, "notes"?}]}
    """
    try:
        patch = validate_payload(
            model=WarehouseTransaction, payload=json_payload(), policy=TRANSACTION_POLICY, partial=False
        )
        items = items_arg(patch, priced=False)
        tx = warehouse_service.post_transaction(
            warehouse_id=patch["warehouse_id"],
            transaction_type=patch["transaction_type"],
            items=items,
            transaction_date=patch.get("transaction_date"),
            transaction_number=patch.get("transaction_number"),
            reference_number=patch.get("reference_number"),
            notes=patch.get("notes"),
            created_by=patch.get("created_by"),
        )
        return jsonify({"transaction": tx.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("post warehouse transaction")


@warehouse_bp.get("/transactions")
def list_transactions_route():
    try:
        transactions = warehouse_service.list_transactions(
            warehouse_id=request.args.get("warehouse_id", type=int),
            transaction_type=request.args.get("type"),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
            limit=min(request.args.get("limit", 100, type=int), 1000),
            offset=request.args.get("offset", 0, type=int),
        )
        return jsonify({"items": [t.to_dict(include_items=False) for t in transactions], "count": len(transactions)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list transactions")


@warehouse_bp.get("/transactions/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        return jsonify({"transaction": warehouse_service.get_transaction(transaction_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get transaction")


TRANSACTION_DETAILS_POLICY = ModelValidationPolicy(
    writable_fields={"reference_number", "notes"},
)


@warehouse_bp.put("/transactions/<int:transaction_id>")
def update_transaction_route(transaction_id: int):
    """Body: {"reference_number"?, "notes"?}. Quantities are corrected with a void."""
    try:
        patch = validate_payload(
            model=WarehouseTransaction, payload=json_payload(), policy=TRANSACTION_DETAILS_POLICY, partial=True
        )
        tx = warehouse_service.update_transaction_details(transaction_id, patch=patch)
        return jsonify({"transaction": tx.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("update warehouse transaction")


@warehouse_bp.post("/transactions/<int:transaction_id>/void")
def void_transaction_route(transaction_id: int):
    """Body: {"reason": str, "voided_by"?: str}"""
    try:
        payload = json_payload()
        tx = warehouse_service.void_transaction(
            transaction_id,
            reason=payload.get("reason"),
            voided_by=payload.get("voided_by"),
        )
        return jsonify({"transaction": tx.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("void warehouse transaction")


@warehouse_bp.get("/stock")
def get_stock_route():
    try:
        rows = warehouse_service.get_stock(
            warehouse_id=request.args.get("warehouse_id", type=int),
            product_id=request.args.get("product_id", type=int),
        )
        return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)}), 200
    except Exception:
        return internal_error("get stock")


@warehouse_bp.get("/item-card")
def item_card_route():
    """Query params: warehouse_id, product_id (required); from, to (optional)."""
    try:
        warehouse_id = require_int(request.args.get("warehouse_id"), "warehouse_id")
        product_id = require_int(request.args.get("product_id"), "product_id")
        card = warehouse_service.item_card(
            warehouse_id,
            product_id,
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify(card), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("build item card")


@warehouse_bp.get("/reconcile")
def reconcile_route():
    try:
        divergences = warehouse_service.reconcile_stock()
        return jsonify({"consistent": not divergences, "divergences": divergences}), 200
    except Exception:
        return internal_error("reconcile stock")


@warehouse_bp.get("/stock-report")
def products_stock_report_route():
    try:
        report = warehouse_service.products_stock_report(
            warehouse_id=request.args.get("warehouse_id", type=int)
        )
        below = [row for row in report if row["below_reorder"]]
        return jsonify({"items": report, "count": len(report), "below_reorder_count": len(below)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("build stock report")
