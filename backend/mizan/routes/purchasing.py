# Overview: Flask API routes for purchase and dispatch orders.

from flask import Blueprint, jsonify, request

from ..models import DispatchOrder, PurchaseOrder
from ..services import purchasing_service
from ..validation import ModelValidationPolicy, validate_payload
from .common import DOMAIN_ERRORS, date_arg, error_response, internal_error, items_arg, json_payload

purchasing_bp = Blueprint("purchasing", __name__, url_prefix="/api/purchasing")


ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "order_number", "order_date", "warehouse_id", "employee_id", "permit_number", "description", "items",
    },
    required_on_create={"items"},
)

# URL segment -> (document_type, model)
ORDER_ROUTES = {
    "purchase-orders": ("purchase_order", PurchaseOrder),
    "dispatch-orders": ("dispatch_order", DispatchOrder),
}


def _resolve(kind: str):
    if kind not in ORDER_ROUTES:
        return None
    return ORDER_ROUTES[kind]


@purchasing_bp.post("/<kind>")
def create_order_route(kind: str):
    resolved = _resolve(kind)
    if resolved is None:
        return jsonify({"error": "Not found"}), 404
    document_type, model = resolved

    try:
        patch = validate_payload(model=model, payload=json_payload(), policy=ORDER_POLICY, partial=False)
        items = items_arg(patch, priced=False)
        patch.pop("items", None)
        if document_type == "purchase_order":
            order = purchasing_service.create_purchase_order(patch=patch, items=items)
        else:
            order = purchasing_service.create_dispatch_order(patch=patch, items=items)
        return jsonify({"order": order.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error(f"create {document_type}")


@purchasing_bp.get("/<kind>")
def list_orders_route(kind: str):
    resolved = _resolve(kind)
    if resolved is None:
        return jsonify({"error": "Not found"}), 404
    document_type, _ = resolved

    try:
        orders = purchasing_service.list_orders(
            document_type,
            warehouse_id=request.args.get("warehouse_id", type=int),
            date_from=date_arg("from"),
            date_to=date_arg("to"),
        )
        return jsonify({"items": [o.to_dict(include_items=False) for o in orders], "count": len(orders)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list orders")


@purchasing_bp.get("/<kind>/<int:order_id>")
def get_order_route(kind: str, order_id: int):
    resolved = _resolve(kind)
    if resolved is None:
        return jsonify({"error": "Not found"}), 404
    document_type, _ = resolved

    try:
        return jsonify({"order": purchasing_service.get_order(document_type, order_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get order")
