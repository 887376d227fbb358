# Overview: Error mapping and request parsing shared by the blueprints.

"""
Status mapping shared by every blueprint:

- ValidationError and the per-service errors (SalesError, WarehouseError, ...) -> 400
- NotFoundError -> 404
- ConflictError -> 409
- NumberingUnavailableError / ResourceBusyError -> 503 with "retryable": true

Routes catch DOMAIN_ERRORS and hand them to error_response(); anything
else is logged with current_app.logger.exception and answered with 500.
"""

from flask import current_app, jsonify, request

from ..services.concurrency import ResourceBusyError
from ..services.numbering_service import NumberingError, NumberingUnavailableError
from ..services.purchasing_service import PurchasingError
from ..services.reference_service import ReferenceDataError
from ..services.sales_service import SalesError
from ..services.treasury_service import TreasuryError
from ..services.warehouse_service import WarehouseError
from ..validation import ConflictError, NotFoundError, ValidationError, parse_line_items, require_date


DOMAIN_ERRORS = (
    ValidationError,
    ConflictError,
    NotFoundError,
    ResourceBusyError,
    NumberingError,
    PurchasingError,
    ReferenceDataError,
    SalesError,
    TreasuryError,
    WarehouseError,
)


def error_response(exc: Exception):
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ConflictError):
        body = {"error": str(exc)}
        if exc.details:
            body["details"] = exc.details
        return jsonify(body), 409
    if isinstance(exc, ResourceBusyError):
        if isinstance(exc, NumberingUnavailableError):
            current_app.logger.warning("Document numbering unavailable: %s %s", request.method, request.path)
        else:
            current_app.logger.warning("Database busy: %s %s", request.method, request.path)
        return jsonify({"error": str(exc), "retryable": True}), 503

    body = {"error": str(exc)}
    details = getattr(exc, "details", None)
    if details:
        body["details"] = details
    return jsonify(body), 400


def internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def date_arg(name: str):
    """Optional ISO date from the query string."""
    value = request.args.get(name)
    if not value:
        return None
    return require_date(value, name)


def items_arg(payload: dict, *, priced: bool, require_warehouse: bool = False) -> list[dict]:
    return parse_line_items(payload.get("items"), priced=priced, require_warehouse=require_warehouse)
