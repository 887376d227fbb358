# Overview: Reserve document numbers and barcodes ahead of submission.

"""
Number reservation routes.

A form that shows its number before submission reserves it here. The
number is committed immediately and submitted back with the document,
where it is validated against its counter. Counter failures answer 503
with "retryable": true; there is no other way to obtain a number.
"""

from flask import Blueprint, jsonify

from ..services import numbering_service
from .common import DOMAIN_ERRORS, error_response, internal_error, json_payload

numbers_bp = Blueprint("numbers", __name__, url_prefix="/api/numbers")


@numbers_bp.get("")
def list_counters_route():
    try:
        counters = numbering_service.list_counters()
        return jsonify({"items": [c.to_dict() for c in counters], "count": len(counters)}), 200
    except Exception:
        return internal_error("list counters")


@numbers_bp.get("/schemes")
def list_schemes_route():
    schemes = [
        {"document_type": s.document_type, "prefixes": list(s.prefixes), "pad": s.pad}
        for s in numbering_service.SCHEMES.values()
    ]
    return jsonify({"items": schemes, "product_prefixes": numbering_service.PRODUCT_PREFIXES}), 200


@numbers_bp.post("/barcode")
def next_barcode_route():
    try:
        barcode = numbering_service.next_barcode()
        return jsonify({"barcode": barcode}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("issue barcode")


@numbers_bp.post("/<document_type>")
def next_number_route(document_type: str):
    """
    Issue the next number for a document type.

    Body (optional): {"prefix": "M"} for product codes.
    """
    try:
        payload = json_payload()
        number = numbering_service.next_number(document_type, payload.get("prefix"))
        return jsonify({"document_type": document_type, "number": number}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error(f"issue {document_type} number")
