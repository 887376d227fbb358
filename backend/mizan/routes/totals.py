# Overview: Totals preview (no writes) using the same calculator as document submission.

from flask import Blueprint, jsonify

from ..services.totals_service import compute_document_totals
from ..validation import ValidationError, parse_line_items
from .common import error_response, internal_error, json_payload

totals_bp = Blueprint("totals", __name__, url_prefix="/api/totals")


@totals_bp.post("/preview")
def preview_totals_route():
    """
    Body: {"items": [{"quantity", "unit_price", "discount_percentage"?}],
           "discount_percentage"?, "tax_amount"?, "payment_amount"?}

    product_id is optional here; the preview only needs the numbers.
    """
    try:
        payload = json_payload()
        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")
        items = parse_line_items(
            [
                {**item, "product_id": item.get("product_id") or 0} if isinstance(item, dict) else item
                for item in raw_items
            ],
            priced=True,
        )
        totals = compute_document_totals(
            items,
            discount_percentage=payload.get("discount_percentage"),
            tax_amount=payload.get("tax_amount"),
            payment_amount=payload.get("payment_amount"),
        )
        return jsonify(totals.to_dict()), 200
    except ValidationError as e:
        return error_response(e)
    except Exception:
        return internal_error("preview totals")
