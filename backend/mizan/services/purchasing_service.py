# Overview: Purchase orders and dispatch orders (unpriced, counted in items and pieces).

from __future__ import annotations

from datetime import date

from sqlalchemy import select

from ..extensions import db
from ..models import DispatchOrder, DispatchOrderItem, Employee, Product, PurchaseOrder, PurchaseOrderItem, Warehouse
from mizan.time_utils import today
from ..validation import get_or_404, require_date
from .concurrency import run_unit_of_work, unit_of_work
from .numbering_service import assign_number
from .totals_service import count_pieces


ORDER_DRAFT = "DRAFT"


class PurchasingError(ValueError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# document_type -> (order model, item model)
ORDER_KINDS = {
    "purchase_order": (PurchaseOrder, PurchaseOrderItem),
    "dispatch_order": (DispatchOrder, DispatchOrderItem),
}


def _create_order(document_type: str, *, patch: dict, items: list[dict]):
    order_model, item_model = ORDER_KINDS[document_type]
    patch = dict(patch)
    requested_number = patch.pop("order_number", None)
    order_date = require_date(patch.pop("order_date", None), "order_date", default=today())

    if not items:
        raise PurchasingError("At least one item is required")
    product_ids = {item["product_id"] for item in items}
    found = set(db.session.execute(select(Product.id).where(Product.id.in_(product_ids))).scalars())
    missing = sorted(product_ids - found)
    if missing:
        raise PurchasingError("Unknown products", details={"missing_product_ids": missing})
    if any(item["quantity"] <= 0 for item in items):
        raise PurchasingError("Item quantities must be > 0")
    if patch.get("warehouse_id") is not None:
        get_or_404(Warehouse, patch["warehouse_id"], "Warehouse")
    if patch.get("employee_id") is not None:
        get_or_404(Employee, patch["employee_id"], "Employee")

    total_items, total_pieces = count_pieces(items)

    def _op():
        with unit_of_work():
            number = assign_number(
                document_type, requested_number, model=order_model, column=order_model.order_number
            )
            order = order_model(
                order_number=number,
                order_date=order_date,
                status=ORDER_DRAFT,
                total_items=total_items,
                total_pieces=total_pieces,
                **patch,
            )
            order.items = [item_model(product_id=i["product_id"], quantity=i["quantity"]) for i in items]
            db.session.add(order)
            db.session.flush()
        return order

    return run_unit_of_work(_op)


def create_purchase_order(*, patch: dict, items: list[dict]) -> PurchaseOrder:
    return _create_order("purchase_order", patch=patch, items=items)


def create_dispatch_order(*, patch: dict, items: list[dict]) -> DispatchOrder:
    return _create_order("dispatch_order", patch=patch, items=items)


def get_order(document_type: str, order_id: int):
    order_model, _ = ORDER_KINDS[document_type]
    return get_or_404(order_model, order_id, order_model.__name__)


def list_orders(
    document_type: str,
    *,
    warehouse_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list:
    order_model, _ = ORDER_KINDS[document_type]
    query = db.session.query(order_model)
    if warehouse_id is not None:
        query = query.filter(order_model.warehouse_id == warehouse_id)
    if date_from is not None:
        query = query.filter(order_model.order_date >= date_from)
    if date_to is not None:
        query = query.filter(order_model.order_date <= date_to)
    return query.order_by(order_model.order_date.desc(), order_model.id.desc()).all()
