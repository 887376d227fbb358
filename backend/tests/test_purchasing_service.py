from datetime import date
from decimal import Decimal

import pytest

from mizan.services import purchasing_service
from mizan.services.purchasing_service import PurchasingError
from mizan.services.warehouse_service import get_quantity
from mizan.validation import NotFoundError


def test_purchase_order_counts_items_and_pieces(warehouse, product, stocked_product):
    order = purchasing_service.create_purchase_order(
        patch={"warehouse_id": warehouse.id, "order_date": date(2026, 6, 1), "permit_number": "PRM-7"},
        items=[
            {"product_id": product.id, "quantity": Decimal("12")},
            {"product_id": stocked_product.id, "quantity": Decimal("2.5")},
        ],
    )
    assert order.order_number == "PO000001"
    assert order.status == "DRAFT"
    assert order.total_items == 2
    assert order.total_pieces == Decimal("14.5")
    assert order.to_dict()["total_pieces"] == "14.5"
    # Orders are requests; they do not move stock
    assert get_quantity(warehouse.id, product.id) == Decimal("0")


def test_dispatch_orders_have_their_own_counter(warehouse, product):
    purchasing_service.create_purchase_order(patch={}, items=[{"product_id": product.id, "quantity": Decimal("1")}])
    dispatch = purchasing_service.create_dispatch_order(
        patch={"warehouse_id": warehouse.id},
        items=[{"product_id": product.id, "quantity": Decimal("3")}],
    )
    assert dispatch.order_number == "DO000001"
    assert purchasing_service.get_order("dispatch_order", dispatch.id).total_pieces == Decimal("3")
    assert len(purchasing_service.list_orders("purchase_order")) == 1
    assert len(purchasing_service.list_orders("dispatch_order", warehouse_id=warehouse.id)) == 1


def test_order_validation(product):
    with pytest.raises(PurchasingError):
        purchasing_service.create_purchase_order(patch={}, items=[])
    with pytest.raises(PurchasingError):
        purchasing_service.create_purchase_order(patch={}, items=[{"product_id": product.id, "quantity": Decimal("0")}])
    with pytest.raises(PurchasingError) as exc:
        purchasing_service.create_purchase_order(patch={}, items=[{"product_id": 4242, "quantity": Decimal("1")}])
    assert exc.value.details["missing_product_ids"] == [4242]
    with pytest.raises(NotFoundError):
        purchasing_service.create_dispatch_order(
            patch={"employee_id": 77},
            items=[{"product_id": product.id, "quantity": Decimal("1")}],
        )
