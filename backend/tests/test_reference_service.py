from decimal import Decimal

import pytest

from mizan.models import WarehouseStock
from mizan.services import reference_service, sales_service
from mizan.services.warehouse_service import get_quantity, post_transaction
from mizan.validation import ConflictError, NotFoundError, ValidationError


def test_update_customer_keeps_code(customer):
    updated = reference_service.update_customer(
        customer.id, patch={"phone": "0122222222", "credit_limit": Decimal("500")}
    )
    assert updated.customer_code == "C00001"
    assert updated.phone == "0122222222"
    assert updated.credit_limit == Decimal("500.00")

    with pytest.raises(ValidationError):
        reference_service.update_customer(customer.id, patch={"customer_code": "C00009"})
    with pytest.raises(NotFoundError):
        reference_service.update_customer(424242, patch={"phone": "1"})


def test_customer_in_use_cannot_be_deleted(customer, warehouse, stocked_product):
    sales_service.create_credit_invoice(
        patch={"customer_id": customer.id},
        items=[{
            "product_id": stocked_product.id,
            "warehouse_id": warehouse.id,
            "quantity": Decimal("1"),
            "unit_price": Decimal("15"),
            "discount_percentage": Decimal("0"),
        }],
    )
    with pytest.raises(ConflictError) as exc:
        reference_service.delete_customer(customer.id)
    assert exc.value.details["usage"] == {"credit_invoices": 1}


def test_unused_customer_is_deleted(db_session):
    spare = reference_service.create_customer(patch={"business_owner_name": "Walk-in"})
    reference_service.delete_customer(spare.id)
    with pytest.raises(NotFoundError):
        reference_service.get_customer(spare.id)


def test_update_product_fields_and_barcode(product, stocked_product):
    updated = reference_service.update_product(
        product.id, patch={"name": "Steel bolt M8 zinc", "sale_price": Decimal("2.75")}
    )
    assert updated.name == "Steel bolt M8 zinc"
    assert updated.product_code == "P00001"

    updated = reference_service.update_product(product.id, patch={"barcode": "4006381333931"})
    assert reference_service.find_product_by_barcode("4006381333931").id == product.id

    with pytest.raises(ConflictError):
        reference_service.update_product(stocked_product.id, patch={"barcode": "4006381333931"})
    with pytest.raises(ValidationError):
        reference_service.update_product(product.id, patch={"barcode": "4006381333932"})


@pytest.mark.parametrize("field,value", [
    ("product_code", "P00042"),
    ("code_prefix", "M"),
    ("opening_balance", Decimal("5")),
    ("opening_warehouse_id", 1),
])
def test_product_identity_and_opening_stock_are_fixed(product, field, value):
    with pytest.raises(ValidationError):
        reference_service.update_product(product.id, patch={field: value})


def test_product_with_movements_cannot_be_deleted(warehouse, stocked_product):
    post_transaction(
        warehouse_id=warehouse.id,
        transaction_type="OUTGOING",
        items=[{"product_id": stocked_product.id, "quantity": Decimal("1")}],
    )
    with pytest.raises(ConflictError) as exc:
        reference_service.delete_product(stocked_product.id)
    assert exc.value.details["usage"] == {"warehouse_transactions": 1}
    assert get_quantity(warehouse.id, stocked_product.id) == Decimal("99")


def test_deleting_unused_product_drops_its_opening_stock(db_session, warehouse, stocked_product):
    reference_service.delete_product(stocked_product.id)
    assert db_session.query(WarehouseStock).filter_by(product_id=stocked_product.id).count() == 0
    with pytest.raises(NotFoundError):
        reference_service.get_product(stocked_product.id)
