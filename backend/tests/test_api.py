"""
HTTP-level tests: status codes, error bodies and the JSON shapes the
screens rely on.
"""

import pytest
from sqlalchemy.exc import OperationalError

from mizan.services import numbering_service, reference_service


@pytest.fixture
def setup_stock(client, db_session):
    """Warehouse + product with 100 units of opening stock, via the API."""
    warehouse = client.post("/api/warehouses", json={"name": "Central"}).get_json()
    product = client.post("/api/products", json={
        "name": "Cable tie",
        "code_prefix": "R",
        "sale_price": "10.00",
        "opening_balance": 100,
        "opening_warehouse_id": warehouse["id"],
    }).get_json()
    return warehouse, product


def test_health(client, db_session):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_reserve_numbers(client, db_session):
    response = client.post("/api/numbers/quotation")
    assert response.status_code == 201
    assert response.get_json() == {"document_type": "quotation", "number": "QT000001"}

    response = client.post("/api/numbers/product", json={"prefix": "M"})
    assert response.get_json()["number"] == "M00001"

    response = client.post("/api/numbers/receipt")
    assert response.status_code == 400
    assert "valid_types" in response.get_json()["details"]

    counters = client.get("/api/numbers").get_json()
    assert {c["prefix"] for c in counters["items"]} == {"QT", "M"}


def test_numbering_outage_is_503_and_retryable(client, db_session, monkeypatch):
    def locked(prefix, document_type):
        raise OperationalError("UPDATE document_counters", {}, Exception("database is locked"))

    monkeypatch.setattr(numbering_service, "_advance_counter", locked)

    response = client.post("/api/numbers/cash_invoice")
    assert response.status_code == 503
    body = response.get_json()
    assert body["retryable"] is True
    assert "number" not in body


def test_totals_preview(client):
    response = client.post("/api/totals/preview", json={
        "items": [{"quantity": 3, "unit_price": "10.00", "discount_percentage": 10}],
        "discount_percentage": 0,
        "payment_amount": "50",
    })
    assert response.status_code == 200
    body = response.get_json()
    assert body["lines"][0]["total_price"] == "27.00"
    assert body["total_amount"] == "27.00"
    assert body["change_amount"] == "23.00"

    response = client.post("/api/totals/preview", json={
        "items": [{"quantity": 1, "unit_price": "10", "discount_percentage": 140}],
    })
    assert response.status_code == 400


def test_create_customer_assigns_code(client, db_session):
    response = client.post("/api/customers", json={"business_owner_name": "Mona Adel", "phone": "0111"})
    assert response.status_code == 201
    assert response.get_json()["customer_code"] == "C00001"

    response = client.post("/api/customers", json={"business_owner_name": "X", "balance": 3})
    assert response.status_code == 400
    assert "Field not allowed" in response.get_json()["error"]

    assert client.get("/api/customers/999").status_code == 404


def test_product_codes_and_barcode_lookup(client, setup_stock):
    _, product = setup_stock
    assert product["product_code"] == "R00001"
    assert product["opening_balance"] == "100"

    response = client.get(f"/api/products/barcode/{product['barcode']}")
    assert response.status_code == 200
    assert response.get_json()["id"] == product["id"]
    assert client.get("/api/products/barcode/4006381333931").status_code == 404

    response = client.post("/api/products", json={"name": "Bad", "barcode": "123"})
    assert response.status_code == 400


def test_warehouse_transaction_flow(client, setup_stock):
    warehouse, product = setup_stock

    response = client.post("/api/warehouse/transactions", json={
        "transaction_type": "OUTGOING",
        "warehouse_id": warehouse["id"],
        "transaction_date": "2026-07-01",
        "items": [{"product_id": product["id"], "quantity": 40}],
    })
    assert response.status_code == 201
    tx = response.get_json()["transaction"]
    assert tx["transaction_number"] == "WT000001"
    assert tx["items"][0]["quantity"] == "40"

    response = client.post("/api/warehouse/transactions", json={
        "transaction_type": "OUTGOING",
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": 70}],
    })
    assert response.status_code == 400
    assert response.get_json()["details"]["available"] == "60"

    card = client.get(
        f"/api/warehouse/item-card?warehouse_id={warehouse['id']}&product_id={product['id']}"
    ).get_json()
    assert card["summary"]["opening_balance"] == "100"
    assert card["summary"]["balance"] == "60"

    stock = client.get(f"/api/warehouse/stock?warehouse_id={warehouse['id']}").get_json()
    assert stock["items"][0]["quantity"] == "60"

    reconcile = client.get("/api/warehouse/reconcile").get_json()
    assert reconcile == {"consistent": True, "divergences": []}

    assert client.get("/api/warehouse/item-card?product_id=1").status_code == 400


def test_cash_invoice_endpoint(client, setup_stock):
    warehouse, product = setup_stock
    item = {"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 3,
            "unit_price": "10.00", "discount_percentage": 10}

    response = client.post("/api/sales/cash-invoices", json={"items": [item], "payment_amount": "20"})
    assert response.status_code == 400

    response = client.post("/api/sales/cash-invoices", json={"items": [item], "payment_amount": "30"})
    assert response.status_code == 201
    invoice = response.get_json()["invoice"]
    assert invoice["invoice_number"] == "CSH000001"
    assert invoice["total_amount"] == "27.00"
    assert invoice["change_amount"] == "3.00"
    assert invoice["items"][0]["available_quantity"] == "100"

    response = client.post("/api/sales/cash-invoices", json={
        "items": [item], "payment_amount": "30", "total_amount": "1.00",
    })
    assert response.status_code == 400


def test_reserved_quotation_number_reuse_is_409(client, setup_stock):
    _, product = setup_stock
    number = client.post("/api/numbers/quotation").get_json()["number"]
    payload = {
        "quotation_number": number,
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": "5"}],
    }

    first = client.post("/api/sales/quotations", json=payload)
    assert first.status_code == 201
    assert first.get_json()["quotation"]["quotation_number"] == number

    second = client.post("/api/sales/quotations", json=payload)
    assert second.status_code == 409

    quotation_id = first.get_json()["quotation"]["id"]
    response = client.put(f"/api/sales/quotations/{quotation_id}", json={"notes": "x", "expected_version": 7})
    assert response.status_code == 409


def test_unique_violation_on_insert_is_409(client, setup_stock, monkeypatch):
    _, product = setup_stock
    number = client.post("/api/numbers/quotation").get_json()["number"]
    payload = {
        "quotation_number": number,
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": "5"}],
    }
    assert client.post("/api/sales/quotations", json=payload).status_code == 201

    # A concurrent writer passes the read-side check and loses at the insert
    monkeypatch.setattr(
        numbering_service, "validate_reserved_number", lambda document_type, number, **kwargs: number
    )
    response = client.post("/api/sales/quotations", json=payload)
    assert response.status_code == 409
    assert "error" in response.get_json()


def test_treasury_voucher_endpoint(client, db_session):
    response = client.post("/api/treasury/vouchers/cash-receipt", json={"amount": "75.50", "counterparty": "Walk-in"})
    assert response.status_code == 201
    body = response.get_json()
    assert body["voucher"]["voucher_number"] == "CR000001"
    assert body["balance"]["balance"] == "75.50"

    response = client.post("/api/treasury/vouchers/expense", json={"amount": "100", "expense_category": "Rent"})
    assert response.status_code == 400
    assert client.get("/api/treasury/balance").get_json()["balance"] == "75.50"


def test_purchase_order_endpoint(client, setup_stock):
    warehouse, product = setup_stock
    response = client.post("/api/purchasing/purchase-orders", json={
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": 4}, {"product_id": product["id"], "quantity": 1}],
    })
    assert response.status_code == 201
    order = response.get_json()["order"]
    assert order["order_number"] == "PO000001"
    assert order["total_items"] == 2
    assert order["total_pieces"] == "5"

    assert client.post("/api/purchasing/sales-orders", json={}).status_code == 404


def test_cors_header_for_allowed_origin(client, db_session):
    response = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"

    response = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_totals_preview_accepts_null_product(client):
    response = client.post("/api/totals/preview", json={
        "items": [{"product_id": None, "quantity": 2, "unit_price": "4.50"}],
    })
    assert response.status_code == 200
    assert response.get_json()["total_amount"] == "9.00"


def test_void_warehouse_transaction(client, setup_stock):
    warehouse, product = setup_stock
    tx = client.post("/api/warehouse/transactions", json={
        "transaction_type": "OUTGOING",
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": 25}],
    }).get_json()["transaction"]

    assert client.post(f"/api/warehouse/transactions/{tx['id']}/void", json={}).status_code == 400

    response = client.post(f"/api/warehouse/transactions/{tx['id']}/void", json={
        "reason": "Wrong warehouse", "voided_by": "store keeper",
    })
    assert response.status_code == 200
    voided = response.get_json()["transaction"]
    assert voided["status"] == "VOIDED"
    assert voided["void_reason"] == "Wrong warehouse"

    stock = client.get(f"/api/warehouse/stock?warehouse_id={warehouse['id']}").get_json()
    assert stock["items"][0]["quantity"] == "100"
    assert client.get("/api/warehouse/reconcile").get_json()["consistent"] is True

    again = client.post(f"/api/warehouse/transactions/{tx['id']}/void", json={"reason": "twice"})
    assert again.status_code == 400

    response = client.put(f"/api/warehouse/transactions/{tx['id']}", json={"notes": "late"})
    assert response.status_code == 400


def test_edit_and_delete_customer(client, setup_stock):
    warehouse, product = setup_stock
    customer = client.post("/api/customers", json={"business_owner_name": "Mona Adel"}).get_json()

    response = client.put(f"/api/customers/{customer['id']}", json={"phone": "0155"})
    assert response.status_code == 200
    assert response.get_json()["phone"] == "0155"
    assert response.get_json()["customer_code"] == customer["customer_code"]

    invoice = client.post("/api/sales/credit-invoices", json={
        "customer_id": customer["id"],
        "items": [{"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 1, "unit_price": "10"}],
    })
    assert invoice.status_code == 201
    invoice_id = invoice.get_json()["invoice"]["id"]

    response = client.delete(f"/api/customers/{customer['id']}")
    assert response.status_code == 409
    assert response.get_json()["details"]["usage"] == {"credit_invoices": 1}

    assert client.delete(f"/api/sales/credit-invoices/{invoice_id}").status_code == 200
    assert client.delete(f"/api/sales/credit-invoices/{invoice_id}").status_code == 404
    assert client.delete(f"/api/customers/{customer['id']}").status_code == 200
    assert client.get(f"/api/customers/{customer['id']}").status_code == 404


def test_unexpected_failure_on_read_is_500(client, db_session, monkeypatch):
    def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr(reference_service, "list_warehouses", broken)
    response = client.get("/api/warehouses")
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}
