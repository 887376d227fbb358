# Overview: Master data (lookups, customers, products, warehouses, employees).

"""
Reference data

Customers and products get their codes from the numbering counters in the
same unit of work that inserts them. A product's barcode comes from the
BARCODE counter unless one is supplied. A product created with an opening
balance seeds the stock row of its opening warehouse.
"""

from __future__ import annotations

from sqlalchemy import delete, func, or_, select

from ..extensions import db
from ..models import (
    CashSalesInvoice,
    CashSalesInvoiceItem,
    Country,
    CreditSalesInvoice,
    CreditSalesInvoiceItem,
    Customer,
    CustomerType,
    DispatchOrderItem,
    Employee,
    Product,
    ProductCategory,
    Province,
    PurchaseOrderItem,
    Quotation,
    QuotationItem,
    TreasuryVoucher,
    UnitOfMeasure,
    Warehouse,
    WarehouseStock,
    WarehouseTransactionItem,
    WarehouseType,
)
from mizan.money import ZERO
from ..validation import ConflictError, NotFoundError, ValidationError, get_or_404
from .concurrency import run_unit_of_work, unit_of_work
from .numbering_service import assign_number, is_valid_barcode, issue_barcode, parse_number, resolve_prefix
from .warehouse_service import seed_opening_stock


LOOKUP_MODELS = {
    "countries": Country,
    "provinces": Province,
    "customer-types": CustomerType,
    "product-categories": ProductCategory,
    "units": UnitOfMeasure,
    "warehouse-types": WarehouseType,
}


class ReferenceDataError(ValueError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def lookup_model(kind: str):
    model = LOOKUP_MODELS.get(kind)
    if model is None:
        raise ReferenceDataError(f"Unknown lookup: {kind}", details={"valid_lookups": sorted(LOOKUP_MODELS)})
    return model


def _insert(row):
    """Add a row in its own unit of work; unique violations become ConflictError."""
    def _op():
        with unit_of_work():
            db.session.add(row)
            db.session.flush()
        return row

    return run_unit_of_work(_op, conflict_message=f"{row.__class__.__name__} already exists")


def list_lookup(kind: str, *, country_id: int | None = None) -> list:
    model = lookup_model(kind)
    query = db.session.query(model)
    if model is Province and country_id is not None:
        query = query.filter(Province.country_id == country_id)
    return query.order_by(model.name).all()


def create_lookup(kind: str, patch: dict):
    model = lookup_model(kind)
    if model is Province and patch.get("country_id") is not None:
        get_or_404(Country, patch["country_id"], "Country")
    if model is WarehouseType and not patch.get("name_ar"):
        patch = {**patch, "name_ar": patch.get("name")}
    return _insert(model(**patch))


def _check_location(country_id, province_id) -> None:
    if country_id is not None:
        get_or_404(Country, country_id, "Country")
    if province_id is None:
        return
    province = get_or_404(Province, province_id, "Province")
    if country_id is not None and province.country_id not in (None, country_id):
        raise ValidationError(f"Province {province_id} does not belong to country {country_id}")


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def create_customer(*, patch: dict) -> Customer:
    """
    patch is validated against the Customer columns; customer_code, when
    present, must be a number reserved earlier from the C counter.
    """
    patch = dict(patch)
    requested_code = patch.pop("customer_code", None)

    if patch.get("customer_type_id") is not None:
        get_or_404(CustomerType, patch["customer_type_id"], "Customer type")
    _check_location(patch.get("country_id"), patch.get("province_id"))
    if patch.get("opening_balance") is None:
        patch["opening_balance"] = ZERO

    def _op() -> Customer:
        with unit_of_work():
            code = assign_number("customer", requested_code, model=Customer, column=Customer.customer_code)
            customer = Customer(customer_code=code, **patch)
            db.session.add(customer)
            db.session.flush()
        return customer

    return run_unit_of_work(_op)


def get_customer(customer_id: int) -> Customer:
    return get_or_404(Customer, customer_id, "Customer")


def list_customers(*, search: str | None = None, limit: int = 200, offset: int = 0) -> list[Customer]:
    query = db.session.query(Customer)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Customer.customer_code.ilike(like),
                Customer.business_owner_name.ilike(like),
                Customer.institution_name.ilike(like),
                Customer.phone.ilike(like),
            )
        )
    return query.order_by(Customer.customer_code).limit(limit).offset(offset).all()


def _usage(checks) -> dict[str, int]:
    """Count referencing rows per label; labels with none are left out."""
    usage = {}
    for label, column, value in checks:
        count = db.session.execute(select(func.count()).where(column == value)).scalar_one()
        if count:
            usage[label] = count
    return usage


def update_customer(customer_id: int, *, patch: dict) -> Customer:
    """Edit customer master data. customer_code never changes."""
    patch = dict(patch)
    if "customer_code" in patch:
        raise ValidationError("customer_code cannot be changed")
    if patch.get("customer_type_id") is not None:
        get_or_404(CustomerType, patch["customer_type_id"], "Customer type")

    def _op() -> Customer:
        with unit_of_work():
            customer = get_customer(customer_id)
            _check_location(
                patch.get("country_id", customer.country_id),
                patch.get("province_id", customer.province_id),
            )
            for key, value in patch.items():
                setattr(customer, key, value)
            if customer.opening_balance is None:
                customer.opening_balance = ZERO
            db.session.flush()
        return customer

    return run_unit_of_work(_op)


def delete_customer(customer_id: int) -> None:
    """Delete a customer that no document or voucher refers to."""
    def _op() -> None:
        with unit_of_work():
            customer = get_customer(customer_id)
            usage = _usage((
                ("quotations", Quotation.customer_id, customer.id),
                ("cash_invoices", CashSalesInvoice.customer_id, customer.id),
                ("credit_invoices", CreditSalesInvoice.customer_id, customer.id),
                ("vouchers", TreasuryVoucher.customer_id, customer.id),
            ))
            if usage:
                raise ConflictError(f"Customer {customer.customer_code} is in use", details={"usage": usage})
            db.session.delete(customer)

    run_unit_of_work(_op)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def create_product(*, patch: dict) -> Product:
    """
    Create a product.

    code_prefix picks the product counter (P, M, R, F, S; default P). A
    reserved product_code overrides code_prefix with its own prefix. An
    opening_balance greater than zero needs an opening_warehouse_id and
    becomes that warehouse's first stock quantity.
    """
    patch = dict(patch)
    requested_code = patch.pop("product_code", None)
    barcode = patch.pop("barcode", None) or None

    if requested_code:
        prefix, _ = parse_number("product", requested_code)
    else:
        _, prefix = resolve_prefix("product", patch.get("code_prefix") or None)
    patch["code_prefix"] = prefix

    opening_balance = patch.get("opening_balance") or ZERO
    patch["opening_balance"] = opening_balance
    if opening_balance < ZERO:
        raise ValidationError("opening_balance must be >= 0")
    if opening_balance > ZERO and patch.get("opening_warehouse_id") is None:
        raise ValidationError("opening_warehouse_id is required when opening_balance is set")
    if patch.get("opening_warehouse_id") is not None:
        get_or_404(Warehouse, patch["opening_warehouse_id"], "Warehouse")
    if patch.get("category_id") is not None:
        get_or_404(ProductCategory, patch["category_id"], "Product category")
    if patch.get("unit_id") is not None:
        get_or_404(UnitOfMeasure, patch["unit_id"], "Unit")

    if barcode is not None:
        if not is_valid_barcode(barcode):
            raise ValidationError("barcode must be a valid EAN-13 code")
        if db.session.execute(select(Product.id).where(Product.barcode == barcode)).first():
            raise ConflictError(f"Barcode {barcode} is already used")

    def _op() -> Product:
        with unit_of_work():
            code = assign_number(
                "product",
                requested_code,
                model=Product,
                column=Product.product_code,
                prefix=prefix,
            )
            product = Product(
                product_code=code,
                barcode=barcode or issue_barcode(),
                **patch,
            )
            db.session.add(product)
            db.session.flush()
            seed_opening_stock(product)
        return product

    return run_unit_of_work(_op, conflict_message="Product code or barcode is already used")


def get_product(product_id: int) -> Product:
    return get_or_404(Product, product_id, "Product")


def find_product_by_barcode(barcode: str) -> Product:
    product = db.session.query(Product).filter(Product.barcode == barcode).one_or_none()
    if product is None:
        raise NotFoundError(f"No product with barcode {barcode}")
    return product


def list_products(
    *,
    search: str | None = None,
    category_id: int | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[Product]:
    query = db.session.query(Product)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(Product.product_code.ilike(like), Product.name.ilike(like), Product.barcode.ilike(like))
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.product_code).limit(limit).offset(offset).all()


def update_product(product_id: int, *, patch: dict) -> Product:
    """
    Edit product master data.

    product_code and code_prefix never change. opening_balance and
    opening_warehouse_id are fixed once the product exists; later stock
    changes go through warehouse transactions.
    """
    patch = dict(patch)
    fixed = sorted(
        {"product_code", "code_prefix", "opening_balance", "opening_warehouse_id"} & set(patch)
    )
    if fixed:
        raise ValidationError(f"Fields cannot be changed: {', '.join(fixed)}")
    if patch.get("category_id") is not None:
        get_or_404(ProductCategory, patch["category_id"], "Product category")
    if patch.get("unit_id") is not None:
        get_or_404(UnitOfMeasure, patch["unit_id"], "Unit")
    if "barcode" in patch:
        barcode = patch["barcode"] or None
        if barcode is None:
            raise ValidationError("barcode cannot be cleared")
        if not is_valid_barcode(barcode):
            raise ValidationError("barcode must be a valid EAN-13 code")
        patch["barcode"] = barcode

    def _op() -> Product:
        with unit_of_work():
            product = get_product(product_id)
            barcode = patch.get("barcode")
            if barcode is not None and barcode != product.barcode:
                taken = db.session.execute(
                    select(Product.id).where(Product.barcode == barcode, Product.id != product.id)
                ).first()
                if taken:
                    raise ConflictError(f"Barcode {barcode} is already used")
            for key, value in patch.items():
                setattr(product, key, value)
            db.session.flush()
        return product

    return run_unit_of_work(_op, conflict_message="Barcode is already used")


def delete_product(product_id: int) -> None:
    """
    Delete a product that no document, order or warehouse transaction
    refers to. Its stock rows (opening stock only, at that point) go with it.
    """
    def _op() -> None:
        with unit_of_work():
            product = get_product(product_id)
            usage = _usage((
                ("warehouse_transactions", WarehouseTransactionItem.product_id, product.id),
                ("quotations", QuotationItem.product_id, product.id),
                ("cash_invoices", CashSalesInvoiceItem.product_id, product.id),
                ("credit_invoices", CreditSalesInvoiceItem.product_id, product.id),
                ("purchase_orders", PurchaseOrderItem.product_id, product.id),
                ("dispatch_orders", DispatchOrderItem.product_id, product.id),
            ))
            if usage:
                raise ConflictError(f"Product {product.product_code} is in use", details={"usage": usage})
            db.session.execute(delete(WarehouseStock).where(WarehouseStock.product_id == product.id))
            db.session.delete(product)

    run_unit_of_work(_op)


# ---------------------------------------------------------------------------
# Warehouses and employees
# ---------------------------------------------------------------------------

def create_warehouse(*, patch: dict) -> Warehouse:
    if patch.get("warehouse_type_id") is not None:
        get_or_404(WarehouseType, patch["warehouse_type_id"], "Warehouse type")
    return _insert(Warehouse(**patch))


def list_warehouses() -> list[Warehouse]:
    return db.session.query(Warehouse).order_by(Warehouse.name).all()


def create_employee(*, patch: dict) -> Employee:
    return _insert(Employee(**patch))


def list_employees() -> list[Employee]:
    return db.session.query(Employee).order_by(Employee.name).all()
