from __future__ import annotations

from ..extensions import db
from mizan.money import as_amount, as_quantity
from mizan.time_utils import to_utc_z


class Country(db.Model):
    __tablename__ = "countries"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_countries_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Province(db.Model):
    """Province within a country (Province -> Country)."""
    __tablename__ = "provinces"
    __table_args__ = (
        db.UniqueConstraint("country_id", "name", name="uq_provinces_country_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    country = db.relationship("Country", backref=db.backref("provinces", lazy=True))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "country_id": self.country_id}


class CustomerType(db.Model):
    __tablename__ = "customer_types"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_customer_types_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class ProductCategory(db.Model):
    __tablename__ = "product_categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_product_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class UnitOfMeasure(db.Model):
    __tablename__ = "units_of_measure"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_units_of_measure_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class WarehouseType(db.Model):
    __tablename__ = "warehouse_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    name_ar = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "name_ar": self.name_ar,
            "description": self.description,
        }


class Customer(db.Model):
    """
    Customer master data.

    customer_code is issued by the "C" counter and never reused.
    opening_balance is the receivable carried in before any invoice and
    is the starting point of the customer statement.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("customer_code", name="uq_customers_code"),
        db.Index("ix_customers_owner_name", "business_owner_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_code = db.Column(db.String(32), nullable=False)
    business_owner_name = db.Column(db.String(255), nullable=False)
    institution_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    whatsapp_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    location_link = db.Column(db.String(512), nullable=True)

    customer_type_id = db.Column(db.Integer, db.ForeignKey("customer_types.id"), nullable=True)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=True)
    province_id = db.Column(db.Integer, db.ForeignKey("provinces.id"), nullable=True)

    credit_limit = db.Column(db.Numeric(14, 2), nullable=True)
    opening_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer_type = db.relationship("CustomerType")
    country = db.relationship("Country")
    province = db.relationship("Province")

    @property
    def display_name(self) -> str:
        return self.institution_name or self.business_owner_name

    def __repr__(self) -> str:
        return f"<Customer id={self.id} code={self.customer_code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_code": self.customer_code,
            "business_owner_name": self.business_owner_name,
            "institution_name": self.institution_name,
            "phone": self.phone,
            "whatsapp_number": self.whatsapp_number,
            "email": self.email,
            "address": self.address,
            "location_link": self.location_link,
            "customer_type_id": self.customer_type_id,
            "country_id": self.country_id,
            "province_id": self.province_id,
            "credit_limit": as_amount(self.credit_limit),
            "opening_balance": as_amount(self.opening_balance),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data.

    CODES:
    - product_code = code_prefix + sequence from that prefix's own counter
      (P general, M raw material, R consumable, F finished good, S spare part)
    - barcode is an EAN-13 issued by the BARCODE counter

    OPENING BALANCE:
    opening_balance is the quantity held in opening_warehouse_id before any
    warehouse transaction. It seeds that warehouse's stock row and is the
    starting point of the item card for that pair; every other warehouse
    starts at zero.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("product_code", name="uq_products_code"),
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(32), nullable=False)
    code_prefix = db.Column(db.String(4), nullable=False, default="P")
    barcode = db.Column(db.String(32), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.String(512), nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units_of_measure.id"), nullable=True)

    sale_price = db.Column(db.Numeric(14, 2), nullable=True)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    reorder_level = db.Column(db.Numeric(14, 3), nullable=True)
    purchase_limit = db.Column(db.Numeric(14, 3), nullable=True)

    opening_balance = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    opening_warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("ProductCategory")
    unit = db.relationship("UnitOfMeasure")
    opening_warehouse = db.relationship("Warehouse")

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "code_prefix": self.code_prefix,
            "barcode": self.barcode,
            "name": self.name,
            "image_url": self.image_url,
            "category_id": self.category_id,
            "unit_id": self.unit_id,
            "sale_price": as_amount(self.sale_price),
            "discount_percentage": as_amount(self.discount_percentage),
            "reorder_level": as_quantity(self.reorder_level),
            "purchase_limit": as_quantity(self.purchase_limit),
            "opening_balance": as_quantity(self.opening_balance),
            "opening_warehouse_id": self.opening_warehouse_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Warehouse(db.Model):
    __tablename__ = "warehouses"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_warehouses_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    warehouse_type_id = db.Column(db.Integer, db.ForeignKey("warehouse_types.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    warehouse_type = db.relationship("WarehouseType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "description": self.description,
            "warehouse_type_id": self.warehouse_type_id,
        }


class Employee(db.Model):
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    position = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "position": self.position,
        }
