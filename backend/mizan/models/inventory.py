from __future__ import annotations

from ..extensions import db
from mizan.money import as_amount, as_quantity
from mizan.time_utils import to_utc_z, to_iso_date


TRANSACTION_INCOMING = "INCOMING"
TRANSACTION_OUTGOING = "OUTGOING"
TRANSACTION_TYPES = (TRANSACTION_INCOMING, TRANSACTION_OUTGOING)

TRANSACTION_POSTED = "POSTED"
TRANSACTION_VOIDED = "VOIDED"


class WarehouseTransaction(db.Model):
    """
    Stock movement document (incoming or outgoing) for one warehouse.

    The header, its items and the stock deltas they imply are written in a
    single database transaction. A transaction row never exists without
    its stock effect, nor the reverse.
    """
    __tablename__ = "warehouse_transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_number", name="uq_warehouse_transactions_number"),
        db.Index("ix_whtx_warehouse_date", "warehouse_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_number = db.Column(db.String(32), nullable=False)
    transaction_type = db.Column(db.String(16), nullable=False, index=True)  # INCOMING, OUTGOING
    transaction_date = db.Column(db.Date, nullable=False)

    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    reference_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=TRANSACTION_POSTED)  # POSTED, VOIDED
    voided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    voided_by = db.Column(db.String(255), nullable=True)
    void_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    warehouse = db.relationship("Warehouse")
    items = db.relationship(
        "WarehouseTransactionItem",
        backref="transaction",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="WarehouseTransactionItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "transaction_type": self.transaction_type,
            "transaction_date": to_iso_date(self.transaction_date),
            "warehouse_id": self.warehouse_id,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "created_by": self.created_by,
            "status": self.status,
            "voided_at": to_utc_z(self.voided_at) if self.voided_at else None,
            "voided_by": self.voided_by,
            "void_reason": self.void_reason,
            "total_items": len(self.items),
            "total_pieces": as_quantity(sum((item.quantity for item in self.items), 0)),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class WarehouseTransactionItem(db.Model):
    __tablename__ = "warehouse_transaction_items"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "product_id", name="uq_whtx_items_transaction_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("warehouse_transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Always positive; direction comes from the header's transaction_type
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 2), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "quantity": as_quantity(self.quantity),
            "unit_price": as_amount(self.unit_price),
            "notes": self.notes,
        }


class WarehouseStock(db.Model):
    """
    Maintained stock balance per (warehouse, product).

    INVARIANT: quantity = opening + SUM(incoming) - SUM(outgoing) for the pair.
    Only ever changed with an atomic UPDATE quantity = quantity + delta
    inside the unit of work that posts the movement.
    """
    __tablename__ = "warehouse_stock"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "product_id", name="uq_warehouse_stock_pair"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    last_updated = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    warehouse = db.relationship("Warehouse")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "product_id": self.product_id,
            "quantity": as_quantity(self.quantity),
            "last_updated": to_utc_z(self.last_updated),
        }


class PurchaseOrder(db.Model):
    """Purchase order: requested quantities per product, no prices."""
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_purchase_orders_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False)
    order_date = db.Column(db.Date, nullable=False)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    permit_number = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="DRAFT")
    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_pieces = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "PurchaseOrderItem",
        backref="purchase_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "order_date": to_iso_date(self.order_date),
            "warehouse_id": self.warehouse_id,
            "employee_id": self.employee_id,
            "permit_number": self.permit_number,
            "description": self.description,
            "status": self.status,
            "total_items": self.total_items,
            "total_pieces": as_quantity(self.total_pieces),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": as_quantity(self.quantity),
        }


class DispatchOrder(db.Model):
    """Dispatch (issue) order: quantities to release from a warehouse."""
    __tablename__ = "dispatch_orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_dispatch_orders_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False)
    order_date = db.Column(db.Date, nullable=False)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    permit_number = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="DRAFT")
    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_pieces = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "DispatchOrderItem",
        backref="dispatch_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="DispatchOrderItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "order_date": to_iso_date(self.order_date),
            "warehouse_id": self.warehouse_id,
            "employee_id": self.employee_id,
            "permit_number": self.permit_number,
            "description": self.description,
            "status": self.status,
            "total_items": self.total_items,
            "total_pieces": as_quantity(self.total_pieces),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class DispatchOrderItem(db.Model):
    __tablename__ = "dispatch_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    dispatch_order_id = db.Column(db.Integer, db.ForeignKey("dispatch_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": as_quantity(self.quantity),
        }
