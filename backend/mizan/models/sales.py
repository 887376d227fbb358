from __future__ import annotations

from ..extensions import db
from mizan.money import as_amount, as_quantity
from mizan.time_utils import to_utc_z, to_iso_date


def _priced_item_dict(item) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "quantity": as_quantity(item.quantity),
        "unit_price": as_amount(item.unit_price),
        "discount_percentage": as_amount(item.discount_percentage),
        "total_price": as_amount(item.total_price),
    }


class Quotation(db.Model):
    """
    Sales quotation.

    LIFECYCLE:
    - DRAFT: editable; items and totals are replaced on update
    - CLOSED: final, sent to the customer; no further edits

    Totals are always produced by the totals service from the items.
    """
    __tablename__ = "quotations"
    __table_args__ = (
        db.UniqueConstraint("quotation_number", name="uq_quotations_number"),
        db.Index("ix_quotations_customer_date", "customer_id", "quotation_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quotation_number = db.Column(db.String(32), nullable=False)
    quotation_date = db.Column(db.Date, nullable=False)
    valid_until = db.Column(db.Date, nullable=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)  # DRAFT, CLOSED

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms_and_conditions = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    employee = db.relationship("Employee")
    items = db.relationship(
        "QuotationItem",
        backref="quotation",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="QuotationItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "quotation_number": self.quotation_number,
            "quotation_date": to_iso_date(self.quotation_date),
            "valid_until": to_iso_date(self.valid_until),
            "customer_id": self.customer_id,
            "employee_id": self.employee_id,
            "status": self.status,
            "subtotal": as_amount(self.subtotal),
            "discount_percentage": as_amount(self.discount_percentage),
            "discount_amount": as_amount(self.discount_amount),
            "tax_amount": as_amount(self.tax_amount),
            "total_amount": as_amount(self.total_amount),
            "notes": self.notes,
            "terms_and_conditions": self.terms_and_conditions,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class QuotationItem(db.Model):
    __tablename__ = "quotation_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 2), nullable=False)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    # quantity * unit_price * (1 - discount/100), rounded to cents
    total_price = db.Column(db.Numeric(14, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        data = _priced_item_dict(self)
        data["quotation_id"] = self.quotation_id
        return data


class CashSalesInvoice(db.Model):
    """
    Cash sale: paid in full at the counter.

    payment_amount must cover total_amount; change_amount is the surplus
    handed back. Both are checked before anything is written.
    """
    __tablename__ = "cash_sales_invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_cash_sales_invoices_number"),
        db.Index("ix_cash_sales_invoices_customer_date", "customer_id", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False)
    invoice_date = db.Column(db.Date, nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    sales_representative = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="COMPLETED", index=True)

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    payment_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    change_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    items = db.relationship(
        "CashSalesInvoiceItem",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="CashSalesInvoiceItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_iso_date(self.invoice_date),
            "customer_id": self.customer_id,
            "customer_phone": self.customer_phone,
            "sales_representative": self.sales_representative,
            "status": self.status,
            "subtotal": as_amount(self.subtotal),
            "discount_percentage": as_amount(self.discount_percentage),
            "discount_amount": as_amount(self.discount_amount),
            "total_amount": as_amount(self.total_amount),
            "payment_amount": as_amount(self.payment_amount),
            "change_amount": as_amount(self.change_amount),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class CashSalesInvoiceItem(db.Model):
    __tablename__ = "cash_sales_invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("cash_sales_invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 2), nullable=False)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(14, 2), nullable=False)

    # Stock on hand in warehouse_id when the invoice was written (informational)
    available_quantity = db.Column(db.Numeric(14, 3), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        data = _priced_item_dict(self)
        data["invoice_id"] = self.invoice_id
        data["warehouse_id"] = self.warehouse_id
        data["available_quantity"] = as_quantity(self.available_quantity)
        return data


class CreditSalesInvoice(db.Model):
    """
    Credit (deferred payment) sale.

    remaining_amount = total_amount - paid_amount. Invoices with a
    remaining amount show up in the due invoices report.
    """
    __tablename__ = "credit_sales_invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_credit_sales_invoices_number"),
        db.Index("ix_credit_sales_invoices_customer_date", "customer_id", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False)
    invoice_date = db.Column(db.Date, nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="COMPLETED", index=True)

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    remaining_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    employee = db.relationship("Employee")
    items = db.relationship(
        "CreditSalesInvoiceItem",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="CreditSalesInvoiceItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_iso_date(self.invoice_date),
            "customer_id": self.customer_id,
            "employee_id": self.employee_id,
            "status": self.status,
            "subtotal": as_amount(self.subtotal),
            "discount_percentage": as_amount(self.discount_percentage),
            "discount_amount": as_amount(self.discount_amount),
            "total_amount": as_amount(self.total_amount),
            "paid_amount": as_amount(self.paid_amount),
            "remaining_amount": as_amount(self.remaining_amount),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class CreditSalesInvoiceItem(db.Model):
    __tablename__ = "credit_sales_invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("credit_sales_invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 2), nullable=False)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(14, 2), nullable=False)
    available_quantity = db.Column(db.Numeric(14, 3), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        data = _priced_item_dict(self)
        data["invoice_id"] = self.invoice_id
        data["warehouse_id"] = self.warehouse_id
        data["available_quantity"] = as_quantity(self.available_quantity)
        return data
