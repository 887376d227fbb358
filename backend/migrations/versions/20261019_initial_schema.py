"""Initial schema: reference data, counters, sales, warehouse, treasury

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def _named_lookup(table: str, length: int = 128):
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name=f"uq_{table}_name"),
        sqlite_autoincrement=True,
    )


def _priced_items(table: str, parent_table: str, parent_column: str, *, with_warehouse: bool):
    columns = [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
    ]
    if with_warehouse:
        columns.append(sa.Column("warehouse_id", sa.Integer(), nullable=False))
    columns += [
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
    ]
    if with_warehouse:
        columns.append(sa.Column("available_quantity", sa.Numeric(14, 3), nullable=True))
    constraints = [
        sa.ForeignKeyConstraint([parent_column], [f"{parent_table}.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    ]
    if with_warehouse:
        constraints.append(sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]))

    op.create_table(table, *columns, *_timestamps(), *constraints, sqlite_autoincrement=True)
    with op.batch_alter_table(table, schema=None) as batch_op:
        batch_op.create_index(f"ix_{table}_{parent_column}", [parent_column], unique=False)
        batch_op.create_index(f"ix_{table}_product_id", ["product_id"], unique=False)


def _order_tables(table: str, items_table: str, parent_column: str):
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), nullable=True),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("permit_number", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="DRAFT"),
        sa.Column("total_items", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_pieces", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number", name=f"uq_{table}_number"),
        sqlite_autoincrement=True,
    )
    op.create_table(
        items_table,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.ForeignKeyConstraint([parent_column], [f"{table}.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table(items_table, schema=None) as batch_op:
        batch_op.create_index(f"ix_{items_table}_{parent_column}", [parent_column], unique=False)


def upgrade():
    # Reference data
    _named_lookup("countries")
    op.create_table(
        "provinces",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("country_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("country_id", "name", name="uq_provinces_country_name"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("provinces", schema=None) as batch_op:
        batch_op.create_index("ix_provinces_country_id", ["country_id"], unique=False)

    _named_lookup("customer_types")
    _named_lookup("product_categories")
    _named_lookup("units_of_measure", length=64)

    op.create_table(
        "warehouse_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("name_ar", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )
    op.create_table(
        "warehouses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("warehouse_type_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["warehouse_type_id"], ["warehouse_types.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_warehouses_name"),
        sqlite_autoincrement=True,
    )
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("position", sa.String(128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_code", sa.String(32), nullable=False),
        sa.Column("business_owner_name", sa.String(255), nullable=False),
        sa.Column("institution_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("whatsapp_number", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("location_link", sa.String(512), nullable=True),
        sa.Column("customer_type_id", sa.Integer(), nullable=True),
        sa.Column("country_id", sa.Integer(), nullable=True),
        sa.Column("province_id", sa.Integer(), nullable=True),
        sa.Column("credit_limit", sa.Numeric(14, 2), nullable=True),
        sa.Column("opening_balance", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["customer_type_id"], ["customer_types.id"]),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.ForeignKeyConstraint(["province_id"], ["provinces.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("customer_code", name="uq_customers_code"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_owner_name", ["business_owner_name"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_code", sa.String(32), nullable=False),
        sa.Column("code_prefix", sa.String(4), nullable=False, server_default="P"),
        sa.Column("barcode", sa.String(32), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("unit_id", sa.Integer(), nullable=True),
        sa.Column("sale_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("reorder_level", sa.Numeric(14, 3), nullable=True),
        sa.Column("purchase_limit", sa.Numeric(14, 3), nullable=True),
        sa.Column("opening_balance", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("opening_warehouse_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["product_categories.id"]),
        sa.ForeignKeyConstraint(["unit_id"], ["units_of_measure.id"]),
        sa.ForeignKeyConstraint(["opening_warehouse_id"], ["warehouses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_code", name="uq_products_code"),
        sa.UniqueConstraint("barcode", name="uq_products_barcode"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_name", ["name"], unique=False)

    # Numbering
    op.create_table(
        "document_counters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("prefix", sa.String(16), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("current_code", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("prefix", name="uq_document_counters_prefix"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("document_counters", schema=None) as batch_op:
        batch_op.create_index("ix_document_counters_document_type", ["document_type"], unique=False)

    # Sales
    op.create_table(
        "quotations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("quotation_number", sa.String(32), nullable=False),
        sa.Column("quotation_date", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="DRAFT"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("terms_and_conditions", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("quotation_number", name="uq_quotations_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("quotations", schema=None) as batch_op:
        batch_op.create_index("ix_quotations_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_quotations_status", ["status"], unique=False)
        batch_op.create_index("ix_quotations_customer_date", ["customer_id", "quotation_date"], unique=False)
    _priced_items("quotation_items", "quotations", "quotation_id", with_warehouse=False)

    op.create_table(
        "cash_sales_invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(32), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("sales_representative", sa.String(255), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="COMPLETED"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("change_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number", name="uq_cash_sales_invoices_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("cash_sales_invoices", schema=None) as batch_op:
        batch_op.create_index("ix_cash_sales_invoices_invoice_date", ["invoice_date"], unique=False)
        batch_op.create_index("ix_cash_sales_invoices_status", ["status"], unique=False)
        batch_op.create_index("ix_cash_sales_invoices_customer_date", ["customer_id", "invoice_date"], unique=False)
    _priced_items("cash_sales_invoice_items", "cash_sales_invoices", "invoice_id", with_warehouse=True)

    op.create_table(
        "credit_sales_invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(32), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="COMPLETED"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("remaining_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number", name="uq_credit_sales_invoices_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("credit_sales_invoices", schema=None) as batch_op:
        batch_op.create_index("ix_credit_sales_invoices_invoice_date", ["invoice_date"], unique=False)
        batch_op.create_index("ix_credit_sales_invoices_status", ["status"], unique=False)
        batch_op.create_index("ix_credit_sales_invoices_customer_date", ["customer_id", "invoice_date"], unique=False)
    _priced_items("credit_sales_invoice_items", "credit_sales_invoices", "invoice_id", with_warehouse=True)

    # Warehouse
    op.create_table(
        "warehouse_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_number", sa.String(32), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), nullable=False),
        sa.Column("reference_number", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="POSTED"),
        sa.Column("voided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voided_by", sa.String(255), nullable=True),
        sa.Column("void_reason", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_number", name="uq_warehouse_transactions_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("warehouse_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_warehouse_transactions_transaction_type", ["transaction_type"], unique=False)
        batch_op.create_index("ix_warehouse_transactions_warehouse_id", ["warehouse_id"], unique=False)
        batch_op.create_index("ix_whtx_warehouse_date", ["warehouse_id", "transaction_date"], unique=False)

    op.create_table(
        "warehouse_transaction_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["transaction_id"], ["warehouse_transactions.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_id", "product_id", name="uq_whtx_items_transaction_product"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("warehouse_transaction_items", schema=None) as batch_op:
        batch_op.create_index("ix_warehouse_transaction_items_transaction_id", ["transaction_id"], unique=False)
        batch_op.create_index("ix_warehouse_transaction_items_product_id", ["product_id"], unique=False)

    op.create_table(
        "warehouse_stock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("warehouse_id", "product_id", name="uq_warehouse_stock_pair"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("warehouse_stock", schema=None) as batch_op:
        batch_op.create_index("ix_warehouse_stock_warehouse_id", ["warehouse_id"], unique=False)
        batch_op.create_index("ix_warehouse_stock_product_id", ["product_id"], unique=False)

    _order_tables("purchase_orders", "purchase_order_items", "purchase_order_id")
    _order_tables("dispatch_orders", "dispatch_order_items", "dispatch_order_id")

    # Treasury
    op.create_table(
        "treasury_vouchers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("voucher_type", sa.String(32), nullable=False),
        sa.Column("voucher_number", sa.String(32), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("cash_effect", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("counterparty", sa.String(255), nullable=True),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("purpose", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("received_by", sa.String(255), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("bank_name", sa.String(255), nullable=True),
        sa.Column("check_number", sa.String(64), nullable=True),
        sa.Column("check_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("custodian_name", sa.String(255), nullable=True),
        sa.Column("expected_return_date", sa.Date(), nullable=True),
        sa.Column("custody_disbursement_id", sa.Integer(), nullable=True),
        sa.Column("original_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("spent_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("returned_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("expense_category", sa.String(128), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["custody_disbursement_id"], ["treasury_vouchers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("voucher_number", name="uq_treasury_vouchers_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("treasury_vouchers", schema=None) as batch_op:
        batch_op.create_index("ix_treasury_vouchers_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_treasury_vouchers_type_date", ["voucher_type", "date"], unique=False)
        batch_op.create_index(
            "uq_treasury_vouchers_settled_custody",
            ["custody_disbursement_id"],
            unique=True,
            sqlite_where=sa.text("voucher_type = 'CUSTODY_SETTLEMENT'"),
            postgresql_where=sa.text("voucher_type = 'CUSTODY_SETTLEMENT'"),
        )

    op.create_table(
        "treasury_balance",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    for table in (
        "treasury_balance",
        "treasury_vouchers",
        "dispatch_order_items",
        "dispatch_orders",
        "purchase_order_items",
        "purchase_orders",
        "warehouse_stock",
        "warehouse_transaction_items",
        "warehouse_transactions",
        "credit_sales_invoice_items",
        "credit_sales_invoices",
        "cash_sales_invoice_items",
        "cash_sales_invoices",
        "quotation_items",
        "quotations",
        "document_counters",
        "products",
        "customers",
        "employees",
        "warehouses",
        "warehouse_types",
        "units_of_measure",
        "product_categories",
        "customer_types",
        "provinces",
        "countries",
    ):
        op.drop_table(table)
