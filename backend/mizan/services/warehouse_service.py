# Overview: Warehouse transactions and the maintained stock balance they drive.

"""
Warehouse stock invariants (authoritative)

Stock model:
- warehouse_stock holds one maintained quantity per (warehouse, product).
- opening(W, P) is Product.opening_balance when W is the product's
  opening_warehouse_id, zero otherwise.
- quantity(W, P) = opening(W, P) + SUM(incoming) - SUM(outgoing) over the
  POSTED warehouse transactions of that pair. The item card replays the
  same history; reconcile_stock() reports any pair where the two differ.

Posting:
- Header, items and stock deltas are one unit of work. Any failure
  (validation, numbering, lock timeout, negative stock) rolls back all
  three.
- Duplicate product lines in one submission are merged by summing their
  quantities.
- Each delta is applied with UPDATE quantity = quantity + delta; the row
  is inserted with the delta when the pair has no row yet. Balances are
  never read, modified in Python and written back.
- Outgoing movements that leave a balance below zero are rejected unless
  ALLOW_NEGATIVE_STOCK is set.

Voids:
- A POSTED transaction is voided by flipping it to VOIDED and applying the
  reverse deltas in one unit of work. VOIDED rows drop out of the replay,
  so reconcile_stock() stays empty. Quantities are never edited in place;
  a correction is a void plus a new posting.

Dates:
- transaction_date is a business date; the item card orders by date,
  then by creation order (transaction id, item id).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Warehouse, WarehouseStock, WarehouseTransaction, WarehouseTransactionItem
from ..models.inventory import (
    TRANSACTION_INCOMING,
    TRANSACTION_OUTGOING,
    TRANSACTION_POSTED,
    TRANSACTION_TYPES,
    TRANSACTION_VOIDED,
)
from mizan.money import ZERO, as_quantity, round3
from mizan.time_utils import today, to_iso_date, utcnow
from ..validation import NotFoundError, get_or_404, require_date
from .concurrency import lock_for_update, run_unit_of_work, unit_of_work
from .numbering_service import assign_number


class WarehouseError(ValueError):
    """Raised when a warehouse transaction cannot be posted."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def normalize_transaction_type(value) -> str:
    transaction_type = str(value or "").strip().upper()
    if transaction_type not in TRANSACTION_TYPES:
        raise WarehouseError(
            "transaction_type must be INCOMING or OUTGOING",
            details={"valid_types": list(TRANSACTION_TYPES)},
        )
    return transaction_type


def merge_lines(items: list[dict]) -> list[dict]:
    """
    Merge lines for the same product by summing quantities.

    First occurrence wins for unit_price and notes. Order of first
    appearance is kept.
    """
    merged: dict[int, dict] = {}
    for index, item in enumerate(items, start=1):
        quantity = item["quantity"]
        if quantity <= ZERO:
            raise WarehouseError(f"items[{index}].quantity must be > 0")
        existing = merged.get(item["product_id"])
        if existing is None:
            merged[item["product_id"]] = dict(item)
        else:
            existing["quantity"] = existing["quantity"] + quantity
    return list(merged.values())


def opening_balance_for(warehouse_id: int, product: Product) -> Decimal:
    if product.opening_warehouse_id == warehouse_id:
        return product.opening_balance or ZERO
    return ZERO


def _current_quantity(warehouse_id: int, product_id: int) -> Decimal | None:
    quantity = db.session.execute(
        select(WarehouseStock.quantity).where(
            WarehouseStock.warehouse_id == warehouse_id,
            WarehouseStock.product_id == product_id,
        )
    ).scalar_one_or_none()
    return None if quantity is None else round3(quantity)


def apply_stock_delta(warehouse_id: int, product_id: int, delta: Decimal, *, allow_negative: bool = False) -> Decimal:
    """
    Add delta to the stock row of (warehouse, product) inside the current
    transaction and return the new quantity.

    Must run inside a unit of work; the caller commits or rolls back.
    """
    stmt = (
        update(WarehouseStock)
        .where(
            WarehouseStock.warehouse_id == warehouse_id,
            WarehouseStock.product_id == product_id,
        )
        .values(quantity=WarehouseStock.quantity + delta)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(WarehouseStock(warehouse_id=warehouse_id, product_id=product_id, quantity=delta))
        except IntegrityError:
            # Another session created the row first
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    new_quantity = _current_quantity(warehouse_id, product_id)
    if new_quantity < ZERO and not allow_negative:
        raise WarehouseError(
            "Insufficient stock",
            details={
                "warehouse_id": warehouse_id,
                "product_id": product_id,
                "available": as_quantity(new_quantity - delta),
                "requested": as_quantity(-delta),
            },
        )
    return new_quantity


def post_transaction(
    *,
    warehouse_id: int,
    transaction_type: str,
    items: list[dict],
    transaction_date: date | None = None,
    transaction_number: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
    created_by: str | None = None,
) -> WarehouseTransaction:
    """
    Post an incoming or outgoing warehouse transaction.

    items: [{"product_id": int, "quantity": Decimal, "unit_price"?: Decimal, "notes"?: str}]
    Returns the committed transaction.
    """
    transaction_type = normalize_transaction_type(transaction_type)
    transaction_date = require_date(transaction_date, "transaction_date", default=today())
    lines = merge_lines(items)
    if not lines:
        raise WarehouseError("At least one item is required")

    get_or_404(Warehouse, warehouse_id, "Warehouse")
    product_ids = [line["product_id"] for line in lines]
    found = set(db.session.execute(select(Product.id).where(Product.id.in_(product_ids))).scalars())
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise WarehouseError("Unknown products", details={"missing_product_ids": missing})

    allow_negative = bool(current_app.config.get("ALLOW_NEGATIVE_STOCK", False))
    sign = 1 if transaction_type == TRANSACTION_INCOMING else -1

    def _op() -> WarehouseTransaction:
        with unit_of_work():
            number = assign_number(
                "warehouse_transaction",
                transaction_number,
                model=WarehouseTransaction,
                column=WarehouseTransaction.transaction_number,
            )
            tx = WarehouseTransaction(
                transaction_number=number,
                transaction_type=transaction_type,
                transaction_date=transaction_date,
                warehouse_id=warehouse_id,
                reference_number=reference_number,
                notes=notes,
                created_by=created_by,
                status=TRANSACTION_POSTED,
            )
            for line in lines:
                tx.items.append(
                    WarehouseTransactionItem(
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        unit_price=line.get("unit_price"),
                        notes=line.get("notes"),
                    )
                )
            db.session.add(tx)
            db.session.flush()

            for line in lines:
                apply_stock_delta(
                    warehouse_id,
                    line["product_id"],
                    sign * line["quantity"],
                    allow_negative=allow_negative,
                )
        return tx

    return run_unit_of_work(_op)


def void_transaction(transaction_id: int, *, reason: str, voided_by: str | None = None) -> WarehouseTransaction:
    """
    Void a posted transaction and reverse its stock effect.

    The status change and the compensating deltas are one unit of work, so
    the maintained balance keeps matching the replay of POSTED history.
    Voiding an incoming transaction whose stock has since gone out is
    rejected like any other overdraw.
    """
    reason = (reason or "").strip()
    if not reason:
        raise WarehouseError("reason is required")
    allow_negative = bool(current_app.config.get("ALLOW_NEGATIVE_STOCK", False))

    def _op() -> WarehouseTransaction:
        with unit_of_work():
            tx = lock_for_update(
                db.session.query(WarehouseTransaction).filter_by(id=transaction_id)
            ).one_or_none()
            if tx is None:
                raise NotFoundError(f"Warehouse transaction {transaction_id} not found")
            if tx.status != TRANSACTION_POSTED:
                raise WarehouseError(f"Transaction {tx.transaction_number} is already {tx.status}")

            # Only one void may win the status change
            claimed = db.session.execute(
                update(WarehouseTransaction)
                .where(WarehouseTransaction.id == tx.id, WarehouseTransaction.status == TRANSACTION_POSTED)
                .values(status=TRANSACTION_VOIDED, voided_at=utcnow(), voided_by=voided_by, void_reason=reason)
            )
            if not claimed.rowcount:
                raise WarehouseError(f"Transaction {tx.transaction_number} is already voided")

            sign = -1 if tx.transaction_type == TRANSACTION_INCOMING else 1
            for item in tx.items:
                apply_stock_delta(
                    tx.warehouse_id,
                    item.product_id,
                    sign * item.quantity,
                    allow_negative=allow_negative,
                )
        return tx

    return run_unit_of_work(_op)


def get_transaction(transaction_id: int) -> WarehouseTransaction:
    return get_or_404(WarehouseTransaction, transaction_id, "Warehouse transaction")


def update_transaction_details(transaction_id: int, *, patch: dict) -> WarehouseTransaction:
    """Edit reference_number / notes. Lines and quantities change only through a void."""
    editable = {"reference_number", "notes"}
    rejected = sorted(set(patch) - editable)
    if rejected:
        raise WarehouseError(
            f"Fields cannot be changed: {', '.join(rejected)}",
            details={"editable_fields": sorted(editable)},
        )

    def _op() -> WarehouseTransaction:
        with unit_of_work():
            tx = get_transaction(transaction_id)
            if tx.status != TRANSACTION_POSTED:
                raise WarehouseError(f"Transaction {tx.transaction_number} is {tx.status} and cannot be edited")
            for key, value in patch.items():
                setattr(tx, key, value)
            db.session.flush()
        return tx

    return run_unit_of_work(_op)


def list_transactions(
    *,
    warehouse_id: int | None = None,
    transaction_type: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[WarehouseTransaction]:
    query = db.session.query(WarehouseTransaction)
    if warehouse_id is not None:
        query = query.filter(WarehouseTransaction.warehouse_id == warehouse_id)
    if transaction_type:
        query = query.filter(WarehouseTransaction.transaction_type == normalize_transaction_type(transaction_type))
    if date_from is not None:
        query = query.filter(WarehouseTransaction.transaction_date >= date_from)
    if date_to is not None:
        query = query.filter(WarehouseTransaction.transaction_date <= date_to)
    return (
        query.order_by(WarehouseTransaction.transaction_date.desc(), WarehouseTransaction.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def get_stock(*, warehouse_id: int | None = None, product_id: int | None = None) -> list[WarehouseStock]:
    query = db.session.query(WarehouseStock)
    if warehouse_id is not None:
        query = query.filter(WarehouseStock.warehouse_id == warehouse_id)
    if product_id is not None:
        query = query.filter(WarehouseStock.product_id == product_id)
    return query.order_by(WarehouseStock.warehouse_id, WarehouseStock.product_id).all()


def get_quantity(warehouse_id: int, product_id: int) -> Decimal:
    quantity = _current_quantity(warehouse_id, product_id)
    return ZERO if quantity is None else quantity


def item_card(
    warehouse_id: int,
    product_id: int,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    """
    Replay the movements of one product in one warehouse.

    Rows are ordered by transaction date, then creation order. Movements
    before date_from are folded into the opening balance; movements after
    date_to are ignored.
    """
    warehouse = get_or_404(Warehouse, warehouse_id, "Warehouse")
    product = get_or_404(Product, product_id, "Product")

    query = (
        db.session.query(WarehouseTransactionItem, WarehouseTransaction)
        .join(WarehouseTransaction, WarehouseTransactionItem.transaction_id == WarehouseTransaction.id)
        .filter(
            WarehouseTransaction.warehouse_id == warehouse_id,
            WarehouseTransactionItem.product_id == product_id,
            WarehouseTransaction.status == TRANSACTION_POSTED,
        )
    )
    if date_to is not None:
        query = query.filter(WarehouseTransaction.transaction_date <= date_to)
    rows = query.order_by(
        WarehouseTransaction.transaction_date,
        WarehouseTransaction.id,
        WarehouseTransactionItem.id,
    ).all()

    opening = round3(opening_balance_for(warehouse_id, product))
    balance = opening
    total_incoming = ZERO
    total_outgoing = ZERO
    entries = []

    for item, tx in rows:
        quantity = round3(item.quantity)
        incoming = quantity if tx.transaction_type == TRANSACTION_INCOMING else ZERO
        outgoing = quantity if tx.transaction_type == TRANSACTION_OUTGOING else ZERO
        balance = balance + incoming - outgoing

        if date_from is not None and tx.transaction_date < date_from:
            opening = balance
            continue

        total_incoming += incoming
        total_outgoing += outgoing
        entries.append({
            "serial": len(entries) + 1,
            "transaction_id": tx.id,
            "transaction_number": tx.transaction_number,
            "transaction_date": to_iso_date(tx.transaction_date),
            "transaction_type": tx.transaction_type,
            "reference_number": tx.reference_number,
            "incoming": as_quantity(incoming),
            "outgoing": as_quantity(outgoing),
            "balance": as_quantity(balance),
            "notes": item.notes or tx.notes,
        })

    return {
        "warehouse": warehouse.to_dict(),
        "product": {"id": product.id, "product_code": product.product_code, "name": product.name},
        "date_from": to_iso_date(date_from),
        "date_to": to_iso_date(date_to),
        "entries": entries,
        "summary": {
            "opening_balance": as_quantity(opening),
            "total_incoming": as_quantity(total_incoming),
            "total_outgoing": as_quantity(total_outgoing),
            "balance": as_quantity(balance),
        },
    }


def replayed_balances() -> dict[tuple[int, int], Decimal]:
    """opening + incoming - outgoing for every (warehouse, product) with any history."""
    balances: dict[tuple[int, int], Decimal] = {}

    openings = db.session.execute(
        select(Product.opening_warehouse_id, Product.id, Product.opening_balance).where(
            Product.opening_warehouse_id.is_not(None)
        )
    ).all()
    for warehouse_id, product_id, opening in openings:
        balances[(warehouse_id, product_id)] = round3(opening or ZERO)

    movements = db.session.execute(
        select(
            WarehouseTransaction.warehouse_id,
            WarehouseTransactionItem.product_id,
            WarehouseTransaction.transaction_type,
            WarehouseTransactionItem.quantity,
        )
        .join(WarehouseTransaction, WarehouseTransactionItem.transaction_id == WarehouseTransaction.id)
        .where(WarehouseTransaction.status == TRANSACTION_POSTED)
    ).all()
    for warehouse_id, product_id, transaction_type, quantity in movements:
        key = (warehouse_id, product_id)
        delta = round3(quantity) if transaction_type == TRANSACTION_INCOMING else -round3(quantity)
        balances[key] = balances.get(key, ZERO) + delta

    return balances


def reconcile_stock() -> list[dict]:
    """
    Compare every maintained stock row with the replayed history.

    Returns the diverging pairs; an empty list means the balances agree.
    """
    maintained = {
        (row.warehouse_id, row.product_id): round3(row.quantity)
        for row in db.session.query(WarehouseStock).all()
    }
    replayed = replayed_balances()

    divergences = []
    for key in sorted(set(maintained) | set(replayed)):
        have = maintained.get(key, ZERO)
        want = replayed.get(key, ZERO)
        if have != want:
            divergences.append({
                "warehouse_id": key[0],
                "product_id": key[1],
                "maintained": as_quantity(have),
                "replayed": as_quantity(want),
                "difference": as_quantity(have - want),
            })
    return divergences


def products_stock_report(*, warehouse_id: int | None = None) -> list[dict]:
    """
    Current stock per product, summed over warehouses (or for one).

    below_reorder is set when quantity <= reorder_level (a missing reorder
    level counts as 0).
    """
    if warehouse_id is not None:
        get_or_404(Warehouse, warehouse_id, "Warehouse")

    stock_query = select(WarehouseStock.product_id, func.sum(WarehouseStock.quantity)).group_by(
        WarehouseStock.product_id
    )
    if warehouse_id is not None:
        stock_query = stock_query.where(WarehouseStock.warehouse_id == warehouse_id)
    quantities = {
        product_id: round3(Decimal(str(total or 0)))
        for product_id, total in db.session.execute(stock_query).all()
    }

    report = []
    for product in db.session.query(Product).order_by(Product.product_code).all():
        quantity = quantities.get(product.id, ZERO)
        reorder_level = round3(product.reorder_level or ZERO)
        report.append({
            "product_id": product.id,
            "product_code": product.product_code,
            "name": product.name,
            "quantity": as_quantity(quantity),
            "reorder_level": as_quantity(reorder_level),
            "below_reorder": quantity <= reorder_level,
            "shortage": as_quantity(max(ZERO, reorder_level - quantity)),
        })
    return report


def seed_opening_stock(product: Product) -> None:
    """Create the opening warehouse's stock row for a new product (inside the caller's transaction)."""
    if product.opening_warehouse_id is None or not product.opening_balance:
        return
    apply_stock_delta(product.opening_warehouse_id, product.id, product.opening_balance, allow_negative=True)
