# Overview: Line and document totals shared by every priced document.

"""
Document totals

Every priced document (quotation, cash invoice, credit invoice) and the
preview endpoint go through compute_document_totals(); no caller derives
the formula itself.

FORMULAS (Decimal, half-up to cents):
- line total      = round2(quantity * unit_price * (1 - line_discount/100))
- subtotal        = SUM(line totals)
- discount_amount = round2(subtotal * document_discount/100)
  (document discount is applied after, and independently of, line discounts)
- total_amount    = subtotal - discount_amount + tax_amount
- change_amount   = max(0, payment_amount - total_amount)   (cash sales)

INPUT RULES:
- quantity >= 0, unit_price >= 0, tax_amount >= 0, payment_amount >= 0
- discount percentages in [0, 100]
Violations raise ValidationError; nothing is clamped.

All functions are pure: same inputs, same outputs, no database access.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from mizan.money import HUNDRED, ZERO, as_amount, as_quantity, round2, to_decimal
from ..validation import ValidationError


@dataclass(frozen=True)
class LineInput:
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal = ZERO


@dataclass(frozen=True)
class LineTotal:
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    total_price: Decimal

    def to_dict(self) -> dict:
        return {
            "quantity": as_quantity(self.quantity),
            "unit_price": as_amount(self.unit_price),
            "discount_percentage": as_amount(self.discount_percentage),
            "total_price": as_amount(self.total_price),
        }


@dataclass(frozen=True)
class DocumentTotals:
    lines: tuple[LineTotal, ...]
    subtotal: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    payment_amount: Decimal | None = None
    change_amount: Decimal | None = None

    def to_dict(self) -> dict:
        data = {
            "lines": [line.to_dict() for line in self.lines],
            "subtotal": as_amount(self.subtotal),
            "discount_percentage": as_amount(self.discount_percentage),
            "discount_amount": as_amount(self.discount_amount),
            "tax_amount": as_amount(self.tax_amount),
            "total_amount": as_amount(self.total_amount),
        }
        if self.payment_amount is not None:
            data["payment_amount"] = as_amount(self.payment_amount)
            data["change_amount"] = as_amount(self.change_amount)
        return data


def _number(value, field: str) -> Decimal:
    try:
        return to_decimal(value, field=field)
    except ValueError as e:
        raise ValidationError(str(e))


def _non_negative(value, field: str) -> Decimal:
    number = _number(value, field)
    if number < ZERO:
        raise ValidationError(f"{field} must be >= 0")
    return number


def _percentage(value, field: str) -> Decimal:
    number = _number(ZERO if value is None else value, field)
    if number < ZERO or number > HUNDRED:
        raise ValidationError(f"{field} must be between 0 and 100")
    return number


def line_total(quantity, unit_price, discount_percentage=ZERO) -> Decimal:
    """round2(quantity * unit_price * (1 - discount_percentage/100))"""
    return compute_line(LineInput(quantity, unit_price, discount_percentage)).total_price


def _as_line_input(line) -> LineInput:
    if isinstance(line, LineInput):
        return line
    if isinstance(line, dict):
        return LineInput(
            quantity=line.get("quantity"),
            unit_price=line.get("unit_price"),
            discount_percentage=line.get("discount_percentage", ZERO),
        )
    return LineInput(
        quantity=line.quantity,
        unit_price=line.unit_price,
        discount_percentage=getattr(line, "discount_percentage", ZERO),
    )


def compute_line(line) -> LineTotal:
    line = _as_line_input(line)
    q = _non_negative(line.quantity, "quantity")
    p = _non_negative(line.unit_price, "unit_price")
    d = _percentage(line.discount_percentage, "discount_percentage")
    return LineTotal(
        quantity=q,
        unit_price=p,
        discount_percentage=d,
        total_price=round2(q * p * (HUNDRED - d) / HUNDRED),
    )


def compute_document_totals(
    lines: Iterable,
    *,
    discount_percentage=ZERO,
    tax_amount=ZERO,
    payment_amount=None,
) -> DocumentTotals:
    """
    Compute line totals and document totals in one pass.

    lines may hold LineInput objects, dicts or any object with quantity /
    unit_price / discount_percentage attributes (e.g. ORM item rows).
    An empty list yields zero totals.
    """
    computed = tuple(compute_line(line) for line in lines)

    subtotal = sum((line.total_price for line in computed), ZERO)
    doc_discount = _percentage(discount_percentage, "discount_percentage")
    discount_amount = round2(subtotal * doc_discount / HUNDRED)
    tax = _non_negative(ZERO if tax_amount is None else tax_amount, "tax_amount")
    total_amount = round2(subtotal - discount_amount + tax)

    payment = None
    change = None
    if payment_amount is not None:
        payment = _non_negative(payment_amount, "payment_amount")
        change = max(ZERO, round2(payment - total_amount))

    return DocumentTotals(
        lines=computed,
        subtotal=round2(subtotal),
        discount_percentage=doc_discount,
        discount_amount=discount_amount,
        tax_amount=round2(tax),
        total_amount=total_amount,
        payment_amount=round2(payment) if payment is not None else None,
        change_amount=change,
    )


def require_full_payment(totals: DocumentTotals) -> None:
    """Cash sales: payment must cover the total. Never clamps."""
    if totals.payment_amount is None:
        raise ValidationError("payment_amount is required")
    if totals.payment_amount < totals.total_amount:
        raise ValidationError(
            f"payment_amount {as_amount(totals.payment_amount)} is less than "
            f"total_amount {as_amount(totals.total_amount)}"
        )


def count_pieces(lines: Sequence) -> tuple[int, Decimal]:
    """(total_items, total_pieces) for unpriced orders."""
    total_pieces = ZERO
    for line in lines:
        quantity = line["quantity"] if isinstance(line, dict) else line.quantity
        total_pieces += _non_negative(quantity, "quantity")
    return len(lines), total_pieces
