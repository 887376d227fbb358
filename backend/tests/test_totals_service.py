from decimal import Decimal

import pytest

from mizan.services.totals_service import (
    LineInput,
    compute_document_totals,
    compute_line,
    count_pieces,
    line_total,
    require_full_payment,
)
from mizan.validation import ValidationError


def test_line_total_applies_line_discount():
    assert line_total(3, "10.00", 10) == Decimal("27.00")


def test_single_line_document_without_discount():
    totals = compute_document_totals(
        [{"quantity": 3, "unit_price": "10.00", "discount_percentage": 10}],
        discount_percentage=0,
    )
    assert totals.subtotal == Decimal("27.00")
    assert totals.discount_amount == Decimal("0.00")
    assert totals.total_amount == Decimal("27.00")
    assert totals.to_dict()["total_amount"] == "27.00"
    assert totals.to_dict()["lines"][0]["total_price"] == "27.00"


def test_line_total_rounds_half_up_to_cents():
    assert line_total(1, "0.125") == Decimal("0.13")
    assert line_total(1, "0.124") == Decimal("0.12")


def test_float_inputs_do_not_drift():
    assert line_total(3, 0.1) == Decimal("0.30")


def test_document_discount_applies_after_line_discounts():
    totals = compute_document_totals(
        [
            LineInput(Decimal("2"), Decimal("50.00")),
            LineInput(Decimal("1"), Decimal("20.00"), Decimal("50")),
        ],
        discount_percentage=Decimal("10"),
        tax_amount=Decimal("5.00"),
    )
    assert [line.total_price for line in totals.lines] == [Decimal("100.00"), Decimal("10.00")]
    assert totals.subtotal == Decimal("110.00")
    assert totals.discount_amount == Decimal("11.00")
    assert totals.total_amount == Decimal("104.00")


def test_empty_document_totals_to_zero():
    totals = compute_document_totals([])
    assert totals.lines == ()
    assert totals.subtotal == Decimal("0")
    assert totals.total_amount == Decimal("0")


def test_full_discount_yields_zero_line():
    assert line_total(4, "12.50", 100) == Decimal("0.00")


@pytest.mark.parametrize(
    "line",
    [
        {"quantity": -1, "unit_price": "10"},
        {"quantity": 1, "unit_price": "-10"},
        {"quantity": 1, "unit_price": "10", "discount_percentage": 101},
        {"quantity": 1, "unit_price": "10", "discount_percentage": -5},
        {"quantity": "abc", "unit_price": "10"},
    ],
)
def test_invalid_line_inputs_are_rejected(line):
    with pytest.raises(ValidationError):
        compute_line(line)


def test_invalid_document_discount_and_tax_are_rejected():
    lines = [{"quantity": 1, "unit_price": "10"}]
    with pytest.raises(ValidationError):
        compute_document_totals(lines, discount_percentage=150)
    with pytest.raises(ValidationError):
        compute_document_totals(lines, tax_amount=-1)


def test_change_is_payment_minus_total():
    totals = compute_document_totals(
        [{"quantity": 3, "unit_price": "10.00", "discount_percentage": 10}],
        payment_amount="30",
    )
    assert totals.payment_amount == Decimal("30.00")
    assert totals.change_amount == Decimal("3.00")
    require_full_payment(totals)


def test_underpayment_is_rejected_not_clamped():
    totals = compute_document_totals(
        [{"quantity": 3, "unit_price": "10.00", "discount_percentage": 10}],
        payment_amount="20",
    )
    assert totals.change_amount == Decimal("0")
    with pytest.raises(ValidationError, match="less than"):
        require_full_payment(totals)


def test_missing_payment_is_rejected():
    totals = compute_document_totals([{"quantity": 1, "unit_price": "5"}])
    with pytest.raises(ValidationError, match="payment_amount is required"):
        require_full_payment(totals)


def test_count_pieces():
    assert count_pieces([{"quantity": Decimal("2")}, {"quantity": Decimal("3.5")}]) == (2, Decimal("5.5"))


LINES = [
    {"quantity": 3, "unit_price": "10.00", "discount_percentage": 10},
    {"quantity": "2.5", "unit_price": "4.35", "discount_percentage": "12.5"},
    {"quantity": 7, "unit_price": "0.99", "discount_percentage": 0},
    {"quantity": 1, "unit_price": "199.95", "discount_percentage": "33.33"},
]


def test_subtotal_does_not_depend_on_line_order():
    forward = compute_document_totals(LINES, discount_percentage="7.5", tax_amount="3.10")
    backward = compute_document_totals(list(reversed(LINES)), discount_percentage="7.5", tax_amount="3.10")
    shuffled = compute_document_totals(
        [LINES[2], LINES[0], LINES[3], LINES[1]], discount_percentage="7.5", tax_amount="3.10"
    )

    assert forward.subtotal == backward.subtotal == shuffled.subtotal
    assert forward.total_amount == backward.total_amount == shuffled.total_amount
    assert sorted(line.total_price for line in forward.lines) == sorted(
        line.total_price for line in shuffled.lines
    )


def test_recomputing_gives_identical_results():
    first = compute_document_totals(LINES, discount_percentage="7.5", tax_amount="3.10", payment_amount="500")
    second = compute_document_totals(LINES, discount_percentage="7.5", tax_amount="3.10", payment_amount="500")

    assert first == second
    assert first.to_dict() == second.to_dict()
