import pytest
from sqlalchemy.exc import OperationalError

from mizan.models import DocumentCounter, Quotation
from mizan.services import numbering_service, sales_service
from mizan.services.concurrency import unit_of_work
from mizan.services.numbering_service import (
    NumberingError,
    NumberingUnavailableError,
    is_valid_barcode,
    issue_number,
    next_barcode,
    next_number,
    parse_number,
    validate_reserved_number,
)
from mizan.validation import ConflictError


def test_numbers_are_sequential_per_prefix(db_session):
    assert next_number("quotation") == "QT000001"
    assert next_number("quotation") == "QT000002"
    assert next_number("cash_invoice") == "CSH000001"
    assert next_number("customer") == "C00001"


def test_product_prefixes_have_independent_counters(db_session):
    assert next_number("product", "M") == "M00001"
    assert next_number("product", "m") == "M00002"
    assert next_number("product") == "P00001"
    assert next_number("product", "F") == "F00001"


def test_unknown_type_and_bad_prefix_are_rejected(db_session):
    with pytest.raises(NumberingError) as exc:
        next_number("invoice")
    assert "quotation" in exc.value.details["valid_types"]

    with pytest.raises(NumberingError):
        next_number("product", "X")
    with pytest.raises(NumberingError):
        next_number("quotation", "P")


def test_rolled_back_document_does_not_consume_a_number(db_session):
    with pytest.raises(RuntimeError):
        with unit_of_work():
            assert issue_number("quotation") == "QT000001"
            raise RuntimeError("document failed")

    assert next_number("quotation") == "QT000001"


def test_counter_failure_is_retryable_and_has_no_fallback(db_session, monkeypatch):
    def locked(prefix, document_type):
        raise OperationalError("UPDATE document_counters", {}, Exception("database is locked"))

    monkeypatch.setattr(numbering_service, "_advance_counter", locked)

    with pytest.raises(NumberingUnavailableError):
        next_number("quotation")

    monkeypatch.undo()
    assert next_number("quotation") == "QT000001"


def test_barcodes_are_valid_ean13_and_unique(db_session):
    first = next_barcode()
    second = next_barcode()
    assert first == "2000000000015"
    assert first != second
    assert is_valid_barcode(first)
    assert is_valid_barcode(second)


def test_is_valid_barcode():
    assert is_valid_barcode("4006381333931")
    assert not is_valid_barcode("4006381333932")
    assert not is_valid_barcode("400638133393")
    assert not is_valid_barcode("")


def test_parse_number_prefers_longest_prefix():
    assert parse_number("cash_receipt", "CR000012") == ("CR", 12)
    assert parse_number("check_receipt", "chr000003") == ("CHR", 3)
    assert parse_number("product", "S00042") == ("S", 42)
    with pytest.raises(NumberingError):
        parse_number("cash_receipt", "CR12")
    with pytest.raises(NumberingError):
        parse_number("cash_receipt", "CD000001")


def test_reserved_number_must_have_been_issued(db_session):
    reserved = next_number("quotation")
    assert validate_reserved_number(
        "quotation", reserved, model=Quotation, column=Quotation.quotation_number
    ) == reserved

    with pytest.raises(NumberingError) as exc:
        validate_reserved_number("quotation", "QT000009", model=Quotation, column=Quotation.quotation_number)
    assert exc.value.details["last_issued"] == 1


def test_reserved_number_cannot_be_used_twice(db_session, customer, product):
    reserved = next_number("quotation")
    sales_service.create_quotation(
        patch={"quotation_number": reserved, "customer_id": customer.id},
        items=[{"product_id": product.id, "quantity": 1, "unit_price": 5}],
    )
    with pytest.raises(ConflictError):
        validate_reserved_number("quotation", reserved, model=Quotation, column=Quotation.quotation_number)


def test_seed_counters_is_idempotent(db_session):
    expected = sum(len(s.prefixes) for s in numbering_service.SCHEMES.values()) + 1
    assert numbering_service.seed_counters() == expected
    db_session.commit()
    assert numbering_service.seed_counters() == 0
    db_session.commit()

    barcode = db_session.query(DocumentCounter).filter_by(prefix="BARCODE").one()
    assert barcode.current_code == 0
    assert next_number("expense") == "EXP000001"


def test_prefixes_are_not_shared():
    prefixes = [p for s in numbering_service.SCHEMES.values() for p in s.prefixes]
    assert len(prefixes) == len(set(prefixes))
