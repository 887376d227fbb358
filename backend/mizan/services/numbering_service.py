# Overview: Per-prefix document counters; the only source of document numbers.

"""
Document numbering

Every document number is {prefix}{zero-padded sequence}, issued by the
counter row for that prefix. Prefixes are never shared between document
types; products pick one of several prefixes, each with its own counter.

ATOMICITY:
The counter is advanced with a single UPDATE current_code = current_code + 1
and read back inside the same transaction. The row stays write-locked
until that transaction ends, so two sessions can never read the same
value. When a document is created, the number is issued inside the
document's own unit of work: if the document is rolled back, so is the
counter.

FAILURE:
If the counter cannot be advanced (lock timeout, deadlock) after the
bounded retries, NumberingUnavailableError is raised. There is no
fallback source (clock, random, client) for a number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentCounter
from ..validation import ConflictError
from .concurrency import ResourceBusyError, run_unit_of_work, unit_of_work


class NumberingError(ValueError):
    """Raised for unknown document types, bad prefixes or malformed numbers."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NumberingUnavailableError(ResourceBusyError):
    """The counter could not be advanced. Retryable; never worked around."""


@dataclass(frozen=True)
class NumberingScheme:
    document_type: str
    prefixes: tuple[str, ...]
    pad: int = 6

    @property
    def default_prefix(self) -> str:
        return self.prefixes[0]


PRODUCT_PREFIXES = {
    "P": "General item",
    "M": "Raw material",
    "R": "Consumable",
    "F": "Finished good",
    "S": "Spare part",
}

SCHEMES: dict[str, NumberingScheme] = {
    scheme.document_type: scheme
    for scheme in (
        NumberingScheme("customer", ("C",), pad=5),
        NumberingScheme("product", tuple(PRODUCT_PREFIXES), pad=5),
        NumberingScheme("cash_invoice", ("CSH",)),
        NumberingScheme("credit_invoice", ("CRD",)),
        NumberingScheme("quotation", ("QT",)),
        NumberingScheme("purchase_order", ("PO",)),
        NumberingScheme("dispatch_order", ("DO",)),
        NumberingScheme("warehouse_transaction", ("WT",)),
        NumberingScheme("cash_receipt", ("CR",)),
        NumberingScheme("cash_disbursement", ("CD",)),
        NumberingScheme("check_receipt", ("CHR",)),
        NumberingScheme("check_disbursement", ("CHD",)),
        NumberingScheme("custody_disbursement", ("CUS",)),
        NumberingScheme("custody_settlement", ("CS",)),
        NumberingScheme("expense", ("EXP",)),
    )
}

# Barcodes are EAN-13: "2" (in-store range) + 11-digit sequence + check digit
BARCODE_COUNTER = "BARCODE"
BARCODE_LEADING_DIGIT = "2"
BARCODE_SEQUENCE_DIGITS = 11


def _check_unique_prefixes() -> None:
    seen: dict[str, str] = {}
    for scheme in SCHEMES.values():
        for prefix in scheme.prefixes:
            if prefix in seen or prefix == BARCODE_COUNTER:
                raise RuntimeError(f"prefix {prefix!r} is shared by {seen.get(prefix)} and {scheme.document_type}")
            seen[prefix] = scheme.document_type


_check_unique_prefixes()


def get_scheme(document_type: str) -> NumberingScheme:
    scheme = SCHEMES.get(document_type)
    if scheme is None:
        raise NumberingError(
            f"Unknown document type: {document_type}",
            details={"valid_types": sorted(SCHEMES)},
        )
    return scheme


def resolve_prefix(document_type: str, prefix: str | None = None) -> tuple[NumberingScheme, str]:
    scheme = get_scheme(document_type)
    if prefix is None:
        return scheme, scheme.default_prefix
    prefix = prefix.strip().upper()
    if prefix not in scheme.prefixes:
        raise NumberingError(
            f"Invalid prefix {prefix!r} for {document_type}",
            details={"valid_prefixes": list(scheme.prefixes)},
        )
    return scheme, prefix


def format_number(prefix: str, sequence: int, pad: int) -> str:
    return f"{prefix}{sequence:0{pad}d}"


def _advance_counter(prefix: str, document_type: str) -> int:
    """
    Increment-and-read the counter row inside the current transaction.

    Creates the row at 1 on first use. If another session creates it
    first, the insert fails on the unique prefix and the UPDATE path is
    taken instead.
    """
    stmt = (
        update(DocumentCounter)
        .where(DocumentCounter.prefix == prefix)
        .values(current_code=DocumentCounter.current_code + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        counter = DocumentCounter(prefix=prefix, document_type=document_type, current_code=1)
        try:
            with db.session.begin_nested():
                db.session.add(counter)
            return 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    return db.session.execute(
        select(DocumentCounter.current_code).where(DocumentCounter.prefix == prefix)
    ).scalar_one()


def issue_number(document_type: str, prefix: str | None = None) -> str:
    """
    Issue the next number inside the caller's transaction (no commit).

    Use from within a unit of work that also writes the document.
    """
    scheme, prefix = resolve_prefix(document_type, prefix)
    sequence = _advance_counter(prefix, scheme.document_type)
    return format_number(prefix, sequence, scheme.pad)


def _run_counter_op(func):
    try:
        return run_unit_of_work(func)
    except ResourceBusyError as exc:
        raise NumberingUnavailableError("Document numbering is temporarily unavailable; please retry") from exc


def next_number(document_type: str, prefix: str | None = None) -> str:
    """
    Reserve and commit the next number for a document type.

    Used when a form asks for its number up front. The number is burnt
    even if the form is never submitted.
    """
    def _op() -> str:
        with unit_of_work():
            return issue_number(document_type, prefix)

    return _run_counter_op(_op)


def _ean13_check_digit(digits12: str) -> str:
    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(digits12))
    return str((10 - total % 10) % 10)


def issue_barcode() -> str:
    """EAN-13 barcode from the BARCODE counter (inside the caller's transaction)."""
    sequence = _advance_counter(BARCODE_COUNTER, "barcode")
    body = f"{BARCODE_LEADING_DIGIT}{sequence:0{BARCODE_SEQUENCE_DIGITS}d}"
    return body + _ean13_check_digit(body)


def next_barcode() -> str:
    def _op() -> str:
        with unit_of_work():
            return issue_barcode()

    return _run_counter_op(_op)


def is_valid_barcode(value: str) -> bool:
    return bool(re.fullmatch(r"\d{13}", value or "")) and _ean13_check_digit(value[:12]) == value[12]


def parse_number(document_type: str, number: str) -> tuple[str, int]:
    """Split a document number into (prefix, sequence); raises NumberingError."""
    scheme = get_scheme(document_type)
    number = (number or "").strip().upper()
    # Longest prefix first so "CHR" is not read as "C" + "HR..."
    for prefix in sorted(scheme.prefixes, key=len, reverse=True):
        match = re.fullmatch(rf"{re.escape(prefix)}(\d{{{scheme.pad},}})", number)
        if match:
            return prefix, int(match.group(1))
    raise NumberingError(
        f"Malformed {document_type} number: {number!r}",
        details={"expected_format": f"{scheme.default_prefix}{'0' * scheme.pad}"},
    )


def validate_reserved_number(document_type: str, number: str, *, model, column) -> str:
    """
    Accept a number reserved earlier with next_number().

    It must match the scheme, must not be beyond what the counter has
    issued, and must not already be used by a document.
    """
    prefix, sequence = parse_number(document_type, number)
    scheme = get_scheme(document_type)
    canonical = format_number(prefix, sequence, scheme.pad)

    issued = db.session.execute(
        select(DocumentCounter.current_code).where(DocumentCounter.prefix == prefix)
    ).scalar_one_or_none()
    if issued is None or sequence < 1 or sequence > issued:
        raise NumberingError(
            f"{canonical} was not issued by the {prefix} counter",
            details={"last_issued": issued or 0},
        )

    exists = db.session.execute(select(model.id).where(column == canonical)).first()
    if exists:
        raise ConflictError(f"{canonical} is already used")
    return canonical


def assign_number(document_type: str, requested: str | None, *, model, column, prefix: str | None = None) -> str:
    """Number for a new document: validate the reserved one, or issue a fresh one."""
    if requested:
        return validate_reserved_number(document_type, requested, model=model, column=column)
    return issue_number(document_type, prefix)


def list_counters() -> list[DocumentCounter]:
    return db.session.query(DocumentCounter).order_by(DocumentCounter.document_type, DocumentCounter.prefix).all()


def seed_counters() -> int:
    """Create a zero counter row for every known prefix. Idempotent."""
    existing = {prefix for (prefix,) in db.session.query(DocumentCounter.prefix).all()}
    created = 0
    for scheme in SCHEMES.values():
        for prefix in scheme.prefixes:
            if prefix not in existing:
                db.session.add(DocumentCounter(prefix=prefix, document_type=scheme.document_type, current_code=0))
                created += 1
    if BARCODE_COUNTER not in existing:
        db.session.add(DocumentCounter(prefix=BARCODE_COUNTER, document_type="barcode", current_code=0))
        created += 1
    db.session.flush()
    return created
