from decimal import Decimal

from sqlalchemy import update

from mizan.extensions import db
from mizan.models import DocumentCounter, TreasuryBalance, UnitOfMeasure, WarehouseStock
from mizan.services import numbering_service
from mizan.services.warehouse_service import post_transaction


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init", "--country", "Egypt"])
    assert first.exit_code == 0, first.output
    assert "DONE Mizan initialized" in first.output
    counters = db_session.query(DocumentCounter).count()
    units = db_session.query(UnitOfMeasure).count()
    assert counters == sum(len(s.prefixes) for s in numbering_service.SCHEMES.values()) + 1
    assert db_session.get(TreasuryBalance, 1) is not None

    second = runner.invoke(args=["system", "init", "--country", "Egypt"])
    assert second.exit_code == 0, second.output
    assert "PASS Counters: 0 created" in second.output
    assert "PASS Lookups: 0 created" in second.output
    assert db_session.query(DocumentCounter).count() == counters
    assert db_session.query(UnitOfMeasure).count() == units


def test_numbers_next_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["numbers", "next", "quotation"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "QT000001"

    result = runner.invoke(args=["numbers", "next", "product", "--prefix", "F"])
    assert result.output.strip() == "F00001"

    result = runner.invoke(args=["numbers", "next", "receipt"])
    assert result.exit_code != 0

    listing = runner.invoke(args=["numbers", "list"]).output
    assert "QT" in listing
    assert "F" in listing


def test_stock_reconcile_exit_codes(app, warehouse, stocked_product):
    runner = app.test_cli_runner()
    post_transaction(
        warehouse_id=warehouse.id,
        transaction_type="OUTGOING",
        items=[{"product_id": stocked_product.id, "quantity": Decimal("30")}],
    )

    result = runner.invoke(args=["stock", "reconcile"])
    assert result.exit_code == 0, result.output
    assert "PASS" in result.output

    # Maintained balance edited behind the ledger's back
    db.session.execute(
        update(WarehouseStock)
        .where(WarehouseStock.product_id == stocked_product.id)
        .values(quantity=Decimal("75"))
    )
    db.session.commit()

    result = runner.invoke(args=["stock", "reconcile"])
    assert result.exit_code == 1
    assert "FAIL 1 diverging" in result.output
    assert "maintained=75 replayed=70" in result.output
