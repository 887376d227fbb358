"""
Pytest fixtures for Mizan backend tests.

Provides the application on an in-memory database, a per-test clean
schema and a few master data rows most tests need.
"""

from decimal import Decimal

import pytest

from mizan import create_app
from mizan.extensions import db
from mizan.services import reference_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ALLOW_NEGATIVE_STOCK': False,
        'DB_RETRY_ATTEMPTS': 3,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before the test, keep the schema."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def warehouse(db_session):
    return reference_service.create_warehouse(patch={"name": "Main Store", "location": "Ground floor"})


@pytest.fixture(scope='function')
def second_warehouse(db_session):
    return reference_service.create_warehouse(patch={"name": "Annex"})


@pytest.fixture(scope='function')
def product(db_session):
    """Product without opening stock."""
    return reference_service.create_product(patch={
        "name": "Steel bolt M8",
        "sale_price": Decimal("2.50"),
        "reorder_level": Decimal("10"),
    })


@pytest.fixture(scope='function')
def stocked_product(db_session, warehouse):
    """Product with 100 units of opening stock in the main warehouse."""
    return reference_service.create_product(patch={
        "name": "Copper wire 2mm",
        "sale_price": Decimal("15.00"),
        "reorder_level": Decimal("20"),
        "opening_balance": Decimal("100"),
        "opening_warehouse_id": warehouse.id,
    })


@pytest.fixture(scope='function')
def customer(db_session):
    return reference_service.create_customer(patch={
        "business_owner_name": "Hassan Ali",
        "institution_name": "Ali Trading",
        "phone": "0100000000",
        "opening_balance": Decimal("50.00"),
    })
