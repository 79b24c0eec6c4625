"""
Pytest fixtures for StockMate backend tests.

Provides test database setup, directory fixtures, and test client.
"""

from decimal import Decimal

import pytest
from stockmate import create_app
from stockmate.extensions import db
from stockmate.models import Color, Customer, Fabric, Product, Warehouse
from stockmate.services import product_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_WRITE_ATTEMPTS': 3,
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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def warehouse(db_session):
    """Create Warehouse W."""
    w = Warehouse(name="Main Warehouse", address="1 Mill Road", city="Lahore", country="PK")
    db_session.add(w)
    db_session.commit()
    return w


@pytest.fixture(scope='function')
def second_warehouse(db_session):
    w = Warehouse(name="Overflow Warehouse", address="9 Canal Bank")
    db_session.add(w)
    db_session.commit()
    return w


@pytest.fixture(scope='function')
def customer(db_session):
    c = Customer(name="Demo Tailors", email="orders@demo-tailors.test")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def fabric(db_session):
    f = Fabric(name="Cotton")
    db_session.add(f)
    db_session.commit()
    return f


@pytest.fixture(scope='function')
def color(db_session):
    c = Color(name="Red", hex_code="#FF0000")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def bare_product(db_session, fabric, color):
    """Product with no ledger rows."""
    p = Product(name="Linen Red", fabric_id=fabric.id, color_id=color.id)
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def product(db_session, fabric, color, warehouse):
    """Product P stocked at 100.000 yard in Warehouse W."""
    return product_service.create_product(
        name="Cotton Red",
        fabric_id=fabric.id,
        color_id=color.id,
        price=Decimal("10.00"),
        warehouse_quantities=[{"warehouse_id": warehouse.id, "quantity": 100, "unit": "yard"}],
    )


def invoice_item(product, quantity, unit_price, unit="yard") -> dict:
    """Helper to build an invoice item payload."""
    return {"product_id": product.id, "quantity": quantity, "unit": unit, "unit_price": unit_price}


def refund_item(invoice_item, refund_quantity, refund_amount=None) -> dict:
    """Helper to build a refund item payload from a stored InvoiceItem."""
    if refund_amount is None:
        refund_amount = Decimal(str(refund_quantity)) * invoice_item.unit_price
    return {
        "item_id": invoice_item.id,
        "product_id": invoice_item.product_id,
        "original_quantity": invoice_item.quantity,
        "refund_quantity": refund_quantity,
        "unit": invoice_item.unit,
        "unit_price": invoice_item.unit_price,
        "refund_amount": refund_amount,
    }
