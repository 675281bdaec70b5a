"""
Pytest fixtures for back office tests.

Provides test database setup, record factories, and test client.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Customer, Product, Receipt, ReceiptLine, WeeklyPrice
from backoffice.models.customers import DEFAULT_OUTLET_GROUP
from backoffice.models.receipts import STATUS_PAID, STATUS_UNPAID
from backoffice.time_utils import day_bounds


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
def make_product(db_session):
    """Factory: make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")."""
    def _make(name="Cabbage", unit_cost="0", markup="0", delivery_fee="0", unit="kg", is_active=True):
        product = Product(
            name=name,
            unit=unit,
            unit_cost=Decimal(unit_cost),
            markup=Decimal(markup),
            delivery_fee=Decimal(delivery_fee),
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_outlet(db_session):
    """Factory: make_outlet("Autoliv")."""
    def _make(name="Autoliv", group_name=DEFAULT_OUTLET_GROUP, is_active=True, address=None):
        outlet = Customer(name=name, group_name=group_name, is_active=is_active, address=address)
        db_session.add(outlet)
        db_session.commit()
        return outlet
    return _make


@pytest.fixture(scope='function')
def make_weekly_price(db_session):
    def _make(product, effective_from, effective_to, **fields):
        wp = WeeklyPrice(
            product_id=product.id,
            effective_from=effective_from,
            effective_to=effective_to,
            **{k: Decimal(v) if v is not None else None for k, v in fields.items()},
        )
        db_session.add(wp)
        db_session.commit()
        return wp
    return _make


_receipt_counter = {"n": 0}


@pytest.fixture(scope='function')
def make_receipt(db_session):
    """
    Factory: make_receipt(outlet, on_date, {product: qty}, status=STATUS_PAID, price="15").

    Pass outlet=None with customer_name=... for a legacy name-only receipt.
    """
    def _make(outlet, on_date: date, lines: dict, status=STATUS_PAID, price="15", cost="10",
              customer_name=None):
        _receipt_counter["n"] += 1
        receipt = Receipt(
            receipt_number=f"TEST-{_receipt_counter['n']:06d}",
            date=datetime.combine(on_date, datetime.min.time()),
            customer_id=outlet.id if outlet is not None else None,
            customer_name=customer_name if customer_name is not None else outlet.name,
            status=status,
            paid_amount=Decimal("0"),
        )
        for product, qty in lines.items():
            receipt.lines.append(ReceiptLine(
                product_id=product.id,
                item_name=product.name,
                unit=product.unit,
                quantity=qty,
                price=Decimal(price),
                cost_price_snapshot=Decimal(cost),
                amount=Decimal(price) * qty,
            ))
        receipt.recompute_total()
        if status == STATUS_PAID:
            receipt.paid_amount = receipt.total_amount
        db_session.add(receipt)
        db_session.commit()
        return receipt
    return _make


def day_receipts(session, on_date: date, status=None):
    """All receipts dated on_date, optionally filtered by status."""
    start, end = day_bounds(on_date)
    query = session.query(Receipt).filter(Receipt.date >= start, Receipt.date < end)
    if status is not None:
        query = query.filter(Receipt.status == status)
    return query.order_by(Receipt.id).all()


def unpaid_lines(session, on_date: date, outlet) -> dict:
    """{product_id: quantity} on the outlet's unpaid receipt for the day."""
    drafts = [r for r in day_receipts(session, on_date, STATUS_UNPAID) if r.customer_id == outlet.id]
    assert len(drafts) <= 1
    if not drafts:
        return {}
    return {line.product_id: line.quantity for line in drafts[0].lines}
