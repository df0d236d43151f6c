"""
Pytest fixtures for bizbooks backend tests.

Provides test database setup, record factories, and test client.
"""

from datetime import date

import pytest
from bizbooks import create_app
from bizbooks.extensions import db
from bizbooks.services import expense_service, inventory_service, sales_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def cli_runner(app, db_session):
    return app.test_cli_runner()


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
def make_item(db_session):
    """Factory for inventory items (defaults: 10 in stock at 5.00 each)."""
    def _make(name="Widget", category="Parts", current_stock=10, min_stock=2, unit_cost_cents=500, stock_date=None):
        return inventory_service.create_inventory_item(
            name=name,
            category=category,
            current_stock=current_stock,
            min_stock=min_stock,
            unit_cost_cents=unit_cost_cents,
            stock_date=stock_date,
        )
    return _make


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory for sales; returns the create_sale result dict."""
    def _make(item="Snow cone", quantity=1, price_cents=300, on=date(2024, 3, 15), total_cents=None, inventory_item_id=None):
        return sales_service.create_sale(
            date=on,
            item=item,
            quantity=quantity,
            price_cents=price_cents,
            total_cents=total_cents,
            inventory_item_id=inventory_item_id,
        )
    return _make


@pytest.fixture(scope='function')
def make_expense(db_session):
    def _make(amount_cents=1000, on=date(2024, 3, 10), category="Supplies", store_vendor="Costco", description="Cups"):
        return expense_service.create_expense(
            date=on,
            category=category,
            store_vendor=store_vendor,
            description=description,
            amount_cents=amount_cents,
        )
    return _make
