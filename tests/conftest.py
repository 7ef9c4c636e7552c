"""
Shared pytest fixtures and configuration for all tests.

Provides common fixtures for Flask application testing, database sessions,
authentication, and return-ready sales.
"""

import pytest
import sys
import os
from decimal import Decimal
from datetime import datetime, timedelta, date

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cashier import create_app
from cashier.models import db


@pytest.fixture(scope='session')
def app_factory():
    """Factory fixture for creating test app instances."""
    def _create_app(config='testing'):
        app = create_app(config)
        app.config['WTF_CSRF_ENABLED'] = False
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        app.config['RATELIMIT_ENABLED'] = False
        return app
    return _create_app


@pytest.fixture(scope='function')
def fresh_app(app_factory):
    """Create a fresh application for each test with clean database."""
    app = app_factory()

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(fresh_app):
    """Create a test client for each test."""
    return fresh_app.test_client()


@pytest.fixture(scope='function')
def db_session(fresh_app):
    """Provide a database session for testing."""
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def init_database(fresh_app):
    """
    Initialize database with test data.

    Creates:
    - Users (admin, cashier, stock manager, inactive)
    - Customers
    - Products (P1 split across two lots, P2 in a single lot, P3 never sold)
    - Lots with per-product stock counters
    - A recent sale (1 hour old) and an expired sale (25 hours old)

    Returns a dict of ids for the created rows.
    """
    from cashier.models import User, Customer, Product, Batch, BatchItem, Sale, SaleItem

    now = datetime.utcnow()

    admin = User(username='admin', email='admin@test.com', full_name='Admin User',
                 role='admin', is_active=True)
    admin.set_password('admin123')
    cashier = User(username='cashier', email='cashier@test.com', full_name='Cashier User',
                   role='cashier', is_active=True)
    cashier.set_password('cashier123')
    stock_manager = User(username='stock', email='stock@test.com', full_name='Stock Manager',
                         role='stock_manager', is_active=True)
    stock_manager.set_password('stock123')
    inactive = User(username='inactive', email='inactive@test.com', full_name='Inactive User',
                    role='cashier', is_active=False)
    inactive.set_password('inactive123')
    db.session.add_all([admin, cashier, stock_manager, inactive])

    customer = Customer(name='John Doe', phone='0901234567', email='john@test.com')
    other_customer = Customer(name='Jane Smith', phone='0907654321')
    db.session.add_all([customer, other_customer])

    p1 = Product(code='P1', name='Green Tea', cost_price=Decimal('6.00'),
                 selling_price=Decimal('10.00'), quantity=20)
    p2 = Product(code='P2', name='Jasmine Rice', cost_price=Decimal('15.00'),
                 selling_price=Decimal('25.50'), quantity=40)
    p3 = Product(code='P3', name='Soy Sauce', cost_price=Decimal('3.00'),
                 selling_price=Decimal('5.00'), quantity=12)
    db.session.add_all([p1, p2, p3])

    lot_a = Batch(batch_number='LOT-A', received_date=date.today())
    lot_b = Batch(batch_number='LOT-B', received_date=date.today())
    db.session.add_all([lot_a, lot_b])
    db.session.flush()

    lot_a_p1 = BatchItem(batch_id=lot_a.id, product_id=p1.id, initial_quantity=3,
                         current_quantity=0, inventory_status='depleted')
    lot_b_p1 = BatchItem(batch_id=lot_b.id, product_id=p1.id, initial_quantity=10,
                         current_quantity=5, inventory_status='active')
    lot_a_p2 = BatchItem(batch_id=lot_a.id, product_id=p2.id, initial_quantity=50,
                         current_quantity=40, inventory_status='active')
    db.session.add_all([lot_a_p1, lot_b_p1, lot_a_p2])

    def make_sale(number, created_at, buyer):
        sale = Sale(sale_number=number, customer_id=buyer.id, user_id=cashier.id,
                    payment_method='cash', created_at=created_at)
        lines = [
            (p1, lot_a, 3, Decimal('10.00')),
            (p2, lot_a, 2, Decimal('25.50')),
            (p1, lot_b, 5, Decimal('10.00')),
        ]
        for product, lot, qty, price in lines:
            item = SaleItem(product_id=product.id, batch_id=lot.id, product_name=product.name,
                            quantity=qty, unit_price=price)
            item.calculate_subtotal()
            sale.items.append(item)
        sale.calculate_totals()
        db.session.add(sale)
        return sale

    recent_sale = make_sale('SALE-0001', now - timedelta(hours=1), customer)
    expired_sale = make_sale('SALE-0002', now - timedelta(hours=25), other_customer)

    db.session.commit()

    yield {
        'admin_id': admin.id,
        'cashier_id': cashier.id,
        'stock_manager_id': stock_manager.id,
        'customer_id': customer.id,
        'p1_id': p1.id,
        'p2_id': p2.id,
        'p3_id': p3.id,
        'lot_a_id': lot_a.id,
        'lot_b_id': lot_b.id,
        'lot_a_p1_id': lot_a_p1.id,
        'lot_b_p1_id': lot_b_p1.id,
        'lot_a_p2_id': lot_a_p2.id,
        'sale_id': recent_sale.id,
        'expired_sale_id': expired_sale.id,
    }


def login(client, username, password):
    return client.post('/auth/login', json={'username': username, 'password': password})


@pytest.fixture
def auth_admin(client, init_database):
    """Login as admin user and return authenticated client."""
    login(client, 'admin', 'admin123')
    return client


@pytest.fixture
def auth_cashier(client, init_database):
    """Login as cashier user and return authenticated client."""
    login(client, 'cashier', 'cashier123')
    return client


@pytest.fixture
def auth_stock_manager(client, init_database):
    """Login as stock manager, who may view but not process returns."""
    login(client, 'stock', 'stock123')
    return client


# Pytest configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "api: marks tests as API endpoint tests"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests as authentication tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test class/function names."""
    for item in items:
        if 'routes' in item.nodeid:
            item.add_marker(pytest.mark.api)

        if 'auth' in item.name.lower() or 'login' in item.name.lower():
            item.add_marker(pytest.mark.auth)
