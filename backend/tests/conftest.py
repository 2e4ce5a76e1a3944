"""
Pytest fixtures for PizzaPOS backend tests.

Provides the test database, staff accounts for each role, catalog rows and
the Flask test client.
"""

from decimal import Decimal

import pytest
from pizzapos import create_app
from pizzapos.extensions import db
from pizzapos.models import User, Product, ProductAddon, Client


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_RETRY_ATTEMPTS': 1,
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


def _make_user(session, username: str, role: str) -> User:
    user = User(
        username=username,
        name=username.capitalize(),
        last_name="Test",
        password_hash="x",
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def cashier(db_session):
    """USER role: can sell, open and close, cannot extract."""
    return _make_user(db_session, "cashier", "USER")


@pytest.fixture(scope='function')
def admin(db_session):
    return _make_user(db_session, "admin", "ADMIN")


@pytest.fixture(scope='function')
def sysadmin(db_session):
    return _make_user(db_session, "sysadmin", "SYSADMIN")


@pytest.fixture(scope='function')
def pizza(db_session):
    """Stock-tracked product."""
    product = Product(name="Pizza Muzzarella", price=Decimal("45000"), category="Pizzas", stock=10)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def empanada(db_session):
    """Made-to-order product (stock not tracked)."""
    product = Product(name="Empanada de carne", price=Decimal("5000"), category="Empanadas", stock=None)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def extra_cheese(db_session):
    addon = ProductAddon(name="Extra queso", price=Decimal("8000"), is_active=True)
    db_session.add(addon)
    db_session.commit()
    return addon


@pytest.fixture(scope='function')
def customer(db_session):
    client = Client(name="Ana", last_name="Benítez", cedula="4567890")
    db_session.add(client)
    db_session.commit()
    return client


def auth_headers(user) -> dict:
    """Helper to build the identity header the upstream auth layer sets."""
    return {'X-Authenticated-User': user.username}


def sale_payload(product, *, quantity: int = 1, total=None, payment_method: str = "CASH", **extra) -> dict:
    """Helper to build a one-item checkout body."""
    price = float(product.price)
    subtotal = price * quantity
    payload = {
        "items": [{
            "productId": product.id,
            "quantity": quantity,
            "price": price,
            "subtotal": subtotal,
        }],
        "total": subtotal if total is None else total,
        "discount": 0,
        "paymentMethod": payment_method,
        "orderType": "PICKUP",
    }
    payload.update(extra)
    return payload
