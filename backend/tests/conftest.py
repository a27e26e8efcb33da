"""
Pytest fixtures for POS backend tests.

Provides an in-memory application, a per-test clean database, user and
product factories, and bearer-token helpers.
"""

import pytest

from pos_system import create_app
from pos_system.extensions import db
from pos_system.models import User, Product, ROLE_ADMIN, ROLE_CASHIER
from pos_system.services import session_service
from pos_system.services.auth_service import hash_password


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTO_BOOTSTRAP': False,
        'POS_TIMEZONE': 'UTC',
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


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash of TEST_PASSWORD shared by every user fixture."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def make_user(db_session, password_hash):
    """Factory: make_user("jane", role="cashier", is_active=True)."""
    def _make(username, *, role=ROLE_CASHIER, display_name=None, is_active=True):
        user = User(
            username=username,
            password_hash=password_hash,
            display_name=display_name,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin_t", role=ROLE_ADMIN, display_name="Admin Tester")


@pytest.fixture(scope='function')
def cashier_user(make_user):
    return make_user("cashier_t", role=ROLE_CASHIER, display_name="Casey Cashier")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(sku="A-1", price_cents=1000, quantity=10, ...)."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        values = {
            "sku": f"TEST-{counter['n']:03d}",
            "name": f"Product {counter['n']:03d}",
            "price_cents": 1000,
            "cost_price_cents": 0,
            "quantity": 10,
            "min_quantity": 2,
            "is_active": True,
        }
        values.update(fields)
        product = Product(**values)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = session_service.create_session(admin_user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    _, token = session_service.create_session(cashier_user)
    return auth_headers(token)


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data'].get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
