"""
Pytest fixtures for TradeBook backend tests.

Provides test database setup, users of both roles, catalog products and an
authenticated test client helper.
"""

from decimal import Decimal

import pytest
from tradebook import create_app
from tradebook.extensions import db
from tradebook.models import Product, User, ROLE_ADMIN, ROLE_EMPLOYEE
from tradebook.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOW_STOCK_THRESHOLD': 10,
        'STRICT_TAX_VALIDATION': False,
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
        app.config['STRICT_TAX_VALIDATION'] = False


def _make_user(db_session, name, email, role):
    user = User(
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session):
    return _make_user(db_session, "Asha Admin", "admin@tradebook.test", ROLE_ADMIN)


@pytest.fixture(scope='function')
def employee(db_session):
    return _make_user(db_session, "Eli Employee", "employee@tradebook.test", ROLE_EMPLOYEE)


@pytest.fixture(scope='function')
def other_employee(db_session):
    return _make_user(db_session, "Omar Other", "other@tradebook.test", ROLE_EMPLOYEE)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for catalog products (stock written directly, no movement row)."""
    def _make(name="Widget", price="100", cost="60", stock=0, barcode=None, unit="pcs"):
        product = Product(
            name=name,
            price=Decimal(str(price)),
            cost=Decimal(str(cost)),
            stock=stock,
            barcode=barcode,
            unit=unit,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


@pytest.fixture(scope='function')
def employee_headers(client, employee):
    return auth_headers(get_auth_token(client, employee.email))


@pytest.fixture(scope='function')
def other_headers(client, other_employee):
    return auth_headers(get_auth_token(client, other_employee.email))


def current_stock(db_session, product_id: int) -> int:
    db_session.expire_all()
    return db_session.get(Product, product_id).stock
