"""
Pytest fixtures for BAKERIST backend tests.

Provides test database setup, account/catalog fixtures, and test client.
"""

from datetime import datetime

import pytest
from bakerist import create_app
from bakerist.extensions import db
from bakerist.models import (
    User, Product, DeliveryZone, StoreSettings, Order, OrderItem, ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN,
)
from bakerist.services.auth_service import hash_password
from bakerist.services import session_service
from bakerist.services.order_service import STATUS_TO_PREPARE, initial_payment_status


PASSWORD = "secret123"
NOW = datetime(2025, 1, 20, 9, 15)


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


def make_user(db_session, *, email, role=ROLE_CUSTOMER, name="Test User", is_active=True, permissions=None):
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        contact_no="09171234567",
        barangay="Anilao",
        sitio="Sitio Maliksi",
        is_active=is_active,
        permissions=permissions,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    """Customer account (juan@example.com)."""
    return make_user(db_session, email="juan@example.com", name="Juan dela Cruz")


@pytest.fixture(scope='function')
def staff(db_session):
    return make_user(db_session, email="staff@bakerist.local", role=ROLE_STAFF, name="Ana Reyes")


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user(db_session, email="admin@bakerist.local", role=ROLE_ADMIN, name="Store Admin")


@pytest.fixture(scope='function')
def customer_session(customer):
    """(SessionToken, token) for the customer."""
    return session_service.create_session(customer)


def make_product(db_session, *, name, price_cents, stock, category="Breads", available=True, description=None):
    product = Product(
        name=name,
        category=category,
        price_cents=price_cents,
        stock=stock,
        available=available,
        description=description,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def pandesal(db_session):
    return make_product(db_session, name="Pandesal Classic", price_cents=800, stock=120)


@pytest.fixture(scope='function')
def ensaymada(db_session):
    return make_product(db_session, name="Ensaymada Special", price_cents=2500, stock=45)


@pytest.fixture(scope='function')
def ube_cake(db_session):
    return make_product(db_session, name="Ube Cake", price_cents=45000, stock=8, category="Cakes")


@pytest.fixture(scope='function')
def zones(db_session):
    """Anilao 30.00 and Laurel 55.00."""
    rows = [
        DeliveryZone(barangay="Anilao", shipping_fee_cents=3000),
        DeliveryZone(barangay="Laurel", shipping_fee_cents=5500),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture(scope='function')
def store_settings(db_session):
    """Settings row with the counter at 4."""
    settings = StoreSettings(id=1, next_order_number=4, store_name="BAKERIST — Mabini Bakery")
    db_session.add(settings)
    db_session.commit()
    return settings


DELIVERY = {
    "full_name": "Juan dela Cruz",
    "barangay": "Anilao",
    "sitio": "Sitio Maliksi",
    "contact": "+639171234567",
}


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
def customer_headers(client, customer):
    return auth_headers(get_auth_token(client, customer.email))


@pytest.fixture(scope='function')
def staff_headers(client, staff):
    return auth_headers(get_auth_token(client, staff.email))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


def _order_product(db_session, name, price_cents):
    product = db_session.query(Product).filter(Product.name == name).first()
    if product is None:
        product = make_product(db_session, name=name, price_cents=price_cents, stock=100)
    return product


def make_order(
    db_session,
    user,
    *,
    order_id="ORD-20250120-0004",
    status=STATUS_TO_PREPARE,
    method="GCash",
    payment_status=None,
    created_at=NOW,
    full_name="Juan dela Cruz",
    contact="+639171234567",
    items=(("Pandesal Classic", 12, 800), ("Ensaymada Special", 4, 2500)),
    shipping_cents=3000,
):
    """
    Insert an order directly, bypassing checkout.

    Items are (Product, qty) or (name, qty, price_cents). Named items reuse a
    product with that name or create one, so every line points at a real row.
    """
    lines = []
    for item in items:
        if isinstance(item[0], Product):
            product, qty = item
            lines.append((product, qty, product.price_cents))
        else:
            name, qty, price = item
            lines.append((_order_product(db_session, name, price), qty, price))
    subtotal = sum(qty * price for _product, qty, price in lines)
    order = Order(
        id=order_id,
        user_id=user.id,
        subtotal_cents=subtotal,
        shipping_fee_cents=shipping_cents,
        total_cents=subtotal + shipping_cents,
        full_name=full_name,
        barangay="Anilao",
        sitio="Sitio Maliksi",
        contact=contact,
        tracking_status=status,
        payment_method=method,
        payment_status=payment_status or initial_payment_status(method),
        created_at=created_at,
    )
    db_session.add(order)
    for product, qty, price in lines:
        db_session.add(OrderItem(order=order, product_id=product.id, name=product.name, qty=qty, price_cents=price))
    db_session.commit()
    return order
