"""
Pytest fixtures for Boutique POS backend tests.

Provides an in-memory database, test client, users with auth headers and
small factories for the catalog, customers and sales.
"""

from decimal import Decimal

import bcrypt
import pytest
from boutique import create_app
from boutique.extensions import db
from boutique.models import User, Product, Customer, PromoCode, PaperSize, Sale, SaleStatus
from boutique.services import session_service, sales_service

TEST_PASSWORD = "Password123!"


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


def _make_user(db_session, username: str, role: str) -> User:
    # Low bcrypt cost keeps the suite fast; verify_password accepts any cost
    password_hash = bcrypt.hashpw(TEST_PASSWORD.encode('utf-8'), bcrypt.gensalt(rounds=4)).decode('utf-8')
    user = User(username=username, email=f"{username}@boutique.test", password_hash=password_hash, role=role)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "admin", "admin")


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return _make_user(db_session, "cashier", "cashier")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = session_service.create_session(admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    _, token = session_service.create_session(cashier_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_product(db_session):
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        fields = {
            "name": f"Product {counter['n']}",
            "category": "Tops",
            "price": Decimal("20.00"),
            "purchase_price": Decimal("8.00"),
            "stock": 10,
            "low_stock_threshold": 5,
            "sku": f"{10000 + counter['n']}",
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    return make_product(name="Linen Shirt", stock=10, price=Decimal("20.00"))


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(name: str = "Jane Doe", points: int = 0) -> Customer:
        customer = Customer(name=name, email=f"{name.split()[0].lower()}@example.com", points=points)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture(scope='function')
def customer(make_customer):
    return make_customer()


@pytest.fixture(scope='function')
def promo_code(db_session):
    promo = PromoCode(code="SPRING10", discount_type="percentage", value=Decimal("10"), is_active=True)
    db_session.add(promo)
    db_session.commit()
    return promo


@pytest.fixture(scope='function')
def paper_size(db_session):
    size = PaperSize(name="Label 50x25 mm", width_mm=50, height_mm=25, is_active=True)
    db_session.add(size)
    db_session.commit()
    return size


def item_payload(product: Product, quantity: int, unit_price: str = "20.00") -> dict:
    return {
        "product_id": product.id,
        "product_name": product.name,
        "quantity": quantity,
        "unit_price": unit_price,
        "total_price": str(Decimal(unit_price) * quantity),
    }


def sale_header(user: User, *, total: str, customer: Customer | None = None, **extra) -> dict:
    header = {
        "user_id": user.id,
        "customer_id": customer.id if customer else None,
        "subtotal": total,
        "discount_amount": "0",
        "total": total,
        "payment_method": "cash",
        "points_used": 0,
        "points_earned": 0,
    }
    header.update(extra)
    return header


@pytest.fixture(scope='function')
def make_sale(admin_user):
    """Create a sale through the service, as checkout does."""
    def _make(items: list, customer: Customer | None = None, **extra) -> Sale:
        total = sum(Decimal(i["total_price"]) for i in items)
        return sales_service.create_sale(
            sale_header(admin_user, total=str(total), customer=customer, **extra),
            items,
        )

    return _make


@pytest.fixture(scope='function')
def itemless_sale(db_session, admin_user):
    """A sale row with no items (as produced by sale import)."""
    sale = Sale(
        user_id=admin_user.id,
        subtotal=Decimal("15.00"),
        discount_amount=Decimal("0"),
        total=Decimal("15.00"),
        payment_method="CASH",
        status=SaleStatus.COMPLETED,
    )
    db_session.add(sale)
    db_session.commit()
    return sale
