"""Pytest fixtures for storefront tests."""

import os

# Must be set before storefront.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PUBLISH_EVENTS"] = "false"
os.environ["PAYMENT_SIMULATION_SECONDS"] = "0"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront import config
from storefront.auth import get_password_hash
from storefront.database import get_db
from storefront.main import app
from storefront.models import Base, Category, Product, Profile

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "organic-secret"


@pytest.fixture(autouse=True)
def setup_database(monkeypatch):
    """Fresh schema per test, no payment delay, no broker."""
    monkeypatch.setattr(config, "PAYMENT_SIMULATION_SECONDS", 0)
    monkeypatch.setattr(config, "PUBLISH_EVENTS", False)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def second_session():
    """An independent session, standing in for another request writing concurrently."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db_session):
    """Two categories and a handful of products; returns them by short name."""
    fresh = Category(name="Fruits & Vegetables", description="Farm fresh produce")
    pantry = Category(name="Grains & Pulses", description="Staples")
    db_session.add_all([fresh, pantry])
    db_session.flush()

    products = {
        "honey": Product(name="Raw Forest Honey", description="Unprocessed wild honey",
                         price=Decimal("500.00"), stock_quantity=10, category_id=pantry.id,
                         is_featured=True, rating=Decimal("4.8"), rating_count=120),
        "rice": Product(name="Brown Basmati Rice", description="Aged whole grain rice",
                        price=Decimal("300.00"), stock_quantity=5, category_id=pantry.id,
                        rating=Decimal("4.2"), rating_count=40),
        "apple": Product(name="Himalayan Apples", description="Crisp organic apples, 1kg",
                         price=Decimal("180.00"), stock_quantity=50, category_id=fresh.id,
                         is_featured=True, rating=Decimal("4.5"), rating_count=75),
        "spinach": Product(name="Baby Spinach", description="Tender leaves",
                           price=Decimal("60.00"), stock_quantity=2, category_id=fresh.id,
                           rating=Decimal("3.9"), rating_count=12),
        "retired": Product(name="Seasonal Mango Box", description="Out of season",
                           price=Decimal("899.00"), stock_quantity=0, category_id=fresh.id,
                           is_active=False),
    }
    db_session.add_all(products.values())
    db_session.commit()
    for product in products.values():
        db_session.refresh(product)
    return products


@pytest.fixture
def shopper(db_session):
    profile = Profile(email="asha@example.com", hashed_password=get_password_hash(PASSWORD),
                      full_name="Asha Rao")
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


def _login(client, email):
    response = client.post("/users/login", data={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client, shopper):
    return _login(client, shopper.email)


@pytest.fixture
def admin_headers(client, db_session):
    admin = Profile(email="admin@example.com", hashed_password=get_password_hash(PASSWORD),
                    full_name="Admin", is_admin=True)
    db_session.add(admin)
    db_session.commit()
    return _login(client, admin.email)


@pytest.fixture
def valid_shipping():
    return {
        "full_name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "address": "12 MG Road",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400001",
    }
