"""
Shared fixtures: a throwaway SQLite database, API clients signed in as
different users, and a small seeded catalog.
"""

import os

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("NOTIFICATION_BACKEND", "memory")

from contextlib import nullcontext
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pizza_api.main import app
from pizza_api.models import (
    Base,
    PizzaBase,
    PizzaCheese,
    PizzaSauce,
    PizzaTopping,
    Promotion,
    SubscriptionPlan,
    User,
    utcnow,
)
from pizza_api.realtime import InMemoryConnectionRegistry
from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.routers._common import get_session_factory
from pizza_shared.config.constants import DiscountType
from pizza_shared.infrastructure.db import get_db
from pizza_shared.security.password import hash_password
from pizza_shared.security.rate_limit import limiter


engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

TEST_PASSWORD = "testpass123"

limiter.enabled = False


@pytest.fixture
def db_session():
    """Tables are created before and dropped after every test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """API client sharing the test session and a fresh in-memory socket registry."""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_session_factory] = lambda: (lambda: nullcontext(db_session))
    app.state.connections = InMemoryConnectionRegistry()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def uow():
    """In-memory unit of work for service tests."""
    return InMemoryUnitOfWork()


# -- Users --


def make_user(db_session, username: str, is_admin: bool = False, loyalty_points: int = 0) -> User:
    user = User(
        username=username,
        email=f"{username}@test.com",
        password=hash_password(TEST_PASSWORD),
        is_admin=is_admin,
        loyalty_points=loyalty_points,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def login(client, username: str, password: str = TEST_PASSWORD) -> dict:
    """Log in through the API; the client keeps the session cookie."""
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, f"Login failed: {response.json()}"
    return response.json()


@pytest.fixture
def seed_customer(db_session):
    return make_user(db_session, "customer", loyalty_points=0)


@pytest.fixture
def seed_other_customer(db_session):
    return make_user(db_session, "intruder")


@pytest.fixture
def seed_admin(db_session):
    return make_user(db_session, "admin", is_admin=True)


@pytest.fixture
def customer_client(client, seed_customer):
    login(client, seed_customer.username)
    return client


@pytest.fixture
def admin_client(client, seed_admin):
    login(client, seed_admin.username)
    return client


# -- Catalog, promotions and plans --


@pytest.fixture
def seed_catalog(db_session):
    """
    One base, sauce and cheese plus two toppings.

    The thin crust only has 2 units left so stock guards are easy to trip.
    """
    items = {
        "base": PizzaBase(name="Traditional", price=8.0, stock=45, threshold=20),
        "thin": PizzaBase(name="Thin Crust", price=7.5, stock=2, threshold=1),
        "sauce": PizzaSauce(name="Marinara", price=1.0, stock=5, threshold=10),
        "cheese": PizzaCheese(name="Mozzarella", price=2.0, stock=30, threshold=15),
        "mushrooms": PizzaTopping(name="Mushrooms", price=1.2, stock=22, threshold=15, is_veg=True),
        "pepperoni": PizzaTopping(name="Pepperoni", price=2.3, stock=30, threshold=15, is_veg=False),
    }
    db_session.add_all(items.values())
    db_session.commit()
    return items


@pytest.fixture
def seed_promotion(db_session):
    now = utcnow()
    promotion = Promotion(
        code="WELCOME10",
        description="10% off",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10,
        min_order_amount=10,
        max_uses=1,
        current_uses=0,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
        is_active=True,
    )
    db_session.add(promotion)
    db_session.commit()
    return promotion


@pytest.fixture
def seed_plan(db_session):
    plan = SubscriptionPlan(
        name="Weekly Slice",
        description="One pizza a week",
        price=14.99,
        interval_days=7,
        pizza_allowance=1,
        additional_perks=["Free delivery"],
        is_active=True,
    )
    db_session.add(plan)
    db_session.commit()
    return plan


def order_payload(catalog, quantity: int = 1, base: str = "base", total: float = 25.0) -> dict:
    """Order body for one pizza line built from seed_catalog."""
    return {
        "total_amount": total,
        "delivery_address": "12 Market Street, Springfield",
        "contact_number": "5550001234",
        "items": [
            {
                "pizza": {
                    "base_id": catalog[base].id,
                    "sauce_id": catalog["sauce"].id,
                    "cheese_id": catalog["cheese"].id,
                    "topping_ids": [catalog["mushrooms"].id],
                },
                "price": total / quantity,
                "quantity": quantity,
            }
        ],
    }
