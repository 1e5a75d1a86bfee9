"""
Tests for the health endpoints and startup seeding.
"""

from sqlalchemy import func, select

from pizza_api.models import PizzaBase, PizzaTopping, Promotion, SubscriptionPlan
from pizza_api.seed import seed


class TestHealth:

    def test_basic(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed(self, client):
        data = client.get("/api/health/detailed").json()

        assert data["status"] == "healthy"
        assert data["dependencies"]["database"]["status"] == "healthy"
        assert data["websocket_connections"] == 0


class TestSeed:

    def _count(self, db_session, model):
        return db_session.scalar(select(func.count()).select_from(model))

    def test_seed_populates_empty_tables(self, db_session):
        seed(db_session)

        assert self._count(db_session, PizzaBase) == 5
        assert self._count(db_session, PizzaTopping) == 6
        assert self._count(db_session, SubscriptionPlan) == 3
        assert db_session.scalar(select(Promotion.code)) == "WELCOME10"

    def test_seed_is_idempotent(self, db_session):
        seed(db_session)
        seed(db_session)

        assert self._count(db_session, PizzaBase) == 5
        assert self._count(db_session, Promotion) == 1

    def test_existing_catalog_left_alone(self, db_session, seed_catalog):
        seed(db_session)

        assert self._count(db_session, PizzaBase) == 2
        assert self._count(db_session, SubscriptionPlan) == 3
