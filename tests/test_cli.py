"""
Tests for the management CLI, run against the application's own engine.
"""

import pytest
from sqlalchemy import inspect, select
from typer.testing import CliRunner

from pizza_api.cli import app
from pizza_api.models import Base, PizzaBase, PizzaSauce, User
from pizza_shared.config.settings import settings
from pizza_shared.infrastructure.db import SessionLocal, engine

runner = CliRunner()


@pytest.fixture
def app_db():
    Base.metadata.drop_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_init_db_creates_tables(app_db):
    result = runner.invoke(app, ["init-db"])

    assert result.exit_code == 0
    assert inspect(engine).has_table("pizza_bases")
    assert inspect(engine).has_table("users")


def test_create_admin_then_promote(app_db):
    runner.invoke(app, ["init-db"])

    first = runner.invoke(app, ["create-admin", "chef", "Chef@Test.com", "--password", "pizza1234"])
    second = runner.invoke(app, ["create-admin", "chef", "chef@test.com", "--password", "pizza1234"])

    assert first.exit_code == 0
    assert "now an admin" in second.output
    with SessionLocal() as db:
        users = db.scalars(select(User)).all()
    assert [(u.username, u.email, u.is_admin) for u in users] == [("chef", "chef@test.com", True)]


def test_low_stock_report(app_db):
    runner.invoke(app, ["init-db"])

    empty = runner.invoke(app, ["low-stock"])
    assert "All items are above their threshold" in empty.output

    with SessionLocal() as db:
        db.add_all([
            PizzaBase(name="Traditional", price=8.0, stock=45, threshold=20),
            PizzaSauce(name="Marinara", price=1.0, stock=5, threshold=10),
        ])
        db.commit()

    report = runner.invoke(app, ["low-stock"])

    assert report.exit_code == 0
    assert "Marinara" in report.output
    assert "Traditional" not in report.output


def test_seed_refuses_production_without_force(app_db, monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")

    result = runner.invoke(app, ["seed"])

    assert result.exit_code == 1
