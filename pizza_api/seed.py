"""
Seed data for development and testing.
Creates the starter catalog, subscription plans and a welcome promotion.

Idempotent: each section only inserts when its table is empty.
"""

from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from pizza_api.models import (
    PizzaBase,
    PizzaCheese,
    PizzaSauce,
    PizzaTopping,
    Promotion,
    SubscriptionPlan,
    utcnow,
)
from pizza_shared.config.constants import DiscountType
from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)


BASES = [
    {"name": "Traditional", "description": "Classic hand-tossed dough with perfect thickness", "price": 7.99, "stock": 45},
    {"name": "Thin Crust", "description": "Light and crispy thin base for a crunchier bite", "price": 7.49, "stock": 40},
    {"name": "Deep Dish", "description": "Thick crust with a deep edge for more toppings", "price": 9.49, "stock": 30},
    {"name": "Stuffed Crust", "description": "Cheese-filled crust for an extra cheesy experience", "price": 10.99, "stock": 25},
    {"name": "Multigrain", "description": "Healthy multigrain option with wholesome flavor", "price": 8.99, "stock": 30},
]

SAUCES = [
    {"name": "Marinara", "description": "Classic tomato sauce with Italian herbs", "price": 0.99, "stock": 40, "threshold": 10},
    {"name": "Pesto", "description": "Fresh basil, pine nuts, and olive oil blend", "price": 1.49, "stock": 25, "threshold": 10},
    {"name": "Alfredo", "description": "Creamy white sauce with garlic and parmesan", "price": 1.49, "stock": 20, "threshold": 10},
    {"name": "BBQ", "description": "Sweet and tangy barbecue sauce", "price": 1.29, "stock": 25, "threshold": 10},
    {"name": "Buffalo", "description": "Spicy buffalo sauce with a kick", "price": 1.29, "stock": 18, "threshold": 10},
]

CHEESES = [
    {"name": "Mozzarella", "description": "Classic stretchy pizza cheese", "price": 1.99, "stock": 40, "threshold": 15},
    {"name": "Cheddar", "description": "Sharp and tangy flavor", "price": 1.79, "stock": 25, "threshold": 15},
    {"name": "Parmesan", "description": "Aged Italian hard cheese with strong flavor", "price": 2.19, "stock": 20, "threshold": 15},
]

TOPPINGS = [
    {"name": "Mushrooms", "description": "Fresh sliced mushrooms", "price": 1.19, "is_veg": True, "stock": 30, "threshold": 15},
    {"name": "Bell Peppers", "description": "Colorful bell peppers", "price": 0.99, "is_veg": True, "stock": 30, "threshold": 15},
    {"name": "Olives", "description": "Sliced black olives", "price": 1.29, "is_veg": True, "stock": 25, "threshold": 10},
    {"name": "Onions", "description": "Sliced red onions", "price": 0.79, "is_veg": True, "stock": 25, "threshold": 10},
    {"name": "Chicken", "description": "Grilled chicken pieces", "price": 2.49, "is_veg": False, "stock": 25, "threshold": 15},
    {"name": "Pepperoni", "description": "Spicy pepperoni slices", "price": 2.29, "is_veg": False, "stock": 30, "threshold": 15},
]

PLANS = [
    {
        "name": "Weekly Slice",
        "description": "One pizza delivered every week",
        "price": 14.99,
        "interval_days": 7,
        "pizza_allowance": 1,
        "additional_perks": ["Free delivery"],
    },
    {
        "name": "Family Feast",
        "description": "Three pizzas every two weeks",
        "price": 39.99,
        "interval_days": 14,
        "pizza_allowance": 3,
        "additional_perks": ["Free delivery", "Free garlic bread"],
    },
    {
        "name": "Monthly Treat",
        "description": "Two pizzas once a month",
        "price": 24.99,
        "interval_days": 30,
        "pizza_allowance": 2,
        "additional_perks": [],
    },
]


def _seed_table(db: Session, model, rows: list[dict]) -> int:
    if db.scalar(select(model.id).limit(1)):
        return 0
    for row in rows:
        db.add(model(**row))
    return len(rows)


def seed_catalog(db: Session) -> None:
    added = sum(
        _seed_table(db, model, rows)
        for model, rows in (
            (PizzaBase, BASES),
            (PizzaSauce, SAUCES),
            (PizzaCheese, CHEESES),
            (PizzaTopping, TOPPINGS),
        )
    )
    if added:
        logger.info("Catalog seeded", items=added)
    else:
        logger.info("Catalog already seeded, skipping")


def seed_plans(db: Session) -> None:
    if _seed_table(db, SubscriptionPlan, PLANS):
        logger.info("Subscription plans seeded", plans=len(PLANS))


def seed_promotions(db: Session) -> None:
    if db.scalar(select(Promotion.id).limit(1)):
        return
    now = utcnow()
    db.add(Promotion(
        code="WELCOME10",
        description="10% off your order",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10,
        min_order_amount=10,
        max_uses=1000,
        current_uses=0,
        start_date=now,
        end_date=now + timedelta(days=365),
        is_active=True,
    ))
    logger.info("Welcome promotion seeded")


def seed(db: Session) -> None:
    """Seed every section and commit once."""
    seed_catalog(db)
    seed_plans(db)
    seed_promotions(db)
    db.commit()
