"""
Tests for the recommendation heuristics.
"""

import pytest

from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.services.domain import RecommendationService
from pizza_api.services.domain.catalog_service import component_snapshot
from pizza_shared.utils.schemas import PizzaConfiguration
from tests.conftest import order_payload


@pytest.fixture
def shop():
    uow = InMemoryUnitOfWork()
    user = uow.users.create(username="rae", email="rae@test.com", password="x")

    def add(kind, name, price, stock=20, **extra):
        return uow.catalog(kind).create(name=name, price=price, stock=stock, threshold=5, **extra)

    items = {
        "traditional": add("base", "Traditional", 8.0),
        "thin": add("base", "Thin Crust", 7.5),
        "marinara": add("sauce", "Marinara", 1.0),
        "pesto": add("sauce", "Pesto", 1.5),
        "bbq": add("sauce", "BBQ", 1.25),
        "mozzarella": add("cheese", "Mozzarella", 2.0),
        "mushrooms": add("topping", "Mushrooms", 1.0, is_veg=True),
        "olives": add("topping", "Olives", 1.0, is_veg=True),
        "pepperoni": add("topping", "Pepperoni", 2.0, is_veg=False),
        "chicken": add("topping", "Chicken", 2.5, is_veg=False),
        "bacon": add("topping", "Bacon", 2.5, stock=0, is_veg=False),
        "sausage": add("topping", "Sausage", 2.5, is_veg=False),
    }
    return uow, user, items


def _order(uow, user_id, base, sauce=None, cheese=None, toppings=(), quantity=1):
    order = uow.orders.create(
        user_id=user_id,
        total_amount=10.0,
        delivery_address="3 Harbor View, Seattle",
        contact_number="5551112222",
    )
    uow.order_items.create(
        order_id=order.id,
        price=10.0,
        quantity=quantity,
        pizza_details={
            "base": component_snapshot(base),
            "sauce": component_snapshot(sauce) if sauce else None,
            "cheese": component_snapshot(cheese) if cheese else None,
            "toppings": [component_snapshot(t) for t in toppings],
        },
    )
    return order


class TestRecommendedToppings:

    def test_without_history_lists_in_stock_toppings(self, shop):
        uow, user, _ = shop

        names = [t.name for t in RecommendationService(uow).recommended_toppings(user.id)]

        assert names == ["Mushrooms", "Olives", "Pepperoni", "Chicken"]

    def test_history_first_then_matching_preference(self, shop):
        uow, user, items = shop
        _order(uow, user.id, items["traditional"], toppings=[items["pepperoni"]])
        _order(uow, user.id, items["traditional"], toppings=[items["pepperoni"], items["chicken"]])

        names = [t.name for t in RecommendationService(uow).recommended_toppings(user.id)]

        # Out-of-stock Bacon is skipped; vegetarian toppings do not match
        assert names == ["Pepperoni", "Chicken", "Sausage"]


class TestPopular:

    def test_samples_without_history(self, shop):
        uow, _, _ = shop

        samples = RecommendationService(uow).popular_configurations()

        assert [s.base["name"] for s in samples] == ["Traditional", "Thin Crust"]
        assert [t["name"] for t in samples[0].toppings] == ["Mushrooms", "Olives"]
        assert samples[0].total_price == round(8.0 + 1.0 + 2.0 + 1.0 + 1.0, 2)

    def test_ranked_by_units_sold(self, shop):
        uow, user, items = shop
        _order(uow, user.id, items["thin"], items["pesto"], quantity=1)
        _order(uow, user.id, items["thin"], items["pesto"], quantity=1)
        _order(uow, user.id, items["traditional"], items["marinara"], toppings=[items["olives"], items["mushrooms"]], quantity=3)
        _order(uow, user.id, items["traditional"], items["marinara"], toppings=[items["mushrooms"], items["olives"]], quantity=1)

        popular = RecommendationService(uow).popular_configurations()

        assert [(p.base["name"], p.sauce["name"]) for p in popular] == [
            ("Traditional", "Marinara"),
            ("Thin Crust", "Pesto"),
        ]


class TestSimilar:

    def test_swaps_sauce_then_base(self, shop):
        uow, _, items = shop
        config = PizzaConfiguration(
            base_id=items["traditional"].id,
            sauce_id=items["marinara"].id,
            topping_ids=[items["olives"].id, items["chicken"].id],
        )

        similar = RecommendationService(uow).similar_configurations(config)

        assert [(s.base["name"], s.sauce["name"]) for s in similar] == [
            ("Traditional", "Pesto"),
            ("Traditional", "BBQ"),
            ("Thin Crust", "Marinara"),
        ]
        assert all([t["name"] for t in s.toppings] == ["Olives"] for s in similar)


class TestPersonalized:

    def test_falls_back_to_popular(self, shop):
        uow, user, _ = shop

        result = RecommendationService(uow).personalized(user.id)

        assert result.type == "popular"
        assert result.recommendations

    def test_favorite_built_from_history(self, shop):
        uow, user, items = shop
        _order(uow, user.id, items["thin"], items["bbq"], items["mozzarella"], [items["chicken"]])
        _order(uow, user.id, items["thin"], items["bbq"], None, [items["chicken"], items["olives"]])
        _order(uow, user.id, items["traditional"], items["pesto"])

        result = RecommendationService(uow).personalized(user.id)

        assert result.type == "personalized"
        favorite = result.recommendations[0]
        assert favorite.name == "Your Favorite"
        assert favorite.base["name"] == "Thin Crust"
        assert favorite.sauce["name"] == "BBQ"
        assert favorite.cheese["name"] == "Mozzarella"
        assert [t["name"] for t in favorite.toppings] == ["Chicken", "Olives"]


class TestRecommendationEndpoints:

    def test_popular_is_public(self, client, seed_catalog):
        response = client.get("/api/recommendations/popular")

        assert response.status_code == 200
        assert response.json()

    def test_toppings_require_session(self, client):
        assert client.get("/api/recommendations/toppings").status_code == 401

    def test_personalized_after_order(self, customer_client, seed_catalog):
        customer_client.post("/api/orders", json=order_payload(seed_catalog))

        data = customer_client.get("/api/recommendations/personalized").json()

        assert data["type"] == "personalized"
        assert data["recommendations"][0]["base"]["name"] == "Traditional"

    def test_similar_endpoint(self, client, seed_catalog):
        response = client.post(
            "/api/recommendations/similar",
            json={"base_id": seed_catalog["base"].id, "sauce_id": seed_catalog["sauce"].id},
        )

        assert response.status_code == 200
        # Only one sauce exists, so only the other base is suggested
        assert [s["base"]["name"] for s in response.json()] == ["Thin Crust"]
