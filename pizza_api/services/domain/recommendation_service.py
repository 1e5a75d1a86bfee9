"""
Recommendation heuristics.

Everything here reads order-item snapshots and the catalog; nothing is
written. Suggestions are plain configurations built from catalog rows:
    {base, sauce, cheese, toppings, total_price, name?, description?}
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from pydantic import BaseModel

from pizza_api.models import CatalogItemMixin
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import CatalogKind, Limits
from pizza_shared.utils.schemas import PizzaConfiguration
from .catalog_service import CatalogItemOutput, CatalogService, component_snapshot


class PizzaSuggestion(BaseModel):
    base: dict[str, Any] | None = None
    sauce: dict[str, Any] | None = None
    cheese: dict[str, Any] | None = None
    toppings: list[dict[str, Any]] = []
    total_price: float
    name: str | None = None
    description: str | None = None


class PersonalizedOutput(BaseModel):
    type: str
    recommendations: list[PizzaSuggestion]


def _top(counter: Counter, n: int) -> list[Any]:
    # most_common keeps first-seen order for ties
    return [key for key, _ in counter.most_common(n)]


def build_suggestion(
    base: CatalogItemMixin | None,
    sauce: CatalogItemMixin | None,
    cheese: CatalogItemMixin | None,
    toppings: Iterable[CatalogItemMixin],
    name: str | None = None,
    description: str | None = None,
) -> PizzaSuggestion:
    toppings = list(toppings)
    parts = [p for p in (base, sauce, cheese) if p is not None] + toppings
    return PizzaSuggestion(
        base=component_snapshot(base) if base else None,
        sauce=component_snapshot(sauce) if sauce else None,
        cheese=component_snapshot(cheese) if cheese else None,
        toppings=[component_snapshot(t) for t in toppings],
        total_price=round(sum(p.price for p in parts), 2),
        name=name,
        description=description,
    )


class RecommendationService:

    def __init__(self, uow: UnitOfWork):
        self._uow = uow
        self._catalog = CatalogService(uow)

    def _in_stock(self, kind: str) -> list[CatalogItemMixin]:
        return [i for i in self._uow.catalog(kind).list_all(order_by="id") if i.stock > 0]

    def _user_details(self, user_id: int) -> list[dict[str, Any]]:
        details: list[dict[str, Any]] = []
        for order in self._uow.orders.find_by(user_id=user_id):
            details.extend(i.pizza_details or {} for i in self._uow.order_items.find_by(order_id=order.id))
        return details

    def _resolve(self, kind: str, item_id: int | None) -> CatalogItemMixin | None:
        if item_id is None:
            return None
        return self._uow.catalog(kind).get(item_id)

    # =========================================================================
    # Toppings
    # =========================================================================

    def recommended_toppings(self, user_id: int) -> list[CatalogItemOutput]:
        """
        Toppings the user ordered before (most frequent first), padded with
        in-stock toppings they have not tried that match their vegetarian
        preference.
        """
        limit = Limits.MAX_RECOMMENDED_TOPPINGS
        counts: Counter[int] = Counter()
        for details in self._user_details(user_id):
            for topping in details.get("toppings") or []:
                if topping.get("id"):
                    counts[topping["id"]] += 1

        repo = self._uow.catalog(CatalogKind.TOPPING)
        if not counts:
            return [self._catalog.to_output(t) for t in self._in_stock(CatalogKind.TOPPING)[:limit]]

        ordered = [t for t in (repo.get(i) for i in _top(counts, limit)) if t is not None]
        prefers_veg = any(t.is_veg for t in ordered)
        seen = {t.id for t in ordered}
        complementary = [
            t for t in self._in_stock(CatalogKind.TOPPING)
            if t.id not in seen and t.is_veg == prefers_veg
        ]
        return [self._catalog.to_output(t) for t in (ordered + complementary)[:limit]]

    # =========================================================================
    # Popular
    # =========================================================================

    def popular_configurations(self) -> list[PizzaSuggestion]:
        """Most ordered configurations across all order items, by units sold."""
        counts: Counter[tuple] = Counter()
        for item in self._uow.order_items.list_all(order_by="id"):
            details = item.pizza_details or {}
            key = (
                (details.get("base") or {}).get("id"),
                (details.get("sauce") or {}).get("id"),
                (details.get("cheese") or {}).get("id"),
                tuple(sorted(t["id"] for t in details.get("toppings") or [])),
            )
            if key[0] is not None:
                counts[key] += item.quantity

        suggestions: list[PizzaSuggestion] = []
        for base_id, sauce_id, cheese_id, topping_ids in _top(counts, Limits.MAX_POPULAR_CONFIGURATIONS):
            base = self._resolve(CatalogKind.BASE, base_id)
            if base is None:
                continue
            toppings = [self._resolve(CatalogKind.TOPPING, t) for t in topping_ids]
            suggestions.append(build_suggestion(
                base,
                self._resolve(CatalogKind.SAUCE, sauce_id),
                self._resolve(CatalogKind.CHEESE, cheese_id),
                [t for t in toppings if t is not None],
            ))

        if suggestions:
            return suggestions
        return self._sample_configurations()

    def _sample_configurations(self) -> list[PizzaSuggestion]:
        """Catalog-built samples for a shop without order history."""
        bases = self._in_stock(CatalogKind.BASE)
        sauces = self._in_stock(CatalogKind.SAUCE)
        cheeses = self._in_stock(CatalogKind.CHEESE)
        toppings = self._in_stock(CatalogKind.TOPPING)
        if not bases:
            return []

        samples = []
        for i in range(min(Limits.MAX_POPULAR_CONFIGURATIONS, len(bases))):
            samples.append(build_suggestion(
                bases[i],
                sauces[i % len(sauces)] if sauces else None,
                cheeses[i % len(cheeses)] if cheeses else None,
                toppings[i * 2:i * 2 + 2],
            ))
        return samples

    # =========================================================================
    # Similar
    # =========================================================================

    def similar_configurations(self, config: PizzaConfiguration) -> list[PizzaSuggestion]:
        """Configurations that keep the base (new sauce) or the sauce (new base)."""
        base = self._resolve(CatalogKind.BASE, config.base_id)
        sauce = self._resolve(CatalogKind.SAUCE, config.sauce_id)
        cheese = self._resolve(CatalogKind.CHEESE, config.cheese_id)
        toppings = [t for t in (self._resolve(CatalogKind.TOPPING, i) for i in config.topping_ids) if t]
        return self._similar(base, sauce, cheese, toppings)

    def _similar(self, base, sauce, cheese, toppings) -> list[PizzaSuggestion]:
        first_topping = toppings[:1]
        found: list[PizzaSuggestion] = []

        if base is not None:
            for other in [s for s in self._in_stock(CatalogKind.SAUCE) if sauce is None or s.id != sauce.id][:2]:
                found.append(build_suggestion(base, other, cheese, first_topping))

        if sauce is not None:
            for other in [b for b in self._in_stock(CatalogKind.BASE) if base is None or b.id != base.id][:2]:
                found.append(build_suggestion(other, sauce, cheese, first_topping))

        return found[:Limits.MAX_SIMILAR_CONFIGURATIONS]

    # =========================================================================
    # Personalized
    # =========================================================================

    def personalized(self, user_id: int) -> PersonalizedOutput:
        history = self._user_details(user_id)
        if not history:
            return PersonalizedOutput(type="popular", recommendations=self.popular_configurations())

        slots: dict[str, Counter[int]] = {k: Counter() for k in ("base", "sauce", "cheese", "toppings")}
        for details in history:
            for slot in ("base", "sauce", "cheese"):
                component = details.get(slot)
                if component and component.get("id"):
                    slots[slot][component["id"]] += 1
            for topping in details.get("toppings") or []:
                if topping.get("id"):
                    slots["toppings"][topping["id"]] += 1

        def favorite(kind: str, slot: str) -> CatalogItemMixin | None:
            top = _top(slots[slot], 1)
            return self._resolve(kind, top[0]) if top else None

        base = favorite(CatalogKind.BASE, "base")
        sauce = favorite(CatalogKind.SAUCE, "sauce")
        cheese = favorite(CatalogKind.CHEESE, "cheese")
        toppings = [
            t for t in (self._resolve(CatalogKind.TOPPING, i) for i in _top(slots["toppings"], 3))
            if t is not None
        ]

        favorite_pizza = build_suggestion(
            base,
            sauce,
            cheese,
            toppings,
            name="Your Favorite",
            description="Based on your order history, we think you'll love this!",
        )
        return PersonalizedOutput(
            type="personalized",
            recommendations=[favorite_pizza, *self._similar(base, sauce, cheese, toppings)],
        )
