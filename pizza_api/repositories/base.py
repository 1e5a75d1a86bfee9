"""
Repository capability set.

Every entity is reached through the same small interface:
get / create / update / delete / find_by / first_by / list_all, plus two
guarded counters used wherever a balance must not be overdrawn:

- decrement(id, field, amount, floor): succeeds only if field - amount >= floor
- increment(id, field, amount, cap_field): succeeds only if cap_field is
  NULL or field + amount <= cap_field

Both return False instead of writing when the guard fails. Services never
assign attributes on entities directly; they call update() so every store
can track (and undo) the change.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, TypeVar

ModelT = TypeVar("ModelT")


class Repository(ABC, Generic[ModelT]):
    """Abstract repository over one model class."""

    def __init__(self, model: type[ModelT]):
        self._model = model

    @property
    def model(self) -> type[ModelT]:
        return self._model

    @abstractmethod
    def get(self, entity_id: int) -> ModelT | None:
        ...

    @abstractmethod
    def create(self, **values: Any) -> ModelT:
        """Build, persist and return a new entity with its id assigned."""
        ...

    @abstractmethod
    def update(self, entity: ModelT, **values: Any) -> ModelT:
        ...

    @abstractmethod
    def delete(self, entity: ModelT) -> None:
        ...

    @abstractmethod
    def find_by(self, order_by: str | None = None, **filters: Any) -> Sequence[ModelT]:
        """
        Entities whose attributes equal every filter value.

        ``order_by`` names an attribute; a leading "-" sorts descending.
        Ties keep id order.
        """
        ...

    @abstractmethod
    def increment(
        self,
        entity_id: int,
        field: str,
        amount: int = 1,
        cap_field: str | None = None,
    ) -> bool:
        ...

    @abstractmethod
    def decrement(
        self,
        entity_id: int,
        field: str,
        amount: int,
        floor: int = 0,
    ) -> bool:
        ...

    def first_by(self, **filters: Any) -> ModelT | None:
        found = self.find_by(**filters)
        return found[0] if found else None

    def list_all(self, order_by: str | None = None) -> Sequence[ModelT]:
        return self.find_by(order_by=order_by)

    def get_many(self, ids: set[int] | list[int]) -> dict[int, ModelT]:
        """Entities by id; missing ids are simply absent from the result."""
        result: dict[int, ModelT] = {}
        for entity_id in ids:
            entity = self.get(entity_id)
            if entity is not None:
                result[entity_id] = entity
        return result
