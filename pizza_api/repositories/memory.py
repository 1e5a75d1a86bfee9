"""
Dictionary-backed repository for service tests.

Entities are plain (transient) model instances. Every write appends an undo
step to the owning unit of work's journal so a failed transaction can be
rolled back by replaying the journal in reverse.
"""

import copy
import itertools
from typing import Any, Callable, Sequence

from sqlalchemy import inspect

from .base import ModelT, Repository

UndoStep = Callable[[], None]


class InMemoryRepository(Repository[ModelT]):

    def __init__(self, model: type[ModelT], record_undo: Callable[[UndoStep], None]):
        super().__init__(model)
        self._rows: dict[int, ModelT] = {}
        self._ids = itertools.count(1)
        self._record_undo = record_undo

    def _apply_defaults(self, entity: ModelT) -> None:
        for column in inspect(self._model).columns:
            if getattr(entity, column.key, None) is not None or column.default is None:
                continue
            default = column.default
            if default.is_callable:
                value = default.arg(None)
            elif default.is_scalar:
                value = copy.copy(default.arg)
            else:
                continue
            setattr(entity, column.key, value)

    def get(self, entity_id: int) -> ModelT | None:
        return self._rows.get(entity_id)

    def create(self, **values: Any) -> ModelT:
        entity = self._model(**values)
        self._apply_defaults(entity)
        if getattr(entity, "id", None) is None:
            entity.id = next(self._ids)
        self._rows[entity.id] = entity
        self._record_undo(lambda: self._rows.pop(entity.id, None))
        return entity

    def update(self, entity: ModelT, **values: Any) -> ModelT:
        previous = {key: getattr(entity, key) for key in values}

        def undo() -> None:
            for key, value in previous.items():
                setattr(entity, key, value)

        stamp = inspect(self._model).columns.get("updated_at")
        if stamp is not None and stamp.onupdate is not None and "updated_at" not in values:
            previous["updated_at"] = entity.updated_at
            values = {**values, "updated_at": stamp.onupdate.arg(None)}

        for key, value in values.items():
            setattr(entity, key, value)
        self._record_undo(undo)
        return entity

    def delete(self, entity: ModelT) -> None:
        removed = self._rows.pop(entity.id, None)
        if removed is not None:
            self._record_undo(lambda: self._rows.__setitem__(removed.id, removed))

    def find_by(self, order_by: str | None = None, **filters: Any) -> Sequence[ModelT]:
        rows = [
            row for row in sorted(self._rows.values(), key=lambda r: r.id)
            if all(getattr(row, key) == value for key, value in filters.items())
        ]
        if order_by:
            key = order_by.lstrip("-")
            rows.sort(key=lambda r: getattr(r, key), reverse=order_by.startswith("-"))
        return rows

    def _guarded_set(self, entity_id: int, field: str, new_value: Any) -> bool:
        entity = self._rows.get(entity_id)
        if entity is None:
            return False
        old_value = getattr(entity, field)
        setattr(entity, field, new_value)
        self._record_undo(lambda: setattr(entity, field, old_value))
        return True

    def increment(
        self,
        entity_id: int,
        field: str,
        amount: int = 1,
        cap_field: str | None = None,
    ) -> bool:
        entity = self._rows.get(entity_id)
        if entity is None:
            return False
        new_value = getattr(entity, field) + amount
        if cap_field is not None:
            cap = getattr(entity, cap_field)
            if cap is not None and new_value > cap:
                return False
        return self._guarded_set(entity_id, field, new_value)

    def decrement(
        self,
        entity_id: int,
        field: str,
        amount: int,
        floor: int = 0,
    ) -> bool:
        entity = self._rows.get(entity_id)
        if entity is None:
            return False
        new_value = getattr(entity, field) - amount
        if new_value < floor:
            return False
        return self._guarded_set(entity_id, field, new_value)
