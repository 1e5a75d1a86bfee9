"""
SQLAlchemy-backed repository.
"""

from typing import Any, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .base import ModelT, Repository


class SqlRepository(Repository[ModelT]):
    """Repository over a SQLAlchemy session. Writes are flushed, never committed."""

    def __init__(self, db: Session, model: type[ModelT]):
        super().__init__(model)
        self._db = db

    def get(self, entity_id: int) -> ModelT | None:
        return self._db.get(self._model, entity_id)

    def create(self, **values: Any) -> ModelT:
        entity = self._model(**values)
        self._db.add(entity)
        self._db.flush()
        return entity

    def update(self, entity: ModelT, **values: Any) -> ModelT:
        for key, value in values.items():
            setattr(entity, key, value)
        self._db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self._db.delete(entity)
        self._db.flush()

    def find_by(self, order_by: str | None = None, **filters: Any) -> Sequence[ModelT]:
        query = select(self._model)
        for key, value in filters.items():
            column = getattr(self._model, key)
            if value is None:
                query = query.where(column.is_(None))
            else:
                query = query.where(column == value)

        if order_by:
            descending = order_by.startswith("-")
            column = getattr(self._model, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column.asc())
        query = query.order_by(self._model.id)

        return self._db.execute(query).scalars().all()

    def _guarded_update(self, entity_id: int, field: str, new_value: Any, *guards: Any) -> bool:
        self._db.flush()
        column = getattr(self._model, field)
        stmt = (
            update(self._model)
            .where(self._model.id == entity_id, *guards)
            .values({column: new_value})
            .execution_options(synchronize_session=False)
        )
        result = self._db.execute(stmt)
        if result.rowcount != 1:
            return False

        # Loaded instances still hold the pre-update value
        entity = self._db.get(self._model, entity_id)
        if entity is not None:
            self._db.refresh(entity, [field])
        return True

    def increment(
        self,
        entity_id: int,
        field: str,
        amount: int = 1,
        cap_field: str | None = None,
    ) -> bool:
        column = getattr(self._model, field)
        guards = []
        if cap_field is not None:
            cap = getattr(self._model, cap_field)
            guards.append(cap.is_(None) | (column + amount <= cap))
        return self._guarded_update(entity_id, field, column + amount, *guards)

    def decrement(
        self,
        entity_id: int,
        field: str,
        amount: int,
        floor: int = 0,
    ) -> bool:
        column = getattr(self._model, field)
        return self._guarded_update(entity_id, field, column - amount, column - amount >= floor)
