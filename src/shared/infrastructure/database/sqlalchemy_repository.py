"""
SQLAlchemy Implementation of Generic Repository
Concrete async repository using SQLAlchemy 2.x, with the soft-delete
finder convention shared by every clinical table.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.shared.database import Base
from src.shared.logging import get_logger

logger = get_logger(__name__)

TEntity = TypeVar("TEntity")
TModel = TypeVar("TModel", bound=Base)

# Never copied from an entity onto an existing row.
_IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "updated_at"})


class SQLAlchemyRepository(Generic[TEntity, TModel]):
    """
    Generic async SQLAlchemy repository.

    Entities are plain dataclasses whose field names match the ORM columns;
    subclasses override `_to_entity` / `_to_model` only where they diverge.

    Soft-delete convention: when the model has an `is_active` column, every
    finder returns active rows only unless `include_inactive=True` is passed.
    """

    model_class: Type[TModel]
    entity_class: Type[TEntity]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ---------- mapping ----------

    @property
    def _columns(self) -> frozenset:
        return frozenset(c.key for c in self.model_class.__table__.columns)

    @property
    def _soft_deletes(self) -> bool:
        return "is_active" in self._columns

    def _to_entity(self, model: TModel) -> TEntity:
        values = {f.name: getattr(model, f.name) for f in dataclasses.fields(self.entity_class) if f.name in self._columns}
        return self.entity_class(**values)

    def _column_values(self, entity: TEntity) -> Dict[str, Any]:
        return {
            f.name: getattr(entity, f.name)
            for f in dataclasses.fields(entity)
            if f.name in self._columns
        }

    def _to_model(self, entity: TEntity) -> TModel:
        values = {k: v for k, v in self._column_values(entity).items() if not (k in _IMMUTABLE_COLUMNS and v is None)}
        return self.model_class(**values)

    # ---------- queries ----------

    def _select(self, *, include_inactive: bool = False) -> Select:
        stmt = select(self.model_class)
        if self._soft_deletes and not include_inactive:
            stmt = stmt.where(self.model_class.is_active.is_(True))
        return stmt

    async def _first(self, stmt: Select) -> Optional[TEntity]:
        row = (await self.session.execute(stmt.limit(1))).scalars().first()
        return self._to_entity(row) if row is not None else None

    async def _all(self, stmt: Select) -> List[TEntity]:
        rows = (await self.session.execute(stmt)).scalars().all()
        return [self._to_entity(r) for r in rows]

    async def get(self, entity_id: int, *, include_inactive: bool = False) -> Optional[TEntity]:
        return await self._first(self._select(include_inactive=include_inactive).where(self.model_class.id == entity_id))

    # ---------- writes ----------

    async def add(self, entity: TEntity) -> TEntity:
        """Insert and flush so database defaults and the id come back on the entity."""
        model = self._to_model(entity)
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        logger.debug("repository.added", model=self.model_class.__name__, id=model.id)
        return self._to_entity(model)

    async def add_all(self, entities: List[TEntity]) -> List[TEntity]:
        models = [self._to_model(e) for e in entities]
        self.session.add_all(models)
        await self.session.flush()
        for m in models:
            await self.session.refresh(m)
        return [self._to_entity(m) for m in models]

    async def update(self, entity: TEntity) -> TEntity:
        """Copy the entity's mutable fields onto its row."""
        entity_id = getattr(entity, "id")
        model = await self.session.get(self.model_class, entity_id)
        if model is None:
            raise LookupError(f"{self.model_class.__name__} {entity_id} does not exist")
        for key, value in self._column_values(entity).items():
            if key not in _IMMUTABLE_COLUMNS:
                setattr(model, key, value)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def soft_delete(self, entity_id: int) -> bool:
        """Flip is_active; returns False when the row is missing or already inactive."""
        model = await self.session.get(self.model_class, entity_id)
        if model is None or not model.is_active:
            return False
        model.is_active = False
        await self.session.flush()
        logger.info("repository.soft_deleted", model=self.model_class.__name__, id=entity_id)
        return True
