# reportable/core/base_dao.py
"""Generic base DAO for common database operations."""

from abc import ABC
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import and_, desc, select
from sqlalchemy.orm import Session

from reportable.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType], ABC):
    """Generic DAO for common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _filtered(self, query, filters):
        conditions = [
            getattr(self.model, key) == value
            for key, value in filters.items()
            if hasattr(self.model, key) and value is not None
        ]
        if conditions:
            query = query.where(and_(*conditions))
        return query

    def get_all(self, skip: int = 0, limit: int = 100, **filters) -> List[ModelType]:
        """Get records, newest first, with optional equality filtering."""
        query = self._filtered(select(self.model), filters)
        query = query.order_by(desc(self.model.id)).offset(skip).limit(limit)
        result = self.db.execute(query)
        return list(result.scalars().all())

    def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get record by ID."""
        return self.db.get(self.model, id)

    def create(self, **data) -> ModelType:
        """Create new record."""
        db_obj = self.model(**data)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def save(self, db_obj: ModelType) -> ModelType:
        """Persist changes already applied to a tracked record."""
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj
