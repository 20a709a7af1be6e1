# tutor_scheduling/repositories/base_repository.py
"""
Generic data access shared by the slot and booking repositories.

Repositories flush but never commit; the calling service owns the
transaction. Driver errors are re-raised as RepositoryException with the
original error chained as ``__cause__``, which is how the booking service
recognizes a unique-index violation.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Lookup of {self.model.__name__} {id} failed: {str(e)}")
            raise RepositoryException(f"Failed to load {self.model.__name__}: {str(e)}") from e

    def create(self, **fields: Any) -> T:
        """Add one row and flush so its id and defaults are populated."""
        entity = self.model(**fields)
        try:
            self.db.add(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Insert into {self.model.__name__} failed: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e
        return entity

    def bulk_create(self, rows: List[Dict[str, Any]]) -> List[T]:
        entities = [self.model(**fields) for fields in rows]
        try:
            self.db.add_all(entities)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Bulk insert into {self.model.__name__} failed: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__} rows: {str(e)}") from e
        return entities

    def flush(self) -> None:
        self.db.flush()

    def delete(self, id: str) -> bool:
        """Delete by primary key. False when the row does not exist."""
        entity = self.get_by_id(id)
        if entity is None:
            return False
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Delete of {self.model.__name__} {id} failed: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to delete {self.model.__name__}: {str(e)}") from e
        return True

    # Helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"{self.model.__name__} query failed: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}") from e
