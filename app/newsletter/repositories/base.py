from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from newsletter.core.errors import ConstraintViolation, DatabaseError, StoreUnavailable

ModelType = TypeVar("ModelType", bound=DeclarativeBase)


def _is_connection_failure(exc: BaseException) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, OSError)


@contextmanager
def translate_store_errors(action: str):
    """Re-raise driver/ORM failures as the store's own error types."""
    try:
        yield
    except IntegrityError as e:
        raise ConstraintViolation(f"Constraint violated while trying to {action}") from e
    except (SQLAlchemyError, OSError) as e:
        if _is_connection_failure(e):
            raise StoreUnavailable(f"Database unavailable while trying to {action}") from e
        raise DatabaseError(f"Database error while trying to {action}") from e


class BaseRepository(Generic[ModelType], ABC):
    """
    Base repository class providing common lookups.
    """

    def __init__(self, db: AsyncSession, model: Type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a single record by ID."""
        with translate_store_errors(f"load {self.model.__name__}"):
            result = await self.db.execute(select(self.model).filter(self.model.id == id))
            return result.scalar_one_or_none()

    async def create(self, obj_data: Dict[str, Any]) -> ModelType:
        """Create a new record inside the current transaction."""
        obj = self.model(**obj_data)
        self.db.add(obj)
        with translate_store_errors(f"insert {self.model.__name__}"):
            await self.db.flush()
        return obj

    async def count(self) -> int:
        """Count total records."""
        with translate_store_errors(f"count {self.model.__name__}"):
            result = await self.db.execute(
                select(func.count()).select_from(self.model)
            )
            return result.scalar()
