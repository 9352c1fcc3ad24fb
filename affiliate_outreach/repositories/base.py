"""
Base repository with generic CRUD operations.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional, List, Any

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from affiliate_outreach.core.exceptions import PersistenceFailureError

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def commit(self, operation: str = "write") -> None:
        """Commit the session, rolling back and raising PersistenceFailureError on error."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailureError(operation, str(e)) from e

    async def refresh(self, db_obj: ModelType, operation: str = "refresh") -> None:
        """Reload a row after commit; database errors become PersistenceFailureError."""
        try:
            await self.session.refresh(db_obj)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailureError(operation, str(e)) from e

    async def create(self, obj_in: dict) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        await self.commit(f"create {self.model.__name__}")
        await self.refresh(db_obj, f"create {self.model.__name__}")
        return db_obj

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a record by a specific field."""
        query = select(self.model).where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        return result.first()

    async def list(
        self,
        filters: Optional[dict] = None,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> List[ModelType]:
        """List all records with optional filters."""
        query = select(self.model)

        # Apply additional filters
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)

        # Apply ordering
        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        result = await self.session.exec(query)
        return result.all()

    async def count(self, filters: Optional[dict] = None) -> int:
        """Count records."""
        query = select(func.count()).select_from(self.model)

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)

        result = await self.session.exec(query)
        return result.one()
