"""Base repository shared by the swap, directory and schedule repositories."""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic async repository over one mapped model.

    Repositories never commit; the caller owns the transaction, so a
    status change, its history entry and any schedule mutation land
    together or not at all.

    Example:
        repo = SwapRequestRepository(session)
        swap = await repo.get_by_id("3f2a...")
        approved = await repo.get_by_filter(status="approved")
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with async session.

        @param session - SQLAlchemy async session
        """
        self.session = session

    def _filtered(self, **filters: Any) -> Select:
        stmt = select(self.model)
        for key, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        return stmt

    async def get_by_id(self, id: Any, *, populate_existing: bool = False) -> ModelType | None:
        """Get record by primary key.

        @param id - Primary key value
        @param populate_existing - Reload an instance the session already holds
        @returns Model instance or None if not found
        """
        return await self.session.get(
            self.model, id, populate_existing=populate_existing
        )

    async def get_by_filter(
        self,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by: Any | None = None,
        **filters: Any,
    ) -> Sequence[ModelType]:
        """Get records whose columns equal the given values.

        @param skip - Number of records to skip
        @param limit - Maximum records to return
        @param order_by - Column to order by
        @param filters - column=value pairs; None values are ignored
        @returns Matching model instances
        """
        stmt = self._filtered(**filters)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.session.execute(stmt.offset(skip).limit(limit))
        return result.scalars().all()

    async def create(self, obj_in: dict[str, Any] | ModelType) -> ModelType:
        """Insert a record and flush it so defaults are populated.

        @param obj_in - Column values or a model instance
        @returns Created model instance
        """
        db_obj = self.model(**obj_in) if isinstance(obj_in, dict) else obj_in
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj
