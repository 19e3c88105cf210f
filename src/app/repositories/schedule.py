"""Repository for schedule assignments."""

from datetime import date

from sqlalchemy import and_, select

from app.models.schedule import ScheduleAssignment
from app.repositories.base import BaseRepository


class ScheduleAssignmentRepository(BaseRepository[ScheduleAssignment]):
    """Repository for ScheduleAssignment database operations."""

    model = ScheduleAssignment

    async def get_for_day(
        self, employee_id: str, work_date: date
    ) -> ScheduleAssignment | None:
        """Get an employee's assignment on a given day.

        @param employee_id - Employee ID
        @param work_date - Day of the shift
        @returns Assignment or None
        """
        stmt = select(self.model).where(
            and_(
                self.model.employee_id == employee_id,
                self.model.work_date == work_date,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def is_swap_applied(self, swap_request_id: str) -> bool:
        """Check whether a swap already rewrote any assignment.

        @param swap_request_id - Swap request ID used as idempotency key
        @returns True if applied
        """
        return await self.exists(swap_request_id=swap_request_id)
