"""Repository for employee directory lookups."""

from typing import Sequence

from sqlalchemy import select

from app.models.employee import Employee
from app.repositories.base import BaseRepository


class EmployeeRepository(BaseRepository[Employee]):
    """Repository for Employee database operations."""

    model = Employee

    async def get_by_role(self, role: str) -> Sequence[Employee]:
        """Get all employees holding a role.

        @param role - employee/manager/hr/admin
        @returns Matching employees
        """
        stmt = select(self.model).where(self.model.role == role).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()
