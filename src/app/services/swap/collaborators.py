"""Interfaces the swap engine consumes, with database-backed defaults."""

import logging
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.employee import EmployeeRepository
from app.repositories.schedule import ScheduleAssignmentRepository
from app.services.swap.schemas import Role, ShiftRef

logger = logging.getLogger(__name__)


class ScheduleError(Exception):
    """Schedule mutation could not be applied."""


class Directory(Protocol):
    """Employee directory lookups."""

    async def role_of(self, actor_id: str) -> Role | None: ...

    async def department_of(self, actor_id: str) -> str | None: ...

    async def manager_of(self, actor_id: str) -> str | None: ...

    async def exists(self, actor_id: str) -> bool: ...

    async def members_with_role(self, role: Role) -> list[str]: ...


class ScheduleStore(Protocol):
    """Schedule assignment store mutated when a swap completes.

    apply_swap must be safe to call again for the same swap_id.
    """

    async def apply_swap(
        self,
        swap_id: str,
        requestor_shift: ShiftRef,
        target_shift: ShiftRef,
        *,
        one_way: bool = False,
    ) -> None: ...


class Notifier(Protocol):
    """Fire-and-forget message delivery."""

    async def notify(self, user_id: str, message: str) -> None: ...


ScheduleStoreFactory = Callable[[AsyncSession], ScheduleStore]


class EmployeeDirectory:
    """Directory backed by the employees table."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        """Initialize directory.

        @param session_factory - Factory for read sessions
        """
        self._session_factory = session_factory

    async def _get(self, actor_id: str):
        async with self._session_factory() as session:
            return await EmployeeRepository(session).get_by_id(actor_id)

    async def role_of(self, actor_id: str) -> Role | None:
        employee = await self._get(actor_id)
        if employee is None:
            return None
        return Role(employee.role)

    async def department_of(self, actor_id: str) -> str | None:
        employee = await self._get(actor_id)
        return employee.department if employee else None

    async def manager_of(self, actor_id: str) -> str | None:
        employee = await self._get(actor_id)
        return employee.manager_id if employee else None

    async def exists(self, actor_id: str) -> bool:
        return await self._get(actor_id) is not None

    async def members_with_role(self, role: Role) -> list[str]:
        async with self._session_factory() as session:
            employees = await EmployeeRepository(session).get_by_role(role.value)
            return [e.id for e in employees]


class SqlScheduleStore:
    """Schedule store over schedule_assignments, sharing the caller's session.

    Nothing is committed here, so the mutation lands in the same
    transaction as the swap's status change.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ScheduleAssignmentRepository(session)

    async def apply_swap(
        self,
        swap_id: str,
        requestor_shift: ShiftRef,
        target_shift: ShiftRef,
        *,
        one_way: bool = False,
    ) -> None:
        """Rewrite assignments for an approved swap.

        @param swap_id - Swap request ID (idempotency key)
        @param requestor_shift - Shift the requestor gives away
        @param target_shift - Shift the requestor takes in return; for one-way
                              coverage only its employee_id is used
        @param one_way - Target covers the requestor without giving a shift back
        @raises ScheduleError if an assignment is missing or would collide
        """
        if await self.repo.is_swap_applied(swap_id):
            logger.info(f"Schedule already updated for swap {swap_id}, skipping")
            return

        mine = await self.repo.get_for_day(
            requestor_shift.employee_id, requestor_shift.work_date
        )
        if mine is None:
            raise ScheduleError(
                f"No assignment for {requestor_shift.employee_id} "
                f"on {requestor_shift.work_date}"
            )

        if one_way:
            mine.employee_id = target_shift.employee_id
            mine.swap_request_id = swap_id
        else:
            theirs = await self.repo.get_for_day(
                target_shift.employee_id, target_shift.work_date
            )
            if theirs is None:
                raise ScheduleError(
                    f"No assignment for {target_shift.employee_id} "
                    f"on {target_shift.work_date}"
                )
            if mine.work_date == theirs.work_date:
                # Same day: trade shifts, keep (employee, day) pairs unique
                mine.shift_id, theirs.shift_id = theirs.shift_id, mine.shift_id
            else:
                mine.employee_id, theirs.employee_id = (
                    theirs.employee_id,
                    mine.employee_id,
                )
            mine.swap_request_id = swap_id
            theirs.swap_request_id = swap_id

        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ScheduleError(f"Assignment collision for swap {swap_id}: {e.orig}") from e

        logger.info(f"Schedule updated for swap {swap_id}")
