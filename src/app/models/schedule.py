"""Schedule assignment model."""

from datetime import date
from typing import Optional

from sqlalchemy import BigInteger, Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class ScheduleAssignment(Base, TimestampMixin):
    """One employee working one shift on one day."""

    __tablename__ = "schedule_assignments"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    shift_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Set when the assignment was produced by an executed swap
    swap_request_id: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_assignment_employee_day"),
    )
