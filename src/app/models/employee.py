"""Employee directory model."""

from typing import Optional

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee directory table."""

    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, index=True
    )
    role: Mapped[str] = mapped_column(String(20), default="employee", nullable=False)
    manager_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('employee', 'manager', 'hr', 'admin')",
            name="employee_role",
        ),
    )
