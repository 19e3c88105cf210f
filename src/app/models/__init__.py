"""Database models for the shift swap backend."""

from app.models.base import Base, TimestampMixin
from app.models.employee import Employee
from app.models.schedule import ScheduleAssignment
from app.models.swap import SwapHistory, SwapRequest

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Directory and schedule
    "Employee",
    "ScheduleAssignment",
    # Swap workflow
    "SwapRequest",
    "SwapHistory",
]
