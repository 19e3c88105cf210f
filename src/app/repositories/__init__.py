"""Repository layer for database operations.

This module provides async repository implementations using SQLAlchemy 2.x.
All repositories follow the Repository pattern and leave commits to callers.
"""

from app.repositories.base import BaseRepository
from app.repositories.employee import EmployeeRepository
from app.repositories.schedule import ScheduleAssignmentRepository
from app.repositories.swap import SwapHistoryRepository, SwapRequestRepository

__all__ = [
    "BaseRepository",
    "EmployeeRepository",
    "ScheduleAssignmentRepository",
    "SwapRequestRepository",
    "SwapHistoryRepository",
]
