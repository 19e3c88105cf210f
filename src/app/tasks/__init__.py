"""Celery tasks for background processing.

This module provides async task execution for:
- Stale swap expiry
- Retrying failed swap executions
"""

from app.core.celery_app import celery_app

__all__ = ["celery_app"]
