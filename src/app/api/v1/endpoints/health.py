"""Health API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.infrastructure.database.session import AsyncSessionLocal

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/live")
async def liveness_check() -> dict[str, Any]:
    """Kubernetes liveness probe endpoint.

    Returns:
        Simple alive status
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check() -> dict[str, Any]:
    """Kubernetes readiness probe endpoint.

    Returns:
        Ready status once the database answers
    """
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(503, "Database unavailable") from e

    return {"status": "ready", "database": "ok"}
