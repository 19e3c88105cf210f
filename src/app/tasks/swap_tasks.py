"""Shift swap background tasks.

- Expiry sweep for swaps nobody answered
- Retry of swaps left in approved after a failed schedule update
"""

import logging
from typing import Any

from app.services.swap import get_swap_service
from app.tasks.base import async_task

logger = logging.getLogger(__name__)


@async_task(name="app.tasks.swap_tasks.expire_stale_swaps", queue="swaps")
async def expire_stale_swaps(self, limit: int = 500) -> dict[str, Any]:
    """Expire every pending_target swap past its deadline.

    Scheduled task; runs every swap_expiry_sweep_seconds.

    @param limit - Maximum swaps per run
    @returns Sweep results
    """
    expired = await get_swap_service().expire_stale(limit=limit)
    logger.info("Stale swap sweep finished", extra={"expired": expired})
    return {"status": "success", "expired": expired}


@async_task(name="app.tasks.swap_tasks.retry_stuck_executions", queue="swaps")
async def retry_stuck_executions(self, limit: int = 100) -> dict[str, Any]:
    """Retry the schedule update of approved swaps.

    @param limit - Maximum swaps per run
    @returns Retry results
    """
    result = await get_swap_service().retry_stuck_executions(limit=limit)
    if result["failed"]:
        logger.warning("Some approved swaps still fail to execute", extra=result)
    return {"status": "success", **result}
