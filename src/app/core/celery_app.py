"""Celery application configuration.

Provides task queue infrastructure with Redis broker for:
- Stale swap expiry (scheduled)
- Retrying swaps whose schedule update failed (scheduled)
"""

from celery import Celery
from kombu import Exchange, Queue

from app.core.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "shiftswap",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks.swap_tasks"],
)

default_exchange = Exchange("default", type="direct")

celery_app.conf.task_queues = (
    Queue("swaps", exchange=default_exchange, routing_key="swaps"),
    Queue("normal", exchange=default_exchange, routing_key="normal"),
)

# Default queue
celery_app.conf.task_default_queue = "normal"
celery_app.conf.task_default_exchange = "default"
celery_app.conf.task_default_routing_key = "normal"

# Task routing
celery_app.conf.task_routes = {
    "app.tasks.swap_tasks.*": {"queue": "swaps"},
}

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,  # Requeue if worker dies
    task_track_started=True,

    # Result backend
    result_expires=3600,

    # Worker configuration
    worker_prefetch_multiplier=1,  # sweeps are long, take one at a time
    worker_max_tasks_per_child=1000,

    # Retry configuration
    task_default_retry_delay=60,
    task_max_retries=3,

    # Logging
    worker_hijack_root_logger=False,

    # Broker settings
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,

    # Beat scheduler (for periodic tasks)
    beat_scheduler="celery.beat:PersistentScheduler",
    beat_schedule_filename=".celery-beat-schedule",
)

# Celery Beat schedule (periodic tasks)
celery_app.conf.beat_schedule = {
    "expire-stale-swaps": {
        "task": "app.tasks.swap_tasks.expire_stale_swaps",
        "schedule": settings.swap_expiry_sweep_seconds,  # every 5 minutes by default
        "options": {"queue": "swaps"},
    },
    "retry-stuck-swap-executions": {
        "task": "app.tasks.swap_tasks.retry_stuck_executions",
        "schedule": 900.0,  # every 15 minutes
        "options": {"queue": "swaps"},
    },
}
