"""
Celery application instance.

Redis is both broker and result backend. Maintenance jobs run on their own
queue so a long sweep never delays other work; beat triggers the sweep.
"""

from celery import Celery

from mission_control.core.config import settings

MAINTENANCE_QUEUE = "maintenance"
SWEEP_TASK = "mission_control.workers.maintenance_tasks.sweep_orphaned_rows"

celery_app = Celery(
    "mission_control",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["mission_control.workers.maintenance_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    # Sweeps are idempotent; redeliver on worker loss
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_queues={"default": {}, MAINTENANCE_QUEUE: {}},
    task_routes={"mission_control.workers.maintenance_tasks.*": {"queue": MAINTENANCE_QUEUE}},
    beat_schedule={
        "sweep-orphaned-rows": {
            "task": SWEEP_TASK,
            "schedule": float(settings.ORPHAN_SWEEP_INTERVAL_SECONDS),
            # A queued run expires after one interval
            "options": {"expires": float(settings.ORPHAN_SWEEP_INTERVAL_SECONDS)},
        },
    },
)
