from datetime import timedelta
import os

from celery import Celery

from gymstore.core.config import settings

broker_url = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/1")

celery_app = Celery(
    "gymstore",
    broker=broker_url,
    backend=result_backend,
    include=["gymstore.tasks.orders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "reconcile-stale-pending-orders": {
            "task": "orders.reconcile_stale_pending",
            "schedule": timedelta(minutes=settings.celery_reconcile_interval_minutes),
        },
    },
)
