import logging

from gymstore.db.session import SessionLocal
from gymstore.services.order_service import reconcile_stale_pending_orders
from gymstore.services.payments import resolve_gateway
from gymstore.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="orders.reconcile_stale_pending")
def reconcile_stale_pending_orders_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        result = reconcile_stale_pending_orders(db=db, resolve_gateway=resolve_gateway)
    finally:
        db.close()
    logger.info(
        "stale_orders_reconciled promoted=%s deleted=%s skipped=%s",
        result["promoted"],
        result["deleted"],
        result["skipped"],
    )
    return result
