import logging
from typing import Dict

from app.core.monitoring import configure_logging, init_sentry
from app.services import offer_scheduler
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)

configure_logging()
init_sentry()


@celery_app.task(name="app.workers.tasks.refresh_offer_statuses")
def refresh_offer_statuses() -> Dict[str, int]:
    """Advance scheduled/active offers and lapse stale redemption codes."""
    return offer_scheduler.refresh_offer_statuses()
