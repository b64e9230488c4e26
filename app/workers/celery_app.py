from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "shout",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=["app.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    beat_schedule={
        "refresh-offer-statuses": {
            "task": "app.workers.tasks.refresh_offer_statuses",
            "schedule": float(settings.OFFER_SCHEDULER_INTERVAL_SECONDS),
            # A missed tick is covered by the next one
            "options": {"expires": float(settings.OFFER_SCHEDULER_INTERVAL_SECONDS)},
        },
    },
)
