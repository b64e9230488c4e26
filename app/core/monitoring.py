import asyncio
import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def init_sentry() -> bool:
    """Start Sentry when a DSN is configured; returns whether it was started."""
    if not settings.SENTRY_DSN:
        return False
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=settings.GIT_COMMIT_SHA,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            RedisIntegration(),
            CeleryIntegration(monitor_beat_tasks=True),
        ],
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    logger.info(f"Sentry enabled for {settings.ENVIRONMENT}")
    return True


class MetricsCollector:
    """In-process counters and gauges keyed by name plus sorted tags."""

    def __init__(self):
        self.metrics: Dict[str, float] = {}

    @staticmethod
    def _key(metric: str, tags: Optional[Dict[str, Any]]) -> str:
        if not tags:
            return metric
        labels = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{metric}[{labels}]"

    def increment(self, metric: str, value: int = 1, tags: Optional[Dict[str, Any]] = None):
        key = self._key(metric, tags)
        self.metrics[key] = self.metrics.get(key, 0) + value

    def gauge(self, metric: str, value: float, tags: Optional[Dict[str, Any]] = None):
        self.metrics[self._key(metric, tags)] = value

    def get(self, metric: str, tags: Optional[Dict[str, Any]] = None, default=0):
        return self.metrics.get(self._key(metric, tags), default)

    def snapshot(self) -> Dict[str, float]:
        return dict(self.metrics)

    def reset(self) -> None:
        self.metrics.clear()

    def _record_duration(self, metric: str, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.gauge(f"{metric}.duration_ms", elapsed_ms)
        logger.debug(f"{metric} took {elapsed_ms:.2f}ms")

    def timing(self, metric: str):
        """Decorator recording how long each call of a sync or async function takes."""
        def decorator(func: Callable):
            if asyncio.iscoroutinefunction(func):
                @wraps(func)
                async def async_timed(*args, **kwargs):
                    started = time.perf_counter()
                    try:
                        return await func(*args, **kwargs)
                    finally:
                        self._record_duration(metric, started)
                return async_timed

            @wraps(func)
            def timed(*args, **kwargs):
                started = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    self._record_duration(metric, started)
            return timed
        return decorator


metrics = MetricsCollector()
