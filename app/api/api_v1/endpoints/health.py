import logging
from datetime import datetime
from typing import Any

import redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api import deps
from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def check_redis() -> str:
    try:
        client = redis.from_url(settings.REDIS_URL, socket_connect_timeout=1, socket_timeout=1)
        client.ping()
        return "healthy"
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return "unhealthy"


@router.get("/detailed")
def detailed_health_check(db: Session = Depends(deps.get_db)) -> Any:
    """Dependency health for load balancers and dashboards"""
    checks = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"

    checks["redis"] = check_redis()

    if checks["database"] != "healthy":
        overall = "unhealthy"
    elif checks["redis"] != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "checks": checks,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.utcnow().isoformat(),
    }
