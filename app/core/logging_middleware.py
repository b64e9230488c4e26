import logging
import time
import uuid
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.monitoring import metrics

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(__name__)


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
    }


def _route_label(request: Request) -> str:
    # Path templates keep the metric keys bounded (/offers/{offer_id}, not /offers/42)
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs how it went."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        context = _request_context(request)
        logger.info(
            "Request started",
            extra={**context, "client_host": request.client.host if request.client else None},
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={**context, "duration_ms": (time.perf_counter() - started) * 1000, "error": str(e)},
                exc_info=True,
            )
            metrics.increment("http.requests", tags={"status": 500})
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Request completed",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        metrics.increment("http.requests", tags={"status": response.status_code})
        metrics.gauge("http.request.duration_ms", duration_ms, tags={"route": _route_label(request)})

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with the request id and hide internals."""
    context = _request_context(request)
    logger.error(
        f"Unhandled error on {context['method']} {context['path']}: {exc}",
        extra=context,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": context["request_id"]},
    )
