import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from app.core.config import settings
from app.api.api_v1.api import api_router
from app.db.init_db import init_db
from app.core.monitoring import configure_logging, init_sentry
from app.core.logging_middleware import LoggingMiddleware, unhandled_exception_handler
import logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SHOUT API",
    description="Local marketplace for time-boxed business offers",
    version="1.0.0",
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
)

# Initialize monitoring
init_sentry()

# Add middleware
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS or ["*"],
    allow_credentials=bool(settings.BACKEND_CORS_ORIGINS),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting SHOUT API in {settings.ENVIRONMENT} environment")
    init_db()


@app.get("/")
async def root():
    return {
        "message": "SHOUT API",
        "version": "1.0.0",
        "status": "Running",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }
