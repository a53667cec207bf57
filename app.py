"""
Media Library API: signed media links, uploads and site branding.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

import config
from core.logger import logger
from database.connection import Database
from middleware.security import (
    RateLimitMiddleware, SecurityHeadersMiddleware,
    setup_cors, setup_trusted_hosts
)
from routers.media import router as media_router
from routers.site import router as site_router
from storage.signing import SigningService


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for FastAPI app.
    Initialize the signing service and the database on startup.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {config.APP_NAME}...")
    logger.info("=" * 60)

    storage = config.storage_config()
    config.signing_service = SigningService(storage)
    if storage.is_configured:
        logger.info(f"Object storage configured (bucket: {storage.bucket}, endpoint: {storage.endpoint_url})")
    else:
        missing = ", ".join(storage.missing_settings)
        logger.warning(f"Object storage not configured (missing: {missing}) - download links will be empty")

    # Media links do not need the database; only branding does
    try:
        config.db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW
        )
        config.db.create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        config.db = None

    logger.info(f"Server ready! Environment: {config.ENVIRONMENT}")

    yield

    logger.info("Shutting down...")
    if config.db:
        config.db.dispose()
        logger.info("Database connections closed")


app = FastAPI(
    title=config.APP_NAME,
    description="Media access API for the publishing site: signed links, uploads, branding",
    version=config.APP_VERSION,
    lifespan=lifespan
)

# Setup security middleware
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=config.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=config.RATE_LIMIT_PER_HOUR
)
setup_cors(app, config.CORS_ORIGINS)
if config.ENVIRONMENT == "production":
    setup_trusted_hosts(app, config.TRUSTED_HOSTS)

# Include routers
app.include_router(media_router)
app.include_router(site_router)


@app.get("/")
async def root():
    """Root endpoint with API information. Public endpoint."""
    storage_ready = bool(config.signing_service and config.signing_service.is_configured)
    return {
        "message": config.APP_NAME,
        "version": config.APP_VERSION,
        "environment": config.ENVIRONMENT,
        "endpoints": {
            "download": "GET /api/download?key=<key>[&format=json]",
            "upload": "POST /api/upload",
            "branding": "GET /api/site/branding",
        },
        "docs": "/docs",
        "storage_configured": storage_ready,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring. Public endpoint."""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "checks": {}
    }

    try:
        if config.db is None:
            health_status["checks"]["database"] = {"status": "error", "error": "not initialized"}
            health_status["status"] = "degraded"
        else:
            with config.db.get_session() as db:
                db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["checks"]["database"] = {"status": "error", "error": str(e)}
        health_status["status"] = "degraded"

    signing_service = config.signing_service
    if signing_service is not None and signing_service.is_configured:
        try:
            signing_service.get_client().check_bucket()
            health_status["checks"]["storage"] = {
                "status": "ok",
                "bucket": signing_service.config.bucket,
            }
        except Exception as e:
            health_status["checks"]["storage"] = {
                "status": "error",
                "bucket": signing_service.config.bucket,
                "error": str(e),
            }
            health_status["status"] = "degraded"
    else:
        # Pages still render with placeholders, so this is degraded rather than down
        health_status["checks"]["storage"] = {
            "status": "disabled",
            "message": "Object storage credentials are not set; media links resolve to null.",
        }
        health_status["status"] = "degraded"

    return health_status


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
