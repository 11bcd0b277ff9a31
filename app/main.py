"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, error handlers and routes,
and composes the shared block store used by the service, guard and filter.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.error_handlers import register_error_handlers
from app.api.v1 import blocks, users
from app.config import settings
from app.core.cache import cache
from app.core.database import AsyncSessionLocal, engine, get_db
from app.core.logging_config import setup_logging
from app.core.rate_limit import limiter
from app.core.users_client import UserPlatformClient
from app.dependencies import get_user_platform
from app.repositories.block_repo import BlockRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(settings.log_level, settings.log_format)
    await cache.connect()
    logger.info(f"Block relationship server started ({settings.environment})")
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="Block Relationship Server",
    description="User blocking, access guard and response filtering for the platform",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# One store instance shared by the block service, access guard and response filter
app.state.block_store = BlockRepository(AsyncSessionLocal)

# Rate limiter state and error handlers
app.state.limiter = limiter
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check Endpoints
@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "environment": settings.environment,
        }
    )


@app.get("/health/ready", tags=["Health"])
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    """
    Readiness check endpoint.
    Verifies database, cache, and user platform connectivity.
    """
    checks = {
        "database": False,
        "redis": "not_configured" if not settings.redis_url else False,
        "user_platform": False,
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")

    if settings.redis_url:
        try:
            checks["redis"] = await cache.ping()
        except Exception as e:
            logger.warning(f"Readiness: redis check failed: {e}")

    checks["user_platform"] = await platform.health_check()

    # Consider redis as healthy if not configured
    redis_ok = checks["redis"] == "not_configured" or checks["redis"] is True
    all_healthy = checks["database"] and redis_ok and checks["user_platform"]

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
        }
    )


app.include_router(
    blocks.router,
    prefix="/api/v1/blocks",
    tags=["Blocks"]
)

app.include_router(
    users.router,
    prefix="/api/v1/users",
    tags=["Users"]
)
