"""
FindShelta - Main FastAPI Application
Real-estate marketplace for Nigerian property listings
"""

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
import logging
import os

from app.config.settings import (
    ADMIN_EMAIL,
    ADMIN_NAME,
    ADMIN_PASSWORD,
    CORS_ORIGINS,
    DEBUG,
    LOG_LEVEL,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Import API routers
from app.api import auth, agents, listings, favorites, property_alerts, comparison, notifications
from app.api.admin import dashboard, moderation
from app.services.admin_account import ensure_admin_user
from app.utils.database import engine, create_tables, get_db, get_async_session

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    await create_tables()
    async with get_async_session() as db:
        await ensure_admin_user(db, ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME)
    logger.info("FindShelta API started")
    yield
    # Shutdown
    await engine.dispose()

# Initialize FastAPI app
app = FastAPI(
    title="FindShelta",
    description="Property listings, agent subscriptions and admin moderation",
    version="1.0.0",
    docs_url="/api/docs" if DEBUG else None,
    lifespan=lifespan
)

# Middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API Routes
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(agents.router, prefix="/api/v1/agents", tags=["agents"])
app.include_router(listings.router, prefix="/api/v1/listings", tags=["listings"])
app.include_router(favorites.router, prefix="/api/v1/favorites", tags=["favorites"])
app.include_router(property_alerts.router, prefix="/api/v1/alerts", tags=["alerts"])
app.include_router(comparison.router, prefix="/api/v1/comparison", tags=["comparison"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["notifications"])

# Admin Routes
app.include_router(dashboard.router, prefix="/admin", tags=["admin-dashboard"])
app.include_router(moderation.router, prefix="/admin", tags=["admin-moderation"])

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "findshelta-api"}

@app.get("/api/v1/health")
async def api_health(db: AsyncSession = Depends(get_db)):
    """API health check, including the database"""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"
    return {"status": "healthy" if database == "ok" else "degraded", "database": database, "version": "1.0.0"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8011")),
        reload=DEBUG
    )
