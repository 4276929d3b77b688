"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Lifespan manager — logging, table creation, startup data, shutdown
  2. CORS middleware — allows frontend origins to make cross-origin requests
  3. Exception handlers — maps domain errors to HTTP responses
  4. Router registration — mounts all API endpoint groups under /api/v1

Running locally:
    uvicorn app.main:app --reload

Importing this module fails if SECRET_KEY, CARD_ENCRYPTION_SECRET or
CARD_ENCRYPTION_SALT is missing, so a misconfigured process never starts.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import bootstrap
from app.config import settings
from app.database import AsyncSessionLocal, Base, engine
from app.exceptions import register_exception_handlers
from app.logging_config import setup_logging
from app.routers import auth, cards, transfers, users

logger = logging.getLogger(__name__)


async def run_startup_data() -> None:
    """Provision the master admin and demo data as configured, in one transaction."""
    if not settings.MASTER_ADMIN_PASSWORD and not settings.SEED_DEMO_DATA:
        return
    async with AsyncSessionLocal() as session:
        async with session.begin():
            if settings.SEED_DEMO_DATA:
                await bootstrap.seed_demo_data(session)
            if settings.MASTER_ADMIN_PASSWORD:
                await bootstrap.ensure_master_admin(
                    session,
                    settings.MASTER_ADMIN_USERNAME,
                    settings.MASTER_ADMIN_PASSWORD,
                )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Configures logging, creates all database tables if they don't exist,
      then provisions startup data.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    setup_logging(settings.LOG_LEVEL)
    if engine.url.get_backend_name() == "sqlite" and engine.url.database:
        Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await run_startup_data()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    # --- Shutdown ---
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bank card custody and same-owner card transfers with admin oversight",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

API_PREFIX = "/api/v1"

app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])
app.include_router(cards.router, prefix=f"{API_PREFIX}/cards", tags=["Cards"])
app.include_router(transfers.router, prefix=f"{API_PREFIX}/transfers", tags=["Transfers"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
