"""Idle Vault API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map IdleVaultError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and economy rules initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Economy rules loaded in lifespan: a broken cost file stops startup instead
      of failing the first upgrade request
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import idle_vault.infrastructure.database as database
from idle_vault.api.dependencies import init_economy
from idle_vault.api.error_handlers import register_error_handlers
from idle_vault.api.routes import accounts, health
from idle_vault.config import get_settings
from idle_vault.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    rules = init_economy()
    logger.info(
        f"Idle Vault API started ({len(rules.capacities)} vault tiers)",
    )
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("Idle Vault API shutting down")


app = FastAPI(
    title="Idle Vault API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(accounts.router)

register_error_handlers(app)

# Static files — serves the web client build when present
# Mounted AFTER API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
