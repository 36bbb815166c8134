"""
Main FastAPI application.

Administrative API over the resolution engine. The store is created in the
lifespan unless one was injected (tests pass their own in-memory store).
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from relgraph.core.config import Settings, settings as default_settings
from relgraph.db.session import Store
from relgraph.errors import AppError, app_error_handler
from relgraph.routers import companies, contacts, emails, enrichment, health, meetings

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    - On startup: configure logging and open the store
    - On shutdown: dispose the store if we opened it
    """
    config: Settings = app.state.settings
    configure_logging(config)

    owns_store = getattr(app.state, "store", None) is None
    if owns_store:
        app.state.store = Store(config=config)
    if config.AUTO_CREATE_SCHEMA:
        await app.state.store.create_all()
    logger.info("Starting %s", config.APP_NAME)

    yield  # The server runs while we're "yielded" here

    logger.info("Shutting down %s", config.APP_NAME)
    if owns_store:
        await app.state.store.dispose()
        app.state.store = None


def create_app(store: Optional[Store] = None, config: Optional[Settings] = None) -> FastAPI:
    config = config or default_settings

    app = FastAPI(
        title=config.APP_NAME,
        description="Entity resolution and deduplication for companies and contacts",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.store = store

    app.add_exception_handler(AppError, app_error_handler)

    # Include routers (API endpoints)
    app.include_router(health.router, tags=["Health"])
    app.include_router(companies.router)
    app.include_router(meetings.router)
    app.include_router(contacts.router)
    app.include_router(emails.router)
    app.include_router(enrichment.router)
    return app


app = create_app()
