"""
FastAPI dependencies for the application.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings
from relgraph.db.session import Store


def get_store(request: Request) -> Store:
    """The store created at startup (or injected by tests)."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(store: Store = Depends(get_store)) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get a database session.

    One transaction per request: committed when the endpoint returns,
    rolled back when it raises.
    """
    async with store.transaction() as session:
        yield session
