"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
the escrow service, and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from custodial_escrow.config import Settings, get_settings
from custodial_escrow.infrastructure.database.engine import get_async_session
from custodial_escrow.services.escrow_service import EscrowService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


async def get_escrow_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> EscrowService:
    """Provide an EscrowService bound to the current request's session."""
    return EscrowService(session, settings=settings)
