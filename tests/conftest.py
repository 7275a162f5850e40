"""Shared test fixtures for the custodial escrow test suite.

Provides:
    - An in-memory SQLite engine + session per test (aiosqlite, StaticPool)
    - A controllable clock for deterministic deal IDs
    - Canonical party identities and deal parameters
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from custodial_escrow.config import Settings
from custodial_escrow.infrastructure.database.engine import make_session_factory
from custodial_escrow.infrastructure.database.orm_models import Base
from custodial_escrow.services.escrow_service import EscrowService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

BUYER = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"
SELLER = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
STRANGER = "0x1111111111111111111111111111111111111111"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

ONE_TOKEN = 10_000_000_000_000_000
NOW = 1_700_000_000.25


class FakeClock:
    """Callable clock whose reading only changes when told to."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, app_env="development", database_url="sqlite+aiosqlite://")


@pytest.fixture
def sample_deal_data() -> dict:
    """Return valid create_deal keyword arguments."""
    return {
        "payer": BUYER,
        "payee": SELLER,
        "amount": ONE_TOKEN,
        "deadline": int(NOW) + 300,
    }


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def service(session: AsyncSession, settings: Settings, clock: FakeClock) -> EscrowService:
    return EscrowService(session, settings=settings, clock=clock)
