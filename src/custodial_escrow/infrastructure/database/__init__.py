"""Database infrastructure: engine, ORM models, and repositories."""

from custodial_escrow.infrastructure.database.engine import (
    close_db,
    get_async_session,
    init_db,
    make_session_factory,
)
from custodial_escrow.infrastructure.database.orm_models import (
    Base,
    DealRecord,
    EscrowEvent,
)
from custodial_escrow.infrastructure.database.repositories import (
    DealRepository,
    EventRepository,
)

__all__ = [
    "Base",
    "DealRecord",
    "EscrowEvent",
    "DealRepository",
    "EventRepository",
    "get_async_session",
    "init_db",
    "close_db",
    "make_session_factory",
]
