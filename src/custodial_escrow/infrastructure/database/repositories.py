"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from custodial_escrow.infrastructure.database.orm_models import DealRecord, EscrowEvent

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from custodial_escrow.domain.enums import DealStatus
    from custodial_escrow.domain.records import EscrowNotification


class DealRepository:
    """Data access for the deal registry."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, deal: DealRecord) -> DealRecord:
        """Insert a new deal. A duplicate ID surfaces as IntegrityError."""
        self._session.add(deal)
        await self._session.flush()
        return deal

    async def get_by_id(self, deal_id: str) -> DealRecord | None:
        """Fetch a deal by its hex ID, always reading the stored row."""
        result = await self._session.execute(
            select(DealRecord)
            .where(DealRecord.deal_id == deal_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def count(self) -> int:
        """Number of deals ever registered (rows are never deleted)."""
        result = await self._session.execute(select(func.count()).select_from(DealRecord))
        return int(result.scalar_one())

    async def compare_and_set_status(
        self,
        deal_id: str,
        expected: DealStatus,
        new_status: DealStatus,
    ) -> bool:
        """Move a deal from `expected` to `new_status` in a single statement.

        Returns False if the row was not in `expected` any more.
        """
        result = await self._session.execute(
            update(DealRecord)
            .where(DealRecord.deal_id == deal_id, DealRecord.status == expected.value)
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def held_balance(self, status: DealStatus) -> int:
        """Sum of amounts over all deals in `status`.

        Amounts are stored as text to stay unbounded, so the database cannot
        SUM them; every matching amount is loaded and added here. The cost
        grows linearly with the number of deals in `status`.
        """
        result = await self._session.execute(
            select(DealRecord.amount).where(DealRecord.status == status.value)
        )
        return sum(result.scalars().all())


class EventRepository:
    """Data access for the append-only notification log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        notification: EscrowNotification,
        old_status: DealStatus | None,
        new_status: DealStatus,
        actor: str | None = None,
    ) -> EscrowEvent:
        """Append a notification. This is the ONLY write operation allowed."""
        evt = EscrowEvent(
            deal_id=notification.deal_id,
            event_type=notification.event_type.value,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            actor=actor,
            payload=notification.to_dict(),
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def list_events(
        self,
        deal_id: str | None = None,
        after_sequence: int = 0,
        limit: int | None = None,
    ) -> list[EscrowEvent]:
        """Fetch events in emission order, optionally for one deal."""
        stmt = select(EscrowEvent).where(EscrowEvent.sequence > after_sequence)
        if deal_id is not None:
            stmt = stmt.where(EscrowEvent.deal_id == deal_id)
        stmt = stmt.order_by(EscrowEvent.sequence.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
