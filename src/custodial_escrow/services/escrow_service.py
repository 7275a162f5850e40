"""Escrow Service: core business logic for the deal lifecycle.

This is the application layer that coordinates between:
    - Identifier derivation (deterministic deal IDs)
    - Domain state machine (transition guard)
    - Repositories (registry + notification log)

Both REST routes and MCP tools call into this service, so every rule
lives here once. Each public operation checks all of its preconditions
before the first write; the caller's session commits the writes and the
notification together or rolls both back.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from statemachine.exceptions import TransitionNotAllowed

from custodial_escrow.config import Settings, get_settings
from custodial_escrow.domain.enums import DealStatus
from custodial_escrow.domain.exceptions import (
    ConflictError,
    DealNotFoundError,
    InvalidArgumentError,
    InvalidStateError,
    UnauthorizedError,
    ValueMismatchError,
)
from custodial_escrow.domain.identifiers import (
    MAX_DEADLINE,
    MAX_IDENTITY_LENGTH,
    deal_id_to_hex,
    derive_deal_id,
    discretize_timestamp,
    is_null_identity,
    parse_deal_id,
)
from custodial_escrow.domain.records import (
    Deal,
    EscrowCreated,
    FundsDeposited,
    RecordedEvent,
)
from custodial_escrow.domain.state_machine import DealStateMachine
from custodial_escrow.infrastructure.database.orm_models import DealRecord
from custodial_escrow.infrastructure.database.repositories import (
    DealRepository,
    EventRepository,
)
from custodial_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_identity(field: str, identity: object) -> None:
    if not isinstance(identity, str) or is_null_identity(identity):
        raise InvalidArgumentError(field, "must be a non-null identity")
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise InvalidArgumentError(field, f"must be at most {MAX_IDENTITY_LENGTH} characters")


def _to_deal(record: DealRecord) -> Deal:
    return Deal(
        deal_id=record.deal_id,
        payer=record.payer,
        payee=record.payee,
        amount=record.amount,
        deadline=record.deadline,
        status=DealStatus(record.status),
    )


class EscrowService:
    """Manages the deal lifecycle: absent -> CREATED -> FUNDED."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._clock = clock
        self._deal_repo = DealRepository(session)
        self._event_repo = EventRepository(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_deal(
        self,
        payer: str,
        payee: str,
        amount: int,
        deadline: int = 0,
    ) -> Deal:
        """Register a new deal in CREATED state and return it.

        Anyone may register a deal naming any two parties; only funding
        is restricted.

        Raises:
            InvalidArgumentError: Null or oversized party, non-positive
                amount, bad deadline.
            ConflictError: A deal with the derived ID already exists.
        """
        _check_identity("payer", payer)
        _check_identity("payee", payee)
        if not _is_int(amount) or amount <= 0:
            raise InvalidArgumentError("amount", "must be a positive integer")
        if not _is_int(deadline) or not 0 <= deadline <= MAX_DEADLINE:
            raise InvalidArgumentError("deadline", "must be an unsigned 64-bit integer")

        deal_id = await self._next_deal_id(payer, payee, amount, deadline)

        if await self._deal_repo.get_by_id(deal_id) is not None:
            raise ConflictError(deal_id)

        record = DealRecord(
            deal_id=deal_id,
            payer=payer,
            payee=payee,
            amount=amount,
            deadline=deadline,
            status=DealStatus.CREATED.value,
        )
        try:
            await self._deal_repo.insert(record)
        except IntegrityError as err:
            # Lost an insert race for the same ID
            raise ConflictError(deal_id) from err

        await self._event_repo.record(
            EscrowCreated(
                deal_id=deal_id,
                payer=payer,
                payee=payee,
                amount=amount,
                deadline=deadline,
            ),
            old_status=None,
            new_status=DealStatus.CREATED,
        )

        logger.info(
            "escrow.created",
            deal_id=deal_id,
            payer=payer,
            payee=payee,
            amount=amount,
            deadline=deadline,
        )
        return _to_deal(record)

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    async def fund_deal(self, deal_id: str, attached_value: int, caller: str) -> Deal:
        """Take the payer's deposit into custody and move the deal to FUNDED.

        Raises:
            InvalidStateError: Unknown deal, or not in CREATED.
            UnauthorizedError: Caller is not the recorded payer.
            ValueMismatchError: Attached value differs from the amount.
        """
        try:
            deal_id = parse_deal_id(deal_id)
        except ValueError as err:
            # Not a registry key, so no deal can exist under it
            raise InvalidStateError(str(deal_id), None) from err
        if not _is_int(attached_value):
            raise InvalidArgumentError("value", "must be an integer")

        record = await self._deal_repo.get_by_id(deal_id)
        if record is None:
            raise InvalidStateError(deal_id, None)
        self._fire_transition(record, "deposit")

        if caller != record.payer:
            raise UnauthorizedError(deal_id, caller)
        if attached_value != record.amount:
            raise ValueMismatchError(deal_id, record.amount, attached_value)

        swapped = await self._deal_repo.compare_and_set_status(
            deal_id, DealStatus.CREATED, DealStatus.FUNDED
        )
        if not swapped:
            # Someone funded it between our read and the update
            raise InvalidStateError(deal_id, DealStatus.FUNDED.value)

        await self._event_repo.record(
            FundsDeposited(deal_id=deal_id, payer=record.payer, amount=record.amount),
            old_status=DealStatus.CREATED,
            new_status=DealStatus.FUNDED,
            actor=caller,
        )

        logger.info("escrow.funded", deal_id=deal_id, payer=caller, amount=record.amount)
        return Deal(
            deal_id=deal_id,
            payer=record.payer,
            payee=record.payee,
            amount=record.amount,
            deadline=record.deadline,
            status=DealStatus.FUNDED,
        )

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def find_deal(self, deal_id: str) -> Deal | None:
        """Return the deal, or None if it was never created."""
        record = await self._deal_repo.get_by_id(self._normalize_id(deal_id))
        return _to_deal(record) if record is not None else None

    async def get_deal(self, deal_id: str) -> Deal:
        """Get a deal or raise DealNotFoundError."""
        deal = await self.find_deal(deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)
        return deal

    async def get_status(self, deal_id: str) -> dict:
        """Get deal status with allowed state machine events."""
        deal = await self.get_deal(deal_id)
        sm = DealStateMachine(current_status=deal.status.value)
        return {
            "deal_id": deal.deal_id,
            "status": deal.status.value,
            "allowed_events": sm.get_allowed_events(),
        }

    async def get_events(
        self,
        deal_id: str | None = None,
        after_sequence: int = 0,
        limit: int | None = None,
    ) -> list[RecordedEvent]:
        """Notifications in emission order, optionally for a single deal."""
        if deal_id is not None:
            deal_id = self._normalize_id(deal_id)
        rows = await self._event_repo.list_events(
            deal_id=deal_id, after_sequence=after_sequence, limit=limit
        )
        return [
            RecordedEvent.from_payload(row.sequence, row.event_type, row.payload, row.created_at)
            for row in rows
        ]

    async def held_balance(self) -> int:
        """Total value currently held in custody."""
        return await self._deal_repo.held_balance(DealStatus.FUNDED)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _next_deal_id(self, payer: str, payee: str, amount: int, deadline: int) -> str:
        created_at = discretize_timestamp(
            self._clock(), self._settings.deal_id_clock_resolution_seconds
        )
        nonce = None
        if self._settings.deal_id_nonce_mode == "sequence":
            nonce = await self._deal_repo.count()
        raw = derive_deal_id(payer, payee, amount, deadline, created_at, nonce)
        return deal_id_to_hex(raw)

    @staticmethod
    def _normalize_id(deal_id: str) -> str:
        try:
            return parse_deal_id(deal_id)
        except ValueError as err:
            raise InvalidArgumentError("deal_id", str(err)) from err

    @staticmethod
    def _fire_transition(record: DealRecord, event_name: str) -> None:
        """Validate a state machine transition for the given deal.

        Raises InvalidStateError if the transition is illegal.
        """
        sm = DealStateMachine(current_status=record.status)
        try:
            getattr(sm, event_name)()
        except TransitionNotAllowed as err:
            raise InvalidStateError(record.deal_id, record.status) from err
