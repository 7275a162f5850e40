"""Immutable deal snapshots and escrow notifications.

The service layer hands these out instead of ORM rows so callers never
hold a live reference into the registry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, ClassVar

from custodial_escrow.domain.enums import DealStatus, EventType

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True)
class Deal:
    """One escrow agreement as stored in the registry.

    Attributes:
        deal_id: 64-char hex identifier.
        payer: Identity allowed to fund the deal.
        payee: Identity of the intended recipient of a future release.
        amount: Exact amount the deal commits to (> 0).
        deadline: Timestamp reserved for a future refund, 0 for none.
        status: Current lifecycle state.
    """

    deal_id: str
    payer: str
    payee: str
    amount: int
    deadline: int
    status: DealStatus

    def to_dict(self) -> dict:
        return {**asdict(self), "status": self.status.value}


@dataclass(frozen=True)
class EscrowCreated:
    """Emitted once when a deal is registered."""

    event_type: ClassVar[EventType] = EventType.ESCROW_CREATED

    deal_id: str
    payer: str
    payee: str
    amount: int
    deadline: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FundsDeposited:
    """Emitted once when the payer's deposit is taken into custody."""

    event_type: ClassVar[EventType] = EventType.FUNDS_DEPOSITED

    deal_id: str
    payer: str
    amount: int

    def to_dict(self) -> dict:
        return asdict(self)


EscrowNotification = EscrowCreated | FundsDeposited

_EVENT_CLASSES: dict[EventType, type[EscrowCreated] | type[FundsDeposited]] = {
    EventType.ESCROW_CREATED: EscrowCreated,
    EventType.FUNDS_DEPOSITED: FundsDeposited,
}


def notification_from_payload(event_type: str, payload: dict) -> EscrowNotification:
    """Rebuild a notification from its stored type name and payload."""
    return _EVENT_CLASSES[EventType(event_type)](**payload)


@dataclass(frozen=True)
class RecordedEvent:
    """A notification together with its position in the log."""

    sequence: int
    notification: EscrowNotification
    created_at: datetime

    @classmethod
    def from_payload(
        cls,
        sequence: int,
        event_type: str,
        payload: dict,
        created_at: datetime,
    ) -> RecordedEvent:
        return cls(sequence, notification_from_payload(event_type, payload), created_at)

    @property
    def event_type(self) -> EventType:
        return self.notification.event_type

    @property
    def deal_id(self) -> str:
        return self.notification.deal_id
