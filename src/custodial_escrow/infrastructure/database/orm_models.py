"""SQLAlchemy 2.0 ORM models for the custodial escrow.

Two tables:
    1. deals         : The registry: one row per deal, keyed by its hex ID.
    2. escrow_events : Append-only, ordered log of every notification.

Design decisions:
    - Deal IDs are the 64-char hex form of the derived 32-byte identifier.
    - Amounts are stored as decimal strings so arbitrary magnitudes
      round-trip on every backend (SQLite integers stop at 64 bits).
    - CHECK constraint on status to prevent invalid values at DB level.
    - escrow_events uses an integer sequence as its primary key; that
      sequence is the global notification order.
    - Neither table sees UPDATE (besides deals.status) or DELETE.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from custodial_escrow.domain.identifiers import MAX_IDENTITY_LENGTH


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UnboundedInt(TypeDecorator):
    """Non-negative integer of any size, persisted as its decimal string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        return str(int(value))

    def process_result_value(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        return int(value)


# ---------------------------------------------------------------------------
# 1. deals
# ---------------------------------------------------------------------------
class DealRecord(Base):
    """A registered escrow agreement between a payer and a payee."""

    __tablename__ = "deals"

    # --- Primary Key ---
    deal_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Hex form of the SHA3-256 deal identifier",
    )

    # --- Participants ---
    payer: Mapped[str] = mapped_column(
        String(MAX_IDENTITY_LENGTH),
        nullable=False,
        comment="Identity allowed to fund the deal",
    )
    payee: Mapped[str] = mapped_column(
        String(MAX_IDENTITY_LENGTH),
        nullable=False,
        comment="Identity of the future recipient",
    )

    # --- Terms ---
    amount: Mapped[int] = mapped_column(
        UnboundedInt,
        nullable=False,
        comment="Exact amount the deal commits to",
    )
    deadline: Mapped[int] = mapped_column(
        UnboundedInt,
        nullable=False,
        default=0,
        comment="Reserved refund deadline, 0 for none",
    )

    # --- Status (guarded by DealStateMachine) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="CREATED",
    )

    # --- Timestamps ---
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('CREATED', 'FUNDED')",
            name="ck_deal_valid_status",
        ),
        Index("idx_deal_status", "status"),
        Index("idx_deal_payer", "payer"),
    )

    def __repr__(self) -> str:
        return f"<DealRecord id={self.deal_id} status={self.status} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 2. escrow_events (Append-Only Notification Log)
# ---------------------------------------------------------------------------
class EscrowEvent(Base):
    """Immutable record of one notification.

    This table is APPEND-ONLY. Every row is written in the same transaction
    as the deal mutation it describes.
    """

    __tablename__ = "escrow_events"

    sequence: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    deal_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("deals.deal_id"),
        nullable=False,
    )

    # --- Event Details ---
    event_type: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="EventType value (EscrowCreated, FundsDeposited)",
    )
    old_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Deal status before this event (null for creation)",
    )
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor: Mapped[str | None] = mapped_column(
        String(MAX_IDENTITY_LENGTH),
        nullable=True,
        comment="Caller that triggered the event, if known",
    )
    payload: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        comment="Full notification payload",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("idx_event_deal", "deal_id"),
        Index("idx_event_type", "event_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<EscrowEvent seq={self.sequence} type={self.event_type} "
            f"{self.old_status}->{self.new_status}>"
        )
