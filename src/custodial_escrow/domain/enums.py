"""Domain enumerations for the custodial escrow.

Framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class DealStatus(enum.StrEnum):
    """Lifecycle states of a deal.

    A deal that was never created has no status at all: absence is
    represented by the missing registry row. Only implemented states
    are declared here.
    """

    CREATED = "CREATED"
    FUNDED = "FUNDED"


class EventType(enum.StrEnum):
    """Notifications appended to the escrow_events log.

    Every successful transition produces exactly one event.
    """

    ESCROW_CREATED = "EscrowCreated"
    FUNDS_DEPOSITED = "FundsDeposited"
