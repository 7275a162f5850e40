"""Domain layer: pure business logic with zero framework dependencies."""

from custodial_escrow.domain.enums import DealStatus, EventType
from custodial_escrow.domain.exceptions import (
    ConflictError,
    DealNotFoundError,
    EscrowError,
    InvalidArgumentError,
    InvalidStateError,
    UnauthorizedError,
    ValueMismatchError,
)
from custodial_escrow.domain.identifiers import (
    derive_deal_id,
    is_null_identity,
    parse_deal_id,
)
from custodial_escrow.domain.records import Deal, EscrowCreated, FundsDeposited
from custodial_escrow.domain.state_machine import (
    DealStateMachine,
    validate_transition,
)

__all__ = [
    "DealStatus",
    "EventType",
    "EscrowError",
    "InvalidArgumentError",
    "ConflictError",
    "InvalidStateError",
    "UnauthorizedError",
    "ValueMismatchError",
    "DealNotFoundError",
    "derive_deal_id",
    "is_null_identity",
    "parse_deal_id",
    "Deal",
    "EscrowCreated",
    "FundsDeposited",
    "DealStateMachine",
    "validate_transition",
]
