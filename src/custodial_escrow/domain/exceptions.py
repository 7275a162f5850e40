"""Domain exceptions for the custodial escrow.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Every one of them is raised before any mutation, so a failed call never
leaves partial state behind.
"""

from __future__ import annotations


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Creation Errors ---


class InvalidArgumentError(EscrowError):
    """Raised when deal creation gets a null or oversized party, a bad amount or deadline."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid {field}: {reason}",
            code="INVALID_ARGUMENT",
        )
        self.field = field


class ConflictError(EscrowError):
    """Raised when a new deal's identifier is already taken."""

    def __init__(self, deal_id: str) -> None:
        super().__init__(
            message=f"Deal already exists: {deal_id}",
            code="CONFLICT",
        )
        self.deal_id = deal_id


# --- Funding Errors ---


class InvalidStateError(EscrowError):
    """Raised when funding an unknown deal or one that is not CREATED."""

    def __init__(self, deal_id: str, current_status: str | None) -> None:
        if current_status is None:
            message = f"Deal not found: {deal_id}"
        else:
            message = f"Deal {deal_id} cannot be funded from status {current_status}"
        super().__init__(message=message, code="INVALID_STATE")
        self.deal_id = deal_id
        self.current_status = current_status


class UnauthorizedError(EscrowError):
    """Raised when someone other than the recorded payer tries to fund."""

    def __init__(self, deal_id: str, caller: str) -> None:
        super().__init__(
            message=f"Caller {caller} is not the payer of deal {deal_id}",
            code="UNAUTHORIZED",
        )
        self.deal_id = deal_id
        self.caller = caller


class ValueMismatchError(EscrowError):
    """Raised when the attached value differs from the agreed amount."""

    def __init__(self, deal_id: str, expected: int, attached: int) -> None:
        super().__init__(
            message=(
                f"Attached value {attached} does not match amount {expected} "
                f"of deal {deal_id}"
            ),
            code="VALUE_MISMATCH",
        )
        self.deal_id = deal_id
        self.expected = expected
        self.attached = attached


# --- Read Errors ---


class DealNotFoundError(EscrowError):
    """Raised by read access when a deal ID does not exist."""

    def __init__(self, deal_id: str) -> None:
        super().__init__(
            message=f"Deal not found: {deal_id}",
            code="DEAL_NOT_FOUND",
        )
        self.deal_id = deal_id
