"""Application services: use case orchestration."""

from custodial_escrow.services.escrow_service import EscrowService

__all__ = ["EscrowService"]
