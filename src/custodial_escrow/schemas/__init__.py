"""Pydantic API schemas."""

from custodial_escrow.schemas.deal import (
    CreateDealRequest,
    CustodyResponse,
    DealEventResponse,
    DealResponse,
    DealStatusResponse,
    FundDealRequest,
    HealthResponse,
)

__all__ = [
    "CreateDealRequest",
    "CustodyResponse",
    "DealEventResponse",
    "DealResponse",
    "DealStatusResponse",
    "FundDealRequest",
    "HealthResponse",
]
