"""Pydantic schemas for the Deal API.

These schemas define the request/response shapes for the REST API. They
only check types. Every value rule (identity length, positive amounts,
the deadline range) is enforced by the service, so REST and MCP callers
see the same errors.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateDealRequest(BaseModel):
    """Request body for registering a new deal."""

    payer: str = Field(
        ...,
        description="Identity of the party who may fund the deal",
        examples=["0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"],
    )
    payee: str = Field(
        ...,
        description="Identity of the intended recipient",
        examples=["0x8ba1f109551bD432803012645Ac136ddd64DBA72"],
    )
    amount: int = Field(
        ...,
        description="Exact amount in base units; must be positive",
        examples=[10_000_000_000_000_000],
    )
    deadline: int = Field(
        default=0,
        description="Unix timestamp reserved for a future refund; 0 means none",
    )


class FundDealRequest(BaseModel):
    """Request body for depositing the agreed amount."""

    caller: str = Field(
        ...,
        description="Identity of the party attaching the value",
    )
    value: int = Field(
        ...,
        description="Attached value; must equal the deal amount exactly",
    )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class DealResponse(BaseModel):
    """Response schema for a deal."""

    model_config = ConfigDict(from_attributes=True)

    deal_id: str = Field(description="64-char hex identifier")
    payer: str
    payee: str
    amount: int
    deadline: int
    status: str


class DealStatusResponse(BaseModel):
    """Lightweight status check response."""

    deal_id: str
    status: str
    allowed_events: list[str] = Field(
        description="State machine events that can fire from the current status"
    )


class DealEventResponse(BaseModel):
    """One entry of the ordered notification log."""

    sequence: int
    event_type: str
    deal_id: str
    payload: dict
    created_at: datetime


class CustodyResponse(BaseModel):
    """Total value currently held in custody."""

    held_balance: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
