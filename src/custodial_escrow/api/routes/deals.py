"""Deal REST API routes.

These endpoints provide the HTTP interface for registering deals, funding
them and reading the registry. The MCP tools in mcp_server/tools.py call
the same service layer, ensuring consistency.

Routes:
    POST   /api/v1/deals                : Register a new deal
    POST   /api/v1/deals/{id}/fund      : Deposit the agreed amount
    GET    /api/v1/deals/{id}           : Get deal details
    GET    /api/v1/deals/{id}/status    : Get lightweight status check
    GET    /api/v1/deals/{id}/events    : Get the deal's notifications
    GET    /api/v1/events               : Get the global notification log
    GET    /api/v1/custody              : Get the held balance
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from custodial_escrow.api.deps import get_escrow_service
from custodial_escrow.domain.records import Deal, RecordedEvent
from custodial_escrow.logging_config import get_logger
from custodial_escrow.schemas.deal import (
    CreateDealRequest,
    CustodyResponse,
    DealEventResponse,
    DealResponse,
    DealStatusResponse,
    FundDealRequest,
)
from custodial_escrow.services.escrow_service import EscrowService

router = APIRouter(prefix="/api/v1", tags=["Deals"])
logger = get_logger(__name__)


def _deal_response(deal: Deal) -> DealResponse:
    return DealResponse(**deal.to_dict())


def _event_response(event: RecordedEvent) -> DealEventResponse:
    return DealEventResponse(
        sequence=event.sequence,
        event_type=event.event_type.value,
        deal_id=event.deal_id,
        payload=event.notification.to_dict(),
        created_at=event.created_at,
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post(
    "/deals",
    response_model=DealResponse,
    status_code=201,
    summary="Register a new deal",
)
async def create_deal(
    request: CreateDealRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Register a deal in CREATED state. Any caller may do this."""
    deal = await svc.create_deal(
        payer=request.payer,
        payee=request.payee,
        amount=request.amount,
        deadline=request.deadline,
    )
    return _deal_response(deal)


# ---------------------------------------------------------------------------
# Fund
# ---------------------------------------------------------------------------


@router.post(
    "/deals/{deal_id}/fund",
    response_model=DealResponse,
    summary="Deposit the agreed amount",
)
async def fund_deal(
    deal_id: str,
    request: FundDealRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Take the payer's deposit into custody. Transitions CREATED -> FUNDED."""
    deal = await svc.fund_deal(
        deal_id=deal_id,
        attached_value=request.value,
        caller=request.caller,
    )
    return _deal_response(deal)


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/deals/{deal_id}",
    response_model=DealResponse,
    summary="Get deal details",
)
async def get_deal(
    deal_id: str,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Fetch a deal by its hex identifier."""
    return _deal_response(await svc.get_deal(deal_id))


@router.get(
    "/deals/{deal_id}/status",
    response_model=DealStatusResponse,
    summary="Get lightweight status check",
)
async def get_status(
    deal_id: str,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealStatusResponse:
    """Return the current status and allowed next transitions."""
    return DealStatusResponse(**await svc.get_status(deal_id))


@router.get(
    "/deals/{deal_id}/events",
    response_model=list[DealEventResponse],
    summary="Get a deal's notifications",
)
async def get_deal_events(
    deal_id: str,
    svc: EscrowService = Depends(get_escrow_service),
) -> list[DealEventResponse]:
    """Return every notification emitted for one deal, oldest first."""
    await svc.get_deal(deal_id)
    events = await svc.get_events(deal_id=deal_id)
    return [_event_response(e) for e in events]


@router.get(
    "/events",
    response_model=list[DealEventResponse],
    summary="Get the notification log",
)
async def get_events(
    after: int = Query(default=0, ge=0, description="Only events with a larger sequence"),
    limit: int = Query(default=100, ge=1, le=1000),
    svc: EscrowService = Depends(get_escrow_service),
) -> list[DealEventResponse]:
    """Tail the global notification log in emission order."""
    events = await svc.get_events(after_sequence=after, limit=limit)
    return [_event_response(e) for e in events]


@router.get(
    "/custody",
    response_model=CustodyResponse,
    summary="Get the held balance",
)
async def get_custody(
    svc: EscrowService = Depends(get_escrow_service),
) -> CustodyResponse:
    """Return the total value held in custody."""
    return CustodyResponse(held_balance=await svc.held_balance())
