"""MCP Tool definitions for the custodial escrow.

These tools expose the escrow via the Model Context Protocol, allowing
agents (wallets, indexers, assistants) to discover and call them.

Tools:
    - create_deal: Register a new deal
    - fund_deal: Deposit the agreed amount as the payer
    - get_deal: Read a deal
    - list_events: Tail the notification log
    - custody_balance: Total value held in custody

The MCP server is mounted into FastAPI at /mcp via app.mount().
Each tool manages its own database session (no FastAPI Depends available)
and commits only when the service call succeeded.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from custodial_escrow.domain.exceptions import EscrowError
from custodial_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from custodial_escrow.services.escrow_service import EscrowService

logger = get_logger(__name__)

mcp = FastMCP(
    "Custodial Escrow",
    json_response=True,
)


@asynccontextmanager
async def _escrow_service() -> AsyncIterator[EscrowService]:
    """Yield a service bound to a fresh session; commit on success."""
    from custodial_escrow.infrastructure.database.engine import _get_session_factory
    from custodial_escrow.services.escrow_service import EscrowService

    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield EscrowService(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _error(exc: EscrowError) -> dict:
    return {"error": exc.code, "message": exc.message}


@mcp.tool()
async def create_deal(
    payer: str,
    payee: str,
    amount: int,
    deadline: int = 0,
) -> dict:
    """Register an escrow deal between a payer and a payee.

    Args:
        payer: Identity that will fund the deal.
        payee: Identity of the intended recipient.
        amount: Exact amount in base units (must be > 0).
        deadline: Unix timestamp reserved for a future refund; 0 for none.

    Returns:
        The deal, including the deal_id needed to fund it.
    """
    try:
        async with _escrow_service() as svc:
            deal = await svc.create_deal(
                payer=payer, payee=payee, amount=amount, deadline=deadline
            )
    except EscrowError as exc:
        logger.warning("mcp.create_deal.rejected", code=exc.code)
        return _error(exc)
    return {**deal.to_dict(), "message": "Deal created. Next step: payer funds it."}


@mcp.tool()
async def fund_deal(deal_id: str, caller: str, value: int) -> dict:
    """Deposit the agreed amount into custody.

    Args:
        deal_id: 64-char hex deal identifier.
        caller: Your identity; must be the deal's payer.
        value: Attached value; must equal the deal amount exactly.

    Returns:
        The deal with FUNDED status.
    """
    try:
        async with _escrow_service() as svc:
            deal = await svc.fund_deal(deal_id=deal_id, attached_value=value, caller=caller)
    except EscrowError as exc:
        logger.warning("mcp.fund_deal.rejected", code=exc.code)
        return _error(exc)
    return {**deal.to_dict(), "message": "Deal funded. Value is held in custody."}


@mcp.tool()
async def get_deal(deal_id: str) -> dict:
    """Read a deal and its allowed next transitions.

    Args:
        deal_id: 64-char hex deal identifier.
    """
    try:
        async with _escrow_service() as svc:
            deal = await svc.get_deal(deal_id)
            status = await svc.get_status(deal_id)
    except EscrowError as exc:
        return _error(exc)
    return {**deal.to_dict(), "allowed_events": status["allowed_events"]}


@mcp.tool()
async def list_events(after: int = 0, limit: int = 100) -> dict:
    """Tail the ordered notification log.

    Args:
        after: Only return events with a sequence greater than this.
        limit: Maximum number of events to return.
    """
    async with _escrow_service() as svc:
        events = await svc.get_events(after_sequence=after, limit=limit)
    return {
        "events": [
            {
                "sequence": e.sequence,
                "event_type": e.event_type.value,
                "payload": e.notification.to_dict(),
            }
            for e in events
        ]
    }


@mcp.tool()
async def custody_balance() -> dict:
    """Return the total value currently held in custody."""
    async with _escrow_service() as svc:
        return {"held_balance": await svc.held_balance()}
