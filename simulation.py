#!/usr/bin/env python3
"""Custodial Escrow: End-to-End Simulation.

Runs three scenarios with a Buyer and a Seller against the service layer:

    Scenario 1: Happy Path
        - Buyer registers a deal for 0.01 token (10**16 base units), deadline now+300
        - Buyer funds it with the exact amount -> FUNDED, custody grows
        - Buyer funds again -> rejected (INVALID_STATE)

    Scenario 2: Duplicate Registration
        - The same deal is registered twice within one second -> CONFLICT

    Scenario 3: Bad Funding Attempts
        - A stranger tries to fund -> UNAUTHORIZED
        - The buyer under- and over-pays -> VALUE_MISMATCH
        - The deal is still CREATED and custody is unchanged

Usage:
    python simulation.py                 # all scenarios, in-memory SQLite
    python simulation.py --scenario 1
"""

from __future__ import annotations

import argparse
import asyncio
import time

from custodial_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

BUYER = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"
SELLER = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
STRANGER = "0x1111111111111111111111111111111111111111"
AMOUNT = 10_000_000_000_000_000

_session_factory = None


async def init_database() -> None:
    """Create an in-memory SQLite registry."""
    global _session_factory

    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from custodial_escrow.infrastructure.database.engine import make_session_factory
    from custodial_escrow.infrastructure.database.orm_models import Base

    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    _session_factory = make_session_factory(engine)
    logger.info("database.sqlite_initialized")


async def attempt(label: str, operation, clock=time.time) -> object | None:  # noqa: ANN001
    """Run one service call in its own transaction, logging the outcome."""
    from custodial_escrow.domain.exceptions import EscrowError
    from custodial_escrow.services.escrow_service import EscrowService

    async with _session_factory() as session:
        svc = EscrowService(session, clock=clock)
        try:
            result = await operation(svc)
        except EscrowError as exc:
            await session.rollback()
            logger.info("simulation.rejected", step=label, code=exc.code, reason=exc.message)
            return None
        await session.commit()
        logger.info("simulation.ok", step=label)
        return result


async def custody() -> int:
    result = await attempt("custody", lambda svc: svc.held_balance())
    return int(result or 0)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


async def scenario_happy_path() -> None:
    logger.info("=== Scenario 1: Happy Path ===")
    deadline = int(time.time()) + 300
    deal = await attempt(
        "create",
        lambda svc: svc.create_deal(BUYER, SELLER, AMOUNT, deadline),
    )
    before = await custody()
    await attempt("fund", lambda svc: svc.fund_deal(deal.deal_id, AMOUNT, BUYER))
    after = await custody()
    logger.info("simulation.custody", before=before, after=after, delta=after - before)
    await attempt("fund again", lambda svc: svc.fund_deal(deal.deal_id, AMOUNT, BUYER))


async def scenario_duplicate() -> None:
    logger.info("=== Scenario 2: Duplicate Registration ===")
    frozen = time.time()

    def create(svc):  # noqa: ANN001, ANN202
        return svc.create_deal(BUYER, SELLER, 42, 0)

    await attempt("create", create, clock=lambda: frozen)
    await attempt("create duplicate", create, clock=lambda: frozen)


async def scenario_bad_funding() -> None:
    logger.info("=== Scenario 3: Bad Funding Attempts ===")
    deal = await attempt("create", lambda svc: svc.create_deal(BUYER, SELLER, 7, 0))
    before = await custody()
    await attempt("stranger funds", lambda svc: svc.fund_deal(deal.deal_id, 7, STRANGER))
    await attempt("underpay", lambda svc: svc.fund_deal(deal.deal_id, 6, BUYER))
    await attempt("overpay", lambda svc: svc.fund_deal(deal.deal_id, 8, BUYER))
    final = await attempt("read", lambda svc: svc.get_deal(deal.deal_id))
    unchanged = before == await custody()
    logger.info("simulation.final", status=final.status.value, custody_unchanged=unchanged)


SCENARIOS = {
    1: scenario_happy_path,
    2: scenario_duplicate,
    3: scenario_bad_funding,
}


async def main(selected: int | None) -> None:
    await init_database()
    for number, scenario in SCENARIOS.items():
        if selected is None or selected == number:
            await scenario()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Custodial escrow simulation")
    parser.add_argument("--scenario", type=int, choices=sorted(SCENARIOS), default=None)
    args = parser.parse_args()
    asyncio.run(main(args.scenario))
