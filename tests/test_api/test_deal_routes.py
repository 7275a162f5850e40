"""Tests for the Deal REST API.

Drives the FastAPI app through httpx's ASGI transport with the database
session and service dependencies pointed at the in-memory test registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient

from custodial_escrow.api.deps import get_db_session, get_escrow_service
from custodial_escrow.main import create_app
from custodial_escrow.services.escrow_service import EscrowService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

STRANGER = "0x1111111111111111111111111111111111111111"


@pytest_asyncio.fixture
async def client(session_factory, settings, clock) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(mount_mcp=False)

    async def _session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _service(session=Depends(get_db_session)):  # noqa: ANN001, B008
        return EscrowService(session, settings=settings, clock=clock)

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_escrow_service] = _service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create(client: AsyncClient, data: dict) -> dict:
    response = await client.post("/api/v1/deals", json=data)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateRoute:
    @pytest.mark.asyncio
    async def test_create_returns_deal(self, client, sample_deal_data) -> None:
        body = await _create(client, sample_deal_data)

        assert len(body["deal_id"]) == 64
        assert body["status"] == "CREATED"
        assert body["amount"] == sample_deal_data["amount"]
        assert body["deadline"] == sample_deal_data["deadline"]

    @pytest.mark.asyncio
    async def test_zero_amount_is_bad_request(self, client, sample_deal_data) -> None:
        response = await client.post("/api/v1/deals", json={**sample_deal_data, "amount": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ARGUMENT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"deadline": 2**64}, "deadline"),
            ({"deadline": -1}, "deadline"),
            ({"payer": "p" * 129}, "payer"),
            ({"payee": "p" * 129}, "payee"),
        ],
    )
    async def test_out_of_range_fields_are_bad_request(
        self, client, sample_deal_data, overrides, field
    ) -> None:
        response = await client.post("/api/v1/deals", json={**sample_deal_data, **overrides})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_ARGUMENT"
        assert field in body["message"]
        assert (await client.get("/api/v1/events")).json() == []

    @pytest.mark.asyncio
    async def test_duplicate_is_conflict(self, client, sample_deal_data) -> None:
        await _create(client, sample_deal_data)

        response = await client.post("/api/v1/deals", json=sample_deal_data)

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"
        events = (await client.get("/api/v1/events")).json()
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client, sample_deal_data) -> None:
        response = await client.post(
            "/api/v1/deals", json=sample_deal_data, headers={"X-Request-ID": "req-1"}
        )
        assert response.headers["X-Request-ID"] == "req-1"


class TestFundRoute:
    @pytest.mark.asyncio
    async def test_fund_moves_value_into_custody(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)

        response = await client.post(
            f"/api/v1/deals/{deal['deal_id']}/fund",
            json={"caller": deal["payer"], "value": deal["amount"]},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "FUNDED"
        custody = (await client.get("/api/v1/custody")).json()
        assert custody == {"held_balance": deal["amount"]}

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)

        response = await client.post(
            f"/api/v1/deals/{deal['deal_id']}/fund",
            json={"caller": STRANGER, "value": deal["amount"]},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_wrong_value_is_unprocessable(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)

        response = await client.post(
            f"/api/v1/deals/{deal['deal_id']}/fund",
            json={"caller": deal["payer"], "value": deal["amount"] - 1},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALUE_MISMATCH"

    @pytest.mark.asyncio
    async def test_second_fund_is_invalid_state(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)
        payload = {"caller": deal["payer"], "value": deal["amount"]}
        await client.post(f"/api/v1/deals/{deal['deal_id']}/fund", json=payload)

        response = await client.post(f"/api/v1/deals/{deal['deal_id']}/fund", json=payload)

        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE"
        custody = (await client.get("/api/v1/custody")).json()
        assert custody["held_balance"] == deal["amount"]

    @pytest.mark.asyncio
    async def test_unknown_deal_is_invalid_state(self, client) -> None:
        response = await client.post(
            f"/api/v1/deals/{'cd' * 32}/fund", json={"caller": STRANGER, "value": 1}
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_malformed_id_is_invalid_state(self, client) -> None:
        response = await client.post(
            "/api/v1/deals/deadbeef/fund", json={"caller": STRANGER, "value": 1}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE"


class TestReadRoutes:
    @pytest.mark.asyncio
    async def test_get_deal(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)
        response = await client.get(f"/api/v1/deals/{deal['deal_id']}")
        assert response.json() == deal

    @pytest.mark.asyncio
    async def test_get_unknown_deal_is_not_found(self, client) -> None:
        response = await client.get(f"/api/v1/deals/{'cd' * 32}")
        assert response.status_code == 404
        assert response.json()["error"] == "DEAL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_id_is_bad_request(self, client) -> None:
        response = await client.get("/api/v1/deals/xyz")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_status(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)
        response = await client.get(f"/api/v1/deals/{deal['deal_id']}/status")
        assert response.json()["allowed_events"] == ["deposit"]

    @pytest.mark.asyncio
    async def test_deal_events_in_order(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)
        await client.post(
            f"/api/v1/deals/{deal['deal_id']}/fund",
            json={"caller": deal["payer"], "value": deal["amount"]},
        )

        events = (await client.get(f"/api/v1/deals/{deal['deal_id']}/events")).json()

        assert [e["event_type"] for e in events] == ["EscrowCreated", "FundsDeposited"]
        assert events[1]["payload"] == {
            "deal_id": deal["deal_id"],
            "payer": deal["payer"],
            "amount": deal["amount"],
        }

    @pytest.mark.asyncio
    async def test_global_events_after_cursor(self, client, sample_deal_data) -> None:
        deal = await _create(client, sample_deal_data)
        await client.post(
            f"/api/v1/deals/{deal['deal_id']}/fund",
            json={"caller": deal["payer"], "value": deal["amount"]},
        )
        first, second = (await client.get("/api/v1/events")).json()

        tail = (await client.get("/api/v1/events", params={"after": first["sequence"]})).json()

        assert tail == [second]

    @pytest.mark.asyncio
    async def test_health(self, client) -> None:
        response = await client.get("/health")
        assert response.json()["database"] == "healthy"
