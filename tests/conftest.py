"""
Shared test fixtures.

Everything runs in memory: the negotiation engine uses the in-memory
repository and the API app is driven through httpx's ASGI transport, so
no external pricing service is needed.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.domain.entities import Actor, Coordinate, NegotiationChain
from src.domain.enums import ActorRole
from src.domain.negotiation import NegotiationRules
from src.services.negotiation import BidNegotiationEngine

# ── Well-known places ─────────────────────────────────────────────────

NYC = Coordinate(40.7128, -74.0060)
LA = Coordinate(34.0522, -118.2437)
ATLANTA = Coordinate(33.7490, -84.3880)
PIEDMONT_HOSPITAL = Coordinate(33.8038, -84.3694)
MAINE = Coordinate(47.0, -69.0)
HONOLULU = Coordinate(21.3, -157.8)
ANCHORAGE = Coordinate(61.2181, -149.9003)
SEATTLE = Coordinate(47.6062, -122.3321)
SAN_JUAN = Coordinate(18.4655, -66.1057)
MIAMI = Coordinate(25.7617, -80.1918)

RIDE_ID = 10
RIDER = Actor(user_id=1, role=ActorRole.RIDER)
DRIVER = Actor(user_id=2, role=ActorRole.DRIVER)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def engine() -> BidNegotiationEngine:
    return BidNegotiationEngine(rules=NegotiationRules(max_rounds=3, flexibility=0.30))


@pytest.fixture
def open_chain(engine):
    """Factory: open a chain with a driver bid (default $100) and return it."""

    def _open(amount="100", created_by=ActorRole.DRIVER, **kwargs) -> NegotiationChain:
        result = engine.open_negotiation(
            ride_id=RIDE_ID,
            rider_id=RIDER.user_id,
            driver_id=DRIVER.user_id,
            amount=Decimal(amount),
            created_by=created_by,
            **kwargs,
        )
        assert result.success, result.error
        return result.chain

    return _open


@pytest_asyncio.fixture
async def client():
    """AsyncClient backed by a fresh app (fresh engine, backup-only pricing)."""
    from src.api.app import create_app
    from src.api.middleware import limiter

    limiter.reset()
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
