"""
HTTP client for the primary (online) pricing service.

Any transport failure, non-2xx status or malformed body is surfaced as
``PricingUnavailable`` so the pricing service can fall back to the
backup calculator.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from src.config import settings
from src.domain.errors import PricingUnavailable
from src.domain.pricing import FareRequest, to_money


def fare_request_payload(request: FareRequest) -> dict:
    services = request.additional_services
    return {
        "pickup": {"lat": request.pickup.latitude, "lng": request.pickup.longitude},
        "dropoff": {"lat": request.dropoff.latitude, "lng": request.dropoff.longitude},
        "vehicle_type": str(getattr(request.vehicle_type, "value", request.vehicle_type)),
        "pickup_stairs": str(getattr(request.pickup_stairs, "value", request.pickup_stairs)),
        "dropoff_stairs": str(getattr(request.dropoff_stairs, "value", request.dropoff_stairs)),
        "needs_ramp": services.needs_ramp,
        "needs_companion": services.needs_companion,
        "needs_stair_chair": services.needs_stair_chair,
        "needs_wait_time": services.needs_wait_time,
        "is_round_trip": request.is_round_trip,
    }


class PrimaryPricingClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = settings.primary_pricing_timeout_seconds,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport
        )

    async def fetch_quote(self, request: FareRequest) -> tuple[Decimal, Optional[float]]:
        """Return ``(total, distance_miles)`` from the primary service."""
        try:
            response = await self._client.post("/quote", json=fare_request_payload(request))
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise PricingUnavailable(f"Primary pricing request failed: {exc}") from exc
        except ValueError as exc:
            raise PricingUnavailable("Primary pricing returned malformed JSON") from exc

        try:
            total = to_money(body["total"])
            distance = body.get("distance_miles")
            distance = float(distance) if distance is not None else None
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise PricingUnavailable("Primary pricing response is unusable") from exc
        if total <= 0:
            raise PricingUnavailable(f"Primary pricing returned non-positive total {total}")

        return total, distance

    async def aclose(self) -> None:
        await self._client.aclose()
