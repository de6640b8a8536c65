"""
Fare endpoints
==============

POST /api/v1/fares/estimate -- price a trip (primary service, backup fallback)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_pricing_service, raise_for_error
from src.api.middleware import limiter
from src.api.schemas import (
    ErrorResponse,
    FareBreakdownResponse,
    FareEstimateRequest,
    FareQuoteResponse,
)
from src.config import settings
from src.domain.entities import Coordinate
from src.domain.pricing import AdditionalServices, FareRequest
from src.services.pricing import PricingService

router = APIRouter(prefix="/fares", tags=["fares"])


@router.post(
    "/estimate",
    response_model=FareQuoteResponse,
    summary="Estimate the fare for a trip",
    responses={422: {"model": ErrorResponse, "description": "Cannot price this trip."}},
)
@limiter.limit(settings.rate_limit)
async def estimate_fare(
    request: Request,
    body: FareEstimateRequest,
    pricing: PricingService = Depends(get_pricing_service),
):
    quote = await pricing.quote(
        FareRequest(
            pickup=Coordinate(body.pickup_lat, body.pickup_lng),
            dropoff=Coordinate(body.dropoff_lat, body.dropoff_lng),
            vehicle_type=body.vehicle_type,
            additional_services=AdditionalServices(
                needs_ramp=body.needs_ramp,
                needs_companion=body.needs_companion,
                needs_stair_chair=body.needs_stair_chair,
                needs_wait_time=body.needs_wait_time,
            ),
            pickup_stairs=body.pickup_stairs,
            dropoff_stairs=body.dropoff_stairs,
            is_round_trip=body.is_round_trip,
        )
    )
    if not quote.success:
        raise_for_error(quote.error)

    return FareQuoteResponse(
        source=quote.source,
        estimated_fare=quote.estimated_fare,
        distance_miles=quote.distance_miles,
        estimated_duration=quote.estimated_duration,
        suggested_min=quote.suggested_range.min if quote.suggested_range else None,
        suggested_max=quote.suggested_range.max if quote.suggested_range else None,
        breakdown=(
            FareBreakdownResponse.model_validate(quote.breakdown)
            if quote.breakdown is not None
            else None
        ),
    )
