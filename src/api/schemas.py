"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.enums import ActorRole, NegotiationStatus, StairTier, VehicleType


# ── Requests ──────────────────────────────────────────────────────────


class FareEstimateRequest(BaseModel):
    pickup_lat: float
    pickup_lng: float
    dropoff_lat: float
    dropoff_lng: float
    vehicle_type: VehicleType = VehicleType.STANDARD
    pickup_stairs: StairTier = StairTier.NONE
    dropoff_stairs: StairTier = StairTier.NONE
    needs_ramp: bool = False
    needs_companion: bool = False
    needs_stair_chair: bool = False
    needs_wait_time: bool = False
    is_round_trip: bool = False


class NegotiationOpenRequest(BaseModel):
    ride_id: int
    rider_id: int
    driver_id: int
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    created_by: ActorRole
    notes: Optional[str] = Field(None, max_length=500)
    suggested_amount: Optional[Decimal] = Field(
        None,
        gt=0,
        description="Fare estimate the opening bid is checked against.",
    )


class ActorFields(BaseModel):
    user_id: int
    role: ActorRole
    version: int = Field(
        ...,
        ge=1,
        description="Chain version the client last read; stale versions are refused.",
    )


class CounterOfferRequest(ActorFields):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=500)
    confirm_final: bool = Field(
        False,
        description="Must be true when this counter is the final offer.",
    )


class AcceptBidRequest(ActorFields):
    bid_id: str


class RejectRequest(ActorFields):
    pass


class BookingCreateRequest(BaseModel):
    rider_id: int
    scheduled_time: datetime = Field(..., description="Pickup time; naive values are read as UTC.")
    pickup_lat: Optional[float] = None
    pickup_lng: Optional[float] = None
    dropoff_lat: Optional[float] = None
    dropoff_lng: Optional[float] = None
    vehicle_type: VehicleType = VehicleType.STANDARD


# ── Responses ─────────────────────────────────────────────────────────


_ROAD_MILES = "Estimated road miles: great-circle distance scaled by the configured road factor."


class FareBreakdownResponse(BaseModel):
    distance_miles: float = Field(..., description=_ROAD_MILES)
    base_fare: Decimal
    distance_fare: Decimal
    pickup_stairs_fee: Decimal
    dropoff_stairs_fee: Decimal
    ramp_fee: Decimal
    companion_fee: Decimal
    stair_chair_fee: Decimal
    wait_time_fee: Decimal
    subtotal: Decimal
    platform_fee_rate: Decimal
    platform_fee: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal
    is_round_trip: bool

    model_config = {"from_attributes": True}


class FareQuoteResponse(BaseModel):
    source: str
    estimated_fare: Decimal
    distance_miles: Optional[float] = Field(None, description=_ROAD_MILES)
    estimated_duration: Optional[str] = None
    suggested_min: Optional[Decimal] = None
    suggested_max: Optional[Decimal] = None
    breakdown: Optional[FareBreakdownResponse] = None


class BidResponse(BaseModel):
    id: str
    ride_id: int
    amount: Decimal
    round: int
    original_amount: Decimal
    created_by: ActorRole
    created_by_id: int
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NegotiationResponse(BaseModel):
    id: str
    ride_id: int
    rider_id: int
    driver_id: int
    status: NegotiationStatus
    version: int
    current_round: int
    max_rounds: int
    original_amount: Decimal
    agreed_amount: Optional[Decimal] = None
    remaining_offers: int
    is_final_offer: bool
    min_counter_amount: Decimal
    max_counter_amount: Decimal
    bids: list[BidResponse] = []


class UrgencyResponse(BaseModel):
    is_urgent: bool
    hours_until_pickup: float
    cancellation_fee_cents: int
    priority_matching: bool
    evaluated_at: datetime

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    rider_id: int
    vehicle_type: VehicleType
    scheduled_time: datetime
    confirmed: bool
    urgency: Optional[UrgencyResponse] = None


class CancellationFeeResponse(BaseModel):
    booking_id: int
    is_urgent: bool
    cancellation_fee_cents: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorDetail(BaseModel):
    code: str
    message: str
    user_message: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


class ErrorResponse(BaseModel):
    detail: ErrorDetail
