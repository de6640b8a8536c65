"""
Booking endpoints
=================

POST /api/v1/bookings                               -- create a ride booking
GET  /api/v1/bookings/{booking_id}                  -- booking and its urgency flag
POST /api/v1/bookings/{booking_id}/confirm          -- evaluate urgency (once)
GET  /api/v1/bookings/{booking_id}/cancellation-fee -- fee owed if cancelled now
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.dependencies import get_booking_service
from src.api.middleware import limiter
from src.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    CancellationFeeResponse,
    UrgencyResponse,
)
from src.config import settings
from src.domain.entities import Coordinate, RideBooking
from src.domain.errors import BookingNotFoundError, InvalidStateTransition
from src.services.bookings import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _coordinate(lat, lng):
    if lat is None or lng is None:
        return None
    return Coordinate(lat, lng)


def _to_response(booking: RideBooking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        rider_id=booking.rider_id,
        vehicle_type=booking.vehicle_type,
        scheduled_time=booking.scheduled_time,
        confirmed=booking.urgency is not None,
        urgency=(
            UrgencyResponse.model_validate(booking.urgency)
            if booking.urgency is not None
            else None
        ),
    )


def _get(bookings: BookingService, booking_id: int) -> RideBooking:
    try:
        return bookings.get(booking_id)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Create a ride booking",
)
@limiter.limit(settings.rate_limit)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    bookings: BookingService = Depends(get_booking_service),
):
    booking = bookings.create(
        rider_id=body.rider_id,
        scheduled_time=body.scheduled_time,
        pickup=_coordinate(body.pickup_lat, body.pickup_lng),
        dropoff=_coordinate(body.dropoff_lat, body.dropoff_lng),
        vehicle_type=body.vehicle_type,
    )
    return _to_response(booking)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: int,
    bookings: BookingService = Depends(get_booking_service),
):
    return _to_response(_get(bookings, booking_id))


@router.post(
    "/{booking_id}/confirm",
    response_model=BookingResponse,
    summary="Confirm a booking and classify its urgency",
    description=(
        "Rides confirmed less than 24 hours before pickup are urgent: they "
        "carry a flat cancellation fee and priority matching. The flag is "
        "evaluated once; confirming again returns 409."
    ),
    responses={409: {"description": "Booking already confirmed."}},
)
@limiter.limit(settings.rate_limit)
async def confirm_booking(
    request: Request,
    booking_id: int,
    bookings: BookingService = Depends(get_booking_service),
):
    _get(bookings, booking_id)
    try:
        booking = bookings.confirm(booking_id)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _to_response(booking)


@router.get(
    "/{booking_id}/cancellation-fee",
    response_model=CancellationFeeResponse,
    summary="Quote the fee for cancelling now",
    responses={409: {"description": "Booking not confirmed yet."}},
)
@limiter.limit(settings.rate_limit)
async def cancellation_fee(
    request: Request,
    booking_id: int,
    bookings: BookingService = Depends(get_booking_service),
):
    _get(bookings, booking_id)
    try:
        flag, fee = bookings.cancellation_fee_cents(booking_id)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return CancellationFeeResponse(
        booking_id=booking_id,
        is_urgent=flag.is_urgent,
        cancellation_fee_cents=fee,
    )
