"""
Ride booking confirmation.

Urgency is evaluated once, when the booking is confirmed, and stored on
the booking.  A second confirmation is refused, so the flag and its
cancellation fee cannot be recomputed later.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from src.domain.entities import Coordinate, RideBooking
from src.domain.enums import VehicleType
from src.domain.errors import InvalidStateTransition
from src.domain.urgency import UrgencyFlag, UrgencyPolicy, as_utc
from src.infrastructure.locks import KeyedLockRegistry
from src.infrastructure.repositories import InMemoryBookingRepository

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        repository: Optional[InMemoryBookingRepository] = None,
        policy: Optional[UrgencyPolicy] = None,
        locks: Optional[KeyedLockRegistry] = None,
    ):
        self.repository = repository or InMemoryBookingRepository()
        self.policy = policy or UrgencyPolicy()
        self.locks = locks or KeyedLockRegistry()

    def get(self, booking_id: int) -> RideBooking:
        return self.repository.get(booking_id)

    def create(
        self,
        *,
        rider_id: int,
        scheduled_time: datetime,
        pickup: Optional[Coordinate] = None,
        dropoff: Optional[Coordinate] = None,
        vehicle_type: VehicleType = VehicleType.STANDARD,
    ) -> RideBooking:
        booking = self.repository.add(
            RideBooking(
                rider_id=rider_id,
                pickup=pickup,
                dropoff=dropoff,
                vehicle_type=vehicle_type,
                scheduled_time=as_utc(scheduled_time),
            )
        )
        logger.info("Booking %s created for rider %s at %s", booking.id, rider_id, booking.scheduled_time)
        return booking

    def confirm(self, booking_id: int, now: Optional[datetime] = None) -> RideBooking:
        """Attach the urgency flag; raises ``InvalidStateTransition`` on a repeat."""
        with self.locks.lock(f"booking:{booking_id}"):
            booking = self.repository.get(booking_id)
            flag = booking.confirm(self.policy, now)
        logger.info(
            "Booking %s confirmed: urgent=%s, %.1fh before pickup",
            booking.id, flag.is_urgent, flag.hours_until_pickup,
        )
        return booking

    def cancellation_fee_cents(
        self, booking_id: int, cancelled_at: Optional[datetime] = None
    ) -> tuple[UrgencyFlag, int]:
        """Fee owed if the confirmed booking were cancelled at *cancelled_at*."""
        booking = self.repository.get(booking_id)
        if booking.urgency is None:
            raise InvalidStateTransition(f"Booking {booking_id} is not confirmed")
        fee = self.policy.cancellation_fee_cents(
            booking.urgency, booking.scheduled_time, cancelled_at
        )
        return booking.urgency, fee
