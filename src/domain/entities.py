"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``NegotiationChain``: enforces valid lifecycle
  transitions (PROPOSED -> COUNTERED -> ACCEPTED | REJECTED | EXPIRED).
- Chains are immutable snapshots.  Every mutation produces a new chain
  with ``version + 1`` so concurrent writers can detect a stale read.
- ``RideBooking.confirm`` evaluates urgency exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from .enums import (
    NEGOTIATION_TRANSITIONS,
    TERMINAL_STATUSES,
    ActorRole,
    NegotiationStatus,
    VehicleType,
)
from .errors import InvalidStateTransition, UnknownBidError

if TYPE_CHECKING:
    from .urgency import UrgencyFlag, UrgencyPolicy


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Actor:
    """A party acting on a negotiation: who (user id) and in which role."""

    user_id: int
    role: ActorRole


@dataclass(frozen=True)
class Bid:
    id: str
    ride_id: int
    amount: Decimal
    round: int
    original_amount: Decimal
    created_by: ActorRole
    created_by_id: int
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NegotiationChain:
    id: str
    ride_id: int
    rider_id: int
    driver_id: int
    original_amount: Decimal
    bids: tuple[Bid, ...] = ()
    max_rounds: int = 3
    current_round: int = 0
    status: NegotiationStatus = NegotiationStatus.PROPOSED
    version: int = 1
    agreed_amount: Optional[Decimal] = None
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def latest_bid(self) -> Bid:
        return self.bids[-1]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def find_bid(self, bid_id: str) -> Bid:
        for bid in self.bids:
            if bid.id == bid_id:
                return bid
        raise UnknownBidError(f"Bid {bid_id} does not belong to chain {self.id}")

    def is_party(self, actor: Actor) -> bool:
        if actor.role is ActorRole.RIDER:
            return actor.user_id == self.rider_id
        return actor.user_id == self.driver_id

    def transition_to(self, new_status: NegotiationStatus, **changes) -> NegotiationChain:
        """Return the next version in *new_status* if the transition is legal, else raise."""
        allowed = NEGOTIATION_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status} to {new_status}"
            )
        return replace(
            self,
            status=new_status,
            version=self.version + 1,
            updated_at=_utcnow(),
            **changes,
        )


@dataclass
class RideBooking:
    id: Optional[int] = None
    rider_id: int = 0
    pickup: Optional[Coordinate] = None
    dropoff: Optional[Coordinate] = None
    vehicle_type: VehicleType = VehicleType.STANDARD
    scheduled_time: Optional[datetime] = None
    urgency: Optional[UrgencyFlag] = None

    def confirm(self, policy: UrgencyPolicy, now: Optional[datetime] = None) -> UrgencyFlag:
        """Classify urgency at confirmation time; later calls are rejected."""
        if self.urgency is not None:
            raise InvalidStateTransition(f"Booking {self.id} is already confirmed")
        if self.scheduled_time is None:
            raise ValueError("Cannot confirm a booking without a scheduled time")
        self.urgency = policy.classify(self.scheduled_time, now)
        return self.urgency
