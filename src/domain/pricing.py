"""
Backup Fare Calculator  (Strategy Pattern)
==========================================

Used when the primary (online) pricing service cannot produce a quote.

Formula
-------
Subtotal = trips x (Base_Fare[vehicle] + Miles x Rate_Per_Mile)
           + Stairs[pickup] + Stairs[dropoff] + Add_On_Fees
Total    = (Subtotal x (1 + Platform_Fee_Rate)) x (1 + Tax_Rate)

* ``trips`` is 2 for a round trip, 1 otherwise.  Stairs and add-ons are
  charged once.
* Fee is applied before tax.  Each product is rounded to the cent, and
  ``platform_fee`` / ``tax`` are the differences between consecutive
  products, so the line items always add up to the total.

Complexity: O(1) per fare calculation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from src.config import settings

from .distance import DistanceCalculator
from .entities import Coordinate
from .enums import StairTier, VehicleType
from .errors import DomainError, ErrorCode

CENT = Decimal("0.01")

BASE_FARES: dict[VehicleType, Decimal] = {
    VehicleType.STANDARD: Decimal("45"),
    VehicleType.WHEELCHAIR: Decimal("70"),
    VehicleType.STRETCHER: Decimal("95"),
}

STAIR_FEES: dict[StairTier, Decimal] = {
    StairTier.NONE: Decimal("0"),
    StairTier.ONE_TO_THREE: Decimal("8"),
    StairTier.FOUR_TO_TEN: Decimal("15"),
    StairTier.ELEVEN_PLUS: Decimal("25"),
    StairTier.FULL_FLIGHT: Decimal("35"),
}

SERVICE_FEES: dict[str, Decimal] = {
    "ramp": Decimal("15"),
    "companion": Decimal("20"),
    "stair_chair": Decimal("30"),
    "wait_time": Decimal("35"),
}

SUGGESTED_BID_LOW = Decimal("0.70")
SUGGESTED_BID_HIGH = Decimal("1.30")
AVERAGE_SPEED_MPH = 30


def to_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert to a cent-rounded Decimal without binary float artefacts."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ── Inputs ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AdditionalServices:
    needs_ramp: bool = False
    needs_companion: bool = False
    needs_stair_chair: bool = False
    needs_wait_time: bool = False


@dataclass(frozen=True)
class FareRequest:
    pickup: Coordinate
    dropoff: Coordinate
    vehicle_type: VehicleType = VehicleType.STANDARD
    additional_services: AdditionalServices = field(default_factory=AdditionalServices)
    pickup_stairs: StairTier = StairTier.NONE
    dropoff_stairs: StairTier = StairTier.NONE
    is_round_trip: bool = False


# ── Outputs ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FareBreakdown:
    distance_miles: float
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
    is_round_trip: bool = False

    LINE_ITEMS = (
        "base_fare",
        "distance_fare",
        "pickup_stairs_fee",
        "dropoff_stairs_fee",
        "ramp_fee",
        "companion_fee",
        "stair_chair_fee",
        "wait_time_fee",
        "subtotal",
        "platform_fee",
        "tax",
        "total",
    )

    def line_items(self) -> list[tuple[str, Decimal]]:
        return [(name, getattr(self, name)) for name in self.LINE_ITEMS]


@dataclass(frozen=True)
class SuggestedBidRange:
    min: Decimal
    max: Decimal


@dataclass(frozen=True)
class FareResult:
    success: bool
    estimated_fare: Optional[Decimal] = None
    breakdown: Optional[FareBreakdown] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @property
    def domain_error(self) -> Optional[DomainError]:
        if self.success:
            return None
        return DomainError(self.error_code, self.error)


# ── Strategy hierarchy ────────────────────────────────────────────────


class FeeStrategy(ABC):
    @abstractmethod
    def apply(self, subtotal: Decimal) -> tuple[Decimal, Decimal, Decimal]:
        """Return ``(platform_fee, tax, total)`` for *subtotal*."""


class FeeThenTax(FeeStrategy):
    def __init__(self, platform_fee_rate: Decimal, tax_rate: Decimal):
        self.platform_fee_rate = platform_fee_rate
        self.tax_rate = tax_rate

    def apply(self, subtotal: Decimal) -> tuple[Decimal, Decimal, Decimal]:
        with_fee = compose_total(subtotal, self.platform_fee_rate, Decimal("0"))
        total = compose_total(subtotal, self.platform_fee_rate, self.tax_rate)
        return with_fee - subtotal, total - with_fee, total


def compose_total(subtotal: Decimal, platform_fee_rate: Decimal, tax_rate: Decimal) -> Decimal:
    """The fixed total formula: fee first, then tax, rounding each product to the cent."""
    with_fee = to_money(subtotal * (1 + platform_fee_rate))
    return to_money(with_fee * (1 + tax_rate))


# ── Calculator facade ─────────────────────────────────────────────────


class BackupFareCalculator:
    """Fare estimate from ride attributes alone; no external services."""

    def __init__(
        self,
        distance_calculator: Optional[DistanceCalculator] = None,
        rate_per_mile: float = settings.distance_rate_per_mile,
        platform_fee_rate: float = settings.platform_fee_rate,
        tax_rate: float = settings.tax_rate,
    ):
        self.distance_calculator = distance_calculator or DistanceCalculator()
        self.rate_per_mile = Decimal(str(rate_per_mile))
        self.platform_fee_rate = Decimal(str(platform_fee_rate))
        self.tax_rate = Decimal(str(tax_rate))
        self.fees = FeeThenTax(self.platform_fee_rate, self.tax_rate)

    def calculate_backup_fare(self, request: FareRequest) -> FareResult:
        distance = self.distance_calculator.calculate_validated_distance(
            request.pickup, request.dropoff
        )
        if not distance.success:
            return FareResult(
                success=False, error=distance.error, error_code=distance.error_code
            )

        try:
            vehicle = VehicleType(request.vehicle_type)
            pickup_tier = StairTier(request.pickup_stairs or StairTier.NONE)
            dropoff_tier = StairTier(request.dropoff_stairs or StairTier.NONE)
        except ValueError as exc:
            return FareResult(
                success=False,
                error=f"Unsupported ride attribute: {exc}",
                error_code=ErrorCode.PRICING_UNAVAILABLE,
            )

        trips = 2 if request.is_round_trip else 1
        base_fare = BASE_FARES[vehicle] * trips
        distance_fare = to_money(Decimal(str(distance.distance)) * self.rate_per_mile * trips)

        services = request.additional_services or AdditionalServices()
        zero = Decimal("0")
        ramp_fee = SERVICE_FEES["ramp"] if services.needs_ramp else zero
        companion_fee = SERVICE_FEES["companion"] if services.needs_companion else zero
        stair_chair_fee = SERVICE_FEES["stair_chair"] if services.needs_stair_chair else zero
        wait_time_fee = SERVICE_FEES["wait_time"] if services.needs_wait_time else zero

        pickup_stairs_fee = STAIR_FEES[pickup_tier]
        dropoff_stairs_fee = STAIR_FEES[dropoff_tier]

        subtotal = to_money(
            base_fare
            + distance_fare
            + pickup_stairs_fee
            + dropoff_stairs_fee
            + ramp_fee
            + companion_fee
            + stair_chair_fee
            + wait_time_fee
        )
        platform_fee, tax, total = self.fees.apply(subtotal)

        breakdown = FareBreakdown(
            distance_miles=distance.distance,
            base_fare=to_money(base_fare),
            distance_fare=distance_fare,
            pickup_stairs_fee=to_money(pickup_stairs_fee),
            dropoff_stairs_fee=to_money(dropoff_stairs_fee),
            ramp_fee=to_money(ramp_fee),
            companion_fee=to_money(companion_fee),
            stair_chair_fee=to_money(stair_chair_fee),
            wait_time_fee=to_money(wait_time_fee),
            subtotal=subtotal,
            platform_fee_rate=self.platform_fee_rate,
            platform_fee=platform_fee,
            tax_rate=self.tax_rate,
            tax=tax,
            total=total,
            is_round_trip=request.is_round_trip,
        )
        return FareResult(success=True, estimated_fare=total, breakdown=breakdown)


# ── Presentation helpers ──────────────────────────────────────────────


def suggested_bid_range(total: Decimal) -> SuggestedBidRange:
    """Whole-dollar range a first bid should fall in: floor(70 %) .. ceil(130 %)."""
    return SuggestedBidRange(
        min=Decimal(math.floor(total * SUGGESTED_BID_LOW)),
        max=Decimal(math.ceil(total * SUGGESTED_BID_HIGH)),
    )


def estimate_duration_minutes(distance_miles: float) -> int:
    return round(distance_miles / AVERAGE_SPEED_MPH * 60)


def format_duration(distance_miles: float) -> str:
    minutes = estimate_duration_minutes(distance_miles)
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def format_distance(distance_miles: float) -> str:
    return f"{distance_miles:.1f} mi"
