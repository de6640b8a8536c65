"""Unit tests for the backup fare calculator."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from src.domain.distance import DistanceCalculator, DistanceResult
from src.domain.entities import Coordinate
from src.domain.enums import StairTier, VehicleType
from src.domain.errors import ErrorCode
from src.domain.pricing import (
    AdditionalServices,
    BackupFareCalculator,
    FareRequest,
    FeeThenTax,
    compose_total,
    format_distance,
    format_duration,
    suggested_bid_range,
    to_money,
)
from tests.conftest import ATLANTA, HONOLULU, LA, MAINE, NYC, PIEDMONT_HOSPITAL


def _fixed_distance(miles: float) -> DistanceCalculator:
    calculator = Mock(spec=DistanceCalculator)
    calculator.calculate_validated_distance.return_value = DistanceResult(
        success=True, distance=miles, great_circle_miles=miles / 1.2
    )
    return calculator


def _calculator(miles: float) -> BackupFareCalculator:
    return BackupFareCalculator(
        distance_calculator=_fixed_distance(miles),
        rate_per_mile=2.50,
        platform_fee_rate=0.05,
        tax_rate=0.08,
    )


class TestFareComponents:
    def test_standard_ride(self):
        result = _calculator(10.0).calculate_backup_fare(FareRequest(NYC, LA))
        b = result.breakdown
        assert result.success
        assert b.base_fare == Decimal("45.00")
        assert b.distance_fare == Decimal("25.00")
        assert b.subtotal == Decimal("70.00")
        assert b.platform_fee == Decimal("3.50")  # 5 % of subtotal
        assert b.tax == Decimal("5.88")  # 8 % of subtotal + fee
        assert b.total == result.estimated_fare == Decimal("79.38")

    @pytest.mark.parametrize(
        "vehicle, base",
        [
            (VehicleType.STANDARD, Decimal("45.00")),
            (VehicleType.WHEELCHAIR, Decimal("70.00")),
            (VehicleType.STRETCHER, Decimal("95.00")),
        ],
    )
    def test_base_fare_by_vehicle(self, vehicle, base):
        result = _calculator(10.0).calculate_backup_fare(
            FareRequest(NYC, LA, vehicle_type=vehicle)
        )
        assert result.breakdown.base_fare == base

    def test_vehicle_type_accepts_plain_string(self):
        result = _calculator(10.0).calculate_backup_fare(
            FareRequest(NYC, LA, vehicle_type="stretcher")
        )
        assert result.breakdown.base_fare == Decimal("95.00")

    def test_stairs_apply_to_both_sides(self):
        result = _calculator(10.0).calculate_backup_fare(
            FareRequest(
                NYC, LA,
                pickup_stairs=StairTier.ONE_TO_THREE,
                dropoff_stairs=StairTier.FULL_FLIGHT,
            )
        )
        assert result.breakdown.pickup_stairs_fee == Decimal("8.00")
        assert result.breakdown.dropoff_stairs_fee == Decimal("35.00")
        assert result.breakdown.subtotal == Decimal("113.00")

    @pytest.mark.parametrize(
        "tier, fee",
        [
            (StairTier.NONE, "0"),
            (StairTier.ONE_TO_THREE, "8"),
            (StairTier.FOUR_TO_TEN, "15"),
            (StairTier.ELEVEN_PLUS, "25"),
            (StairTier.FULL_FLIGHT, "35"),
        ],
    )
    def test_stair_tiers(self, tier, fee):
        result = _calculator(10.0).calculate_backup_fare(
            FareRequest(NYC, LA, pickup_stairs=tier)
        )
        assert result.breakdown.pickup_stairs_fee == Decimal(fee)

    def test_add_on_services_are_independent(self):
        result = _calculator(10.0).calculate_backup_fare(
            FareRequest(
                NYC, LA,
                additional_services=AdditionalServices(
                    needs_ramp=True, needs_companion=False,
                    needs_stair_chair=True, needs_wait_time=True,
                ),
            )
        )
        b = result.breakdown
        assert (b.ramp_fee, b.companion_fee, b.stair_chair_fee, b.wait_time_fee) == (
            Decimal("15.00"), Decimal("0.00"), Decimal("30.00"), Decimal("35.00"),
        )
        assert b.subtotal == Decimal("150.00")

    def test_round_trip_doubles_base_and_distance_only(self):
        request = FareRequest(
            NYC, LA,
            vehicle_type=VehicleType.WHEELCHAIR,
            pickup_stairs=StairTier.ONE_TO_THREE,
            dropoff_stairs=StairTier.FULL_FLIGHT,
            additional_services=AdditionalServices(needs_ramp=True, needs_wait_time=True),
            is_round_trip=True,
        )
        b = _calculator(10.0).calculate_backup_fare(request).breakdown
        assert b.base_fare == Decimal("140.00")
        assert b.distance_fare == Decimal("50.00")
        assert b.ramp_fee == Decimal("15.00")
        assert b.wait_time_fee == Decimal("35.00")
        assert b.subtotal == Decimal("283.00")
        assert b.platform_fee == Decimal("14.15")
        assert b.tax == Decimal("23.77")
        assert b.total == Decimal("320.92")
        assert b.is_round_trip

    def test_fractional_distance_rounds_to_cents(self):
        b = _calculator(12.34).calculate_backup_fare(
            FareRequest(NYC, LA, vehicle_type=VehicleType.STRETCHER)
        ).breakdown
        assert b.distance_fare == Decimal("30.85")
        assert b.subtotal == Decimal("125.85")
        assert b.total == Decimal("142.71")

    def test_line_items_in_fixed_order(self):
        b = _calculator(10.0).calculate_backup_fare(FareRequest(NYC, LA)).breakdown
        names = [name for name, _ in b.line_items()]
        assert names[0] == "base_fare"
        assert names[-4:] == ["subtotal", "platform_fee", "tax", "total"]


class TestTotalFormula:
    @pytest.mark.parametrize("miles", [0.5, 4.7, 12.34, 99.99, 2_933.61])
    @pytest.mark.parametrize("vehicle", list(VehicleType))
    def test_breakdown_reproduces_total(self, miles, vehicle):
        request = FareRequest(
            NYC, LA,
            vehicle_type=vehicle,
            pickup_stairs=StairTier.FOUR_TO_TEN,
            additional_services=AdditionalServices(needs_companion=True),
            is_round_trip=miles > 50,
        )
        b = _calculator(miles).calculate_backup_fare(request).breakdown
        components = sum(
            (amount for name, amount in b.line_items()
             if name not in ("subtotal", "platform_fee", "tax", "total")),
            Decimal("0"),
        )
        assert components == b.subtotal
        assert compose_total(b.subtotal, b.platform_fee_rate, b.tax_rate) == b.total
        assert b.subtotal + b.platform_fee + b.tax == b.total

    def test_fee_is_applied_before_tax(self):
        fee, tax, total = FeeThenTax(Decimal("0.05"), Decimal("0.08")).apply(Decimal("100.00"))
        assert fee == Decimal("5.00")
        assert tax == Decimal("8.40")  # taxed on 105, not on 100
        assert total == Decimal("113.40")


class TestRealDistances:
    def test_local_trip_uses_validated_distance(self):
        result = BackupFareCalculator().calculate_backup_fare(
            FareRequest(ATLANTA, PIEDMONT_HOSPITAL)
        )
        assert result.success
        assert 3 <= result.breakdown.distance_miles <= 15

    def test_invalid_pickup_fails_with_pickup_error(self):
        result = BackupFareCalculator().calculate_backup_fare(
            FareRequest(Coordinate(0, 0), PIEDMONT_HOSPITAL)
        )
        assert not result.success
        assert "Pickup" in result.error
        assert result.estimated_fare is None
        assert result.domain_error.code is ErrorCode.INVALID_COORDINATE

    def test_implausible_distance_is_not_priced(self):
        result = BackupFareCalculator().calculate_backup_fare(FareRequest(MAINE, HONOLULU))
        assert not result.success
        assert result.error_code is ErrorCode.DISTANCE_IMPLAUSIBLE

    def test_unknown_vehicle_type_is_reported(self):
        result = BackupFareCalculator().calculate_backup_fare(
            FareRequest(ATLANTA, PIEDMONT_HOSPITAL, vehicle_type="helicopter")
        )
        assert not result.success
        assert result.error_code is ErrorCode.PRICING_UNAVAILABLE


class TestHelpers:
    def test_suggested_bid_range(self):
        band = suggested_bid_range(Decimal("79.38"))
        assert (band.min, band.max) == (Decimal("55"), Decimal("104"))

    @pytest.mark.parametrize(
        "miles, text", [(15, "30 min"), (45, "1h 30m"), (60, "2h")]
    )
    def test_format_duration(self, miles, text):
        assert format_duration(miles) == text

    def test_format_distance(self):
        assert format_distance(4.66) == "4.7 mi"

    def test_to_money_avoids_float_artefacts(self):
        assert to_money(0.1 + 0.2) == Decimal("0.30")
        assert to_money(2.675) == Decimal("2.68")
